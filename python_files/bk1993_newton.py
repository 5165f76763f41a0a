# ================================================== #
# Damped Newton iteration for the stacked perfect-   #
# foresight system. Steps come from a caller-        #
# supplied linear solver (spsolve for the sparse     #
# stacked Jacobian).                                 #
# ================================================== #

import logging

import numpy as np

logger = logging.getLogger(__name__)


class NonConvergenceError(RuntimeError):
    """Raised when a solve cannot bring the residuals below tolerance."""


def _evaluate(func, x):
    with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
        resid = np.asarray(func(x), dtype=float)
    if not np.all(np.isfinite(resid)):
        return resid, np.inf
    return resid, float(np.max(np.abs(resid), initial=0.0))


def damped_newton(func, jac, x0, tolerance=1e-10, max_iterations=50,
                  linear_solve=np.linalg.solve, min_step=1e-8, name="system"):
    """
    Solve func(x) = 0 starting from x0; returns the solution and the number
    of Newton steps taken.

    Each step is halved until the Euclidean norm of the residual decreases
    (Armijo condition). Non-finite residuals count as an infinite norm, so
    steps leaving the model's domain are shortened. linear_solve(jac(x), b)
    computes the step.

    Raises NonConvergenceError on a singular Jacobian, a failed line search
    or when max_iterations is reached.
    """
    x = np.array(x0, dtype=float)
    resid, err = _evaluate(func, x)
    if not np.isfinite(err):
        raise NonConvergenceError(f"{name}: residuals are not finite at the starting point")

    for iteration in range(max_iterations + 1):
        logger.debug("%s: iteration %d, max residual %.3e", name, iteration, err)
        if err < tolerance:
            return x, iteration
        if iteration == max_iterations:
            break

        try:
            with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
                step = np.asarray(linear_solve(jac(x), -resid), dtype=float)
        except (np.linalg.LinAlgError, RuntimeError) as exc:
            raise NonConvergenceError(f"{name}: singular Jacobian at iteration {iteration}") from exc
        if not np.all(np.isfinite(step)):
            raise NonConvergenceError(f"{name}: singular Jacobian at iteration {iteration}")

        merit = np.linalg.norm(resid)
        length = 1.0
        while True:
            x_new = x + length * step
            resid_new, err_new = _evaluate(func, x_new)
            if err_new < tolerance:
                break
            if np.isfinite(err_new) and np.linalg.norm(resid_new) <= (1 - 1e-4 * length) * merit:
                break
            length *= 0.5
            if length < min_step:
                raise NonConvergenceError(
                    f"{name}: line search failed at iteration {iteration} (max residual {err:.3e})"
                )
        if length < 1.0:
            logger.debug("%s: damped step length %.3g", name, length)
        x, resid, err = x_new, resid_new, err_new

    raise NonConvergenceError(
        f"{name}: no convergence after {max_iterations} iterations (max residual {err:.3e})"
    )
