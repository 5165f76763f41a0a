# ================================================== #
# Steady-state resolution: solves the static model   #
# written by bk1993_preprocessing for fixed          #
# parameters and exogenous values, starting from a   #
# guess (closed-form calibration or a previous       #
# steady state).                                     #
# ================================================== #


import logging

import numpy as np
import pandas as pd
from scipy import optimize

from python_files.bk1993_newton import NonConvergenceError

logger = logging.getLogger(__name__)


def static_residuals(MODEL, x, exo, params):
    """Residuals of the static model at x, ordered like the equations."""
    return np.asarray(MODEL["static_resid"](x, exo, params), dtype=float).ravel()


def static_jacobian(MODEL, x, exo, params):
    """Jacobian of the static residuals w.r.t. the endogenous variables."""
    return np.asarray(MODEL["static_g1"](x, exo, params), dtype=float)


def residual_table(MODEL, x, exo, params):
    """Static residuals labelled by equation name."""
    return pd.Series(
        static_residuals(MODEL, np.asarray(x, dtype=float), exo, params),
        index=MODEL["equation_names"],
        name="residual",
    )


def _max_residual(MODEL, x, exo, params):
    with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
        resid = static_residuals(MODEL, x, exo, params)
    if not np.all(np.isfinite(resid)):
        return np.inf
    return float(np.max(np.abs(resid)))


def steady(MODEL, params, guess, exo, tolerance=1e-10, max_iterations=50, name="steady state"):
    """
    Solve the static model for the steady state closest to guess with
    scipy's hybrid Powell method and the analytic static Jacobian.

    max_iterations bounds the residual evaluations at max_iterations * (n + 1);
    a guess already within tolerance is returned as is. Raises
    NonConvergenceError if no solution is found near the guess.
    """
    exo = np.asarray(exo, dtype=float)
    params = np.asarray(params, dtype=float)
    guess = np.asarray(guess, dtype=float)

    if _max_residual(MODEL, guess, exo, params) < tolerance:
        logger.info("%s: guess already solves the static model", name)
        return guess.copy()

    message = "no iterations allowed"
    if max_iterations > 0:
        with np.errstate(invalid="ignore", divide="ignore", over="ignore"):
            result = optimize.root(
                lambda x: static_residuals(MODEL, x, exo, params),
                guess,
                jac=lambda x: static_jacobian(MODEL, x, exo, params),
                method="hybr",
                options={"xtol": 1e-14, "maxfev": max_iterations * (guess.size + 1)},
            )
        err = _max_residual(MODEL, result.x, exo, params)
        # accepted on the residual, result.success is False when hybr stalls at xtol
        if err < tolerance:
            logger.info("%s found after %d residual evaluations (max residual %.3e)",
                        name, result.nfev, err)
            return result.x
        message = f"{result.message} (max residual {err:.3e})"

    with np.errstate(invalid="ignore", divide="ignore"):
        table = residual_table(MODEL, guess, exo, params)
    logger.error("%s: residuals at the initial guess\n%s", name, table.to_string())
    raise NonConvergenceError(f"{name}: {message}")


def steady_state_table(MODEL, **states):
    """Steady-state vectors side by side, one column per keyword."""
    return pd.DataFrame(
        {label: np.asarray(values, dtype=float) for label, values in states.items()},
        index=MODEL["endo_names"],
    )
