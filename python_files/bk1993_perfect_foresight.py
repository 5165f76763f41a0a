# ================================================== #
# Nonlinear perfect-foresight transition path. The   #
# dynamic model is stacked over periods 1..T-1, with #
# period 0 pinned to the initial steady state and    #
# period T to the terminal one, and solved jointly   #
# by Newton's method on a sparse Jacobian.           #
# ================================================== #


import logging

import numpy as np
import scipy.sparse as sparse
from scipy.sparse.linalg import spsolve

from python_files.bk1993_newton import damped_newton

logger = logging.getLogger(__name__)


def perfect_foresight_setup(MODEL, initial, terminal, exo_initial, exo_terminal, periods=200):
    """
    Build the simulation matrices.

    endo_simul has one row per endogenous variable and one column per period
    0..periods; column 0 holds the initial steady state and every later
    column the terminal one, which also serves as the starting guess.
    exo_simul has one row per period: the initial exogenous value in period 0
    and the terminal value, known with certainty, from period 1 onward.
    """
    n = MODEL["endo_nbr"]
    endo_simul = np.empty((n, periods + 1))
    endo_simul[:, 0] = initial
    endo_simul[:, 1:] = np.asarray(terminal, dtype=float)[:, None]

    exo_simul = np.empty((periods + 1, MODEL["exo_nbr"]))
    exo_simul[0] = exo_initial
    exo_simul[1:] = exo_terminal
    return endo_simul, exo_simul


def _dynamic_vector(lead_lag_incidence, y_lag, y_cur, y_lead):
    x = np.empty(lead_lag_incidence.max())
    for row, y in enumerate((y_lag, y_cur, y_lead)):
        (cols,) = np.nonzero(lead_lag_incidence[row])
        x[lead_lag_incidence[row, cols] - 1] = y[cols]
    return x


def path_residuals(MODEL, endo_simul, exo_simul, params):
    """Dynamic residuals at periods 1..T-1, shape (equations, T-1)."""
    lli = MODEL["lead_lag_incidence"]
    T = endo_simul.shape[1] - 1
    steady_state = endo_simul[:, -1]
    resid = np.empty((MODEL["endo_nbr"], T - 1))
    for t in range(1, T):
        x = _dynamic_vector(lli, endo_simul[:, t - 1], endo_simul[:, t], endo_simul[:, t + 1])
        resid[:, t - 1] = np.asarray(
            MODEL["dynamic_resid"](x, exo_simul[t], params, steady_state), dtype=float
        ).ravel()
    return resid


def stacked_residuals(MODEL, endo_simul, exo_simul, params):
    """Residuals of all periods 1..T-1, period-major."""
    return path_residuals(MODEL, endo_simul, exo_simul, params).T.ravel()


def stacked_jacobian(MODEL, endo_simul, exo_simul, params):
    """
    Sparse Jacobian of stacked_residuals w.r.t. the interior path.

    Unknowns are ordered period-major like stacked_residuals: entry
    (t-1)*n + j is variable j in period t.
    """
    lli = MODEL["lead_lag_incidence"]
    n = MODEL["endo_nbr"]
    T = endo_simul.shape[1] - 1
    steady_state = endo_simul[:, -1]
    size = n * (T - 1)

    # (time offset, variable index, Jacobian column) for every dynamic variable
    incidence = [
        (offset, j, lli[offset + 1, j] - 1)
        for offset in (-1, 0, 1)
        for j in np.nonzero(lli[offset + 1])[0]
    ]

    rows, cols, data = [], [], []
    for t in range(1, T):
        x = _dynamic_vector(lli, endo_simul[:, t - 1], endo_simul[:, t], endo_simul[:, t + 1])
        g1 = np.asarray(MODEL["dynamic_g1"](x, exo_simul[t], params, steady_state), dtype=float)
        for offset, j, col in incidence:
            period = t + offset
            # initial and terminal columns are fixed, not unknowns
            if period < 1 or period > T - 1:
                continue
            (eq,) = np.nonzero(g1[:, col])
            rows.append((t - 1) * n + eq)
            cols.append(np.full(eq.size, (period - 1) * n + j))
            data.append(g1[eq, col])

    return sparse.csc_matrix(
        (np.concatenate(data), (np.concatenate(rows), np.concatenate(cols))),
        shape=(size, size),
    )


def perfect_foresight_solver(MODEL, endo_simul, exo_simul, params, tolerance=1e-10, max_iterations=50):
    """
    Solve for the interior of endo_simul so that every equation holds at
    every period 1..T-1. Returns a new matrix; the first and last columns
    are left untouched.

    Raises NonConvergenceError if Newton's method fails.
    """
    params = np.asarray(params, dtype=float)
    n = MODEL["endo_nbr"]
    T = endo_simul.shape[1] - 1
    if T < 2:
        raise ValueError("The perfect-foresight horizon needs at least two periods")

    def with_interior(z):
        path = endo_simul.copy()
        path[:, 1:T] = z.reshape(T - 1, n).T
        return path

    z0 = endo_simul[:, 1:T].T.ravel()
    z, iterations = damped_newton(
        lambda z: stacked_residuals(MODEL, with_interior(z), exo_simul, params),
        lambda z: stacked_jacobian(MODEL, with_interior(z), exo_simul, params),
        z0,
        tolerance=tolerance,
        max_iterations=max_iterations,
        linear_solve=spsolve,
        name="perfect foresight",
    )

    logger.info(
        "Perfect-foresight path over %d periods found after %d Newton iterations (%d unknowns)",
        T, iterations, z.size,
    )
    return with_interior(z)
