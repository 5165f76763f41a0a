# ================================================== #
# Closed-form calibration of the Baxter & King (1993) #
# model: maps annual targets to parameter values and  #
# to the initial steady state, which is then refined  #
# by the steady-state solver.                         #
# ================================================== #

import logging
from dataclasses import dataclass

import numpy as np

from python_files.bk1993_config import CalibrationTargets
from python_files.bk1993_preprocessing import endo_names, param_names

logger = logging.getLogger(__name__)


@dataclass
class Calibration:
    """Calibrated parameters and the implied steady state."""

    targets: CalibrationTargets
    params: dict
    steady_state: dict

    @property
    def param_vector(self):
        return params_vector(self.params)

    @property
    def steady_state_vector(self):
        return endo_vector(self.steady_state)


def params_vector(params):
    """Order a parameter mapping like param_names."""
    return np.array([params[name] for name in param_names], dtype=float)


def endo_vector(values):
    """Order a variable mapping like endo_names."""
    return np.array([values[name] for name in endo_names], dtype=float)


def calibrate(targets=None):
    """Compute parameters and steady-state levels from the calibration targets."""
    if targets is None:
        targets = CalibrationTargets()

    A = targets.A
    THETA_K = targets.THETA_K
    THETA_N = targets.THETA_N
    DELTA_K = targets.DELTA_K
    GAMMAX = targets.GAMMAX
    TAU_BAR = targets.TAU_BAR
    N = targets.N
    BETA = targets.BETA

    # rental rate from the Euler equation, marginal product from the tax wedge
    q = GAMMAX / BETA - 1 + DELTA_K
    fk = q / (1 - TAU_BAR)

    # capital-labor ratio from the marginal product of capital
    k_n = (fk / (THETA_K * A)) ** (1 / (THETA_K - 1))
    k = k_n * N
    y = A * k**THETA_K * N**THETA_N
    fn = THETA_N * y / N

    iv = (GAMMAX - 1 + DELTA_K) * k
    gb = targets.sG * y
    tau = TAU_BAR
    tr = tau * y - gb
    c = y - iv - gb
    if c <= 0:
        raise ValueError(
            f"Calibration implies non-positive consumption c={c:.6f}; "
            "investment and government purchases exceed output"
        )
    l = 1 - N

    lam = 1 / c
    ul = lam * (1 - tau) * fn
    THETA_L = ul * l

    params = {
        "A": A,
        "GAMMAX": GAMMAX,
        "BETA": BETA,
        "DELTA_K": DELTA_K,
        "THETA_L": THETA_L,
        "THETA_K": THETA_K,
        "THETA_N": THETA_N,
        "GB_BAR": gb,
        "TAU_BAR": TAU_BAR,
    }

    steady_state = {
        "y": y,
        "c": c,
        "l": l,
        "n": N,
        "iv": iv,
        "k": k,
        "lam": lam,
        "tr": tr,
        "tau": tau,
        "gb": gb,
        "w": fn,
        "q": q,
        "r": GAMMAX / BETA - 1,
        "uc": lam,
        "ul": ul,
        "fn": fn,
        "fk": fk,
        "check_walras": 0.0,
    }

    logger.info("Calibrated BETA=%.6f THETA_L=%.6f GB_BAR=%.6f", BETA, THETA_L, gb)
    return Calibration(targets=targets, params=params, steady_state=steady_state)
