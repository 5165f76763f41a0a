#!/usr/bin/env python3
"""
Baxter & King (1993), Figure II: permanent increase in government purchases.

Runs the whole sequence: preprocess the model, calibrate, solve the initial
and terminal steady states, solve the perfect-foresight transition and draw
the commodity, labor and financial market panels.

Usage:
    python -m python_files.bk1993_main
    python -m python_files.bk1993_main --save-dir figures --no-show
    python -m python_files.bk1993_main --periods 300 --verbose
"""

import argparse
import logging
import sys
from dataclasses import dataclass

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from pydantic import ValidationError

from python_files.bk1993_calibration import Calibration, calibrate
from python_files.bk1993_config import CalibrationTargets, SimulationSettings
from python_files.bk1993_newton import NonConvergenceError
from python_files.bk1993_perfect_foresight import perfect_foresight_setup, perfect_foresight_solver
from python_files.bk1993_preprocessing import preprocess
from python_files.bk1993_report import deviations, get_series, plot_all
from python_files.bk1993_steady import residual_table, steady, steady_state_table

logger = logging.getLogger(__name__)


@dataclass
class SimulationResults:
    """Everything produced by one run."""

    MODEL: dict
    calibration: Calibration
    settings: SimulationSettings
    initial_steady_state: np.ndarray
    terminal_steady_state: np.ndarray
    commodity_unit: float
    endo_simul: np.ndarray
    exo_simul: np.ndarray
    deviations: pd.DataFrame

    def series(self, name):
        return get_series(self.MODEL, self.endo_simul, name)


def run(targets=None, settings=None):
    """Calibrate, solve both steady states and the transition path."""
    targets = targets or CalibrationTargets()
    settings = settings or SimulationSettings()

    MODEL = preprocess(settings.generated_dir)
    cal = calibrate(targets)
    params = cal.param_vector

    # initial steady state, refined from the closed-form calibration
    exo_initial = np.zeros(MODEL["exo_nbr"])
    initial = steady(MODEL, params, cal.steady_state_vector, exo_initial,
                     tolerance=settings.tolerance, max_iterations=settings.max_iterations,
                     name="initial steady state")
    logger.debug("Residuals at the initial steady state:\n%s",
                 residual_table(MODEL, initial, exo_initial, params).to_string())

    # permanent increase in government purchases of one commodity unit
    commodity_unit = settings.shock_size * initial[MODEL["endo_names"].index("y")]
    exo_terminal = np.full(MODEL["exo_nbr"], commodity_unit)
    terminal = steady(MODEL, params, initial, exo_terminal,
                      tolerance=settings.tolerance, max_iterations=settings.max_iterations,
                      name="terminal steady state")
    logger.info("Steady states:\n%s",
                steady_state_table(MODEL, initial=initial, terminal=terminal).to_string())

    endo_simul, exo_simul = perfect_foresight_setup(
        MODEL, initial, terminal, exo_initial, exo_terminal, periods=settings.periods
    )
    endo_simul = perfect_foresight_solver(
        MODEL, endo_simul, exo_simul, params,
        tolerance=settings.tolerance, max_iterations=settings.max_iterations,
    )
    walras = np.max(np.abs(get_series(MODEL, endo_simul, "check_walras")))
    logger.info("Largest Walras check along the path: %.3e", walras)

    return SimulationResults(
        MODEL=MODEL,
        calibration=cal,
        settings=settings,
        initial_steady_state=initial,
        terminal_steady_state=terminal,
        commodity_unit=commodity_unit,
        endo_simul=endo_simul,
        exo_simul=exo_simul,
        deviations=deviations(MODEL, endo_simul, initial, commodity_unit),
    )


def setup_logging(verbose=False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Baxter & King (1993): permanent increase in government purchases",
    )
    parser.add_argument("--periods", type=int, default=200,
                        help="Perfect-foresight horizon (default: 200)")
    parser.add_argument("--model-dir", default="model_files",
                        help="Directory for the generated model files (default: model_files)")
    parser.add_argument("--save-dir", default=None,
                        help="Save the three figures as PNG files in this directory")
    parser.add_argument("--no-show", action="store_true",
                        help="Do not open the figure windows")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Log Newton iterations and residuals")
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    try:
        settings = SimulationSettings(periods=args.periods, generated_dir=args.model_dir)
        results = run(settings=settings)
    except ValidationError as e:
        logger.error("Invalid settings: %s", e)
        return 1
    except NonConvergenceError as e:
        logger.error("Solve failed: %s", e)
        return 1

    logger.info("Deviations from the initial steady state:\n%s",
                results.deviations.head(settings.plot_years).to_string(float_format="{:.4f}".format))

    plot_all(results.deviations, years=settings.plot_years, save_dir=args.save_dir)
    if not args.no_show:
        plt.show()
    return 0


if __name__ == "__main__":
    sys.exit(main())
