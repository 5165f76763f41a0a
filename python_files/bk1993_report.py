# ================================================== #
# Post-processing: deviations of the simulated path  #
# from the initial steady state and the three panels #
# of Baxter & King (1993), Figure II.                #
# ================================================== #


import logging
import os

import numpy as np
import pandas as pd
import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)

# variables reported in commodity units, percent and basis points
COMMODITY_VARIABLES = ["y", "c", "iv", "gb"]
PERCENT_VARIABLES = ["n", "w"]
BASIS_POINT_VARIABLES = ["r"]

LABELS = {
    "y": "Output",
    "c": "Consumption",
    "iv": "Investment",
    "gb": "Government purchases",
    "n": "Employment",
    "w": "Real wage",
    "r": "Real interest rate",
}


def get_series(MODEL, endo_simul, name):
    """Time series of variable name from the simulation matrix."""
    try:
        idx = MODEL["endo_names"].index(name)
    except ValueError:
        raise KeyError(f"Unknown endogenous variable {name!r}") from None
    return endo_simul[idx, :]


def deviations(MODEL, endo_simul, initial, commodity_unit):
    """
    Deviations of the path from the initial steady state, indexed by period.

    Flows are level changes divided by commodity_unit, employment and the
    wage are percent changes, the interest rate is in basis points.
    """
    initial = pd.Series(np.asarray(initial, dtype=float), index=MODEL["endo_names"])
    columns = {}
    for name in COMMODITY_VARIABLES:
        columns[name] = (get_series(MODEL, endo_simul, name) - initial[name]) / commodity_unit
    for name in PERCENT_VARIABLES:
        columns[name] = 100 * (get_series(MODEL, endo_simul, name) - initial[name]) / initial[name]
    for name in BASIS_POINT_VARIABLES:
        columns[name] = 10000 * (get_series(MODEL, endo_simul, name) - initial[name])

    frame = pd.DataFrame(columns)
    frame.index.name = "period"
    return frame


def _panel(dev, names, title, ylabel, ylim, yticks, years):
    window = dev.loc[: years - 1]
    fig, ax = plt.subplots(figsize=(7, 4.5))
    markers = ["o", "s", "^", "d"]
    for name, marker in zip(names, markers):
        ax.plot(window.index, window[name], marker=marker, markersize=4,
                linestyle="-", linewidth=1, label=LABELS[name])
    ax.axhline(0, color="black", linewidth=0.5)
    ax.set_title(title)
    ax.set_xlabel("Years")
    ax.set_ylabel(ylabel)
    ax.set_xlim(-0.5, years - 0.5)
    ax.set_ylim(*ylim)
    ax.set_xticks(np.arange(0, years, 2))
    ax.set_yticks(yticks)
    ax.legend(loc="best", frameon=False)
    fig.tight_layout()
    return fig


def plot_commodity_market(dev, years=22):
    return _panel(dev, COMMODITY_VARIABLES, "Commodity Market", "Commodity units",
                  (-1.0, 2.0), np.arange(-1.0, 2.01, 0.5), years)


def plot_labor_market(dev, years=22):
    return _panel(dev, PERCENT_VARIABLES, "Labor Market", "Percent",
                  (-1.5, 2.5), np.arange(-1.5, 2.51, 0.5), years)


def plot_financial_market(dev, years=22):
    return _panel(dev, BASIS_POINT_VARIABLES, "Financial Market", "Basis points",
                  (-5.0, 30.0), np.arange(-5.0, 30.1, 5.0), years)


def plot_all(dev, years=22, save_dir=None):
    """Draw the three panels; save them as PNG files when save_dir is given."""
    figures = {
        "commodity_market": plot_commodity_market(dev, years),
        "labor_market": plot_labor_market(dev, years),
        "financial_market": plot_financial_market(dev, years),
    }
    if save_dir is not None:
        os.makedirs(save_dir, exist_ok=True)
        for name, fig in figures.items():
            path = os.path.join(save_dir, f"{name}.png")
            fig.savefig(path, dpi=150)
            logger.info("Saved %s", path)
    return figures
