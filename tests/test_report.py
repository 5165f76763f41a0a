"""Tests for post-processing, figures and the command-line run."""

from __future__ import annotations

import os

import matplotlib.pyplot as plt
import numpy as np
import pytest

from python_files.bk1993_main import main
from python_files.bk1993_report import (
    BASIS_POINT_VARIABLES,
    COMMODITY_VARIABLES,
    LABELS,
    PERCENT_VARIABLES,
    deviations,
    get_series,
    plot_all,
)


def test_get_series_looks_up_rows_by_name(results) -> None:
    idx = results.MODEL["endo_names"].index("c")
    np.testing.assert_array_equal(get_series(results.MODEL, results.endo_simul, "c"), results.endo_simul[idx])


def test_get_series_unknown_name(results) -> None:
    with pytest.raises(KeyError):
        get_series(results.MODEL, results.endo_simul, "consumption")


def test_deviations_start_at_zero(results) -> None:
    dev = results.deviations

    assert list(dev.columns) == ["y", "c", "iv", "gb", "n", "w", "r"]
    assert dev.index.name == "period"
    assert len(dev) == 201
    np.testing.assert_array_equal(dev.loc[0].to_numpy(), 0.0)


def test_government_purchases_rise_by_one_commodity_unit(results) -> None:
    np.testing.assert_allclose(results.deviations["gb"].iloc[1:], 1.0, rtol=1e-6)


def test_deviation_units(results) -> None:
    dev = results.deviations
    initial = results.initial_steady_state
    terminal = results.terminal_steady_state
    names = results.MODEL["endo_names"]

    def level(x, name):
        return x[names.index(name)]

    assert dev["y"].iloc[-1] == pytest.approx(
        (level(terminal, "y") - level(initial, "y")) / results.commodity_unit
    )
    assert dev["n"].iloc[-1] == pytest.approx(
        100 * (level(terminal, "n") / level(initial, "n") - 1)
    )
    assert dev["r"].iloc[-1] == pytest.approx(
        10000 * (level(terminal, "r") - level(initial, "r")), abs=1e-5
    )


def test_impact_responses(results) -> None:
    dev = results.deviations.loc[1]
    # on impact households work more and consume less, the real wage falls
    assert dev["n"] > 0
    assert dev["c"] < 0
    assert dev["w"] < 0
    assert dev["y"] > 0
    assert dev["r"] > 0


def test_deviations_with_custom_unit(results) -> None:
    dev = deviations(results.MODEL, results.endo_simul, results.initial_steady_state, 2 * results.commodity_unit)
    np.testing.assert_allclose(dev["gb"].iloc[1:], 0.5, rtol=1e-6)


def test_plot_all_draws_three_panels(results, tmp_path) -> None:
    figures = plot_all(results.deviations, years=22, save_dir=tmp_path)
    try:
        titles = {name: fig.axes[0].get_title() for name, fig in figures.items()}
        assert titles == {
            "commodity_market": "Commodity Market",
            "labor_market": "Labor Market",
            "financial_market": "Financial Market",
        }
        for name in figures:
            assert os.path.exists(tmp_path / f"{name}.png")
    finally:
        for fig in figures.values():
            plt.close(fig)


def test_main_runs_end_to_end(tmp_path) -> None:
    status = main([
        "--periods", "100",
        "--model-dir", str(tmp_path / "model_files"),
        "--save-dir", str(tmp_path / "figures"),
        "--no-show",
    ])
    plt.close("all")

    assert status == 0
    assert os.path.exists(tmp_path / "figures" / "financial_market.png")


def test_main_rejects_a_horizon_shorter_than_the_plot_window(tmp_path) -> None:
    status = main([
        "--periods", "10",
        "--model-dir", str(tmp_path / "model_files"),
        "--no-show",
    ])

    assert status == 1
    assert not (tmp_path / "model_files").exists()


PANELS = {
    "commodity_market": (COMMODITY_VARIABLES, (-1.0, 2.0)),
    "labor_market": (PERCENT_VARIABLES, (-1.5, 2.5)),
    "financial_market": (BASIS_POINT_VARIABLES, (-5.0, 30.0)),
}


@pytest.mark.parametrize("panel", sorted(PANELS))
def test_panel_axes_cover_the_first_22_years(results, panel) -> None:
    names, ylim = PANELS[panel]
    figures = plot_all(results.deviations, years=22)
    try:
        ax = figures[panel].axes[0]
        assert ax.get_ylim() == ylim
        assert ax.get_xlim() == (-0.5, 21.5)

        series = {line.get_label(): line for line in ax.get_lines() if line.get_label() in LABELS.values()}
        assert sorted(series) == sorted(LABELS[name] for name in names)
        assert len(ax.get_lines()) == len(names) + 1  # plus the zero line
        for line in series.values():
            assert len(line.get_xdata()) == 22
            np.testing.assert_array_equal(line.get_xdata(), np.arange(22))
    finally:
        for fig in figures.values():
            plt.close(fig)


@pytest.mark.parametrize("panel", sorted(PANELS))
def test_responses_stay_inside_the_panel_limits(results, panel) -> None:
    names, (low, high) = PANELS[panel]
    window = results.deviations.loc[:21, names]

    assert len(window) == 22
    assert window.min().min() > low
    assert window.max().max() < high
