"""Tests for the perfect-foresight transition path."""

from __future__ import annotations

import numpy as np
import pytest

from python_files.bk1993_newton import NonConvergenceError
from python_files.bk1993_perfect_foresight import (
    path_residuals,
    perfect_foresight_setup,
    perfect_foresight_solver,
    stacked_jacobian,
    stacked_residuals,
)

TOL = 1e-8


def test_simulation_shapes(results) -> None:
    assert results.endo_simul.shape == (18, 201)
    assert results.exo_simul.shape == (201, 1)


def test_exogenous_path_is_permanent_from_period_one(results) -> None:
    assert results.exo_simul[0, 0] == 0.0
    np.testing.assert_array_equal(results.exo_simul[1:, 0], results.commodity_unit)


def test_endpoints_are_pinned_to_steady_states(results) -> None:
    np.testing.assert_array_equal(results.endo_simul[:, 0], results.initial_steady_state)
    np.testing.assert_array_equal(results.endo_simul[:, -1], results.terminal_steady_state)


def test_equations_hold_at_every_period(results) -> None:
    params = results.calibration.param_vector
    resid = path_residuals(results.MODEL, results.endo_simul, results.exo_simul, params)
    assert resid.shape == (18, 199)
    assert np.max(np.abs(resid)) < TOL


def test_walras_check_is_zero_along_the_path(results) -> None:
    assert np.max(np.abs(results.series("check_walras"))) < TOL


def test_time_endowment_and_government_budget(results) -> None:
    np.testing.assert_allclose(results.series("l") + results.series("n"), 1.0, rtol=0, atol=1e-10)
    np.testing.assert_allclose(
        results.series("tau") * results.series("y"),
        results.series("gb") + results.series("tr"),
        rtol=0,
        atol=TOL,
    )


def test_path_converges_to_terminal_steady_state(results) -> None:
    np.testing.assert_allclose(
        results.endo_simul[:, 150], results.terminal_steady_state, rtol=1e-6, atol=1e-9
    )


def test_capital_is_predetermined_on_impact(results) -> None:
    k = results.series("k")
    y = results.series("y")
    n = results.series("n")
    params = results.calibration.params
    # output in period 1 uses the period-0 capital stock
    expected = params["A"] * k[0] ** params["THETA_K"] * n[1] ** params["THETA_N"]
    assert y[1] == pytest.approx(expected, rel=1e-8)
    assert k[0] == results.initial_steady_state[results.MODEL["endo_names"].index("k")]


def test_setup_uses_terminal_state_as_guess(model, calibration) -> None:
    initial = calibration.steady_state_vector
    terminal = initial * 1.01
    endo_simul, exo_simul = perfect_foresight_setup(model, initial, terminal, [0.0], [0.5], periods=4)

    assert endo_simul.shape == (18, 5)
    np.testing.assert_array_equal(endo_simul[:, 0], initial)
    for t in range(1, 5):
        np.testing.assert_array_equal(endo_simul[:, t], terminal)
    np.testing.assert_array_equal(exo_simul[:, 0], [0.0, 0.5, 0.5, 0.5, 0.5])


def test_stacked_jacobian_matches_finite_differences(model, calibration) -> None:
    params = calibration.param_vector
    initial = calibration.steady_state_vector
    rng = np.random.default_rng(2)
    terminal = initial * (1 + 0.01 * rng.uniform(-1, 1, initial.size))
    endo_simul, exo_simul = perfect_foresight_setup(model, initial, terminal, [0.0], [0.003], periods=4)
    n, T = 18, 4

    def resid(z):
        path = endo_simul.copy()
        path[:, 1:T] = z.reshape(T - 1, n).T
        return stacked_residuals(model, path, exo_simul, params)

    z0 = endo_simul[:, 1:T].T.ravel()
    jac = stacked_jacobian(model, endo_simul, exo_simul, params).toarray()
    numeric = np.empty_like(jac)
    for i in range(z0.size):
        dz = np.zeros_like(z0)
        dz[i] = 1e-6 * max(abs(z0[i]), 1e-2)
        numeric[:, i] = (resid(z0 + dz) - resid(z0 - dz)) / (2 * dz[i])

    assert jac.shape == (n * (T - 1), n * (T - 1))
    np.testing.assert_allclose(jac, numeric, rtol=1e-4, atol=1e-6)


def test_short_horizon_solve(model, calibration) -> None:
    params = calibration.param_vector
    initial = calibration.steady_state_vector
    endo_simul, exo_simul = perfect_foresight_setup(model, initial, initial, [0.0], [0.0], periods=10)

    solved = perfect_foresight_solver(model, endo_simul, exo_simul, params)

    np.testing.assert_allclose(solved, endo_simul, rtol=1e-12)


def test_solver_does_not_modify_its_input(results, model) -> None:
    params = results.calibration.param_vector
    endo_simul, exo_simul = perfect_foresight_setup(
        model, results.initial_steady_state, results.terminal_steady_state,
        [0.0], [results.commodity_unit], periods=30,
    )
    guess = endo_simul.copy()

    solved = perfect_foresight_solver(model, endo_simul, exo_simul, params)

    np.testing.assert_array_equal(endo_simul, guess)
    assert not np.allclose(solved[:, 1:-1], guess[:, 1:-1])


def test_solver_raises_without_iterations(results, model) -> None:
    params = results.calibration.param_vector
    endo_simul, exo_simul = perfect_foresight_setup(
        model, results.initial_steady_state, results.terminal_steady_state,
        [0.0], [results.commodity_unit], periods=20,
    )
    with pytest.raises(NonConvergenceError):
        perfect_foresight_solver(model, endo_simul, exo_simul, params, max_iterations=0)


def test_solver_rejects_too_short_horizon(model, calibration) -> None:
    initial = calibration.steady_state_vector
    endo_simul, exo_simul = perfect_foresight_setup(model, initial, initial, [0.0], [0.0], periods=1)
    with pytest.raises(ValueError):
        perfect_foresight_solver(model, endo_simul, exo_simul, calibration.param_vector)
