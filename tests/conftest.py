"""Shared fixtures: the model is generated once per session into a temporary directory."""

from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import pytest

from python_files.bk1993_calibration import calibrate
from python_files.bk1993_config import SimulationSettings
from python_files.bk1993_main import run
from python_files.bk1993_preprocessing import preprocess


@pytest.fixture(scope="session")
def model_dir(tmp_path_factory):
    return tmp_path_factory.mktemp("model_files")


@pytest.fixture(scope="session")
def model(model_dir):
    return preprocess(model_dir)


@pytest.fixture(scope="session")
def calibration():
    return calibrate()


@pytest.fixture(scope="session")
def results(tmp_path_factory):
    settings = SimulationSettings(generated_dir=str(tmp_path_factory.mktemp("run_model_files")))
    return run(settings=settings)
