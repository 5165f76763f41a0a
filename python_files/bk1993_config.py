"""Calibration targets and run settings. Field annotations are what pydantic validates against."""

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CalibrationTargets(BaseModel):
    """Annual calibration targets of Baxter & King (1993), Section III."""

    model_config = ConfigDict(frozen=True)

    A: float = Field(default=1.0, gt=0, description="Total factor productivity (normalization)")
    THETA_K: float = Field(default=0.42, gt=0, lt=1, description="Capital share")
    DELTA_K: float = Field(default=0.10, ge=0, le=1, description="Depreciation rate")
    GAMMAX: float = Field(default=1.016, gt=0, description="Gross growth rate of labor-augmenting technology")
    R: float = Field(default=0.065, gt=-1, description="Steady-state real interest rate")
    N: float = Field(default=0.2, gt=0, lt=1, description="Steady-state share of time spent working")
    sG: float = Field(default=0.20, ge=0, lt=1, description="Government purchases share of output")
    TAU_BAR: float = Field(default=0.20, ge=0, lt=1, description="Income tax rate")

    @property
    def THETA_N(self):
        return 1.0 - self.THETA_K

    @property
    def BETA(self):
        return self.GAMMAX / (1.0 + self.R)

    @model_validator(mode="after")
    def _validate_discounting(self):
        if self.BETA >= 1.0:
            raise ValueError(
                f"R={self.R} and GAMMAX={self.GAMMAX} imply BETA={self.BETA:.4f} >= 1"
            )
        return self


class SimulationSettings(BaseModel):
    """Settings of the steady-state and perfect-foresight solves and of the plots."""

    model_config = ConfigDict(frozen=True)

    periods: int = Field(default=200, ge=2, description="Perfect-foresight horizon")
    shock_size: float = Field(
        default=0.01, description="Permanent increase in government purchases, as a fraction of initial output"
    )
    plot_years: int = Field(default=22, ge=1, description="Years shown in the figures")
    tolerance: float = Field(default=1e-10, gt=0, description="Max-norm tolerance on equation residuals")
    max_iterations: int = Field(default=50, ge=0, description="Newton iterations per solve")
    generated_dir: str = Field(default="model_files", description="Directory of the generated model files")

    @model_validator(mode="after")
    def _validate_plot_window(self):
        if self.plot_years > self.periods + 1:
            raise ValueError(
                f"plot_years={self.plot_years} exceeds the simulated periods 0..{self.periods}"
            )
        return self
