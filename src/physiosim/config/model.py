"""Configuration data models."""

from __future__ import annotations
from typing import Dict, Union
from pathlib import Path
from pydantic import BaseModel, Field, field_validator

from ..domain.conditions import SignalAdjustment
from ..domain.subject import Subject
from .constants import (
    DEFAULT_DAYS,
    DEFAULT_GRID_STEP_MIN,
    DEFAULT_MAX_SUBSTEP_MIN,
    DEFAULT_MM_ATOL,
    DEFAULT_MM_METHOD,
    DEFAULT_MM_RTOL,
    DEFAULT_TOP_N,
    DEFAULT_WARMUP_MIN,
    TAU_FLOOR_MIN,
)


class EngineConfig(BaseModel):
    """Integrator and grid configuration."""

    grid_step_min: float = Field(DEFAULT_GRID_STEP_MIN, gt=0, le=60, description="Grid resolution in minutes")
    days: float = Field(DEFAULT_DAYS, gt=0, le=14, description="Simulated days")
    warmup_min: float = Field(DEFAULT_WARMUP_MIN, ge=0, description="Baseline settling time before day 0")
    max_substep_min: float = Field(DEFAULT_MAX_SUBSTEP_MIN, gt=0, description="Largest integrator sub-step")
    tau_floor_min: float = Field(TAU_FLOOR_MIN, gt=0, description="Smallest time constant used")
    repeat_daily: bool = Field(False, description="Repeat timeline items every simulated day")
    mm_method: str = DEFAULT_MM_METHOD
    mm_rtol: float = Field(DEFAULT_MM_RTOL, gt=0)
    mm_atol: float = Field(DEFAULT_MM_ATOL, gt=0)

    @field_validator("mm_method")
    @classmethod
    def validate_method(cls, v: str) -> str:
        valid_methods = {"RK45", "BDF", "Radau", "DOP853", "LSODA"}
        if v not in valid_methods:
            raise ValueError(f"mm_method must be one of {valid_methods}")
        return v


class DebugToggles(BaseModel):
    """Switches that zero out one class of contributions each."""

    enable_baselines: bool = True
    enable_interventions: bool = True
    enable_conditions: bool = True
    enable_couplings: bool = True
    enable_auxiliary: bool = True
    enable_receptors: bool = True
    enable_transporters: bool = True
    enable_enzymes: bool = True


class ConditionsConfig(BaseModel):
    """Condition profiles and explicit physiological offsets."""

    active: Dict[str, float] = Field(default_factory=dict, description="Library condition key to intensity")
    signals: Dict[str, SignalAdjustment] = Field(default_factory=dict)
    receptor_density: Dict[str, float] = Field(default_factory=dict)
    receptor_sensitivity: Dict[str, float] = Field(default_factory=dict)
    transporter_activity: Dict[str, float] = Field(default_factory=dict)
    enzyme_activity: Dict[str, float] = Field(default_factory=dict)

    @field_validator("active")
    @classmethod
    def validate_intensity(cls, v: Dict[str, float]) -> Dict[str, float]:
        for key, intensity in v.items():
            if not 0.0 <= intensity <= 1.0:
                raise ValueError(f"Intensity of condition '{key}' must be within [0, 1]")
        return v


class ProjectionConfig(BaseModel):
    """Derived metric projection settings."""

    top_n: int = Field(DEFAULT_TOP_N, ge=1, le=20, description="Contributors listed by explain")
    meters: Dict[str, Dict[str, float]] = Field(
        default_factory=dict,
        description="Meter weight maps replacing or extending the defaults",
    )


class AppConfig(BaseModel):
    """Complete application configuration."""

    engine: EngineConfig = Field(default_factory=EngineConfig)
    debug: DebugToggles = Field(default_factory=DebugToggles)
    subject: Subject = Field(default_factory=Subject)
    conditions: ConditionsConfig = Field(default_factory=ConditionsConfig)
    projections: ProjectionConfig = Field(default_factory=ProjectionConfig)

    def model_dump_toml(self) -> str:
        """Export configuration as TOML string."""
        import tomli_w
        return tomli_w.dumps(self.model_dump(exclude={"subject": {"bmi"}}))

    @classmethod
    def from_toml_file(cls, path: Union[Path, str]) -> "AppConfig":
        """Load configuration from TOML file."""
        try:
            import tomllib
        except ImportError:
            import tomli as tomllib

        with open(path, "rb") as f:
            data = tomllib.load(f)
        return cls.model_validate(data)
