"""Subject profile and derived physiology."""

from __future__ import annotations
from dataclasses import dataclass
import math

from pydantic import BaseModel, Field, computed_field, field_validator, model_validator

# Reference adult: 30 y, 70 kg, 175 cm male
REFERENCE_BMR_KCAL = 1660.0
REFERENCE_TBW_L = 42.0
REFERENCE_BSA_M2 = 1.85


class Subject(BaseModel):
    """Subject demographics used by setpoints and volume-of-distribution rules."""

    age: float = Field(30.0, ge=1, le=120, description="Age in years")
    weight_kg: float = Field(70.0, ge=20, le=300, description="Body weight in kg")
    height_cm: float = Field(175.0, ge=100, le=250, description="Height in cm")
    sex: str = Field("male", description="Biological sex (male/female)")

    cycle_length_days: int = Field(28, ge=20, le=45, description="Menstrual cycle length")
    luteal_phase_days: int = Field(14, ge=8, le=18, description="Luteal phase length")
    cycle_day: int = Field(0, ge=0, description="Current day of cycle")

    @field_validator("sex")
    @classmethod
    def normalize_sex(cls, v: str) -> str:
        """Normalize sex to male/female."""
        value = {"m": "male", "f": "female"}.get(v.strip().lower(), v.strip().lower())
        if value not in ("male", "female"):
            raise ValueError("sex must be 'male' or 'female'")
        return value

    @model_validator(mode="after")
    def check_cycle(self) -> "Subject":
        if self.cycle_day >= self.cycle_length_days:
            raise ValueError("cycle_day must be smaller than cycle_length_days")
        return self

    @property
    def is_male(self) -> bool:
        return self.sex == "male"

    @computed_field
    @property
    def bmi(self) -> float:
        """Body mass index in kg/m²."""
        height_m = self.height_cm / 100
        return self.weight_kg / (height_m ** 2)


@dataclass(frozen=True)
class Physiology:
    """Quantities derived from a subject profile."""

    bmr: float
    """Basal metabolic rate (kcal/day, Mifflin-St Jeor)"""

    tbw: float
    """Total body water (L, Watson)"""

    lean_body_mass: float
    """Lean body mass (kg, Boer)"""

    bmi: float
    bsa: float
    """Body surface area (m², Mosteller)"""

    metabolic_capacity: float
    """BMR relative to the reference adult"""

    drug_clearance: float
    """TBW relative to the reference adult"""

    liver_blood_flow: float
    """L/min scaled by BSA"""

    estimated_gfr: float
    """mL/min (Cockcroft-Gault, creatinine 1.0)"""


def derive_physiology(subject: Subject) -> Physiology:
    """Derive body composition and clearance scalars from a subject."""
    w, h, age = subject.weight_kg, subject.height_cm, subject.age

    if subject.is_male:
        bmr = 10 * w + 6.25 * h - 5 * age + 5
        tbw = 2.447 - 0.09156 * age + 0.1074 * h + 0.3362 * w
        lbm = 0.407 * w + 0.267 * h - 19.2
    else:
        bmr = 10 * w + 6.25 * h - 5 * age - 161
        tbw = -2.097 + 0.1069 * h + 0.2466 * w
        lbm = 0.252 * w + 0.473 * h - 48.3

    bsa = math.sqrt(h * w / 3600)
    gfr = (140 - age) * w / 72.0
    if not subject.is_male:
        gfr *= 0.85

    return Physiology(
        bmr=bmr,
        tbw=tbw,
        lean_body_mass=lbm,
        bmi=subject.bmi,
        bsa=bsa,
        metabolic_capacity=bmr / REFERENCE_BMR_KCAL,
        drug_clearance=tbw / REFERENCE_TBW_L,
        liver_blood_flow=1.5 * bsa / REFERENCE_BSA_M2,
        estimated_gfr=gfr,
    )


@dataclass(frozen=True)
class MenstrualHormones:
    """Normalised (0-1) reproductive hormone levels for one cycle day."""

    estrogen: float
    progesterone: float
    lh: float
    fsh: float


def _gaussian(x: float, mu: float, sigma: float) -> float:
    return math.exp(-((x - mu) ** 2) / (2 * sigma ** 2))


def _unit(value: float) -> float:
    return min(1.0, max(0.0, value))


def menstrual_hormones(day: float, cycle_length: int = 28) -> MenstrualHormones:
    """Hormone levels for ``day`` mapped onto a standard 28-day cycle."""
    d = (day / cycle_length) * 28

    estrogen = 0.1 + 0.8 * _gaussian(d, 12.5, 3) + 0.4 * 0.5 * _gaussian(d, 21, 5)
    progesterone = 0.05 + 0.9 * _gaussian(d, 22, 6)
    lh = 0.1 + 0.9 * _gaussian(d, 13.5, 1.2)
    fsh = 0.1 + 0.3 * _gaussian(d, 2, 4) + 0.5 * _gaussian(d, 13.5, 1.5)

    return MenstrualHormones(
        estrogen=_unit(estrogen),
        progesterone=_unit(progesterone),
        lh=_unit(lh),
        fsh=_unit(fsh),
    )
