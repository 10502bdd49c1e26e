"""Pydantic schemas for molecule, PK and PD parameters."""

from __future__ import annotations
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

PKModelName = Literal["one-compartment", "michaelis-menten", "activity-dependent"]
Mechanism = Literal["agonist", "antagonist", "PAM", "NAM"]
PotencyUnit = Literal["mg/L", "uM", "nM"]
VolumeKind = Literal["weight", "tbw", "lbm", "sex-adjusted", "fixed"]

DEFAULT_VOLUME_L = 50.0


class MoleculeProfile(BaseModel):
    """Identity of the administered substance."""

    name: str = Field(..., description="Molecule name")
    molar_mass: Optional[float] = Field(None, gt=0, description="Molar mass in g/mol")
    log_p: Optional[float] = Field(None, description="Octanol/water partition coefficient")


class VolumeSpec(BaseModel):
    """Volume of distribution rule.

    ``weight`` and ``lbm`` scale ``base_l_kg`` by body weight or lean body
    mass, ``tbw`` takes a ``fraction`` of total body water, ``sex-adjusted``
    uses ``male_l_kg``/``female_l_kg`` and ``fixed`` uses ``liters``.
    """

    kind: VolumeKind = Field("weight", description="Volume rule")
    base_l_kg: Optional[float] = Field(None, gt=0, description="Liters per kg")
    fraction: Optional[float] = Field(None, gt=0, le=1.5, description="Fraction of total body water")
    male_l_kg: Optional[float] = Field(None, gt=0, description="Liters per kg for males")
    female_l_kg: Optional[float] = Field(None, gt=0, description="Liters per kg for females")
    liters: Optional[float] = Field(None, gt=0, description="Fixed volume in liters")

    @model_validator(mode="after")
    def check_fields(self) -> "VolumeSpec":
        required = {
            "weight": ("base_l_kg",),
            "lbm": ("base_l_kg",),
            "tbw": ("fraction",),
            "sex-adjusted": ("male_l_kg", "female_l_kg"),
            "fixed": ("liters",),
        }[self.kind]
        missing = [name for name in required if getattr(self, name) is None]
        if missing:
            raise ValueError(f"Volume rule '{self.kind}' requires {', '.join(missing)}")
        return self


class PKModel(BaseModel):
    """Pharmacokinetic model of one agent."""

    model: PKModelName = Field(..., description="PK model family")
    bioavailability: float = Field(1.0, gt=0, le=1, description="Absorbed fraction")
    half_life_min: Optional[float] = Field(None, gt=0, description="Elimination half-life in minutes")
    absorption_rate: Optional[float] = Field(None, gt=0, description="Absorption rate constant (1/min)")
    time_to_peak_min: Optional[float] = Field(None, gt=0, description="Time of peak concentration")
    lag_min: Optional[float] = Field(None, ge=0, description="Delay before absorption starts")
    absorption_half_life_min: float = Field(15.0, gt=0, description="Gut absorption half-life (michaelis-menten)")
    vmax: Optional[float] = Field(None, gt=0, description="Maximal elimination rate (mg/L/min)")
    km: Optional[float] = Field(None, gt=0, description="Michaelis constant (mg/L)")
    dose_mg: Optional[float] = Field(None, ge=0, description="Fixed dose overriding item parameters")
    on_tau_min: float = Field(5.0, gt=0, description="Activation time constant (activity-dependent)")
    off_tau_min: float = Field(5.0, gt=0, description="Deactivation time constant (activity-dependent)")
    volume: Optional[VolumeSpec] = Field(None, description="Volume of distribution rule")

    @model_validator(mode="after")
    def check_model_fields(self) -> "PKModel":
        if self.model == "one-compartment" and self.half_life_min is None:
            raise ValueError("one-compartment PK requires half_life_min")
        if self.model == "michaelis-menten" and (self.vmax is None or self.km is None):
            raise ValueError("michaelis-menten PK requires vmax and km")
        return self

    @property
    def is_activity(self) -> bool:
        return self.model == "activity-dependent"


class PDEffect(BaseModel):
    """One pharmacodynamic effect on a target."""

    target: str = Field(..., description="Receptor, transporter, enzyme, pool or signal key")
    mechanism: Mechanism = Field("agonist", description="Mechanism of action")
    ki: Optional[float] = Field(None, gt=0, description="Binding affinity")
    ec50: Optional[float] = Field(None, gt=0, description="Half-maximal effective concentration")
    potency_unit: PotencyUnit = Field("mg/L", description="Unit of ki/ec50")
    effect_gain: float = Field(0.0, description="Maximum steady-state shift in the target's unit")
    gain_per_dose: Optional[float] = Field(None, description="Extra gain per mg of dose")
    n: float = Field(1.2, gt=0, le=10, description="Hill exponent")
    tau: Optional[float] = Field(None, gt=0, description="Onset time constant in minutes")
    cooperativity: Optional[float] = Field(None, ge=1.5, le=5.0, description="PAM/NAM cooperativity factor")
    unit: Optional[str] = Field(None, description="Declared unit of effect_gain")

    @property
    def potency(self) -> Optional[float]:
        return self.ki if self.ki is not None else self.ec50

    @property
    def is_modulator(self) -> bool:
        return self.mechanism in ("PAM", "NAM")

    @model_validator(mode="after")
    def check_cooperativity(self) -> "PDEffect":
        if self.cooperativity is not None and not self.is_modulator:
            raise ValueError("cooperativity only applies to PAM/NAM effects")
        return self


class Pharmacology(BaseModel):
    """PK model plus PD effects of one agent."""

    molecule: Optional[MoleculeProfile] = None
    pk: PKModel
    pd: List[PDEffect] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_potency(self) -> "Pharmacology":
        if self.pk.is_activity:
            return self
        for effect in self.pd:
            if effect.potency is None:
                raise ValueError(f"PD effect on '{effect.target}' needs ki or ec50")
            if effect.potency_unit != "mg/L" and (self.molecule is None or self.molecule.molar_mass is None):
                raise ValueError(
                    f"PD effect on '{effect.target}' uses {effect.potency_unit} but the molecule has no molar_mass"
                )
        return self
