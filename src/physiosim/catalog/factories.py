"""Pharmacology factories for parameterised interventions.

A factory turns the clamped parameters of a timeline item (and the subject)
into pharmacology blocks. Catalog entries refer to factories by name::

    [entries.food]
    factory = "meal"
"""

from __future__ import annotations
from typing import Any, Callable, Dict, List, Mapping

from ..contracts.errors import ConfigurationError
from ..domain.subject import Subject
from ..pharmacology.models import Pharmacology

PharmacologyFactory = Callable[[Mapping[str, Any], Subject], List[Pharmacology]]

_FACTORIES: Dict[str, PharmacologyFactory] = {}

# Gastric emptying
GASTRIC_BASE_MIN = 15.0
GASTRIC_FAT_PER_G = 0.9
GASTRIC_FIBER_SOL_PER_G = 2.0
GASTRIC_FIBER_INSOL_PER_G = 0.5
GASTRIC_WATER_PER_ML = -0.01
GASTRIC_MIN_DELAY = 5.0
GASTRIC_MAX_DELAY = 150.0

TEMPERATURE_MULTIPLIERS = {"cold": 1.1, "room": 1.0, "warm": 0.95, "hot": 0.85}
STARCH_GLUCOSE_YIELD = 0.9

ETHANOL_G_PER_UNIT = 8.0
ETHANOL_MOLAR_MASS = 46.07


def register_factory(name: str) -> Callable[[PharmacologyFactory], PharmacologyFactory]:
    """Decorator registering a pharmacology factory under ``name``."""
    def _register(func: PharmacologyFactory) -> PharmacologyFactory:
        if name in _FACTORIES:
            raise ConfigurationError(f"Factory '{name}' is already registered")
        _FACTORIES[name] = func
        return func
    return _register


def get_factory(name: str) -> PharmacologyFactory:
    """Look up a registered factory.

    Raises:
        ConfigurationError: If no factory has that name
    """
    factory = _FACTORIES.get(name)
    if factory is None:
        raise ConfigurationError(
            f"Unknown pharmacology factory: {name}",
            {"factory": name, "available": sorted(_FACTORIES)},
        )
    return factory


def list_factories() -> List[str]:
    return sorted(_FACTORIES)


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def _number(params: Mapping[str, Any], key: str, default: float = 0.0) -> float:
    value = params.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return float(value)


def _activity(name: str, effects: List[Dict[str, Any]], on_tau: float = 5.0, off_tau: float = 5.0) -> Pharmacology:
    return Pharmacology.model_validate({
        "molecule": {"name": name},
        "pk": {"model": "activity-dependent", "on_tau_min": on_tau, "off_tau_min": off_tau},
        "pd": effects,
    })


def gastric_delay(fat: float, fiber_sol: float, fiber_insol: float, water_ml: float) -> float:
    """Minutes before nutrients start to appear in blood."""
    delay = (
        GASTRIC_BASE_MIN
        + GASTRIC_FAT_PER_G * fat
        + GASTRIC_FIBER_SOL_PER_G * fiber_sol
        + GASTRIC_FIBER_INSOL_PER_G * fiber_insol
        + GASTRIC_WATER_PER_ML * water_ml
    )
    return _clamp(delay, GASTRIC_MIN_DELAY, GASTRIC_MAX_DELAY)


def glycemic_factor(glycemic_index: float, temperature: str, water_ml: float) -> float:
    """Effective absorption speed of starch, 0.25 (slow) to 1 (refined)."""
    water_boost = 1.0 + water_ml / (water_ml + 400.0) * 0.3
    multiplier = TEMPERATURE_MULTIPLIERS.get(temperature, 1.0)
    return _clamp(glycemic_index * multiplier * water_boost / 100.0, 0.25, 1.0)


@register_factory("meal")
def meal(params: Mapping[str, Any], subject: Subject) -> List[Pharmacology]:
    """Glucose, lipid, protein and fiber agents of a mixed meal.

    Fat and soluble fiber delay gastric emptying and blunt glucose
    appearance; water speeds it up; the glycemic index, meal temperature
    and water set how quickly starch is absorbed.
    """
    sugar = _number(params, "carbSugar")
    starch = _number(params, "carbStarch")
    protein = _number(params, "protein")
    fat = _number(params, "fat")
    fiber_sol = _number(params, "fiberSol")
    fiber_insol = _number(params, "fiberInsol")
    water = _number(params, "waterMl")
    gi = _number(params, "glycemicIndex", 60.0)
    temperature = str(params.get("temperature", "room"))

    lag = gastric_delay(fat, fiber_sol, fiber_insol, water)
    gi_factor = glycemic_factor(gi, temperature, water)
    blunt = _clamp(1.0 - 0.02 * fiber_sol - 0.004 * fat, 0.6, 1.0)

    agents: List[Pharmacology] = []

    glucose_eq = sugar + STARCH_GLUCOSE_YIELD * starch
    if glucose_eq > 0:
        sugar_share = sugar / (sugar + starch)
        tmax = sugar_share * 30.0 + (1.0 - sugar_share) * 45.0 / gi_factor
        agents.append(Pharmacology.model_validate({
            "molecule": {"name": "Glucose", "molar_mass": 180.16},
            "pk": {
                "model": "one-compartment",
                "bioavailability": blunt,
                "half_life_min": 60.0,
                "time_to_peak_min": tmax,
                "lag_min": lag,
                "dose_mg": glucose_eq * 1000.0,
                "volume": {"kind": "weight", "base_l_kg": 0.2},
            },
            "pd": [
                {"target": "glucose", "ec50": 5000.0, "n": 1.0, "effect_gain": 150.0, "unit": "mg/dL"},
                {"target": "glp1", "ec50": 4000.0, "effect_gain": 10.0, "tau": 20.0},
                {"target": "ghrelin", "mechanism": "antagonist", "ec50": 3000.0, "effect_gain": 150.0, "tau": 45.0},
                {"target": "serotoninPrecursor", "ec50": 6000.0, "effect_gain": 0.15, "tau": 60.0},
                {"target": "dopamine", "ec50": 3000.0, "effect_gain": min(10.0, 0.1 * glucose_eq), "tau": 20.0},
            ],
        }))

    if fat > 0:
        agents.append(Pharmacology.model_validate({
            "molecule": {"name": "Lipids", "molar_mass": 282.0},
            "pk": {
                "model": "one-compartment",
                "half_life_min": 120.0,
                "time_to_peak_min": 180.0,
                "lag_min": lag,
                "dose_mg": fat * 1000.0,
                "volume": {"kind": "weight", "base_l_kg": 0.3},
            },
            "pd": [
                {"target": "ghrelin", "mechanism": "antagonist", "ec50": 500.0, "effect_gain": 3.0 * fat, "tau": 60.0},
                {"target": "glp1", "ec50": 500.0, "effect_gain": 0.2 * fat, "tau": 90.0},
                {"target": "vagal", "ec50": 500.0, "effect_gain": 0.15, "tau": 30.0},
                {"target": "inflammation", "ec50": 1000.0, "effect_gain": 0.02 * fat, "tau": 120.0},
            ],
        }))

    if protein > 0:
        agents.append(Pharmacology.model_validate({
            "molecule": {"name": "Amino Acids", "molar_mass": 110.0},
            "pk": {
                "model": "one-compartment",
                "half_life_min": 60.0,
                "time_to_peak_min": 90.0,
                "lag_min": lag,
                "dose_mg": protein * 1000.0,
                "volume": {"kind": "weight", "base_l_kg": 0.5},
            },
            "pd": [
                {"target": "mtor", "ec50": 500.0, "effect_gain": min(2.0, 0.05 * protein), "tau": 90.0},
                {"target": "insulin", "ec50": 500.0, "effect_gain": 0.2 * protein, "tau": 45.0},
                {"target": "glucagon", "ec50": 500.0, "effect_gain": 0.5 * protein, "tau": 30.0},
                {"target": "ghrelin", "mechanism": "antagonist", "ec50": 500.0, "effect_gain": 2.0 * protein, "tau": 60.0},
            ],
        }))

    fiber = fiber_sol + fiber_insol
    if fiber > 0:
        agents.append(Pharmacology.model_validate({
            "molecule": {"name": "Fermentable Fiber"},
            "pk": {
                "model": "one-compartment",
                "half_life_min": 240.0,
                "time_to_peak_min": 240.0,
                "lag_min": lag,
                "dose_mg": fiber * 1000.0,
                "volume": {"kind": "weight", "base_l_kg": 0.5},
            },
            "pd": [
                {"target": "glp1", "ec50": 100.0, "effect_gain": 0.3 * fiber, "tau": 60.0},
                {"target": "inflammation", "mechanism": "antagonist", "ec50": 100.0, "effect_gain": 0.02 * fiber, "tau": 240.0},
                {"target": "vagal", "ec50": 100.0, "effect_gain": 0.1, "tau": 60.0},
            ],
        }))

    return agents


def _exercise(name: str, intensity: float, effects: List[Dict[str, Any]]) -> List[Pharmacology]:
    scaled = [{**effect, "effect_gain": effect["effect_gain"] * intensity} for effect in effects]
    return [_activity(name, scaled, on_tau=5.0, off_tau=15.0)]


@register_factory("exercise_cardio")
def exercise_cardio(params: Mapping[str, Any], subject: Subject) -> List[Pharmacology]:
    """Steady aerobic work: sympathetic drive plus metabolic load."""
    return _exercise("Cardio", _number(params, "intensity", 1.0), [
        {"target": "Beta_Adrenergic", "effect_gain": 80.0, "tau": 5.0},
        {"target": "norepi", "effect_gain": 200.0, "tau": 5.0},
        {"target": "adrenaline", "effect_gain": 150.0, "tau": 2.0},
        {"target": "cortisol", "effect_gain": 8.0, "tau": 15.0},
        {"target": "dopamine", "effect_gain": 4.0, "tau": 10.0},
        {"target": "serotonin", "effect_gain": 1.5, "tau": 15.0},
        {"target": "endocannabinoid", "effect_gain": 3.0, "tau": 30.0},
        {"target": "growthHormone", "effect_gain": 4.0, "tau": 30.0},
        {"target": "testosterone", "effect_gain": 2.0, "tau": 60.0},
        {"target": "bdnf", "effect_gain": 6.0, "tau": 30.0},
        {"target": "ampk", "effect_gain": 1.0, "tau": 10.0},
        {"target": "glutamate", "effect_gain": 0.5, "tau": 10.0},
        {"target": "glucose", "mechanism": "antagonist", "effect_gain": 15.0, "tau": 5.0},
    ])


@register_factory("exercise_resistance")
def exercise_resistance(params: Mapping[str, Any], subject: Subject) -> List[Pharmacology]:
    """Strength work: sympathetic drive plus mechanical load."""
    return _exercise("Resistance", _number(params, "intensity", 1.0), [
        {"target": "Beta_Adrenergic", "effect_gain": 120.0, "tau": 5.0},
        {"target": "norepi", "effect_gain": 250.0, "tau": 5.0},
        {"target": "adrenaline", "effect_gain": 180.0, "tau": 2.0},
        {"target": "cortisol", "effect_gain": 6.0, "tau": 15.0},
        {"target": "dopamine", "effect_gain": 5.0, "tau": 10.0},
        {"target": "serotonin", "effect_gain": 0.8, "tau": 15.0},
        {"target": "endocannabinoid", "effect_gain": 1.5, "tau": 30.0},
        {"target": "growthHormone", "effect_gain": 12.0, "tau": 30.0},
        {"target": "testosterone", "effect_gain": 8.0, "tau": 60.0},
        {"target": "bdnf", "effect_gain": 3.0, "tau": 30.0},
        {"target": "mtor", "effect_gain": 1.5, "tau": 120.0},
        {"target": "glutamate", "effect_gain": 0.6, "tau": 10.0},
        {"target": "inflammation", "effect_gain": 0.5, "tau": 240.0},
    ])


@register_factory("exercise_hiit")
def exercise_hiit(params: Mapping[str, Any], subject: Subject) -> List[Pharmacology]:
    """Interval work: the strongest sympathetic and metabolic drive."""
    return _exercise("HIIT", _number(params, "intensity", 1.0), [
        {"target": "Beta_Adrenergic", "effect_gain": 150.0, "tau": 5.0},
        {"target": "norepi", "effect_gain": 400.0, "tau": 5.0},
        {"target": "adrenaline", "effect_gain": 350.0, "tau": 2.0},
        {"target": "cortisol", "effect_gain": 12.0, "tau": 15.0},
        {"target": "dopamine", "effect_gain": 6.0, "tau": 10.0},
        {"target": "serotonin", "effect_gain": 1.0, "tau": 15.0},
        {"target": "endocannabinoid", "effect_gain": 2.0, "tau": 30.0},
        {"target": "growthHormone", "effect_gain": 10.0, "tau": 30.0},
        {"target": "testosterone", "effect_gain": 5.0, "tau": 60.0},
        {"target": "bdnf", "effect_gain": 8.0, "tau": 30.0},
        {"target": "ampk", "effect_gain": 2.5, "tau": 10.0},
        {"target": "glutamate", "effect_gain": 1.2, "tau": 10.0},
        {"target": "glucose", "mechanism": "antagonist", "effect_gain": 25.0, "tau": 5.0},
    ])


@register_factory("nap")
def nap(params: Mapping[str, Any], subject: Subject) -> List[Pharmacology]:
    """Short sleep whose depth scales with the ``quality`` parameter."""
    quality = _number(params, "quality", 1.0)
    effects = [
        {"target": "gaba", "effect_gain": 150.0, "tau": 15.0},
        {"target": "melatonin", "effect_gain": 20.0, "tau": 15.0},
        {"target": "histamine", "mechanism": "antagonist", "effect_gain": 7.5, "tau": 10.0},
        {"target": "orexin", "mechanism": "antagonist", "effect_gain": 15.0, "tau": 10.0},
        {"target": "adenosinePressure", "mechanism": "antagonist", "effect_gain": 0.04, "tau": 60.0},
        {"target": "norepi", "mechanism": "antagonist", "effect_gain": 62.5, "tau": 10.0},
    ]
    return [_activity("Nap", [{**e, "effect_gain": e["effect_gain"] * quality} for e in effects], 10.0, 10.0)]


@register_factory("alcohol")
def alcohol(params: Mapping[str, Any], subject: Subject) -> List[Pharmacology]:
    """Ethanol with saturable (zero-order at typical levels) elimination."""
    units = _number(params, "units", 1.5)
    grams = units * ETHANOL_G_PER_UNIT
    return [Pharmacology.model_validate({
        "molecule": {"name": "Ethanol", "molar_mass": ETHANOL_MOLAR_MASS, "log_p": -0.31},
        "pk": {
            "model": "michaelis-menten",
            "bioavailability": 0.9,
            "vmax": 2.0,
            "km": 100.0,
            "lag_min": 10.0,
            "absorption_half_life_min": 15.0,
            "dose_mg": grams * 1000.0,
            "volume": {"kind": "sex-adjusted", "male_l_kg": 0.68, "female_l_kg": 0.55},
        },
        "pd": [
            {"target": "ethanol", "ec50": 2000.0, "n": 1.0, "effect_gain": 300.0, "unit": "mg/dL"},
            {"target": "GABA_A", "mechanism": "PAM", "ec50": 300.0, "n": 1.5, "effect_gain": 8.0 * units,
             "cooperativity": 3.0},
            {"target": "dopamine", "ec50": 200.0, "effect_gain": 3.3 * units, "tau": 10.0},
            {"target": "NMDA", "mechanism": "NAM", "ki": 50.0, "potency_unit": "uM", "effect_gain": 0.3 * units},
            {"target": "vasopressin", "mechanism": "antagonist", "ec50": 200.0, "effect_gain": min(4.0, 1.5 * units)},
            {"target": "cortisol", "ec50": 500.0, "effect_gain": 1.5 * units, "tau": 30.0},
            {"target": "inflammation", "ec50": 500.0, "effect_gain": 0.1 * units, "tau": 240.0},
            {"target": "testosterone", "mechanism": "antagonist", "ec50": 800.0, "effect_gain": 20.0 * units,
             "tau": 120.0},
        ],
    })]
