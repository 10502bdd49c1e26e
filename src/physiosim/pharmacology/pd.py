"""Pharmacodynamic building blocks: occupancy, allosteric modulation, adaptation."""

from __future__ import annotations
import math
from typing import Optional

from ..signals.phase import hill

DEFAULT_COOPERATIVITY = 3.0
ANTAGONIST_SIGNAL_HALF = 20.0
ANTAGONIST_POOL_HALF = 0.1


def convert_concentration(conc_mg_l: float, unit: str, molar_mass: Optional[float]) -> float:
    """Convert a mg/L concentration into ``unit`` (``mg/L``, ``uM`` or ``nM``)."""
    if unit == "mg/L":
        return conc_mg_l
    if not molar_mass:
        raise ValueError(f"Converting to {unit} requires a molar mass")
    if unit == "uM":
        return conc_mg_l * 1e3 / molar_mass
    return conc_mg_l * 1e6 / molar_mass


def occupancy(conc: float, potency: float, n: float) -> float:
    """Fractional Hill occupancy in [0, 1]."""
    return hill(conc, potency, n)


def cooperativity_factor(modulator_occupancy: float, alpha: Optional[float]) -> float:
    """``1 + (α − 1)·occ``; 1 when the modulator is absent."""
    alpha = DEFAULT_COOPERATIVITY if alpha is None else alpha
    return 1.0 + (alpha - 1.0) * max(0.0, modulator_occupancy)


def modulated_potency(potency: float, factor: float, mechanism: str) -> float:
    """Apparent agonist potency under an allosteric modulator.

    A PAM lowers the concentration needed for half occupancy, a NAM raises it.
    """
    if mechanism == "PAM":
        return potency / factor
    if mechanism == "NAM":
        return potency * factor
    return potency


def endogenous_tone(gain: float, factor: float, mechanism: str) -> float:
    """Shift of endogenous signalling caused by a modulator alone."""
    shift = gain * (1.0 - 1.0 / factor)
    return shift if mechanism == "PAM" else -shift


def antagonist_scale(value: float, half: float = ANTAGONIST_SIGNAL_HALF) -> float:
    """Fraction of a signal an antagonist can remove; 0 when nothing is there."""
    value = max(0.0, value)
    return value / (value + half)


def adaptation_step(
    density: float,
    baseline: float,
    occ: float,
    k_up: float,
    k_down: float,
    dt: float,
) -> float:
    """Advance ``dD/dt = k_up·(D0 − D) − k_down·min(1, occ)·D`` exactly over ``dt``."""
    occ = min(1.0, max(0.0, occ))
    rate = k_up + k_down * occ
    if rate <= 0:
        return density
    steady = k_up * baseline / rate
    return steady + (density - steady) * math.exp(-rate * dt)


def onset_step(state: float, target: float, tau: Optional[float], dt: float) -> float:
    """First-order effect-site lag; passes through when ``tau`` is unset."""
    if not tau:
        return target
    return target + (state - target) * math.exp(-dt / tau)
