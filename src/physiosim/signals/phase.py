"""Circadian phase helpers used by setpoint functions.

A day maps onto one turn of the circle (``0..2π``). Pulses are von Mises
bumps, windows are on/off plateaus with cosine fades, and transitions are
half-sine ramps.
"""

from __future__ import annotations
import math

from ..config.constants import MINUTES_PER_DAY

TWO_PI = 2 * math.pi


def minute_to_phase(minute: float) -> float:
    """Phase angle of a minute of day."""
    return (minute / MINUTES_PER_DAY) * TWO_PI


def hour_to_phase(hour: float) -> float:
    """Phase angle of an hour of day."""
    return (hour / 24) * TWO_PI


def minutes_to_phase_width(minutes: float) -> float:
    """Phase width covered by a duration in minutes."""
    return (minutes / MINUTES_PER_DAY) * TWO_PI


def width_to_concentration(width_minutes: float) -> float:
    """Von Mises concentration for a pulse of roughly ``width_minutes``."""
    width = minutes_to_phase_width(width_minutes)
    return 2 / (width * width)


def gaussian_phase(phase: float, center: float, concentration: float) -> float:
    """Circular gaussian pulse, 1 at ``center``."""
    return math.exp(concentration * (math.cos(phase - center) - 1))


def window_phase(
    phase: float,
    start: float,
    end: float,
    transition: float = minutes_to_phase_width(30),
) -> float:
    """Plateau between ``start`` and ``end`` (may wrap midnight) with cosine fades.

    Args:
        phase: Current phase
        start: Window opening phase
        end: Window closing phase
        transition: Fade width at each edge

    Returns:
        Value in [0, 1]
    """
    p = phase % TWO_PI
    s = start % TWO_PI
    e = end % TWO_PI

    wraps = e < s
    inside = (p >= s or p <= e) if wraps else (s <= p <= e)
    if not inside:
        return 0.0

    to_start = p + (TWO_PI - s) if (wraps and p < s) else p - s
    to_end = (TWO_PI - p) + e if (wraps and p > e) else e - p

    fade_in = 0.5 * (1 - math.cos(math.pi * to_start / transition)) if to_start < transition else 1.0
    fade_out = 0.5 * (1 - math.cos(math.pi * to_end / transition)) if to_end < transition else 1.0
    return fade_in * fade_out


def sigmoid_phase(
    phase: float,
    center: float,
    width: float = minutes_to_phase_width(45),
) -> float:
    """Smooth 0 → 1 step centred on ``center``."""
    diff = (phase - center + math.pi) % TWO_PI - math.pi
    if diff < -width / 2:
        return 0.0
    if diff > width / 2:
        return 1.0
    return 0.5 * (1 + math.sin(math.pi * diff / width))


def hill(x: float, ec50: float, n: float = 2.0) -> float:
    """Saturating Hill response in [0, 1]; 0 for non-positive input."""
    if math.isnan(x) or x <= 0:
        return 0.0
    if math.isinf(x) or ec50 <= 0:
        return 1.0
    ratio = x / ec50
    if ratio > 1e6:
        return 1.0
    rn = ratio ** n
    return rn / (1.0 + rn)


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))
