"""Concentration curves for the three PK model families.

Every curve is a callable of the elapsed minutes since the dose started and
returns a non-negative value: a plasma concentration in mg/L for
``one-compartment`` and ``michaelis-menten`` agents, an activation level in
``[0, intensity]`` for ``activity-dependent`` ones.
"""

from __future__ import annotations
import math
from typing import Optional

import structlog
from scipy.integrate import solve_ivp
from scipy.optimize import brentq

from ..contracts.errors import ConfigurationError
from ..domain.subject import Physiology, Subject
from .models import DEFAULT_VOLUME_L, PKModel, VolumeSpec

logger = structlog.get_logger()

DEFAULT_MM_LAG_MIN = 10.0
MM_HORIZON_MIN = 2880.0
_KA_EQUALS_KE_RTOL = 1e-6


def elimination_rate(half_life_min: float) -> float:
    """First-order rate constant ``ln2 / t½`` (1/min)."""
    return math.log(2) / max(1e-9, half_life_min)


def volume_of_distribution(
    spec: Optional[VolumeSpec],
    subject: Subject,
    physiology: Physiology,
) -> float:
    """Volume of distribution in liters for a subject.

    Args:
        spec: Volume rule; ``None`` falls back to 50 L
        subject: Subject profile
        physiology: Derived physiology of the subject

    Returns:
        Volume in liters (never below 0.1 L)
    """
    if spec is None:
        return DEFAULT_VOLUME_L

    if spec.kind == "weight":
        volume = subject.weight_kg * spec.base_l_kg
    elif spec.kind == "tbw":
        volume = physiology.tbw * spec.fraction
    elif spec.kind == "lbm":
        volume = physiology.lean_body_mass * spec.base_l_kg
    elif spec.kind == "sex-adjusted":
        per_kg = spec.male_l_kg if subject.is_male else spec.female_l_kg
        volume = subject.weight_kg * per_kg
    else:
        volume = spec.liters
    return max(0.1, float(volume))


def time_to_peak(ka: float, ke: float) -> float:
    """Time of peak concentration of the Bateman curve."""
    if abs(ka - ke) <= _KA_EQUALS_KE_RTOL * ke:
        return 1.0 / ke
    return math.log(ka / ke) / (ka - ke)


def absorption_rate_from_tmax(tmax_min: float, ke: float) -> float:
    """Solve ``tmax = ln(ka/ke) / (ka - ke)`` for ``ka``.

    ``tmax`` is symmetric in ``ka`` and ``ke`` and equals ``1/ke`` at
    ``ka = ke``; shorter peaks need ``ka > ke``, longer ones the flip-flop
    branch ``ka < ke``.

    Raises:
        ConfigurationError: If no bracketing root exists
    """
    limit = 1.0 / ke
    if math.isclose(tmax_min, limit, rel_tol=1e-9):
        return ke

    def residual(ka: float) -> float:
        return time_to_peak(ka, ke) - tmax_min

    if tmax_min < limit:
        lo, hi = ke * (1 + 1e-4), ke * 1e6
    else:
        lo, hi = ke * 1e-6, ke * (1 - 1e-4)

    try:
        return brentq(residual, lo, hi, xtol=1e-12, maxiter=200)
    except ValueError as e:
        raise ConfigurationError(
            f"Cannot derive absorption rate for time_to_peak_min={tmax_min}",
            {"ke": ke, "error": str(e)},
        ) from e


class OneCompartmentCurve:
    """Bateman curve with absorption lag.

    ``C(t) = F·D·ka / (Vd·(ka − ke)) · (e^(−ke·t) − e^(−ka·t))``
    """

    def __init__(self, pk: PKModel, dose_mg: float, volume_l: float):
        self.ke = elimination_rate(pk.half_life_min)
        if pk.absorption_rate is not None:
            self.ka = pk.absorption_rate
        elif pk.time_to_peak_min is not None:
            self.ka = absorption_rate_from_tmax(pk.time_to_peak_min, self.ke)
        else:
            self.ka = 4.0 * self.ke
        self.lag = pk.lag_min or 0.0
        self.scale = pk.bioavailability * dose_mg / volume_l

    def __call__(self, elapsed: float) -> float:
        t = elapsed - self.lag
        if t <= 0 or self.scale <= 0:
            return 0.0
        ka, ke = self.ka, self.ke
        if abs(ka - ke) <= _KA_EQUALS_KE_RTOL * ke:
            value = self.scale * ke * t * math.exp(-ke * t)
        else:
            value = self.scale * ka / (ka - ke) * (math.exp(-ke * t) - math.exp(-ka * t))
        return max(0.0, value)


class MichaelisMentenCurve:
    """First-order gut absorption feeding saturable elimination.

    ``dA/dt = −ka·A``, ``dC/dt = ka·A/Vd − vmax·C/(km + C)``, integrated once
    with ``solve_ivp`` and sampled through its dense output.
    """

    def __init__(
        self,
        pk: PKModel,
        dose_mg: float,
        volume_l: float,
        method: str = "LSODA",
        rtol: float = 1e-6,
        atol: float = 1e-9,
        clearance_factor: float = 1.0,
    ):
        self.lag = DEFAULT_MM_LAG_MIN if pk.lag_min is None else pk.lag_min
        self.horizon = MM_HORIZON_MIN
        ka = elimination_rate(pk.absorption_half_life_min)
        vmax = pk.vmax * clearance_factor
        km = pk.km
        amount = pk.bioavailability * dose_mg

        self._solution = None
        if amount <= 0:
            return

        def rhs(t, y):
            gut, conc = y
            conc = max(0.0, conc)
            return [-ka * gut, ka * gut / volume_l - vmax * conc / (km + conc)]

        solution = solve_ivp(
            rhs,
            (0.0, self.horizon),
            [amount, 0.0],
            method=method,
            rtol=rtol,
            atol=atol,
            dense_output=True,
        )
        if not solution.success:
            logger.warning("Michaelis-Menten integration failed", message=solution.message)
            return
        self._solution = solution

    def __call__(self, elapsed: float) -> float:
        t = elapsed - self.lag
        if self._solution is None or t <= 0 or t > self.horizon:
            return 0.0
        return max(0.0, float(self._solution.sol(t)[1]))


class ActivityEnvelope:
    """On/off activation envelope for non-pharmacological actions."""

    def __init__(self, pk: PKModel, duration_min: float, intensity: float = 1.0):
        self.on_tau = pk.on_tau_min
        self.off_tau = pk.off_tau_min
        self.duration = max(0.0, duration_min)
        self.level = max(0.0, intensity)
        self.lag = pk.lag_min or 0.0

    def __call__(self, elapsed: float) -> float:
        t = elapsed - self.lag
        if t < 0:
            return 0.0
        if t <= self.duration:
            return self.level * (1.0 - math.exp(-t / self.on_tau))
        at_end = self.level * (1.0 - math.exp(-self.duration / self.on_tau))
        return at_end * math.exp(-(t - self.duration) / self.off_tau)
