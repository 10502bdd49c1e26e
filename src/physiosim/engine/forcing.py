"""Pharmacodynamic forcing of signals and auxiliary pools.

Every step the resolved agents of a run are turned into forcing rates
(units/min) added to the relaxation equation of the variables they act on.
``effect_gain`` is the maximum steady-state shift of the target, so rates
are divided by the target's own time constant.

Allosteric modulators are evaluated first: they scale the apparent potency
of agonists on the same receptor and shift endogenous tone, but never act
as independent agonists.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, Mapping, Optional, Tuple

from ..pharmacology.pd import (
    ANTAGONIST_POOL_HALF,
    adaptation_step,
    antagonist_scale,
    convert_concentration,
    cooperativity_factor,
    endogenous_tone,
    modulated_potency,
    occupancy,
    onset_step,
)
from ..pharmacology.resolver import ResolvedAgent, ResolvedEffect
from ..pharmacology.targets import (
    Adaptation,
    Enzyme,
    Receptor,
    SignalTarget,
    TargetCatalog,
    Transporter,
)
from ..signals import DefinitionSet

DENSITY_FLOOR = 0.05


@dataclass
class Forcing:
    """Forcing rates (units/min) for one step."""

    signals: Dict[str, float] = field(default_factory=dict)
    auxiliary: Dict[str, float] = field(default_factory=dict)

    def add_signal(self, key: str, rate: float) -> None:
        if rate and math.isfinite(rate):
            self.signals[key] = self.signals.get(key, 0.0) + rate

    def add_auxiliary(self, key: str, rate: float) -> None:
        if rate and math.isfinite(rate):
            self.auxiliary[key] = self.auxiliary.get(key, 0.0) + rate


def signal_sensitivity(
    receptor_sensitivity: Mapping[str, float],
    catalog: TargetCatalog,
) -> Dict[str, float]:
    """Coupling sensitivity of each signal read through sensitised receptors.

    A receptor sensitivity delta applies to every signal the receptor
    couples to; deltas on the same signal add up.
    """
    deltas: Dict[str, float] = {}
    for key, delta in receptor_sensitivity.items():
        target = catalog.resolve(key)
        if not isinstance(target, Receptor):
            continue
        for signal, _ in target.couplings:
            deltas[signal] = deltas.get(signal, 0.0) + delta
    return {signal: max(DENSITY_FLOOR, 1.0 + delta) for signal, delta in deltas.items()}


class PharmacodynamicModel:
    """Stateful PD evaluation for the agents of one run.

    Holds the effect-site state of every effect with an onset time constant
    and the density of every engaged receptor and transporter. Call
    :meth:`advance` exactly once per integrator step.
    """

    def __init__(
        self,
        agents: Iterable[ResolvedAgent],
        definitions: DefinitionSet,
        tau_floor: float = 0.1,
        receptor_density: Optional[Mapping[str, float]] = None,
        receptor_sensitivity: Optional[Mapping[str, float]] = None,
        enable_receptors: bool = True,
        enable_transporters: bool = True,
        enable_enzymes: bool = True,
    ):
        self.agents: Tuple[ResolvedAgent, ...] = tuple(agents)
        self.enable_receptors = enable_receptors
        self.enable_transporters = enable_transporters
        self.enable_enzymes = enable_enzymes

        self._signal_tau = {key: max(tau_floor, d.dynamics.tau) for key, d in definitions.signals.items()}
        self._aux_tau = {key: max(tau_floor, d.dynamics.tau) for key, d in definitions.auxiliary.items()}
        self._sensitivity = {
            key: max(DENSITY_FLOOR, 1.0 + delta) for key, delta in (receptor_sensitivity or {}).items()
        }
        self._effect_sites: Dict[Tuple[int, int], float] = {}

        receptor_density = receptor_density or {}
        self._baselines: Dict[str, float] = {}
        self._adaptation: Dict[str, Adaptation] = {}
        self._density_keys: Dict[str, str] = {}
        self._is_receptor: Dict[str, bool] = {}
        for agent in self.agents:
            for resolved in agent.effects:
                target = resolved.target
                if not isinstance(target, (Receptor, Transporter)) or target.key in self._baselines:
                    continue
                baseline = 1.0
                if isinstance(target, Receptor) and enable_receptors:
                    baseline = max(DENSITY_FLOOR, 1.0 + receptor_density.get(target.key, 0.0))
                self._baselines[target.key] = baseline
                self._adaptation[target.key] = target.adaptation
                self._density_keys[target.key] = target.density_key
                self._is_receptor[target.key] = isinstance(target, Receptor)
        self.densities: Dict[str, float] = dict(self._baselines)

    def density_state(self) -> Dict[str, float]:
        """Current densities keyed ``density:<target>``."""
        return {self._density_keys[key]: value for key, value in self.densities.items()}

    def advance(
        self,
        minute: float,
        dt: float,
        signals: Mapping[str, float],
        auxiliary: Mapping[str, float],
    ) -> Forcing:
        """Forcing at ``minute`` from the state at the start of the step.

        Effect-site states and densities are advanced by ``dt``.
        """
        forcing = Forcing()
        if not self.agents:
            return forcing

        exposures = [agent.exposure(minute) for agent in self.agents]
        pam: Dict[str, float] = {}
        nam: Dict[str, float] = {}
        occupancies: Dict[str, float] = {}

        for a_idx, agent in enumerate(self.agents):
            for e_idx, resolved in enumerate(agent.effects):
                if not resolved.effect.is_modulator:
                    continue
                drive = self._drive(agent, resolved, exposures[a_idx])
                drive = self._onset((a_idx, e_idx), resolved, drive, dt)
                factor = cooperativity_factor(drive, resolved.effect.cooperativity)
                book = pam if resolved.mechanism == "PAM" else nam
                book[resolved.target.key] = book.get(resolved.target.key, 1.0) * factor
                tone = endogenous_tone(resolved.gain, factor, resolved.mechanism)
                self._force_receptor(forcing, resolved.target, tone, "agonist", signals)

        for a_idx, agent in enumerate(self.agents):
            for e_idx, resolved in enumerate(agent.effects):
                if resolved.effect.is_modulator:
                    continue
                target = resolved.target
                potency = None
                if resolved.mechanism == "agonist" and isinstance(target, Receptor) and not agent.is_activity:
                    potency = modulated_potency(resolved.effect.potency, pam.get(target.key, 1.0), "PAM")
                    potency = modulated_potency(potency, nam.get(target.key, 1.0), "NAM")
                drive = self._drive(agent, resolved, exposures[a_idx], potency)
                drive = self._onset((a_idx, e_idx), resolved, drive, dt)
                if not drive:
                    continue
                if target.key in self._baselines:
                    occupancies[target.key] = occupancies.get(target.key, 0.0) + drive

                amount = resolved.gain * drive
                if isinstance(target, Receptor):
                    self._force_receptor(forcing, target, amount, resolved.mechanism, signals)
                elif isinstance(target, SignalTarget):
                    self._force_signal(forcing, target.key, amount, resolved.mechanism, signals)
                elif isinstance(target, Transporter):
                    if self.enable_transporters:
                        density = self.densities.get(target.key, 1.0)
                        self._force_pool(forcing, target.key, amount * density, resolved.mechanism, auxiliary)
                elif isinstance(target, Enzyme):
                    if self.enable_enzymes:
                        self._force_pool(forcing, target.key, amount, resolved.mechanism, auxiliary)
                else:
                    self._force_pool(forcing, target.key, amount, resolved.mechanism, auxiliary)

        self._adapt(occupancies, dt)
        return forcing

    def _drive(
        self,
        agent: ResolvedAgent,
        resolved: ResolvedEffect,
        exposure: float,
        potency: Optional[float] = None,
    ) -> float:
        """Occupancy for drugs, envelope level for activity agents."""
        if agent.is_activity:
            return max(0.0, exposure)
        if exposure <= 0:
            return 0.0
        effect = resolved.effect
        conc = convert_concentration(exposure, effect.potency_unit, agent.molar_mass)
        return occupancy(conc, effect.potency if potency is None else potency, effect.n)

    def _onset(self, key: Tuple[int, int], resolved: ResolvedEffect, drive: float, dt: float) -> float:
        tau = resolved.effect.tau
        if not tau:
            return drive
        state = onset_step(self._effect_sites.get(key, 0.0), drive, tau, dt)
        self._effect_sites[key] = state
        return state

    def _force_receptor(
        self,
        forcing: Forcing,
        receptor: Receptor,
        amount: float,
        mechanism: str,
        signals: Mapping[str, float],
    ) -> None:
        if not amount:
            return
        scale = self._sensitivity.get(receptor.key, 1.0)
        if self.enable_receptors:
            scale *= self.densities.get(receptor.key, 1.0)
        for signal, sign in receptor.couplings:
            tau = self._signal_tau.get(signal)
            if tau is None:
                continue
            rate = amount * scale / tau
            if mechanism == "antagonist":
                if sign > 0:
                    forcing.add_signal(signal, -rate * antagonist_scale(signals.get(signal, 0.0)))
                else:
                    # Blocking an inhibitory receptor releases the brake
                    forcing.add_signal(signal, rate)
            else:
                forcing.add_signal(signal, sign * rate)

    def _force_signal(
        self,
        forcing: Forcing,
        key: str,
        amount: float,
        mechanism: str,
        signals: Mapping[str, float],
    ) -> None:
        tau = self._signal_tau.get(key)
        if tau is None:
            return
        rate = amount / tau
        if mechanism == "antagonist":
            forcing.add_signal(key, -rate * antagonist_scale(signals.get(key, 0.0)))
        else:
            forcing.add_signal(key, rate)

    def _force_pool(
        self,
        forcing: Forcing,
        key: str,
        amount: float,
        mechanism: str,
        auxiliary: Mapping[str, float],
    ) -> None:
        tau = self._aux_tau.get(key)
        if tau is None:
            return
        rate = amount / tau
        if mechanism == "antagonist":
            forcing.add_auxiliary(key, -rate * antagonist_scale(auxiliary.get(key, 0.0), ANTAGONIST_POOL_HALF))
        else:
            forcing.add_auxiliary(key, rate)

    def _adapt(self, occupancies: Mapping[str, float], dt: float) -> None:
        for key, baseline in self._baselines.items():
            enabled = self.enable_receptors if self._is_receptor[key] else self.enable_transporters
            if not enabled:
                continue
            rates = self._adaptation[key]
            self.densities[key] = adaptation_step(
                self.densities[key],
                baseline,
                occupancies.get(key, 0.0),
                rates.k_up,
                rates.k_down,
                dt,
            )
