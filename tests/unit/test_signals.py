"""Tests for signal keys, dynamics building blocks and the registry."""

import math

import pytest

from physiosim.contracts.errors import ConfigurationError
from physiosim.domain.subject import Subject, derive_physiology
from physiosim.signals import (
    SIGNAL_GROUPS,
    SIGNALS_ALL,
    Coupling,
    Dynamics,
    DynamicsContext,
    ProductionTerm,
    SignalDefinition,
    SignalRegistry,
    StateView,
    fallback_definition,
    get_registry,
    is_signal,
    signal_group,
)
from physiosim.signals.definitions import ENZYMES, TRANSPORTERS
from physiosim.signals.dynamics import constant
from physiosim.signals.phase import clamp, hill, minute_to_phase, sigmoid_phase


def make_ctx(minute: float = 600.0, asleep: bool = False) -> DynamicsContext:
    subject = Subject()
    return DynamicsContext(
        minute=minute,
        minute_of_day=minute % 1440,
        circadian_minute_of_day=minute % 1440,
        day_index=int(minute // 1440),
        is_asleep=asleep,
        subject=subject,
        physiology=derive_physiology(subject),
    )


class TestSignalKeys:
    """Test the closed set of signal keys."""

    def test_keys_are_unique(self):
        """Test that no key appears in two groups."""
        assert len(SIGNALS_ALL) == len(set(SIGNALS_ALL))
        assert len(SIGNALS_ALL) == sum(len(keys) for keys in SIGNAL_GROUPS.values())

    def test_signal_group(self):
        """Test group lookup."""
        assert signal_group("glucose") == "metabolic"
        assert signal_group("cortisol") == "hormones"
        assert signal_group("norepi") == "neurotransmitters"
        assert signal_group("melatonin") == "circadian"
        assert signal_group("alt") == "biomarkers"

    def test_unknown_signal_group(self):
        """Test that unknown keys are rejected."""
        assert not is_signal("caffeine")
        with pytest.raises(KeyError):
            signal_group("caffeine")


class TestDynamicsTerms:
    """Test production terms and couplings."""

    def test_constant_production(self):
        """Test that a constant term ignores the state."""
        term = ProductionTerm("constant", 0.5)
        assert term.evaluate(StateView({}, {}), make_ctx()) == 0.5

    def test_source_production_clips_negative(self):
        """Test that negative source values produce nothing."""
        term = ProductionTerm("insulin", 2.0)
        assert term.evaluate(StateView({"insulin": 3.0}, {}), make_ctx()) == 6.0
        assert term.evaluate(StateView({"insulin": -1.0}, {}), make_ctx()) == 0.0

    def test_production_transform(self):
        """Test that transforms see the source value and the state."""
        term = ProductionTerm("constant", 0.15, transform=lambda _, state, ctx: state.aux("crhPool"))
        assert term.evaluate(StateView({}, {"crhPool": 0.4}), make_ctx()) == pytest.approx(0.06)

    def test_coupling_sign(self):
        """Test coupling direction."""
        assert Coupling("orexin", "stimulate", 0.1).sign == 1.0
        assert Coupling("melatonin", "inhibit", 0.1).sign == -1.0

    def test_nominal_of_callable_initial(self):
        """Test that callable initials fall back to the reference range midpoint."""
        definition = get_registry().get("cortisol")
        assert definition.nominal == pytest.approx(14.0)
        assert definition.initial(make_ctx(asleep=True)) == 5.0
        assert definition.initial(make_ctx(asleep=False)) == 12.0


class TestPhaseHelpers:
    """Test circadian phase helpers."""

    def test_minute_to_phase(self):
        """Test that a day maps onto one full turn."""
        assert minute_to_phase(0) == pytest.approx(0.0)
        assert minute_to_phase(720) == pytest.approx(math.pi)

    def test_sigmoid_phase_edges(self):
        """Test the step is 0 well before and 1 well after its centre."""
        center = minute_to_phase(480)
        assert sigmoid_phase(minute_to_phase(300), center) == 0.0
        assert sigmoid_phase(minute_to_phase(660), center) == 1.0
        assert sigmoid_phase(center, center) == pytest.approx(0.5)

    def test_hill(self):
        """Test the Hill response."""
        assert hill(0.0, 10.0) == 0.0
        assert hill(float("nan"), 10.0) == 0.0
        assert hill(10.0, 10.0) == pytest.approx(0.5)
        assert hill(float("inf"), 10.0) == 1.0
        assert 0.0 < hill(5.0, 10.0) < hill(20.0, 10.0) < 1.0

    def test_clamp(self):
        """Test clamping."""
        assert clamp(5.0, 0.0, 1.0) == 1.0
        assert clamp(-5.0, 0.0, 1.0) == 0.0
        assert clamp(0.5, 0.0, 1.0) == 0.5


class TestSignalRegistry:
    """Test the signal registry."""

    def test_every_signal_resolves(self):
        """Test that every enumerated key has exactly one definition."""
        registry = get_registry()
        assert set(registry.signals) == set(SIGNALS_ALL)
        for key in SIGNALS_ALL:
            definition = registry.get(key)
            assert definition.key == key
            assert definition.dynamics.tau > 0

    def test_fallback_signals(self):
        """Test that signals without explicit dynamics use the neutral fallback."""
        registry = get_registry()
        for key in ("alt", "ast"):
            definition = registry.get(key)
            assert definition.is_fallback
            assert definition.dynamics.tau == 60.0
            assert definition.dynamics.setpoint(make_ctx()) == 0.0
        assert not registry.get("glucose").is_fallback

    def test_unknown_key_gets_fallback(self):
        """Test that get never fails for an unknown key."""
        definition = get_registry().get("notASignal")
        assert definition.is_fallback
        assert definition.key == "notASignal"

    def test_auxiliary_pools(self):
        """Test transporter and enzyme activity pools."""
        registry = get_registry()
        assert registry.auxiliary_of_kind("transporter") == list(TRANSPORTERS)
        assert registry.auxiliary_of_kind("enzyme") == list(ENZYMES)
        for key in TRANSPORTERS + ENZYMES:
            pool = registry.get_auxiliary(key)
            assert pool.initial_value == 1.0
            assert pool.dynamics.tau == 30.0
        assert "dopamineVesicles" in registry.auxiliary_of_kind("pool")

    def test_unknown_auxiliary(self):
        """Test that unknown auxiliary keys raise KeyError."""
        with pytest.raises(KeyError):
            get_registry().get_auxiliary("nope")

    def test_substrates_of(self):
        """Test lookup of signals cleared by a transporter or enzyme."""
        registry = get_registry()
        assert registry.substrates_of("DAT") == ["dopamine"]
        assert set(registry.substrates_of("MAO_A")) == {"serotonin", "norepi"}
        assert registry.substrates_of("DAO") == ["histamine"]

    def test_register_unknown_signal(self):
        """Test that keys outside the closed set are rejected."""
        definition = fallback_definition("glucose")
        bogus = SignalDefinition(key="bogus", label="Bogus", unit="u", dynamics=definition.dynamics)
        with pytest.raises(ConfigurationError, match="Unknown signal key"):
            SignalRegistry(signals=[bogus])

    def test_duplicate_definition(self):
        """Test that a signal cannot be defined twice."""
        glucose = get_registry().get("glucose")
        with pytest.raises(ConfigurationError, match="Duplicate"):
            SignalRegistry(signals=[glucose, glucose])

    def test_invalid_coupling_source(self):
        """Test that couplings must reference enumerated signals."""
        broken = SignalDefinition(
            key="energy",
            label="Energy",
            unit="a.u.",
            dynamics=Dynamics(setpoint=constant(0.5), tau=30.0, couplings=(Coupling("caffeine", "stimulate", 0.1),)),
        )
        with pytest.raises(ConfigurationError, match="unknown coupling source"):
            SignalRegistry(signals=[broken])

    def test_non_positive_tau(self):
        """Test that time constants must be positive."""
        broken = SignalDefinition(
            key="energy",
            label="Energy",
            unit="a.u.",
            dynamics=Dynamics(setpoint=constant(0.5), tau=0.0),
        )
        with pytest.raises(ConfigurationError, match="tau must be positive"):
            SignalRegistry(signals=[broken])

    def test_partial_registry_fills_fallbacks(self):
        """Test that a registry with few explicit signals still covers every key."""
        glucose = get_registry().get("glucose")
        registry = SignalRegistry(signals=[glucose], auxiliary=get_registry().auxiliary.values())
        assert set(registry.signals) == set(SIGNALS_ALL)
        assert not registry.get("glucose").is_fallback
        assert registry.get("cortisol").is_fallback
