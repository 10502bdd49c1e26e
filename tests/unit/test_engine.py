"""Tests for the integrator, run context, timeline helpers and engine."""

import math
from unittest.mock import patch

import numpy as np
import pytest

from physiosim.config import AppConfig
from physiosim.config.model import DebugToggles
from physiosim.contracts.errors import SimulationError, ValidationError
from physiosim.contracts.types import ComputeRequest, SimulationGrid, TimelineItem
from physiosim.domain.conditions import BaselineAdjustment, ConditionAdjustments
from physiosim.domain.subject import Subject, derive_physiology
from physiosim.engine import (
    ExponentialIntegrator,
    PharmacodynamicModel,
    RunContext,
    SimulationEngine,
    expand_daily,
    exponential_update,
    signal_sensitivity,
    sleep_windows,
    wake_minute,
)
from physiosim.engine.simulation import ContextFactory
from physiosim.pharmacology.targets import get_target_catalog
from physiosim.signals import (
    AuxiliaryDefinition,
    ClearanceTerm,
    Coupling,
    DefinitionSet,
    Dynamics,
    DynamicsContext,
    ProductionTerm,
    SIGNALS_ALL,
    SignalDefinition,
    get_registry,
)
from physiosim.signals.dynamics import constant


def make_ctx(minute: float = 600.0) -> DynamicsContext:
    subject = Subject()
    return DynamicsContext(
        minute=minute,
        minute_of_day=minute % 1440,
        circadian_minute_of_day=minute % 1440,
        day_index=0,
        is_asleep=False,
        subject=subject,
        physiology=derive_physiology(subject),
    )


def _signal(key, setpoint=10.0, tau=10.0, initial=0.0, maximum=float("inf"), **dynamics):
    return SignalDefinition(
        key=key,
        label=key,
        unit="u",
        dynamics=Dynamics(setpoint=constant(setpoint), tau=tau, **dynamics),
        initial_value=initial,
        max=maximum,
    )


def _broken(value, state, ctx):
    raise ValueError("boom")


class TestExponentialUpdate:
    """Test the closed-form step."""

    def test_relaxation(self):
        """Test relaxation toward the setpoint."""
        assert exponential_update(0.0, 10.0, 10.0, 0.0, 0.0, 10.0) == pytest.approx(10 * (1 - math.exp(-1)))

    def test_clearance_lowers_target(self):
        """Test that clearance shortens the time constant and lowers the target."""
        # tau_eff = 5, target = 5·(10/10) = 5
        assert exponential_update(0.0, 10.0, 10.0, 0.0, 0.1, 1e6) == pytest.approx(5.0)

    def test_drive(self):
        """Test additive drive."""
        assert exponential_update(0.0, 0.0, 10.0, 0.5, 0.0, 1e6) == pytest.approx(5.0)

    def test_stiff_step_does_not_overshoot(self):
        """Test stability when the step is far longer than tau."""
        value = exponential_update(0.0, 10.0, 0.1, 0.0, 0.0, 5.0)
        assert value == pytest.approx(10.0)
        assert value <= 10.0


class TestRunContext:
    """Test run context bookkeeping."""

    def test_report_failure_once(self):
        """Test that each key is reported only once."""
        run = RunContext("test-run")
        assert run.report_failure("glucose", ValueError("x"))
        assert not run.report_failure("glucose", ValueError("y"))
        assert run.report_failure("alt", ValueError("z"))
        assert run.failed_keys == ("alt", "glucose")

    def test_stage_timing(self):
        """Test that stage times land in the metadata."""
        run = RunContext("test-run", generation=3)
        run.start_run()
        with run.time_stage("integrate"):
            pass
        assert run.end_run() >= 0
        metadata = run.get_runtime_metadata()
        assert metadata["run_id"] == "test-run"
        assert metadata["generation"] == 3
        assert "integrate" in metadata["stage_times"]

    def test_generated_run_id(self):
        """Test that a run id is generated when omitted."""
        assert len(RunContext().run_id) == 12


class TestIntegrator:
    """Test the exponential-update integrator."""

    def test_relaxes_toward_setpoint(self):
        """Test one step without terms."""
        integrator = ExponentialIntegrator(DefinitionSet(signals={"glucose": _signal("glucose")}))
        signals, _ = integrator.step({"glucose": 0.0}, {}, make_ctx(), 10.0)
        assert signals["glucose"] == pytest.approx(10 * (1 - math.exp(-1)))

    def test_baselines_off_decays_to_zero(self):
        """Test that switching baselines off drops setpoint and production."""
        definitions = DefinitionSet(signals={
            "glucose": _signal("glucose", production=(ProductionTerm("constant", 5.0),)),
        })
        integrator = ExponentialIntegrator(definitions, toggles=DebugToggles(enable_baselines=False))
        signals, _ = integrator.step({"glucose": 10.0}, {}, make_ctx(), 10.0)
        assert signals["glucose"] == pytest.approx(10 * math.exp(-1))

    def test_coupling(self):
        """Test that couplings push the target and the toggle removes them."""
        definitions = DefinitionSet(signals={
            "insulin": _signal("insulin", setpoint=0.0, couplings=(Coupling("glucose", "stimulate", 1.0, reference=0.0),)),
            "glucose": _signal("glucose", setpoint=5.0, initial=5.0),
        })
        state = {"insulin": 0.0, "glucose": 5.0}

        signals, _ = ExponentialIntegrator(definitions).step(state, {}, make_ctx(), 10.0)
        assert signals["insulin"] == pytest.approx(5 * (1 - math.exp(-1)))

        off = ExponentialIntegrator(definitions, toggles=DebugToggles(enable_couplings=False))
        signals, _ = off.step(state, {}, make_ctx(), 10.0)
        assert signals["insulin"] == pytest.approx(0.0)

    def test_failure_uses_fallback(self):
        """Test that a failing signal decays while the others keep going."""
        definitions = DefinitionSet(signals={
            "glucose": _signal("glucose", production=(ProductionTerm("constant", 1.0, transform=_broken),)),
            "insulin": _signal("insulin"),
        })
        run = RunContext("test-run")
        integrator = ExponentialIntegrator(definitions, run=run)
        state = {"glucose": 10.0, "insulin": 0.0}

        signals, _ = integrator.step(state, {}, make_ctx(), 6.0)
        signals, _ = integrator.step(signals, {}, make_ctx(), 6.0)

        assert signals["glucose"] == pytest.approx(10 * math.exp(-12 / 60))
        assert signals["insulin"] > 0
        assert run.failed_keys == ("glucose",)

    def test_attribute_error_uses_fallback(self):
        """Test that any error from a transform falls back to neutral dynamics."""
        def missing_field(value, state, ctx):
            return ctx.subject.no_such_field

        definitions = DefinitionSet(signals={
            "glucose": _signal("glucose", production=(ProductionTerm("constant", 1.0, transform=missing_field),)),
            "insulin": _signal("insulin"),
        })
        run = RunContext("test-run")
        integrator = ExponentialIntegrator(definitions, run=run)

        signals, _ = integrator.step({"glucose": 10.0, "insulin": 0.0}, {}, make_ctx(), 6.0)

        assert signals["glucose"] == pytest.approx(10 * math.exp(-6 / 60))
        assert signals["insulin"] == pytest.approx(10 * (1 - math.exp(-0.6)))
        assert run.failed_keys == ("glucose",)

    def test_runtime_error_in_setpoint_uses_fallback(self):
        """Test that a failing setpoint does not abort the step."""
        def broken_setpoint(ctx):
            raise RuntimeError("no clock")

        definitions = DefinitionSet(signals={
            "cortisol": SignalDefinition(
                key="cortisol", label="cortisol", unit="u",
                dynamics=Dynamics(setpoint=broken_setpoint, tau=10.0), initial_value=8.0,
            ),
            "insulin": _signal("insulin"),
        })
        run = RunContext("test-run")
        signals, _ = ExponentialIntegrator(definitions, run=run).step(
            {"cortisol": 8.0, "insulin": 0.0}, {}, make_ctx(), 6.0)

        assert signals["cortisol"] == pytest.approx(8 * math.exp(-6 / 60))
        assert run.failed_keys == ("cortisol",)

    def test_values_clamped(self):
        """Test that signals stay within their bounds."""
        definitions = DefinitionSet(signals={"glucose": _signal("glucose", setpoint=100.0, maximum=5.0)})
        signals, _ = ExponentialIntegrator(definitions).step({"glucose": 0.0}, {}, make_ctx(), 100.0)
        assert signals["glucose"] == 5.0

    def test_initial_state_clamped(self):
        """Test that initial values respect the bounds."""
        definitions = DefinitionSet(
            signals={"glucose": _signal("glucose", initial=50.0, maximum=20.0)},
            auxiliary={"DAT": AuxiliaryDefinition("DAT", Dynamics(constant(1.0), 30.0), 5.0, "transporter")},
        )
        signals, auxiliary = ExponentialIntegrator(definitions).initial_state(make_ctx())
        assert signals["glucose"] == 20.0
        assert auxiliary["DAT"] == 2.0

    def test_auxiliary_toggle_holds_pools(self):
        """Test that pools hold their value while activity pools keep relaxing."""
        definitions = DefinitionSet(
            signals={},
            auxiliary={
                "dopamineVesicles": AuxiliaryDefinition("dopamineVesicles", Dynamics(constant(1.0), 10.0), 1.0, "pool"),
                "DAT": AuxiliaryDefinition("DAT", Dynamics(constant(1.0), 10.0), 1.0, "transporter"),
            },
        )
        integrator = ExponentialIntegrator(definitions, toggles=DebugToggles(enable_auxiliary=False))
        _, auxiliary = integrator.step({}, {"dopamineVesicles": 0.5, "DAT": 0.5}, make_ctx(), 10.0)
        assert auxiliary["dopamineVesicles"] == 0.5
        assert auxiliary["DAT"] > 0.5

    def test_activity_toggles(self):
        """Test that switched-off transporter and enzyme classes read as full activity."""
        definitions = DefinitionSet(
            signals={},
            auxiliary={
                "DAT": AuxiliaryDefinition("DAT", Dynamics(constant(1.0), 30.0), 1.0, "transporter"),
                "MAO_B": AuxiliaryDefinition("MAO_B", Dynamics(constant(1.0), 30.0), 1.0, "enzyme"),
            },
        )
        state = {"DAT": 0.2, "MAO_B": 0.4}
        assert ExponentialIntegrator(definitions).activity("DAT", state) == 0.2

        off = ExponentialIntegrator(
            definitions,
            toggles=DebugToggles(enable_transporters=False, enable_enzymes=False),
        )
        assert off.activity("DAT", state) == 1.0
        assert off.activity("MAO_B", state) == 1.0

    def test_enzyme_dependent_clearance(self):
        """Test that clearance scales with transporter activity."""
        definitions = DefinitionSet(
            signals={
                "dopamine": _signal(
                    "dopamine",
                    setpoint=0.0,
                    clearance=(ClearanceTerm("enzyme-dependent", rate=0.1, enzyme="DAT"),),
                ),
            },
            auxiliary={"DAT": AuxiliaryDefinition("DAT", Dynamics(constant(1.0), 30.0), 1.0, "transporter")},
        )
        integrator = ExponentialIntegrator(definitions)
        full, _ = integrator.step({"dopamine": 10.0}, {"DAT": 1.0}, make_ctx(), 1.0)
        blocked, _ = integrator.step({"dopamine": 10.0}, {"DAT": 0.1}, make_ctx(), 1.0)
        assert blocked["dopamine"] > full["dopamine"]

    def test_condition_amplitude(self):
        """Test that a baseline amplitude scales the setpoint."""
        definitions = DefinitionSet(signals={"glucose": _signal("glucose")})
        adjustments = ConditionAdjustments(baselines={"glucose": BaselineAdjustment(amplitude=0.5)})
        integrator = ExponentialIntegrator(definitions, adjustments=adjustments)
        signals, _ = integrator.step({"glucose": 0.0}, {}, make_ctx(), 1e4)
        assert signals["glucose"] == pytest.approx(15.0)

    def test_condition_activity_offset(self):
        """Test that activity offsets move the resting activity of a pool."""
        definitions = DefinitionSet(
            signals={},
            auxiliary={"DAT": AuxiliaryDefinition("DAT", Dynamics(constant(1.0), 30.0), 1.0, "transporter")},
        )
        adjustments = ConditionAdjustments(transporter_activity={"DAT": -0.4})
        integrator = ExponentialIntegrator(definitions, adjustments=adjustments)
        _, auxiliary = integrator.step({}, {"DAT": 1.0}, make_ctx(), 1e4)
        assert auxiliary["DAT"] == pytest.approx(0.6)

    def test_condition_coupling(self):
        """Test that condition couplings are added to the signal's own."""
        definitions = DefinitionSet(signals={
            "cortisol": _signal("cortisol", setpoint=0.0),
            "inflammation": _signal("inflammation", setpoint=2.0, initial=1.0),
        })
        adjustments = ConditionAdjustments(couplings={"cortisol": [("inflammation", 0.5)]})
        integrator = ExponentialIntegrator(definitions, adjustments=adjustments)
        signals, _ = integrator.step({"cortisol": 0.0, "inflammation": 2.0}, {}, make_ctx(), 10.0)
        assert signals["cortisol"] > 0


class TestSensitivity:
    """Test receptor sensitivity mapping."""

    def test_signal_sensitivity(self):
        """Test that receptor deltas map onto the signals they read."""
        catalog = get_target_catalog()
        assert signal_sensitivity({"D2": 0.5}, catalog) == {"dopamine": 1.5}
        assert signal_sensitivity({"D2": 0.5, "D1": 0.25}, catalog) == {"dopamine": 1.75}

    def test_non_receptors_ignored(self):
        """Test that transporters carry no sensitivity."""
        assert signal_sensitivity({"DAT": 0.5}, get_target_catalog()) == {}

    def test_sensitivity_floor(self):
        """Test the lower bound."""
        assert signal_sensitivity({"D2": -5.0}, get_target_catalog()) == {"dopamine": 0.05}

    def test_no_agents_no_forcing(self):
        """Test that a model without agents forces nothing."""
        model = PharmacodynamicModel([], get_registry().definition_set())
        forcing = model.advance(0.0, 1.0, {}, {})
        assert forcing.signals == {}
        assert forcing.auxiliary == {}
        assert model.density_state() == {}


class TestTimelineHelpers:
    """Test wake, sleep and daily repetition helpers."""

    def test_wake_from_wake_item(self):
        """Test that the first wake item sets the wake time."""
        items = [
            TimelineItem(id="s", key="sleep", start_min=1380, duration_min=480),
            TimelineItem(id="w", key="wake", start_min=1890, duration_min=60),
        ]
        assert wake_minute(items) == 450

    def test_wake_from_sleep_end(self):
        """Test that the end of sleep sets the wake time without a wake item."""
        items = [TimelineItem(id="s", key="sleep", start_min=1380, duration_min=480)]
        assert wake_minute(items) == 420

    def test_default_wake(self):
        """Test the 08:00 default."""
        assert wake_minute([]) == 480

    def test_sleep_windows(self):
        """Test that only sleep and nap items open windows."""
        items = [
            TimelineItem(id="s", key="sleep", start_min=1380, duration_min=480),
            TimelineItem(id="n", key="nap", start_min=2280, duration_min=30),
            TimelineItem(id="c", key="caffeine", start_min=480, duration_min=15),
        ]
        assert sleep_windows(items) == ((1380, 480), (840, 30))

    def test_sleep_window_wraps_midnight(self):
        """Test asleep status across midnight."""
        subject = Subject()
        factory = ContextFactory(subject, derive_physiology(subject), windows=((1380, 480),))
        assert factory.is_asleep(1400)
        assert factory.is_asleep(60)
        assert factory.is_asleep(420)
        assert not factory.is_asleep(600)
        assert not factory.is_asleep(1300)

    def test_context_circadian_shift(self):
        """Test the internal clock offset."""
        subject = Subject()
        ctx = ContextFactory(subject, derive_physiology(subject), circadian_shift_min=60.0)(1470.0)
        assert ctx.minute_of_day == 30.0
        assert ctx.circadian_minute_of_day == 90.0
        assert ctx.day_index == 1

    def test_expand_daily(self, caffeine_item):
        """Test daily repetition with suffixed ids."""
        expanded = expand_daily([caffeine_item], SimulationGrid(step_min=5, days=3))
        assert [item.id for item in expanded] == ["coffee", "coffee@d1", "coffee@d2"]
        assert [item.start_min for item in expanded] == [480, 1920, 3360]

    def test_expand_single_day(self, caffeine_item):
        """Test that a one day grid is left alone."""
        assert expand_daily([caffeine_item], SimulationGrid(step_min=5, days=1)) == [caffeine_item]


class TestSimulationEngine:
    """Test full engine passes."""

    def test_empty_timeline(self, fast_config):
        """Test that every signal is present, finite and aligned to the grid."""
        grid = SimulationGrid(step_min=5, days=1)
        response = SimulationEngine().compute(ComputeRequest.build(grid, [], fast_config, generation=4))
        assert set(response.series) == set(SIGNALS_ALL)
        for key, values in response.series.items():
            assert len(values) == 288, key
            assert np.all(np.isfinite(values)), key
        assert response.failed_signals == ()
        assert response.generation == 4

    def test_series_are_read_only(self, fast_config):
        """Test that response arrays cannot be modified."""
        grid = SimulationGrid(step_min=5, days=1)
        response = SimulationEngine().compute(ComputeRequest.build(grid, [], fast_config))
        with pytest.raises(ValueError):
            response.series["glucose"][0] = 1.0

    def test_empty_grid(self, fast_config):
        """Test that a grid without points is rejected."""
        grid = SimulationGrid(step_min=60, days=0.01)
        with pytest.raises(SimulationError):
            SimulationEngine().compute(ComputeRequest.build(grid, [], fast_config))

    def test_unknown_intervention_rejected_when_disabled(self, fast_config):
        """Test that items are checked even with interventions switched off."""
        config = fast_config.model_copy(update={"debug": DebugToggles(enable_interventions=False)})
        items = [TimelineItem(id="x", key="unobtainium", start_min=480, duration_min=10)]
        with pytest.raises(ValidationError):
            SimulationEngine().compute(ComputeRequest.build(SimulationGrid(), items, config))

    def test_unknown_condition_rejected(self, fast_config):
        """Test that unknown library conditions fail the run."""
        config = AppConfig.model_validate({**fast_config.model_dump(exclude={"subject": {"bmi"}}), "conditions": {"active": {"nope": 0.5}}})
        with pytest.raises(ValidationError, match="Unknown condition"):
            SimulationEngine().build_adjustments(config)

    def test_conditions_disabled(self, fast_config):
        """Test that switching conditions off skips the library entirely."""
        config = AppConfig.model_validate({
            **fast_config.model_dump(exclude={"subject": {"bmi"}}),
            "conditions": {"active": {"nope": 0.5}},
            "debug": {"enable_conditions": False},
        })
        assert SimulationEngine().build_adjustments(config) is None

    def test_density_series(self, fast_config, caffeine_item):
        """Test that engaged receptors report a density series."""
        response = SimulationEngine().compute(ComputeRequest.build(SimulationGrid(), [caffeine_item], fast_config))
        assert "density:Adenosine_A2a" in response.auxiliary
        assert len(response.auxiliary["density:Adenosine_A2a"]) == 288

    def test_receptors_off_keeps_density(self, fast_config, caffeine_item):
        """Test that densities stay at 1 with receptor modelling off."""
        config = fast_config.model_copy(update={"debug": DebugToggles(enable_receptors=False)})
        response = SimulationEngine().compute(ComputeRequest.build(SimulationGrid(), [caffeine_item], config))
        np.testing.assert_array_equal(response.auxiliary["density:Adenosine_A2a"], 1.0)

    def test_wake_item_shifts_clock(self, fast_config):
        """Test that waking at 07:00 shifts the internal clock by an hour."""
        items = [TimelineItem(id="w", key="wake", start_min=420, duration_min=60)]
        response = SimulationEngine().compute(ComputeRequest.build(SimulationGrid(), items, fast_config))
        assert response.metadata["wake_min"] == 420
        assert response.metadata["circadian_shift_min"] == 60

    def test_sleep_windows_from_unrepeated_items(self, fast_config):
        """Test that daily repetition does not duplicate sleep windows."""
        engine = fast_config.engine.model_copy(update={"repeat_daily": True, "days": 2.0})
        config = fast_config.model_copy(update={"engine": engine})
        items = [TimelineItem(id="night", key="sleep", start_min=1380, duration_min=480)]

        with patch("physiosim.engine.simulation.sleep_windows", wraps=sleep_windows) as windows:
            SimulationEngine().compute(ComputeRequest.build(SimulationGrid(step_min=30, days=2), items, config))

        passed = list(windows.call_args.args[0])
        assert [item.id for item in passed] == ["night"]
        assert sleep_windows(passed) == ((1380.0, 480.0),)
