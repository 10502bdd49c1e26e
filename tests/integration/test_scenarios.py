"""End-to-end scenarios through the public API."""

import json

import numpy as np
import pytest

from physiosim import app_api
from physiosim.catalog import InterventionCatalog
from physiosim.catalog.base import builtin_catalog_path
from physiosim.contracts.types import ComputeRequest, SimulationGrid, TimelineItem
from physiosim.domain.subject import Subject
from physiosim.engine import SimulationEngine
from physiosim.projections import arousal_at, arousal_state
from physiosim.projections.composite import sigmoid
from physiosim.scenario import Scenario, dumps, loads
from physiosim.signals import SIGNALS_ALL

pytestmark = pytest.mark.integration


def _index(result, minute):
    return int(np.argmin(np.abs(result.minutes - minute)))


class TestBaselineDay:
    def test_cortisol_peaks_in_the_morning(self, fast_config):
        """Cortisol peaks between 06:00 and 12:00 on an empty day."""
        result = app_api.run_simulation([], fast_config)
        cortisol = result.get("cortisol")
        peak_minute = result.minutes[int(np.argmax(cortisol))]
        assert 360 <= peak_minute <= 720

    def test_every_signal_present(self, fast_config):
        """An empty timeline still yields every signal on the grid."""
        result = app_api.run_simulation([], fast_config)
        assert set(result.series) == set(SIGNALS_ALL)
        assert result.failed_signals == ()

    def test_deterministic(self, fast_config, caffeine_item, meal_item):
        """Identical requests produce identical series."""
        first = app_api.run_simulation([caffeine_item, meal_item], fast_config)
        second = app_api.run_simulation([caffeine_item, meal_item], fast_config)
        for key in SIGNALS_ALL:
            np.testing.assert_array_equal(first.get(key), second.get(key))

    def test_dataframe(self, fast_config):
        """Series export to a frame indexed by minute."""
        frame = app_api.run_simulation([], fast_config).to_dataframe(["cortisol", "glucose"])
        assert frame.index.name == "minute"
        assert list(frame.columns) == ["cortisol", "glucose"]
        assert len(frame) == 288


class TestMeal:
    def test_glucose_excursion(self, fast_config, meal_item):
        """A meal raises glucose after gastric emptying and the rise fades by evening."""
        fasted = app_api.run_simulation([], fast_config)
        fed = app_api.run_simulation([meal_item], fast_config)
        diff = fed.get("glucose") - fasted.get("glucose")
        peak = diff.max()

        assert peak > 0
        assert abs(diff[_index(fed, 500)]) < 0.05 * peak
        peak_minute = fed.minutes[int(np.argmax(diff))]
        assert 516 < peak_minute <= 720
        assert diff[_index(fed, 1200)] < 0.5 * peak


class TestCaffeine:
    def test_interventions_off_matches_empty_day(self, fast_config, caffeine_item):
        """With interventions off a caffeine timeline behaves like an empty one."""
        config = app_api.apply_config_overrides(fast_config, {"debug.enable_interventions": False})
        empty = app_api.run_simulation([], config)
        coffee = app_api.run_simulation([caffeine_item], config)
        for key in ("norepi", "adrenaline", "cortisol"):
            np.testing.assert_array_equal(coffee.get(key), empty.get(key))

    def test_dose_response(self, fast_config):
        """A larger dose drives norepinephrine higher."""
        low = app_api.run_simulation(
            [TimelineItem(id="c", key="caffeine", start_min=480, duration_min=15, params={"mg": 50})], fast_config)
        high = app_api.run_simulation(
            [TimelineItem(id="c", key="caffeine", start_min=480, duration_min=15, params={"mg": 200})], fast_config)
        assert high.get("norepi").max() > low.get("norepi").max()

    def test_caffeine_raises_norepi(self, fast_config, caffeine_item):
        """Caffeine lifts norepinephrine above the empty day after dosing."""
        empty = app_api.run_simulation([], fast_config)
        coffee = app_api.run_simulation([caffeine_item], fast_config)
        window = slice(_index(coffee, 500), _index(coffee, 720))
        assert coffee.get("norepi")[window].max() > empty.get("norepi")[window].max()

    def test_receptor_density_recorded(self, fast_config, caffeine_item):
        """Receptor densities of engaged targets are reported alongside the signals."""
        coffee = app_api.run_simulation([caffeine_item], fast_config)
        density = coffee.get("density:Adenosine_A2a")
        assert len(density) == 288
        assert density[0] == pytest.approx(1.0)
        assert np.all(density > 0)


class TestProjections:
    def test_organ_weight_map(self, fast_config):
        """An ad-hoc organ is the clamped weighted insulin series."""
        result = app_api.run_simulation([], fast_config)
        organs = app_api.compute_organs(result, {"x": {"insulin": 0.8}})
        np.testing.assert_allclose(organs["x"], np.clip(0.8 * result.get("insulin"), -1.0, 1.2))

    def test_arousal_consistency(self, fast_config, caffeine_item):
        """Overall arousal is the sigmoid of the branch difference and sets the state."""
        result = app_api.run_simulation([caffeine_item], fast_config)
        arousal = app_api.compute_arousal(result)
        np.testing.assert_allclose(arousal.overall, sigmoid(arousal.sympathetic - arousal.parasympathetic))
        for minute in (120, 480, 720, 1200):
            components = arousal_at(arousal, minute, fast_config.engine.grid_step_min)
            assert components.state == arousal_state(components.overall)
            assert (components.state == "mobilized") == (components.overall > 0.7)

    def test_meters_in_range(self, fast_config, caffeine_item, meal_item):
        """Every meter stays within its display range."""
        result = app_api.run_simulation([caffeine_item, meal_item], fast_config)
        for key, values in app_api.compute_meters(result).items():
            assert values.min() >= 0.0, key
            assert values.max() <= 1.2, key


class TestToggles:
    def test_receptors_off(self, fast_config, caffeine_item):
        """Receptor densities stay at baseline with receptor modelling off."""
        config = app_api.apply_config_overrides(fast_config, {"debug.enable_receptors": False})
        result = app_api.run_simulation([caffeine_item], config)
        np.testing.assert_array_equal(result.get("density:Adenosine_A2a"), 1.0)

    def test_couplings_off_changes_dynamics(self, fast_config, meal_item):
        """Switching couplings off changes coupled signals."""
        config = app_api.apply_config_overrides(fast_config, {"debug.enable_couplings": False})
        coupled = app_api.run_simulation([meal_item], fast_config)
        uncoupled = app_api.run_simulation([meal_item], config)
        assert not np.array_equal(coupled.get("cortisol"), uncoupled.get("cortisol"))

    def test_condition_shifts_baseline(self, fast_config):
        """An active condition changes the baseline day."""
        config = app_api.apply_config_overrides(fast_config, {"conditions.active": {"depression": 1.0}})
        healthy = app_api.run_simulation([], fast_config)
        depressed = app_api.run_simulation([], config)
        changed = [key for key in SIGNALS_ALL if not np.allclose(healthy.get(key), depressed.get(key))]
        assert changed

    def test_repeat_daily(self, fast_config, caffeine_item):
        """Daily repetition doses again on the second day."""
        config = app_api.apply_config_overrides(fast_config, {"engine.days": 2, "engine.repeat_daily": True})
        single = app_api.apply_config_overrides(fast_config, {"engine.days": 2})
        repeated = app_api.run_simulation([caffeine_item], config)
        once = app_api.run_simulation([caffeine_item], single)
        window = slice(_index(repeated, 1440 + 500), _index(repeated, 1440 + 720))
        assert repeated.get("norepi")[window].max() > once.get("norepi")[window].max()


class TestScenarioRoundTrip:
    def test_round_trip_reproduces_run(self, fast_config, caffeine_item, meal_item):
        """A saved and reloaded scenario produces identical series."""
        scenario = Scenario(
            name="Morning",
            grid_step_min=5,
            items=(caffeine_item, meal_item, TimelineItem(id="alarm", key="wake", start_min=420, duration_min=0)),
            subject=Subject(age=42, weight_kg=80, sex="female"),
        )
        original = app_api.run_scenario(scenario, fast_config)
        restored = app_api.run_scenario(loads(dumps(scenario)), fast_config)

        assert set(restored.series) == set(original.series)
        for key in original.series:
            np.testing.assert_array_equal(restored.get(key), original.get(key))
        for key in original.auxiliary:
            np.testing.assert_array_equal(restored.get(key), original.get(key))


class TestNumericalGuards:
    def test_extreme_gain_stays_finite(self, fast_config, temp_dir):
        """An absurd effect gain with a vanishing onset keeps every series finite."""
        entry = {
            "label": "Overdrive",
            "group": "Test",
            "params": [{"key": "mg", "label": "Dose", "min": 0, "max": 200, "default": 200}],
            "pharmacology": [{
                "molecule": {"name": "Overdrive", "molar_mass": 200.0},
                "pk": {"model": "one-compartment", "half_life_min": 60, "time_to_peak_min": 15},
                "pd": [{"target": "norepi", "ec50": 1e-6, "effect_gain": 1e300, "tau": 1e-9}],
            }],
        }
        (temp_dir / "overdrive.json").write_text(json.dumps(entry))
        engine = SimulationEngine(catalog=InterventionCatalog([builtin_catalog_path(), temp_dir]))
        config = app_api.apply_config_overrides(fast_config, {"debug.enable_couplings": False})
        grid = SimulationGrid(step_min=5, days=1)
        item = TimelineItem(id="x", key="overdrive", start_min=480, duration_min=15)

        baseline = engine.compute(ComputeRequest.build(grid, [], config))
        response = engine.compute(ComputeRequest.build(grid, [item], config))

        for key, values in list(response.series.items()) + list(response.auxiliary.items()):
            assert np.all(np.isfinite(values)), key
        assert not np.array_equal(response.series["norepi"], baseline.series["norepi"])
        for key in SIGNALS_ALL:
            if key != "norepi":
                np.testing.assert_array_equal(response.series[key], baseline.series[key], err_msg=key)
