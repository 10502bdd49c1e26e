"""Tests for the intervention catalog."""

import json
from pathlib import Path

import pytest

from physiosim.catalog import (
    InterventionCatalog,
    JsonReader,
    TomlReader,
    YamlReader,
    get_catalog,
    get_factory,
    list_factories,
)
from physiosim.catalog.factories import gastric_delay, glycemic_factor
from physiosim.contracts.errors import ConfigurationError, ValidationError
from physiosim.domain.subject import Subject

BUILTIN_KEYS = [
    "food", "wake", "sleep", "nap", "exercise_cardio", "exercise_resistance",
    "exercise_hiit", "alcohol", "social", "meditation", "caffeine", "melatonin",
    "ltheanine", "ltyrosine", "dopa_mucuna", "p5p", "methylphenidate",
]

STATIC_ENTRY = {
    "label": "Test stimulant",
    "group": "Test",
    "params": [{"key": "mg", "label": "Dose", "min": 0, "max": 200, "default": 50}],
    "pharmacology": [{
        "molecule": {"name": "Stim", "molar_mass": 200.0},
        "pk": {"model": "one-compartment", "half_life_min": 120, "time_to_peak_min": 30},
        "pd": [{"target": "norepi", "ec50": 1.0, "effect_gain": 50.0}],
    }],
}


class TestBuiltinCatalog:
    """Test the built-in catalog data."""

    def test_all_interventions_present(self):
        """Test every built-in intervention loads."""
        catalog = get_catalog()
        for key in BUILTIN_KEYS:
            assert key in catalog

    def test_unknown_intervention(self):
        """Test unknown keys raise a validation error listing the catalog."""
        with pytest.raises(ValidationError, match="Unknown intervention: espresso_martini") as exc_info:
            get_catalog().get("espresso_martini")
        assert "caffeine" in exc_info.value.details["available"]

    def test_groups(self):
        """Test interventions are grouped for the palette."""
        catalog = get_catalog()
        assert "Supplements" in catalog.list_groups()
        assert "caffeine" in catalog.list_interventions("Supplements")
        assert sum(catalog.get_stats().values()) == len(catalog)

    def test_validate_all_clean(self):
        """Test re-validation of built-in entries reports nothing."""
        assert get_catalog().validate_all() == {}

    def test_caffeine_resolves_to_adenosine_antagonism(self):
        """Test caffeine pharmacology targets adenosine receptors."""
        entry = get_catalog().get("caffeine")
        blocks = entry.build_pharmacology({"mg": 100})
        targets = {effect.target: effect.mechanism for effect in blocks[0].pd}
        assert targets["Adenosine_A2a"] == "antagonist"
        assert targets["Adenosine_A1"] == "antagonist"


class TestParameters:
    """Test parameter schema handling."""

    def test_defaults_filled(self):
        """Test missing parameters take their defaults."""
        entry = get_catalog().get("caffeine")
        assert entry.clamp_params({}) == {"mg": 100}

    def test_out_of_range_clamped(self):
        """Test out-of-range slider values are clamped to bounds."""
        entry = get_catalog().get("caffeine")
        assert entry.clamp_params({"mg": 10000})["mg"] == 400
        assert entry.clamp_params({"mg": -5})["mg"] == 0

    def test_unknown_select_option(self):
        """Test unknown select options fall back to the default."""
        entry = get_catalog().get("food")
        assert entry.clamp_params({"temperature": "lukewarm"})["temperature"] == "warm"

    def test_unknown_params_pass_through(self):
        """Test parameters without schema entries are kept."""
        entry = get_catalog().get("caffeine")
        assert entry.clamp_params({"brand": "house"})["brand"] == "house"


class TestFactories:
    """Test parameterised pharmacology factories."""

    def test_registered_factories(self):
        """Test every factory referenced by the catalog is registered."""
        factories = list_factories()
        for name in ("meal", "exercise_cardio", "exercise_resistance", "exercise_hiit", "nap", "alcohol"):
            assert name in factories

    def test_unknown_factory(self):
        """Test looking up an unknown factory."""
        with pytest.raises(ConfigurationError, match="Unknown pharmacology factory"):
            get_factory("teleport")

    def test_gastric_delay_formula(self):
        """Test gastric delay from fat, fiber and water."""
        assert gastric_delay(20, 2, 3, 200) == pytest.approx(15 + 18 + 4 + 1.5 - 2)
        assert gastric_delay(0, 0, 0, 5000) == 5.0
        assert gastric_delay(200, 20, 20, 0) == 150.0

    def test_glycemic_factor_bounds(self):
        """Test the glycemic factor stays within [0.25, 1]."""
        assert glycemic_factor(5, "cold", 0) == 0.25
        assert glycemic_factor(120, "room", 1000) == 1.0

    def test_meal_without_fat_has_no_lipid_agent(self):
        """Test meal agents follow the macronutrients present."""
        blocks = get_factory("meal")({"carbSugar": 30, "carbStarch": 0, "fat": 0, "protein": 0}, Subject())
        names = [block.molecule.name for block in blocks]
        assert names == ["Glucose"]

    def test_alcohol_dose_from_units(self):
        """Test alcohol dose is 8 g per unit."""
        blocks = get_factory("alcohol")({"units": 2}, Subject())
        assert blocks[0].pk.dose_mg == 16000.0
        assert blocks[0].pk.model == "michaelis-menten"

    def test_exercise_scales_with_intensity(self):
        """Test exercise effect gains scale with intensity."""
        low = get_factory("exercise_cardio")({"intensity": 0.5}, Subject())[0]
        high = get_factory("exercise_cardio")({"intensity": 1.0}, Subject())[0]
        for a, b in zip(low.pd, high.pd):
            assert a.effect_gain == pytest.approx(0.5 * b.effect_gain)


class TestCatalogLoading:
    """Test loading catalog files from disk."""

    def test_readers(self, temp_dir: Path):
        """Test reader selection by file extension."""
        assert TomlReader().can_read(temp_dir / "a.toml")
        assert YamlReader().can_read(temp_dir / "a.yaml")
        assert YamlReader().can_read(temp_dir / "a.YML")
        assert JsonReader().can_read(temp_dir / "a.json")
        assert not JsonReader().can_read(temp_dir / "a.toml")

    def test_load_json_entry(self, temp_dir: Path):
        """Test a single-entry JSON file named after its key."""
        (temp_dir / "stim.json").write_text(json.dumps(STATIC_ENTRY))

        catalog = InterventionCatalog([temp_dir])

        assert "stim" in catalog
        assert catalog.get("stim").label == "Test stimulant"
        assert catalog.source_of("stim") == temp_dir / "stim.json"

    def test_load_yaml_collection(self, temp_dir: Path):
        """Test a YAML file with an entries table."""
        (temp_dir / "extra.yaml").write_text(
            "entries:\n"
            "  breathwork:\n"
            "    label: Breathwork\n"
            "    pharmacology:\n"
            "      - pk: {model: activity-dependent}\n"
            "        pd:\n"
            "          - {target: vagal, effect_gain: 0.2}\n"
        )

        catalog = InterventionCatalog([temp_dir])
        assert catalog.get("breathwork").pharmacology[0].pk.is_activity

    def test_unknown_target_fails_at_load(self, temp_dir: Path):
        """Test a typo in a PD target is a configuration error at load time."""
        entry = json.loads(json.dumps(STATIC_ENTRY))
        entry["pharmacology"][0]["pd"][0]["target"] = "Dopamine_D9"
        (temp_dir / "typo.json").write_text(json.dumps(entry))

        with pytest.raises(ConfigurationError, match="unknown pharmacological target 'Dopamine_D9'"):
            InterventionCatalog([temp_dir])

    def test_missing_pk_fields(self, temp_dir: Path):
        """Test a one-compartment model without half-life is rejected."""
        entry = json.loads(json.dumps(STATIC_ENTRY))
        del entry["pharmacology"][0]["pk"]["half_life_min"]
        (temp_dir / "broken.json").write_text(json.dumps(entry))

        with pytest.raises(ConfigurationError, match="Invalid intervention 'broken'"):
            InterventionCatalog([temp_dir])

    def test_malformed_file(self, temp_dir: Path):
        """Test unreadable files raise a configuration error."""
        (temp_dir / "bad.toml").write_text("[[[ not toml")

        with pytest.raises(ConfigurationError, match="Failed to read catalog file"):
            InterventionCatalog([temp_dir])

    def test_later_paths_override(self, temp_dir: Path):
        """Test user catalogs replace built-in entries with the same key."""
        from physiosim.catalog.base import builtin_catalog_path

        override = dict(STATIC_ENTRY, label="Decaf")
        (temp_dir / "caffeine.json").write_text(json.dumps(override))

        catalog = InterventionCatalog([builtin_catalog_path(), temp_dir])
        assert catalog.get("caffeine").label == "Decaf"
        assert "food" in catalog
