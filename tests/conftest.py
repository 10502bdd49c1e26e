"""Pytest configuration and fixtures."""

import sys
import tempfile
from pathlib import Path
from typing import Dict, Any

SRC_ROOT = Path(__file__).resolve().parents[1] / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

import pytest
import structlog

from physiosim.config import AppConfig
from physiosim.contracts.types import TimelineItem


@pytest.fixture(autouse=True)
def reset_structlog():
    """Restore structlog defaults after each test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def temp_dir():
    """Temporary directory for test artifacts."""
    with tempfile.TemporaryDirectory() as tmp:
        yield Path(tmp)


@pytest.fixture
def sample_config() -> AppConfig:
    """Sample configuration for testing."""
    return AppConfig()


@pytest.fixture
def fast_config() -> AppConfig:
    """One day at 5 minute resolution with a short warm-up."""
    return AppConfig(engine={
        "grid_step_min": 5.0,
        "days": 1.0,
        "warmup_min": 240.0,
        "max_substep_min": 1.0,
    })


@pytest.fixture
def sample_config_dict() -> Dict[str, Any]:
    """Sample configuration as dictionary."""
    return {
        "engine": {
            "grid_step_min": 2.0,
            "days": 1.0,
            "warmup_min": 1440.0,
        },
        "debug": {
            "enable_couplings": False,
        },
        "subject": {
            "age": 42,
            "weight_kg": 80,
            "sex": "female",
        },
        "conditions": {
            "active": {"depression": 0.5},
        },
    }


@pytest.fixture
def sample_toml_config(temp_dir: Path) -> Path:
    """Sample TOML configuration file."""
    config_content = """
[engine]
grid_step_min = 2.0
days = 1.0
warmup_min = 1440.0
max_substep_min = 1.0

[debug]
enable_couplings = false

[subject]
age = 42
weight_kg = 80
height_cm = 168
sex = "female"

[conditions.active]
depression = 0.5

[projections]
top_n = 4
"""

    config_file = temp_dir / "test_config.toml"
    config_file.write_text(config_content)
    return config_file


@pytest.fixture
def caffeine_item() -> TimelineItem:
    """100 mg caffeine at 08:00."""
    return TimelineItem(id="coffee", key="caffeine", start_min=480, duration_min=15, params={"mg": 100})


@pytest.fixture
def meal_item() -> TimelineItem:
    """Default meal at 08:00."""
    return TimelineItem(id="breakfast", key="food", start_min=480, duration_min=30)
