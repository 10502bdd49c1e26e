"""Global constants for physiosim."""

from __future__ import annotations

# Time grid
DEFAULT_GRID_STEP_MIN = 5.0
DEFAULT_DAYS = 1.0
MINUTES_PER_DAY = 1440

# Integrator
DEFAULT_WARMUP_MIN = 1440.0
DEFAULT_MAX_SUBSTEP_MIN = 1.0
TAU_FLOOR_MIN = 0.1
AUX_MIN = 0.0
AUX_MAX = 2.0

# Circadian clock: wake is aligned to 08:00
REFERENCE_WAKE_MIN = 480.0

# Michaelis-Menten solver defaults
DEFAULT_MM_METHOD = "LSODA"
DEFAULT_MM_RTOL = 1e-6
DEFAULT_MM_ATOL = 1e-9

# Projections
DEFAULT_TOP_N = 3
MOBILIZED_THRESHOLD = 0.7
DORSAL_THRESHOLD = 0.3

# Interventions that put the subject to sleep and set the wake time
SLEEP_KEYS = ("sleep", "nap")
WAKE_KEY = "wake"
