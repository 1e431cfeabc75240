"""
Configuration constants for the progression engine.

All adjustable defaults are centralized here.  User-level overrides for
the settings that make sense to change per machine are read from
``settings.yaml`` by core/engine/config_loader.py.
"""

from typing import Final

# =============================================================================
# WEIGHT ROUNDING
# =============================================================================

DEFAULT_ROUNDING_STEP: Final[float] = 0.5  # Plate granularity for deloads and seeding
ROUNDING_PRECISION: Final[int] = 3  # Decimal places kept after snapping (67.4999 -> 67.5)
PRESCRIPTION_ROUNDING_STEP: Final[float] = 2.5  # Percentage-of-1RM sets snap to plate pairs

# =============================================================================
# SLOT ROLES
# =============================================================================

ROLES: Final[tuple[str, ...]] = ("primary", "secondary", "accessory")
DEFAULT_ROLE: Final[str] = "accessory"

# Roles whose results may carry an effort rating (RPE)
EFFORT_RATING_ROLES: Final[frozenset[str]] = frozenset({"primary"})

# =============================================================================
# RESULT VALUES
# =============================================================================

RESULT_VALUES: Final[tuple[str, ...]] = ("success", "fail")

EFFORT_RATING_MIN: Final[int] = 1
EFFORT_RATING_MAX: Final[int] = 10

# =============================================================================
# STORAGE
# =============================================================================

DATA_DIR_NAME: Final[str] = ".ladder-scheduler"
HOME_ENV_VAR: Final[str] = "LADDER_SCHEDULER_HOME"
DEFAULT_INSTANCE_NAME: Final[str] = "default"
