"""
Program definition queries and structural validation.

Validation runs once before replay.  It only checks what replay needs to be
correct; authoring rules (sensible increments, reasonable ladders) belong to
whatever produced the definition.
"""

import math

from .errors import ConfigurationError
from .models import Day, ProgramDefinition


def day_for_index(definition: ProgramDefinition, index: int) -> Day:
    """
    Return the recurring day that applies to a workout index.

    Days cycle: ``days[index mod len(days)]``.
    """
    if index < 0:
        raise ValueError(f"workout index must be non-negative, got {index}")
    return definition.days[index % len(definition.days)]


def baseline_value(baseline: dict[str, float | str], key: str) -> float:
    """
    Read a numeric baseline entry.

    Numeric strings are accepted (stored configs may hold "60").

    Raises:
        ConfigurationError: If the key is missing or not a finite number
    """
    if key not in baseline:
        raise ConfigurationError(f"Baseline weight '{key}' is not configured")
    raw = baseline[key]
    if isinstance(raw, bool):
        raise ConfigurationError(f"Baseline weight '{key}' must be a number, got {raw!r}")
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Baseline weight '{key}' must be a number, got {raw!r}"
        ) from e
    if not math.isfinite(value):
        raise ConfigurationError(f"Baseline weight '{key}' must be finite, got {raw!r}")
    return value


def validate_definition(
    definition: ProgramDefinition,
    baseline: dict[str, float | str],
) -> None:
    """
    Check the structural invariants replay depends on.

    Args:
        definition: Program to validate
        baseline: Baseline weights keyed by start_weight_key

    Raises:
        ConfigurationError: On duplicate slot ids, empty stage ladders,
            unknown exercises, missing or non-numeric baselines, no days,
            or a negative workout count

    GPP slots need no baseline; prescription slots need the 1RM named by
    ``percent_of`` instead of ``start_weight_key``.
    """
    if not definition.days:
        raise ConfigurationError(f"Program '{definition.id}' has no days")
    if definition.total_workouts < 0:
        raise ConfigurationError(
            f"total_workouts must be non-negative, got {definition.total_workouts}"
        )
    if definition.rounding < 0:
        raise ConfigurationError(f"rounding must be non-negative, got {definition.rounding}")
    if definition.prescription_rounding < 0:
        raise ConfigurationError(
            f"prescription_rounding must be non-negative, got {definition.prescription_rounding}"
        )

    seen: set[str] = set()
    for day in definition.days:
        for slot in day.slots:
            if slot.id in seen:
                raise ConfigurationError(
                    f"Duplicate slot id '{slot.id}' (day '{day.name}')"
                )
            seen.add(slot.id)

            # Prescription slots are driven by their own set list
            if not slot.stages and not slot.is_prescription:
                raise ConfigurationError(f"Slot '{slot.id}' has no stages")

            if slot.exercise_id not in definition.exercises:
                raise ConfigurationError(
                    f"Slot '{slot.id}' uses unknown exercise '{slot.exercise_id}'"
                )

            # Raises on missing / non-numeric entries
            if slot.is_prescription:
                baseline_value(baseline, slot.percent_of)
            elif not slot.is_gpp:
                baseline_value(baseline, slot.start_weight_key)


def required_baseline_keys(definition: ProgramDefinition) -> list[str]:
    """Sorted baseline keys a program reads (GPP slots read none)."""
    keys: set[str] = set()
    for slot in definition.iter_slots():
        if slot.is_prescription:
            keys.add(slot.percent_of)
        elif not slot.is_gpp:
            keys.add(slot.start_weight_key)
    return sorted(keys)
