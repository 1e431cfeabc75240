"""
Cross-stage weight propagation.

A test slot's recorded weight can seed another block's baseline.  The
target baseline lives in the replay's own copy of the configuration, so
only slots seeded after the test workout ever see the new value.
"""

from .models import ExerciseSlot


def propagate(
    baseline: dict[str, float | str],
    slot: ExerciseSlot,
    weight: float,
) -> str | None:
    """
    Write a test result into the baseline named by ``slot.propagates_to``.

    Args:
        baseline: Replay-local baseline copy (mutated in place)
        slot: The test slot whose result was applied
        weight: Resolved test weight

    Returns:
        The baseline key written, or None for a terminal test slot
    """
    if slot.propagates_to is None:
        return None
    baseline[slot.propagates_to] = float(weight)
    return slot.propagates_to
