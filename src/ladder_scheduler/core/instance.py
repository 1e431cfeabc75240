"""
Program instance: one user's run through one program.

Bundles the immutable inputs (definition, baseline) with the mutable result
log and its undo stack, and checks that mutations target a slot that
actually exists at that workout.
"""

from .config import EFFORT_RATING_ROLES
from .definition import day_for_index, validate_definition
from .models import (
    ExerciseSlot,
    ProgramDefinition,
    ResultLog,
    ResultValue,
    Schedule,
    UndoEntry,
)
from .replay import compute_schedule
from . import undo as undo_ops
from .undo import UndoLog, UndoOutcome


class ProgramInstance:
    """
    A program definition plus baseline weights, results and undo history.

    The definition and baseline are fixed for the lifetime of the instance.
    """

    def __init__(
        self,
        definition: ProgramDefinition,
        baseline: dict[str, float | str],
        results: ResultLog | None = None,
        undo_log: UndoLog | None = None,
    ):
        validate_definition(definition, baseline)
        self.definition = definition
        self.baseline: dict[str, float | str] = dict(baseline)
        self.results = results if results is not None else ResultLog()
        self.undo_log = undo_log if undo_log is not None else UndoLog()

    def schedule(self) -> Schedule:
        """Replay the whole program from the current result log."""
        return compute_schedule(self.definition, self.baseline, self.results)

    def _slot_at(self, index: int, slot_id: str) -> ExerciseSlot:
        """
        Return the slot with this id on the day of this workout.

        Raises:
            ValueError: If the index is out of range or the slot is not on that day
        """
        if not 0 <= index < self.definition.total_workouts:
            raise ValueError(
                f"Workout index {index} out of range (0-{self.definition.total_workouts - 1})"
            )
        day = day_for_index(self.definition, index)
        for slot in day.slots:
            if slot.id == slot_id:
                return slot
        valid = ", ".join(s.id for s in day.slots)
        raise ValueError(
            f"Slot '{slot_id}' is not part of workout {index} ('{day.name}'). Valid slots: {valid}"
        )

    def record_result(self, index: int, slot_id: str, result: ResultValue) -> UndoEntry:
        """Record success/fail for a standard slot."""
        slot = self._slot_at(index, slot_id)
        if slot.is_test_slot:
            raise ValueError(f"Slot '{slot_id}' is a test slot; record a weight instead")
        return undo_ops.record_result(self.results, self.undo_log, index, slot_id, result)

    def record_test_weight(self, index: int, slot_id: str, weight: float) -> UndoEntry:
        """Record the weight achieved on a test slot."""
        slot = self._slot_at(index, slot_id)
        if not slot.is_test_slot:
            raise ValueError(f"Slot '{slot_id}' is not a test slot")
        return undo_ops.record_test_weight(self.results, self.undo_log, index, slot_id, weight)

    def set_max_effort_reps(self, index: int, slot_id: str, reps: int | None) -> UndoEntry:
        """Set or clear the rep count of a max-effort set."""
        self._slot_at(index, slot_id)
        return undo_ops.set_max_effort_reps(self.results, self.undo_log, index, slot_id, reps)

    def set_effort_rating(self, index: int, slot_id: str, rating: float | None) -> UndoEntry:
        """Set or clear the effort rating of a primary slot."""
        slot = self._slot_at(index, slot_id)
        if rating is not None and slot.role not in EFFORT_RATING_ROLES:
            raise ValueError(f"Effort ratings are only recorded on primary slots ('{slot_id}' is {slot.role})")
        return undo_ops.set_effort_rating(self.results, self.undo_log, index, slot_id, rating)

    def delete_result(self, index: int, slot_id: str) -> UndoEntry | None:
        """Remove everything recorded for one slot of one workout."""
        return undo_ops.delete_result(self.results, self.undo_log, index, slot_id)

    def undo_last(self) -> UndoOutcome:
        """Revert the most recent mutation; a no-op on an empty history."""
        return self.undo_log.undo_last(self.results)
