"""
Undo log and the result-log mutation API.

Every mutation captures the exact prior value of each field it is about to
overwrite (ABSENT when the field was unset) and pushes one UndoEntry before
writing.  Undo pops the newest entry and writes those values straight back;
it never replays the program.  Callers re-run the replay engine afterwards.
"""

from dataclasses import dataclass, replace

from .models import (
    ABSENT,
    RESULT_FIELDS,
    ResultEntry,
    ResultLog,
    ResultValue,
    UndoEntry,
)


@dataclass(frozen=True)
class UndoOutcome:
    """What undo_last() did.  ``applied`` is False on an empty stack."""

    applied: bool
    entry: UndoEntry | None = None
    message: str = ""


class UndoLog:
    """
    Strict LIFO stack of UndoEntry records for one program instance.

    No capacity bound: the stack holds one entry per mutation ever made.
    """

    def __init__(self, entries: list[UndoEntry] | None = None):
        self._entries: list[UndoEntry] = list(entries or [])

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> list[UndoEntry]:
        """Oldest-first copy of the stack."""
        return list(self._entries)

    def peek(self) -> UndoEntry | None:
        """Newest entry, or None."""
        return self._entries[-1] if self._entries else None

    def push(self, entry: UndoEntry) -> None:
        self._entries.append(entry)

    def capture(
        self,
        results: ResultLog,
        index: int,
        slot_id: str,
        fields: tuple[str, ...],
    ) -> UndoEntry:
        """Snapshot the given fields of a cell and push the inverse entry."""
        current = results.get(index, slot_id)
        prior: dict = {}
        for name in fields:
            value = getattr(current, name) if current is not None else None
            prior[name] = ABSENT if value is None else value
        entry = UndoEntry(index=index, slot_id=slot_id, prior=prior)
        self.push(entry)
        return entry

    def undo_last(self, results: ResultLog) -> UndoOutcome:
        """
        Revert the newest mutation by direct overwrite.

        An empty stack is a reported no-op, not an error.
        """
        if not self._entries:
            return UndoOutcome(applied=False, message="Nothing to undo")

        entry = self._entries.pop()
        current = results.get(entry.index, entry.slot_id) or ResultEntry()
        restored = replace(
            current,
            **{name: (None if value is ABSENT else value) for name, value in entry.prior.items()},
        )
        results.put(entry.index, entry.slot_id, restored)
        return UndoOutcome(applied=True, entry=entry)


def _write_field(
    results: ResultLog,
    undo: UndoLog,
    index: int,
    slot_id: str,
    name: str,
    value: object,
) -> UndoEntry:
    if index < 0:
        raise ValueError("workout index must be non-negative")
    current = results.get(index, slot_id) or ResultEntry()
    updated = replace(current, **{name: value})  # validates before anything is pushed
    entry = undo.capture(results, index, slot_id, (name,))
    results.put(index, slot_id, updated)
    return entry


def record_result(
    results: ResultLog,
    undo: UndoLog,
    index: int,
    slot_id: str,
    result: ResultValue,
) -> UndoEntry:
    """Set success/fail for a cell."""
    if result not in ("success", "fail"):
        raise ValueError(f"Invalid result: {result!r}")
    return _write_field(results, undo, index, slot_id, "result", result)


def set_max_effort_reps(
    results: ResultLog,
    undo: UndoLog,
    index: int,
    slot_id: str,
    reps: int | None,
) -> UndoEntry:
    """Set (or clear, with None) the max-effort rep count of a cell."""
    return _write_field(results, undo, index, slot_id, "max_effort_reps", reps)


def set_effort_rating(
    results: ResultLog,
    undo: UndoLog,
    index: int,
    slot_id: str,
    rating: float | None,
) -> UndoEntry:
    """Set (or clear, with None) the effort rating of a cell."""
    return _write_field(results, undo, index, slot_id, "effort_rating", rating)


def record_test_weight(
    results: ResultLog,
    undo: UndoLog,
    index: int,
    slot_id: str,
    weight: float,
) -> UndoEntry:
    """Record the weight achieved on a test slot."""
    return _write_field(results, undo, index, slot_id, "test_weight", float(weight))


def delete_result(
    results: ResultLog,
    undo: UndoLog,
    index: int,
    slot_id: str,
) -> UndoEntry | None:
    """
    Remove a whole cell.

    Returns:
        The pushed UndoEntry, or None if there was nothing to delete (no
        entry is pushed for a no-op)
    """
    if results.get(index, slot_id) is None:
        return None
    entry = undo.capture(results, index, slot_id, RESULT_FIELDS)
    results.put(index, slot_id, None)
    return entry
