"""
Data models for ladder-scheduler.

Program definitions, progression rules, recorded results and the rendered
schedule.  Definitions and results are immutable; the replay engine derives
everything else from them on every render.
"""

import math
from dataclasses import dataclass, field
from typing import Iterator, Literal, Union

from .config import (
    DEFAULT_ROLE,
    DEFAULT_ROUNDING_STEP,
    EFFORT_RATING_MAX,
    EFFORT_RATING_MIN,
    PRESCRIPTION_ROUNDING_STEP,
    RESULT_VALUES,
    ROLES,
)

Role = Literal["primary", "secondary", "accessory"]
ResultValue = Literal["success", "fail"]
DeloadMode = Literal["multiply", "add"]
DiagnosticKind = Literal[
    "unknown_slot",
    "max_effort_not_permitted",
    "effort_rating_not_permitted",
    "test_weight_missing",
    "result_on_test_slot",
    "test_weight_on_standard_slot",
    "stage_clamped",
]


# =============================================================================
# PROGRESSION RULES
# =============================================================================


@dataclass(frozen=True)
class NoChange:
    """Leave stage and weight untouched."""


@dataclass(frozen=True)
class IncrementWeight:
    """
    Add a fixed amount to the working weight.

    ``amount=None`` means "the program's increment for this exercise"
    (ProgramDefinition.weight_increments).
    """

    amount: float | None = None


@dataclass(frozen=True)
class AdvanceStage:
    """Move to the next rung of the stage ladder (never past the last one)."""


@dataclass(frozen=True)
class Deload:
    """
    Weight adjustment applied when a ladder is reset.

    ``multiply`` scales the weight by ``value`` (0.9 = 10% reduction);
    ``add`` adds ``value`` to it.  Some programs reset the ladder with a
    heavier weight, so ``add`` accepts positive amounts.
    """

    mode: DeloadMode
    value: float

    def __post_init__(self) -> None:
        if self.mode not in ("multiply", "add"):
            raise ValueError(f"Invalid deload mode: {self.mode!r}")
        if self.mode == "multiply" and self.value < 0:
            raise ValueError("Deload factor must be non-negative")


@dataclass(frozen=True)
class ResetStage:
    """Return to stage 0 and apply a deload to the weight."""

    deload: Deload


Rule = Union[NoChange, IncrementWeight, AdvanceStage, ResetStage]


# =============================================================================
# PROGRAM DEFINITION
# =============================================================================


@dataclass(frozen=True)
class Stage:
    """One rung of a slot's sets x reps ladder."""

    sets: int
    reps: int
    reps_max: int | None = None  # Rep ceiling for double-progression ranges
    max_effort: bool = False     # Last set is taken to max reps (AMRAP)

    def __post_init__(self) -> None:
        if self.sets <= 0:
            raise ValueError("Stage.sets must be positive")
        if self.reps <= 0:
            raise ValueError("Stage.reps must be positive")
        if self.reps_max is not None and self.reps_max < self.reps:
            raise ValueError("Stage.reps_max must not be below reps")


@dataclass(frozen=True)
class Prescription:
    """One line of a percentage-based slot: ``sets`` x ``reps`` at ``percent`` of a 1RM."""

    percent: float
    reps: int
    sets: int

    def __post_init__(self) -> None:
        if not math.isfinite(self.percent) or self.percent < 0:
            raise ValueError("Prescription.percent must be a finite, non-negative number")
        if self.reps <= 0:
            raise ValueError("Prescription.reps must be positive")
        if self.sets <= 0:
            raise ValueError("Prescription.sets must be positive")


@dataclass(frozen=True)
class ExerciseSlot:
    """
    A position within a recurring day, bound to one exercise and one
    independent progression track.

    ``on_final_stage_success`` replaces ``on_success`` when the slot
    succeeds on its last stage (None = use ``on_success`` everywhere).
    ``start_weight_multiplier`` and ``start_weight_offset`` derive the
    seed weight from the baseline: ``baseline * multiplier - offset * increment``.

    Two slot kinds have no stage ladder progression:

    - prescription slots (``prescriptions`` + ``percent_of``) list fixed
      sets at percentages of the baseline 1RM named by ``percent_of``;
    - GPP slots (``is_gpp``) are unloaded conditioning work taken from
      the first stage.
    """

    id: str
    exercise_id: str
    stages: tuple[Stage, ...]
    on_success: Rule
    on_mid_stage_fail: Rule
    on_final_stage_fail: Rule
    start_weight_key: str
    role: Role = DEFAULT_ROLE  # type: ignore[assignment]
    on_final_stage_success: Rule | None = None
    start_weight_multiplier: float | None = None
    start_weight_offset: float = 0.0
    propagates_to: str | None = None
    is_test_slot: bool = False
    notes: str | None = None
    prescriptions: tuple[Prescription, ...] | None = None
    percent_of: str | None = None
    is_gpp: bool = False

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Invalid role: {self.role!r}. Must be one of {ROLES}")
        if self.propagates_to == "":
            raise ValueError("propagates_to must be a non-empty string")
        if (self.prescriptions is None) != (self.percent_of is None):
            raise ValueError("prescriptions and percent_of must be set together")
        if self.prescriptions is not None and not self.prescriptions:
            raise ValueError("prescriptions must not be empty")
        if self.prescriptions is not None and self.is_gpp:
            raise ValueError("A slot cannot be both a prescription and a GPP slot")
        if self.is_test_slot and (self.prescriptions is not None or self.is_gpp):
            raise ValueError("Test slots cannot carry prescriptions or be GPP slots")

    @property
    def last_stage_index(self) -> int:
        """Index of the final stage of the ladder."""
        return len(self.stages) - 1

    @property
    def is_prescription(self) -> bool:
        return self.prescriptions is not None

    @property
    def is_progressive(self) -> bool:
        """False for slots rendered without the stage ladder state machine."""
        return not (self.is_prescription or self.is_gpp)


@dataclass(frozen=True)
class Day:
    """A named recurring training day."""

    name: str
    slots: tuple[ExerciseSlot, ...]


@dataclass(frozen=True)
class ProgramDefinition:
    """
    Static description of a program.

    Days cycle to fill ``total_workouts`` (a partial final cycle is fine).
    ``exercises`` maps exercise ids to display names.  ``rounding`` snaps
    ladder weights, ``prescription_rounding`` snaps percentage-based sets.
    """

    id: str
    name: str
    exercises: dict[str, str]
    days: tuple[Day, ...]
    total_workouts: int
    weight_increments: dict[str, float] = field(default_factory=dict)
    rounding: float = DEFAULT_ROUNDING_STEP
    description: str = ""
    prescription_rounding: float = PRESCRIPTION_ROUNDING_STEP

    def iter_slots(self) -> Iterator[ExerciseSlot]:
        """Yield every slot of every day in definition order."""
        for day in self.days:
            yield from day.slots

    def increment_for(self, exercise_id: str) -> float:
        """Return the default weight increment for an exercise (0 if unset)."""
        return float(self.weight_increments.get(exercise_id, 0.0))


# =============================================================================
# RECORDED RESULTS
# =============================================================================


@dataclass(frozen=True)
class ResultEntry:
    """
    What the user recorded for one slot of one workout.

    ``result`` drives progression for standard slots.  ``test_weight`` is the
    weight entered for a test slot.  ``max_effort_reps`` and
    ``effort_rating`` are carried through for statistics only.
    """

    result: ResultValue | None = None
    max_effort_reps: int | None = None
    effort_rating: float | None = None
    test_weight: float | None = None

    def __post_init__(self) -> None:
        if self.result is not None and self.result not in RESULT_VALUES:
            raise ValueError(f"Invalid result: {self.result!r}")
        if self.max_effort_reps is not None and self.max_effort_reps < 0:
            raise ValueError("max_effort_reps must be non-negative")
        if self.effort_rating is not None and not (
            EFFORT_RATING_MIN <= self.effort_rating <= EFFORT_RATING_MAX
        ):
            raise ValueError(
                f"effort_rating must be between {EFFORT_RATING_MIN} and {EFFORT_RATING_MAX}"
            )
        if self.test_weight is not None and (
            not math.isfinite(self.test_weight) or self.test_weight < 0
        ):
            raise ValueError("test_weight must be a finite, non-negative number")

    def is_empty(self) -> bool:
        """True when no field is set."""
        return (
            self.result is None
            and self.max_effort_reps is None
            and self.effort_rating is None
            and self.test_weight is None
        )


RESULT_FIELDS: tuple[str, ...] = ("result", "max_effort_reps", "effort_rating", "test_weight")


class ResultLog:
    """
    Sparse mapping: workout index -> slot id -> ResultEntry.

    Cells are only ever replaced or removed as a whole; entries are frozen.
    Workouts with no remaining cells are dropped so that an emptied log
    compares equal to a fresh one.
    """

    def __init__(self, entries: dict[int, dict[str, ResultEntry]] | None = None):
        self._entries: dict[int, dict[str, ResultEntry]] = {}
        for index, cells in (entries or {}).items():
            for slot_id, entry in cells.items():
                self.put(index, slot_id, entry)

    def get(self, index: int, slot_id: str) -> ResultEntry | None:
        """Return the entry for (index, slot_id), or None."""
        return self._entries.get(index, {}).get(slot_id)

    def workout(self, index: int) -> dict[str, ResultEntry]:
        """Return a copy of all cells recorded for a workout."""
        return dict(self._entries.get(index, {}))

    def put(self, index: int, slot_id: str, entry: ResultEntry | None) -> None:
        """Replace a cell; ``None`` or an empty entry removes it."""
        if index < 0:
            raise ValueError("workout index must be non-negative")
        if entry is None or entry.is_empty():
            cells = self._entries.get(index)
            if cells is not None:
                cells.pop(slot_id, None)
                if not cells:
                    del self._entries[index]
            return
        self._entries.setdefault(index, {})[slot_id] = entry

    def indices(self) -> list[int]:
        """Sorted workout indices that hold at least one cell."""
        return sorted(self._entries)

    def to_dict(self) -> dict[int, dict[str, ResultEntry]]:
        """Deep copy of the underlying mapping."""
        return {i: dict(cells) for i, cells in self._entries.items()}

    def copy(self) -> "ResultLog":
        return ResultLog(self.to_dict())

    def __len__(self) -> int:
        return sum(len(cells) for cells in self._entries.values())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResultLog):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"ResultLog({self._entries!r})"


# =============================================================================
# REPLAY STATE AND OUTPUT
# =============================================================================


@dataclass(frozen=True)
class SlotState:
    """Runtime progression state of one slot id."""

    stage_index: int
    weight: float
    ever_changed: bool = False


@dataclass(frozen=True)
class ResolvedPrescription:
    """A Prescription with its weight worked out from the 1RM."""

    percent: float
    reps: int
    sets: int
    weight: float


@dataclass(frozen=True)
class SlotRow:
    """
    One slot as rendered in one workout.

    Prescription slots carry every resolved line in ``prescriptions``; the
    top-level weight, sets and reps repeat the last (working) line.
    """

    slot_id: str
    exercise_id: str
    exercise_name: str
    role: Role
    weight: float
    stage: int
    stages_count: int
    sets: int
    reps: int
    reps_max: int | None
    max_effort: bool
    committed: bool
    result: ResultValue | None = None
    max_effort_reps: int | None = None
    effort_rating: float | None = None
    test_weight: float | None = None
    is_changed: bool = False
    is_deload: bool = False
    is_test_slot: bool = False
    propagates_to: str | None = None
    notes: str | None = None
    prescriptions: tuple[ResolvedPrescription, ...] | None = None
    is_gpp: bool = False

    @property
    def is_forecast(self) -> bool:
        return not self.committed

    @property
    def is_progressive(self) -> bool:
        return self.prescriptions is None and not self.is_gpp


@dataclass(frozen=True)
class WorkoutRow:
    """One workout of the schedule."""

    index: int
    day_name: str
    slots: tuple[SlotRow, ...]

    @property
    def is_changed(self) -> bool:
        """True if any slot has left its success-only track."""
        return any(s.is_changed for s in self.slots)

    @property
    def is_committed(self) -> bool:
        """True when every slot has an explicit result."""
        return all(s.committed for s in self.slots)

    def slot(self, slot_id: str) -> SlotRow | None:
        for s in self.slots:
            if s.slot_id == slot_id:
                return s
        return None


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal problem found while replaying."""

    kind: DiagnosticKind
    index: int
    slot_id: str
    message: str


@dataclass(frozen=True)
class Schedule:
    """Replay output: rows, the first workout still pending, and diagnostics."""

    rows: tuple[WorkoutRow, ...]
    first_pending_idx: int | None
    diagnostics: tuple[Diagnostic, ...] = ()


# =============================================================================
# UNDO
# =============================================================================


class _Absent:
    """Marker for "this field had no value before the mutation"."""

    _instance: "_Absent | None" = None

    def __new__(cls) -> "_Absent":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()


@dataclass(frozen=True)
class UndoEntry:
    """
    Inverse of one mutation.

    ``prior`` maps each overwritten field of the (index, slot_id) cell to its
    value before the mutation, or ABSENT when it was unset.
    """

    index: int
    slot_id: str
    prior: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        unknown = set(self.prior) - set(RESULT_FIELDS)
        if unknown:
            raise ValueError(f"UndoEntry has unknown fields: {sorted(unknown)}")
