"""
Progression state machine.

Pure functions mapping (slot state, recorded outcome) to the next slot
state.  Which rule fires is decided here; what a rule does is decided in
apply_rule().  Program-specific behaviour lives in the definition data, so
adding a preset never touches this module.

Rep counts on max-effort sets do not select rules: success/fail is always
an explicit flag.  A rep-driven bonus increment would be a new Rule variant.
"""

import math
from dataclasses import dataclass, replace

from .config import DEFAULT_ROUNDING_STEP, ROUNDING_PRECISION
from .models import (
    AdvanceStage,
    ExerciseSlot,
    IncrementWeight,
    NoChange,
    ResetStage,
    ResultValue,
    Rule,
    SlotState,
)


@dataclass(frozen=True)
class Transition:
    """Result of one state-machine step."""

    state: SlotState
    rule: Rule
    clamped: bool = False  # stage index had to be pulled back onto the ladder


def round_to_nearest(value: float, step: float = DEFAULT_ROUNDING_STEP) -> float:
    """
    Snap a weight to the nearest multiple of ``step`` (halves round up).

    A step of 0 disables snapping.  Negative or non-finite results become 0.

    Examples:
        >>> round_to_nearest(54.0)
        54.0
        >>> round_to_nearest(60 * 0.9 + 0.25)
        54.5
    """
    if not math.isfinite(value):
        return 0.0
    if step > 0:
        value = math.floor(value / step + 0.5) * step
    value = round(value, ROUNDING_PRECISION)
    return value if value > 0 else 0.0


def seed_state(
    slot: ExerciseSlot,
    base_weight: float,
    increment: float,
    rounding: float = DEFAULT_ROUNDING_STEP,
) -> SlotState:
    """
    Initial state for a slot the first time replay meets it.

    weight = base * multiplier - offset * increment, snapped to the rounding
    step after each term.  A plain baseline is snapped too.
    """
    weight = float(base_weight)
    if slot.start_weight_multiplier is not None:
        weight = round_to_nearest(weight * slot.start_weight_multiplier, rounding)
    weight = round_to_nearest(weight - slot.start_weight_offset * increment, rounding)
    return SlotState(stage_index=0, weight=weight)


def select_rule(slot: ExerciseSlot, stage_index: int, result: ResultValue) -> Rule:
    """
    Pick the rule for an outcome.

    success          -> on_success (on_final_stage_success at the last stage, if set)
    fail below last  -> on_mid_stage_fail
    fail at last     -> on_final_stage_fail
    """
    at_last = stage_index >= slot.last_stage_index
    if result == "success":
        if at_last and slot.on_final_stage_success is not None:
            return slot.on_final_stage_success
        return slot.on_success
    if result == "fail":
        return slot.on_final_stage_fail if at_last else slot.on_mid_stage_fail
    raise ValueError(f"Invalid result: {result!r}")


def apply_rule(
    rule: Rule,
    state: SlotState,
    increment: float,
    last_stage_index: int,
    rounding: float = DEFAULT_ROUNDING_STEP,
) -> tuple[SlotState, bool]:
    """
    Apply a rule to a state.

    Args:
        rule: Rule to apply
        state: Current slot state
        increment: Program increment for the exercise (IncrementWeight default)
        last_stage_index: Index of the final stage
        rounding: Deload rounding step

    Returns:
        (new state, clamped) where clamped is True if AdvanceStage was asked
        to go past the last stage
    """
    if isinstance(rule, NoChange):
        return state, False

    if isinstance(rule, IncrementWeight):
        amount = increment if rule.amount is None else rule.amount
        return replace(state, weight=state.weight + amount), False

    if isinstance(rule, AdvanceStage):
        target = state.stage_index + 1
        if target > last_stage_index:
            return replace(state, stage_index=last_stage_index), True
        return replace(state, stage_index=target), False

    if isinstance(rule, ResetStage):
        deload = rule.deload
        if deload.mode == "multiply":
            weight = state.weight * deload.value
        else:
            weight = state.weight + deload.value
        return replace(
            state,
            stage_index=0,
            weight=round_to_nearest(weight, rounding),
        ), False

    raise TypeError(f"Unknown progression rule: {rule!r}")


def next_state(
    slot: ExerciseSlot,
    state: SlotState,
    result: ResultValue,
    increment: float,
    rounding: float = DEFAULT_ROUNDING_STEP,
) -> Transition:
    """
    Advance a slot by one recorded (or assumed) outcome.

    A stage index already beyond the ladder is clamped to the last stage
    before the rule is selected, and the transition is flagged.

    Fail-driven rules other than NoChange mark the state as changed, i.e.
    the slot has left its all-success track.
    """
    last = slot.last_stage_index
    clamped = False
    if state.stage_index > last:
        state = replace(state, stage_index=last)
        clamped = True

    rule = select_rule(slot, state.stage_index, result)
    new_state, rule_clamped = apply_rule(rule, state, increment, last, rounding)

    if result == "fail" and not isinstance(rule, NoChange):
        new_state = replace(new_state, ever_changed=True)

    return Transition(state=new_state, rule=rule, clamped=clamped or rule_clamped)


def apply_test_weight(state: SlotState, weight: float) -> SlotState:
    """
    Replace a test slot's state with an entered weight.

    Test results have no failure outcome: the weight is taken verbatim and
    the stage goes back to 0.
    """
    return SlotState(stage_index=0, weight=float(weight), ever_changed=state.ever_changed)
