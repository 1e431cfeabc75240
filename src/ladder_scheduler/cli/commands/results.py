"""Result commands: record, test-weight, max-effort, effort, delete, undo."""

from typing import Annotated, Callable, Optional

import typer

from ...core.instance import ProgramInstance
from .. import views
from ..app import InstanceNameOption, InstancePathOption, app, get_store, load_instance

WorkoutArg = Annotated[int, typer.Argument(help="Workout number (1-based, as shown by 'schedule')")]
SlotArg = Annotated[str, typer.Argument(help="Slot id, e.g. d1-t1")]


def _mutate(
    instance_path,
    instance_name,
    action: Callable[[ProgramInstance], object],
) -> ProgramInstance:
    """Load, apply one mutation, save.  ValueErrors become CLI errors."""
    store = get_store(instance_path, instance_name)
    instance = load_instance(store)
    try:
        action(instance)
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    store.save_instance(instance)
    return instance


def _index(workout: int) -> int:
    if workout < 1:
        views.print_error("Workout numbers start at 1")
        raise typer.Exit(1)
    return workout - 1


@app.command()
def record(
    workout: WorkoutArg,
    slot_id: SlotArg,
    result: Annotated[str, typer.Argument(help="success | fail (s | f)")],
    max_effort_reps: Annotated[
        Optional[int],
        typer.Option("--reps", "-r", help="Reps on the max-effort set"),
    ] = None,
    effort: Annotated[
        Optional[float],
        typer.Option("--effort", "-e", help="Effort rating 1-10 (primary slots)"),
    ] = None,
    instance_path: InstancePathOption = None,
    instance_name: InstanceNameOption = None,
) -> None:
    """
    Record success or failure for a slot.

    Each recorded field is a separate undo step.
    """
    outcome = {"s": "success", "success": "success", "f": "fail", "fail": "fail"}.get(result.lower())
    if outcome is None:
        views.print_error(f"Invalid result: {result!r}. Use success or fail.")
        raise typer.Exit(1)
    index = _index(workout)

    def action(instance: ProgramInstance) -> None:
        instance.record_result(index, slot_id, outcome)  # type: ignore[arg-type]
        if max_effort_reps is not None:
            instance.set_max_effort_reps(index, slot_id, max_effort_reps)
        if effort is not None:
            instance.set_effort_rating(index, slot_id, effort)

    _mutate(instance_path, instance_name, action)
    views.print_success(f"Recorded {outcome} for {slot_id} in workout #{workout}")


@app.command("test-weight")
def test_weight(
    workout: WorkoutArg,
    slot_id: SlotArg,
    weight: Annotated[float, typer.Argument(help="Weight achieved (kg)")],
    instance_path: InstancePathOption = None,
    instance_name: InstanceNameOption = None,
) -> None:
    """Record the weight reached on a test slot."""
    index = _index(workout)
    instance = _mutate(
        instance_path, instance_name,
        lambda inst: inst.record_test_weight(index, slot_id, weight),
    )
    views.print_success(f"Recorded test weight {weight:g} for {slot_id} in workout #{workout}")
    for day in instance.definition.days:
        for slot in day.slots:
            if slot.id == slot_id and slot.propagates_to:
                views.print_info(f"Later workouts seeded from '{slot.propagates_to}' will start at {weight:g}")


@app.command("max-effort")
def max_effort(
    workout: WorkoutArg,
    slot_id: SlotArg,
    reps: Annotated[Optional[int], typer.Argument(help="Reps on the max-effort set (omit to clear)")] = None,
    instance_path: InstancePathOption = None,
    instance_name: InstanceNameOption = None,
) -> None:
    """Set or clear the rep count of a max-effort set."""
    index = _index(workout)
    _mutate(instance_path, instance_name, lambda inst: inst.set_max_effort_reps(index, slot_id, reps))
    if reps is None:
        views.print_success(f"Cleared max-effort reps for {slot_id} in workout #{workout}")
    else:
        views.print_success(f"Set max-effort reps {reps} for {slot_id} in workout #{workout}")


@app.command()
def effort(
    workout: WorkoutArg,
    slot_id: SlotArg,
    rating: Annotated[Optional[float], typer.Argument(help="Effort rating 1-10 (omit to clear)")] = None,
    instance_path: InstancePathOption = None,
    instance_name: InstanceNameOption = None,
) -> None:
    """Set or clear the effort rating of a primary slot."""
    index = _index(workout)
    _mutate(instance_path, instance_name, lambda inst: inst.set_effort_rating(index, slot_id, rating))
    if rating is None:
        views.print_success(f"Cleared effort rating for {slot_id} in workout #{workout}")
    else:
        views.print_success(f"Set effort rating {rating:g} for {slot_id} in workout #{workout}")


@app.command()
def delete(
    workout: WorkoutArg,
    slot_id: SlotArg,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
    instance_path: InstancePathOption = None,
    instance_name: InstanceNameOption = None,
) -> None:
    """Delete everything recorded for one slot of one workout."""
    index = _index(workout)
    store = get_store(instance_path, instance_name)
    instance = load_instance(store)

    if instance.results.get(index, slot_id) is None:
        views.print_info(f"Nothing recorded for {slot_id} in workout #{workout}")
        return
    if not yes and not views.confirm_action(f"Delete {slot_id} in workout #{workout}?"):
        views.print_info("Cancelled.")
        return

    instance.delete_result(index, slot_id)
    store.save_instance(instance)
    views.print_success(f"Deleted {slot_id} in workout #{workout}")


@app.command()
def undo(
    instance_path: InstancePathOption = None,
    instance_name: InstanceNameOption = None,
) -> None:
    """Revert the most recent change."""
    store = get_store(instance_path, instance_name)
    instance = load_instance(store)

    outcome = instance.undo_last()
    if not outcome.applied:
        views.print_info(outcome.message)
        return

    store.save_instance(instance)
    entry = outcome.entry
    fields = ", ".join(sorted(entry.prior))
    views.print_success(f"Undid change to {entry.slot_id} in workout #{entry.index + 1} ({fields})")
    views.print_info(f"{len(instance.undo_log)} change(s) left to undo")
