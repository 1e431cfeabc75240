"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of schedules, presets and stats.
"""

from rich.console import Console
from rich.table import Table

from ..core.definition import required_baseline_keys
from ..core.models import Diagnostic, ProgramDefinition, Schedule, SlotRow, WorkoutRow
from ..core.stats import ExerciseStats

console = Console()


def _fmt_weight(weight: float) -> str:
    return f"{weight:g}"


def _fmt_prescription(slot: SlotRow) -> str:
    """e.g. "5x3+" (max-effort last set), "3x15-25", or "1x5@50% 4x4@70%" for percentage sets."""
    if slot.prescriptions is not None:
        return " ".join(f"{p.sets}x{p.reps}@{p.percent:g}%" for p in slot.prescriptions)
    reps = f"{slot.reps}-{slot.reps_max}" if slot.reps_max is not None else str(slot.reps)
    text = f"{slot.sets}x{reps}"
    if slot.max_effort:
        text += "+"
    return text


def _fmt_result(slot: SlotRow) -> str:
    """Result cell: recorded outcome with extras, or a dim forecast marker."""
    if not slot.committed:
        return "[dim]forecast[/dim]"
    if slot.is_test_slot:
        return f"[cyan]test {_fmt_weight(slot.test_weight or 0.0)}[/cyan]"
    parts = ["[green]✓[/green]" if slot.result == "success" else "[red]✗[/red]"]
    if slot.max_effort_reps is not None:
        parts.append(f"{slot.max_effort_reps} reps")
    if slot.effort_rating is not None:
        parts.append(f"@{slot.effort_rating:g}")
    return " ".join(parts)


def _fmt_slot_weight(slot: SlotRow) -> str:
    if slot.is_gpp:
        return "[dim]GPP[/dim]"
    text = _fmt_weight(slot.weight)
    if slot.is_deload:
        return f"[yellow]{text} ↓[/yellow]"
    if slot.is_changed:
        return f"[magenta]{text}[/magenta]"
    return text


def format_schedule_table(
    rows: list[WorkoutRow] | tuple[WorkoutRow, ...],
    first_pending_idx: int | None,
) -> Table:
    """
    Format workouts as a Rich table, one line per slot.

    Args:
        rows: Workout rows to show
        first_pending_idx: Highlighted as the next workout

    Returns:
        Rich Table object
    """
    table = Table(title="Schedule", show_lines=False)

    table.add_column("#", justify="right", style="dim")
    table.add_column("Day", style="cyan")
    table.add_column("Slot")
    table.add_column("Exercise")
    table.add_column("Weight", justify="right")
    table.add_column("Stage", justify="center")
    table.add_column("Sets", justify="center")
    table.add_column("Result")

    for row in rows:
        marker = "→ " if row.index == first_pending_idx else ""
        for n, slot in enumerate(row.slots):
            table.add_row(
                f"{marker}{row.index + 1}" if n == 0 else "",
                row.day_name if n == 0 else "",
                slot.slot_id,
                slot.exercise_name,
                _fmt_slot_weight(slot),
                f"{slot.stage + 1}/{slot.stages_count}" if slot.is_progressive else "-",
                _fmt_prescription(slot),
                _fmt_result(slot),
            )
        table.add_section()

    return table


def print_schedule(schedule: Schedule, start: int, limit: int) -> None:
    """Print a window of the schedule."""
    window = schedule.rows[start:start + limit]
    if not window:
        print_info("No workouts in range.")
        return
    console.print(format_schedule_table(window, schedule.first_pending_idx))
    if schedule.first_pending_idx is None:
        print_success("Program complete: every workout is recorded.")
    else:
        console.print(f"[dim]Next workout: #{schedule.first_pending_idx + 1}[/dim]")


def print_diagnostics(diagnostics: tuple[Diagnostic, ...] | list[Diagnostic]) -> None:
    """Print non-fatal replay diagnostics as warnings."""
    for d in diagnostics:
        print_warning(f"workout #{d.index + 1} / {d.slot_id}: {d.message} [{d.kind}]")


def print_programs(programs: list[ProgramDefinition]) -> None:
    """Print the preset list with their baseline keys."""
    table = Table(title="Programs")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Days", justify="right")
    table.add_column("Workouts", justify="right")
    table.add_column("Baseline keys")

    for program in programs:
        keys = required_baseline_keys(program)
        table.add_row(
            program.id,
            program.name,
            str(len(program.days)),
            str(program.total_workouts),
            ", ".join(keys),
        )

    console.print(table)


def print_stats(definition: ProgramDefinition, stats: dict[str, ExerciseStats]) -> None:
    """Print per-exercise statistics."""
    table = Table(title=f"{definition.name}: progress")
    table.add_column("Exercise", style="cyan")
    table.add_column("Recorded", justify="right")
    table.add_column("✓", justify="right", style="green")
    table.add_column("✗", justify="right", style="red")
    table.add_column("Rate", justify="right")
    table.add_column("Start", justify="right")
    table.add_column("Current", justify="right")
    table.add_column("Gained", justify="right")
    table.add_column("Stage", justify="center")

    for exercise_id, s in stats.items():
        gained = f"+{s.gained:g}" if s.gained > 0 else f"{s.gained:g}"
        table.add_row(
            definition.exercises.get(exercise_id, exercise_id),
            str(s.total),
            str(s.successes),
            str(s.fails),
            f"{s.rate}%",
            _fmt_weight(s.start_weight),
            _fmt_weight(s.current_weight),
            gained,
            str(s.current_stage),
        )

    console.print(table)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
