"""Program commands: programs, init, schedule, stats."""

import json
from typing import Annotated, Optional

import typer

from ...core.definition import required_baseline_keys, validate_definition
from ...core.engine.config_loader import load_settings
from ...core.errors import ConfigurationError
from ...core.programs.registry import get_program, list_programs
from ...core.stats import calculate_stats, extract_chart_data
from ...io.serializers import (
    ValidationError,
    diagnostic_to_dict,
    parse_baseline_string,
    validate_weight,
    workout_row_to_dict,
)
from .. import views
from ..app import InstanceNameOption, InstancePathOption, JsonOption, app, get_store, load_instance


@app.command("programs")
def programs(json_out: JsonOption = False) -> None:
    """List the available preset programs and the baseline weights each needs."""
    presets = list_programs()
    if json_out:
        print(json.dumps([
            {
                "id": p.id,
                "name": p.name,
                "total_workouts": p.total_workouts,
                "baseline_keys": required_baseline_keys(p),
            }
            for p in presets
        ], indent=2))
        return
    views.print_programs(presets)


@app.command()
def init(
    program_id: Annotated[
        Optional[str],
        typer.Option("--program", help="Preset program id (see 'programs')"),
    ] = None,
    baseline: Annotated[
        Optional[str],
        typer.Option("--baseline", "-b", help="Baseline weights: key=kg,... e.g. squat=60,bench=40"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Replace an existing instance"),
    ] = False,
    instance_path: InstancePathOption = None,
    instance_name: InstanceNameOption = None,
) -> None:
    """
    Start a program: snapshot the preset and store the baseline weights.

    Missing baseline weights are prompted for interactively.
    """
    if program_id is None:
        program_id = load_settings().get("program", {}).get("default", "gzclp")

    try:
        definition = get_program(program_id)
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    weights: dict[str, float] = {}
    if baseline:
        try:
            weights = parse_baseline_string(baseline)
        except ValidationError as e:
            views.print_error(str(e))
            raise typer.Exit(1)

    required = required_baseline_keys(definition)
    for key in required:
        while key not in weights:
            raw = views.console.input(f"Baseline weight for '{key}' (kg): ").strip()
            try:
                weights[key] = validate_weight(raw, key)
            except ValidationError as e:
                views.print_error(str(e))

    store = get_store(instance_path, instance_name)
    if store.exists() and not force:
        views.print_error(f"Instance already exists: {store.instance_dir}")
        views.print_info("Use --force to replace it.")
        raise typer.Exit(1)

    try:
        validate_definition(definition, weights)
    except ConfigurationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    store.init(definition, weights, overwrite=force)

    views.print_success(f"Started {definition.name} ({definition.total_workouts} workouts)")
    views.print_info(f"Instance: {store.instance_dir}")


@app.command()
def schedule(
    start: Annotated[
        Optional[int],
        typer.Option("--start", "-s", help="First workout number to show (1-based)"),
    ] = None,
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-n", help="Number of workouts to show"),
    ] = None,
    show_all: Annotated[
        bool,
        typer.Option("--all", "-a", help="Show the whole program"),
    ] = False,
    instance_path: InstancePathOption = None,
    instance_name: InstanceNameOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show recorded and forecast workouts.

    By default the window starts a few workouts before the next pending one.
    """
    store = get_store(instance_path, instance_name)
    instance = load_instance(store)
    result = store.render_schedule(instance)

    settings = load_settings().get("schedule", {})
    if show_all:
        first, count = 0, len(result.rows)
    else:
        count = limit if limit is not None else int(settings.get("window", 12))
        if start is not None:
            first = max(start - 1, 0)
        elif result.first_pending_idx is not None:
            first = max(result.first_pending_idx - int(settings.get("lookback", 4)), 0)
        else:
            first = max(len(result.rows) - count, 0)

    if json_out:
        print(json.dumps({
            "first_pending_idx": result.first_pending_idx,
            "rows": [workout_row_to_dict(r) for r in result.rows[first:first + count]],
            "diagnostics": [diagnostic_to_dict(d) for d in result.diagnostics],
        }, indent=2))
        return

    views.print_schedule(result, first, count)
    views.print_diagnostics(result.diagnostics)


@app.command()
def stats(
    instance_path: InstancePathOption = None,
    instance_name: InstanceNameOption = None,
    json_out: JsonOption = False,
) -> None:
    """Show per-exercise success rate and weight progress."""
    store = get_store(instance_path, instance_name)
    instance = load_instance(store)
    result = store.render_schedule(instance)

    series = extract_chart_data(instance.definition, result.rows)
    summary = {exercise_id: calculate_stats(points) for exercise_id, points in series.items() if points}

    if json_out:
        print(json.dumps({
            exercise_id: {
                "total": s.total,
                "successes": s.successes,
                "fails": s.fails,
                "rate": s.rate,
                "start_weight": s.start_weight,
                "current_weight": s.current_weight,
                "gained": s.gained,
                "current_stage": s.current_stage,
            }
            for exercise_id, s in summary.items()
        }, indent=2))
        return

    views.print_stats(instance.definition, summary)
