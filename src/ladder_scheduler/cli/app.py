"""Shared Typer app object, shared option types, and store utility."""

from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.engine.config_loader import load_settings
from ..core.errors import ConfigurationError
from ..core.instance import ProgramInstance
from ..io.instance_store import InstanceStore, get_default_store
from ..io.serializers import ValidationError
from . import views

# Shared --instance-path option type used across all commands
InstancePathOption = Annotated[
    Optional[Path],
    typer.Option("--instance-path", "-p", help="Instance directory (default: ~/.ladder-scheduler/instances/<name>)"),
]

# Shared --instance option type used across all commands
InstanceNameOption = Annotated[
    Optional[str],
    typer.Option("--instance", "-i", help="Instance name under the data directory"),
]

JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="ladder-scheduler",
    help="ladder-scheduler: strength program tracker with stage ladders, forecasts and undo.",
    no_args_is_help=True,
)


def get_store(instance_path: Path | None, instance_name: str | None = None) -> InstanceStore:
    """Get instance store from path, or the named instance at the default location."""
    if instance_path is not None:
        return InstanceStore(instance_path)
    if instance_name is None:
        instance_name = load_settings().get("storage", {}).get("default_instance", "default")
    return get_default_store(instance_name)


def load_instance(store: InstanceStore) -> ProgramInstance:
    """Load an instance or print the problem and exit with status 1."""
    try:
        return store.load_instance()
    except FileNotFoundError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    except (ValidationError, ConfigurationError) as e:
        views.print_error(f"Cannot load instance: {e}")
        raise typer.Exit(1)
