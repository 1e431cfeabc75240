"""
Program registry.

All preset programs are registered here.  Use get_program() to look up a
ProgramDefinition by its id.

Programs are loaded from per-program YAML files in the bundled
``src/ladder_scheduler/programs/`` directory the first time the registry is
used.  If no definition can be loaded a RuntimeError is raised: the
application cannot start without at least one valid preset.

User overrides: place matching files in ``~/.ladder-scheduler/programs/``.
"""

from ..models import ProgramDefinition

_REGISTRY: dict[str, ProgramDefinition] | None = None


def _build_registry() -> dict[str, ProgramDefinition]:
    from .loader import load_programs_from_yaml

    loaded = load_programs_from_yaml()
    if not loaded:
        raise RuntimeError(
            "ladder-scheduler: no program definitions could be loaded from YAML. "
            "Check that src/ladder_scheduler/programs/*.yaml files are present and valid."
        )
    return loaded


def get_registry() -> dict[str, ProgramDefinition]:
    """Return {program_id: ProgramDefinition}, loading it on first use."""
    global _REGISTRY
    if _REGISTRY is None:
        _REGISTRY = _build_registry()
    return _REGISTRY


def reload_registry() -> dict[str, ProgramDefinition]:
    """Drop the cached registry and load it again (after user files change)."""
    global _REGISTRY
    _REGISTRY = None
    return get_registry()


def list_programs() -> list[ProgramDefinition]:
    """All registered programs, sorted by id."""
    registry = get_registry()
    return [registry[k] for k in sorted(registry)]


def get_program(program_id: str) -> ProgramDefinition:
    """
    Return the ProgramDefinition for the given id.

    Raises:
        ValueError: If program_id is not in the registry
    """
    registry = get_registry()
    if program_id not in registry:
        valid = ", ".join(sorted(registry))
        raise ValueError(f"Unknown program '{program_id}'. Valid IDs: {valid}")
    return registry[program_id]
