"""
CLI entry point using Typer.

Provides commands for program tracking:
- programs: List preset programs
- init: Start a program instance with baseline weights
- schedule: Show recorded and forecast workouts
- record / test-weight / max-effort / effort: Record results
- delete: Remove a recorded cell
- undo: Revert the most recent change
- stats: Per-exercise progress
"""

from .app import app
from .commands import program, results  # noqa: F401  (registers commands)

__all__ = ["app"]


if __name__ == "__main__":
    app()
