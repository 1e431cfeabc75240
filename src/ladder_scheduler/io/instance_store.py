"""
File-based storage for program instances.

Handles reading, writing, and managing one instance directory:

- ``instance.json``: program definition snapshot, baseline weights, version
- ``results.json``: the result log
- ``undo.jsonl``: the undo stack, one entry per line, oldest first
- ``schedule_cache.json``: rendered schedule for the current version (optional)
"""

import json
import warnings
from pathlib import Path

from ..core.config import DEFAULT_INSTANCE_NAME
from ..core.engine.config_loader import get_data_root
from ..core.instance import ProgramInstance
from ..core.models import ProgramDefinition, ResultLog, Schedule
from ..core.undo import UndoLog
from .serializers import (
    ValidationError,
    dict_to_program,
    dict_to_result_log,
    dict_to_schedule,
    dict_to_undo_entry,
    program_to_dict,
    result_log_to_dict,
    schedule_to_dict,
    undo_entry_to_json_line,
    validate_weight,
)


class InstanceStore:
    """
    Manages one program instance stored as a directory of JSON files.

    The definition is snapshotted at init time so later preset edits never
    change an instance that is already running.  Every write of results or
    undo history bumps the version and drops the schedule cache.
    """

    def __init__(self, instance_dir: str | Path):
        """
        Initialize the store.

        Args:
            instance_dir: Directory holding the instance files
        """
        self.instance_dir = Path(instance_dir)
        self.instance_path = self.instance_dir / "instance.json"
        self.results_path = self.instance_dir / "results.json"
        self.undo_path = self.instance_dir / "undo.jsonl"
        self.cache_path = self.instance_dir / "schedule_cache.json"

    def exists(self) -> bool:
        """Check if the instance has been initialized."""
        return self.instance_path.exists()

    def _require(self) -> None:
        if not self.instance_path.exists():
            raise FileNotFoundError(
                f"Instance not found: {self.instance_dir}. Run 'init' first."
            )

    def init(
        self,
        definition: ProgramDefinition,
        baseline: dict[str, float],
        overwrite: bool = False,
    ) -> None:
        """
        Create a new instance with empty results and undo history.

        Creates parent directories if needed.

        Raises:
            FileExistsError: If the instance exists and overwrite is False
        """
        if self.exists() and not overwrite:
            raise FileExistsError(
                f"Instance already exists: {self.instance_dir}. Use --force to replace it."
            )
        self.instance_dir.mkdir(parents=True, exist_ok=True)

        data = {
            "program": program_to_dict(definition),
            "baseline": {k: float(v) for k, v in baseline.items()},
            "version": 0,
        }
        self._write_json(self.instance_path, data)
        self._write_json(self.results_path, {})
        self.undo_path.write_text("")
        self.invalidate_cache()

    # ------------------------------------------------------------------
    # instance.json
    # ------------------------------------------------------------------

    def _load_instance_data(self) -> dict:
        self._require()
        try:
            with open(self.instance_path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Error parsing {self.instance_path}: {e}") from e
        if not isinstance(data, dict) or "program" not in data or "baseline" not in data:
            raise ValidationError(f"{self.instance_path} is missing 'program' or 'baseline'")
        return data

    def load_definition(self) -> ProgramDefinition:
        """Load the program definition snapshot."""
        return dict_to_program(self._load_instance_data()["program"])

    def load_baseline(self) -> dict[str, float]:
        """Load the baseline weights."""
        raw = self._load_instance_data()["baseline"]
        if not isinstance(raw, dict):
            raise ValidationError("baseline must be an object")
        return {str(k): validate_weight(v, str(k)) for k, v in raw.items()}

    def get_version(self) -> int:
        """Return the instance version (bumped on every result/undo write)."""
        return int(self._load_instance_data().get("version", 0))

    def _bump_version(self) -> int:
        data = self._load_instance_data()
        data["version"] = int(data.get("version", 0)) + 1
        self._write_json(self.instance_path, data)
        return data["version"]

    # ------------------------------------------------------------------
    # results.json / undo.jsonl
    # ------------------------------------------------------------------

    def load_results(self) -> ResultLog:
        """
        Load the result log.

        Raises:
            FileNotFoundError: If the instance does not exist
            ValidationError: If the file is invalid
        """
        self._require()
        if not self.results_path.exists():
            return ResultLog()
        try:
            with open(self.results_path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Error parsing {self.results_path}: {e}") from e
        return dict_to_result_log(data)

    def load_undo_log(self) -> UndoLog:
        """
        Load the undo stack from undo.jsonl.

        Raises:
            ValidationError: If a line cannot be parsed
        """
        self._require()
        if not self.undo_path.exists():
            return UndoLog()

        entries = []
        with open(self.undo_path, "r") as f:
            for line_num, line in enumerate(f, 1):
                line = line.strip()
                if not line:
                    continue
                try:
                    entries.append(dict_to_undo_entry(json.loads(line)))
                except (json.JSONDecodeError, ValidationError) as e:
                    raise ValidationError(
                        f"Error parsing line {line_num} in {self.undo_path}: {e}"
                    ) from e
        return UndoLog(entries)

    def load_instance(self) -> ProgramInstance:
        """
        Load the complete instance (definition, baseline, results, undo).

        Raises:
            FileNotFoundError: If the instance does not exist
            ValidationError: If stored data is invalid
            ConfigurationError: If the baseline no longer fits the definition
        """
        return ProgramInstance(
            definition=self.load_definition(),
            baseline=self.load_baseline(),
            results=self.load_results(),
            undo_log=self.load_undo_log(),
        )

    def save_instance(self, instance: ProgramInstance) -> int:
        """
        Persist results and undo history of an instance.

        Returns:
            The new version number
        """
        self._require()
        self._write_json(self.results_path, result_log_to_dict(instance.results))
        with open(self.undo_path, "w") as f:
            for entry in instance.undo_log.entries():
                f.write(undo_entry_to_json_line(entry) + "\n")
        version = self._bump_version()
        self.invalidate_cache()
        return version

    # ------------------------------------------------------------------
    # schedule_cache.json (fail-open)
    # ------------------------------------------------------------------

    def load_schedule_cache(self, version: int) -> Schedule | None:
        """
        Return the cached schedule for a version, or None.

        A missing, stale or unreadable cache is never an error.
        """
        if not self.cache_path.exists():
            return None
        try:
            with open(self.cache_path) as f:
                data = json.load(f)
            if data.get("version") != version:
                return None
            return dict_to_schedule(data["schedule"])
        except (json.JSONDecodeError, OSError, KeyError, AttributeError, ValidationError):
            return None

    def save_schedule_cache(self, version: int, schedule: Schedule) -> None:
        """Persist a rendered schedule; failures only cost performance."""
        try:
            self._write_json(
                self.cache_path,
                {"version": version, "schedule": schedule_to_dict(schedule)},
            )
        except OSError as e:
            warnings.warn(f"ladder-scheduler: schedule cache not written ({e})", stacklevel=2)

    def invalidate_cache(self) -> None:
        """Drop the schedule cache."""
        try:
            self.cache_path.unlink(missing_ok=True)
        except OSError as e:
            warnings.warn(f"ladder-scheduler: schedule cache not removed ({e})", stacklevel=2)

    def render_schedule(self, instance: ProgramInstance | None = None) -> Schedule:
        """
        Return the schedule for the current version, using the cache when valid.

        Args:
            instance: Already-loaded instance (loaded from disk when None)
        """
        version = self.get_version()
        cached = self.load_schedule_cache(version)
        if cached is not None:
            return cached
        if instance is None:
            instance = self.load_instance()
        schedule = instance.schedule()
        self.save_schedule_cache(version, schedule)
        return schedule

    @staticmethod
    def _write_json(path: Path, data: object) -> None:
        with open(path, "w") as f:
            json.dump(data, f, indent=2)


def get_default_instance_dir(name: str = DEFAULT_INSTANCE_NAME) -> Path:
    """
    Get the default directory for a named instance.

    Args:
        name: Instance name (default: "default")

    Returns:
        <data root>/instances/<name>
    """
    return get_data_root() / "instances" / name


def get_default_store(name: str = DEFAULT_INSTANCE_NAME) -> InstanceStore:
    """
    Get an InstanceStore at the default location.

    Returns:
        InstanceStore instance
    """
    return InstanceStore(get_default_instance_dir(name))
