"""
YAML -> settings loader.

Loads user-facing settings from settings.yaml (bundled with the package)
and merges user overrides from ~/.ladder-scheduler/settings.yaml.

Usage:
    from ladder_scheduler.core.engine.config_loader import load_settings
    settings = load_settings()
    window = settings.get("schedule", {}).get("window", 12)

If the user override file exists but cannot be parsed, a warning is issued
and the file is ignored.
"""

from __future__ import annotations

import os
import warnings
from pathlib import Path
from typing import Any

import yaml

from ..config import DATA_DIR_NAME, HOME_ENV_VAR

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; warn and return {} if it is unreadable."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"ladder-scheduler: ignoring {path} ({exc})", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_data_root() -> Path:
    """
    Return the ladder-scheduler data directory.

    ``$LADDER_SCHEDULER_HOME`` wins; otherwise ``~/.ladder-scheduler``.
    """
    override = os.environ.get(HOME_ENV_VAR)
    if override:
        return Path(override).expanduser()
    home = Path(os.environ.get("HOME", "~")).expanduser()
    return home / DATA_DIR_NAME


def get_bundled_settings_path() -> Path | None:
    """Return the path to the bundled settings.yaml, or None if not found."""
    # config_loader.py lives at src/ladder_scheduler/core/engine/config_loader.py
    candidate = Path(__file__).parent.parent.parent / "settings.yaml"
    return candidate if candidate.exists() else None


def get_user_settings_path() -> Path | None:
    """Return ~/.ladder-scheduler/settings.yaml if it exists, else None."""
    p = get_data_root() / "settings.yaml"
    return p if p.exists() else None


def load_settings() -> dict[str, Any]:
    """
    Load and merge settings from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/ladder_scheduler/settings.yaml
    2. User override at ~/.ladder-scheduler/settings.yaml

    Returns:
        Merged dict of settings sections.  Empty dict if no YAML available.
    """
    settings: dict[str, Any] = {}

    bundled = get_bundled_settings_path()
    if bundled is not None:
        settings = deep_merge(settings, _load_yaml_file(bundled))

    user = get_user_settings_path()
    if user is not None:
        user_cfg = _load_yaml_file(user)
        if user_cfg:
            settings = deep_merge(settings, user_cfg)

    return settings
