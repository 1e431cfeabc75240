"""
Preset program definitions for ladder-scheduler.

Each preset is a YAML file describing days, slots and progression rules;
the engine itself has no program-specific code.
"""

from .loader import load_programs_from_yaml, program_from_dict, rule_from_dict
from .registry import get_program, list_programs, reload_registry

__all__ = [
    "get_program",
    "list_programs",
    "load_programs_from_yaml",
    "program_from_dict",
    "reload_registry",
    "rule_from_dict",
]
