"""
Scoring settings for a game.
Loaded from the "settings" object of a game file or from a standalone JSON file.
"""
from __future__ import annotations

import json
import math
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

DEFAULT_CRIT_PRESET = "gen7"
DEFAULT_CRIT_DAMAGE_MULT = 1.5


@dataclass(frozen=True)
class ScoringSettings:
    """Per-game knobs the engine takes as arguments. Formula constants are not settings."""
    crit_stage_preset: str = DEFAULT_CRIT_PRESET
    crit_base_damage_mult: float = DEFAULT_CRIT_DAMAGE_MULT
    crit_base_chance: Optional[float] = None
    disable_abilities: bool = False
    disable_held_items: bool = False

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ScoringSettings":
        """
        Build settings from a JSON object.

        Unknown keys are ignored; missing keys keep their defaults.

        Raises:
            ValueError: If the object or one of its values has the wrong type
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"Settings must be a JSON object, got {type(data).__name__}")

        values: Dict[str, Any] = {}

        if "crit_stage_preset" in data:
            preset = data["crit_stage_preset"]
            if not isinstance(preset, str) or not preset.strip():
                raise ValueError(f"crit_stage_preset must be a non-empty string, got {preset!r}")
            values["crit_stage_preset"] = preset.strip()

        if "crit_base_damage_mult" in data:
            values["crit_base_damage_mult"] = _number(data, "crit_base_damage_mult")

        if data.get("crit_base_chance") is not None:
            values["crit_base_chance"] = _number(data, "crit_base_chance")

        for key in ("disable_abilities", "disable_held_items"):
            if key in data:
                flag = data[key]
                if isinstance(flag, bool):
                    values[key] = flag
                elif isinstance(flag, int) and flag in (0, 1):
                    # SQLite-style 0/1 integers
                    values[key] = bool(flag)
                else:
                    raise ValueError(f"{key} must be a boolean, got {flag!r}")

        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Settings as a JSON-ready dict."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def with_overrides(self, **overrides: Any) -> "ScoringSettings":
        """Copy with the given fields replaced; None values are skipped."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)


def _number(data: Dict[str, Any], key: str) -> float:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number, got {value!r}")
    if not math.isfinite(value) or value < 0:
        raise ValueError(f"{key} must be a finite number, 0 or more, got {value!r}")
    return float(value)


def load_settings(settings_file: Union[str, Path]) -> ScoringSettings:
    """
    Load scoring settings from a JSON file.

    Args:
        settings_file: Path to a JSON object of settings

    Returns:
        ScoringSettings

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file isn't valid JSON or has invalid values
    """
    try:
        with open(settings_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"Settings file not found: {settings_file}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in settings file: {e}")

    return ScoringSettings.from_dict(data)
