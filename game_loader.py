"""
Game file loading for the roster analyzer.
Reads a materialized game view (types, chart, species, box, team) from JSON.
"""
from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from models import (
    STAT_FIELDS,
    Ability,
    BaseStats,
    BoxEntry,
    GameData,
    Item,
    Species,
    SpeciesOverride,
    TypeChartRow,
    TypeInfo,
)
from settings import ScoringSettings
from tag_effects import parse_tags

logger = logging.getLogger(__name__)

TEAM_SIZE = 6


class GameParser:
    """Parser for JSON game files."""

    def parse_file(self, file_path: Union[str, Path]) -> GameData:
        """
        Parse a game file and return a GameData object.

        Args:
            file_path: Path to the game JSON file

        Returns:
            GameData containing the parsed game

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the file isn't valid JSON or doesn't describe a game
        """
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Game file not found: {file_path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                payload = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in game file {path.name}: {e}")

        # Default game name from the file name
        default_name = path.stem.replace('_', ' ').replace('-', ' ').title()
        return self.parse(payload, name=default_name)

    def parse_text(self, text: str, name: Optional[str] = None) -> GameData:
        """Parse a game from JSON text (pasted or uploaded)."""
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in game data: {e}")
        return self.parse(payload, name=name)

    def parse(self, payload: Any, name: Optional[str] = None) -> GameData:
        """
        Build a GameData object from an already-decoded JSON document.

        Raises:
            ValueError: If required sections or fields are missing or invalid
        """
        if not isinstance(payload, dict):
            raise ValueError("Game data must be a JSON object")

        types = [self._parse_type(raw, idx) for idx, raw in enumerate(self._list(payload, "types", required=True))]
        if not types:
            raise ValueError("Game data has no types")
        type_ids = {t.id for t in types}

        chart = [self._parse_chart_row(raw, idx) for idx, raw in enumerate(self._list(payload, "chart"))]
        for row in chart:
            if row.attacking_type_id not in type_ids or row.defending_type_id not in type_ids:
                logger.warning(
                    "Chart row %s -> %s references an unknown type",
                    row.attacking_type_id, row.defending_type_id,
                )

        species: Dict[int, Species] = {}
        for idx, raw in enumerate(self._list(payload, "species", required=True)):
            parsed = self._parse_species(raw, idx)
            species[parsed.id] = parsed

        abilities = {a.id: a for a in (self._parse_ability(raw, idx, "abilities") for idx, raw in enumerate(self._list(payload, "abilities")))}
        items = {i.id: i for i in (self._parse_item(raw, idx) for idx, raw in enumerate(self._list(payload, "items")))}

        overrides: Dict[int, SpeciesOverride] = {}
        for idx, raw in enumerate(self._list(payload, "overrides")):
            override = self._parse_override(raw, idx)
            overrides[override.species_id] = override

        box: List[BoxEntry] = []
        for idx, raw in enumerate(self._list(payload, "box")):
            entry = self._parse_box_entry(raw, idx)
            if entry.species_id not in species:
                logger.warning("Skipping box entry %s: unknown species %s", entry.id, entry.species_id)
                continue
            box.append(entry)

        team = self._parse_team(payload.get("team"), {e.id for e in box})

        game_name = payload.get("name")
        if not isinstance(game_name, str) or not game_name.strip():
            game_name = name or "Untitled Game"

        return GameData(
            name=game_name.strip(),
            types=types,
            chart=chart,
            species=species,
            abilities=abilities,
            items=items,
            overrides=overrides,
            box=box,
            team=team,
            settings=ScoringSettings.from_dict(payload.get("settings")),
        )

    # ===== SECTION PARSERS =====

    def _list(self, payload: Dict[str, Any], key: str, required: bool = False) -> List[Any]:
        value = payload.get(key)
        if value is None:
            if required:
                raise ValueError(f"Game data is missing the '{key}' section")
            return []
        if not isinstance(value, list):
            raise ValueError(f"'{key}' must be a list")
        return value

    def _object(self, raw: Any, where: str) -> Dict[str, Any]:
        if not isinstance(raw, dict):
            raise ValueError(f"{where} must be an object")
        return raw

    def _int(self, raw: Dict[str, Any], key: str, where: str, required: bool = True) -> Optional[int]:
        value = raw.get(key)
        if value is None:
            if required:
                raise ValueError(f"{where} is missing '{key}'")
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"{where}: '{key}' must be an integer, got {value!r}")
        return value

    def _number(self, raw: Dict[str, Any], key: str, where: str) -> float:
        value = raw.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"{where}: '{key}' must be a number, got {value!r}")
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"{where}: '{key}' must be a finite number, 0 or more, got {value!r}")
        return value

    def _name(self, raw: Dict[str, Any], where: str) -> str:
        value = raw.get("name")
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"{where} is missing a name")
        return value.strip()

    def _tags(self, raw: Dict[str, Any], where: str) -> List[str]:
        """Tags may be a list or a JSON-encoded string, as stored in a database column."""
        value = raw.get("tags")
        if value is None:
            return []
        if isinstance(value, str):
            return parse_tags(value)
        if isinstance(value, list):
            return [str(tag) for tag in value]
        raise ValueError(f"{where}: 'tags' must be a list of strings")

    def _parse_type(self, raw: Any, idx: int) -> TypeInfo:
        where = f"types[{idx}]"
        raw = self._object(raw, where)
        color = raw.get("color")
        return TypeInfo(
            id=self._int(raw, "id", where),
            name=self._name(raw, where),
            color=color if isinstance(color, str) and color else None,
            exclude_in_chart=bool(raw.get("exclude_in_chart", False)),
        )

    def _parse_chart_row(self, raw: Any, idx: int) -> TypeChartRow:
        where = f"chart[{idx}]"
        raw = self._object(raw, where)
        return TypeChartRow(
            attacking_type_id=self._int(raw, "attacking_type_id", where),
            defending_type_id=self._int(raw, "defending_type_id", where),
            multiplier=float(self._number(raw, "multiplier", where)),
        )

    def _parse_stats(self, raw: Dict[str, Any], where: str) -> BaseStats:
        # Stats may be flat on the species or nested under "stats"
        source = raw.get("stats", raw)
        source = self._object(source, f"{where}.stats")
        return BaseStats.from_mapping({key: self._number(source, key, where) for key in STAT_FIELDS})

    def _parse_species(self, raw: Any, idx: int) -> Species:
        where = f"species[{idx}]"
        raw = self._object(raw, where)
        return Species(
            id=self._int(raw, "id", where),
            name=self._name(raw, where),
            type1_id=self._int(raw, "type1_id", where),
            type2_id=self._int(raw, "type2_id", where, required=False),
            stats=self._parse_stats(raw, where),
            dex_number=self._int(raw, "dex_number", where, required=False) or 1,
            tags=self._tags(raw, where),
        )

    def _parse_ability(self, raw: Any, idx: int, section: str) -> Ability:
        where = f"{section}[{idx}]"
        raw = self._object(raw, where)
        return Ability(id=self._int(raw, "id", where), name=self._name(raw, where), tags=self._tags(raw, where))

    def _parse_item(self, raw: Any, idx: int) -> Item:
        where = f"items[{idx}]"
        raw = self._object(raw, where)
        return Item(id=self._int(raw, "id", where), name=self._name(raw, where), tags=self._tags(raw, where))

    def _parse_override(self, raw: Any, idx: int) -> SpeciesOverride:
        where = f"overrides[{idx}]"
        raw = self._object(raw, where)
        stats = {key: self._number(raw, key, where) for key in STAT_FIELDS if raw.get(key) is not None}
        return SpeciesOverride(
            species_id=self._int(raw, "species_id", where),
            type1_id=self._int(raw, "type1_id", where, required=False),
            type2_id=self._int(raw, "type2_id", where, required=False),
            stats=stats,
        )

    def _parse_box_entry(self, raw: Any, idx: int) -> BoxEntry:
        where = f"box[{idx}]"
        raw = self._object(raw, where)
        nickname = raw.get("nickname")
        notes = raw.get("notes")
        return BoxEntry(
            id=self._int(raw, "id", where),
            species_id=self._int(raw, "species_id", where),
            ability_id=self._int(raw, "ability_id", where, required=False),
            item_id=self._int(raw, "item_id", where, required=False),
            nickname=nickname if isinstance(nickname, str) and nickname.strip() else None,
            notes=notes if isinstance(notes, str) and notes.strip() else None,
        )

    def _parse_team(self, raw: Any, box_ids: set) -> List[Optional[int]]:
        """Team slots by box id, padded with empty slots to six."""
        if raw is None:
            return [None] * TEAM_SIZE
        if not isinstance(raw, list):
            raise ValueError("'team' must be a list of box ids or nulls")
        if len(raw) > TEAM_SIZE:
            raise ValueError(f"A team has at most {TEAM_SIZE} slots, got {len(raw)}")

        slots: List[Optional[int]] = []
        for idx, value in enumerate(raw):
            if value is None:
                slots.append(None)
                continue
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"team[{idx}] must be a box id or null, got {value!r}")
            if value not in box_ids:
                logger.warning("Team slot %d points at unknown box entry %s; leaving it empty", idx + 1, value)
                slots.append(None)
                continue
            slots.append(value)

        slots.extend([None] * (TEAM_SIZE - len(slots)))
        return slots


def load_game(file_path: Union[str, Path]) -> GameData:
    """
    Convenience function to parse a game file.

    Args:
        file_path: Path to the game JSON file

    Returns:
        GameData object
    """
    parser = GameParser()
    return parser.parse_file(file_path)
