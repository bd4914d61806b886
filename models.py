"""
Data models for creature roster analysis.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from settings import ScoringSettings


STAT_FIELDS: Tuple[str, ...] = ("hp", "atk", "def", "spa", "spd", "spe")


@dataclass(frozen=True)
class BaseStats:
    """A creature's six base stats."""
    hp: float
    atk: float
    def_: float  # "def" in dict/JSON form
    spa: float
    spd: float
    spe: float

    @classmethod
    def from_mapping(cls, data: Mapping[str, float]) -> "BaseStats":
        """Build from a mapping keyed hp/atk/def/spa/spd/spe."""
        return cls(
            hp=data["hp"],
            atk=data["atk"],
            def_=data["def"],
            spa=data["spa"],
            spd=data["spd"],
            spe=data["spe"],
        )

    def as_dict(self) -> Dict[str, float]:
        """Stats keyed by their short names."""
        return {
            "hp": self.hp,
            "atk": self.atk,
            "def": self.def_,
            "spa": self.spa,
            "spd": self.spd,
            "spe": self.spe,
        }

    def scaled(self, multipliers: Mapping[str, float]) -> Dict[str, float]:
        """Elementwise product with per-stat multipliers (missing stats stay as-is)."""
        return {key: value * multipliers.get(key, 1.0) for key, value in self.as_dict().items()}

    @property
    def total(self) -> float:
        """Base stat total."""
        return sum(self.as_dict().values())


@dataclass(frozen=True)
class TypeInfo:
    """An elemental type in the game's roster."""
    id: int
    name: str
    color: Optional[str] = None
    exclude_in_chart: bool = False


@dataclass(frozen=True)
class TypeChartRow:
    """One charted (attacker, defender) pair."""
    attacking_type_id: int
    defending_type_id: int
    multiplier: float


@dataclass(frozen=True)
class TeamMember:
    """What the team views need to know about a slotted creature."""
    type1_id: int
    type2_id: Optional[int]
    tags: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Potentials:
    """Score bundle for one creature. Unitless; only ordering matters."""
    offensive_physical: float
    offensive_special: float
    defensive_physical: float
    defensive_special: float
    offense: float
    defense: float
    box_rank: float
    balance_invalid: bool  # offense and defense both collapsed to zero
    crit_expected_mult: float
    crit_chance: float
    crit_damage_mult: float
    crit_stage: int
    crit_tags_applied: bool
    type_defense_adj: float
    stab_adj: float


@dataclass(frozen=True)
class DefenseMatrixRow:
    """Per-slot multipliers for one attacking type. None marks an empty slot."""
    attacking_type_id: int
    attacking_type_name: str
    attacking_type_color: Optional[str]
    multipliers: Tuple[Optional[float], ...]
    total_weak: int
    total_resist: int


@dataclass(frozen=True)
class TeamChartRow:
    """Weak/resist/immune counts of a team against one attacking type."""
    attacking_type_id: int
    attacking_type_name: str
    weak: int
    resist: int
    immune: int


# ===== GAME RECORDS =====

@dataclass
class Species:
    """A species as materialized for a game."""
    id: int
    name: str
    type1_id: int
    stats: BaseStats
    type2_id: Optional[int] = None
    dex_number: int = 1
    tags: List[str] = field(default_factory=list)


@dataclass
class Ability:
    """An ability and the tags it grants."""
    id: int
    name: str
    tags: List[str] = field(default_factory=list)


@dataclass
class Item:
    """A held item and the tags it grants."""
    id: int
    name: str
    tags: List[str] = field(default_factory=list)


@dataclass
class SpeciesOverride:
    """Per-game replacement of a species' types and/or individual stats."""
    species_id: int
    type1_id: Optional[int] = None
    type2_id: Optional[int] = None
    stats: Dict[str, float] = field(default_factory=dict)  # only the overridden keys


@dataclass
class BoxEntry:
    """A creature the player owns in this game."""
    id: int
    species_id: int
    ability_id: Optional[int] = None
    item_id: Optional[int] = None
    nickname: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class GameData:
    """A materialized game view: everything the analyzer reads."""
    name: str
    types: List[TypeInfo]
    chart: List[TypeChartRow]
    species: Dict[int, Species]
    abilities: Dict[int, Ability] = field(default_factory=dict)
    items: Dict[int, Item] = field(default_factory=dict)
    overrides: Dict[int, SpeciesOverride] = field(default_factory=dict)  # species_id -> override
    box: List[BoxEntry] = field(default_factory=list)
    team: List[Optional[int]] = field(default_factory=list)  # box ids by slot
    settings: ScoringSettings = field(default_factory=ScoringSettings)

    def visible_types(self) -> List[TypeInfo]:
        """Types that take part in the chart (exclude_in_chart dropped)."""
        return [t for t in self.types if not t.exclude_in_chart]

    @property
    def type_names(self) -> Dict[int, str]:
        """Type id -> name, including chart-excluded types."""
        return {t.id: t.name for t in self.types}

    def get_box_entry(self, box_id: int) -> Optional[BoxEntry]:
        """Find a box entry by id."""
        for entry in self.box:
            if entry.id == box_id:
                return entry
        return None


def apply_species_override(species: Species, override: Optional[SpeciesOverride]) -> Tuple[int, Optional[int], BaseStats]:
    """
    Effective types and stats of a species after a game override.

    Args:
        species: The species as defined by its pack
        override: The game's override, if any

    Returns:
        (type1_id, type2_id, stats)
    """
    if override is None:
        return species.type1_id, species.type2_id, species.stats

    type1_id = override.type1_id if override.type1_id is not None else species.type1_id
    type2_id = override.type2_id if override.type2_id is not None else species.type2_id

    merged = species.stats.as_dict()
    for key, value in override.stats.items():
        if key in merged and value is not None:
            merged[key] = value

    return type1_id, type2_id, BaseStats.from_mapping(merged)
