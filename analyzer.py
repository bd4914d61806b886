"""
Roster analysis for a loaded game.
Scores every box entry and builds the team's defensive views.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from models import (
    BoxEntry,
    DefenseMatrixRow,
    GameData,
    Potentials,
    TeamChartRow,
    TeamMember,
    apply_species_override,
)
from scoring import compute_potentials
from settings import ScoringSettings
from tag_effects import resolve
from team_chart import compute_defense_matrix, compute_team_chart
from type_chart import TypeChart

logger = logging.getLogger(__name__)


@dataclass
class BoxEntryScore:
    """A box entry with its effective typing, tags and potentials."""
    box_id: int
    name: str  # nickname, or the species name
    species_name: str
    dex_number: int
    type1_id: int
    type2_id: Optional[int]
    type_names: Tuple[str, ...]
    ability_name: Optional[str]
    item_name: Optional[str]
    tags: Tuple[str, ...]
    potentials: Potentials
    ignored_tags: Tuple[str, ...] = ()

    @property
    def box_rank(self) -> float:
        return self.potentials.box_rank

    def to_member(self) -> TeamMember:
        """The slice of this entry the team views read."""
        return TeamMember(type1_id=self.type1_id, type2_id=self.type2_id, tags=self.tags)


@dataclass
class TeamReport:
    """Team slots plus the defense matrix and weak/resist/immune chart."""
    slots: List[Optional[BoxEntryScore]]
    defense_matrix: List[DefenseMatrixRow]
    team_chart: List[TeamChartRow]
    empty_slots: List[int] = field(default_factory=list)  # 1-based slot numbers

    @property
    def members(self) -> List[BoxEntryScore]:
        return [slot for slot in self.slots if slot is not None]


class RosterAnalyzer:
    """Scores a game's box and team."""

    def __init__(self, game: GameData, settings: Optional[ScoringSettings] = None):
        self.game = game
        self.settings = settings or game.settings
        self.types = game.visible_types()
        self.chart = TypeChart(game.chart)

    def _entry_tags(self, entry: BoxEntry) -> Tuple[List[str], Optional[str], Optional[str]]:
        """Species tags, then ability tags, then item tags, honoring the game's disable switches."""
        species = self.game.species[entry.species_id]
        tags = list(species.tags)
        ability_name = None
        item_name = None

        if entry.ability_id is not None and not self.settings.disable_abilities:
            ability = self.game.abilities.get(entry.ability_id)
            if ability is None:
                logger.warning("Box entry %s: unknown ability %s", entry.id, entry.ability_id)
            else:
                ability_name = ability.name
                tags.extend(ability.tags)

        if entry.item_id is not None and not self.settings.disable_held_items:
            item = self.game.items.get(entry.item_id)
            if item is None:
                logger.warning("Box entry %s: unknown item %s", entry.id, entry.item_id)
            else:
                item_name = item.name
                tags.extend(item.tags)

        return tags, ability_name, item_name

    def score_entry(self, entry: BoxEntry) -> BoxEntryScore:
        """
        Score a single box entry.

        Args:
            entry: A box entry whose species is part of the game

        Returns:
            BoxEntryScore
        """
        species = self.game.species[entry.species_id]
        type1_id, type2_id, stats = apply_species_override(species, self.game.overrides.get(species.id))
        tags, ability_name, item_name = self._entry_tags(entry)

        potentials = compute_potentials(
            stats,
            tags,
            type1_id,
            type2_id,
            self.types,
            self.chart,
            crit_stage_preset=self.settings.crit_stage_preset,
            crit_base_damage_mult=self.settings.crit_base_damage_mult,
            crit_base_chance=self.settings.crit_base_chance,
        )

        names = self.game.type_names
        type_names = tuple(names.get(t, f"#{t}") for t in (type1_id, type2_id) if t is not None)

        return BoxEntryScore(
            box_id=entry.id,
            name=entry.nickname or species.name,
            species_name=species.name,
            dex_number=species.dex_number,
            type1_id=type1_id,
            type2_id=type2_id,
            type_names=type_names,
            ability_name=ability_name,
            item_name=item_name,
            tags=tuple(tags),
            potentials=potentials,
            ignored_tags=resolve(tags).ignored,
        )

    def analyze_box(self) -> List[BoxEntryScore]:
        """Score every box entry, best box rank first; ties go by dex number, then box id."""
        scores = [self.score_entry(entry) for entry in self.game.box]
        scores.sort(key=lambda s: (-s.box_rank, s.dex_number, s.box_id))
        logger.debug("Scored %d box entries for %s", len(scores), self.game.name)
        return scores

    def analyze_team(self) -> TeamReport:
        """
        Build the team's defense matrix (all six slots) and team chart (filled slots).

        Returns:
            TeamReport
        """
        slots: List[Optional[BoxEntryScore]] = []
        empty_slots: List[int] = []

        for idx, box_id in enumerate(self.game.team, start=1):
            entry = self.game.get_box_entry(box_id) if box_id is not None else None
            if entry is None:
                slots.append(None)
                empty_slots.append(idx)
                continue
            slots.append(self.score_entry(entry))

        members = [slot.to_member() if slot is not None else None for slot in slots]
        matrix = compute_defense_matrix(members, self.types, self.chart)
        chart = compute_team_chart([m for m in members if m is not None], self.types, self.chart)

        return TeamReport(slots=slots, defense_matrix=matrix, team_chart=chart, empty_slots=empty_slots)


def filter_box(
    scores: Iterable[BoxEntryScore],
    search: Optional[str] = None,
    type_id: Optional[int] = None,
    min_rank: Optional[float] = None,
) -> List[BoxEntryScore]:
    """
    Filter scored box entries, keeping their order.

    Args:
        scores: Scored entries
        search: Case-insensitive substring of the nickname or species name
        type_id: Keep entries with this type in either slot
        min_rank: Keep entries with box_rank at least this

    Returns:
        Matching entries
    """
    needle = search.strip().lower() if search else ""
    result = []
    for score in scores:
        if needle and needle not in score.name.lower() and needle not in score.species_name.lower():
            continue
        if type_id is not None and type_id not in (score.type1_id, score.type2_id):
            continue
        if min_rank is not None and score.box_rank < min_rank:
            continue
        result.append(score)
    return result
