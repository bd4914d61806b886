"""
Critical-hit expected-value model.
Turns a generation's crit stage table plus crit:* tags into an expected damage multiplier.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Sequence, Union

from settings import DEFAULT_CRIT_DAMAGE_MULT, DEFAULT_CRIT_PRESET
from tag_effects import CritModifiers, EffectBundle, resolve
from utils import bounded, clamp


# ===== STAGE PRESETS =====

# Base crit chance by stage, per generation family
CRIT_STAGE_PRESETS: Dict[str, Sequence[float]] = {
    "gen2": (17 / 256, 1 / 8, 1 / 4, 85 / 256, 1 / 2),
    "gen3_5": (1 / 16, 1 / 8, 1 / 4, 1 / 3, 1 / 2),
    "gen6": (1 / 16, 1 / 8, 1 / 2, 1),
    "gen7": (1 / 24, 1 / 8, 1 / 2, 1),
}

FALLBACK_BASE_CHANCE = 1 / 24


@dataclass(frozen=True)
class CritInfo:
    """Result of the crit model for one creature."""
    chance: float
    damage_mult: float
    expected_mult: float
    stage: int
    tags_applied: bool


def _stage_index(stage_bonus: float, max_stage: int) -> int:
    """Floor the stage bonus into [0, max_stage]; infinite or NaN bonuses land on a bound."""
    if stage_bonus >= max_stage:
        return max_stage
    if not stage_bonus > 0:
        return 0
    return int(math.floor(stage_bonus))


def is_known_preset(preset_key: str) -> bool:
    """True if the key names one of the built-in stage tables."""
    return preset_key in CRIT_STAGE_PRESETS


def crit_expected_mult(
    tags: Union[Iterable[str], EffectBundle, CritModifiers],
    preset_key: str = DEFAULT_CRIT_PRESET,
    base_damage_mult: float = DEFAULT_CRIT_DAMAGE_MULT,
    fallback_base_chance: Optional[float] = None,
    presets: Mapping[str, Sequence[float]] = CRIT_STAGE_PRESETS,
) -> CritInfo:
    """
    Expected damage multiplier of a binary crit/no-crit outcome.

    Args:
        tags: Raw tags, a resolved EffectBundle, or its CritModifiers
        preset_key: Stage table to use; unknown keys use gen7
        base_damage_mult: Crit damage multiplier before crit:damage tags
        fallback_base_chance: Base chance used only when the table is empty
        presets: Stage tables by key

    Returns:
        CritInfo with chance, damage multiplier, expected multiplier and stage
    """
    if isinstance(tags, CritModifiers):
        modifiers = tags
    elif isinstance(tags, EffectBundle):
        modifiers = tags.crit
    else:
        modifiers = resolve(tags).crit

    table = presets.get(preset_key)
    if table is None:
        table = presets.get(DEFAULT_CRIT_PRESET, CRIT_STAGE_PRESETS[DEFAULT_CRIT_PRESET])

    max_stage = max(0, len(table) - 1)
    stage = _stage_index(modifiers.stage_bonus, max_stage)

    if table:
        base_chance = table[stage]
    elif fallback_base_chance is not None:
        base_chance = fallback_base_chance
    else:
        base_chance = FALLBACK_BASE_CHANCE

    chance = clamp(base_chance + modifiers.chance_bonus, 0.0, 1.0)
    damage_mult = bounded(base_damage_mult * modifiers.damage_bonus_mult)
    expected_mult = bounded(1 + chance * (damage_mult - 1))

    return CritInfo(
        chance=chance,
        damage_mult=damage_mult,
        expected_mult=expected_mult,
        stage=stage,
        tags_applied=modifiers.tags_applied,
    )
