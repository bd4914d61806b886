"""
Potential scoring for a single creature.
Combines base stats, resolved tag effects, the type roster and the chart into
offensive/defensive potentials and a composite box rank.
"""
from __future__ import annotations

import math
from typing import Iterable, Mapping, Optional, Sequence, Tuple, Union

from crit import crit_expected_mult
from models import BaseStats, Potentials, TypeInfo
from settings import DEFAULT_CRIT_DAMAGE_MULT, DEFAULT_CRIT_PRESET
from tag_effects import EffectBundle, resolve
from type_chart import ChartInput, TypeChart, as_chart
from utils import bounded


# ===== FORMULA CONSTANTS =====

SPEED_WEIGHT = 0.6
STAB_POWER = 1.5
TYPE_DEF_EXPONENT = 0.65
STAB_EXPONENT = 0.6
INCOMING_FLOOR = 1e-6

SIDE_BEST_WEIGHT = 0.75
SIDE_MEAN_WEIGHT = 0.25

RANK_OFFENSE_WEIGHT = 0.56
RANK_DEFENSE_WEIGHT = 0.44
BALANCE_BASE = 0.88
BALANCE_WEIGHT = 0.12


def _product(*factors: float) -> float:
    """Left-to-right product that saturates instead of overflowing."""
    result = 1.0
    for factor in factors:
        result = bounded(result * factor)
    return result


def _power(base: float, exponent: float) -> float:
    try:
        return base ** exponent
    except OverflowError:
        return math.inf


def holder_type_names(type1_id: int, type2_id: Optional[int], all_types: Iterable[TypeInfo]) -> Tuple[str, ...]:
    """Names of the creature's own types, as far as the roster knows them."""
    by_id = {t.id: t.name for t in all_types}
    names = [by_id.get(type1_id)]
    if type2_id is not None:
        names.append(by_id.get(type2_id))
    return tuple(name for name in names if name)


# ===== COMPONENTS =====

def type_defense_adj(
    bundle: EffectBundle,
    type1_id: int,
    type2_id: Optional[int],
    all_types: Sequence[TypeInfo],
    chart: TypeChart,
) -> float:
    """
    Defensive typing factor.

    Root-mean-square of the incoming multiplier over every attacking type,
    inverted and compressed. Many weaknesses cost far more than one 4x.
    """
    incoming_sum = 0.0
    for atk in all_types:
        mult = _product(
            chart.against(atk.id, type1_id, type2_id),
            bundle.incoming_multiplier(atk.name),
            bundle.in_type_factor(atk.name),
        )
        if bundle.has_wonder_guard and mult <= 1:
            # Only super-effective hits get through
            mult = 0.0
        incoming_sum += mult * mult

    avg_incoming = incoming_sum / (len(all_types) or 1)
    safe_incoming = avg_incoming if avg_incoming > 0 else INCOMING_FLOOR
    type_def = 1 / math.sqrt(safe_incoming)
    return type_def ** TYPE_DEF_EXPONENT


def stab_adj(
    type1_id: int,
    type2_id: Optional[int],
    all_types: Sequence[TypeInfo],
    chart: TypeChart,
) -> float:
    """Offensive coverage of the creature's own types: power mean over defenders, compressed."""
    stab_sum = 0.0
    for defender in all_types:
        best = chart.best_offense(defender.id, type1_id, type2_id)
        stab_sum += _power(best, STAB_POWER)

    avg_stab = stab_sum / (len(all_types) or 1)
    stab_cov = avg_stab ** (1 / STAB_POWER)
    return bounded(stab_cov ** STAB_EXPONENT)


def blend_sides(physical: float, special: float) -> float:
    """Best side dominates, the other still counts a little."""
    return bounded(SIDE_BEST_WEIGHT * max(physical, special) + SIDE_MEAN_WEIGHT * ((physical + special) / 2))


def box_rank(offense: float, defense: float) -> Tuple[float, bool]:
    """
    Composite rank with a mild penalty (up to 12%) for lopsided builds.

    Returns:
        (box_rank, balance_invalid) where balance_invalid means both sides are zero
    """
    raw = bounded(RANK_OFFENSE_WEIGHT * offense + RANK_DEFENSE_WEIGHT * defense)
    max_side = max(offense, defense)
    balance_invalid = max_side == 0
    balance = 1.0 if balance_invalid else min(offense, defense) / max_side
    return bounded(raw * (BALANCE_BASE + BALANCE_WEIGHT * balance)), balance_invalid


# ===== PUBLIC API =====

def compute_potentials(
    stats: Union[BaseStats, Mapping[str, float]],
    tags: Iterable[str],
    type1_id: int,
    type2_id: Optional[int],
    all_types: Sequence[TypeInfo],
    chart_rows: ChartInput,
    crit_stage_preset: str = DEFAULT_CRIT_PRESET,
    crit_base_damage_mult: float = DEFAULT_CRIT_DAMAGE_MULT,
    crit_base_chance: Optional[float] = None,
) -> Potentials:
    """
    Score one creature.

    Args:
        stats: Base stats (BaseStats or a mapping keyed hp/atk/def/spa/spd/spe)
        tags: Raw tags from species, ability and item
        type1_id: Primary type id
        type2_id: Secondary type id, or None
        all_types: Visible type roster (chart-excluded types already removed)
        chart_rows: Chart rows or a prebuilt TypeChart
        crit_stage_preset: Crit stage table key
        crit_base_damage_mult: Crit damage multiplier before tags
        crit_base_chance: Fallback base crit chance for empty tables

    Returns:
        Potentials
    """
    if not isinstance(stats, BaseStats):
        stats = BaseStats.from_mapping(stats)
    all_types = list(all_types)
    chart = as_chart(chart_rows)

    bundle = resolve(tags, holder_type_names(type1_id, type2_id, all_types))
    adjusted = {key: bounded(value) for key, value in stats.scaled(bundle.stat_multipliers).items()}

    type_def_adj = type_defense_adj(bundle, type1_id, type2_id, all_types, chart)

    bulk_phys = _product(math.sqrt(_product(adjusted["hp"], adjusted["def"])), bundle.def_eff_mult)
    bulk_spec = _product(math.sqrt(_product(adjusted["hp"], adjusted["spd"])), bundle.spd_eff_mult)

    base_off_phys = bounded((1 - SPEED_WEIGHT) * adjusted["atk"] + SPEED_WEIGHT * adjusted["spe"])
    base_off_spec = bounded((1 - SPEED_WEIGHT) * adjusted["spa"] + SPEED_WEIGHT * adjusted["spe"])

    stab = stab_adj(type1_id, type2_id, all_types, chart)

    crit = crit_expected_mult(bundle, crit_stage_preset, crit_base_damage_mult, crit_base_chance)

    offensive_physical = _product(base_off_phys, stab, crit.expected_mult, bundle.off_mult, bundle.off_type_mult)
    offensive_special = _product(base_off_spec, stab, crit.expected_mult, bundle.off_mult, bundle.off_type_mult)
    defensive_physical = _product(bulk_phys, type_def_adj, bundle.defense_mult)
    defensive_special = _product(bulk_spec, type_def_adj, bundle.defense_mult)

    offense = blend_sides(offensive_physical, offensive_special)
    defense = blend_sides(defensive_physical, defensive_special)
    rank, balance_invalid = box_rank(offense, defense)

    return Potentials(
        offensive_physical=offensive_physical,
        offensive_special=offensive_special,
        defensive_physical=defensive_physical,
        defensive_special=defensive_special,
        offense=offense,
        defense=defense,
        box_rank=rank,
        balance_invalid=balance_invalid,
        crit_expected_mult=crit.expected_mult,
        crit_chance=crit.chance,
        crit_damage_mult=crit.damage_mult,
        crit_stage=crit.stage,
        crit_tags_applied=crit.tags_applied,
        type_defense_adj=type_def_adj,
        stab_adj=stab,
    )
