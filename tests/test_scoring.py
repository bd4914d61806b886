import dataclasses
import math
import sys

import pytest

from conftest import FIRE, GRASS
from models import BaseStats
from scoring import blend_sides, box_rank, compute_potentials

GEN7_BASE = 1 + (1 / 24) * 0.5


def test_neutral_chart_exact_values(six_types):
    stats = {key: 100 for key in ("hp", "atk", "def", "spa", "spd", "spe")}
    p = compute_potentials(stats, [], GRASS, None, six_types, [])

    assert p.type_defense_adj == pytest.approx(1.0)
    assert p.stab_adj == pytest.approx(1.0)
    assert p.defensive_physical == pytest.approx(100.0)
    assert p.defensive_special == pytest.approx(100.0)
    assert p.offensive_physical == pytest.approx(100 * GEN7_BASE)
    assert p.offense == pytest.approx(100 * GEN7_BASE)
    assert p.defense == pytest.approx(100.0)

    raw = 0.56 * p.offense + 0.44 * p.defense
    assert p.box_rank == pytest.approx(raw * (0.88 + 0.12 * (100 / p.offense)))
    assert not p.balance_invalid


def test_bulbasaur_reference(six_types, grass_chart, bulbasaur_stats):
    p = compute_potentials(bulbasaur_stats, [], GRASS, None, six_types, grass_chart)

    # Fire 2x, Water 0.5x, four neutral attackers: mean square 8.25 / 6
    adj = (8.25 / 6) ** -0.325
    assert p.type_defense_adj == pytest.approx(adj)
    assert p.defensive_physical == pytest.approx(math.sqrt(45 * 49) * adj)
    assert p.defensive_special == pytest.approx(math.sqrt(45 * 65) * adj)
    assert p.defensive_physical == pytest.approx(42.3405, abs=1e-3)
    assert p.defensive_special == pytest.approx(48.7657, abs=1e-3)

    # Grass has no charted offense here, so coverage stays neutral
    assert p.stab_adj == pytest.approx(1.0)
    assert p.offensive_physical == pytest.approx((0.4 * 49 + 0.6 * 45) * GEN7_BASE)
    assert p.offensive_special == pytest.approx((0.4 * 65 + 0.6 * 45) * GEN7_BASE)


def test_accepts_base_stats_object(six_types, grass_chart, bulbasaur_stats):
    from_mapping = compute_potentials(bulbasaur_stats, [], GRASS, None, six_types, grass_chart)
    from_object = compute_potentials(BaseStats.from_mapping(bulbasaur_stats), [], GRASS, None, six_types, grass_chart)
    assert from_mapping == from_object


def test_deterministic(six_types, grass_chart, bulbasaur_stats):
    tags = ["mult:atk:1.2", "resist:fire", "crit:stage:+1"]
    first = compute_potentials(bulbasaur_stats, tags, GRASS, None, six_types, grass_chart)
    second = compute_potentials(bulbasaur_stats, list(reversed(tags)), GRASS, None, six_types, grass_chart)
    assert first == second


def test_zero_stats_flag_balance_invalid(six_types):
    stats = {key: 0 for key in ("hp", "atk", "def", "spa", "spd", "spe")}
    p = compute_potentials(stats, [], GRASS, None, six_types, [])
    assert p.offense == 0
    assert p.defense == 0
    assert p.box_rank == 0
    assert p.balance_invalid


def test_box_rank_monotone_in_each_side():
    for defense in (10.0, 50.0, 100.0, 200.0):
        ranks = [box_rank(offense, defense)[0] for offense in range(0, 400, 5)]
        assert all(b > a for a, b in zip(ranks, ranks[1:]))
    for offense in (10.0, 50.0, 100.0, 200.0):
        ranks = [box_rank(offense, defense)[0] for defense in range(0, 400, 5)]
        assert all(b > a for a, b in zip(ranks, ranks[1:]))


def test_blend_sides_weights_best_side():
    assert blend_sides(100, 0) == pytest.approx(0.75 * 100 + 0.25 * 50)
    assert blend_sides(40, 40) == pytest.approx(40)


def test_resist_tag_raises_defense(six_types, grass_chart, bulbasaur_stats):
    plain = compute_potentials(bulbasaur_stats, [], GRASS, None, six_types, grass_chart)
    resist = compute_potentials(bulbasaur_stats, ["resist:fire"], GRASS, None, six_types, grass_chart)
    # Fire drops from 2x to 1x: mean square 5.25 / 6
    assert resist.type_defense_adj == pytest.approx((5.25 / 6) ** -0.325)
    assert resist.defense > plain.defense
    assert resist.offense == pytest.approx(plain.offense)


def test_immunity_uses_floor(six_types, bulbasaur_stats):
    tags = ["immune:" + t.name for t in six_types]
    p = compute_potentials(bulbasaur_stats, tags, GRASS, None, six_types, [])
    assert p.type_defense_adj == pytest.approx((1 / math.sqrt(1e-6)) ** 0.65)


def test_wonder_guard_only_lets_super_effective_through(six_types, grass_chart, bulbasaur_stats):
    p = compute_potentials(bulbasaur_stats, ["flag:wonder_guard"], GRASS, None, six_types, grass_chart)
    assert p.type_defense_adj == pytest.approx((4 / 6) ** -0.325)


def test_in_type_tag_scales_incoming(six_types, grass_chart, bulbasaur_stats):
    p = compute_potentials(bulbasaur_stats, ["mult:in_type:fire:0.5"], GRASS, None, six_types, grass_chart)
    assert p.type_defense_adj == pytest.approx((5.25 / 6) ** -0.325)


def test_off_type_needs_matching_holder(six_types, bulbasaur_stats):
    plain = compute_potentials(bulbasaur_stats, [], GRASS, None, six_types, [])
    boosted = compute_potentials(bulbasaur_stats, ["mult:off_type:grass:1.5"], GRASS, None, six_types, [])
    other = compute_potentials(bulbasaur_stats, ["mult:off_type:grass:1.5"], FIRE, None, six_types, [])
    assert boosted.offensive_physical == pytest.approx(plain.offensive_physical * 1.5)
    assert other.offensive_physical == pytest.approx(plain.offensive_physical)


def test_stat_and_bulk_multipliers(six_types, bulbasaur_stats):
    plain = compute_potentials(bulbasaur_stats, [], GRASS, None, six_types, [])
    tagged = compute_potentials(
        bulbasaur_stats,
        ["mult:stat_if_type:atk:grass:2", "mult:defeff:1.5", "mult:spdeff:2", "mult:defense:1.1"],
        GRASS, None, six_types, [],
    )
    assert tagged.offensive_physical == pytest.approx((0.4 * 98 + 0.6 * 45) * GEN7_BASE)
    assert tagged.offensive_special == pytest.approx(plain.offensive_special)
    assert tagged.defensive_physical == pytest.approx(plain.defensive_physical * 1.5 * 1.1)
    assert tagged.defensive_special == pytest.approx(plain.defensive_special * 2 * 1.1)


def test_stab_covers_dual_types(six_types, grass_chart, bulbasaur_stats):
    from models import TypeChartRow
    rows = grass_chart + [TypeChartRow(FIRE, GRASS, 2.0), TypeChartRow(GRASS, FIRE, 0.5)]
    mono = compute_potentials(bulbasaur_stats, [], GRASS, None, six_types, rows)
    dual = compute_potentials(bulbasaur_stats, [], GRASS, FIRE, six_types, rows)
    # Fire's 2x into Grass lifts the best-of-own-types coverage
    assert dual.stab_adj > mono.stab_adj


def test_crit_settings_flow_through(six_types, bulbasaur_stats):
    p = compute_potentials(
        bulbasaur_stats, ["crit:stage:+3"], GRASS, None, six_types, [],
        crit_stage_preset="gen6", crit_base_damage_mult=2.0,
    )
    assert p.crit_chance == 1.0
    assert p.crit_expected_mult == pytest.approx(2.0)
    assert p.crit_tags_applied


def test_box_rank_rises_with_every_base_stat(six_types, grass_chart, bulbasaur_stats):
    for key in ("hp", "atk", "def", "spa", "spd", "spe"):
        ranks = []
        for bump in range(0, 200, 10):
            stats = dict(bulbasaur_stats, **{key: bulbasaur_stats[key] + bump})
            ranks.append(compute_potentials(stats, [], GRASS, None, six_types, grass_chart).box_rank)
        assert all(b > a for a, b in zip(ranks, ranks[1:])), key


def _all_finite(p):
    return all(
        math.isfinite(getattr(p, f.name))
        for f in dataclasses.fields(p)
        if isinstance(getattr(p, f.name), float)
    )


def test_overflowing_hp_multiplier_on_zero_stats_is_not_nan(six_types):
    stats = {key: 0 for key in ("hp", "atk", "def", "spa", "spd", "spe")}
    p = compute_potentials(stats, ["mult:hp:1e200", "mult:hp:1e200"], GRASS, None, six_types, [])
    assert _all_finite(p)
    assert p.defensive_physical == 0
    assert p.box_rank == 0
    assert p.balance_invalid


def test_overflowing_multipliers_keep_potentials_finite(six_types, grass_chart, bulbasaur_stats):
    tags = ["mult:hp:1e200", "mult:hp:1e200", "mult:off:1e300", "mult:off:1e300", "mult:atk:1e300"]
    p = compute_potentials(bulbasaur_stats, tags, GRASS, None, six_types, grass_chart)
    assert _all_finite(p)
    assert p.offensive_physical == sys.float_info.max
    assert p.box_rank > compute_potentials(bulbasaur_stats, [], GRASS, None, six_types, grass_chart).box_rank


def test_infinite_crit_stage_bonus_caps_at_top_stage(six_types, bulbasaur_stats):
    p = compute_potentials(
        bulbasaur_stats, ["crit:stage:+1e308", "crit:stage:+1e308"], GRASS, None, six_types, [],
    )
    assert p.crit_stage == 3
    assert p.crit_chance == 1.0
    assert p.crit_expected_mult == pytest.approx(1.5)
    assert _all_finite(p)
