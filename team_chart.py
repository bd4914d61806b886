"""
Team defensive coverage against every attacking type.
"""
from __future__ import annotations

from typing import List, Optional, Sequence

from models import DefenseMatrixRow, TeamChartRow, TeamMember, TypeInfo
from tag_effects import fold_incoming, parse_tag
from type_chart import ChartInput, TypeChart, as_chart


def _member_effects(member: TeamMember):
    return [effect for effect in (parse_tag(tag) for tag in member.tags) if effect is not None]


def _member_multiplier(member: TeamMember, effects, attacker: TypeInfo, chart: TypeChart) -> float:
    """
    Net multiplier of one attacking type against one member.

    mult:in_type tags are folded in the same pass as resist/weak/immune here.
    """
    return fold_incoming(
        effects,
        attacker.name,
        chart_multiplier=chart.against(attacker.id, member.type1_id, member.type2_id),
        treat_in_type_as_resist=True,
    )


def compute_defense_matrix(
    members: Sequence[Optional[TeamMember]],
    all_types: Sequence[TypeInfo],
    chart_rows: ChartInput,
) -> List[DefenseMatrixRow]:
    """
    Per-attacking-type, per-slot multiplier grid.

    Args:
        members: Team slots in order; None marks an empty slot
        all_types: Visible type roster; row order follows it
        chart_rows: Chart rows or a prebuilt TypeChart

    Returns:
        One DefenseMatrixRow per attacking type. Empty slots are None and
        don't count; a 0 (immune) counts as neither weak nor resist.
    """
    chart = as_chart(chart_rows)
    slot_effects = [_member_effects(m) if m is not None else None for m in members]

    rows: List[DefenseMatrixRow] = []
    for atk in all_types:
        weak = 0
        resist = 0
        multipliers: List[Optional[float]] = []

        for member, effects in zip(members, slot_effects):
            if member is None:
                multipliers.append(None)
                continue
            mult = _member_multiplier(member, effects, atk, chart)
            if mult > 1:
                weak += 1
            elif 0 < mult < 1:
                resist += 1
            multipliers.append(mult)

        rows.append(DefenseMatrixRow(
            attacking_type_id=atk.id,
            attacking_type_name=atk.name,
            attacking_type_color=atk.color,
            multipliers=tuple(multipliers),
            total_weak=weak,
            total_resist=resist,
        ))

    return rows


def compute_team_chart(
    members: Sequence[TeamMember],
    all_types: Sequence[TypeInfo],
    chart_rows: ChartInput,
) -> List[TeamChartRow]:
    """
    Weak/resist/immune summary of a team (no empty slots).

    Same multiplier as the defense matrix, but a 0 is bucketed as immune.
    """
    chart = as_chart(chart_rows)
    member_effects = [_member_effects(m) for m in members]

    rows: List[TeamChartRow] = []
    for atk in all_types:
        weak = 0
        resist = 0
        immune = 0

        for member, effects in zip(members, member_effects):
            mult = _member_multiplier(member, effects, atk, chart)
            if mult == 0:
                immune += 1
            elif mult > 1:
                weak += 1
            elif mult < 1:
                resist += 1

        rows.append(TeamChartRow(
            attacking_type_id=atk.id,
            attacking_type_name=atk.name,
            weak=weak,
            resist=resist,
            immune=immune,
        ))

    return rows
