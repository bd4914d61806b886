"""
Warning system for roster analysis.
Runs a list of rules over the scored box and team and collects structured warnings.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional

from analyzer import BoxEntryScore, TeamReport
from crit import is_known_preset
from settings import ScoringSettings


class Severity(Enum):
    """Warning severity levels"""
    INFO = "info"  # Worth knowing, not a problem
    WARN = "warn"  # Likely to skew the ranking or hurt the team
    HIGH = "high"  # Team has a glaring hole


@dataclass(frozen=True)
class WarningItem:
    """A single warning with structured data"""
    code: str  # Stable ID: "TEAM_SHARED_WEAKNESS"
    severity: Severity
    title: str
    detail: str
    evidence: List[str] = field(default_factory=list)  # names, tags, counts
    suggestion: Optional[str] = None


@dataclass
class WarningsReport:
    """Collection of all warnings"""
    items: List[WarningItem]

    def by_severity(self) -> Dict[Severity, List[WarningItem]]:
        """Group warnings by severity"""
        out: Dict[Severity, List[WarningItem]] = defaultdict(list)
        for w in self.items:
            out[w.severity].append(w)
        return dict(out)

    def by_code(self, code: str) -> List[WarningItem]:
        return [w for w in self.items if w.code == code]

    def get_high(self) -> List[WarningItem]:
        return [w for w in self.items if w.severity == Severity.HIGH]


@dataclass
class WarningContext:
    """Context data for warning evaluation"""
    settings: ScoringSettings
    box: List[BoxEntryScore] = field(default_factory=list)
    team: Optional[TeamReport] = None


# Type for warning rules
WarningRule = Callable[[WarningContext], List[WarningItem]]


# ===== BOX RULES =====

def rule_balance_invalid(ctx: WarningContext) -> List[WarningItem]:
    """Entries whose offense and defense both collapsed to zero."""
    items = []
    for score in ctx.box:
        if score.potentials.balance_invalid:
            items.append(WarningItem(
                code="BALANCE_INVALID",
                severity=Severity.WARN,
                title="Unbalanced Rank",
                detail=f"Rank could not be balanced for {score.name}",
                evidence=list(score.tags),
                suggestion="Check for zeroed stats or stacked immunity tags",
            ))
    return items


def rule_ignored_tags(ctx: WarningContext) -> List[WarningItem]:
    """Tags that parse to nothing and therefore do nothing."""
    items = []
    for score in ctx.box:
        if score.ignored_tags:
            items.append(WarningItem(
                code="IGNORED_TAGS",
                severity=Severity.INFO,
                title="Unrecognized Tags",
                detail=f"{score.name} has {len(score.ignored_tags)} tag(s) with no effect",
                evidence=list(score.ignored_tags),
                suggestion="Use the tag builder to write tags in a recognized form",
            ))
    return items


def rule_unknown_crit_preset(ctx: WarningContext) -> List[WarningItem]:
    preset = ctx.settings.crit_stage_preset
    if is_known_preset(preset):
        return []
    return [WarningItem(
        code="UNKNOWN_CRIT_PRESET",
        severity=Severity.INFO,
        title="Unknown Crit Preset",
        detail=f"Crit preset '{preset}' is not known; gen7 stages are used instead",
        evidence=[preset],
    )]


# ===== TEAM RULES =====

def rule_team_shared_weakness(ctx: WarningContext) -> List[WarningItem]:
    """
    Attacking types that hit several members super-effectively.

    HIGH when three or more members are weak and nobody resists;
    WARN when two or more are weak and weaknesses outnumber resists.
    """
    if ctx.team is None:
        return []

    items = []
    for row in ctx.team.team_chart:
        # Immunities cover a weakness as well as a resist does
        cover = row.resist + row.immune
        if row.weak >= 3 and cover == 0:
            severity = Severity.HIGH
        elif row.weak >= 2 and row.weak > cover:
            severity = Severity.WARN
        else:
            continue
        items.append(WarningItem(
            code="TEAM_SHARED_WEAKNESS",
            severity=severity,
            title=f"Shared {row.attacking_type_name} Weakness",
            detail=f"{row.weak} member(s) weak to {row.attacking_type_name}, {cover} resist or immune",
            evidence=[f"weak={row.weak}", f"resist={row.resist}", f"immune={row.immune}"],
            suggestion=f"Add a member that resists {row.attacking_type_name}",
        ))
    return items


def rule_team_empty_slots(ctx: WarningContext) -> List[WarningItem]:
    if ctx.team is None or not ctx.team.empty_slots:
        return []
    slots = ctx.team.empty_slots
    return [WarningItem(
        code="TEAM_EMPTY_SLOTS",
        severity=Severity.INFO,
        title="Empty Team Slots",
        detail=f"{len(slots)} of 6 team slots are empty",
        evidence=[f"slot {n}" for n in slots],
    )]


# ===== RULE REGISTRY =====

def default_rules() -> List[WarningRule]:
    """Get default warning rules"""
    return [
        rule_balance_invalid,
        rule_ignored_tags,
        rule_unknown_crit_preset,
        rule_team_shared_weakness,
        rule_team_empty_slots,
    ]


def evaluate_warnings(
    ctx: WarningContext,
    rules: Optional[List[WarningRule]] = None
) -> WarningsReport:
    """
    Evaluate all warning rules against context.

    Args:
        ctx: WarningContext with box and team data
        rules: Optional custom rule set (uses defaults if None)

    Returns:
        WarningsReport with all detected warnings
    """
    if rules is None:
        rules = default_rules()

    items: List[WarningItem] = []
    for rule in rules:
        items.extend(rule(ctx))

    # Deduplicate (same code and detail); per-entry rules emit one item per entry
    seen = set()
    unique_items = []
    for item in items:
        key = (item.code, item.detail)
        if key not in seen:
            seen.add(key)
            unique_items.append(item)

    severity_order = {
        Severity.HIGH: 0,
        Severity.WARN: 1,
        Severity.INFO: 2,
    }
    # Stable sort keeps rule order within a severity and code
    unique_items.sort(key=lambda w: (severity_order[w.severity], w.code))

    return WarningsReport(items=unique_items)


def generate_warnings_summary(report: WarningsReport) -> str:
    """Generate human-readable warnings summary"""
    if not report.items:
        return "No warnings detected - roster looks clean!"

    lines = [f"Total Warnings: {len(report.items)}"]

    by_severity = report.by_severity()

    for severity in [Severity.HIGH, Severity.WARN, Severity.INFO]:
        warnings = by_severity.get(severity, [])
        if warnings:
            lines.append(f"\n{severity.value.upper()} ({len(warnings)}):")
            for w in warnings:
                lines.append(f"\n  {w.title}")
                lines.append(f"    {w.detail}")
                if w.evidence:
                    lines.append(f"    Evidence: {', '.join(w.evidence[:5])}")
                    if len(w.evidence) > 5:
                        lines.append(f"    ... and {len(w.evidence) - 5} more")
                if w.suggestion:
                    lines.append(f"    💡 {w.suggestion}")

    return "\n".join(lines)
