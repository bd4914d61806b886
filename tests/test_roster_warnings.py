from analyzer import BoxEntryScore, RosterAnalyzer, TeamReport
from conftest import GRASS
from game_loader import load_game
from models import TeamChartRow
from roster_warnings import (
    Severity,
    WarningContext,
    evaluate_warnings,
    generate_warnings_summary,
    rule_team_shared_weakness,
)
from scoring import compute_potentials
from settings import ScoringSettings


def _score(name, stats, tags, six_types):
    return BoxEntryScore(
        box_id=1,
        name=name,
        species_name=name,
        dex_number=1,
        type1_id=GRASS,
        type2_id=None,
        type_names=("Grass",),
        ability_name=None,
        item_name=None,
        tags=tuple(tags),
        potentials=compute_potentials(stats, tags, GRASS, None, six_types, []),
        ignored_tags=tuple(t for t in tags if t == "junk"),
    )


def _team(*rows):
    return TeamReport(slots=[], defense_matrix=[], team_chart=list(rows))


def test_shared_weakness_severity():
    high = TeamChartRow(1, "Ice", weak=3, resist=0, immune=0)
    warn = TeamChartRow(2, "Rock", weak=2, resist=1, immune=0)
    covered = TeamChartRow(3, "Fire", weak=2, resist=2, immune=0)
    immune = TeamChartRow(4, "Ground", weak=3, resist=0, immune=1)

    items = rule_team_shared_weakness(WarningContext(settings=ScoringSettings(), team=_team(high, warn, covered, immune)))
    by_type = {w.title: w.severity for w in items}
    assert by_type["Shared Ice Weakness"] == Severity.HIGH
    assert by_type["Shared Rock Weakness"] == Severity.WARN
    assert by_type["Shared Ground Weakness"] == Severity.WARN
    assert "Shared Fire Weakness" not in by_type


def test_box_rules(six_types):
    zero = {key: 0 for key in ("hp", "atk", "def", "spa", "spd", "spe")}
    fine = {key: 80 for key in ("hp", "atk", "def", "spa", "spd", "spe")}
    box = [_score("Husk", zero, [], six_types), _score("Tagged", fine, ["junk"], six_types)]

    report = evaluate_warnings(WarningContext(settings=ScoringSettings(crit_stage_preset="gen9"), box=box))
    codes = [w.code for w in report.items]
    assert codes == ["BALANCE_INVALID", "IGNORED_TAGS", "UNKNOWN_CRIT_PRESET"]
    assert report.by_code("BALANCE_INVALID")[0].detail == "Rank could not be balanced for Husk"
    assert report.by_code("IGNORED_TAGS")[0].evidence == ["junk"]


def test_sample_game_warnings(sample_game_path):
    game = load_game(sample_game_path)
    analyzer = RosterAnalyzer(game)
    report = evaluate_warnings(WarningContext(
        settings=game.settings,
        box=analyzer.analyze_box(),
        team=analyzer.analyze_team(),
    ))
    empty = report.by_code("TEAM_EMPTY_SLOTS")
    assert len(empty) == 1
    assert empty[0].evidence == ["slot 5", "slot 6"]
    assert report.get_high() == []


def test_severity_order_and_dedupe():
    row = TeamChartRow(1, "Ice", weak=3, resist=0, immune=0)
    ctx = WarningContext(settings=ScoringSettings(crit_stage_preset="gen9"), team=_team(row))
    report = evaluate_warnings(ctx, rules=[rule_team_shared_weakness, rule_team_shared_weakness])
    assert len(report.items) == 1

    report = evaluate_warnings(ctx)
    assert report.items[0].severity == Severity.HIGH
    assert report.items[-1].severity == Severity.INFO


def test_summary_text():
    assert "No warnings detected" in generate_warnings_summary(evaluate_warnings(
        WarningContext(settings=ScoringSettings())
    ))

    ctx = WarningContext(settings=ScoringSettings(), team=_team(TeamChartRow(1, "Ice", weak=3, resist=0, immune=0)))
    summary = generate_warnings_summary(evaluate_warnings(ctx))
    assert "Total Warnings: 1" in summary
    assert "HIGH (1):" in summary
    assert "Shared Ice Weakness" in summary
