#!/usr/bin/env python3
"""
TeamForge Roster Analyzer - Rank a game's box and check the team's typing
"""

import argparse
import logging
import math
import sys
from pathlib import Path

from analyzer import RosterAnalyzer
from crit import CRIT_STAGE_PRESETS
from game_loader import load_game
from roster_warnings import WarningContext, evaluate_warnings, generate_warnings_summary


def non_negative_float(text):
    """argparse type for multipliers: a finite number, 0 or more."""
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{text!r} is not a number")
    if not math.isfinite(value) or value < 0:
        raise argparse.ArgumentTypeError(f"must be a finite number, 0 or more, got {text!r}")
    return value


def _fmt_mult(mult):
    if mult is None:
        return "  -  "
    return f"{mult:5.2f}"


def print_box(scores, top=None):
    """Print the ranked box."""
    print("\n" + "="*72)
    print("📦 BOX RANKING")
    print("="*72)

    if not scores:
        print("   Box is empty")
        return

    shown = scores[:top] if top else scores
    print(f"   {'#':>3}  {'Name':<16} {'Types':<18} {'Offense':>8} {'Defense':>8} {'Rank':>8}")
    for idx, score in enumerate(shown, start=1):
        p = score.potentials
        types = "/".join(score.type_names)
        flag = " ⚠️" if p.balance_invalid else ""
        print(f"   {idx:>3}  {score.name:<16.16} {types:<18.18} {p.offense:8.1f} {p.defense:8.1f} {p.box_rank:8.1f}{flag}")

    if top and len(scores) > top:
        print(f"   ... and {len(scores) - top} more")


def print_team(report):
    """Print the defense matrix and team chart."""
    print("\n" + "="*72)
    print("🛡️  TEAM DEFENSE MATRIX")
    print("="*72)

    headers = [slot.name[:5] if slot is not None else "-" for slot in report.slots]
    print(f"   {'Attacker':<12} " + " ".join(f"{h:>5}" for h in headers) + "   Weak Resist")
    for row in report.defense_matrix:
        cells = " ".join(_fmt_mult(m) for m in row.multipliers)
        print(f"   {row.attacking_type_name:<12.12} {cells}   {row.total_weak:>4} {row.total_resist:>6}")

    print(f"\n📊 TEAM CHART")
    for row in report.team_chart:
        bar = "🔴" * row.weak + "🟢" * row.resist + "⚪" * row.immune
        print(f"   {row.attacking_type_name:<12.12} weak {row.weak}  resist {row.resist}  immune {row.immune}  {bar}")

    if report.empty_slots:
        print(f"\n   Empty slots: {', '.join(str(n) for n in report.empty_slots)}")


def main(argv=None):
    """Main entry point for the roster analyzer."""

    parser = argparse.ArgumentParser(
        description="Rank a creature box and check team typing coverage",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py data/sample_game.json
  python main.py my_game.json --team --top 10
  python main.py my_game.json --crit-preset gen6 --verbose

Crit presets: """ + ", ".join(CRIT_STAGE_PRESETS)
    )

    parser.add_argument(
        'game',
        help='Path to the game JSON file'
    )

    parser.add_argument(
        '--team',
        action='store_true',
        help='Also show the team defense matrix and chart'
    )

    parser.add_argument(
        '--top',
        type=int,
        default=None,
        help='Only show the N best box entries'
    )

    parser.add_argument(
        '--crit-preset',
        default=None,
        help="Override the game's crit stage preset"
    )

    parser.add_argument(
        '--crit-damage',
        type=non_negative_float,
        default=None,
        help="Override the game's base crit damage multiplier"
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Show detailed progress information'
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Validate file exists
    game_path = Path(args.game)
    if not game_path.exists():
        print(f"Error: Game file '{args.game}' not found.")
        sys.exit(1)

    try:
        print(f"📄 Loading game: {game_path.name}")
        game = load_game(game_path)

        if args.verbose:
            print(f"Found {len(game.types)} types, {len(game.species)} species, {len(game.box)} box entries")

        settings = game.settings.with_overrides(
            crit_stage_preset=args.crit_preset,
            crit_base_damage_mult=args.crit_damage,
        )
        analyzer = RosterAnalyzer(game, settings)

        scores = analyzer.analyze_box()
        print_box(scores, args.top)

        report = None
        if args.team:
            report = analyzer.analyze_team()
            print_team(report)

        warnings = evaluate_warnings(WarningContext(settings=settings, box=scores, team=report))
        print("\n" + "="*72)
        print("⚠️  WARNINGS")
        print("="*72)
        print(generate_warnings_summary(warnings))

        print(f"\n✅ Analysis complete! Ranked {len(scores)} box entries for {game.name}.")

    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
