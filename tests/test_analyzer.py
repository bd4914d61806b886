import pytest

from analyzer import RosterAnalyzer, filter_box
from game_loader import GameParser, load_game
from models import SpeciesOverride


@pytest.fixture
def game(sample_game_path):
    return load_game(sample_game_path)


def _by_name(scores, name):
    return next(s for s in scores if s.name == name)


def test_box_is_ranked_best_first(game):
    scores = RosterAnalyzer(game).analyze_box()
    assert len(scores) == 4
    ranks = [s.box_rank for s in scores]
    assert ranks == sorted(ranks, reverse=True)


def test_entry_tags_combine_species_ability_and_item(game):
    scores = RosterAnalyzer(game).analyze_box()
    sparky = _by_name(scores, "Sparky")
    assert sparky.species_name == "Pikachu"
    assert sparky.ability_name == "Swift Feet"
    assert sparky.item_name == "Insulating Boots"
    assert sparky.tags == ("mult:speed:1.2", "immune:ground")
    assert sparky.type_names == ("Electric",)
    assert sparky.ignored_tags == ()


def test_disabled_abilities_and_items_drop_their_tags(game):
    settings = game.settings.with_overrides(disable_abilities=True, disable_held_items=True)
    plain = _by_name(RosterAnalyzer(game, settings).analyze_box(), "Sparky")
    full = _by_name(RosterAnalyzer(game).analyze_box(), "Sparky")
    assert plain.tags == ()
    assert plain.ability_name is None
    assert plain.potentials.offense < full.potentials.offense


def test_species_override_changes_typing_and_stats(game):
    base = _by_name(RosterAnalyzer(game).analyze_box(), "Sparky")
    game.overrides[4] = SpeciesOverride(species_id=4, type1_id=6, stats={"spe": 10})
    sparky = _by_name(RosterAnalyzer(game).analyze_box(), "Sparky")
    assert sparky.type1_id == 6
    assert sparky.type_names == ("Ground",)
    assert sparky.potentials.offense < base.potentials.offense


def test_team_report(game):
    report = RosterAnalyzer(game).analyze_team()
    assert report.empty_slots == [5, 6]
    assert [m.name for m in report.members] == ["Bulbasaur", "Charmander", "Squirtle", "Sparky"]

    ground = next(r for r in report.defense_matrix if r.attacking_type_name == "Ground")
    assert ground.multipliers == (0.5, 2.0, 1.0, 0.0, None, None)
    assert (ground.total_weak, ground.total_resist) == (1, 1)

    fire = next(r for r in report.defense_matrix if r.attacking_type_name == "Fire")
    # Rock Skin's resist:fire cancels Fire's 2x on Bulbasaur
    assert fire.multipliers == (1.0, 1.0, 0.5, 1.0, None, None)

    ground_chart = next(r for r in report.team_chart if r.attacking_type_name == "Ground")
    assert (ground_chart.weak, ground_chart.resist, ground_chart.immune) == (1, 1, 1)


def test_empty_team(game):
    game.team = [None] * 6
    report = RosterAnalyzer(game).analyze_team()
    assert report.members == []
    assert report.empty_slots == [1, 2, 3, 4, 5, 6]
    assert all(r.weak == 0 for r in report.team_chart)


def test_filter_box(game):
    scores = RosterAnalyzer(game).analyze_box()
    assert [s.name for s in filter_box(scores, search="SPARK")] == ["Sparky"]
    assert [s.name for s in filter_box(scores, search="pika")] == ["Sparky"]
    assert [s.name for s in filter_box(scores, type_id=4)] == ["Bulbasaur"]
    assert filter_box(scores, min_rank=1e9) == []
    assert filter_box(scores) == scores


def test_rank_ties_go_by_dex_number():
    twin = {"type1_id": 1, "hp": 50, "atk": 50, "def": 50, "spa": 50, "spd": 50, "spe": 50}
    game = GameParser().parse({
        "types": [{"id": 1, "name": "Normal"}],
        "chart": [],
        "species": [
            dict(twin, id=1, name="Later", dex_number=30),
            dict(twin, id=2, name="Earlier", dex_number=12),
        ],
        "box": [{"id": 1, "species_id": 1}, {"id": 2, "species_id": 2}],
    })
    scores = RosterAnalyzer(game).analyze_box()
    assert scores[0].box_rank == scores[1].box_rank
    assert [s.name for s in scores] == ["Earlier", "Later"]
    assert [s.dex_number for s in scores] == [12, 30]
