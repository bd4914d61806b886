import pytest

from main import main


def test_cli_prints_box_team_and_warnings(sample_game_path, capsys):
    main([sample_game_path, "--team", "--top", "2"])
    out = capsys.readouterr().out
    assert "BOX RANKING" in out
    assert "... and 2 more" in out
    assert "TEAM DEFENSE MATRIX" in out
    assert "TEAM CHART" in out
    assert "Empty Team Slots" in out
    assert "Ranked 4 box entries for Starter Run" in out


def test_cli_crit_override(sample_game_path, capsys):
    main([sample_game_path, "--crit-preset", "gen9"])
    out = capsys.readouterr().out
    assert "Unknown Crit Preset" in out
    assert "TEAM DEFENSE MATRIX" not in out


def test_cli_missing_file(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main([str(tmp_path / "missing.json")])
    assert exc.value.code == 1
    assert "not found" in capsys.readouterr().out


def test_cli_invalid_game(tmp_path, capsys):
    path = tmp_path / "broken.json"
    path.write_text('{"types": []}', encoding="utf-8")
    with pytest.raises(SystemExit):
        main([str(path)])
    assert "Error" in capsys.readouterr().out


@pytest.mark.parametrize("value", ["-1", "inf", "abc"])
def test_cli_rejects_bad_crit_damage(sample_game_path, capsys, value):
    with pytest.raises(SystemExit) as exc:
        main([sample_game_path, "--crit-damage", value])
    assert exc.value.code == 2
    assert "--crit-damage" in capsys.readouterr().err


def test_cli_accepts_fractional_crit_damage(sample_game_path, capsys):
    main([sample_game_path, "--crit-damage", "0.5"])
    assert "Analysis complete" in capsys.readouterr().out
