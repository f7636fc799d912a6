import json

import pytest

from skullking_scorer.cli import main
from skullking_scorer.config import Settings


@pytest.fixture
def settings(tmp_path):
    return Settings(data_dir=tmp_path / "data")


def _run(argv, settings):
    main(argv, settings=settings)


def _load(path):
    return json.loads(path.read_text(encoding="utf-8"))


def test_full_game_through_cli(tmp_path, settings, capsys):
    game = tmp_path / "game.json"

    _run(["new", str(game), "--players", "Alice", "Bob", "--rounds", "2"], settings)
    data = _load(game)
    assert data["players"] == ["Alice", "Bob"]
    assert data["totalRounds"] == 2
    assert data["rounds"] == {}

    _run(["bid", str(game), "Alice=2", "Bob=0"], settings)
    _run(["score", str(game), "Alice=2,10", "Bob=1"], settings)
    data = _load(game)
    assert data["currentRound"] == 2
    assert data["rounds"]["1"]["scores"]["Alice"]["totalPoints"] == 50
    assert data["rounds"]["1"]["scores"]["Bob"]["totalPoints"] == -10

    _run(["bid", str(game), "Alice=1", "Bob=1"], settings)
    _run(["score", str(game), "Alice=0", "Bob=1"], settings)
    capsys.readouterr()

    _run(["finish", str(game), "--csv", "scores.csv", "--plot", "totals.png"], settings)
    out = capsys.readouterr().out
    # Alice: 50 - 10 = 40 ; Bob: -10 + 20 = 10
    assert "1. Alice: 40" in out
    assert "2. Bob: 10" in out
    assert (settings.data_dir / "scores.csv").exists()
    assert (settings.data_dir / "totals.png").exists()

    _run(["history"], settings)
    assert "Alice won with 40" in capsys.readouterr().out

    _run(["stats"], settings)
    stats_out = capsys.readouterr().out
    assert "Alice" in stats_out and "Bob" in stats_out

    _run(["names"], settings)
    assert capsys.readouterr().out.split() == ["Alice", "Bob"]


def test_table_shows_display_values(tmp_path, settings, capsys):
    game = tmp_path / "game.json"
    _run(["new", str(game), "--players", "Ann", "Ben", "Cy", "--rounds", "3"], settings)
    _run(["bid", str(game), "Ann=1", "Ben=2"], settings)
    capsys.readouterr()

    _run(["table", str(game)], settings)
    out = capsys.readouterr().out
    assert "B:1" in out
    assert "B:2" in out
    assert "bidding" in out
    assert "not-started" in out


def test_goto_and_extend(tmp_path, settings, capsys):
    game = tmp_path / "game.json"
    _run(["new", str(game), "--players", "A", "B", "--rounds", "1"], settings)
    _run(["bid", str(game), "A=1", "B=0"], settings)
    _run(["extend", str(game)], settings)
    data = _load(game)
    assert data["totalRounds"] == 2
    assert data["currentRound"] == 2
    assert "totalPoints" in data["rounds"]["1"]["scores"]["A"]

    capsys.readouterr()
    _run(["goto", str(game), "1"], settings)
    out = capsys.readouterr().out
    assert "A: bid 1" in out
    assert _load(game)["currentRound"] == 1

    # Not on the final round any more
    with pytest.raises(SystemExit):
        _run(["extend", str(game)], settings)


def test_rejects_bad_input(tmp_path, settings):
    game = tmp_path / "game.json"
    with pytest.raises(SystemExit):
        _run(["new", str(game), "--players", "Solo"], settings)
    with pytest.raises(SystemExit):
        _run(["new", str(game), "--players", "A", "A"], settings)
    assert not game.exists()

    _run(["new", str(game), "--players", "A", "B"], settings)
    assert _load(game)["totalRounds"] == 10

    with pytest.raises(SystemExit):
        _run(["bid", str(game), "Zed=1"], settings)
    with pytest.raises(SystemExit):
        _run(["bid", str(game), "A=-1"], settings)
    with pytest.raises(SystemExit):
        _run(["bid", str(game), "--round", "11", "A=1"], settings)
    with pytest.raises(SystemExit):
        _run(["table", str(tmp_path / "missing.json")], settings)


def test_clear_commands(tmp_path, settings, capsys):
    game = tmp_path / "game.json"
    _run(["new", str(game), "--players", "A", "B", "--rounds", "1"], settings)
    _run(["bid", str(game), "A=0", "B=0"], settings)
    _run(["score", str(game), "A=0", "B=0"], settings)
    _run(["finish", str(game)], settings)

    _run(["clear-history"], settings)
    _run(["clear-stats"], settings)
    _run(["clear-names"], settings)
    capsys.readouterr()

    _run(["history"], settings)
    assert "No games recorded yet." in capsys.readouterr().out
    _run(["stats"], settings)
    assert "No player statistics yet." in capsys.readouterr().out
    _run(["names"], settings)
    assert capsys.readouterr().out == ""


def test_finish_no_record(tmp_path, settings, capsys):
    game = tmp_path / "game.json"
    _run(["new", str(game), "--players", "A", "B", "--rounds", "1"], settings)
    _run(["finish", str(game), "--no-record"], settings)
    capsys.readouterr()
    _run(["history"], settings)
    assert "No games recorded yet." in capsys.readouterr().out


def test_finish_unfinished_game_is_not_recorded(tmp_path, settings, capsys):
    game = tmp_path / "game.json"
    _run(["new", str(game), "--players", "A", "B", "--rounds", "3"], settings)
    capsys.readouterr()

    _run(["finish", str(game)], settings)
    assert "not recorded" in capsys.readouterr().out

    _run(["history"], settings)
    assert "No games recorded yet." in capsys.readouterr().out
    _run(["stats"], settings)
    assert "No player statistics yet." in capsys.readouterr().out


def test_finish_twice_records_once(tmp_path, settings, capsys):
    game = tmp_path / "game.json"
    _run(["new", str(game), "--players", "A", "B", "--rounds", "1"], settings)
    _run(["bid", str(game), "A=1", "B=0"], settings)
    _run(["score", str(game), "A=1", "B=0"], settings)

    _run(["finish", str(game)], settings)
    _run(["finish", str(game)], settings)
    capsys.readouterr()

    _run(["history"], settings)
    lines = capsys.readouterr().out.strip().splitlines()
    assert len(lines) == 1
    assert "A won with 20" in lines[0]
