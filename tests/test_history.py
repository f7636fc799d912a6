import copy
import json
from datetime import datetime, timedelta, timezone

import pytest

from skullking_scorer.engine import record_bids, record_scores
from skullking_scorer.history import (
    GAME_LOG_KEY,
    STATS_KEY,
    GameHistory,
    PlayerStats,
    apply_game_to_stats,
    build_game_summary,
)
from skullking_scorer.rules import summarize
from skullking_scorer.state import ScoreEntry, create_game
from skullking_scorer.store import JsonFileStore, KeyValueStore, MemoryStore, StoreError


def _finished_game(players=("Alice", "Bob", "Cara")):
    state = create_game(list(players), 1)
    bids = {name: 1 for name in players}
    state = record_bids(state, 1, bids)
    entries = {name: ScoreEntry(bid=1) for name in players}
    # First player makes their bid
    entries[players[0]] = ScoreEntry(bid=1, made_bid=True, tricks_won=1)
    return record_scores(state, 1, entries)


class _BrokenStore:
    def get(self, key):
        raise StoreError("store unavailable")

    def set(self, key, value):
        raise StoreError("store unavailable")

    def delete(self, key):
        raise StoreError("store unavailable")


def test_stores_satisfy_protocol(tmp_path):
    assert isinstance(MemoryStore(), KeyValueStore)
    assert isinstance(JsonFileStore(tmp_path / "s.json"), KeyValueStore)


def test_memory_store_returns_copies():
    store = MemoryStore()
    store.set("k", {"a": [1]})
    value = store.get("k")
    value["a"].append(2)
    assert store.get("k") == {"a": [1]}
    assert store.get("missing") is None
    store.delete("k")
    assert store.get("k") is None


def test_json_file_store_persists(tmp_path):
    path = tmp_path / "nested" / "store.json"
    store = JsonFileStore(path)
    assert store.get("x") is None

    store.set("x", [1, 2])
    store.set("y", {"z": 3})
    assert json.loads(path.read_text(encoding="utf-8")) == {"x": [1, 2], "y": {"z": 3}}

    reopened = JsonFileStore(path)
    assert reopened.get("y") == {"z": 3}
    reopened.delete("x")
    assert reopened.get("x") is None


def test_json_file_store_rejects_corrupt_file(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(StoreError):
        JsonFileStore(path).get("x")


def test_json_file_store_failed_write_leaves_no_temp_file(tmp_path):
    path = tmp_path / "store.json"
    store = JsonFileStore(path)
    store.set("x", 1)

    with pytest.raises(StoreError):
        store.set("bad", {1, 2})

    assert [p.name for p in tmp_path.iterdir()] == ["store.json"]
    assert store.get("x") == 1
    assert store.get("bad") is None


def test_build_game_summary():
    state = _finished_game()
    standings = summarize(state)
    when = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    summary = build_game_summary(state, standings, game_id="g1", now=when)

    assert summary.id == "g1"
    assert summary.date == "2024-05-01T12:00:00+00:00"
    assert summary.players == ["Alice", "Bob", "Cara"]
    assert summary.winner == "Alice"
    assert summary.winner_score == 20
    assert summary.rounds_played == 1

    # Generated ids are unique
    a = build_game_summary(state, standings)
    b = build_game_summary(state, standings)
    assert a.id != b.id


def test_apply_game_to_stats_adds_exactly_one_game():
    state = _finished_game()
    standings = summarize(state)
    before = {"Bob": PlayerStats(name="Bob", wins=2, losses=1, games_played=3, total_score=55)}

    after = apply_game_to_stats(before, state.players, standings, "Alice")

    assert after["Alice"] == PlayerStats("Alice", wins=1, losses=0, games_played=1, total_score=20)
    assert after["Bob"] == PlayerStats("Bob", wins=2, losses=2, games_played=4, total_score=45)
    assert after["Cara"].losses == 1
    # input untouched
    assert before["Bob"].games_played == 3


def test_record_game_updates_log_and_stats():
    store = MemoryStore()
    history = GameHistory(store)
    state = _finished_game()

    assert history.record_game(state, summarize(state), game_id="first")
    assert history.record_game(state, summarize(state), game_id="second")

    raw_log = store.get(GAME_LOG_KEY)
    assert [g["id"] for g in raw_log] == ["first", "second"]
    assert raw_log[0]["winnerScore"] == 20
    assert raw_log[0]["roundsPlayed"] == 1

    stats = {s.name: s for s in history.player_stats()}
    assert stats["Alice"].wins == 2
    assert stats["Alice"].games_played == 2
    assert stats["Bob"].losses == 2
    assert stats["Cara"].total_score == -20
    assert store.get(STATS_KEY)["Alice"]["gamesPlayed"] == 2


def test_games_sorted_most_recent_first():
    history = GameHistory(MemoryStore())
    state = _finished_game()
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)
    for offset, game_id in [(1, "middle"), (0, "oldest"), (2, "newest")]:
        history.record_game(
            state, summarize(state), game_id=game_id, now=start + timedelta(days=offset)
        )

    assert [g.id for g in history.games()] == ["newest", "middle", "oldest"]

    history.clear_games()
    assert history.games() == []


def test_games_accept_javascript_timestamps():
    store = MemoryStore(
        {
            GAME_LOG_KEY: [
                {"id": "1", "date": "2024-03-01T10:00:00.000Z", "players": ["A", "B"],
                 "winner": "A", "winnerScore": 40, "roundsPlayed": 10},
                {"id": "2", "date": "2024-03-02T10:00:00.000Z", "players": ["A", "B"],
                 "winner": "B", "winnerScore": 10, "roundsPlayed": 10},
            ]
        }
    )
    assert [g.id for g in GameHistory(store).games()] == ["2", "1"]


def test_record_game_survives_broken_store():
    state = _finished_game()
    snapshot = copy.deepcopy(state)

    ok = GameHistory(_BrokenStore()).record_game(state, summarize(state))

    assert ok is False
    assert state == snapshot


def test_record_game_without_standings():
    state = create_game(["A", "B"], 1)
    assert GameHistory(MemoryStore()).record_game(state, []) is False


def test_clear_stats_and_saved_names():
    history = GameHistory(MemoryStore())
    state = _finished_game()
    history.record_game(state, summarize(state))
    history.clear_stats()
    assert history.player_stats() == []

    assert history.remember_names(["A", "B"]) == ["A", "B"]
    assert history.remember_names(["B", "C"]) == ["A", "B", "C"]
    assert history.saved_names() == ["A", "B", "C"]
    history.clear_saved_names()
    assert history.saved_names() == []


def test_record_game_skips_known_id():
    store = MemoryStore()
    history = GameHistory(store)
    state = _finished_game()
    standings = summarize(state)

    assert history.record_game(state, standings, game_id="same") is True
    assert history.record_game(state, standings, game_id="same") is False

    assert len(history.games()) == 1
    stats = {s.name: s for s in history.player_stats()}
    assert stats["Alice"].games_played == 1
    assert stats["Alice"].wins == 1
