# skullking_scorer/state.py
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence


@dataclass
class ScoreEntry:
    bid: int = 0
    made_bid: bool = False
    tricks_won: int = 0
    # may be negative
    bonus_points: int = 0
    # None until the round has been scored for this player
    total_points: Optional[int] = None


@dataclass
class RoundState:
    # player name -> bid
    bids: Dict[str, int] = field(default_factory=dict)
    # player name -> scoring record
    scores: Dict[str, ScoreEntry] = field(default_factory=dict)


@dataclass
class GameState:
    players: List[str]
    total_rounds: int
    current_round: int = 1
    # 1-based round number -> round record; missing means "not started"
    rounds: Dict[int, RoundState] = field(default_factory=dict)

    @property
    def num_players(self) -> int:
        return len(self.players)

    @property
    def is_last_round(self) -> bool:
        return self.current_round >= self.total_rounds


@dataclass
class PlayerTotalScore:
    name: str
    total_score: int
    # one entry per round, 1..total_rounds
    round_scores: List[int] = field(default_factory=list)


def create_game(players: Sequence[str], total_rounds: int) -> GameState:
    """
    Start a new game with no rounds played.

    Player names are expected to be validated by the caller (see
    `entry.validate_players`); they are not checked again here.
    """
    return GameState(
        players=list(players),
        total_rounds=total_rounds,
        current_round=1,
    )


def clone_game(state: GameState) -> GameState:
    """Deep copy so the previous GameState stays valid after a transition."""
    return copy.deepcopy(state)


def get_round(state: GameState, round_number: int) -> RoundState:
    """Read a round without inserting it; missing rounds read as empty."""
    round_state = state.rounds.get(round_number)
    if round_state is None:
        return RoundState()
    return round_state


def ensure_round(state: GameState, round_number: int) -> RoundState:
    """Return the round record, inserting an empty one if needed."""
    round_state = state.rounds.get(round_number)
    if round_state is None:
        round_state = RoundState()
        state.rounds[round_number] = round_state
    return round_state


def extend_rounds(state: GameState) -> GameState:
    """Copy of `state` with one more round; current_round is left as is."""
    extended = clone_game(state)
    extended.total_rounds += 1
    return extended


# --------------------------------------------------------------------------- #
# JSON-shaped conversion                                                      #
# --------------------------------------------------------------------------- #


def score_entry_to_dict(entry: ScoreEntry) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "bid": entry.bid,
        "madeBid": entry.made_bid,
        "tricksWon": entry.tricks_won,
        "bonusPoints": entry.bonus_points,
    }
    if entry.total_points is not None:
        data["totalPoints"] = entry.total_points
    return data


def dict_to_score_entry(data: Dict[str, Any]) -> ScoreEntry:
    total = data.get("totalPoints")
    return ScoreEntry(
        bid=int(data.get("bid", 0)),
        made_bid=bool(data.get("madeBid", False)),
        tricks_won=int(data.get("tricksWon", 0)),
        bonus_points=int(data.get("bonusPoints", 0)),
        total_points=int(total) if total is not None else None,
    )


def game_state_to_dict(state: GameState) -> Dict[str, Any]:
    """
    Convert a GameState to a JSON-serializable dict.

    Round numbers become string keys, since JSON objects only allow those.
    """
    return {
        "players": list(state.players),
        "totalRounds": state.total_rounds,
        "currentRound": state.current_round,
        "rounds": {
            str(number): {
                "bids": dict(round_state.bids),
                "scores": {
                    name: score_entry_to_dict(entry)
                    for name, entry in round_state.scores.items()
                },
            }
            for number, round_state in sorted(state.rounds.items())
        },
    }


def dict_to_game_state(data: Dict[str, Any]) -> GameState:
    """Convert a dict produced by `game_state_to_dict` back into a GameState."""
    rounds: Dict[int, RoundState] = {}
    for key, raw_round in (data.get("rounds") or {}).items():
        rounds[int(key)] = RoundState(
            bids={
                name: int(bid)
                for name, bid in (raw_round.get("bids") or {}).items()
            },
            scores={
                name: dict_to_score_entry(raw_entry)
                for name, raw_entry in (raw_round.get("scores") or {}).items()
            },
        )

    return GameState(
        players=list(data["players"]),
        total_rounds=int(data["totalRounds"]),
        current_round=int(data.get("currentRound", 1)),
        rounds=rounds,
    )


def player_total_to_dict(total: PlayerTotalScore) -> Dict[str, Any]:
    return {
        "name": total.name,
        "totalScore": total.total_score,
        "roundScores": list(total.round_scores),
    }
