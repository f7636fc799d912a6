# skullking_scorer/rules.py
from __future__ import annotations

import enum
from dataclasses import replace
from typing import Dict, List, Optional, Sequence

from .state import GameState, PlayerTotalScore, RoundState, ScoreEntry


class RoundStatus(enum.Enum):
    NOT_STARTED = "not-started"
    BIDDING = "bidding"
    SCORING = "scoring"
    COMPLETED = "completed"


def compute_score(
    bid: int,
    made_bid: bool,
    tricks_won: int,
    bonus_points: int,
    round_number: int,
) -> int:
    """
    Score one player's round according to Skull King scoring:

    - Made a zero bid: 10 * round_number
    - Made a non-zero bid: 20 * bid
    - Missed a zero bid: -10 * round_number
    - Missed a non-zero bid: -10 * abs(bid - tricks_won)

    Bonus points are added on top in every case. `tricks_won` is taken as
    stored; it is not forced to equal the bid here.
    """
    if made_bid:
        if bid == 0:
            base = 10 * round_number
        else:
            base = bid * 20
    else:
        if bid == 0:
            base = -10 * round_number
        else:
            base = -(abs(bid - tricks_won) * 10)

    return base + bonus_points


def score_entry(entry: ScoreEntry, round_number: int) -> int:
    return compute_score(
        bid=entry.bid,
        made_bid=entry.made_bid,
        tricks_won=entry.tricks_won,
        bonus_points=entry.bonus_points,
        round_number=round_number,
    )


# --------------------------------------------------------------------------- #
# Form adjustments                                                            #
# --------------------------------------------------------------------------- #


def adjust_bid(current: int, delta: int = 1) -> int:
    return max(0, current + delta)


def adjust_tricks_won(current: int, delta: int = 1) -> int:
    return max(0, current + delta)


def set_tricks_won(value: int) -> int:
    """Absolute re-entry of a trick count (typed rather than stepped)."""
    return max(0, value)


def adjust_bonus(current: int, delta: int = 10) -> int:
    # No floor: bonus points may go negative.
    return current + delta


def toggle_made_bid(entry: ScoreEntry) -> ScoreEntry:
    """
    Flip `made_bid`. Making the bid means winning exactly as many tricks
    as were bid, so `tricks_won` snaps to `bid` when the flag turns on.
    """
    made = not entry.made_bid
    if made:
        return replace(entry, made_bid=True, tricks_won=entry.bid)
    return replace(entry, made_bid=False)


# --------------------------------------------------------------------------- #
# Rounds                                                                      #
# --------------------------------------------------------------------------- #


def finalize_round(round_state: RoundState, round_number: int) -> RoundState:
    """
    Return a copy of `round_state` where every player with a bid has a
    scored entry.

    Players that already have an in-progress entry keep its made flag,
    tricks and bonus; the others get a fresh entry seeded from their bid.
    Every entry is scored against the round's bid.
    """
    scores: Dict[str, ScoreEntry] = {
        name: replace(entry) for name, entry in round_state.scores.items()
    }
    for name, bid in round_state.bids.items():
        entry = scores.get(name)
        entry = ScoreEntry(bid=bid) if entry is None else replace(entry, bid=bid)
        scores[name] = replace(entry, total_points=score_entry(entry, round_number))

    return RoundState(bids=dict(round_state.bids), scores=scores)


def is_round_complete(round_state: Optional[RoundState], players: Sequence[str]) -> bool:
    """True when every player has a scores entry with computed points."""
    if round_state is None:
        return False
    for name in players:
        entry = round_state.scores.get(name)
        if entry is None or entry.total_points is None:
            return False
    return True


def round_status(round_state: Optional[RoundState], num_players: int) -> RoundStatus:
    """
    Classify a round purely from how many bids and scores it holds.

    There is no stored status, so this can never disagree with the data.
    """
    if round_state is None:
        return RoundStatus.NOT_STARTED
    if len(round_state.scores) == num_players:
        return RoundStatus.COMPLETED
    if len(round_state.bids) == num_players:
        return RoundStatus.SCORING
    return RoundStatus.BIDDING


def game_round_status(state: GameState, round_number: int) -> RoundStatus:
    return round_status(state.rounds.get(round_number), state.num_players)


def round_display_value(state: GameState, player: str, round_number: int) -> str:
    """
    Table cell text for one player and round:

    - "-" when the round has not started or the player has no bid yet
    - "B:<bid>" while the round is bidding or scoring
    - the player's round points once the round is completed
    """
    round_state = state.rounds.get(round_number)
    if round_state is None:
        return "-"

    status = round_status(round_state, state.num_players)
    if status == RoundStatus.COMPLETED and player in round_state.scores:
        points = round_state.scores[player].total_points
        return str(points if points is not None else 0)
    if player in round_state.bids:
        return f"B:{round_state.bids[player]}"
    return "-"


def round_points(state: GameState, player: str, round_number: int) -> int:
    round_state = state.rounds.get(round_number)
    if round_state is None:
        return 0
    entry = round_state.scores.get(player)
    if entry is None or entry.total_points is None:
        return 0
    return entry.total_points


def running_total(state: GameState, player: str, up_to_round: int) -> int:
    return sum(
        round_points(state, player, number)
        for number in range(1, up_to_round + 1)
    )


# --------------------------------------------------------------------------- #
# Summary                                                                     #
# --------------------------------------------------------------------------- #


def summarize(state: GameState) -> List[PlayerTotalScore]:
    """
    Final standings, highest total first.

    Missing rounds or unscored players count as 0. The sort is stable, so
    tied players stay in seating order.
    """
    results: List[PlayerTotalScore] = []
    for name in state.players:
        round_scores = [
            round_points(state, name, number)
            for number in range(1, state.total_rounds + 1)
        ]
        results.append(
            PlayerTotalScore(
                name=name,
                total_score=sum(round_scores),
                round_scores=round_scores,
            )
        )

    return sorted(results, key=lambda r: r.total_score, reverse=True)


def winner(standings: Sequence[PlayerTotalScore]) -> Optional[PlayerTotalScore]:
    if not standings:
        return None
    return standings[0]
