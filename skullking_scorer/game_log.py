# skullking_scorer/game_log.py
from __future__ import annotations

import csv
from typing import Any, Dict, List, Optional

from .rules import is_round_complete
from .state import GameState

FIELDNAMES = [
    "game_id",
    "round_index",
    "player_name",
    "bid",
    "made_bid",
    "tricks_won",
    "bonus_points",
    "round_points",
    "total_score",
]


def build_round_score_rows(
    game_state: GameState,
    game_id: Optional[str] = None,
) -> List[Dict[str, Any]]:
    """
    Build a list of rows summarizing per-round scores for CSV export.

    Each row corresponds to (round, player) and has keys in FIELDNAMES. Any
    round that is not fully scored is skipped so games in progress can
    still be exported.
    """
    players = game_state.players
    running_scores: Dict[str, int] = {name: 0 for name in players}
    rows: List[Dict[str, Any]] = []

    for round_index in range(1, game_state.total_rounds + 1):
        round_state = game_state.rounds.get(round_index)
        if not is_round_complete(round_state, players):
            continue

        for name in players:
            entry = round_state.scores[name]
            points = entry.total_points or 0
            running_scores[name] += points

            rows.append(
                {
                    "game_id": game_id,
                    "round_index": round_index,
                    "player_name": name,
                    "bid": entry.bid,
                    "made_bid": entry.made_bid,
                    "tricks_won": entry.tricks_won,
                    "bonus_points": entry.bonus_points,
                    "round_points": points,
                    "total_score": running_scores[name],
                }
            )

    return rows


def write_round_scores_csv(
    game_state: GameState,
    path,
    game_id: Optional[str] = None,
) -> None:
    """
    Write per-round scores to a CSV file.

    `path` can be a string or any path-like object accepted by `open`.
    """
    rows = build_round_score_rows(game_state, game_id=game_id)

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDNAMES)
        writer.writeheader()
        for row in rows:
            writer.writerow({field: row.get(field) for field in FIELDNAMES})
