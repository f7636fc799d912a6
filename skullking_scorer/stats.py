# skullking_scorer/stats.py
from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Iterable, List

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402
import pandas as pd  # noqa: E402

from .game_log import FIELDNAMES  # noqa: E402
from .history import PlayerStats, player_stats_to_dict  # noqa: E402

STATS_COLUMNS = [
    "name",
    "wins",
    "losses",
    "gamesPlayed",
    "totalScore",
    "winRate",
    "averageScore",
]


def player_stats_frame(stats: Iterable[PlayerStats]) -> pd.DataFrame:
    """
    Aggregate stats as a DataFrame, best win rate first.

    winRate is a percentage of games played; averageScore is total score
    per game played. Both are 0 for players with no games.
    """
    df = pd.DataFrame(
        [player_stats_to_dict(s) for s in stats],
        columns=STATS_COLUMNS[:5],
    )
    games = df["gamesPlayed"].to_numpy(dtype=float)
    has_games = games > 0

    df["winRate"] = np.divide(
        df["wins"].to_numpy(dtype=float) * 100.0,
        games,
        out=np.zeros_like(games),
        where=has_games,
    )
    df["averageScore"] = np.divide(
        df["totalScore"].to_numpy(dtype=float),
        games,
        out=np.zeros_like(games),
        where=has_games,
    )

    return (
        df.sort_values("winRate", ascending=False, kind="stable")
        .reset_index(drop=True)[STATS_COLUMNS]
    )


def round_scores_frame(rows: List[Dict[str, Any]]) -> pd.DataFrame:
    """Game log rows (see game_log.build_round_score_rows) as a DataFrame."""
    return pd.DataFrame(rows, columns=FIELDNAMES)


def plot_running_totals(rows: List[Dict[str, Any]], path: str | Path) -> Path:
    """Line chart of each player's running total by round, saved to `path`."""
    df = round_scores_frame(rows)
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(10, 6))
    # Preserve seating order rather than sorting names.
    for name in df["player_name"].drop_duplicates():
        sub = df[df["player_name"] == name].sort_values("round_index")
        ax.plot(sub["round_index"], sub["total_score"], marker="o", label=name)

    ax.axhline(0, linestyle="--", linewidth=0.8)
    ax.set_xlabel("Round")
    ax.set_ylabel("Running total")
    ax.set_title("Running total by round")
    ax.grid(True, linestyle=":", alpha=0.5)
    if not df.empty:
        ax.legend()
    fig.tight_layout()
    fig.savefig(out, dpi=120)
    plt.close(fig)
    return out
