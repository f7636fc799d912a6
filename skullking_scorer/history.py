# skullking_scorer/history.py
from __future__ import annotations

import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from .rules import winner
from .state import GameState, PlayerTotalScore
from .store import KeyValueStore, StoreError

logger = logging.getLogger(__name__)

GAME_LOG_KEY = "skullKingGameLog"
STATS_KEY = "skullKingStats"
SAVED_NAMES_KEY = "savedNames"


@dataclass
class GameSummary:
    id: str
    date: str
    players: List[str] = field(default_factory=list)
    winner: str = "Unknown"
    winner_score: int = 0
    rounds_played: int = 0


@dataclass
class PlayerStats:
    name: str
    wins: int = 0
    losses: int = 0
    games_played: int = 0
    total_score: int = 0


def game_summary_to_dict(summary: GameSummary) -> Dict[str, Any]:
    return {
        "id": summary.id,
        "date": summary.date,
        "players": list(summary.players),
        "winner": summary.winner,
        "winnerScore": summary.winner_score,
        "roundsPlayed": summary.rounds_played,
    }


def dict_to_game_summary(data: Dict[str, Any]) -> GameSummary:
    return GameSummary(
        id=str(data["id"]),
        date=str(data["date"]),
        players=list(data.get("players", [])),
        winner=data.get("winner", "Unknown"),
        winner_score=int(data.get("winnerScore", 0)),
        rounds_played=int(data.get("roundsPlayed", 0)),
    )


def player_stats_to_dict(stats: PlayerStats) -> Dict[str, Any]:
    return {
        "name": stats.name,
        "wins": stats.wins,
        "losses": stats.losses,
        "gamesPlayed": stats.games_played,
        "totalScore": stats.total_score,
    }


def dict_to_player_stats(data: Dict[str, Any]) -> PlayerStats:
    return PlayerStats(
        name=data["name"],
        wins=int(data.get("wins", 0)),
        losses=int(data.get("losses", 0)),
        games_played=int(data.get("gamesPlayed", 0)),
        total_score=int(data.get("totalScore", 0)),
    )


def build_game_summary(
    state: GameState,
    standings: Sequence[PlayerTotalScore],
    *,
    game_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> GameSummary:
    top = winner(standings)
    when = now or datetime.now(timezone.utc)
    return GameSummary(
        id=game_id or uuid.uuid4().hex,
        date=when.isoformat(),
        players=list(state.players),
        winner=top.name if top is not None else "Unknown",
        winner_score=top.total_score if top is not None else 0,
        rounds_played=state.total_rounds,
    )


def apply_game_to_stats(
    stats: Dict[str, PlayerStats],
    players: Sequence[str],
    standings: Sequence[PlayerTotalScore],
    winner_name: str,
) -> Dict[str, PlayerStats]:
    """
    Add one game's outcome to the aggregate stats.

    Every player in the standings plays exactly one more game; the winner
    gains a win and everyone else a loss.
    """
    updated = {name: PlayerStats(**asdict(s)) for name, s in stats.items()}
    totals = {result.name: result.total_score for result in standings}
    for name in players:
        if name not in totals:
            continue
        entry = updated.setdefault(name, PlayerStats(name=name))
        entry.games_played += 1
        entry.total_score += totals[name]
        if name == winner_name:
            entry.wins += 1
        else:
            entry.losses += 1
    return updated


def _date_key(summary: GameSummary) -> datetime:
    # JavaScript-style timestamps end in "Z"
    return datetime.fromisoformat(summary.date.replace("Z", "+00:00"))


class GameHistory:
    """Reads and writes the game log, player stats and saved names."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record_game(
        self,
        state: GameState,
        standings: Sequence[PlayerTotalScore],
        *,
        game_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> bool:
        """
        Append the game to the log and fold it into player stats.

        The two writes are independent; a failure in one is logged and the
        other is still attempted. Returns True only if both succeeded. A game
        whose id is already in the log is not recorded again.
        """
        if not standings:
            logger.warning("Not recording game: no standings")
            return False

        summary = build_game_summary(state, standings, game_id=game_id, now=now)
        ok = True

        try:
            log = list(self.store.get(GAME_LOG_KEY) or [])
            if any(item.get("id") == summary.id for item in log):
                logger.info("Game %s is already recorded", summary.id)
                return False
            log.append(game_summary_to_dict(summary))
            self.store.set(GAME_LOG_KEY, log)
        except StoreError:
            logger.exception("Error saving game %s to game log", summary.id)
            ok = False

        try:
            stats = self._load_stats()
            stats = apply_game_to_stats(stats, state.players, standings, summary.winner)
            self.store.set(
                STATS_KEY,
                {name: player_stats_to_dict(s) for name, s in stats.items()},
            )
        except StoreError:
            logger.exception("Error updating player stats for game %s", summary.id)
            ok = False

        if ok:
            logger.info(
                "Recorded game %s (%s won with %d)",
                summary.id,
                summary.winner,
                summary.winner_score,
            )
        return ok

    # -------------------------------------------------------------------------
    # Game log
    # -------------------------------------------------------------------------

    def games(self) -> List[GameSummary]:
        """Recorded games, most recent first."""
        raw = self.store.get(GAME_LOG_KEY) or []
        summaries = [dict_to_game_summary(item) for item in raw]
        summaries.sort(key=_date_key, reverse=True)
        return summaries

    def clear_games(self) -> None:
        self.store.set(GAME_LOG_KEY, [])

    # -------------------------------------------------------------------------
    # Player stats
    # -------------------------------------------------------------------------

    def _load_stats(self) -> Dict[str, PlayerStats]:
        raw = self.store.get(STATS_KEY) or {}
        return {name: dict_to_player_stats(data) for name, data in raw.items()}

    def player_stats(self) -> List[PlayerStats]:
        return list(self._load_stats().values())

    def clear_stats(self) -> None:
        self.store.delete(STATS_KEY)

    # -------------------------------------------------------------------------
    # Saved names
    # -------------------------------------------------------------------------

    def saved_names(self) -> List[str]:
        return list(self.store.get(SAVED_NAMES_KEY) or [])

    def remember_names(self, names: Sequence[str]) -> List[str]:
        saved = self.saved_names()
        added = [name for name in names if name not in saved]
        if added:
            saved.extend(added)
            self.store.set(SAVED_NAMES_KEY, saved)
        return saved

    def clear_saved_names(self) -> None:
        self.store.delete(SAVED_NAMES_KEY)
