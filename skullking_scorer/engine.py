# skullking_scorer/engine.py
from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional

from .rules import adjust_bid, finalize_round, is_round_complete, summarize
from .state import (
    GameState,
    PlayerTotalScore,
    ScoreEntry,
    clone_game,
    ensure_round,
    extend_rounds,
    get_round,
)

if TYPE_CHECKING:
    from .history import GameHistory

logger = logging.getLogger(__name__)


# --------------------------------------------------------------------------- #
# Form hydration                                                              #
# --------------------------------------------------------------------------- #


def bid_form(state: GameState, round_number: int) -> Dict[str, int]:
    """Bids to pre-fill for a round: stored bids, 0 for anyone without one."""
    round_state = get_round(state, round_number)
    return {name: round_state.bids.get(name, 0) for name in state.players}


def score_form(state: GameState, round_number: int) -> Dict[str, ScoreEntry]:
    """
    Scoring entries to pre-fill for a round.

    The bid always comes from the round's bids when there is one. An
    existing score entry supplies the made flag, tricks and bonus; without
    one the entry starts with no tricks, no bonus and made_bid off.
    """
    round_state = get_round(state, round_number)
    form: Dict[str, ScoreEntry] = {}
    for name in state.players:
        existing = round_state.scores.get(name)
        if existing is not None:
            bid = round_state.bids.get(name, existing.bid)
            form[name] = replace(existing, bid=bid, total_points=None)
        else:
            form[name] = ScoreEntry(bid=round_state.bids.get(name, 0))
    return form


# --------------------------------------------------------------------------- #
# Transitions (each returns a new GameState)                                  #
# --------------------------------------------------------------------------- #


def _write_bids(state: GameState, round_number: int, bids: Mapping[str, int]) -> None:
    round_state = ensure_round(state, round_number)
    for name, bid in bids.items():
        # adjust_bid with a zero delta clamps at 0
        round_state.bids[name] = adjust_bid(bid, 0)


def _write_scores(
    state: GameState,
    round_number: int,
    entries: Mapping[str, ScoreEntry],
) -> None:
    round_state = ensure_round(state, round_number)
    for name, entry in entries.items():
        # A score is only ever stored next to a bid.
        round_state.bids.setdefault(name, entry.bid)
        round_state.scores[name] = replace(entry, total_points=None)
    state.rounds[round_number] = finalize_round(round_state, round_number)


def record_bids(
    state: GameState,
    round_number: int,
    bids: Mapping[str, int],
) -> GameState:
    updated = clone_game(state)
    _write_bids(updated, round_number, bids)
    updated.current_round = round_number
    return updated


def record_scores(
    state: GameState,
    round_number: int,
    entries: Mapping[str, ScoreEntry],
) -> GameState:
    updated = clone_game(state)
    _write_scores(updated, round_number, entries)
    return updated


def navigate_to_round(
    state: GameState,
    target_round: int,
    pending_bids: Optional[Mapping[str, int]] = None,
) -> GameState:
    """
    Move to `target_round`, leaving every other round's data untouched.

    `pending_bids` are the values currently in the bid form; when given they
    are saved into the current round before leaving it.
    """
    updated = clone_game(state)
    if pending_bids is not None:
        _write_bids(updated, updated.current_round, pending_bids)
    updated.current_round = target_round
    return updated


def next_round(state: GameState) -> Optional[int]:
    """The round to play after the current one, or None at the final round."""
    if state.current_round < state.total_rounds:
        return state.current_round + 1
    return None


def advance_round(state: GameState) -> GameState:
    upcoming = next_round(state)
    if upcoming is None:
        return clone_game(state)
    return navigate_to_round(state, upcoming)


def extend_game(
    state: GameState,
    entries: Optional[Mapping[str, ScoreEntry]] = None,
) -> GameState:
    """
    Play another round after the final one.

    Scores the current round (using `entries` if given), adds a round and
    moves to it. Only valid while on the final round.
    """
    if state.current_round != state.total_rounds:
        raise ValueError(
            f"Can only extend from the final round "
            f"({state.current_round} != {state.total_rounds})"
        )

    updated = extend_rounds(state)
    round_number = updated.current_round
    if entries:
        _write_scores(updated, round_number, entries)
    elif round_number in updated.rounds and not is_round_complete(
        updated.rounds[round_number], updated.players
    ):
        updated.rounds[round_number] = finalize_round(
            updated.rounds[round_number], round_number
        )
    updated.current_round = updated.total_rounds
    return updated


def is_game_complete(state: GameState) -> bool:
    return all(
        is_round_complete(state.rounds.get(number), state.players)
        for number in range(1, state.total_rounds + 1)
    )


class ScoreKeeper:
    """
    Tracks one game at the table.

    Every action swaps `game_state` for a fresh copy, so a GameState handed
    out earlier never changes underneath its holder.
    """

    def __init__(
        self,
        game_state: GameState,
        history: Optional["GameHistory"] = None,
        game_label: Optional[str] = None,
    ) -> None:
        self.game_state = game_state
        self.history = history
        self.game_label = game_label

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    @property
    def current_round(self) -> int:
        return self.game_state.current_round

    def bid_form(self, round_number: Optional[int] = None) -> Dict[str, int]:
        return bid_form(self.game_state, round_number or self.current_round)

    def score_form(self, round_number: Optional[int] = None) -> Dict[str, ScoreEntry]:
        return score_form(self.game_state, round_number or self.current_round)

    def submit_bids(
        self,
        bids: Mapping[str, int],
        round_number: Optional[int] = None,
    ) -> GameState:
        number = round_number or self.current_round
        self.game_state = record_bids(self.game_state, number, bids)
        logger.info("Recorded %d bid(s) for round %d%s", len(bids), number, self._suffix())
        return self.game_state

    def submit_scores(
        self,
        entries: Mapping[str, ScoreEntry],
        round_number: Optional[int] = None,
        advance: bool = True,
    ) -> GameState:
        """Score a round and, by default, move on to the next one."""
        number = round_number or self.current_round
        self.game_state = record_scores(self.game_state, number, entries)
        logger.info(
            "Scored round %d/%d%s",
            number,
            self.game_state.total_rounds,
            self._suffix(),
        )
        if advance and number == self.current_round:
            self.game_state = advance_round(self.game_state)
        return self.game_state

    def go_to_round(
        self,
        round_number: int,
        pending_bids: Optional[Mapping[str, int]] = None,
    ) -> GameState:
        logger.debug("Navigating from round %d to %d", self.current_round, round_number)
        self.game_state = navigate_to_round(self.game_state, round_number, pending_bids)
        return self.game_state

    def extend_game(
        self,
        entries: Optional[Mapping[str, ScoreEntry]] = None,
    ) -> GameState:
        self.game_state = extend_game(self.game_state, entries)
        logger.info(
            "Extended game to %d rounds%s",
            self.game_state.total_rounds,
            self._suffix(),
        )
        return self.game_state

    def standings(self) -> List[PlayerTotalScore]:
        return summarize(self.game_state)

    def is_finished(self) -> bool:
        return self.game_state.is_last_round and is_game_complete(self.game_state)

    def finish(self, game_id: Optional[str] = None) -> List[PlayerTotalScore]:
        """
        Produce the final standings and hand them to the history, if any.

        Only a finished game (final round reached, every round scored) is
        recorded. A failed save is logged by the history and does not affect
        the returned standings.
        """
        standings = self.standings()
        if standings:
            logger.info(
                "Finished game%s: %s wins with %d",
                self._suffix(),
                standings[0].name,
                standings[0].total_score,
            )
        if self.history is not None:
            if self.is_finished():
                self.history.record_game(self.game_state, standings, game_id=game_id)
            else:
                logger.warning("Not recording unfinished game%s", self._suffix())
        return standings

    def _suffix(self) -> str:
        return f" for {self.game_label}" if self.game_label else ""
