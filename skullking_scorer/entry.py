# skullking_scorer/entry.py
from __future__ import annotations

import re
from typing import Iterable, List

MIN_PLAYERS = 2
DEFAULT_ROUNDS = 10

_NON_DIGITS = re.compile(r"[^0-9]")


class EntryError(ValueError):
    """Raised when setup or form input is rejected before reaching the engine."""


def add_player(players: List[str], name: str) -> List[str]:
    """Return a new player list with `name` appended."""
    cleaned = name.strip()
    if not cleaned:
        raise EntryError("Player name must not be empty")
    if cleaned in players:
        raise EntryError(f"This name has already been added: {cleaned!r}")
    return [*players, cleaned]


def validate_players(names: Iterable[str]) -> List[str]:
    """
    Check a full roster before a game starts.

    Names are stripped; empty names, duplicates and rosters with fewer than
    two players are rejected.
    """
    players: List[str] = []
    for name in names:
        players = add_player(players, name)
    if len(players) < MIN_PLAYERS:
        raise EntryError(
            f"At least {MIN_PLAYERS} players are required; got {len(players)}"
        )
    return players


def parse_rounds(text: str, default: int = DEFAULT_ROUNDS) -> int:
    """
    Round count from free text. Non-digits are dropped; an empty or zero
    result falls back to `default`.
    """
    digits = _NON_DIGITS.sub("", text or "")
    if not digits:
        return default
    value = int(digits)
    return value if value >= 1 else default


def parse_count(text: str) -> int:
    """Strict non-negative integer, for typed bid or trick counts."""
    cleaned = (text or "").strip()
    if not cleaned.isdigit():
        raise EntryError(f"Expected a non-negative whole number, got {text!r}")
    return int(cleaned)


def parse_bonus(text: str) -> int:
    """Signed integer bonus, e.g. "30" or "-10"."""
    cleaned = (text or "").strip()
    try:
        return int(cleaned)
    except ValueError as exc:
        raise EntryError(f"Expected a whole number bonus, got {text!r}") from exc
