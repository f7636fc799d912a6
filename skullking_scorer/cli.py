# skullking_scorer/cli.py
from __future__ import annotations

import argparse
import hashlib
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .config import Settings, load_settings
from .engine import ScoreKeeper
from .entry import EntryError, parse_bonus, parse_count, parse_rounds, validate_players
from .game_log import build_round_score_rows, write_round_scores_csv
from .history import GameHistory
from .paths import ensure_data_dir, resolve_data_path
from .rules import (
    game_round_status,
    round_display_value,
    running_total,
    set_tricks_won,
    toggle_made_bid,
)
from .state import GameState, ScoreEntry, create_game, dict_to_game_state, game_state_to_dict
from .stats import player_stats_frame, plot_running_totals
from .store import JsonFileStore, StoreError

logger = logging.getLogger(__name__)


def parse_args(argv: List[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Keep score for a Skull King game and track player stats."
    )
    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Directory for the score store and exports (default from settings).",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ...). Default from settings.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("new", help="Start a new game file.")
    p.add_argument("game", help="Path of the game JSON file to create.")
    p.add_argument("--players", nargs="+", required=True, help="Player names in seating order.")
    p.add_argument("--rounds", type=str, default="", help="Number of rounds.")
    p.set_defaults(func=cmd_new)

    p = sub.add_parser("bid", help="Enter bids for a round.")
    p.add_argument("game")
    p.add_argument("bids", nargs="+", help="NAME=BID pairs.")
    p.add_argument("--round", type=int, default=None, help="Round (default: current).")
    p.set_defaults(func=cmd_bid)

    p = sub.add_parser("score", help="Enter tricks won (and bonus) for a round.")
    p.add_argument("game")
    p.add_argument("results", nargs="+", help="NAME=TRICKS or NAME=TRICKS,BONUS.")
    p.add_argument("--round", type=int, default=None, help="Round (default: current).")
    p.add_argument(
        "--stay",
        action="store_true",
        help="Do not move on to the next round after scoring.",
    )
    p.set_defaults(func=cmd_score)

    p = sub.add_parser("goto", help="Make another round the current one.")
    p.add_argument("game")
    p.add_argument("round", type=int)
    p.set_defaults(func=cmd_goto)

    p = sub.add_parser("extend", help="Play another round after the final one.")
    p.add_argument("game")
    p.set_defaults(func=cmd_extend)

    p = sub.add_parser("table", help="Show the score table.")
    p.add_argument("game")
    p.set_defaults(func=cmd_table)

    p = sub.add_parser("finish", help="Show final standings and record the game.")
    p.add_argument("game")
    p.add_argument("--csv", type=str, default=None, help="Write per-round scores to CSV.")
    p.add_argument("--plot", type=str, default=None, help="Save a running-total chart (PNG).")
    p.add_argument("--no-record", action="store_true", help="Do not add to history.")
    p.set_defaults(func=cmd_finish)

    p = sub.add_parser("history", help="List recorded games.")
    p.set_defaults(func=cmd_history)

    p = sub.add_parser("stats", help="Show player statistics.")
    p.set_defaults(func=cmd_stats)

    p = sub.add_parser("names", help="List saved player names.")
    p.set_defaults(func=cmd_names)

    p = sub.add_parser("clear-history", help="Delete the game log.")
    p.set_defaults(func=cmd_clear_history)

    p = sub.add_parser("clear-stats", help="Delete all player statistics.")
    p.set_defaults(func=cmd_clear_stats)

    p = sub.add_parser("clear-names", help="Forget saved player names.")
    p.set_defaults(func=cmd_clear_names)

    return parser.parse_args(argv)


# --------------------------------------------------------------------------- #
# Helpers                                                                     #
# --------------------------------------------------------------------------- #


def _load_game(path: str) -> GameState:
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise SystemExit(f"No game file at {path}")
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Game file {path} is not valid JSON: {exc}")
    return dict_to_game_state(data)


def _save_game(path: str, state: GameState) -> None:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(game_state_to_dict(state), indent=2), encoding="utf-8")


def _split_pair(raw: str) -> Tuple[str, str]:
    if "=" not in raw:
        raise EntryError(f"Expected NAME=VALUE, got {raw!r}")
    name, value = raw.rsplit("=", 1)
    return name.strip(), value.strip()


def _check_player(state: GameState, name: str) -> None:
    if name not in state.players:
        raise EntryError(f"Unknown player {name!r}; players are {', '.join(state.players)}")


def _check_round(state: GameState, round_number: int) -> None:
    if not 1 <= round_number <= state.total_rounds:
        raise EntryError(f"Round must be between 1 and {state.total_rounds}")


def _parse_bids(state: GameState, raw_pairs: List[str]) -> Dict[str, int]:
    bids: Dict[str, int] = {}
    for raw in raw_pairs:
        name, value = _split_pair(raw)
        _check_player(state, name)
        bids[name] = parse_count(value)
    return bids


def _parse_results(
    state: GameState,
    round_number: int,
    raw_pairs: List[str],
    keeper: ScoreKeeper,
) -> Dict[str, ScoreEntry]:
    form = keeper.score_form(round_number)
    entries: Dict[str, ScoreEntry] = {}
    for raw in raw_pairs:
        name, value = _split_pair(raw)
        _check_player(state, name)
        tricks_text, _, bonus_text = value.partition(",")
        entry = replace(
            form[name],
            made_bid=False,
            tricks_won=set_tricks_won(parse_count(tricks_text)),
            bonus_points=parse_bonus(bonus_text) if bonus_text else 0,
        )
        if entry.tricks_won == entry.bid:
            entry = toggle_made_bid(entry)
        entries[name] = entry
    return entries


def _game_id(state: GameState) -> str:
    # Same scores, same id: finishing a game twice records it once
    payload = json.dumps(game_state_to_dict(state), sort_keys=True)
    return hashlib.sha1(payload.encode("utf-8")).hexdigest()


def _history(settings: Settings) -> GameHistory:
    ensure_data_dir(settings.data_dir)
    return GameHistory(JsonFileStore(settings.store_path))


def _print_table(state: GameState) -> None:
    width = max(8, *(len(name) for name in state.players)) + 2
    print("Round".ljust(8) + "".join(name.rjust(width) for name in state.players) + "  status")
    for number in range(1, state.total_rounds + 1):
        marker = "*" if number == state.current_round else " "
        cells = "".join(
            round_display_value(state, name, number).rjust(width)
            for name in state.players
        )
        status = game_round_status(state, number).value
        print(f"{marker}R{number}".ljust(8) + cells + f"  {status}")
    totals = "".join(
        str(running_total(state, name, state.total_rounds)).rjust(width)
        for name in state.players
    )
    print("Total".ljust(8) + totals)


# --------------------------------------------------------------------------- #
# Commands                                                                    #
# --------------------------------------------------------------------------- #


def cmd_new(args: argparse.Namespace, settings: Settings) -> None:
    players = validate_players(args.players)
    total_rounds = parse_rounds(args.rounds, default=settings.default_rounds)
    state = create_game(players, total_rounds)
    _save_game(args.game, state)
    try:
        _history(settings).remember_names(players)
    except StoreError:
        logger.exception("Could not save player names")
    logging.info("New game with %s over %d rounds: %s", ", ".join(players), total_rounds, args.game)


def cmd_bid(args: argparse.Namespace, settings: Settings) -> None:
    keeper = ScoreKeeper(_load_game(args.game), game_label=args.game)
    number = args.round or keeper.current_round
    _check_round(keeper.game_state, number)
    keeper.submit_bids(_parse_bids(keeper.game_state, args.bids), round_number=number)
    _save_game(args.game, keeper.game_state)
    _print_table(keeper.game_state)


def cmd_score(args: argparse.Namespace, settings: Settings) -> None:
    keeper = ScoreKeeper(_load_game(args.game), game_label=args.game)
    number = args.round or keeper.current_round
    _check_round(keeper.game_state, number)
    entries = _parse_results(keeper.game_state, number, args.results, keeper)
    keeper.submit_scores(entries, round_number=number, advance=not args.stay)
    _save_game(args.game, keeper.game_state)
    _print_table(keeper.game_state)


def cmd_goto(args: argparse.Namespace, settings: Settings) -> None:
    keeper = ScoreKeeper(_load_game(args.game), game_label=args.game)
    _check_round(keeper.game_state, args.round)
    keeper.go_to_round(args.round)
    _save_game(args.game, keeper.game_state)
    bids = keeper.bid_form()
    print(f"Round {args.round}/{keeper.game_state.total_rounds}")
    for name, bid in bids.items():
        print(f"  {name}: bid {bid}")


def cmd_extend(args: argparse.Namespace, settings: Settings) -> None:
    keeper = ScoreKeeper(_load_game(args.game), game_label=args.game)
    try:
        keeper.extend_game()
    except ValueError as exc:
        raise SystemExit(str(exc))
    _save_game(args.game, keeper.game_state)
    _print_table(keeper.game_state)


def cmd_table(args: argparse.Namespace, settings: Settings) -> None:
    _print_table(_load_game(args.game))


def cmd_finish(args: argparse.Namespace, settings: Settings) -> None:
    history = None if args.no_record else _history(settings)
    state = _load_game(args.game)
    keeper = ScoreKeeper(state, history=history, game_label=args.game)
    if not keeper.is_finished():
        print("Game is not finished; standings so far (not recorded):")
    standings = keeper.finish(game_id=_game_id(state))

    for rank, result in enumerate(standings, start=1):
        rounds = " ".join(str(points) for points in result.round_scores)
        print(f"{rank}. {result.name}: {result.total_score}  [{rounds}]")

    if args.csv:
        csv_path = resolve_data_path(args.csv, settings.data_dir)
        write_round_scores_csv(state, csv_path, game_id=Path(args.game).stem)
        logging.info("Wrote round scores to %s", csv_path)
    if args.plot:
        rows = build_round_score_rows(state, game_id=Path(args.game).stem)
        plot_path = plot_running_totals(rows, resolve_data_path(args.plot, settings.data_dir))
        logging.info("Saved chart to %s", plot_path)


def cmd_history(args: argparse.Namespace, settings: Settings) -> None:
    games = _history(settings).games()
    if not games:
        print("No games recorded yet.")
        return
    for game in games:
        print(
            f"{game.date}  {game.winner} won with {game.winner_score} "
            f"({game.rounds_played} rounds; {', '.join(game.players)})"
        )


def cmd_stats(args: argparse.Namespace, settings: Settings) -> None:
    stats = _history(settings).player_stats()
    if not stats:
        print("No player statistics yet.")
        return
    df = player_stats_frame(stats)
    print(df.to_string(index=False, float_format=lambda v: f"{v:.1f}"))


def cmd_names(args: argparse.Namespace, settings: Settings) -> None:
    for name in _history(settings).saved_names():
        print(name)


def cmd_clear_history(args: argparse.Namespace, settings: Settings) -> None:
    _history(settings).clear_games()
    logging.info("Cleared game history")


def cmd_clear_stats(args: argparse.Namespace, settings: Settings) -> None:
    _history(settings).clear_stats()
    logging.info("Cleared player statistics")


def cmd_clear_names(args: argparse.Namespace, settings: Settings) -> None:
    _history(settings).clear_saved_names()
    logging.info("Cleared saved player names")


def main(argv: List[str] | None = None, settings: Optional[Settings] = None) -> None:
    args = parse_args(argv)
    settings = settings or load_settings()
    if args.data_dir:
        settings = replace(settings, data_dir=Path(args.data_dir))
    log_level = (args.log_level or settings.log_level).upper()

    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        args.func(args, settings)
    except EntryError as exc:
        raise SystemExit(str(exc))
    except StoreError as exc:
        logger.error("%s", exc)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
