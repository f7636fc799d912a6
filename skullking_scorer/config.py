# skullking_scorer/config.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv

from .entry import DEFAULT_ROUNDS

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path.home() / ".skullking"
DEFAULT_STORE_FILE = "skullking_store.json"


@dataclass(frozen=True)
class Settings:
    data_dir: Path = DEFAULT_DATA_DIR
    store_file: str = DEFAULT_STORE_FILE
    default_rounds: int = DEFAULT_ROUNDS
    log_level: str = "INFO"

    @property
    def store_path(self) -> Path:
        path = Path(self.store_file)
        if path.is_absolute():
            return path
        return self.data_dir / path


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    *,
    dotenv: bool = True,
) -> Settings:
    """
    Build Settings from the environment.

    A `.env` file in the working directory is loaded first (without
    overriding variables that are already set). Recognised variables:
    SKULLKING_DATA_DIR, SKULLKING_STORE_FILE, SKULLKING_DEFAULT_ROUNDS and
    SKULLKING_LOG_LEVEL.
    """
    if dotenv:
        load_dotenv(find_dotenv(usecwd=True))
    env = os.environ if environ is None else environ

    data_dir = env.get("SKULLKING_DATA_DIR")
    rounds_raw = env.get("SKULLKING_DEFAULT_ROUNDS")
    default_rounds = DEFAULT_ROUNDS
    if rounds_raw:
        try:
            default_rounds = max(1, int(rounds_raw))
        except ValueError:
            logger.warning(
                "Ignoring SKULLKING_DEFAULT_ROUNDS=%r (not a number)", rounds_raw
            )

    return Settings(
        data_dir=Path(data_dir).expanduser() if data_dir else DEFAULT_DATA_DIR,
        store_file=env.get("SKULLKING_STORE_FILE") or DEFAULT_STORE_FILE,
        default_rounds=default_rounds,
        log_level=(env.get("SKULLKING_LOG_LEVEL") or "INFO").upper(),
    )
