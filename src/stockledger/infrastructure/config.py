"""Runtime settings, read from the environment (and a ``.env`` file)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Resolve data directory relative to the project root.
# When installed in editable mode the project root is the repo root.
_DATA_DIR = Path(__file__).resolve().parents[3] / "data"


def _default_database_url() -> str:
    return f"sqlite:///{(_DATA_DIR / 'stockledger.db').as_posix()}"


@dataclass(frozen=True)
class Settings:
    database_url: str
    database_echo: bool = False
    log_level: str = "WARNING"
    max_retries: int = 3

    @classmethod
    def from_env(cls) -> Settings:
        load_dotenv()
        return cls(
            database_url=os.getenv("STOCKLEDGER_DATABASE_URL", _default_database_url()),
            database_echo=os.getenv("STOCKLEDGER_DATABASE_ECHO", "False").lower() == "true",
            log_level=os.getenv("STOCKLEDGER_LOG_LEVEL", "WARNING").upper(),
            max_retries=int(os.getenv("STOCKLEDGER_MAX_RETRIES", "3")),
        )
