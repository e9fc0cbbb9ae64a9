from __future__ import annotations

import os
from dataclasses import dataclass

# Largest number of writes committed as one atomic unit.
MAX_BATCH_SIZE = 450


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    store: str = "sqlite"
    db_path: str = "./data/task_thrower.db"
    log_level: str = "INFO"
    log_dir: str = "./logs"
    batch_size: int = MAX_BATCH_SIZE

    @classmethod
    def from_env(cls) -> "Settings":
        batch_size = _env_int("TASK_THROWER_BATCH_SIZE", MAX_BATCH_SIZE)
        return cls(
            store=os.getenv("TASK_THROWER_STORE", "sqlite").strip().lower(),
            db_path=os.getenv("DB_PATH", "./data/task_thrower.db"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_dir=os.getenv("LOG_DIR", "./logs"),
            batch_size=min(MAX_BATCH_SIZE, max(1, batch_size)),
        )
