from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .protocol import DEFAULT_CHUNK_SIZE


@dataclass
class Settings:
    store_path: Path = Path("gpps_nodes.parquet")
    chunk_size: int = DEFAULT_CHUNK_SIZE
    log_level: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        settings = cls()
        store = os.getenv("GPPS_STORE")
        if store:
            settings.store_path = Path(store)
        chunk = os.getenv("GPPS_CHUNK_SIZE")
        if chunk:
            settings.chunk_size = int(chunk)
            if settings.chunk_size <= 0:
                raise ValueError(f"GPPS_CHUNK_SIZE must be positive, got {chunk}")
        level = os.getenv("GPPS_LOG_LEVEL")
        if level:
            if not isinstance(logging.getLevelName(level.upper()), int):
                raise ValueError(f"GPPS_LOG_LEVEL is not a logging level, got {level}")
            settings.log_level = level.upper()
        return settings
