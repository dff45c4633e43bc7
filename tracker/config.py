from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]
LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TRACKER_",
        env_file=str(BASE_DIR / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    data_dir: Path = BASE_DIR / "data"
    reports_dir: Path = BASE_DIR / "data" / "reports"
    max_upload_mb: float = 10.0
    report_ttl_seconds: int = 3600
    signing_key: str = "change-me"
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    @property
    def max_upload_bytes(self) -> int:
        return int(self.max_upload_mb * 1024 * 1024)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )
