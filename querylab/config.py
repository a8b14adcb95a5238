"""
Configuration settings for querylab.

Uses Pydantic Settings to load environment variables for the fixture location,
the SQLite file used by the raw SQL scenarios, and logging.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGED_FIXTURE = Path(__file__).parent / "data" / "sample_data.json"


class Settings(BaseSettings):
    # Data
    fixture_path: Optional[Path] = Field(None, alias="FIXTURE_PATH")
    sqlite_path: Path = Field(Path("practice.db"), alias="SQLITE_PATH")
    sqlite_timeout_seconds: float = Field(5.0, alias="SQLITE_TIMEOUT_SECONDS")

    # Application
    app_env: str = Field("development", alias="APP_ENV")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(False, alias="LOG_JSON")
    log_engine_level: Optional[str] = Field(None, alias="LOG_ENGINE_LEVEL")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Retrieve a cached instance of Settings to avoid repeated env parsing.
    """
    return Settings()


__all__ = ["PACKAGED_FIXTURE", "Settings", "get_settings"]
