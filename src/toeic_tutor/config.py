"""Runtime settings, loaded from TOEIC_TUTOR_* environment variables or a .env file."""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DB_PATH = str(Path.home() / ".toeic_tutor" / "tutor.db")
DEFAULT_STORAGE_KEY = "toeic_reading_progress"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TOEIC_TUTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    db_path: str = Field(default=DEFAULT_DB_PATH, description="SQLite file holding saved progress")
    storage_key: str = Field(default=DEFAULT_STORAGE_KEY, description="Key of the progress record")
    content_path: Optional[str] = Field(
        default=None,
        description="JSON or YAML definition set to use instead of the bundled one",
    )
    session_size: int = Field(default=20, ge=1, description="Questions per practice session")
    log_level: str = Field(default="WARNING")


@lru_cache
def get_settings() -> Settings:
    return Settings()
