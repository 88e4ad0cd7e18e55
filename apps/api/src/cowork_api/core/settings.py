from functools import lru_cache
from typing import Literal

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "sqlite+aiosqlite:///./cowork.db"
    database_echo: bool = False
    log_level: str = "INFO"

    # Wall-clock rules (weekday gates, time windows, daily/weekly/monthly periods)
    perks_timezone: str = "UTC"
    perk_usage_history_limit: int = 50

    # Meeting room availability grid
    meeting_room_slot_minutes: int = 30
    meeting_room_default_open: str = "09:00"
    meeting_room_default_close: str = "18:00"

    # Include raw exception text in 500 responses
    expose_error_details: bool = True

    @field_validator("meeting_room_slot_minutes")
    @classmethod
    def _validate_slot_minutes(cls, value: int) -> int:
        if value <= 0 or value > 24 * 60:
            raise ValueError("meeting_room_slot_minutes must be between 1 and 1440")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
