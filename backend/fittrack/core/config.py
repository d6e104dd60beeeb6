from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fittrack.core.constants import (
    DEFAULT_DB_NAME,
    DEFAULT_MIN_DISTANCE_M,
    DEFAULT_MIN_INTERVAL_MS,
    DEFAULT_TICK_PERIOD_MS,
)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = f"sqlite+pysqlite:///{DEFAULT_DB_NAME}"
    log_level: str = "INFO"

    # Position source subscription options
    position_high_accuracy: bool = True
    position_min_interval_ms: int = DEFAULT_MIN_INTERVAL_MS
    position_min_distance_meters: float = DEFAULT_MIN_DISTANCE_M

    # Duration ticker period
    tick_period_ms: int = DEFAULT_TICK_PERIOD_MS

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_level(cls, v):
        if v in ("", None):
            return "INFO"
        return str(v).upper()

    @field_validator("position_min_interval_ms", "tick_period_ms")
    @classmethod
    def _positive_period(cls, v):
        if v <= 0:
            raise ValueError("period must be > 0 ms")
        return v


settings = Settings()
