import os
from functools import lru_cache

from pydantic import BaseModel, Field


class Settings(BaseModel):
    TWELVE_DATA_API_KEY: str = Field(min_length=1)
    TWELVE_DATA_BASE_URL: str = "https://api.twelvedata.com"
    PRICE_CACHE_TTL_SEC: float = Field(default=60.0, gt=0)
    PRICE_REFRESH_PACE_SEC: float = Field(default=0.5, ge=0)
    QUOTE_HTTP_TIMEOUT_SEC: float = Field(default=15.0, gt=0)
    LOG_LEVEL: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        values = {"TWELVE_DATA_API_KEY": os.getenv("TWELVE_DATA_API_KEY")}
        for key in (
            "TWELVE_DATA_BASE_URL",
            "PRICE_CACHE_TTL_SEC",
            "PRICE_REFRESH_PACE_SEC",
            "QUOTE_HTTP_TIMEOUT_SEC",
            "LOG_LEVEL",
        ):
            # unset or blank optional values fall back to the field defaults
            raw = os.getenv(key, "").strip()
            if raw:
                values[key] = raw

        return cls.model_validate(values)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()
