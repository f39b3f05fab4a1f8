from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    timezone: str = Field(default="UTC", alias="ZONEFMT_TIMEZONE")
    locale: str = Field(default="en_US", alias="ZONEFMT_LOCALE")
    log_level: str = Field(default="INFO", alias="ZONEFMT_LOG_LEVEL")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
