# docstore/core/config.py
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    app_name: str = "docstore"
    host: str = "0.0.0.0"
    port: int = 4001

    # all collections, uploads and the users file live under this directory
    storage_root: Path = Path("./db")

    # when false, data and upload routes accept anonymous requests
    require_auth: bool = True
    secret_key: str = "change-me-in-production"
    access_token_expire_minutes: int = 60

    # strict: an indexOf clause on a missing/non-containable field fails the request
    strict_filters: bool = True

    cors_origins: Annotated[list[str], NoDecode] = Field(default=["*"])

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Tell pydantic-settings to load from .env at project root
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DOCSTORE_",
        extra="ignore",  # ignore any extra stuff in .env
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: str | list[str]) -> list[str]:
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def uploads_dir(self) -> Path:
        return self.storage_root / "uploads"


@lru_cache
def get_settings() -> Settings:
    return Settings()
