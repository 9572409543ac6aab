from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_EXTRACTION_MODELS = ["gpt-5-mini", "gpt-4o", "gpt-4o-mini"]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=False)

    bot_token: str = Field(..., alias="BOT_TOKEN")
    openai_api_key: str = Field(..., alias="OPENAI_API_KEY")
    openai_base_url: Optional[str] = Field(None, alias="OPENAI_BASE_URL")
    extraction_models: list[str] = Field(default_factory=lambda: list(DEFAULT_EXTRACTION_MODELS), alias="EXTRACTION_MODELS")
    extraction_timeout: float = Field(30.0, alias="EXTRACTION_TIMEOUT")
    storage_dir: Path = Field(Path("data"), alias="STORAGE_DIR")
    public_base_url: Optional[str] = Field(None, alias="PUBLIC_BASE_URL")
    default_tax_pct: float = Field(0.13, ge=0, le=0.5, alias="DEFAULT_TAX_PCT")
    default_tip_pct: float = Field(0.18, ge=0, le=0.5, alias="DEFAULT_TIP_PCT")
    default_currency: str = Field("USD", alias="DEFAULT_CURRENCY")
    primary_name: str = Field("You", alias="PRIMARY_NAME")
    session_ttl_minutes: int = Field(120, gt=0, alias="SESSION_TTL_MINUTES")
    tz: str = Field("UTC", alias="TZ")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_json: bool = Field(True, alias="LOG_JSON")

    @property
    def zoneinfo(self) -> ZoneInfo:
        return ZoneInfo(self.tz)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
