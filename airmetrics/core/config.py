# airmetrics/core/config.py
from enum import Enum
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Valor centinela heredado: sin credencial real se sirven datos sintéticos
DEVELOPMENT_KEY = "development"


class DataMode(str, Enum):
    LIVE = "live"
    MOCK = "mock"


class Settings(BaseSettings):
    app_name: str = Field(default="AirMetrics API", alias="APP_NAME")
    app_env: str = Field(default="dev", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Keys
    openaq_api_key: str | None = Field(default=DEVELOPMENT_KEY, alias="OPENAQ_API_KEY")

    # Bases
    openaq_base: str = Field(default="https://api.openaq.org/v2", alias="OPENAQ_BASE")
    nominatim_base: str = Field(default="https://nominatim.openstreetmap.org", alias="NOMINATIM_BASE")
    user_agent: str = Field(default="AirMetrics/1.0", alias="USER_AGENT")
    request_timeout: float = Field(default=10.0, alias="REQUEST_TIMEOUT")

    # Cache
    redis_url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    cache_enabled: bool = Field(default=True, alias="CACHE_ENABLED")
    cache_prefix: str = Field(default="airmetrics", alias="CACHE_PREFIX")
    cache_connect_attempts: int = Field(default=3, ge=1, alias="CACHE_CONNECT_ATTEMPTS")
    cache_retry_after: float = Field(default=20.0, ge=0, alias="CACHE_RETRY_AFTER")
    air_quality_ttl: int = Field(default=300, ge=1, alias="AIR_QUALITY_TTL")
    rankings_ttl: int = Field(default=900, ge=1, alias="RANKINGS_TTL")

    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).resolve().parents[1] / ".env"),  # airmetrics/.env
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @property
    def data_mode(self) -> DataMode:
        """Modo fijado una sola vez al configurar el proceso."""
        key = (self.openaq_api_key or "").strip()
        if not key or key == DEVELOPMENT_KEY:
            return DataMode.MOCK
        return DataMode.LIVE


settings = Settings()
