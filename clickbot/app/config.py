from __future__ import annotations

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    telegram_bot_token: str = Field(..., alias="TELEGRAM_BOT_TOKEN")
    bot_username: Optional[str] = Field(None, alias="TELEGRAM_BOT_USERNAME")
    track_command: str = Field("track", alias="TRACK_COMMAND")

    tracking_db_path: Path = Field(Path("./data/tracking.db"), alias="TRACKING_DB_PATH")
    db_busy_timeout_seconds: float = Field(5.0, gt=0, le=60, alias="DB_BUSY_TIMEOUT_SECONDS")
    transaction_attempts: int = Field(3, ge=1, le=10, alias="TRANSACTION_ATTEMPTS")

    # Polling is used when no public webhook URL is configured
    webhook_url: Optional[str] = Field(None, alias="WEBHOOK_URL")
    webhook_path: str = Field("/webhook", alias="WEBHOOK_PATH")
    webhook_secret: Optional[str] = Field(None, alias="WEBHOOK_SECRET")
    web_server_host: str = Field("0.0.0.0", alias="WEB_SERVER_HOST")
    web_server_port: int = Field(8080, ge=1, le=65535, alias="WEB_SERVER_PORT")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field("INFO", alias="LOG_LEVEL")

    @field_validator("track_command")
    @classmethod
    def _strip_command(cls, value: str) -> str:
        value = value.strip().lstrip("/")
        if not value or any(ch.isspace() for ch in value):
            raise ValueError("TRACK_COMMAND must be a single word")
        return value

    @field_validator("webhook_path")
    @classmethod
    def _normalize_path(cls, value: str) -> str:
        value = value.strip() or "/webhook"
        return value if value.startswith("/") else f"/{value}"

    @property
    def use_webhook(self) -> bool:
        return bool(self.webhook_url)

    @property
    def webhook_endpoint(self) -> str:
        assert self.webhook_url
        return self.webhook_url.rstrip("/") + self.webhook_path

    def ensure_dirs(self) -> None:
        self.tracking_db_path.parent.mkdir(parents=True, exist_ok=True)
