"""
Application settings loaded with Pydantic
"""
import re
from datetime import time, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .clock import local_zone
from .exceptions import ConfigurationError


load_dotenv()


class Settings(BaseSettings):
    """Bot settings.

    Required: ``MONGODB_URI``, ``TELEGRAM_BOT_TOKEN`` and ``CHAT_ID``. Everything
    else has a default. ``APP_ENV=production`` switches Telegram to webhook mode
    and then ``WEBHOOK_URL`` becomes required too.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Record store
    mongodb_uri: str
    database_name: str = "toolbar"

    # Telegram
    telegram_bot_token: str
    chat_id: str
    webhook_url: Optional[str] = None

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000
    app_env: str = "development"

    # Schedule
    timezone: Optional[str] = None
    report_time: str = "09:00"

    # Listing
    new_users_limit: Optional[int] = None

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"

    @field_validator('mongodb_uri', 'telegram_bot_token', 'chat_id')
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not str(v).strip():
            raise ValueError("must not be empty")
        return str(v).strip()

    @field_validator('report_time', mode='before')
    @classmethod
    def validate_time_format(cls, v: str) -> str:
        """Normalize the report time to HH:MM.
        Accepted values:
        - "9" -> "09:00"
        - "9:0"/"9:00" -> HH:MM
        - "HH:MM"
        """
        if v is None:
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.isdigit():
                h = int(s)
                if 0 <= h <= 23:
                    return f"{h:02d}:00"
            if re.fullmatch(r"\d{1,2}:\d{1,2}", s):
                h_str, m_str = s.split(':', 1)
                h, m = int(h_str), int(m_str)
                if 0 <= h <= 23 and 0 <= m <= 59:
                    return f"{h:02d}:{m:02d}"
            try:
                time.fromisoformat(s)
                return s
            except ValueError:
                raise ValueError(f"Invalid time format: {v}. Use HH:MM")
        return v

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        try:
            ZoneInfo(v.strip())
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v.strip()

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode='after')
    def validate_webhook(self) -> "Settings":
        if self.is_production and not self.webhook_url:
            raise ValueError("WEBHOOK_URL is required when APP_ENV=production")
        return self

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    @property
    def zoneinfo(self) -> Optional[ZoneInfo]:
        return ZoneInfo(self.timezone) if self.timezone else None

    @property
    def tzinfo(self) -> tzinfo:
        """Configured zone, or the server's local zone"""
        return self.zoneinfo or local_zone()

    @property
    def report_time_of_day(self) -> time:
        """Daily report time, aware of the configured zone"""
        return time.fromisoformat(self.report_time).replace(tzinfo=self.tzinfo)

    @property
    def webhook_path(self) -> str:
        return f"/bot{self.telegram_bot_token}"


def load_settings(**overrides) -> Settings:
    """Load settings, failing fast with a readable list of problems"""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        problems = []
        for err in e.errors():
            field = ".".join(str(part) for part in err.get("loc", ())) or "settings"
            problems.append(f"{field}: {err.get('msg')}")
        raise ConfigurationError("Invalid configuration: " + "; ".join(problems)) from e
