"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).
Sub-configs are composed into AppSettings by a model validator so every
part of the app reads from the same source.
"""

from __future__ import annotations

import json
from typing import Annotated, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# MongoDB documents are capped at 16 MB, uploads stay safely below that
MAX_UPLOAD_BYTES = 15 * 1024 * 1024

DEFAULT_ALLOWED_MIME_TYPES = [
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/svg+xml",
    "application/pdf",
    "application/zip",
    "application/x-zip-compressed",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
    "text/csv",
    "application/json",
    "audio/mpeg",
    "audio/wav",
    "video/mp4",
    "video/webm",
]


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str = "mongodb://localhost:27017/urlshortener"
    db_name: str = "urlshortener"

    # Tuned for short-lived serverless workers
    server_selection_timeout_ms: int = 5000
    socket_timeout_ms: int = 45000
    max_pool_size: int = 1
    min_pool_size: int = 1
    max_idle_time_ms: int = 30000


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    base_url: str = "https://h4a.us"
    app_name: str = "h4a.us"

    cors_origins: Annotated[list[str], NoDecode] = [
        "https://h4a.us",
        "https://www.h4a.us",
        "http://localhost:3000",
    ]

    # Uploads
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    allowed_mime_types: Annotated[list[str], NoDecode] = DEFAULT_ALLOWED_MIME_TYPES

    # GeoIP city database (configurable for self-hosters)
    geoip_city_db: str = "misc/GeoLite2-City.mmdb"

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    db: Optional[DatabaseSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @field_validator("cors_origins", "allowed_mime_types", mode="before")
    @classmethod
    def _split_comma_list(cls, v):
        # Env values arrive as "a, b, c" or a JSON array
        if isinstance(v, str):
            if v.strip().startswith("["):
                return json.loads(v)
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        self.base_url = self.base_url.rstrip("/")
        if self.db is None:
            self.db = DatabaseSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
