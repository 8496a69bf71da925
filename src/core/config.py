"""Configuration management for the Inkwell blogging platform.

All configuration is loaded from environment variables and/or .env file.
The deployment environment (ENVIRONMENT) defaults to "development".
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root detection
PROJECT_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = PROJECT_ROOT / ".env"

DEFAULT_CONTENT_PATH = PROJECT_ROOT / "content"

_TRUTHY = {"1", "true", "yes", "on", "default"}
_FALSY = {"", "0", "false", "no", "off", "none"}


def _resolve_database_url(url: str, content_path: Path) -> str:
    """
    Convert relative SQLite paths to absolute paths based on the content directory.

    This prevents issues when the server is started from different working directories.
    """
    if not url.startswith("sqlite:///") or url == "sqlite:///:memory:":
        return url

    path_part = url.replace("sqlite:///", "")
    if path_part.startswith("./") or (not path_part.startswith("/") and ":" not in path_part):
        if path_part.startswith("./"):
            path_part = path_part[2:]
        return f"sqlite:///{(content_path / path_part).as_posix()}"

    return url


class Settings(BaseSettings):
    """
    Runtime configuration powered by environment variables and .env overrides.

    All settings can be configured via:
    1. Environment variables (highest priority)
    2. .env file in project root (loaded automatically)
    3. Default values (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_file=ENV_FILE if ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # -------------------------------------------------------------------------
    # Application
    # -------------------------------------------------------------------------
    environment: str = Field(default="development", alias="ENVIRONMENT")
    url: str = Field(
        default="http://localhost:2368",
        alias="URL",
        description="Public URL the blog is served under.",
    )
    default_locale: str = Field(default="en", alias="DEFAULT_LOCALE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="text", alias="LOG_FORMAT")  # "text" or "json"
    log_file: Optional[Path] = Field(default=None, alias="LOG_FILE")

    # -------------------------------------------------------------------------
    # Server
    # -------------------------------------------------------------------------
    server_host: str = Field(default="127.0.0.1", alias="SERVER_HOST")
    server_port: int = Field(default=2368, alias="SERVER_PORT", ge=1, le=65535)
    server_socket: Optional[Union[bool, str]] = Field(
        default=None,
        alias="SERVER_SOCKET",
        description="Unset for TCP; true for the default socket path; any other string is a path.",
    )
    socket_mode: int = Field(default=0o744, alias="SOCKET_MODE", ge=0, le=0o777)

    # -------------------------------------------------------------------------
    # Storage
    # -------------------------------------------------------------------------
    content_path: Path = Field(default=DEFAULT_CONTENT_PATH, alias="CONTENT_PATH")
    database_url: Optional[str] = Field(
        default=None,
        alias="DATABASE_URL",
        description="SQLAlchemy connection string. Defaults to a SQLite file per environment.",
    )
    db_pool_size: int = Field(default=5, alias="DB_POOL_SIZE", ge=1)
    db_max_overflow: int = Field(default=10, alias="DB_MAX_OVERFLOW", ge=0)
    db_pool_timeout: int = Field(default=30, alias="DB_POOL_TIMEOUT", ge=1)

    # -------------------------------------------------------------------------
    # Mail
    # -------------------------------------------------------------------------
    mail_transport: Optional[str] = Field(default=None, alias="MAIL_TRANSPORT")  # "smtp" or "sendmail"
    mail_host: Optional[str] = Field(default=None, alias="MAIL_HOST")
    mail_port: int = Field(default=587, alias="MAIL_PORT", ge=1)
    mail_user: Optional[str] = Field(default=None, alias="MAIL_USER")
    mail_password: Optional[str] = Field(default=None, alias="MAIL_PASSWORD")
    mail_use_tls: bool = Field(default=True, alias="MAIL_USE_TLS")
    mail_from: Optional[str] = Field(default=None, alias="MAIL_FROM")
    sendmail_path: Path = Field(default=Path("/usr/sbin/sendmail"), alias="SENDMAIL_PATH")

    # -------------------------------------------------------------------------
    # Admin
    # -------------------------------------------------------------------------
    admin_password: Optional[str] = Field(
        default=None,
        alias="ADMIN_PASSWORD",
        description="Password for the Administrator session. Sign-in is disabled when unset.",
    )
    admin_login_rate_limit: int = Field(default=5, alias="ADMIN_LOGIN_RATE_LIMIT", ge=1)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Normalize the environment name."""
        value = v.strip().lower()
        if not value:
            raise ValueError("ENVIRONMENT must not be empty")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Ensure log format is valid."""
        lower = v.lower()
        if lower not in {"text", "json"}:
            raise ValueError("log_format must be 'text' or 'json'")
        return lower

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Store the URL without a trailing slash."""
        return v.rstrip("/") if len(v) > 1 else v

    @field_validator("server_socket", mode="before")
    @classmethod
    def coerce_server_socket(cls, v: object) -> object:
        """
        Map flag-like values to booleans.

        "true"/"1"/"default" request the default socket path, "false"/"0"/""
        disable socket mode, anything else is taken as a filesystem path.
        """
        if v is None or isinstance(v, bool):
            return v or None
        text = str(v).strip()
        if text.lower() in _TRUTHY:
            return True
        if text.lower() in _FALSY:
            return None
        return text

    @field_validator("socket_mode", mode="before")
    @classmethod
    def parse_socket_mode(cls, v: object) -> object:
        """Accept octal strings such as "0744" or "0o744"."""
        if isinstance(v, str):
            return int(v, 8)
        return v

    @model_validator(mode="after")
    def resolve_database_url(self) -> "Settings":
        """Default to a per-environment SQLite file and make relative paths absolute."""
        if not self.database_url:
            db_file = self.content_path / "data" / f"inkwell-{self.environment}.db"
            self.database_url = f"sqlite:///{db_file.as_posix()}"
        self.database_url = _resolve_database_url(self.database_url, self.content_path)
        return self

    # -------------------------------------------------------------------------
    # Helper Methods
    # -------------------------------------------------------------------------

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def uses_socket(self) -> bool:
        """True when the server should bind a Unix socket instead of TCP."""
        return self.server_socket is not None

    @property
    def subdir(self) -> str:
        """Path component of the configured URL, without trailing slash."""
        return urlparse(self.url).path.rstrip("/")

    def is_mail_configured(self) -> bool:
        """Check if an explicit mail transport is configured."""
        if self.mail_transport == "smtp":
            return bool(self.mail_host)
        return self.mail_transport == "sendmail"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Settings are loaded once and cached. To reload settings,
    call `get_settings.cache_clear()` first.

    Returns:
        Settings object with all configuration.
    """
    return Settings()


def reload_settings() -> Settings:
    """
    Clear settings cache and reload from environment.

    Useful for testing or after modifying .env file.
    """
    get_settings.cache_clear()
    return get_settings()
