"""Core module exports."""
from __future__ import annotations

__version__ = "0.4.0"

from core.config import Settings, get_settings, reload_settings
from core.db import Base, Database
from core.exceptions import (
    # Base
    InkwellError,
    # Configuration
    ConfigurationError,
    UnsupportedRuntimeError,
    # Database
    DatabaseError,
    NotFoundError,
    # Subsystems
    PermissionsError,
    NoPermissionError,
    MailError,
    ThemeError,
    PluginError,
    # Startup
    StartupError,
    ValidationError,
)
from core.logging_config import (
    setup_logging,
    get_logger,
    get_context_logger,
    log_stage,
    JSONFormatter,
    ContextLogger,
)
from core.models import (
    Setting,
    SettingType,
    Role,
    Permission,
)

__all__ = [
    "__version__",
    # Config
    "Settings",
    "get_settings",
    "reload_settings",
    # Database
    "Database",
    "Base",
    # Models
    "Setting",
    "SettingType",
    "Role",
    "Permission",
    # Exceptions
    "InkwellError",
    "ConfigurationError",
    "UnsupportedRuntimeError",
    "DatabaseError",
    "NotFoundError",
    "PermissionsError",
    "NoPermissionError",
    "MailError",
    "ThemeError",
    "PluginError",
    "StartupError",
    "ValidationError",
    # Logging
    "setup_logging",
    "get_logger",
    "get_context_logger",
    "log_stage",
    "JSONFormatter",
    "ContextLogger",
]
