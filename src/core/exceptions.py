"""Custom exceptions for the Inkwell application."""
from __future__ import annotations


class InkwellError(Exception):
    """Base exception for all application errors."""

    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(InkwellError):
    """Raised when required configuration is missing or invalid."""

    pass


class UnsupportedRuntimeError(ConfigurationError):
    """Raised when the running interpreter is outside the supported range."""

    def __init__(self, running: str, required: str):
        super().__init__(f"Python {running} does not satisfy {required}")
        self.running = running
        self.required = required


# =============================================================================
# Database Errors
# =============================================================================


class DatabaseError(InkwellError):
    """Base exception for database-related errors."""

    pass


class NotFoundError(DatabaseError):
    """Raised when a requested record does not exist."""

    pass


# =============================================================================
# Subsystem Errors
# =============================================================================


class PermissionsError(InkwellError):
    """Raised when the permissions subsystem cannot be initialised."""

    pass


class NoPermissionError(PermissionsError):
    """Raised when a role is not allowed to perform an action."""

    pass


class MailError(InkwellError):
    """Raised when mail cannot be delivered."""

    pass


class ThemeError(InkwellError):
    """Raised when the active theme is missing or broken."""

    pass


class PluginError(InkwellError):
    """Raised when a plugin fails to load, install or activate."""

    pass


# =============================================================================
# Startup Errors
# =============================================================================


class StartupError(InkwellError):
    """Raised when a startup stage fails."""

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"Startup stage '{stage}' failed: {cause}")
        self.stage = stage
        self.cause = cause


class ValidationError(InkwellError):
    """Raised when request or settings data fails validation."""

    pass


__all__ = [
    # Base
    "InkwellError",
    # Configuration
    "ConfigurationError",
    "UnsupportedRuntimeError",
    # Database
    "DatabaseError",
    "NotFoundError",
    # Subsystems
    "PermissionsError",
    "NoPermissionError",
    "MailError",
    "ThemeError",
    "PluginError",
    # Startup
    "StartupError",
    "ValidationError",
]
