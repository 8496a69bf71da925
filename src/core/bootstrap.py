"""Environment validation and runtime preconditions.

These checks run before anything is bound, failing fast with clear log
messages when the installation cannot be served.
"""
from __future__ import annotations

import platform
from dataclasses import dataclass, field
from importlib.metadata import PackageNotFoundError, metadata
from typing import List, Optional
from urllib.parse import urlparse

from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from core.config import Settings
from core.exceptions import ConfigurationError
from core.logging_config import get_logger

LOGGER = get_logger(__name__)

DISTRIBUTION_NAME = "inkwell"
# Used only when the package is run from a source checkout without being installed.
FALLBACK_REQUIRES_PYTHON = ">=3.10"


@dataclass
class ValidationResult:
    """Result of environment validation."""

    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def add_error(self, message: str) -> None:
        """Add an error and mark validation as failed."""
        self.errors.append(message)
        self.is_valid = False

    def add_warning(self, message: str) -> None:
        """Add a warning (does not fail validation)."""
        self.warnings.append(message)


def validate_environment(settings: Settings) -> ValidationResult:
    """
    Validate the loaded configuration.

    Returns:
        ValidationResult with errors and warnings.
    """
    result = ValidationResult()

    parsed = urlparse(settings.url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        result.add_error(f"URL must be an absolute http(s) URL, got '{settings.url}'.")

    if not settings.database_url:
        result.add_error("DATABASE_URL is not set.")

    if settings.is_production:
        if settings.database_url and settings.database_url.startswith("sqlite"):
            result.add_warning("SQLite is in use in production; consider a server database.")
        if not settings.is_mail_configured():
            result.add_warning("Mail is not configured. Password resets and invitations will fail.")

    if settings.mail_transport and settings.mail_transport not in ("smtp", "sendmail"):
        result.add_error(f"MAIL_TRANSPORT must be 'smtp' or 'sendmail', got '{settings.mail_transport}'.")
    elif settings.mail_transport == "smtp" and not settings.mail_host:
        result.add_error("MAIL_HOST is required when MAIL_TRANSPORT=smtp.")

    return result


def validate_or_raise(settings: Settings) -> None:
    """
    Log validation output and raise if the configuration is unusable.

    Raises:
        ConfigurationError: If any validation error was found.
    """
    validation = validate_environment(settings)
    for warning in validation.warnings:
        LOGGER.warning("Config Warning: %s", warning)

    if not validation.is_valid:
        for error in validation.errors:
            LOGGER.error("Config Error: %s", error)
        raise ConfigurationError("Environment validation failed. See logs for details.")


def required_python() -> str:
    """The ``Requires-Python`` range declared in package metadata."""
    try:
        declared = metadata(DISTRIBUTION_NAME).get("Requires-Python")
    except PackageNotFoundError:
        declared = None
    return declared or FALLBACK_REQUIRES_PYTHON


def runtime_supported(running: Optional[str] = None, required: Optional[str] = None) -> bool:
    """
    Check the interpreter version against the declared range.

    Args:
        running: Version string to check. Defaults to the current interpreter.
        required: Specifier set such as ">=3.10". Defaults to package metadata.
    """
    running = running or platform.python_version()
    required = required or required_python()
    try:
        return Version(running) in SpecifierSet(required)
    except (InvalidVersion, InvalidSpecifier) as exc:
        LOGGER.error("Cannot compare Python %s against %s: %s", running, required, exc)
        return False


def unsupported_runtime_message(running: str, required: str) -> str:
    return (
        "\nERROR: Unsupported version of Python"
        f"\nInkwell needs Python version {required} you are using version {running}"
        "\nPlease go to https://www.python.org/downloads/ to get a supported version"
    )


__all__ = [
    "ValidationResult",
    "validate_environment",
    "validate_or_raise",
    "required_python",
    "runtime_supported",
    "unsupported_runtime_message",
]
