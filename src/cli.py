#!/usr/bin/env python3
"""Command Line Interface for the Inkwell blogging platform.

Usage:
    inkwell server     # Initialise and start the blog server
    inkwell info       # Show configuration and listen target
    inkwell migrate    # Apply database migrations
"""
from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from core.config import get_settings
from core.logging_config import get_logger, setup_logging

LOGGER = get_logger(__name__)
PROJECT_ROOT = Path(__file__).resolve().parents[1]

app = typer.Typer(help="Inkwell blogging platform CLI")


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose output"),
) -> None:
    """Inkwell - Just a blogging platform."""
    settings = get_settings()
    log_level = "DEBUG" if verbose else settings.log_level
    setup_logging(
        level=log_level,
        log_file=settings.log_file,
        json_format=settings.log_format == "json",
    )


# =============================================================================
# Server Commands
# =============================================================================


@app.command("server")
def run_server() -> None:
    """Initialise the blog and serve it until interrupted."""
    from core.context import AppContext
    from core.startup import StartupStatus, start

    ctx = AppContext.create(get_settings())
    result = asyncio.run(start(ctx))

    if result.status is StartupStatus.FAILED:
        typer.secho(f"✗ Startup failed during '{result.stage}': {result.error}", fg="red", err=True)
    elif result.status is StartupStatus.UNSUPPORTED_RUNTIME:
        typer.secho(f"✗ {result.error}", fg="red", err=True)
    raise typer.Exit(result.exit_code)


# =============================================================================
# Utility Commands
# =============================================================================


@app.command("migrate")
def migrate(
    revision: str = typer.Argument("head", help="Target revision"),
) -> None:
    """Apply Alembic migrations to the configured database."""
    from alembic import command
    from alembic.config import Config

    ini_path = PROJECT_ROOT / "alembic.ini"
    if not ini_path.exists():
        typer.secho(f"✗ alembic.ini not found at {ini_path}", fg="red")
        raise typer.Exit(1)

    typer.echo(f"Upgrading database to {revision}...")
    command.upgrade(Config(str(ini_path)), revision)
    typer.secho("✓ Database migrations complete", fg="green")


@app.command("info")
def show_info() -> None:
    """Show resolved configuration."""
    from core.bootstrap import required_python, runtime_supported, validate_environment
    from core.server import resolve_listen_target

    settings = get_settings()
    typer.echo("Inkwell Configuration:")
    typer.echo(f"  Environment: {settings.environment}")
    typer.echo(f"  URL: {settings.url}")
    typer.echo(f"  Listen: {resolve_listen_target(settings).describe()}")
    typer.echo(f"  Content Path: {settings.content_path}")
    typer.echo(f"  Database: {settings.database_url}")
    typer.echo(f"  Mail Transport: {settings.mail_transport or 'auto'}")
    typer.echo(f"  Log Level: {settings.log_level}")
    typer.echo(f"  Python Supported: {runtime_supported()} ({required_python()})")

    validation = validate_environment(settings)
    for warning in validation.warnings:
        typer.secho(f"  ! {warning}", fg="yellow")
    for error in validation.errors:
        typer.secho(f"  ✗ {error}", fg="red")


if __name__ == "__main__":
    app()
