#!/usr/bin/env python3
"""
Main CLI entry point for the Art Gallery backend server.
"""

import sys

import click
import uvicorn

from artgallery import __version__
from artgallery.logging import configure_logging, get_logger

logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="artgallery")
def cli() -> None:
    """Art Gallery CLI - run the server and manage admin credentials."""
    pass


@cli.command()
@click.option("--host", default=None, help="Host to bind to (default: API_HOST or 0.0.0.0)")
@click.option("--port", default=None, type=int, help="Port to bind to (default: API_PORT or 5000)")
@click.option("--reload", is_flag=True, default=False, help="Enable auto-reload for development")
@click.option(
    "--log-level",
    default="info",
    type=click.Choice(["debug", "info", "warning", "error"]),
    help="Log level (default: info)",
)
def serve(host: str | None, port: int | None, reload: bool, log_level: str) -> None:
    """Start the Art Gallery API server."""
    from artgallery.config import settings

    host = host or settings.api_host
    port = port or settings.api_port
    configure_logging(debug=(log_level == "debug"), level=log_level)
    logger.info("Starting Art Gallery API server", host=host, port=port, reload=reload)

    try:
        uvicorn.run(
            "artgallery.api.app:app",
            host=host,
            port=port,
            reload=reload,
            log_level=log_level,
            access_log=True,
        )
    except KeyboardInterrupt:
        logger.info("Server shutdown requested by user")
    except Exception as e:
        logger.error("Server startup failed", error=str(e))
        sys.exit(1)


@cli.command("hash-password")
@click.password_option("--password", help="Admin password to hash")
def hash_password_command(password: str) -> None:
    """Print a pbkdf2 hash to use as ADMIN_PASSWORD_HASH."""
    from artgallery.auth.passwords import hash_password

    click.echo(hash_password(password))


@cli.command("issue-token")
def issue_token() -> None:
    """Mint an admin token from the configured identity and secret."""
    from artgallery.auth.credentials import AdminAuthConfig, CredentialIssuer
    from artgallery.config import settings
    from artgallery.exceptions import ConfigurationError

    config = AdminAuthConfig.from_settings(settings)
    if not config.email:
        click.echo("Error: ADMIN_EMAIL is not configured", err=True)
        sys.exit(1)
    try:
        credential = CredentialIssuer(config).mint(config.email)
    except ConfigurationError:
        click.echo("Error: JWT_SECRET is not configured", err=True)
        sys.exit(1)

    click.echo(credential.token)
    click.echo(f"expires: {credential.expires_at.isoformat()}", err=True)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
