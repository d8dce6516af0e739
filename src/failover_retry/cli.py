"""
Command-line interface for key lookups.

Usage:
    failover-retry fetch 0x1234ABCD5678EF90             # Print the armored key
    failover-retry fetch 1234ABCD -k hkps://keys.example  # Custom key server
    failover-retry fetch 1234ABCD --timeout 10          # Shorter deadline
    failover-retry --version

Logging is configured from settings (LOG_LEVEL, ENVIRONMENT); DEBUG or
--verbose force debug output. Logs go to stderr, the key to stdout.
"""

import asyncio
from typing import Annotated, Any

import typer

from failover_retry.config import Settings, settings
from failover_retry.keyserver.client import KeyServerClient
from failover_retry.keyserver.exceptions import KeyServerError
from failover_retry.logging_config import configure_logging
from failover_retry.retry.engine import FailoverRetry
from failover_retry.retry.exceptions import RetryBudgetExhausted

EXIT_NOT_FOUND = 1
EXIT_FAILURE = 2

app = typer.Typer(
    name="failover-retry",
    help="Fetch OpenPGP keys from redundant key servers with failover.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"{settings.APP_NAME} version {settings.APP_VERSION}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging.",
    ),
) -> None:
    """Failover retry scheduler for key-lookup servers."""
    log_level = "DEBUG" if verbose or settings.DEBUG else settings.LOG_LEVEL
    configure_logging(log_level, settings.ENVIRONMENT)


async def _fetch(key_id: str, app_settings: Settings, overrides: dict[str, Any]) -> str | None:
    retry = FailoverRetry.from_settings(app_settings, **overrides)
    async with KeyServerClient(retry) as client:
        return await client.fetch_key(key_id)


@app.command()
def fetch(
    key_id: Annotated[
        str,
        typer.Argument(help="Key id (8 or 16 hex digits) or v4 fingerprint."),
    ],
    keyserver: Annotated[
        list[str] | None,
        typer.Option(
            "--keyserver",
            "-k",
            help="Key server URI; repeat for several. Defaults to KEYSERVER_URIS.",
        ),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout",
            "-t",
            help="Deadline for the whole lookup, in seconds.",
            min=0.1,
        ),
    ] = None,
) -> None:
    """Fetch an armored public key and print it to stdout."""
    overrides: dict[str, Any] = {}
    if keyserver:
        overrides["endpoints"] = keyserver
    if timeout is not None:
        overrides["key_resolution_timeout"] = timeout

    try:
        armored = asyncio.run(_fetch(key_id, settings, overrides))
    except ValueError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(EXIT_FAILURE) from None
    except (RetryBudgetExhausted, KeyServerError) as e:
        typer.secho(f"Lookup failed: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(EXIT_FAILURE) from None

    if armored is None:
        typer.secho(f"Key not found: {key_id}", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(EXIT_NOT_FOUND)

    typer.echo(armored, nl=False)
