"""
block-alert CLI using Typer.
"""

from __future__ import annotations

import asyncio
import contextlib
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger
from pydantic import ValidationError

from blockalert.config import Settings, get_settings
from blockalert.errors import ExtendedKeyError
from blockalert.events import EventBus
from blockalert.manager import ProcessManager
from blockalert.nbxplorer import NBXplorerService
from blockalert.ntfy import NtfyService
from blockalert.wizard import (
    format_derivation_table,
    format_interval_menu,
    is_valid_derivation_scheme,
    is_valid_url,
    parse_interval_choice,
    render_env,
    write_env_file,
)
from blockalert.xpub import convert_extended_pubkey

app = typer.Typer(
    name="block-alert",
    help="Watch a Bitcoin wallet through NBXplorer and notify via ntfy",
    add_completion=False,
)


def setup_logging(level: str) -> None:
    logger.remove()

    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level.upper(),
        colorize=True,
    )


def build_manager(settings: Settings) -> ProcessManager:
    events = EventBus()
    nbx_user, nbx_password = settings.nbxplorer_credentials()

    nbxplorer_service = NBXplorerService(
        events,
        nbx_url=settings.nbxplorer_url,
        crypto_code=settings.crypto_code,
        extended_pubkey=settings.extended_pubkey,
        balance_report_interval_ms=settings.balance_report_interval_ms,
        nbx_user=nbx_user,
        nbx_password=nbx_password,
    )
    ntfy_service = NtfyService(
        events,
        ntfy_url=settings.ntfy_url,
        topic=settings.ntfy_topic,
        ntfy_user=settings.ntfy_user,
        ntfy_password=settings.ntfy_password,
    )
    return ProcessManager(events, nbxplorer_service, ntfy_service)


async def run_block_alert(settings: Settings) -> int:
    logger.info("Initializing Application")
    logger.info(f"NBXplorer: {settings.nbxplorer_url} ({settings.crypto_code})")
    logger.info(f"Ntfy: {settings.ntfy_url}/{settings.ntfy_topic}")
    logger.info(f"Balance report interval: {settings.balance_report_interval_ms} ms")

    manager = build_manager(settings)
    start_task = asyncio.create_task(manager.start())
    try:
        return await manager.wait_closed()
    finally:
        # Shutdown may arrive while start() is still health checking or scanning
        if not start_task.done():
            start_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await start_task
        await manager.nbxplorer_service.close()
        await manager.ntfy_service.close()


@app.command()
def run(
    env_file: Annotated[
        Path | None, typer.Option("--env-file", "-e", help="Path to .env file")
    ] = None,
    log_level: Annotated[
        str | None, typer.Option("--log-level", "-l", help="Overrides LOG_LEVEL")
    ] = None,
) -> None:
    """Start watching the configured extended public key."""
    try:
        settings = get_settings(env_file)
    except ValidationError as e:
        setup_logging(log_level or "INFO")
        logger.error(f"Invalid configuration: {e}")
        raise typer.Exit(1)

    setup_logging(log_level or settings.log_level)

    try:
        exit_code = asyncio.run(run_block_alert(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        exit_code = 0
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        exit_code = 1

    raise typer.Exit(exit_code)


def _prompt_until(text: str, is_valid: Callable[[str], bool], error: str) -> str:
    while True:
        value = typer.prompt(text).strip()
        if is_valid(value):
            return value
        typer.echo(error)


def _prompt_interval() -> int:
    while True:
        interval_ms = parse_interval_choice(typer.prompt("Enter the number of your choice (1-7)"))
        if interval_ms is not None:
            return interval_ms
        typer.echo("Invalid choice. Please enter a number between 1 and 7.")


@app.command()
def init(
    output: Annotated[
        Path, typer.Option("--output", "-o", help="Where to write the .env file")
    ] = Path(".env"),
) -> None:
    """Interactively create a .env file."""
    if output.exists():
        typer.confirm(f"{output} already exists. Overwrite it?", abort=True)

    invalid_url = "Invalid URL format. Please enter a valid URL."
    nbxplorer_url = _prompt_until(
        "What is the NBXplorer URL? (e.g., http://127.0.0.1:24444)", is_valid_url, invalid_url
    )

    cookie_path = ""
    if typer.confirm("Do you want to configure NBXplorer authentication?", default=False):
        cookie_path = typer.prompt("Enter the path to the NBXplorer cookie file").strip()

    typer.echo("\nSupported derivation scheme formats:")
    typer.echo(format_derivation_table() + "\n")
    extended_pubkey = _prompt_until(
        "Please enter the extended public key based on the above formats",
        is_valid_derivation_scheme,
        "Invalid extended public key format. Please enter a valid key.",
    )

    typer.echo("How often would you like to receive balance reports?")
    typer.echo(format_interval_menu())
    interval_ms = _prompt_interval()

    ntfy_url = _prompt_until(
        "What is the Ntfy server URL? (e.g., http://127.0.0.1:80)", is_valid_url, invalid_url
    )

    ntfy_user = ntfy_password = ""
    if typer.confirm("Do you want to configure Ntfy authentication?", default=False):
        ntfy_user = typer.prompt("Enter Ntfy username").strip()
        ntfy_password = typer.prompt("Enter Ntfy password", hide_input=True)

    ntfy_topic = _prompt_until(
        "What is the Ntfy topic?", bool, "Ntfy topic cannot be empty. Please enter a valid topic."
    )

    content = render_env(
        nbxplorer_url=nbxplorer_url,
        extended_pubkey=extended_pubkey,
        balance_report_interval_ms=interval_ms,
        ntfy_url=ntfy_url,
        ntfy_topic=ntfy_topic,
        nbxplorer_cookie_path=cookie_path,
        ntfy_user=ntfy_user,
        ntfy_password=ntfy_password,
    )
    try:
        write_env_file(output, content)
    except OSError as e:
        typer.echo(f"Error: failed to write {output}: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"\n{output} has been created with the following content:\n")
    typer.echo(content)


@app.command("convert-xpub")
def convert_xpub(
    extended_pubkey: Annotated[str, typer.Argument(help="ypub/zpub/upub/vpub to convert")],
) -> None:
    """Convert a SLIP-132 extended public key to the xpub/tpub NBXplorer expects."""
    try:
        converted = convert_extended_pubkey(extended_pubkey)
    except ExtendedKeyError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(converted)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
