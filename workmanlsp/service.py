#!/usr/bin/env python3
"""Foreground service that keeps the Workman language server running."""

import logging
import time
from typing import Optional

import click

from workmanlsp.errors import WorkmanLspError
from workmanlsp.extension import WorkmanExtension
from workmanlsp.resolver import LANGUAGE_SERVER_ID
from workmanlsp.servers.workman_server import WorkmanLanguageServerManager

POLL_INTERVAL = 1


def run_until_interrupted(manager: WorkmanLanguageServerManager) -> None:
    """Block while the server process is alive or until Ctrl+C."""
    try:
        while manager.is_running():
            time.sleep(POLL_INTERVAL)
        click.echo("Language server exited")
    except KeyboardInterrupt:
        click.echo("Stopping service...")


@click.command()
@click.option("--workspace", required=True, help="Path to the project directory")
@click.option("--settings", default=None, help="Settings file (default: <workspace>/.zed/settings.json)")
@click.option("--server-id", default=LANGUAGE_SERVER_ID, show_default=True, help="Language server id")
@click.option("--debug/--no-debug", default=False, help="Enable debug logging")
def main(workspace: str, settings: Optional[str], server_id: str, debug: bool) -> None:
    """Run the Workman language server in the foreground.

    Args:
        workspace: Path to the project directory.
        settings: Optional settings file.
        server_id: Language server id used in error messages.
        debug: Whether to enable debug logging.
    """
    log_level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    try:
        manager = WorkmanLanguageServerManager(
            workspace,
            extension=WorkmanExtension(settings_file=settings),
            server_id=server_id,
        )
        manager.start()
    except (WorkmanLspError, ValueError) as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Workman language server started for workspace: {workspace}")
    click.echo("Press Ctrl+C to stop the service")
    try:
        run_until_interrupted(manager)
    finally:
        manager.stop()
        click.echo("Service stopped")


if __name__ == "__main__":
    main()  # pylint: disable=no-value-for-parameter
