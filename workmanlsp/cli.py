#!/usr/bin/env python3
"""Command-line interface for the Workman language server launcher."""

import argparse
import json
import logging
import sys
from typing import Any, List, Optional

from workmanlsp.errors import WorkmanLspError
from workmanlsp.extension import WorkmanExtension
from workmanlsp.resolver import LANGUAGE_SERVER_ID
from workmanlsp.servers.workman_server import WorkmanLanguageServerManager
from workmanlsp.utils.workspace import Worktree


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        args: Command-line arguments. If None, sys.argv is used.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        description="Resolve and launch the Workman language server"
    )

    parser.add_argument(
        "--workspace",
        "-w",
        required=True,
        help="Path to the project directory"
    )
    parser.add_argument(
        "--settings",
        help="Settings file (default: <workspace>/.zed/settings.json)"
    )
    parser.add_argument(
        "--server-id",
        default=LANGUAGE_SERVER_ID,
        help="Language server id used in error messages"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="action", help="Action to perform")
    subparsers.add_parser("command", help="Print the resolved launch command as JSON")
    subparsers.add_parser("init-options", help="Print the initialization options as JSON")
    subparsers.add_parser("workspace-config", help="Print the workspace configuration as JSON")
    subparsers.add_parser("check", help="Start the server, initialize it and shut it down")

    return parser.parse_args(args)


def _print_json(value: Any) -> None:
    print(json.dumps(value, indent=2, sort_keys=True))


def main(args: Optional[List[str]] = None) -> int:
    """Run the CLI application.

    Args:
        args: Command-line arguments. If None, sys.argv is used.

    Returns:
        Exit code (0 for success, non-zero for error).
    """
    parsed_args = parse_args(args)

    log_level = logging.DEBUG if parsed_args.debug else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    extension = WorkmanExtension(settings_file=parsed_args.settings)
    server_id = parsed_args.server_id

    try:
        worktree = Worktree(parsed_args.workspace)

        if parsed_args.action == "command":
            command = extension.language_server_command(server_id, worktree)
            _print_json(command.model_dump())
            return 0

        if parsed_args.action == "init-options":
            _print_json(extension.language_server_initialization_options(server_id, worktree))
            return 0

        if parsed_args.action == "workspace-config":
            _print_json(extension.language_server_workspace_configuration(server_id, worktree))
            return 0

        if parsed_args.action == "check":
            manager = WorkmanLanguageServerManager(
                worktree.root_path, extension=extension, server_id=server_id
            )
            manager.start()
            try:
                _print_json(manager.server_capabilities)
            finally:
                manager.stop()
            return 0

        print("Please specify an action. Use --help for available commands.")
        return 1

    except (WorkmanLspError, ValueError) as e:
        logging.error(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
