"""Worktree probe: the filesystem and environment view of one project."""

import logging
import os
import shutil
import subprocess
from typing import Dict, Optional

SHELL_ENV_TIMEOUT = 10


class Worktree:
    """Read-only view of a project directory.

    Provides the lookups the command resolver needs: searching the executable
    path, probing files relative to the project root, and capturing the
    environment a login shell would have inside the project.
    """

    def __init__(self, root_path: str):
        """Initialize the worktree.

        Args:
            root_path: Path to the project directory.

        Raises:
            ValueError: If ``root_path`` is not a directory.
        """
        self.root_path = os.path.abspath(root_path)
        self.logger = logging.getLogger("workmanlsp.workspace")

        if not os.path.isdir(self.root_path):
            raise ValueError(f"Workspace path is not a directory: {self.root_path}")

    def read_text_file(self, relative_path: str) -> str:
        """Read a text file relative to the worktree root.

        Undecodable bytes are replaced, so any existing readable file succeeds.

        Args:
            relative_path: Path relative to the root, using ``/`` separators.

        Returns:
            The file contents.

        Raises:
            OSError: If the file does not exist or cannot be read.
        """
        path = os.path.join(self.root_path, *relative_path.split("/"))
        with open(path, encoding="utf-8", errors="replace") as f:
            return f.read()

    def which(self, binary_name: str) -> Optional[str]:
        """Search the worktree's executable path for a binary.

        On POSIX hosts the search path comes from the shell environment, so
        binaries installed by version managers in shell profiles are found.

        Args:
            binary_name: Name of the executable.

        Returns:
            Full path to the executable, or None if it is not found.
        """
        if os.name == "nt":
            search_path = os.environ.get("PATH")
        else:
            search_path = self.shell_env().get("PATH", os.environ.get("PATH"))

        found = shutil.which(binary_name, path=search_path)
        self.logger.debug(f"which({binary_name}) -> {found}")
        return found

    def shell_env(self) -> Dict[str, str]:
        """Get the environment of a login shell started in the worktree root.

        Falls back to the current process environment if the shell cannot be
        run. The shell is started on every call so profile changes are seen.
        """
        return self._capture_shell_env()

    def _capture_shell_env(self) -> Dict[str, str]:
        shell = os.environ.get("SHELL") or "/bin/sh"
        self.logger.debug(f"Capturing shell environment with {shell} in {self.root_path}")

        try:
            process = subprocess.run(
                [shell, "-l", "-c", "env -0"],
                cwd=self.root_path,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                timeout=SHELL_ENV_TIMEOUT,
                check=True,
            )
        except (OSError, subprocess.SubprocessError) as e:
            self.logger.warning(
                f"Could not capture shell environment, using process environment: {e}"
            )
            return dict(os.environ)

        return parse_env_output(process.stdout.decode("utf-8", errors="replace"))


def parse_env_output(output: str) -> Dict[str, str]:
    """Parse the NUL-separated output of ``env -0``."""
    env: Dict[str, str] = {}
    for entry in output.split("\0"):
        if "=" not in entry:
            continue
        key, value = entry.split("=", 1)
        if key:
            env[key] = value
    return env
