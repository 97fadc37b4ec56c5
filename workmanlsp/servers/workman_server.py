"""Workman language server manager implementation."""

from typing import Any, Optional

from workmanlsp.extension import WorkmanExtension
from workmanlsp.resolver import LANGUAGE_SERVER_ID, ResolvedCommand
from workmanlsp.servers.base import BaseLanguageServerManager
from workmanlsp.utils.workspace import Worktree


class WorkmanLanguageServerManager(BaseLanguageServerManager):
    """Manages the Deno-run Workman language server for one workspace."""

    @property
    def name(self) -> str:
        return "workman"

    def __init__(
        self,
        workspace_path: str,
        extension: Optional[WorkmanExtension] = None,
        server_id: str = LANGUAGE_SERVER_ID,
    ):
        """Initialize the Workman language server manager.

        Args:
            workspace_path: Path to the workspace directory.
            extension: Extension used to resolve the command and settings.
            server_id: Language server id reported in resolution errors.
        """
        super().__init__(workspace_path)
        self.worktree = Worktree(self.workspace_path)
        self.extension = extension or WorkmanExtension()
        self.server_id = server_id

    def resolve_command(self) -> ResolvedCommand:
        return self.extension.language_server_command(self.server_id, self.worktree)

    def initialization_options(self) -> Optional[Any]:
        return self.extension.language_server_initialization_options(self.server_id, self.worktree)

    def workspace_configuration(self) -> Optional[Any]:
        return self.extension.language_server_workspace_configuration(self.server_id, self.worktree)
