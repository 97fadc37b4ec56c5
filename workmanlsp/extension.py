"""Host-facing entry points for the Workman language server.

The host asks for three things when it starts the server: the launch command,
the initialization options and the workspace configuration. The last two are
forwarded from the settings document unchanged.
"""

import logging
from typing import Any, Mapping, Optional

from workmanlsp.resolver import CommandResolver, ResolvedCommand
from workmanlsp.settings import LSP_NAME, LspSettings
from workmanlsp.utils.platform import Os


class WorkmanExtension:
    """Adapter between a host and the command resolver."""

    def __init__(
        self,
        settings_file: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        platform: Optional[Os] = None,
    ):
        """Initialize the extension.

        Args:
            settings_file: Settings file to read instead of the worktree default.
            environ: Environment for ``WORKMAN_ROOT`` lookups. Defaults to ``os.environ``.
            platform: Host platform. Defaults to the running platform.
        """
        self.settings_file = settings_file
        self.environ = environ
        self.platform = platform
        self.logger = logging.getLogger("workmanlsp.extension")

    def _settings(self, worktree: Any) -> Optional[LspSettings]:
        return LspSettings.for_worktree(LSP_NAME, worktree, self.settings_file)

    def language_server_command(self, language_server_id: str, worktree: Any) -> ResolvedCommand:
        """Resolve the command that starts the language server.

        Raises:
            WorkmanLspError: If the settings are invalid or resolution fails.
        """
        self.logger.debug(f"Resolving command for {language_server_id} in {worktree.root_path}")
        resolver = CommandResolver(
            worktree,
            settings=self._settings(worktree),
            environ=self.environ,
            platform=self.platform,
        )
        return resolver.resolve(language_server_id)

    def language_server_initialization_options(
        self, language_server_id: str, worktree: Any
    ) -> Optional[Any]:
        """Get the ``initialization_options`` passed to the server's initialize request."""
        settings = self._settings(worktree)
        return settings.initialization_options if settings else None

    def language_server_workspace_configuration(
        self, language_server_id: str, worktree: Any
    ) -> Optional[Any]:
        """Get the ``settings`` table served as workspace configuration."""
        settings = self._settings(worktree)
        return settings.settings if settings else None
