"""Command resolution for the Workman language server.

The launch command is built from four independent decisions, each of which
consults the user's settings first and falls back to conventions:

* interpreter: ``binary.path`` or ``deno`` found on the search path
* server location: ``serverPath``, ``serverRoot``, ``$WORKMAN_ROOT`` or the
  project's own ``lsp/server`` directory, in that order
* arguments: ``binary.arguments`` or ``deno run`` with the resolved files
* environment: the project's shell environment, except on Windows
"""

import logging
import os
from pathlib import PurePath
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, TypeAlias

from pydantic import BaseModel, Field

from workmanlsp.errors import BinaryNotFound, InvalidBinaryPath, ServerNotFound
from workmanlsp.settings import LspSettings
from workmanlsp.utils.platform import Os, current_platform

LANGUAGE_SERVER_ID = "workman-lsp"
SERVER_ROOT_ENV = "WORKMAN_ROOT"
DENO_BINARY = "deno"
DENO_CONFIG_NAME = "deno.json"
SERVER_DIR = ("lsp", "server")
SERVER_SCRIPT = ("src", "server.ts")

# (deno config path, server script path)
ServerPaths: TypeAlias = Tuple[str, str]
PathStrategy: TypeAlias = Callable[[], Optional[ServerPaths]]

logger = logging.getLogger("workmanlsp.resolver")


class ResolvedCommand(BaseModel):
    """Fully resolved process launch command."""

    command: str = Field(min_length=1)
    args: List[str]
    env: Dict[str, str] = Field(default_factory=dict)


def paths_from_root(root: str) -> ServerPaths:
    """Derive the config and script paths from a server root directory.

    Args:
        root: Directory containing ``lsp/server``.

    Returns:
        ``(<root>/lsp/server/deno.json, <root>/lsp/server/src/server.ts)``.
    """
    server_dir = os.path.join(root, *SERVER_DIR)
    return (
        os.path.join(server_dir, DENO_CONFIG_NAME),
        os.path.join(server_dir, *SERVER_SCRIPT),
    )


def default_config_for(server_path: str) -> str:
    """Guess the deno config for an explicit server script.

    ``<dir>/src/server.ts`` maps to ``<dir>/deno.json``. Scripts with fewer than
    two parent directories fall back to a bare ``deno.json``.
    """
    parents = PurePath(server_path).parents
    if len(parents) < 2:
        return DENO_CONFIG_NAME
    return str(parents[1] / DENO_CONFIG_NAME)


class CommandResolver:
    """Resolves the launch command for one language server startup.

    The resolver holds no state between calls: every method re-reads the
    settings it was given and re-probes the worktree.
    """

    def __init__(
        self,
        worktree: Any,
        settings: Optional[LspSettings] = None,
        environ: Optional[Mapping[str, str]] = None,
        platform: Optional[Os] = None,
    ):
        """Initialize the resolver.

        Args:
            worktree: Filesystem probe providing ``root_path``, ``which``,
                ``read_text_file`` and ``shell_env``.
            settings: The ``workman-lsp`` settings document, if any.
            environ: Environment consulted for ``WORKMAN_ROOT``. Defaults to
                ``os.environ``.
            platform: Host platform. Defaults to the running platform.
        """
        self.worktree = worktree
        self.settings = settings
        self.environ = os.environ if environ is None else environ
        self.platform = platform or current_platform()

    def resolve_binary(self, language_server_id: str) -> str:
        """Resolve the interpreter executable.

        Raises:
            InvalidBinaryPath: If ``binary.path`` is set to an empty string.
            BinaryNotFound: If no override is set and deno is not on the path.
        """
        binary = self.settings.binary if self.settings else None
        if binary is not None and binary.path is not None:
            if not binary.path:
                raise InvalidBinaryPath(language_server_id)
            logger.debug(f"Using deno from settings: {binary.path}")
            return binary.path

        deno = self.worktree.which(DENO_BINARY)
        if deno is None:
            raise BinaryNotFound(language_server_id, DENO_BINARY)

        logger.debug(f"Using deno from PATH: {deno}")
        return deno

    def resolve_server_paths(self) -> ServerPaths:
        """Resolve the deno config and server script paths.

        The first strategy that applies wins; later strategies are never
        consulted, even if the winning paths do not exist.

        Raises:
            ServerNotFound: If the default project layout has no server script.
        """
        strategies: Tuple[PathStrategy, ...] = (
            self._paths_from_server_path,
            self._paths_from_server_root,
            self._paths_from_environment,
            self._paths_from_worktree,
        )
        for strategy in strategies:
            paths = strategy()
            if paths is not None:
                logger.debug(f"Server paths from {strategy.__name__}: {paths}")
                return paths

        # _paths_from_worktree always returns or raises
        raise AssertionError("no server path strategy applied")

    def resolve_arguments(self, deno_config: str, server_path: str) -> List[str]:
        """Resolve the interpreter arguments.

        Args:
            deno_config: Resolved deno config path.
            server_path: Resolved server script path.

        Returns:
            ``binary.arguments`` verbatim if set, else the default ``deno run`` vector.
        """
        binary = self.settings.binary if self.settings else None
        if binary is not None and binary.arguments is not None:
            return list(binary.arguments)

        return ["run", "--allow-all", "--config", deno_config, server_path]

    def resolve_environment(self) -> Dict[str, str]:
        """Resolve the environment for the server process."""
        if self.platform in (Os.MAC, Os.LINUX):
            return self.worktree.shell_env()
        return {}

    def resolve(self, language_server_id: str = LANGUAGE_SERVER_ID) -> ResolvedCommand:
        """Resolve the complete launch command.

        Args:
            language_server_id: Identifier of the server instance, used in errors.

        Returns:
            The resolved command.

        Raises:
            ResolutionError: If the interpreter or the server script cannot be found.
        """
        deno = self.resolve_binary(language_server_id)
        deno_config, server_path = self.resolve_server_paths()
        args = self.resolve_arguments(deno_config, server_path)
        env = self.resolve_environment()

        logger.info(f"Resolved {language_server_id} command: {deno} {' '.join(args)}")
        return ResolvedCommand(command=deno, args=args, env=env)

    def _paths_from_server_path(self) -> Optional[ServerPaths]:
        if self.settings is None:
            return None
        server_path = self.settings.setting_str("serverPath")
        if server_path is None:
            return None

        deno_config = self.settings.setting_str("denoConfig")
        if deno_config is None:
            deno_config = default_config_for(server_path)
        return deno_config, server_path

    def _paths_from_server_root(self) -> Optional[ServerPaths]:
        if self.settings is None:
            return None
        server_root = self.settings.setting_str("serverRoot")
        if server_root is None:
            return None
        return paths_from_root(server_root)

    def _paths_from_environment(self) -> Optional[ServerPaths]:
        server_root = self.environ.get(SERVER_ROOT_ENV)
        if server_root is None:
            return None
        return paths_from_root(server_root)

    def _paths_from_worktree(self) -> Optional[ServerPaths]:
        deno_config, server_path = paths_from_root(self.worktree.root_path)
        try:
            self.worktree.read_text_file("/".join(SERVER_DIR + SERVER_SCRIPT))
        except (OSError, UnicodeDecodeError) as e:
            raise ServerNotFound(server_path) from e
        return deno_config, server_path


def resolve_command(
    settings: Optional[LspSettings],
    environ: Mapping[str, str],
    platform: Os,
    worktree: Any,
    language_server_id: str = LANGUAGE_SERVER_ID,
) -> ResolvedCommand:
    """Resolve the launch command from explicit inputs."""
    resolver = CommandResolver(worktree, settings=settings, environ=environ, platform=platform)
    return resolver.resolve(language_server_id)
