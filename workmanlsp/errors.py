"""Exceptions raised while resolving and launching the Workman language server."""


class WorkmanLspError(Exception):
    """Base class for all workmanlsp errors."""


class SettingsError(WorkmanLspError):
    """The settings file exists but could not be loaded."""


class ResolutionError(WorkmanLspError):
    """The launch command could not be resolved."""


class BinaryNotFound(ResolutionError):
    """The deno interpreter is not overridden and not on the search path."""

    def __init__(self, language_server_id: str, binary: str = "deno"):
        self.language_server_id = language_server_id
        self.binary = binary
        super().__init__(f"{language_server_id}: could not find {binary} on PATH")


class ServerNotFound(ResolutionError):
    """The server script is missing from the default project layout."""

    def __init__(self, server_path: str):
        self.server_path = server_path
        super().__init__(f"Workman LSP not found at {server_path}")


class InvalidBinaryPath(ResolutionError):
    """``binary.path`` is set but empty."""

    def __init__(self, language_server_id: str):
        self.language_server_id = language_server_id
        super().__init__(f"{language_server_id}: binary.path is set but empty")


class LaunchError(WorkmanLspError):
    """The resolved command could not be started or did not initialize."""
