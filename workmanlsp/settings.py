"""Settings document for the Workman language server.

The host stores per-server settings in a JSON file under an ``lsp`` table,
keyed by the language server name::

    {
        "lsp": {
            "workman-lsp": {
                "binary": {"path": "/opt/deno/bin/deno", "arguments": ["run", "..."]},
                "settings": {"serverRoot": "/src/workman"},
                "initialization_options": {}
            }
        }
    }

Only the ``binary`` table and the ``serverPath``, ``denoConfig`` and
``serverRoot`` keys of ``settings`` are interpreted; everything else is
forwarded to the server untouched.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from workmanlsp.errors import SettingsError

LSP_NAME = "workman-lsp"
DEFAULT_SETTINGS_FILE = os.path.join(".zed", "settings.json")

logger = logging.getLogger("workmanlsp.settings")


class BinarySettings(BaseModel):
    """User override for the interpreter binary and its arguments."""

    model_config = ConfigDict(extra="allow")

    path: Optional[str] = None
    arguments: Optional[List[str]] = None


class LspSettings(BaseModel):
    """Namespaced settings for one language server."""

    model_config = ConfigDict(extra="allow")

    binary: Optional[BinarySettings] = None
    settings: Optional[Dict[str, Any]] = None
    initialization_options: Optional[Any] = None

    def setting_str(self, key: str) -> Optional[str]:
        """Get a string value from the ``settings`` table.

        Args:
            key: Key inside ``settings``.

        Returns:
            The value, or None if the key is absent or not a string.
        """
        if not self.settings:
            return None
        value = self.settings.get(key)
        return value if isinstance(value, str) else None

    @classmethod
    def for_worktree(
        cls,
        name: str,
        worktree: Any,
        settings_file: Optional[str] = None,
    ) -> Optional["LspSettings"]:
        """Load the settings for ``name`` that apply to a worktree.

        Args:
            name: Language server name, e.g. ``"workman-lsp"``.
            worktree: Worktree whose ``root_path`` anchors the default settings file.
            settings_file: Explicit settings file. Relative paths are resolved
                against the worktree root.

        Returns:
            The parsed settings, or None if there is no settings file or it has
            no entry for ``name``.

        Raises:
            SettingsError: If the file cannot be read or does not match the model.
        """
        path = settings_file or DEFAULT_SETTINGS_FILE
        if not os.path.isabs(path):
            path = os.path.join(worktree.root_path, path)

        if not os.path.isfile(path):
            logger.debug(f"No settings file at {path}")
            return None

        try:
            with open(path, encoding="utf-8") as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            raise SettingsError(f"Could not read settings file {path}: {e}") from e

        return cls.from_document(name, document, source=path)

    @classmethod
    def from_document(
        cls, name: str, document: Any, source: str = "<document>"
    ) -> Optional["LspSettings"]:
        """Extract the settings for ``name`` from a full settings document."""
        if not isinstance(document, dict):
            raise SettingsError(f"Settings in {source} must be a JSON object")

        lsp_table = document.get("lsp") or {}
        if not isinstance(lsp_table, dict):
            raise SettingsError(f"'lsp' in {source} must be a JSON object")

        raw = lsp_table.get(name)
        if raw is None:
            logger.debug(f"No '{name}' entry in {source}")
            return None

        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise SettingsError(f"Invalid '{name}' settings in {source}: {e}") from e
