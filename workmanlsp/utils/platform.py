"""Host platform detection."""

import sys
from enum import Enum


class Os(Enum):
    """Operating system families that select the environment policy."""

    MAC = "mac"
    LINUX = "linux"
    WINDOWS = "windows"


def current_platform() -> Os:
    """Get the platform this process is running on."""
    if sys.platform == "darwin":
        return Os.MAC
    if sys.platform in ("win32", "cygwin"):
        return Os.WINDOWS
    return Os.LINUX
