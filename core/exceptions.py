"""QuickTabs Exception Hierarchy

Defines the true error conditions of browser discovery and launch:
- ConfigurationError: Browser table malformed (fatal at startup)
- NoBrowserFoundError: Nothing to launch (fatal for the invocation)
- LaunchError: The chosen browser could not be started

A browser that is simply not installed is NOT an error.
It is represented by absence from DetectionResult.
"""

from enum import Enum
from typing import Optional


class QuickTabsError(RuntimeError):
    """Base for every error that terminates a QuickTabs invocation."""


class ConfigurationError(QuickTabsError):
    """Raised when the browser registry or its configuration is invalid.

    THROW when:
    - Registry is empty
    - Two specs share an id
    - A spec has no probe paths
    - A custom browser entry in YAML is malformed

    Surfaced before any probing begins.
    """


class NoBrowserFoundError(QuickTabsError):
    """Raised by the selector when detection found nothing."""

    def __init__(self, supported: Optional[list] = None):
        self.supported = list(supported or [])
        message = "No supported browser was found on this system."
        if self.supported:
            message += f" Install one of: {', '.join(self.supported)}."
        super().__init__(message)


class LaunchErrorKind(Enum):
    """Why a launch did not happen"""
    SPAWN_FAILED = "spawn_failed"
    EXITED_EARLY = "exited_early"
    NO_URLS = "no_urls"


class LaunchError(QuickTabsError):
    """Raised when the launcher cannot start the selected browser.

    Not retried: the set of installed browsers does not change
    within a single invocation.
    """

    def __init__(self, kind: LaunchErrorKind, path: str, os_error: Optional[str] = None):
        self.kind = kind
        self.path = path
        self.os_error = os_error
        super().__init__(path)

    def __str__(self):
        if self.kind == LaunchErrorKind.NO_URLS:
            return f"Refusing to launch {self.path}: no URLs given"
        if self.kind == LaunchErrorKind.EXITED_EARLY:
            return f"Browser {self.path} exited right after starting: {self.os_error}"
        return f"Failed to start browser {self.path}: {self.os_error}"
