"""DefaultBrowserLookup - Best-effort OS default http(s) handler.

Returns the handler id the OS reports (a .desktop id, a Windows ProgId,
or a macOS bundle id). BrowserDetector maps it onto a BrowserSpec.

"Cannot determine" is a normal outcome: every failure returns None.
No fallback guessing.
"""

import logging
import os
import plistlib
import subprocess
from pathlib import Path
from typing import Callable, Dict, Optional

from core.path_prober import current_os


_WINDOWS_USER_CHOICE = r"Software\Microsoft\Windows\Shell\Associations\UrlAssociations\{scheme}\UserChoice"
_MACOS_LAUNCH_SERVICES = (
    Path("Library") / "Preferences" / "com.apple.LaunchServices"
    / "com.apple.launchservices.secure.plist"
)
_SCHEMES = ("https", "http")


class DefaultBrowserLookup:
    """Platform dispatch for the default-handler query.

    Usage:
        handler_id = DefaultBrowserLookup().lookup()   # e.g. "firefox.desktop"
    """

    def __init__(self, os_name: Optional[str] = None, timeout: float = 2.0):
        self.os_name = os_name or current_os()
        self.timeout = timeout
        self._strategies: Dict[str, Callable[[], Optional[str]]] = {
            "linux": self._lookup_linux,
            "windows": self._lookup_windows,
            "macos": self._lookup_macos,
        }

    def lookup(self) -> Optional[str]:
        """Handler id of the OS default browser, or None if unknown."""
        strategy = self._strategies.get(self.os_name)
        if strategy is None:
            return None
        try:
            handler = strategy()
        except Exception as e:
            logging.debug(f"DefaultBrowserLookup: {self.os_name} lookup failed: {e}")
            return None

        if handler:
            logging.debug(f"DefaultBrowserLookup: OS reports default handler '{handler}'")
        return handler or None

    def _lookup_linux(self) -> Optional[str]:
        """xdg-settings get default-web-browser -> e.g. firefox.desktop"""
        try:
            completed = subprocess.run(
                ["xdg-settings", "get", "default-web-browser"],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logging.debug(f"DefaultBrowserLookup: xdg-settings unavailable: {e}")
            return None

        if completed.returncode != 0:
            return None
        return completed.stdout.strip() or None

    def _lookup_windows(self) -> Optional[str]:
        """UserChoice ProgId for https, then http (e.g. ChromeHTML)."""
        import winreg

        for scheme in _SCHEMES:
            key_path = _WINDOWS_USER_CHOICE.format(scheme=scheme)
            try:
                key = winreg.OpenKey(winreg.HKEY_CURRENT_USER, key_path)
                prog_id, _ = winreg.QueryValueEx(key, "ProgId")
                winreg.CloseKey(key)
            except FileNotFoundError:
                continue
            except OSError as e:
                logging.debug(f"DefaultBrowserLookup: registry read failed at {key_path}: {e}")
                continue
            if prog_id:
                return str(prog_id)
        return None

    def _lookup_macos(self) -> Optional[str]:
        """LaunchServices LSHandlers entry for https/http -> bundle id."""
        home = os.environ.get("HOME")
        if not home:
            return None
        plist_path = Path(home) / _MACOS_LAUNCH_SERVICES
        if not plist_path.exists():
            return None

        with open(plist_path, "rb") as f:
            data = plistlib.load(f)

        handlers = data.get("LSHandlers", [])
        for scheme in _SCHEMES:
            for entry in handlers:
                if entry.get("LSHandlerURLScheme") == scheme:
                    return entry.get("LSHandlerRoleAll")
        return None
