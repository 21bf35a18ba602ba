"""PathProber - Candidate executable locations per browser.

Pure function of (BrowserSpec, OS id, environment) for the path templates.
Existence/executability checks belong to BrowserDetector.

Template rules:
- ${VAR} expands from the environment; unset VAR drops the template
- Leading ~ expands to the home directory
- A bare command name (no separator) expands to <dir>/<name> for each PATH dir

On Windows the registry is a second source: candidates recorded under
App Paths and StartMenuInternet are appended after the template candidates.
"""

import logging
import ntpath
import os
import posixpath
import re
import sys
from typing import Callable, List, Mapping, Optional

from core.browser_registry import BrowserSpec


_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

_APP_PATHS = r"SOFTWARE\Microsoft\Windows\CurrentVersion\App Paths\{exe_name}"
_START_MENU_INTERNET = r"SOFTWARE\Clients\StartMenuInternet"


def current_os() -> str:
    """Map sys.platform to the registry's OS ids."""
    if sys.platform.startswith("win"):
        return "windows"
    if sys.platform == "darwin":
        return "macos"
    return "linux"


def _command_executable(command: str) -> str:
    """Executable part of a shell open command.

    '"C:\\Program Files\\Opera\\opera.exe" --single-argument %1' -> C:\\Program Files\\Opera\\opera.exe
    """
    command = command.strip()
    if command.startswith('"'):
        return command[1:].split('"', 1)[0]
    end = command.lower().find(".exe")
    if end != -1:
        return command[:end + len(".exe")]
    return command.split(" ", 1)[0]


def windows_registry_paths(exe_name: str) -> List[str]:
    """Executable paths the Windows registry records for `exe_name`.

    Checks App Paths, then StartMenuInternet client commands, in HKLM
    then HKCU. Missing keys are normal; other registry errors are logged.
    """
    import winreg

    hives = [winreg.HKEY_LOCAL_MACHINE, winreg.HKEY_CURRENT_USER]
    paths: List[str] = []

    for hive in hives:
        key_path = _APP_PATHS.format(exe_name=exe_name)
        try:
            key = winreg.OpenKey(hive, key_path)
            value, _ = winreg.QueryValueEx(key, "")  # Default value is the path
            winreg.CloseKey(key)
        except FileNotFoundError:
            continue
        except OSError as e:
            logging.debug(f"App Paths check failed at {key_path}: {e}")
            continue
        if value:
            paths.append(str(value).strip('"'))

    for hive in hives:
        try:
            clients = winreg.OpenKey(hive, _START_MENU_INTERNET)
        except OSError:
            continue
        try:
            index = 0
            while True:
                try:
                    client = winreg.EnumKey(clients, index)
                except OSError:
                    break
                index += 1
                command_path = f"{_START_MENU_INTERNET}\\{client}\\shell\\open\\command"
                try:
                    key = winreg.OpenKey(hive, command_path)
                    command, _ = winreg.QueryValueEx(key, "")
                    winreg.CloseKey(key)
                except OSError:
                    continue
                executable = _command_executable(str(command))
                if ntpath.basename(executable).lower() == exe_name.lower():
                    paths.append(executable)
        finally:
            winreg.CloseKey(clients)

    return paths


class PathProber:
    """Expands a spec's path templates into concrete candidate paths.

    Usage:
        prober = PathProber()
        candidates = prober.probe(spec)

    registry_lookup maps a Windows executable name to recorded paths. It
    defaults to windows_registry_paths on a Windows host and is unused
    for other OS ids.
    """

    def __init__(
        self,
        os_name: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        registry_lookup: Optional[Callable[[str], List[str]]] = None,
    ):
        self.os_name = os_name or current_os()
        self.environ = dict(os.environ if environ is None else environ)
        if self.os_name == "windows":
            # Windows variable names are case-insensitive
            self.environ = {key.upper(): value for key, value in self.environ.items()}
        self._path = ntpath if self.os_name == "windows" else posixpath
        if registry_lookup is None and current_os() == "windows":
            registry_lookup = windows_registry_paths
        self.registry_lookup = registry_lookup

    def probe(self, spec: BrowserSpec) -> List[str]:
        """Ordered, de-duplicated candidate paths for `spec` on this OS.

        Returns an empty list when the OS has no templates for the spec.
        """
        candidates: List[str] = []
        for template in spec.templates_for(self.os_name):
            for path in self._expand(template):
                if path not in candidates:
                    candidates.append(path)

        for path in self._registry_candidates(spec):
            if path not in candidates:
                candidates.append(path)
        return candidates

    def _registry_candidates(self, spec: BrowserSpec) -> List[str]:
        if self.os_name != "windows" or self.registry_lookup is None:
            return []
        paths = []
        for exe_name in spec.registry_exe_names:
            paths.extend(self._path.normpath(p) for p in self.registry_lookup(exe_name) if p)
        return paths

    def _expand(self, template: str) -> List[str]:
        value = self._expand_vars(template)
        if value is None:
            return []

        if value.startswith("~"):
            home = self._home()
            if not home:
                return []
            value = home + value[1:]

        if self._is_command_name(value):
            return self._search_path(value)

        return [self._path.normpath(value)]

    def _expand_vars(self, template: str) -> Optional[str]:
        missing = []

        def _replace(match):
            name = match.group(1)
            if self.os_name == "windows":
                name = name.upper()
            if not self.environ.get(name):
                missing.append(name)
                return ""
            return self.environ[name]

        value = _VAR_PATTERN.sub(_replace, template)
        if missing:
            return None
        return value

    def _home(self) -> Optional[str]:
        if self.os_name == "windows":
            return self.environ.get("USERPROFILE") or self.environ.get("HOME")
        return self.environ.get("HOME")

    def _is_command_name(self, value: str) -> bool:
        return "/" not in value and "\\" not in value

    def _search_path(self, name: str) -> List[str]:
        """Expand a command name against PATH, in PATH order."""
        if self.os_name == "windows" and not ntpath.splitext(name)[1]:
            name += ".exe"
        separator = ";" if self.os_name == "windows" else ":"
        directories = [d for d in self.environ.get("PATH", "").split(separator) if d]
        return [self._path.normpath(self._path.join(d, name)) for d in directories]
