"""Browser Registry - Single Authority for Browser Families

A flat table of BrowserSpec values keyed by id. Detector and Launcher
interpret every entry the same way; there is no per-browser subclass.

RESPONSIBILITY:
- Define the built-in browser table (locations, private flag, URL convention)
- Accept additive custom entries from configuration
- Validate the table once, at startup

DOES NOT:
- Touch the filesystem (PathProber/BrowserDetector's job)
- Spawn processes (BrowserLauncher's job)

INVARIANT: No two specs share an id. Every spec has probe paths.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from core.exceptions import ConfigurationError


SUPPORTED_OS = ("windows", "macos", "linux")


class MultiUrlStyle(Enum):
    """How a browser accepts several URLs on one command line"""
    SPACE_SEPARATED = "space_separated"        # path [flag] url1 url2 ...
    ONE_FLAG_MANY_URLS = "one_flag_many_urls"  # path [flag] url_flag url1 url2 ...


@dataclass(frozen=True)
class BrowserSpec:
    """Static description of one browser family.

    probe_paths maps an OS id (windows/macos/linux) to ordered path
    templates. Earlier templates are more common install locations.
    A template without a path separator is a command name looked up on PATH.

    registry_exe_names are Windows executable names (e.g. "chrome.exe")
    looked up in the App Paths and StartMenuInternet registry keys after
    the templates.
    """
    id: str
    name: str
    probe_paths: Mapping[str, Tuple[str, ...]] = field(hash=False)
    private_flag: str = ""
    multi_url_style: MultiUrlStyle = MultiUrlStyle.SPACE_SEPARATED
    url_flag: str = ""
    default_handler_ids: Tuple[str, ...] = ()
    registry_exe_names: Tuple[str, ...] = ()

    def __post_init__(self):
        # Read-only view so a shared spec cannot be edited in place
        object.__setattr__(self, "probe_paths", MappingProxyType(
            {os_name: tuple(templates) for os_name, templates in self.probe_paths.items()}
        ))
        if not self.id:
            raise ConfigurationError("Browser spec is missing an id")
        if not any(self.probe_paths.get(os_name) for os_name in self.probe_paths):
            raise ConfigurationError(f"Browser spec '{self.id}' has no probe paths")
        unknown = set(self.probe_paths) - set(SUPPORTED_OS)
        if unknown:
            raise ConfigurationError(
                f"Browser spec '{self.id}' has probe paths for unknown OS: {sorted(unknown)}"
            )
        if self.multi_url_style == MultiUrlStyle.ONE_FLAG_MANY_URLS and not self.url_flag:
            raise ConfigurationError(
                f"Browser spec '{self.id}' uses {self.multi_url_style.value} but declares no url_flag"
            )

    def templates_for(self, os_name: str) -> Tuple[str, ...]:
        """Path templates for one OS (empty when the OS is not covered)."""
        return tuple(self.probe_paths.get(os_name, ()))

    def handles(self, handler_id: str) -> bool:
        """True if the OS default-handler id names this browser.

        Matches exactly (case-insensitive) or as "<id>-<suffix>",
        which is how Windows Firefox ProgIds are formed.
        """
        handler = handler_id.strip().lower()
        for known in self.default_handler_ids:
            known = known.lower()
            if handler == known or handler.startswith(known + "-"):
                return True
        return False


# =============================================================================
# BUILT-IN TABLE
# =============================================================================

_PF = "${ProgramFiles}"
_PF86 = "${ProgramFiles(x86)}"
_LOCAL = "${LOCALAPPDATA}"

BUILTIN_SPECS: Tuple[BrowserSpec, ...] = (
    BrowserSpec(
        id="chrome",
        name="Google Chrome",
        probe_paths={
            "windows": (
                _PF + r"\Google\Chrome\Application\chrome.exe",
                _PF86 + r"\Google\Chrome\Application\chrome.exe",
                _LOCAL + r"\Google\Chrome\Application\chrome.exe",
                "chrome",
            ),
            "macos": (
                "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
                "~/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
            ),
            "linux": (
                "google-chrome-stable",
                "google-chrome",
                "/opt/google/chrome/chrome",
            ),
        },
        private_flag="--incognito",
        default_handler_ids=("google-chrome.desktop", "com.google.chrome", "ChromeHTML"),
        registry_exe_names=("chrome.exe",),
    ),
    BrowserSpec(
        id="firefox",
        name="Mozilla Firefox",
        probe_paths={
            "windows": (
                _PF + r"\Mozilla Firefox\firefox.exe",
                _PF86 + r"\Mozilla Firefox\firefox.exe",
                "firefox",
            ),
            "macos": (
                "/Applications/Firefox.app/Contents/MacOS/firefox",
                "~/Applications/Firefox.app/Contents/MacOS/firefox",
            ),
            "linux": (
                "firefox",
                "/snap/bin/firefox",
                "/usr/lib/firefox/firefox",
                "/opt/firefox/firefox",
            ),
        },
        private_flag="-private-window",
        default_handler_ids=(
            "firefox.desktop", "firefox_firefox.desktop", "firefox-esr.desktop",
            "org.mozilla.firefox", "FirefoxURL",
        ),
        registry_exe_names=("firefox.exe",),
    ),
    BrowserSpec(
        id="brave",
        name="Brave",
        probe_paths={
            "windows": (
                _PF + r"\BraveSoftware\Brave-Browser\Application\brave.exe",
                _PF86 + r"\BraveSoftware\Brave-Browser\Application\brave.exe",
                _LOCAL + r"\BraveSoftware\Brave-Browser\Application\brave.exe",
            ),
            "macos": (
                "/Applications/Brave Browser.app/Contents/MacOS/Brave Browser",
            ),
            "linux": (
                "brave-browser",
                "brave",
                "/snap/bin/brave",
                "/opt/brave.com/brave/brave",
            ),
        },
        private_flag="--incognito",
        default_handler_ids=("brave-browser.desktop", "brave_brave.desktop", "com.brave.browser", "BraveHTML"),
        registry_exe_names=("brave.exe",),
    ),
    BrowserSpec(
        id="edge",
        name="Microsoft Edge",
        probe_paths={
            "windows": (
                _PF86 + r"\Microsoft\Edge\Application\msedge.exe",
                _PF + r"\Microsoft\Edge\Application\msedge.exe",
            ),
            "macos": (
                "/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge",
            ),
            "linux": (
                "microsoft-edge-stable",
                "microsoft-edge",
                "/opt/microsoft/msedge/msedge",
            ),
        },
        private_flag="--inprivate",
        default_handler_ids=("microsoft-edge.desktop", "com.microsoft.edgemac", "MSEdgeHTM"),
        registry_exe_names=("msedge.exe",),
    ),
    BrowserSpec(
        id="opera",
        name="Opera",
        probe_paths={
            "windows": (
                _LOCAL + r"\Programs\Opera\opera.exe",
                _PF + r"\Opera\opera.exe",
            ),
            "macos": (
                "/Applications/Opera.app/Contents/MacOS/Opera",
            ),
            "linux": (
                "opera",
                "/snap/bin/opera",
            ),
        },
        private_flag="--private",
        default_handler_ids=("opera.desktop", "com.operasoftware.opera", "OperaStable"),
        registry_exe_names=("opera.exe",),
    ),
    BrowserSpec(
        id="chromium",
        name="Chromium",
        probe_paths={
            "windows": (
                _LOCAL + r"\Chromium\Application\chrome.exe",
            ),
            "macos": (
                "/Applications/Chromium.app/Contents/MacOS/Chromium",
            ),
            "linux": (
                "chromium",
                "chromium-browser",
                "/snap/bin/chromium",
            ),
        },
        private_flag="--incognito",
        default_handler_ids=(
            "chromium.desktop", "chromium-browser.desktop", "chromium_chromium.desktop",
            "org.chromium.chromium", "ChromiumHTM",
        ),
        # No registry_exe_names: chrome.exe also names Google Chrome
    ),
    BrowserSpec(
        id="vivaldi",
        name="Vivaldi",
        probe_paths={
            "windows": (
                _LOCAL + r"\Vivaldi\Application\vivaldi.exe",
                _PF + r"\Vivaldi\Application\vivaldi.exe",
            ),
            "macos": (
                "/Applications/Vivaldi.app/Contents/MacOS/Vivaldi",
            ),
            "linux": (
                "vivaldi-stable",
                "vivaldi",
                "/opt/vivaldi/vivaldi",
            ),
        },
        private_flag="--incognito",
        default_handler_ids=("vivaldi-stable.desktop", "com.vivaldi.vivaldi", "VivaldiHTM"),
        registry_exe_names=("vivaldi.exe",),
    ),
)


# =============================================================================
# CONFIG PARSING
# =============================================================================

def spec_from_dict(raw: Dict[str, Any]) -> BrowserSpec:
    """Build a BrowserSpec from one `browsers:` entry of the YAML config.

    `paths` may be a mapping of OS id -> list, or a plain list
    applied to every OS.

    Raises:
        ConfigurationError: If the entry is malformed
    """
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Custom browser entry must be a mapping, got: {raw!r}")

    browser_id = str(raw.get("id") or "").strip().lower()
    if not browser_id:
        raise ConfigurationError(f"Custom browser entry is missing an id: {raw!r}")

    paths = raw.get("paths") or {}
    if isinstance(paths, (list, tuple)):
        paths = {os_name: paths for os_name in SUPPORTED_OS}
    if not isinstance(paths, dict):
        raise ConfigurationError(f"Custom browser '{browser_id}': paths must be a list or mapping")

    probe_paths = {}
    for os_name, templates in paths.items():
        if isinstance(templates, str):
            templates = [templates]
        probe_paths[str(os_name).lower()] = tuple(str(t) for t in templates or ())

    style_value = raw.get("multi_url_style", MultiUrlStyle.SPACE_SEPARATED.value)
    try:
        style = MultiUrlStyle(style_value)
    except ValueError:
        valid = [s.value for s in MultiUrlStyle]
        raise ConfigurationError(
            f"Custom browser '{browser_id}': unknown multi_url_style '{style_value}'. Valid: {valid}"
        )

    return BrowserSpec(
        id=browser_id,
        name=str(raw.get("name") or browser_id),
        probe_paths=probe_paths,
        private_flag=str(raw.get("private_flag") or ""),
        multi_url_style=style,
        url_flag=str(raw.get("url_flag") or ""),
        default_handler_ids=tuple(str(h) for h in raw.get("handler_ids") or ()),
        registry_exe_names=tuple(str(n) for n in raw.get("registry_exe_names") or ()),
    )


# =============================================================================
# REGISTRY
# =============================================================================

class BrowserRegistry:
    """Ordered, read-only table of browser specs.

    Usage:
        registry = BrowserRegistry.default()
        for spec in registry.specs():
            ...

    Safe to share across probe threads: nothing mutates it after __init__.
    """

    def __init__(self, specs: Iterable[BrowserSpec]):
        self._specs: Tuple[BrowserSpec, ...] = tuple(specs)
        self._by_id: Dict[str, BrowserSpec] = {}
        self._validate()

    def _validate(self) -> None:
        """Fail fast on an unusable table."""
        if not self._specs:
            raise ConfigurationError("Browser registry is empty")

        for spec in self._specs:
            if not isinstance(spec, BrowserSpec):
                raise ConfigurationError(f"Registry entry is not a BrowserSpec: {spec!r}")
            key = spec.id.lower()
            if key in self._by_id:
                raise ConfigurationError(f"Duplicate browser id in registry: '{spec.id}'")
            self._by_id[key] = spec

    @classmethod
    def default(cls) -> "BrowserRegistry":
        """Registry of the built-in browser families."""
        return cls(BUILTIN_SPECS)

    @classmethod
    def from_config(cls, custom_browsers: Optional[List[Dict[str, Any]]] = None) -> "BrowserRegistry":
        """Built-in registry extended with custom entries from configuration."""
        registry = cls.default()
        if not custom_browsers:
            return registry
        extra = [spec_from_dict(raw) for raw in custom_browsers]
        logging.info(f"BrowserRegistry: adding {len(extra)} custom browser(s): {[s.id for s in extra]}")
        return registry.extend(extra)

    def extend(self, specs: Iterable[BrowserSpec]) -> "BrowserRegistry":
        """New registry with `specs` appended. Ids must stay unique."""
        return BrowserRegistry(self._specs + tuple(specs))

    def specs(self) -> Tuple[BrowserSpec, ...]:
        return self._specs

    def get(self, browser_id: str) -> Optional[BrowserSpec]:
        return self._by_id.get(browser_id.lower())

    def ids(self) -> List[str]:
        return [spec.id for spec in self._specs]

    def __len__(self) -> int:
        return len(self._specs)

    def __iter__(self) -> Iterator[BrowserSpec]:
        return iter(self._specs)

    def __contains__(self, browser_id: str) -> bool:
        return browser_id.lower() in self._by_id
