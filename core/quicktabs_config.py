"""QuickTabs Configuration - Single Authority for User Preferences

Mirrors the BrowserConfig pattern. Commands read from here, never decide policy.

RESPONSIBILITY:
- Load config.yaml (path from $QUICKTABS_CONFIG or the user config dir)
- Provide get() singleton
- Expose a typed, immutable settings snapshot

DOES NOT:
- Build the browser registry (BrowserRegistry.from_config does)
- Probe or launch anything
"""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from core.exceptions import ConfigurationError


CONFIG_ENV_VAR = "QUICKTABS_CONFIG"
APP_DIRNAME = "quick_tabs"


def user_config_dir() -> Path:
    """Per-user configuration root for this platform."""
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / APP_DIRNAME
    elif sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIRNAME

    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / APP_DIRNAME
    return Path.home() / ".config" / APP_DIRNAME


def config_file_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return user_config_dir() / "config.yaml"


@dataclass(frozen=True)
class QuickTabsSettings:
    """Immutable configuration snapshot."""
    preferred_browser: Optional[str]
    private_by_default: bool
    allow_empty_launch: bool
    use_cached_detection: bool
    probe_workers: int
    probe_timeout_s: Optional[float]
    launch_check_s: float
    state_dir: Path
    browsers: Tuple[Dict[str, Any], ...]  # custom BrowserSpec entries


class QuickTabsConfig:
    """Singleton configuration authority.

    Usage:
        config = QuickTabsConfig.get()
        settings = config.settings
        preferred = settings.preferred_browser
    """

    _instance: Optional["QuickTabsConfig"] = None
    _settings: Optional[QuickTabsSettings] = None

    # Defaults (used if yaml missing or invalid)
    DEFAULTS = {
        "preferred_browser": None,
        "private_by_default": False,
        "allow_empty_launch": True,
        "use_cached_detection": True,
        "probe_workers": 8,
        "probe_timeout_s": None,
        "launch_check_s": 0.5,  # 0 disables the early-exit check
        "state_dir": None,  # None -> user config dir
        "browsers": [],
    }

    def __new__(cls):
        if cls._instance is None:
            instance = super().__new__(cls)
            instance._load()
            cls._instance = instance
        return cls._instance

    @classmethod
    def get(cls) -> "QuickTabsConfig":
        """Get singleton instance."""
        return cls()

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton (for testing)."""
        cls._instance = None
        cls._settings = None

    @property
    def settings(self) -> QuickTabsSettings:
        """Get current settings."""
        if self._settings is None:
            self._load()
        return self._settings

    def _load(self) -> None:
        """Load configuration from config.yaml."""
        config_path = config_file_path()

        raw_config: Dict[str, Any] = {}

        if config_path.exists():
            try:
                with open(config_path, encoding="utf-8") as f:
                    raw_config = yaml.safe_load(f) or {}
                logging.info(f"Loaded QuickTabs config from {config_path}")
            except (OSError, yaml.YAMLError) as e:
                logging.warning(f"Failed to load {config_path}: {e}, using defaults")
                raw_config = {}
            if not isinstance(raw_config, dict):
                logging.warning(f"Ignoring {config_path}: top level must be a mapping")
                raw_config = {}
        else:
            logging.info(f"No config found at {config_path}, using defaults")

        unknown = set(raw_config) - set(self.DEFAULTS)
        if unknown:
            logging.warning(f"Ignoring unknown config keys: {sorted(unknown)}")

        merged = {**self.DEFAULTS, **{k: v for k, v in raw_config.items() if k in self.DEFAULTS}}
        self._settings = self._build_settings(merged)

        logging.debug(f"QuickTabsConfig: {self._settings}")

    def _build_settings(self, merged: Dict[str, Any]) -> QuickTabsSettings:
        try:
            probe_workers = int(merged["probe_workers"])
            timeout = merged["probe_timeout_s"]
            probe_timeout_s = float(timeout) if timeout is not None else None
            launch_check_s = float(merged["launch_check_s"] or 0)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid probe/launch settings in config: {e}")
        if probe_workers < 1:
            raise ConfigurationError(f"probe_workers must be at least 1, got {probe_workers}")

        browsers = merged["browsers"] or []
        if not isinstance(browsers, list):
            raise ConfigurationError("'browsers' must be a list of browser entries")

        preferred = merged["preferred_browser"]
        state_dir = merged["state_dir"]

        return QuickTabsSettings(
            preferred_browser=str(preferred).lower() if preferred else None,
            private_by_default=bool(merged["private_by_default"]),
            allow_empty_launch=bool(merged["allow_empty_launch"]),
            use_cached_detection=bool(merged["use_cached_detection"]),
            probe_workers=probe_workers,
            probe_timeout_s=probe_timeout_s,
            launch_check_s=max(0.0, launch_check_s),
            state_dir=Path(state_dir).expanduser() if state_dir else user_config_dir(),
            browsers=tuple(browsers),
        )

    def reload(self) -> None:
        """Force reload configuration (for testing)."""
        self._load()
