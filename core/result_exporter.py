"""ResultExporter - Durable copies of a DetectionResult.

Writes two files into the state directory:
- browsers.txt  : human-readable "id = path" lines
- browsers.json : structured list plus the default-browser marker

The JSON file can be read back so later invocations skip re-probing.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from core.browser_detector import DetectedBrowser, DetectionResult, is_executable


TEXT_FILENAME = "browsers.txt"
JSON_FILENAME = "browsers.json"


def format_text(result: DetectionResult) -> str:
    """Line-oriented listing, one browser per line."""
    lines = []
    for browser in result:
        suffix = " (default)" if browser.is_default else ""
        lines.append(f"{browser.id} = {browser.resolved_path}{suffix}")
    return "\n".join(lines) + ("\n" if lines else "")


def to_dict(result: DetectionResult) -> Dict[str, Any]:
    return {
        "default": result.default,
        "browsers": [
            {"id": b.id, "path": b.resolved_path, "is_default": b.is_default}
            for b in result
        ],
    }


def from_dict(data: Dict[str, Any]) -> DetectionResult:
    """Inverse of to_dict.

    Raises:
        ValueError: If the structure is not a detection result
    """
    if not isinstance(data, dict) or not isinstance(data.get("browsers"), list):
        raise ValueError("Not a detection result: missing 'browsers' list")

    default = data.get("default")
    browsers = []
    for entry in data["browsers"]:
        try:
            browsers.append(DetectedBrowser(
                id=str(entry["id"]),
                resolved_path=str(entry["path"]),
                is_default=bool(entry.get("is_default", entry["id"] == default)),
            ))
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed browser entry {entry!r}: {e}")

    if default is not None:
        if not isinstance(default, str):
            raise ValueError(f"Default browser must be an id string, got {default!r}")
        if default not in [b.id for b in browsers]:
            raise ValueError(f"Default browser '{default}' is not among the recorded browsers")
    return DetectionResult(browsers=tuple(browsers), default=default)


class ResultExporter:
    """Writes and reads detection results under a state directory."""

    def __init__(self, state_dir: Path):
        self.state_dir = Path(state_dir)

    @property
    def text_path(self) -> Path:
        return self.state_dir / TEXT_FILENAME

    @property
    def json_path(self) -> Path:
        return self.state_dir / JSON_FILENAME

    def export(self, result: DetectionResult) -> Tuple[Path, Path]:
        """Write both formats. Returns (text_path, json_path)."""
        self.state_dir.mkdir(parents=True, exist_ok=True)

        with open(self.text_path, "w", encoding="utf-8") as f:
            f.write(format_text(result))

        with open(self.json_path, "w", encoding="utf-8") as f:
            json.dump(to_dict(result), f, indent=2)

        logging.info(f"Saved browser list to {self.text_path} and {self.json_path}")
        return self.text_path, self.json_path

    def load(self) -> Optional[DetectionResult]:
        """Cached result from browsers.json, or None if missing or stale.

        Stale means empty, or any recorded executable is gone; the caller re-probes.
        """
        if not self.json_path.exists():
            return None

        try:
            with open(self.json_path, "r", encoding="utf-8") as f:
                result = from_dict(json.load(f))
        except (OSError, ValueError) as e:
            logging.warning(f"Ignoring unreadable browser cache {self.json_path}: {e}")
            return None

        if result.is_empty:
            return None

        for browser in result:
            if not is_executable(browser.resolved_path):
                logging.info(f"Browser cache is stale ({browser.id} missing at {browser.resolved_path})")
                return None

        logging.debug(f"Loaded {len(result)} cached browser(s) from {self.json_path}")
        return result
