"""Link and alias persistence.

Two small JSON files in the state directory:
- links.json   : {"links": [{"tag": ..., "url": ...}, ...]}  (ordered)
- aliases.json : {"aliases": {tag: url, ...}}

A corrupt or unreadable file loads as empty with a warning; the next
save overwrites it.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple


LINKS_FILENAME = "links.json"
ALIASES_FILENAME = "aliases.json"


def normalize_url(raw: str) -> str:
    """Ensure URL has a scheme (https:// by default)."""
    url = raw.strip()
    if "://" not in url and not url.startswith(("about:", "file:", "mailto:")):
        url = f"https://{url}"
    return url


def _read_json(path: Path, kind: str) -> Optional[dict]:
    if not path.exists():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read().strip()
        if not content:
            return None
        return json.loads(content)
    except json.JSONDecodeError as e:
        logging.warning(f"Failed to parse {kind} file {path}: {e}")
    except OSError as e:
        logging.warning(f"Failed to read {kind} file {path}: {e}")
    return None


def _write_json(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


class LinkStore:
    """Ordered tag -> URL links."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._links: List[Tuple[str, str]] = self._load()

    def _load(self) -> List[Tuple[str, str]]:
        data = _read_json(self.path, "link")
        if not isinstance(data, dict):
            return []
        links = []
        for entry in data.get("links", []):
            if isinstance(entry, dict) and entry.get("tag") and entry.get("url"):
                links.append((str(entry["tag"]), str(entry["url"])))
        return links

    def save(self) -> None:
        _write_json(self.path, {"links": [{"tag": t, "url": u} for t, u in self._links]})

    def add(self, tag: str, url: str) -> bool:
        """Add or replace a link. Returns True if an existing tag was replaced."""
        url = normalize_url(url)
        for index, (existing, _) in enumerate(self._links):
            if existing == tag:
                logging.info(f"Replacing existing link for tag: {tag}")
                self._links[index] = (tag, url)
                return True
        self._links.append((tag, url))
        return False

    def remove(self, tag: str) -> bool:
        for index, (existing, _) in enumerate(self._links):
            if existing == tag:
                del self._links[index]
                return True
        return False

    def get(self, tag: str) -> Optional[str]:
        for existing, url in self._links:
            if existing == tag:
                return url
        return None

    def items(self) -> List[Tuple[str, str]]:
        return list(self._links)

    def urls(self) -> List[str]:
        return [url for _, url in self._links]

    def __len__(self) -> int:
        return len(self._links)


class AliasStore:
    """Tag -> URL shortcuts. Insertion order is kept."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._aliases: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        data = _read_json(self.path, "alias")
        if not isinstance(data, dict) or not isinstance(data.get("aliases"), dict):
            return {}
        return {str(tag): str(url) for tag, url in data["aliases"].items() if tag and url}

    def save(self) -> None:
        _write_json(self.path, {"aliases": self._aliases})

    def add(self, tag: str, url: str) -> None:
        self._aliases[tag] = normalize_url(url)

    def remove(self, tag: str) -> bool:
        return self._aliases.pop(tag, None) is not None

    def resolve(self, tag: str) -> Optional[str]:
        return self._aliases.get(tag)

    def items(self) -> List[Tuple[str, str]]:
        return list(self._aliases.items())

    def urls(self) -> List[str]:
        return list(self._aliases.values())

    def __len__(self) -> int:
        return len(self._aliases)
