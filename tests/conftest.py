import os
import sys
import stat
import pytest
from pathlib import Path

# Add project root and tests dir to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(1, str(Path(__file__).parent))

from core.quicktabs_config import QuickTabsConfig


@pytest.fixture
def make_executable(tmp_path):
    """Factory: create a runnable fake browser under tmp_path."""
    def _factory(relative: str, executable: bool = True, body: str = "exit 0") -> str:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(f"#!/bin/sh\n{body}\n")
        mode = stat.S_IRUSR | stat.S_IWUSR
        if executable:
            mode |= stat.S_IXUSR
        os.chmod(path, mode)
        return str(path)
    return _factory


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Point config and state at tmp_path so tests never touch the real home."""
    config_path = tmp_path / "config" / "config.yaml"
    monkeypatch.setenv("QUICKTABS_CONFIG", str(config_path))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    QuickTabsConfig.reset()
    yield config_path
    QuickTabsConfig.reset()


@pytest.fixture
def write_config(isolated_config):
    """Factory: write YAML text to the isolated config file."""
    def _write(text: str) -> Path:
        isolated_config.parent.mkdir(parents=True, exist_ok=True)
        isolated_config.write_text(text, encoding="utf-8")
        QuickTabsConfig.reset()
        return isolated_config
    return _write
