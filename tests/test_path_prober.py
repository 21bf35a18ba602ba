"""Tests for PathProber template expansion.

Probing is a pure function of (spec, OS id, environment), so every test
pins both explicitly.
"""

import sys
import pytest
from unittest.mock import patch

from core.browser_registry import BrowserRegistry, BrowserSpec
from core.path_prober import PathProber, current_os, windows_registry_paths
from helpers import make_spec


def _no_registry(exe_name):
    return []


class TestLinuxProbing:
    """POSIX path handling."""

    def test_absolute_template_passes_through(self):
        prober = PathProber(os_name="linux", environ={"PATH": ""})
        spec = make_spec("fakefox", ("/opt//fakefox/fakefox",))

        assert prober.probe(spec) == ["/opt/fakefox/fakefox"]

    def test_command_name_expands_over_path_in_order(self):
        prober = PathProber(os_name="linux", environ={"PATH": "/usr/local/bin:/usr/bin"})
        spec = make_spec("fakefox", ("fakefox", "/opt/fakefox/fakefox"))

        assert prober.probe(spec) == [
            "/usr/local/bin/fakefox",
            "/usr/bin/fakefox",
            "/opt/fakefox/fakefox",
        ]

    def test_home_expansion(self):
        prober = PathProber(os_name="linux", environ={"HOME": "/home/ada"})
        spec = make_spec("fakefox", ("~/bin/fakefox",))

        assert prober.probe(spec) == ["/home/ada/bin/fakefox"]

    def test_home_unset_drops_template(self):
        prober = PathProber(os_name="linux", environ={})
        spec = make_spec("fakefox", ("~/bin/fakefox", "/usr/bin/fakefox"))

        assert prober.probe(spec) == ["/usr/bin/fakefox"]

    def test_duplicates_removed_keeping_first(self):
        prober = PathProber(os_name="linux", environ={"PATH": "/usr/bin:/usr/bin"})
        spec = make_spec("fakefox", ("fakefox", "/usr/bin/fakefox"))

        assert prober.probe(spec) == ["/usr/bin/fakefox"]

    def test_builtin_chrome_linux_candidates(self):
        prober = PathProber(os_name="linux", environ={"PATH": "/usr/bin"})
        chrome = BrowserRegistry.default().get("chrome")

        assert prober.probe(chrome) == [
            "/usr/bin/google-chrome-stable",
            "/usr/bin/google-chrome",
            "/opt/google/chrome/chrome",
        ]


class TestWindowsProbing:
    """Windows variables, separators and .exe suffix."""

    def test_program_files_expansion_is_case_insensitive(self):
        prober = PathProber(os_name="windows", environ={"PROGRAMFILES": r"C:\Program Files"}, registry_lookup=_no_registry)
        spec = BrowserSpec(
            id="fakefox",
            name="Fakefox",
            probe_paths={"windows": (r"${ProgramFiles}\Fakefox\fakefox.exe",)},
        )

        assert prober.probe(spec) == [r"C:\Program Files\Fakefox\fakefox.exe"]

    def test_unset_variable_drops_template(self):
        prober = PathProber(os_name="windows", environ={"LOCALAPPDATA": r"C:\Users\ada\AppData\Local"}, registry_lookup=_no_registry)
        edge = BrowserRegistry.default().get("edge")

        # Edge lives under ProgramFiles only; none set here
        assert prober.probe(edge) == []

    def test_x86_variable_name(self):
        prober = PathProber(os_name="windows", environ={"ProgramFiles(x86)": r"C:\Program Files (x86)"}, registry_lookup=_no_registry)
        edge = BrowserRegistry.default().get("edge")

        assert prober.probe(edge) == [r"C:\Program Files (x86)\Microsoft\Edge\Application\msedge.exe"]

    def test_command_name_gets_exe_suffix(self):
        prober = PathProber(os_name="windows", environ={"PATH": r"C:\bin;C:\tools"}, registry_lookup=_no_registry)
        spec = BrowserSpec(id="fakefox", name="Fakefox", probe_paths={"windows": ("fakefox",)})

        assert prober.probe(spec) == [r"C:\bin\fakefox.exe", r"C:\tools\fakefox.exe"]


class TestWindowsRegistry:
    """App Paths and StartMenuInternet as a second candidate source."""

    def test_registry_hits_follow_templates(self):
        lookup = {"msedge.exe": [r"D:\Apps\Edge\msedge.exe"]}
        prober = PathProber(
            os_name="windows",
            environ={"PROGRAMFILES": r"C:\Program Files"},
            registry_lookup=lambda exe_name: lookup.get(exe_name, []),
        )
        edge = BrowserRegistry.default().get("edge")

        assert prober.probe(edge) == [
            r"C:\Program Files\Microsoft\Edge\Application\msedge.exe",
            r"D:\Apps\Edge\msedge.exe",
        ]

    def test_registry_duplicate_of_template_is_dropped(self):
        installed = r"C:\Program Files\Microsoft\Edge\Application\msedge.exe"
        prober = PathProber(
            os_name="windows",
            environ={"PROGRAMFILES": r"C:\Program Files"},
            registry_lookup=lambda exe_name: [installed],
        )

        assert prober.probe(BrowserRegistry.default().get("edge")) == [installed]

    def test_registry_not_consulted_off_windows(self):
        calls = []
        prober = PathProber(os_name="linux", environ={}, registry_lookup=calls.append)

        prober.probe(BrowserRegistry.default().get("firefox"))

        assert calls == []

    def test_spec_without_exe_names_skips_registry(self):
        prober = PathProber(os_name="windows", environ={}, registry_lookup=lambda exe_name: [r"C:\x\chrome.exe"])

        assert prober.probe(BrowserRegistry.default().get("chromium")) == []


class FakeWinreg:
    """In-memory stand-in for the winreg module.

    values: {(hive, key_path): default value}
    subkeys: {(hive, key_path): [child names]}
    """
    HKEY_LOCAL_MACHINE = "HKLM"
    HKEY_CURRENT_USER = "HKCU"

    def __init__(self, values=None, subkeys=None):
        self.values = values or {}
        self.subkeys = subkeys or {}

    def OpenKey(self, hive, key_path):
        key = (hive, key_path)
        if key in self.values or key in self.subkeys:
            return key
        raise FileNotFoundError(key_path)

    def QueryValueEx(self, key, name):
        if key not in self.values:
            raise FileNotFoundError(key[1])
        return self.values[key], 1

    def EnumKey(self, key, index):
        children = self.subkeys.get(key, [])
        if index >= len(children):
            raise OSError("No more data is available")
        return children[index]

    def CloseKey(self, key):
        pass


APP_PATHS = r"SOFTWARE\Microsoft\Windows\CurrentVersion\App Paths"
CLIENTS = r"SOFTWARE\Clients\StartMenuInternet"


class TestWindowsRegistryLookup:
    """windows_registry_paths against a fake registry."""

    def test_app_paths_hklm_then_hkcu(self):
        winreg = FakeWinreg(values={
            ("HKLM", APP_PATHS + r"\brave.exe"): r'"C:\Brave\brave.exe"',
            ("HKCU", APP_PATHS + r"\brave.exe"): r"C:\Users\ada\Brave\brave.exe",
        })

        with patch.dict("sys.modules", {"winreg": winreg}):
            paths = windows_registry_paths("brave.exe")

        assert paths == [r"C:\Brave\brave.exe", r"C:\Users\ada\Brave\brave.exe"]

    def test_start_menu_internet_command(self):
        winreg = FakeWinreg(
            values={
                ("HKLM", CLIENTS + r"\OperaStable\shell\open\command"):
                    r'"D:\Opera\opera.exe" --single-argument %1',
                ("HKLM", CLIENTS + r"\Firefox-308046B0AF4A39CB\shell\open\command"):
                    r"C:\Program Files\Mozilla Firefox\firefox.exe -osint -url %1",
            },
            subkeys={("HKLM", CLIENTS): ["Firefox-308046B0AF4A39CB", "OperaStable", "Broken"]},
        )

        with patch.dict("sys.modules", {"winreg": winreg}):
            assert windows_registry_paths("opera.exe") == [r"D:\Opera\opera.exe"]
            assert windows_registry_paths("FIREFOX.EXE") == [r"C:\Program Files\Mozilla Firefox\firefox.exe"]

    def test_nothing_registered(self):
        with patch.dict("sys.modules", {"winreg": FakeWinreg()}):
            assert windows_registry_paths("vivaldi.exe") == []


class TestAbsence:
    """No templates for the OS is a normal outcome."""

    def test_os_without_templates_returns_empty(self):
        prober = PathProber(os_name="macos", environ={})
        spec = make_spec("fakefox", ("/usr/bin/fakefox",))

        assert prober.probe(spec) == []


class TestCurrentOs:

    @pytest.mark.parametrize("platform,expected", [
        ("win32", "windows"),
        ("darwin", "macos"),
        ("linux", "linux"),
        ("freebsd13", "linux"),
    ])
    def test_platform_mapping(self, monkeypatch, platform, expected):
        monkeypatch.setattr(sys, "platform", platform)

        assert current_os() == expected
