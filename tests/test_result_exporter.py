"""Tests for ResultExporter (browsers.txt / browsers.json)."""

import json
import pytest

from core.browser_detector import DetectedBrowser, DetectionResult
from core.result_exporter import ResultExporter, format_text, from_dict, to_dict


@pytest.fixture
def detected(make_executable):
    chrome = make_executable("bin/google-chrome")
    firefox = make_executable("bin/firefox")
    return DetectionResult(
        browsers=(
            DetectedBrowser("chrome", chrome),
            DetectedBrowser("firefox", firefox, is_default=True),
        ),
        default="firefox",
    )


class TestFormats:

    def test_text_lines(self):
        result = DetectionResult(
            browsers=(
                DetectedBrowser("chrome", "/usr/bin/google-chrome"),
                DetectedBrowser("firefox", "/usr/bin/firefox", is_default=True),
            ),
            default="firefox",
        )

        assert format_text(result) == (
            "chrome = /usr/bin/google-chrome\n"
            "firefox = /usr/bin/firefox (default)\n"
        )

    def test_empty_text(self):
        assert format_text(DetectionResult()) == ""

    def test_json_shape(self):
        result = DetectionResult(browsers=(DetectedBrowser("edge", "/usr/bin/microsoft-edge"),))

        assert to_dict(result) == {
            "default": None,
            "browsers": [{"id": "edge", "path": "/usr/bin/microsoft-edge", "is_default": False}],
        }

    def test_from_dict_rejects_garbage(self):
        with pytest.raises(ValueError):
            from_dict({"browsers": "chrome"})

        with pytest.raises(ValueError):
            from_dict({"browsers": [{"id": "chrome"}]})

    @pytest.mark.parametrize("default", [1, ["chrome"], "firefox"])
    def test_from_dict_rejects_bad_default(self, default):
        with pytest.raises(ValueError):
            from_dict({"default": default, "browsers": [{"id": "chrome", "path": "/x"}]})

    def test_from_dict_infers_default_flag(self):
        result = from_dict({"default": "chrome", "browsers": [{"id": "chrome", "path": "/x"}]})

        assert result.get("chrome").is_default


class TestExportAndLoad:

    def test_export_writes_both_files(self, tmp_path, detected):
        exporter = ResultExporter(tmp_path / "state")

        text_path, json_path = exporter.export(detected)

        assert text_path.read_text(encoding="utf-8").splitlines()[1].endswith("(default)")
        data = json.loads(json_path.read_text(encoding="utf-8"))
        assert data["default"] == "firefox"
        assert [b["id"] for b in data["browsers"]] == ["chrome", "firefox"]

    def test_load_returns_exported_result(self, tmp_path, detected):
        exporter = ResultExporter(tmp_path)
        exporter.export(detected)

        assert exporter.load() == detected

    def test_load_missing_file(self, tmp_path):
        assert ResultExporter(tmp_path).load() is None

    def test_load_corrupt_file(self, tmp_path):
        (tmp_path / "browsers.json").write_text("{not json", encoding="utf-8")

        assert ResultExporter(tmp_path).load() is None

    def test_load_non_string_default_is_unreadable(self, tmp_path, make_executable):
        path = make_executable("bin/fakebrowser")
        (tmp_path / "browsers.json").write_text(
            json.dumps({"default": 1, "browsers": [{"id": "fakebrowser", "path": path}]}),
            encoding="utf-8",
        )

        assert ResultExporter(tmp_path).load() is None

    def test_load_stale_when_executable_removed(self, tmp_path, detected):
        exporter = ResultExporter(tmp_path)
        exporter.export(detected)
        (tmp_path / "bin" / "firefox").unlink()

        assert exporter.load() is None

    def test_empty_cache_is_not_reused(self, tmp_path):
        exporter = ResultExporter(tmp_path)
        exporter.export(DetectionResult())

        assert exporter.load() is None
