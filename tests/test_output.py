"""Tests for output serialization and logging verbosity."""

import json

import pytest

from themebars.config.settings import OutputFormat
from themebars.core.output import emit_rendered, format_rendered
from themebars.logging_setup import level_for_verbosity


class TestFormatRendered:
    """Tests for turning render results into text."""

    def test_single_page_as_html_gets_trailing_newline(self):
        assert format_rendered("<p>x</p>", OutputFormat.HTML) == "<p>x</p>\n"
        assert format_rendered("<p>x</p>\n", OutputFormat.HTML) == "<p>x</p>\n"

    def test_page_mapping_is_json_even_when_html_requested(self):
        text = format_rendered({"a": "<p>é</p>"}, OutputFormat.HTML)
        assert json.loads(text) == {"a": "<p>é</p>"}
        assert "é" in text

    def test_emit_writes_file_and_creates_directories(self, tmp_path):
        target = tmp_path / "out" / "page.html"
        text = emit_rendered("<p>x</p>", OutputFormat.HTML, target)
        assert target.read_text(encoding="utf-8") == text == "<p>x</p>\n"

    def test_emit_without_file_writes_stdout(self, capsys):
        emit_rendered({"data": {}}, OutputFormat.JSON)
        assert json.loads(capsys.readouterr().out) == {"data": {}}


@pytest.mark.parametrize("verbosity, level", [(0, "warning"), (1, "info"), (2, "debug"), (5, "debug")])
def test_verbosity_maps_to_log_level(verbosity, level):
    assert level_for_verbosity(verbosity) == level
