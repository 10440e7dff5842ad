"""
Tests for exporter.py and importer.py.
"""

import json

import pytest

from promptforge.errors import ImportParseError
from promptforge.services.exporter import (
    escape_markdown_fences,
    export_filename,
    export_media_type,
    generate_export,
)
from promptforge.services.importer import detect_format, parse_import_content

DATA = {
    "prompt": {
        "title": "Code Review",
        "description": "Reviews a diff",
        "content": "Review this:\n```diff\n{{diff}}\n```",
        "version": "1.2.0",
        "tags": ["code", "review"],
        "visibility": "PRIVATE",
        "created_at": "2025-01-01T10:00:00+00:00",
        "updated_at": "2025-01-02T10:00:00+00:00",
    },
    "variables": [
        {"name": "diff", "type": "MULTISTRING", "required": True, "defaultValue": None,
         "options": None, "help": "The patch"},
    ],
    "versions": [
        {"semver": "1.2.0", "content": "v2", "message": "Tighter", "created_at": "2025-01-02T10:00:00+00:00",
         "variables": []},
        {"semver": "1.0.0", "content": "v1", "message": "Initial version",
         "created_at": "2025-01-01T10:00:00+00:00", "variables": []},
    ],
}


# =============================================================================
# Export Tests
# =============================================================================

class TestExport:

    def test_json_without_versions(self):
        payload = json.loads(generate_export(DATA, "json", include_versions=False))
        assert payload["meta"]["title"] == "Code Review"
        assert payload["content"] == DATA["prompt"]["content"]
        assert payload["variables"][0]["name"] == "diff"
        assert "versions" not in payload

    def test_json_with_versions(self):
        payload = json.loads(generate_export(DATA, "json", include_versions=True))
        assert [v["semver"] for v in payload["versions"]] == ["1.2.0", "1.0.0"]

    def test_markdown_fence_longer_than_content_fences(self):
        text = generate_export(DATA, "markdown")
        assert "# Code Review" in text
        assert "\n````\n" in text
        assert "| diff | MULTISTRING | yes | - | The patch |" in text

    def test_toon_tabular_variables(self):
        text = generate_export(DATA, "toon", include_versions=True)
        assert "  tags[2]: code,review" in text
        assert "variables[1]{name,type,required,defaultValue,help}:" in text
        assert "  diff,MULTISTRING,true,,The patch" in text
        assert "versions[2]{semver,message,created_at}:" in text

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            generate_export(DATA, "yaml")

    def test_escape_markdown_fences(self):
        assert escape_markdown_fences("plain")[0] == "```"
        assert escape_markdown_fences("`````x`````")[0] == "``````"

    def test_filename_and_media_type(self):
        assert export_filename("My Prompt: v2!", "markdown") == "my-prompt-v2.md"
        assert export_filename("!!!", "json") == "prompt.json"
        assert export_media_type("toon") == "text/plain"


# =============================================================================
# Import Tests
# =============================================================================

class TestImport:

    def test_detect_format(self):
        assert detect_format('{"title": "x"}') == "json"
        assert detect_format("# Title\nbody") == "markdown"
        assert detect_format("{not json") == "paste"
        assert detect_format("just text") == "paste"

    def test_json_export_reimports(self):
        result = parse_import_content(generate_export(DATA, "json"))
        assert result["format"] == "json"
        assert result["prompt"]["title"] == "Code Review"
        assert result["prompt"]["version"] == "1.2.0"
        assert result["variables"][0]["default_value"] is None
        assert result["variables"][0]["required"] is True

    def test_flat_json_detects_variables(self):
        result = parse_import_content('{"title": "T", "content": "Hello {{who}}"}')
        assert [v["name"] for v in result["variables"]] == ["who"]

    def test_json_missing_content(self):
        with pytest.raises(ImportParseError) as exc_info:
            parse_import_content('{"title": "T"}')
        assert exc_info.value.code == "MISSING_REQUIRED_FIELD"
        assert exc_info.value.field == "content"

    def test_markdown_export_reimports(self):
        result = parse_import_content(generate_export(DATA, "markdown"))
        assert result["format"] == "markdown"
        assert result["prompt"]["content"] == DATA["prompt"]["content"]
        assert result["prompt"]["description"] == "Reviews a diff"
        assert result["prompt"]["tags"] == ["code", "review"]
        assert [v["name"] for v in result["variables"]] == ["diff"]

    def test_markdown_without_content_section_uses_description(self):
        result = parse_import_content("# T\n\n## Description\n\nDo {{x}}")
        assert result["prompt"]["content"] == "Do {{x}}"
        assert result["prompt"]["description"] is None

    def test_markdown_must_start_with_heading(self):
        with pytest.raises(ImportParseError) as exc_info:
            parse_import_content("intro\n# Title later")
        assert exc_info.value.code == "INVALID_FORMAT"

    def test_paste_title_from_first_line(self):
        result = parse_import_content("  Summarize {{text}}\nin three bullets  ")
        assert result["format"] == "paste"
        assert result["prompt"]["title"] == "Summarize {{text}}"
        assert result["prompt"]["content"] == "Summarize {{text}}\nin three bullets"

    def test_empty_content(self):
        with pytest.raises(ImportParseError) as exc_info:
            parse_import_content("   ")
        assert exc_info.value.code == "EMPTY_CONTENT"
