"""Parse pasted or uploaded prompt text into prompt fields and variables.

Accepts our own JSON and Markdown exports (flat or ``meta``-wrapped JSON is
fine) and falls back to treating anything else as a raw prompt body.
"""
import json
import re
from typing import Any, Optional

from promptforge.errors import ImportParseError
from promptforge.services.templating import extract_variables

_HEADING_RE = re.compile(r"^#\s+.+", re.MULTILINE)
_TITLE_RE = re.compile(r"^#\s+(.+)$")
_VERSION_LINE_RE = re.compile(r"^\*\*Version:\*\*\s*(.+)$")
_TAGS_LINE_RE = re.compile(r"^\*\*Tags:\*\*\s*(.+)$")
_FENCE_LINE_RE = re.compile(r"^`{3,}")

ACCEPTED_EXTENSIONS = (".json", ".md", ".markdown", ".txt")
PASTE_TITLE_MAX = 50


def detect_format(text: str) -> str:
    trimmed = text.strip()
    if trimmed.startswith(("{", "[")):
        try:
            json.loads(trimmed)
            return "json"
        except ValueError:
            pass
    if _HEADING_RE.search(trimmed):
        return "markdown"
    return "paste"


def detected_variables(content: str) -> list[dict]:
    return [
        {"name": name, "type": "STRING", "required": False, "default_value": None, "options": None, "help": None}
        for name in extract_variables(content)
    ]


def _result(fmt: str, title: str, content: str, description: Optional[str] = None,
            version: str = "1.0.0", tags: Optional[list[str]] = None,
            visibility: str = "PRIVATE", variables: Optional[list[dict]] = None) -> dict:
    return {
        "format": fmt,
        "prompt": {
            "title": title,
            "description": description,
            "content": content,
            "version": version,
            "tags": tags or [],
            "visibility": visibility,
        },
        "variables": variables if variables is not None else detected_variables(content),
    }


def parse_json(text: str) -> dict:
    try:
        data = json.loads(text.strip())
    except ValueError:
        raise ImportParseError("INVALID_JSON", "Content is not valid JSON")
    if not isinstance(data, dict):
        raise ImportParseError("INVALID_FORMAT", "JSON import must be an object")

    meta = data.get("meta") if isinstance(data.get("meta"), dict) else data
    title = meta.get("title") or data.get("title")
    content = data.get("content")
    if not title:
        raise ImportParseError("MISSING_REQUIRED_FIELD", "Field 'title' is required", field="title")
    if not content:
        raise ImportParseError("MISSING_REQUIRED_FIELD", "Field 'content' is required", field="content")

    variables = None
    if isinstance(data.get("variables"), list):
        variables = [_import_variable(v) for v in data["variables"] if isinstance(v, dict) and v.get("name")]

    visibility = meta.get("visibility", data.get("visibility"))
    return _result(
        "json",
        title=title,
        content=content,
        description=meta.get("description", data.get("description")),
        version=meta.get("version") or data.get("version") or "1.0.0",
        tags=meta.get("tags") or data.get("tags") or [],
        visibility="SHARED" if visibility == "SHARED" else "PRIVATE",
        variables=variables,
    )


def _import_variable(raw: dict[str, Any]) -> dict:
    default = raw.get("defaultValue", raw.get("default_value"))
    return {
        "name": raw["name"],
        "type": raw.get("type") or "STRING",
        "required": bool(raw.get("required", False)),
        "default_value": default,
        "options": raw.get("options"),
        "help": raw.get("help"),
    }


def parse_markdown(text: str) -> dict:
    lines = text.strip().split("\n")
    title_match = _TITLE_RE.match(lines[0]) if lines else None
    if not title_match:
        raise ImportParseError("INVALID_FORMAT", "Markdown must start with a '# Title' heading")

    version = "1.0.0"
    tags: list[str] = []
    description_lines: list[str] = []
    content_lines: list[str] = []
    section = None
    fence: Optional[str] = None

    for line in lines[1:]:
        if fence is None and line.startswith("## "):
            heading = line[3:].strip().lower()
            if heading.startswith("description"):
                section = "description"
            elif heading.startswith(("content", "contenu")):
                section = "content"
            else:
                section = "other"
            continue

        if section is None:
            version_match = _VERSION_LINE_RE.match(line)
            tags_match = _TAGS_LINE_RE.match(line)
            if version_match:
                version = version_match.group(1).strip()
            elif tags_match:
                tags += [t.strip() for t in tags_match.group(1).split(",") if t.strip()]
        elif section == "description":
            description_lines.append(line)
        elif section == "content":
            fence_match = _FENCE_LINE_RE.match(line)
            if fence is None and fence_match:
                fence = fence_match.group(0)
            elif fence is not None and line.strip() == fence:
                fence = None
                section = "other"
            elif fence is not None:
                content_lines.append(line)

    description = "\n".join(description_lines).strip() or None
    content = "\n".join(content_lines).strip()
    if not content:
        if not description:
            raise ImportParseError("MISSING_REQUIRED_FIELD", "No content found in Markdown", field="content")
        # A bare description section is the prompt body.
        content, description = description, None

    return _result(
        "markdown",
        title=title_match.group(1).strip(),
        content=content,
        description=description,
        version=version,
        tags=tags,
    )


def parse_paste(text: str) -> dict:
    trimmed = text.strip()
    if not trimmed:
        raise ImportParseError("EMPTY_CONTENT", "Content cannot be empty")
    title = trimmed.split("\n")[0][:PASTE_TITLE_MAX].strip() or "Imported prompt"
    return _result("paste", title=title, content=trimmed)


def parse_import_content(text: Optional[str]) -> dict:
    """Auto-detect the format and parse. Raises ImportParseError."""
    if not text or not text.strip():
        raise ImportParseError("EMPTY_CONTENT", "Content cannot be empty")
    fmt = detect_format(text)
    if fmt == "json":
        return parse_json(text)
    if fmt == "markdown":
        return parse_markdown(text)
    return parse_paste(text)
