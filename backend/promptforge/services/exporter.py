"""Prompt export in JSON, Markdown and TOON.

Pure functions over plain dicts; ``export_data`` builds those dicts from ORM
rows so the generators never touch the session.
"""
import json
import re
from datetime import datetime
from typing import Any, Iterable, Literal, Optional

ExportFormat = Literal["json", "markdown", "toon"]

EXPORT_FORMATS = ("json", "markdown", "toon")

_EXTENSIONS = {"json": "json", "markdown": "md", "toon": "toon"}
_MEDIA_TYPES = {"json": "application/json", "markdown": "text/markdown", "toon": "text/plain"}

_FENCE_RE = re.compile(r"`{3,}")


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _export_variable(v: Any) -> dict:
    get = v.get if isinstance(v, dict) else lambda key: getattr(v, key, None)
    return {
        "name": get("name"),
        "type": get("type") or "STRING",
        "required": bool(get("required")),
        "defaultValue": get("default_value"),
        "options": get("options"),
        "help": get("help"),
    }


def export_data(prompt, versions: Iterable[Any] = ()) -> dict:
    """Flatten a prompt, its variables and versions for the generators."""
    return {
        "prompt": {
            "title": prompt.title,
            "description": prompt.description,
            "content": prompt.content,
            "version": prompt.version or "1.0.0",
            "tags": list(prompt.tags or []),
            "visibility": prompt.visibility or "PRIVATE",
            "created_at": _iso(prompt.created_at),
            "updated_at": _iso(prompt.updated_at),
        },
        "variables": [_export_variable(v) for v in prompt.variables],
        "versions": [
            {
                "semver": v.semver,
                "content": v.content,
                "message": v.message,
                "created_at": _iso(v.created_at),
                "variables": [_export_variable(item) for item in (v.variables or [])],
            }
            for v in versions
        ],
    }


def generate_export(data: dict, fmt: str, include_versions: bool = False) -> str:
    prompt = data["prompt"]
    variables = data.get("variables") or []
    versions = (data.get("versions") or []) if include_versions else []

    if fmt == "json":
        return generate_json(prompt, variables, versions)
    if fmt == "markdown":
        return generate_markdown(prompt, variables, versions)
    if fmt == "toon":
        return generate_toon(prompt, variables, versions)
    raise ValueError(f"Unsupported export format: {fmt}")


def generate_json(prompt: dict, variables: list[dict], versions: list[dict]) -> str:
    payload: dict[str, Any] = {
        "meta": {
            "title": prompt["title"],
            "description": prompt.get("description"),
            "version": prompt["version"],
            "tags": prompt.get("tags") or [],
            "visibility": prompt.get("visibility"),
            "created_at": prompt.get("created_at"),
            "updated_at": prompt.get("updated_at"),
        },
        "content": prompt["content"],
        "variables": variables,
    }
    if versions:
        payload["versions"] = [
            {
                "semver": v["semver"],
                "message": v.get("message"),
                "created_at": v.get("created_at"),
                "content": v["content"],
                "variables": v.get("variables") or [],
            }
            for v in versions
        ]
    return json.dumps(payload, indent=2, ensure_ascii=False)


def escape_markdown_fences(content: str) -> tuple[str, str]:
    """Pick a code fence longer than any backtick run inside ``content``."""
    runs = _FENCE_RE.findall(content)
    if not runs:
        return "```", content
    return "`" * (max(len(r) for r in runs) + 1), content


def _format_date(value: Optional[str]) -> str:
    if not value:
        return "-"
    try:
        return datetime.fromisoformat(value).strftime("%d %b %Y")
    except ValueError:
        return value


def generate_markdown(prompt: dict, variables: list[dict], versions: list[dict]) -> str:
    lines = [f"# {prompt['title']}", "", f"**Version:** {prompt['version']}"]
    if prompt.get("tags"):
        lines.append(f"**Tags:** {', '.join(prompt['tags'])}")
    lines.append(f"**Visibility:** {prompt.get('visibility')}")
    lines.append(f"**Created:** {_format_date(prompt.get('created_at'))}")
    lines.append(f"**Updated:** {_format_date(prompt.get('updated_at'))}")
    lines.append("")

    if prompt.get("description"):
        lines += ["## Description", "", prompt["description"], ""]

    fence, content = escape_markdown_fences(prompt["content"])
    lines += ["## Content", "", fence, content, fence, ""]

    if variables:
        lines += [
            "## Variables",
            "",
            "| Name | Type | Required | Default | Description |",
            "|------|------|----------|---------|-------------|",
        ]
        for v in variables:
            required = "yes" if v.get("required") else "-"
            lines.append(
                f"| {v['name']} | {v.get('type')} | {required} | {v.get('defaultValue') or '-'} | {v.get('help') or '-'} |"
            )
        lines.append("")

    if versions:
        lines += ["## Version history", ""]
        for v in versions:
            lines.append(f"- **{v['semver']}** ({_format_date(v.get('created_at'))}): {v.get('message') or 'No message'}")
        lines.append("")

    return "\n".join(lines)


def generate_toon(prompt: dict, variables: list[dict], versions: list[dict]) -> str:
    """Token-Oriented Object Notation: indented keys plus tabular arrays."""
    lines = ["meta:", f"  title: {prompt['title']}"]
    if prompt.get("description"):
        lines.append(f"  description: {prompt['description']}")
    lines.append(f"  version: {prompt['version']}")
    tags = prompt.get("tags") or []
    if tags:
        lines.append(f"  tags[{len(tags)}]: {','.join(tags)}")
    lines.append(f"  visibility: {prompt.get('visibility')}")
    lines.append(f"  created_at: {prompt.get('created_at')}")
    lines.append(f"  updated_at: {prompt.get('updated_at')}")

    lines.append("content: |")
    lines += [f"  {line}" for line in prompt["content"].split("\n")]

    if variables:
        lines.append(f"variables[{len(variables)}]{{name,type,required,defaultValue,help}}:")
        for v in variables:
            row = [v["name"], v.get("type") or "STRING", str(bool(v.get("required"))).lower(),
                   v.get("defaultValue") or "", v.get("help") or ""]
            lines.append("  " + ",".join(row))

    if versions:
        lines.append(f"versions[{len(versions)}]{{semver,message,created_at}}:")
        for v in versions:
            lines.append("  " + ",".join([v["semver"], v.get("message") or "", v.get("created_at") or ""]))

    return "\n".join(lines)


def export_filename(title: str, fmt: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")[:50]
    return f"{slug or 'prompt'}.{_EXTENSIONS[fmt]}"


def export_media_type(fmt: str) -> str:
    return _MEDIA_TYPES[fmt]
