"""Prompt template variable detection and rendering.

Placeholders use the ``{{name}}`` syntax where ``name`` is one or more ASCII
letters, digits or underscores. Detection and substitution are two separate
passes: detection never looks at the variable set, and rendering only touches
placeholders for declared variables.
"""
import re
from typing import Any, Iterable, Mapping

# Placeholder detection: {{name}} with ASCII letters, digits or underscore.
PLACEHOLDER_RE = re.compile(r"\{\{([A-Za-z0-9_]+)\}\}")

# Variable name policies.
VARIABLE_NAME_RE = re.compile(r"^[a-zA-Z0-9_]+$")
VARIABLE_NAME_AI_RE = re.compile(r"^[a-zA-Z0-9_-]+$")


def extract_variables(text: str) -> list[str]:
    """Return unique placeholder names in order of first occurrence."""
    seen: dict[str, None] = {}
    for match in PLACEHOLDER_RE.finditer(text or ""):
        seen.setdefault(match.group(1), None)
    return list(seen)


def _field(variable: Any, name: str):
    if isinstance(variable, Mapping):
        return variable.get(name)
    return getattr(variable, name, None)


def render_template(
    content: str,
    variables: Iterable[Any],
    values: Mapping[str, Any] | None = None,
) -> str:
    """Substitute declared variables into ``content``.

    Each ``{{name}}`` of a declared variable becomes the supplied value if
    non-empty, else the variable's default if non-empty, else stays as the
    literal placeholder. Variables may be ORM rows or plain dicts.

    Substitution happens in a single ``re.sub`` pass, so a value containing
    ``{{other}}`` is emitted verbatim and never expanded.
    """
    if not content:
        return ""
    values = values or {}

    replacements: dict[str, str] = {}
    for variable in variables:
        name = _field(variable, "name")
        if not name:
            continue
        supplied = values.get(name)
        default = _field(variable, "default_value")
        if supplied not in (None, ""):
            replacements[name] = str(supplied)
        elif default not in (None, ""):
            replacements[name] = str(default)

    if not replacements:
        return content

    def _substitute(match: re.Match) -> str:
        return replacements.get(match.group(1), match.group(0))

    return PLACEHOLDER_RE.sub(_substitute, content)


def find_unresolved(rendered: str) -> list[str]:
    """Placeholder names still present after rendering."""
    return extract_variables(rendered)


def missing_required(variables: Iterable[Any], values: Mapping[str, Any] | None = None) -> list[str]:
    """Names of required variables with neither a value nor a default."""
    values = values or {}
    missing = []
    for variable in variables:
        if not _field(variable, "required"):
            continue
        name = _field(variable, "name")
        if values.get(name) in (None, "") and _field(variable, "default_value") in (None, ""):
            missing.append(name)
    return missing
