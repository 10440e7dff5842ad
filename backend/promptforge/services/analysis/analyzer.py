"""Prompt analysis: ask the LLM to restructure a prompt, then validate it.

The model returns sections, suggested variables, a rewritten template and
metadata. Everything it sends back is checked against the same limits user
input is held to before it reaches the client.
"""
import asyncio
import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Optional

from promptforge.errors import (
    AnalysisFailedError,
    AnalysisTimeoutError,
    DomainValidationError,
    RateLimitError,
)
from promptforge.schemas.limits import (
    AI_CATEGORIES_MAX_COUNT,
    AI_CATEGORY_MAX_LENGTH,
    AI_OBJECTIVE_MAX_LENGTH,
    AI_OBJECTIVES_MAX_COUNT,
    AI_ROLE_MAX,
    AI_SECTION_MAX_LENGTH,
    AI_STEP_MAX_LENGTH,
    AI_STEPS_MAX_COUNT,
    AI_TEMPLATE_MAX_LENGTH,
    PROMPT_CONTENT_AI_ANALYSIS_MAX,
    TAG_MAX_COUNT,
    TAG_MAX_LENGTH,
    TAG_PATTERN,
    VARIABLE_DEFAULT_MAX,
    VARIABLE_HELP_MAX,
    VARIABLE_MAX_COUNT,
    VARIABLE_NAME_MAX,
    VARIABLE_OPTION_MAX_LENGTH,
    VARIABLE_OPTIONS_MAX_COUNT,
)
from promptforge.services.analysis.llm import BaseLLMProvider, LLMTimeoutError
from promptforge.services.templating import VARIABLE_NAME_AI_RE

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(TAG_PATTERN)

EXPORT_FORMAT_VERSION = "1.0"
PROVIDER_RATE_LIMIT_RETRY_AFTER = 60

SYSTEM_PROMPT = """You are a prompt engineering expert. Analyze and restructure the user's prompt.

1. READ the whole prompt. Identify its logical sections (context, role,
   instructions, output format, constraints), every {{name}} variable, the
   tone, the domain and implicit goals.
2. THINK:
   - role: one precise sentence describing the assistant's role (max 500 chars).
   - objectives: the 1-5 main goals, concise (max 400 chars each).
   - variables: list every {{name}} with type (STRING, NUMBER, ENUM, DATE,
     MULTISTRING), a functional description, an obvious default value and
     options for ENUM.
   - categories: 1-3 precise domain categories in PascalCase without spaces
     or accents (e.g. "WebDevelopment", "DataAnalysis"). Never leave this
     empty; use "General" when nothing fits.
   - prompt_template: a clearer, sectioned rewrite that keeps the meaning and
     every variable.
3. FORMAT the result as JSON matching the provided schema. Variable names may
   only use letters, digits, underscores and hyphens."""

STRUCTURE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "sections": {
            "type": "object",
            "properties": {
                "context": {"type": "string"},
                "role": {"type": "string"},
                "instructions": {"type": "string"},
                "format": {"type": "string"},
                "constraints": {"type": "string"},
            },
        },
        "variables": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "description": {"type": "string"},
                    "type": {"type": "string", "enum": ["STRING", "NUMBER", "ENUM", "DATE", "MULTISTRING"]},
                    "default_value": {"type": "string"},
                    "options": {"type": "array", "items": {"type": "string"}},
                },
                "required": ["name", "description", "type"],
            },
        },
        "prompt_template": {"type": "string"},
        "metadata": {
            "type": "object",
            "properties": {
                "role": {"type": "string"},
                "objectives": {"type": "array", "items": {"type": "string"}},
                "steps": {"type": "array", "items": {"type": "string"}},
                "criteria": {"type": "array", "items": {"type": "string"}},
                "categories": {"type": "array", "items": {"type": "string"}},
            },
            "required": ["role", "objectives"],
        },
    },
    "required": ["sections", "variables", "prompt_template", "metadata"],
}


def build_user_prompt(content: str) -> str:
    return (
        f"Analyze this prompt:\n\n{content}\n\n"
        "Extract sections (context, role, instructions), {{name}} variables and "
        "metadata (role, concise objectives, steps, criteria, categories)."
    )


def validate_input(prompt_content: Any) -> str:
    """Trimmed prompt text, or DomainValidationError."""
    if not isinstance(prompt_content, str):
        raise DomainValidationError("promptContent", "must be a string", code="ANALYSIS_INPUT_INVALID")
    trimmed = prompt_content.strip()
    if not trimmed:
        raise DomainValidationError("promptContent", "cannot be empty", code="ANALYSIS_INPUT_INVALID")
    if len(trimmed) > PROMPT_CONTENT_AI_ANALYSIS_MAX:
        raise DomainValidationError(
            "promptContent",
            f"at most {PROMPT_CONTENT_AI_ANALYSIS_MAX} characters can be analyzed",
            code="ANALYSIS_INPUT_TOO_LONG",
        )
    return trimmed


def _check_string_list(items: Any, label: str, max_count: int, max_length: int) -> None:
    if not isinstance(items, list):
        return
    if len(items) > max_count:
        raise AnalysisFailedError(f"Too many {label} (max {max_count})")
    for item in items:
        if isinstance(item, str) and len(item) > max_length:
            raise AnalysisFailedError(f"A {label} entry is too long (max {max_length} characters)")


def validate_ai_response(structured: dict) -> None:
    """Reject model output that breaks variable or metadata limits."""
    if not isinstance(structured, dict):
        raise AnalysisFailedError("Model returned no structured result")

    variables = structured.get("variables")
    if variables:
        if not isinstance(variables, list):
            raise AnalysisFailedError("variables must be a list")
        if len(variables) > VARIABLE_MAX_COUNT:
            raise AnalysisFailedError(f"Too many variables (max {VARIABLE_MAX_COUNT})")
        for index, v in enumerate(variables):
            name = v.get("name") if isinstance(v, dict) else None
            if not name or not isinstance(name, str):
                raise AnalysisFailedError(f"Variable {index}: name is required")
            if len(name) > VARIABLE_NAME_MAX:
                raise AnalysisFailedError(f"Variable {name}: name too long (max {VARIABLE_NAME_MAX})")
            if not VARIABLE_NAME_AI_RE.match(name):
                raise AnalysisFailedError(f"Variable {name}: invalid characters")
            if len(v.get("description") or "") > VARIABLE_HELP_MAX:
                raise AnalysisFailedError(f"Variable {name}: description too long (max {VARIABLE_HELP_MAX})")
            if len(v.get("default_value") or "") > VARIABLE_DEFAULT_MAX:
                raise AnalysisFailedError(f"Variable {name}: default value too long (max {VARIABLE_DEFAULT_MAX})")
            _check_string_list(v.get("options"), f"{name} options", VARIABLE_OPTIONS_MAX_COUNT, VARIABLE_OPTION_MAX_LENGTH)

    metadata = structured.get("metadata") or {}
    if len(metadata.get("role") or "") > AI_ROLE_MAX:
        raise AnalysisFailedError(f"Role too long (max {AI_ROLE_MAX} characters)")
    _check_string_list(metadata.get("objectives"), "objectives", AI_OBJECTIVES_MAX_COUNT, AI_OBJECTIVE_MAX_LENGTH)
    _check_string_list(metadata.get("steps"), "steps", AI_STEPS_MAX_COUNT, AI_STEP_MAX_LENGTH)
    categories = metadata.get("categories")
    if isinstance(categories, list):
        if len(categories) > AI_CATEGORIES_MAX_COUNT:
            raise AnalysisFailedError(f"Too many categories (max {AI_CATEGORIES_MAX_COUNT})")
        for index, category in enumerate(categories):
            if not isinstance(category, str):
                raise AnalysisFailedError(f"Category {index} must be a string")
            if not category.strip():
                raise AnalysisFailedError(f"Category {index} cannot be empty")
            if len(category) > AI_CATEGORY_MAX_LENGTH:
                raise AnalysisFailedError(f"Category '{category}' too long (max {AI_CATEGORY_MAX_LENGTH})")
            if not _TAG_RE.match(category):
                raise AnalysisFailedError(f"Category '{category}' has invalid characters")

    for section in (structured.get("sections") or {}).values():
        if isinstance(section, str) and len(section) > AI_SECTION_MAX_LENGTH:
            raise AnalysisFailedError(f"Section too long (max {AI_SECTION_MAX_LENGTH} characters)")

    if len(structured.get("prompt_template") or "") > AI_TEMPLATE_MAX_LENGTH:
        raise AnalysisFailedError(f"Template too long (max {AI_TEMPLATE_MAX_LENGTH} characters)")


def sanitize_variable_names(variables: list[dict]) -> list[dict]:
    """Hyphens are allowed from the model but not in stored variable names."""
    cleaned = []
    for v in variables or []:
        name = v.get("name")
        if isinstance(name, str) and "-" in name:
            logger.info("Renamed analyzed variable %s", name)
            v = {**v, "name": name.replace("-", "_")}
        cleaned.append(v)
    return cleaned


def rename_placeholders(value: Any, renames: dict[str, str]) -> Any:
    """Rewrite ``{{old}}`` to ``{{new}}`` in a string or any nested list/dict of strings."""
    if isinstance(value, str):
        for old, new in renames.items():
            value = value.replace("{{" + old + "}}", "{{" + new + "}}")
        return value
    if isinstance(value, list):
        return [rename_placeholders(item, renames) for item in value]
    if isinstance(value, dict):
        return {key: rename_placeholders(item, renames) for key, item in value.items()}
    return value


def sanitize_structure(structured: dict) -> dict:
    """Rename hyphenated variables and every placeholder that refers to them."""
    original = structured.get("variables") or []
    cleaned = sanitize_variable_names(original)
    renames = {
        before["name"]: after["name"]
        for before, after in zip(original, cleaned)
        if before.get("name") != after.get("name")
    }
    structured["variables"] = cleaned
    if renames:
        for key in ("prompt_template", "sections"):
            if key in structured:
                structured[key] = rename_placeholders(structured[key], renames)
    return structured


def sanitize_ai_tags(raw_tags: Optional[list]) -> list[str]:
    """Keep model categories that are valid tags; drop the rest silently."""
    if not isinstance(raw_tags, list):
        return []
    tags: list[str] = []
    for raw in raw_tags:
        if not isinstance(raw, str):
            continue
        tag = raw.strip()
        if not tag or tag in tags:
            continue
        if len(tag) > TAG_MAX_LENGTH or not _TAG_RE.match(tag):
            logger.debug("Dropped invalid analyzed tag %r", tag)
            continue
        tags.append(tag)
        if len(tags) >= TAG_MAX_COUNT:
            break
    return tags


def _markdown_section(title: str, content) -> str:
    if not content:
        return ""
    if isinstance(content, list):
        return f"## {title}\n\n" + "\n".join(f"- {item}" for item in content) + "\n\n"
    return f"## {title}\n\n{content}\n\n"


def build_markdown_export(structured: dict, original: str) -> str:
    metadata = structured.get("metadata") or {}
    parts = [
        "# Structured prompt\n\n",
        _markdown_section("Role", metadata.get("role")),
        _markdown_section("Objectives", metadata.get("objectives")),
        _markdown_section("Steps", [f"{i + 1}. {s}" for i, s in enumerate(metadata.get("steps") or [])]),
        _markdown_section("Criteria", metadata.get("criteria")),
    ]
    if metadata.get("categories"):
        parts.append(f"**Tags:** {', '.join(metadata['categories'])}\n\n")

    variables = structured.get("variables") or []
    if variables:
        parts.append("## Variables\n\n")
        for v in variables:
            parts.append(f"### {{{{{v['name']}}}}}\n\n- **Type:** {v.get('type')}\n- **Description:** {v.get('description')}\n")
            if v.get("default_value"):
                parts.append(f"- **Default:** {v['default_value']}\n")
            if v.get("options"):
                parts.append(f"- **Options:** {', '.join(v['options'])}\n")
            parts.append("\n")

    parts.append(f"## Template\n\n```\n{structured.get('prompt_template', '')}\n```\n\n")
    parts.append(f"## Original\n\n```\n{original}\n```\n")
    return "".join(p for p in parts if p)


def _is_provider_rate_limit(error: BaseException) -> bool:
    return getattr(error, "status_code", None) == 429 or getattr(error, "code", None) == 429


class PromptAnalyzer:
    def __init__(self, provider: BaseLLMProvider, client_timeout: float = 30.0):
        self.provider = provider
        self.client_timeout = client_timeout

    async def analyze(self, prompt_content: Any) -> dict:
        content = validate_input(prompt_content)
        try:
            structured = await asyncio.wait_for(
                self.provider.generate_json(
                    build_user_prompt(content), system_prompt=SYSTEM_PROMPT, json_schema=STRUCTURE_SCHEMA,
                ),
                timeout=self.client_timeout,
            )
        except (asyncio.TimeoutError, LLMTimeoutError):
            logger.warning("Prompt analysis timed out after %ss", self.client_timeout)
            raise AnalysisTimeoutError("Analysis timed out, try a shorter prompt or retry later")
        except json.JSONDecodeError as e:
            raise AnalysisFailedError(f"Model returned invalid JSON: {e}")
        except Exception as e:
            if _is_provider_rate_limit(e):
                raise RateLimitError(PROVIDER_RATE_LIMIT_RETRY_AFTER, "minute")
            logger.error("Prompt analysis failed: %s", e, exc_info=True)
            raise AnalysisFailedError(f"Analysis failed: {e}")

        validate_ai_response(structured)
        structured = sanitize_structure(structured)
        suggested_tags = sanitize_ai_tags((structured.get("metadata") or {}).get("categories"))

        return {
            "sections": structured.get("sections") or {},
            "variables": structured["variables"],
            "prompt_template": structured.get("prompt_template") or "",
            "metadata": structured.get("metadata") or {},
            "suggested_tags": suggested_tags,
            "exports": {
                "json": {
                    "version": EXPORT_FORMAT_VERSION,
                    "created_at": datetime.now(timezone.utc).isoformat(),
                    "original": content,
                    **structured,
                },
                "markdown": build_markdown_export(structured, content),
            },
        }
