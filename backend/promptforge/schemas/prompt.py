"""Prompt request/response schemas."""
import re
import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from promptforge.schemas.base import CamelModel, CamelORMModel
from promptforge.schemas.common import Permission, Visibility, SEMVER_PATTERN
from promptforge.schemas.limits import (
    PROMPT_CONTENT_MAX,
    PROMPT_DESCRIPTION_MAX,
    PROMPT_TITLE_MAX,
    TAG_MAX_COUNT,
    TAG_MAX_LENGTH,
    TAG_PATTERN,
    VARIABLE_MAX_COUNT,
)
from promptforge.schemas.variable import VariableInput, VariableResponse, unique_variable_names

_TAG_RE = re.compile(TAG_PATTERN)


def _clean_tags(value: Optional[list[str]]) -> Optional[list[str]]:
    if value is None:
        return None
    if len(value) > TAG_MAX_COUNT:
        raise ValueError(f"at most {TAG_MAX_COUNT} tags are allowed")
    cleaned: list[str] = []
    for tag in value:
        tag = tag.strip()
        if not tag:
            raise ValueError("tags cannot be empty")
        if len(tag) > TAG_MAX_LENGTH:
            raise ValueError(f"each tag must be at most {TAG_MAX_LENGTH} characters")
        if not _TAG_RE.match(tag):
            raise ValueError("tags may only contain letters, digits, spaces, hyphens and underscores")
        if tag not in cleaned:
            cleaned.append(tag)
    return cleaned


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class PromptCreate(CamelModel):
    title: str = Field(min_length=1, max_length=PROMPT_TITLE_MAX)
    description: Optional[str] = Field(default=None, max_length=PROMPT_DESCRIPTION_MAX)
    content: str = Field(min_length=1, max_length=PROMPT_CONTENT_MAX)
    tags: list[str] = Field(default_factory=list)
    visibility: Visibility = "PRIVATE"
    public_permission: Permission = "READ"
    version: str = Field(default="1.0.0", pattern=SEMVER_PATTERN)
    is_favorite: bool = False
    variables: list[VariableInput] = Field(default_factory=list, max_length=VARIABLE_MAX_COUNT)

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("description")
    @classmethod
    def _normalize_description(cls, value):
        return _blank_to_none(value)

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content cannot be blank")
        return value

    @field_validator("tags")
    @classmethod
    def _validate_tags(cls, value):
        return _clean_tags(value)

    @field_validator("variables")
    @classmethod
    def _unique_variable_names(cls, value):
        return unique_variable_names(value)


class PromptUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=PROMPT_TITLE_MAX)
    description: Optional[str] = Field(default=None, max_length=PROMPT_DESCRIPTION_MAX)
    content: Optional[str] = Field(default=None, min_length=1, max_length=PROMPT_CONTENT_MAX)
    tags: Optional[list[str]] = None
    variables: Optional[list[VariableInput]] = Field(default=None, max_length=VARIABLE_MAX_COUNT)

    # Conflict detection: the updated_at the editor loaded, and the explicit
    # "continue anyway" override.
    expected_updated_at: Optional[datetime] = None
    force: bool = False

    @field_validator("title", mode="before")
    @classmethod
    def _strip_title(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("description")
    @classmethod
    def _normalize_description(cls, value):
        return _blank_to_none(value)

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, value):
        if value is not None and not value.strip():
            raise ValueError("content cannot be blank")
        return value

    @field_validator("tags")
    @classmethod
    def _validate_tags(cls, value):
        return _clean_tags(value)

    @field_validator("variables")
    @classmethod
    def _unique_variable_names(cls, value):
        return unique_variable_names(value)


class VisibilityToggle(CamelModel):
    public_permission: Optional[Permission] = None


class PublicPermissionUpdate(CamelModel):
    public_permission: Permission


class PromptResponse(CamelORMModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    content: str
    tags: list[str] = []
    visibility: str
    public_permission: str
    version: str
    is_favorite: bool
    owner_id: str
    created_at: datetime
    updated_at: datetime
    variables: list[VariableResponse] = []
    permission: Optional[str] = None


class ConflictCheckResponse(CamelModel):
    has_conflict: bool
    server_updated_at: Optional[datetime] = None


class ImportRequest(CamelModel):
    content: str = Field(min_length=1, max_length=PROMPT_CONTENT_MAX * 2)
