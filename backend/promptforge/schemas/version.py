"""Version request/response schemas."""
import uuid
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from promptforge.schemas.base import CamelModel, CamelORMModel


class VersionCreate(CamelModel):
    bump: Literal["major", "minor", "patch"] = "patch"
    message: Optional[str] = Field(default=None, max_length=1000)


class VersionBulkDelete(CamelModel):
    version_ids: list[uuid.UUID] = Field(min_length=1)


class VersionResponse(CamelORMModel):
    id: uuid.UUID
    prompt_id: uuid.UUID
    semver: str
    content: str
    message: Optional[str] = None
    variables: list[dict] = []
    created_at: datetime


class VersionDeleteResponse(CamelModel):
    prompt_id: uuid.UUID
    deleted_count: int
    current_version: str


class DiffLineResponse(CamelModel):
    kind: str
    text: str
    old_number: Optional[int] = None
    new_number: Optional[int] = None


class DiffSummary(CamelModel):
    added: int
    removed: int
    unchanged: int


class VersionDiffResponse(CamelModel):
    old_label: str
    new_label: str
    lines: list[DiffLineResponse]
    summary: DiffSummary
    unified: str
