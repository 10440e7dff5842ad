"""Prompt usage request/response schemas."""
import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from promptforge.schemas.base import CamelModel, CamelORMModel


class UsageCreate(CamelModel):
    success: Optional[bool] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class UsageResponse(CamelORMModel):
    id: uuid.UUID
    prompt_id: uuid.UUID
    user_id: str
    used_at: datetime
    success: Optional[bool] = None
    notes: Optional[str] = None


class PromptUsageStat(CamelModel):
    prompt_id: uuid.UUID
    title: str
    usage_count: int
    success_rate: float
