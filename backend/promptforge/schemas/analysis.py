"""Prompt analysis request/response schemas."""
import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from promptforge.schemas.base import CamelModel, CamelORMModel


class AnalysisRequest(CamelModel):
    prompt_content: str = Field(min_length=1)


class AnalysisResponse(CamelModel):
    """Structure returned by the analyzer.

    Keys inside ``sections`` and ``metadata`` come from the model's tool
    schema and are passed through unchanged.
    """
    sections: dict[str, Any] = {}
    variables: list[dict[str, Any]] = []
    prompt_template: str = ""
    metadata: dict[str, Any] = {}
    suggested_tags: list[str] = []
    exports: dict[str, Any] = {}


class QuotaResponse(CamelModel):
    minute_remaining: int
    daily_remaining: int
    minute_limit: int
    daily_limit: int
    minute_resets_at: Optional[datetime] = None
    daily_resets_at: Optional[datetime] = None


class AnalysisHistoryEntry(CamelORMModel):
    id: uuid.UUID
    analyzed_at: datetime
    prompt_length: int
    success: bool


class AnalysisHistoryPage(CamelModel):
    data: list[AnalysisHistoryEntry]
    total: int
    page: int
    page_size: int


class DailyAnalysisStats(CamelModel):
    date: str
    count: int
    success_rate: int


class MonthlyAnalysisStats(CamelModel):
    month: str
    count: int
    success_rate: int


class AnalysisHistorySummary(CamelModel):
    total_analyses: int
    total_successful: int
    average_prompt_length: int
    first_analysis: Optional[datetime] = None
    last_analysis: Optional[datetime] = None
