"""Prompt usage reporting and statistics API routes."""
import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query

from promptforge.dependencies import get_clock, get_current_user_id, get_store
from promptforge.schemas.usage import PromptUsageStat, UsageCreate, UsageResponse
from promptforge.services.store import PromptStore
from promptforge.services.usage import PromptUsageService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["usage"])


def _service(store: PromptStore = Depends(get_store), clock=Depends(get_clock)) -> PromptUsageService:
    return PromptUsageService(store, clock)


@router.post("/api/prompts/{prompt_id}/usage", response_model=UsageResponse, status_code=201)
async def record_usage(
    prompt_id: uuid.UUID,
    body: UsageCreate,
    user_id: str = Depends(get_current_user_id),
    service: PromptUsageService = Depends(_service),
):
    """Report that the caller ran this prompt, optionally with its outcome."""
    return await service.record_usage(prompt_id, user_id, body.success, body.notes)


@router.get("/api/stats/prompt-usage", response_model=list[PromptUsageStat])
async def prompt_usage_stats(
    limit: Optional[int] = Query(None, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
    service: PromptUsageService = Depends(_service),
):
    """Usage count and success rate per owned prompt, most used first."""
    return await service.usage_stats(user_id, limit)
