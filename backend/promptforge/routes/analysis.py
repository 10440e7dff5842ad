"""Prompt analysis API routes."""
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from promptforge.config import settings
from promptforge.database import get_db
from promptforge.dependencies import get_clock, get_current_user_id, get_llm_provider
from promptforge.errors import PromptForgeError
from promptforge.schemas.analysis import (
    AnalysisHistoryPage,
    AnalysisHistorySummary,
    AnalysisRequest,
    AnalysisResponse,
    DailyAnalysisStats,
    MonthlyAnalysisStats,
    QuotaResponse,
)
from promptforge.services.analysis import AnalysisHistoryService, BaseLLMProvider, PromptAnalyzer, QuotaService
from promptforge.services.analysis.analyzer import validate_input

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analysis", tags=["analysis"])


def _quota(db: AsyncSession = Depends(get_db), clock=Depends(get_clock)) -> QuotaService:
    return QuotaService(
        db,
        max_per_minute=settings.ANALYSIS_MAX_PER_MINUTE,
        max_per_day=settings.ANALYSIS_MAX_PER_DAY,
        clock=clock,
    )


def _history(db: AsyncSession = Depends(get_db), clock=Depends(get_clock)) -> AnalysisHistoryService:
    return AnalysisHistoryService(db, clock=clock)


@router.post("", response_model=AnalysisResponse)
async def analyze_prompt(
    body: AnalysisRequest,
    user_id: str = Depends(get_current_user_id),
    quota: QuotaService = Depends(_quota),
    history: AnalysisHistoryService = Depends(_history),
    provider: BaseLLMProvider = Depends(get_llm_provider),
):
    """Restructure a prompt with the configured LLM.

    Input is validated before any quota is spent; the quota is consumed
    before the model is called. Every call that reaches the model is
    recorded in the caller's history with its outcome.
    """
    content = validate_input(body.prompt_content)
    await quota.consume(user_id)
    analyzer = PromptAnalyzer(provider, client_timeout=settings.ANALYSIS_CLIENT_TIMEOUT)
    try:
        result = await analyzer.analyze(content)
    except PromptForgeError:
        await history.record(user_id, len(content), success=False)
        raise
    await history.record(user_id, len(content), success=True)
    logger.info("Analyzed prompt for %s (%d variables)", user_id, len(result["variables"]))
    return result


@router.get("/quota", response_model=QuotaResponse)
async def get_quota(
    user_id: str = Depends(get_current_user_id),
    quota: QuotaService = Depends(_quota),
):
    return await quota.get_quota(user_id)


@router.get("/history", response_model=AnalysisHistoryPage)
async def list_history(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100, alias="pageSize"),
    user_id: str = Depends(get_current_user_id),
    history: AnalysisHistoryService = Depends(_history),
):
    """The caller's analysis attempts, newest first."""
    return await history.page(user_id, page, page_size)


@router.get("/history/daily", response_model=list[DailyAnalysisStats])
async def daily_history(
    days: int = Query(7, ge=1, le=366),
    user_id: str = Depends(get_current_user_id),
    history: AnalysisHistoryService = Depends(_history),
):
    return await history.daily_stats(user_id, days)


@router.get("/history/monthly", response_model=list[MonthlyAnalysisStats])
async def monthly_history(
    months: int = Query(6, ge=1, le=60),
    user_id: str = Depends(get_current_user_id),
    history: AnalysisHistoryService = Depends(_history),
):
    return await history.monthly_stats(user_id, months)


@router.get("/history/summary", response_model=AnalysisHistorySummary)
async def history_summary(
    user_id: str = Depends(get_current_user_id),
    history: AnalysisHistoryService = Depends(_history),
):
    return await history.summary(user_id)
