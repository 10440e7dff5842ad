"""Shared FastAPI dependencies: acting user, clock, store, LLM provider."""
import logging
import os
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from promptforge.config import settings
from promptforge.database import get_db
from promptforge.errors import AnalysisConfigError
from promptforge.services.analysis.llm import BaseLLMProvider, create_llm_provider
from promptforge.services.clock import Clock, utcnow
from promptforge.services.share_authorization import assert_session
from promptforge.services.store import PromptStore

logger = logging.getLogger(__name__)


async def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> str:
    """Acting user from the X-User-Id header. Missing means the session expired."""
    return assert_session(x_user_id.strip() if x_user_id else None)


def get_clock() -> Clock:
    return utcnow


def get_store(db: AsyncSession = Depends(get_db)) -> PromptStore:
    return PromptStore(db)


def _detect_service_account_path() -> str:
    sa_path = settings.GEMINI_SERVICE_ACCOUNT_PATH
    if sa_path and os.path.isfile(sa_path):
        return sa_path
    return ""


def get_llm_provider() -> BaseLLMProvider:
    """Build the analysis provider from env configuration.

    For Gemini an API key wins over a service account when both are set.
    """
    provider = settings.DEFAULT_LLM_PROVIDER
    if provider == "openai":
        api_key, model, sa_path = settings.OPENAI_API_KEY, settings.OPENAI_MODEL, ""
    else:
        api_key, model, sa_path = settings.GEMINI_API_KEY, settings.GEMINI_MODEL, _detect_service_account_path()

    if not api_key and not sa_path:
        raise AnalysisConfigError(f"No credentials configured for provider '{provider}'")
    try:
        return create_llm_provider(
            provider,
            api_key=api_key,
            model_name=model,
            temperature=settings.ANALYSIS_TEMPERATURE,
            service_account_path=sa_path,
            timeout=settings.ANALYSIS_PROVIDER_TIMEOUT,
        )
    except (ValueError, FileNotFoundError) as e:
        logger.error("Could not create LLM provider %s: %s", provider, e)
        raise AnalysisConfigError(str(e))
