"""Per-user analysis quota: a one-minute and a one-day window.

Both paths fail open: if the quota table cannot be read or written the
user gets the full allowance and a warning is logged.
"""
import logging
import math
from datetime import timedelta
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from promptforge.errors import RateLimitError
from promptforge.models.analysis_quota import AnalysisQuota
from promptforge.services.clock import Clock, as_utc, utcnow

logger = logging.getLogger(__name__)

MINUTE_WINDOW = timedelta(minutes=1)
DAILY_WINDOW = timedelta(days=1)


class QuotaService:
    def __init__(self, db: AsyncSession, max_per_minute: int = 10, max_per_day: int = 50,
                 clock: Clock = utcnow):
        self.db = db
        self.max_per_minute = max_per_minute
        self.max_per_day = max_per_day
        self.clock = clock

    def _full_allowance(self) -> dict:
        return {
            "minute_remaining": self.max_per_minute,
            "daily_remaining": self.max_per_day,
            "minute_limit": self.max_per_minute,
            "daily_limit": self.max_per_day,
            "minute_resets_at": None,
            "daily_resets_at": None,
        }

    async def _fetch(self, user_id: str) -> Optional[AnalysisQuota]:
        result = await self.db.execute(
            select(AnalysisQuota).where(AnalysisQuota.user_id == user_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def get_quota(self, user_id: str) -> dict:
        """Remaining allowance; expired windows count as unused."""
        try:
            quota = await self._fetch(user_id)
        except SQLAlchemyError as e:
            logger.warning("Quota lookup failed for %s, granting full allowance: %s", user_id, e)
            await self.db.rollback()
            return self._full_allowance()
        if quota is None:
            return self._full_allowance()

        now = as_utc(self.clock())
        minute_reset = as_utc(quota.minute_reset_at)
        daily_reset = as_utc(quota.daily_reset_at)
        minute_used = 0 if now >= minute_reset else quota.minute_count
        daily_used = 0 if now >= daily_reset else quota.daily_count
        return {
            "minute_remaining": max(0, self.max_per_minute - minute_used),
            "daily_remaining": max(0, self.max_per_day - daily_used),
            "minute_limit": self.max_per_minute,
            "daily_limit": self.max_per_day,
            "minute_resets_at": minute_reset if now < minute_reset else None,
            "daily_resets_at": daily_reset if now < daily_reset else None,
        }

    async def consume(self, user_id: str) -> None:
        """Count one analysis call, or raise RateLimitError if a window is full."""
        now = as_utc(self.clock())
        try:
            quota = await self._fetch(user_id)
            if quota is None:
                quota = AnalysisQuota(
                    user_id=user_id,
                    minute_count=0,
                    minute_reset_at=now + MINUTE_WINDOW,
                    daily_count=0,
                    daily_reset_at=now + DAILY_WINDOW,
                )
                self.db.add(quota)
            if now >= as_utc(quota.minute_reset_at):
                quota.minute_count = 0
                quota.minute_reset_at = now + MINUTE_WINDOW
            if now >= as_utc(quota.daily_reset_at):
                quota.daily_count = 0
                quota.daily_reset_at = now + DAILY_WINDOW

            exceeded = None
            if quota.daily_count >= self.max_per_day:
                exceeded = RateLimitError(self._seconds_until(quota.daily_reset_at, now), "daily")
            elif quota.minute_count >= self.max_per_minute:
                exceeded = RateLimitError(self._seconds_until(quota.minute_reset_at, now), "minute")
            if exceeded is not None:
                await self.db.rollback()
                logger.info("Analysis quota exceeded for %s (%s)", user_id, exceeded.reason)
                raise exceeded

            quota.minute_count += 1
            quota.daily_count += 1
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.warning("Quota update failed for %s, allowing analysis: %s", user_id, e)
            await self.db.rollback()

    @staticmethod
    def _seconds_until(reset_at, now) -> int:
        return max(1, math.ceil((as_utc(reset_at) - now).total_seconds()))
