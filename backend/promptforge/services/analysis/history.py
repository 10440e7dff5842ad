"""Per-user analysis history: recording attempts and aggregating them.

Recording fails open like the quota: a history write that fails is logged
and never turns a finished analysis into an error.
"""
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from promptforge.models.analysis_history import AnalysisHistory
from promptforge.services.clock import Clock, as_utc, utcnow

logger = logging.getLogger(__name__)


def _success_rate(total: int, successful: int) -> int:
    # Empty buckets report 100.
    return round(successful / total * 100) if total else 100


def _month_key(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def _months_back(now: datetime, count: int) -> list[tuple[int, int]]:
    """(year, month) for the ``count`` months ending with ``now``'s, oldest first."""
    index = now.year * 12 + now.month - 1
    return [divmod(i, 12) for i in range(index - count + 1, index + 1)]


class AnalysisHistoryService:
    def __init__(self, db: AsyncSession, clock: Clock = utcnow):
        self.db = db
        self.clock = clock

    async def record(self, user_id: str, prompt_length: int, success: bool) -> None:
        try:
            self.db.add(AnalysisHistory(
                user_id=user_id,
                analyzed_at=self.clock(),
                prompt_length=prompt_length,
                success=success,
            ))
            await self.db.commit()
        except SQLAlchemyError as e:
            logger.warning("Could not record analysis history for %s: %s", user_id, e)
            await self.db.rollback()

    async def _rows_since(self, user_id: str, since: Optional[datetime]) -> list[AnalysisHistory]:
        query = select(AnalysisHistory).where(AnalysisHistory.user_id == user_id)
        if since is not None:
            query = query.where(AnalysisHistory.analyzed_at >= since)
        result = await self.db.execute(query.order_by(AnalysisHistory.analyzed_at))
        return list(result.scalars().all())

    async def daily_stats(self, user_id: str, days: int = 7) -> list[dict]:
        """One bucket per calendar day (UTC) for the last ``days`` days, oldest first."""
        now = as_utc(self.clock())
        first_day = (now - timedelta(days=days - 1)).date()
        buckets = {
            (first_day + timedelta(days=i)).isoformat(): [0, 0]
            for i in range(days)
        }
        start = datetime.combine(first_day, datetime.min.time(), tzinfo=now.tzinfo)
        for row in await self._rows_since(user_id, start):
            bucket = buckets.get(as_utc(row.analyzed_at).date().isoformat())
            if bucket is None:
                continue
            bucket[0] += 1
            bucket[1] += 1 if row.success else 0
        return [
            {"date": day, "count": total, "success_rate": _success_rate(total, ok)}
            for day, (total, ok) in buckets.items()
        ]

    async def monthly_stats(self, user_id: str, months: int = 6) -> list[dict]:
        """One bucket per calendar month (UTC) for the last ``months`` months, oldest first."""
        now = as_utc(self.clock())
        keys = _months_back(now, months)
        buckets = {_month_key(year, month + 1): [0, 0] for year, month in keys}
        first_year, first_month = keys[0]
        start = datetime(first_year, first_month + 1, 1, tzinfo=now.tzinfo)
        for row in await self._rows_since(user_id, start):
            analyzed_at = as_utc(row.analyzed_at)
            bucket = buckets.get(_month_key(analyzed_at.year, analyzed_at.month))
            if bucket is None:
                continue
            bucket[0] += 1
            bucket[1] += 1 if row.success else 0
        return [
            {"month": month, "count": total, "success_rate": _success_rate(total, ok)}
            for month, (total, ok) in buckets.items()
        ]

    async def summary(self, user_id: str) -> dict:
        rows = await self._rows_since(user_id, None)
        if not rows:
            return {
                "total_analyses": 0,
                "total_successful": 0,
                "average_prompt_length": 0,
                "first_analysis": None,
                "last_analysis": None,
            }
        return {
            "total_analyses": len(rows),
            "total_successful": sum(1 for r in rows if r.success),
            "average_prompt_length": round(sum(r.prompt_length or 0 for r in rows) / len(rows)),
            "first_analysis": as_utc(rows[0].analyzed_at),
            "last_analysis": as_utc(rows[-1].analyzed_at),
        }

    async def page(self, user_id: str, page: int = 1, page_size: int = 10) -> dict:
        """Newest-first page of individual attempts."""
        total = await self.db.scalar(
            select(func.count()).select_from(AnalysisHistory).where(AnalysisHistory.user_id == user_id)
        )
        result = await self.db.execute(
            select(AnalysisHistory)
            .where(AnalysisHistory.user_id == user_id)
            .order_by(AnalysisHistory.analyzed_at.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return {
            "data": [
                {"id": r.id, "analyzed_at": as_utc(r.analyzed_at), "prompt_length": r.prompt_length, "success": r.success}
                for r in result.scalars().all()
            ],
            "total": total or 0,
            "page": page,
            "page_size": page_size,
        }
