"""AnalysisQuota model - per-user counters gating the LLM analysis call."""
from datetime import datetime
from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from promptforge.models.base import Base


class AnalysisQuota(Base):
    __tablename__ = "analysis_quotas"

    user_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    minute_count: Mapped[int] = mapped_column(Integer, default=0)
    minute_reset_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    daily_count: Mapped[int] = mapped_column(Integer, default=0)
    daily_reset_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
