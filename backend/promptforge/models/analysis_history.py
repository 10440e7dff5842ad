"""AnalysisHistory model - one row per analysis attempt that reached the model."""
import uuid
from datetime import datetime
from sqlalchemy import String, Integer, Boolean, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from promptforge.models.base import Base


class AnalysisHistory(Base):
    __tablename__ = "analysis_history"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    analyzed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    prompt_length: Mapped[int] = mapped_column(Integer, default=0)
    success: Mapped[bool] = mapped_column(Boolean, default=False)
