"""PromptShare model - per-user access grants on a prompt."""
import uuid
from sqlalchemy import String, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from promptforge.models.base import Base, TimestampMixin


class PromptShare(Base, TimestampMixin):
    __tablename__ = "prompt_shares"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    prompt_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("prompts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    shared_with_user_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    permission: Mapped[str] = mapped_column(String(10), default="READ")
    shared_by: Mapped[str] = mapped_column(String(100), nullable=False)

    prompt = relationship("Prompt", back_populates="shares")

    __table_args__ = (
        UniqueConstraint("prompt_id", "shared_with_user_id", name="uq_prompt_share"),
    )
