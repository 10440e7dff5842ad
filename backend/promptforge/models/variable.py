"""Variable model - typed placeholders declared on a prompt."""
import uuid
from sqlalchemy import String, Text, Integer, Boolean, JSON, ForeignKey, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from promptforge.models.base import Base, TimestampMixin


class Variable(Base, TimestampMixin):
    __tablename__ = "variables"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    prompt_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("prompts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[str] = mapped_column(String(20), default="STRING")
    required: Mapped[bool] = mapped_column(Boolean, default=False)
    default_value: Mapped[str | None] = mapped_column(Text, nullable=True)
    help: Mapped[str | None] = mapped_column(Text, nullable=True)
    pattern: Mapped[str | None] = mapped_column(String(200), nullable=True)
    options: Mapped[list | None] = mapped_column(JSON, nullable=True)
    order_index: Mapped[int] = mapped_column(Integer, default=0)

    prompt = relationship("Prompt", back_populates="variables")

    __table_args__ = (
        UniqueConstraint("prompt_id", "name", name="uq_variable_name"),
    )
