"""Prompt model - user-owned prompt templates."""
import uuid
from sqlalchemy import String, Text, Boolean, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship
from promptforge.models.base import Base, TimestampMixin, OwnerMixin


class Prompt(Base, TimestampMixin, OwnerMixin):
    __tablename__ = "prompts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[list] = mapped_column(JSON, default=list)
    visibility: Mapped[str] = mapped_column(String(20), default="PRIVATE")
    public_permission: Mapped[str] = mapped_column(String(10), default="READ")
    version: Mapped[str] = mapped_column(String(50), default="1.0.0")
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False)

    variables = relationship(
        "Variable",
        back_populates="prompt",
        cascade="all, delete-orphan",
        order_by="Variable.order_index",
        lazy="selectin",
    )
    versions = relationship(
        "Version", back_populates="prompt", cascade="all, delete-orphan",
        lazy="noload", passive_deletes=True,
    )
    shares = relationship(
        "PromptShare", back_populates="prompt", cascade="all, delete-orphan",
        lazy="noload", passive_deletes=True,
    )
