"""Profile model - users that prompts can be shared with."""
from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from promptforge.models.base import Base, TimestampMixin


class Profile(Base, TimestampMixin):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(100), nullable=True)
