"""Profile request/response schemas."""
from typing import Optional

from pydantic import Field

from promptforge.schemas.base import CamelModel, CamelORMModel


class ProfileCreate(CamelModel):
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)


class ProfileResponse(CamelORMModel):
    id: str
    email: str
    name: Optional[str] = None
