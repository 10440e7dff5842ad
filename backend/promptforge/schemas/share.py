"""Share request/response schemas."""
import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field, model_validator

from promptforge.schemas.base import CamelModel, CamelORMModel
from promptforge.schemas.common import Permission


class ShareCreate(CamelModel):
    email: Optional[str] = Field(default=None, max_length=255)
    user_id: Optional[str] = Field(default=None, max_length=100)
    permission: Permission = "READ"

    @model_validator(mode="after")
    def _one_target(self):
        if not self.email and not self.user_id:
            raise ValueError("either email or userId is required")
        return self


class ShareUpdate(CamelModel):
    permission: Permission


class SharedProfile(CamelModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None


class ShareResponse(CamelORMModel):
    id: uuid.UUID
    prompt_id: uuid.UUID
    shared_with_user_id: str
    permission: str
    shared_by: str
    created_at: datetime
    shared_with_profile: Optional[SharedProfile] = None
