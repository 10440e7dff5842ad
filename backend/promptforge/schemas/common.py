"""Shared Pydantic schemas."""
from typing import Literal

from pydantic import BaseModel

Visibility = Literal["PRIVATE", "SHARED"]
Permission = Literal["READ", "WRITE"]
VariableType = Literal["STRING", "NUMBER", "BOOLEAN", "ENUM", "DATE", "MULTISTRING"]

SEMVER_PATTERN = r"^[0-9]+\.[0-9]+\.[0-9]+$"


class DeleteResponse(BaseModel):
    deleted: bool = True
    id: str = ""
