"""Variable request/response schemas."""
import re
import uuid
from typing import Optional

from pydantic import Field, field_validator

from promptforge.schemas.base import CamelModel, CamelORMModel
from promptforge.schemas.common import VariableType
from promptforge.schemas.limits import (
    VARIABLE_DEFAULT_MAX,
    VARIABLE_HELP_MAX,
    VARIABLE_MAX_COUNT,
    VARIABLE_NAME_MAX,
    VARIABLE_OPTION_MAX_LENGTH,
    VARIABLE_OPTIONS_MAX_COUNT,
    VARIABLE_PATTERN_MAX,
)


class VariableInput(CamelModel):
    name: str = Field(min_length=1, max_length=VARIABLE_NAME_MAX, pattern=r"^[a-zA-Z0-9_]+$")
    type: VariableType = "STRING"
    required: bool = False
    default_value: Optional[str] = Field(default=None, max_length=VARIABLE_DEFAULT_MAX)
    help: Optional[str] = Field(default=None, max_length=VARIABLE_HELP_MAX)
    pattern: Optional[str] = Field(default=None, max_length=VARIABLE_PATTERN_MAX)
    options: Optional[list[str]] = Field(default=None, max_length=VARIABLE_OPTIONS_MAX_COUNT)

    @field_validator("name", mode="before")
    @classmethod
    def _strip_name(cls, value):
        return value.strip() if isinstance(value, str) else value

    @field_validator("pattern")
    @classmethod
    def _pattern_compiles(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"pattern must be a valid regular expression ({exc})")
        return value

    @field_validator("options")
    @classmethod
    def _option_lengths(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is None:
            return None
        for option in value:
            if len(option) > VARIABLE_OPTION_MAX_LENGTH:
                raise ValueError(f"each option must be at most {VARIABLE_OPTION_MAX_LENGTH} characters")
        return value


def unique_variable_names(value: Optional[list[VariableInput]]) -> Optional[list[VariableInput]]:
    """Shared validator for every field that carries a variable set."""
    if value is None:
        return None
    names = [v.name for v in value]
    if len(names) != len(set(names)):
        raise ValueError("variable names must be unique")
    return value


class VariableSetUpdate(CamelModel):
    variables: list[VariableInput] = Field(default_factory=list, max_length=VARIABLE_MAX_COUNT)

    @field_validator("variables")
    @classmethod
    def _unique_names(cls, value):
        return unique_variable_names(value)


class VariableResponse(CamelORMModel):
    id: uuid.UUID
    name: str
    type: str
    required: bool
    default_value: Optional[str] = None
    help: Optional[str] = None
    pattern: Optional[str] = None
    options: Optional[list[str]] = None
    order_index: int


class RenderRequest(CamelModel):
    values: dict[str, str] = Field(default_factory=dict)


class RenderResponse(CamelModel):
    rendered: str
    detected: list[str]
    unresolved: list[str]
    missing_required: list[str]
