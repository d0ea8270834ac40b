import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

CODE_PATTERN = re.compile(r"^[A-Z][A-Z0-9_]*$")


def _normalize_code(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    code = value.strip().upper()
    if not CODE_PATTERN.match(code):
        raise ValueError(
            "Code must start with a letter and contain only letters, numbers and underscores"
        )
    return code


class UserTypeCreate(BaseModel):
    """Model for creating a user type."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=500)
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def code_must_be_valid(cls, v):
        return _normalize_code(v)


class UserTypeUpdate(BaseModel):
    """Model for partially updating a user type. The code is immutable."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    is_active: Optional[bool] = None

    @field_validator("name", "is_active")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class UserTypeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    code: str
    description: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
