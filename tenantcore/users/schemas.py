from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from tenantcore.auth.passwords import check_password_bytes
from tenantcore.organizations.schemas import OrganizationOut
from tenantcore.user_types.schemas import UserTypeOut

Gender = Literal["male", "female", "other"]


class UserCreate(BaseModel):
    """Model for creating a user from the admin API."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    phone: Optional[str] = None
    gender: Optional[Gender] = None
    profile_picture: Optional[str] = None
    user_type_id: int
    organization_id: int

    @field_validator("email")
    @classmethod
    def email_lower(cls, v):
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v):
        return check_password_bytes(v)


class UserUpdate(BaseModel):
    """Model for partially updating a user. Password changes go through /auth."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    gender: Optional[Gender] = None
    profile_picture: Optional[str] = None
    user_type_id: Optional[int] = None

    @field_validator("email")
    @classmethod
    def email_lower(cls, v):
        return v.lower() if v is not None else v

    @field_validator("first_name", "last_name", "email", "user_type_id")
    @classmethod
    def not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class UserOut(BaseModel):
    """Model for user information returned to clients."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    uuid: str
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: Optional[str] = None
    gender: Optional[str] = None
    profile_picture: Optional[str] = None
    user_type_id: int
    organization_id: int
    user_type: Optional[UserTypeOut] = None
    organization: Optional[OrganizationOut] = None
    created_at: datetime
    updated_at: datetime
    deleted_at: Optional[datetime] = None
