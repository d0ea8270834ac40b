"""
Request and response models for the auth endpoints.
"""
import re
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from tenantcore.auth.passwords import check_password_bytes
from tenantcore.users.schemas import Gender, UserOut

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&]).{8,}$")
PASSWORD_MESSAGE = (
    "Password must be at least 8 characters and contain an uppercase letter, "
    "a lowercase letter, a number and a special character (@$!%*?&)"
)


def check_password_strength(value: str) -> str:
    if not PASSWORD_PATTERN.match(value):
        raise ValueError(PASSWORD_MESSAGE)
    return check_password_bytes(value)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(CamelModel):
    """Model for user registration."""
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    phone: Optional[str] = None
    gender: Optional[Gender] = None
    organization_id: int
    user_type_id: Optional[int] = None

    @field_validator("email")
    @classmethod
    def email_lower(cls, v):
        return v.lower()

    @field_validator("password")
    @classmethod
    def password_must_be_strong(cls, v):
        return check_password_strength(v)


class LoginRequest(CamelModel):
    """Model for user login."""
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def email_lower(cls, v):
        return v.lower()


class RefreshTokenRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def email_lower(cls, v):
        return v.lower()


class ResetPasswordRequest(CamelModel):
    """Model for password reset confirmation."""
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=72)

    @field_validator("new_password")
    @classmethod
    def password_must_be_strong(cls, v):
        return check_password_strength(v)


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=72)

    @field_validator("new_password")
    @classmethod
    def password_must_be_strong(cls, v):
        return check_password_strength(v)


class AuthResult(CamelModel):
    """Returned by register and login."""
    user: UserOut
    access_token: str
    refresh_token: str
    access_token_expires_at: datetime
    refresh_token_expires_at: datetime


class SessionOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    hash: str
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    device_type: Optional[str] = None
    last_activity_at: Optional[datetime] = None
    expires_at: datetime
    created_at: datetime


class CurrentUser(CamelModel):
    """The authenticated caller, as resolved by ``get_current_user``."""
    id: int
    uuid: str
    email: str
    first_name: str
    last_name: str
    organization_id: int
    user_type_id: int
    user_type_code: str
    session_hash: str
