"""
SQLAlchemy models for tenantcore.

This module defines the tables shared by every service:
- Organizations (tenants)
- User types (roles)
- Users
- Login sessions
- Password reset tokens
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tenantcore.base_microservice import Base, utcnow


def new_uuid() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    """Columns present on every table."""
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )


class UserType(TimestampMixin, Base):
    """User type (role) model. Codes are stored upper-case."""
    __tablename__ = "user_type"

    name: Mapped[str] = mapped_column(String, nullable=False)
    code: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
    description: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)


class Organization(TimestampMixin, Base):
    """Organization (tenant) model."""
    __tablename__ = "organization"

    uuid: Mapped[str] = mapped_column(String(36), default=new_uuid, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    website: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


class User(TimestampMixin, Base):
    """User model. Belongs to one organization and has one user type."""
    __tablename__ = "user"
    __table_args__ = (
        # Email is unique among live users only
        Index(
            "ix_user_email_live",
            "email",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
    )

    uuid: Mapped[str] = mapped_column(String(36), default=new_uuid, nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String, nullable=False)
    last_name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    password: Mapped[str] = mapped_column(String, nullable=False)
    gender: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    profile_picture: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    deleted_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    user_type_id: Mapped[int] = mapped_column(ForeignKey("user_type.id"), nullable=False)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organization.id"), nullable=False)

    # Relationships
    user_type: Mapped[UserType] = relationship(lazy="selectin")
    organization: Mapped[Organization] = relationship(lazy="selectin")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def user_type_code(self) -> str:
        return self.user_type.code if self.user_type is not None else ""


class Session(TimestampMixin, Base):
    """One row per login; the hash is embedded in every token issued for it."""
    __tablename__ = "session"

    hash: Mapped[str] = mapped_column(String(36), default=new_uuid, nullable=False, unique=True, index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False, index=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    ip_address: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    user_agent: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    device_type: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    last_activity_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    revoked_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    @property
    def is_expired(self) -> bool:
        return utcnow() > self.expires_at

    @property
    def is_valid(self) -> bool:
        return bool(self.is_active) and self.revoked_at is None and not self.is_expired


class PasswordReset(TimestampMixin, Base):
    """Single-use password reset token."""
    __tablename__ = "password_reset"

    uuid: Mapped[str] = mapped_column(String(36), default=new_uuid, nullable=False, unique=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("user.id"), nullable=False)
    token: Mapped[str] = mapped_column(String, nullable=False, index=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    is_used: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    used_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    @property
    def is_expired(self) -> bool:
        return utcnow() > self.expires_at
