"""
Authentication flows.

AuthService composes the password, token and session services with the
email sender to implement register, login, token refresh, logout and the
password reset / change flows.
"""
from datetime import timedelta
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tenantcore.auth.jwt import JwtTokens, TokenService
from tenantcore.auth.passwords import PasswordService
from tenantcore.auth.schemas import (
    AuthResult,
    ChangePasswordRequest,
    ForgotPasswordRequest,
    LoginRequest,
    RegisterRequest,
    ResetPasswordRequest,
)
from tenantcore.auth.sessions import SessionService
from tenantcore.base_microservice import BaseMicroservice, utcnow
from tenantcore.database.models import Organization, PasswordReset, Session, User, UserType
from tenantcore.notifications.email_service import EmailService
from tenantcore.users.schemas import UserOut

FORGOT_PASSWORD_MESSAGE = "If the email exists, a reset link has been sent"
DEFAULT_USER_TYPE_CODE = "USER"


def parse_device_type(user_agent: Optional[str]) -> Optional[str]:
    """Classify a User-Agent header as mobile, tablet or desktop."""
    if not user_agent:
        return None
    ua = user_agent.lower()
    if "mobile" in ua or "android" in ua or "iphone" in ua:
        return "mobile"
    if "tablet" in ua or "ipad" in ua:
        return "tablet"
    return "desktop"


def _expires_in_words(seconds: int) -> str:
    hours = max(1, round(seconds / 3600))
    return f"{hours} hour{'s' if hours > 1 else ''}"


class AuthService(BaseMicroservice):
    def __init__(
        self,
        db: AsyncSession,
        email_service: Optional[EmailService] = None,
        password_service: Optional[PasswordService] = None,
        token_service: Optional[TokenService] = None,
    ):
        super().__init__(name="auth")
        self.db = db
        self.passwords = password_service or PasswordService()
        self.tokens = token_service or TokenService()
        self.sessions = SessionService(db)
        self.email_service = email_service or EmailService()

    # --- lookups ---

    async def _find_live_user_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(func.lower(User.email) == email.lower(), User.deleted_at.is_(None))
        )
        return result.scalar_one_or_none()

    async def _resolve_user_type(self, user_type_id: Optional[int]) -> int:
        if user_type_id:
            user_type = await self.db.get(UserType, user_type_id)
            if user_type is None or not user_type.is_active:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User type not found")
            return user_type.id

        result = await self.db.execute(
            select(UserType).where(UserType.code == DEFAULT_USER_TYPE_CODE, UserType.is_active.is_(True))
        )
        default_type = result.scalar_one_or_none()
        if default_type is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Default user type not found")
        return default_type.id

    async def _create_session_and_tokens(
        self, user: User, ip_address: Optional[str], user_agent: Optional[str]
    ) -> JwtTokens:
        session = await self.sessions.create(
            user_id=user.id,
            expires_at=utcnow() + timedelta(seconds=self.tokens.refresh_token_ttl),
            ip_address=ip_address,
            user_agent=user_agent,
            device_type=parse_device_type(user_agent),
        )
        return self.tokens.generate_tokens(
            user_id=user.id,
            user_uuid=user.uuid,
            email=user.email,
            organization_id=user.organization_id,
            user_type_code=user.user_type_code,
            session_hash=session.hash,
        )

    # --- flows ---

    async def register(
        self, dto: RegisterRequest, ip_address: Optional[str] = None, user_agent: Optional[str] = None
    ) -> AuthResult:
        """
        Register a new user and open a session for them.

        Raises:
            HTTPException: 409 if the email is taken, 404 if the organization
                or user type does not exist
        """
        if await self._find_live_user_by_email(dto.email):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

        organization = await self.db.get(Organization, dto.organization_id)
        if organization is None or organization.deleted_at is not None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Organization not found")

        user_type_id = await self._resolve_user_type(dto.user_type_id)

        user = User(
            first_name=dto.first_name,
            last_name=dto.last_name,
            email=dto.email.lower(),
            phone=dto.phone,
            gender=dto.gender,
            password=self.passwords.hash(dto.password),
            organization_id=organization.id,
            user_type_id=user_type_id,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user, attribute_names=["user_type", "organization"])
        self.log_event("user.registered", {"user_id": user.id, "email": user.email})

        try:
            await self.email_service.send_welcome_email(
                user.email, user.first_name, organization_name=organization.name
            )
        except Exception as e:
            # Registration succeeds even when the welcome email does not
            self.log_error(e, context="Welcome email")

        tokens = await self._create_session_and_tokens(user, ip_address, user_agent)
        return AuthResult(user=UserOut.model_validate(user), **tokens.model_dump())

    async def login(
        self, dto: LoginRequest, ip_address: Optional[str] = None, user_agent: Optional[str] = None
    ) -> AuthResult:
        user = await self._find_live_user_by_email(dto.email)
        if user is None or not self.passwords.compare(dto.password, user.password):
            self.log_event("user.login.failed", {"email": dto.email})
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password",
            )

        tokens = await self._create_session_and_tokens(user, ip_address, user_agent)
        self.log_event("user.login", {"user_id": user.id})
        return AuthResult(user=UserOut.model_validate(user), **tokens.model_dump())

    async def refresh_token(
        self, refresh_token: str, ip_address: Optional[str] = None, user_agent: Optional[str] = None
    ) -> JwtTokens:
        """
        Issue a new token pair for the session the refresh token belongs to.

        The session hash is kept, so the refreshed tokens stay revocable
        through the same session row.
        """
        payload = self.tokens.verify_token(refresh_token)
        if payload.type != "refresh":
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")

        session = await self.sessions.validate(payload.session_hash, payload.sub)
        if session is None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired session")

        user = await self.db.get(User, payload.sub)
        if user is None or user.deleted_at is not None:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

        tokens = self.tokens.generate_tokens(
            user_id=user.id,
            user_uuid=user.uuid,
            email=user.email,
            organization_id=user.organization_id,
            user_type_code=user.user_type_code,
            session_hash=session.hash,
        )

        session.ip_address = ip_address or session.ip_address
        session.user_agent = user_agent or session.user_agent
        await self.sessions.update_activity(session)
        self.log_event("token.refreshed", {"user_id": user.id})
        return tokens

    async def logout(self, session_hash: str) -> Dict[str, Any]:
        await self.sessions.revoke(session_hash)
        self.log_event("session.revoked", {"session": session_hash})
        return {"success": True}

    async def logout_all(self, user_id: int) -> Dict[str, Any]:
        await self.sessions.revoke_all_for_user(user_id)
        self.log_event("session.revoked_all", {"user_id": user_id})
        return {"success": True}

    async def forgot_password(self, dto: ForgotPasswordRequest) -> Dict[str, Any]:
        """Start a password reset. The reply is the same whether or not the email exists."""
        user = await self._find_live_user_by_email(dto.email)
        if user is None:
            return {"success": True, "message": FORGOT_PASSWORD_MESSAGE}

        await self.db.execute(
            update(PasswordReset)
            .where(PasswordReset.user_id == user.id, PasswordReset.is_used.is_(False))
            .values(is_used=True)
        )
        reset_token = self.passwords.generate_reset_token()
        expires_in = self.settings.password_reset_expires_in
        self.db.add(PasswordReset(
            user_id=user.id,
            token=reset_token,
            expires_at=utcnow() + timedelta(seconds=expires_in),
        ))
        await self.db.commit()
        self.log_event("password.reset_requested", {"user_id": user.id})

        reset_link = f"{self.settings.frontend_domain}/reset-password?token={reset_token}"
        try:
            await self.email_service.send_password_reset_email(
                user.email, user.first_name, reset_link, _expires_in_words(expires_in)
            )
        except Exception as e:
            self.log_error(e, context="Password reset email")

        return {"success": True, "message": FORGOT_PASSWORD_MESSAGE}

    async def reset_password(self, dto: ResetPasswordRequest) -> Dict[str, Any]:
        result = await self.db.execute(
            select(PasswordReset).where(PasswordReset.token == dto.token, PasswordReset.is_used.is_(False))
        )
        password_reset = result.scalar_one_or_none()
        if password_reset is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid or expired reset token")

        if password_reset.is_expired:
            password_reset.is_used = True
            await self.db.commit()
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Reset token has expired")

        await self.db.execute(
            update(User)
            .where(User.id == password_reset.user_id)
            .values(password=self.passwords.hash(dto.new_password), updated_at=utcnow())
        )
        password_reset.is_used = True
        password_reset.used_at = utcnow()
        await self.db.commit()

        await self.sessions.revoke_all_for_user(password_reset.user_id)
        self.log_event("password.reset", {"user_id": password_reset.user_id})
        return {"success": True, "message": "Password reset successfully"}

    async def change_password(self, user_id: int, dto: ChangePasswordRequest) -> Dict[str, Any]:
        user = await self.db.get(User, user_id)
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        if not self.passwords.compare(dto.current_password, user.password):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password is incorrect")

        user.password = self.passwords.hash(dto.new_password)
        await self.db.commit()
        self.log_event("password.changed", {"user_id": user_id})
        return {"success": True, "message": "Password changed successfully"}

    async def get_active_sessions(self, user_id: int) -> List[Session]:
        return await self.sessions.get_active_for_user(user_id)

    async def revoke_session(self, user_id: int, session_hash: str) -> Dict[str, Any]:
        if not await self.sessions.revoke_by_hash_and_user(session_hash, user_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
        self.log_event("session.revoked", {"user_id": user_id, "session": session_hash})
        return {"success": True, "message": "Session revoked successfully"}
