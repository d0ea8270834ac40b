"""
Authentication middleware.

This module provides FastAPI dependencies for:
- Resolving the current user from a bearer access token
- Role-based access control
- Organization (tenant) scoping
"""
import json
from typing import Any, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from tenantcore.auth.jwt import TokenService
from tenantcore.auth.schemas import CurrentUser
from tenantcore.auth.sessions import SessionService
from tenantcore.base_microservice import get_db_session
from tenantcore.database.models import User

SUPER_ADMIN = "SUPER_ADMIN"
ADMIN = "ADMIN"

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> CurrentUser:
    """
    Resolve the authenticated caller.

    The token must be an access token whose session is still valid, and
    the user must still exist and not be soft-deleted.

    Raises:
        HTTPException: 401 on any authentication failure
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Access token is required")

    payload = TokenService().verify_token(credentials.credentials)
    if payload.type != "access":
        raise _unauthorized("Invalid token type")

    sessions = SessionService(db)
    session = await sessions.validate(payload.session_hash, payload.sub)
    if session is None:
        raise _unauthorized("Session not found or has been revoked")

    user = await db.get(User, payload.sub)
    if user is None:
        raise _unauthorized("User not found")
    if user.deleted_at is not None:
        raise _unauthorized("User account has been deactivated")

    await sessions.update_activity(session)

    return CurrentUser(
        id=user.id,
        uuid=user.uuid,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        organization_id=user.organization_id,
        user_type_id=user.user_type_id,
        user_type_code=user.user_type_code,
        session_hash=session.hash,
    )


class RBACMiddleware:
    """
    Role-Based Access Control middleware.

    Creates FastAPI dependencies for protecting routes based on the
    caller's user type code.
    """

    @staticmethod
    def has_roles(*roles: str):
        """
        Dependency to check if the user has any of the specified roles.

        Args:
            roles: User type codes (any match is sufficient)

        Returns:
            Dependency function yielding the CurrentUser
        """
        async def verify_roles(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
            if current_user.user_type_code not in roles:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Role required: {', '.join(roles)}",
                )
            return current_user

        return verify_roles


require_roles = RBACMiddleware.has_roles


def _present(value: Any) -> bool:
    return value not in (None, "", 0, False)


def _as_int(value: Any) -> Optional[int]:
    try:
        return int(str(value).strip())
    except ValueError:
        return None


async def _requested_organization_id(request: Request) -> Optional[Any]:
    # Empty values fall through to the next source
    for source in (request.path_params, request.query_params):
        if _present(source.get("organizationId")):
            return source.get("organizationId")

    if request.method in ("POST", "PUT", "PATCH"):
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None
        if isinstance(body, dict) and _present(body.get("organizationId")):
            return body.get("organizationId")
    return None


async def organization_guard(
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """
    Reject requests that name another tenant's organizationId.

    Requests that name no organization pass, as do SUPER_ADMIN callers.
    """
    requested = await _requested_organization_id(request)
    if requested is None or current_user.user_type_code == SUPER_ADMIN:
        return current_user

    if _as_int(requested) != current_user.organization_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this organization's resources",
        )
    return current_user
