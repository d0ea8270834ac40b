"""
Authentication router.

This module provides FastAPI router for authentication endpoints:
- Registration and login
- Token refresh and logout
- Password reset and change
- Session listing and revocation
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from tenantcore.auth.middleware import get_current_user
from tenantcore.auth.schemas import (
    ChangePasswordRequest,
    CurrentUser,
    ForgotPasswordRequest,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SessionOut,
)
from tenantcore.auth.service import AuthService
from tenantcore.base_microservice import ApiResponse, BaseMicroservice, get_db_session

router = APIRouter(prefix="/auth", tags=["auth"])

base_service = BaseMicroservice(name="auth")


def get_auth_service(db: AsyncSession = Depends(get_db_session)) -> AuthService:
    return AuthService(db)


def _client(request: Request):
    ip_address: Optional[str] = request.client.host if request.client else None
    return ip_address, request.headers.get("user-agent")


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    dto: RegisterRequest,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
):
    """
    Register a new user.

    Returns:
        The created user plus an access/refresh token pair
    """
    try:
        result = await auth.register(dto, *_client(request))
        return ApiResponse(result, "Registration successful", status_code=status.HTTP_201_CREATED)
    except HTTPException:
        raise
    except Exception as e:
        base_service.log_error(e, context="User registration")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed",
        )


@router.post("/login")
async def login(
    dto: LoginRequest,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
):
    try:
        result = await auth.login(dto, *_client(request))
        return ApiResponse(result, "Login successful")
    except HTTPException:
        raise
    except Exception as e:
        base_service.log_error(e, context="User login")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Login failed",
        )


@router.post("/refresh-token")
async def refresh_token(
    dto: RefreshTokenRequest,
    request: Request,
    auth: AuthService = Depends(get_auth_service),
):
    tokens = await auth.refresh_token(dto.refresh_token, *_client(request))
    return ApiResponse(tokens, "Token refreshed successfully")


@router.post("/logout")
async def logout(
    current_user: CurrentUser = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    result = await auth.logout(current_user.session_hash)
    return ApiResponse(result, "Logged out successfully")


@router.post("/logout-all")
async def logout_all(
    current_user: CurrentUser = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    result = await auth.logout_all(current_user.id)
    return ApiResponse(result, "All sessions logged out successfully")


@router.post("/forgot-password")
async def forgot_password(dto: ForgotPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    result = await auth.forgot_password(dto)
    return ApiResponse(result, result["message"])


@router.post("/reset-password")
async def reset_password(dto: ResetPasswordRequest, auth: AuthService = Depends(get_auth_service)):
    result = await auth.reset_password(dto)
    return ApiResponse(result, result["message"])


@router.post("/change-password")
async def change_password(
    dto: ChangePasswordRequest,
    current_user: CurrentUser = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    result = await auth.change_password(current_user.id, dto)
    return ApiResponse(result, result["message"])


@router.get("/sessions")
async def get_sessions(
    current_user: CurrentUser = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    sessions = await auth.get_active_sessions(current_user.id)
    return ApiResponse([SessionOut.model_validate(s) for s in sessions], "Active sessions retrieved")


@router.delete("/sessions/{session_hash}")
async def revoke_session(
    session_hash: str,
    current_user: CurrentUser = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
):
    result = await auth.revoke_session(current_user.id, session_hash)
    return ApiResponse(result, result["message"])


@router.get("/me")
async def me(current_user: CurrentUser = Depends(get_current_user)):
    return ApiResponse(current_user, "User information retrieved")


@router.get("/ping")
async def ping():
    """Health check for the auth service."""
    return ApiResponse({"service": "auth", "status": "ok"}, "pong")
