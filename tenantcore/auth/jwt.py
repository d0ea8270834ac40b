"""
JWT token handling for authentication.

This module provides functionality for:
- Creating access/refresh token pairs bound to a login session
- Verifying tokens
- Decoding tokens without verification
"""
import time
from datetime import datetime, timedelta
from typing import Any, Dict, Literal, Optional

import jwt
from fastapi import HTTPException, status
from jwt.exceptions import ExpiredSignatureError, PyJWTError
from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic.alias_generators import to_camel

from tenantcore.base_microservice import utcnow
from tenantcore.config import get_settings

TokenType = Literal["access", "refresh"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class JwtTokens(CamelModel):
    """Token pair returned to clients."""
    access_token: str
    refresh_token: str
    access_token_expires_at: datetime
    refresh_token_expires_at: datetime


class JwtPayload(CamelModel):
    """Claims carried by both token types."""
    sub: int
    uuid: str
    email: str
    organization_id: int
    user_type_code: str
    session_hash: str
    type: TokenType
    iat: Optional[int] = None
    exp: Optional[int] = None


class TokenService:
    """
    Signs and verifies the access/refresh pair.

    Both tokens carry the session hash, so revoking the session row
    invalidates them before they expire.
    """

    def __init__(
        self,
        secret: Optional[str] = None,
        access_token_expires_in: Optional[int] = None,
        refresh_token_expires_in: Optional[int] = None,
        algorithm: Optional[str] = None,
    ):
        settings = get_settings()
        self.secret = secret or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm
        self.access_token_expires_in = access_token_expires_in or settings.access_token_expires_in
        self.refresh_token_expires_in = refresh_token_expires_in or settings.refresh_token_expires_in

    @property
    def access_token_ttl(self) -> int:
        return self.access_token_expires_in

    @property
    def refresh_token_ttl(self) -> int:
        return self.refresh_token_expires_in

    def _sign(self, claims: Dict[str, Any], token_type: TokenType, ttl: int) -> str:
        now = int(time.time())
        to_encode = dict(claims, type=token_type, iat=now, exp=now + ttl)
        return jwt.encode(to_encode, self.secret, algorithm=self.algorithm)

    def generate_tokens(
        self,
        user_id: int,
        user_uuid: str,
        email: str,
        organization_id: int,
        user_type_code: str,
        session_hash: str,
    ) -> JwtTokens:
        """
        Create both access and refresh tokens for a session.

        Args:
            user_id: User's ID, stored as the ``sub`` claim
            user_uuid: User's public UUID
            email: User's email
            organization_id: Organization the user belongs to
            user_type_code: Code of the user's type (role)
            session_hash: Hash of the session row the tokens belong to

        Returns:
            JwtTokens with both tokens and their expiry instants
        """
        claims = {
            # PyJWT requires a string subject
            "sub": str(user_id),
            "uuid": user_uuid,
            "email": email,
            "organizationId": organization_id,
            "userTypeCode": user_type_code,
            "sessionHash": session_hash,
        }
        now = utcnow()
        return JwtTokens(
            access_token=self._sign(claims, "access", self.access_token_expires_in),
            refresh_token=self._sign(claims, "refresh", self.refresh_token_expires_in),
            access_token_expires_at=now + timedelta(seconds=self.access_token_expires_in),
            refresh_token_expires_at=now + timedelta(seconds=self.refresh_token_expires_in),
        )

    def verify_token(self, token: str) -> JwtPayload:
        """
        Verify a JWT token and return its claims.

        Raises:
            HTTPException: 401 if the token is expired, badly signed or malformed
        """
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
            return JwtPayload.model_validate(payload)
        except ExpiredSignatureError:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Token has expired",
                headers={"WWW-Authenticate": "Bearer"},
            )
        except (PyJWTError, ValidationError):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token",
                headers={"WWW-Authenticate": "Bearer"},
            )

    def decode_token(self, token: str) -> Optional[JwtPayload]:
        """Decode claims without checking signature or expiry."""
        try:
            payload = jwt.decode(token, options={"verify_signature": False, "verify_exp": False})
            return JwtPayload.model_validate(payload)
        except (PyJWTError, ValidationError):
            return None
