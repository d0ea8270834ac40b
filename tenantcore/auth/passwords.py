"""
Password hashing and reset-token generation.
"""
import secrets
from typing import Optional

import bcrypt

from tenantcore.config import get_settings

# bcrypt only reads the first 72 bytes and newer releases reject longer input
MAX_PASSWORD_BYTES = 72


def check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must not exceed {MAX_PASSWORD_BYTES} bytes")
    return value


class PasswordService:
    """bcrypt hashing with the configured cost factor."""

    def __init__(self, salt_rounds: Optional[int] = None):
        self.salt_rounds = salt_rounds or get_settings().bcrypt_salt_rounds

    def hash(self, password: str) -> str:
        """Generate password hash using bcrypt."""
        return bcrypt.hashpw(
            password.encode("utf-8"),
            bcrypt.gensalt(rounds=self.salt_rounds),
        ).decode("utf-8")

    def compare(self, plain_password: str, hashed_password: str) -> bool:
        """Check if provided password matches the stored hash."""
        try:
            return bcrypt.checkpw(
                plain_password.encode("utf-8"),
                hashed_password.encode("utf-8"),
            )
        except ValueError:
            # Malformed hash or password longer than bcrypt accepts
            return False

    def generate_reset_token(self) -> str:
        return secrets.token_hex(32)
