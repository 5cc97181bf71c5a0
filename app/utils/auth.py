"""
Authentication utilities for JWT token management and password hashing.
Provides JWT token generation, validation, and role-based claims.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from app.config import settings
import uuid


# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class TokenPayload:
    """JWT token payload structure."""

    def __init__(self, user_id: str, email: str, role: Optional[str], exp: datetime):
        self.user_id = user_id
        self.email = email
        self.role = role
        self.exp = exp

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenPayload":
        """Create TokenPayload from dictionary."""
        return cls(
            user_id=data["sub"],
            email=data["email"],
            role=data.get("role"),  # Refresh tokens carry no role
            exp=datetime.fromtimestamp(data["exp"], tz=timezone.utc)
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    role: Any,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create JWT access token with user claims.

    Args:
        user_id: User's UUID
        email: User's email address
        role: User's role (enum member or its value)
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    now = _utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    to_encode = {
        "sub": str(user_id),
        "email": email,
        "role": getattr(role, "value", role),
        "exp": expire,
        "iat": now,
        "type": "access"
    }

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def create_refresh_token(
    user_id: uuid.UUID,
    email: str,
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create JWT refresh token.

    Args:
        user_id: User's UUID
        email: User's email address
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT refresh token string
    """
    now = _utcnow()
    expire = now + (expires_delta or timedelta(days=settings.jwt_refresh_token_expire_days))

    to_encode = {
        "sub": str(user_id),
        "email": email,
        "exp": expire,
        "iat": now,
        "type": "refresh"
    }

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm
    )


def verify_token(token: str, token_type: str = "access") -> TokenPayload:
    """
    Verify and decode JWT token.

    Args:
        token: JWT token string
        token_type: Expected token type ("access" or "refresh")

    Returns:
        TokenPayload of the decoded token

    Raises:
        JWTError: If token is invalid, expired or of the wrong type
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        raise
    except Exception as e:
        raise JWTError(f"Token validation error: {str(e)}")

    if payload.get("type") != token_type:
        raise JWTError(f"Invalid token type. Expected {token_type}")

    if not payload.get("sub") or not payload.get("email"):
        raise JWTError("Invalid token payload")

    return TokenPayload.from_dict(payload)


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Raises:
        ValueError: If password is too short
    """
    if not password or len(password) < 8:
        raise ValueError("Password must be at least 8 characters long")

    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)
