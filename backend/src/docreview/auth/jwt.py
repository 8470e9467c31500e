"""JWT token generation and validation

This module handles JWT access token creation and validation for authentication.

JWT Token Claims Structure:
- sub: User ID (opaque string)
- role: Role at the time the token was issued. Informational only; every
  authorization decision re-resolves the role through the RoleResolver so
  that role changes and account deletion take effect before token expiry.
- email: User's email address
- iat / exp: Issued-at and expiration timestamps

Security Properties:
- Algorithm: HS256 (HMAC-SHA256 symmetric signing)
- Secret: JWT_SECRET setting (minimum 256 bits)
- No refresh tokens (re-login after expiry)
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Any

import jwt

from ..config import get_settings

ALGORITHM = "HS256"


def _get_jwt_secret() -> str:
    """Get JWT_SECRET from settings.

    Raises:
        ValueError: If JWT_SECRET is empty
    """
    secret = get_settings().JWT_SECRET
    if not secret:
        raise ValueError("JWT_SECRET is not configured")
    return secret


def get_jwt_expiry_minutes() -> int:
    return get_settings().JWT_EXPIRY_MINUTES


def create_access_token(user_id: str, role: str, email: str) -> str:
    """Create a JWT access token for an authenticated user.

    Args:
        user_id: User's id
        role: User's role (user, junior_reviewer, compliance_officer, admin)
        email: User's email address

    Returns:
        str: Signed JWT token
    """
    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=get_jwt_expiry_minutes())

    payload = {
        'sub': str(user_id),
        'role': role,
        'email': email,
        'iat': int(now.timestamp()),
        'exp': int(expiration.timestamp())
    }

    return jwt.encode(payload, _get_jwt_secret(), algorithm=ALGORITHM)


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
    """
    return jwt.decode(token, _get_jwt_secret(), algorithms=[ALGORITHM])
