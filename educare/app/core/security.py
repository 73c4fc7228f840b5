"""Security utilities for EduCare Connect: password hashing and JWT token operations.

Access tokens carry the identity id as subject plus the account's session
version, so signing out (which bumps the version) invalidates every token
issued before it. Email verification tokens use the same signing key with a
distinct ``type`` claim.
"""

import secrets
import string
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext

from educare.app.core.settings import get_settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"
EMAIL_VERIFICATION_TOKEN_TYPE = "email_verification"


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def generate_temporary_password(length: Optional[int] = None) -> str:
    """Random password meeting the sign-up rules (upper, lower and digit present)."""
    size = max(length or get_settings().temporary_password_length, 8)
    alphabet = string.ascii_letters + string.digits
    while True:
        candidate = "".join(secrets.choice(alphabet) for _ in range(size))
        if (
            any(c.isupper() for c in candidate)
            and any(c.islower() for c in candidate)
            and any(c.isdigit() for c in candidate)
        ):
            return candidate


def _encode(subject: Any, token_type: str, expires_minutes: int, extra: Optional[Dict[str, Any]] = None) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    # Embed expiration claim so tokens self-expire when validated
    payload = {"sub": str(subject), "type": token_type, "exp": expire}
    if extra:
        payload.update(extra)
    return jwt.encode(payload, settings.SECRET_KEY, algorithm="HS256")


def create_access_token(user_id: int, session_version: int = 0, expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    minutes = expires_minutes if expires_minutes is not None else settings.ACCESS_TOKEN_EXPIRE_MINUTES
    return _encode(user_id, ACCESS_TOKEN_TYPE, minutes, {"ver": session_version})


def create_email_verification_token(user_id: int, expires_minutes: Optional[int] = None) -> str:
    settings = get_settings()
    minutes = expires_minutes if expires_minutes is not None else settings.email_verification_expire_minutes
    return _encode(user_id, EMAIL_VERIFICATION_TOKEN_TYPE, minutes)


def decode_token(token: str, expected_type: str = ACCESS_TOKEN_TYPE) -> Dict[str, Any]:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=["HS256"])
    except jwt.ExpiredSignatureError as exc:
        raise ValueError("Expired token") from exc
    except jwt.InvalidTokenError as exc:
        raise ValueError("Invalid token") from exc
    if payload.get("type") != expected_type:
        raise ValueError("Unexpected token type")
    return payload


def decode_access_token(token: str) -> Dict[str, Any]:
    return decode_token(token, ACCESS_TOKEN_TYPE)
