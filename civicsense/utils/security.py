"""
Security utilities: password hashing, bearer tokens and contact masking.
"""

import logging
import re
import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import bcrypt
import jwt

from civicsense.core.settings import settings

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def hash_password(password: str) -> str:
    """Hash a password with bcrypt using the configured cost factor."""
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError as e:
        # Malformed stored hash
        logger.warning(f"Password hash check failed: {e}")
        return False


def create_access_token(claims: Dict, expires_hours: Optional[int] = None) -> str:
    """
    Create a signed JWT for an admin session.

    Args:
        claims: Payload claims (admin id, username, role, permissions)
        expires_hours: Lifetime override, defaults to JWT_EXPIRES_HOURS

    Returns:
        Encoded JWT string
    """
    now = datetime.now(timezone.utc)
    payload = dict(claims)
    payload["iat"] = now
    payload["exp"] = now + timedelta(hours=expires_hours or settings.JWT_EXPIRES_HOURS)
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict:
    """
    Decode and verify a JWT.

    Raises:
        jwt.ExpiredSignatureError: token lifetime is over
        jwt.InvalidTokenError: bad signature or malformed token
    """
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])


def generate_guest_token() -> str:
    """Random 64-character hex token for guest admin sessions."""
    return secrets.token_hex(32)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Strip the (case-insensitive) Bearer prefix from an Authorization header."""
    if not authorization or not authorization.strip():
        return None
    token = authorization.strip()
    if token.lower().startswith("bearer "):
        token = token[7:].strip()
    return token or None


def is_valid_email(value: Optional[str]) -> bool:
    return bool(value) and bool(EMAIL_PATTERN.match(value.strip()))


def mask_contact(contact: Optional[str]) -> Optional[str]:
    """
    Mask contact info for log lines.

    j.smith@city.gov -> j***@city.gov
    """
    if not contact:
        return None
    if "@" in contact:
        local, domain = contact.split("@", 1)
        return f"{local[:1]}***@{domain}"
    return contact[:2] + "***"
