"""
Password hashing, organizer JWTs and API key generation.
"""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Dict

import bcrypt
import jwt

from poap_gateway.config import settings

API_KEY_PREFIX = "pk_"

# bcrypt only reads the first 72 bytes; newer releases reject longer input
MAX_PASSWORD_BYTES = 72


def hash_password(password: str) -> str:
    """
    Hash a password with bcrypt (salt embedded in the result).

    Raises:
        ValueError: Password longer than MAX_PASSWORD_BYTES when UTF-8 encoded
    """
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash."""
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed hash in the database
        return False


def create_access_token(organizer_id: str, email: str) -> str:
    """
    Issue a signed organizer token.

    Claims:
        organizerId: Organizer primary key
        email: Organizer email at issue time
        exp: Expiry (JWT_EXPIRE_HOURS from now)
    """
    expires_at = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRE_HOURS)
    payload = {
        "organizerId": organizer_id,
        "email": email,
        "exp": expires_at,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Dict:
    """
    Verify and decode an organizer token.

    Raises:
        jwt.InvalidTokenError: Bad signature, malformed token or expired
    """
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    if "organizerId" not in payload:
        raise jwt.InvalidTokenError("Token missing organizerId claim")
    return payload


def generate_api_key() -> str:
    """Opaque API key: pk_ followed by 48 hex characters."""
    return API_KEY_PREFIX + secrets.token_hex(24)


def constant_time_equals(a: str, b: str) -> bool:
    return secrets.compare_digest(a.encode("utf-8"), b.encode("utf-8"))
