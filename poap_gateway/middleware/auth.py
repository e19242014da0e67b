"""
Authentication Dependencies
===========================

Two schemes are accepted:
- Authorization: Bearer <jwt>     organizer dashboard operations
- Authorization: ApiKey <key>     server-to-server integrations

Both resolve to an AuthContext bound to one organizer. Every organizer-scoped
query filters on AuthContext.organizer_id.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

import jwt
from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from poap_gateway.db.database import get_db
from poap_gateway.models import ApiKey, Organizer
from poap_gateway.models.common import utcnow
from poap_gateway.utils.security import decode_access_token

logger = logging.getLogger(__name__)


@dataclass
class AuthContext:
    organizer_id: str
    email: str
    tier: str
    name: str
    role: str = "admin"
    api_key_id: Optional[str] = None


def _authorization_header(request: Request) -> str:
    return request.headers.get("authorization", "")


def authenticate(request: Request, db: Session = Depends(get_db)) -> AuthContext:
    """Resolve a Bearer JWT to its (active) organizer."""
    header = _authorization_header(request)
    parts = header.split(" ", 1)
    token = parts[1].strip() if len(parts) == 2 and parts[0].lower() == "bearer" else None

    if not token:
        raise HTTPException(status_code=401, detail="Access token required")

    try:
        payload = decode_access_token(token)
    except jwt.InvalidTokenError as e:
        logger.debug(f"Rejected token: {e}")
        raise HTTPException(status_code=403, detail="Invalid token")

    organizer = db.get(Organizer, payload["organizerId"])
    if organizer is None or not organizer.is_active:
        raise HTTPException(status_code=401, detail="Invalid or inactive organizer")

    return AuthContext(
        organizer_id=organizer.id,
        email=organizer.email,
        tier=organizer.tier,
        name=organizer.name,
    )


def authenticate_api_key(request: Request, db: Session = Depends(get_db)) -> AuthContext:
    """Resolve an `ApiKey <key>` header and stamp the key's last use."""
    header = _authorization_header(request)
    api_key = header[len("ApiKey "):].strip() if header.startswith("ApiKey ") else None

    if not api_key:
        raise HTTPException(
            status_code=401,
            detail="API key required. Use header: Authorization: ApiKey <your-key>",
        )

    record = (
        db.query(ApiKey)
        .filter(ApiKey.key == api_key, ApiKey.is_active.is_(True))
        .first()
    )
    if record is None or not record.organizer.is_active:
        raise HTTPException(status_code=401, detail="Invalid or inactive API key")

    record.last_used_at = utcnow()
    db.commit()

    organizer = record.organizer
    return AuthContext(
        organizer_id=organizer.id,
        email=organizer.email,
        tier=organizer.tier,
        name=organizer.name,
        role="api",
        api_key_id=record.id,
    )


def require_role(roles: List[str], dependency=authenticate):
    """
    Dependency factory: the context resolved by `dependency` must hold one of `roles`.

    Example:
        @router.get("/campaigns")
        def list_campaigns(auth: AuthContext = Depends(require_role(["api"], authenticate_api_key))):
            ...
    """

    def checker(auth: AuthContext = Depends(dependency)) -> AuthContext:
        if auth.role not in roles:
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return auth

    return checker
