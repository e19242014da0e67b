"""
Replay protection for signed claim requests.

Each nonce may be used once within NONCE_EXPIRY_SECONDS. Nonces are held in
memory, so the guarantee is per process; the claims table still refuses a
second claim by the same wallet.
"""

import threading
import time
import uuid
from typing import Dict, Optional

from poap_gateway.config import settings

_seen: Dict[str, float] = {}
_lock = threading.Lock()


def is_valid_nonce(nonce: str) -> bool:
    """Nonces must be UUID v4 strings."""
    try:
        parsed = uuid.UUID(nonce)
    except (ValueError, AttributeError, TypeError):
        return False
    return parsed.version == 4 and str(parsed) == nonce.lower()


def consume_nonce(nonce: str, now: Optional[float] = None) -> bool:
    """
    Record a nonce as used.

    Returns:
        bool: True if the nonce was fresh, False if it was already used
              within the expiry window (replay)
    """
    now = time.time() if now is None else now
    key = nonce.lower()

    with _lock:
        _purge(now)
        if key in _seen:
            return False
        _seen[key] = now + settings.NONCE_EXPIRY_SECONDS
        return True


def _purge(now: float) -> None:
    expired = [key for key, expires_at in _seen.items() if expires_at <= now]
    for key in expired:
        del _seen[key]


def reset() -> None:
    with _lock:
        _seen.clear()
