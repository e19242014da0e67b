"""
Per-IP Rate Limiter
===================

Fixed-window request counters, keyed by (bucket, client IP):
- "api": every /api/* request, RATE_LIMIT_MAX_REQUESTS per window
- "auth": register/login attempts, AUTH_RATE_LIMIT_MAX_REQUESTS per window

Design:
- In-memory cache (per process) guarded by a threading.Lock
- Window starts at the first request of a key and lasts RATE_LIMIT_WINDOW_SECONDS
- Background task drops expired windows every hour
"""

import asyncio
import logging
import threading
import time
from typing import Dict, Optional, Tuple

from poap_gateway.config import settings

logger = logging.getLogger(__name__)

API_BUCKET = "api"
AUTH_BUCKET = "auth"

RATE_LIMIT_MESSAGES = {
    API_BUCKET: "Too many requests from this IP, please try again later.",
    AUTH_BUCKET: "Too many authentication attempts, please try again later.",
}

# Structure: {(bucket, ip): {"count": int, "reset_at": float}}
_windows: Dict[Tuple[str, str], Dict] = {}
_lock = threading.Lock()

CLEANUP_INTERVAL_SECONDS = 3600


def bucket_limit(bucket: str) -> int:
    if bucket == AUTH_BUCKET:
        return settings.AUTH_RATE_LIMIT_MAX_REQUESTS
    return settings.RATE_LIMIT_MAX_REQUESTS


def check_rate_limit(bucket: str, client_ip: str, now: Optional[float] = None) -> Tuple[bool, Dict]:
    """
    Count one request and report whether it is allowed.

    Args:
        bucket: "api" or "auth"
        client_ip: Remote address of the caller
        now: Override clock (seconds since epoch)

    Returns:
        Tuple[bool, Dict]: (allowed, stats) where stats holds
            limit, remaining and reset_at (epoch seconds)
    """
    now = time.time() if now is None else now
    limit = bucket_limit(bucket)
    key = (bucket, client_ip)

    with _lock:
        entry = _windows.get(key)
        if entry is None or now >= entry["reset_at"]:
            entry = {"count": 0, "reset_at": now + settings.RATE_LIMIT_WINDOW_SECONDS}
            _windows[key] = entry

        entry["count"] += 1
        allowed = entry["count"] <= limit

        stats = {
            "limit": limit,
            "remaining": max(limit - entry["count"], 0),
            "reset_at": entry["reset_at"],
        }

    if not allowed:
        logger.warning(f"🚫 Rate limit exceeded: bucket={bucket} ip={client_ip}")
    return allowed, stats


def cleanup_expired(now: Optional[float] = None) -> int:
    """Drop windows whose reset time has passed. Returns the number removed."""
    now = time.time() if now is None else now
    with _lock:
        expired = [key for key, entry in _windows.items() if now >= entry["reset_at"]]
        for key in expired:
            del _windows[key]

    if expired:
        logger.info(f"🧹 Cleaned up {len(expired)} expired rate limit windows")
    return len(expired)


def reset() -> None:
    """Forget every counter."""
    with _lock:
        _windows.clear()


async def rate_limiter_cleanup_task():
    """
    Background task to clean up expired rate limit windows.

    Runs every hour to keep memory bounded.
    """
    logger.info("🚀 Rate limiter cleanup task started")

    while True:
        try:
            await asyncio.sleep(CLEANUP_INTERVAL_SECONDS)
            cleanup_expired()
        except asyncio.CancelledError:
            logger.info("🛑 Rate limiter cleanup task stopped")
            raise
        except Exception as e:
            logger.exception(f"❌ Rate limiter cleanup error: {e}")
            await asyncio.sleep(60)
