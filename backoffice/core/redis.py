"""
Redis client backing the session revocation list.

Revoked session ids are stored as ``bo:session:revoked:<jti>`` keys that
expire together with the token they revoke, so the list never outgrows the
set of still-valid tokens.
"""

from __future__ import annotations

import redis.asyncio as redis

from backoffice.core.config import get_settings

REVOKED_SESSION_PREFIX = "bo:session:revoked:"

_client: redis.Redis | None = None


def revoked_session_key(jti: str) -> str:
    return f"{REVOKED_SESSION_PREFIX}{jti}"


async def get_redis() -> redis.Redis:
    """Shared client, created on first use."""
    global _client
    if _client is None:
        _client = redis.from_url(
            get_settings().redis_url,
            decode_responses=True,
            health_check_interval=30,
        )
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
