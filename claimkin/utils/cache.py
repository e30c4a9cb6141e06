import os
import redis

REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/0")
_client = None


def r():
    global _client
    if _client is None:
        _client = redis.Redis.from_url(REDIS_URL, decode_responses=True)
    return _client


def revoke_jti(jti: str, ttl_seconds: int) -> None:
    r().setex(f"jwt:revoked:{jti}", max(int(ttl_seconds), 1), "1")


def is_jti_revoked(jti: str) -> bool:
    return r().get(f"jwt:revoked:{jti}") is not None
