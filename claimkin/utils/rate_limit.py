"""
Simple in-memory rate limiter.

Configure via RATE_LIMIT_ENABLED (default: 1) and RATE_LIMIT_PER_MINUTE (default: 60).
Auth endpoints use RATE_LIMIT_AUTH_PER_MINUTE (default: 10).
"""

from __future__ import annotations
import os
import time
from collections import defaultdict
from functools import wraps
from threading import Lock

from flask import jsonify

from claimkin.utils.request_info import client_ip

_lock = Lock()
_counts: dict[str, list[float]] = defaultdict(list)
_window = 60  # seconds


def _clean_old(ts_list: list[float], window: int) -> None:
    cutoff = time.time() - window
    while ts_list and ts_list[0] < cutoff:
        ts_list.pop(0)


def is_rate_limited(key: str, limit: int, window_seconds: int = _window) -> bool:
    """Return True if the key has exceeded the limit within the window."""
    if limit <= 0:
        return False
    with _lock:
        _clean_old(_counts[key], window_seconds)
        if len(_counts[key]) >= limit:
            return True
        _counts[key].append(time.time())
        return False


def reset() -> None:
    with _lock:
        _counts.clear()


def per_minute(env_name: str, default: int) -> int:
    try:
        return int(os.getenv(env_name, str(default)))
    except ValueError:
        return default


def rate_limit_exceeded_response(window_seconds: int = _window):
    return jsonify({"error": "rate limit exceeded", "retry_after": window_seconds}), 429


def rate_limit_decorator(env_name: str, default: int, key_prefix: str = ""):
    """Rate limit a route per client IP; the limit is read from env at request time."""

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if os.getenv("RATE_LIMIT_ENABLED", "1") != "1":
                return fn(*args, **kwargs)
            limit = per_minute(env_name, default)
            key = f"{key_prefix or fn.__name__}:{client_ip()}"
            if is_rate_limited(key, limit):
                return rate_limit_exceeded_response()
            return fn(*args, **kwargs)

        return wrapper

    return decorator
