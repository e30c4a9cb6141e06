from typing import Any, Dict, Optional
from flask import abort, request


def client_ip() -> str:
    """Best-effort client IP behind Cloudflare or a reverse proxy."""
    cf = request.headers.get("CF-Connecting-IP")
    if cf:
        return cf.strip()
    real = request.headers.get("X-Real-IP")
    if real:
        return real.strip()
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.remote_addr or "unknown"


def user_agent() -> Optional[str]:
    return request.headers.get("User-Agent")


def json_body() -> Dict[str, Any]:
    """The JSON object sent with the request. A missing or unparsable body reads as {}."""
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        abort(400, description="Request body must be a JSON object")
    return body
