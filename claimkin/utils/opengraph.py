"""Open Graph preview for campaign banner links, cached in Redis for a day."""

from __future__ import annotations
import json
import logging
import re
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests

from claimkin.utils.cache import r

logger = logging.getLogger(__name__)

CACHE_TTL = 86400
FETCH_TIMEOUT = 5
USER_AGENT = "Mozilla/5.0 (compatible; ClaimKin/1.0)"


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url or "")
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _meta_content(html: str, prop: str) -> Optional[str]:
    prop = re.escape(prop)
    m = re.search(
        rf"<meta[^>]*property=[\"']{prop}[\"'][^>]*content=[\"']([^\"']*)[\"']",
        html,
        re.IGNORECASE,
    )
    if m:
        return m.group(1)
    m = re.search(
        rf"<meta[^>]*content=[\"']([^\"']*)[\"'][^>]*property=[\"']{prop}[\"']",
        html,
        re.IGNORECASE,
    )
    return m.group(1) if m else None


def parse_open_graph(html: str, url: str) -> Optional[Dict[str, Any]]:
    title = _meta_content(html, "og:title")
    description = _meta_content(html, "og:description")
    image = _meta_content(html, "og:image")
    if not (title or description or image):
        return None
    return {
        "title": title,
        "description": description,
        "image": image,
        "site_name": _meta_content(html, "og:site_name"),
        "url": url,
    }


def fetch_open_graph(url: str) -> Optional[Dict[str, Any]]:
    key = f"og:{url}"
    cached = r().get(key)
    if cached:
        return json.loads(cached) or None

    try:
        resp = requests.get(url, timeout=FETCH_TIMEOUT, headers={"User-Agent": USER_AGENT})
    except requests.RequestException as e:
        logger.warning("[og] fetch failed for %s: %s", url, e)
        return None
    if not resp.ok:
        logger.warning("[og] %s returned %s", url, resp.status_code)
        return None

    data = parse_open_graph(resp.text, url)
    r().setex(key, CACHE_TTL, json.dumps(data))
    return data
