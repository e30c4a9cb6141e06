"""
Background tasks for RQ (Redis Queue).

Run worker: rq worker -u $REDIS_URL default
"""

from __future__ import annotations
import logging
import os
from typing import Optional

from claimkin.services.email_service import deliver_email
from claimkin.utils.cache import REDIS_URL

logger = logging.getLogger(__name__)


def enqueue_email(
    to_email: str, subject: str, body_text: str, body_html: Optional[str] = None
) -> bool:
    """
    Enqueue deliver_email for background processing.
    Returns True if enqueued, False if run synchronously (no queue).
    """
    use_queue = os.getenv("USE_EMAIL_QUEUE", "0") == "1"
    if not use_queue:
        deliver_email(to_email, subject, body_text, body_html)
        return False

    try:
        from redis import Redis
        from rq import Queue

        conn = Redis.from_url(REDIS_URL, decode_responses=False)
        q = Queue("default", connection=conn)
        q.enqueue(deliver_email, to_email, subject, body_text, body_html, job_timeout="2m")
        return True
    except Exception as e:
        logger.warning("[email] RQ enqueue failed (%s), sending inline", e)
        deliver_email(to_email, subject, body_text, body_html)
        return False


def send_message(to_email: str, message: dict) -> bool:
    return enqueue_email(
        to_email, message["subject"], message["body_text"], message.get("body_html")
    )
