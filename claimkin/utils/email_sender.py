"""
Outgoing email through SendGrid or Amazon SES.

Configure via env:
- EMAIL_PROVIDER: "sendgrid" | "ses" (default: sendgrid if SENDGRID_API_KEY is set,
  ses if AWS credentials are set)
- DEV_EMAIL_LOG_ONLY=1 logs the subject and recipient instead of sending
- FROM_EMAIL, FROM_NAME: sender
"""

from __future__ import annotations
import logging
import os
from typing import Optional, Tuple

logger = logging.getLogger(__name__)


def _from_address() -> Tuple[str, str]:
    return (
        os.getenv("FROM_EMAIL", "no-reply@example.com"),
        os.getenv("FROM_NAME", "Claim Your Cognitive Kin"),
    )


def _provider() -> Optional[str]:
    provider = os.getenv("EMAIL_PROVIDER", "").lower()
    if provider:
        return provider
    if os.getenv("SENDGRID_API_KEY"):
        return "sendgrid"
    if os.getenv("AWS_REGION") or os.getenv("AWS_ACCESS_KEY_ID"):
        return "ses"
    return None


def send_email(
    *,
    to_email: str,
    subject: str,
    body_text: str,
    body_html: Optional[str] = None,
) -> Tuple[Optional[str], Optional[str]]:
    """
    Hand one message to the configured provider.
    Returns (provider, provider_msg_id) or (None, error_message) on failure.
    """
    if os.getenv("DEV_EMAIL_LOG_ONLY", "1") == "1":
        logger.info("[email][dev] to=%s subj=%s", to_email, subject)
        return "log", None

    from_email, from_name = _from_address()
    provider = _provider()
    if provider == "sendgrid":
        return _send_via_sendgrid(to_email, subject, body_text, body_html, from_email, from_name)
    if provider == "ses":
        return _send_via_ses(to_email, subject, body_text, body_html, from_email, from_name)
    if provider is None:
        return None, "EMAIL_PROVIDER not set and no SENDGRID_API_KEY or AWS creds"
    return None, f"Unknown EMAIL_PROVIDER: {provider}"


def _send_via_sendgrid(
    to_email: str,
    subject: str,
    body_text: str,
    body_html: Optional[str],
    from_email: str,
    from_name: str,
) -> Tuple[Optional[str], Optional[str]]:
    from sendgrid import SendGridAPIClient
    from sendgrid.helpers.mail import Content, Email, Mail, To

    api_key = os.getenv("SENDGRID_API_KEY", "").strip()
    if not api_key:
        return None, "SENDGRID_API_KEY not set"

    message = Mail(
        from_email=Email(from_email, from_name),
        to_emails=To(to_email),
        subject=subject,
        plain_text_content=Content("text/plain", body_text),
        html_content=Content("text/html", body_html or f"<pre>{body_text}</pre>"),
    )
    try:
        response = SendGridAPIClient(api_key).send(message)
    except Exception as e:
        return None, str(e)
    msg_id = None
    if response.headers:
        msg_id = response.headers.get("X-Message-Id")
    return "sendgrid", msg_id or str(response.status_code)


def _send_via_ses(
    to_email: str,
    subject: str,
    body_text: str,
    body_html: Optional[str],
    from_email: str,
    from_name: str,
) -> Tuple[Optional[str], Optional[str]]:
    import boto3
    from botocore.exceptions import BotoCoreError, ClientError

    client = boto3.client("ses", region_name=os.getenv("AWS_REGION", "us-east-1"))
    body = {"Text": {"Data": body_text, "Charset": "UTF-8"}}
    if body_html:
        body["Html"] = {"Data": body_html, "Charset": "UTF-8"}
    try:
        response = client.send_email(
            Source=f"{from_name} <{from_email}>",
            Destination={"ToAddresses": [to_email]},
            Message={"Subject": {"Data": subject, "Charset": "UTF-8"}, "Body": body},
        )
    except ClientError as e:
        return None, str(e.response.get("Error", {}).get("Message", str(e)))
    except BotoCoreError as e:
        return None, str(e)
    return "ses", response.get("MessageId") or "unknown"
