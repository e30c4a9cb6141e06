"""
Message content for every email the service sends. Delivery goes through
claimkin.tasks so it can run on the RQ worker.
"""

from __future__ import annotations
import logging
from html import escape
from typing import Dict, Optional

from claimkin.utils.email_sender import send_email
from claimkin.utils.text import strip_html

logger = logging.getLogger(__name__)

_WRAP = (
    '<div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; '
    'max-width: 600px; margin: 0 auto; padding: 20px;">{body}</div>'
)


def deliver_email(to_email: str, subject: str, body_text: str, body_html: Optional[str] = None) -> bool:
    """Send one message; failures are logged, never raised."""
    try:
        provider, ref = send_email(
            to_email=to_email, subject=subject, body_text=body_text, body_html=body_html
        )
    except Exception:
        logger.exception("[email] send crashed to=%s subj=%s", to_email, subject)
        return False
    if provider is None:
        logger.error("[email] send failed to=%s subj=%s err=%s", to_email, subject, ref)
        return False
    logger.info("[email] sent via %s to=%s", provider, to_email)
    return True


def admin_otp_message(otp: str) -> Dict[str, str]:
    text = (
        f"Your one-time login code is: {otp}\n\n"
        "This code will expire in 10 minutes.\n\n"
        "If you didn't request this code, please ignore this email."
    )
    html = _WRAP.format(
        body=(
            "<h2>Your Admin Login Code</h2>"
            "<p>Your one-time login code is:</p>"
            f'<p style="font-size: 32px; font-weight: bold; letter-spacing: 8px;">{otp}</p>'
            "<p>This code will expire in 10 minutes.</p>"
        )
    )
    return {"subject": "Your Admin Login Code", "body_text": text, "body_html": html}


def claim_verification_message(link: str, campaign_title: Optional[str]) -> Dict[str, str]:
    title = strip_html(campaign_title) or None
    text = (
        "Please verify your email address by clicking the link below:\n\n"
        f"{link}\n\n"
        "This link will expire in 24 hours.\n"
    )
    if title:
        text += f"\nCampaign: {title}\n"
    html = _WRAP.format(
        body=(
            "<h2>Verify Your Email</h2>"
            "<p>Please verify your email address to confirm your claim.</p>"
            + (f"<p><strong>{escape(title)}</strong></p>" if title else "")
            + f'<p><a href="{escape(link)}">Verify Email</a></p>'
            "<p>This link will expire in 24 hours.</p>"
        )
    )
    return {
        "subject": f"Verify your email for {title or 'your claim'}",
        "body_text": text,
        "body_html": html,
    }


def gift_confirmation_message(
    campaign_title: Optional[str],
    gifter_name: str,
    gifter_linkedin: Optional[str] = None,
    note: Optional[str] = None,
) -> Dict[str, str]:
    title = strip_html(campaign_title) or "your gift"
    lines = [
        f"Good news! {gifter_name} sent you a gift from {title}.",
        "We have your shipping details and will let you know when it ships.",
    ]
    if note:
        lines += ["", f"A note from {gifter_name}:", note]
    if gifter_linkedin:
        lines += ["", f"Say thanks on LinkedIn: {gifter_linkedin}"]
    text = "\n".join(lines) + "\n"
    html_parts = [f"<h2>A gift from {escape(gifter_name)}</h2>"]
    html_parts += [f"<p>{escape(line)}</p>" for line in lines if line]
    return {
        "subject": f"{gifter_name} sent you a gift",
        "body_text": text,
        "body_html": _WRAP.format(body="".join(html_parts)),
    }


def admin_invite_message(inviter_name: str, login_url: str, role: str) -> Dict[str, str]:
    text = (
        f"{inviter_name} added you as an {role.replace('_', ' ')} on Claim Your Cognitive Kin.\n\n"
        f"Sign in with your email address at {login_url}\n"
        "You will receive a one-time code each time you log in.\n"
    )
    return {
        "subject": "You've been invited to Claim Your Cognitive Kin",
        "body_text": text,
        "body_html": _WRAP.format(
            body=(
                f"<p>{escape(inviter_name)} added you as an "
                f"{escape(role.replace('_', ' '))}.</p>"
                f'<p><a href="{escape(login_url)}">Sign in</a></p>'
            )
        ),
    }
