"""Hashing and token helpers for OTPs, claim links, verification links and IPs."""

import hashlib
import secrets


def hash_value(value: str) -> str:
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


def hash_ip(ip: str) -> str:
    return hash_value(ip)


def generate_otp() -> str:
    """Six digits, never starting with zero."""
    return str(100000 + secrets.randbelow(900000))


def generate_verification_token() -> str:
    return secrets.token_hex(32)


def generate_claim_token() -> str:
    """URL-safe token for pre-created claim links."""
    return secrets.token_urlsafe(24)


def generate_gift_code() -> str:
    return secrets.token_urlsafe(6)
