"""
Address normalization used for claim deduplication.

address_fingerprint covers the person and the address, so the same person
cannot claim twice. location_fingerprint leaves the name out and is used to
count how many different people share one address.
"""

import hashlib
import re

_punct_re = re.compile(r"[^\w\s]")
_space_re = re.compile(r"\s")

US_ZIP_RE = re.compile(r"^\d{5}(-\d{4})?$")
CA_POSTAL_RE = re.compile(r"^[A-Za-z]\d[A-Za-z][ -]?\d[A-Za-z]\d$")
UK_POSTCODE_RE = re.compile(r"^[A-Z]{1,2}\d{1,2}[A-Z]?\s?\d[A-Z]{2}$", re.IGNORECASE)


def _location_parts(address1, city, region, postal_code, country):
    return [
        _punct_re.sub("", (address1 or "").strip().lower()),
        (city or "").strip().lower(),
        (region or "").strip().lower(),
        _space_re.sub("", (postal_code or "").strip()),
        (country or "").strip().upper(),
    ]


def _digest(parts) -> str:
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()


def address_fingerprint(
    first_name: str,
    last_name: str,
    address1: str,
    city: str,
    region: str,
    postal_code: str,
    country: str,
) -> str:
    parts = [
        (first_name or "").strip().lower(),
        (last_name or "").strip().lower(),
    ] + _location_parts(address1, city, region, postal_code, country)
    return _digest(parts)


def location_fingerprint(
    address1: str, city: str, region: str, postal_code: str, country: str
) -> str:
    return _digest(_location_parts(address1, city, region, postal_code, country))


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def validate_postal_code(postal_code: str, country: str) -> bool:
    trimmed = (postal_code or "").strip()
    if country == "US":
        return bool(US_ZIP_RE.match(trimmed))
    if country == "CA":
        return bool(CA_POSTAL_RE.match(trimmed))
    if country in ("GB", "UK"):
        return bool(UK_POSTCODE_RE.match(trimmed))
    return len(trimmed) > 0
