"""Field validation helpers for site and page configuration."""

import re
from urllib.parse import urlparse

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DOMAIN_RE = re.compile(r"^([a-z0-9]+(-[a-z0-9]+)*\.)+[a-z]{2,}$", re.IGNORECASE)
HEX_COLOR_RE = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")
PAGE_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


def is_valid_phone(phone: str) -> bool:
    """Accept 10 to 15 digits once punctuation and spaces are stripped."""
    digits = re.sub(r"\D", "", phone)
    return 10 <= len(digits) <= 15


def is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return bool(parsed.scheme and parsed.netloc)


def is_valid_domain(domain: str) -> bool:
    return bool(DOMAIN_RE.match(domain))


def is_valid_hex_color(color: str) -> bool:
    return bool(HEX_COLOR_RE.match(color))


def is_valid_page_id(page_id: str) -> bool:
    """Page ids double as file names, so only slugs are allowed."""
    return isinstance(page_id, str) and bool(PAGE_ID_RE.fullmatch(page_id))
