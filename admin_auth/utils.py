# (c) Copyright Datacraft, 2026
import re
import unicodedata

from fastapi import Request
from fastapi.security.utils import get_authorization_scheme_param

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
DEFAULT_DEVICE_NAME = "Security Key"
DEVICE_NAME_MAX_LENGTH = 64


def raise_on_empty(**kwargs):
    """Raises ValueError exception if at least one value of the
    key in kwargs dictionary is empty
    """
    for key, value in kwargs.items():
        if value is None or value == "" or value == {}:
            raise ValueError(
                 f"{key} is expected to be non-empty"
            )


def normalize_email(email: str | None) -> str:
    """Trim and lowercase; empty string when nothing usable was given."""
    if not email or not isinstance(email, str):
        return ""
    return email.strip().lower()


def is_email(value: str) -> bool:
    return bool(EMAIL_RE.match(value))


def display_name_from_email(email: str) -> str:
    return email.split("@", 1)[0] or email


def sanitize_device_name(name: str | None) -> str:
    """Single-line printable label of bounded length."""
    if not name:
        return DEFAULT_DEVICE_NAME
    cleaned = "".join(
        ch for ch in name
        if not unicodedata.category(ch).startswith("C")
    )
    cleaned = " ".join(cleaned.split())
    cleaned = cleaned[:DEVICE_NAME_MAX_LENGTH].strip()
    return cleaned or DEFAULT_DEVICE_NAME


def from_header(request: Request) -> str | None:
    authorization = request.headers.get("Authorization")
    scheme, token = get_authorization_scheme_param(authorization)

    if not authorization or scheme.lower() != "bearer":
        return None

    return token


def from_cookie(request: Request) -> str | None:
    cookie_name = request.app.state.settings.session_cookie_name
    return request.cookies.get(cookie_name, None)


def get_token(request: Request) -> str | None:
    return from_cookie(request) or from_header(request)
