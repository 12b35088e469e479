"""Security utilities: URL validation and secret masking."""

from __future__ import annotations

import re

from pydantic import HttpUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from copy_forge.errors import ValidationError

_HTTP_URL = TypeAdapter(HttpUrl)

# Things that look like bearer tokens / API keys in free text
SECRET_PATTERNS = [
    re.compile(r"sl\.[A-Za-z0-9_-]{20,}"),  # Dropbox short-lived token
    re.compile(r"AIza[0-9A-Za-z_-]{30,}"),  # Google API key
    re.compile(r"ya29\.[0-9A-Za-z_-]{20,}"),  # Google OAuth access token
    re.compile(r"eyJ[a-zA-Z0-9_-]{50,}"),  # JWT
]


def validate_url(url: str) -> str:
    """Validate that ``url`` is an absolute http(s) URL with a host.

    Returns the URL stripped of surrounding whitespace; raises ValidationError otherwise.
    """
    candidate = (url or "").strip()
    if not candidate:
        raise ValidationError("URL must not be empty")
    try:
        parsed = _HTTP_URL.validate_python(candidate)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid URL '{candidate}': {e.errors()[0]['msg']}") from e
    if not parsed.host:
        raise ValidationError(f"Invalid URL '{candidate}': missing host")
    return candidate


def mask_secret(value: str | None, visible: int = 4) -> str:
    """Mask a secret for logging, keeping the last few characters."""
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return "*" * 8 + value[-visible:]


def redact_secrets(text: str) -> str:
    """Replace anything that looks like a token in free text."""
    for pattern in SECRET_PATTERNS:
        text = pattern.sub("[REDACTED]", text)
    return text
