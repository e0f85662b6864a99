"""Input sanitisation helpers shared by the request schemas and services."""

import html
import re
from typing import Optional

_TAG_RE = re.compile(r"<[^>]*>")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f]")
_FILENAME_RESERVED_RE = re.compile(r'[<>:"|?*]')

EMAIL_RE = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)

_DANGEROUS_EMAIL_FRAGMENTS = ("<", ">", "javascript:", "data:", "vbscript:")


def sanitize_text(value: str) -> str:
    """Strip HTML tags, decode entities and trim surrounding whitespace."""
    if not isinstance(value, str):
        return ""
    return html.unescape(_TAG_RE.sub("", value)).strip()


def sanitize_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = sanitize_text(value)
    return cleaned or None


def sanitize_notes(value: str) -> str:
    # Notes keep their entities as typed; only markup is removed.
    if not isinstance(value, str):
        return ""
    return _TAG_RE.sub("", value).strip()


def validate_email(value: str) -> bool:
    if not isinstance(value, str) or len(value) > 254:
        return False

    parts = value.split("@")
    if len(parts) != 2:
        return False

    local_part, domain = parts
    if not local_part or len(local_part) > 64:
        return False
    if not domain or len(domain) > 253:
        return False

    lowered = value.lower()
    if any(fragment in lowered for fragment in _DANGEROUS_EMAIL_FRAGMENTS):
        return False

    return EMAIL_RE.match(value) is not None


def escape_like_pattern(value: str, escape_char: str = "\\") -> str:
    """Escape LIKE wildcards so a search term is matched literally."""
    return (
        value.replace(escape_char, escape_char * 2)
        .replace("%", f"{escape_char}%")
        .replace("_", f"{escape_char}_")
    )


def sanitize_file_name(value: str) -> str:
    if not isinstance(value, str):
        return "file"

    cleaned = value.replace("/", "").replace("\\", "").replace("..", "")
    cleaned = _FILENAME_RESERVED_RE.sub("", cleaned)
    cleaned = _CONTROL_RE.sub("", cleaned).strip()[:255]

    if not cleaned or cleaned in {".", ".."}:
        return "file"
    return cleaned
