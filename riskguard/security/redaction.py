"""Redaction utilities for displaying credentials and user identifiers."""

from __future__ import annotations

import re

_EMAIL_PATTERN = re.compile(r"^([^@\s]+)@([^@\s]+)$")

_TEXT_REDACTIONS: list[tuple[re.Pattern[str], str]] = [
    (
        re.compile(r"(?i)\b(bearer\s+)[A-Za-z0-9._-]+"),
        r"\1[REDACTED]",
    ),
    (
        re.compile(
            r"(?i)\b((?:x-auth-key|api[_-]?key|token|secret)\s*[:=]\s*)"
            r"(\"[^\"]*\"|'[^']*'|\S+)"
        ),
        r"\1[REDACTED]",
    ),
    (
        re.compile(r"\bsk-[A-Za-z0-9_-]{8,}"),
        "[REDACTED]",
    ),
]


def mask_secret(secret: str, visible: int = 4) -> str:
    """Mask all but the last ``visible`` characters of a credential."""
    if not secret:
        return ""
    if len(secret) <= visible * 2:
        return "•" * len(secret)
    return "•" * (len(secret) - visible) + secret[-visible:]


def mask_email(email: str) -> str:
    """Keep the first character of the local part and the domain."""
    match = _EMAIL_PATTERN.match(email or "")
    if not match:
        return "[REDACTED_EMAIL]" if email else ""
    local, domain = match.groups()
    return f"{local[0]}***@{domain}"


def redact_text(text: str) -> str:
    """Mask credential-bearing tokens in free text such as error messages."""
    redacted = text
    for pattern, replacement in _TEXT_REDACTIONS:
        redacted = pattern.sub(replacement, redacted)
    return redacted
