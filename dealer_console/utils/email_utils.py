"""
Email address cleanup for invitations.
"""

import re
from typing import Optional

from ..exceptions import ErrorCode, ValidationError

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


def sanitize_email(email: Optional[str]) -> str:
    """
    Normalize an email address pasted from a form or spreadsheet.

    Trims, lower-cases and drops non-ASCII characters (zero-width spaces and
    similar), then checks the result looks like an address.

    Raises:
        ValidationError: If nothing usable remains
    """
    cleaned = (email or "").strip().lower()
    cleaned = cleaned.encode("ascii", errors="ignore").decode("ascii")
    cleaned = "".join(ch for ch in cleaned if ch.isprintable() and not ch.isspace())

    if not cleaned or not EMAIL_PATTERN.match(cleaned):
        raise ValidationError(
            f"Invalid email address: {email!r}",
            field="email",
            error_code=ErrorCode.INVALID_FORMAT,
        )
    return cleaned
