"""Local input checks shared by the resource clients.

These helpers never perform I/O; they only look at the value handed to them.
Patterns must match the whole value, so a trailing newline is rejected.
"""

import re
from typing import Optional

# Typical string identifier: organization names, resource IDs, names.
_STRING_ID_RE = re.compile(r"[a-zA-Z0-9\-._]+")

_EMAIL_RE = re.compile(r"[^@\s]+@[^@\s]+")

_VERSION_RE = re.compile(r"\d+(\.\d+)*([\-+][0-9A-Za-z.\-]+)?")


def valid_string(value: Optional[str]) -> bool:
    """Check that the value is present and non-empty."""
    return value is not None and value != ""


def valid_string_id(value: Optional[str]) -> bool:
    """Check that the value is present and looks like a string identifier."""
    return value is not None and _STRING_ID_RE.fullmatch(value) is not None


def valid_email(value: Optional[str]) -> bool:
    return value is not None and _EMAIL_RE.fullmatch(value) is not None


def valid_version(value: Optional[str]) -> bool:
    """Check for a dotted version such as ``1.2.3`` or ``0.1.0-beta``."""
    return value is not None and _VERSION_RE.fullmatch(value) is not None
