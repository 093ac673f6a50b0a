"""
utils/validation_utils.py

Purpose: Input validation

- Email format and normalization
- Verification code format
- Upload filename slugs and extensions
- Free-text length checks
"""

import os
import re
from typing import Optional, Tuple


EMAIL_PATTERN = re.compile(r"^\w+([.+-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,})+$")


def normalize_email(email: Optional[str]) -> str:
    """
    Trims and lowercases an email address.
    """
    if not email:
        return ""
    return email.strip().lower()


def validate_email(email: str) -> bool:
    """
    Validates email format.

    Args:
        email: Email address (normalized or raw)

    Returns:
        True if the address looks deliverable
    """
    if not email:
        return False
    return bool(EMAIL_PATTERN.match(email.strip()))


def validate_verification_code(code: str) -> bool:
    """
    Validates email verification code format (6 hex characters).
    """
    if not code:
        return False
    return bool(re.match(r"^[0-9a-f]{6}$", code.strip().lower()))


def split_filename(filename: str) -> Tuple[str, str]:
    """
    Splits an uploaded filename into (stem, lowercased extension with dot).

    "Part A.STL" -> ("Part A", ".stl")
    """
    base = os.path.basename(filename or "")
    stem, ext = os.path.splitext(base)
    return stem, ext.lower()


def sanitize_filename(stem: str) -> str:
    """
    Reduces a filename stem to a lowercase alphanumeric/underscore slug.

    "Bracket v2 (final)" -> "bracket_v2__final_"
    """
    slug = re.sub(r"[^a-z0-9]", "_", stem or "", flags=re.IGNORECASE).lower()
    return slug or "file"


def check_max_length(value: Optional[str], max_length: int) -> bool:
    """
    True when the value is absent or within the length limit.
    """
    return value is None or len(value) <= max_length
