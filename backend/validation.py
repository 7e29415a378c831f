"""
Email checks shared by the server stores and the waitlist client.
"""
import re
from typing import Iterable

from models import WaitlistEntry


EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def is_valid_email(value) -> bool:
    """local-part@domain with no whitespace and a dot in the domain"""
    if not isinstance(value, str):
        return False
    return EMAIL_PATTERN.fullmatch(value) is not None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def contains_email(entries: Iterable[WaitlistEntry], email: str) -> bool:
    """Case-insensitive membership test used for dedup."""
    wanted = normalize_email(email)
    return any(entry.email.lower() == wanted for entry in entries)
