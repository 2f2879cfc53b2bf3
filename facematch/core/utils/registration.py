"""Registration number generation."""
import secrets
import string
from datetime import datetime, timezone
from typing import Optional

REGISTRATION_ALPHABET = string.digits + string.ascii_uppercase
SUFFIX_LENGTH = 6


def generate_registration_number(now: Optional[datetime] = None) -> str:
    """Generate a devotee registration number such as ``KM2026-7Q2XKD``.

    Args:
        now: Reference time for the year part (defaults to the current UTC time)

    Returns:
        "KM<year>-" followed by 6 random characters from 0-9A-Z
    """
    year = (now or datetime.now(timezone.utc)).year
    suffix = "".join(secrets.choice(REGISTRATION_ALPHABET) for _ in range(SUFFIX_LENGTH))
    return f"KM{year}-{suffix}"
