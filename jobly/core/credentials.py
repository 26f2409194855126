"""One-time password generation for admin-provisioned accounts."""

from __future__ import annotations

import secrets
import string

SYMBOLS = "!@#$%^&*()-_=+[]{};:,.?"
CHARACTER_GROUPS = (string.ascii_lowercase, string.ascii_uppercase, string.digits, SYMBOLS)
MIN_PASSWORD_LENGTH = len(CHARACTER_GROUPS)


def generate_password(length: int = 12) -> str:
    """Return a random password holding at least one character from every group."""
    if length < MIN_PASSWORD_LENGTH:
        raise ValueError(f"password length must be at least {MIN_PASSWORD_LENGTH}")

    alphabet = "".join(CHARACTER_GROUPS)
    chars = [secrets.choice(group) for group in CHARACTER_GROUPS]
    chars.extend(secrets.choice(alphabet) for _ in range(length - len(chars)))

    rng = secrets.SystemRandom()
    rng.shuffle(chars)
    return "".join(chars)
