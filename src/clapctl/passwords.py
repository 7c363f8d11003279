"""Database password generation and validation."""

from __future__ import annotations

import re
import secrets
import string

SPECIAL_CHARACTERS = '!@#$%^&*'
MIN_PASSWORD_LENGTH = 8

_CHARACTER_CLASSES = (
    string.ascii_lowercase,
    string.ascii_uppercase,
    string.digits,
    SPECIAL_CHARACTERS,
)
_REQUIRED = (
    re.compile(r'[a-z]'),
    re.compile(r'[A-Z]'),
    re.compile(r'\d'),
    re.compile(r'[!@#$%^&*]'),
)


def generate_random_password(length: int = 12) -> str:
    """Random password with at least one character from every class."""
    if length < len(_CHARACTER_CLASSES):
        raise ValueError(f'length must be >= {len(_CHARACTER_CLASSES)}')

    alphabet = ''.join(_CHARACTER_CLASSES)
    chars = [secrets.choice(group) for group in _CHARACTER_CLASSES]
    chars.extend(secrets.choice(alphabet) for _ in range(length - len(chars)))
    secrets.SystemRandom().shuffle(chars)
    return ''.join(chars)


def is_password_valid(password: str) -> bool:
    if len(password) < MIN_PASSWORD_LENGTH:
        return False
    return all(pattern.search(password) for pattern in _REQUIRED)
