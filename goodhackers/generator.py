"""
Random password generator.
"""

import secrets
import string
from dataclasses import dataclass

from .errors import ValidationError
from . import config


@dataclass
class PasswordPolicy:
    """Character classes to draw from."""
    uppercase: bool = True
    lowercase: bool = True
    digits: bool = True
    symbols: bool = True
    exclude_ambiguous: bool = False

    def charset(self) -> str:
        chars = ""
        if self.uppercase:
            chars += string.ascii_uppercase
        if self.lowercase:
            chars += string.ascii_lowercase
        if self.digits:
            chars += string.digits
        if self.symbols:
            chars += config.PASSWORD_GENERATOR_SYMBOLS
        if self.exclude_ambiguous:
            chars = ''.join(c for c in chars if c not in config.PASSWORD_GENERATOR_AMBIGUOUS_CHARS)
        return chars


def generate_password(length: int = config.PASSWORD_GENERATOR_DEFAULT_LENGTH,
                      policy: PasswordPolicy = None) -> str:
    """
    Generate a password of ``length`` characters, each drawn independently
    from the union of the selected classes.

    Every class is not guaranteed to appear; short passwords may skew towards
    one class. Length bounds are left to the caller (see :func:`clamp_length`).
    """
    if isinstance(length, bool) or not isinstance(length, int) or length < 1:
        raise ValidationError("Password length must be a positive integer")

    chars = (policy or PasswordPolicy()).charset()
    if not chars:
        raise ValidationError("Select at least one character type")

    return ''.join(secrets.choice(chars) for _ in range(length))


def clamp_length(length: int,
                 minimum: int = config.PASSWORD_GENERATOR_MIN_LENGTH,
                 maximum: int = config.PASSWORD_GENERATOR_MAX_LENGTH) -> int:
    return max(minimum, min(maximum, length))
