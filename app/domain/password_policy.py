"""Password strength and email shape rules applied before anything is persisted."""

import re

PASSWORD_MIN_LENGTH = 8

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@.]+(\.[^\s@.]+)+$")

# (pattern, message) pairs checked in order after the length rule.
_PASSWORD_RULES = (
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"\d"), "Password must contain at least one number"),
)


def validate_email_shape(email: str) -> bool:
    """Return True for `local@domain.tld` shaped strings with no whitespace or empty domain labels."""
    if not email:
        return False
    return _EMAIL_RE.match(email) is not None


def password_strength_error(password: str) -> str | None:
    """
    Return the first rule the password breaks, or None when it is strong enough:
    - Minimum 8 characters
    - At least one lowercase letter
    - At least one uppercase letter
    - At least one number
    """
    if password is None or len(password) < PASSWORD_MIN_LENGTH:
        return f"Password must be at least {PASSWORD_MIN_LENGTH} characters long"

    for pattern, message in _PASSWORD_RULES:
        if not pattern.search(password):
            return message

    return None


def validate_password_strength(password: str) -> bool:
    return password_strength_error(password) is None
