"""Security validators."""

import re
from typing import Final

from zxcvbn import zxcvbn

MIN_PASSWORD_LENGTH: Final[int] = 8
# Minimum zxcvbn score (0-4 scale): 3 = "safely unguessable"
MIN_PASSWORD_SCORE: Final[int] = 3
PASSWORD_COMPLEXITY_REGEX: Final[str] = (
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&#^()_\-+={}\[\];:'\"<>,.?/|\\]).+$"
)

_PASSWORD_COMPLEXITY_PATTERN: Final[re.Pattern[str]] = re.compile(PASSWORD_COMPLEXITY_REGEX)


def validate_password_strength(password: str) -> str:
    """Validate a new password against the complexity and entropy rules.

    Passwords must be at least 8 characters, contain a lowercase letter, an
    uppercase letter, a digit and a special character, and score at least 3
    under zxcvbn.

    Raises:
        ValueError: With a message suitable for showing to the user.
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    if not _PASSWORD_COMPLEXITY_PATTERN.match(password):
        raise ValueError(
            "Password must contain at least one uppercase letter, one lowercase letter, "
            "one number, and one special character"
        )

    result = zxcvbn(password)
    if result["score"] < MIN_PASSWORD_SCORE:
        feedback = result.get("feedback", {})
        warning = feedback.get("warning", "")
        suggestions = feedback.get("suggestions", [])

        if warning:
            raise ValueError(f"Weak password: {warning}")
        elif suggestions:
            raise ValueError(f"Weak password: {suggestions[0]}")
        else:
            raise ValueError(
                "Password is too weak. Use a longer password with a mix of characters."
            )

    return password
