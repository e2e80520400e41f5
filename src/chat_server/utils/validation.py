"""
Validation Utilities

Contains utility functions for cleaning and validating client-supplied
names and message content.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class ValidationLimits:
    """
    Optional length limits applied by the coordination engine.

    A limit of None disables the check.

    Attributes:
        max_name_length: Maximum length of a display name or room name
        max_message_length: Maximum length of a message text
    """

    max_name_length: Optional[int] = None
    max_message_length: Optional[int] = None


def clean_text(value: Any) -> str:
    """Trim a string field; anything that isn't a string becomes empty."""
    if not isinstance(value, str):
        return ""
    return value.strip()


def validate_name(
    name: str, max_length: Optional[int] = None
) -> Tuple[bool, Optional[str]]:
    """
    Validate a display name or room name.

    Args:
        name: The name to validate (already trimmed)
        max_length: Optional maximum length

    Returns:
        tuple: (is_valid, error_message)
    """
    if not name:
        return False, "Name cannot be empty"

    if max_length is not None and len(name) > max_length:
        return False, f"Name too long (max {max_length} characters)"

    return True, None


def validate_message_content(
    content: str, max_length: Optional[int] = None
) -> Tuple[bool, Optional[str]]:
    """
    Validate message content.

    Args:
        content: The message content to validate
        max_length: Optional maximum length

    Returns:
        tuple: (is_valid, error_message)
            - is_valid: True if content is valid, False otherwise
            - error_message: Error message if invalid, None if valid
    """
    if not content or not content.strip():
        return False, "Message content cannot be empty"

    if max_length is not None and len(content) > max_length:
        return (
            False,
            f"Message content too long (max {max_length} characters)",
        )

    return True, None
