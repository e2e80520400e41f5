"""
Utilities for the Chat Server

This module contains utility functions for input cleaning and validation.
"""

from .validation import (
    ValidationLimits,
    clean_text,
    validate_message_content,
    validate_name,
)

__all__ = [
    "ValidationLimits",
    "clean_text",
    "validate_message_content",
    "validate_name",
]
