"""
Exception classes.
"""

from __future__ import annotations

__all__ = [
    "ConfigurationError",
]


class ConfigurationError(Exception):
    """
    Raised when a configuration type cannot be mapped, or when a value cannot be
    serialized or deserialized.

    The original exception, if any, is available as `__cause__`.
    """

    message: str
    """
    Human-readable description naming the offending type, element or value.
    """

    def __init__(self, message: str, /):
        self.message = message
        super().__init__(message)
