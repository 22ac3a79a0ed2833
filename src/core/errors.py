"""Error types of the client core.

None of these are fatal: the session catches them and stores the message in
its error slot.
"""

from __future__ import annotations


class LocalSubError(Exception):
    """Base exception for the client."""


class EmptySubscriptionError(LocalSubError):
    """Convert/preview was requested without any subscription text."""


class InvalidRegexError(LocalSubError):
    """The engine rejected a filter or rename pattern."""

    def __init__(self, pattern: str, reason: str = "") -> None:
        self.pattern = pattern
        self.reason = reason
        detail = f": {reason}" if reason else ""
        super().__init__(f"Invalid regex pattern {pattern!r}{detail}")


class EngineError(LocalSubError):
    """A remote engine call failed (network or engine-side).

    `str()` is the engine's own message when it returned one.
    """

    def __init__(self, operation: str, message: str, *, status_code: int | None = None) -> None:
        self.operation = operation
        self.status_code = status_code
        super().__init__(message)
