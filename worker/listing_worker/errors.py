from __future__ import annotations


class ListingError(Exception):
    """Base class for workflow errors raised by the listing worker."""


class AuthError(ListingError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Sign-in failed: {reason}")
        self.reason = reason


class DriverTimeoutError(ListingError):
    """A navigation or element wait exceeded its budget.

    Timeouts are recoverable per item: the orchestrator records them and
    moves on to the next item.
    """


class BatchRejected(ListingError):
    def __init__(self, reason: str) -> None:
        super().__init__(f"Batch rejected: {reason}")
        self.reason = reason
