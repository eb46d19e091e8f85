"""Custom exceptions for the capture context."""

from typing import List, Optional


class CaptureError(Exception):
    """
    Exception raised when the staged node cannot be rasterized.

    Attributes:
        message: Error description
        attempts: Names of the rasterization attempts that were made
        errors: The exception raised by each attempt, in order
    """

    def __init__(
        self,
        message: str,
        attempts: Optional[List[str]] = None,
        errors: Optional[List[BaseException]] = None,
    ):
        self.message = message
        self.attempts = attempts or []
        self.errors = errors or []

        parts = [message]
        for attempt, error in zip(self.attempts, self.errors):
            parts.append(f"  {attempt}: {type(error).__name__}: {error}")

        super().__init__("\n".join(parts))
