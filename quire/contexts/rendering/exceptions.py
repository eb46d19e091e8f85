"""Custom exceptions for the rendering context."""

from typing import Optional


class ExportError(Exception):
    """
    Exception raised when an export cannot start or complete.

    Attributes:
        message: Error description
        file_name: Requested output file, when known
    """

    def __init__(self, message: str, file_name: Optional[str] = None):
        self.message = message
        self.file_name = file_name

        if file_name:
            super().__init__(f"{message} (output: {file_name})")
        else:
            super().__init__(message)
