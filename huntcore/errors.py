"""Exceptions raised by huntcore."""

from typing import Optional


class HuntError(Exception):
    """Base class for every huntcore error."""


class MalformedIRError(HuntError):
    """The syntax tree handed to the IR builder has a shape it cannot lower.

    This signals a mismatch between the front-end and the IR, not a
    problem in the analyzed code, so lowering of the file stops here.
    """

    def __init__(self, message: str, filename: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.filename = filename

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}: {self.message}"
        return self.message


class ConfigError(HuntError):
    """Invalid .huntcore.yml content."""
