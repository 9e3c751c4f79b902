"""Error types shared by the command framework and the Matrix transport.

Extraction problems are raised as Rejection subclasses; the invocation layer
turns every failure into a CommandError, which the dispatcher logs and drops.
"""
from typing import Optional


class Rejection(Exception):
    """Raised by an extractor that cannot build its value from a message."""


class MissingExtension(Rejection):
    """A typed value was requested from the extension map but never stored."""

    def __init__(self, type_name: str) -> None:
        super().__init__(
            f"Extension of type `{type_name}` was not found. "
            "Perhaps you forgot to add it to the message?"
        )
        self.type_name = type_name


class ExtensionsAlreadyExtracted(Rejection):
    """The extension map was already taken by a consuming extractor."""

    def __init__(self) -> None:
        super().__init__("Extensions already extracted by another parameter")


class CommandError(Exception):
    """Uniform failure of a command invocation, carrying a readable message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @classmethod
    def from_exception(cls, exc: BaseException) -> "CommandError":
        """Stringify any exception into a CommandError."""
        if isinstance(exc, CommandError):
            return exc
        text = str(exc)
        return cls(text if text else exc.__class__.__name__)


class MatrixError(Exception):
    """Error response from the Matrix homeserver.

    Attributes:
        errcode: Matrix error code such as ``M_FORBIDDEN``
        status: HTTP status code, if the error came from a response
    """

    def __init__(self, errcode: str, message: str, status: Optional[int] = None) -> None:
        super().__init__(f"{errcode}: {message}")
        self.errcode = errcode
        self.message = message
        self.status = status
