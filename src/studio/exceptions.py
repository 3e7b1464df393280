"""Domain level exceptions for Media Studio."""

from __future__ import annotations

from enum import StrEnum

__all__ = [
    "Operation",
    "StudioError",
    "InvalidRequestError",
    "GeminiAPIError",
    "NoImagesReturnedError",
    "JobFailedError",
    "MissingResultLocatorError",
    "OperationFailedError",
    "SlotBusyError",
    "NotFoundError",
]


class Operation(StrEnum):
    """User-facing operations whose failures are reported by name."""

    EDIT = "edit"
    GENERATE_IMAGE = "generate_image"
    GENERATE_VIDEO = "generate_video"


_FAILURE_LABELS = {
    Operation.EDIT: ("Image editing", "Unknown error while editing the image."),
    Operation.GENERATE_IMAGE: (
        "Image generation",
        "Unknown error while generating the image.",
    ),
    Operation.GENERATE_VIDEO: (
        "Video generation",
        "Unknown error while generating the video.",
    ),
}


class StudioError(Exception):
    """Base class for application specific errors."""


class InvalidRequestError(StudioError):
    """Raised when an operation is called without its required inputs."""


class GeminiAPIError(StudioError):
    """Raised when a Gemini call fails at the transport or protocol level."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NoImagesReturnedError(StudioError):
    """Raised when image generation answers with an empty list."""


class JobFailedError(StudioError):
    """Raised when a long-running job finishes with an error."""


class MissingResultLocatorError(StudioError):
    """Raised when a finished job carries no result URI."""


class OperationFailedError(StudioError):
    """Single fatal outcome of an operation, ready for display."""

    def __init__(self, operation: Operation, detail: str | None = None) -> None:
        label, fallback = _FAILURE_LABELS[operation]
        message = f"{label} failed: {detail}" if detail else fallback
        super().__init__(message)
        self.operation = operation
        self.detail = detail

    @classmethod
    def wrap(cls, operation: Operation, exc: BaseException) -> "OperationFailedError":
        """Translate ``exc`` unless it already names an operation."""

        if isinstance(exc, OperationFailedError):
            return exc
        detail = str(exc).strip() or None
        return cls(operation, detail)


class SlotBusyError(StudioError):
    """Raised when an action slot already runs an operation."""


class NotFoundError(StudioError):
    """Raised when a task, media handle or result slot is unknown."""
