"""Error taxonomy for the authoring client core.

Every failure the core can surface is one of these types. Callers branch
on the class (or ``error_code``), never on message text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar


# -----------------------------------------------------------------------------
# Error Code Constants
# -----------------------------------------------------------------------------

class ErrorCode:
    """Constants for machine-readable error codes."""

    OPERATION_CANCELLED = "operation_cancelled"
    REMOTE_FAILURE = "remote_failure"
    INVALID_PARAMETER = "invalid_parameter"
    MISSING_PARAMETER = "missing_parameter"
    STORAGE_UNAVAILABLE = "storage_unavailable"


# -----------------------------------------------------------------------------
# Base Error Class
# -----------------------------------------------------------------------------

@dataclass
class DraftDeskError(Exception):
    """Base exception for all errors raised by the client core.

    Attributes:
        error_code: Machine-readable error identifier.
        message: Human-readable error description.
        details: Additional structured error information.
    """

    error_code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    severity: ClassVar[str] = "error"

    def __post_init__(self) -> None:
        Exception.__init__(self, self.message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dictionary (for logs and CLI output)."""
        result: dict[str, Any] = {
            "error": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = dict(self.details)
        return result

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


# -----------------------------------------------------------------------------
# Cancellation
# -----------------------------------------------------------------------------

@dataclass
class OperationCanceled(DraftDeskError):
    """The single cancellation signal raised for a revoked token.

    A request whose token was superseded or explicitly cancelled always
    ends with this error, whatever the transport did in the meantime.
    """

    error_code: str = field(default=ErrorCode.OPERATION_CANCELLED)
    message: str = field(default="Operation was cancelled")
    details: dict[str, Any] = field(default_factory=dict)
    channel: str | None = field(default=None)

    severity: ClassVar[str] = "info"


# -----------------------------------------------------------------------------
# Remote Failures
# -----------------------------------------------------------------------------

@dataclass
class RemoteServiceError(DraftDeskError):
    """A network or server failure from one of the remote services.

    ``server_message`` holds the message the service put in its response
    body, when it sent one; it is preferred over generic text when the
    failure is reported to the user.
    """

    error_code: str = field(default=ErrorCode.REMOTE_FAILURE)
    message: str = field(default="Remote service request failed")
    details: dict[str, Any] = field(default_factory=dict)
    status_code: int | None = field(default=None)
    server_message: str | None = field(default=None)

    @property
    def is_network_error(self) -> bool:
        """True when no HTTP response was received at all."""
        return self.status_code is None


# -----------------------------------------------------------------------------
# Local Validation
# -----------------------------------------------------------------------------

@dataclass
class LocalValidationError(DraftDeskError):
    """Raised before any network call when arguments are unusable."""

    error_code: str = field(default=ErrorCode.INVALID_PARAMETER)
    message: str = field(default="Invalid parameter")
    details: dict[str, Any] = field(default_factory=dict)
    parameter: str | None = field(default=None)

    severity: ClassVar[str] = "warning"


@dataclass
class ContentIdRequiredError(LocalValidationError):
    """An operation that targets a stored content item got no id."""

    error_code: str = field(default=ErrorCode.MISSING_PARAMETER)
    message: str = field(default="Blog ID is required to apply review")
    details: dict[str, Any] = field(default_factory=dict)
    parameter: str | None = field(default="content_id")


# -----------------------------------------------------------------------------
# Storage
# -----------------------------------------------------------------------------

@dataclass
class StorageError(DraftDeskError):
    """Durable storage could not be read or written.

    Storage adapters raise this; the draft store absorbs it.
    """

    error_code: str = field(default=ErrorCode.STORAGE_UNAVAILABLE)
    message: str = field(default="Storage is unavailable")
    details: dict[str, Any] = field(default_factory=dict)
    key: str | None = field(default=None)


def describe_failure(error: BaseException | None, fallback: str) -> str:
    """Return the most specific user-facing message for ``error``.

    Prefers the message supplied by the remote service and falls back to
    ``fallback`` for everything else.
    """
    if isinstance(error, RemoteServiceError) and error.server_message:
        return error.server_message
    return fallback


__all__ = [
    "ErrorCode",
    "DraftDeskError",
    "OperationCanceled",
    "RemoteServiceError",
    "LocalValidationError",
    "ContentIdRequiredError",
    "StorageError",
    "describe_failure",
]
