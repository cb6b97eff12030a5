"""
Error taxonomy for the entity REST client.

Every failure surfaced by this package is a ClientError carrying:
- a kind (encoding, validation, transport, shape) for programmatic handling
- a human-readable message
- the operation context ("GET@/entity/book/7") when one applies
- the original exception as a chained cause
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Failure categories."""

    ENCODING = "encoding"
    VALIDATION = "validation"
    TRANSPORT = "transport"
    SHAPE = "shape"


class ClientError(Exception):
    """
    Base exception for all entity REST client errors.

    Attributes:
        kind: Failure category
        message: Human-readable error message
        operation: Method and path of the failing request, if any
        cause: Original exception that caused this error
    """

    kind: ErrorKind = ErrorKind.TRANSPORT

    def __init__(
        self,
        message: str,
        *,
        kind: Optional[ErrorKind] = None,
        operation: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind
        self.operation = operation
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        text = f"[{self.kind.value}] {self.message}"
        if self.operation:
            text = f"{text} (on {self.operation})"
        return text

    @classmethod
    def wrap(cls, exc: BaseException, operation: str) -> "ClientError":
        """
        Attach operation context to a failure.

        A ClientError keeps its kind and message; any other exception becomes
        a TransportError. The wrapped exception is the cause.
        """
        if isinstance(exc, ClientError):
            return _ERROR_TYPES[exc.kind](exc.message, operation=operation, cause=exc)
        return TransportError(f"{type(exc).__name__}: {exc}", operation=operation, cause=exc)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "kind": self.kind.value,
            "message": self.message,
            "operation": self.operation,
            "cause": str(self.cause) if self.cause else None,
        }


class EncodingError(ClientError):
    """A record could not be turned back into an entity."""

    kind = ErrorKind.ENCODING


class ValidationError(ClientError):
    """External input carried an unknown key or a malformed value."""

    kind = ErrorKind.VALIDATION


class TransportError(ClientError):
    """Network or HTTP-layer failure."""

    kind = ErrorKind.TRANSPORT


class ShapeError(ClientError):
    """A response did not have the expected structure or cardinality."""

    kind = ErrorKind.SHAPE


_ERROR_TYPES = {
    ErrorKind.ENCODING: EncodingError,
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.TRANSPORT: TransportError,
    ErrorKind.SHAPE: ShapeError,
}


__all__ = [
    "ErrorKind",
    "ClientError",
    "EncodingError",
    "ValidationError",
    "TransportError",
    "ShapeError",
]
