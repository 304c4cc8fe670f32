"""
Structured error types for the Bootpedia data layer.

Every failure the data layer surfaces is a :class:`BootpediaError` carrying a
category, a retry hint, structured context and the chained cause. The store
and resolver use these to decide what to raise, what to capture into state
and what to retry.

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                      BootpediaError                           │
        │          (category, retryable, context, cause)               │
        ├──────────────────────────────────────────────────────────────┤
        │  UnauthorizedError   NotFoundError      ConnectivityError    │
        │  (AUTH)              (NOT_FOUND)        (NETWORK, retryable) │
        │                                                              │
        │  ValidationError     UnknownError       ImageResolutionError │
        │  (VALIDATION)        (UNKNOWN)          (IMAGE, kind)        │
        └──────────────────────────────────────────────────────────────┘

        BlobStoreError  — error signal raised by blob-store adapters,
                          classified into ImageResolutionError.

Propagation:
    - create/update/delete raise to the caller
    - increment_views never raises (best-effort counter)
    - subscription failures become store state, never exceptions
    - image failures stay scoped to one identifier

Examples:
    >>> err = UnauthorizedError("Sign in to create tutorials")
    >>> err.category
    <ErrorCategory.AUTH: 'AUTH'>
    >>> err.with_context(operation="create").to_dict()["context"]
    {'operation': 'create'}

Tags:
    error-handling, exception-hierarchy, retry-logic, bootpedia
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories used for logging and retry decisions."""

    AUTH = "AUTH"                 # No authenticated actor
    NOT_FOUND = "NOT_FOUND"       # Tutorial, category or image missing
    NETWORK = "NETWORK"           # Remote store unreachable
    VALIDATION = "VALIDATION"     # Caller data violates a field constraint
    IMAGE = "IMAGE"               # Image URL resolution
    UNKNOWN = "UNKNOWN"           # Uncategorized


class ImageErrorKind(str, Enum):
    """Failure kinds surfaced by image URL resolution."""

    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    CANCELED = "CANCELED"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        operation: Data-layer operation that failed (``create``, ``delete``...)
        collection: Remote collection involved
        document_id: Tutorial or category id involved
        identifier: Image identifier involved
        metadata: Additional key-value pairs
    """

    operation: str | None = None
    collection: str | None = None
    document_id: str | None = None
    identifier: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["operation", "collection", "document_id", "identifier"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class BootpediaError(Exception):
    """
    Base exception for all Bootpedia data-layer errors.

    Subclasses set ``default_category`` and ``default_retryable`` so call
    sites only pass a message and, when wrapping, the original exception as
    ``cause``.

    Examples:
        >>> error = BootpediaError("Something went wrong")
        >>> error.category
        <ErrorCategory.UNKNOWN: 'UNKNOWN'>
        >>> error.retryable
        False

        >>> try:
        ...     raise OSError("socket closed")
        ... except OSError as e:
        ...     error = ConnectivityError("Store unreachable", cause=e)
        >>> error.cause
        OSError('socket closed')
    """

    default_category: ErrorCategory = ErrorCategory.UNKNOWN
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> BootpediaError:
        """
        Add context to this error (fluent API).

        Usage:
            raise NotFoundError("Tutorial not found").with_context(
                collection="tutorials", document_id="t1"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class UnauthorizedError(BootpediaError):
    """A mutation was attempted without an authenticated actor."""

    default_category = ErrorCategory.AUTH


class NotFoundError(BootpediaError):
    """Referenced tutorial, category or image does not exist."""

    default_category = ErrorCategory.NOT_FOUND


class ConnectivityError(BootpediaError):
    """The remote store could not be reached (subscription or one-shot query)."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class ValidationError(BootpediaError):
    """Caller-supplied data violates a field constraint."""

    default_category = ErrorCategory.VALIDATION

    def __init__(self, message: str, *, errors: list[dict[str, Any]] | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.errors = errors or []


class UnknownError(BootpediaError):
    """Unclassified failure, usually wrapping an unexpected exception."""

    default_category = ErrorCategory.UNKNOWN


# =============================================================================
# IMAGE RESOLUTION
# =============================================================================

# Blob-store codes that mark a transient (network) failure
TRANSIENT_BLOB_CODES = frozenset({"retry-limit-exceeded", "network", "network-request-failed"})

_BLOB_CODE_KINDS = {
    "object-not-found": ImageErrorKind.NOT_FOUND,
    "unauthorized": ImageErrorKind.UNAUTHORIZED,
    "canceled": ImageErrorKind.CANCELED,
    "unknown": ImageErrorKind.UNKNOWN,
}

IMAGE_ERROR_MESSAGES = {
    ImageErrorKind.NOT_FOUND: "Image not found",
    ImageErrorKind.UNAUTHORIZED: "Not allowed to access the image",
    ImageErrorKind.CANCELED: "Download canceled",
    ImageErrorKind.UNKNOWN: "Unknown error while loading the image",
}


class BlobStoreError(Exception):
    """Error signal raised by blob-store adapters.

    ``code`` is the provider's classified code with any ``storage/`` prefix
    stripped: ``object-not-found``, ``unauthorized``, ``canceled``,
    ``unknown``, or a transient marker such as ``retry-limit-exceeded``.
    """

    def __init__(self, code: str, message: str = ""):
        self.code = code.removeprefix("storage/")
        self.message = message or self.code
        super().__init__(self.message)

    @property
    def transient(self) -> bool:
        return self.code in TRANSIENT_BLOB_CODES or "network" in self.message.lower()


class ImageResolutionError(BootpediaError):
    """Resolving one image identifier to a URL failed."""

    default_category = ErrorCategory.IMAGE

    def __init__(self, kind: ImageErrorKind, message: str | None = None, **kwargs: Any):
        super().__init__(message or IMAGE_ERROR_MESSAGES[kind], **kwargs)
        self.kind = kind

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["kind"] = self.kind.value
        return result

    @classmethod
    def from_exception(cls, exc: Exception, *, identifier: str | None = None) -> ImageResolutionError:
        """Classify an exception raised by a blob store."""
        if isinstance(exc, ImageResolutionError):
            return exc
        if isinstance(exc, BlobStoreError):
            kind = _BLOB_CODE_KINDS.get(exc.code, ImageErrorKind.UNKNOWN)
            error = cls(kind, retryable=exc.transient, cause=exc)
        elif isinstance(exc, (ConnectionError, OSError)):
            error = cls(ImageErrorKind.UNKNOWN, retryable=True, cause=exc)
        else:
            error = cls(ImageErrorKind.UNKNOWN, cause=exc)
        if identifier is not None:
            error.with_context(identifier=identifier)
        return error


def wrap_error(exc: Exception, message: str, **context: Any) -> BootpediaError:
    """Return ``exc`` unchanged if it is a BootpediaError, else wrap it."""
    if isinstance(exc, BootpediaError):
        return exc
    return UnknownError(message, cause=exc).with_context(**context)


__all__ = [
    "BlobStoreError",
    "BootpediaError",
    "ConnectivityError",
    "ErrorCategory",
    "ErrorContext",
    "IMAGE_ERROR_MESSAGES",
    "ImageErrorKind",
    "ImageResolutionError",
    "NotFoundError",
    "TRANSIENT_BLOB_CODES",
    "UnauthorizedError",
    "UnknownError",
    "ValidationError",
    "wrap_error",
]
