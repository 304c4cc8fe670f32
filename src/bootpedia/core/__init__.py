"""Bootpedia core -- provider-agnostic primitives the stores build on.

Architecture::

    errors.py       BootpediaError hierarchy, BlobStoreError, ImageResolutionError
    logging.py      structlog configuration + get_logger
    settings.py     BootpediaSettings (pydantic-settings, BOOTPEDIA_ prefix)
    protocols.py    DocumentStore, BlobStore, AuthProvider, KeyValueStore
    timestamps.py   UTC helpers, ULIDs, timestamp coercion
    cache.py        ImageUrlCache (TTL + LRU, injectable clock)
    retry.py        LinearBackoff, RetryContext
"""

from bootpedia.core.errors import (
    BlobStoreError,
    BootpediaError,
    ConnectivityError,
    ErrorCategory,
    ImageErrorKind,
    ImageResolutionError,
    NotFoundError,
    UnauthorizedError,
    UnknownError,
    ValidationError,
)
from bootpedia.core.logging import configure_logging, get_logger
from bootpedia.core.settings import BootpediaSettings, get_settings

__all__ = [
    "BlobStoreError",
    "BootpediaError",
    "BootpediaSettings",
    "ConnectivityError",
    "ErrorCategory",
    "ImageErrorKind",
    "ImageResolutionError",
    "NotFoundError",
    "UnauthorizedError",
    "UnknownError",
    "ValidationError",
    "configure_logging",
    "get_logger",
    "get_settings",
]
