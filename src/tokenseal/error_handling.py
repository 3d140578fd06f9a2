"""
Error Taxonomy and Handling for tokenseal
=========================================

This module provides the exception hierarchy raised by the signing engine and
the small helpers used to keep error handling consistent across modules.

Every error carries a ``context`` dictionary for diagnostics. Context values
must never contain secret material, derived keys or payload bytes: only
structural facts such as segment counts, separator characters or timestamps.

Hierarchy::

    SigningError
    ├── SignerConfigurationError
    │   └── InvalidSeparator
    └── BadData
        ├── BadPayload
        └── BadSignature
            └── BadTimeSignature
                └── SignatureExpired
"""

import functools
import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Type

logger = logging.getLogger(__name__)


class SigningError(Exception):
    """Base exception for all tokenseal errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

        context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
        logger.warning(
            f"Signing error: {message}" + (f" ({context_str})" if context_str else "")
        )


class SignerConfigurationError(SigningError):
    """Raised when a signer is constructed with invalid options."""

    pass


class InvalidSeparator(SignerConfigurationError):
    """Raised when the separator collides with the codec alphabet."""

    def __init__(self, separator: str, context: Optional[Dict[str, Any]] = None):
        self.separator = separator
        super().__init__(
            f"Separator {separator!r} is in the URL-safe base64 alphabet, "
            "and thus cannot be used",
            context or {"separator": separator},
        )


class BadData(SigningError):
    """Raised when input is structurally malformed.

    Detected before any cryptographic check: missing separators, undecodable
    segments, characters outside the codec alphabet.
    """

    pass


class BadPayload(BadData):
    """Raised when a verified payload cannot be deserialized."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
    ):
        self.original_error = original_error
        super().__init__(message, context)


class BadSignature(BadData):
    """Raised when a well-formed signature does not match any secret."""

    pass


class BadTimeSignature(BadSignature):
    """Raised when the signature is valid but the timestamp segment is not.

    ``date_signed`` is set when the timestamp could be decoded.
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        date_signed: Optional[datetime] = None,
    ):
        self.date_signed = date_signed
        super().__init__(message, context)


class SignatureExpired(BadTimeSignature):
    """Raised when an authentic value is older than the allowed maximum age."""

    def __init__(
        self,
        message: str,
        timestamp: int,
        age: float,
        max_age: float,
        date_signed: Optional[datetime] = None,
    ):
        self.timestamp = timestamp
        self.age = age
        self.max_age = max_age
        super().__init__(
            message,
            {"timestamp": timestamp, "age": age, "max_age": max_age},
            date_signed=date_signed,
        )


def with_error_handling(
    error_type: Type[SigningError] = SigningError,
    context: Optional[Dict[str, Any]] = None,
):
    """
    Decorator converting foreign exceptions into tokenseal errors.

    ``SigningError`` instances propagate unchanged. Any other exception is
    re-raised as ``error_type`` with the original chained as ``__cause__``.
    The original exception message is not copied into the context because it
    may quote payload content.

    Args:
        error_type: Type of SigningError to raise
        context: Additional context to include in the error
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except SigningError:
                raise
            except Exception as e:
                error_context = (context or {}).copy()
                error_context.update(
                    {
                        "function": func.__name__,
                        "original_error_type": type(e).__name__,
                    }
                )
                raise error_type(
                    f"Error in {func.__name__}: {type(e).__name__}", error_context
                ) from e

        return wrapper

    return decorator


def log_signing_performance(func: Callable) -> Callable:
    """Decorator to log the duration of signing operations at DEBUG level."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()

        try:
            result = func(*args, **kwargs)
        except SigningError:
            duration = time.perf_counter() - start_time
            logger.debug(f"Signing operation {func.__name__} failed after {duration:.6f}s")
            raise

        duration = time.perf_counter() - start_time
        logger.debug(f"Signing operation {func.__name__} completed in {duration:.6f}s")
        return result

    return wrapper
