"""Custom exceptions and error handling utilities for image utilities."""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from .logging_config import get_logger


class ImageUtilitiesError(Exception):
    """Base exception for all image utilities errors."""


class ConfigurationError(ImageUtilitiesError):
    """Error raised for invalid configuration options."""


class InvalidArgumentError(ImageUtilitiesError):
    """Error raised when a request field is missing or malformed."""


class TranscodeError(ImageUtilitiesError):
    """Error raised when a transcode or property query fails at runtime."""


class DecodeError(TranscodeError):
    """Error raised when the source image cannot be read or decoded."""


class EncodeError(TranscodeError):
    """Error raised when the JPEG cannot be compressed or written."""


class MetadataCopyError(TranscodeError):
    """Error raised when EXIF tags cannot be carried over.

    The transcoder never lets this escape: the encoded JPEG is the primary
    result and metadata is best-effort.
    """


class MethodCallError(ImageUtilitiesError):
    """Error reported back through a method channel."""

    def __init__(self, code: str, message: str, details: Optional[Any] = None):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.details = details


F = TypeVar("F", bound=Callable[..., Any])


def with_error_handling(func: F) -> F:
    """Wrap a function with standardized error handling."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:  # type: ignore[override]
        logger = get_logger("transcoder")
        try:
            return func(*args, **kwargs)
        except ImageUtilitiesError:
            logger.error("Image utilities error", exc_info=True)
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error(f"Unhandled error in {func.__name__}: {exc}", exc_info=True)
            raise TranscodeError(str(exc)) from exc

    return wrapper  # type: ignore[return-value]
