"""Protocol definitions for dependency injection and testability."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Protocol, TypeVar

from PIL import Image

from .models import Size

T = TypeVar("T")


class ImageCodec(Protocol):
    """Protocol for decoding, resampling and encoding images."""

    def decode(self, path: str) -> Image.Image:
        """Fully decode the image at ``path``."""
        ...

    def probe(self, path: str) -> Size:
        """Read image bounds without decoding pixel data."""
        ...

    def resize(self, image: Image.Image, size: Size) -> Image.Image:
        """Resample ``image`` to ``size``."""
        ...

    def encode(self, image: Image.Image, quality: int) -> bytes:
        """Compress ``image`` as JPEG."""
        ...


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        ...


class MethodResult(Protocol):
    """Receiver for the outcome of one method call."""

    def success(self, value: Any) -> None:
        """Report a successful result."""
        ...

    def error(self, code: str, message: str, details: Optional[Any] = None) -> None:
        """Report a failure."""
        ...

    def not_implemented(self) -> None:
        """Report that the method name is unknown."""
        ...


class Dispatcher(ABC):
    """Runs work off the caller's context and reports exactly once."""

    @abstractmethod
    def submit(
        self,
        work: Callable[[], T],
        on_success: Callable[[T], None],
        on_error: Callable[[BaseException], None],
    ) -> None:
        """Run ``work`` and call ``on_success`` or ``on_error`` with its outcome."""
        ...

    def shutdown(self, wait: bool = True) -> None:
        """Release worker resources."""
