"""Serial dispatcher - runs each request inline on the caller's thread."""

from typing import Callable, TypeVar

from ..core.protocols import Dispatcher

T = TypeVar("T")


class SerialDispatcher(Dispatcher):
    """
    Runs work immediately in the current thread.

    Used by the CLI and in tests, where blocking the caller is acceptable.
    """

    def submit(
        self,
        work: Callable[[], T],
        on_success: Callable[[T], None],
        on_error: Callable[[BaseException], None],
    ) -> None:
        try:
            value = work()
        except Exception as e:
            on_error(e)
        else:
            on_success(value)
