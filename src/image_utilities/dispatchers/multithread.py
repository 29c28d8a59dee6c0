"""Multithreaded dispatcher - runs requests on a thread pool."""

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, TypeVar

from ..core.logging_config import get_logger
from ..core.protocols import Dispatcher

T = TypeVar("T")

PostFunction = Callable[[Callable[[], None]], None]


def _call_now(callback: Callable[[], None]) -> None:
    callback()


class ThreadPoolDispatcher(Dispatcher):
    """
    Runs each request on a worker thread.

    Args:
        max_workers: Size of the thread pool
        post: Schedules a callback on the caller's context, for example a UI
            loop's ``call_soon_threadsafe``. Defaults to calling the result
            callback directly on the worker thread.
    """

    def __init__(self, max_workers: int = 4, post: Optional[PostFunction] = None):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="image-utilities"
        )
        self._post = post or _call_now

    def submit(
        self,
        work: Callable[[], T],
        on_success: Callable[[T], None],
        on_error: Callable[[BaseException], None],
    ) -> None:
        self._executor.submit(self._run, work, on_success, on_error)

    def _run(
        self,
        work: Callable[[], T],
        on_success: Callable[[T], None],
        on_error: Callable[[BaseException], None],
    ) -> None:
        # Reports from the worker thread, never from the submitting one
        try:
            value = work()
        except Exception as error:  # noqa: BLE001
            self._post(lambda error=error: on_error(error))
            return
        self._post(lambda: on_success(value))

    def shutdown(self, wait: bool = True) -> None:
        get_logger("dispatcher").debug("Shutting down thread pool dispatcher")
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "ThreadPoolDispatcher":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()
