"""AsyncIO dispatcher - runs requests in an executor, reports on the event loop."""

import asyncio
from concurrent.futures import Executor
from typing import Callable, Optional, TypeVar

from ..core.protocols import Dispatcher

T = TypeVar("T")


class AsyncioDispatcher(Dispatcher):
    """
    Runs work in an executor and delivers the outcome on the event loop thread.

    ``submit`` must be called from the loop's thread. Decoding and encoding
    happen on the executor so the loop never blocks; the result callback is
    then scheduled back onto the loop.

    Args:
        loop: Event loop to report on; defaults to the running loop at submit time
        executor: Executor for the work; defaults to the loop's default executor
    """

    def __init__(
        self,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        executor: Optional[Executor] = None,
    ):
        self._loop = loop
        self._executor = executor

    def submit(
        self,
        work: Callable[[], T],
        on_success: Callable[[T], None],
        on_error: Callable[[BaseException], None],
    ) -> None:
        loop = self._loop or asyncio.get_running_loop()
        future = loop.run_in_executor(self._executor, work)

        def deliver(done: "asyncio.Future[T]") -> None:
            error = done.exception()
            if error is not None:
                on_error(error)
            else:
                on_success(done.result())

        future.add_done_callback(deliver)

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
