"""Unit tests for dispatchers."""

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from image_utilities.dispatchers import (
    DISPATCHERS,
    AsyncioDispatcher,
    SerialDispatcher,
    ThreadPoolDispatcher,
)


class Outcome:
    """Collects the callback a dispatcher reports through."""

    def __init__(self):
        self.values = []
        self.errors = []
        self.threads = []
        self.done = threading.Event()

    def on_success(self, value):
        self.values.append(value)
        self.threads.append(threading.current_thread().name)
        self.done.set()

    def on_error(self, error):
        self.errors.append(error)
        self.threads.append(threading.current_thread().name)
        self.done.set()


def _fail():
    raise RuntimeError("work failed")


class TestSerialDispatcher:
    """Tests for SerialDispatcher."""

    def test_success_inline(self):
        outcome = Outcome()
        SerialDispatcher().submit(lambda: 42, outcome.on_success, outcome.on_error)
        assert outcome.values == [42]
        assert outcome.errors == []
        assert outcome.threads == [threading.current_thread().name]

    def test_error_reported(self):
        outcome = Outcome()
        SerialDispatcher().submit(_fail, outcome.on_success, outcome.on_error)
        assert outcome.values == []
        assert str(outcome.errors[0]) == "work failed"


class TestThreadPoolDispatcher:
    """Tests for ThreadPoolDispatcher."""

    def test_runs_on_worker_thread(self):
        outcome = Outcome()
        with ThreadPoolDispatcher(max_workers=2) as dispatcher:
            dispatcher.submit(lambda: "done", outcome.on_success, outcome.on_error)
            assert outcome.done.wait(5)
        assert outcome.values == ["done"]
        assert outcome.threads[0].startswith("image-utilities")

    def test_instant_work_never_reports_on_caller_thread(self):
        """Test that finished work still reports from a worker, not inside submit."""
        threads = []
        lock = threading.Lock()

        def record(_):
            with lock:
                threads.append(threading.current_thread().name)

        with ThreadPoolDispatcher(max_workers=1) as dispatcher:
            for _ in range(50):
                dispatcher.submit(lambda: None, record, record)

        assert len(threads) == 50
        assert all(name.startswith("image-utilities") for name in threads)

    def test_error_posted_after_except_block(self):
        posted = []
        outcome = Outcome()
        dispatcher = ThreadPoolDispatcher(max_workers=1, post=posted.append)
        dispatcher.submit(_fail, outcome.on_success, outcome.on_error)
        dispatcher.shutdown(wait=True)

        posted[0]()
        assert str(outcome.errors[0]) == "work failed"

    def test_error_reported_once(self):
        outcome = Outcome()
        with ThreadPoolDispatcher() as dispatcher:
            dispatcher.submit(_fail, outcome.on_success, outcome.on_error)
            assert outcome.done.wait(5)
        assert outcome.values == []
        assert len(outcome.errors) == 1
        assert isinstance(outcome.errors[0], RuntimeError)

    def test_post_reenters_caller_context(self):
        """Test that callbacks go through the post function."""
        posted = []

        def post(callback):
            posted.append(callback)

        outcome = Outcome()
        dispatcher = ThreadPoolDispatcher(max_workers=1, post=post)
        dispatcher.submit(lambda: 7, outcome.on_success, outcome.on_error)
        dispatcher.shutdown(wait=True)

        assert outcome.values == []
        assert len(posted) == 1
        posted[0]()
        assert outcome.values == [7]

    def test_many_requests_each_reported(self):
        results = []
        lock = threading.Lock()

        def on_success(value):
            with lock:
                results.append(value)

        with ThreadPoolDispatcher(max_workers=4) as dispatcher:
            for index in range(20):
                dispatcher.submit(lambda index=index: index, on_success, pytest.fail)

        assert sorted(results) == list(range(20))


class TestAsyncioDispatcher:
    """Tests for AsyncioDispatcher."""

    def test_callbacks_run_on_loop_thread(self):
        async def run():
            outcome = Outcome()
            finished = asyncio.Event()
            loop_thread = threading.current_thread().name

            def on_success(value):
                outcome.on_success(value)
                finished.set()

            AsyncioDispatcher().submit(
                lambda: threading.current_thread().name, on_success, outcome.on_error
            )
            await asyncio.wait_for(finished.wait(), 5)
            return outcome, loop_thread

        outcome, loop_thread = asyncio.run(run())
        worker_thread = outcome.values[0]
        assert worker_thread != loop_thread
        assert outcome.threads == [loop_thread]

    def test_error_reported(self):
        async def run():
            errors = []
            finished = asyncio.Event()

            def on_error(error):
                errors.append(error)
                finished.set()

            AsyncioDispatcher().submit(_fail, pytest.fail, on_error)
            await asyncio.wait_for(finished.wait(), 5)
            return errors

        errors = asyncio.run(run())
        assert len(errors) == 1
        assert str(errors[0]) == "work failed"

    def test_custom_executor_shutdown(self):
        executor = ThreadPoolExecutor(max_workers=1)

        async def run():
            loop = asyncio.get_running_loop()
            future = loop.create_future()
            AsyncioDispatcher(loop=loop, executor=executor).submit(
                lambda: "ok", future.set_result, future.set_exception
            )
            return await asyncio.wait_for(future, 5)

        assert asyncio.run(run()) == "ok"
        AsyncioDispatcher(executor=executor).shutdown()
        with pytest.raises(RuntimeError):
            executor.submit(lambda: None)


def test_dispatcher_registry():
    assert DISPATCHERS == {
        "serial": SerialDispatcher,
        "multithread": ThreadPoolDispatcher,
        "asyncio": AsyncioDispatcher,
    }
