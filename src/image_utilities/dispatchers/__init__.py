"""Dispatchers with different concurrency strategies."""

from .serial import SerialDispatcher
from .multithread import ThreadPoolDispatcher
from .asyncio_dispatcher import AsyncioDispatcher

DISPATCHERS = {
    "serial": SerialDispatcher,
    "multithread": ThreadPoolDispatcher,
    "asyncio": AsyncioDispatcher,
}

__all__ = [
    "SerialDispatcher",
    "ThreadPoolDispatcher",
    "AsyncioDispatcher",
    "DISPATCHERS",
]
