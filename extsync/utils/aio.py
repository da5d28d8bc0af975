# extsync Async Helpers
# Bounded awaiting of collaborator calls and tracked worker threads

import asyncio
import threading
from collections.abc import Awaitable, Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, TypeVar

from extsync.errors import CollaboratorTimeout

T = TypeVar("T")

_executor = ThreadPoolExecutor(thread_name_prefix="extsync-worker")
_in_flight: set[Future] = set()
_in_flight_lock = threading.Lock()


def _discard(future: Future) -> None:
    with _in_flight_lock:
        _in_flight.discard(future)


async def run_blocking(func: Callable[..., T], *args) -> T:
    """
    Run a blocking call in a worker thread.

    Cancelling the awaiting task does not stop a call that already
    started. Such calls stay tracked until they return, see
    ``wait_blocking()``.
    """
    future = _executor.submit(func, *args)
    with _in_flight_lock:
        _in_flight.add(future)
    future.add_done_callback(_discard)
    return await asyncio.wrap_future(future)


def blocking_in_flight() -> int:
    """Number of worker thread calls that have not returned yet."""
    with _in_flight_lock:
        return len(_in_flight)


async def wait_blocking() -> None:
    """Wait until every worker thread call started so far has returned."""
    with _in_flight_lock:
        pending = list(_in_flight)
    if pending:
        await asyncio.gather(*(asyncio.wrap_future(f) for f in pending), return_exceptions=True)


async def with_timeout(awaitable: Awaitable[T], operation: str, timeout: Optional[float]) -> T:
    """
    Await a collaborator call, failing after ``timeout`` seconds.

    Args:
        awaitable: The pending call.
        operation: Human-readable name used in the error message.
        timeout: Time limit in seconds. None or 0 disables the bound.

    Returns:
        Whatever the awaitable returns.

    Raises:
        CollaboratorTimeout: If the call did not complete in time. The
            awaiting coroutine is cancelled; work already running in a
            worker thread finishes on its own (see ``wait_blocking()``).
    """
    if not timeout:
        return await awaitable

    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        raise CollaboratorTimeout(operation, timeout) from None
