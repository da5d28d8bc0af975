# Tests for extsync.utils.aio
# Timeouts and tracked worker thread calls

import asyncio
import threading
import time

import pytest

from extsync.errors import CollaboratorTimeout
from extsync.utils.aio import blocking_in_flight, run_blocking, wait_blocking, with_timeout


class TestWithTimeout:
    """Tests for with_timeout."""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        async def answer():
            return 42

        assert await with_timeout(answer(), "answer", 1) == 42

    @pytest.mark.asyncio
    async def test_zero_disables_bound(self):
        async def slow():
            await asyncio.sleep(0.05)
            return "done"

        assert await with_timeout(slow(), "slow", 0) == "done"

    @pytest.mark.asyncio
    async def test_raises_collaborator_timeout(self):
        with pytest.raises(CollaboratorTimeout) as exc_info:
            await with_timeout(asyncio.sleep(10), "fetch snapshot", 0.01)

        assert exc_info.value.operation == "fetch snapshot"
        assert "fetch snapshot timed out after 0.01s" in exc_info.value.message


class TestRunBlocking:
    """Tests for worker thread calls."""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        assert await run_blocking(sum, [1, 2, 3]) == 6

    @pytest.mark.asyncio
    async def test_propagates_exception(self):
        def fail():
            raise OSError("disk full")

        with pytest.raises(OSError, match="disk full"):
            await run_blocking(fail)
        assert blocking_in_flight() == 0

    @pytest.mark.asyncio
    async def test_timed_out_call_keeps_running(self):
        finished = threading.Event()

        def slow():
            time.sleep(0.3)
            finished.set()

        with pytest.raises(CollaboratorTimeout):
            await with_timeout(run_blocking(slow), "write settings", 0.05)

        assert not finished.is_set()
        assert blocking_in_flight() == 1

        await wait_blocking()

        assert finished.is_set()
        assert blocking_in_flight() == 0

    @pytest.mark.asyncio
    async def test_wait_without_pending_calls(self):
        await wait_blocking()
        assert blocking_in_flight() == 0
