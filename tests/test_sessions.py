"""Tests for background process sessions."""

import asyncio
import sys
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio

from dotnet_mcp.execution.process import ProcessHandle
from dotnet_mcp.execution.sessions import (
    STATUS_EXITED,
    STATUS_RUNNING,
    STATUS_WATCHER_FAILED,
    ProcessSessionManager,
)

LONG_RUNNING = "import time; print('ready', flush=True); time.sleep(60)"


async def _start(script: str) -> ProcessHandle:
    return await ProcessHandle.start(sys.executable, ["-c", script])


async def _wait_for(predicate: Callable[[], bool], timeout: float = 10.0) -> None:
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.05)


@pytest_asyncio.fixture
async def manager():
    mgr = ProcessSessionManager(retention_seconds=300.0)
    yield mgr
    await mgr.stop_all()
    mgr.clear()


class TestRegister:
    """Registration and lookup."""

    @pytest.mark.asyncio
    async def test_register_and_get(self, manager: ProcessSessionManager) -> None:
        handle = await _start(LONG_RUNNING)
        assert manager.register_session("s1", handle, "run", "/src/App.csproj")

        info = manager.get_session("s1")
        assert info is not None
        assert info.pid == handle.pid
        assert info.status == STATUS_RUNNING
        assert info.is_running
        assert info.target == "/src/App.csproj"
        assert manager.active_session_count == 1

    @pytest.mark.asyncio
    async def test_duplicate_id_rejected(self, manager: ProcessSessionManager) -> None:
        first = await _start(LONG_RUNNING)
        second = await _start(LONG_RUNNING)
        assert manager.register_session("dup", first, "run", "/p")
        assert not manager.register_session("dup", second, "run", "/p")
        assert manager.get_session("dup").pid == first.pid
        second.kill()
        await second.wait_for_exit()
        second.dispose()

    @pytest.mark.asyncio
    async def test_blank_id_rejected(self, manager: ProcessSessionManager) -> None:
        handle = await _start(LONG_RUNNING)
        try:
            with pytest.raises(ValueError):
                manager.register_session("  ", handle, "run", "/p")
        finally:
            handle.kill()
            await handle.wait_for_exit()
            handle.dispose()

    @pytest.mark.asyncio
    async def test_list_sessions(self, manager: ProcessSessionManager) -> None:
        manager.register_session("a", await _start(LONG_RUNNING), "run", "/a")
        manager.register_session("b", await _start("print('bye')"), "run", "/b")
        await _wait_for(lambda: manager.get_session("b").status == STATUS_EXITED)

        assert [s.session_id for s in manager.list_sessions()] == ["a", "b"]
        assert [s.session_id for s in manager.list_sessions(active_only=True)] == ["a"]


class TestStop:
    """Stopping sessions."""

    @pytest.mark.asyncio
    async def test_stop_running_session(self, manager: ProcessSessionManager) -> None:
        handle = await _start(LONG_RUNNING)
        manager.register_session("s1", handle, "run", "/p")

        stopped, error = await manager.try_stop_session("s1")
        assert stopped is True
        assert error is None
        assert manager.get_session("s1") is None
        assert handle.is_disposed

    @pytest.mark.asyncio
    async def test_stop_unknown_session(self, manager: ProcessSessionManager) -> None:
        stopped, error = await manager.try_stop_session("missing")
        assert stopped is False
        assert "not found" in error

    @pytest.mark.asyncio
    async def test_stop_exited_session(self, manager: ProcessSessionManager) -> None:
        manager.register_session("done", await _start("print('done')"), "run", "/p")
        await _wait_for(lambda: manager.get_session("done").status == STATUS_EXITED)

        stopped, error = await manager.try_stop_session("done")
        assert stopped is False
        assert "already exited" in error
        assert manager.get_session("done") is None

    @pytest.mark.asyncio
    async def test_stop_all(self, manager: ProcessSessionManager) -> None:
        manager.register_session("a", await _start(LONG_RUNNING), "run", "/a")
        manager.register_session("b", await _start(LONG_RUNNING), "run", "/b")
        assert await manager.stop_all() == 2
        assert manager.list_sessions() == []


class TestExitAndCleanup:
    """Exit tracking and sweeping."""

    @pytest.mark.asyncio
    async def test_exit_code_recorded(self, manager: ProcessSessionManager) -> None:
        manager.register_session("e", await _start("import sys; sys.exit(7)"), "run", "/p")
        await _wait_for(lambda: manager.get_session("e").status == STATUS_EXITED)
        info = manager.get_session("e")
        assert info.exit_code == 7
        assert not info.is_running

    @pytest.mark.asyncio
    async def test_cleanup_removes_only_exited(self, manager: ProcessSessionManager) -> None:
        manager.register_session("live", await _start(LONG_RUNNING), "run", "/a")
        manager.register_session("dead", await _start("pass"), "run", "/b")
        await _wait_for(lambda: manager.get_session("dead").status == STATUS_EXITED)

        assert manager.cleanup_completed_sessions() == 1
        assert manager.get_session("dead") is None
        assert manager.get_session("live") is not None

    @pytest.mark.asyncio
    async def test_zero_retention_sweeps_on_exit(self) -> None:
        mgr = ProcessSessionManager(retention_seconds=0.0)
        mgr.register_session("quick", await _start("pass"), "run", "/p")
        await _wait_for(lambda: mgr.get_session("quick") is None)

    @pytest.mark.asyncio
    async def test_cleanup_tolerates_disposed_handle(self, manager: ProcessSessionManager) -> None:
        handle = await _start(LONG_RUNNING)
        manager.register_session("d", handle, "run", "/p")
        handle.kill()
        await _wait_for(lambda: manager.get_session("d").status == STATUS_EXITED)
        handle.dispose()

        assert not manager.get_session("d").is_running
        assert manager.active_session_count == 0
        assert manager.cleanup_completed_sessions() == 1
        assert manager.get_session("d") is None

    @pytest.mark.asyncio
    async def test_watcher_failure_is_visible(self, manager: ProcessSessionManager) -> None:
        handle = await _start(LONG_RUNNING)

        async def broken_wait() -> int:
            raise RuntimeError("wait failed")

        handle.wait_for_exit = broken_wait
        manager.register_session("w", handle, "run", "/p")
        await _wait_for(lambda: manager.get_session("w").status == STATUS_WATCHER_FAILED)

        info = manager.get_session("w")
        assert "RuntimeError" in info.watcher_error
        assert info.to_dict()["watcherError"] == info.watcher_error
        assert info.is_running
        assert info.to_dict()["isRunning"] is True
        assert [s.session_id for s in manager.list_sessions(active_only=True)] == ["w"]
        assert manager.active_session_count == 1
        manager.clear()


class TestLogs:
    """Buffered output."""

    @pytest.mark.asyncio
    async def test_output_is_captured(self, manager: ProcessSessionManager) -> None:
        script = "import sys; print('out line'); print('err line', file=sys.stderr)"
        manager.register_session("l", await _start(script), "run", "/p")
        await _wait_for(lambda: manager.get_session("l").status == STATUS_EXITED)

        logs = manager.get_session_logs("l")
        assert [line.content for line in logs.output_lines] == ["out line"]
        assert [line.content for line in logs.error_lines] == ["err line"]
        data = logs.to_dict()
        assert data["sessionId"] == "l"
        assert data["totalOutputLines"] == 1

    @pytest.mark.asyncio
    async def test_tail_lines(self, manager: ProcessSessionManager) -> None:
        script = "for i in range(10): print(f'line {i}', flush=True)"
        manager.register_session("t", await _start(script), "run", "/p")
        await _wait_for(lambda: manager.get_session("t").status == STATUS_EXITED)

        logs = manager.get_session_logs("t", tail_lines=3)
        assert [line.content for line in logs.output_lines] == ["line 7", "line 8", "line 9"]
        assert logs.total_output_lines == 10

    @pytest.mark.asyncio
    async def test_since_filters_old_lines(self, manager: ProcessSessionManager) -> None:
        manager.register_session("s", await _start("print('old')"), "run", "/p")
        await _wait_for(lambda: manager.get_session("s").status == STATUS_EXITED)

        future = datetime.now(UTC) + timedelta(hours=1)
        assert manager.get_session_logs("s", since=future).output_lines == []
        past = datetime.now(UTC) - timedelta(hours=1)
        assert len(manager.get_session_logs("s", since=past).output_lines) == 1

    @pytest.mark.asyncio
    async def test_unknown_session_logs(self, manager: ProcessSessionManager) -> None:
        assert manager.get_session_logs("nope") is None
