"""Background process sessions.

Long-running commands (``dotnet run``, ``dotnet watch``) started in
background mode are registered here under a generated session id. The
manager owns each process handle from registration on: it captures the
process output into bounded line buffers, watches for exit, stops the whole
process tree on request, and sweeps exited sessions.

Per-session lifecycle::

    running ──exit──▶ exited ──retention──▶ (swept)
       │                 ▲
       └──stop──▶ stopped (removed immediately)

A watcher that fails is recorded as ``watcher_failed`` together with the
error text instead of disappearing silently. Whether a session counts as
running is read from its process, not from the status, so a session whose
watcher failed stays active while its process lives.
"""

import asyncio
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from dotnet_mcp.config import get_settings
from dotnet_mcp.execution.process import ProcessHandle, ProcessStateError
from dotnet_mcp.logging import logger

STATUS_RUNNING = "running"
STATUS_EXITED = "exited"
STATUS_STOPPED = "stopped"
STATUS_WATCHER_FAILED = "watcher_failed"

MAX_BUFFERED_LINES = 1000
STOP_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class OutputLine:
    """One captured line of process output."""

    timestamp: datetime
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"timestamp": self.timestamp.isoformat(), "content": self.content}


@dataclass
class ProcessSession:
    """Mutable record of one registered background process."""

    session_id: str
    handle: ProcessHandle
    operation_type: str
    target: str
    start_time: datetime
    pid: int
    status: str = STATUS_RUNNING
    exit_code: int | None = None
    watcher_error: str | None = None
    stdout_lines: deque[OutputLine] = field(
        default_factory=lambda: deque(maxlen=MAX_BUFFERED_LINES)
    )
    stderr_lines: deque[OutputLine] = field(
        default_factory=lambda: deque(maxlen=MAX_BUFFERED_LINES)
    )
    capture_tasks: list[asyncio.Task[None]] = field(default_factory=list)
    watcher_task: asyncio.Task[None] | None = None


@dataclass(frozen=True)
class SessionInfo:
    """Read-only snapshot of a session, safe to hand to callers."""

    session_id: str
    pid: int
    operation_type: str
    target: str
    start_time: datetime
    status: str
    exit_code: int | None
    watcher_error: str | None
    is_running: bool

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "sessionId": self.session_id,
            "pid": self.pid,
            "operationType": self.operation_type,
            "target": self.target,
            "startTime": self.start_time.isoformat(),
            "status": self.status,
            "isRunning": self.is_running,
        }
        if self.exit_code is not None:
            data["exitCode"] = self.exit_code
        if self.watcher_error is not None:
            data["watcherError"] = self.watcher_error
        return data


@dataclass(frozen=True)
class SessionLogs:
    """Buffered output of a session, optionally filtered."""

    info: SessionInfo
    output_lines: list[OutputLine]
    error_lines: list[OutputLine]
    total_output_lines: int
    total_error_lines: int

    def to_dict(self) -> dict[str, Any]:
        data = self.info.to_dict()
        data.update(
            {
                "outputLines": [line.to_dict() for line in self.output_lines],
                "errorLines": [line.to_dict() for line in self.error_lines],
                "totalOutputLines": self.total_output_lines,
                "totalErrorLines": self.total_error_lines,
            }
        )
        return data


def _decode(raw: bytes) -> str:
    return raw.decode("utf-8", errors="replace").rstrip("\r\n")


async def _capture(stream: asyncio.StreamReader | None, buffer: deque[OutputLine]) -> None:
    if stream is None:
        return
    while True:
        try:
            raw = await stream.readline()
        except ValueError:
            # Line longer than the stream limit; the reader already dropped it
            buffer.append(OutputLine(datetime.now(UTC), "[line too long, dropped]"))
            continue
        if not raw:
            return
        buffer.append(OutputLine(datetime.now(UTC), _decode(raw)))


def _is_other_task(task: asyncio.Task[Any] | None) -> bool:
    if task is None or task.done():
        return False
    try:
        return task is not asyncio.current_task()
    except RuntimeError:
        return True


def _process_alive(session: ProcessSession) -> bool:
    """Whether the session's process is still running. Disposed handles count as exited."""
    try:
        return not session.handle.has_exited
    except ProcessStateError:
        return False


class ProcessSessionManager:
    """Registry of background process sessions.

    All map mutations happen under a threading.Lock. Registration must be
    called from a running event loop because it starts the capture and
    watcher tasks.
    """

    def __init__(self, retention_seconds: float | None = None) -> None:
        self._sessions: dict[str, ProcessSession] = {}
        self._lock = threading.Lock()
        self._retention_seconds = retention_seconds

    @property
    def retention_seconds(self) -> float:
        if self._retention_seconds is not None:
            return self._retention_seconds
        return get_settings().session_retention_seconds

    def register_session(
        self,
        session_id: str,
        handle: ProcessHandle,
        operation_type: str,
        target: str,
    ) -> bool:
        """Take ownership of a started process.

        Args:
            session_id: Unique id handed back to the caller.
            handle: Started process; the manager owns it from now on.
            operation_type: Operation tag, e.g. "run".
            target: Project path or logical target.

        Returns:
            True if registered, False if the id is already taken (the existing
            session and the passed handle are left untouched).

        Raises:
            ValueError: If session_id is blank.
            RuntimeError: If called without a running event loop.
        """
        if not session_id or not session_id.strip():
            raise ValueError("Session ID cannot be empty")

        loop = asyncio.get_running_loop()

        with self._lock:
            if session_id in self._sessions:
                logger.warning("Session ID %s already exists", session_id)
                return False

            session = ProcessSession(
                session_id=session_id,
                handle=handle,
                operation_type=operation_type,
                target=target,
                start_time=datetime.now(UTC),
                pid=handle.pid,
            )
            session.capture_tasks = [
                loop.create_task(_capture(handle.stdout, session.stdout_lines)),
                loop.create_task(_capture(handle.stderr, session.stderr_lines)),
            ]
            session.watcher_task = loop.create_task(self._watch(session))
            self._sessions[session_id] = session

        logger.info(
            "Registered session %s for %s on %s (pid %d)",
            session_id,
            operation_type,
            target,
            session.pid,
        )
        return True

    async def _watch(self, session: ProcessSession) -> None:
        try:
            exit_code = await session.handle.wait_for_exit()
            await asyncio.gather(*session.capture_tasks, return_exceptions=True)
            with self._lock:
                if session.status == STATUS_RUNNING:
                    session.status = STATUS_EXITED
                session.exit_code = exit_code
            logger.info("Session %s exited with code %d", session.session_id, exit_code)

            if self.retention_seconds > 0:
                await asyncio.sleep(self.retention_seconds)
            self.cleanup_completed_sessions()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Watcher for session %s failed: %s", session.session_id, e)
            with self._lock:
                session.status = STATUS_WATCHER_FAILED
                session.watcher_error = f"{type(e).__name__}: {e}"

    async def try_stop_session(self, session_id: str) -> tuple[bool, str | None]:
        """Kill a session's process tree and forget the session.

        Never raises.

        Returns:
            (True, None) if a running process was stopped, otherwise
            (False, description) when the session is unknown, has already
            exited, or could not be killed.
        """
        with self._lock:
            session = self._sessions.pop(session_id, None)

        if session is None:
            logger.warning("Attempted to stop unknown session %s", session_id)
            return False, (
                f"Session '{session_id}' not found. "
                "It may have already completed or been stopped."
            )

        if _is_other_task(session.watcher_task):
            session.watcher_task.cancel()  # type: ignore[union-attr]

        handle = session.handle
        try:
            if handle.has_exited:
                logger.info("Session %s already exited (code %s)", session_id, handle.exit_code)
                return False, (
                    f"Session '{session_id}' has already exited "
                    f"with exit code {handle.exit_code}."
                )

            logger.info("Stopping session %s (pid %d)", session_id, session.pid)
            handle.kill(entire_tree=True)
            try:
                await asyncio.wait_for(handle.wait_for_exit(), timeout=STOP_TIMEOUT_SECONDS)
            except TimeoutError:
                logger.warning(
                    "Session %s did not exit within %.0f seconds", session_id, STOP_TIMEOUT_SECONDS
                )
            session.status = STATUS_STOPPED
            session.exit_code = handle.exit_code
            return True, None
        except ProcessStateError:
            return False, f"Session '{session_id}' has already been disposed."
        except Exception as e:
            logger.error("Error stopping session %s: %s", session_id, e)
            return False, f"Failed to stop session '{session_id}': {e}"
        finally:
            for task in session.capture_tasks:
                if not task.done():
                    task.cancel()
            handle.dispose()

    def cleanup_completed_sessions(self) -> int:
        """Dispose and forget every session whose process has exited.

        Handles that are already disposed count as exited.

        Returns:
            Number of sessions removed.
        """
        removed: list[ProcessSession] = []
        with self._lock:
            for session_id, session in list(self._sessions.items()):
                if not _process_alive(session):
                    removed.append(self._sessions.pop(session_id))

        for session in removed:
            if _is_other_task(session.watcher_task):
                session.watcher_task.cancel()  # type: ignore[union-attr]
            session.handle.dispose()
            logger.debug("Cleaned up completed session %s", session.session_id)

        return len(removed)

    def _snapshot(self, session: ProcessSession) -> SessionInfo:
        return SessionInfo(
            session_id=session.session_id,
            pid=session.pid,
            operation_type=session.operation_type,
            target=session.target,
            start_time=session.start_time,
            status=session.status,
            exit_code=session.exit_code,
            watcher_error=session.watcher_error,
            is_running=_process_alive(session),
        )

    def get_session(self, session_id: str) -> SessionInfo | None:
        with self._lock:
            session = self._sessions.get(session_id)
            return self._snapshot(session) if session is not None else None

    def list_sessions(self, active_only: bool = False) -> list[SessionInfo]:
        """List tracked sessions, oldest first."""
        with self._lock:
            infos = [self._snapshot(session) for session in self._sessions.values()]
        if active_only:
            infos = [info for info in infos if info.is_running]
        return sorted(infos, key=lambda info: info.start_time)

    @property
    def active_session_count(self) -> int:
        with self._lock:
            return sum(1 for s in self._sessions.values() if _process_alive(s))

    def get_session_logs(
        self,
        session_id: str,
        tail_lines: int | None = None,
        since: datetime | None = None,
    ) -> SessionLogs | None:
        """Get buffered stdout/stderr lines of a session.

        Args:
            session_id: Session to read.
            tail_lines: Keep only the most recent N lines across both streams.
            since: Keep only lines captured at or after this time. Naive
                datetimes are taken as UTC.

        Returns:
            SessionLogs, or None if the session is unknown.
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            info = self._snapshot(session)
            output = list(session.stdout_lines)
            errors = list(session.stderr_lines)

        if since is not None:
            if since.tzinfo is None:
                since = since.replace(tzinfo=UTC)
            output = [line for line in output if line.timestamp >= since]
            errors = [line for line in errors if line.timestamp >= since]

        total_output, total_errors = len(output), len(errors)

        if tail_lines is not None and 0 < tail_lines < total_output + total_errors:
            merged = sorted(
                [(line, False) for line in output] + [(line, True) for line in errors],
                key=lambda item: item[0].timestamp,
            )[-tail_lines:]
            output = [line for line, is_error in merged if not is_error]
            errors = [line for line, is_error in merged if is_error]

        return SessionLogs(
            info=info,
            output_lines=output,
            error_lines=errors,
            total_output_lines=total_output,
            total_error_lines=total_errors,
        )

    async def stop_all(self) -> int:
        """Stop every running session (server shutdown).

        Returns:
            Number of sessions stopped.
        """
        with self._lock:
            running = [sid for sid, s in self._sessions.items() if _process_alive(s)]
        stopped = 0
        for session_id in running:
            ok, _ = await self.try_stop_session(session_id)
            if ok:
                stopped += 1
        self.cleanup_completed_sessions()
        return stopped

    def clear(self) -> None:
        """Kill and forget every session without waiting. Intended for tests."""
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()

        for session in sessions:
            for task in [*session.capture_tasks, session.watcher_task]:
                if _is_other_task(task):
                    task.cancel()  # type: ignore[union-attr]
            try:
                if not session.handle.has_exited:
                    session.handle.kill(entire_tree=True)
            except (ProcessStateError, OSError) as e:
                logger.debug("Ignoring error while clearing session %s: %s", session.session_id, e)
            session.handle.dispose()
