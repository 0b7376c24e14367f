"""Async child process handle.

Wraps ``asyncio.subprocess.Process`` with the small surface the executor and
the session manager need: pid, exit code, waiting, process-tree kill, and
disposal. On POSIX every child starts in its own session, so the child's pid
is also its process-group id and ``os.killpg`` reaches every descendant.
"""

import asyncio
import os
import signal
from collections.abc import Mapping, Sequence

from dotnet_mcp.logging import logger

_POSIX = os.name == "posix"


class ProcessStateError(RuntimeError):
    """Raised when a disposed process handle is used."""


class ProcessHandle:
    """Handle to a running (or finished) child process.

    Once disposed, accessors raise ProcessStateError. Disposal never kills
    the process; call kill() first if it must stop.
    """

    def __init__(self, process: asyncio.subprocess.Process, command_line: str = "") -> None:
        self._process = process
        self._disposed = False
        self.command_line = command_line

    @classmethod
    async def start(
        cls,
        executable: str,
        args: Sequence[str],
        working_directory: str | None = None,
        env: Mapping[str, str] | None = None,
        command_line: str = "",
    ) -> "ProcessHandle":
        """Start a child process with piped stdout/stderr.

        Raises:
            OSError: If the executable cannot be started (not found, not
                executable, bad working directory).
        """
        process = await asyncio.create_subprocess_exec(
            executable,
            *args,
            cwd=working_directory or None,
            env=dict(env) if env is not None else None,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=_POSIX,
        )
        logger.debug("Started pid %d: %s", process.pid, command_line or executable)
        return cls(process, command_line)

    def _check(self) -> asyncio.subprocess.Process:
        if self._disposed:
            raise ProcessStateError("Process handle has been disposed")
        return self._process

    @property
    def pid(self) -> int:
        return self._check().pid

    @property
    def exit_code(self) -> int | None:
        """Exit code, or None while the process is running."""
        return self._check().returncode

    @property
    def has_exited(self) -> bool:
        return self.exit_code is not None

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def stdout(self) -> asyncio.StreamReader | None:
        return self._check().stdout

    @property
    def stderr(self) -> asyncio.StreamReader | None:
        return self._check().stderr

    async def wait_for_exit(self) -> int:
        """Wait for the process to exit and return its exit code."""
        return await self._check().wait()

    def kill(self, entire_tree: bool = True) -> None:
        """Forcefully terminate the process.

        Args:
            entire_tree: Also kill every descendant. On POSIX this signals the
                whole process group; elsewhere only the child is killed.
        """
        process = self._check()
        if entire_tree and _POSIX:
            try:
                os.killpg(process.pid, signal.SIGKILL)
                return
            except ProcessLookupError:
                return
            except PermissionError:
                logger.warning("Cannot signal process group %d, killing pid only", process.pid)

        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass

    def dispose(self) -> None:
        """Release the handle. Safe to call more than once."""
        self._disposed = True
