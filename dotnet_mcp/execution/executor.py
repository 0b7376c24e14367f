"""Runs the dotnet executable and turns its output into result envelopes.

Foreground commands are awaited to completion with both output streams read
concurrently and capped. Cancellation kills the whole process tree: a
cancelled asyncio task re-raises after the kill, while a set ``cancel_event``
yields an OPERATION_CANCELLED envelope. Background commands return a live
ProcessHandle for the session manager to own.
"""

import asyncio
import codecs
import shlex
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from dotnet_mcp.config import Settings, get_settings
from dotnet_mcp.diagnostics.factory import (
    create_cancelled_result,
    create_capability_not_available,
    create_result,
)
from dotnet_mcp.diagnostics.redactor import REDACTED, redact
from dotnet_mcp.execution.process import ProcessHandle
from dotnet_mcp.logging import logger
from dotnet_mcp.models.results import ResultEnvelope, SuccessResult

_READ_CHUNK = 64 * 1024

# Flags whose following argument is a credential
SENSITIVE_FLAGS = frozenset({"--password", "--connection"})

SDK_INSTALL_ALTERNATIVES = (
    "Install the .NET SDK from https://dotnet.microsoft.com/download",
    "Verify 'dotnet' is on PATH (try: dotnet --info)",
    "If using global.json, ensure the requested SDK is installed",
)


@dataclass
class CommandOutput:
    """Raw result of a foreground command."""

    stdout: str
    stderr: str
    exit_code: int
    cancelled: bool = False


def truncation_marker(limit: int) -> str:
    return f"\n... [output truncated: exceeded {limit:,} characters]\n"


async def read_stream(stream: asyncio.StreamReader | None, limit: int) -> str:
    """Read a stream to EOF, keeping at most ``limit`` characters.

    The stream is always drained so the child never blocks on a full pipe.
    A single truncation marker is appended when output was dropped.
    """
    if stream is None:
        return ""
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    parts: list[str] = []
    kept = 0
    truncated = False
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            break
        if truncated:
            continue
        text = decoder.decode(chunk)
        room = limit - kept
        if len(text) > room:
            parts.append(text[:room])
            truncated = True
        else:
            parts.append(text)
            kept += len(text)

    if truncated:
        parts.append(truncation_marker(limit))
    else:
        parts.append(decoder.decode(b"", final=True))
    return "".join(parts)


class DotnetExecutor:
    """Invokes the dotnet CLI.

    Args:
        settings: Resolved settings. Defaults to the current environment.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    @property
    def executable(self) -> str:
        return self.settings.dotnet_path

    def command_line(self, args: Sequence[str], secret_values: Sequence[str] = ()) -> str:
        """Render the command for logs and error payloads.

        Values following a sensitive flag, and any of ``secret_values``, are
        masked before the usual pattern redaction runs.
        """
        masked: list[str] = []
        previous = ""
        for arg in args:
            if previous in SENSITIVE_FLAGS or arg in secret_values:
                masked.append(REDACTED)
            else:
                masked.append(arg)
            previous = arg
        return redact(shlex.join([self.executable, *masked])) or ""

    async def run(
        self,
        args: Sequence[str],
        working_directory: str | None = None,
        cancel_event: asyncio.Event | None = None,
        env: Mapping[str, str] | None = None,
        secret_values: Sequence[str] = (),
    ) -> CommandOutput:
        """Run a command to completion.

        Raises:
            OSError: If the process cannot be started.
            asyncio.CancelledError: If the calling task is cancelled. The
                process tree is killed first.
        """
        command = self.command_line(args, secret_values)
        limit = self.settings.max_output_chars
        handle = await ProcessHandle.start(
            self.executable, args, working_directory, env=env, command_line=command
        )

        readers = asyncio.gather(read_stream(handle.stdout, limit), read_stream(handle.stderr, limit))
        exit_task = asyncio.ensure_future(handle.wait_for_exit())
        cancel_task = asyncio.ensure_future(cancel_event.wait()) if cancel_event else None
        cancelled = False
        try:
            waiting = {exit_task} if cancel_task is None else {exit_task, cancel_task}
            done, _ = await asyncio.wait(waiting, return_when=asyncio.FIRST_COMPLETED)
            if cancel_task is not None and cancel_task in done and not exit_task.done():
                logger.info("Cancelling pid %d: %s", handle.pid, command)
                cancelled = True
                handle.kill(entire_tree=True)
            exit_code = await exit_task
            stdout, stderr = await readers
        except asyncio.CancelledError:
            logger.info("Task cancelled, killing pid %d: %s", handle.pid, command)
            handle.kill(entire_tree=True)
            raise
        finally:
            for task in (exit_task, cancel_task, readers):
                if task is not None and not task.done():
                    task.cancel()
            handle.dispose()

        return CommandOutput(stdout=stdout, stderr=stderr, exit_code=exit_code, cancelled=cancelled)

    async def execute(
        self,
        args: Sequence[str],
        working_directory: str | None = None,
        cancel_event: asyncio.Event | None = None,
        additional_data: Mapping[str, str] | None = None,
        secret_values: Sequence[str] = (),
    ) -> ResultEnvelope:
        """Run a command and build its result envelope.

        Never raises for process failures: a non-zero exit becomes an
        ErrorResult, a missing SDK becomes CAPABILITY_NOT_AVAILABLE, and a
        set ``cancel_event`` becomes OPERATION_CANCELLED.
        """
        command = self.command_line(args, secret_values)
        try:
            output = await self.run(
                args, working_directory, cancel_event, secret_values=secret_values
            )
        except OSError as e:
            logger.error("Failed to start %s: %s", command, e)
            return create_capability_not_available(
                "dotnet CLI",
                alternatives=SDK_INSTALL_ALTERNATIVES,
                command=command,
                details=str(e),
            )

        if output.cancelled:
            return create_cancelled_result(command, output.stdout)

        if output.exit_code == 0 and self.settings.unsafe_output:
            # Error payloads stay redacted regardless
            logger.warning("Unsafe output mode: returning unredacted output of %s", command)
            return SuccessResult(output=output.stdout, exit_code=0)

        return create_result(
            output.stdout, output.stderr, output.exit_code, command, additional_data
        )

    async def start_background(
        self,
        args: Sequence[str],
        working_directory: str | None = None,
    ) -> ProcessHandle:
        """Start a command without waiting for it.

        Raises:
            OSError: If the process cannot be started.
        """
        command = self.command_line(args)
        handle = await ProcessHandle.start(
            self.executable, args, working_directory, command_line=command
        )
        logger.info("Started background pid %d: %s", handle.pid, command)
        return handle
