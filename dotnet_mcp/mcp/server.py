"""MCP server for the .NET SDK.

Serves the dotnet tools (projects, packages, EF Core, dev certificates,
user secrets, workloads, SDK info, background sessions) over stdio.

Background sessions
-------------------
``dotnet_project run`` with ``start_mode='background'`` leaves a process
running after the tool call returns. Those processes belong to the server:
they are stopped, process tree included, when the server shuts down.

Orphan detection
----------------
Not every client terminates its server on exit. A watchdog polls stdin for
hang-up and the parent PID for reparenting, and shuts the server down when
either shows the client is gone.
"""

import asyncio
import os
import select
import sys

from mcp.server import Server
from mcp.server.stdio import stdio_server

from dotnet_mcp import __version__
from dotnet_mcp.logging import logger
from dotnet_mcp.mcp.context import ToolContext, get_default_context
from dotnet_mcp.mcp.tools import register_tools

SERVER_NAME = "dotnet-mcp"
SERVER_VERSION = __version__

_ORPHAN_CHECK_INTERVAL = 2.0  # seconds


def create_server(context: ToolContext | None = None) -> Server:
    """Build a Server with every dotnet tool registered.

    Args:
        context: Tool context shared by all handlers. Defaults to the
            process-wide one.
    """
    server = Server(SERVER_NAME, version=SERVER_VERSION)
    register_tools(server, context)
    return server


def _is_orphan_parent(ppid: int) -> bool:
    """Check whether ``ppid`` is what an orphaned process gets reparented to.

    That is PID 1, or a session manager named systemd, init, or launchd.
    """
    if ppid == 1:
        return True
    try:
        with open(f"/proc/{ppid}/comm") as f:
            return f.read().strip() in ("systemd", "init", "launchd")
    except OSError:
        return False


def _stdin_closed() -> bool:
    fileno = sys.stdin.fileno()
    if hasattr(select, "poll"):
        poll = select.poll()
        poll.register(fileno, select.POLLHUP | select.POLLERR)
        return any(event & (select.POLLHUP | select.POLLERR) for _, event in poll.poll(0))
    _, _, exceptional = select.select([sys.stdin], [], [sys.stdin], 0)
    return bool(exceptional)


def _orphan_reason(original_ppid: int) -> str | None:
    """Describe why the server looks orphaned, or None while the client is alive."""
    try:
        if _stdin_closed():
            return "stdin closed"
    except (OSError, ValueError):
        return "stdin invalid"

    ppid = os.getppid()
    if ppid != original_ppid:
        return f"parent PID changed ({original_ppid} -> {ppid})"
    if _is_orphan_parent(ppid):
        return f"parent is init/systemd (PID {ppid})"
    return None


async def _orphan_watchdog(shutdown_event: asyncio.Event) -> None:
    """Set ``shutdown_event`` once the client has gone away."""
    original_ppid = os.getppid()
    while not shutdown_event.is_set():
        reason = _orphan_reason(original_ppid)
        if reason:
            logger.info("Orphaned (%s), shutting down", reason)
            shutdown_event.set()
            return
        await asyncio.sleep(_ORPHAN_CHECK_INTERVAL)


async def _cancel(task: asyncio.Task) -> None:
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


async def run_server_async(context: ToolContext | None = None) -> None:
    """Serve over stdio until the client disconnects, then stop background sessions."""
    context = context or get_default_context()
    server = create_server(context)
    shutdown_event = asyncio.Event()
    watchdog = asyncio.create_task(_orphan_watchdog(shutdown_event))
    logger.info(
        "Starting %s %s (dotnet: %s)", SERVER_NAME, SERVER_VERSION, context.settings.dotnet_path
    )

    try:
        async with stdio_server() as (read_stream, write_stream):
            serving = asyncio.create_task(
                server.run(read_stream, write_stream, server.create_initialization_options())
            )
            shutdown = asyncio.create_task(shutdown_event.wait())
            _, pending = await asyncio.wait(
                [serving, shutdown], return_when=asyncio.FIRST_COMPLETED
            )
            for task in pending:
                await _cancel(task)
    finally:
        await _cancel(watchdog)
        stopped = await context.sessions.stop_all()
        if stopped:
            logger.info("Stopped %d background session(s)", stopped)
        logger.info("%s shut down", SERVER_NAME)


def run_server() -> None:
    """Run the MCP server (blocking)."""
    asyncio.run(run_server_async())
