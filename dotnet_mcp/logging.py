"""Logging configuration for the dotnet-mcp server.

Logs to stderr for visibility in the client's MCP logs (stdout is used for
protocol). Every record passes through a redaction filter so that secrets in
command lines or SDK output never reach the log.
"""

import logging
import os
import sys
import time
from collections.abc import Generator
from contextlib import contextmanager
from typing import Any

from dotnet_mcp.diagnostics.redactor import redact

logger = logging.getLogger("dotnet_mcp")


class RedactingFilter(logging.Filter):
    """Scrub secret-shaped values from log messages and their arguments."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(
                redact(arg) if isinstance(arg, str) else arg for arg in record.args
            )
        elif isinstance(record.args, dict):
            record.args = {
                key: redact(value) if isinstance(value, str) else value
                for key, value in record.args.items()
            }
        return True


def _resolve_level() -> int:
    name = os.getenv("DOTNET_MCP_LOG_LEVEL", "INFO").strip().upper() or "INFO"
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


logger.setLevel(_resolve_level())

# Only add handler if not already configured
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        logging.Formatter(
            "[dotnet-mcp] %(asctime)s %(levelname)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    handler.addFilter(RedactingFilter())
    logger.addHandler(handler)


def set_log_level(level: str) -> None:
    """Change the package log level at runtime (used by the CLI)."""
    resolved = logging.getLevelName(level.strip().upper())
    if isinstance(resolved, int):
        logger.setLevel(resolved)


class TimingContext:
    """Elapsed wall time of one logged operation.

    The clock starts on construction; ``elapsed`` is filled in by ``stop``.
    """

    def __init__(self) -> None:
        self.elapsed = 0.0
        self._started = time.perf_counter()

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000

    def stop(self) -> float:
        self.elapsed = time.perf_counter() - self._started
        return self.elapsed


def _format_details(details: dict[str, Any] | None) -> str:
    if not details:
        return ""
    return " " + " ".join(f"{key}={value}" for key, value in details.items())


@contextmanager
def log_operation(
    operation: str,
    details: dict[str, Any] | None = None,
) -> Generator[TimingContext, None, None]:
    """Log the start, outcome, and duration of an operation.

    Args:
        operation: Name logged on each line, e.g. ``tool:dotnet_project``.
        details: Key/value pairs appended to the start line.

    Yields:
        TimingContext whose ``elapsed`` is set once the block exits.

    Example:
        with log_operation("tool:dotnet_project", {"action": "build"}) as timing:
            await run_build()
        logger.debug("build took %.1fms", timing.elapsed_ms)
    """
    logger.info("▶ %s%s", operation, _format_details(details))
    timing = TimingContext()
    try:
        yield timing
    except Exception as e:
        logger.error("✗ %s failed after %.2fs: %s", operation, timing.stop(), e)
        raise
    logger.info("✓ %s done in %.2fs", operation, timing.stop())
