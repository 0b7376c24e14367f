"""Runtime configuration for dotnet-mcp.

Configuration via environment variables (a .env file is honoured):
    DOTNET_MCP_DOTNET_PATH: dotnet executable to invoke (default: "dotnet")
    DOTNET_MCP_LOG_LEVEL: Log level name for the stderr logger (default: INFO)
    DOTNET_MCP_SESSION_RETENTION_SECONDS: How long an exited background
        session stays queryable before its watcher sweeps it (default: 300)
    DOTNET_MCP_MAX_OUTPUT_CHARS: Cap on captured characters per output
        stream of a foreground command (default: 1000000)
    DOTNET_MCP_UNSAFE_OUTPUT: Disable secret redaction of command output
        (default: false). Use with caution.

Values are read at call time, not import time, so tests and the CLI can
override them through the environment.
"""

import os
from dataclasses import dataclass

_TRUTHY = ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    """Resolved dotnet-mcp settings.

    Attributes:
        dotnet_path: Executable used for every SDK invocation.
        log_level: Name of the stderr log level.
        session_retention_seconds: Grace period before an exited background
            session is swept by its watcher.
        max_output_chars: Per-stream capture cap for foreground commands.
        unsafe_output: When True, command output is returned unredacted.
    """

    dotnet_path: str = "dotnet"
    log_level: str = "INFO"
    session_retention_seconds: float = 300.0
    max_output_chars: int = 1_000_000
    unsafe_output: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from DOTNET_MCP_* environment variables."""
        return cls(
            dotnet_path=os.getenv("DOTNET_MCP_DOTNET_PATH", "").strip() or "dotnet",
            log_level=os.getenv("DOTNET_MCP_LOG_LEVEL", "INFO").strip().upper() or "INFO",
            session_retention_seconds=max(
                0.0, _env_float("DOTNET_MCP_SESSION_RETENTION_SECONDS", 300.0)
            ),
            max_output_chars=max(1, _env_int("DOTNET_MCP_MAX_OUTPUT_CHARS", 1_000_000)),
            unsafe_output=os.getenv("DOTNET_MCP_UNSAFE_OUTPUT", "").lower() in _TRUTHY,
        )


def get_settings() -> Settings:
    """Get settings from the environment (read at call time)."""
    return Settings.from_env()
