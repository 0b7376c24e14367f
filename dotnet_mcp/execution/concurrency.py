"""Concurrency guard for mutating SDK operations.

Grants at most one in-flight operation per ``(operation_type, target)`` key.
A second request for a held key is rejected immediately with the label of the
holder; nothing is queued. Different keys never interfere, so a build of one
project can run alongside a test of another.

State is process-wide and in memory only. A restart drops every lock, which
is fine because it also ends every operation the locks protected.
"""

import threading
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from dotnet_mcp.logging import logger


class OperationConflictError(RuntimeError):
    """Raised by ConcurrencyGuard.hold() when the key is already held."""

    def __init__(self, operation_type: str, target: str, conflicting_operation: str) -> None:
        super().__init__(
            f"Cannot execute '{operation_type}' on '{target}': "
            f"{conflicting_operation} is already in progress"
        )
        self.operation_type = operation_type
        self.target = target
        self.conflicting_operation = conflicting_operation


@dataclass(frozen=True)
class OperationLock:
    """A held lock: who holds it and since when."""

    operation_type: str
    target: str
    label: str
    started_at: datetime


def logical_target(name: str) -> str:
    """Build a non-path target such as ``<dev-certs>``."""
    return f"<{name}>"


def is_logical_target(target: str) -> bool:
    stripped = target.strip()
    return len(stripped) > 2 and stripped.startswith("<") and stripped.endswith(">")


def normalize_target(target: str | None) -> str:
    """Resolve a target to an absolute path string.

    ``~`` is expanded and relative paths are resolved against the current
    working directory, so different spellings of one project share a key.
    Empty targets and any resolution failure fall back to the current
    working directory. Logical targets written in angle brackets (such as
    ``<dev-certs>``) are not paths and are kept as-is.
    """
    if target is None or not target.strip():
        return str(Path.cwd())
    if is_logical_target(target):
        return target.strip()
    try:
        return str(Path(target.strip()).expanduser().resolve())
    except (OSError, RuntimeError, ValueError) as e:
        logger.debug("Could not normalize target %r (%s), using cwd", target, e)
        return str(Path.cwd())


def _key(operation_type: str, normalized_target: str) -> str:
    return f"{operation_type}::{normalized_target}"


class ConcurrencyGuard:
    """Non-blocking admission control keyed by operation type and target."""

    def __init__(self) -> None:
        self._locks: dict[str, OperationLock] = {}
        self._lock = threading.Lock()

    def try_acquire(
        self,
        operation_type: str,
        target: str | None,
        label: str | None = None,
    ) -> tuple[bool, str | None]:
        """Try to take the lock for a key.

        Args:
            operation_type: Operation tag such as "build" or "test".
            target: Project path or logical identifier; normalized first.
            label: Description stored for conflict messages. Defaults to
                "<operation> on <target> (started at <time>)".

        Returns:
            (True, None) if acquired, otherwise (False, holder_label).
        """
        normalized = normalize_target(target)
        key = _key(operation_type, normalized)
        now = datetime.now()

        with self._lock:
            existing = self._locks.get(key)
            if existing is not None:
                return False, existing.label
            self._locks[key] = OperationLock(
                operation_type=operation_type,
                target=normalized,
                label=label
                or f"{operation_type} on {normalized} (started at {now:%Y-%m-%d %H:%M:%S})",
                started_at=now,
            )

        logger.debug("Acquired %s", key)
        return True, None

    def release(self, operation_type: str, target: str | None) -> None:
        """Release a key. Releasing a key that is not held is a no-op."""
        key = _key(operation_type, normalize_target(target))
        with self._lock:
            removed = self._locks.pop(key, None)
        if removed is not None:
            logger.debug("Released %s", key)

    @contextmanager
    def hold(
        self,
        operation_type: str,
        target: str | None,
        label: str | None = None,
    ) -> Generator[None, None, None]:
        """Hold a key for the duration of a ``with`` block.

        Raises:
            OperationConflictError: If the key is already held. The lock is
                not acquired in that case.
        """
        acquired, conflicting = self.try_acquire(operation_type, target, label)
        if not acquired:
            raise OperationConflictError(
                operation_type, normalize_target(target), conflicting or "another operation"
            )
        try:
            yield
        finally:
            self.release(operation_type, target)

    def is_held(self, operation_type: str, target: str | None) -> bool:
        key = _key(operation_type, normalize_target(target))
        with self._lock:
            return key in self._locks

    def active_operations(self) -> list[OperationLock]:
        """Snapshot of currently held locks, oldest first."""
        with self._lock:
            locks = list(self._locks.values())
        return sorted(locks, key=lambda lock: lock.started_at)

    def clear(self) -> None:
        """Drop every lock. Intended for tests."""
        with self._lock:
            self._locks.clear()
