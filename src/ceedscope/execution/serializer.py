"""Mutual exclusion for build tool invocations.

Ceedling writes into a shared build directory, so at most one invocation
(and the report read that follows it) may be in flight per workspace.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog

log = structlog.get_logger(__name__)


class ExecutionSerializer:
    """A FIFO gate around build tool work."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._holder: str | None = None

    @asynccontextmanager
    async def hold(self, label: str) -> AsyncIterator[None]:
        """Hold the gate for the duration of the block.

        Waiters are admitted in arrival order. The gate is released on every
        exit path, including errors and cancellation.
        """
        async with self._lock:
            self._holder = label
            log.debug("serializer_acquired", holder=label)
            try:
                yield
            finally:
                self._holder = None
                log.debug("serializer_released", holder=label)

    @property
    def holder(self) -> str | None:
        """Label of the current holder, or None when idle."""
        return self._holder

    @property
    def locked(self) -> bool:
        return self._lock.locked()
