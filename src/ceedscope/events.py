"""Events published to the host.

The host subscribes to an ``EventEmitter`` and receives plain dataclasses.
Load events describe discovery, run events describe state transitions of
suites and tests, and watch requests declare which files the host must
watch and what a change should trigger.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, Literal, TypeVar

import structlog

if TYPE_CHECKING:
    from ceedscope.tree.models import SuiteNode

log = structlog.get_logger(__name__)

E = TypeVar("E")

TestState = Literal["running", "passed", "failed", "skipped", "errored"]
SuiteState = Literal["running", "completed"]
WatchEffect = Literal["reload", "autorun"]


# =============================================================================
# Load events
# =============================================================================


@dataclass
class LoadStartedEvent:
    type: Literal["started"] = "started"


@dataclass
class LoadFinishedEvent:
    suite: SuiteNode | None = None
    error_message: str | None = None
    type: Literal["finished"] = "finished"


# =============================================================================
# Run events
# =============================================================================


@dataclass
class RunStartedEvent:
    tests: list[str] = field(default_factory=list)
    type: Literal["started"] = "started"


@dataclass
class RunFinishedEvent:
    type: Literal["finished"] = "finished"


@dataclass
class SuiteEvent:
    suite_id: str
    state: SuiteState
    type: Literal["suite"] = "suite"


@dataclass(frozen=True)
class Decoration:
    """An in-editor annotation attached to a failed test (0-based line)."""

    line: int
    message: str


@dataclass
class TestEvent:
    __test__ = False

    test_id: str
    state: TestState
    message: str | None = None
    decorations: list[Decoration] = field(default_factory=list)
    type: Literal["test"] = "test"


# =============================================================================
# Outbound requests
# =============================================================================


@dataclass
class WatchRequest:
    paths: list[str]
    effect: WatchEffect


class EventEmitter(Generic[E]):
    """Minimal synchronous publish/subscribe channel."""

    def __init__(self) -> None:
        self._listeners: list[Callable[[E], None]] = []

    def subscribe(self, listener: Callable[[E], None]) -> Callable[[], None]:
        """Register a listener; returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def fire(self, event: E) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                log.exception("event_listener_failed", event_type=type(event).__name__)

    def clear(self) -> None:
        self._listeners.clear()
