"""Debounced rebuilds driven by content change events.

``InvalidationCoordinator`` is a small state machine::

    Idle -> PendingChanges -> (debounce elapsed) -> Rebuilding -> Idle

Events for paths outside the content-extension set are ignored. The debounce
window restarts with every event, so a burst costs one rebuild. While the
marker file exists rebuilds still happen but nobody is told; removing the
marker triggers a rebuild that is broadcast.

``WatchLoop`` feeds the coordinator from a polling stat scan on a daemon
thread.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from collections.abc import Callable, Collection

from .content_model.paths import CONTENT_EXTENSIONS, extension_of
from .watch import StatSignature, build_content_watch_signature, diff_content_stats

logger = logging.getLogger(__name__)

CHANGE_KINDS = ("added", "removed", "modified")


class CoordinatorState(enum.Enum):
    IDLE = "idle"
    PENDING_CHANGES = "pending"
    REBUILDING = "rebuilding"


class InvalidationCoordinator:
    def __init__(
        self,
        rebuild: Callable[[], object],
        broadcast: Callable[[], None],
        *,
        debounce_seconds: float = 1.0,
        marker_name: str = ".running",
        marker_active: bool = False,
        content_extensions: Collection[str] = CONTENT_EXTENSIONS,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        self._rebuild = rebuild
        self._broadcast = broadcast
        self.debounce_seconds = float(debounce_seconds)
        self.marker_name = marker_name
        self._content_extensions = frozenset(content_extensions)
        self._monotonic = monotonic
        self._lock = threading.Lock()
        self._state = CoordinatorState.IDLE
        self._pending: set[str] = set()
        self._last_event_at = 0.0
        self._marker_active = marker_active
        self.rebuild_count = 0
        self.broadcast_count = 0

    @property
    def state(self) -> CoordinatorState:
        with self._lock:
            return self._state

    @property
    def marker_active(self) -> bool:
        with self._lock:
            return self._marker_active

    def pending_paths(self) -> list[str]:
        with self._lock:
            return sorted(self._pending)

    def is_relevant(self, path: str) -> bool:
        return path == self.marker_name or extension_of(path) in self._content_extensions

    def notify(self, path: str, change: str) -> bool:
        """Record one change event; returns whether it was accepted."""
        if change not in CHANGE_KINDS:
            raise ValueError(f"unknown change kind: {change!r}")
        if not self.is_relevant(path):
            return False

        with self._lock:
            if path == self.marker_name:
                if change == "added":
                    self._marker_active = True
                    logger.info("marker %s present; broadcasts suppressed", path)
                    return True
                if change == "modified":
                    return False
                self._marker_active = False
                logger.info("marker %s removed; scheduling rebuild", path)

            self._pending.add(path)
            self._last_event_at = self._monotonic()
            if self._state is CoordinatorState.IDLE:
                self._state = CoordinatorState.PENDING_CHANGES
        return True

    def due(self) -> bool:
        with self._lock:
            return self._due_locked()

    def _due_locked(self) -> bool:
        if self._state is not CoordinatorState.PENDING_CHANGES:
            return False
        return (self._monotonic() - self._last_event_at) >= self.debounce_seconds

    def tick(self) -> bool:
        """Rebuild when the debounce window has elapsed; returns whether it did."""
        with self._lock:
            if not self._due_locked():
                return False
            self._state = CoordinatorState.REBUILDING
            changed = len(self._pending)
            self._pending.clear()

        logger.info("rebuilding after %d change(s)", changed)
        try:
            self._rebuild()
        except Exception:
            logger.exception("rebuild failed; keeping previous generation")
            self._finish_rebuild()
            return False

        suppressed = self._finish_rebuild(succeeded=True)
        if suppressed:
            logger.info("broadcast suppressed while %s is present", self.marker_name)
            return True

        self._broadcast()
        with self._lock:
            self.broadcast_count += 1
        return True

    def _finish_rebuild(self, succeeded: bool = False) -> bool:
        with self._lock:
            if succeeded:
                self.rebuild_count += 1
            # Events that arrived mid-rebuild start a new debounce window.
            self._state = CoordinatorState.PENDING_CHANGES if self._pending else CoordinatorState.IDLE
            return self._marker_active


class WatchLoop:
    """Poll a stat scan and drive the coordinator on a daemon thread."""

    def __init__(
        self,
        scan_stats: Callable[[], dict[str, StatSignature]],
        coordinator: InvalidationCoordinator,
        *,
        poll_seconds: float = 0.5,
    ) -> None:
        self._scan_stats = scan_stats
        self.coordinator = coordinator
        self.poll_seconds = float(poll_seconds)
        self._stats: dict[str, StatSignature] | None = None
        self._signature: str | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def prime(self) -> None:
        """Take the baseline snapshot without emitting events."""
        self._stats = self._scan_stats()
        self._signature = build_content_watch_signature(self._stats)

    def poll_once(self) -> int:
        """Scan once and forward any changes; returns the number of events."""
        try:
            stats = self._scan_stats()
        except OSError as exc:
            logger.warning("cannot scan content root: %s", exc)
            return 0

        signature = build_content_watch_signature(stats)
        previous = self._stats
        self._stats = stats
        if previous is None or signature == self._signature:
            self._signature = signature
            return 0
        self._signature = signature

        changes = diff_content_stats(previous, stats)
        for change in changes:
            self.coordinator.notify(change.path, change.change)
        return len(changes)

    def step(self) -> bool:
        self.poll_once()
        return self.coordinator.tick()

    def run(self) -> None:
        if self._stats is None:
            self.prime()
        while not self._stop.wait(self.poll_seconds):
            self.step()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        if self._stats is None:
            self.prime()
        self._thread = threading.Thread(target=self.run, name="vellum-watch", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
        self._thread = None


def create_watch_loop(engine, source, config=None) -> WatchLoop:
    """Wire a filesystem source and an engine into a ready-to-start loop."""
    config = config if config is not None else engine.config
    coordinator = InvalidationCoordinator(
        engine.rebuild,
        engine.broadcast,
        debounce_seconds=config.debounce_seconds,
        marker_name=config.marker,
        marker_active=source.marker_present(),
    )
    return WatchLoop(source.scan_stats, coordinator, poll_seconds=config.watch_poll_seconds)


__all__ = [
    "CHANGE_KINDS",
    "CoordinatorState",
    "InvalidationCoordinator",
    "WatchLoop",
    "create_watch_loop",
]
