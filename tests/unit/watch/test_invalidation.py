"""Coordinator state machine and watch-loop tests with an injected clock."""

from __future__ import annotations

import unittest

from vellum.invalidation import CoordinatorState, InvalidationCoordinator, WatchLoop


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class CoordinatorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.rebuilds: list[float] = []
        self.broadcasts: list[float] = []
        self.coordinator = InvalidationCoordinator(
            lambda: self.rebuilds.append(self.clock.now),
            lambda: self.broadcasts.append(self.clock.now),
            debounce_seconds=1.0,
            monotonic=self.clock,
        )

    def test_burst_of_five_events_rebuilds_and_broadcasts_once(self) -> None:
        for idx in range(5):
            self.clock.now = idx * 0.2
            self.assertTrue(self.coordinator.notify(f"post-{idx}.md", "modified"))
            self.assertFalse(self.coordinator.tick())
        self.assertEqual(self.coordinator.state, CoordinatorState.PENDING_CHANGES)

        self.clock.now = 1.5
        self.assertFalse(self.coordinator.tick())

        self.clock.now = 2.0
        self.assertTrue(self.coordinator.tick())
        self.assertFalse(self.coordinator.tick())

        self.assertEqual(len(self.rebuilds), 1)
        self.assertEqual(len(self.broadcasts), 1)
        self.assertEqual(self.coordinator.state, CoordinatorState.IDLE)

    def test_non_content_paths_are_ignored(self) -> None:
        self.assertFalse(self.coordinator.notify("notes.txt", "added"))
        self.assertEqual(self.coordinator.state, CoordinatorState.IDLE)
        self.clock.now = 5.0
        self.assertFalse(self.coordinator.tick())

    def test_unknown_change_kind_raises(self) -> None:
        with self.assertRaises(ValueError):
            self.coordinator.notify("a.md", "renamed")

    def test_marker_suppresses_broadcast_until_removed(self) -> None:
        self.coordinator.notify(".running", "added")
        self.assertTrue(self.coordinator.marker_active)
        self.assertEqual(self.coordinator.state, CoordinatorState.IDLE)

        self.coordinator.notify("a.md", "modified")
        self.clock.now = 2.0
        self.assertTrue(self.coordinator.tick())
        self.assertEqual(len(self.rebuilds), 1)
        self.assertEqual(self.broadcasts, [])

        self.clock.now = 3.0
        self.coordinator.notify(".running", "removed")
        self.assertFalse(self.coordinator.marker_active)
        self.clock.now = 4.5
        self.assertTrue(self.coordinator.tick())
        self.assertEqual(len(self.rebuilds), 2)
        self.assertEqual(len(self.broadcasts), 1)

    def test_failed_rebuild_is_logged_and_returns_to_idle(self) -> None:
        def failing_rebuild() -> None:
            raise OSError("content root vanished")

        coordinator = InvalidationCoordinator(
            failing_rebuild,
            lambda: self.broadcasts.append(self.clock.now),
            monotonic=self.clock,
        )
        coordinator.notify("a.md", "removed")
        self.clock.now = 2.0
        with self.assertLogs("vellum.invalidation", level="ERROR"):
            self.assertFalse(coordinator.tick())

        self.assertEqual(coordinator.state, CoordinatorState.IDLE)
        self.assertEqual(coordinator.rebuild_count, 0)
        self.assertEqual(self.broadcasts, [])

    def test_events_during_rebuild_schedule_another(self) -> None:
        def rebuild() -> None:
            self.rebuilds.append(self.clock.now)
            if len(self.rebuilds) == 1:
                coordinator.notify("late.md", "added")

        coordinator = InvalidationCoordinator(rebuild, lambda: None, monotonic=self.clock)
        coordinator.notify("a.md", "added")
        self.clock.now = 1.0
        self.assertTrue(coordinator.tick())
        self.assertEqual(coordinator.state, CoordinatorState.PENDING_CHANGES)
        self.assertEqual(coordinator.pending_paths(), ["late.md"])

        self.clock.now = 2.0
        self.assertTrue(coordinator.tick())
        self.assertEqual(len(self.rebuilds), 2)


class WatchLoopTests(unittest.TestCase):
    def test_poll_forwards_diffs_and_step_rebuilds_after_debounce(self) -> None:
        clock = FakeClock()
        snapshots = {"a.md": (1, 1, 1)}
        rebuilds: list[int] = []
        coordinator = InvalidationCoordinator(lambda: rebuilds.append(1), lambda: None, monotonic=clock)
        loop = WatchLoop(lambda: dict(snapshots), coordinator, poll_seconds=0.1)

        loop.prime()
        self.assertEqual(loop.poll_once(), 0)

        snapshots["b.md"] = (1, 1, 1)
        snapshots["a.md"] = (2, 1, 1)
        self.assertEqual(loop.poll_once(), 2)
        self.assertEqual(coordinator.pending_paths(), ["a.md", "b.md"])
        self.assertFalse(loop.step())

        clock.now = 1.0
        self.assertTrue(loop.step())
        self.assertEqual(rebuilds, [1])

    def test_scan_errors_are_logged_not_raised(self) -> None:
        def scan() -> dict:
            raise OSError("gone")

        loop = WatchLoop(scan, InvalidationCoordinator(lambda: None, lambda: None))
        with self.assertLogs("vellum.invalidation", level="WARNING"):
            self.assertEqual(loop.poll_once(), 0)
