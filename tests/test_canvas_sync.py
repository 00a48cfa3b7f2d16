from __future__ import annotations

import asyncio
import unittest

from focus_canvas.adapters.clock import Ticker
from focus_canvas.adapters.scene_buffer import SceneBuffer
from focus_canvas.application.autosave import AutosaveScheduler
from focus_canvas.application.canvas_sync import CanvasSyncEngine
from focus_canvas.application.dirty_tracker import DirtyTracker, canonicalize, snapshots_differ
from focus_canvas.application.save_guard import SKIPPED, SaveGuard
from focus_canvas.application.save_status import SaveStatusIndicator
from focus_canvas.domain.canvas import SaveStatus, StoredCanvas
from focus_canvas.errors import LoadFailure, SaveFailure, SaveGuardTimeout, StorageError


class GatedCanvasStore:
    """Canvas half of the persistence port with gates for interleaving saves and loads."""

    def __init__(self) -> None:
        self.documents: dict[int, StoredCanvas] = {}
        self.saves: list[tuple[int, str]] = []
        self.calls: list[tuple[str, int]] = []
        self.save_gate: asyncio.Event | None = None
        self.load_gate: asyncio.Event | None = None
        self.save_started = asyncio.Event()
        self.fail_saves = False
        self.fail_loads = False
        self.active_saves = 0
        self.max_active_saves = 0

    async def get_canvas_document(self, project_id: int) -> StoredCanvas | None:
        self.calls.append(("load", project_id))
        if self.load_gate is not None:
            await self.load_gate.wait()
        if self.fail_loads:
            raise StorageError("canvas table unavailable")
        return self.documents.get(project_id)

    async def save_canvas_document(self, elements: str, app_state: str, project_id: int) -> None:
        self.calls.append(("save", project_id))
        self.active_saves += 1
        self.max_active_saves = max(self.max_active_saves, self.active_saves)
        self.save_started.set()
        try:
            if self.save_gate is not None:
                await self.save_gate.wait()
            if self.fail_saves:
                raise StorageError("disk full")
            self.saves.append((project_id, elements))
            self.documents[project_id] = StoredCanvas(elements, app_state, project_id)
        finally:
            self.active_saves -= 1


class FakeTicker:
    def __init__(self, interval: float, callback, name: str) -> None:
        self.interval = interval
        self.callback = callback
        self.name = name
        self.running = False
        self.start_calls = 0
        self.stop_calls = 0

    def start(self) -> None:
        self.start_calls += 1
        self.running = True

    def stop(self) -> None:
        self.stop_calls += 1
        self.running = False


class DirtyTrackerTests(unittest.TestCase):
    def test_key_order_and_whitespace_do_not_count_as_changes(self) -> None:
        self.assertFalse(snapshots_differ('[{"y": 2, "x": 1}]', '[{"x":1,"y":2}]'))
        self.assertTrue(snapshots_differ('[{"x": 1}]', '[{"x": 2}]'))

    def test_invalid_json_compares_by_raw_text(self) -> None:
        self.assertEqual(canonicalize("not json"), "not json")
        self.assertTrue(snapshots_differ("not json", "[]"))
        self.assertFalse(snapshots_differ("not json", "not json"))

    def test_should_save_rules(self) -> None:
        tracker = DirtyTracker('[{"id": "a"}]')

        self.assertFalse(tracker.should_save('[{"id": "a"}]'))
        self.assertTrue(tracker.should_save('[{"id": "b"}]'))
        self.assertFalse(tracker.should_save("[]"))
        self.assertTrue(tracker.should_save("[]", force=True))
        self.assertTrue(tracker.should_save('[{"id": "a"}]', force=True))

    def test_mark_persisted_moves_baseline(self) -> None:
        tracker = DirtyTracker()
        self.assertTrue(tracker.is_dirty("[]"))

        tracker.mark_persisted('[{"id": "a"}]')
        self.assertEqual(tracker.baseline, '[{"id": "a"}]')
        self.assertFalse(tracker.is_dirty('[{"id":"a"}]'))

        tracker.reset()
        self.assertEqual(tracker.baseline, "[]")


class SaveGuardTests(unittest.IsolatedAsyncioTestCase):
    async def test_polling_caller_is_skipped_while_busy(self) -> None:
        guard = SaveGuard()
        release = asyncio.Event()

        async def slow_save() -> str:
            await release.wait()
            return "written"

        first = asyncio.create_task(guard.with_exclusive_save(slow_save, wait=False))
        await asyncio.sleep(0)
        self.assertTrue(guard.in_flight)

        second = await guard.with_exclusive_save(slow_save, wait=False)
        self.assertIs(second, SKIPPED)
        self.assertEqual(guard.skipped_saves, 1)

        release.set()
        self.assertEqual(await first, "written")
        self.assertFalse(guard.in_flight)

    async def test_waiting_caller_runs_after_release(self) -> None:
        guard = SaveGuard()
        order: list[str] = []
        release = asyncio.Event()

        async def first_save() -> None:
            order.append("first-start")
            await release.wait()
            order.append("first-end")

        async def second_save() -> None:
            order.append("second")

        first = asyncio.create_task(guard.with_exclusive_save(first_save, wait=False))
        await asyncio.sleep(0)
        second = asyncio.create_task(guard.with_exclusive_save(second_save, wait=True))
        await asyncio.sleep(0)
        self.assertEqual(order, ["first-start"])

        release.set()
        await asyncio.gather(first, second)
        self.assertEqual(order, ["first-start", "first-end", "second"])

    async def test_guard_clears_when_save_raises(self) -> None:
        guard = SaveGuard()

        async def broken_save() -> None:
            raise RuntimeError("boom")

        with self.assertRaises(RuntimeError):
            await guard.with_exclusive_save(broken_save, wait=False)
        self.assertFalse(guard.in_flight)
        self.assertEqual(guard.guarded_runs, 1)

    async def test_wait_idle_returns_once_released(self) -> None:
        guard = SaveGuard(wait_timeout=0.05)
        await guard.wait_idle()

        self.assertTrue(guard.try_acquire())
        waiter = asyncio.create_task(guard.wait_idle())
        await asyncio.sleep(0)
        self.assertFalse(waiter.done())

        guard.release()
        await waiter
        self.assertFalse(guard.in_flight)

        guard.try_acquire()
        with self.assertRaises(SaveGuardTimeout):
            await guard.wait_idle()
        guard.release()

    async def test_waiting_caller_times_out(self) -> None:
        guard = SaveGuard(wait_timeout=0.05)
        self.assertTrue(guard.try_acquire())

        with self.assertRaises(SaveGuardTimeout):
            await guard.acquire()

        guard.release()
        await guard.acquire()
        self.assertTrue(guard.in_flight)
        guard.release()


class SaveStatusIndicatorTests(unittest.IsolatedAsyncioTestCase):
    async def test_success_and_error_clear_back_to_idle(self) -> None:
        indicator = SaveStatusIndicator(success_clear_seconds=0.01, error_clear_seconds=0.02)
        seen: list[SaveStatus] = []
        indicator.add_listener(seen.append)

        indicator.begin()
        indicator.succeed()
        self.assertEqual(indicator.status, SaveStatus.SUCCESS)
        await asyncio.sleep(0.05)
        self.assertEqual(indicator.status, SaveStatus.IDLE)

        indicator.begin()
        indicator.fail()
        await asyncio.sleep(0.05)

        self.assertEqual(
            seen,
            [
                SaveStatus.SAVING,
                SaveStatus.SUCCESS,
                SaveStatus.IDLE,
                SaveStatus.SAVING,
                SaveStatus.ERROR,
                SaveStatus.IDLE,
            ],
        )
        indicator.close()


class CanvasSyncEngineTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.store = GatedCanvasStore()
        self.store.documents[1] = StoredCanvas('[{"id": "a"}]', "{}", 1)
        self.store.documents[2] = StoredCanvas('[{"id": "b"}]', "{}", 2)
        self.errors: list[Exception] = []
        self.engine = CanvasSyncEngine(self.store, on_error=self.errors.append)
        self.surface = SceneBuffer()
        await self.engine.switch_project(1)
        await self.engine.attach_surface(self.surface)
        self.store.calls.clear()

    async def asyncTearDown(self) -> None:
        self.engine.status.close()

    async def test_load_applies_stored_document(self) -> None:
        self.assertTrue(self.engine.ready)
        self.assertEqual(self.surface.get_scene_elements(), [{"id": "a"}])
        self.assertEqual(self.engine.tracker.baseline, '[{"id": "a"}]')
        self.assertFalse(self.engine.is_dirty())

    async def test_unchanged_canvas_is_not_rewritten(self) -> None:
        self.assertFalse(await self.engine.save())
        self.assertEqual(self.store.saves, [])

    async def test_dirty_canvas_is_written_once(self) -> None:
        self.surface.add_element({"id": "c"})

        self.assertTrue(await self.engine.save())
        self.assertFalse(await self.engine.save())
        self.assertEqual(len(self.store.saves), 1)
        self.assertEqual(self.engine.write_count, 1)
        self.assertEqual(self.engine.guard.guarded_runs, 2)
        self.assertEqual(self.engine.status.status, SaveStatus.SUCCESS)

    async def test_reordered_keys_are_not_dirty(self) -> None:
        self.engine.tracker.mark_persisted('[{"x": 1, "y": 2}]')
        self.surface.update_scene([{"y": 2, "x": 1}], {})

        self.assertFalse(self.engine.is_dirty())
        self.assertFalse(await self.engine.save())

    async def test_empty_canvas_needs_a_forced_save(self) -> None:
        self.surface.clear()

        self.assertFalse(await self.engine.save())
        self.assertEqual(self.store.saves, [])

        self.assertTrue(await self.engine.save(force=True))
        self.assertEqual(self.store.saves, [(1, "[]")])

    async def test_forced_save_writes_unchanged_canvas(self) -> None:
        self.assertTrue(await self.engine.save(force=True))
        self.assertEqual(self.store.saves, [(1, '[{"id": "a"}]')])

    async def test_failed_save_keeps_baseline(self) -> None:
        self.store.fail_saves = True
        self.surface.add_element({"id": "c"})

        self.assertFalse(await self.engine.save())
        self.assertEqual(self.engine.tracker.baseline, '[{"id": "a"}]')
        self.assertTrue(self.engine.is_dirty())
        self.assertEqual(self.engine.status.status, SaveStatus.ERROR)
        self.assertIsInstance(self.errors[-1], SaveFailure)
        self.assertIn("disk full", str(self.errors[-1]))

        self.store.fail_saves = False
        self.assertTrue(await self.engine.save())
        self.assertFalse(self.engine.is_dirty())

    async def test_periodic_save_is_skipped_while_one_is_in_flight(self) -> None:
        self.store.save_gate = asyncio.Event()
        self.surface.add_element({"id": "c"})

        first = asyncio.create_task(self.engine.save())
        await self.store.save_started.wait()
        self.assertTrue(self.engine.guard.in_flight)

        self.assertFalse(await self.engine.save())
        self.assertEqual(self.engine.guard.skipped_saves, 1)

        self.store.save_gate.set()
        self.assertTrue(await first)
        self.assertEqual(len(self.store.saves), 1)

    async def test_waiting_save_never_overlaps_in_flight_save(self) -> None:
        self.store.save_gate = asyncio.Event()
        self.surface.add_element({"id": "c"})

        first = asyncio.create_task(self.engine.save())
        await self.store.save_started.wait()
        self.surface.add_element({"id": "d"})
        waiter = asyncio.create_task(self.engine.save(wait=True))
        await asyncio.sleep(0)
        self.assertFalse(waiter.done())

        self.store.save_gate.set()
        self.assertTrue(await first)
        self.assertTrue(await waiter)

        self.assertEqual(self.store.max_active_saves, 1)
        self.assertEqual(len(self.store.saves), 2)
        self.assertIn('"d"', self.store.saves[-1][1])

    async def test_waiting_save_timeout_is_reported(self) -> None:
        self.engine.guard = SaveGuard(wait_timeout=0.05)
        self.engine.guard.try_acquire()
        self.surface.add_element({"id": "c"})

        self.assertFalse(await self.engine.save(wait=True))
        self.assertIsInstance(self.errors[-1], SaveGuardTimeout)
        self.assertEqual(self.engine.status.status, SaveStatus.ERROR)
        self.engine.guard.release()

    async def test_switch_flushes_previous_project_before_loading_next(self) -> None:
        self.surface.add_element({"id": "c"})

        flushed = await self.engine.switch_project(2)

        self.assertTrue(flushed)
        self.assertEqual(self.store.calls, [("save", 1), ("load", 2)])
        self.assertEqual(self.store.saves, [(1, '[{"id": "a"}, {"id": "c"}]')])
        self.assertEqual(self.store.documents[2].elements, '[{"id": "b"}]')
        self.assertEqual(self.surface.get_scene_elements(), [{"id": "b"}])
        self.assertEqual(self.engine.project_id, 2)
        self.assertTrue(self.engine.ready)

    async def test_clean_switch_does_not_write(self) -> None:
        self.assertFalse(await self.engine.switch_project(2))
        self.assertEqual(self.store.saves, [])

    async def test_switch_to_same_project_is_a_no_op(self) -> None:
        self.assertFalse(await self.engine.switch_project(1))
        self.assertEqual(self.store.calls, [])

    async def test_switch_waits_for_in_flight_periodic_save(self) -> None:
        self.store.save_gate = asyncio.Event()
        self.surface.add_element({"id": "c"})

        periodic = asyncio.create_task(self.engine.save())
        await self.store.save_started.wait()
        self.surface.add_element({"id": "e"})

        switch = asyncio.create_task(self.engine.switch_project(2))
        await asyncio.sleep(0)
        self.assertFalse(self.engine.ready)
        self.assertFalse(switch.done())

        self.store.save_gate.set()
        self.assertTrue(await periodic)
        self.assertTrue(await switch)

        self.assertEqual([project_id for project_id, _ in self.store.saves], [1, 1])
        self.assertIn('"e"', self.store.saves[-1][1])
        self.assertEqual(self.store.max_active_saves, 1)
        self.assertEqual(self.surface.get_scene_elements(), [{"id": "b"}])

    async def test_undo_during_in_flight_save_is_flushed_before_switch(self) -> None:
        self.store.save_gate = asyncio.Event()
        self.surface.add_element({"id": "c"})

        periodic = asyncio.create_task(self.engine.save())
        await self.store.save_started.wait()
        self.surface.remove_element(1)

        switch = asyncio.create_task(self.engine.switch_project(2))
        await asyncio.sleep(0)
        self.assertFalse(switch.done())
        self.assertEqual(self.store.calls, [("save", 1)])

        self.store.save_gate.set()
        self.assertTrue(await periodic)
        self.assertTrue(await switch)

        self.assertEqual(self.store.documents[1].elements, '[{"id": "a"}]')
        self.assertEqual(self.store.calls, [("save", 1), ("save", 1), ("load", 2)])
        self.assertEqual(self.surface.get_scene_elements(), [{"id": "b"}])
        self.assertEqual(self.engine.tracker.baseline, '[{"id": "b"}]')
        self.assertFalse(self.engine.is_dirty())

    async def test_late_save_keeps_next_project_baseline(self) -> None:
        self.engine.guard = SaveGuard(wait_timeout=0.05)
        self.store.save_gate = asyncio.Event()
        self.surface.add_element({"id": "c"})

        periodic = asyncio.create_task(self.engine.save())
        await self.store.save_started.wait()

        await self.engine.switch_project(2)
        self.assertIsInstance(self.errors[0], SaveGuardTimeout)
        self.assertEqual(len(self.errors), 1)
        self.assertEqual(self.surface.get_scene_elements(), [{"id": "b"}])

        self.store.save_gate.set()
        self.assertTrue(await periodic)

        self.assertEqual(self.store.saves, [(1, '[{"id": "a"}, {"id": "c"}]')])
        self.assertEqual(self.engine.tracker.baseline, '[{"id": "b"}]')
        self.assertFalse(self.engine.is_dirty())

    async def test_failed_load_fails_open_with_empty_scene(self) -> None:
        self.store.fail_loads = True

        await self.engine.switch_project(2)

        self.assertTrue(self.engine.ready)
        self.assertEqual(self.surface.get_scene_elements(), [])
        self.assertEqual(self.engine.tracker.baseline, "[]")
        self.assertIsInstance(self.errors[-1], LoadFailure)
        self.assertFalse(await self.engine.save())
        self.assertEqual(self.store.saves, [])

    async def test_missing_document_loads_empty_scene(self) -> None:
        del self.store.documents[2]

        await self.engine.switch_project(2)

        self.assertEqual(self.surface.get_scene_elements(), [])
        self.assertEqual(self.surface.get_app_state(), {"zenModeEnabled": False})
        self.assertFalse(self.engine.is_dirty())

    async def test_stale_load_is_discarded(self) -> None:
        self.store.load_gate = asyncio.Event()

        to_second = asyncio.create_task(self.engine.switch_project(2))
        await asyncio.sleep(0)
        back_to_first = asyncio.create_task(self.engine.switch_project(1))
        await asyncio.sleep(0)

        self.store.load_gate.set()
        await asyncio.gather(to_second, back_to_first)

        self.assertEqual(self.engine.project_id, 1)
        self.assertTrue(self.engine.ready)
        self.assertEqual(self.surface.get_scene_elements(), [{"id": "a"}])

    async def test_detached_surface_blocks_saves(self) -> None:
        self.surface.add_element({"id": "c"})
        self.engine.detach_surface()

        self.assertFalse(self.engine.ready)
        self.assertFalse(await self.engine.flush())
        self.assertEqual(self.store.saves, [])


class AutosaveSchedulerTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.store = GatedCanvasStore()
        self.store.documents[1] = StoredCanvas('[{"id": "a"}]', "{}", 1)
        self.engine = CanvasSyncEngine(self.store)
        self.surface = SceneBuffer()
        self.tickers: list[FakeTicker] = []

        def factory(interval: float, callback, name: str) -> FakeTicker:
            ticker = FakeTicker(interval, callback, name)
            self.tickers.append(ticker)
            return ticker

        self.autosave = AutosaveScheduler(self.engine, interval=2.0, ticker_factory=factory)
        await self.engine.switch_project(1)
        await self.engine.attach_surface(self.surface)

    async def asyncTearDown(self) -> None:
        self.engine.status.close()

    async def test_start_and_stop_drive_one_ticker(self) -> None:
        self.autosave.start()
        self.autosave.start()
        self.assertEqual(len(self.tickers), 1)
        self.assertEqual(self.tickers[0].name, "canvas-autosave")
        self.assertEqual(self.tickers[0].interval, 2.0)
        self.assertTrue(self.autosave.running)

        self.autosave.stop()
        self.assertFalse(self.autosave.running)

    async def test_tick_saves_only_when_dirty(self) -> None:
        self.assertFalse(await self.autosave.tick())

        self.surface.add_element({"id": "b"})
        self.assertTrue(await self.autosave.tick())
        self.assertFalse(await self.autosave.tick())

        self.assertEqual(self.autosave.tick_count, 3)
        self.assertEqual(len(self.store.saves), 1)

    async def test_tick_does_nothing_while_reload_is_pending(self) -> None:
        self.surface.add_element({"id": "b"})
        self.engine.request_reload()

        self.assertFalse(await self.autosave.tick())
        self.assertEqual(self.store.saves, [])

    async def test_close_forces_one_save(self) -> None:
        self.assertTrue(await self.autosave.on_close())
        self.assertEqual(self.store.saves, [(1, '[{"id": "a"}]')])

    async def test_close_skips_when_save_in_flight(self) -> None:
        self.engine.guard.try_acquire()
        self.assertFalse(await self.autosave.on_close())
        self.engine.guard.release()
        self.assertEqual(self.store.saves, [])


class TickerTests(unittest.IsolatedAsyncioTestCase):
    async def test_ticker_calls_back_until_stopped(self) -> None:
        calls: list[int] = []

        async def callback() -> None:
            calls.append(len(calls))

        ticker = Ticker(0.01, callback, name="test-ticker")
        ticker.start()
        await asyncio.sleep(0.06)
        ticker.stop()
        count = len(calls)
        await asyncio.sleep(0.03)

        self.assertGreaterEqual(count, 1)
        self.assertEqual(len(calls), count)
        self.assertFalse(ticker.running)

    async def test_failing_callback_keeps_ticking(self) -> None:
        calls: list[int] = []

        def callback() -> None:
            calls.append(1)
            raise RuntimeError("tick failed")

        ticker = Ticker(0.01, callback, name="flaky")
        with self.assertLogs("focus_canvas.adapters.clock", level="ERROR"):
            ticker.start()
            await asyncio.sleep(0.06)
            ticker.stop()

        self.assertGreaterEqual(len(calls), 2)

    def test_interval_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            Ticker(0, lambda: None)


if __name__ == "__main__":
    unittest.main()
