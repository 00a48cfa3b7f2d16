from __future__ import annotations

import unittest

from focus_canvas.application.rotation import (
    Done,
    Pause,
    Reset,
    Resume,
    Skip,
    StartFocus,
    TaskRotationEngine,
    Tick,
    TogglePause,
    reduce,
)
from focus_canvas.domain.countdown import CountdownState
from focus_canvas.domain.task import Task, format_countdown
from focus_canvas.errors import ValidationFailure


def make_task(task_id: int, *, minutes: int = 25, completed: bool = False) -> Task:
    return Task(
        task_id=task_id,
        text=f"Task {task_id}",
        project_id=1,
        estimated_minutes=minutes,
        completed=completed,
    )


class RotationReducerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.a = make_task(1)
        self.b = make_task(2, minutes=10)
        self.c = make_task(3, minutes=5)
        self.tasks = [self.a, self.b, self.c]

    def test_start_focus_loads_full_duration(self) -> None:
        transition = reduce(CountdownState.idle(), StartFocus(self.b), self.tasks)

        self.assertIs(transition.state.active_task, self.b)
        self.assertEqual(transition.state.remaining_seconds, 600)
        self.assertFalse(transition.state.paused)
        self.assertFalse(transition.exit_focus)

    def test_start_focus_rejects_completed_task(self) -> None:
        with self.assertRaises(ValidationFailure):
            reduce(CountdownState.idle(), StartFocus(make_task(9, completed=True)), self.tasks)

    def test_tick_decrements_only_while_running(self) -> None:
        focused = CountdownState.focused(self.a)

        ticked = reduce(focused, Tick(), self.tasks).state
        self.assertEqual(ticked.remaining_seconds, 25 * 60 - 1)

        paused = reduce(ticked, Pause(), self.tasks).state
        self.assertEqual(reduce(paused, Tick(), self.tasks).state, paused)

        idle = CountdownState.idle()
        self.assertEqual(reduce(idle, Tick(), self.tasks).state, idle)

    def test_pause_resume_and_toggle(self) -> None:
        focused = CountdownState.focused(self.a)

        paused = reduce(focused, TogglePause(), self.tasks).state
        self.assertTrue(paused.paused)
        resumed = reduce(paused, Resume(), self.tasks).state
        self.assertFalse(resumed.paused)
        self.assertEqual(resumed.remaining_seconds, focused.remaining_seconds)

        idle = CountdownState.idle()
        self.assertEqual(reduce(idle, TogglePause(), self.tasks).state, idle)

    def test_expiry_advances_to_next_task(self) -> None:
        state = CountdownState(active_task=self.a, remaining_seconds=1, paused=False)

        transition = reduce(state, Tick(), self.tasks)

        self.assertTrue(transition.expired)
        self.assertFalse(transition.exit_focus)
        self.assertIs(transition.state.active_task, self.b)
        self.assertEqual(transition.state.remaining_seconds, 600)

    def test_skip_moves_forward_then_wraps(self) -> None:
        on_b = reduce(CountdownState.focused(self.a), Skip(), self.tasks).state
        self.assertIs(on_b.active_task, self.b)

        on_c = reduce(on_b, Skip(), self.tasks).state
        self.assertIs(on_c.active_task, self.c)

        wrapped = reduce(on_c, Skip(), self.tasks)
        self.assertIs(wrapped.state.active_task, self.a)
        self.assertFalse(wrapped.exit_focus)

    def test_skip_ignores_completed_tasks(self) -> None:
        tasks = [self.a, make_task(2, completed=True), self.c]

        transition = reduce(CountdownState.focused(self.a), Skip(), tasks)

        self.assertIs(transition.state.active_task, self.c)

    def test_skip_on_sole_task_exits_focus(self) -> None:
        transition = reduce(CountdownState.focused(self.a), Skip(), [self.a])

        self.assertTrue(transition.exit_focus)
        self.assertTrue(transition.state.is_idle)
        self.assertEqual(transition.state.remaining_seconds, 0)

    def test_skip_honors_tasks_added_mid_focus(self) -> None:
        focused = CountdownState.focused(self.a)

        transition = reduce(focused, Skip(), [self.a, self.b])

        self.assertIs(transition.state.active_task, self.b)

    def test_done_reports_completion_and_picks_first_remaining(self) -> None:
        transition = reduce(CountdownState.focused(self.b), Done(), self.tasks)

        self.assertEqual(transition.completed_task_id, self.b.task_id)
        self.assertIs(transition.state.active_task, self.a)
        self.assertFalse(transition.exit_focus)

    def test_done_on_last_incomplete_task_exits_focus(self) -> None:
        tasks = [make_task(1, completed=True), self.b]

        transition = reduce(CountdownState.focused(self.b), Done(), tasks)

        self.assertEqual(transition.completed_task_id, self.b.task_id)
        self.assertTrue(transition.exit_focus)
        self.assertTrue(transition.state.is_idle)

    def test_idle_skip_and_done_are_no_ops(self) -> None:
        idle = CountdownState.idle()

        for action in (Skip(), Done()):
            transition = reduce(idle, action, self.tasks)
            self.assertEqual(transition.state, idle)
            self.assertFalse(transition.exit_focus)
            self.assertIsNone(transition.completed_task_id)

    def test_reset_goes_idle_without_exit_signal(self) -> None:
        transition = reduce(CountdownState.focused(self.a), Reset(), self.tasks)

        self.assertTrue(transition.state.is_idle)
        self.assertFalse(transition.exit_focus)

    def test_unknown_action_raises(self) -> None:
        with self.assertRaises(TypeError):
            reduce(CountdownState.idle(), object(), self.tasks)  # type: ignore[arg-type]


class TaskRotationEngineTests(unittest.TestCase):
    def test_skip_and_done_walk_the_incomplete_tasks(self) -> None:
        a = make_task(1)
        b = make_task(2)
        c = make_task(3, completed=True)
        tasks = [a, b, c]
        engine = TaskRotationEngine()
        engine.start_focus(a)

        engine.skip(tasks)
        self.assertIs(engine.state.active_task, b)
        engine.skip(tasks)
        self.assertIs(engine.state.active_task, a)

        engine.start_focus(b)
        transition = engine.done(tasks)
        self.assertEqual(transition.completed_task_id, b.task_id)
        self.assertIs(engine.state.active_task, a)

        tasks = [a, make_task(2, completed=True), c]
        transition = engine.done(tasks)
        self.assertEqual(transition.completed_task_id, a.task_id)
        self.assertTrue(transition.exit_focus)
        self.assertTrue(engine.state.is_idle)

    def test_full_countdown_ends_in_one_exit_signal(self) -> None:
        task = make_task(1, minutes=25)
        engine = TaskRotationEngine()
        engine.start_focus(task)

        exits = 0
        for tick_number in range(1, 1501):
            transition = engine.tick([task])
            self.assertGreaterEqual(engine.state.remaining_seconds, 0)
            if tick_number == 1499:
                self.assertEqual(engine.state.remaining_seconds, 1)
                self.assertEqual(format_countdown(engine.state.remaining_seconds), "00:01")
            if transition.exit_focus:
                exits += 1
                self.assertEqual(tick_number, 1500)
                self.assertTrue(transition.expired)

        for _ in range(10):
            self.assertFalse(engine.tick([task]).exit_focus)

        self.assertEqual(exits, 1)
        self.assertTrue(engine.state.is_idle)

    def test_expiry_keeps_rotating_while_two_tasks_remain(self) -> None:
        first = make_task(1, minutes=1)
        second = make_task(2, minutes=1)
        engine = TaskRotationEngine()
        engine.start_focus(first)

        active_ids: list[int] = []
        for _ in range(180):
            transition = engine.tick([first, second])
            self.assertFalse(transition.exit_focus)
            if transition.expired:
                assert engine.state.active_task is not None
                active_ids.append(engine.state.active_task.task_id)

        self.assertEqual(active_ids, [2, 1, 2])

    def test_replace_active_task_keeps_countdown(self) -> None:
        task = make_task(1)
        engine = TaskRotationEngine()
        engine.start_focus(task)
        engine.tick([task])

        renamed = Task(task_id=1, text="Renamed", project_id=1)
        engine.replace_active_task(renamed)
        engine.replace_active_task(make_task(7))

        assert engine.state.active_task is not None
        self.assertEqual(engine.state.active_task.text, "Renamed")
        self.assertEqual(engine.state.remaining_seconds, 25 * 60 - 1)


if __name__ == "__main__":
    unittest.main()
