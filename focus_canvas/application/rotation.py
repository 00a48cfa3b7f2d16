"""Focus-timer state machine: countdown plus task rotation.

Transitions are pure ``(state, action, tasks) -> Transition`` computations.
``tasks`` is the task list in display order at the moment of the transition,
so tasks added or reordered mid-focus are honored by the next skip or done.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence, Union

from focus_canvas.domain.countdown import CountdownState
from focus_canvas.domain.task import Task
from focus_canvas.errors import ValidationFailure


@dataclass(frozen=True, slots=True)
class StartFocus:
    task: Task


@dataclass(frozen=True, slots=True)
class Tick:
    pass


@dataclass(frozen=True, slots=True)
class Pause:
    pass


@dataclass(frozen=True, slots=True)
class Resume:
    pass


@dataclass(frozen=True, slots=True)
class TogglePause:
    pass


@dataclass(frozen=True, slots=True)
class Skip:
    pass


@dataclass(frozen=True, slots=True)
class Done:
    pass


@dataclass(frozen=True, slots=True)
class Reset:
    pass


RotationAction = Union[StartFocus, Tick, Pause, Resume, TogglePause, Skip, Done, Reset]


@dataclass(frozen=True, slots=True)
class Transition:
    """Result of one reducer step.

    ``exit_focus`` tells the caller no incomplete task is left to activate.
    ``expired`` marks a tick that ran the countdown down to zero.
    ``completed_task_id`` asks the caller to mark that task completed.
    """

    state: CountdownState
    exit_focus: bool = False
    expired: bool = False
    completed_task_id: int | None = None


def incomplete_tasks(tasks: Sequence[Task]) -> list[Task]:
    return [task for task in tasks if not task.completed]


def start_focus(task: Task) -> Transition:
    if task.completed:
        raise ValidationFailure(f"Task {task.task_id} is completed and cannot be focused")
    if task.estimated_minutes <= 0:
        raise ValidationFailure(f"Task {task.task_id} has no positive duration")
    return Transition(CountdownState.focused(task))


def tick(state: CountdownState, tasks: Sequence[Task]) -> Transition:
    if not state.is_running:
        return Transition(state)
    if state.remaining_seconds <= 1:
        return replace(skip(state, tasks), expired=True)
    return Transition(replace(state, remaining_seconds=state.remaining_seconds - 1))


def set_paused(state: CountdownState, paused: bool) -> Transition:
    if state.is_idle:
        return Transition(state)
    return Transition(replace(state, paused=paused))


def skip(state: CountdownState, tasks: Sequence[Task]) -> Transition:
    active = state.active_task
    if active is None:
        return Transition(state)

    candidates = incomplete_tasks(tasks)
    position = _position_of(candidates, active.task_id)

    if position + 1 < len(candidates):
        return Transition(CountdownState.focused(candidates[position + 1]))
    if len(candidates) > 1:
        # Rotate back to the top instead of finishing while work remains.
        return Transition(CountdownState.focused(candidates[0]))
    return Transition(CountdownState.idle(), exit_focus=True)


def done(state: CountdownState, tasks: Sequence[Task]) -> Transition:
    active = state.active_task
    if active is None:
        return Transition(state)

    remaining = [
        task
        for task in tasks
        if not task.completed and task.task_id != active.task_id
    ]
    if remaining:
        return Transition(
            CountdownState.focused(remaining[0]),
            completed_task_id=active.task_id,
        )
    return Transition(
        CountdownState.idle(),
        exit_focus=True,
        completed_task_id=active.task_id,
    )


def reduce(state: CountdownState, action: RotationAction, tasks: Sequence[Task]) -> Transition:
    if isinstance(action, StartFocus):
        return start_focus(action.task)
    if isinstance(action, Tick):
        return tick(state, tasks)
    if isinstance(action, Pause):
        return set_paused(state, True)
    if isinstance(action, Resume):
        return set_paused(state, False)
    if isinstance(action, TogglePause):
        return set_paused(state, not state.paused)
    if isinstance(action, Skip):
        return skip(state, tasks)
    if isinstance(action, Done):
        return done(state, tasks)
    if isinstance(action, Reset):
        return Transition(CountdownState.idle())
    raise TypeError(f"Unknown rotation action: {action!r}")


class TaskRotationEngine:
    """Holds the countdown state and applies reducer transitions to it."""

    __slots__ = ("_state",)

    def __init__(self, state: CountdownState | None = None) -> None:
        self._state = state or CountdownState.idle()

    @property
    def state(self) -> CountdownState:
        return self._state

    def dispatch(self, action: RotationAction, tasks: Sequence[Task] = ()) -> Transition:
        transition = reduce(self._state, action, tasks)
        self._state = transition.state
        return transition

    def start_focus(self, task: Task) -> Transition:
        return self.dispatch(StartFocus(task))

    def tick(self, tasks: Sequence[Task]) -> Transition:
        return self.dispatch(Tick(), tasks)

    def pause(self) -> Transition:
        return self.dispatch(Pause())

    def resume(self) -> Transition:
        return self.dispatch(Resume())

    def toggle_pause(self) -> Transition:
        return self.dispatch(TogglePause())

    def skip(self, tasks: Sequence[Task]) -> Transition:
        return self.dispatch(Skip(), tasks)

    def done(self, tasks: Sequence[Task]) -> Transition:
        return self.dispatch(Done(), tasks)

    def reset(self) -> Transition:
        return self.dispatch(Reset())

    def replace_active_task(self, task: Task) -> None:
        """Swap in a fresher copy of the active task without touching the countdown."""
        active = self._state.active_task
        if active is not None and active.task_id == task.task_id:
            self._state = replace(self._state, active_task=task)


def _position_of(tasks: Sequence[Task], task_id: int) -> int:
    for index, task in enumerate(tasks):
        if task.task_id == task_id:
            return index
    return -1
