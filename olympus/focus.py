"""Focus session timer for Olympus.

A Pomodoro-style countdown driven by an injected scheduler. The timer owns at
most one open FocusSession record: it is created on the first start, kept
across pause/resume, closed on completion, and abandoned (not deleted) on
reset.

States::

    IDLE --start--> RUNNING --pause--> PAUSED --start--> RUNNING
    RUNNING --countdown hits 0--> COMPLETED --(auto)--> IDLE
    any --reset--> IDLE
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable

from olympus.clock import Clock
from olympus.errors import RepositoryError, SessionStateError, ValidationError
from olympus.models import FocusSession
from olympus.repository import Repository

logger = logging.getLogger(__name__)

SESSIONS = "focus_sessions"
TICK_SECONDS = 1.0


class TimerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"


# ── Schedulers ────────────────────────────────────────────────


class ScheduledTick:
    """Handle for a repeating callback. ``cancel()`` stops further calls."""

    def __init__(self, callback: Callable[[], Any]):
        self.callback = callback
        self.active = True

    def cancel(self) -> None:
        self.active = False


class Scheduler(ABC):
    """Starts a callback repeating every *interval* seconds."""

    @abstractmethod
    def start(self, interval: float, callback: Callable[[], Any]) -> ScheduledTick:
        """Schedule *callback*; the returned handle cancels it."""


class ManualScheduler(Scheduler):
    """Scheduler that only fires when ``tick()`` is called. For tests."""

    def __init__(self) -> None:
        self.handles: list[ScheduledTick] = []

    def start(self, interval: float, callback: Callable[[], Any]) -> ScheduledTick:
        handle = ScheduledTick(callback)
        self.handles.append(handle)
        return handle

    @property
    def active_count(self) -> int:
        return sum(1 for h in self.handles if h.active)

    def tick(self, n: int = 1) -> int:
        """Fire every active handle *n* times. Returns the number of calls made."""
        fired = 0
        for _ in range(n):
            live = [h for h in self.handles if h.active]
            if not live:
                break
            for handle in live:
                # an earlier callback in this round may have cancelled it
                if handle.active:
                    handle.callback()
                    fired += 1
        return fired


class _LoopTick(ScheduledTick):
    def __init__(self, loop: asyncio.AbstractEventLoop, interval: float, callback: Callable[[], Any]):
        super().__init__(callback)
        self._loop = loop
        self._interval = interval
        self._timer: asyncio.TimerHandle | None = None
        self._schedule()

    def _schedule(self) -> None:
        self._timer = self._loop.call_later(self._interval, self._fire)

    def _fire(self) -> None:
        if not self.active:
            return
        try:
            self.callback()
        finally:
            if self.active:
                self._schedule()

    def cancel(self) -> None:
        super().cancel()
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


class AsyncioScheduler(Scheduler):
    """Runs ticks on an asyncio event loop via ``call_later``."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None):
        self._loop = loop

    def start(self, interval: float, callback: Callable[[], Any]) -> ScheduledTick:
        loop = self._loop or asyncio.get_running_loop()
        return _LoopTick(loop, interval, callback)


# ── Timer ─────────────────────────────────────────────────────


class FocusTimer:
    """Countdown state machine bound to one open session record at a time."""

    def __init__(
        self,
        repo: Repository,
        clock: Clock,
        scheduler: Scheduler,
        duration_minutes: int = 25,
        on_start: Callable[[FocusSession], Any] | None = None,
        on_complete: Callable[[FocusSession], Any] | None = None,
        auto_reset: bool = True,
    ):
        if duration_minutes <= 0:
            raise ValidationError("Focus duration must be positive")
        self.repo = repo
        self.clock = clock
        self.scheduler = scheduler
        self.duration_minutes = duration_minutes
        self.remaining_seconds = duration_minutes * 60
        self.state = TimerState.IDLE
        self.task_name = ""
        self.session_id: str | None = None
        self.completed_sessions = 0
        self.on_start = on_start
        self.on_complete = on_complete
        self.auto_reset = auto_reset
        self._handle: ScheduledTick | None = None

    # ── Derived ───────────────────────────────────────────────

    @property
    def total_seconds(self) -> int:
        return self.duration_minutes * 60

    @property
    def progress_pct(self) -> float:
        return (self.total_seconds - self.remaining_seconds) / self.total_seconds * 100

    @property
    def display(self) -> str:
        mins, secs = divmod(self.remaining_seconds, 60)
        return f"{mins:02d}:{secs:02d}"

    def snapshot(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "durationMinutes": self.duration_minutes,
            "remainingSeconds": self.remaining_seconds,
            "display": self.display,
            "progressPct": round(self.progress_pct, 1),
            "taskName": self.task_name,
            "sessionId": self.session_id,
            "completedSessions": self.completed_sessions,
        }

    def load_completed_count(self) -> int:
        """Refresh the completed-session counter from the repository."""
        self.completed_sessions = len(self.repo.query(SESSIONS, {"completed": True}))
        return self.completed_sessions

    # ── Configuration ─────────────────────────────────────────

    def set_duration(self, minutes: int) -> None:
        """Change the configured duration. Only allowed with no session in progress."""
        if self.state in (TimerState.RUNNING, TimerState.PAUSED):
            raise SessionStateError("Duration can only change while the timer is idle")
        if minutes <= 0:
            raise ValidationError("Focus duration must be positive")
        self.duration_minutes = int(minutes)
        self._to_idle()

    def set_task_name(self, name: str) -> None:
        """Set the label of the next session. Locked while one is open."""
        if self.session_id is not None:
            raise SessionStateError("Cannot change the task of an open focus session")
        self.task_name = name

    # ── Transitions ───────────────────────────────────────────

    def start(self, task_name: str | None = None) -> None:
        """Idle/Paused -> Running. Opens a session record on first entry."""
        if self.state is TimerState.RUNNING:
            return
        if task_name is not None and task_name != self.task_name:
            self.set_task_name(task_name)
        if not self.task_name.strip():
            raise ValidationError("Please enter a task name")
        if self.state is TimerState.COMPLETED:
            self._to_idle()

        if self.session_id is None:
            session = FocusSession(
                duration_minutes=self.duration_minutes,
                task_name=self.task_name.strip(),
                started_at=self.clock.iso_now(),
            )
            record = session.to_dict()
            record.pop("id")
            try:
                stored = self.repo.insert(SESSIONS, record)
            except RepositoryError as e:
                logger.error("Could not open focus session: %s", e)
                raise
            self.session_id = stored["id"]
            logger.info("Focus session %s started: %s (%d min)", self.session_id, session.task_name, self.duration_minutes)
            if self.on_start is not None:
                self.on_start(FocusSession.from_dict(stored))
        else:
            logger.debug("Focus session %s resumed", self.session_id)

        self.state = TimerState.RUNNING
        self._handle = self.scheduler.start(TICK_SECONDS, self.tick)

    def pause(self) -> None:
        """Running -> Paused. Nothing is persisted; the record stays open."""
        if self.state is not TimerState.RUNNING:
            raise SessionStateError(f"Cannot pause while {self.state.value}")
        self._cancel()
        self.state = TimerState.PAUSED
        logger.debug("Focus session %s paused at %s", self.session_id, self.display)

    def reset(self) -> None:
        """Any state -> Idle. The open record is abandoned, not deleted."""
        self._cancel()
        if self.session_id is not None:
            logger.info("Focus session %s abandoned at %s", self.session_id, self.display)
        self.session_id = None
        self._to_idle()

    def tick(self) -> None:
        """Advance the countdown by one second. Ignored unless running."""
        if self.state is not TimerState.RUNNING:
            return
        if self.remaining_seconds > 0:
            self.remaining_seconds -= 1
        if self.remaining_seconds == 0:
            self._complete()

    # ── Internals ─────────────────────────────────────────────

    def _cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _to_idle(self) -> None:
        self.state = TimerState.IDLE
        self.remaining_seconds = self.total_seconds

    def _complete(self) -> None:
        self._cancel()
        self.state = TimerState.COMPLETED
        session_id, self.session_id = self.session_id, None
        closed: FocusSession | None = None
        try:
            if session_id is not None:
                patch = {
                    "completed": True,
                    "actual_minutes": self.duration_minutes,
                    "ended_at": self.clock.iso_now(),
                }
                try:
                    self.repo.update(SESSIONS, session_id, patch)
                except RepositoryError as e:
                    logger.error("Could not close focus session %s: %s", session_id, e)
                    raise
                self.completed_sessions += 1
                closed = FocusSession.from_dict(self.repo.get(SESSIONS, session_id) or {"id": session_id, **patch})
                logger.info("Focus session %s completed (%d total)", session_id, self.completed_sessions)
        finally:
            if self.auto_reset:
                self._to_idle()
        if closed is not None and self.on_complete is not None:
            self.on_complete(closed)


# ── Queries ───────────────────────────────────────────────────


def list_sessions(repo: Repository, limit: int | None = None) -> list[FocusSession]:
    """Sessions newest first."""
    rows = repo.query(SESSIONS, order_by=[("started_at", True)])
    if limit is not None:
        rows = rows[:limit]
    return [FocusSession.from_dict(r) for r in rows]


def focus_stats(repo: Repository) -> dict[str, Any]:
    """Totals over completed sessions; open and abandoned ones are counted apart."""
    sessions = [FocusSession.from_dict(r) for r in repo.query(SESSIONS)]
    completed = [s for s in sessions if s.completed]
    total_minutes = sum(s.actual_minutes for s in completed)
    return {
        "completed_sessions": len(completed),
        "open_sessions": sum(1 for s in sessions if s.is_open),
        "total_minutes": total_minutes,
        "total_hours": total_minutes // 60,
        "avg_session_minutes": round(total_minutes / len(completed), 1) if completed else 0,
    }
