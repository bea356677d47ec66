#!/usr/bin/env python3
"""Olympus TUI — habits, focus timer and achievements in the terminal, powered by Textual."""

from __future__ import annotations

import logging
import sys
from typing import Any, Callable

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import Button, Footer, Header, Input, Label, ListItem, ListView, Static

from olympus import (
    FocusSession,
    FocusTimer,
    OlympusError,
    RepositoryError,
    TimerState,
    achievement_board,
    create_habit,
    get_clock,
    habit_progress,
    list_unlocked,
    load_profile,
    log_path,
    open_repository,
    refresh,
    run_hooks,
    setup_logging,
    toggle_completion,
    workspace_root,
)
from olympus.focus import ScheduledTick, Scheduler

logger = logging.getLogger("olympus.tui")


# ── Scheduler adapter ─────────────────────────────────────────


class _IntervalTick(ScheduledTick):
    def __init__(self, app: App, callback: Callable[[], Any], after: Callable[[], Any] | None):
        super().__init__(callback)
        self._app = app
        self._after = after
        self.timer = None

    def fire(self) -> None:
        if not self.active:
            return
        try:
            self.callback()
        except OlympusError as e:
            logger.error("Focus tick failed: %s", e)
            self._app.notify(f"Focus session error: {e}", severity="error")
        if self._after is not None:
            self._after()

    def cancel(self) -> None:
        super().cancel()
        if self.timer is not None:
            self.timer.stop()
            self.timer = None


class TextualScheduler(Scheduler):
    """Scheduler backed by ``App.set_interval``; *after* runs after each tick."""

    def __init__(self, app: App, after: Callable[[], Any] | None = None):
        self.app = app
        self.after = after

    def start(self, interval: float, callback: Callable[[], Any]) -> ScheduledTick:
        handle = _IntervalTick(self.app, callback, self.after)
        handle.timer = self.app.set_interval(interval, handle.fire)
        return handle


# ── Widgets ───────────────────────────────────────────────────


class HabitItem(ListItem):
    def __init__(self, habit_id: str, *children: Any):
        super().__init__(*children)
        self.habit_id = habit_id


CSS = """
#main-layout { height: 1fr; }
#left-pane { width: 1fr; border: round $accent; padding: 0 1; }
#center-pane { width: 1fr; border: round $accent; padding: 0 1; }
#right-pane { width: 1fr; border: round $accent; padding: 0 1; }
.section-title { text-style: bold; color: $accent; margin-bottom: 1; }
#timer-display { text-align: center; text-style: bold; height: 3; content-align: center middle; }
#focus-buttons, #preset-buttons { height: auto; }
#focus-buttons Button, #preset-buttons Button { min-width: 8; margin-right: 1; }
#habit-list { height: 1fr; }
"""


class OlympusApp(App):
    """Interactive Olympus tracker."""

    CSS = CSS
    TITLE = "Olympus"

    BINDINGS = [
        Binding("ctrl+r", "refresh", "Refresh"),
        Binding("ctrl+t", "toggle_timer", "Start/Pause"),
        Binding("ctrl+x", "reset_timer", "Reset"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.root = workspace_root()
        self.profile = load_profile(self.root)
        self.repo = open_repository(self.root)
        self.clock = get_clock(self.root)
        self.timer = FocusTimer(
            self.repo,
            self.clock,
            TextualScheduler(self, after=self._update_timer),
            duration_minutes=self.profile.focus_minutes,
            on_start=self._on_focus_start,
            on_complete=self._on_focus_complete,
        )
        self._habit_state: dict[str, bool] = {}

    def compose(self) -> ComposeResult:
        yield Header()
        yield Horizontal(
            VerticalScroll(
                Label("Dashboard", classes="section-title"),
                Static(id="stats"),
                Label("Achievements", classes="section-title"),
                Static(id="achievements"),
                id="left-pane",
            ),
            Vertical(
                Label("Habits  (enter toggles today)", classes="section-title"),
                ListView(id="habit-list"),
                Input(placeholder="New habit name, then enter", id="new-habit"),
                id="center-pane",
            ),
            Vertical(
                Label("Focus", classes="section-title"),
                Static(id="timer-display"),
                Input(placeholder="What are you focusing on?", id="task-name"),
                Horizontal(
                    Button("Start", id="start", variant="primary"),
                    Button("Pause", id="pause"),
                    Button("Reset", id="reset"),
                    id="focus-buttons",
                ),
                Horizontal(
                    *[Button(f"{m}m", id=f"preset-{m}") for m in self.profile.focus_presets],
                    id="preset-buttons",
                ),
                Static(id="focus-count"),
                id="right-pane",
            ),
            id="main-layout",
        )
        yield Footer()

    def on_mount(self) -> None:
        try:
            self.timer.load_completed_count()
        except RepositoryError as e:
            self.notify(f"Could not load sessions: {e}", severity="error")
        self._update_timer()
        self.action_refresh()

    # ── Rendering ─────────────────────────────────────────────

    def action_refresh(self) -> None:
        try:
            stats, unlocked = refresh(self.repo, self.clock, self.root)
            progress = habit_progress(self.repo, self.clock)
            board = achievement_board(stats, list_unlocked(self.repo))
        except RepositoryError as e:
            self.notify(f"Storage error: {e}", severity="error")
            return
        for a in unlocked:
            self.notify(f"Achievement unlocked: {a.title}", title="🏆")

        self.query_one("#stats", Static).update(
            f"Active habits: {stats.total_habits} ({stats.completed_today} done today)\n"
            f"Longest streak: {stats.longest_streak} days\n"
            f"Focus time: {stats.total_focus_minutes // 60}h {stats.total_focus_minutes % 60}m\n"
            f"Tasks: {stats.completed_tasks}/{stats.total_tasks}\n"
            f"Journal entries: {stats.journal_entries}"
        )
        lines = []
        for row in board:
            mark = "★" if row["unlocked"] else "☆"
            lines.append(f"{mark} {row['title']}  {row['progress_pct']:.0f}%")
        self.query_one("#achievements", Static).update("\n".join(lines))

        habit_list = self.query_one("#habit-list", ListView)
        habit_list.clear()
        self._habit_state = {}
        for p in progress:
            self._habit_state[p.habit.id] = p.completed_today
            check = "✔" if p.completed_today else "·"
            habit_list.append(HabitItem(
                p.habit.id,
                Label(f"{check} {p.habit.name}  🔥{p.streak} (best {p.best_streak})"),
            ))

    def _update_timer(self) -> None:
        t = self.timer
        self.query_one("#timer-display", Static).update(f"{t.display}  ({t.state.value})")
        self.query_one("#focus-count", Static).update(f"Completed sessions: {t.completed_sessions}")
        self.query_one("#task-name", Input).disabled = t.state in (TimerState.RUNNING, TimerState.PAUSED)

    # ── Habits ────────────────────────────────────────────────

    @on(ListView.Selected, "#habit-list")
    def _on_habit_selected(self, event: ListView.Selected) -> None:
        if not isinstance(event.item, HabitItem):
            return
        habit_id = event.item.habit_id
        try:
            done = toggle_completion(self.repo, habit_id, self._habit_state.get(habit_id, False), self.clock)
        except RepositoryError as e:
            self.notify(f"Toggle failed: {e}", severity="error")
            return
        run_hooks("on_habit_toggle", {"habit_id": habit_id, "completed": done}, self.root)
        self.action_refresh()

    @on(Input.Submitted, "#new-habit")
    def _on_new_habit(self, event: Input.Submitted) -> None:
        try:
            create_habit(self.repo, event.value, self.clock)
        except OlympusError as e:
            self.notify(str(e), severity="error")
            return
        event.input.value = ""
        self.action_refresh()

    # ── Focus ─────────────────────────────────────────────────

    @on(Button.Pressed)
    def _on_button(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        if button_id == "start":
            self._start_timer()
        elif button_id == "pause":
            self._pause_timer()
        elif button_id == "reset":
            self.action_reset_timer()
        elif button_id.startswith("preset-"):
            try:
                self.timer.set_duration(int(button_id.removeprefix("preset-")))
            except OlympusError as e:
                self.notify(str(e), severity="warning")
        self._update_timer()

    def _start_timer(self) -> None:
        name = self.query_one("#task-name", Input).value
        try:
            self.timer.start(name)
        except OlympusError as e:
            self.notify(str(e), severity="error")

    def _pause_timer(self) -> None:
        try:
            self.timer.pause()
        except OlympusError as e:
            self.notify(str(e), severity="warning")

    def action_toggle_timer(self) -> None:
        if self.timer.state is TimerState.RUNNING:
            self._pause_timer()
        else:
            self._start_timer()
        self._update_timer()

    def action_reset_timer(self) -> None:
        self.timer.reset()
        self._update_timer()

    def _on_focus_start(self, session: FocusSession) -> None:
        run_hooks("on_focus_start", session.to_dict(), self.root)

    def _on_focus_complete(self, session: FocusSession) -> None:
        self.notify(f"Session complete: {session.task_name} ({session.actual_minutes} min)", title="⏳")
        run_hooks("on_focus_complete", session.to_dict(), self.root)
        self.action_refresh()


# ── Entry point ────────────────────────────────────────────────


def main() -> None:
    root = workspace_root()
    if not root.exists():
        print(f"Workspace not found: {root}")
        print("Set OLYMPUS_ROOT or create the directory first.")
        sys.exit(1)

    profile = load_profile(root)
    setup_logging(profile.log_level, log_path(root, profile), stream=False)
    app = OlympusApp()
    app.run()


if __name__ == "__main__":
    main()
