"""Aggregate statistics, recomputed from a repository snapshot."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from olympus.achievements import unlock_achievements
from olympus.clock import Clock
from olympus.models import Achievement, Stats
from olympus.repository import Repository
from olympus.streaks import current_streak, longest_current_streak

logger = logging.getLogger(__name__)


def compute_stats(snapshot: dict[str, list[dict[str, Any]]], today: str) -> Stats:
    """Build a fresh Stats from raw collections. No repository access."""
    habits = [h for h in snapshot.get("habits", []) if not h.get("archived")]
    active_ids = {str(h.get("id")) for h in habits}
    completions = snapshot.get("habit_completions", [])

    by_habit: dict[str, list[str]] = {hid: [] for hid in active_ids}
    for c in completions:
        hid = str(c.get("habit_id"))
        if hid in by_habit:
            by_habit[hid].append(str(c.get("completed_at", "")))

    streaks = [current_streak(days, today) for days in by_habit.values()]
    longest = longest_current_streak(streaks)

    sessions = [s for s in snapshot.get("focus_sessions", []) if s.get("completed")]
    focus_minutes = sum(int(s.get("actual_minutes") or 0) for s in sessions)
    tasks = snapshot.get("tasks", [])

    return Stats(
        total_habits=len(habits),
        completed_today=sum(1 for days in by_habit.values() if today in days),
        total_completions=sum(len(days) for days in by_habit.values()),
        current_streak=longest,
        longest_streak=longest,
        total_focus_minutes=focus_minutes,
        total_focus_hours=focus_minutes // 60,
        completed_sessions=len(sessions),
        completed_tasks=sum(1 for t in tasks if t.get("completed")),
        total_tasks=len(tasks),
        journal_entries=len(snapshot.get("journal_entries", [])),
        achievements_unlocked=len(snapshot.get("achievements", [])),
    )


def refresh(
    repo: Repository,
    clock: Clock,
    root: Path | None = None,
) -> tuple[Stats, list[Achievement]]:
    """Recompute stats, unlock what they earn, and fold the unlocks back in.

    With *root* set, ``on_achievement_unlock`` hooks run for each new unlock.
    """
    stats = compute_stats(repo.snapshot(), clock.today_key())
    unlocked = unlock_achievements(repo, stats, clock)
    if unlocked:
        stats.achievements_unlocked = len(repo.query("achievements"))
        if root is not None:
            from olympus.hooks import run_hooks
            for achievement in unlocked:
                run_hooks("on_achievement_unlock", achievement.to_dict(), root)
    logger.debug("Stats refreshed: %s", stats.to_dict())
    return stats, unlocked
