"""Tests for olympus/stats.py — aggregate statistics and refresh."""

import yaml

from olympus.focus import FocusTimer, ManualScheduler
from olympus.habits import archive_habit, create_habit, toggle_completion
from olympus.journal import create_entry
from olympus.stats import compute_stats, refresh
from olympus.tasks import create_task, toggle_task


def test_compute_stats_empty():
    stats = compute_stats({}, "2026-02-11")
    assert stats.to_dict() == {
        "totalHabits": 0,
        "completedToday": 0,
        "totalCompletions": 0,
        "currentStreak": 0,
        "longestStreak": 0,
        "totalFocusMinutes": 0,
        "totalFocusHours": 0,
        "completedSessions": 0,
        "completedTasks": 0,
        "totalTasks": 0,
        "journalEntries": 0,
        "achievementsUnlocked": 0,
    }


def test_compute_stats_snapshot():
    snapshot = {
        "habits": [
            {"id": "h1", "archived": False},
            {"id": "h2", "archived": False},
            {"id": "h3", "archived": True},
        ],
        "habit_completions": [
            {"habit_id": "h1", "completed_at": "2026-02-11"},
            {"habit_id": "h1", "completed_at": "2026-02-10"},
            {"habit_id": "h1", "completed_at": "2026-02-09"},
            {"habit_id": "h2", "completed_at": "2026-02-10"},
            # archived habit's run is ignored for streaks
            {"habit_id": "h3", "completed_at": "2026-02-11"},
            {"habit_id": "h3", "completed_at": "2026-02-10"},
            {"habit_id": "h3", "completed_at": "2026-02-09"},
            {"habit_id": "h3", "completed_at": "2026-02-08"},
        ],
        "focus_sessions": [
            {"completed": True, "actual_minutes": 300},
            {"completed": True, "actual_minutes": 299},
            {"completed": False, "actual_minutes": 0},
        ],
        "tasks": [{"completed": True}, {"completed": False}],
        "journal_entries": [{}, {}, {}],
        "achievements": [{}],
    }
    stats = compute_stats(snapshot, "2026-02-11")
    assert stats.total_habits == 2
    assert stats.completed_today == 1
    # only active habits count; h3 is archived
    assert stats.total_completions == 4
    assert stats.longest_streak == 3
    assert stats.current_streak == 3
    assert stats.total_focus_minutes == 599
    assert stats.total_focus_hours == 9
    assert stats.completed_sessions == 2
    assert stats.completed_tasks == 1
    assert stats.total_tasks == 2
    assert stats.journal_entries == 3
    assert stats.achievements_unlocked == 1


def test_refresh_unlocks_and_counts(repo, clock):
    habit = create_habit(repo, "Read", clock)
    toggle_completion(repo, habit.id, False, clock)

    stats, unlocked = refresh(repo, clock)
    assert stats.total_habits == 1
    assert stats.completed_today == 1
    assert [a.achievement_type for a in unlocked] == ["first_habit"]
    assert stats.achievements_unlocked == 1

    stats, unlocked = refresh(repo, clock)
    assert unlocked == []
    assert stats.achievements_unlocked == 1


def test_refresh_after_activity(repo, clock):
    for i in range(10):
        create_entry(repo, f"Entry {i}", "text", clock)
    task = create_task(repo, "x", clock)
    toggle_task(repo, task, clock)

    scheduler = ManualScheduler()
    timer = FocusTimer(repo, clock, scheduler, 60)
    timer.start("Deep work")
    scheduler.tick(3600)

    stats, unlocked = refresh(repo, clock)
    assert stats.journal_entries == 10
    assert stats.completed_tasks == 1
    assert stats.total_focus_minutes == 60
    assert stats.total_focus_hours == 1
    assert {a.achievement_type for a in unlocked} == {"chronicler"}


def test_archived_habit_keeps_unlock(repo, clock):
    habit = create_habit(repo, "Read", clock)
    refresh(repo, clock)
    archive_habit(repo, habit.id)
    stats, unlocked = refresh(repo, clock)
    assert stats.total_habits == 0
    assert unlocked == []
    assert stats.achievements_unlocked == 1


def test_refresh_runs_unlock_hooks(workspace, repo, clock):
    (workspace / "hooks.yaml").write_text(
        yaml.dump({"on_achievement_unlock": ["cat >> unlocked.log"]}), encoding="utf-8"
    )
    create_habit(repo, "Read", clock)
    refresh(repo, clock, workspace)
    log = (workspace / "unlocked.log").read_text(encoding="utf-8")
    assert "first_habit" in log
