"""Habit CRUD, the per-day completion toggle, and streak progress."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from olympus.clock import Clock
from olympus.errors import NotFoundError, RepositoryError, ValidationError
from olympus.models import Habit, HabitCompletion
from olympus.repository import Repository
from olympus.streaks import best_streak, current_streak

logger = logging.getLogger(__name__)

HABITS = "habits"
COMPLETIONS = "habit_completions"
COMPLETION_KEY = ("habit_id", "completed_at")


# ── Validation ────────────────────────────────────────────────


def validate_habit(data: dict[str, Any]) -> list[str]:
    """Validate habit input and return list of errors (empty if valid)."""
    errors = []
    if not str(data.get("name") or "").strip():
        errors.append("Habit name is required")
    return errors


# ── CRUD ──────────────────────────────────────────────────────


def create_habit(
    repo: Repository,
    name: str,
    clock: Clock,
    description: str = "",
    icon: str = "star",
    color: str = "gold",
    frequency: str = "daily",
) -> Habit:
    errors = validate_habit({"name": name})
    if errors:
        raise ValidationError(errors)
    habit = Habit(
        name=name.strip(),
        description=(description or "").strip(),
        icon=icon,
        color=color,
        frequency=frequency,
        created_at=clock.iso_now(),
    )
    record = habit.to_dict()
    record.pop("id")
    stored = repo.insert(HABITS, record)
    logger.info("Created habit %s (%s)", stored["id"], habit.name)
    return Habit.from_dict(stored)


def get_habit(repo: Repository, habit_id: str) -> Habit:
    record = repo.get(HABITS, habit_id)
    if record is None:
        raise NotFoundError(f"Habit not found: {habit_id}")
    return Habit.from_dict(record)


def list_habits(repo: Repository, include_archived: bool = False) -> list[Habit]:
    """Habits newest first; archived ones only when asked for."""
    filter = None if include_archived else {"archived": False}
    rows = repo.query(HABITS, filter, order_by=[("created_at", True)])
    return [Habit.from_dict(r) for r in rows]


def archive_habit(repo: Repository, habit_id: str) -> None:
    """Soft delete: the habit and its completions stay for history."""
    repo.update(HABITS, habit_id, {"archived": True})
    logger.info("Archived habit %s", habit_id)


# ── Completions ───────────────────────────────────────────────


def completion_days(repo: Repository, habit_id: str) -> list[str]:
    rows = repo.query(COMPLETIONS, {"habit_id": habit_id}, order_by=[("completed_at", True)])
    return [str(r.get("completed_at", "")) for r in rows]


def is_completed_on(repo: Repository, habit_id: str, day: str) -> bool:
    return bool(repo.query(COMPLETIONS, {"habit_id": habit_id, "completed_at": day}))


def toggle_completion(
    repo: Repository,
    habit_id: str,
    currently_completed: bool,
    clock: Clock,
    notes: str = "",
) -> bool:
    """Flip today's completion for a habit and return the new state.

    Un-completing deletes every record for (habit, today), so a missing
    record is not an error. Completing goes through an upsert keyed on
    (habit, day): repeated calls never create a second record.
    """
    today = clock.today_key()
    try:
        if currently_completed:
            removed = repo.delete_where(COMPLETIONS, {"habit_id": habit_id, "completed_at": today})
            logger.info("Habit %s un-completed for %s (%d removed)", habit_id, today, removed)
            return False
        completion = HabitCompletion(
            habit_id=habit_id,
            completed_at=today,
            notes=notes,
            created_at=clock.iso_now(),
        )
        record = completion.to_dict()
        record.pop("id")
        _, created = repo.upsert(COMPLETIONS, record, COMPLETION_KEY)
        logger.info("Habit %s completed for %s%s", habit_id, today, "" if created else " (already recorded)")
        return True
    except RepositoryError as e:
        logger.error("Toggle failed for habit %s: %s", habit_id, e)
        raise


# ── Progress ──────────────────────────────────────────────────


@dataclass
class HabitProgress:
    habit: Habit
    completions: list[str] = field(default_factory=list)
    streak: int = 0
    best_streak: int = 0
    completed_today: bool = False

    def to_dict(self) -> dict[str, Any]:
        d = self.habit.to_dict()
        d.update({
            "completions": list(self.completions),
            "streak": self.streak,
            "best_streak": self.best_streak,
            "completed_today": self.completed_today,
        })
        return d


def habit_progress(repo: Repository, clock: Clock) -> list[HabitProgress]:
    """Active habits with completion history, current/best streak, and today flag."""
    today = clock.today_key()
    by_habit: dict[str, list[str]] = {}
    for row in repo.query(COMPLETIONS, order_by=[("completed_at", True)]):
        by_habit.setdefault(str(row.get("habit_id", "")), []).append(str(row.get("completed_at", "")))

    result = []
    for habit in list_habits(repo):
        days = by_habit.get(habit.id, [])
        result.append(HabitProgress(
            habit=habit,
            completions=days,
            streak=current_streak(days, today),
            best_streak=best_streak(days),
            completed_today=today in days,
        ))
    return result
