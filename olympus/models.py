"""Typed dataclasses for the Olympus data model.

All records use from_dict/to_dict for repository serialization.
Field names match the repository collections (snake_case).
Unknown keys are ignored; missing keys use defaults.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

PRIORITIES = ("low", "medium", "high")
TASK_VIEWS = ("all", "active", "completed")
MOODS = (
    "😊 Happy",
    "😌 Calm",
    "🤔 Thoughtful",
    "💪 Motivated",
    "😔 Reflective",
    "😴 Tired",
)


def _opt_str(value: Any) -> str | None:
    return None if value is None else str(value)


# ── Profile ───────────────────────────────────────────────────


DEFAULT_FOCUS_PRESETS = (15, 25, 45, 60)


def _positive_int(value: Any, default: int, name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid %s %r, using %d", name, value, default)
        return default
    if number <= 0:
        logger.warning("Ignoring non-positive %s %r, using %d", name, value, default)
        return default
    return number


@dataclass
class Profile:
    timezone: str = "UTC"
    focus_minutes: int = 25
    focus_presets: list[int] = field(default_factory=lambda: list(DEFAULT_FOCUS_PRESETS))
    log_level: str = "INFO"
    log_file: str | None = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Profile:
        """Build a profile; each malformed setting falls back to its default."""
        if not d or not isinstance(d, dict):
            return cls()
        presets = d.get("focus_presets")
        if isinstance(presets, list):
            presets = [p for p in (_positive_int(p, 0, "focus preset") for p in presets) if p]
        if not presets or not isinstance(presets, list):
            presets = list(DEFAULT_FOCUS_PRESETS)
        return cls(
            timezone=str(d.get("timezone") or "UTC"),
            focus_minutes=_positive_int(d.get("focus_minutes", 25), 25, "focus_minutes"),
            focus_presets=presets,
            log_level=str(d.get("log_level") or "INFO"),
            log_file=_opt_str(d.get("log_file")),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "timezone": self.timezone,
            "focus_minutes": self.focus_minutes,
            "focus_presets": list(self.focus_presets),
            "log_level": self.log_level,
        }
        if self.log_file:
            d["log_file"] = self.log_file
        return d


# ── Habits ────────────────────────────────────────────────────


@dataclass
class Habit:
    id: str = ""
    name: str = ""
    description: str = ""
    icon: str = "star"
    color: str = "gold"
    frequency: str = "daily"
    archived: bool = False
    created_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Habit:
        return cls(
            id=str(d.get("id", "")),
            name=str(d.get("name", "")),
            description=str(d.get("description") or ""),
            icon=str(d.get("icon") or "star"),
            color=str(d.get("color") or "gold"),
            frequency=str(d.get("frequency") or "daily"),
            archived=bool(d.get("archived", False)),
            created_at=str(d.get("created_at", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "color": self.color,
            "frequency": self.frequency,
            "archived": self.archived,
            "created_at": self.created_at,
        }


@dataclass
class HabitCompletion:
    id: str = ""
    habit_id: str = ""
    completed_at: str = ""  # day key, not an instant
    notes: str = ""
    created_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> HabitCompletion:
        return cls(
            id=str(d.get("id", "")),
            habit_id=str(d.get("habit_id", "")),
            completed_at=str(d.get("completed_at", "")),
            notes=str(d.get("notes") or ""),
            created_at=str(d.get("created_at", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "habit_id": self.habit_id,
            "completed_at": self.completed_at,
            "notes": self.notes,
            "created_at": self.created_at,
        }


# ── Focus ─────────────────────────────────────────────────────


@dataclass
class FocusSession:
    id: str = ""
    duration_minutes: int = 25
    actual_minutes: int = 0
    task_name: str = ""
    completed: bool = False
    started_at: str = ""
    ended_at: str | None = None

    @property
    def is_open(self) -> bool:
        return not self.completed and self.ended_at is None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> FocusSession:
        return cls(
            id=str(d.get("id", "")),
            duration_minutes=int(d.get("duration_minutes", 25)),
            actual_minutes=int(d.get("actual_minutes") or 0),
            task_name=str(d.get("task_name", "")),
            completed=bool(d.get("completed", False)),
            started_at=str(d.get("started_at", "")),
            ended_at=_opt_str(d.get("ended_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "duration_minutes": self.duration_minutes,
            "actual_minutes": self.actual_minutes,
            "task_name": self.task_name,
            "completed": self.completed,
            "started_at": self.started_at,
            "ended_at": self.ended_at,
        }


# ── Tasks ─────────────────────────────────────────────────────


@dataclass
class Task:
    id: str = ""
    title: str = ""
    description: str = ""
    category: str = "general"
    priority: str = "medium"  # low, medium, high
    completed: bool = False
    completed_at: str | None = None
    due_date: str | None = None  # day key
    created_at: str = ""
    order_index: int = 0

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Task:
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "")),
            description=str(d.get("description") or ""),
            category=str(d.get("category") or "general"),
            priority=str(d.get("priority") or "medium"),
            completed=bool(d.get("completed", False)),
            completed_at=_opt_str(d.get("completed_at")),
            due_date=_opt_str(d.get("due_date")),
            created_at=str(d.get("created_at", "")),
            order_index=int(d.get("order_index") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "priority": self.priority,
            "completed": self.completed,
            "completed_at": self.completed_at,
            "due_date": self.due_date,
            "created_at": self.created_at,
            "order_index": self.order_index,
        }


@dataclass
class TaskCounts:
    total: int = 0
    active: int = 0
    completed: int = 0
    high_priority_active: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "active": self.active,
            "completed": self.completed,
            "highPriorityActive": self.high_priority_active,
        }


# ── Journal ───────────────────────────────────────────────────


@dataclass
class JournalEntry:
    id: str = ""
    title: str = ""
    content: str = ""
    mood: str | None = None
    entry_date: str = ""  # day key
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> JournalEntry:
        return cls(
            id=str(d.get("id", "")),
            title=str(d.get("title", "")),
            content=str(d.get("content", "")),
            mood=d.get("mood") or None,
            entry_date=str(d.get("entry_date", "")),
            created_at=str(d.get("created_at", "")),
            updated_at=str(d.get("updated_at", "")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "mood": self.mood,
            "entry_date": self.entry_date,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


# ── Achievements ──────────────────────────────────────────────


@dataclass
class Achievement:
    id: str = ""
    achievement_type: str = ""
    title: str = ""
    description: str = ""
    icon: str = ""
    unlocked_at: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Achievement:
        metadata = d.get("metadata")
        return cls(
            id=str(d.get("id", "")),
            achievement_type=str(d.get("achievement_type", "")),
            title=str(d.get("title", "")),
            description=str(d.get("description", "")),
            icon=str(d.get("icon", "")),
            unlocked_at=str(d.get("unlocked_at", "")),
            metadata=dict(metadata) if isinstance(metadata, dict) else {},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "achievement_type": self.achievement_type,
            "title": self.title,
            "description": self.description,
            "icon": self.icon,
            "unlocked_at": self.unlocked_at,
            "metadata": dict(self.metadata),
        }


# ── Statistics ────────────────────────────────────────────────


@dataclass
class Stats:
    """Aggregate statistics recomputed from a repository snapshot."""

    total_habits: int = 0
    completed_today: int = 0
    total_completions: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    total_focus_minutes: int = 0
    total_focus_hours: int = 0
    completed_sessions: int = 0
    completed_tasks: int = 0
    total_tasks: int = 0
    journal_entries: int = 0
    achievements_unlocked: int = 0

    def metric(self, name: str) -> float:
        """Look up a rule metric by its camelCase or snake_case name."""
        attr = _METRIC_ATTRS.get(name, name)
        if not hasattr(self, attr):
            raise KeyError(f"Unknown metric: {name}")
        return float(getattr(self, attr))

    def to_dict(self) -> dict[str, int]:
        return {
            "totalHabits": self.total_habits,
            "completedToday": self.completed_today,
            "totalCompletions": self.total_completions,
            "currentStreak": self.current_streak,
            "longestStreak": self.longest_streak,
            "totalFocusMinutes": self.total_focus_minutes,
            "totalFocusHours": self.total_focus_hours,
            "completedSessions": self.completed_sessions,
            "completedTasks": self.completed_tasks,
            "totalTasks": self.total_tasks,
            "journalEntries": self.journal_entries,
            "achievementsUnlocked": self.achievements_unlocked,
        }


_METRIC_ATTRS = {
    "totalHabits": "total_habits",
    "completedToday": "completed_today",
    "totalCompletions": "total_completions",
    "currentStreak": "current_streak",
    "longestStreak": "longest_streak",
    "totalFocusMinutes": "total_focus_minutes",
    "totalFocusHours": "total_focus_hours",
    "completedSessions": "completed_sessions",
    "completedTasks": "completed_tasks",
    "totalTasks": "total_tasks",
    "journalEntries": "journal_entries",
    "achievementsUnlocked": "achievements_unlocked",
}
