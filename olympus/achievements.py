"""Achievement rule engine.

A fixed catalog of threshold rules is evaluated against aggregate
statistics. Unlocks are one-way: a rule that was satisfied once stays
unlocked even if its metric later drops (e.g. a habit gets archived), and
re-running with the same inputs unlocks nothing new.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterable

from olympus.clock import Clock
from olympus.models import Achievement, Stats
from olympus.repository import Repository

logger = logging.getLogger(__name__)

ACHIEVEMENTS = "achievements"


@dataclass(frozen=True)
class AchievementRule:
    type: str
    metric: str
    threshold: float
    title: str
    description: str
    icon: str

    def value(self, stats: Stats) -> float:
        return stats.metric(self.metric)

    def satisfied(self, stats: Stats) -> bool:
        return self.value(stats) >= self.threshold


CATALOG: tuple[AchievementRule, ...] = (
    AchievementRule("first_habit", "totalHabits", 1, "First Steps", "Created your first habit", "star"),
    AchievementRule("habit_master", "totalHabits", 5, "Habit Master", "Track 5 different habits", "crown"),
    AchievementRule("week_warrior", "longestStreak", 7, "Week Warrior", "Maintain a 7-day streak", "target"),
    AchievementRule("dedication", "longestStreak", 30, "Unwavering Dedication", "Achieve a 30-day streak", "trophy"),
    AchievementRule("focus_beginner", "totalFocusHours", 10, "Focus Initiate", "Complete 10 hours of focus time", "zap"),
    AchievementRule("focus_master", "totalFocusHours", 50, "Flow State Master", "Complete 50 hours of focus time", "crown"),
    AchievementRule("task_completer", "completedTasks", 25, "Task Conqueror", "Complete 25 tasks", "award"),
    AchievementRule("chronicler", "journalEntries", 10, "The Chronicler", "Write 10 journal entries", "star"),
)

RULES_BY_TYPE = {rule.type: rule for rule in CATALOG}


def progress(rule: AchievementRule, stats: Stats) -> float:
    """Percent towards the threshold, capped at 100."""
    if rule.threshold <= 0:
        return 100.0
    return min(rule.value(stats) / rule.threshold, 1.0) * 100


def evaluate(
    stats: Stats,
    unlocked_types: Iterable[str],
    now: str,
    catalog: Iterable[AchievementRule] = CATALOG,
) -> list[Achievement]:
    """Return the achievements that must be unlocked now.

    Rules already in *unlocked_types* are skipped without being evaluated,
    which is what makes unlocks permanent.
    """
    unlocked = set(unlocked_types)
    new = []
    for rule in catalog:
        if rule.type in unlocked or not rule.satisfied(stats):
            continue
        new.append(Achievement(
            achievement_type=rule.type,
            title=rule.title,
            description=rule.description,
            icon=rule.icon,
            unlocked_at=now,
            metadata={
                "metric": rule.metric,
                "value": rule.value(stats),
                "threshold": rule.threshold,
            },
        ))
        unlocked.add(rule.type)
    return new


def list_unlocked(repo: Repository) -> list[Achievement]:
    rows = repo.query(ACHIEVEMENTS, order_by=[("unlocked_at", False)])
    return [Achievement.from_dict(r) for r in rows]


def unlock_achievements(repo: Repository, stats: Stats, clock: Clock) -> list[Achievement]:
    """Evaluate the catalog and persist new unlocks.

    Each unlock is written with an upsert on achievement_type, so a racing
    refresh that already stored the same type is reported as not new.
    """
    unlocked_types = {a.achievement_type for a in list_unlocked(repo)}
    created = []
    for achievement in evaluate(stats, unlocked_types, clock.iso_now()):
        record = achievement.to_dict()
        record.pop("id")
        stored, is_new = repo.upsert(ACHIEVEMENTS, record, ["achievement_type"])
        if is_new:
            logger.info("Achievement unlocked: %s", achievement.achievement_type)
            created.append(Achievement.from_dict(stored))
    return created


def achievement_board(stats: Stats, unlocked: Iterable[Achievement]) -> list[dict[str, Any]]:
    """Every catalog rule with its unlock status and progress."""
    by_type = {a.achievement_type: a for a in unlocked}
    board = []
    for rule in CATALOG:
        got = by_type.get(rule.type)
        board.append({
            "type": rule.type,
            "title": rule.title,
            "description": rule.description,
            "icon": rule.icon,
            "metric": rule.metric,
            "threshold": rule.threshold,
            "value": rule.value(stats),
            "unlocked": got is not None,
            "unlocked_at": got.unlocked_at if got else None,
            "progress_pct": 100.0 if got else round(progress(rule, stats), 1),
        })
    return board
