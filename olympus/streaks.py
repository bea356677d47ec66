"""Streak counting for habits.

A streak is the run of consecutive completed days ending today. A run that
stopped yesterday or earlier counts as zero: streaks measure current
momentum, not history. ``best_streak`` is the historical view, shown next to
the current streak but never used for achievements.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from olympus.clock import parse_day


def _distinct_days(day_keys: Iterable[str]) -> set[date]:
    days = set()
    for key in day_keys:
        if not key:
            continue
        try:
            days.add(parse_day(key))
        except ValueError:
            continue
    return days


def current_streak(day_keys: Iterable[str], today: date | str) -> int:
    """Count consecutive completed days walking back from *today*.

    Duplicate keys collapse to one; an empty input or a missing *today*
    gives 0.
    """
    if isinstance(today, str):
        today = parse_day(today)
    days = _distinct_days(day_keys)
    streak = 0
    cursor = today
    while cursor in days:
        streak += 1
        cursor -= timedelta(days=1)
    return streak


def best_streak(day_keys: Iterable[str]) -> int:
    """Longest run of consecutive days anywhere in the history."""
    days = sorted(_distinct_days(day_keys))
    best = run = 0
    prev: date | None = None
    for d in days:
        run = run + 1 if prev is not None and (d - prev).days == 1 else 1
        best = max(best, run)
        prev = d
    return best


def longest_current_streak(streaks: Iterable[int]) -> int:
    """The longest current streak across all habits (0 when there are none)."""
    return max(streaks, default=0)
