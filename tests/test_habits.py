"""Tests for olympus/habits.py — habit CRUD and the completion toggle."""

import pytest

from olympus.errors import NotFoundError, ValidationError
from olympus.habits import (
    archive_habit,
    completion_days,
    create_habit,
    get_habit,
    habit_progress,
    is_completed_on,
    list_habits,
    toggle_completion,
    validate_habit,
)


def test_validate_habit():
    assert validate_habit({"name": "Read"}) == []
    assert validate_habit({"name": "   "}) == ["Habit name is required"]
    assert validate_habit({}) == ["Habit name is required"]


def test_create_habit(repo, clock):
    habit = create_habit(repo, "  Read  ", clock, description="20 pages")
    assert habit.id
    assert habit.name == "Read"
    assert habit.archived is False
    assert habit.created_at == "2026-02-11T09:30:00+00:00"
    assert get_habit(repo, habit.id).description == "20 pages"


def test_create_habit_empty_name_writes_nothing(repo, clock):
    with pytest.raises(ValidationError, match="name is required"):
        create_habit(repo, "", clock)
    assert repo.query("habits") == []


def test_get_habit_missing(repo):
    with pytest.raises(NotFoundError):
        get_habit(repo, "nope")


def test_archive_hides_habit_but_keeps_it(repo, clock):
    habit = create_habit(repo, "Run", clock)
    archive_habit(repo, habit.id)
    assert list_habits(repo) == []
    assert [h.id for h in list_habits(repo, include_archived=True)] == [habit.id]


def test_list_habits_newest_first(repo, clock):
    first = create_habit(repo, "First", clock)
    clock.advance(minutes=5)
    second = create_habit(repo, "Second", clock)
    assert [h.id for h in list_habits(repo)] == [second.id, first.id]


def test_toggle_on_then_off(repo, clock):
    habit = create_habit(repo, "Meditate", clock)

    state = toggle_completion(repo, habit.id, False, clock)
    assert state is True
    assert len(repo.query("habit_completions", {"habit_id": habit.id})) == 1
    assert is_completed_on(repo, habit.id, "2026-02-11")

    state = toggle_completion(repo, habit.id, True, clock)
    assert state is False
    assert repo.query("habit_completions", {"habit_id": habit.id}) == []


def test_double_complete_creates_one_record(repo, clock):
    habit = create_habit(repo, "Meditate", clock)
    toggle_completion(repo, habit.id, False, clock)
    # a second click racing a stale "not completed" view
    toggle_completion(repo, habit.id, False, clock)
    assert len(repo.query("habit_completions", {"habit_id": habit.id})) == 1


def test_uncomplete_missing_record_is_not_an_error(repo, clock):
    habit = create_habit(repo, "Meditate", clock)
    assert toggle_completion(repo, habit.id, True, clock) is False
    assert repo.query("habit_completions") == []


def test_toggle_only_touches_today(repo, clock):
    habit = create_habit(repo, "Stretch", clock)
    toggle_completion(repo, habit.id, False, clock)
    clock.advance(days=1)
    toggle_completion(repo, habit.id, False, clock)
    toggle_completion(repo, habit.id, True, clock)
    assert completion_days(repo, habit.id) == ["2026-02-11"]


def test_habit_progress(repo, clock):
    habit = create_habit(repo, "Write", clock)
    other = create_habit(repo, "Walk", clock)
    for _ in range(3):
        toggle_completion(repo, habit.id, False, clock)
        clock.advance(days=1)
    # now 2026-02-14; nothing done yet today
    progress = {p.habit.id: p for p in habit_progress(repo, clock)}
    assert progress[habit.id].streak == 0
    assert progress[habit.id].best_streak == 3
    assert progress[habit.id].completed_today is False

    toggle_completion(repo, habit.id, False, clock)
    progress = {p.habit.id: p for p in habit_progress(repo, clock)}
    assert progress[habit.id].streak == 4
    assert progress[habit.id].completed_today is True
    assert progress[other.id].streak == 0
    assert progress[habit.id].to_dict()["completions"][0] == "2026-02-14"


def test_habit_progress_skips_archived(repo, clock):
    habit = create_habit(repo, "Old", clock)
    toggle_completion(repo, habit.id, False, clock)
    archive_habit(repo, habit.id)
    assert habit_progress(repo, clock) == []
