"""Tests for olympus/tasks.py — task CRUD, counts and filters."""

import pytest

from olympus.errors import ValidationError
from olympus.models import Task
from olympus.tasks import (
    create_task,
    delete_task,
    filter_tasks,
    list_tasks,
    sort_tasks,
    task_counts,
    toggle_task,
    validate_task,
)


def _sample_tasks():
    tasks = []
    for i in range(10):
        tasks.append(Task(
            id=f"t{i}",
            title=f"Task {i}",
            completed=i < 4,
            priority="high" if i in (3, 5, 6) else "medium",
        ))
    return tasks


def test_task_counts():
    # 4 completed (one of them high), 2 active high
    counts = task_counts(_sample_tasks())
    assert counts.total == 10
    assert counts.active == 6
    assert counts.completed == 4
    assert counts.high_priority_active == 2
    assert counts.to_dict()["highPriorityActive"] == 2


def test_task_counts_empty():
    assert task_counts([]).to_dict() == {
        "total": 0, "active": 0, "completed": 0, "highPriorityActive": 0,
    }


def test_filter_views():
    tasks = _sample_tasks()
    assert len(filter_tasks(tasks, "all")) == 10
    assert all(not t.completed for t in filter_tasks(tasks, "active"))
    assert len(filter_tasks(tasks, "active")) == 6
    assert len(filter_tasks(tasks, "completed")) == 4
    # filtering does not touch the input
    assert len(tasks) == 10


def test_filter_invalid_view():
    with pytest.raises(ValidationError):
        filter_tasks([], "someday")


def test_sort_tasks():
    tasks = [
        Task(id="a", order_index=1, created_at="2026-02-10T00:00:00+00:00"),
        Task(id="b", order_index=0, created_at="2026-02-09T00:00:00+00:00"),
        Task(id="c", order_index=0, created_at="2026-02-11T00:00:00+00:00"),
    ]
    assert [t.id for t in sort_tasks(tasks)] == ["c", "b", "a"]


def test_validate_task():
    assert validate_task({"title": "Write"}) == []
    assert "Task title is required" in validate_task({"title": "  "})
    assert any("priority" in e for e in validate_task({"title": "x", "priority": "urgent"}))
    assert any("due date" in e for e in validate_task({"title": "x", "due_date": "tomorrow"}))


def test_create_task(repo, clock):
    task = create_task(repo, " Ship it ", clock, priority="high", due_date="2026-02-20")
    assert task.id
    assert task.title == "Ship it"
    assert task.priority == "high"
    assert task.completed is False
    assert task.due_date == "2026-02-20"
    assert task.created_at == "2026-02-11T09:30:00+00:00"


def test_create_task_invalid_writes_nothing(repo, clock):
    with pytest.raises(ValidationError):
        create_task(repo, "", clock)
    with pytest.raises(ValidationError):
        create_task(repo, "x", clock, priority="urgent")
    assert repo.query("tasks") == []


def test_toggle_task(repo, clock):
    task = create_task(repo, "x", clock)
    done = toggle_task(repo, task, clock)
    assert done.completed is True
    assert done.completed_at == "2026-02-11T09:30:00+00:00"
    assert repo.get("tasks", task.id)["completed"] is True

    reopened = toggle_task(repo, done, clock)
    assert reopened.completed is False
    assert reopened.completed_at is None


def test_list_tasks_views(repo, clock):
    a = create_task(repo, "a", clock)
    clock.advance(minutes=1)
    b = create_task(repo, "b", clock)
    toggle_task(repo, a, clock)
    assert [t.id for t in list_tasks(repo)] == [b.id, a.id]
    assert [t.id for t in list_tasks(repo, "active")] == [b.id]
    assert [t.id for t in list_tasks(repo, "completed")] == [a.id]


def test_delete_task(repo, clock):
    task = create_task(repo, "x", clock)
    delete_task(repo, task.id)
    delete_task(repo, task.id)
    assert list_tasks(repo) == []
