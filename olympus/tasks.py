"""Task CRUD, validation, and the pure counts/filter projections."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from olympus.clock import Clock, parse_day
from olympus.errors import RepositoryError, ValidationError
from olympus.models import PRIORITIES, TASK_VIEWS, Task, TaskCounts
from olympus.repository import Repository

logger = logging.getLogger(__name__)

TASKS = "tasks"


# ── Projections ───────────────────────────────────────────────


def task_counts(tasks: Iterable[Task]) -> TaskCounts:
    """Count total, active, completed and high-priority active tasks."""
    counts = TaskCounts()
    for task in tasks:
        counts.total += 1
        if task.completed:
            counts.completed += 1
        else:
            counts.active += 1
            if task.priority == "high":
                counts.high_priority_active += 1
    return counts


def filter_tasks(tasks: Iterable[Task], view: str = "all") -> list[Task]:
    """Select tasks for the all/active/completed views without touching them."""
    if view not in TASK_VIEWS:
        raise ValidationError(f"Invalid task view: {view}")
    if view == "active":
        return [t for t in tasks if not t.completed]
    if view == "completed":
        return [t for t in tasks if t.completed]
    return list(tasks)


def sort_tasks(tasks: Iterable[Task]) -> list[Task]:
    """order_index ascending, newest first within the same index."""
    result = sorted(tasks, key=lambda t: t.created_at, reverse=True)
    result.sort(key=lambda t: t.order_index)
    return result


# ── Validation ────────────────────────────────────────────────


def validate_task(task: dict[str, Any]) -> list[str]:
    """Validate task input and return list of errors (empty if valid)."""
    errors = []
    if not str(task.get("title") or "").strip():
        errors.append("Task title is required")
    if "priority" in task and task["priority"] not in PRIORITIES:
        errors.append(f"Invalid priority: {task['priority']}")
    due = task.get("due_date")
    if due:
        try:
            parse_day(str(due))
        except ValueError:
            errors.append(f"Invalid due date: {due}")
    return errors


# ── CRUD ──────────────────────────────────────────────────────


def list_tasks(repo: Repository, view: str = "all") -> list[Task]:
    rows = repo.query(TASKS, order_by=[("order_index", False), ("created_at", True)])
    return filter_tasks([Task.from_dict(r) for r in rows], view)


def create_task(
    repo: Repository,
    title: str,
    clock: Clock,
    description: str = "",
    priority: str = "medium",
    category: str = "general",
    due_date: str | None = None,
    order_index: int = 0,
) -> Task:
    data = {"title": title, "priority": priority, "due_date": due_date}
    errors = validate_task(data)
    if errors:
        raise ValidationError(errors)
    task = Task(
        title=title.strip(),
        description=(description or "").strip(),
        category=(category or "general").strip() or "general",
        priority=priority,
        due_date=due_date or None,
        created_at=clock.iso_now(),
        order_index=order_index,
    )
    record = task.to_dict()
    record.pop("id")
    stored = repo.insert(TASKS, record)
    logger.info("Created task %s (%s, %s)", stored["id"], task.title, task.priority)
    return Task.from_dict(stored)


def toggle_task(repo: Repository, task: Task, clock: Clock) -> Task:
    """Flip a task's completion and stamp or clear completed_at."""
    completed = not task.completed
    patch = {
        "completed": completed,
        "completed_at": clock.iso_now() if completed else None,
    }
    try:
        repo.update(TASKS, task.id, patch)
    except RepositoryError as e:
        logger.error("Toggle failed for task %s: %s", task.id, e)
        raise
    logger.info("Task %s %s", task.id, "completed" if completed else "reopened")
    return Task.from_dict({**task.to_dict(), **patch})


def delete_task(repo: Repository, task_id: str) -> None:
    """Hard delete. Deleting a missing task is not an error."""
    repo.delete(TASKS, task_id)
    logger.info("Deleted task %s", task_id)
