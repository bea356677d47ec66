"""Olympus JSON API.

Thin FastAPI layer over the olympus engine. Every mutating endpoint writes
through the repository and then answers from a fresh read, never from
request-local state. The focus timer lives on the server event loop, so the
focus endpoints are ``async def``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

from fastapi import Body, Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from olympus import (
    AsyncioScheduler,
    Clock,
    FocusSession,
    FocusTimer,
    NotFoundError,
    Repository,
    RepositoryError,
    SessionStateError,
    Task,
    ValidationError,
    achievement_board,
    archive_habit,
    create_entry,
    create_habit,
    create_task,
    delete_entry,
    delete_task,
    focus_stats,
    get_clock,
    get_habit,
    habit_progress,
    list_entries,
    list_sessions,
    list_tasks,
    list_unlocked,
    load_profile,
    log_path,
    open_repository,
    refresh,
    run_hooks,
    setup_logging,
    task_counts,
    toggle_completion,
    toggle_task,
    update_entry,
    workspace_root,
)

logger = logging.getLogger("olympus.api")

app = FastAPI(title="Olympus API", version="0.1.0")

security = HTTPBasic(auto_error=False)


# ── Application state ─────────────────────────────────────────


@dataclass
class AppState:
    root: Path
    repo: Repository
    clock: Clock
    timer: FocusTimer

    def hook(self, point: str, context: dict[str, Any]) -> asyncio.Future | None:
        return self.background(run_hooks, point, context, self.root)

    def background(self, fn: Callable[..., Any], *args: Any) -> asyncio.Future | None:
        """Run *fn* off the event loop when called from it, inline otherwise.

        Focus callbacks fire on the loop (async endpoints and timer ticks);
        hooks and store writes must not stall it.
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            fn(*args)
            return None
        future = loop.run_in_executor(None, fn, *args)
        future.add_done_callback(_log_background_failure)
        return future


def _log_background_failure(future: asyncio.Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.error("Background job failed: %s", exc)


_state: AppState | None = None


def _after_focus_complete(state: AppState, session: FocusSession) -> None:
    run_hooks("on_focus_complete", session.to_dict(), state.root)
    try:
        refresh(state.repo, state.clock, state.root)
    except RepositoryError as e:
        logger.error("Stats refresh after focus completion failed: %s", e)


def build_state(root: Path | None = None) -> AppState:
    if root is None:
        root = workspace_root()
    profile = load_profile(root)
    setup_logging(profile.log_level, log_path(root, profile))
    repo = open_repository(root)
    clock = get_clock(root)
    holder: dict[str, AppState] = {}

    def _on_start(session: FocusSession) -> None:
        holder["state"].hook("on_focus_start", session.to_dict())

    def _on_complete(session: FocusSession) -> None:
        st = holder["state"]
        st.background(_after_focus_complete, st, session)

    timer = FocusTimer(
        repo, clock, AsyncioScheduler(),
        duration_minutes=profile.focus_minutes,
        on_start=_on_start,
        on_complete=_on_complete,
    )
    try:
        timer.load_completed_count()
    except RepositoryError as e:
        logger.error("Could not load focus session count: %s", e)
    state = AppState(root=root, repo=repo, clock=clock, timer=timer)
    holder["state"] = state
    logger.info("Olympus API ready (root=%s)", root)
    return state


def get_state() -> AppState:
    global _state
    if _state is None:
        _state = build_state()
    return _state


# ── Auth ──────────────────────────────────────────────────────


def get_current_user(credentials: HTTPBasicCredentials | None = Depends(security)) -> str:
    expected_username = os.environ.get("OLYMPUS_USERNAME", "")
    expected_password = os.environ.get("OLYMPUS_PASSWORD", "")

    if not expected_username or not expected_password:
        return "guest"

    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Basic"},
        )

    correct_username = secrets.compare_digest(credentials.username.encode("utf-8"), expected_username.encode("utf-8"))
    correct_password = secrets.compare_digest(credentials.password.encode("utf-8"), expected_password.encode("utf-8"))

    if not (correct_username and correct_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )

    return credentials.username


# ── Error mapping ─────────────────────────────────────────────


@app.exception_handler(ValidationError)
async def _validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc), "errors": exc.errors})


@app.exception_handler(SessionStateError)
async def _session_state_error(request: Request, exc: SessionStateError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def _not_found_error(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(RepositoryError)
async def _repository_error(request: Request, exc: RepositoryError) -> JSONResponse:
    logger.error("Repository failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable, please retry"})


# ── Endpoints ─────────────────────────────────────────────────


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/api/stats")
def api_stats(state: AppState = Depends(get_state), username: str = Depends(get_current_user)) -> dict[str, Any]:
    """Dashboard statistics; also unlocks anything the stats have earned."""
    stats, unlocked = refresh(state.repo, state.clock, state.root)
    return {
        "stats": stats.to_dict(),
        "newAchievements": [a.to_dict() for a in unlocked],
    }


# Habits


@app.get("/api/habits")
def api_list_habits(state: AppState = Depends(get_state), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return {"habits": [p.to_dict() for p in habit_progress(state.repo, state.clock)]}


@app.post("/api/habits")
def api_create_habit(
    payload: dict[str, Any] = Body(...),
    state: AppState = Depends(get_state),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    habit = create_habit(
        state.repo,
        str(payload.get("name") or ""),
        state.clock,
        description=str(payload.get("description") or ""),
        icon=str(payload.get("icon") or "star"),
        color=str(payload.get("color") or "gold"),
    )
    return {"ok": True, "habit": habit.to_dict()}


@app.delete("/api/habits/{habit_id}")
def api_archive_habit(habit_id: str, state: AppState = Depends(get_state), username: str = Depends(get_current_user)) -> dict[str, Any]:
    archive_habit(state.repo, habit_id)
    return {"ok": True, "habit_id": habit_id}


@app.post("/api/habits/{habit_id}/toggle")
def api_toggle_habit(
    habit_id: str,
    payload: dict[str, Any] = Body(default={}),
    state: AppState = Depends(get_state),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    """Toggle today's completion. ``completed`` is the state the client saw."""
    get_habit(state.repo, habit_id)
    completed = toggle_completion(
        state.repo, habit_id, bool(payload.get("completed", False)), state.clock,
        notes=str(payload.get("notes") or ""),
    )
    state.hook("on_habit_toggle", {"habit_id": habit_id, "completed": completed, "day": state.clock.today_key()})
    # reconcile from the store rather than trusting the client flag
    progress = next((p for p in habit_progress(state.repo, state.clock) if p.habit.id == habit_id), None)
    return {"ok": True, "completed": completed, "habit": progress.to_dict() if progress else None}


# Tasks


@app.get("/api/tasks")
def api_list_tasks(view: str = "all", state: AppState = Depends(get_state), username: str = Depends(get_current_user)) -> dict[str, Any]:
    all_tasks = list_tasks(state.repo)
    shown = list_tasks(state.repo, view)
    return {
        "view": view,
        "tasks": [t.to_dict() for t in shown],
        "counts": task_counts(all_tasks).to_dict(),
    }


@app.post("/api/tasks")
def api_create_task(
    payload: dict[str, Any] = Body(...),
    state: AppState = Depends(get_state),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    try:
        order_index = int(payload.get("order_index") or 0)
    except (TypeError, ValueError):
        raise ValidationError("order_index must be an integer")
    task = create_task(
        state.repo,
        str(payload.get("title") or ""),
        state.clock,
        description=str(payload.get("description") or ""),
        priority=str(payload.get("priority") or "medium"),
        category=str(payload.get("category") or "general"),
        due_date=payload.get("due_date") or None,
        order_index=order_index,
    )
    return {"ok": True, "task": task.to_dict()}


@app.post("/api/tasks/{task_id}/toggle")
def api_toggle_task(task_id: str, state: AppState = Depends(get_state), username: str = Depends(get_current_user)) -> dict[str, Any]:
    record = state.repo.get("tasks", task_id)
    if record is None:
        raise NotFoundError(f"Task not found: {task_id}")
    task = toggle_task(state.repo, Task.from_dict(record), state.clock)
    if task.completed:
        state.hook("on_task_complete", task.to_dict())
    return {"ok": True, "task": task.to_dict()}


@app.delete("/api/tasks/{task_id}")
def api_delete_task(task_id: str, state: AppState = Depends(get_state), username: str = Depends(get_current_user)) -> dict[str, Any]:
    delete_task(state.repo, task_id)
    return {"ok": True, "task_id": task_id}


# Journal


@app.get("/api/journal")
def api_list_journal(state: AppState = Depends(get_state), username: str = Depends(get_current_user)) -> dict[str, Any]:
    entries = list_entries(state.repo)
    return {
        "entries": [e.to_dict() for e in entries],
        "count": len(entries),
        "latest": entries[0].entry_date if entries else None,
    }


@app.post("/api/journal")
def api_create_journal(
    payload: dict[str, Any] = Body(...),
    state: AppState = Depends(get_state),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    entry = create_entry(
        state.repo,
        str(payload.get("title") or ""),
        str(payload.get("content") or ""),
        state.clock,
        mood=payload.get("mood") or None,
    )
    state.hook("on_journal_entry", entry.to_dict())
    return {"ok": True, "entry": entry.to_dict()}


@app.put("/api/journal/{entry_id}")
def api_update_journal(
    entry_id: str,
    payload: dict[str, Any] = Body(...),
    state: AppState = Depends(get_state),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    entry = update_entry(
        state.repo,
        entry_id,
        str(payload.get("title") or ""),
        str(payload.get("content") or ""),
        state.clock,
        mood=payload.get("mood") or None,
    )
    return {"ok": True, "entry": entry.to_dict()}


@app.delete("/api/journal/{entry_id}")
def api_delete_journal(entry_id: str, state: AppState = Depends(get_state), username: str = Depends(get_current_user)) -> dict[str, Any]:
    delete_entry(state.repo, entry_id)
    return {"ok": True, "entry_id": entry_id}


# Focus


@app.get("/api/focus")
async def api_focus_current(state: AppState = Depends(get_state), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return {"timer": state.timer.snapshot(), "stats": focus_stats(state.repo)}


@app.post("/api/focus/start")
async def api_focus_start(
    payload: dict[str, Any] = Body(default={}),
    state: AppState = Depends(get_state),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    task_name = payload.get("task_name")
    state.timer.start(None if task_name is None else str(task_name))
    return {"ok": True, "timer": state.timer.snapshot()}


@app.post("/api/focus/pause")
async def api_focus_pause(state: AppState = Depends(get_state), username: str = Depends(get_current_user)) -> dict[str, Any]:
    state.timer.pause()
    return {"ok": True, "timer": state.timer.snapshot()}


@app.post("/api/focus/reset")
async def api_focus_reset(state: AppState = Depends(get_state), username: str = Depends(get_current_user)) -> dict[str, Any]:
    state.timer.reset()
    return {"ok": True, "timer": state.timer.snapshot()}


@app.post("/api/focus/duration")
async def api_focus_duration(
    payload: dict[str, Any] = Body(...),
    state: AppState = Depends(get_state),
    username: str = Depends(get_current_user),
) -> dict[str, Any]:
    try:
        minutes = int(payload.get("minutes"))
    except (TypeError, ValueError):
        raise ValidationError("minutes must be an integer")
    state.timer.set_duration(minutes)
    return {"ok": True, "timer": state.timer.snapshot()}


@app.get("/api/focus/sessions")
def api_focus_sessions(limit: int = 20, state: AppState = Depends(get_state), username: str = Depends(get_current_user)) -> dict[str, Any]:
    return {"sessions": [s.to_dict() for s in list_sessions(state.repo, limit)]}


# Achievements


@app.get("/api/achievements")
def api_achievements(state: AppState = Depends(get_state), username: str = Depends(get_current_user)) -> dict[str, Any]:
    stats, unlocked = refresh(state.repo, state.clock, state.root)
    return {
        "stats": stats.to_dict(),
        "achievements": achievement_board(stats, list_unlocked(state.repo)),
        "newAchievements": [a.to_dict() for a in unlocked],
    }
