"""Olympus core library — progress and gamification engine.

Public API re-exports for convenient imports:
    from olympus import Clock, open_repository, toggle_completion, refresh, ...
"""

# Clock & day keys
from olympus.clock import (
    Clock,
    FixedClock,
    day_key,
    parse_day,
    previous_day,
)

# Errors
from olympus.errors import (
    OlympusError,
    ValidationError,
    RepositoryError,
    NotFoundError,
    SessionStateError,
)

# Workspace & config
from olympus.workspace import (
    workspace_root,
    load_profile,
    get_user_timezone,
    get_clock,
    today_str,
    profile_path,
    store_path,
    hooks_config_path,
    log_path,
)

# Repository
from olympus.repository import (
    COLLECTIONS,
    Repository,
    MemoryRepository,
    JsonFileRepository,
    open_repository,
)

# Streaks
from olympus.streaks import (
    current_streak,
    best_streak,
    longest_current_streak,
)

# Habits
from olympus.habits import (
    validate_habit,
    create_habit,
    get_habit,
    list_habits,
    archive_habit,
    completion_days,
    is_completed_on,
    toggle_completion,
    habit_progress,
    HabitProgress,
)

# Focus
from olympus.focus import (
    TimerState,
    Scheduler,
    ManualScheduler,
    AsyncioScheduler,
    FocusTimer,
    list_sessions,
    focus_stats,
)

# Tasks
from olympus.tasks import (
    task_counts,
    filter_tasks,
    sort_tasks,
    validate_task,
    list_tasks,
    create_task,
    toggle_task,
    delete_task,
)

# Journal
from olympus.journal import (
    validate_entry,
    list_entries,
    get_entry,
    create_entry,
    update_entry,
    delete_entry,
)

# Achievements & stats
from olympus.achievements import (
    AchievementRule,
    CATALOG,
    evaluate,
    progress,
    unlock_achievements,
    list_unlocked,
    achievement_board,
)
from olympus.stats import compute_stats, refresh

# Hooks & logging
from olympus.hooks import run_hooks, load_hooks_config
from olympus.log import setup_logging

# Models
from olympus.models import (
    Profile,
    Habit,
    HabitCompletion,
    FocusSession,
    Task,
    TaskCounts,
    JournalEntry,
    Achievement,
    Stats,
    PRIORITIES,
    TASK_VIEWS,
    MOODS,
)
