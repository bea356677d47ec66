"""Workspace root, profile settings and path helpers for Olympus."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from olympus.clock import Clock
from olympus.fileio import read_yaml
from olympus.models import Profile

logger = logging.getLogger(__name__)


def workspace_root() -> Path:
    """Get the workspace root directory (holds profile.yaml and data/)."""
    return Path(
        os.environ.get("OLYMPUS_ROOT", str(Path.home() / "olympus"))
    ).expanduser().resolve()


# ── Path helpers ──────────────────────────────────────────────

def profile_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "profile.yaml"


def store_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "data" / "store.json"


def hooks_config_path(root: Path | None = None) -> Path:
    if root is None:
        root = workspace_root()
    return root / "hooks.yaml"


def log_path(root: Path | None = None, profile: Profile | None = None) -> Path | None:
    """Resolve the profile's log_file against the root, or None."""
    if root is None:
        root = workspace_root()
    if profile is None:
        profile = load_profile(root)
    if not profile.log_file:
        return None
    path = Path(profile.log_file).expanduser()
    return path if path.is_absolute() else root / path


# ── Profile ───────────────────────────────────────────────────

def load_profile(root: Path | None = None) -> Profile:
    """Load profile.yaml, falling back to defaults when missing or unreadable."""
    try:
        data = read_yaml(profile_path(root))
    except (OSError, yaml.YAMLError) as e:
        logger.warning("Could not read profile, using defaults: %s", e)
        return Profile()
    return Profile.from_dict(data)


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get user's timezone from profile.yaml, defaulting to UTC."""
    name = load_profile(root).timezone
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r in profile, using UTC", name)
        return ZoneInfo("UTC")


def get_clock(root: Path | None = None) -> Clock:
    return Clock(get_user_timezone(root))


def today_str(root: Path | None = None) -> str:
    """Get today's day key (YYYY-MM-DD) in user's timezone."""
    return get_clock(root).today_key()
