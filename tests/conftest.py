"""Shared test fixtures for Olympus tests."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

import pytest
import yaml

from olympus.clock import FixedClock
from olympus.repository import MemoryRepository

UTC = ZoneInfo("UTC")


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace with a profile."""
    root = tmp_path / "workspace"
    (root / "data").mkdir(parents=True)

    profile = {
        "timezone": "UTC",
        "focus_minutes": 25,
        "focus_presets": [15, 25, 45, 60],
        "log_level": "DEBUG",
    }
    (root / "profile.yaml").write_text(
        yaml.dump(profile, default_flow_style=False), encoding="utf-8"
    )

    os.environ["OLYMPUS_ROOT"] = str(root)
    yield root
    if "OLYMPUS_ROOT" in os.environ:
        del os.environ["OLYMPUS_ROOT"]


@pytest.fixture
def clock() -> FixedClock:
    """A clock pinned to 2026-02-11 09:30 UTC."""
    return FixedClock(datetime(2026, 2, 11, 9, 30, tzinfo=UTC), UTC)


@pytest.fixture
def repo() -> MemoryRepository:
    return MemoryRepository()
