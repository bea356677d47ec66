"""Tests for olympus/workspace.py and olympus/log.py — config and logging."""

import logging

import yaml

from olympus.log import setup_logging
from olympus.workspace import (
    get_clock,
    get_user_timezone,
    load_profile,
    log_path,
    store_path,
    workspace_root,
)


def test_workspace_root_from_env(workspace):
    assert workspace_root() == workspace.resolve()
    assert store_path() == workspace.resolve() / "data" / "store.json"


def test_load_profile(workspace):
    profile = load_profile(workspace)
    assert profile.focus_minutes == 25
    assert profile.log_level == "DEBUG"


def test_missing_profile_uses_defaults(tmp_path):
    profile = load_profile(tmp_path)
    assert profile.timezone == "UTC"
    assert profile.focus_presets == [15, 25, 45, 60]


def test_broken_profile_uses_defaults(tmp_path):
    (tmp_path / "profile.yaml").write_text("timezone: [", encoding="utf-8")
    assert load_profile(tmp_path).timezone == "UTC"


def test_unknown_timezone_falls_back(tmp_path):
    (tmp_path / "profile.yaml").write_text(yaml.dump({"timezone": "Mars/Olympus_Mons"}), encoding="utf-8")
    assert str(get_user_timezone(tmp_path)) == "UTC"


def test_clock_uses_profile_timezone(tmp_path):
    (tmp_path / "profile.yaml").write_text(yaml.dump({"timezone": "Asia/Tokyo"}), encoding="utf-8")
    assert str(get_clock(tmp_path).tz) == "Asia/Tokyo"


def test_log_path_relative(workspace):
    profile = load_profile(workspace)
    assert log_path(workspace, profile) is None
    profile.log_file = "logs/olympus.log"
    assert log_path(workspace, profile) == workspace / "logs" / "olympus.log"


def test_setup_logging_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "olympus.log"
    logger = setup_logging("DEBUG", log_file, stream=False)
    try:
        logging.getLogger("olympus.habits").info("hello from habits")
        for handler in logger.handlers:
            handler.flush()
        assert "hello from habits" in log_file.read_text(encoding="utf-8")
        assert logger.level == logging.DEBUG
    finally:
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def test_malformed_profile_values_fall_back_per_field(tmp_path):
    (tmp_path / "profile.yaml").write_text(
        yaml.dump({"timezone": "Asia/Tokyo", "focus_minutes": "abc", "focus_presets": ["x", 30]}),
        encoding="utf-8",
    )
    profile = load_profile(tmp_path)
    assert profile.timezone == "Asia/Tokyo"
    assert profile.focus_minutes == 25
    assert profile.focus_presets == [30]


def test_non_positive_focus_minutes_uses_default(tmp_path):
    (tmp_path / "profile.yaml").write_text(
        yaml.dump({"focus_minutes": 0, "focus_presets": "15"}), encoding="utf-8"
    )
    profile = load_profile(tmp_path)
    assert profile.focus_minutes == 25
    assert profile.focus_presets == [15, 25, 45, 60]

    (tmp_path / "profile.yaml").write_text(yaml.dump({"focus_minutes": -5}), encoding="utf-8")
    assert load_profile(tmp_path).focus_minutes == 25
