"""Tests for olympus/repository.py — memory and JSON-file repositories."""

import json

import pytest

from olympus.errors import NotFoundError, RepositoryError
from olympus.repository import JsonFileRepository, MemoryRepository, apply_order, open_repository


@pytest.fixture(params=["memory", "file"])
def any_repo(request, tmp_path):
    if request.param == "memory":
        return MemoryRepository()
    return JsonFileRepository(tmp_path / "data" / "store.json")


def test_insert_assigns_id(any_repo):
    stored = any_repo.insert("tasks", {"title": "Plan"})
    assert stored["id"]
    assert any_repo.get("tasks", stored["id"])["title"] == "Plan"


def test_query_filter_and_order(any_repo):
    any_repo.insert("tasks", {"title": "b", "priority": "high", "order_index": 1})
    any_repo.insert("tasks", {"title": "a", "priority": "low", "order_index": 0})
    any_repo.insert("tasks", {"title": "c", "priority": "high", "order_index": 2})

    high = any_repo.query("tasks", {"priority": "high"})
    assert sorted(r["title"] for r in high) == ["b", "c"]

    ordered = any_repo.query("tasks", order_by=[("order_index", True)])
    assert [r["title"] for r in ordered] == ["c", "b", "a"]


def test_query_returns_copies(any_repo):
    stored = any_repo.insert("habits", {"name": "Read"})
    rows = any_repo.query("habits")
    rows[0]["name"] = "changed"
    assert any_repo.get("habits", stored["id"])["name"] == "Read"


def test_unknown_collection(any_repo):
    with pytest.raises(RepositoryError):
        any_repo.query("nope")
    with pytest.raises(RepositoryError):
        any_repo.insert("nope", {})


def test_update(any_repo):
    stored = any_repo.insert("tasks", {"title": "x", "completed": False})
    any_repo.update("tasks", stored["id"], {"completed": True, "id": "hijack"})
    row = any_repo.get("tasks", stored["id"])
    assert row["completed"] is True
    assert any_repo.get("tasks", "hijack") is None


def test_update_missing_raises(any_repo):
    with pytest.raises(NotFoundError):
        any_repo.update("tasks", "missing", {"completed": True})


def test_delete_is_idempotent(any_repo):
    stored = any_repo.insert("tasks", {"title": "x"})
    any_repo.delete("tasks", stored["id"])
    any_repo.delete("tasks", stored["id"])
    assert any_repo.query("tasks") == []


def test_delete_where_counts(any_repo):
    any_repo.insert("habit_completions", {"habit_id": "h", "completed_at": "2026-02-11"})
    any_repo.insert("habit_completions", {"habit_id": "h", "completed_at": "2026-02-10"})
    assert any_repo.delete_where("habit_completions", {"habit_id": "h", "completed_at": "2026-02-11"}) == 1
    assert any_repo.delete_where("habit_completions", {"habit_id": "other"}) == 0
    assert len(any_repo.query("habit_completions")) == 1


def test_delete_where_requires_filter(any_repo):
    with pytest.raises(RepositoryError):
        any_repo.delete_where("tasks", {})


def test_upsert_never_duplicates(any_repo):
    record = {"habit_id": "h", "completed_at": "2026-02-11"}
    first, created = any_repo.upsert("habit_completions", record, ["habit_id", "completed_at"])
    assert created is True
    second, created = any_repo.upsert("habit_completions", record, ["habit_id", "completed_at"])
    assert created is False
    assert second["id"] == first["id"]
    assert len(any_repo.query("habit_completions")) == 1


def test_upsert_requires_keys(any_repo):
    with pytest.raises(RepositoryError):
        any_repo.upsert("achievements", {"achievement_type": "x"}, [])


def test_snapshot_has_every_collection(any_repo):
    snap = any_repo.snapshot()
    assert set(snap) == {
        "habits", "habit_completions", "focus_sessions",
        "tasks", "journal_entries", "achievements",
    }


def test_apply_order_none_first():
    rows = [{"k": 2}, {"k": None}, {"k": 1}]
    assert [r["k"] for r in apply_order(rows, [("k", False)])] == [None, 1, 2]


def test_memory_repository_seed():
    repo = MemoryRepository({"tasks": [{"id": "t1", "title": "x"}]})
    assert repo.get("tasks", "t1")["title"] == "x"
    with pytest.raises(RepositoryError):
        MemoryRepository({"bogus": []})


def test_file_repository_persists(tmp_path):
    path = tmp_path / "store.json"
    JsonFileRepository(path).insert("habits", {"name": "Read"})
    reopened = JsonFileRepository(path)
    assert [r["name"] for r in reopened.query("habits")] == ["Read"]
    on_disk = json.loads(path.read_text(encoding="utf-8"))
    assert on_disk["habits"][0]["name"] == "Read"


def test_file_repository_missing_file_is_empty(tmp_path):
    repo = JsonFileRepository(tmp_path / "absent.json")
    assert repo.query("tasks") == []


def test_file_repository_corrupt_file(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(RepositoryError):
        JsonFileRepository(path).query("tasks")


def test_open_repository(workspace):
    repo = open_repository(workspace)
    repo.insert("tasks", {"title": "x"})
    assert (workspace / "data" / "store.json").exists()
