"""Tests for src.data.db — ActivityDB and GroupDB (SQLite storage)."""

import sqlite3

import pytest

from src.core.errors import ConflictError, NotFoundError
from src.data.db import ActivityDB, GroupDB, _SQLiteStore


class TestActivityDBInsertAndGet:
    def test_insert_returns_activity(self, activity_db):
        activity = activity_db.insert("主日崇拜", "2025-01-19", "09:00", "11:00")
        assert activity.id is not None
        assert activity.name == "主日崇拜"
        assert activity.start_time == "09:00"
        assert activity.created_at == activity.updated_at

    def test_timestamps_are_utc(self, activity_db, group_db):
        assert activity_db.insert("A", "2025-01-19").created_at.endswith("+00:00")
        assert group_db.add_group("G1").created_at.endswith("+00:00")

    def test_get_roundtrip(self, activity_db):
        created = activity_db.insert("A", "2025-01-19")
        fetched = activity_db.get(created.id)
        assert fetched == created

    def test_get_missing_raises(self, activity_db):
        with pytest.raises(NotFoundError):
            activity_db.get(999)

    def test_duplicate_name_and_date_conflicts(self, activity_db):
        activity_db.insert("A", "2025-01-19")
        with pytest.raises(ConflictError):
            activity_db.insert("A", "2025-01-19")

    def test_same_name_other_date_ok(self, activity_db):
        activity_db.insert("A", "2025-01-19")
        activity_db.insert("A", "2025-01-26")
        assert len(activity_db.list_all()) == 2


class TestActivityDBUpdateAndDelete:
    def test_update_only_supplied_fields(self, activity_db):
        created = activity_db.insert("A", "2025-01-19", "09:00", "10:00")
        updated = activity_db.update(created.id, {"name": "B"})
        assert updated.name == "B"
        assert updated.date == "2025-01-19"
        assert updated.start_time == "09:00"

    def test_update_ignores_unknown_keys(self, activity_db):
        created = activity_db.insert("A", "2025-01-19")
        updated = activity_db.update(created.id, {"id": 42, "name": "B"})
        assert updated.id == created.id

    def test_update_missing_raises(self, activity_db):
        with pytest.raises(NotFoundError):
            activity_db.update(999, {"name": "B"})

    def test_update_into_duplicate_conflicts(self, activity_db):
        activity_db.insert("A", "2025-01-19")
        other = activity_db.insert("B", "2025-01-19")
        with pytest.raises(ConflictError):
            activity_db.update(other.id, {"name": "A"})

    def test_delete(self, activity_db):
        created = activity_db.insert("A", "2025-01-19")
        activity_db.delete(created.id)
        with pytest.raises(NotFoundError):
            activity_db.get(created.id)

    def test_delete_missing_raises(self, activity_db):
        with pytest.raises(NotFoundError):
            activity_db.delete(999)


class TestActivityDBQueries:
    def test_list_all_empty(self, activity_db):
        assert activity_db.list_all() == []

    def test_list_all_ordered(self, activity_db):
        activity_db.insert("Late", "2025-02-01")
        activity_db.insert("Early", "2025-01-20")
        assert [a.name for a in activity_db.list_all()] == ["Early", "Late"]

    def test_list_between_inclusive(self, activity_db):
        activity_db.insert("Before", "2025-01-11")
        activity_db.insert("Start", "2025-01-12")
        activity_db.insert("End", "2025-01-18")
        activity_db.insert("After", "2025-01-19")
        names = [a.name for a in activity_db.list_between("2025-01-12", "2025-01-18")]
        assert names == ["Start", "End"]

    def test_delete_before_is_strict(self, activity_db):
        activity_db.insert("Old", "2025-01-13")
        activity_db.insert("Cutoff", "2025-01-14")
        deleted = activity_db.delete_before("2025-01-14")
        assert [a.name for a in deleted] == ["Old"]
        assert [a.name for a in activity_db.list_all()] == ["Cutoff"]


class TestActivityDBMigration:
    def test_adds_time_columns_to_old_schema(self, tmp_db_path):
        with sqlite3.connect(tmp_db_path) as conn:
            conn.execute("""
                CREATE TABLE activities (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    date TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL,
                    UNIQUE (name, date)
                )
            """)
            conn.execute(
                "INSERT INTO activities (name, date, created_at, updated_at) VALUES (?, ?, ?, ?)",
                ("Legacy", "2025-01-19", "x", "x"),
            )
        conn.close()

        db = ActivityDB(db_path=tmp_db_path)
        legacy = db.list_all()[0]
        assert legacy.name == "Legacy"
        assert legacy.start_time is None
        assert db.insert("New", "2025-01-20", "09:00").start_time == "09:00"


class TestGroupDB:
    def test_add_and_list(self, group_db):
        group_db.add_group("G1", "Youth")
        group_db.add_group("G2")
        groups = group_db.list_active_groups()
        assert [g.group_id for g in groups] == ["G1", "G2"]
        assert groups[0].group_name == "Youth"

    def test_add_is_idempotent(self, group_db):
        group_db.add_group("G1")
        group_db.add_group("G1")
        assert len(group_db.list_active_groups()) == 1

    def test_remove_is_soft(self, group_db):
        group_db.add_group("G1")
        assert group_db.remove_group("G1") is True
        assert group_db.list_active_groups() == []
        assert group_db.get_group("G1") is None
        assert group_db.get_group("G1", active_only=False).is_active is False

    def test_remove_unknown(self, group_db):
        assert group_db.remove_group("nope") is False

    def test_readd_reactivates(self, group_db):
        group_db.add_group("G1", "Old name")
        group_db.remove_group("G1")
        group = group_db.add_group("G1")
        assert group.is_active is True
        assert group.group_name == "Old name"

    def test_update_group_name(self, group_db):
        group_db.add_group("G1")
        assert group_db.update_group_name("G1", "Choir") is True
        assert group_db.get_group("G1").group_name == "Choir"

    def test_shares_file_with_activities(self, tmp_db_path):
        ActivityDB(db_path=tmp_db_path).insert("A", "2025-01-19")
        groups = GroupDB(db_path=tmp_db_path)
        groups.add_group("G1")
        assert len(ActivityDB(db_path=tmp_db_path).list_all()) == 1


# ---------------------------------------------------------------------------
# Base store
# ---------------------------------------------------------------------------

class TestSQLiteStoreBase:
    def test_base_store_cannot_be_instantiated(self, tmp_db_path):
        with pytest.raises(TypeError):
            _SQLiteStore(tmp_db_path)
