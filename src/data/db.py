"""
Church Calendar Bot — SQLite storage.

ActivityDB holds the shared calendar; GroupDB holds the LINE groups that
receive reminders. Both report "not found" and "duplicate" as typed errors
so callers never inspect message text.
"""

from __future__ import annotations

import abc
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

from src.core.errors import ConflictError, NotFoundError
from src.data.models import Activity, ReminderGroup

logger = logging.getLogger(__name__)

_ACTIVITY_COLUMNS = ("name", "date", "start_time", "end_time")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class _SQLiteStore(abc.ABC):
    """Shared connection handling for the SQLite-backed stores."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    @abc.abstractmethod
    def _init_db(self) -> None:
        """Create tables and apply migrations."""


class ActivityDB(_SQLiteStore):
    """SQLite-backed storage for calendar activities."""

    def _init_db(self) -> None:
        """Create the activities table if it doesn't exist, and migrate schema."""
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS activities (
                    id          INTEGER PRIMARY KEY AUTOINCREMENT,
                    name        TEXT NOT NULL,
                    date        TEXT NOT NULL,
                    start_time  TEXT,
                    end_time    TEXT,
                    created_at  TEXT NOT NULL,
                    updated_at  TEXT NOT NULL,
                    UNIQUE (name, date)
                )
            """)
            # Migrate existing DBs: time fields were added after launch
            existing_cols = {
                row[1] for row in conn.execute("PRAGMA table_info(activities)").fetchall()
            }
            if "start_time" not in existing_cols:
                conn.execute("ALTER TABLE activities ADD COLUMN start_time TEXT")
            if "end_time" not in existing_cols:
                conn.execute("ALTER TABLE activities ADD COLUMN end_time TEXT")
            conn.execute("CREATE INDEX IF NOT EXISTS idx_activities_date ON activities(date)")
        logger.debug("Activities table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_activity(row: sqlite3.Row) -> Activity:
        return Activity(
            id=row["id"],
            name=row["name"],
            date=row["date"],
            start_time=row["start_time"],
            end_time=row["end_time"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def insert(
        self,
        name: str,
        date: str,
        start_time: str | None = None,
        end_time: str | None = None,
    ) -> Activity:
        """Insert a new activity. Raises ConflictError on a duplicate name+date."""
        now = _now()
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO activities
                        (name, date, start_time, end_time, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (name, date, start_time, end_time, now, now),
                )
                activity_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            raise ConflictError(
                "An activity with this name and date already exists"
            ) from exc

        activity = Activity(
            id=activity_id,
            name=name,
            date=date,
            start_time=start_time,
            end_time=end_time,
            created_at=now,
            updated_at=now,
        )
        logger.info("Activity added: #%d '%s' on %s", activity_id, name, date)
        return activity

    def get(self, activity_id: int) -> Activity:
        """Fetch a single activity by ID. Raises NotFoundError."""
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM activities WHERE id = ?", (activity_id,)
            ).fetchone()
        if row is None:
            raise NotFoundError("Activity not found")
        return self._row_to_activity(row)

    def update(self, activity_id: int, patch: dict) -> Activity:
        """Apply the supplied fields; ``updated_at`` is always refreshed."""
        assignments = {k: patch[k] for k in _ACTIVITY_COLUMNS if k in patch}
        assignments["updated_at"] = _now()
        set_clause = ", ".join(f"{col} = ?" for col in assignments)
        params = [*assignments.values(), activity_id]

        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    f"UPDATE activities SET {set_clause} WHERE id = ?", params,
                )
        except sqlite3.IntegrityError as exc:
            raise ConflictError(
                "An activity with this name and date already exists"
            ) from exc

        if cursor.rowcount == 0:
            raise NotFoundError("Activity not found")
        logger.info("Activity #%d updated: %s", activity_id, sorted(assignments))
        return self.get(activity_id)

    def delete(self, activity_id: int) -> None:
        """Permanently delete an activity. Raises NotFoundError."""
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM activities WHERE id = ?", (activity_id,))
        if cursor.rowcount == 0:
            raise NotFoundError("Activity not found")
        logger.info("Activity #%d deleted", activity_id)

    def list_all(self) -> list[Activity]:
        """Return every activity ordered by date."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM activities ORDER BY date, start_time, id"
            ).fetchall()
        return [self._row_to_activity(r) for r in rows]

    def list_between(self, start_date: str, end_date: str) -> list[Activity]:
        """Return activities with start_date <= date <= end_date, ordered by date."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT * FROM activities
                WHERE date >= ? AND date <= ?
                ORDER BY date, start_time, id
                """,
                (start_date, end_date),
            ).fetchall()
        return [self._row_to_activity(r) for r in rows]

    def delete_before(self, cutoff_date: str) -> list[Activity]:
        """Delete every activity dated strictly before ``cutoff_date``.

        Returns the deleted rows so the caller can log them.
        """
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM activities WHERE date < ? ORDER BY date, id",
                (cutoff_date,),
            ).fetchall()
            if rows:
                conn.execute("DELETE FROM activities WHERE date < ?", (cutoff_date,))
        deleted = [self._row_to_activity(r) for r in rows]
        logger.info("Deleted %d activities dated before %s", len(deleted), cutoff_date)
        return deleted


class GroupDB(_SQLiteStore):
    """SQLite-backed registry of LINE groups that receive reminders."""

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS reminder_groups (
                    group_id    TEXT PRIMARY KEY,
                    group_name  TEXT,
                    is_active   INTEGER NOT NULL DEFAULT 1,
                    created_at  TEXT NOT NULL,
                    updated_at  TEXT NOT NULL
                )
            """)
        logger.debug("Reminder groups table initialized at %s", self._db_path)

    @staticmethod
    def _row_to_group(row: sqlite3.Row) -> ReminderGroup:
        return ReminderGroup(
            group_id=row["group_id"],
            group_name=row["group_name"],
            is_active=bool(row["is_active"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    def add_group(self, group_id: str, group_name: str | None = None) -> ReminderGroup:
        """Register a group. Re-adding a removed group reactivates it."""
        existing = self.get_group(group_id, active_only=False)
        now = _now()
        with self._connect() as conn:
            if existing is None:
                conn.execute(
                    """
                    INSERT INTO reminder_groups
                        (group_id, group_name, is_active, created_at, updated_at)
                    VALUES (?, ?, 1, ?, ?)
                    """,
                    (group_id, group_name, now, now),
                )
                logger.info("Group %s added to reminder list", group_id)
            elif not existing.is_active:
                conn.execute(
                    """
                    UPDATE reminder_groups
                    SET is_active = 1, updated_at = ?, group_name = COALESCE(?, group_name)
                    WHERE group_id = ?
                    """,
                    (now, group_name, group_id),
                )
                logger.info("Group %s reactivated", group_id)
            else:
                logger.info("Group %s already in reminder list", group_id)
        return self.get_group(group_id)

    def remove_group(self, group_id: str) -> bool:
        """Soft-remove a group (is_active = 0)."""
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE reminder_groups SET is_active = 0, updated_at = ?
                WHERE group_id = ? AND is_active = 1
                """,
                (_now(), group_id),
            )
        removed = cursor.rowcount > 0
        if removed:
            logger.info("Group %s removed from reminder list", group_id)
        return removed

    def get_group(self, group_id: str, active_only: bool = True) -> ReminderGroup | None:
        query = "SELECT * FROM reminder_groups WHERE group_id = ?"
        if active_only:
            query += " AND is_active = 1"
        with self._connect() as conn:
            row = conn.execute(query, (group_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_group(row)

    def list_active_groups(self) -> list[ReminderGroup]:
        """Return active groups in registration order."""
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM reminder_groups WHERE is_active = 1 ORDER BY created_at, rowid"
            ).fetchall()
        return [self._row_to_group(r) for r in rows]

    def update_group_name(self, group_id: str, group_name: str) -> bool:
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE reminder_groups SET group_name = ?, updated_at = ?
                WHERE group_id = ? AND is_active = 1
                """,
                (group_name, _now(), group_id),
            )
        return cursor.rowcount > 0
