"""Tests for src.core.activity_service — validation over ActivityDB."""

from datetime import date

import pytest

from src.core.date_window import DateWindow
from src.core.errors import ConflictError, NotFoundError, ValidationError


class TestCreate:
    def test_create_trims_and_stores(self, activity_service):
        activity = activity_service.create({"name": "  主日崇拜 ", "date": "2025-01-19"})
        assert activity.name == "主日崇拜"
        assert activity_service.get(activity.id) == activity

    def test_create_pads_times(self, activity_service):
        activity = activity_service.create(
            {"name": "早禱", "date": "2025-01-19", "start_time": "9:00", "end_time": "10:00"},
        )
        assert activity.start_time == "09:00"

    def test_blank_times_treated_as_absent(self, activity_service):
        activity = activity_service.create(
            {"name": "A", "date": "2025-01-19", "start_time": "", "end_time": "  "},
        )
        assert activity.start_time is None
        assert activity.end_time is None

    def test_past_date_rejected(self, activity_service):
        with pytest.raises(ValidationError) as exc_info:
            activity_service.create({"name": "A", "date": "2025-01-14"})
        assert exc_info.value.errors == ["Activity date cannot be in the past"]

    def test_today_allowed(self, activity_service):
        assert activity_service.create({"name": "A", "date": "2025-01-15"}).id

    def test_all_errors_reported(self, activity_service):
        with pytest.raises(ValidationError) as exc_info:
            activity_service.create({"name": "", "date": "2025-02-30"})
        assert len(exc_info.value.errors) == 2

    def test_duplicate_is_conflict_not_validation(self, activity_service):
        activity_service.create({"name": "A", "date": "2025-01-19"})
        with pytest.raises(ConflictError):
            activity_service.create({"name": "A", "date": "2025-01-19"})


class TestUpdate:
    def test_partial_update(self, activity_service):
        created = activity_service.create({"name": "A", "date": "2025-01-19"})
        updated = activity_service.update(created.id, {"name": "B"})
        assert updated.name == "B"
        assert updated.date == "2025-01-19"

    def test_empty_update_rejected(self, activity_service):
        created = activity_service.create({"name": "A", "date": "2025-01-19"})
        with pytest.raises(ValidationError):
            activity_service.update(created.id, {})

    def test_missing_id_is_not_found(self, activity_service):
        with pytest.raises(NotFoundError):
            activity_service.update(999, {"name": "B"})

    def test_lone_start_checked_against_stored_end(self, activity_service):
        created = activity_service.create(
            {"name": "A", "date": "2025-01-19", "start_time": "09:00", "end_time": "10:00"},
        )
        with pytest.raises(ValidationError):
            activity_service.update(created.id, {"start_time": "11:00"})

    def test_past_date_rejected(self, activity_service):
        created = activity_service.create({"name": "A", "date": "2025-01-19"})
        with pytest.raises(ValidationError):
            activity_service.update(created.id, {"date": "2025-01-01"})


class TestDelete:
    def test_returns_deleted_record(self, activity_service):
        created = activity_service.create({"name": "A", "date": "2025-01-19"})
        deleted = activity_service.delete(created.id)
        assert deleted == created
        assert activity_service.list_all() == []

    def test_missing(self, activity_service):
        with pytest.raises(NotFoundError):
            activity_service.delete(999)


class TestQueries:
    def test_empty_lists_not_none(self, activity_service):
        assert activity_service.list_all() == []
        assert activity_service.list_for_month(2, 2025) == []

    def test_list_for_month(self, activity_service):
        activity_service.create({"name": "Jan", "date": "2025-01-31"})
        activity_service.create({"name": "Feb", "date": "2025-02-01"})
        assert [a.name for a in activity_service.list_for_month(1, 2025)] == ["Jan"]

    def test_list_for_month_invalid(self, activity_service):
        with pytest.raises(ValidationError):
            activity_service.list_for_month(13, 2025)

    def test_list_for_window(self, activity_service):
        activity_service.create({"name": "In", "date": "2025-01-18"})
        activity_service.create({"name": "Out", "date": "2025-01-19"})
        window = DateWindow(date(2025, 1, 12), date(2025, 1, 18))
        assert [a.name for a in activity_service.list_for_window(window)] == ["In"]


class TestCleanup:
    def test_deletes_before_cutoff(self, activity_service, activity_db):
        # Seed past rows directly; the service refuses past dates
        activity_db.insert("Old", "2025-01-10")
        activity_db.insert("Yesterday", "2025-01-14")
        activity_service.create({"name": "Today", "date": "2025-01-15"})

        result = activity_service.cleanup_old(days_old=1)

        assert result.cutoff_date == "2025-01-14"
        assert [a.name for a in result.deleted] == ["Old"]
        assert result.deleted_count == 1
        assert {a.name for a in activity_service.list_all()} == {"Yesterday", "Today"}

    def test_nothing_to_clean(self, activity_service):
        assert activity_service.cleanup_old(days_old=7).deleted == []
