"""
Tests for the SQLite submission store.

Test Coverage:
    - Schema creation and idempotent re-initialisation
    - Insert / get / delete lifecycle and id assignment
    - Listing order, filters, search and pagination
    - Distinct value lookups
    - StorageError on closed or unopenable databases
"""

import sqlite3

import pytest

from conftest import make_fields
from preinstall_api.app.core.db import MIGRATIONS, SQLITE_MAX_INTEGER, SubmissionStore, resolve_database_path
from preinstall_api.app.core.exceptions import StorageError
from preinstall_api.app.schemas.submission import SubmissionFilter


class TestStoreLifecycle:
    def test_open_creates_table(self, tmp_path):
        path = tmp_path / "new.db"
        with SubmissionStore(str(path)) as store:
            assert store.is_open
            assert store.count() == 0
        conn = sqlite3.connect(path)
        try:
            tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
        finally:
            conn.close()
        assert "submissions" in tables

    def test_initialize_is_idempotent(self, store):
        store.insert(make_fields())
        store.initialize()
        store.initialize()
        assert store.count() == 1

    def test_reopen_keeps_records_and_migration_version(self, tmp_path):
        path = str(tmp_path / "persist.db")
        with SubmissionStore(path) as store:
            new_id = store.insert(make_fields())
        with SubmissionStore(path) as store:
            assert store.get_by_id(new_id) is not None
        conn = sqlite3.connect(path)
        try:
            versions = [row[0] for row in conn.execute("SELECT version FROM migrations ORDER BY version")]
        finally:
            conn.close()
        assert versions == [version for version, _ in MIGRATIONS]

    def test_close_is_idempotent(self, tmp_path):
        store = SubmissionStore(str(tmp_path / "close.db")).open()
        store.close()
        store.close()
        assert not store.is_open

    def test_operations_on_closed_store_raise_storage_error(self, tmp_path):
        store = SubmissionStore(str(tmp_path / "closed.db"))
        with pytest.raises(StorageError):
            store.insert(make_fields())
        with pytest.raises(StorageError):
            store.list()

    def test_open_fails_for_unusable_path(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("plain file")
        store = SubmissionStore(str(blocker / "db.sqlite"))
        with pytest.raises(StorageError):
            store.open()
        assert not store.is_open

    def test_memory_database_is_supported(self):
        with SubmissionStore(":memory:") as store:
            store.insert(make_fields())
            assert store.count() == 1

    def test_relative_paths_resolve_to_absolute(self):
        assert resolve_database_path("form_submissions.db").endswith("form_submissions.db")
        assert resolve_database_path("/tmp/x.db") == "/tmp/x.db"
        assert resolve_database_path(":memory:") == ":memory:"


class TestInsertGetDelete:
    def test_insert_returns_increasing_ids(self, store):
        first = store.insert(make_fields())
        second = store.insert(make_fields())
        assert second > first

    def test_get_returns_stored_values(self, store):
        fields = make_fields(phasing="8 phase | File: phasingFile-1-2.pdf", timing_plans="File: t.xlsx")
        new_id = store.insert(fields)
        submission = store.get_by_id(new_id)
        assert submission.id == new_id
        for column, value in fields.items():
            assert getattr(submission, column) == value
        assert submission.submitted_at

    def test_get_missing_returns_none(self, store):
        assert store.get_by_id(999) is None

    @pytest.mark.parametrize("submission_id", [0, -1, 2**63, 10**20])
    def test_out_of_range_ids_are_missing(self, store, submission_id):
        store.insert(make_fields())
        assert store.get_by_id(submission_id) is None
        assert store.delete_by_id(submission_id) == 0
        assert store.count() == 1

    def test_largest_sqlite_id_is_looked_up(self, store):
        assert store.get_by_id(SQLITE_MAX_INTEGER) is None
        assert store.delete_by_id(SQLITE_MAX_INTEGER) == 0

    def test_unbindable_offset_raises_storage_error(self, store):
        with pytest.raises(StorageError):
            store.list(SubmissionFilter(), limit=10, offset=2**64)

    def test_delete_reports_rows_removed(self, store):
        new_id = store.insert(make_fields())
        assert store.delete_by_id(new_id) == 1
        assert store.get_by_id(new_id) is None
        assert store.delete_by_id(new_id) == 0

    def test_ids_are_not_reused_after_delete(self, store):
        first = store.insert(make_fields())
        store.delete_by_id(first)
        second = store.insert(make_fields())
        assert second > first

    def test_missing_required_column_raises_storage_error(self, store):
        fields = make_fields()
        del fields["city"]
        with pytest.raises(StorageError):
            store.insert(fields)

    def test_unknown_column_is_rejected(self, store):
        with pytest.raises(ValueError):
            store.insert(make_fields(colour="red"))


class TestListAndCount:
    def test_newest_first_with_id_tiebreak(self, store):
        ids = [store.insert(make_fields(intersection_name=f"I{n}")) for n in range(3)]
        listed = [s.id for s in store.list()]
        assert listed == sorted(ids, reverse=True)

    def test_orders_by_submitted_at_before_id(self, store):
        older = store.insert(make_fields())
        newer = store.insert(make_fields())
        # Backdate the newer id so time, not id, decides the order.
        with store._cursor() as cursor:
            cursor.execute("UPDATE submissions SET submitted_at = '2001-01-01 00:00:00' WHERE id = ?", (newer,))
        assert [s.id for s in store.list()] == [older, newer]

    def test_city_filter(self, store):
        a = store.insert(make_fields(city="Springfield"))
        store.insert(make_fields(city="Shelbyville"))
        filters = SubmissionFilter(city="Springfield")
        assert [s.id for s in store.list(filters)] == [a]
        assert store.count(filters) == 1

    def test_filters_combine_with_and(self, store):
        match = store.insert(make_fields(city="Austin", state="TX", cabinet_type="332"))
        store.insert(make_fields(city="Austin", state="TX", cabinet_type="TS2"))
        store.insert(make_fields(city="Austin", state="MN", cabinet_type="332"))
        filters = SubmissionFilter(city="Austin", state="TX", cabinet_type="332")
        assert [s.id for s in store.list(filters)] == [match]

    @pytest.mark.parametrize(
        "column",
        ["intersection_name", "city", "end_user", "distributor"],
    )
    def test_search_matches_each_searched_column(self, store, column):
        target = store.insert(make_fields(**{column: "xxNeedlexx"}))
        store.insert(make_fields())
        found = store.list(SubmissionFilter(search="Needle"))
        assert [s.id for s in found] == [target]

    def test_search_is_case_sensitive(self, store):
        store.insert(make_fields(city="Springfield"))
        assert store.count(SubmissionFilter(search="springfield")) == 0
        assert store.count(SubmissionFilter(search="Spring")) == 1

    def test_search_treats_wildcards_literally(self, store):
        store.insert(make_fields(intersection_name="Main St"))
        assert store.count(SubmissionFilter(search="%")) == 0
        assert store.count(SubmissionFilter(search="_")) == 0

    def test_search_ignores_unsearched_columns(self, store):
        store.insert(make_fields(state="Needle"))
        assert store.count(SubmissionFilter(search="Needle")) == 0

    def test_limit_and_offset(self, store):
        ids = [store.insert(make_fields()) for _ in range(5)]
        newest_first = sorted(ids, reverse=True)
        assert [s.id for s in store.list(limit=2, offset=0)] == newest_first[:2]
        assert [s.id for s in store.list(limit=2, offset=4)] == newest_first[4:]

    def test_count_ignores_pagination(self, store):
        for _ in range(4):
            store.insert(make_fields())
        assert len(store.list(limit=1)) == 1
        assert store.count() == 4


class TestDistinctValues:
    def test_distinct_sorted(self, store):
        for city in ["b", "a", "a"]:
            store.insert(make_fields(city=city))
        assert store.distinct_values("city") == ["a", "b"]

    def test_cabinet_type_accepts_both_spellings(self, store):
        store.insert(make_fields(cabinet_type="TS2"))
        store.insert(make_fields(cabinet_type="332"))
        assert store.distinct_values("cabinetType") == ["332", "TS2"]
        assert store.distinct_values("cabinet_type") == ["332", "TS2"]

    def test_empty_table(self, store):
        assert store.distinct_values("state") == []

    def test_other_columns_rejected(self, store):
        with pytest.raises(ValueError):
            store.distinct_values("end_user")
