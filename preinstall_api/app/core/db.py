"""
SQLite persistence for registration submissions.

``SubmissionStore`` owns the single ``submissions`` table: schema
creation through a small versioned migration list, and the raw insert,
lookup, listing, counting, deletion and distinct-value queries used by
the service layer.  The store is constructed explicitly, opened once
at application startup and closed at shutdown; services receive it
through FastAPI dependencies instead of reaching for a module global.

Every ``sqlite3.Error`` is converted into ``StorageError``.  Nothing
is retried; SQLite's own locking serialises concurrent writers.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from preinstall_api.app.core.config import resolve_project_path
from preinstall_api.app.core.exceptions import StorageError
from preinstall_api.app.schemas.submission import SubmissionFilter, SubmissionRead

logger = logging.getLogger(__name__)

MEMORY_DATABASE = ":memory:"

# Largest value SQLite can bind as an INTEGER.
SQLITE_MAX_INTEGER = 2**63 - 1

# Columns a caller may supply to ``insert``.  ``id`` and
# ``submitted_at`` are always assigned by SQLite.
INSERTABLE_COLUMNS = (
    "intersection_name",
    "city",
    "state",
    "end_user",
    "distributor",
    "cabinet_type",
    "tls_connection",
    "detection_io",
    "phasing",
    "timing_plans",
)

# Columns searched by the free-text ``search`` filter.
SEARCH_COLUMNS = ("intersection_name", "city", "end_user", "distributor")

# Public names accepted by ``distinct_values`` mapped to table columns.
DISTINCT_COLUMNS = {
    "city": "city",
    "state": "state",
    "cabinetType": "cabinet_type",
    "cabinet_type": "cabinet_type",
}

MIGRATIONS: List[Tuple[int, str]] = [
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS submissions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            intersection_name TEXT NOT NULL,
            city TEXT NOT NULL,
            state TEXT NOT NULL,
            end_user TEXT NOT NULL,
            distributor TEXT NOT NULL,
            cabinet_type TEXT NOT NULL,
            tls_connection TEXT NOT NULL,
            detection_io TEXT,
            phasing TEXT,
            timing_plans TEXT,
            submitted_at DATETIME DEFAULT CURRENT_TIMESTAMP
        );
        """,
    ),
    (
        2,
        """
        -- Dashboard listing sorts by submission time and filters on these columns
        CREATE INDEX IF NOT EXISTS idx_submissions_submitted_at ON submissions(submitted_at);
        CREATE INDEX IF NOT EXISTS idx_submissions_city ON submissions(city);
        CREATE INDEX IF NOT EXISTS idx_submissions_state ON submissions(state);
        CREATE INDEX IF NOT EXISTS idx_submissions_cabinet_type ON submissions(cabinet_type);
        """,
    ),
]


def resolve_database_path(database_url: str) -> str:
    """Compute the path to the SQLite database file.

    ``:memory:`` is returned unchanged; other paths go through
    ``resolve_project_path``.
    """
    if database_url == MEMORY_DATABASE:
        return database_url
    return resolve_project_path(database_url)


class SubmissionStore:
    """Record store backed by a single SQLite connection."""

    def __init__(self, database_url: str) -> None:
        self.path = resolve_database_path(database_url)
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> "SubmissionStore":
        """Open the connection and make sure the schema exists.

        Raises ``StorageError`` if the database cannot be opened; the
        application treats that as fatal at startup.
        """
        if self._conn is not None:
            return self
        try:
            if self.path != MEMORY_DATABASE:
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            # Handlers run on the event loop but TestClient and uvicorn
            # may drive it from a different thread than the one opening it.
            conn = sqlite3.connect(self.path, check_same_thread=False)
        except (sqlite3.Error, OSError) as exc:
            raise StorageError(f"Cannot open database {self.path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        self._conn = conn
        logger.info("Connected to SQLite database %s", self.path)
        try:
            self.initialize()
        except StorageError:
            self.close()
            raise
        return self

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.info("Closed SQLite database %s", self.path)

    def __enter__(self) -> "SubmissionStore":
        return self.open()

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @contextmanager
    def _cursor(self) -> Iterator[sqlite3.Cursor]:
        """Yield a cursor, committing on success and rolling back on failure."""
        if self._conn is None:
            raise StorageError("Submission store is not open")
        conn = self._conn
        cursor = conn.cursor()
        try:
            yield cursor
            conn.commit()
        except (sqlite3.Error, OverflowError) as exc:
            # OverflowError: a bound Python int does not fit in 64 bits.
            conn.rollback()
            raise StorageError(str(exc)) from exc
        finally:
            cursor.close()

    def initialize(self) -> None:
        """Apply pending migrations.  A no-op when the schema is current."""
        with self._cursor() as cursor:
            cursor.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
            row = cursor.execute("SELECT MAX(version) AS version FROM migrations").fetchone()
            current_version = row["version"] if row and row["version"] is not None else 0
            for version, sql in MIGRATIONS:
                if version > current_version:
                    cursor.executescript(sql)
                    cursor.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                    current_version = version
                    logger.info("Applied submissions migration %s", version)

    def insert(self, fields: Mapping[str, Optional[str]]) -> int:
        """Insert a submission and return its new id."""
        unknown = set(fields) - set(INSERTABLE_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown submission columns: {sorted(unknown)}")
        columns = [c for c in INSERTABLE_COLUMNS if c in fields]
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO submissions ({', '.join(columns)}) VALUES ({placeholders})"
        with self._cursor() as cursor:
            cursor.execute(sql, tuple(fields[c] for c in columns))
            return cursor.lastrowid

    def get_by_id(self, submission_id: int) -> Optional[SubmissionRead]:
        if not 0 < submission_id <= SQLITE_MAX_INTEGER:
            return None
        with self._cursor() as cursor:
            row = cursor.execute(
                "SELECT * FROM submissions WHERE id = ?", (submission_id,)
            ).fetchone()
        return self._row_to_submission(row) if row else None

    def delete_by_id(self, submission_id: int) -> int:
        """Delete a submission; returns the number of rows removed (0 or 1)."""
        if not 0 < submission_id <= SQLITE_MAX_INTEGER:
            return 0
        with self._cursor() as cursor:
            cursor.execute("DELETE FROM submissions WHERE id = ?", (submission_id,))
            return cursor.rowcount

    def list(
        self,
        filters: Optional[SubmissionFilter] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[SubmissionRead]:
        """Return matching submissions, newest first, ties broken by id."""
        where, params = self._build_where(filters)
        sql = (
            f"SELECT * FROM submissions{where} "
            "ORDER BY submitted_at DESC, id DESC LIMIT ? OFFSET ?"
        )
        with self._cursor() as cursor:
            rows = cursor.execute(sql, (*params, limit, offset)).fetchall()
        return [self._row_to_submission(row) for row in rows]

    def count(self, filters: Optional[SubmissionFilter] = None) -> int:
        where, params = self._build_where(filters)
        with self._cursor() as cursor:
            row = cursor.execute(f"SELECT COUNT(*) AS total FROM submissions{where}", params).fetchone()
        return row["total"]

    def distinct_values(self, column: str) -> List[str]:
        """Return the distinct values of ``city``, ``state`` or ``cabinetType``, sorted."""
        if column not in DISTINCT_COLUMNS:
            raise ValueError(f"Distinct values are not available for column {column!r}")
        name = DISTINCT_COLUMNS[column]
        with self._cursor() as cursor:
            rows = cursor.execute(
                f"SELECT DISTINCT {name} AS value FROM submissions ORDER BY {name}"
            ).fetchall()
        return [row["value"] for row in rows]

    @staticmethod
    def _build_where(filters: Optional[SubmissionFilter]) -> Tuple[str, Tuple[Any, ...]]:
        """Translate a filter into a WHERE clause and its parameters.

        ``instr`` is used for the search term because ``LIKE`` is
        case-insensitive in SQLite and treats ``%``/``_`` as wildcards.
        """
        if filters is None:
            return "", ()
        clauses: List[str] = []
        params: List[Any] = []
        if filters.search:
            clauses.append("(" + " OR ".join(f"instr({c}, ?) > 0" for c in SEARCH_COLUMNS) + ")")
            params.extend([filters.search] * len(SEARCH_COLUMNS))
        exact: Dict[str, Optional[str]] = {
            "city": filters.city,
            "state": filters.state,
            "cabinet_type": filters.cabinet_type,
        }
        for column, value in exact.items():
            if value:
                clauses.append(f"{column} = ?")
                params.append(value)
        if not clauses:
            return "", ()
        return " WHERE " + " AND ".join(clauses), tuple(params)

    @staticmethod
    def _row_to_submission(row: sqlite3.Row) -> SubmissionRead:
        """Convert a database row to a ``SubmissionRead`` instance."""
        return SubmissionRead(
            id=row["id"],
            intersection_name=row["intersection_name"],
            city=row["city"],
            state=row["state"],
            end_user=row["end_user"],
            distributor=row["distributor"],
            cabinet_type=row["cabinet_type"],
            tls_connection=row["tls_connection"],
            detection_io=row["detection_io"],
            phasing=row["phasing"],
            timing_plans=row["timing_plans"],
            submitted_at=str(row["submitted_at"]),
        )
