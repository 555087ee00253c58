"""
Control storage engine for csftracker.

This module provides the ControlStore class which persists NIST CSF control
records in a single SQLite table.

Storage Structure:
    data/
        controls.db                         # SQLite database

Design Decisions:
    - SQLite is used for its simplicity, portability, and ACID compliance
    - Records are keyed by the integer id assigned on insert; there is no
      natural-key upsert
    - Bulk writes run in a single transaction and roll back as a unit
    - Concurrent writers are last-write-wins; there is no optimistic locking

Thread Safety:
    The store uses a connection-per-operation pattern. Multiple processes
    should use separate ControlStore instances.
"""

from __future__ import annotations

import logging
import sqlite3
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from csftracker.nist import function_code
from csftracker.storage.models import Control, ControlValidationError, MeetsCriteria

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base exception for storage errors."""

    pass


class ControlNotFoundError(StorageError):
    """Raised when a requested control does not exist."""

    pass


# Database schema version for migrations
SCHEMA_VERSION = 1

DEFAULT_DB_NAME = "controls.db"

CREATE_TABLES_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL
);

-- Control records
CREATE TABLE IF NOT EXISTS controls (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner TEXT NOT NULL,
    nist_function TEXT NOT NULL,
    nist_category_id TEXT NOT NULL,
    nist_subcategory_id TEXT NOT NULL,
    assessment_priority TEXT NOT NULL,
    control_description TEXT NOT NULL,
    cybersecurity_domain TEXT NOT NULL,
    meets_criteria TEXT NOT NULL,
    identified_risks TEXT,
    risk_details TEXT,
    remediation_status TEXT NOT NULL,
    last_updated TEXT NOT NULL,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_controls_function ON controls(nist_function);
CREATE INDEX IF NOT EXISTS idx_controls_status ON controls(remediation_status);
CREATE INDEX IF NOT EXISTS idx_controls_priority ON controls(assessment_priority);
CREATE INDEX IF NOT EXISTS idx_controls_owner ON controls(owner);
"""

_COLUMNS = (
    "owner",
    "nist_function",
    "nist_category_id",
    "nist_subcategory_id",
    "assessment_priority",
    "control_description",
    "cybersecurity_domain",
    "meets_criteria",
    "identified_risks",
    "risk_details",
    "remediation_status",
    "last_updated",
    "created_at",
    "updated_at",
)

INSERT_SQL = (
    f"INSERT INTO controls ({', '.join(_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _COLUMNS)})"
)

UPDATE_SQL = (
    "UPDATE controls SET "
    + ", ".join(f"{column} = ?" for column in _COLUMNS if column != "created_at")
    + " WHERE id = ?"
)


class ControlStore:
    """
    Persistent storage for NIST CSF control records.

    Example:
        store = ControlStore(data_dir=Path("./data"))

        stored = store.insert_many(controls)
        everything = store.get_all()

        control = store.get(stored[0].id)
        control.remediation_status = RemediationStatus.COMPLETED
        store.update_one(control)

        store.delete_all()

    Attributes:
        data_dir: Base directory for data storage.
        db_path: Path to the SQLite database file.
    """

    def __init__(self, data_dir: Path | str | None = None) -> None:
        """
        Initialize the control store.

        Args:
            data_dir: Base directory for data storage. Defaults to ~/.csftracker/data
        """
        if data_dir is None:
            data_dir = Path.home() / ".csftracker" / "data"
        elif isinstance(data_dir, str):
            data_dir = Path(data_dir)

        self.data_dir = data_dir
        self.db_path = data_dir / DEFAULT_DB_NAME

        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._init_database()

    def _init_database(self) -> None:
        """Initialize the database schema."""
        try:
            with self._get_connection() as conn:
                conn.executescript(CREATE_TABLES_SQL)

                row = conn.execute(
                    "SELECT version FROM schema_version ORDER BY version DESC LIMIT 1"
                ).fetchone()

                if row is None:
                    conn.execute(
                        "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                        (SCHEMA_VERSION, datetime.now(UTC).isoformat()),
                    )
                    logger.info(f"Initialized database schema version {SCHEMA_VERSION}")
                elif row[0] < SCHEMA_VERSION:
                    logger.warning(
                        f"Database schema version {row[0]} is older than "
                        f"expected version {SCHEMA_VERSION}"
                    )
        except sqlite3.Error as e:
            raise StorageError(f"Failed to initialize database at {self.db_path}: {e}") from e

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Get a database connection with proper settings.

        Yields:
            SQLite connection with row factory set.
        """
        conn = sqlite3.connect(
            str(self.db_path),
            isolation_level=None,  # Autocommit mode, we manage transactions manually
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @staticmethod
    def _row_to_control(row: sqlite3.Row) -> Control:
        data = dict(row)
        try:
            return Control.from_dict(data)
        except ControlValidationError as e:
            raise StorageError(f"Stored control {data.get('id')} is invalid: {e}") from e

    @staticmethod
    def _control_params(control: Control) -> list[Any]:
        return [
            control.owner,
            control.nist_function,
            control.nist_category_id,
            control.nist_subcategory_id,
            control.assessment_priority.value,
            control.control_description,
            control.cybersecurity_domain,
            control.meets_criteria.value,
            control.identified_risks,
            control.risk_details,
            control.remediation_status.value,
            control.last_updated.isoformat() if control.last_updated else None,
            control.created_at.isoformat() if control.created_at else None,
            control.updated_at.isoformat() if control.updated_at else None,
        ]

    # -------------------------------------------------------------------------
    # Read Methods
    # -------------------------------------------------------------------------

    def get_all(self) -> list[Control]:
        """
        Get every stored control.

        Returns:
            Controls ordered by last_updated descending, newest first.

        Raises:
            StorageError: If the query fails.
        """
        try:
            with self._get_connection() as conn:
                rows = conn.execute(
                    "SELECT * FROM controls ORDER BY last_updated DESC, id DESC"
                ).fetchall()
        except sqlite3.Error as e:
            logger.error(f"Failed to fetch controls: {e}")
            raise StorageError(f"Failed to fetch controls: {e}") from e

        return [self._row_to_control(row) for row in rows]

    def get(self, control_id: int) -> Control:
        """
        Get a single control by ID.

        Args:
            control_id: Control identifier.

        Returns:
            The stored control.

        Raises:
            ControlNotFoundError: If no control has this ID.
            StorageError: If the query fails.
        """
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT * FROM controls WHERE id = ?", (control_id,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to fetch control {control_id}: {e}") from e

        if row is None:
            raise ControlNotFoundError(f"Control not found: {control_id}")
        return self._row_to_control(row)

    def count(self) -> int:
        """Get the number of stored controls."""
        try:
            with self._get_connection() as conn:
                row = conn.execute("SELECT COUNT(*) FROM controls").fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to count controls: {e}") from e
        return int(row[0])

    # -------------------------------------------------------------------------
    # Write Methods
    # -------------------------------------------------------------------------

    def _insert(self, conn: sqlite3.Connection, controls: list[Control]) -> list[Control]:
        """Insert controls inside an open transaction (internal helper)."""
        now = datetime.now(UTC)
        stored: list[Control] = []
        for control in controls:
            record = Control.from_dict(control.to_dict())
            record.id = None
            record.last_updated = (record.last_updated or now).astimezone(UTC)
            record.created_at = now
            record.updated_at = now
            cursor = conn.execute(INSERT_SQL, self._control_params(record))
            record.id = cursor.lastrowid
            stored.append(record)
        return stored

    def insert_many(self, controls: Iterable[Control]) -> list[Control]:
        """
        Insert controls as a single all-or-nothing transaction.

        Any id on the input is ignored; the database assigns a new one.
        created_at and updated_at are set to now; last_updated keeps the
        input value when present.

        Args:
            controls: Controls to insert.

        Returns:
            Copies of the inserted controls with ids and timestamps set.

        Raises:
            StorageError: If any insert fails. Nothing is written in that case.
        """
        batch = list(controls)

        with self._get_connection() as conn:
            try:
                conn.execute("BEGIN TRANSACTION")
                stored = self._insert(conn, batch)
                conn.execute("COMMIT")
            except Exception as e:
                conn.execute("ROLLBACK")
                logger.error(f"Failed to insert controls: {e}")
                raise StorageError(f"Failed to insert controls: {e}") from e

        logger.info(f"Inserted {len(stored)} controls")
        return stored

    def replace_all(self, controls: Iterable[Control]) -> list[Control]:
        """
        Replace every stored control in a single transaction.

        Args:
            controls: New full set of controls.

        Returns:
            The inserted controls with ids and timestamps set.

        Raises:
            StorageError: If the replacement fails. The previous data is kept.
        """
        batch = list(controls)

        with self._get_connection() as conn:
            try:
                conn.execute("BEGIN TRANSACTION")
                deleted = conn.execute("DELETE FROM controls").rowcount
                stored = self._insert(conn, batch)
                conn.execute("COMMIT")
            except Exception as e:
                conn.execute("ROLLBACK")
                logger.error(f"Failed to replace controls: {e}")
                raise StorageError(f"Failed to replace controls: {e}") from e

        logger.info(f"Replaced {deleted} controls with {len(stored)} controls")
        return stored

    def update_one(self, control: Control) -> Control:
        """
        Overwrite a stored control with the given full record.

        Args:
            control: Control with id set.

        Returns:
            The updated control with last_updated and updated_at refreshed.

        Raises:
            StorageError: If the control has no id or the update fails.
            ControlNotFoundError: If no control has this id.
        """
        if control.id is None:
            raise StorageError("Cannot update control without ID")

        now = datetime.now(UTC)
        record = Control.from_dict(control.to_dict())
        record.last_updated = now
        record.updated_at = now
        params = [p for column, p in zip(_COLUMNS, self._control_params(record)) if column != "created_at"]

        try:
            with self._get_connection() as conn:
                cursor = conn.execute(UPDATE_SQL, [*params, record.id])
                updated = cursor.rowcount
        except sqlite3.Error as e:
            logger.error(f"Failed to update control {control.id}: {e}")
            raise StorageError(f"Failed to update control {control.id}: {e}") from e

        if updated == 0:
            raise ControlNotFoundError(f"Control not found: {control.id}")

        logger.info(f"Updated control {record.id}")
        return self.get(record.id)

    def delete_one(self, control_id: int) -> int:
        """
        Delete a single control.

        Args:
            control_id: Control identifier.

        Returns:
            Number of controls deleted (always 1).

        Raises:
            ControlNotFoundError: If no control has this ID.
            StorageError: If the delete fails.
        """
        try:
            with self._get_connection() as conn:
                deleted = conn.execute(
                    "DELETE FROM controls WHERE id = ?", (control_id,)
                ).rowcount
        except sqlite3.Error as e:
            logger.error(f"Failed to delete control {control_id}: {e}")
            raise StorageError(f"Failed to delete control {control_id}: {e}") from e

        if deleted == 0:
            raise ControlNotFoundError(f"Control not found: {control_id}")
        logger.info(f"Deleted control {control_id}")
        return deleted

    def delete_all(self) -> int:
        """
        Delete every stored control.

        Returns:
            Number of controls deleted.

        Raises:
            StorageError: If the delete fails.
        """
        try:
            with self._get_connection() as conn:
                deleted = conn.execute("DELETE FROM controls").rowcount
        except sqlite3.Error as e:
            logger.error(f"Failed to clear controls: {e}")
            raise StorageError(f"Failed to clear controls: {e}") from e

        logger.info(f"Deleted all {deleted} controls")
        return deleted

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def test_connection(self) -> bool:
        """
        Check that the database answers a trivial query.

        Returns:
            True if the database is reachable, False otherwise.
        """
        try:
            with self._get_connection() as conn:
                row = conn.execute("SELECT 1 AS connection_test").fetchone()
            return row is not None and row["connection_test"] == 1
        except sqlite3.Error as e:
            logger.error(f"Database connection test failed: {e}")
            return False

    def get_statistics(self) -> dict[str, Any]:
        """
        Get storage statistics.

        Returns:
            Dictionary with control counts, database size and schema version.

        Raises:
            StorageError: If the queries fail.
        """
        try:
            with self._get_connection() as conn:
                total = conn.execute("SELECT COUNT(*) FROM controls").fetchone()[0]
                compliant = conn.execute(
                    "SELECT COUNT(*) FROM controls WHERE meets_criteria = ?",
                    (MeetsCriteria.YES.value,),
                ).fetchone()[0]
                function_rows = conn.execute(
                    "SELECT nist_function, COUNT(*) AS n FROM controls GROUP BY nist_function"
                ).fetchall()
                owner_count = conn.execute(
                    "SELECT COUNT(DISTINCT owner) FROM controls"
                ).fetchone()[0]
                latest = conn.execute("SELECT MAX(last_updated) FROM controls").fetchone()[0]
                version = conn.execute(
                    "SELECT version FROM schema_version ORDER BY version DESC LIMIT 1"
                ).fetchone()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to gather statistics: {e}") from e

        by_function: dict[str, int] = {}
        for row in function_rows:
            code = function_code(row["nist_function"])
            by_function[code] = by_function.get(code, 0) + row["n"]

        db_size = self.db_path.stat().st_size if self.db_path.exists() else 0

        return {
            "total_controls": total,
            "compliant_controls": compliant,
            "non_compliant_controls": total - compliant,
            "owners": owner_count,
            "controls_by_function": by_function,
            "last_updated": latest,
            "schema_version": version[0] if version else None,
            "database_path": str(self.db_path),
            "database_size_bytes": db_size,
        }
