"""
SQLite run ledger.

Records, per correlation label:

- The run itself and its status
- Every network, chain and relayer the build created
- The last confirmed handshake state of every path

A test process that crashed between build and teardown leaves its rows
behind; a later process reads them to find what still needs removal.
"""

from __future__ import annotations

import sqlite3
import time
from pathlib import Path

from .ledger import ResourceRecord, RunRecord
from .namespaces import HANDSHAKES, RESOURCES, RUNS


class SQLiteLedger:
    """
    SQLite implementation of the RunLedger protocol.

    Stores the ledger in a single SQLite file.
    Thread-safe through SQLite's built-in locking.
    """

    def __init__(self, path: Path | str) -> None:
        """
        Initialize SQLite ledger.

        Creates database file and tables if they don't exist.

        Args:
            path: Path to SQLite database file.
                  Use ":memory:" for in-memory database.
        """
        self._path = Path(path) if isinstance(path, str) else path

        self._conn = sqlite3.connect(
            str(self._path),
            check_same_thread=False,
        )
        self._conn.row_factory = sqlite3.Row

        self._init_schema()

    def _init_schema(self) -> None:
        """Create tables if they don't exist."""
        cursor = self._conn.cursor()
        cursor.execute(RUNS.CREATE_TABLE)
        cursor.execute(RESOURCES.CREATE_TABLE)
        cursor.execute(RESOURCES.CREATE_INDEX)
        cursor.execute(HANDSHAKES.CREATE_TABLE)
        self._conn.commit()

    # -------------------------------------------------------------------------
    # Runs
    # -------------------------------------------------------------------------

    def record_run(self, label: str, test_name: str) -> None:
        """Register a run in status "building"."""
        cursor = self._conn.cursor()
        cursor.execute(
            f"INSERT OR REPLACE INTO {RUNS.TABLE_NAME} (label, test_name, status, created_at) "
            "VALUES (?, ?, ?, ?)",
            (label, test_name, "building", time.time()),
        )
        self._conn.commit()

    def set_run_status(self, label: str, status: str) -> None:
        """Update a run's status."""
        cursor = self._conn.cursor()
        cursor.execute(
            f"UPDATE {RUNS.TABLE_NAME} SET status = ? WHERE label = ?",
            (status, label),
        )
        self._conn.commit()

    def get_run(self, label: str) -> RunRecord | None:
        """Retrieve a run by label."""
        cursor = self._conn.cursor()
        cursor.execute(
            f"SELECT label, test_name, status, created_at FROM {RUNS.TABLE_NAME} WHERE label = ?",
            (label,),
        )
        row = cursor.fetchone()
        if row is None:
            return None
        return RunRecord(
            label=row["label"],
            test_name=row["test_name"],
            status=row["status"],
            created_at=row["created_at"],
        )

    # -------------------------------------------------------------------------
    # Resources
    # -------------------------------------------------------------------------

    def record_resource(self, label: str, kind: str, name: str, ref: str) -> None:
        """Register a resource as created (and not yet released)."""
        cursor = self._conn.cursor()

        # Re-recording a resource (e.g. after a retried build under the same
        # label) marks it live again.
        cursor.execute(
            f"INSERT OR REPLACE INTO {RESOURCES.TABLE_NAME} (label, kind, name, ref, released) "
            "VALUES (?, ?, ?, ?, 0)",
            (label, kind, name, ref),
        )
        self._conn.commit()

    def release_resource(self, label: str, kind: str, name: str) -> None:
        """Mark a resource as released by teardown."""
        cursor = self._conn.cursor()
        cursor.execute(
            f"UPDATE {RESOURCES.TABLE_NAME} SET released = 1 "
            "WHERE label = ? AND kind = ? AND name = ?",
            (label, kind, name),
        )
        self._conn.commit()

    def unreleased_resources(self, label: str) -> list[ResourceRecord]:
        """Resources of a run that teardown has not released, in creation order."""
        cursor = self._conn.cursor()
        cursor.execute(
            f"SELECT label, kind, name, ref, released FROM {RESOURCES.TABLE_NAME} "
            "WHERE label = ? AND released = 0 ORDER BY rowid",
            (label,),
        )
        return [
            ResourceRecord(
                label=row["label"],
                kind=row["kind"],
                name=row["name"],
                ref=row["ref"],
                released=bool(row["released"]),
            )
            for row in cursor.fetchall()
        ]

    # -------------------------------------------------------------------------
    # Handshakes
    # -------------------------------------------------------------------------

    def record_handshake(self, label: str, path_name: str, state: str) -> None:
        """Store the last confirmed handshake state of a path."""
        cursor = self._conn.cursor()
        cursor.execute(
            f"INSERT OR REPLACE INTO {HANDSHAKES.TABLE_NAME} "
            "(label, path_name, state, updated_at) VALUES (?, ?, ?, ?)",
            (label, path_name, state, time.time()),
        )
        self._conn.commit()

    def handshake_states(self, label: str) -> dict[str, str]:
        """Last confirmed handshake state of every path of a run."""
        cursor = self._conn.cursor()
        cursor.execute(
            f"SELECT path_name, state FROM {HANDSHAKES.TABLE_NAME} "
            "WHERE label = ? ORDER BY path_name",
            (label,),
        )
        return {row["path_name"]: row["state"] for row in cursor.fetchall()}

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        """Close database connection."""
        self._conn.close()

    def __enter__(self) -> SQLiteLedger:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()
