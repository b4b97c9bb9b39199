"""Correlation store: Seerr issue id <-> Matrix root message, in SQLite.

One row per issue in table issue_events. The issue_id primary key is the
only concurrency control: a second insert for the same issue fails with
IntegrityError and is reported as "already exists". Every call opens its
own connection, so calls for different issues never wait on each other in
Python; SQLite itself serializes writers with a bounded busy timeout.
"""

import logging
import sqlite3
from pathlib import Path

from seerrbridge.errors import StoreError
from seerrbridge.models import CorrelationRecord

LOG = logging.getLogger("seerrbridge.store.correlation_store")

_COLUMNS = "issue_id, room_id, root_message_id, status_marker_id"


def _record_from_row(row: sqlite3.Row) -> CorrelationRecord:
    return CorrelationRecord(
        issue_id=row["issue_id"],
        room_id=row["room_id"],
        root_message_id=row["root_message_id"],
        status_marker_id=row["status_marker_id"],
    )


class CorrelationStore:
    """SQLite-backed table of correlation records."""

    def __init__(self, db_path: str | Path, timeout: float = 10.0) -> None:
        self._db_path = str(db_path)
        self._timeout = timeout

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self._db_path, timeout=self._timeout)
        except sqlite3.Error as e:
            raise StoreError(f"cannot open {self._db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        return conn

    def _execute(self, sql: str, params: tuple = ()) -> "_Result":
        """Run one statement in its own transaction.

        IntegrityError is re-raised as is; other sqlite errors and values
        SQLite cannot bind (OverflowError) become StoreError.
        """
        conn = self._connect()
        try:
            with conn:
                cur = conn.execute(sql, params)
                rows = cur.fetchall()
            return _Result(rows, cur.rowcount)
        except sqlite3.IntegrityError:
            raise
        except (sqlite3.Error, OverflowError) as e:
            raise StoreError(f"{e} (query: {sql.split()[0]})") from e
        finally:
            conn.close()

    def init_db(self) -> None:
        """Create the issue_events table if it does not exist.

        Fields:
        - issue_id: Seerr issue id (PRIMARY KEY)
        - room_id: Matrix room holding the root message
        - root_message_id: event id of the announcement; NULL while it is being sent
        - status_marker_id: event id of the open-marker reaction, NULL when absent
        """
        conn = self._connect()
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            with conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS issue_events (
                        issue_id INTEGER PRIMARY KEY,
                        room_id TEXT NOT NULL,
                        root_message_id TEXT UNIQUE,
                        status_marker_id TEXT
                    )
                    """
                )
        except sqlite3.Error as e:
            raise StoreError(f"cannot initialize {self._db_path}: {e}") from e
        finally:
            conn.close()
        LOG.debug("Correlation store ready at %s", self._db_path)

    def create_record(self, issue_id: int, room_id: str, root_message_id: str | None = None) -> bool:
        """Insert a record for issue_id.

        Returns False (and changes nothing) if a record already exists,
        including when a concurrent caller inserted it first.
        """
        try:
            self._execute(
                "INSERT INTO issue_events (issue_id, room_id, root_message_id) VALUES (?, ?, ?)",
                (issue_id, room_id, root_message_id),
            )
        except sqlite3.IntegrityError:
            LOG.debug("Record for issue %s already exists", issue_id)
            return False
        LOG.debug("Created record for issue %s in %s", issue_id, room_id)
        return True

    def set_root_message(self, issue_id: int, root_message_id: str) -> bool:
        """Attach the root message to a claimed record.

        The root is written once: returns False if the record is missing or
        already has a root message.
        """
        try:
            result = self._execute(
                "UPDATE issue_events SET root_message_id = ? WHERE issue_id = ? AND root_message_id IS NULL",
                (root_message_id, issue_id),
            )
        except sqlite3.IntegrityError as e:
            raise StoreError(f"root message {root_message_id} already linked to another issue") from e
        return result.rowcount == 1

    def find_by_issue_id(self, issue_id: int) -> CorrelationRecord | None:
        """Return the record for issue_id, if any."""
        result = self._execute(
            f"SELECT {_COLUMNS} FROM issue_events WHERE issue_id = ?",
            (issue_id,),
        )
        return _record_from_row(result.rows[0]) if result.rows else None

    def find_by_root_message_id(self, message_id: str) -> CorrelationRecord | None:
        """Return the record whose root message is exactly message_id."""
        result = self._execute(
            f"SELECT {_COLUMNS} FROM issue_events WHERE root_message_id = ?",
            (message_id,),
        )
        return _record_from_row(result.rows[0]) if result.rows else None

    def set_status_marker(self, issue_id: int, marker_id: str | None) -> bool:
        """Set or clear (marker_id=None) the status marker.

        Returns False if no record exists for issue_id.
        """
        result = self._execute(
            "UPDATE issue_events SET status_marker_id = ? WHERE issue_id = ?",
            (marker_id, issue_id),
        )
        return result.rowcount == 1

    def set_status_marker_if_absent(self, issue_id: int, marker_id: str) -> bool:
        """Record marker_id only if no marker is recorded yet.

        Of several callers racing to mark the same issue exactly one gets
        True; the others must withdraw their marker.
        """
        result = self._execute(
            "UPDATE issue_events SET status_marker_id = ? WHERE issue_id = ? AND status_marker_id IS NULL",
            (marker_id, issue_id),
        )
        return result.rowcount == 1

    def clear_status_marker(self, issue_id: int, marker_id: str) -> bool:
        """Clear the marker only if it is still marker_id.

        Of several callers clearing the same marker exactly one gets True.
        """
        result = self._execute(
            "UPDATE issue_events SET status_marker_id = NULL WHERE issue_id = ? AND status_marker_id = ?",
            (issue_id, marker_id),
        )
        return result.rowcount == 1


class _Result:
    """Rows and rowcount captured before the connection is closed."""

    def __init__(self, rows: list[sqlite3.Row], rowcount: int) -> None:
        self.rows = rows
        self.rowcount = rowcount
