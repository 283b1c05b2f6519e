"""
SQLite storage for histree.

Holds the single `history` table plus two secondary indexes, and provides the
three repository operations: insert one entry, fetch the most recent entries
under a directory subtree, and rewrite directory prefixes after a move.

Each CLI invocation opens the database, performs one operation and closes it.
SQLite's own file locking (in WAL mode) is the only concurrency control.
"""

import logging
import sqlite3
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .entry import HistoryEntry, format_timestamp, utc_now
from .errors import DatabaseOpenError, QueryError, SchemaError, WriteError

logger = logging.getLogger(__name__)

PRAGMAS = (
    "PRAGMA journal_mode = WAL",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA temp_store = MEMORY",
    # Negative value is a KiB budget rather than a page count
    "PRAGMA cache_size = -2000",
)

CREATE_TABLE = """
    CREATE TABLE IF NOT EXISTS history (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        command TEXT NOT NULL,
        directory TEXT NOT NULL,
        timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
        exit_code INTEGER NOT NULL,
        hostname TEXT NOT NULL,
        process_id INTEGER NOT NULL
    )
"""

CREATE_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_history_directory ON history(directory)",
    "CREATE INDEX IF NOT EXISTS idx_history_timestamp_directory "
    "ON history(timestamp, directory)",
)


def subtree_filter(path: str) -> Tuple[str, list]:
    """
    Build a WHERE clause matching `path` and everything nested beneath it.

    A plain LIKE prefix would also match siblings sharing a prefix
    (/home/user vs /home/user2) and is case-insensitive for ASCII, so the
    comparison is done on an exact substring of `path + "/"` instead.

    Returns:
        tuple: (sql fragment, parameters)
    """
    prefix = path + "/"
    clause = "(directory = ? OR substr(directory, 1, ?) = ?)"
    return clause, [path, len(prefix), prefix]


class HistoryDB:
    """File-backed history store."""

    def __init__(self, db_path: Union[str, Path]):
        """Open (creating if needed) the database and ensure the schema exists."""
        self.db_path = db_path if str(db_path) == ":memory:" else Path(db_path)
        self.conn: Optional[sqlite3.Connection] = None

        try:
            if isinstance(self.db_path, Path):
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
            # Autocommit mode; transactions are issued explicitly below
            self.conn = sqlite3.connect(str(self.db_path), isolation_level=None)
        except (OSError, sqlite3.Error) as e:
            raise DatabaseOpenError(
                f"failed to open database {self.db_path}: {e}"
            ) from e

        self.conn.row_factory = sqlite3.Row

        try:
            self._set_pragmas()
            self._create_schema()
        except SchemaError:
            self.close()
            raise

        logger.debug("Opened history database at %s", self.db_path)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close the underlying connection."""
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def _set_pragmas(self):
        """Apply journaling, sync and cache settings."""
        try:
            for pragma in PRAGMAS:
                self.conn.execute(pragma)
        except sqlite3.Error as e:
            raise SchemaError(f"failed to set pragmas: {e}") from e

    def _create_schema(self):
        """Create the history table and its indexes in one transaction."""
        try:
            self.conn.execute("BEGIN")
        except sqlite3.Error as e:
            raise SchemaError(f"failed to begin transaction: {e}") from e

        try:
            self.conn.execute(CREATE_TABLE)
            for statement in CREATE_INDEXES:
                self.conn.execute(statement)
            self.conn.execute("COMMIT")
        except sqlite3.Error as e:
            self._rollback()
            raise SchemaError(f"failed to create schema: {e}") from e

    def _rollback(self):
        if self.conn is not None and self.conn.in_transaction:
            self.conn.execute("ROLLBACK")

    def _require_connection(self, error_cls):
        if self.conn is None:
            raise error_cls("database is closed")
        return self.conn

    def add_entry(self, entry: HistoryEntry) -> int:
        """
        Insert one history entry.

        No validation is performed on the field contents. A missing
        timestamp is filled in with the current UTC time.

        Args:
            entry: Entry to store; its `id` is set from the new row

        Returns:
            int: id assigned to the new row
        """
        conn = self._require_connection(WriteError)
        if entry.timestamp is None:
            entry.timestamp = utc_now()

        try:
            cursor = conn.execute(
                """
                INSERT INTO history
                    (command, directory, timestamp, exit_code, hostname, process_id)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    entry.command,
                    entry.directory,
                    format_timestamp(entry.timestamp),
                    entry.exit_code,
                    entry.hostname,
                    entry.process_id,
                ),
            )
        except (sqlite3.Error, UnicodeError) as e:
            raise WriteError(f"failed to insert entry: {e}") from e

        entry.id = cursor.lastrowid
        logger.debug("Recorded entry %s in %s", entry.id, entry.directory)
        return entry.id

    def get_entries(self, limit: int, current_dir: str = "") -> List[HistoryEntry]:
        """
        Get the last `limit` entries run in or under `current_dir`.

        The most recent entries are selected and then returned oldest first.
        An empty `current_dir` matches every entry.

        Args:
            limit: Maximum number of entries to return
            current_dir: Directory whose subtree is searched

        Returns:
            list: HistoryEntry objects in ascending timestamp order
        """
        conn = self._require_connection(QueryError)
        if limit <= 0:
            return []

        where = ""
        params: list = []
        if current_dir:
            clause, params = subtree_filter(current_dir)
            where = f"WHERE {clause}"

        query = f"""
            WITH recent_entries AS (
                SELECT id, command, directory, timestamp, exit_code,
                       hostname, process_id
                FROM history
                {where}
                ORDER BY timestamp DESC, id DESC
                LIMIT ?
            )
            SELECT * FROM recent_entries ORDER BY timestamp ASC, id ASC
        """

        try:
            conn.execute("BEGIN")
            conn.execute("PRAGMA page_size = 4096")
            rows = conn.execute(query, params + [limit]).fetchall()
            conn.execute("COMMIT")
        except (sqlite3.Error, UnicodeError) as e:
            self._rollback()
            raise QueryError(f"failed to query entries: {e}") from e

        try:
            entries = [HistoryEntry.from_row(row) for row in rows]
        except ValueError as e:
            raise QueryError(f"failed to decode entry: {e}") from e

        logger.debug(
            "Fetched %d entries for %r (limit %d)", len(entries), current_dir, limit
        )
        return entries

    def update_paths(self, old_path: str, new_path: str) -> int:
        """
        Rewrite directories after `old_path` was moved to `new_path`.

        Rows whose directory is `old_path` or lies beneath it get the
        `old_path` prefix replaced, so old/sub becomes new/sub. Either every
        matching row is rewritten or none is.

        Returns:
            int: Number of rows updated
        """
        conn = self._require_connection(WriteError)
        clause, params = subtree_filter(old_path)

        try:
            conn.execute("BEGIN IMMEDIATE")
            cursor = conn.execute(
                f"UPDATE history SET directory = ? || substr(directory, ?) WHERE {clause}",
                [new_path, len(old_path) + 1] + params,
            )
            count = cursor.rowcount
            conn.execute("COMMIT")
        except (sqlite3.Error, UnicodeError) as e:
            self._rollback()
            raise WriteError(f"failed to update paths: {e}") from e

        logger.debug("Rewrote %d entries: %s -> %s", count, old_path, new_path)
        return count


def open_db(db_path: Union[str, Path]) -> HistoryDB:
    """Open the history database at `db_path`."""
    return HistoryDB(db_path)
