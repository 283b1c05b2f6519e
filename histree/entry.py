"""
History entry data structure and timestamp conversion helpers.

Timestamps are always stored in UTC as fixed-width text
("YYYY-MM-DD HH:MM:SS.ffffff") so that string ordering in SQLite matches
chronological ordering.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Encode a datetime for storage."""
    return to_utc(value).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: Any) -> datetime:
    """Decode a stored timestamp into an aware UTC datetime.

    Accepts the fixed-width storage format as well as SQLite's
    CURRENT_TIMESTAMP output ("YYYY-MM-DD HH:MM:SS") and ISO 8601 strings
    carrying an offset or a trailing "Z".
    """
    if isinstance(value, datetime):
        return to_utc(value)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(text))


@dataclass
class HistoryEntry:
    """One recorded shell command execution."""

    command: str
    directory: str
    exit_code: int = 0
    hostname: str = ""
    process_id: int = 0
    timestamp: Optional[datetime] = None
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row) -> "HistoryEntry":
        """Build an entry from a sqlite3.Row of the history table."""
        return cls(
            id=row["id"],
            command=row["command"],
            directory=row["directory"],
            timestamp=parse_timestamp(row["timestamp"]),
            exit_code=row["exit_code"],
            hostname=row["hostname"],
            process_id=row["process_id"],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the JSON output shape (timestamp in RFC 3339 UTC)."""
        timestamp = None
        if self.timestamp is not None:
            timestamp = to_utc(self.timestamp).isoformat().replace("+00:00", "Z")
        return {
            "command": self.command,
            "directory": self.directory,
            "timestamp": timestamp,
            "exit_code": self.exit_code,
            "hostname": self.hostname,
            "process_id": self.process_id,
        }
