"""
histree records shell command history together with the directory it ran in,
and retrieves it scoped to a directory subtree.

Example Usage:
    from histree import HistoryEntry, open_db, write_entries

    with open_db("~/.local/share/histree/histree.db") as db:
        db.add_entry(HistoryEntry(command="make", directory="/src/app"))
        entries = db.get_entries(20, "/src/app")
"""

__version__ = "0.3.4"

from .database import HistoryDB, open_db  # noqa: E402
from .entry import HistoryEntry  # noqa: E402
from .errors import (  # noqa: E402
    DatabaseOpenError,
    HistreeError,
    OutputError,
    QueryError,
    SchemaError,
    UnknownFormatError,
    WriteError,
)
from .formatter import OutputFormat, render_entries, write_entries  # noqa: E402

__all__ = [
    "HistoryDB",
    "HistoryEntry",
    "OutputFormat",
    "open_db",
    "render_entries",
    "write_entries",
    "HistreeError",
    "DatabaseOpenError",
    "SchemaError",
    "WriteError",
    "QueryError",
    "OutputError",
    "UnknownFormatError",
]
