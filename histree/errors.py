"""
Exception types raised by histree.

Every failure in the storage and formatting layers is reported as a subclass
of HistreeError wrapping the underlying cause, so the CLI can map any of them
to a non-zero exit with a single handler.
"""


class HistreeError(Exception):
    """Base exception for histree errors."""

    pass


class DatabaseOpenError(HistreeError):
    """Raised when the history database file cannot be opened."""

    pass


class SchemaError(HistreeError):
    """Raised when pragmas or schema creation fail."""

    pass


class WriteError(HistreeError):
    """Raised when inserting or rewriting entries fails."""

    pass


class QueryError(HistreeError):
    """Raised when reading entries fails."""

    pass


class OutputError(HistreeError):
    """Raised when formatted output cannot be written or flushed."""

    pass


class UnknownFormatError(HistreeError, ValueError):
    """Raised when an unsupported output format is requested."""

    pass
