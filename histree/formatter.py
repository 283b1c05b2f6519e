"""
Output formatting for history entries.

Supported formats:
- json:    one JSON object per line (newline-delimited, not an array)
- simple:  command text only
- verbose: local timestamp, directory, non-zero exit code and command
"""

import io
import json
from datetime import tzinfo
from enum import Enum
from typing import IO, Iterable, Optional, Union

from .entry import HistoryEntry, to_utc
from .errors import OutputError, UnknownFormatError

VERBOSE_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"


class OutputFormat(str, Enum):
    """How history entries are rendered."""

    JSON = "json"
    SIMPLE = "simple"
    VERBOSE = "verbose"

    @classmethod
    def parse(cls, value: Union[str, "OutputFormat"]) -> "OutputFormat":
        """Resolve a format name, raising UnknownFormatError if unsupported."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError as e:
            raise UnknownFormatError(f"unknown output format: {value}") from e

    @classmethod
    def names(cls):
        return [member.value for member in cls]


def _format_json(entry: HistoryEntry, tz: Optional[tzinfo]) -> str:
    return json.dumps(entry.to_dict(), ensure_ascii=False)


def _format_simple(entry: HistoryEntry, tz: Optional[tzinfo]) -> str:
    return entry.command


def _format_verbose(entry: HistoryEntry, tz: Optional[tzinfo]) -> str:
    command = entry.command
    # Brace-wrapped commands would read like part of the surrounding format
    if command.startswith("{") and command.endswith("}"):
        command = json.dumps(command, ensure_ascii=False)

    exit_status = f" [{entry.exit_code}]" if entry.exit_code != 0 else ""

    # Unsaved entries have no timestamp yet; json emits null for the same case
    time_text = "-"
    if entry.timestamp is not None:
        # astimezone(None) converts to the system local zone
        local_time = to_utc(entry.timestamp).astimezone(tz)
        time_text = local_time.strftime(VERBOSE_TIME_FORMAT)

    return f"{time_text} [{entry.directory}]{exit_status} {command}"


FORMATTERS = {
    OutputFormat.JSON: _format_json,
    OutputFormat.SIMPLE: _format_simple,
    OutputFormat.VERBOSE: _format_verbose,
}


def render_entries(
    entries: Iterable[HistoryEntry],
    output_format: Union[str, OutputFormat],
    tz: Optional[tzinfo] = None,
) -> str:
    """
    Render entries as text, one line per entry.

    Args:
        entries: Entries to render, in display order
        output_format: Format name or OutputFormat member
        tz: Timezone for verbose timestamps; None uses the system local zone

    Returns:
        str: Rendered output, newline-terminated per entry
    """
    formatter = FORMATTERS[OutputFormat.parse(output_format)]
    buffer = io.StringIO()
    for entry in entries:
        buffer.write(formatter(entry, tz))
        buffer.write("\n")
    return buffer.getvalue()


def write_entries(
    entries: Iterable[HistoryEntry],
    out: IO[str],
    output_format: Union[str, OutputFormat],
    tz: Optional[tzinfo] = None,
):
    """Render entries and write them to `out` in a single flushed write."""
    text = render_entries(entries, output_format, tz)
    try:
        out.write(text)
        out.flush()
    except (OSError, ValueError) as e:
        raise OutputError(f"failed to write entries: {e}") from e
