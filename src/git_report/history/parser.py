"""Parse ``git log --raw --numstat`` output into Commit and FileChange records.

The log is expected in the layout produced by :data:`~.git_log.PRETTY_FORMAT`:
one header line per commit whose fields are separated by NUL bytes, followed
by that commit's raw lines (``:<modes> <shas> <status>\\t<path>...``) and then
its numstat lines (``<added>\\t<deleted>\\t<path>``) until the next header.

Raw lines only contribute the status letter git reports for each path; the
counts and the stored path come from the numstat lines. When no status is
known for a path, the change type is inferred from the counts.

Paths git had to C-quote (``"we\\"ird.txt"``) are decoded before storing.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from ..logging_config import get_logger
from ..models import ChangeType, Commit, FileChange

logger = get_logger(__name__)

FIELD_DELIMITER = "\x00"
RENAME_ARROW = " => "
RAW_PREFIX = ":"

# git %ai, e.g. "2024-03-01 14:02:11 +0100"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S %z"

_HEADER_FIELDS = 5

# Compact rename form: "src/{old => new}/file.py"
_BRACE_RENAME_RE = re.compile(r"^(?P<head>.*)\{(?P<old>.*?) => (?P<new>.*?)\}(?P<tail>.*)$")

# git status letters; copies create a new path, type changes keep it
_STATUS_TYPES = {
    "A": ChangeType.ADDED,
    "C": ChangeType.ADDED,
    "M": ChangeType.MODIFIED,
    "T": ChangeType.MODIFIED,
    "D": ChangeType.DELETED,
    "R": ChangeType.RENAMED,
}

# Single-character escapes used by git's C-style path quoting
_QUOTE_ESCAPES = {
    "a": 0x07,
    "b": 0x08,
    "t": 0x09,
    "n": 0x0A,
    "v": 0x0B,
    "f": 0x0C,
    "r": 0x0D,
    '"': 0x22,
    "\\": 0x5C,
}

LogRecord = Union[Commit, FileChange]


@dataclass
class ParseStats:
    commits: int = 0
    file_changes: int = 0
    skipped_headers: int = 0
    skipped_binary: int = 0
    signaled_types: int = 0


class LogParser:
    """Streaming parser for one repository's log output.

    Each call to :meth:`parse` starts from scratch, so the same text can be
    parsed again. ``stats`` reflects the most recent call.
    """

    def __init__(self, repository_id: int):
        self.repository_id = repository_id
        self.stats = ParseStats()

    def parse(self, source: Union[str, Iterable[str]]) -> Iterator[LogRecord]:
        """Yield each Commit followed by its FileChanges.

        Args:
            source: Full log text or an iterable of lines

        Yields:
            Commit and FileChange records in log order
        """
        self.stats = ParseStats()
        lines = source.split("\n") if isinstance(source, str) else source
        current: Optional[Commit] = None
        # destination path -> status reported by the current commit's raw lines
        statuses: dict[str, ChangeType] = {}

        for raw_line in lines:
            line = raw_line.rstrip("\r\n")

            if FIELD_DELIMITER in line:
                current = self._parse_header(line)
                statuses = {}
                if current is not None:
                    self.stats.commits += 1
                    yield current
                continue

            if current is None or not line.strip():
                continue

            if line.startswith(RAW_PREFIX):
                parsed = parse_raw_line(line)
                if parsed is not None:
                    path, change_type = parsed
                    statuses[path] = change_type
                continue

            change = self._parse_stat_line(line, current.hash, statuses)
            if change is not None:
                self.stats.file_changes += 1
                yield change

    def _parse_header(self, line: str) -> Optional[Commit]:
        fields = line.split(FIELD_DELIMITER)
        if len(fields) < _HEADER_FIELDS:
            logger.debug("Skipping malformed header with %d fields: %r", len(fields), line)
            self.stats.skipped_headers += 1
            return None

        commit_hash, author_name, author_email, raw_date, subject = fields[:_HEADER_FIELDS]
        timestamp = parse_timestamp(raw_date)
        if timestamp is None:
            logger.debug("Skipping commit %s: unparsable date %r", commit_hash, raw_date)
            self.stats.skipped_headers += 1
            return None

        return Commit(
            hash=commit_hash.strip(),
            repository_id=self.repository_id,
            author_name=author_name,
            author_email=author_email,
            timestamp=timestamp,
            message=subject,
        )

    def _parse_stat_line(
        self, line: str, commit_hash: str, statuses: dict[str, ChangeType]
    ) -> Optional[FileChange]:
        parts = line.split("\t", 2)
        if len(parts) != 3:
            logger.debug("Ignoring non-numstat line in %s: %r", commit_hash, line)
            return None

        raw_added, raw_deleted, path_field = parts
        try:
            additions = int(raw_added)
            deletions = int(raw_deleted)
        except ValueError:
            # binary files report "-" for both counts
            self.stats.skipped_binary += 1
            return None
        if additions < 0 or deletions < 0:
            return None

        filepath = rename_destination(path_field)
        change_type = statuses.get(filepath)
        if change_type is None:
            change_type = infer_change_type(path_field, additions, deletions)
        else:
            self.stats.signaled_types += 1

        return FileChange(
            commit_hash=commit_hash,
            filepath=filepath,
            additions=additions,
            deletions=deletions,
            change_type=change_type,
        )


def parse_log(source: Union[str, Iterable[str]], repository_id: int) -> Iterator[LogRecord]:
    """Convenience wrapper around :class:`LogParser`."""
    return LogParser(repository_id).parse(source)


def parse_timestamp(value: str) -> Optional[datetime]:
    try:
        return datetime.strptime(value.strip(), TIMESTAMP_FORMAT)
    except ValueError:
        return None


def parse_raw_line(line: str) -> Optional[tuple[str, ChangeType]]:
    """Return (destination path, change type) for one ``--raw`` line.

    Returns None for lines that are not raw lines or carry a status letter
    without a ChangeType counterpart (unmerged, unknown).
    """
    meta, _, paths = line.partition("\t")
    fields = meta.split()
    if not line.startswith(RAW_PREFIX) or not paths or len(fields) < 5:
        return None

    change_type = _STATUS_TYPES.get(fields[-1][:1])
    if change_type is None:
        return None
    # renames and copies list source then destination
    return unquote_path(paths.split("\t")[-1]), change_type


def infer_change_type(path_field: str, additions: int, deletions: int) -> ChangeType:
    """Derive the change type from a numstat path field and its counts."""
    if RENAME_ARROW in path_field:
        return ChangeType.RENAMED
    if additions > 0 and deletions == 0:
        return ChangeType.ADDED
    if additions == 0 and deletions > 0:
        return ChangeType.DELETED
    return ChangeType.MODIFIED


def rename_destination(path_field: str) -> str:
    """Return the post-rename path of a numstat path field.

    Handles both ``old => new`` and ``dir/{old => new}/file``. Fields
    without an arrow are returned unquoted but otherwise unchanged.
    """
    if RENAME_ARROW not in path_field or _is_quoted(path_field):
        return unquote_path(path_field)

    m = _BRACE_RENAME_RE.match(path_field)
    if m:
        path = f"{m.group('head')}{m.group('new')}{m.group('tail')}"
        # "{old => }" leaves an empty segment behind
        while "//" in path:
            path = path.replace("//", "/")
        return path.lstrip("/")

    # git quotes each side separately: "old" => "new"
    return unquote_path(path_field.split(RENAME_ARROW, 1)[1])


def unquote_path(path: str) -> str:
    """Decode a path git wrapped in double quotes with C-style escapes.

    Octal escapes are raw bytes and are decoded as UTF-8 together. Paths
    that are not quoted are returned unchanged.
    """
    if not _is_quoted(path):
        return path

    body = path[1:-1]
    out = bytearray()
    i, n = 0, len(body)
    while i < n:
        c = body[i]
        if c != "\\" or i + 1 >= n:
            out.extend(c.encode("utf-8"))
            i += 1
            continue

        nxt = body[i + 1]
        octal = body[i + 1 : i + 4]
        if len(octal) == 3 and all(ch in "01234567" for ch in octal):
            out.append(int(octal, 8) & 0xFF)
            i += 4
        elif nxt in _QUOTE_ESCAPES:
            out.append(_QUOTE_ESCAPES[nxt])
            i += 2
        else:
            out.extend(("\\" + nxt).encode("utf-8"))
            i += 2

    return out.decode("utf-8", errors="replace")


def _is_quoted(path: str) -> bool:
    # a quoted old/new pair ('"a" => "b"') is not one quoted path
    return (
        len(path) >= 2
        and path.startswith('"')
        and path.endswith('"')
        and f'"{RENAME_ARROW}"' not in path
    )
