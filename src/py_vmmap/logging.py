"""Parser logging: a structured, per-instance audit trail.

Every parser owns (or is handed) one ``Logger``.  Backends record what
they did while reading a process's address space: which maps source
they opened, how many lines they skipped, and why an operation failed.
Nothing here is global; two parsers never share a log unless a caller
passes the same instance to both.

- **LogLevel**: severity levels ordered for filtering (DEBUG < ERROR).
- **LogEntry**: a single structured record (level, message, source, pid).
- **Logger**: a bounded log with filtering and clearing; once full, the
  oldest entries are dropped first.

Design choices:
    - **IntEnum for levels** so they compare naturally with ``<``.
    - **Frozen dataclass for entries**: log records should be immutable.
    - **Filter returns a list, not a generator**: the log is typically
      small and callers usually want to iterate multiple times.
"""

from collections import deque
from dataclasses import dataclass
from enum import IntEnum

DEFAULT_CAPACITY = 1000


class LogLevel(IntEnum):
    """Severity levels for log entries."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """A single structured log record.

    Attributes:
        level: The severity of this event.
        message: A human-readable description of what happened.
        source: The component that generated the event (e.g. "procfs").
        pid: The process the event concerns (None = the calling process).

    """

    level: LogLevel
    message: str
    source: str
    pid: int | None = None

    def __str__(self) -> str:
        """Format as ``[LEVEL] source(pid): message``."""
        target = "self" if self.pid is None else str(self.pid)
        return f"[{self.level.name}] {self.source}({target}): {self.message}"


class Logger:
    """Bounded log buffer with filtering.

    The logger collects ``LogEntry`` records and provides simple
    querying by level and/or source.  An optional ``min_level`` drops
    chatty entries at record time, so a long-lived parser that reads
    many maps files does not accumulate one DEBUG line per skipped row.
    ``capacity`` caps how many entries are kept at once.
    """

    def __init__(
        self,
        *,
        min_level: LogLevel = LogLevel.DEBUG,
        capacity: int = DEFAULT_CAPACITY,
    ) -> None:
        """Create an empty logger.

        Args:
            min_level: Entries below this level are discarded.
            capacity: Maximum number of entries retained.

        Raises:
            ValueError: If *capacity* is not positive.

        """
        if capacity <= 0:
            msg = f"Logger capacity must be positive: {capacity}"
            raise ValueError(msg)
        self._entries: deque[LogEntry] = deque(maxlen=capacity)
        self._min_level = min_level

    @property
    def entries(self) -> list[LogEntry]:
        """Return all log entries in chronological order."""
        return list(self._entries)

    @property
    def capacity(self) -> int:
        """Return the maximum number of entries retained."""
        return self._entries.maxlen or 0

    @property
    def min_level(self) -> LogLevel:
        """Return the lowest level this logger records."""
        return self._min_level

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        pid: int | None = None,
    ) -> None:
        """Append a new entry to the log.

        Args:
            level: Severity of the event.
            message: Human-readable event description.
            source: Component that generated the event.
            pid: Process the event concerns.

        """
        if level < self._min_level:
            return
        self._entries.append(LogEntry(level=level, message=message, source=source, pid=pid))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
    ) -> list[LogEntry]:
        """Return entries matching the given criteria.

        Args:
            min_level: If set, only return entries at or above this level.
            source: If set, only return entries from this source.

        Returns:
            A filtered list of log entries.

        """
        result = list(self._entries)
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if source is not None:
            result = [e for e in result if e.source == source]
        return result

    def clear(self) -> None:
        """Remove all log entries."""
        self._entries.clear()

    def __len__(self) -> int:
        """Return the number of recorded entries."""
        return len(self._entries)
