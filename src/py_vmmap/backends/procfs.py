"""Text backend: parse ``/proc/<pid>/maps``.

Linux publishes every process's mappings as a text file, one region per
line::

    00400000-00452000 r-xp 00000000 08:02 173521      /usr/bin/dbus-daemon
    7ffc2a1e3000-7ffc2a204000 rw-p 00000000 00:00 0   [stack]

Five whitespace-separated fields (address range, permissions, file
offset, device, inode) then an optional pathname that runs to the end
of the line and may itself contain spaces.

Two kinds of failure, handled differently:
    - **Line level**: a line that doesn't fit the grammar is skipped.
      The rest of the file still parses; the skip is logged at DEBUG.
    - **File level**: the maps file can't be opened or read at all.
      That fails the whole call with a specific ``ErrorCode``.
"""

import errno
import re
import sys
from pathlib import Path

from py_vmmap.backends.base import RegionFilter, is_self, should_include
from py_vmmap.config import BACKEND_PROCFS, ParserConfig
from py_vmmap.logging import Logger, LogLevel
from py_vmmap.permissions import MemoryPermissions
from py_vmmap.region import MemoryRegion
from py_vmmap.result import ErrorCode, Result

_FIXED_FIELDS = 5

_HEX_RE = re.compile(r"[0-9a-fA-F]+")
_DEC_RE = re.compile(r"[0-9]+")


def _parse_unsigned(text: str, pattern: re.Pattern[str], base: int) -> int | None:
    """Return *text* as an unsigned int, or None if it isn't one."""
    if pattern.fullmatch(text) is None:
        return None
    return int(text, base)


class ProcMapsBackend:
    """Read regions from the procfs ``maps`` file of a process."""

    def __init__(self, *, config: ParserConfig | None = None, logger: Logger | None = None) -> None:
        """Create a procfs backend.

        Args:
            config: Settings (procfs mount point, raw-line retention).
            logger: Where to record opens, skips, and failures.

        """
        self._config = config if config is not None else ParserConfig()
        self._logger = logger if logger is not None else Logger()

    @property
    def name(self) -> str:
        """Return 'procfs'."""
        return BACKEND_PROCFS

    @property
    def proc_root(self) -> Path:
        """Return the directory holding per-process entries."""
        return Path(self._config.proc_root)

    def is_available(self) -> bool:
        """Return True on Linux hosts."""
        return sys.platform.startswith("linux")

    def maps_path(self, pid: int | None) -> Path:
        """Return the maps file path for *pid* (``self`` for the caller)."""
        key = "self" if is_self(pid) else str(pid)
        return self.proc_root / key / "maps"

    def enumerate(
        self,
        pid: int | None,
        *,
        region_filter: RegionFilter | None = None,
    ) -> Result[list[MemoryRegion]]:
        """Parse the maps file of *pid* into regions.

        Returns:
            The surviving regions in file order, or an error result
            when the file cannot be opened or read.

        """
        path = self.maps_path(pid)
        target = None if is_self(pid) else pid
        try:
            maps_file = path.open(encoding="utf-8", errors="surrogateescape")
        except OSError as exc:
            return self._open_failure(exc, path, target)

        regions: list[MemoryRegion] = []
        skipped = 0
        with maps_file:
            try:
                for line in maps_file:
                    region = self.parse_line(line)
                    if region is None:
                        skipped += 1
                        self._log(LogLevel.DEBUG, f"Skipped maps line: {line.rstrip()!r}", target)
                        continue
                    if should_include(region, region_filter):
                        regions.append(region)
            except ProcessLookupError:
                msg = f"Process exited while reading maps: {pid}"
                self._log(LogLevel.ERROR, msg, target)
                return Result.fail(ErrorCode.PROCESS_NOT_FOUND, msg)
            except OSError as exc:
                msg = f"Error reading maps file {path}: {exc.strerror or exc}"
                self._log(LogLevel.ERROR, msg, target)
                return Result.fail(ErrorCode.PARSE_ERROR, msg)

        self._log(
            LogLevel.INFO,
            f"Parsed {len(regions)} regions from {path} ({skipped} lines skipped)",
            target,
        )
        return Result.ok(regions)

    def parse_text(
        self,
        text: str,
        *,
        region_filter: RegionFilter | None = None,
    ) -> list[MemoryRegion]:
        """Parse a complete maps dump held in memory.

        Malformed lines are skipped exactly as when reading from procfs.
        """
        regions: list[MemoryRegion] = []
        for line in text.splitlines():
            region = self.parse_line(line)
            if region is not None and should_include(region, region_filter):
                regions.append(region)
        return regions

    def parse_line(self, line: str) -> MemoryRegion | None:
        """Parse one maps line, or return None if it doesn't fit the grammar.

        The pathname is everything after the fifth field with leading
        whitespace removed; it is empty for anonymous mappings.
        """
        stripped = line.rstrip("\n")
        fields = stripped.split(maxsplit=_FIXED_FIELDS)
        if len(fields) < _FIXED_FIELDS:
            return None
        addr_range, perms, offset_str, device, inode_str = fields[:_FIXED_FIELDS]
        pathname = fields[_FIXED_FIELDS] if len(fields) > _FIXED_FIELDS else ""

        start_str, dash, end_str = addr_range.partition("-")
        if not dash:
            return None

        start = _parse_unsigned(start_str, _HEX_RE, 16)
        end = _parse_unsigned(end_str, _HEX_RE, 16)
        offset = _parse_unsigned(offset_str, _HEX_RE, 16)
        inode = _parse_unsigned(inode_str, _DEC_RE, 10)
        if start is None or end is None or offset is None or inode is None:
            return None

        return MemoryRegion(
            start=start,
            end=end,
            permissions=MemoryPermissions.from_string(perms),
            offset=offset,
            device=device,
            inode=inode,
            pathname=pathname,
            raw_line=stripped if self._config.keep_raw_lines else "",
        )

    # -- Helpers ---------------------------------------------------------------

    def _open_failure(
        self, exc: OSError, path: Path, pid: int | None
    ) -> Result[list[MemoryRegion]]:
        """Map an ``open()`` failure onto a distinct error code.

        A missing maps file under an existing procfs means the process
        is gone; a missing procfs means there is no source at all.
        """
        label = "self" if pid is None else str(pid)
        if isinstance(exc, PermissionError) or exc.errno in {errno.EACCES, errno.EPERM}:
            code = ErrorCode.PERMISSION_DENIED
            msg = f"Permission denied accessing process: {label}"
        elif isinstance(exc, ProcessLookupError):
            code = ErrorCode.PROCESS_NOT_FOUND
            msg = f"Process not found: {label}"
        elif isinstance(exc, FileNotFoundError) and self.proc_root.is_dir():
            code = ErrorCode.PROCESS_NOT_FOUND
            msg = f"Process not found: {label}"
        else:
            code = ErrorCode.FILE_NOT_FOUND
            msg = f"Cannot open maps file: {path}"
        self._log(LogLevel.ERROR, msg, pid)
        return Result.fail(code, msg)

    def _log(self, level: LogLevel, message: str, pid: int | None) -> None:
        """Record an event from this backend."""
        self._logger.log(level, message, source=self.name, pid=pid)
