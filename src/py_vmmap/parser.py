"""Process memory parser: the one entry point for address-space queries.

``ProcessMemoryParser`` picks the backend for the host platform, asks it
for a process's regions, and narrows the answer:

    - ``parse_process`` / ``parse_self``: every region.
    - ``find_regions_containing``: regions holding an address.
    - ``find_regions_by_path``: regions backed by a path (exact or substring).
    - ``find_regions_by_permissions``: regions with *at least* the
      requested permissions.

A caller may also install one ``RegionFilter``.  The backend applies it
while building the base list, so it runs before (and composes with) the
query-specific filters above.

Every query re-reads the map; nothing is cached.  The filter is the only
mutable state, and it is not locked: share a parser between threads only
with external synchronisation, or give each thread its own parser.
"""

from collections.abc import Sequence
from typing import TextIO

from py_vmmap.backends import RegionBackend, RegionFilter, select_backend
from py_vmmap.config import ParserConfig
from py_vmmap.logging import Logger, LogLevel
from py_vmmap.permissions import MemoryPermissions
from py_vmmap.region import MemoryRegion
from py_vmmap.report import format_memory_map
from py_vmmap.result import ErrorCode, Result, error_string

Regions = list[MemoryRegion]


class ProcessMemoryParser:
    """Parse and query the memory map of a process."""

    def __init__(
        self,
        *,
        config: ParserConfig | None = None,
        backend: RegionBackend | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Create a parser.

        Args:
            config: Settings; defaults to ``ParserConfig.from_env()``.
            backend: Backend to use; defaults to the host platform's.
            logger: Log shared with the backend; a fresh one if omitted.

        """
        self._config = config if config is not None else ParserConfig.from_env()
        self._logger = logger if logger is not None else Logger()
        self._backend = (
            backend if backend is not None else select_backend(self._config, self._logger)
        )
        self._region_filter: RegionFilter | None = None

    @property
    def config(self) -> ParserConfig:
        """Return the parser settings."""
        return self._config

    @property
    def logger(self) -> Logger:
        """Return the parser's log."""
        return self._logger

    @property
    def backend(self) -> RegionBackend | None:
        """Return the active backend, or None on an unsupported platform."""
        return self._backend

    @property
    def region_filter(self) -> RegionFilter | None:
        """Return the installed region filter, if any."""
        return self._region_filter

    def set_region_filter(self, region_filter: RegionFilter) -> None:
        """Install *region_filter*, replacing any previous one."""
        self._region_filter = region_filter

    def clear_region_filter(self) -> None:
        """Remove the installed region filter."""
        self._region_filter = None

    # -- Parsing --------------------------------------------------------------

    def parse_process(self, pid: int | None = None) -> Result[Regions]:
        """Return every region of *pid* (the calling process by default)."""
        if self._backend is None or not self._backend.is_available():
            self._logger.log(
                LogLevel.WARNING, "No memory map backend for this platform", source="parser"
            )
            return Result.fail(ErrorCode.PLATFORM_NOT_SUPPORTED, "Platform not supported")
        return self._backend.enumerate(pid, region_filter=self._region_filter)

    def parse_self(self) -> Result[Regions]:
        """Return every region of the calling process."""
        return self.parse_process(None)

    # -- Queries --------------------------------------------------------------

    def find_regions_containing(self, address: int, pid: int | None = None) -> Result[Regions]:
        """Return the regions of *pid* that contain *address*.

        An empty list (not an error) when no region matches.
        """
        return self.parse_process(pid).map(
            lambda regions: [r for r in regions if r.contains(address)]
        )

    def find_regions_by_path(
        self,
        pathname: str,
        pid: int | None = None,
        *,
        exact_match: bool = False,
    ) -> Result[Regions]:
        """Return the regions of *pid* whose pathname matches.

        Args:
            pathname: Path to look for.
            pid: Target process.
            exact_match: Compare for equality instead of substring.

        With ``exact_match=False`` an empty *pathname* matches every
        region that has a pathname, and never an anonymous one.
        """

        def matches(region: MemoryRegion) -> bool:
            if exact_match:
                return region.pathname == pathname
            return bool(region.pathname) and pathname in region.pathname

        return self.parse_process(pid).map(lambda regions: [r for r in regions if matches(r)])

    def find_regions_by_permissions(
        self,
        permissions: MemoryPermissions,
        pid: int | None = None,
    ) -> Result[Regions]:
        """Return the regions of *pid* having at least *permissions*.

        Only flags set in *permissions* are checked; a False flag does
        not require the region's flag to be False.
        """
        return self.parse_process(pid).map(
            lambda regions: [r for r in regions if permissions.is_subset_of(r.permissions)]
        )

    # -- Static helpers -------------------------------------------------------

    @staticmethod
    def is_platform_supported() -> bool:
        """Return True if a usable backend exists for the host platform."""
        backend = select_backend()
        return backend is not None and backend.is_available()

    @staticmethod
    def error_string(error: ErrorCode) -> str:
        """Return the short phrase for *error*."""
        return error_string(error)

    @staticmethod
    def print_memory_map(
        regions: Sequence[MemoryRegion],
        limit: int = -1,
        *,
        file: TextIO | None = None,
    ) -> None:
        """Print the region table to *file* (stdout by default)."""
        print(format_memory_map(regions, limit), file=file)  # noqa: T201
