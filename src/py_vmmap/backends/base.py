"""Backend interfaces: how a platform hands us its memory map.

Each supported OS exposes a process's mappings differently: Linux as
text under ``/proc``, Darwin through a kernel region-query call.  A
backend hides that difference behind one method, ``enumerate``, that
returns the same ``Result[list[MemoryRegion]]`` everywhere.

``RegionFilter`` is the single-method predicate a caller may install on
the parser.  Backends apply it to every candidate region as they build
the list, so rejected regions never reach the query filters.

Why Protocols?
    Structural typing: any object with the right methods is a valid
    backend, and any plain function ``region -> bool`` is a valid
    filter, without inheriting from a base class.
"""

from typing import Protocol

from py_vmmap.region import MemoryRegion
from py_vmmap.result import Result


class RegionFilter(Protocol):
    """Predicate deciding whether a region enters the parse result."""

    def __call__(self, region: MemoryRegion) -> bool:
        """Return True to keep *region*."""
        ...  # pragma: no cover


class RegionBackend(Protocol):
    """Interface every platform backend must satisfy."""

    @property
    def name(self) -> str:
        """Return the backend name (``procfs``, ``mach``)."""
        ...  # pragma: no cover

    def is_available(self) -> bool:
        """Return True if this backend can run on the host platform."""
        ...  # pragma: no cover

    def enumerate(
        self,
        pid: int | None,
        *,
        region_filter: RegionFilter | None = None,
    ) -> Result[list[MemoryRegion]]:
        """Return the regions of process *pid* in address order.

        Args:
            pid: Target process; None or a non-positive value means the
                calling process.
            region_filter: Optional predicate applied to each region.

        """
        ...  # pragma: no cover


def should_include(region: MemoryRegion, region_filter: RegionFilter | None) -> bool:
    """Return True if no filter is set or the filter accepts *region*."""
    return region_filter is None or region_filter(region)


def is_self(pid: int | None) -> bool:
    """Return True if *pid* denotes the calling process."""
    return pid is None or pid <= 0
