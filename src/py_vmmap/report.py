"""Human-readable reports over a list of regions.

Two views:
    - ``format_memory_map``: a ``pmap``-style table, one row per region.
    - ``summarize``: totals by kind (executable, writable, anonymous)
      plus heap and stack counts.

Both are pure functions of the region list; printing is the caller's
business.
"""

from collections.abc import Sequence
from dataclasses import dataclass

from py_vmmap.region import MemoryRegion

_RULE_WIDTH = 80


def format_memory_map(regions: Sequence[MemoryRegion], limit: int = -1) -> str:
    """Render *regions* as a table.

    Args:
        regions: Regions to show, in the order given.
        limit: Maximum number of rows; zero or negative shows all.

    Returns:
        The table, ending with a ``Total regions:`` line that counts
        every region, including rows cut by *limit*.

    """
    header = (
        f"{'Address Range':<20}{'Perms':<8}{'Offset':<12}{'Device':<12}"
        f"{'Inode':<8}{'Size':<12}Pathname"
    )
    lines = [header, "-" * _RULE_WIDTH]
    shown = regions if limit <= 0 else regions[:limit]
    for region in shown:
        name = region.pathname or "[anonymous]"
        lines.append(
            f"0x{region.start:08x}-0x{region.end:08x} {region.permissions!s:>4} "
            f"0x{region.offset:08x} {region.device:>8} {region.inode:>6} "
            f"{region.size:>8} {name}"
        )
    lines.append("")
    lines.append(f"Total regions: {len(regions)}")
    return "\n".join(lines)


@dataclass(frozen=True)
class MemorySummary:
    """Aggregate sizes and counts for one address space."""

    region_count: int
    total_bytes: int
    executable_bytes: int
    writable_bytes: int
    anonymous_bytes: int
    heap_regions: int
    stack_regions: int

    def __str__(self) -> str:
        """Format as the multi-line summary the CLI prints."""
        mib = 1024 * 1024
        return (
            f"Total regions:     {self.region_count}\n"
            f"Total memory:      {self.total_bytes // mib} MB\n"
            f"Executable memory: {self.executable_bytes // mib} MB\n"
            f"Writable memory:   {self.writable_bytes // mib} MB\n"
            f"Anonymous memory:  {self.anonymous_bytes // mib} MB\n"
            f"Heap regions:      {self.heap_regions}\n"
            f"Stack regions:     {self.stack_regions}"
        )


def summarize(regions: Sequence[MemoryRegion]) -> MemorySummary:
    """Total up sizes by permission and kind."""
    return MemorySummary(
        region_count=len(regions),
        total_bytes=sum(r.size for r in regions),
        executable_bytes=sum(r.size for r in regions if r.permissions.executable),
        writable_bytes=sum(r.size for r in regions if r.permissions.writable),
        anonymous_bytes=sum(r.size for r in regions if r.is_anonymous()),
        heap_regions=sum(1 for r in regions if r.is_heap()),
        stack_regions=sum(1 for r in regions if r.is_stack()),
    )
