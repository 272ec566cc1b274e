"""Memory regions: one contiguous slice of a process's address space.

A region is what one line of ``/proc/<pid>/maps`` describes: an address
range ``[start, end)`` with uniform permissions, plus where the bytes
come from (a file at some offset, identified by device and inode) or a
marker saying they come from nowhere in particular.

Pathname conventions:
    - ``""``: anonymous memory (no backing file).
    - ``[stack]``, ``[heap]``, ``[vdso]``: kernel pseudo-paths naming a
      special-purpose region rather than a real file.

Regions are frozen.  Backends build fresh ones on every parse and hand
them to the caller; nothing keeps a reference back to the process.
"""

from dataclasses import dataclass, field

from py_vmmap.permissions import MemoryPermissions

ANON_PATH = "[anon]"
STACK_PATH = "[stack]"
HEAP_PATH = "[heap]"
VDSO_PATH = "[vdso]"

NO_DEVICE = "00:00"


@dataclass(frozen=True)
class MemoryRegion:
    """Describe one mapped address range and its provenance.

    ``start <= end`` is the backend's responsibility; the region stores
    whatever it is given.
    """

    start: int
    """First address in the range."""

    end: int
    """One past the last address in the range (exclusive)."""

    permissions: MemoryPermissions = field(default_factory=MemoryPermissions)
    """Read/write/execute/private flags."""

    offset: int = 0
    """Byte offset into the backing file."""

    device: str = NO_DEVICE
    """Backing device as ``major:minor``; ``00:00`` when unavailable."""

    inode: int = 0
    """Backing file inode; 0 when unavailable."""

    pathname: str = ""
    """Backing path, pseudo-path, or empty for anonymous memory."""

    raw_line: str = field(default="", compare=False, repr=False)
    """Source line this region was parsed from, kept for diagnostics."""

    @property
    def size(self) -> int:
        """Return the length of the range in bytes."""
        return self.end - self.start

    def contains(self, address: int) -> bool:
        """Return True if *address* lies in ``[start, end)``."""
        return self.start <= address < self.end

    def offset_of(self, address: int) -> int | None:
        """Return *address* relative to ``start``, or None if outside."""
        if self.contains(address):
            return address - self.start
        return None

    def is_anonymous(self) -> bool:
        """Return True for memory with no backing file."""
        return not self.pathname or self.pathname == ANON_PATH

    def is_stack(self) -> bool:
        """Return True for the ``[stack]`` pseudo-mapping."""
        return self.pathname == STACK_PATH

    def is_heap(self) -> bool:
        """Return True for the ``[heap]`` pseudo-mapping."""
        return self.pathname == HEAP_PATH

    def is_vdso(self) -> bool:
        """Return True for the ``[vdso]`` pseudo-mapping."""
        return self.pathname == VDSO_PATH

    def to_string(self) -> str:
        """Return a one-line human-readable description.

        This is a display aid, not the maps grammar: addresses carry a
        ``0x`` prefix and anonymous regions print ``[anonymous]``.
        """
        name = self.pathname or "[anonymous]"
        return (
            f"0x{self.start:x}-0x{self.end:x} {self.permissions} "
            f"0x{self.offset:08x} {self.device} {self.inode} {name}"
        )

    def __str__(self) -> str:
        """Return the one-line description."""
        return self.to_string()
