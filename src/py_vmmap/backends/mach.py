"""Region-enumeration backend: walk a Mach task's address space.

Darwin has no ``/proc``.  Instead the kernel answers one question at a
time: "what is the first region at or after address X?"
(``mach_vm_region``).  We start at address 0, record the answer, move X
past the end of that region, and ask again until the kernel says there
is nothing left.

Each answer is ``(address, size, protection, shared)``:
    - ``protection`` carries ``VM_PROT_READ|WRITE|EXECUTE`` bits.
    - ``shared`` is the inverse of our ``private_mapping`` flag.

Information loss:
    The kernel call has no notion of a backing path, device, or inode.
    Regions from this backend always have ``pathname=""``,
    ``device="00:00"``, ``inode=0`` and ``offset=0``.  Consumers must not
    read "anonymous" into an empty pathname here; it only means the
    platform didn't say.

Looking at another process needs a task port from ``task_for_pid``,
which the OS grants only to suitably entitled callers.  A refusal maps
to ``PERMISSION_DENIED``; a host without the Mach calls at all maps to
``PLATFORM_NOT_SUPPORTED``.  A task port obtained this way is released
once the walk is done.
"""

import ctypes
import ctypes.util
import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from py_vmmap.backends.base import RegionFilter, is_self, should_include
from py_vmmap.config import BACKEND_MACH, ParserConfig
from py_vmmap.logging import Logger, LogLevel
from py_vmmap.permissions import MemoryPermissions
from py_vmmap.region import NO_DEVICE, MemoryRegion
from py_vmmap.result import ErrorCode, Result

KERN_SUCCESS = 0

VM_PROT_READ = 0x1
VM_PROT_WRITE = 0x2
VM_PROT_EXECUTE = 0x4

VM_REGION_BASIC_INFO_64 = 9


class MachError(Exception):
    """Raise when the Mach interface is missing from this host."""


class TaskAccessError(MachError):
    """Raise when ``task_for_pid`` refuses access to a process."""


@dataclass(frozen=True)
class RegionInfo:
    """One answer from the kernel region query."""

    address: int
    size: int
    protection: int
    shared: bool


class RegionSource(Protocol):
    """Something that answers "first region at or after *address*"."""

    def query(self, address: int) -> RegionInfo | None:
        """Return the next region, or None when none remain."""
        ...  # pragma: no cover

    def close(self) -> None:
        """Release whatever the source holds (a task port, say)."""
        ...  # pragma: no cover


TaskOpener = Callable[[int | None], RegionSource]


class _VmRegionBasicInfo64(ctypes.Structure):
    """``vm_region_basic_info_data_64_t`` (packed to 4 bytes)."""

    _pack_ = 4
    _fields_ = [  # noqa: RUF012
        ("protection", ctypes.c_int),
        ("max_protection", ctypes.c_int),
        ("inheritance", ctypes.c_uint),
        ("shared", ctypes.c_uint),
        ("reserved", ctypes.c_uint),
        ("offset", ctypes.c_ulonglong),
        ("behavior", ctypes.c_int),
        ("user_wired_count", ctypes.c_ushort),
    ]


_INFO_COUNT_64 = ctypes.sizeof(_VmRegionBasicInfo64) // ctypes.sizeof(ctypes.c_int)


class _MachTaskSource:
    """``RegionSource`` backed by ``mach_vm_region`` on a task port."""

    def __init__(self, libc: ctypes.CDLL, task: int, *, self_task: int, owned: bool) -> None:
        self._libc = libc
        self._task = task
        self._self_task = self_task
        self._owned = owned
        self._region = libc.mach_vm_region
        self._region.restype = ctypes.c_int
        self._region.argtypes = [
            ctypes.c_uint,
            ctypes.POINTER(ctypes.c_uint64),
            ctypes.POINTER(ctypes.c_uint64),
            ctypes.c_int,
            ctypes.POINTER(_VmRegionBasicInfo64),
            ctypes.POINTER(ctypes.c_uint),
            ctypes.POINTER(ctypes.c_uint),
        ]

    def query(self, address: int) -> RegionInfo | None:
        addr = ctypes.c_uint64(address)
        size = ctypes.c_uint64(0)
        info = _VmRegionBasicInfo64()
        count = ctypes.c_uint(_INFO_COUNT_64)
        object_name = ctypes.c_uint(0)
        kr = self._region(
            self._task,
            ctypes.byref(addr),
            ctypes.byref(size),
            VM_REGION_BASIC_INFO_64,
            ctypes.byref(info),
            ctypes.byref(count),
            ctypes.byref(object_name),
        )
        if kr != KERN_SUCCESS:
            return None
        return RegionInfo(
            address=addr.value,
            size=size.value,
            protection=info.protection,
            shared=bool(info.shared),
        )

    def close(self) -> None:
        """Drop the send right on a task port from ``task_for_pid``."""
        if not self._owned:
            return
        self._owned = False
        dealloc = self._libc.mach_port_deallocate
        dealloc.restype = ctypes.c_int
        dealloc.argtypes = [ctypes.c_uint, ctypes.c_uint]
        dealloc(self._self_task, self._task)


def _load_libc() -> ctypes.CDLL:
    """Load libSystem, which exports the Mach VM calls."""
    path = ctypes.util.find_library("System")
    if path is None:
        msg = "libSystem not found"
        raise MachError(msg)
    return ctypes.CDLL(path, use_errno=True)


def open_task(pid: int | None) -> RegionSource:
    """Return a region source for *pid* (the calling task when None/<=0).

    Raises:
        MachError: If the host C library lacks the Mach calls.
        TaskAccessError: If ``task_for_pid`` refuses the request.

    """
    libc = _load_libc()
    try:
        self_task = ctypes.c_uint.in_dll(libc, "mach_task_self_").value
    except ValueError as exc:
        raise MachError(str(exc)) from exc
    if is_self(pid):
        return _MachTaskSource(libc, self_task, self_task=self_task, owned=False)

    task = ctypes.c_uint(0)
    libc.task_for_pid.restype = ctypes.c_int
    libc.task_for_pid.argtypes = [ctypes.c_uint, ctypes.c_int, ctypes.POINTER(ctypes.c_uint)]
    kr = libc.task_for_pid(self_task, pid, ctypes.byref(task))
    if kr != KERN_SUCCESS:
        msg = f"task_for_pid returned {kr}"
        raise TaskAccessError(msg)
    return _MachTaskSource(libc, task.value, self_task=self_task, owned=True)


class MachVmBackend:
    """Enumerate regions through the Mach region-query interface."""

    def __init__(
        self,
        *,
        config: ParserConfig | None = None,
        logger: Logger | None = None,
        task_opener: TaskOpener | None = None,
    ) -> None:
        """Create a Mach backend.

        Args:
            config: Parser settings (kept for parity with other backends).
            logger: Where to record walks and failures.
            task_opener: Returns a region source for a pid; defaults to
                the real ``task_for_pid``/``mach_vm_region`` pair.

        """
        self._config = config if config is not None else ParserConfig()
        self._logger = logger if logger is not None else Logger()
        self._task_opener = task_opener if task_opener is not None else open_task

    @property
    def name(self) -> str:
        """Return 'mach'."""
        return BACKEND_MACH

    def is_available(self) -> bool:
        """Return True on Darwin hosts."""
        return sys.platform == "darwin"

    def enumerate(
        self,
        pid: int | None,
        *,
        region_filter: RegionFilter | None = None,
    ) -> Result[list[MemoryRegion]]:
        """Walk the address space of *pid* from address 0 upwards."""
        target = None if is_self(pid) else pid
        label = "self" if target is None else str(target)
        try:
            source = self._task_opener(target)
        except TaskAccessError as exc:
            msg = f"Cannot get task for process: {label}"
            self._logger.log(LogLevel.ERROR, f"{msg} ({exc})", source=self.name, pid=target)
            return Result.fail(ErrorCode.PERMISSION_DENIED, msg)
        except (MachError, OSError) as exc:
            msg = "Mach VM interface unavailable"
            self._logger.log(LogLevel.ERROR, f"{msg} ({exc})", source=self.name, pid=target)
            return Result.fail(ErrorCode.PLATFORM_NOT_SUPPORTED, msg)

        try:
            regions = self.walk(source, region_filter=region_filter)
        finally:
            source.close()
        self._logger.log(
            LogLevel.INFO, f"Enumerated {len(regions)} regions", source=self.name, pid=target
        )
        return Result.ok(regions)

    def walk(
        self,
        source: RegionSource,
        *,
        region_filter: RegionFilter | None = None,
    ) -> list[MemoryRegion]:
        """Collect every region *source* reports, in address order.

        Each query starts at the end of the previous region, so regions
        never overlap and the walk always terminates.
        """
        regions: list[MemoryRegion] = []
        address = 0
        while True:
            info = source.query(address)
            if info is None:
                break
            region = self.translate(info)
            if should_include(region, region_filter):
                regions.append(region)
            next_address = info.address + info.size
            if next_address <= address:
                break
            address = next_address
        return regions

    @staticmethod
    def translate(info: RegionInfo) -> MemoryRegion:
        """Convert one kernel answer into a region with empty provenance."""
        perms = MemoryPermissions(
            readable=bool(info.protection & VM_PROT_READ),
            writable=bool(info.protection & VM_PROT_WRITE),
            executable=bool(info.protection & VM_PROT_EXECUTE),
            private_mapping=not info.shared,
        )
        return MemoryRegion(
            start=info.address,
            end=info.address + info.size,
            permissions=perms,
            offset=0,
            device=NO_DEVICE,
            inode=0,
            pathname="",
        )
