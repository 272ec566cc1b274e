"""Process address-space introspection.

Re-exports public symbols so callers can write::

    from py_vmmap import MemoryPermissions, ProcessMemoryParser
"""

from py_vmmap.backends import (
    MachVmBackend,
    ProcMapsBackend,
    RegionBackend,
    RegionFilter,
    select_backend,
)
from py_vmmap.config import ParserConfig
from py_vmmap.logging import LogEntry, Logger, LogLevel
from py_vmmap.parser import ProcessMemoryParser
from py_vmmap.permissions import MemoryPermissions
from py_vmmap.region import MemoryRegion
from py_vmmap.report import MemorySummary, format_memory_map, summarize
from py_vmmap.result import ErrorCode, Result, ResultError, error_string

__all__ = [
    "ErrorCode",
    "LogEntry",
    "LogLevel",
    "Logger",
    "MachVmBackend",
    "MemoryPermissions",
    "MemoryRegion",
    "MemorySummary",
    "ParserConfig",
    "ProcMapsBackend",
    "ProcessMemoryParser",
    "RegionBackend",
    "RegionFilter",
    "Result",
    "ResultError",
    "error_string",
    "format_memory_map",
    "select_backend",
    "summarize",
]
