"""Platform backends: one per OS-native memory map source.

Re-exports public symbols so callers can write::

    from py_vmmap.backends import ProcMapsBackend, select_backend
"""

import sys

from py_vmmap.backends.base import RegionBackend, RegionFilter
from py_vmmap.backends.mach import (
    MachError,
    MachVmBackend,
    RegionInfo,
    RegionSource,
    TaskAccessError,
)
from py_vmmap.backends.procfs import ProcMapsBackend
from py_vmmap.config import BACKEND_MACH, BACKEND_PROCFS, ParserConfig
from py_vmmap.logging import Logger


def select_backend(
    config: ParserConfig | None = None,
    logger: Logger | None = None,
    *,
    platform: str | None = None,
) -> RegionBackend | None:
    """Return the backend for the host platform, or None if there is none.

    ``config.backend`` forces a specific backend regardless of platform.
    No I/O happens here.

    Args:
        config: Parser settings.
        logger: Logger handed to the backend.
        platform: Platform string to select for (defaults to ``sys.platform``).

    """
    cfg = config if config is not None else ParserConfig()
    host = platform if platform is not None else sys.platform
    choice = cfg.backend
    if choice is None:
        if host.startswith("linux"):
            choice = BACKEND_PROCFS
        elif host == "darwin":
            choice = BACKEND_MACH

    match choice:
        case "procfs":
            return ProcMapsBackend(config=cfg, logger=logger)
        case "mach":
            return MachVmBackend(config=cfg, logger=logger)
        case _:
            return None


__all__ = [
    "MachError",
    "MachVmBackend",
    "ProcMapsBackend",
    "RegionBackend",
    "RegionFilter",
    "RegionInfo",
    "RegionSource",
    "TaskAccessError",
    "select_backend",
]
