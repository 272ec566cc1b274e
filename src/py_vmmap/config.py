"""Parser configuration: where to look and which backend to use.

Configuration is a small frozen value.  Each parser holds its own copy,
so changing the settings for one parser never affects another.  The
usual way to build one is from the process environment:

    ``PY_VMMAP_PROC_ROOT``: mount point of procfs (default ``/proc``).
    ``PY_VMMAP_BACKEND``: force ``procfs`` or ``mach``.
    ``PY_VMMAP_KEEP_RAW_LINES``: ``0``/``false``/``no`` drops the raw
        maps line stored on each region.

Like shell environment variables, values are plain strings; parsing
them into typed fields happens once, here.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

ENV_PROC_ROOT = "PY_VMMAP_PROC_ROOT"
ENV_BACKEND = "PY_VMMAP_BACKEND"
ENV_KEEP_RAW_LINES = "PY_VMMAP_KEEP_RAW_LINES"

DEFAULT_PROC_ROOT = "/proc"

BACKEND_PROCFS = "procfs"
BACKEND_MACH = "mach"
KNOWN_BACKENDS: frozenset[str] = frozenset({BACKEND_PROCFS, BACKEND_MACH})

_FALSE_WORDS: frozenset[str] = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class ParserConfig:
    """Settings shared by the parser facade and its backends."""

    proc_root: str = DEFAULT_PROC_ROOT
    """Directory holding the per-process ``<pid>/maps`` files."""

    backend: str | None = None
    """Backend override; None selects by host platform."""

    keep_raw_lines: bool = True
    """Retain the source maps line on each region for diagnostics."""

    def __post_init__(self) -> None:
        """Reject backend names no backend answers to."""
        if self.backend is not None and self.backend not in KNOWN_BACKENDS:
            msg = f"Unknown backend: {self.backend!r}"
            raise ValueError(msg)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ParserConfig":
        """Build a config from environment variables.

        Args:
            environ: Variables to read (defaults to ``os.environ``).

        Returns:
            A new config; unset variables keep their defaults.

        Raises:
            ValueError: If ``PY_VMMAP_BACKEND`` names an unknown backend.

        """
        env = os.environ if environ is None else environ
        backend = env.get(ENV_BACKEND, "").strip().lower() or None
        keep = env.get(ENV_KEEP_RAW_LINES, "").strip().lower()
        return cls(
            proc_root=env.get(ENV_PROC_ROOT) or DEFAULT_PROC_ROOT,
            backend=backend,
            keep_raw_lines=keep not in _FALSE_WORDS,
        )
