"""Tests for the ProcessMemoryParser facade.

Most tests point the parser at a fake procfs tree in ``tmp_path``; a
few use a canned backend to exercise error pass-through.
"""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from py_vmmap.backends import RegionFilter, select_backend
from py_vmmap.backends.mach import MachVmBackend, RegionSource
from py_vmmap.backends.procfs import ProcMapsBackend
from py_vmmap.config import ParserConfig
from py_vmmap.logging import LogLevel
from py_vmmap.parser import ProcessMemoryParser
from py_vmmap.permissions import MemoryPermissions
from py_vmmap.region import MemoryRegion
from py_vmmap.result import ErrorCode, Result, ResultError

PID = 2024
LIB_TEXT = 0x7F0000001000
HEAP_ADDR = 0x01A30000
UNMAPPED = 0x90000000

MAPS = """\
00400000-00401000 r-xp 00000000 08:01 100 /usr/bin/demo
00600000-00601000 rw-p 00000000 08:01 100 /usr/bin/demo
01a2b000-01a4c000 rw-p 00000000 00:00 0 [heap]
7f0000000000-7f0000100000 r-xp 00000000 08:01 200 /usr/lib/libdemo.so
7f0000100000-7f0000101000 rw-s 00000000 00:05 300 /dev/shm/ring
7f0000200000-7f0000300000 rw-p 00000000 00:00 0
7ffc00000000-7ffc00021000 rw-p 00000000 00:00 0 [stack]
"""
REGION_COUNT = 7
NAMED_COUNT = 6


class CannedBackend:
    """Backend returning a fixed result, recording the calls it sees."""

    def __init__(self, result: Result[list[MemoryRegion]]) -> None:
        self.result = result
        self.calls: list[tuple[int | None, RegionFilter | None]] = []

    @property
    def name(self) -> str:
        return "canned"

    def is_available(self) -> bool:
        return True

    def enumerate(
        self, pid: int | None, *, region_filter: RegionFilter | None = None
    ) -> Result[list[MemoryRegion]]:
        self.calls.append((pid, region_filter))
        return self.result


@pytest.fixture
def parser(tmp_path: Path) -> ProcessMemoryParser:
    """Return a parser reading MAPS for PID and for self."""
    for key in (str(PID), "self"):
        maps = tmp_path / key / "maps"
        maps.parent.mkdir()
        maps.write_text(MAPS)
    config = ParserConfig(proc_root=str(tmp_path))
    return ProcessMemoryParser(config=config, backend=ProcMapsBackend(config=config))


def _paths(result: Result[list[MemoryRegion]]) -> list[str]:
    return [r.pathname for r in result.value]


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestParse:
    """Verify full parses."""

    def test_parse_process(self, parser: ProcessMemoryParser) -> None:
        """parse_process returns every region in file order."""
        result = parser.parse_process(PID)
        assert result.is_success
        assert len(result.value) == REGION_COUNT
        assert result.value[0].start == 0x400000  # noqa: PLR2004

    def test_parse_self(self, parser: ProcessMemoryParser) -> None:
        """parse_self reads the calling process's map."""
        assert len(parser.parse_self().value) == REGION_COUNT

    def test_missing_process(self, parser: ProcessMemoryParser) -> None:
        """An unknown pid fails with PROCESS_NOT_FOUND."""
        assert parser.parse_process(PID + 1).error is ErrorCode.PROCESS_NOT_FOUND

    def test_no_backend(self) -> None:
        """Without a backend every call is PLATFORM_NOT_SUPPORTED."""
        with patch("py_vmmap.parser.select_backend", return_value=None):
            parser = ProcessMemoryParser(config=ParserConfig())
        assert parser.backend is None
        result = parser.parse_process(PID)
        assert result.error is ErrorCode.PLATFORM_NOT_SUPPORTED
        assert result.error_message == "Platform not supported"
        assert parser.logger.filter(min_level=LogLevel.WARNING)

    def test_forced_mach_on_linux(self) -> None:
        """A backend the host can't run is PLATFORM_NOT_SUPPORTED, not a crash."""
        with patch("py_vmmap.backends.mach.sys.platform", "linux"):
            parser = ProcessMemoryParser(config=ParserConfig(backend="mach"))
            assert isinstance(parser.backend, MachVmBackend)
            result = parser.parse_self()
        assert result.error is ErrorCode.PLATFORM_NOT_SUPPORTED
        assert result.error_message == "Platform not supported"

    def test_unavailable_backend_not_called(self) -> None:
        """An unavailable backend is never asked to enumerate."""
        opened: list[int | None] = []

        def opener(pid: int | None) -> RegionSource:
            opened.append(pid)
            raise AssertionError(pid)

        backend = MachVmBackend(task_opener=opener)
        with patch("py_vmmap.backends.mach.sys.platform", "linux"):
            result = ProcessMemoryParser(backend=backend).parse_process(PID)
        assert result.error is ErrorCode.PLATFORM_NOT_SUPPORTED
        assert opened == []

    def test_no_caching(self, parser: ProcessMemoryParser, tmp_path: Path) -> None:
        """Each call re-reads the source."""
        first = parser.parse_process(PID).value
        (tmp_path / str(PID) / "maps").write_text(MAPS.splitlines()[0] + "\n")
        second = parser.parse_process(PID).value
        assert len(first) == REGION_COUNT
        assert len(second) == 1

    def test_shared_logger(self, parser: ProcessMemoryParser) -> None:
        """The default backend logs into the parser's logger."""
        config = ParserConfig(backend="procfs", proc_root=parser.config.proc_root)
        own = ProcessMemoryParser(config=config)
        own.parse_process(PID)
        assert own.logger.filter(source="procfs")


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


class TestFindContaining:
    """Verify the address query."""

    def test_finds_library_text(self, parser: ProcessMemoryParser) -> None:
        """An address inside a mapping finds exactly that mapping."""
        result = parser.find_regions_containing(LIB_TEXT, PID)
        assert _paths(result) == ["/usr/lib/libdemo.so"]

    def test_heap(self, parser: ProcessMemoryParser) -> None:
        """An address in the heap finds [heap]."""
        assert _paths(parser.find_regions_containing(HEAP_ADDR, PID)) == ["[heap]"]

    def test_end_is_exclusive(self, parser: ProcessMemoryParser) -> None:
        """A boundary address belongs only to the region that starts there."""
        result = parser.find_regions_containing(0x7F0000100000, PID)
        assert _paths(result) == ["/dev/shm/ring"]

    def test_unmapped_is_empty(self, parser: ProcessMemoryParser) -> None:
        """An unmapped address is an empty success, not an error."""
        result = parser.find_regions_containing(UNMAPPED, PID)
        assert result.is_success
        assert result.value == []

    def test_subset_of_parse(self, parser: ProcessMemoryParser) -> None:
        """Results are a subset of the full parse and all contain the address."""
        everything = parser.parse_process(PID).value
        found = parser.find_regions_containing(LIB_TEXT, PID).value
        assert all(r in everything for r in found)
        assert all(r.contains(LIB_TEXT) for r in found)

    def test_error_passes_through(self, parser: ProcessMemoryParser) -> None:
        """A failed parse fails the query with the same code."""
        result = parser.find_regions_containing(LIB_TEXT, PID + 1)
        assert result.error is ErrorCode.PROCESS_NOT_FOUND


class TestFindByPath:
    """Verify the pathname query."""

    def test_substring(self, parser: ProcessMemoryParser) -> None:
        """Substring mode matches any pathname containing the text."""
        assert _paths(parser.find_regions_by_path("demo", PID)) == [
            "/usr/bin/demo",
            "/usr/bin/demo",
            "/usr/lib/libdemo.so",
        ]

    def test_exact(self, parser: ProcessMemoryParser) -> None:
        """Exact mode needs the whole pathname."""
        assert parser.find_regions_by_path("demo", PID, exact_match=True).value == []
        exact = parser.find_regions_by_path("/usr/bin/demo", PID, exact_match=True)
        assert len(exact.value) == 2  # noqa: PLR2004

    def test_empty_substring_skips_anonymous(self, parser: ProcessMemoryParser) -> None:
        """An empty substring matches every named region and no anonymous one."""
        result = parser.find_regions_by_path("", PID)
        assert len(result.value) == NAMED_COUNT
        assert all(r.pathname for r in result.value)

    def test_empty_exact_matches_anonymous(self, parser: ProcessMemoryParser) -> None:
        """An empty exact query matches only regions without a pathname."""
        result = parser.find_regions_by_path("", PID, exact_match=True)
        assert [r.is_anonymous() for r in result.value] == [True]

    def test_pseudo_path(self, parser: ProcessMemoryParser) -> None:
        """Pseudo-paths are searchable like any other pathname."""
        assert _paths(parser.find_regions_by_path("[stack]", PID, exact_match=True)) == [
            "[stack]"
        ]


class TestFindByPermissions:
    """Verify the "at least these permissions" query."""

    def test_executable_only(self, parser: ProcessMemoryParser) -> None:
        """Requesting exec returns r-xp regions and skips rw-p ones."""
        result = parser.find_regions_by_permissions(MemoryPermissions(executable=True), PID)
        assert _paths(result) == ["/usr/bin/demo", "/usr/lib/libdemo.so"]

    def test_false_flags_impose_nothing(self, parser: ProcessMemoryParser) -> None:
        """An all-false request matches every region."""
        result = parser.find_regions_by_permissions(MemoryPermissions(), PID)
        assert len(result.value) == REGION_COUNT

    def test_private_excludes_shared(self, parser: ProcessMemoryParser) -> None:
        """Requesting writable+private skips the shared mapping."""
        want = MemoryPermissions(writable=True, private_mapping=True)
        result = parser.find_regions_by_permissions(want, PID)
        assert "/dev/shm/ring" not in _paths(result)
        assert all(r.permissions.writable and r.permissions.private_mapping for r in result.value)

    def test_scenario_mixed_set(self) -> None:
        """Only the r-xp region survives an exec request over {r-xp, rw-p}."""
        code = MemoryRegion(start=0, end=0x1000, permissions=MemoryPermissions.from_string("r-xp"))
        data = MemoryRegion(
            start=0x1000, end=0x2000, permissions=MemoryPermissions.from_string("rw-p")
        )
        parser = ProcessMemoryParser(
            config=ParserConfig(), backend=CannedBackend(Result.ok([code, data]))
        )
        result = parser.find_regions_by_permissions(MemoryPermissions(executable=True))
        assert result.value == [code]


# ---------------------------------------------------------------------------
# Region filter
# ---------------------------------------------------------------------------


class TestRegionFilter:
    """Verify the installable region filter."""

    def test_filter_reaches_backend(self) -> None:
        """The installed filter is handed to the backend on each parse."""
        backend = CannedBackend(Result.ok([]))
        parser = ProcessMemoryParser(config=ParserConfig(), backend=backend)

        def keep_all(_region: MemoryRegion) -> bool:
            return True

        parser.set_region_filter(keep_all)
        parser.parse_self()
        assert backend.calls == [(None, keep_all)]

    def test_filter_applies_to_parse(self, parser: ProcessMemoryParser) -> None:
        """A large-region filter drops small regions."""
        parser.set_region_filter(lambda r: r.size >= 0x100000)
        assert all(r.size >= 0x100000 for r in parser.parse_process(PID).value)  # noqa: PLR2004

    def test_filter_composes_with_query(self, parser: ProcessMemoryParser) -> None:
        """The filter runs first, then the query narrows further."""
        parser.set_region_filter(lambda r: not r.is_anonymous())
        result = parser.find_regions_by_permissions(MemoryPermissions(writable=True), PID)
        assert _paths(result) == ["/usr/bin/demo", "[heap]", "/dev/shm/ring", "[stack]"]

    def test_set_replaces(self, parser: ProcessMemoryParser) -> None:
        """Installing a filter replaces the previous one."""
        parser.set_region_filter(lambda _r: False)
        parser.set_region_filter(lambda r: r.is_stack())
        assert _paths(parser.parse_process(PID)) == ["[stack]"]

    def test_clear(self, parser: ProcessMemoryParser) -> None:
        """clear_region_filter restores the full result."""
        parser.set_region_filter(lambda _r: False)
        assert parser.parse_process(PID).value == []
        parser.clear_region_filter()
        assert parser.region_filter is None
        assert len(parser.parse_process(PID).value) == REGION_COUNT

    def test_parsers_do_not_share_filters(self, tmp_path: Path) -> None:
        """A filter on one parser doesn't affect another."""
        config = ParserConfig(proc_root=str(tmp_path))
        first = ProcessMemoryParser(config=config, backend=ProcMapsBackend(config=config))
        second = ProcessMemoryParser(config=config, backend=ProcMapsBackend(config=config))
        first.set_region_filter(lambda _r: False)
        assert second.region_filter is None


# ---------------------------------------------------------------------------
# Static helpers
# ---------------------------------------------------------------------------


class TestStatics:
    """Verify platform support, error strings, and printing."""

    def test_platform_supported_matches_selection(self) -> None:
        """Support means a backend exists for this host."""
        expected = sys.platform.startswith("linux") or sys.platform == "darwin"
        assert ProcessMemoryParser.is_platform_supported() == expected
        assert (select_backend() is not None) == expected

    def test_unsupported_platform(self) -> None:
        """An unknown host reports no support."""
        with patch("py_vmmap.backends.sys.platform", "win32"):
            assert not ProcessMemoryParser.is_platform_supported()

    def test_error_string(self) -> None:
        """The facade exposes the fixed phrases."""
        assert ProcessMemoryParser.error_string(ErrorCode.PERMISSION_DENIED) == (
            "Permission denied"
        )

    def test_print_memory_map(
        self, parser: ProcessMemoryParser, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """print_memory_map writes the table to stdout."""
        ProcessMemoryParser.print_memory_map(parser.parse_process(PID).value, limit=2)
        out = capsys.readouterr().out
        assert "Address Range" in out
        assert f"Total regions: {REGION_COUNT}" in out

    def test_error_result_value_raises(self, parser: ProcessMemoryParser) -> None:
        """Reading regions from a failed parse raises."""
        with pytest.raises(ResultError):
            _ = parser.parse_process(PID + 1).value
