"""Tests for the ``py-vmmap`` command line.

The CLI reads ``PY_VMMAP_*`` variables, so each test points
``PY_VMMAP_PROC_ROOT`` at a fake procfs tree and forces the procfs
backend.
"""

from pathlib import Path

import pytest

from py_vmmap.cli import build_arg_parser, main, parse_address, run_query
from py_vmmap.config import ENV_BACKEND, ENV_PROC_ROOT, ParserConfig
from py_vmmap.parser import ProcessMemoryParser

PID = 77

MAPS = """\
00400000-00401000 r-xp 00000000 08:01 100 /usr/bin/demo
00600000-00601000 rw-p 00000000 08:01 100 /usr/bin/demo
7f0000000000-7f0000100000 r-xp 00000000 08:01 200 /usr/lib/libdemo.so
7ffc00000000-7ffc00021000 rw-p 00000000 00:00 0 [stack]
"""


@pytest.fixture
def fake_proc(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Create <tmp>/<PID>/maps and point the environment at it."""
    maps = tmp_path / str(PID) / "maps"
    maps.parent.mkdir()
    maps.write_text(MAPS)
    monkeypatch.setenv(ENV_PROC_ROOT, str(tmp_path))
    monkeypatch.setenv(ENV_BACKEND, "procfs")
    return tmp_path


class TestParseAddress:
    """Verify address argument parsing."""

    def test_hex(self) -> None:
        """0x-prefixed text is hexadecimal."""
        assert parse_address("0x7f00") == 0x7F00  # noqa: PLR2004

    def test_decimal(self) -> None:
        """Plain digits are decimal."""
        assert parse_address("4096") == 4096  # noqa: PLR2004

    def test_negative_rejected(self) -> None:
        """Negative addresses are invalid."""
        with pytest.raises(ValueError, match="negative"):
            parse_address("-1")

    def test_garbage_rejected(self) -> None:
        """Non-numeric text is invalid."""
        with pytest.raises(ValueError, match="invalid literal"):
            parse_address("zz")


class TestRunQuery:
    """Verify dispatch from arguments to parser queries."""

    def test_perms_short_form(self, fake_proc: Path) -> None:
        """``r-x`` is padded and read as "at least readable+executable"."""
        config = ParserConfig.from_env()
        parser = ProcessMemoryParser(config=config)
        args = build_arg_parser().parse_args(["--pid", str(PID), "--perms", "r-x"])
        result = run_query(parser, args)
        assert [r.pathname for r in result.value] == ["/usr/bin/demo", "/usr/lib/libdemo.so"]
        assert fake_proc.is_dir()


class TestMain:
    """Verify output and exit status."""

    def test_table(self, fake_proc: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """With no query the whole map is printed."""
        assert main(["--pid", str(PID)]) == 0
        out = capsys.readouterr().out
        assert "/usr/lib/libdemo.so" in out
        assert "Total regions: 4" in out
        assert fake_proc.is_dir()

    def test_address(self, fake_proc: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """--address prints only the containing region."""
        assert main(["--pid", str(PID), "--address", "0x7f0000000010"]) == 0
        out = capsys.readouterr().out
        assert "libdemo.so" in out
        assert "[stack]" not in out
        assert fake_proc.is_dir()

    def test_path_exact(self, fake_proc: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """--path with --exact needs the whole pathname."""
        assert main(["--pid", str(PID), "--path", "[stack]", "--exact"]) == 0
        assert "Total regions: 1" in capsys.readouterr().out
        assert fake_proc.is_dir()

    def test_summary(self, fake_proc: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """--summary prints totals instead of rows."""
        assert main(["--pid", str(PID), "--summary"]) == 0
        out = capsys.readouterr().out
        assert "Stack regions:     1" in out
        assert "Address Range" not in out
        assert fake_proc.is_dir()

    def test_missing_process(self, fake_proc: Path, capsys: pytest.CaptureFixture[str]) -> None:
        """A failed parse prints the error phrase and exits 1."""
        assert main(["--pid", str(PID + 1)]) == 1
        err = capsys.readouterr().err
        assert "Process not found" in err
        assert fake_proc.is_dir()
