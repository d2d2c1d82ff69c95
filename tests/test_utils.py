import pytest

from gpk_unpacker import utils
from gpk_unpacker.errors import ArchiveIOError


def test_load_archive(tmp_path):
    path = tmp_path / "a.gpk"
    path.write_bytes(b"\x00\x01\x02")
    assert utils.load_archive(path) == b"\x00\x01\x02"


def test_load_archive_missing(tmp_path):
    with pytest.raises(ArchiveIOError) as excinfo:
        utils.load_archive(tmp_path / "missing.gpk")
    assert isinstance(excinfo.value.__cause__, OSError)
    assert "missing.gpk" in str(excinfo.value)


def test_write_file_creates_parents_and_accepts_memoryview(tmp_path):
    target = tmp_path / "a" / "b" / "c.bin"
    utils.write_file(target, memoryview(b"xxhelloxx")[2:7])
    assert target.read_bytes() == b"hello"


def test_write_file_truncates(tmp_path):
    target = tmp_path / "f.bin"
    target.write_bytes(b"a much longer old file")
    utils.write_file(target, b"new")
    assert target.read_bytes() == b"new"


def test_write_file_into_a_file_fails(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_bytes(b"")
    with pytest.raises(ArchiveIOError):
        utils.write_file(blocker / "child.bin", b"x")


def test_ensure_directory(tmp_path):
    utils.ensure_directory(tmp_path / "x" / "y")
    assert (tmp_path / "x" / "y").is_dir()


@pytest.mark.parametrize("size, expected", [
    (0, "0.0 B"),
    (1024, "1024.0 B"),
    (1536, "1.5 KB"),
    (5 * 1024 * 1024 + 1, "5.0 MB"),
])
def test_format_size(size, expected):
    assert utils.format_size(size) == expected


@pytest.mark.parametrize("seconds, expected", [
    (0.421, "0.42s"),
    (12.2, "12s"),
    (185, "3m 05s"),
    (3720, "1h 02m"),
])
def test_format_duration(seconds, expected):
    assert utils.format_duration(seconds) == expected


def test_setup_symbols_ascii():
    utils.setup_symbols(force_ascii=True)
    assert utils.SYMBOL_CHECK == "[OK]"
    assert utils.SYMBOL_ERROR == "[ERROR]"


def test_force_ascii_env(monkeypatch):
    monkeypatch.setenv("FORCE_ASCII", "1")
    utils.setup_symbols()
    assert utils.SYMBOL_CHECK == "[OK]"


def test_stdout_without_encoding_gets_ascii(monkeypatch):
    monkeypatch.delenv("FORCE_ASCII", raising=False)
    monkeypatch.setattr("sys.stdout", object())
    assert utils.stdout_can_encode("\u2713") is False
    utils.setup_symbols()
    assert utils.SYMBOL_ERROR == "[ERROR]"
