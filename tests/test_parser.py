import struct

import pytest

from gpk_unpacker import constants
from gpk_unpacker.errors import TruncatedEntryTable, TruncatedHeader
from gpk_unpacker.models import EntryDescriptor, Header
from gpk_unpacker.parser import decode_name, parse_entries, parse_header, read_archive

from gpk_builder import build_archive, name_field, record


def test_record_layout_constants():
    assert constants.HEADER_SIZE == 4
    assert constants.NAME_FIELD_SIZE == 260
    assert constants.ENTRY_SIZE == 268


@pytest.mark.parametrize("count", [0, 1, 2, 0x01020304, 0xFFFFFFFF])
def test_parse_header_reads_little_endian_count(count):
    header = parse_header(struct.pack("<I", count))
    assert header == Header(entry_count=count)


def test_parse_header_ignores_trailing_bytes():
    assert parse_header(b"\x02\x00\x00\x00garbage").entry_count == 2


@pytest.mark.parametrize("data", [b"", b"\x01", b"\x01\x00\x00"])
def test_parse_header_truncated(data):
    with pytest.raises(TruncatedHeader) as excinfo:
        parse_header(data, archive="short.gpk")
    assert excinfo.value.buffer_len == len(data)
    assert "short.gpk" in str(excinfo.value)


def test_header_table_bounds():
    header = Header(entry_count=3)
    assert header.table_size == 3 * 268
    assert header.table_end == 4 + 3 * 268


def test_decode_name_stops_at_first_null():
    assert decode_name(b"file.txt" + b"\x00" * 252) == "file.txt"


def test_decode_name_ignores_bytes_after_null():
    field = b"a.bin\x00junk" + b"\x00" * 250
    assert decode_name(field) == "a.bin"


def test_decode_name_without_null_takes_whole_field():
    field = b"x" * 260
    assert decode_name(field) == "x" * 260


def test_decode_name_empty():
    assert decode_name(b"\x00" * 260) == ""


def test_decode_name_utf8():
    assert decode_name(name_field("データ/ファイル.bin")) == "データ/ファイル.bin"


def test_decode_name_falls_back_to_latin1():
    field = name_field(b"caf\xe9.txt")
    assert decode_name(field) == "café.txt"


def test_decode_name_accepts_memoryview():
    assert decode_name(memoryview(name_field("m.bin"))) == "m.bin"


def test_parse_entries_zero_count_reads_nothing_past_header():
    assert parse_entries(b"\x00\x00\x00\x00", 0) == []


def test_parse_entries_decodes_records_in_order():
    data = build_archive([("first.bin", b"abc"), ("second.bin", b"defgh")])
    entries = parse_entries(data, 2)

    table_end = 4 + 2 * 268
    assert entries == [
        EntryDescriptor(index=0, name="first.bin", size=3, offset=table_end),
        EntryDescriptor(index=1, name="second.bin", size=5, offset=table_end + 3),
    ]
    assert entries[1].record_offset == 4 + 268
    assert entries[1].end == table_end + 8


def test_parse_entries_keeps_duplicate_names():
    data = build_archive([("same.txt", b"1"), ("same.txt", b"2")])
    entries = parse_entries(data, 2)
    assert [e.name for e in entries] == ["same.txt", "same.txt"]
    assert entries[0].offset != entries[1].offset


def test_parse_entries_does_not_validate_content_bounds():
    data = struct.pack("<I", 1) + record("big.bin", 1000, 5000)
    (entry,) = parse_entries(data, 1)
    assert entry.size == 1000
    assert entry.offset == 5000


def test_parse_entries_truncated_table():
    data = struct.pack("<I", 2) + record("only.bin", 0, 0)
    with pytest.raises(TruncatedEntryTable) as excinfo:
        parse_entries(data, 2, archive="broken.gpk")
    error = excinfo.value
    assert error.entry_count == 2
    assert error.required == 4 + 2 * 268
    assert error.buffer_len == 4 + 268
    assert "broken.gpk" in str(error)


def test_parse_entries_truncated_by_one_byte():
    data = build_archive([("a", b"")])[:-1]
    with pytest.raises(TruncatedEntryTable):
        parse_entries(data, 1)


def test_read_archive():
    data = build_archive([("a.bin", b"\x01\x02")])
    header, entries = read_archive(data)
    assert header.entry_count == 1
    assert entries[0].name == "a.bin"


def test_read_archive_huge_count_is_rejected_before_decoding():
    data = struct.pack("<I", 0xFFFFFFFF) + record("a", 0, 0)
    with pytest.raises(TruncatedEntryTable):
        read_archive(data)
