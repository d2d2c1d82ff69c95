"""
GPK archive layout parser

Layout (all integers little-endian):
  - 4 bytes: entry count N (uint32)
  - N records of 268 bytes each, starting at offset 4:
      - 260 bytes: file name, null padded (or fully occupied)
      - 4 bytes: content size (uint32)
      - 4 bytes: absolute content offset (uint32)
  - Content blobs, placed anywhere after the table and referenced by the
    offset/size pairs above.
"""

import logging
import struct
from typing import List, Optional, Tuple

from gpk_unpacker import constants
from gpk_unpacker.errors import TruncatedEntryTable, TruncatedHeader
from gpk_unpacker.models import EntryDescriptor, Header

logger = logging.getLogger("gpk_unpacker.parser")


def parse_header(data: bytes, archive: Optional[str] = None) -> Header:
    """
    Decode the archive header.

    Args:
        data: Archive buffer (only the first 4 bytes are read)
        archive: Archive label used in error messages

    Returns:
        Parsed Header

    Raises:
        TruncatedHeader: If fewer than 4 bytes are available
    """
    if len(data) < constants.HEADER_SIZE:
        raise TruncatedHeader(len(data), archive=archive)

    (entry_count,) = struct.unpack_from(constants.HEADER_FORMAT, data, 0)
    return Header(entry_count=entry_count)


def decode_name(field: bytes) -> str:
    """
    Decode a fixed-width, possibly null-padded name field.

    Everything from the first null byte on is ignored; a field without a
    null byte is taken whole. Names that are not valid UTF-8 are decoded
    as Latin-1, so this never fails.

    Args:
        field: Raw name field (260 bytes in a well-formed archive)

    Returns:
        Decoded name, possibly empty
    """
    raw = bytes(field)
    end = raw.find(b"\x00")
    if end != -1:
        raw = raw[:end]
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError:
        return raw.decode(constants.FALLBACK_ENCODING)


def parse_entries(data: bytes, count: int, archive: Optional[str] = None) -> List[EntryDescriptor]:
    """
    Decode the entry table that follows the header.

    The whole table is length-checked before any record is decoded, so the
    result is either every entry or an error.

    Args:
        data: Archive buffer
        count: Entry count from the header
        archive: Archive label used in error messages

    Returns:
        Entries in table order

    Raises:
        TruncatedEntryTable: If the buffer cannot hold `count` records
    """
    required = constants.HEADER_SIZE + count * constants.ENTRY_SIZE
    if len(data) < required:
        raise TruncatedEntryTable(count, required, len(data), archive=archive)

    entries = []
    for index in range(count):
        record_offset = constants.HEADER_SIZE + index * constants.ENTRY_SIZE
        name_field, size, offset = struct.unpack_from(constants.ENTRY_FORMAT, data, record_offset)
        entry = EntryDescriptor(
            index=index,
            name=decode_name(name_field),
            size=size,
            offset=offset,
        )
        logger.debug(f"Entry {index}: {entry.name!r} offset={offset} size={size}")
        entries.append(entry)

    return entries


def read_archive(data: bytes, archive: Optional[str] = None) -> Tuple[Header, List[EntryDescriptor]]:
    """Parse header and entry table in one go."""
    header = parse_header(data, archive=archive)
    return header, parse_entries(data, header.entry_count, archive=archive)
