"""
gpk_unpacker - Extract files from GPK packed archives

A GPK archive is a 4-byte entry count, a table of fixed 268-byte entry
records (260-byte name, size, offset) and the raw content blobs the
records point at. This library decodes the table and writes every entry
out under a directory named after the archive.
"""

__version__ = "0.1.0"
__license__ = "MIT"

from gpk_unpacker.errors import (
    ArchiveIOError,
    ArchiveWriteError,
    EntryOutOfBounds,
    GpkError,
    TruncatedEntryTable,
    TruncatedHeader,
    UnsafeEntryName,
)
from gpk_unpacker.extractor import GpkExtractor, archive_output_dir, extract_entry
from gpk_unpacker.models import ArchiveResult, EntryDescriptor, ExtractedFile, Header
from gpk_unpacker.parser import decode_name, parse_entries, parse_header, read_archive

__all__ = [
    "GpkExtractor",
    "parse_header",
    "parse_entries",
    "decode_name",
    "read_archive",
    "extract_entry",
    "archive_output_dir",
    "Header",
    "EntryDescriptor",
    "ExtractedFile",
    "ArchiveResult",
    "GpkError",
    "TruncatedHeader",
    "TruncatedEntryTable",
    "EntryOutOfBounds",
    "UnsafeEntryName",
    "ArchiveIOError",
    "ArchiveWriteError",
]
