"""
Exceptions raised while decoding and extracting GPK archives

Every error can carry the archive it was raised for; the label is filled in
by whoever knows it (the parser when given a name, otherwise the extractor).
"""

from pathlib import Path
from typing import List, Optional, Tuple, Union


class GpkError(Exception):
    """Base class for all GPK decoding and extraction errors."""

    def __init__(self, message: str, archive: Optional[Union[str, Path]] = None):
        super().__init__(message)
        self.message = message
        self.archive = str(archive) if archive is not None else None

    def __str__(self) -> str:
        if self.archive:
            return f"{self.archive}: {self.message}"
        return self.message


class TruncatedHeader(GpkError):
    """Archive is shorter than the 4-byte header."""

    def __init__(self, buffer_len: int, archive=None):
        self.buffer_len = buffer_len
        super().__init__(
            f"truncated header: need 4 bytes, archive has {buffer_len}",
            archive,
        )


class TruncatedEntryTable(GpkError):
    """Archive is too short to hold every entry record the header announces."""

    def __init__(self, entry_count: int, required: int, buffer_len: int, archive=None):
        self.entry_count = entry_count
        self.required = required
        self.buffer_len = buffer_len
        super().__init__(
            f"truncated entry table: {entry_count} entries need {required} bytes, "
            f"archive has {buffer_len}",
            archive,
        )


class EntryOutOfBounds(GpkError):
    """An entry's content range reaches past the end of the archive."""

    def __init__(self, index: int, offset: int, size: int, buffer_len: int, archive=None):
        self.index = index
        self.offset = offset
        self.size = size
        self.buffer_len = buffer_len
        super().__init__(
            f"entry {index} out of bounds: offset={offset} size={size} "
            f"end={offset + size} buffer_len={buffer_len}",
            archive,
        )


class UnsafeEntryName(GpkError):
    """An entry name would land outside the archive's output directory."""

    def __init__(self, index: int, name: str, archive=None):
        self.index = index
        self.name = name
        super().__init__(f"entry {index} has unsafe name {name!r}", archive)


class ArchiveIOError(GpkError):
    """Reading an archive or writing an extracted file failed."""

    def __init__(self, path: Union[str, Path], reason: str, archive=None):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"I/O error on {path}: {reason}", archive)


class ArchiveWriteError(ArchiveIOError):
    """
    One or more extracted files could not be written.

    Attributes:
        failures: (entry index, target path, reason) for every failed write
    """

    def __init__(self, failures: List[Tuple[int, Path, str]], archive=None):
        self.failures = failures
        first_index, first_path, first_reason = failures[0]
        reason = f"{len(failures)} write(s) failed, first: entry {first_index}: {first_reason}"
        super().__init__(first_path, reason, archive)
