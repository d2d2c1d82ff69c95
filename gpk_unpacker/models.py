"""
Data models for GPK archive headers, entries, and extraction results
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from gpk_unpacker import constants


@dataclass(frozen=True)
class Header:
    """
    GPK archive header (4 bytes).

    Attributes:
        entry_count: Number of entry records following the header
    """
    entry_count: int

    @property
    def table_size(self) -> int:
        """Size in bytes of the entry table announced by this header."""
        return self.entry_count * constants.ENTRY_SIZE

    @property
    def table_end(self) -> int:
        """First byte past the entry table (where content usually starts)."""
        return constants.HEADER_SIZE + self.table_size


@dataclass(frozen=True)
class EntryDescriptor:
    """
    One packed file's record from the entry table (268 bytes on disk).

    Only the decoded name is copied out of the archive; size and offset
    refer back into the archive buffer the entry was parsed from.

    Attributes:
        index: Position of the record in the entry table (0-based)
        name: Decoded file name (null padding removed)
        size: Content size in bytes
        offset: Absolute offset of the content in the archive
    """
    index: int
    name: str
    size: int
    offset: int

    @property
    def end(self) -> int:
        """Offset one past the last content byte."""
        return self.offset + self.size

    @property
    def record_offset(self) -> int:
        """Absolute offset of this entry's record in the archive."""
        return constants.HEADER_SIZE + self.index * constants.ENTRY_SIZE


@dataclass
class ExtractedFile:
    """
    A validated entry ready to be written.

    Attributes:
        entry: Entry the content belongs to
        relative_name: Target path relative to the archive's output directory
        content: Zero-copy view of the entry's bytes in the archive buffer
    """
    entry: EntryDescriptor
    relative_name: str
    content: memoryview

    @property
    def size(self) -> int:
        return self.content.nbytes


@dataclass
class ArchiveResult:
    """
    Outcome of extracting one archive.

    Attributes:
        archive: Path of the source archive
        output_dir: Directory the archive was extracted into
        files: Written paths in entry table order (duplicates included)
    """
    archive: Path
    output_dir: Path
    files: List[Path] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.archive.name}: {len(self.files)} file(s) -> {self.output_dir}"
