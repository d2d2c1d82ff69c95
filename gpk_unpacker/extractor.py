"""
GPK extraction engine

Validates every entry against the archive buffer, then writes the content
slices under a per-archive output directory. Writes are sequential by
default and can be spread over a thread pool; the buffer is never modified,
so workers share it without locking.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from threading import Lock
from typing import Callable, Dict, Iterable, List, Optional, Tuple, Union

from gpk_unpacker import constants, utils
from gpk_unpacker.errors import (
    ArchiveIOError,
    ArchiveWriteError,
    EntryOutOfBounds,
    GpkError,
    UnsafeEntryName,
)
from gpk_unpacker.models import ArchiveResult, EntryDescriptor, ExtractedFile
from gpk_unpacker.parser import read_archive

# progress_callback(archive_name, done, total, entry_name)
ProgressCallback = Callable[[str, int, int, str], None]

_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def safe_relative_name(entry: EntryDescriptor, archive: Optional[str] = None) -> str:
    """
    Turn an entry name into a relative path that stays inside the output directory.

    Backslashes count as separators. Empty and "." components are dropped.

    Raises:
        UnsafeEntryName: For empty names, absolute paths, drive letters or ".." components
    """
    name = entry.name.replace("\\", "/")
    if name.startswith("/") or _DRIVE_RE.match(name):
        raise UnsafeEntryName(entry.index, entry.name, archive=archive)

    parts = [part for part in PurePosixPath(name).parts if part not in ("", ".")]
    if not parts or ".." in parts:
        raise UnsafeEntryName(entry.index, entry.name, archive=archive)

    return "/".join(parts)


def extract_entry(buffer: bytes, entry: EntryDescriptor, archive: Optional[str] = None) -> ExtractedFile:
    """
    Validate one entry and slice its content out of the archive buffer.

    The content is a memoryview into `buffer`, not a copy; it must not
    outlive the buffer.

    Args:
        buffer: Whole archive contents
        entry: Entry parsed from the same buffer
        archive: Archive label used in error messages

    Returns:
        ExtractedFile with the relative target name and content view

    Raises:
        EntryOutOfBounds: If offset + size exceeds the buffer length
        UnsafeEntryName: If the name would escape the output directory
    """
    if entry.end > len(buffer):
        raise EntryOutOfBounds(entry.index, entry.offset, entry.size, len(buffer), archive=archive)

    relative_name = safe_relative_name(entry, archive=archive)
    content = memoryview(buffer)[entry.offset:entry.end]
    return ExtractedFile(entry=entry, relative_name=relative_name, content=content)


def archive_output_dir(output_dir: Union[str, Path], archive_path: Union[str, Path]) -> Path:
    """Directory an archive extracts into: output_dir/<archive stem>."""
    return Path(output_dir) / Path(archive_path).stem


@dataclass
class WriteTask:
    """A single file write."""
    index: int
    name: str
    output_path: Path
    content: memoryview


class ExtractionStats:
    """Thread-safe counter for written and failed entries."""

    def __init__(self):
        self.lock = Lock()
        self.written = 0
        self.errors = 0

    def add_written(self) -> int:
        """Count a written entry; returns entries processed so far."""
        with self.lock:
            self.written += 1
            return self.written + self.errors

    def add_error(self) -> int:
        """Count a failed entry; returns entries processed so far."""
        with self.lock:
            self.errors += 1
            return self.written + self.errors


def write_worker(task: WriteTask) -> Tuple[int, bool, Optional[str]]:
    """Write one extracted file; returns (index, success, error)."""
    try:
        utils.write_file(task.output_path, task.content)
        return (task.index, True, None)
    except ArchiveIOError as e:
        return (task.index, False, e.reason)


def write_group_worker(group: List[WriteTask]) -> List[Tuple[WriteTask, Tuple[int, bool, Optional[str]]]]:
    """Write tasks that share an output path one after another, in table order."""
    return [(task, write_worker(task)) for task in group]


class GpkExtractor:
    """
    Extracts GPK archives to disk.

    Each archive is parsed and every entry validated before the first file
    is written, so a corrupt archive leaves no partial output. Entries are
    then written in table order (or concurrently with max_workers > 1).
    When two entries share a name the last write wins.
    """

    def __init__(self, max_workers: int = constants.DEFAULT_MAX_WORKERS,
                 progress_callback: Optional[ProgressCallback] = None):
        """
        Initialize the extractor.

        Args:
            max_workers: Number of write threads per archive (1 = sequential)
            progress_callback: Optional callback(archive_name, done, total, entry_name)
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.max_workers = max_workers
        self.progress_callback = progress_callback
        self.logger = logging.getLogger("gpk_unpacker.extractor")

    def list_archive(self, archive_path: Union[str, Path]) -> List[EntryDescriptor]:
        """
        Read an archive's entry table without extracting anything.

        Args:
            archive_path: Archive file path

        Returns:
            Entries in table order
        """
        archive_path = Path(archive_path)
        data = utils.load_archive(archive_path)
        _, entries = read_archive(data, archive=str(archive_path))
        return entries

    def plan(self, data: bytes, archive: Optional[str] = None) -> List[ExtractedFile]:
        """
        Parse an archive buffer and validate every entry.

        Returns:
            One ExtractedFile per entry, in table order

        Raises:
            GpkError: On the first malformed header, table or entry
        """
        header, entries = read_archive(data, archive=archive)
        self.logger.debug(f"{archive}: {header.entry_count} entries, table ends at {header.table_end}")
        return [extract_entry(data, entry, archive=archive) for entry in entries]

    def extract_buffer(self, data: bytes, archive_path: Union[str, Path],
                       output_dir: Union[str, Path]) -> ArchiveResult:
        """
        Extract an archive that is already in memory.

        Args:
            data: Archive contents
            archive_path: Path the contents came from (names the output subdirectory)
            output_dir: Root output directory

        Returns:
            ArchiveResult listing written files in table order

        Raises:
            GpkError: If the archive is malformed (nothing is written)
            ArchiveWriteError: If any file could not be written
        """
        archive_path = Path(archive_path)
        archive = str(archive_path)
        files = self.plan(data, archive=archive)

        target_dir = archive_output_dir(output_dir, archive_path)
        utils.ensure_directory(target_dir)

        tasks = [
            WriteTask(
                index=f.entry.index,
                name=f.relative_name,
                output_path=target_dir / f.relative_name,
                content=f.content,
            )
            for f in files
        ]

        total_size = sum(f.size for f in files)
        self.logger.info(f"Extracting {len(tasks)} files ({utils.format_size(total_size)}) "
                         f"from {archive_path.name} to {target_dir}")

        if self.max_workers > 1 and len(tasks) > 1:
            failures = self._write_parallel(archive_path.name, tasks)
        else:
            failures = self._write_sequential(archive_path.name, tasks)

        if failures:
            for index, path, reason in failures:
                self.logger.error(f"Failed to write entry {index} to {path}: {reason}")
            raise ArchiveWriteError(failures, archive=archive)

        self.logger.info(f"Extracted {len(tasks)} files from {archive_path.name}")
        return ArchiveResult(
            archive=archive_path,
            output_dir=target_dir,
            files=[task.output_path for task in tasks],
        )

    def extract_archive(self, archive_path: Union[str, Path],
                        output_dir: Union[str, Path]) -> ArchiveResult:
        """Load an archive from disk and extract it (see extract_buffer)."""
        archive_path = Path(archive_path)
        data = utils.load_archive(archive_path)
        self.logger.debug(f"Loaded {archive_path} ({utils.format_size(len(data))})")
        return self.extract_buffer(data, archive_path, output_dir)

    def extract_archives(self, archive_paths: Iterable[Union[str, Path]],
                         output_dir: Union[str, Path],
                         keep_going: bool = False) -> Dict[Path, Optional[ArchiveResult]]:
        """
        Extract several archives one after another.

        Args:
            archive_paths: Archives in processing order
            output_dir: Root output directory
            keep_going: If True, a failed archive is logged and recorded as
                None and the remaining archives still run. If False the first
                error is raised.

        Returns:
            Dictionary mapping each archive path to its result (None on failure)
        """
        results: Dict[Path, Optional[ArchiveResult]] = {}
        for archive_path in archive_paths:
            archive_path = Path(archive_path)
            try:
                results[archive_path] = self.extract_archive(archive_path, output_dir)
            except GpkError as e:
                if not keep_going:
                    raise
                self.logger.error(f"Failed to extract {archive_path}: {e}")
                results[archive_path] = None
        return results

    def _report(self, archive_name: str, done: int, total: int, entry_name: str) -> None:
        if self.progress_callback:
            self.progress_callback(archive_name, done, total, entry_name)

    def _write_sequential(self, archive_name: str,
                          tasks: List[WriteTask]) -> List[Tuple[int, Path, str]]:
        """Write tasks in table order, stopping at the first failure."""
        for done, task in enumerate(tasks, 1):
            index, success, error = write_worker(task)
            if not success:
                return [(index, task.output_path, error)]
            self.logger.debug(f"Wrote entry {index}: {task.name} ({task.content.nbytes} bytes)")
            self._report(archive_name, done, len(tasks), task.name)
        return []

    def _write_parallel(self, archive_name: str,
                        tasks: List[WriteTask]) -> List[Tuple[int, Path, str]]:
        """
        Write tasks on a thread pool; every failure is collected, none cancels the rest.

        Tasks sharing an output path go to one worker in table order, so the
        last entry wins and no two threads ever write the same file.
        """
        stats = ExtractionStats()
        failures = []

        groups: Dict[Path, List[WriteTask]] = {}
        for task in tasks:
            groups.setdefault(task.output_path, []).append(task)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(write_group_worker, group) for group in groups.values()]

            for future in as_completed(futures):
                for task, (index, success, error) in future.result():
                    if success:
                        done = stats.add_written()
                        self.logger.debug(f"Wrote entry {index}: {task.name} ({task.content.nbytes} bytes)")
                    else:
                        done = stats.add_error()
                        failures.append((index, task.output_path, error))

                    self._report(archive_name, done, len(tasks), task.name)

        failures.sort(key=lambda failure: failure[0])
        return failures
