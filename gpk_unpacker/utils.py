"""
Filesystem and terminal helpers for GPK extraction
"""

import os
import sys
from pathlib import Path
from typing import Union

from gpk_unpacker.errors import ArchiveIOError


# Status symbols printed by the CLI (set by setup_symbols)
SYMBOL_CHECK = '[OK]'
SYMBOL_ERROR = '[ERROR]'

_UNICODE_SYMBOLS = ('✓', '✗')
_ASCII_SYMBOLS = ('[OK]', '[ERROR]')

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def stdout_can_encode(text: str) -> bool:
    """True if sys.stdout can print `text` (False when it has no encoding)."""
    encoding = getattr(sys.stdout, 'encoding', None)
    if not encoding:
        return False
    try:
        text.encode(encoding)
    except (UnicodeEncodeError, LookupError):
        return False
    return True


def setup_symbols(force_ascii=False):
    """
    Pick the check/error symbols for CLI output.

    ASCII is used when forced by flag or the FORCE_ASCII environment
    variable, or when stdout cannot encode the Unicode marks.
    """
    global SYMBOL_CHECK, SYMBOL_ERROR

    if os.environ.get('FORCE_ASCII', '').lower() in ('1', 'true', 'yes'):
        force_ascii = True

    if not force_ascii and stdout_can_encode(''.join(_UNICODE_SYMBOLS)):
        SYMBOL_CHECK, SYMBOL_ERROR = _UNICODE_SYMBOLS
    else:
        SYMBOL_CHECK, SYMBOL_ERROR = _ASCII_SYMBOLS


def load_archive(path: Union[str, Path]) -> bytes:
    """
    Read a whole archive into memory.

    Args:
        path: Archive file path

    Returns:
        Archive contents

    Raises:
        ArchiveIOError: If the file cannot be read
    """
    path = Path(path)
    try:
        return path.read_bytes()
    except OSError as e:
        raise ArchiveIOError(path, e.strerror or str(e), archive=path.name) from e


def write_file(path: Union[str, Path], data) -> None:
    """
    Write bytes (or a memoryview) to a file, creating parent directories.

    An existing file is truncated and rewritten, so repeated extraction
    produces identical output.

    Raises:
        ArchiveIOError: If the directory or file cannot be written
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)
    except OSError as e:
        raise ArchiveIOError(path, e.strerror or str(e)) from e


def ensure_directory(path: Union[str, Path]) -> None:
    """
    Ensure directory exists, creating it if necessary.

    Raises:
        ArchiveIOError: If the directory cannot be created
    """
    try:
        Path(path).mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ArchiveIOError(path, e.strerror or str(e)) from e


def format_size(size_bytes: int) -> str:
    """Format a byte count for log lines, e.g. "1.5 MB"."""
    size = float(size_bytes)
    for unit in _SIZE_UNITS[:-1]:
        if size <= 1024:
            return f"{round(size, 2)} {unit}"
        size /= 1024
    return f"{round(size, 2)} {_SIZE_UNITS[-1]}"


def format_duration(seconds: float) -> str:
    """
    Format an elapsed time for humans.

    Examples: "0.42s", "12s", "3m 05s", "1h 02m"
    """
    if seconds < 10:
        return f"{seconds:.2f}s"
    total = int(round(seconds))
    minutes, secs = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes:02d}m"
    if minutes:
        return f"{minutes}m {secs:02d}s"
    return f"{secs}s"
