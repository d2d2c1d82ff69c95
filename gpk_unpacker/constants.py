"""
Constants for the GPK archive layout and extraction defaults
"""

import struct

# Header: entry count (uint32 LE)
HEADER_FORMAT = "<I"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)  # 4

# Entry record: name (260 bytes), size (uint32 LE), offset (uint32 LE)
NAME_FIELD_SIZE = 260
ENTRY_FORMAT = f"<{NAME_FIELD_SIZE}sII"
ENTRY_SIZE = struct.calcsize(ENTRY_FORMAT)  # 268

# Fallback when entry names are not valid UTF-8
FALLBACK_ENCODING = "latin-1"

# Default values
DEFAULT_OUTPUT_DIR = "extracted"
DEFAULT_MAX_WORKERS = 1
