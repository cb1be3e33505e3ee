from __future__ import annotations


# Archive naming
ARCHIVE_SUFFIX = ".ao"
EXTRACT_SUFFIX = "-decompressed"
LEGACY_EXTRACT_SUFFIX = "-descompressed"  # spelling used by trees from older releases

# I/O
COPY_BLOCK_SIZE = 1_048_576  # 1 MiB
DEFAULT_COMPRESS_LEVEL = None  # zlib default (6)

# Inspection
MAGIC_PREVIEW_BYTES = 16

# Magic signatures at offset 0, first match wins
SIGNATURES = (
    (bytes([0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A]), "PNG"),
    (bytes([0xFF, 0xD8]), "JPEG"),
    (b"RIFF", "RIFF (possible WAV)"),
    (bytes([0x50, 0x4B, 0x03, 0x04]), "ZIP"),
    (b"BM", "BMP"),
)
UNKNOWN_TYPE = "Unknown"

# Extraction limits (None disables a limit)
DEFAULT_MAX_TOTAL_SIZE = 4 * 1024**3  # 4 GiB uncompressed per archive
DEFAULT_MAX_ENTRY_RATIO = 10_000.0  # deflate itself tops out near 1032:1
DEFAULT_RATIO_FLOOR = 1_048_576  # entries up to 1 MiB are exempt from the ratio check
DEFAULT_MAX_ENTRIES = None
