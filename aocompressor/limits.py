from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional
import zipfile

from .constants import (
    DEFAULT_MAX_TOTAL_SIZE,
    DEFAULT_MAX_ENTRY_RATIO,
    DEFAULT_RATIO_FLOOR,
    DEFAULT_MAX_ENTRIES,
)
from .errors import ArchiveTooLargeError


@dataclass(frozen=True)
class ExtractionLimits:
    """Resource limits applied while extracting untrusted archives.

    Attributes:
        max_total_size: Cap on the summed uncompressed bytes of all entries.
        max_entry_ratio: Cap on uncompressed/compressed size for one entry.
        ratio_floor: Entries whose uncompressed size is at or below this many
            bytes are exempt from the ratio check (tiny files compress wildly).
        max_entries: Cap on the number of entries in the archive.

    A limit set to None is not enforced.
    """

    max_total_size: Optional[int] = DEFAULT_MAX_TOTAL_SIZE
    max_entry_ratio: Optional[float] = DEFAULT_MAX_ENTRY_RATIO
    ratio_floor: int = DEFAULT_RATIO_FLOOR
    max_entries: Optional[int] = DEFAULT_MAX_ENTRIES

    def check_ratio(self, name: str, uncompressed: int, compressed: int) -> None:
        if self.max_entry_ratio is None or uncompressed <= self.ratio_floor:
            return
        ratio = uncompressed / max(1, compressed)
        if ratio > self.max_entry_ratio:
            raise ArchiveTooLargeError(
                f"entry '{name}' expands {ratio:.0f}:1 (limit {self.max_entry_ratio:.0f}:1)"
            )

    def check_declared(self, infos: Iterable[zipfile.ZipInfo]) -> None:
        """Validate central-directory sizes before anything is written."""
        infos = list(infos)
        if self.max_entries is not None and len(infos) > self.max_entries:
            raise ArchiveTooLargeError(f"{len(infos)} entries (limit {self.max_entries})")
        total = 0
        for info in infos:
            if info.is_dir():
                continue
            total += info.file_size
            if self.max_total_size is not None and total > self.max_total_size:
                raise ArchiveTooLargeError(
                    f"declared uncompressed size exceeds {self.max_total_size} bytes"
                )
            self.check_ratio(info.filename, info.file_size, info.compress_size)


DEFAULT_LIMITS = ExtractionLimits()
UNLIMITED = ExtractionLimits(max_total_size=None, max_entry_ratio=None, max_entries=None)


class ExtractionBudget:
    """Tracks bytes actually produced during one extraction run.

    Declared sizes can lie, so the limits are enforced again on the real
    output stream.
    """

    def __init__(self, limits: ExtractionLimits):
        self.limits = limits
        self.total = 0

    def charge(self, info: zipfile.ZipInfo, written: int, block: int) -> None:
        self.total += block
        max_total = self.limits.max_total_size
        if max_total is not None and self.total > max_total:
            raise ArchiveTooLargeError(f"uncompressed output exceeds {max_total} bytes")
        self.limits.check_ratio(info.filename, written + block, info.compress_size)
