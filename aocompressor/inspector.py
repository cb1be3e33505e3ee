from __future__ import annotations

import zipfile
import zlib
from pathlib import Path
from typing import List

from .constants import MAGIC_PREVIEW_BYTES
from .errors import AoError
from .hashutil import Sha256Stream, sha256_file
from .outcome import LogSink, Severity
from .report import format_mtime, format_size
from .signature import detect_type, first_bytes_hex


_INSPECT_ERRORS = (AoError, OSError, ValueError, RuntimeError, NotImplementedError, EOFError, zlib.error, zipfile.BadZipFile)


def _info(log: LogSink, text: str = "") -> None:
    log(text, Severity.INFO)


def _inspect_basic_info(path: Path, log: LogSink) -> None:
    _info(log, "=== FILE INSPECTION ===")
    _info(log, f"File: {path.name}")
    _info(log, f"Path: {path.absolute()}")
    _info(log, f"Size: {format_size(path.stat().st_size)}")
    _info(log, f"Last Modified: {format_mtime(path)}")
    _info(log)
    try:
        _info(log, f"File SHA-256: {sha256_file(path)}")
    except OSError as exc:
        log(f"Could not calculate file SHA-256: {exc}", Severity.ERROR)
    _info(log)


def _inspect_entry(zf: zipfile.ZipFile, info: zipfile.ZipInfo, log: LogSink) -> None:
    _info(log, f"--- {info.filename} ---")
    _info(log, f"Compressed size: {format_size(info.compress_size)}")
    _info(log, f"Uncompressed size: {format_size(info.file_size)}")
    if info.file_size > 0:
        ratio = (1.0 - info.compress_size / info.file_size) * 100.0
        _info(log, f"Compression ratio: {ratio:.1f}%")

    with zf.open(info) as fh:
        digest = Sha256Stream(keep=MAGIC_PREVIEW_BYTES).consume(fh)
    if digest.length == 0:
        log("File is empty.", Severity.WARNING)
        return
    _info(log, f"SHA-256: {digest.hexdigest()}")
    _info(log, f"Magic signature: {first_bytes_hex(digest.head, MAGIC_PREVIEW_BYTES)}")
    _info(log, f"Detected type: {detect_type(digest.head)}")


def _inspect_contents(zf: zipfile.ZipFile, log: LogSink) -> None:
    files: List[zipfile.ZipInfo] = [i for i in zf.infolist() if not i.is_dir()]
    _info(log, "=== ARCHIVE CONTENTS ===")
    _info(log, f"Total files: {len(files)}")
    _info(log)
    if not files:
        log("No files found in the archive.", Severity.WARNING)
        return
    for info in files:
        try:
            _inspect_entry(zf, info, log)
        except _INSPECT_ERRORS as exc:
            log(f"Error inspecting '{info.filename}': {exc}", Severity.ERROR)
        _info(log)


def inspect(archive, log: LogSink) -> bool:
    """Report archive-level and per-entry metadata through ``log``.

    Per-entry problems are reported and inspection moves on to the next
    entry. Returns False only when the file cannot be read as a ZIP at all.
    """
    path = Path(archive)
    try:
        with zipfile.ZipFile(path, "r", metadata_encoding="utf-8") as zf:
            _inspect_basic_info(path, log)
            _inspect_contents(zf, log)
    except _INSPECT_ERRORS as exc:
        log(f"Error inspecting file: {exc}", Severity.ERROR)
        return False
    return True
