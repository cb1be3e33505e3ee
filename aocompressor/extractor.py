from __future__ import annotations

import shutil
import zipfile
import zlib
from pathlib import Path
from typing import Optional

from .constants import COPY_BLOCK_SIZE, EXTRACT_SUFFIX
from .errors import (
    AoError,
    ArchiveTooLargeError,
    BadArchiveError,
    InvalidInputError,
    IoWriteError,
    PathTraversalError,
)
from .limits import DEFAULT_LIMITS, ExtractionBudget, ExtractionLimits, UNLIMITED
from .outcome import LogSink, Outcome, Severity, failure, null_sink, success
from .pathutil import ensure_within_root, extraction_dir


# Per-entry problems that skip the entry without ending the run
_ENTRY_ERRORS = (
    IoWriteError,
    OSError,
    zipfile.BadZipFile,
    zlib.error,
    EOFError,
    NotImplementedError,
    RuntimeError,
)


def _discard_file(path: Path) -> None:
    try:
        path.unlink()
    except OSError:
        pass


def _discard_tree(path: Path) -> None:
    shutil.rmtree(path, ignore_errors=True)


def _copy_entry(zf: zipfile.ZipFile, info: zipfile.ZipInfo, dest: Path, budget: ExtractionBudget) -> int:
    written = 0
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        out = open(dest, "wb")
    except OSError as exc:
        raise IoWriteError(f"cannot write {dest}: {exc}") from exc
    with out, zf.open(info) as src:
        while True:
            block = src.read(COPY_BLOCK_SIZE)
            if not block:
                break
            budget.charge(info, written, len(block))
            out.write(block)
            written += len(block)
    return written


def _extract_entry(
    zf: zipfile.ZipFile,
    info: zipfile.ZipInfo,
    target: Path,
    log: LogSink,
    budget: ExtractionBudget,
) -> bool:
    """Materialise one entry under ``target``; True when a file was written."""
    name = info.filename
    dest = target / name
    try:
        ensure_within_root(target, dest)
    except PathTraversalError:
        log(f"Skipping file ({name}) outside folder.", Severity.WARNING)
        return False

    if info.is_dir():
        try:
            dest.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            log(f"Could not create directory '{name}': {exc}", Severity.WARNING)
        return False

    log(f"  extracting: {name}", Severity.INFO)
    try:
        _copy_entry(zf, info, dest, budget)
    except ArchiveTooLargeError:
        _discard_file(dest)
        raise
    except _ENTRY_ERRORS as exc:
        log(f"Could not extract '{name}': {exc}", Severity.WARNING)
        if dest.is_file():
            _discard_file(dest)
        return False
    return True


def _open_archive(path: Path) -> zipfile.ZipFile:
    try:
        # Names lacking the UTF-8 flag are still decoded as UTF-8
        return zipfile.ZipFile(path, "r", metadata_encoding="utf-8")
    except (zipfile.BadZipFile, EOFError, ValueError) as exc:
        raise BadArchiveError(f"Invalid zip file: {exc}") from exc
    except OSError as exc:
        raise BadArchiveError(f"Cannot read zip file: {exc}") from exc


def _require_file(path: Path) -> Path:
    if not path.is_file():
        raise InvalidInputError("Invalid file path.")
    return path


def decompress(
    source_archive,
    target_root,
    log: Optional[LogSink] = None,
    *,
    limits: Optional[ExtractionLimits] = DEFAULT_LIMITS,
    suffix: str = EXTRACT_SUFFIX,
) -> Outcome:
    """Extract ``source_archive`` into ``target_root/<stem><suffix>``.

    Entries that would land outside the derived directory are skipped with a
    warning. Per-entry write failures are logged and skipped; only an archive
    that cannot be opened, a malformed archive, or an archive breaking
    ``limits`` fails the whole run. On such a failure the derived directory is
    removed if this run created it.

    Args:
        source_archive: Path to the .ao file.
        target_root: Directory under which the derived directory is created.
        log: Sink for per-entry progress and warnings.
        limits: Extraction limits; None disables them.
        suffix: Suffix appended to the archive stem.
    """
    log = log or null_sink
    limits = limits or UNLIMITED
    try:
        src = _require_file(Path(source_archive))
    except InvalidInputError as exc:
        return failure(str(exc))

    target = extraction_dir(target_root, src, suffix)
    created = not target.exists()
    try:
        target.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        return failure(f"Cannot create folder path: {exc}")

    count = 0
    budget = ExtractionBudget(limits)
    try:
        with _open_archive(src) as zf:
            infos = zf.infolist()
            limits.check_declared(infos)
            for info in infos:
                if _extract_entry(zf, info, target, log, budget):
                    count += 1
    except ArchiveTooLargeError as exc:
        if created:
            _discard_tree(target)
        return failure(f"Archive too large: {exc}")
    except BadArchiveError as exc:
        if created:
            _discard_tree(target)
        return failure(str(exc))
    except (AoError, OSError, ValueError, zipfile.BadZipFile) as exc:
        if created:
            _discard_tree(target)
        return failure(f"Decompression failed: {exc}")
    return success(count, "Decompression successful!")
