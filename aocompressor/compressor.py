from __future__ import annotations

import contextlib
import os
import zipfile
import zlib
from pathlib import Path
from typing import Optional

from .constants import DEFAULT_COMPRESS_LEVEL
from .errors import AoError, IoReadError
from .outcome import LogSink, Outcome, Severity, failure, null_sink, success
from .pathutil import entry_name
from .walker import iter_files


def _has_regular_file(root: Path) -> bool:
    with contextlib.closing(iter_files(root)) as files:
        return next(files, None) is not None


def _discard(path: Path) -> None:
    # Best effort: the failure being reported matters more than cleanup
    try:
        path.unlink()
    except OSError:
        pass


def _add_file(zf: zipfile.ZipFile, name: str, path: Path) -> None:
    try:
        zf.write(path, arcname=name)
    except OSError as exc:
        raise IoReadError(f"Failed to compress file '{path}': {exc}") from exc


def compress(
    source_dir,
    target_archive,
    *,
    compresslevel: Optional[int] = DEFAULT_COMPRESS_LEVEL,
    log: Optional[LogSink] = None,
) -> Outcome:
    """Pack every regular file under ``source_dir`` into a deflated ZIP.

    Entry names are paths relative to ``source_dir`` using '/'. The archive is
    all-or-nothing: any error while writing removes ``target_archive`` and
    yields a Failure. A source with no regular files yields ``Success(0)`` and
    no archive is created.

    Args:
        source_dir: Directory to pack.
        target_archive: Output path; an existing file is truncated.
        compresslevel: zlib level 0-9, None for the zlib default.
        log: Optional sink receiving one info record per stored entry.
    """
    log = log or null_sink
    src = Path(source_dir).resolve()
    if not src.is_dir():
        return failure("Invalid source directory.")
    try:
        if not _has_regular_file(src):
            return success(0, "No files to compress.")
    except OSError as exc:
        return failure(f"Cannot read source directory: {exc}")

    target = Path(os.path.abspath(target_archive))
    try:
        real_target = Path(os.path.realpath(target))
    except (OSError, ValueError) as exc:
        return failure(f"Compression failed: {exc}")

    count = 0
    try:
        with zipfile.ZipFile(
            target,
            "w",
            compression=zipfile.ZIP_DEFLATED,
            compresslevel=compresslevel,
            strict_timestamps=False,
        ) as zf, contextlib.closing(iter_files(src)) as files:
            for path in files:
                # The archive may be written inside the tree being packed
                if path == real_target or path == target:
                    continue
                name = entry_name(src, path)
                log(f"  adding: {name}", Severity.INFO)
                _add_file(zf, name, path)
                count += 1
    except (AoError, OSError, ValueError, RuntimeError, zlib.error) as exc:
        _discard(target)
        return failure(f"Compression failed: {exc}")
    if count == 0:
        # Only the previous archive itself was found under the source
        _discard(target)
        return success(0, "No files to compress.")
    return success(count, "Compression successful!")
