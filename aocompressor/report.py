from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import List

from .hashutil import sha256_file
from .outcome import LogRecord, Outcome, Severity
from .walker import folder_size


def format_size(n: int) -> str:
    if n < 1024:
        return f"{n} B"
    if n < 1024 * 1024:
        return f"{n / 1024.0:.1f} KB"
    if n < 1024 * 1024 * 1024:
        return f"{n / (1024.0 * 1024):.1f} MB"
    return f"{n / (1024.0 * 1024 * 1024):.1f} GB"


def format_mtime(path) -> str:
    return datetime.fromtimestamp(os.path.getmtime(path)).strftime("%Y-%m-%d %H:%M:%S")


def outcome_severity(outcome: Outcome) -> Severity:
    if not outcome.success:
        return Severity.ERROR
    if outcome.count > 0:
        return Severity.SUCCESS
    return Severity.WARNING


def headline(operation: str, count: int, target) -> str:
    plural = "s" if count != 1 else ""
    return f"{operation} {count} file{plural} to '{target}'"


def compression_stats(source_dir, archive) -> List[LogRecord]:
    """Size reduction and digest lines shown after a successful compression."""
    try:
        original = folder_size(source_dir, exclude=archive)
        compressed = Path(archive).stat().st_size
        ratio = (1.0 - compressed / original) * 100.0 if original else 0.0
        return [
            LogRecord(f"{format_size(original)} → {format_size(compressed)} ({ratio:.1f}% reduction)"),
            LogRecord(f"SHA-256: {sha256_file(archive)}"),
        ]
    except OSError as exc:
        return [LogRecord(f"Could not calculate compression stats: {exc}", Severity.WARNING)]


def decompression_stats(archive) -> List[LogRecord]:
    try:
        return [
            LogRecord(f"Last Modified: {format_mtime(archive)}"),
            LogRecord(f"SHA-256: {sha256_file(archive)}"),
        ]
    except OSError as exc:
        return [LogRecord(f"Could not read file stats: {exc}", Severity.WARNING)]
