from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, List


def _list_dir(path: str) -> List[os.DirEntry]:
    # Release the directory handle before the caller recurses
    with os.scandir(path) as it:
        return sorted(it, key=lambda e: e.name)


def iter_files(root) -> Iterator[Path]:
    """Yield absolute paths of regular files under ``root``, depth first.

    Entries of each directory are visited in name order. Symlinked
    directories are not descended into; symlinks to regular files are yielded.
    Listing errors propagate as ``OSError``.
    """
    start = os.path.abspath(os.fspath(root))
    pending = [start]
    while pending:
        current = pending.pop()
        subdirs = []
        for entry in _list_dir(current):
            if entry.is_dir(follow_symlinks=False):
                subdirs.append(entry.path)
            elif entry.is_file():
                yield Path(entry.path)
        # Reverse so the stack pops subdirectories in name order
        pending.extend(reversed(subdirs))


def folder_size(root, exclude=None) -> int:
    # ``exclude`` names one file (e.g. an archive written into the tree) left out of the sum
    skip = os.path.realpath(exclude) if exclude is not None else None
    total = 0
    for p in iter_files(root):
        if skip is not None and os.path.realpath(p) == skip:
            continue
        total += p.stat().st_size
    return total
