from __future__ import annotations

import os
from pathlib import Path
from typing import Union

from .errors import PathTraversalError

PathLike = Union[str, "os.PathLike[str]"]


def within_root(root: PathLike, candidate: PathLike) -> bool:
    """Return True when ``candidate`` resolves to ``root`` or somewhere beneath it.

    Both paths are canonicalised (absolute, symlinks resolved) before the
    comparison. A plain prefix test is not enough: ``/tmp/out-of-root`` starts
    with ``/tmp/out`` but is not inside it, so the root must be followed by a
    separator. Canonicalisation errors count as "not within".
    """
    try:
        real_root = os.path.realpath(root)
        real_candidate = os.path.realpath(candidate)
    except (OSError, RuntimeError, ValueError):
        return False
    if real_candidate == real_root:
        return True
    # os.path.join adds a trailing separator only when one is missing ("/" stays "/")
    return real_candidate.startswith(os.path.join(real_root, ""))


def entry_name(source_dir: PathLike, file_path: PathLike) -> str:
    """Archive entry name for ``file_path`` relative to ``source_dir``, always with '/'."""
    rel = os.path.relpath(os.fspath(file_path), start=os.fspath(source_dir))
    return rel.replace("\\", "/")


def archive_stem(name: str) -> str:
    # Hidden names like ".ao" keep their leading dot
    dot = name.rfind(".")
    if dot > 0:
        return name[:dot]
    return name


def extraction_dir(target_root: PathLike, archive: PathLike, suffix: str) -> Path:
    return Path(target_root) / (archive_stem(Path(archive).name) + suffix)


def ensure_within_root(root: PathLike, candidate: PathLike) -> None:
    if not within_root(root, candidate):
        raise PathTraversalError(f"{os.fspath(candidate)} resolves outside {os.fspath(root)}")
