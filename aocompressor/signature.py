from __future__ import annotations

from .constants import MAGIC_PREVIEW_BYTES, SIGNATURES, UNKNOWN_TYPE


def detect_type(data: bytes) -> str:
    """Classify ``data`` by its leading magic bytes.

    Only the first matching signature applies; data shorter than a signature
    never matches it.
    """
    for magic, label in SIGNATURES:
        if data.startswith(magic):
            return label
    return UNKNOWN_TYPE


def first_bytes_hex(data: bytes, n: int = MAGIC_PREVIEW_BYTES) -> str:
    # e.g. b"\x89PNG" -> "89 50 4E 47"
    return " ".join(f"{b:02X}" for b in data[: max(0, n)])
