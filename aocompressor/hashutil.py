from __future__ import annotations

from typing import BinaryIO

from Cryptodome.Hash import SHA256

from .constants import COPY_BLOCK_SIZE, MAGIC_PREVIEW_BYTES


def sha256_hex(data: bytes) -> str:
    return SHA256.new(data).hexdigest()


def sha256_stream(fh: BinaryIO, block_size: int = COPY_BLOCK_SIZE) -> str:
    h = SHA256.new()
    while True:
        block = fh.read(block_size)
        if not block:
            break
        h.update(block)
    return h.hexdigest()


def sha256_file(path) -> str:
    with open(path, "rb") as fh:
        return sha256_stream(fh)


class Sha256Stream:
    """Incremental SHA-256 that also remembers the leading bytes it was fed.

    Lets callers digest and sniff an archive entry in a single pass without
    holding the whole entry in memory.
    """

    def __init__(self, keep: int = MAGIC_PREVIEW_BYTES):
        self._hash = SHA256.new()
        self._keep = keep
        self.head = b""
        self.length = 0

    def update(self, block: bytes) -> None:
        if len(self.head) < self._keep:
            self.head += block[: self._keep - len(self.head)]
        self.length += len(block)
        self._hash.update(block)

    def consume(self, fh: BinaryIO, block_size: int = COPY_BLOCK_SIZE) -> "Sha256Stream":
        while True:
            block = fh.read(block_size)
            if not block:
                break
            self.update(block)
        return self

    def hexdigest(self) -> str:
        return self._hash.hexdigest()
