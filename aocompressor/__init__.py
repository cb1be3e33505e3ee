"""
AO Compressor: packs game resource folders into .ao archives and back.

An .ao archive is a standard ZIP container (deflate, UTF-8 entry names); the
suffix is convention only. The engine provides:

- compression of a directory tree, all-or-nothing (a failed run leaves no archive)
- extraction into ``<dest>/<name>-decompressed`` with path-traversal and
  zip-bomb protection
- inspection: archive digest plus per-entry sizes, SHA-256 and content type
  sniffed from magic bytes

Operations report through a ``(text, severity)`` sink and return a
``Success``/``Failure`` outcome; see aocompressor.cli for the command-line driver.
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "compressor",
    "extractor",
    "inspector",
    "outcome",
    "runner",
]

# Programmatic API: aocompressor.compressor.compress, aocompressor.extractor.decompress
# and aocompressor.inspector.inspect take plain paths and an optional log sink.
