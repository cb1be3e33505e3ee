from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from aocompressor.compressor import compress
from aocompressor.constants import (
    ARCHIVE_SUFFIX,
    EXTRACT_SUFFIX,
    LEGACY_EXTRACT_SUFFIX,
    DEFAULT_MAX_TOTAL_SIZE,
    DEFAULT_MAX_ENTRY_RATIO,
)
from aocompressor.extractor import decompress
from aocompressor.inspector import inspect
from aocompressor.limits import ExtractionLimits, UNLIMITED
from aocompressor.outcome import LogSink, Severity
from aocompressor.pathutil import extraction_dir
from aocompressor.report import compression_stats, decompression_stats
from aocompressor.runner import TaskRunner


def _console_sink() -> LogSink:
    """Sink printing info/success to stdout and warnings/errors to stderr."""

    def _sink(text: str, severity: Severity) -> None:
        if severity is Severity.ERROR:
            print(f"Error: {text}", file=sys.stderr)
        elif severity is Severity.WARNING:
            print(f"Warning: {text}", file=sys.stderr)
        else:
            print(text, flush=True)

    return _sink


def _progress(log: LogSink, quiet: bool) -> LogSink:
    # --quiet drops the per-entry info lines, never warnings
    if not quiet:
        return log

    def _filtered(text: str, severity: Severity) -> None:
        if severity is not Severity.INFO:
            log(text, severity)

    return _filtered


def _with_suffix(output: str) -> str:
    return output if output.lower().endswith(ARCHIVE_SUFFIX) else output + ARCHIVE_SUFFIX


def cmd_compress(source: str, output: str, *, level: Optional[int] = None, quiet: bool = False) -> bool:
    """Compress a directory into an .ao archive.

    Args:
        source: Directory to pack.
        output: Archive path; ".ao" is appended when missing.
        level: zlib compression level (0-9); None uses the zlib default.
        quiet: Suppress per-entry progress lines.

    Returns:
        True on success (including "nothing to compress").
    """
    out = _with_suffix(output)
    sink = _console_sink()
    print(f"Starting compression of '{Path(source).name}' folder...", flush=True)
    runner = TaskRunner(
        sink,
        operation="Compressed",
        target_path=out,
        post_logs=lambda: compression_stats(source, out),
    )
    outcome = runner.run(lambda log: compress(source, out, compresslevel=level, log=_progress(log, quiet)))
    return outcome.success


def cmd_decompress(
    archive: str,
    outdir: str,
    *,
    limits: Optional[ExtractionLimits] = None,
    legacy_suffix: bool = False,
    quiet: bool = False,
) -> bool:
    """Extract an .ao archive into ``outdir/<stem>-decompressed``.

    Args:
        archive: Archive to extract.
        outdir: Parent directory of the derived extraction directory.
        limits: Zip-bomb limits; None applies the defaults.
        legacy_suffix: Use the "-descompressed" suffix of older releases.
        quiet: Suppress per-entry progress lines.
    """
    suffix = LEGACY_EXTRACT_SUFFIX if legacy_suffix else EXTRACT_SUFFIX
    target = extraction_dir(Path(outdir).absolute(), archive, suffix)
    sink = _console_sink()
    print(f"Starting decompression of '{Path(archive).name}' file...", flush=True)
    runner = TaskRunner(
        sink,
        operation="Decompressed",
        target_path=str(target),
        post_logs=lambda: decompression_stats(archive),
    )
    kwargs = {"suffix": suffix}
    if limits is not None:
        kwargs["limits"] = limits
    outcome = runner.run(lambda log: decompress(archive, outdir, _progress(log, quiet), **kwargs))
    return outcome.success


def cmd_inspect(archive: str) -> bool:
    """Print archive and per-entry metadata."""
    return inspect(archive, _console_sink())


def _limits_from_args(args: argparse.Namespace) -> ExtractionLimits:
    if args.no_limits:
        return UNLIMITED
    return ExtractionLimits(max_total_size=args.max_total_size, max_entry_ratio=args.max_ratio)


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="aocompressor",
        description="Pack game resource folders into .ao archives and back",
        epilog="An .ao file is a standard ZIP archive (deflate, UTF-8 entry names).",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_compress = sub.add_parser("compress", help="Compress a folder into an .ao archive")
    ap_compress.add_argument("source", help="Folder to compress")
    ap_compress.add_argument("output", help="Output .ao path ('.ao' is appended if missing)")
    ap_compress.add_argument(
        "--level",
        type=int,
        choices=range(0, 10),
        metavar="0-9",
        default=None,
        help="Deflate level (default: zlib default, 6)",
    )
    ap_compress.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_decompress = sub.add_parser("decompress", help="Extract an .ao archive")
    ap_decompress.add_argument("archive", help="Archive path")
    ap_decompress.add_argument("outdir", help=f"Destination folder (files land in <name>{EXTRACT_SUFFIX})")
    ap_decompress.add_argument(
        "--legacy-suffix",
        action="store_true",
        help=f"Extract into <name>{LEGACY_EXTRACT_SUFFIX} like older releases",
    )
    ap_decompress.add_argument(
        "--max-total-size",
        type=int,
        default=DEFAULT_MAX_TOTAL_SIZE,
        help=f"Abort when the uncompressed total exceeds this many bytes (default {DEFAULT_MAX_TOTAL_SIZE})",
    )
    ap_decompress.add_argument(
        "--max-ratio",
        type=float,
        default=DEFAULT_MAX_ENTRY_RATIO,
        help=f"Abort when an entry expands more than this ratio (default {DEFAULT_MAX_ENTRY_RATIO:.0f})",
    )
    ap_decompress.add_argument("--no-limits", action="store_true", help="Disable size and ratio limits")
    ap_decompress.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_inspect = sub.add_parser("inspect", help="Show archive and entry details")
    ap_inspect.add_argument("archive", help="Archive path")

    args = ap.parse_args(argv)
    try:
        if args.cmd == "compress":
            ok = cmd_compress(args.source, args.output, level=args.level, quiet=args.quiet)
        elif args.cmd == "decompress":
            ok = cmd_decompress(
                args.archive,
                args.outdir,
                limits=_limits_from_args(args),
                legacy_suffix=args.legacy_suffix,
                quiet=args.quiet,
            )
        elif args.cmd == "inspect":
            ok = cmd_inspect(args.archive)
        else:
            raise RuntimeError("Unknown command")
    except (OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)
    sys.exit(0 if ok else 2)


if __name__ == "__main__":
    main()
