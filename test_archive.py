from __future__ import annotations

import os
import tempfile
import unittest
import zipfile
from pathlib import Path
from typing import Dict
from unittest import mock

from aocompressor.compressor import compress
from aocompressor.extractor import decompress
from aocompressor.limits import ExtractionLimits, UNLIMITED
from aocompressor.outcome import Failure, Severity, Success


def _create_sample_files(base: Path) -> Dict[str, bytes]:
    (base / "sub").mkdir()
    (base / "a.txt").write_bytes(b"hello")
    (base / "sub" / "b.bin").write_bytes(bytes([0x00, 0x01, 0x02, 0x03]))
    return {"a.txt": b"hello", "sub/b.bin": bytes([0x00, 0x01, 0x02, 0x03])}


def _tree_contents(root: Path) -> Dict[str, bytes]:
    out: Dict[str, bytes] = {}
    for dirpath, _dirs, files in os.walk(root):
        for fn in files:
            full = Path(dirpath) / fn
            out[full.relative_to(root).as_posix()] = full.read_bytes()
    return out


def _hostile_archive(path: Path, entries: Dict[str, bytes]) -> Path:
    with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            zf.writestr(zipfile.ZipInfo(name), data)
    return path


class Recorder:
    def __init__(self):
        self.records = []

    def __call__(self, text, severity):
        self.records.append((text, severity))

    def texts(self, severity=None):
        return [t for t, s in self.records if severity is None or s is severity]


class CompressTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)
        self.src = self.root / "src"
        self.src.mkdir()

    def test_compress_sample_tree(self):
        expected = _create_sample_files(self.src)
        archive = self.root / "out.ao"
        outcome = compress(self.src, archive)
        self.assertIsInstance(outcome, Success)
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.count, 2)
        self.assertEqual(outcome.message, "Compression successful!")
        with zipfile.ZipFile(archive) as zf:
            self.assertEqual(sorted(zf.namelist()), ["a.txt", "sub/b.bin"])
            for name, data in expected.items():
                self.assertEqual(zf.read(name), data)
                self.assertEqual(zf.getinfo(name).compress_type, zipfile.ZIP_DEFLATED)

    def test_entries_follow_walk_order(self):
        (self.src / "b").mkdir()
        (self.src / "b" / "z.txt").write_text("z")
        (self.src / "a.txt").write_text("a")
        (self.src / "c.txt").write_text("c")
        archive = self.root / "order.ao"
        compress(self.src, archive)
        with zipfile.ZipFile(archive) as zf:
            self.assertEqual(zf.namelist(), ["a.txt", "c.txt", "b/z.txt"])

    def test_empty_source_creates_nothing(self):
        (self.src / "only_dirs" / "deeper").mkdir(parents=True)
        archive = self.root / "out.ao"
        outcome = compress(self.src, archive)
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.count, 0)
        self.assertEqual(outcome.message, "No files to compress.")
        self.assertFalse(archive.exists())

    def test_invalid_source(self):
        outcome = compress(self.root / "missing", self.root / "out.ao")
        self.assertIsInstance(outcome, Failure)
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.count, -1)
        self.assertEqual(outcome.message, "Invalid source directory.")

        a_file = self.root / "file.txt"
        a_file.write_text("x")
        self.assertEqual(compress(a_file, self.root / "out.ao").message, "Invalid source directory.")

    def test_failure_removes_partial_archive(self):
        _create_sample_files(self.src)
        (self.src / "c.txt").write_text("third")
        archive = self.root / "out.ao"
        real_write = zipfile.ZipFile.write
        calls = {"n": 0}

        def flaky_write(zf, filename, arcname=None, *args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 2:
                raise OSError("disk full")
            return real_write(zf, filename, arcname, *args, **kwargs)

        with mock.patch.object(zipfile.ZipFile, "write", flaky_write):
            outcome = compress(self.src, archive)
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.count, -1)
        self.assertIn("disk full", outcome.message)
        self.assertFalse(archive.exists())

    def test_existing_archive_is_truncated(self):
        _create_sample_files(self.src)
        archive = self.root / "out.ao"
        archive.write_bytes(b"stale bytes that are not a zip")
        outcome = compress(self.src, archive)
        self.assertTrue(outcome.success)
        with zipfile.ZipFile(archive) as zf:
            self.assertEqual(len(zf.namelist()), 2)

    def test_archive_inside_source_is_not_packed(self):
        _create_sample_files(self.src)
        archive = self.src / "self.ao"
        outcome = compress(self.src, archive)
        self.assertEqual(outcome.count, 2)
        with zipfile.ZipFile(archive) as zf:
            self.assertNotIn("self.ao", zf.namelist())

    def test_backslashes_rewritten(self):
        if os.sep == "\\":
            self.skipTest("backslash is the separator here")
        # A literal backslash in a POSIX name stands in for a Windows separator
        (self.src / "gfx\\tiles.bmp").write_bytes(b"BM\x00\x00")
        archive = self.root / "out.ao"
        outcome = compress(self.src, archive)
        self.assertTrue(outcome.success)
        with zipfile.ZipFile(archive) as zf:
            self.assertEqual(zf.namelist(), ["gfx/tiles.bmp"])

    def test_progress_records(self):
        _create_sample_files(self.src)
        rec = Recorder()
        compress(self.src, self.root / "out.ao", log=rec)
        self.assertEqual(rec.texts(Severity.INFO), ["  adding: a.txt", "  adding: sub/b.bin"])

    def test_unicode_names(self):
        (self.src / "música").mkdir()
        (self.src / "música" / "canción.wav").write_bytes(b"RIFF....WAVE")
        archive = self.root / "uni.ao"
        self.assertTrue(compress(self.src, archive).success)
        with zipfile.ZipFile(archive) as zf:
            info = zf.infolist()[0]
            self.assertEqual(info.filename, "música/canción.wav")
            self.assertTrue(info.flag_bits & 0x800)


class DecompressTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)
        self.dst = self.root / "dst"
        self.dst.mkdir()

    def _sample_archive(self) -> Path:
        src = self.root / "src"
        src.mkdir()
        _create_sample_files(src)
        archive = self.root / "out.ao"
        self.assertTrue(compress(src, archive).success)
        return archive

    def test_decompress_sample(self):
        archive = self._sample_archive()
        outcome = decompress(archive, self.dst)
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.count, 2)
        self.assertEqual(outcome.message, "Decompression successful!")
        out = self.dst / "out-decompressed"
        self.assertEqual((out / "a.txt").read_bytes(), b"hello")
        self.assertEqual((out / "sub" / "b.bin").read_bytes(), bytes([0, 1, 2, 3]))

    def test_round_trip_binary_tree(self):
        src = self.root / "tree"
        (src / "deep" / "er" / "est").mkdir(parents=True)
        (src / "empty_dir").mkdir()
        files = {
            "root.bin": os.urandom(4096),
            "deep/zeros.bin": b"\x00" * 100_000,
            "deep/er/blank.txt": b"",
            "deep/er/est/rand.bin": os.urandom(70_000),
        }
        for rel, data in files.items():
            (src / rel).write_bytes(data)
        archive = self.root / "tree.ao"
        self.assertEqual(compress(src, archive).count, len(files))
        outcome = decompress(archive, self.dst)
        self.assertEqual(outcome.count, len(files))
        self.assertEqual(_tree_contents(self.dst / "tree-decompressed"), files)

    def test_zero_padding_round_trips_with_default_limits(self):
        src = self.root / "pack"
        src.mkdir()
        padding = b"\x00" * (8 * 1024 * 1024)
        (src / "pad.dat").write_bytes(padding)
        archive = self.root / "pack.ao"
        self.assertTrue(compress(src, archive).success)
        outcome = decompress(archive, self.dst)
        self.assertTrue(outcome.success, outcome.message)
        self.assertEqual(outcome.count, 1)
        self.assertEqual((self.dst / "pack-decompressed" / "pad.dat").read_bytes(), padding)

    def test_legacy_suffix(self):
        archive = self._sample_archive()
        outcome = decompress(archive, self.dst, suffix="-descompressed")
        self.assertTrue(outcome.success)
        self.assertTrue((self.dst / "out-descompressed" / "a.txt").is_file())

    def test_parent_traversal_skipped(self):
        archive = _hostile_archive(self.root / "arch.ao", {"../evil.txt": b"pwned", "ok.txt": b"fine"})
        rec = Recorder()
        outcome = decompress(archive, self.dst, rec)
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.count, 1)
        self.assertFalse((self.dst / "evil.txt").exists())
        self.assertFalse((self.root / "evil.txt").exists())
        warnings = rec.texts(Severity.WARNING)
        self.assertEqual(warnings, ["Skipping file (../evil.txt) outside folder."])
        self.assertEqual((self.dst / "arch-decompressed" / "ok.txt").read_bytes(), b"fine")

    def test_only_traversal_entry(self):
        archive = _hostile_archive(self.root / "arch.ao", {"../evil.txt": b"pwned"})
        rec = Recorder()
        outcome = decompress(archive, self.dst, rec)
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.count, 0)
        self.assertTrue(any("evil.txt" in w for w in rec.texts(Severity.WARNING)))
        self.assertEqual(list((self.dst / "arch-decompressed").iterdir()), [])

    def test_absolute_and_sibling_prefix_skipped(self):
        escape = self.root / "abs-escape.txt"
        archive = _hostile_archive(
            self.root / "arch.ao",
            {
                str(escape): b"absolute",
                "../arch-decompressed-sibling/x.txt": b"sibling",
                "a/../../b.txt": b"nested",
            },
        )
        rec = Recorder()
        outcome = decompress(archive, self.dst, rec)
        self.assertEqual(outcome.count, 0)
        self.assertFalse(escape.exists())
        self.assertFalse((self.dst / "arch-decompressed-sibling").exists())
        self.assertFalse((self.dst / "b.txt").exists())
        self.assertEqual(len(rec.texts(Severity.WARNING)), 3)

    def test_symlink_inside_target_not_followed_out(self):
        outside = self.root / "outside"
        outside.mkdir()
        target = self.dst / "arch-decompressed"
        target.mkdir()
        try:
            os.symlink(outside, target / "link")
        except (OSError, NotImplementedError):
            self.skipTest("symlinks not supported")
        archive = _hostile_archive(self.root / "arch.ao", {"link/x.txt": b"via link"})
        outcome = decompress(archive, self.dst)
        self.assertEqual(outcome.count, 0)
        self.assertFalse((outside / "x.txt").exists())

    def test_directory_entries_created(self):
        archive = _hostile_archive(self.root / "dirs.ao", {"empty/": b"", "full/f.txt": b"f"})
        outcome = decompress(archive, self.dst)
        self.assertEqual(outcome.count, 1)
        self.assertTrue((self.dst / "dirs-decompressed" / "empty").is_dir())

    def test_existing_target_overwritten(self):
        archive = self._sample_archive()
        target = self.dst / "out-decompressed"
        target.mkdir()
        (target / "a.txt").write_bytes(b"old contents that are longer")
        (target / "keep.txt").write_bytes(b"untouched")
        outcome = decompress(archive, self.dst)
        self.assertTrue(outcome.success)
        self.assertEqual((target / "a.txt").read_bytes(), b"hello")
        self.assertEqual((target / "keep.txt").read_bytes(), b"untouched")
        # and again, idempotently
        self.assertEqual(decompress(archive, self.dst).count, 2)

    def test_invalid_file_path(self):
        outcome = decompress(self.root / "nope.ao", self.dst)
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.count, -1)
        self.assertEqual(outcome.message, "Invalid file path.")
        self.assertEqual(decompress(self.root, self.dst).message, "Invalid file path.")

    def test_bad_archive_removes_created_target(self):
        bogus = self.root / "bogus.ao"
        bogus.write_bytes(b"this is not a zip archive at all")
        outcome = decompress(bogus, self.dst)
        self.assertFalse(outcome.success)
        self.assertEqual(outcome.count, -1)
        self.assertIn("Invalid zip file", outcome.message)
        self.assertFalse((self.dst / "bogus-decompressed").exists())

    def test_bad_archive_keeps_preexisting_target(self):
        bogus = self.root / "bogus.ao"
        bogus.write_bytes(b"PK\x03\x04 truncated")
        target = self.dst / "bogus-decompressed"
        target.mkdir()
        (target / "mine.txt").write_text("user data")
        outcome = decompress(bogus, self.dst)
        self.assertFalse(outcome.success)
        self.assertEqual((target / "mine.txt").read_text(), "user data")

    def test_corrupt_entry_skipped(self):
        archive = self.root / "crc.ao"
        with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_STORED) as zf:
            zf.writestr("good.txt", b"good data")
            zf.writestr("bad.txt", b"BADBADBADBAD")
        raw = bytearray(archive.read_bytes())
        pos = raw.find(b"BADBADBADBAD")
        raw[pos] ^= 0xFF
        archive.write_bytes(bytes(raw))
        rec = Recorder()
        outcome = decompress(archive, self.dst, rec)
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.count, 1)
        self.assertTrue(any("bad.txt" in w for w in rec.texts(Severity.WARNING)))
        self.assertFalse((self.dst / "crc-decompressed" / "bad.txt").exists())
        self.assertEqual((self.dst / "crc-decompressed" / "good.txt").read_bytes(), b"good data")

    def test_stem_without_extension(self):
        archive = self._sample_archive()
        plain = self.root / "resources"
        archive.rename(plain)
        self.assertTrue(decompress(plain, self.dst).success)
        self.assertTrue((self.dst / "resources-decompressed" / "a.txt").is_file())

    def test_unicode_names_round_trip(self):
        src = self.root / "uni"
        src.mkdir()
        (src / "gráficos.ind").write_bytes(b"\x01\x02")
        archive = self.root / "uni.ao"
        compress(src, archive)
        self.assertEqual(decompress(archive, self.dst).count, 1)
        self.assertEqual((self.dst / "uni-decompressed" / "gráficos.ind").read_bytes(), b"\x01\x02")


class LimitTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.root = Path(tmp.name)
        self.archive = self.root / "bomb.ao"
        with zipfile.ZipFile(self.archive, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            zf.writestr("zeros.bin", b"\x00" * (4 * 1024 * 1024))
            zf.writestr("small.txt", b"small")

    def test_ratio_limit(self):
        limits = ExtractionLimits(max_total_size=None, max_entry_ratio=50.0, ratio_floor=1024)
        outcome = decompress(self.archive, self.root, limits=limits)
        self.assertFalse(outcome.success)
        self.assertTrue(outcome.message.startswith("Archive too large"))
        self.assertFalse((self.root / "bomb-decompressed").exists())

    def test_total_size_limit(self):
        limits = ExtractionLimits(max_total_size=1024 * 1024, max_entry_ratio=None)
        outcome = decompress(self.archive, self.root, limits=limits)
        self.assertFalse(outcome.success)
        self.assertIn("exceeds", outcome.message)

    def test_entry_count_limit(self):
        limits = ExtractionLimits(max_entries=1)
        self.assertFalse(decompress(self.archive, self.root, limits=limits).success)

    def test_unlimited(self):
        outcome = decompress(self.archive, self.root, limits=UNLIMITED)
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.count, 2)

    def test_lying_header_caught_while_streaming(self):
        limits = ExtractionLimits(max_total_size=1024 * 1024, max_entry_ratio=None)
        with mock.patch.object(ExtractionLimits, "check_declared", lambda self, infos: None):
            outcome = decompress(self.archive, self.root, limits=limits)
        self.assertFalse(outcome.success)
        self.assertFalse((self.root / "bomb-decompressed").exists())


if __name__ == "__main__":
    unittest.main()
