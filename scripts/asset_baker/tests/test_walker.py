"""
Unit tests for the asset tree walker.
"""

import os
import shutil
import tempfile
import unittest
from pathlib import Path

from ..discovery.classifier import AssetKind
from ..discovery.walker import AssetEntry, DirectoryFrame, TreeWalker
from ..errors import InvalidPath, UnsupportedExtension


def touch(root: Path, relative: str, content: bytes = b"") -> Path:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path


class TestTreeWalker(unittest.TestCase):
    """Test walking asset trees."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.root = Path(self.temp_dir)

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def create_tree(self):
        for relative in (
            ".png.zon",
            "README.md",
            "tex.png",
            "a/.png.zon",
            "a/b/icon.png",
            "shaders/common.glsl",
            "shaders/foo.vf.glsl",
            "fonts/mono.ttf",
            "fonts/ui.atlas.zon",
            "_wip/draft.png",
        ):
            touch(self.root, relative)

    def test_walk_yields_assets_in_sorted_order(self):
        self.create_tree()
        walker = TreeWalker(self.root)
        paths = [result.entry.path for result in walker.walk()]

        self.assertEqual(paths, [
            "a/b/icon.png",
            "fonts/ui.atlas.zon",
            "shaders/foo.vf.glsl",
            "tex.png",
        ])

    def test_walk_stats(self):
        self.create_tree()
        walker = TreeWalker(self.root)
        list(walker.walk())

        self.assertEqual(walker.stats.files_seen, 10)
        self.assertEqual(walker.stats.overlays, 2)
        self.assertEqual(walker.stats.ignored, 3)
        self.assertEqual(walker.stats.skipped, 1)
        self.assertEqual(walker.stats.accepted, 4)
        self.assertEqual(walker.stats.by_kind[AssetKind.TEXTURE], 2)

    def test_entries_carry_kind_and_extension(self):
        self.create_tree()
        results = {r.entry.path: r.entry for r in TreeWalker(self.root).walk()}

        shader = results["shaders/foo.vf.glsl"]
        self.assertEqual(shader.kind, AssetKind.VERTEX_FRAGMENT_SHADER)
        self.assertEqual(shader.extension_key, ".vf.glsl")
        self.assertEqual(shader.relative_path, ("shaders", "foo.vf.glsl"))

    def test_ancestors_root_first(self):
        self.create_tree()
        results = {r.entry.path: r for r in TreeWalker(self.root).walk()}

        ancestors = results["a/b/icon.png"].ancestors
        self.assertEqual([frame.path for frame in ancestors], ["", "a", "a/b"])
        self.assertTrue(ancestors[0].contains(".png.zon"))
        self.assertTrue(ancestors[1].contains(".png.zon"))
        self.assertFalse(ancestors[1].contains("b"))
        self.assertTrue(ancestors[2].contains("icon.png"))

        self.assertEqual([f.path for f in results["tex.png"].ancestors], [""])

    def test_unsupported_extension_is_fatal(self):
        touch(self.root, "tex.png")
        touch(self.root, "docs/notes.txt")

        with self.assertRaises(UnsupportedExtension) as ctx:
            list(TreeWalker(self.root).walk())
        self.assertEqual(ctx.exception.path, "docs/notes.txt")
        self.assertEqual(ctx.exception.extension, ".txt")

    def test_unsupported_extension_inside_skipped_directory(self):
        """Classification happens before the underscore skip."""
        touch(self.root, "_wip/notes.txt")

        with self.assertRaises(UnsupportedExtension):
            list(TreeWalker(self.root).walk())

    def test_invalid_path_inside_skipped_directory(self):
        touch(self.root, "_wip/Draft.png")

        with self.assertRaises(InvalidPath):
            list(TreeWalker(self.root).walk())

    def test_invalid_path(self):
        touch(self.root, "my tex.png")

        with self.assertRaises(InvalidPath) as ctx:
            list(TreeWalker(self.root).walk())
        self.assertEqual(ctx.exception.path, "my tex.png")

    def test_overlays_are_not_validated(self):
        touch(self.root, "tex.png")
        touch(self.root, "Tex.png.zon")

        paths = [r.entry.path for r in TreeWalker(self.root).walk()]
        self.assertEqual(paths, ["tex.png"])

    def test_empty_tree(self):
        self.assertEqual(list(TreeWalker(self.root).walk()), [])

    def test_missing_root(self):
        with self.assertRaises(OSError):
            list(TreeWalker(self.root / "missing").walk())

    @unittest.skipUnless(hasattr(os, "symlink"), "symlinks not supported")
    def test_symlinks_are_not_followed(self):
        touch(self.root, "real/tex.png")
        os.symlink(self.root / "real", self.root / "linked", target_is_directory=True)
        os.symlink(self.root / "real" / "tex.png", self.root / "link.png")

        paths = [r.entry.path for r in TreeWalker(self.root).walk()]
        self.assertEqual(paths, ["real/tex.png"])

    @unittest.skipUnless(hasattr(os, "symlink"), "symlinks not supported")
    def test_symlinked_files_are_visible_to_overlay_lookup(self):
        touch(self.root, "shared/base.zon")
        touch(self.root, "a/tex.png")
        os.symlink(self.root / "shared" / "base.zon", self.root / "a" / "tex.png.zon")

        results = {r.entry.path: r for r in TreeWalker(self.root).walk()}

        frame = results["a/tex.png"].ancestors[-1]
        self.assertTrue(frame.contains("tex.png.zon"))
        self.assertNotIn("tex.png.zon", frame.files)
        self.assertEqual(sorted(results), ["a/tex.png", "shared/base.zon"])


class TestAssetEntry(unittest.TestCase):
    """Test asset entry helpers."""

    def test_from_path(self):
        entry = AssetEntry.from_path("a/b/tex.png")
        self.assertEqual(entry.relative_path, ("a", "b", "tex.png"))
        self.assertEqual(entry.extension_key, ".png")
        self.assertEqual(entry.kind, AssetKind.TEXTURE)
        self.assertEqual(entry.path, "a/b/tex.png")
        self.assertEqual(entry.basename, "tex.png")
        self.assertEqual(entry.dirname, "a/b")
        self.assertEqual(entry.stem, "tex")

    def test_root_level_entry(self):
        entry = AssetEntry.from_path("units.zon")
        self.assertEqual(entry.dirname, "")
        self.assertEqual(entry.kind, AssetKind.ZON_PASSTHROUGH)


class TestDirectoryFrame(unittest.TestCase):
    """Test directory frames."""

    def test_join(self):
        self.assertEqual(DirectoryFrame("", frozenset()).join("x.png"), "x.png")
        self.assertEqual(DirectoryFrame("a/b", frozenset()).join("x.png"), "a/b/x.png")


if __name__ == '__main__':
    unittest.main()
