"""
Unit tests for the local runner.
"""

import json
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from ..config import BakeConfig
from ..converters.base import ConverterError
from ..graph.builder import build_graph
from ..processing.runner import CACHE_INDEX_NAME, LocalRunner, TaskStatus, parse_depfile


def fake_converter(header=None):
    """Stand-in for subprocess.run that writes the output (and a depfile when asked)."""
    def run(args, **kwargs):
        output = Path(args[-1])
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(b"baked")
        if "--write-deps" in args:
            depfile = Path(args[args.index("--write-deps") + 1])
            deps = [args[-2]] + ([str(header)] if header else [])
            depfile.write_text(f"{output}: " + " \\\n  ".join(deps) + "\n", encoding="utf-8")
        return MagicMock(returncode=0, stdout="", stderr="")
    return run


class TestParseDepfile(unittest.TestCase):
    """Test Makefile-style dependency parsing."""

    def test_single_line(self):
        self.assertEqual(parse_depfile("out.spv: a.glsl b.glsl\n"), ["a.glsl", "b.glsl"])

    def test_continuations(self):
        text = "out.spv: a.glsl \\\n  inc/b.glsl \\\n  inc/c.glsl\n"
        self.assertEqual(parse_depfile(text), ["a.glsl", "inc/b.glsl", "inc/c.glsl"])

    def test_escapes(self):
        self.assertEqual(parse_depfile("out: my\\ file.glsl a$$b \\#c\n"), ["my file.glsl", "a$b", "#c"])

    def test_multiple_rules(self):
        self.assertEqual(parse_depfile("a: x\nb: y z\n"), ["x", "y", "z"])

    def test_empty(self):
        self.assertEqual(parse_depfile(""), [])


class TestLocalRunner(unittest.TestCase):
    """Test executing build graphs locally."""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.root = Path(self.temp_dir) / "assets"
        self.build_dir = Path(self.temp_dir) / "build"
        self.install_dir = Path(self.temp_dir) / "install"
        self.write("tex.png", "png")
        self.write("data/units.zon", ".{ .count = 3 }")

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def write(self, relative, text):
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")

    def runner(self, jobs=2):
        graph = build_graph(BakeConfig(), asset_root=self.root, build_dir=self.build_dir)
        return LocalRunner(graph, jobs=jobs)

    @patch('subprocess.run')
    def test_run_executes_and_copies(self, mock_run):
        mock_run.side_effect = fake_converter()

        summary = self.runner().run()

        self.assertEqual(summary.executed, 2)
        self.assertEqual(summary.cached, 0)
        self.assertEqual(mock_run.call_count, 1)
        self.assertEqual(mock_run.call_args[0][0][0], "zex")
        self.assertEqual((self.build_dir / "data/units.zon").read_text(encoding="utf-8"), ".{ .count = 3 }")
        self.assertTrue((self.build_dir / "tex.ktx2").exists())

    @patch('subprocess.run')
    def test_second_run_is_cached(self, mock_run):
        mock_run.side_effect = fake_converter()
        self.runner().run()
        mock_run.reset_mock()

        summary = self.runner().run()

        self.assertEqual(summary.executed, 0)
        self.assertEqual(summary.cached, 2)
        mock_run.assert_not_called()

        index = json.loads((self.build_dir / CACHE_INDEX_NAME).read_text())
        self.assertEqual(sorted(index["tasks"]), ["copy data/units.zon", "texture tex.png"])

    @patch('subprocess.run')
    def test_changed_input_reruns(self, mock_run):
        mock_run.side_effect = fake_converter()
        self.runner().run()

        self.write("tex.png", "new png")
        summary = self.runner().run()

        executed = [o.task.name for o in summary.outcomes if o.status is TaskStatus.EXECUTED]
        self.assertEqual(executed, ["texture tex.png"])

    @patch('subprocess.run')
    def test_new_overlay_reruns(self, mock_run):
        mock_run.side_effect = fake_converter()
        self.runner().run()

        self.write("tex.png.zon", ".{ .mips = false }")
        summary = self.runner().run()

        self.assertEqual(summary.executed, 1)

    @patch('subprocess.run')
    def test_missing_output_reruns(self, mock_run):
        mock_run.side_effect = fake_converter()
        self.runner().run()

        (self.build_dir / "tex.ktx2").unlink()
        self.assertEqual(self.runner().run().executed, 1)

    @patch('subprocess.run')
    def test_depfile_prerequisites_are_tracked(self, mock_run):
        header = self.root / "shaders" / "common.glsl"
        self.write("shaders/common.glsl", "// v1")
        self.write("shaders/blur.comp.glsl", "#include \"common.glsl\"")
        mock_run.side_effect = fake_converter(header=header)

        self.runner().run()
        self.assertEqual(self.runner().run().executed, 0)

        self.write("shaders/common.glsl", "// v2")
        summary = self.runner().run()

        executed = [o.task.name for o in summary.outcomes if o.status is TaskStatus.EXECUTED]
        self.assertEqual(executed, ["shader shaders/blur.comp.glsl (comp)"])

    @patch('subprocess.run')
    def test_failure_raises_converter_error(self, mock_run):
        mock_run.return_value = MagicMock(returncode=3, stdout="", stderr="not a png")

        with self.assertRaises(ConverterError) as ctx:
            self.runner().run()

        self.assertEqual(ctx.exception.task, "texture tex.png")
        self.assertEqual(ctx.exception.returncode, 3)
        self.assertIn("not a png", str(ctx.exception))

        index = json.loads((self.build_dir / CACHE_INDEX_NAME).read_text())
        self.assertNotIn("texture tex.png", index["tasks"])
        self.assertIn("copy data/units.zon", index["tasks"])

    @patch('subprocess.run')
    def test_missing_converter_keeps_other_results(self, mock_run):
        self.write("a/first.png", "png")
        converter = fake_converter()

        def run(args, **kwargs):
            if str(self.root / "a" / "first.png") in args:
                raise FileNotFoundError(2, "No such file or directory", args[0])
            return converter(args, **kwargs)
        mock_run.side_effect = run

        with self.assertRaises(FileNotFoundError):
            self.runner(jobs=1).run()

        index = json.loads((self.build_dir / CACHE_INDEX_NAME).read_text())
        self.assertNotIn("texture a/first.png", index["tasks"])
        self.assertIn("texture tex.png", index["tasks"])
        self.assertIn("copy data/units.zon", index["tasks"])

    @patch('subprocess.run')
    def test_install(self, mock_run):
        mock_run.side_effect = fake_converter()
        runner = self.runner()
        runner.run()

        self.assertEqual(runner.install(self.install_dir), 2)
        self.assertTrue((self.install_dir / "tex.ktx2").exists())
        self.assertTrue((self.install_dir / "data/units.zon").exists())

    def test_corrupt_cache_index_is_ignored(self):
        self.build_dir.mkdir(parents=True)
        (self.build_dir / CACHE_INDEX_NAME).write_text("{not json", encoding="utf-8")

        with patch('subprocess.run', side_effect=fake_converter()):
            summary = self.runner(jobs=1).run()
        self.assertEqual(summary.executed, 2)


if __name__ == '__main__':
    unittest.main()
