"""
Unit tests for converter command lines.
"""

import unittest
from pathlib import Path

from ..config import BakeConfig
from ..converters.base import BuildLayout, ConverterError, depfile_for
from ..converters.font_atlas import font_atlas_command
from ..converters.shader import ShaderCompilerOptions, shader_command, shader_output_suffix
from ..converters.texture import texture_command


class ConverterTestCase(unittest.TestCase):

    def setUp(self):
        self.layout = BuildLayout(asset_root=Path("assets"), build_dir=Path("build"))


class TestTextureCommand(ConverterTestCase):
    """Test texture converter arguments."""

    def test_overlays_in_chain_order(self):
        command = texture_command("zex", self.layout, "a/tex.png", [".png.zon", "a/tex.png.zon"], "a/tex.ktx2")

        self.assertEqual(command, (
            "zex",
            "--config", str(Path("assets") / ".png.zon"),
            "--config", str(Path("assets") / "a/tex.png.zon"),
            "--input", str(Path("assets") / "a/tex.png"),
            "--output", str(Path("build") / "a/tex.ktx2"),
        ))

    def test_without_overlays(self):
        command = texture_command("zex", self.layout, "tex.png", [], "tex.ktx2")
        self.assertNotIn("--config", command)


class TestShaderCommand(ConverterTestCase):
    """Test shader compiler arguments."""

    def command(self, config, stage="comp"):
        options = ShaderCompilerOptions.from_config(config)
        return shader_command(
            "shader_compiler", options, self.layout,
            "s/x.comp.glsl", stage, depfile_for("s/x.comp.spv"), "s/x.comp.spv",
        )

    def test_debug_command(self):
        command = self.command(BakeConfig())

        self.assertEqual(command, (
            "shader_compiler",
            "--scalar-block-layout",
            "--default-version", "460",
            "--target", "Vulkan-1.3",
            "--stage", "comp",
            "--debug",
            "--define", "RUNTIME_SAFETY=1",
            "--write-deps", str(Path("build") / "s/x.comp.spv.d"),
            str(Path("assets") / "s/x.comp.glsl"),
            str(Path("build") / "s/x.comp.spv"),
        ))

    def test_release_safe(self):
        command = self.command(BakeConfig(optimize="ReleaseSafe"))
        self.assertIn("--optimize-perf", command)
        self.assertNotIn("--optimize-size", command)
        self.assertIn("RUNTIME_SAFETY=1", command)

    def test_release_fast(self):
        command = self.command(BakeConfig(optimize="ReleaseFast"))
        self.assertIn("--optimize-perf", command)
        self.assertNotIn("--optimize-size", command)
        self.assertIn("RUNTIME_SAFETY=0", command)
        self.assertIn("--debug", command)

    def test_release_small(self):
        command = self.command(BakeConfig(optimize="ReleaseSmall"))
        self.assertIn("--optimize-perf", command)
        self.assertIn("--optimize-size", command)
        self.assertIn("RUNTIME_SAFETY=0", command)

    def test_debug_info_disabled(self):
        command = self.command(BakeConfig(shader_debug_info=False))
        self.assertNotIn("--debug", command)

    def test_preambles_first_and_absolute(self):
        config = BakeConfig(shader_preambles=["shaders/prelude.glsl"], shader_include_paths=["shaders/include"])
        command = self.command(config)

        self.assertEqual(command[1:3], ("--preamble", str(Path("shaders/prelude.glsl").resolve())))
        index = command.index("--include-path")
        self.assertEqual(command[index + 1], str(Path("shaders/include").resolve()))

    def test_extra_defines_follow_safety(self):
        command = self.command(BakeConfig(shader_defines=["MAX_LIGHTS=8"]))
        defines = [command[i + 1] for i, arg in enumerate(command) if arg == "--define"]
        self.assertEqual(defines, ["RUNTIME_SAFETY=1", "MAX_LIGHTS=8"])

    def test_program_defines(self):
        options = ShaderCompilerOptions()
        command = shader_command("sc", options, self.layout, "a.vf.glsl", "vert",
                                 "a.vert.spv.d", "a.vert.spv", program_defines=["VERTEX=1"])
        self.assertIn("VERTEX=1", command)

    def test_unknown_stage(self):
        with self.assertRaises(ValueError):
            shader_command("sc", ShaderCompilerOptions(), self.layout, "a.glsl", "geom", "a.d", "a.spv")

    def test_output_suffix(self):
        self.assertEqual(shader_output_suffix("frag"), ".frag.spv")


class TestFontAtlasCommand(ConverterTestCase):
    """Test font atlas compiler arguments."""

    def test_command(self):
        command = font_atlas_command(
            "font_atlas_compiler", self.layout, "fonts/ui.atlas.zon",
            "fonts/ui.atlas.d", "fonts/ui.atlas", "fonts/ui.atlas.ktx2",
        )

        self.assertEqual(command, (
            "font_atlas_compiler",
            "--config-path", str(Path("assets") / "fonts/ui.atlas.zon"),
            "--write-deps", str(Path("build") / "fonts/ui.atlas.d"),
            "--output-metadata-path", str(Path("build") / "fonts/ui.atlas"),
            "--output-atlas-path", str(Path("build") / "fonts/ui.atlas.ktx2"),
        ))


class TestConverterError(unittest.TestCase):
    """Test converter error formatting."""

    def test_message_includes_stderr(self):
        error = ConverterError("texture tex.png", 2, "bad png\n")
        self.assertEqual(str(error), "texture tex.png: converter exited with status 2\nbad png")
        self.assertEqual(error.returncode, 2)

    def test_message_without_stderr(self):
        self.assertEqual(str(ConverterError("copy x.zon", 1)), "copy x.zon: converter exited with status 1")


if __name__ == '__main__':
    unittest.main()
