"""
Command lines for the external converters (texture, shader and font atlas compilers).
"""

from .base import BuildLayout, ConverterError, depfile_for
from .texture import texture_command
from .shader import ShaderCompilerOptions, shader_command, shader_output_suffix
from .font_atlas import font_atlas_command

__all__ = [
    "BuildLayout",
    "ConverterError",
    "depfile_for",
    "texture_command",
    "ShaderCompilerOptions",
    "shader_command",
    "shader_output_suffix",
    "font_atlas_command",
]
