"""
Configuration management for the asset baker.
Supports TOML and JSON configuration files with environment overrides and validation.
"""

import os
import json
import tomllib
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Any, Union
from pathlib import Path


class OptimizeMode(Enum):
    """Build optimization modes, mirroring the engine's build modes."""
    DEBUG = "Debug"
    RELEASE_SAFE = "ReleaseSafe"
    RELEASE_FAST = "ReleaseFast"
    RELEASE_SMALL = "ReleaseSmall"


@dataclass
class BakeConfig:
    """Main configuration class for the asset baker."""

    # Paths
    assets_dir: str = "assets"
    build_dir: str = "build/bake"
    install_dir: str = "build/assets"

    # Build settings
    optimize: str = OptimizeMode.DEBUG.value
    jobs: int = 0
    write_manifest: bool = True
    manifest_name: str = "manifest.toml"

    # Shader compiler settings
    shader_target: str = "Vulkan-1.3"
    shader_default_version: str = "460"
    # Emitted in every optimize mode
    shader_debug_info: bool = True
    shader_defines: List[str] = field(default_factory=list)
    shader_include_paths: List[str] = field(default_factory=list)
    shader_preambles: List[str] = field(default_factory=list)

    # External converters
    texture_tool: str = "zex"
    shader_tool: str = "shader_compiler"
    font_atlas_tool: str = "font_atlas_compiler"

    @property
    def optimize_mode(self) -> OptimizeMode:
        return OptimizeMode(self.optimize)

    @property
    def effective_jobs(self) -> int:
        """Worker count for the local runner, 0 meaning one per CPU."""
        return self.jobs if self.jobs > 0 else (os.cpu_count() or 1)

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "BakeConfig":
        """Load configuration from TOML or JSON file."""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if config_path.suffix.lower() == '.toml':
            return cls._from_toml(config_path)
        elif config_path.suffix.lower() == '.json':
            return cls._from_json(config_path)
        else:
            raise ValueError(f"Unsupported configuration format: {config_path.suffix}")

    @classmethod
    def _from_toml(cls, config_path: Path) -> "BakeConfig":
        with open(config_path, 'rb') as f:
            data = tomllib.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_json(cls, config_path: Path) -> "BakeConfig":
        with open(config_path, 'r') as f:
            data = json.load(f)
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "BakeConfig":
        """Create configuration from a dictionary of sections."""
        config_data = {}

        if 'paths' in data:
            paths = data['paths']
            for key in ('assets_dir', 'build_dir', 'install_dir'):
                if key in paths:
                    config_data[key] = paths[key]

        if 'build' in data:
            build = data['build']
            for key in ('optimize', 'jobs', 'write_manifest', 'manifest_name'):
                if key in build:
                    config_data[key] = build[key]

        if 'shader' in data:
            shader = data['shader']
            config_data['shader_target'] = shader.get('target', 'Vulkan-1.3')
            config_data['shader_default_version'] = str(shader.get('default_version', '460'))
            config_data['shader_debug_info'] = shader.get('debug_info', True)
            config_data['shader_defines'] = list(shader.get('defines', []))
            config_data['shader_include_paths'] = list(shader.get('include_paths', []))
            config_data['shader_preambles'] = list(shader.get('preambles', []))

        if 'tools' in data:
            tools = data['tools']
            config_data['texture_tool'] = tools.get('texture', 'zex')
            config_data['shader_tool'] = tools.get('shader', 'shader_compiler')
            config_data['font_atlas_tool'] = tools.get('font_atlas', 'font_atlas_compiler')

        return cls(**config_data)

    @classmethod
    def default(cls) -> "BakeConfig":
        """Create default configuration with environment variable overrides."""
        return cls._apply_env_overrides(cls())

    @classmethod
    def _apply_env_overrides(cls, config: "BakeConfig") -> "BakeConfig":
        """Apply ASSET_BAKER_* environment variable overrides to configuration."""

        # Paths
        if os.getenv('ASSET_BAKER_ASSETS_DIR'):
            config.assets_dir = os.getenv('ASSET_BAKER_ASSETS_DIR', 'assets')

        if os.getenv('ASSET_BAKER_BUILD_DIR'):
            config.build_dir = os.getenv('ASSET_BAKER_BUILD_DIR', 'build/bake')

        if os.getenv('ASSET_BAKER_INSTALL_DIR'):
            config.install_dir = os.getenv('ASSET_BAKER_INSTALL_DIR', 'build/assets')

        # Build settings
        if os.getenv('ASSET_BAKER_OPTIMIZE'):
            config.optimize = os.getenv('ASSET_BAKER_OPTIMIZE', 'Debug')

        if os.getenv('ASSET_BAKER_JOBS'):
            config.jobs = int(os.getenv('ASSET_BAKER_JOBS', '0'))

        if os.getenv('ASSET_BAKER_WRITE_MANIFEST'):
            config.write_manifest = os.getenv('ASSET_BAKER_WRITE_MANIFEST', 'true').lower() == 'true'

        # Shader compiler settings
        if os.getenv('ASSET_BAKER_SHADER_TARGET'):
            config.shader_target = os.getenv('ASSET_BAKER_SHADER_TARGET', 'Vulkan-1.3')

        if os.getenv('ASSET_BAKER_SHADER_DEBUG_INFO'):
            config.shader_debug_info = os.getenv('ASSET_BAKER_SHADER_DEBUG_INFO', 'true').lower() == 'true'

        if os.getenv('ASSET_BAKER_SHADER_DEFINES'):
            config.shader_defines = os.getenv('ASSET_BAKER_SHADER_DEFINES', '').split(',')

        # External converters
        if os.getenv('ASSET_BAKER_TEXTURE_TOOL'):
            config.texture_tool = os.getenv('ASSET_BAKER_TEXTURE_TOOL', 'zex')

        if os.getenv('ASSET_BAKER_SHADER_TOOL'):
            config.shader_tool = os.getenv('ASSET_BAKER_SHADER_TOOL', 'shader_compiler')

        if os.getenv('ASSET_BAKER_FONT_ATLAS_TOOL'):
            config.font_atlas_tool = os.getenv('ASSET_BAKER_FONT_ATLAS_TOOL', 'font_atlas_compiler')

        return config

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        valid_modes = [mode.value for mode in OptimizeMode]
        if self.optimize not in valid_modes:
            errors.append(f"optimize must be one of {', '.join(valid_modes)}")

        if self.jobs < 0:
            errors.append("jobs must not be negative")

        if not self.manifest_name:
            errors.append("manifest_name must not be empty")

        for name in ('texture_tool', 'shader_tool', 'font_atlas_tool'):
            if not getattr(self, name):
                errors.append(f"{name} must not be empty")

        build = Path(self.build_dir).resolve()
        install = Path(self.install_dir).resolve()
        assets = Path(self.assets_dir).resolve()
        if build == assets or install == assets:
            errors.append("build_dir and install_dir must differ from assets_dir")
        if build == install:
            errors.append("build_dir and install_dir must differ")

        return errors
