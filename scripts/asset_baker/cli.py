"""
Command-line interface for the asset baker.
"""

import os
import sys
import json
from pathlib import Path
from typing import Optional
import typer
from rich.console import Console
from rich.table import Table

from .config import BakeConfig
from .errors import BakeError
from .discovery.overlays import merge_overlay_options, resolve_overlay_chain
from .discovery.walker import TreeWalker
from .discovery.classifier import AssetKind
from .graph.builder import build_graph
from .processing.ninja import NinjaWriter, NinjaGenerationError
from .utils.zon import ZonError

app = typer.Typer(
    name="asset-baker",
    help="Asset baker - Discover assets, resolve their zon config and build the conversion graph",
    add_completion=False,
    rich_markup_mode="rich",
    epilog="""
[bold]Examples:[/bold]
  [cyan]asset-baker scan[/cyan]                          List bakeable assets
  [cyan]asset-baker plan --options[/cyan]                Show tasks and merged texture options
  [cyan]asset-baker ninja[/cyan]                         Write build.ninja for the asset tree
  [cyan]asset-baker bake --jobs 8[/cyan]                 Bake and install with the local runner
  [cyan]CONFIG=custom.toml asset-baker bake[/cyan]       Use custom config

[bold]Environment Variables:[/bold]
  Use [cyan]asset-baker config --env-vars[/cyan] to see all available variables.
    """
)
console = Console()


@app.command()
def scan(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    assets_dir: Optional[Path] = typer.Option(None, "--assets", help="Asset root to scan"),
    inspect: bool = typer.Option(False, "--inspect", help="Read texture dimensions")
):
    """List the assets that would be baked."""
    config = _load_config(config_file)
    root = assets_dir or Path(config.assets_dir)

    table = Table(title=f"Assets in {root}")
    table.add_column("Asset", style="cyan")
    table.add_column("Kind", style="green")
    table.add_column("Overlays", style="yellow")
    if inspect:
        table.add_column("Image", style="magenta")

    walker = TreeWalker(root)
    try:
        for result in walker.walk():
            entry = result.entry
            chain = resolve_overlay_chain(entry, result.ancestors)
            row = [entry.path, entry.kind.value, "\n".join(o.path for o in chain) or "-"]
            if inspect:
                row.append(_describe_image(root / entry.path) if entry.kind is AssetKind.TEXTURE else "")
            table.add_row(*row)
    except BakeError as e:
        console.print(f"[red]Bake error:[/red] {e}")
        raise typer.Exit(1)
    except OSError as e:
        console.print(f"[red]Error reading asset tree:[/red] {e}")
        raise typer.Exit(1)

    console.print(table)
    stats = walker.stats
    console.print(
        f"[green]✓[/green] {stats.accepted} assets "
        f"[dim]({stats.overlays} overlays, {stats.ignored} ignored, {stats.skipped} skipped)[/dim]"
    )


@app.command()
def plan(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    assets_dir: Optional[Path] = typer.Option(None, "--assets", help="Asset root to plan"),
    options: bool = typer.Option(False, "--options", help="Show merged overlay options"),
    commands: bool = typer.Option(False, "--commands", help="Show converter command lines")
):
    """Show the conversion tasks for an asset tree."""
    config = _load_config(config_file)
    _validate_or_exit(config)
    root = assets_dir or Path(config.assets_dir)

    try:
        graph = build_graph(config, asset_root=root)
    except BakeError as e:
        console.print(f"[red]Bake error:[/red] {e}")
        raise typer.Exit(1)
    except OSError as e:
        console.print(f"[red]Error reading asset tree:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title=f"Build graph for {root}")
    table.add_column("Task", style="cyan")
    table.add_column("Inputs", style="yellow")
    table.add_column("Outputs", style="green")
    if options:
        table.add_column("Options", style="magenta")
    if commands:
        table.add_column("Command", style="dim")

    for task in graph.tasks:
        row = [task.name, "\n".join(task.inputs), "\n".join(task.outputs)]
        if options:
            try:
                merged = merge_overlay_options(root, task.overlays)
            except ZonError as e:
                console.print(f"[red]Invalid overlay for {task.source}:[/red] {e}")
                raise typer.Exit(1)
            row.append(json.dumps(merged, sort_keys=True) if merged else "-")
        if commands:
            row.append(" ".join(task.command) if task.command else "(copy)")
        table.add_row(*row)

    console.print(table)
    console.print(f"[green]✓[/green] {len(graph)} tasks, {len(graph.producers)} outputs")


@app.command()
def ninja(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    assets_dir: Optional[Path] = typer.Option(None, "--assets", help="Asset root to bake"),
    install_dir: Optional[Path] = typer.Option(None, "--install", help="Install directory"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Ninja file path")
):
    """Write a build.ninja that bakes and installs the asset tree."""
    config = _load_config(config_file)
    _validate_or_exit(config)
    root = assets_dir or Path(config.assets_dir)

    try:
        graph = build_graph(config, asset_root=root)
        path = NinjaWriter().write(graph, install_dir or Path(config.install_dir), output)
    except BakeError as e:
        console.print(f"[red]Bake error:[/red] {e}")
        raise typer.Exit(1)
    except (OSError, NinjaGenerationError) as e:
        console.print(f"[red]Error writing ninja file:[/red] {e}")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] Wrote {path} ({len(graph)} tasks)")


@app.command()
def bake(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    assets_dir: Optional[Path] = typer.Option(None, "--assets", help="Asset root to bake"),
    install_dir: Optional[Path] = typer.Option(None, "--install", help="Install directory"),
    jobs: Optional[int] = typer.Option(None, "--jobs", "-j", help="Parallel converter jobs"),
    steps: Optional[str] = typer.Option(None, "--steps", help="Comma-separated list of specific steps to run"),
    no_install: bool = typer.Option(False, "--no-install", help="Run the converters without installing outputs"),
    show_summary: bool = typer.Option(True, "--summary/--no-summary", help="Show execution summary")
):
    """Bake the asset tree with the local runner and install the outputs."""
    from .pipeline import BakePipeline, BakeStep, PipelineError

    config = _load_config(config_file)
    if jobs is not None:
        config.jobs = jobs

    _validate_or_exit(config)

    pipeline_steps = None
    if steps:
        pipeline_steps = []
        for step_name in (s.strip() for s in steps.split(',')):
            try:
                pipeline_steps.append(BakeStep(step_name))
            except ValueError:
                console.print(f"[red]Invalid step name: {step_name}[/red]")
                console.print(f"Valid steps: {', '.join([s.value for s in BakeStep])}")
                raise typer.Exit(1)
    elif no_install:
        pipeline_steps = [BakeStep.EXECUTE]

    pipeline = BakePipeline(config, asset_root=assets_dir, install_dir=install_dir)
    console.print(f"[bold blue]Baking {pipeline.asset_root}...[/bold blue]")

    try:
        state = pipeline.run(pipeline_steps)
    except BakeError as e:
        console.print(f"[red]Bake error:[/red] {e}")
        raise typer.Exit(1)
    except PipelineError as e:
        console.print(f"[red]Pipeline error:[/red] {e}")
        if e.step:
            console.print(f"[red]Failed at step:[/red] {e.step.value}")
        raise typer.Exit(1)

    console.print("[green]✓ Bake completed successfully![/green]")
    if show_summary:
        _display_bake_summary(state)


@app.command()
def config(
    show: bool = typer.Option(False, "--show", help="Show current configuration"),
    validate_config: bool = typer.Option(False, "--validate", help="Validate configuration file"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Configuration file path"),
    env_vars: bool = typer.Option(False, "--env-vars", help="Show available environment variables")
):
    """Manage baker configuration."""
    if env_vars:
        _display_env_vars()
        return

    if not (show or validate_config):
        console.print("Use --show to display configuration, --validate to check it, or --env-vars to see environment variables.")
        return

    config = _load_config(config_file)

    if show:
        _display_config(config)

    if validate_config:
        _validate_or_exit(config)
        console.print("[green]✓ Configuration is valid[/green]")


@app.command()
def version():
    """Show asset baker version information."""
    from . import __version__

    console.print("[bold]Asset Baker[/bold]")
    console.print(f"Version: {__version__}")
    console.print("Python: " + sys.version.split()[0])


def _load_config(config_file: Optional[Path]) -> BakeConfig:
    """Load configuration from file or use defaults with environment variable support."""
    config = None

    if config_file is None and os.getenv('CONFIG'):
        config_file = Path(os.environ['CONFIG'])

    if config_file:
        if not config_file.exists():
            console.print(f"[red]Configuration file not found:[/red] {config_file}")
            raise typer.Exit(1)
        try:
            config = BakeConfig.from_file(config_file)
        except ValueError as e:
            console.print(f"[red]Invalid configuration file:[/red] {e}")
            raise typer.Exit(1)
        console.print(f"[dim]Using configuration: {config_file}[/dim]")
    else:
        for config_path in (Path("asset_baker.toml"), Path("asset_baker.json")):
            if config_path.exists():
                console.print(f"[dim]Using configuration: {config_path}[/dim]")
                config = BakeConfig.from_file(config_path)
                break

        if config is None:
            console.print("[dim]Using default configuration[/dim]")
            config = BakeConfig()

    return BakeConfig._apply_env_overrides(config)


def _validate_or_exit(config: BakeConfig) -> None:
    """Print configuration errors and exit before any work is done."""
    errors = config.validate()
    if errors:
        console.print("[red]Configuration validation errors:[/red]")
        for error in errors:
            console.print(f"  • {error}")
        raise typer.Exit(1)


def _describe_image(path: Path) -> str:
    """Dimensions and mode of an image, read with Pillow."""
    from PIL import Image

    try:
        with Image.open(path) as image:
            return f"{image.width}×{image.height} {image.mode}"
    except OSError:
        return "[red]unreadable[/red]"


def _display_bake_summary(state):
    """Display bake execution summary."""
    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")

    if state.graph is not None:
        table.add_row("Tasks", str(len(state.graph)))
        table.add_row("Outputs", str(len(state.graph.producers)))
    if state.run_summary is not None:
        table.add_row("Executed", str(state.run_summary.executed))
        table.add_row("Up to date", str(state.run_summary.cached))
        table.add_row("Installed", str(state.run_summary.installed))

    for step, result in state.step_results.items():
        table.add_row(f"Step {step.value}", f"{result.duration:.2f}s")

    console.print(table)


def _display_config(config: BakeConfig) -> None:
    """Display configuration in a formatted table."""
    table = Table(title="Asset Baker Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Assets Directory", config.assets_dir)
    table.add_row("Build Directory", config.build_dir)
    table.add_row("Install Directory", config.install_dir)

    table.add_row("Optimize", config.optimize)
    table.add_row("Jobs", str(config.jobs or "auto"))
    table.add_row("Write Manifest", str(config.write_manifest))
    table.add_row("Manifest Name", config.manifest_name)

    table.add_row("Shader Target", config.shader_target)
    table.add_row("Shader Default Version", config.shader_default_version)
    table.add_row("Shader Debug Info", str(config.shader_debug_info))
    table.add_row("Shader Defines", str(config.shader_defines))
    table.add_row("Shader Include Paths", str(config.shader_include_paths))
    table.add_row("Shader Preambles", str(config.shader_preambles))

    table.add_row("Texture Tool", config.texture_tool)
    table.add_row("Shader Tool", config.shader_tool)
    table.add_row("Font Atlas Tool", config.font_atlas_tool)

    console.print(table)


def _display_env_vars() -> None:
    """Display available environment variables for configuration."""
    table = Table(title="Asset Baker Environment Variables")
    table.add_column("Environment Variable", style="cyan")
    table.add_column("Description", style="white")
    table.add_column("Example", style="green")

    env_vars = [
        ("CONFIG", "Configuration file path", "asset_baker.toml"),
        ("ASSET_BAKER_ASSETS_DIR", "Asset root directory", "assets"),
        ("ASSET_BAKER_BUILD_DIR", "Converter output directory", "build/bake"),
        ("ASSET_BAKER_INSTALL_DIR", "Install directory", "build/assets"),
        ("ASSET_BAKER_OPTIMIZE", "Optimize mode", "ReleaseFast"),
        ("ASSET_BAKER_JOBS", "Parallel converter jobs (0 = per CPU)", "8"),
        ("ASSET_BAKER_WRITE_MANIFEST", "Write manifest.toml (true/false)", "true"),
        ("ASSET_BAKER_SHADER_TARGET", "Shader compiler target", "Vulkan-1.3"),
        ("ASSET_BAKER_SHADER_DEBUG_INFO", "Emit shader debug info (true/false)", "true"),
        ("ASSET_BAKER_SHADER_DEFINES", "Comma-separated extra shader defines", "FOO=1,BAR"),
        ("ASSET_BAKER_TEXTURE_TOOL", "Texture converter executable", "zex"),
        ("ASSET_BAKER_SHADER_TOOL", "Shader compiler executable", "shader_compiler"),
        ("ASSET_BAKER_FONT_ATLAS_TOOL", "Font atlas compiler executable", "font_atlas_compiler"),
    ]

    for var_name, description, example in env_vars:
        table.add_row(var_name, description, example)

    console.print(table)
    console.print("\n[dim]Set these environment variables to override configuration file settings.[/dim]")


if __name__ == "__main__":
    app()
