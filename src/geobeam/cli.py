"""Command-line interface for GeoBeam."""

import json
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn
from rich.table import Table

from . import __version__
from .config import GenerationConfig, BoundingBox, get_preset, list_presets
from .converter import GenerationPipeline, GenerationProgress, GenerationResult
from .errors import GenerationError
from .geo import TERRAIN_SPAN, get_required_tiles
from .log import configure_logging

app = typer.Typer(
    name="geobeam",
    help="Convert OpenStreetMap and elevation data into BeamNG map mods.",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool):
    if value:
        console.print(f"GeoBeam version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level (DEBUG, INFO, WARNING, ERROR)"),
    log_json: bool = typer.Option(False, "--log-json", help="Emit log records as JSON on stderr"),
):
    """GeoBeam: real-world map data to BeamNG level mods."""
    configure_logging(log_level, json_output=log_json)


def _run(config: GenerationConfig, json_progress: bool) -> None:
    """Run the pipeline with either a rich progress bar or JSON progress lines."""
    try:
        pipeline = GenerationPipeline(config)
    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    result: Optional[GenerationResult] = None
    try:
        if json_progress:
            # One record per line for front-ends that spawn this process
            def emit(p: GenerationProgress) -> None:
                typer.echo(json.dumps({"progress": p.percent, "text": p.stage}))

            result = pipeline.run(emit)
        else:
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TaskProgressColumn(),
                console=console,
            ) as progress:
                task = progress.add_task("[cyan]Starting[/cyan]", total=100)

                def progress_callback(p: GenerationProgress):
                    progress.update(task, completed=p.percent, description=f"[cyan]{p.stage}[/cyan]")

                result = pipeline.run(progress_callback)
    except GenerationError as e:
        err_console.print(f"[red]Error[/red] during [bold]{e.stage}[/bold]: {e.message}")
        raise typer.Exit(1)

    if json_progress:
        typer.echo(f"OUTPUT:{result.archive_path}")
        return

    console.print()
    console.print(f"[green]Success![/green] Mod saved to: {result.archive_path}")
    console.print(f"  Objects: {result.feature_count}")
    console.print(f"  Road segments: {result.segment_count}")
    if result.placeholder_tiles:
        console.print(
            f"[yellow]Warning:[/yellow] {len(result.placeholder_tiles)} elevation tiles "
            f"replaced with flat terrain: {', '.join(result.placeholder_tiles)}"
        )


@app.command()
def generate(
    min_lat: Optional[float] = typer.Option(None, "--min-lat", help="Minimum latitude"),
    min_lon: Optional[float] = typer.Option(None, "--min-lon", help="Minimum longitude"),
    max_lat: Optional[float] = typer.Option(None, "--max-lat", help="Maximum latitude"),
    max_lon: Optional[float] = typer.Option(None, "--max-lon", help="Maximum longitude"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Mod and level name [default: generated_map]"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output directory [default: output]"),
    zoom: Optional[int] = typer.Option(None, "--zoom", "-z", help="Elevation tile zoom level [default: 12]"),
    placeholder_tiles: Optional[bool] = typer.Option(
        None, "--placeholder-tiles/--strict-tiles",
        help="Use flat terrain for failed tiles instead of aborting [default: placeholder-tiles]",
    ),
    assets: Optional[Path] = typer.Option(None, "--assets", help="Directory of placeholder assets to copy into the level"),
    keep_raw: Optional[bool] = typer.Option(None, "--keep-raw/--no-keep-raw", help="Save the raw Overpass response"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Load settings from a saved config JSON"),
    save_config: Optional[Path] = typer.Option(None, "--save-config", help="Write the effective config JSON and continue"),
    json_progress: bool = typer.Option(False, "--json-progress", help="Print progress as JSON lines"),
):
    """Generate a map mod for a bounding box.

    Options given together with --config override the loaded values.

    Example:
        geobeam generate --min-lat 43.73 --min-lon 7.415 --max-lat 43.745 --max-lon 7.43
    """
    coords = (min_lat, min_lon, max_lat, max_lon)
    given = [c is not None for c in coords]
    if any(given) and not all(given):
        err_console.print("[red]Error:[/red] --min-lat, --min-lon, --max-lat and --max-lon must be given together")
        raise typer.Exit(1)

    options = {
        "mod_name": name,
        "output_dir": output,
        "zoom": zoom,
        "placeholder_tiles": placeholder_tiles,
        "assets_dir": assets,
        "keep_raw": keep_raw,
    }
    overrides = {key: value for key, value in options.items() if value is not None}
    if all(given):
        overrides["bounds"] = BoundingBox(min_lat=min_lat, min_lon=min_lon, max_lat=max_lat, max_lon=max_lon)

    if config_file is not None:
        try:
            config = GenerationConfig.load(config_file)
        except (OSError, ValueError, KeyError) as e:
            err_console.print(f"[red]Error:[/red] Cannot load config {config_file}: {e}")
            raise typer.Exit(1)
        config = replace(config, **overrides)
    else:
        if "bounds" not in overrides:
            err_console.print("[red]Error:[/red] --min-lat, --min-lon, --max-lat and --max-lon are required without --config")
            raise typer.Exit(1)
        config = GenerationConfig(**overrides)

    if save_config is not None:
        config.save(save_config)

    if not json_progress:
        b = config.bounds
        console.print(f"[bold]Generating BeamNG map: {config.mod_name}[/bold]")
        console.print(f"  Bounds: ({b.min_lat}, {b.min_lon}) to ({b.max_lat}, {b.max_lon})")
        console.print(f"  Output: {config.output_dir}")
        console.print()

    _run(config, json_progress)


@app.command()
def preset(
    preset_name: str = typer.Argument(..., help="Preset location name"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Mod and level name (defaults to the preset name)"),
    output: Path = typer.Option(Path("output"), "--output", "-o", help="Output directory"),
    zoom: int = typer.Option(12, "--zoom", "-z", help="Elevation tile zoom level"),
    placeholder_tiles: bool = typer.Option(
        True, "--placeholder-tiles/--strict-tiles",
        help="Use flat terrain for failed tiles instead of aborting",
    ),
    json_progress: bool = typer.Option(False, "--json-progress", help="Print progress as JSON lines"),
):
    """Generate a map mod for a preset location.

    Example:
        geobeam preset monaco --name monaco_test
    """
    bounds = get_preset(preset_name)
    if bounds is None:
        err_console.print(f"[red]Error:[/red] Unknown preset: {preset_name}")
        err_console.print("Available presets:")
        for p in list_presets():
            err_console.print(f"  - {p}")
        raise typer.Exit(1)

    config = GenerationConfig(
        bounds=bounds,
        mod_name=name or preset_name.lower().replace("-", "_").replace(" ", "_"),
        output_dir=output,
        zoom=zoom,
        placeholder_tiles=placeholder_tiles,
    )

    if not json_progress:
        console.print(f"[bold]Generating preset '{preset_name}' as BeamNG map: {config.mod_name}[/bold]")
        console.print(f"  Bounds: ({bounds.min_lat}, {bounds.min_lon}) to ({bounds.max_lat}, {bounds.max_lon})")
        console.print()

    _run(config, json_progress)


@app.command("list-presets")
def list_presets_cmd():
    """List available preset locations."""
    table = Table(title="Available Presets")
    table.add_column("Name", style="cyan")
    table.add_column("Location")
    table.add_column("Bounds")

    presets = {
        "monaco": "Monte Carlo, Monaco",
        "nurburg": "Nürburg, Germany",
        "manhattan_midtown": "Midtown Manhattan, New York",
        "san_francisco_lombard": "Lombard Street, San Francisco",
        "tokyo_shibuya": "Shibuya, Tokyo",
    }

    for name in list_presets():
        bounds = get_preset(name)
        location = presets.get(name, "")
        bounds_str = f"({bounds.min_lat:.4f}, {bounds.min_lon:.4f}) to ({bounds.max_lat:.4f}, {bounds.max_lon:.4f})"
        table.add_row(name, location, bounds_str)

    console.print(table)


@app.command()
def info(
    min_lat: float = typer.Option(..., "--min-lat", help="Minimum latitude"),
    min_lon: float = typer.Option(..., "--min-lon", help="Minimum longitude"),
    max_lat: float = typer.Option(..., "--max-lat", help="Maximum latitude"),
    max_lon: float = typer.Option(..., "--max-lon", help="Maximum longitude"),
    zoom: int = typer.Option(12, "--zoom", "-z", help="Elevation tile zoom level"),
):
    """Show information about a region without generating.

    Example:
        geobeam info --min-lat 43.73 --min-lon 7.415 --max-lat 43.745 --max-lon 7.43
    """
    import math

    bounds = BoundingBox(min_lat=min_lat, min_lon=min_lon, max_lat=max_lat, max_lon=max_lon)
    try:
        bounds.validate()
    except ValueError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    # Approximate real-world size
    EARTH_RADIUS = 6_371_000
    lat_meters_per_degree = 2 * math.pi * EARTH_RADIUS / 360
    lon_meters_per_degree = lat_meters_per_degree * math.cos(math.radians(bounds.center_lat))

    width_m = bounds.width_degrees * lon_meters_per_degree
    height_m = bounds.height_degrees * lat_meters_per_degree

    tiles = get_required_tiles(bounds, zoom)

    console.print("[bold]Region Information[/bold]")
    console.print()
    console.print(f"[cyan]Geographic Bounds:[/cyan]")
    console.print(f"  Latitude:  {min_lat:.4f} to {max_lat:.4f}")
    console.print(f"  Longitude: {min_lon:.4f} to {max_lon:.4f}")
    console.print(f"  Center:    ({bounds.center_lat:.4f}, {bounds.center_lon:.4f})")
    console.print()
    console.print(f"[cyan]Real-world Size:[/cyan]")
    console.print(f"  Width:  {width_m / 1000:.2f} km")
    console.print(f"  Height: {height_m / 1000:.2f} km")
    console.print()
    console.print(f"[cyan]Terrain Scale ({TERRAIN_SPAN:.0f} units per side):[/cyan]")
    console.print(f"  East-west:   {width_m / TERRAIN_SPAN:.3f} m/unit")
    console.print(f"  North-south: {height_m / TERRAIN_SPAN:.3f} m/unit")
    console.print()
    console.print(f"[cyan]Required Elevation Tiles (zoom {zoom}):[/cyan] {len(tiles)}")
    for tile in tiles:
        console.print(f"  - {tile.path}")


if __name__ == "__main__":
    app()
