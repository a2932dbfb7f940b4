import typer
from stitch import file_utils, legend, palette_tools
from stitch.errors import StitchError
from stitch.palette import Palette, load_pattern, save_pattern
from stitch.quantize import load_image, quantize, grid_size
from stitch.row_view import analyze_row, clamp_row, RowView
from pathlib import Path
from typing import Optional, List, Dict
from enum import Enum
import traceback
import sys

import rich.traceback


class PatternFile(Enum):
    GRID_PNG = "grid_png"
    GRID_SVG = "grid_svg"
    PALETTE_LEGEND = "palette_legend"
    ROW_VIEW = "row_view"
    PATTERN_JSON = "pattern_json"


# Map PatternFile enum members to their base filenames
PATTERN_FILE_BASENAMES: Dict[PatternFile, str] = {
    PatternFile.GRID_PNG: "pattern-grid.png",
    PatternFile.GRID_SVG: "pattern-grid.svg",
    PatternFile.PALETTE_LEGEND: "palette-legend.png",
    PatternFile.ROW_VIEW: "row-{row:03d}.png",
    PatternFile.PATTERN_JSON: "pattern.json",
}


def output_paths_for(output_dir: Path, row: int) -> Dict[PatternFile, Path]:
    return {key: output_dir / name.format(row=row) for key, name in PATTERN_FILE_BASENAMES.items()}


def validate_output_dir(output_paths: Dict[PatternFile, Path], expect: List[PatternFile], overwrite: bool = False):
    if overwrite:
        return
    clobbered = [str(output_paths[key]) for key in expect if output_paths[key].exists()]
    if clobbered:
        typer.secho("Error: Files already exist:", fg=typer.colors.RED)
        for path_str in clobbered:
            typer.secho(f"  {path_str}", fg=typer.colors.RED)
        typer.secho("Use --yes (-y) to overwrite.", fg=typer.colors.YELLOW)
        raise typer.Exit(code=1)


def describe_cell(key: Optional[str], palette: Palette) -> str:
    if key is None:
        return "(empty)"
    name = palette.name_of(key)
    return f"{name} ({key})" if name else key


def echo_row_view(row_view: RowView, palette: Palette, total_rows: int):
    typer.secho(f"\nRow {row_view.row_index} of {total_rows} (counted from the bottom)", bold=True)
    typer.echo("Colours in this row:")
    for key in row_view.colors:
        typer.echo(f"  {describe_cell(key, palette)}")
    typer.echo("Row sequence:")
    for chunk in row_view.chunks:
        names = ", ".join(palette.name_of(key) or str(key) for key in chunk.cells)
        typer.echo(f"  {chunk.label}: {names}")


def stitchrow_cli(
    input_path: Path = typer.Argument(
        ...,
        help="Reference image to turn into a pattern grid (e.g., pattern.png).",
        metavar="INPUT_FILE",
        exists=True, file_okay=True, dir_okay=False, readable=True, resolve_path=True,
    ),
    output_dir: Path = typer.Argument(
        ...,
        help="Directory for output files. Will be created if it doesn't exist.",
        metavar="OUTPUT_DIRECTORY",
        file_okay=False, dir_okay=True, writable=True, resolve_path=True,
    ),
    pattern_path: Optional[Path] = typer.Option(
        None, "--pattern", help="Pattern JSON file whose 'colors' object is the palette (hex -> name).",
        exists=True, file_okay=True, dir_okay=False, readable=True, resolve_path=True,
    ),
    palette_from: Optional[Path] = typer.Option(
        None, "--palette-from", help="Image to extract a palette from instead of --pattern.",
        exists=True, file_okay=True, dir_okay=False, readable=True, resolve_path=True,
    ),
    max_colors: int = typer.Option(
        12, "--max-colors", min=1, max=256, help="Palette size for --palette-from. Default: 12."
    ),
    row: int = typer.Option(
        1, "--row", help="Row to inspect, 1-based from the bottom. Clamped to the grid. Default: 1."
    ),
    cell_size: int = typer.Option(
        file_utils.DEFAULT_CELL_SIZE, "--cell-size", min=1, help="Chart tile size in pixels. Default: 16."
    ),
    swatch_size: int = typer.Option(
        legend.DEFAULT_SWATCH_SIZE, "--swatch-size", min=10, help="Legend and row view swatch size. Default: 40px."
    ),
    font_path: Optional[Path] = typer.Option(
        None, "--font-path", help="Path to a .ttf font file.",
        exists=True, file_okay=True, dir_okay=False, readable=True, resolve_path=True,
    ),
    font_size: int = typer.Option(14, "--font-size", min=1, help="Font size for legend and row view. Default: 14."),
    skip_legend: bool = typer.Option(False, "--skip-legend", help="Skip generating the palette legend."),
    raster_only: bool = typer.Option(False, "--raster-only", help="Skip the SVG chart."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Overwrite existing files."),
):
    """
    Quantize INPUT_FILE against a named palette and write the pattern chart,
    the palette legend and a row-by-row view of the requested row.
    """
    command_line_str = " ".join(sys.argv)

    if pattern_path and palette_from:
        typer.secho("Error: Use either --pattern or --palette-from, not both.", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    if not pattern_path and not palette_from:
        typer.secho("Error: A palette is required: pass --pattern or --palette-from.", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    output_dir.mkdir(parents=True, exist_ok=True)
    font_path_str = str(font_path) if font_path else None

    # 1) Palette
    try:
        if pattern_path:
            palette = load_pattern(pattern_path)
            typer.echo(f"Loaded {len(palette)} palette colors from {pattern_path.name}.")
        else:
            typer.echo(f"Extracting up to {max_colors} colors from {palette_from.name}...")
            palette = palette_tools.extract_palette_from_image(palette_from, max_colors=max_colors)
            typer.echo(f"Extracted {len(palette)} palette colors.")
    except StitchError as e:
        typer.secho(f"Palette error: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    except OSError as e:
        typer.secho(f"Could not read palette source: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    if len(palette) == 0:
        typer.secho("Warning: The palette is empty; every grid cell will be empty.", fg=typer.colors.YELLOW)

    # 2) Image -> grid
    try:
        image = load_image(input_path)
        grid = quantize(image, palette)
    except StitchError as e:
        typer.secho(f"Image error: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    width, height = grid_size(grid)
    typer.echo(f"Built a {width}x{height} pattern grid.")

    row_index = clamp_row(row, height)
    if row_index != row:
        typer.secho(f"Note: Row {row} is outside 1-{height}; showing row {row_index}.", fg=typer.colors.BLUE)

    output_paths = output_paths_for(output_dir, row_index)
    expected: List[PatternFile] = [PatternFile.GRID_PNG, PatternFile.ROW_VIEW]
    if not raster_only:
        expected.append(PatternFile.GRID_SVG)
    if not skip_legend:
        expected.append(PatternFile.PALETTE_LEGEND)
    if palette_from:
        expected.append(PatternFile.PATTERN_JSON)
    validate_output_dir(output_paths, expected, overwrite=yes)

    metadata = {
        "SourceImage": str(input_path),
        "GridSize": f"{width}x{height}",
        "PaletteColors": str(len(palette)),
    }

    # 3) Outputs
    try:
        if palette_from:
            save_pattern(palette, output_paths[PatternFile.PATTERN_JSON])
            typer.echo(f"Extracted palette saved to: {output_paths[PatternFile.PATTERN_JSON]}")

        grid_image = file_utils.render_grid_image(grid, palette, cell_size=cell_size)
        file_utils.save_pattern_png(
            grid_image,
            output_paths[PatternFile.GRID_PNG],
            command_line_invocation=command_line_str,
            additional_metadata={**metadata, "FileType": "Pattern Grid", "CellSize": str(cell_size)},
        )
        typer.echo(f"Pattern grid saved to: {output_paths[PatternFile.GRID_PNG]}")

        if not raster_only:
            file_utils.save_grid_svg(
                grid, palette, output_paths[PatternFile.GRID_SVG],
                cell_size=cell_size,
                command_line_invocation=command_line_str,
                additional_metadata=metadata,
            )
            typer.echo(f"Pattern chart SVG saved to: {output_paths[PatternFile.GRID_SVG]}")

        if not skip_legend:
            legend_image = legend.create_legend_image(
                palette, font_path=font_path_str, font_size=font_size, swatch_size=swatch_size
            )
            if legend_image:
                file_utils.save_pattern_png(
                    legend_image,
                    output_paths[PatternFile.PALETTE_LEGEND],
                    command_line_invocation=command_line_str,
                    additional_metadata={"FileType": "Palette Legend", "PaletteColors": str(len(palette))},
                )
                typer.echo(f"Palette legend saved to: {output_paths[PatternFile.PALETTE_LEGEND]}")
            else:
                typer.secho("Warning: Palette legend not generated (empty palette).", fg=typer.colors.YELLOW)

        row_view = analyze_row(row_index, grid, palette)
        row_image = legend.create_row_image(
            row_view, palette, font_path=font_path_str, font_size=font_size, swatch_size=swatch_size
        )
        if row_image:
            file_utils.save_pattern_png(
                row_image,
                output_paths[PatternFile.ROW_VIEW],
                command_line_invocation=command_line_str,
                additional_metadata={"FileType": "Row View", "Row": str(row_index)},
            )
            typer.echo(f"Row view saved to: {output_paths[PatternFile.ROW_VIEW]}")
    except OSError as e:
        typer.secho(f"Error writing outputs: {e}", fg=typer.colors.RED)
        traceback.print_exc()
        raise typer.Exit(code=1)

    if row_view:
        echo_row_view(row_view, palette, height)

    typer.secho("\nProcessing complete!", fg=typer.colors.GREEN)
    typer.echo(f"Outputs in: {output_dir.resolve()}")


if __name__ == "__main__":
    rich.traceback.install(show_locals=False, suppress=[typer])
    typer.run(stitchrow_cli)
