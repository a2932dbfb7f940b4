from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from stitch.palette import Palette
from stitch.quantize import Cell, Grid

CHUNK_SIZE = 10  # Cells per sequence group


@dataclass(frozen=True)
class RowChunk:
    start: int  # 1-based, inclusive
    end: int    # 1-based, inclusive
    cells: Tuple[Cell, ...]

    @property
    def label(self) -> str:
        return f"{self.start}-{self.end}"


@dataclass(frozen=True)
class RowView:
    """Display summary of one grid row: its distinct colors and its chunked sequence."""
    row_index: int
    colors: Tuple[Cell, ...]
    chunks: Tuple[RowChunk, ...]

    @property
    def cells(self) -> Tuple[Cell, ...]:
        return tuple(cell for chunk in self.chunks for cell in chunk.cells)


def distinct_colors(row: Sequence[Cell], palette: Palette) -> List[Cell]:
    """
    Unique cells of row, ordered by their position in palette.

    Cells the palette does not know (including the None marker) go after every
    known color, in the order they first appear in the row.
    """
    unique = list(dict.fromkeys(row))

    def sort_key(cell: Cell) -> Tuple[int, int]:
        idx = palette.index_of(cell)
        return (1, 0) if idx < 0 else (0, idx)

    # sorted() is stable, so unknown cells keep first-appearance order
    return sorted(unique, key=sort_key)


def chunk_row(row: Sequence[Cell], size: int = CHUNK_SIZE) -> List[RowChunk]:
    if size < 1:
        raise ValueError(f"Chunk size must be at least 1, got {size}.")
    chunks = []
    for i in range(0, len(row), size):
        cells = tuple(row[i:i + size])
        chunks.append(RowChunk(start=i + 1, end=min(i + size, len(row)), cells=cells))
    return chunks


def analyze_row(row_index: int, grid: Optional[Grid], palette: Optional[Palette]) -> Optional[RowView]:
    """
    Build the row view for a row counted from the bottom of the grid.

    Args:
        row_index (int): 1-based, 1 is the last (bottom) row of grid.
        grid (Grid): Quantized pattern, top row first.
        palette (Palette): The palette the grid was built with.

    Returns:
        Optional[RowView]: None when there is nothing to show (no grid or
                           palette, or row_index outside 1..len(grid)).
    """
    if not grid or palette is None:
        return None
    if isinstance(row_index, bool) or not isinstance(row_index, int):
        return None
    if not 1 <= row_index <= len(grid):
        return None

    row = grid[len(grid) - row_index]
    return RowView(
        row_index=row_index,
        colors=tuple(distinct_colors(row, palette)),
        chunks=tuple(chunk_row(row)),
    )


def clamp_row(value: int, max_row: int) -> int:
    """Clamp a requested row number into 1..max_row (1 when the grid is empty)."""
    return max(1, min(max_row, value))


def parse_row(text: Optional[str], max_row: int, default: int = 1) -> int:
    """Row number typed by a user, or default when it is not a valid row."""
    try:
        value = int(str(text).strip())
    except (TypeError, ValueError):
        return default
    if 1 <= value <= max_row:
        return value
    return default
