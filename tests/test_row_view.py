# tests/test_row_view.py
import pytest
from stitch.palette import Palette
from stitch.row_view import (
    CHUNK_SIZE, RowChunk, analyze_row, chunk_row, clamp_row, distinct_colors, parse_row,
)

PALETTE = Palette([("#111111", "Ink"), ("#222222", "Slate"), ("#333333", "Charcoal")])

GRID = (
    ("#111111", "#111111", "#111111", "#111111"),  # top, row 3
    ("#222222", "#222222", "#111111", "#222222"),  # row 2
    ("#333333", "#111111", "#333333", "#222222"),  # bottom, row 1
)


def test_row_one_is_the_bottom_row():
    view = analyze_row(1, GRID, PALETTE)
    assert view.row_index == 1
    assert view.cells == GRID[-1]
    assert analyze_row(3, GRID, PALETTE).cells == GRID[0]


def test_distinct_colors_follow_palette_order():
    view = analyze_row(1, GRID, PALETTE)
    assert view.colors == ("#111111", "#222222", "#333333")


def test_distinct_colors_have_no_duplicates():
    view = analyze_row(3, GRID, PALETTE)
    assert view.colors == ("#111111",)


@pytest.mark.parametrize("row_index", [0, -1, 4, 100])
def test_out_of_range_rows_give_no_view(row_index):
    assert analyze_row(row_index, GRID, PALETTE) is None


def test_missing_grid_or_palette_gives_no_view():
    assert analyze_row(1, None, PALETTE) is None
    assert analyze_row(1, (), PALETTE) is None
    assert analyze_row(1, GRID, None) is None


def test_non_integer_row_gives_no_view():
    assert analyze_row(1.0, GRID, PALETTE) is None
    assert analyze_row("1", GRID, PALETTE) is None
    assert analyze_row(True, GRID, PALETTE) is None


def test_unknown_keys_sort_last_in_first_seen_order():
    row = ("#abcdef", "#333333", None, "#fedcba", "#111111", "#abcdef")
    assert distinct_colors(row, PALETTE) == ["#111111", "#333333", "#abcdef", None, "#fedcba"]


def test_chunks_of_23_cells():
    chunks = chunk_row(list(range(23)))

    assert [c.label for c in chunks] == ["1-10", "11-20", "21-23"]
    assert [len(c.cells) for c in chunks] == [10, 10, 3]
    assert chunks[2] == RowChunk(start=21, end=23, cells=(20, 21, 22))


def test_chunks_exact_multiple_and_short_rows():
    assert [c.label for c in chunk_row(["a"] * 20)] == ["1-10", "11-20"]
    assert [c.label for c in chunk_row(["a"] * 3)] == ["1-3"]
    assert chunk_row([]) == []


def test_chunks_reassemble_the_row():
    row = tuple(PALETTE.keys[i % 3] for i in range(37))
    grid = (row, row[::-1])
    for row_index in (1, 2):
        view = analyze_row(row_index, grid, PALETTE)
        flattened = tuple(cell for chunk in view.chunks for cell in chunk.cells)
        assert flattened == grid[len(grid) - row_index]
        assert all(len(c.cells) <= CHUNK_SIZE for c in view.chunks)


def test_chunk_size_must_be_positive():
    with pytest.raises(ValueError):
        chunk_row(["a"], size=0)


def test_clamp_row():
    assert clamp_row(0, 5) == 1
    assert clamp_row(3, 5) == 3
    assert clamp_row(9, 5) == 5
    assert clamp_row(4, 0) == 1


def test_parse_row():
    assert parse_row("4", 5) == 4
    assert parse_row(" 2 ", 5) == 2
    assert parse_row("6", 5) == 1
    assert parse_row("0", 5, default=3) == 3
    assert parse_row("abc", 5) == 1
    assert parse_row(None, 5) == 1
