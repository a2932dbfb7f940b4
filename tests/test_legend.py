# tests/test_legend.py
from PIL import Image
from stitch import legend
from stitch.palette import Palette
from stitch.row_view import analyze_row

PALETTE = Palette([("#ff0000", "Bright Red"), ("#00ff00", "Green"), ("#0000ff", "Deep Sea Blue")])


def test_create_legend_image_returns_image(tmp_path):
    legend_image = legend.create_legend_image(PALETTE, font_size=12, swatch_size=20, padding=5)

    assert isinstance(legend_image, Image.Image)
    # One line per palette entry
    num_colors = len(PALETTE)
    assert legend_image.size[1] == (20 * num_colors) + (5 * (num_colors + 1))
    assert legend_image.size[0] > 20 + 3 * 5

    # First swatch is drawn in the first palette color, inside its outline
    assert legend_image.getpixel((5 + 10, 5 + 10)) == (255, 0, 0)
    assert legend_image.getpixel((5 + 10, 5 + 25 + 10)) == (0, 255, 0)

    outpath = tmp_path / "legend_test_output.png"
    legend_image.save(outpath)
    assert outpath.exists()


def test_create_legend_image_with_empty_palette():
    assert legend.create_legend_image(Palette()) is None


def test_create_row_image_renders_row_view():
    grid = (
        ("#0000ff",) * 12,
        ("#00ff00", "#ff0000") * 6,
    )
    view = analyze_row(1, grid, PALETTE)

    img = legend.create_row_image(view, PALETTE, font_size=10, swatch_size=20, padding=4)

    assert isinstance(img, Image.Image)
    # Two sequence lines (1-10, 11-12) of 20px swatches at least
    assert img.size[1] > 2 * (20 + 4)
    assert img.size[0] >= 10 * (20 + 4)


def test_create_row_image_handles_unknown_and_empty_cells():
    grid = (("#abcdef", None, "#ff0000"),)
    view = analyze_row(1, grid, PALETTE)
    assert isinstance(legend.create_row_image(view, PALETTE), Image.Image)


def test_create_row_image_without_view():
    assert legend.create_row_image(None, PALETTE) is None
