from PIL import Image, ImageDraw, ImageFont
import os
from typing import Optional, Tuple

from stitch.palette import Palette, get_initials, hex_to_rgb
from stitch.errors import InvalidColor
from stitch.row_view import RowView

DEFAULT_SWATCH_SIZE = 40
BACKGROUND = (255, 255, 255)
TEXT_COLOR = (0, 0, 0)


def load_font(font_path: Optional[str] = None, font_size: int = 14):
    loaded_font = None
    try:
        if font_path and os.path.isfile(font_path):
            loaded_font = ImageFont.truetype(font_path, font_size)
    except IOError:
        pass  # Fall through to the default font

    if not loaded_font:
        try:
            loaded_font = ImageFont.load_default(size=font_size)
        except TypeError:  # Older Pillow versions don't take a size here
            loaded_font = ImageFont.load_default()
    return loaded_font


def _text_box(draw: ImageDraw.ImageDraw, text: str, font) -> Tuple[float, float, float, float]:
    """(x_offset, y_offset, width, height) of text as drawn with font."""
    try:  # Pillow 9.2.0+
        x1, y1, x2, y2 = font.getbbox(text)
    except AttributeError:
        x1, y1, x2, y2 = draw.textbbox((0, 0), text, font=font)
    return x1, y1, x2 - x1, y2 - y1


def _contrast_color(rgb: Tuple[int, int, int]) -> Tuple[int, int, int]:
    # Rec. 601 luma; dark text on light swatches and vice versa
    luma = 0.299 * rgb[0] + 0.587 * rgb[1] + 0.114 * rgb[2]
    return (0, 0, 0) if luma >= 128 else (255, 255, 255)


def _swatch_rgb(key: Optional[str], palette: Palette) -> Optional[Tuple[int, int, int]]:
    rgb = palette.rgb_of(key)
    if rgb is None and key is not None:
        try:
            rgb = hex_to_rgb(key)
        except InvalidColor:
            rgb = None
    return rgb


def _display_name(key: Optional[str], palette: Palette) -> str:
    name = palette.name_of(key)
    if name is not None:
        return name
    return key if key is not None else "(empty)"


def draw_swatch(
    draw: ImageDraw.ImageDraw,
    xy: Tuple[int, int],
    key: Optional[str],
    palette: Palette,
    swatch_size: int,
    font=None,
    show_initials: bool = False,
):
    """Draw one outlined color square at xy, optionally with the color name's initials."""
    x, y = xy
    fill = _swatch_rgb(key, palette)
    draw.rectangle([x, y, x + swatch_size, y + swatch_size], fill=fill, outline=(0, 0, 0))
    if not show_initials or font is None:
        return

    text = get_initials(_display_name(key, palette))
    if not text:
        return
    x_off, y_off, text_w, text_h = _text_box(draw, text, font)
    # Center text within the swatch, correcting for the glyph's offset from its origin
    text_x = x + (swatch_size - text_w) / 2.0 - x_off
    text_y = y + (swatch_size - text_h) / 2.0 - y_off
    text_fill = _contrast_color(fill) if fill is not None else TEXT_COLOR
    draw.text((text_x, text_y), text, fill=text_fill, font=font)


def create_legend_image(palette: Palette, font_path=None, font_size=14, swatch_size=DEFAULT_SWATCH_SIZE, padding=10):
    """
    Creates a palette legend PIL Image object: one row per palette entry, in
    palette order, with the color swatch followed by its display name.

    Args:
        palette (Palette): Colors to list.
        font_path (str, optional): Path to a TTF font file.
        font_size (int): Font size for the names.
        swatch_size (int): Width/height of each color swatch.
        padding (int): Space around elements and between rows.

    Returns:
        PIL.Image.Image: The generated legend image, or None if the palette is empty.
    """
    num_colors = len(palette)
    if num_colors == 0:
        return None

    font = load_font(font_path, font_size)
    measure = ImageDraw.Draw(Image.new("RGB", (1, 1)))
    label_width = max(_text_box(measure, entry.name, font)[2] for entry in palette)

    width = int(padding * 3 + swatch_size + label_width) + 1
    height = (swatch_size * num_colors) + (padding * (num_colors + 1))

    image = Image.new("RGB", (width, height), color=BACKGROUND)
    draw = ImageDraw.Draw(image)

    for idx, entry in enumerate(palette):
        y_start = padding + idx * (swatch_size + padding)
        draw_swatch(draw, (padding, y_start), entry.key, palette, swatch_size)

        x_off, y_off, _, text_h = _text_box(draw, entry.name, font)
        text_x = padding * 2 + swatch_size - x_off
        text_y = y_start + (swatch_size - text_h) / 2.0 - y_off
        draw.text((text_x, text_y), entry.name, fill=TEXT_COLOR, font=font)

    return image


def create_row_image(
    row_view: RowView,
    palette: Palette,
    font_path=None,
    font_size=14,
    swatch_size=DEFAULT_SWATCH_SIZE,
    padding=10,
):
    """
    Render a row view as an image with two sections:
    "Colours in this row" (each distinct color with initials and name) and
    "Row sequence" (one line per chunk, headed by its start-end label).

    Returns:
        PIL.Image.Image: The rendered row view, or None if row_view is None.
    """
    if row_view is None:
        return None

    font = load_font(font_path, font_size)
    measure = ImageDraw.Draw(Image.new("RGB", (1, 1)))

    title_colors = "Colours in this row"
    title_sequence = "Row sequence"
    _, _, _, title_h = _text_box(measure, title_colors, font)
    title_h = int(title_h) + padding

    # Distinct colors: swatch above its name, laid out left to right
    names = [_display_name(key, palette) for key in row_view.colors]
    panel_widths = [max(swatch_size, int(_text_box(measure, n, font)[2])) for n in names]
    colors_width = sum(panel_widths) + padding * (len(panel_widths) + 1)
    colors_height = swatch_size + title_h + padding

    # Sequence: one line per chunk, label column then swatches
    label_width = max((int(_text_box(measure, c.label, font)[2]) for c in row_view.chunks), default=0)
    longest_chunk = max((len(c.cells) for c in row_view.chunks), default=0)
    sequence_width = padding * 2 + label_width + longest_chunk * (swatch_size + padding)
    sequence_height = len(row_view.chunks) * (swatch_size + padding)

    width = max(colors_width, sequence_width, int(_text_box(measure, title_colors, font)[2]) + padding * 2)
    height = padding + title_h + colors_height + title_h + sequence_height + padding

    image = Image.new("RGB", (width, height), color=BACKGROUND)
    draw = ImageDraw.Draw(image)

    y = padding
    draw.text((padding, y), title_colors, fill=TEXT_COLOR, font=font)
    y += title_h

    x = padding
    for key, name, panel_w in zip(row_view.colors, names, panel_widths):
        draw_swatch(draw, (x, y), key, palette, swatch_size, font=font, show_initials=True)
        draw.text((x, y + swatch_size + padding // 2), name, fill=TEXT_COLOR, font=font)
        x += panel_w + padding
    y += colors_height

    draw.text((padding, y), title_sequence, fill=TEXT_COLOR, font=font)
    y += title_h

    for chunk in row_view.chunks:
        x_off, y_off, _, text_h = _text_box(draw, chunk.label, font)
        draw.text((padding - x_off, y + (swatch_size - text_h) / 2.0 - y_off), chunk.label, fill=TEXT_COLOR, font=font)
        x = padding * 2 + label_width
        for key in chunk.cells:
            draw_swatch(draw, (x, y), key, palette, swatch_size, font=font, show_initials=True)
            x += swatch_size + padding
        y += swatch_size + padding

    return image
