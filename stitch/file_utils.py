from pathlib import Path
from PIL import Image, PngImagePlugin
from typing import Optional, Dict, Union
import numpy as np
import svgwrite
import xml.etree.ElementTree as ET
from xml.etree.ElementTree import Element, SubElement
from svgwrite.base import BaseElement
import re

from stitch.errors import InvalidColor
from stitch.palette import Palette, hex_to_rgb
from stitch.quantize import Grid, grid_size

DEFAULT_CELL_SIZE = 16  # Pixels per grid cell in rendered charts
SOFTWARE_TAG = "stitchrow pattern grid generator"
METADATA_PREFIX = "stitchrow:"
STITCHROW_NS_URI = "urn:stitchrow:metadata"


class Verbatim(BaseElement):
    """svgwrite element that emits a pre-built XML block (used for <metadata>)."""

    def __init__(self, xml_string="", elementname="metadata", **kwargs_for_base_element):
        self.elementname = elementname
        super(Verbatim, self).__init__(**kwargs_for_base_element)
        self.xml_string = xml_string

    def write(self, fileobj, indent=0, newline='\n', options=None):
        fileobj.write(self.xml_string)

    def get_xml(self):
        # Drawing.tostring() appends whatever this returns to its ElementTree
        return ET.fromstring(self.xml_string)


def _clean_metadata_key(key: str) -> str:
    key_clean = re.sub(r'\s+', '_', key)
    key_clean = re.sub(r'[^a-zA-Z0-9_.-]', '', key_clean)
    if not key_clean or not re.match(r'^[a-zA-Z_]', key_clean):  # Must start with letter or underscore
        key_clean = "stitchrow_" + key_clean
    return key_clean[:70]  # PNG tEXt keyword limit is 79 bytes, leave room for the prefix


def _cell_rgb(key: Optional[str], palette: Palette):
    rgb = palette.rgb_of(key)
    if rgb is None and key is not None:
        try:
            rgb = hex_to_rgb(key)
        except InvalidColor:
            rgb = None
    return rgb


def render_grid_image(grid: Grid, palette: Palette, cell_size: int = DEFAULT_CELL_SIZE) -> Optional[Image.Image]:
    """
    Draw the grid as cell_size x cell_size colored tiles.

    Empty cells (and cells whose key can't be decoded) are left transparent.

    Returns:
        Optional[PIL.Image.Image]: RGBA chart image, or None for an empty grid.
    """
    width, height = grid_size(grid)
    if width == 0 or height == 0:
        return None
    if cell_size < 1:
        raise ValueError(f"cell_size must be at least 1, got {cell_size}.")

    # Decode each distinct key once
    colors: Dict[Optional[str], Optional[tuple]] = {}
    tiles = np.zeros((height, width, 4), dtype=np.uint8)
    for y, row in enumerate(grid):
        for x, key in enumerate(row):
            if key not in colors:
                colors[key] = _cell_rgb(key, palette)
            rgb = colors[key]
            if rgb is not None:
                tiles[y, x] = (rgb[0], rgb[1], rgb[2], 255)

    small = Image.fromarray(tiles, "RGBA")
    return small.resize((width * cell_size, height * cell_size), Image.Resampling.NEAREST)


def save_pattern_png(
    image_to_save: Image.Image,
    output_path: Union[str, Path],
    command_line_invocation: Optional[str] = None,
    additional_metadata: Optional[Dict[str, str]] = None
) -> Path:
    """
    Saves a PIL Image object as a PNG file, embedding specified metadata as
    'stitchrow:*' tEXt chunks.
    """
    output_path = Path(output_path)
    if not output_path.parent.exists():
        output_path.parent.mkdir(parents=True, exist_ok=True)

    png_info = PngImagePlugin.PngInfo()
    if command_line_invocation:
        png_info.add_text(f"{METADATA_PREFIX}command_line", command_line_invocation)
    png_info.add_text("Software", SOFTWARE_TAG)

    if additional_metadata:
        for key, value in additional_metadata.items():
            png_info.add_text(f"{METADATA_PREFIX}{_clean_metadata_key(key)}", str(value))

    image_to_save.save(output_path, "PNG", pnginfo=png_info)
    return output_path


def save_grid_svg(
    grid: Grid,
    palette: Palette,
    output_path: Union[str, Path],
    cell_size: int = DEFAULT_CELL_SIZE,
    command_line_invocation: Optional[str] = None,
    additional_metadata: Optional[Dict[str, str]] = None
) -> Optional[Path]:
    """
    Write the grid as an SVG chart: one <rect> per non-empty cell, grouped by
    palette color, each group titled with the color's display name.

    Returns:
        Optional[Path]: The written path, or None for an empty grid.
    """
    width, height = grid_size(grid)
    if width == 0 or height == 0:
        return None
    output_path = Path(output_path)
    if not output_path.parent.exists():
        output_path.parent.mkdir(parents=True, exist_ok=True)

    ET.register_namespace('stitchrow', STITCHROW_NS_URI)
    dwg = svgwrite.Drawing(
        filename=str(output_path),
        size=(f"{width * cell_size}px", f"{height * cell_size}px"),
        profile='full'
    )

    # --- Metadata block ---
    metadata_root = Element('metadata')
    metadata_root.set('id', 'stitchrowMetadataContainer')
    custom = SubElement(metadata_root, f'{{{STITCHROW_NS_URI}}}stitchrowMetadata')
    SubElement(custom, f'{{{STITCHROW_NS_URI}}}Software').text = SOFTWARE_TAG
    SubElement(custom, f'{{{STITCHROW_NS_URI}}}GridSize').text = f"{width}x{height}"
    if command_line_invocation:
        SubElement(custom, f'{{{STITCHROW_NS_URI}}}CommandLineInvocation').text = command_line_invocation
    if additional_metadata:
        for key, value in additional_metadata.items():
            SubElement(custom, f'{{{STITCHROW_NS_URI}}}{_clean_metadata_key(key)}').text = str(value)

    dwg.add(Verbatim(
        xml_string=ET.tostring(metadata_root, encoding='unicode', method='xml'),
        elementname='metadata',
        profile=dwg.profile,
        debug=dwg.debug
    ))

    # --- Cells, grouped by color in first-seen order ---
    groups: Dict[str, list] = {}
    for y, row in enumerate(grid):
        for x, key in enumerate(row):
            if key is None or _cell_rgb(key, palette) is None:
                continue
            groups.setdefault(key, []).append((x, y))

    for group_idx, (key, cells) in enumerate(groups.items()):
        r, g, b = _cell_rgb(key, palette)
        group = dwg.g(id=f"color-{group_idx}", fill=f"rgb({r},{g},{b})")
        group.set_desc(title=palette.name_of(key) or key)
        for x, y in cells:
            group.add(dwg.rect(insert=(x * cell_size, y * cell_size), size=(cell_size, cell_size)))
        dwg.add(group)

    dwg.save(pretty=True)
    return output_path
