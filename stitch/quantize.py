from PIL import Image, UnidentifiedImageError
import numpy as np
from dataclasses import dataclass
import operator
from pathlib import Path
from typing import Optional, Tuple, Union

from stitch.errors import InvalidImage
from stitch.palette import Palette
from stitch.palette_tools import nearest_palette_indices, palette_rgb_array

Cell = Optional[str]
Row = Tuple[Cell, ...]
Grid = Tuple[Row, ...]


@dataclass(frozen=True)
class RgbaImage:
    """Decoded image: width x height pixels, 4 bytes (R, G, B, A) each, row-major."""
    width: int
    height: int
    data: bytes

    def validate(self) -> Tuple[int, int]:
        """Check dimensions against the buffer and return them as plain ints (width, height)."""
        try:
            # operator.index accepts numpy integers (e.g. sizes from an ndarray shape)
            width, height = operator.index(self.width), operator.index(self.height)
        except TypeError:
            raise InvalidImage(f"Image dimensions must be integers, got {self.width!r}x{self.height!r}.")
        if width <= 0 or height <= 0:
            raise InvalidImage(f"Image dimensions must be positive, got {width}x{height}.")
        expected = width * height * 4
        if len(self.data) != expected:
            raise InvalidImage(
                f"Pixel buffer holds {len(self.data)} bytes, expected {expected} "
                f"for a {width}x{height} RGBA image."
            )
        return width, height

    def rgb_array(self) -> np.ndarray:
        """HxWx3 uint8 view of the color channels (alpha dropped)."""
        width, height = self.validate()
        pixels = np.frombuffer(bytes(self.data), dtype=np.uint8).reshape(height, width, 4)
        return pixels[:, :, :3]

    @classmethod
    def from_pil(cls, image: Image.Image) -> "RgbaImage":
        rgba = image.convert("RGBA")
        width, height = rgba.size
        return cls(width=width, height=height, data=rgba.tobytes())


def load_image(path: Union[str, Path]) -> RgbaImage:
    """
    Decode an image file into an RgbaImage.

    Raises:
        InvalidImage: If the file is missing or Pillow cannot decode it.
    """
    try:
        with Image.open(path) as image:
            return RgbaImage.from_pil(image)
    except FileNotFoundError:
        raise InvalidImage(f"Image file not found: {path}")
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImage(f"Could not decode image {path}: {e}")


def quantize(image: RgbaImage, palette: Palette) -> Grid:
    """
    Map every pixel of image to the closest palette color.

    Distance is squared Euclidean over RGB; alpha is ignored. On equal distance
    the entry declared first in the palette wins. An empty palette yields a grid
    of None cells.

    Args:
        image (RgbaImage): Source pixels.
        palette (Palette): Colors to match against.

    Returns:
        Grid: image.height rows of image.width palette keys, top row first.

    Raises:
        InvalidImage: If the image dimensions or buffer size are inconsistent.
    """
    rgb = image.rgb_array()
    height, width = rgb.shape[:2]

    if len(palette) == 0:
        empty_row: Row = (None,) * width
        return tuple(empty_row for _ in range(height))

    keys = palette.keys
    palette_rgb = palette_rgb_array(palette)

    # One row at a time keeps the distance matrix at width x palette size
    grid = []
    for y in range(height):
        nearest = nearest_palette_indices(rgb[y], palette_rgb)
        grid.append(tuple(keys[i] for i in nearest))
    return tuple(grid)


def grid_size(grid: Grid) -> Tuple[int, int]:
    """(width, height) of a grid; (0, 0) for an empty one."""
    if not grid:
        return 0, 0
    return len(grid[0]), len(grid)
