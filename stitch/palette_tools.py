from PIL import Image
import numpy as np
from sklearn.cluster import KMeans
from pathlib import Path
from typing import Union

from stitch.palette import Palette, rgb_to_hex


def extract_palette_from_image(path: Union[str, Path], max_colors: int = 12) -> Palette:
    """
    Extract a named palette from an image (e.g. a photo of thread or bead stock).

    Args:
        path (str or Path): Path to the palette image.
        max_colors (int): Maximum number of colors to extract.

    Returns:
        Palette: Colors in cluster order, named "Colour 1", "Colour 2", ...
                 Clusters that land on the same 24-bit color are merged, so the
                 palette may hold fewer than max_colors entries.
    """
    image = Image.open(path).convert("RGB")
    image = image.resize((100, 100))  # Downsample for speed and uniformity
    pixels = np.array(image).reshape(-1, 3)

    # Never ask for more clusters than there are distinct colors
    distinct = len(np.unique(pixels, axis=0))
    n_clusters = max(1, min(max_colors, distinct))

    kmeans = KMeans(n_clusters=n_clusters, random_state=42, n_init="auto")
    kmeans.fit(pixels)
    centers = np.clip(np.rint(kmeans.cluster_centers_), 0, 255).astype(np.uint8)

    entries = []
    seen = set()
    for color in centers:
        key = rgb_to_hex(color.tolist())
        if key in seen:
            continue
        seen.add(key)
        entries.append((key, f"Colour {len(entries) + 1}"))
    return Palette(entries)


def palette_rgb_array(palette: Palette) -> np.ndarray:
    """Kx3 int32 array of the palette colors in declaration order."""
    if len(palette) == 0:
        return np.zeros((0, 3), dtype=np.int32)
    return np.array([entry.rgb for entry in palette], dtype=np.int32)


def nearest_palette_indices(pixels: np.ndarray, palette_rgb: np.ndarray) -> np.ndarray:
    """
    Index of the nearest palette color for every pixel.

    Args:
        pixels (np.ndarray): Nx3 RGB values.
        palette_rgb (np.ndarray): Kx3 palette array, K >= 1, in palette order.

    Returns:
        np.ndarray: N indices into palette_rgb.
    """
    # Squared distances in integer space; exact, so equal colors tie exactly
    diff = pixels.astype(np.int32)[:, None, :] - palette_rgb[None, :, :]
    dists = np.einsum("nkc,nkc->nk", diff, diff)
    # argmin returns the first minimum, i.e. the earliest declared entry wins ties
    return np.argmin(dists, axis=1)
