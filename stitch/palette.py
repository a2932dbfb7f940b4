import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from stitch.errors import InvalidColor, PatternFileError

RGB = Tuple[int, int, int]

_HEX_RE = re.compile(r"#?([0-9a-fA-F]{6}|[0-9a-fA-F]{3})")


def hex_to_rgb(hex_str: str) -> RGB:
    """
    Parse a hex color string into an (r, g, b) triple.

    Accepts '#rrggbb', 'rrggbb' and the short '#rgb' form (each digit doubled),
    in either case.

    Args:
        hex_str (str): The color string to decode.

    Returns:
        Tuple[int, int, int]: Channel values in 0-255.

    Raises:
        InvalidColor: If the string does not decode to a 24-bit value.
    """
    if not isinstance(hex_str, str):
        raise InvalidColor(f"Color key must be a string, got {type(hex_str).__name__}: {hex_str!r}")
    match = _HEX_RE.fullmatch(hex_str.strip())
    if not match:
        raise InvalidColor(f"Not a 24-bit hex color: {hex_str!r}")
    digits = match.group(1)
    if len(digits) == 3:
        digits = "".join(c * 2 for c in digits)
    value = int(digits, 16)
    return (value >> 16) & 255, (value >> 8) & 255, value & 255


def rgb_to_hex(rgb: Iterable[int]) -> str:
    r, g, b = (int(c) for c in rgb)
    return f"#{r:02x}{g:02x}{b:02x}"


def canonical_key(hex_str: str) -> str:
    """Lowercase '#rrggbb' form of any color string hex_to_rgb accepts."""
    return rgb_to_hex(hex_to_rgb(hex_str))


def get_initials(name: str) -> str:
    # "Light Sky Blue" -> "LSB"
    return "".join(word[0] for word in name.split(" ") if word).upper()


@dataclass(frozen=True)
class PaletteEntry:
    key: str
    name: str
    rgb: RGB


class Palette:
    """
    Ordered, immutable set of named palette colors.

    Declaration order is kept as an explicit list, so anything that depends on
    it (nearest-color tie-breaks, row color ordering) never relies on mapping
    iteration order. Keys are kept exactly as declared and decoded when the
    palette is built; a malformed or repeated key fails the whole construction.
    Differently spelled keys for the same color (aliases) are allowed: the
    earlier one wins nearest-color ties and canonical-form lookups.
    """

    def __init__(self, entries: Iterable[Tuple[str, str]] = ()):
        built: List[PaletteEntry] = []
        index: Dict[str, int] = {}
        canonical: Dict[str, int] = {}
        for key, name in entries:
            rgb = hex_to_rgb(key)
            if key in index:
                raise InvalidColor(f"Duplicate palette color {key!r}")
            index[key] = len(built)
            canonical.setdefault(rgb_to_hex(rgb), len(built))
            built.append(PaletteEntry(key=key, name=str(name), rgb=rgb))
        self._entries: Tuple[PaletteEntry, ...] = tuple(built)
        self._index = index
        self._canonical = canonical

    @classmethod
    def from_mapping(cls, colors: Mapping[str, str]) -> "Palette":
        return cls(colors.items())

    @property
    def entries(self) -> Tuple[PaletteEntry, ...]:
        return self._entries

    @property
    def keys(self) -> List[str]:
        return [entry.key for entry in self._entries]

    def index_of(self, key: Optional[str]) -> int:
        """Declaration index of key, or -1 when the key is not in this palette."""
        if key is None:
            return -1
        found = self._index.get(key)
        if found is None:
            # Other spellings of a declared color ('#ffffff' for '#FFF')
            try:
                found = self._canonical.get(canonical_key(key))
            except InvalidColor:
                found = None
        return -1 if found is None else found

    def name_of(self, key: Optional[str]) -> Optional[str]:
        idx = self.index_of(key)
        return self._entries[idx].name if idx >= 0 else None

    def rgb_of(self, key: Optional[str]) -> Optional[RGB]:
        idx = self.index_of(key)
        return self._entries[idx].rgb if idx >= 0 else None

    def to_mapping(self) -> Dict[str, str]:
        return {entry.key: entry.name for entry in self._entries}

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.index_of(key) >= 0

    def __iter__(self) -> Iterator[PaletteEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Palette):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        return f"Palette({[(e.key, e.name) for e in self._entries]!r})"


def load_pattern(path: Union[str, Path]) -> Palette:
    """
    Load the palette from a pattern JSON file.

    The file must hold an object with a "colors" member mapping hex keys to
    display names. Entry order in the file is the palette order.

    Raises:
        PatternFileError: Missing/unreadable file, invalid JSON or no "colors" object.
        InvalidColor: A color key in the file is malformed or duplicated.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)  # dicts keep document order
    except FileNotFoundError:
        raise PatternFileError(f"Pattern file not found: {path}")
    except json.JSONDecodeError as e:
        raise PatternFileError(f"Pattern file {path} is not valid JSON: {e}")
    except (OSError, UnicodeDecodeError) as e:
        raise PatternFileError(f"Could not read pattern file {path}: {e}")

    if not isinstance(document, dict):
        raise PatternFileError(f"Pattern file {path} must contain a JSON object.")
    colors = document.get("colors")
    if not isinstance(colors, dict):
        raise PatternFileError(f"Pattern file {path} has no 'colors' object.")
    for key, name in colors.items():
        if not isinstance(name, str):
            raise PatternFileError(f"Display name for {key!r} in {path} must be a string.")
    return Palette.from_mapping(colors)


def save_pattern(palette: Palette, path: Union[str, Path]) -> Path:
    """Write palette as a pattern JSON file ({"colors": {...}}) and return the path."""
    path = Path(path)
    if not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"colors": palette.to_mapping()}, f, indent=2)
        f.write("\n")
    return path
