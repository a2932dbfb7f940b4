class StitchError(ValueError):
    """Base class for input problems raised by the stitch package."""


class InvalidColor(StitchError):
    """A palette key does not decode to a 24-bit RGB value (or is duplicated)."""


class InvalidImage(StitchError):
    """Image dimensions or pixel buffer size are unusable."""


class PatternFileError(StitchError):
    """The pattern file is missing, unreadable or has no usable 'colors' object."""
