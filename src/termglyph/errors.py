class RenderError(ValueError):
    """Base class for errors raised while rendering a frame."""


class InvalidDimensions(RenderError):
    """Output or source size is zero or negative."""


class EmptyRamp(RenderError):
    """Ascii mode was requested without any ramp characters."""


class UnsupportedColourDepth(RenderError):
    """Palette mapping was requested but no palette is available."""
