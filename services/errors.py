# services/errors.py


class DocumentParseError(Exception):
    """The uploaded document could not be converted."""


class RenderError(Exception):
    """The wrapped policy HTML could not be rasterized to PDF."""
