# utils/__init__.py
from .text_utils import (
    sanitize,
    title_case,
    escape_html,
    file_stem,
    underscore_spaces,
    content_disposition,
)
from .date_utils import utc_now, parse_timestamp, timestamp_ms
from .docx_utils import (
    shade_cell,
    set_col_widths,
    apply_grid_borders,
    set_cant_split,
    set_document_font,
    add_hyperlink,
)

__all__ = [
    # text utils
    "sanitize",
    "title_case",
    "escape_html",
    "file_stem",
    "underscore_spaces",
    "content_disposition",
    # date utils
    "utc_now",
    "parse_timestamp",
    "timestamp_ms",
    # docx utils
    "shade_cell",
    "set_col_widths",
    "apply_grid_borders",
    "set_cant_split",
    "set_document_font",
    "add_hyperlink",
]
