"""Output naming for processed documents."""

from tenant_extract.output.filenames import (
    format_date_for_display,
    generate_filename,
    sanitize_for_filename,
    unique_filename,
)

__all__ = [
    "format_date_for_display",
    "generate_filename",
    "sanitize_for_filename",
    "unique_filename",
]
