"""Template-based filenames for processed documents."""

import re
from pathlib import Path
from typing import Any, Mapping

from tenant_extract.constants import UNKNOWN

# Illegal on at least one common file system
ILLEGAL_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
PLACEHOLDER = re.compile(r"\{(\w+)\}")

MAX_FILENAME_LENGTH = 200
EXTENSION = ".pdf"


def sanitize_for_filename(value: Any) -> str:
    """Strip illegal characters and collapse whitespace. Empty becomes "Unknown"."""
    if value is None:
        return UNKNOWN
    sanitized = re.sub(r"\s+", " ", ILLEGAL_CHARS.sub("", str(value))).strip()
    return sanitized or UNKNOWN


def format_date_for_display(value: Any) -> str:
    """YYYY-MM-DD or YYYYMMDD -> DD.MM.YYYY. Other values pass through."""
    if not value or value == UNKNOWN:
        return UNKNOWN
    digits = re.sub(r"\D", "", str(value))
    if len(digits) >= 8:
        return f"{digits[6:8]}.{digits[4:6]}.{digits[0:4]}"
    return str(value)


def generate_filename(template: str, analysis: Mapping[str, Any]) -> str:
    """Fill ``{field}`` placeholders from an analysis.

    Missing values become "Unknown". The result always ends in ``.pdf`` and
    is truncated to ``MAX_FILENAME_LENGTH`` characters.
    """
    filename = PLACEHOLDER.sub(lambda m: sanitize_for_filename(analysis.get(m.group(1))), template)

    if not filename.lower().endswith(EXTENSION):
        filename += EXTENSION
    if len(filename) > MAX_FILENAME_LENGTH:
        filename = filename[: MAX_FILENAME_LENGTH - len(EXTENSION)] + EXTENSION
    return filename


def unique_filename(output_dir: Path, filename: str) -> str:
    """Append ``(1)``, ``(2)``... until the name is free in ``output_dir``."""
    candidate = filename
    stem, suffix = Path(filename).stem, Path(filename).suffix
    counter = 1
    while (Path(output_dir) / candidate).exists():
        candidate = f"{stem} ({counter}){suffix}"
        counter += 1
    return candidate
