"""Format validation of extracted values."""

from tenant_extract.validation.formats import (
    FORMAT_RULES,
    FormatCheck,
    FormatReport,
    FormatRule,
    FormatWarning,
    validate_all,
    validate_one,
)

__all__ = [
    "FORMAT_RULES",
    "FormatCheck",
    "FormatReport",
    "FormatRule",
    "FormatWarning",
    "validate_all",
    "validate_one",
]
