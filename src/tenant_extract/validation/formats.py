"""Format checks for extracted values.

Each field may declare a ``format`` (an ISO standard name). After
extraction the value is checked against it: trivially fixable values are
corrected (e.g. ``eur`` -> ``EUR``), others produce a warning. Format
problems never fail a document.
"""

import datetime
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from tenant_extract.constants import FORMAT_NONE, UNKNOWN


@dataclass(frozen=True)
class FormatCheck:
    """Result of checking one value."""

    valid: bool
    corrected: Optional[str] = None
    error: Optional[str] = None


@dataclass
class FormatWarning:
    """A value that failed its declared format."""

    field: str
    format: str
    value: Any
    error: str

    def to_dict(self) -> Dict[str, Any]:
        return {"field": self.field, "format": self.format, "value": self.value, "error": self.error}


@dataclass
class FormatReport:
    corrected: Dict[str, Any]
    warnings: List[FormatWarning]


@dataclass(frozen=True)
class FormatRule:
    name: str
    label: str
    check: Callable[[str], FormatCheck]


def _valid(value: str, normalized: str) -> FormatCheck:
    if normalized != value:
        return FormatCheck(valid=True, corrected=normalized)
    return FormatCheck(valid=True)


_DATE_WITH_TIME = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:T.*|\s+\d{1,2}:\d{2}.*)$")
_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def check_iso8601(value: str) -> FormatCheck:
    with_time = _DATE_WITH_TIME.match(value)
    date_only = with_time.group(1) if with_time else value

    match = _DATE.match(date_only)
    if not match:
        return FormatCheck(valid=False, error=f"Does not match YYYY-MM-DD pattern: {value}")
    try:
        datetime.date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return FormatCheck(valid=False, error=f"Invalid date values: {value}")
    return _valid(value, date_only)


def _upper_code(length: int, description: str) -> Callable[[str], FormatCheck]:
    pattern = re.compile(rf"^[A-Z]{{{length}}}$")

    def check(value: str) -> FormatCheck:
        upper = value.strip().upper()
        if pattern.match(upper):
            return _valid(value, upper)
        return FormatCheck(valid=False, error=f"Not a valid {description}: {value}")

    return check


def _pattern(regex: str, description: str, strip_whitespace: bool = False) -> Callable[[str], FormatCheck]:
    pattern = re.compile(regex, re.IGNORECASE)

    def check(value: str) -> FormatCheck:
        candidate = re.sub(r"\s", "", value) if strip_whitespace else value
        if pattern.match(candidate):
            return FormatCheck(valid=True)
        return FormatCheck(valid=False, error=f"Not a valid {description}: {value}")

    return check


FORMAT_RULES: Dict[str, FormatRule] = {
    rule.name: rule
    for rule in (
        FormatRule("iso8601", "ISO 8601 date (YYYY-MM-DD)", check_iso8601),
        FormatRule("iso4217", "ISO 4217 currency code", _upper_code(3, "3-letter currency code")),
        FormatRule("iso3166_alpha2", "ISO 3166-1 alpha-2 country code", _upper_code(2, "2-letter country code")),
        FormatRule("iso3166_alpha3", "ISO 3166-1 alpha-3 country code", _upper_code(3, "3-letter country code")),
        FormatRule(
            "iso9362",
            "ISO 9362 BIC/SWIFT code",
            _pattern(r"^[A-Z]{6}[A-Z0-9]{2}([A-Z0-9]{3})?$", "BIC/SWIFT code"),
        ),
        FormatRule(
            "iso13616",
            "ISO 13616 IBAN",
            _pattern(r"^[A-Z]{2}\d{2}[A-Z0-9]{1,30}$", "IBAN format", strip_whitespace=True),
        ),
        FormatRule(
            "iso11649",
            "ISO 11649 creditor reference",
            _pattern(r"^RF\d{2}[A-Z0-9]{1,21}$", "creditor reference (RF format)", strip_whitespace=True),
        ),
        FormatRule(
            "iso17442",
            "ISO 17442 LEI",
            _pattern(r"^[A-Z0-9]{20}$", "LEI (20 alphanumeric chars required)"),
        ),
    )
}


def validate_one(value: Any, format_name: Optional[str]) -> FormatCheck:
    """Check one value against a named format.

    Empty values, the "Unknown" sentinel, ``none`` and unrecognized format
    names are always valid.
    """
    if value is None or value == "" or value == UNKNOWN:
        return FormatCheck(valid=True)
    if not format_name or format_name == FORMAT_NONE:
        return FormatCheck(valid=True)
    rule = FORMAT_RULES.get(format_name)
    if rule is None:
        return FormatCheck(valid=True)
    return rule.check(str(value))


def _attr(definition: Any, name: str) -> Any:
    if isinstance(definition, Mapping):
        return definition.get(name)
    return getattr(definition, name, None)


def validate_all(
    analysis: Optional[Mapping[str, Any]], field_definitions: Optional[Sequence[Any]]
) -> FormatReport:
    """Check every enabled field that declares a format.

    Args:
        analysis: Extracted values keyed by field key.
        field_definitions: ``FieldDefinition`` models or plain dicts.

    Returns:
        FormatReport with a corrected copy of ``analysis`` and the warnings.
    """
    corrected = dict(analysis or {})
    warnings: List[FormatWarning] = []

    for definition in field_definitions or []:
        format_name = _attr(definition, "format")
        if not _attr(definition, "enabled") or not format_name or format_name == FORMAT_NONE:
            continue

        key = _attr(definition, "key")
        value = corrected.get(key)
        result = validate_one(value, format_name)
        if result.corrected is not None:
            corrected[key] = result.corrected
        if not result.valid:
            warnings.append(FormatWarning(field=key, format=format_name, value=value, error=result.error or ""))

    return FormatReport(corrected=corrected, warnings=warnings)
