"""Model response parsing and normalization."""

import copy
import json
import logging
import re
from typing import Any, Dict, List, Mapping

from tenant_extract.constants import UNKNOWN
from tenant_extract.errors import ParseError
from tenant_extract.schemas.effective import EffectiveConfig
from tenant_extract.validation import validate_all

logger = logging.getLogger(__name__)

# One fenced block spanning the whole response, language tag optional
FENCED_BLOCK = re.compile(r"^```[A-Za-z0-9_-]*[ \t]*\n?(.*?)\n?[ \t]*```$", re.DOTALL)

EXCERPT_LENGTH = 200

FORMAT_WARNINGS_KEY = "_formatWarnings"

TYPE_DEFAULTS = {
    "text": UNKNOWN,
    "date": UNKNOWN,
    "number": 0,
    "boolean": False,
}


def parse_response(raw_text: str) -> Dict[str, Any]:
    """Parse the model's text response into a dict.

    Raises:
        ParseError: If the text is empty, malformed, or not a JSON object.
    """
    text = (raw_text or "").strip()
    match = FENCED_BLOCK.match(text)
    if match:
        text = match.group(1).strip()

    if not text:
        raise ParseError("Empty response from extraction model")

    excerpt = text[:EXCERPT_LENGTH]
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Failed to parse model response as JSON: {e}", excerpt) from e

    if not isinstance(payload, dict):
        raise ParseError(
            f"Expected a JSON object in model response, got {type(payload).__name__}", excerpt
        )
    return payload


def _default_for(field_type: str) -> Any:
    if field_type == "array":
        return []
    return TYPE_DEFAULTS.get(field_type, UNKNOWN)


def normalize_analysis(parsed: Mapping[str, Any], config: EffectiveConfig) -> Dict[str, Any]:
    """Fill defaults, coerce tags and apply format corrections.

    - Every enabled field key is present; missing values get a type default.
    - ``paymentDate`` falls back to ``invoiceDate`` when both are enabled fields.
    - Every enabled tag id is present under ``tags`` as a boolean.
    - Format corrections are applied; format warnings go under ``_formatWarnings``.

    The input is not modified.
    """
    analysis = copy.deepcopy(dict(parsed))
    enabled_fields = config.enabled_fields()
    enabled_keys = {f.key for f in enabled_fields}

    for field_def in enabled_fields:
        if analysis.get(field_def.key) is None:
            analysis[field_def.key] = _default_for(field_def.type)

    # Both must be enabled; a disabled paymentDate is never filled in
    if {"paymentDate", "invoiceDate"} <= enabled_keys:
        payment = parsed.get("paymentDate")
        invoice = analysis.get("invoiceDate")
        if (not payment or payment == UNKNOWN) and invoice and invoice != UNKNOWN:
            analysis["paymentDate"] = invoice

    if config.tag_definitions:
        tags = analysis.get("tags")
        tags = dict(tags) if isinstance(tags, dict) else {}
        for tag in config.enabled_tags():
            if not isinstance(tags.get(tag.id), bool):
                tags[tag.id] = False
        analysis["tags"] = tags

    report = validate_all(analysis, config.field_definitions)
    analysis = report.corrected
    if report.warnings:
        for warning in report.warnings:
            logger.warning(f"Format warning on '{warning.field}' ({warning.format}): {warning.error}")
        analysis[FORMAT_WARNINGS_KEY] = [w.to_dict() for w in report.warnings]
    return analysis


def get_active_tags(tags: Mapping[str, Any]) -> List[str]:
    """Ids of tags set to true."""
    return [tag_id for tag_id, value in (tags or {}).items() if value is True]
