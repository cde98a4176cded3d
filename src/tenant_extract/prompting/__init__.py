"""Prompt assembly and model response handling."""

from tenant_extract.prompting.builder import (
    FieldFilter,
    build_extraction_prompt,
    build_prompt_preview,
    resolve_tag_instruction,
)
from tenant_extract.prompting.response import get_active_tags, normalize_analysis, parse_response

__all__ = [
    "FieldFilter",
    "build_extraction_prompt",
    "build_prompt_preview",
    "get_active_tags",
    "normalize_analysis",
    "parse_response",
    "resolve_tag_instruction",
]
