"""
Tenant Extract - per-client configuration for document extraction.

This package resolves each client's effective extraction configuration from a
global baseline plus overrides, assembles the prompt sent to the extraction
model, and normalizes and format-checks the model's structured response.
"""

__version__ = "0.1.0"

from tenant_extract.config.resolver import ConfigResolver
from tenant_extract.prompting import (
    build_extraction_prompt,
    normalize_analysis,
    parse_response,
)
from tenant_extract.validation import validate_all, validate_one

__all__ = [
    "ConfigResolver",
    "build_extraction_prompt",
    "parse_response",
    "normalize_analysis",
    "validate_one",
    "validate_all",
]
