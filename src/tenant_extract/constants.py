"""Shared constants for configuration resolution and prompt assembly."""

import re

VALID_FIELD_TYPES = ("text", "number", "boolean", "date", "array")

# Override section -> (granular override key, legacy full-replacement key)
OVERRIDE_SECTIONS = {
    "fields": ("fieldOverrides", "fieldDefinitions"),
    "tags": ("tagOverrides", "tagDefinitions"),
    "prompt": ("promptOverride", "promptTemplate"),
    "output": ("outputOverride", "output"),
    "model": ("model", None),
}

CLIENT_ID_PATTERN = re.compile(r"^[a-z0-9-]+$")

DEFAULT_PROCESSED_ORIGINAL_SUBFOLDER = "processed-original"
DEFAULT_PROCESSED_ENRICHED_SUBFOLDER = "processed-enriched"
DEFAULT_CSV_FILENAME = "invoice-log.csv"

# Sentinel for a text/date field the model could not determine
UNKNOWN = "Unknown"

FORMAT_NONE = "none"

# Store layout
GLOBAL_CONFIG_FILENAMES = ("config.json", "config.yaml", "config.yml")
CLIENTS_DIRNAME = "clients"
LEGACY_CLIENTS_FILENAME = "clients.json"
