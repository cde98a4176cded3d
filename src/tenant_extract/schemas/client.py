"""Pydantic schemas for per-client records and folder status."""

from typing import Any, Dict, List, Optional

import pydantic
from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, ValidationInfo, field_validator

from tenant_extract.constants import VALID_FIELD_TYPES
from tenant_extract.errors import ValidationError
from tenant_extract.schemas.config import DocumentModel, ensure_unique


class ClientRecord(DocumentModel):
    """One tenant's stored configuration.

    Granular overrides (``*Override(s)``) are deltas against the global
    config. ``fieldDefinitions``, ``tagDefinitions``, ``promptTemplate`` and
    ``output`` are legacy full replacements kept for older records.
    """

    name: StrictStr = Field(..., min_length=1)
    enabled: StrictBool
    folder_path: StrictStr = Field(..., alias="folderPath", min_length=1)
    api_key_env_var: Optional[StrictStr] = Field(default=None, alias="apiKeyEnvVar")
    model: Optional[StrictStr] = None

    field_overrides: Optional[Dict[str, Dict[str, Any]]] = Field(default=None, alias="fieldOverrides")
    tag_overrides: Optional[Dict[str, Dict[str, Any]]] = Field(default=None, alias="tagOverrides")
    prompt_override: Optional[Dict[str, Any]] = Field(default=None, alias="promptOverride")
    output_override: Optional[Dict[str, Any]] = Field(default=None, alias="outputOverride")
    raw_prompt: Optional[StrictStr] = Field(default=None, alias="rawPrompt")

    # Legacy full-replacement sections
    field_definitions: Optional[List[Dict[str, Any]]] = Field(default=None, alias="fieldDefinitions")
    tag_definitions: Optional[List[Dict[str, Any]]] = Field(default=None, alias="tagDefinitions")
    prompt_template: Optional[Dict[str, Any]] = Field(default=None, alias="promptTemplate")
    output: Optional[Dict[str, Any]] = None

    @field_validator("field_overrides")
    @classmethod
    def validate_field_override_types(cls, v: Optional[Dict[str, Dict[str, Any]]]):
        """An override that sets a field type must use a known type."""
        if not v:
            return v
        for key, override in v.items():
            field_type = override.get("type")
            if field_type is not None and field_type not in VALID_FIELD_TYPES:
                raise ValueError(
                    f"fieldOverrides.{key}: type must be one of: {', '.join(VALID_FIELD_TYPES)}"
                )
        return v

    @field_validator("field_definitions", "tag_definitions")
    @classmethod
    def validate_legacy_identities(cls, v: Optional[List[Dict[str, Any]]], info: ValidationInfo):
        """Legacy full replacements become the effective list, so identities must be unique."""
        if not v:
            return v
        if info.field_name == "field_definitions":
            section, attribute = "fieldDefinitions", "key"
        else:
            section, attribute = "tagDefinitions", "id"
        ensure_unique([e[attribute] for e in v if e.get(attribute) is not None], section, attribute)
        return v


# Messages for the required shape, keyed by document attribute
_REQUIREMENTS = {
    "name": 'must have a "name" string',
    "enabled": 'must have an "enabled" boolean',
    "folderPath": 'must have a "folderPath" string',
    "apiKeyEnvVar": '"apiKeyEnvVar" must be a string',
    "model": '"model" must be a string',
    "fieldOverrides": '"fieldOverrides" must be an object',
    "tagOverrides": '"tagOverrides" must be an object',
    "promptOverride": '"promptOverride" must be an object',
    "outputOverride": '"outputOverride" must be an object',
    "rawPrompt": '"rawPrompt" must be a string',
}


def validate_client_record(client_id: str, data: Any) -> ClientRecord:
    """Validate a client document, translating schema errors.

    Args:
        client_id: Client identifier, used in error messages.
        data: Raw client document.

    Returns:
        Validated ClientRecord.

    Raises:
        ValidationError: With ``field`` set to the first offending attribute.
    """
    if not isinstance(data, dict):
        raise ValidationError(f'Client "{client_id}": record must be an object')
    try:
        return ClientRecord.model_validate(data)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = str(first["loc"][0]) if first["loc"] else None
        requirement = _REQUIREMENTS.get(field) if field else None
        if requirement is None:
            requirement = first["msg"]
        raise ValidationError(f'Client "{client_id}": {requirement}', field=field) from e


class FolderStatus(BaseModel):
    """Live status of a client's intake folder."""

    model_config = ConfigDict(populate_by_name=True)

    exists: bool = False
    pending_count: int = Field(default=0, alias="pendingCount")
    processed_count: int = Field(default=0, alias="processedCount")
