"""Pydantic schemas for global config, client records and resolved views."""

from tenant_extract.schemas.client import ClientRecord, FolderStatus, validate_client_record
from tenant_extract.schemas.config import (
    FieldDefinition,
    GlobalConfig,
    OutputSettings,
    ProcessingSettings,
    PromptTemplate,
    TagDefinition,
    TagParameter,
)
from tenant_extract.schemas.effective import (
    AnnotatedClient,
    AnnotatedConfig,
    AnnotatedField,
    AnnotatedFilenameTemplate,
    AnnotatedPrompt,
    AnnotatedTag,
    AnnotatedValue,
    ClientFolders,
    ClientSummary,
    EffectiveConfig,
    Source,
)

__all__ = [
    "AnnotatedClient",
    "AnnotatedConfig",
    "AnnotatedField",
    "AnnotatedFilenameTemplate",
    "AnnotatedPrompt",
    "AnnotatedTag",
    "AnnotatedValue",
    "ClientFolders",
    "ClientRecord",
    "ClientSummary",
    "EffectiveConfig",
    "FieldDefinition",
    "FolderStatus",
    "GlobalConfig",
    "OutputSettings",
    "ProcessingSettings",
    "PromptTemplate",
    "Source",
    "TagDefinition",
    "TagParameter",
    "validate_client_record",
]
