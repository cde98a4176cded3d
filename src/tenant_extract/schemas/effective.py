"""Resolved configuration views.

``EffectiveConfig`` is what prompt assembly and response normalization
consume. ``AnnotatedConfig`` is the provenance view for editors; it is a
separate model so annotated data cannot be fed into prompt assembly.
"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from tenant_extract.schemas.client import FolderStatus
from tenant_extract.schemas.config import (
    FieldDefinition,
    OutputSettings,
    ProcessingSettings,
    PromptTemplate,
    TagDefinition,
)

Source = Literal["global", "override", "custom"]


class ClientFolders(BaseModel):
    """Folder layout derived from a client's base folder and global output settings."""

    model_config = ConfigDict(populate_by_name=True)

    base: str
    input: str
    processed_original: str = Field(..., alias="processedOriginal")
    processed_enriched: str = Field(..., alias="processedEnriched")
    csv_path: str = Field(..., alias="csvPath")


class EffectiveConfig(BaseModel):
    """Fully merged configuration for one client."""

    model_config = ConfigDict(populate_by_name=True)

    client_id: str = Field(..., alias="clientId")
    name: str
    enabled: bool
    api_key_env_var: Optional[str] = Field(default=None, alias="apiKeyEnvVar")
    folders: ClientFolders
    processing: ProcessingSettings
    output: OutputSettings
    field_definitions: List[FieldDefinition] = Field(default_factory=list, alias="fieldDefinitions")
    tag_definitions: List[TagDefinition] = Field(default_factory=list, alias="tagDefinitions")
    prompt_template: PromptTemplate = Field(default_factory=PromptTemplate, alias="promptTemplate")
    raw_prompt: Optional[str] = Field(default=None, alias="rawPrompt")
    model: Optional[str] = None

    def enabled_fields(self) -> List[FieldDefinition]:
        return [f for f in self.field_definitions if f.enabled]

    def enabled_tags(self) -> List[TagDefinition]:
        return [t for t in self.tag_definitions if t.enabled]

    def field_keys(self) -> List[str]:
        return [f.key for f in self.field_definitions]


class AnnotatedField(FieldDefinition):
    source: Source = Field(..., alias="_source")


class AnnotatedTag(TagDefinition):
    source: Source = Field(..., alias="_source")
    parameter_sources: Dict[str, Source] = Field(default_factory=dict, alias="_parameterSources")


class AnnotatedPrompt(PromptTemplate):
    source: Source = Field(..., alias="_source")


class AnnotatedValue(BaseModel):
    """A scalar setting together with where it came from."""

    model_config = ConfigDict(populate_by_name=True)

    value: Optional[str] = None
    source: Source = Field(..., alias="_source")


class AnnotatedFilenameTemplate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    template: Optional[str] = None
    source: Source = Field(..., alias="_source")


class AnnotatedClient(BaseModel):
    """Client metadata plus live folder status."""

    model_config = ConfigDict(populate_by_name=True)

    client_id: str = Field(..., alias="clientId")
    name: str
    enabled: bool
    folder_path: str = Field(..., alias="folderPath")
    api_key_env_var: Optional[str] = Field(default=None, alias="apiKeyEnvVar")
    folder_status: Optional[FolderStatus] = Field(default=None, alias="folderStatus")
    folder_status_error: Optional[str] = Field(default=None, alias="folderStatusError")


class AnnotatedConfig(BaseModel):
    """Effective configuration with per-element provenance."""

    model_config = ConfigDict(populate_by_name=True)

    client: AnnotatedClient
    field_definitions: List[AnnotatedField] = Field(default_factory=list, alias="fieldDefinitions")
    tag_definitions: List[AnnotatedTag] = Field(default_factory=list, alias="tagDefinitions")
    prompt_template: AnnotatedPrompt = Field(..., alias="promptTemplate")
    raw_prompt: AnnotatedValue = Field(..., alias="rawPrompt")
    filename_template: AnnotatedFilenameTemplate = Field(..., alias="filenameTemplate")
    model: AnnotatedValue

    def sources(self, section: str) -> Dict[str, Source]:
        """Map element id -> source for the ``fields`` or ``tags`` section."""
        if section == "fields":
            return {f.key: f.source for f in self.field_definitions}
        if section == "tags":
            return {t.id: t.source for t in self.tag_definitions}
        raise ValueError(f"Unknown section: {section}")


class ClientSummary(BaseModel):
    """Row shown by client listings."""

    model_config = ConfigDict(populate_by_name=True)

    client_id: str = Field(..., alias="clientId")
    name: str
    enabled: bool
    folder_path: str = Field(..., alias="folderPath")
    has_overrides: bool = Field(default=False, alias="hasOverrides")
    legacy_sections: List[str] = Field(default_factory=list, alias="legacySections")
