"""Pydantic schemas for the global extraction configuration.

Documents use camelCase keys; models expose snake_case attributes through
aliases. Unknown keys are kept as extras so documents round-trip unchanged.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tenant_extract.constants import (
    DEFAULT_CSV_FILENAME,
    DEFAULT_PROCESSED_ENRICHED_SUBFOLDER,
    DEFAULT_PROCESSED_ORIGINAL_SUBFOLDER,
)

FieldType = Literal["text", "number", "boolean", "date", "array"]


class DocumentModel(BaseModel):
    """Base for open-schema configuration documents."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_document(self) -> Dict[str, Any]:
        """Dump back to document form (camelCase, only keys that were set)."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class FieldDefinition(DocumentModel):
    """A data field the extraction model is asked to return."""

    key: str = Field(..., min_length=1, description="Unique, immutable field key")
    label: str = Field(default="", description="Human-readable label")
    type: FieldType = Field(default="text", description="Value type")
    schema_hint: str = Field(default="", alias="schemaHint", description="Example value shown to the model")
    instruction: str = Field(default="", description="Extraction instruction for this field")
    enabled: bool = Field(default=True, description="Disabled fields stay listed but are not requested")
    format: Optional[str] = Field(default=None, description="Format rule name (e.g. 'iso8601')")
    built_in: bool = Field(default=False, alias="builtIn", description="Shipped with the default config")


class TagParameter(DocumentModel):
    """A named value substituted into a tag instruction."""

    label: str = ""
    default: Any = ""


class TagDefinition(DocumentModel):
    """A boolean classification rule evaluated per document."""

    id: str = Field(..., min_length=1, description="Unique tag id")
    label: str = Field(default="", description="Human-readable label")
    instruction: str = Field(default="", description="Instruction, may embed {{paramName}} placeholders")
    enabled: bool = Field(default=True)
    parameters: Dict[str, TagParameter] = Field(default_factory=dict)


class PromptTemplate(DocumentModel):
    """Structured prompt parts. ``None`` means "use the built-in default"."""

    preamble: Optional[str] = None
    general_rules: Optional[str] = Field(default=None, alias="generalRules")
    suffix: Optional[str] = None


class OutputSettings(DocumentModel):
    """Output naming and shared folder layout."""

    filename_template: Optional[str] = Field(default=None, alias="filenameTemplate")
    processed_original_subfolder: str = Field(
        default=DEFAULT_PROCESSED_ORIGINAL_SUBFOLDER, alias="processedOriginalSubfolder"
    )
    processed_enriched_subfolder: str = Field(
        default=DEFAULT_PROCESSED_ENRICHED_SUBFOLDER, alias="processedEnrichedSubfolder"
    )
    csv_filename: str = Field(default=DEFAULT_CSV_FILENAME, alias="csvFilename")
    include_summary: bool = Field(default=False, alias="includeSummary")


class ProcessingSettings(DocumentModel):
    """Batch processing settings."""

    concurrency: int = Field(default=1, ge=1, description="Documents processed in parallel")


class GlobalConfig(DocumentModel):
    """The singleton baseline every client inherits from."""

    processing: ProcessingSettings = Field(default_factory=ProcessingSettings)
    output: OutputSettings = Field(default_factory=OutputSettings)
    model: Optional[str] = Field(default=None, description="Default model id")
    field_definitions: List[FieldDefinition] = Field(default_factory=list, alias="fieldDefinitions")
    tag_definitions: List[TagDefinition] = Field(default_factory=list, alias="tagDefinitions")
    prompt_template: PromptTemplate = Field(default_factory=PromptTemplate, alias="promptTemplate")
    raw_prompt: Optional[str] = Field(default=None, alias="rawPrompt")

    @field_validator("tag_definitions", mode="before")
    @classmethod
    def null_tags_as_empty(cls, v: Any) -> Any:
        """Older configs store ``tagDefinitions: null``."""
        return [] if v is None else v

    @model_validator(mode="after")
    def check_unique_ids(self) -> "GlobalConfig":
        """Field keys and tag ids must be unique."""
        ensure_unique([f.key for f in self.field_definitions], "fieldDefinitions", "key")
        ensure_unique([t.id for t in self.tag_definitions], "tagDefinitions", "id")
        return self


def ensure_unique(values: List[str], section: str, attribute: str) -> None:
    seen = set()
    for value in values:
        if value in seen:
            raise ValueError(f"{section}: duplicate {attribute} '{value}'")
        seen.add(value)
