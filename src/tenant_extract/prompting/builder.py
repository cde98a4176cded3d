"""Extraction prompt assembly from an effective config.

Prompt layout (sections separated by a blank line, empty sections omitted):

    preamble
    - <key>: <type> — <schemaHint> — <instruction>     one per enabled field
    generalRules
    <tags header>
    - tags.<id>: <resolved instruction>               one per enabled tag
    - summary: ...                                     when includeSummary
    suffix

Assembly is deterministic: the preview and the extraction request for the
same config are byte-identical.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

from tenant_extract.schemas.config import FieldDefinition, PromptTemplate, TagDefinition
from tenant_extract.schemas.effective import EffectiveConfig

DEFAULT_PREAMBLE = "Analyze this invoice PDF and extract the following information in JSON format:"
DEFAULT_GENERAL_RULES = (
    'If any field cannot be determined, use "Unknown" for text fields, '
    '"0" for amounts, false for booleans, or [] for arrays.'
)
DEFAULT_SUFFIX = "Always return valid JSON that can be parsed directly."

TAGS_HEADER = "For each tag below, set it to true if the condition applies, false otherwise:"
SUMMARY_LINE = (
    "- summary: text — Brief summary of the invoice including key items, services, or products"
    " — provide a concise description of what this invoice is for (2-3 sentences max)"
)

SEPARATOR = " — "
PARAM_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


@dataclass
class FieldFilter:
    """Restricts which enabled fields and tags are requested.

    ``None`` means "no restriction". Disabled items are never requested,
    whatever the filter says.
    """

    fields: Optional[Sequence[str]] = None
    tags: Optional[Sequence[str]] = None
    include_summary: Optional[bool] = None
    tag_parameters: Dict[str, Dict[str, Any]] = field(default_factory=dict)


def resolve_tag_instruction(
    tag: TagDefinition, param_overrides: Optional[Mapping[str, Any]] = None
) -> str:
    """Substitute ``{{name}}`` placeholders in a tag instruction.

    An explicit override wins over the parameter's default. Placeholders
    for undeclared parameters are left as-is.
    """

    def substitute(match: "re.Match[str]") -> str:
        name = match.group(1)
        if param_overrides and param_overrides.get(name) is not None:
            return str(param_overrides[name])
        param = tag.parameters.get(name)
        if param is None or param.default is None:
            return match.group(0)
        return str(param.default)

    return PARAM_PLACEHOLDER.sub(substitute, tag.instruction)


def format_field_line(field_def: FieldDefinition) -> str:
    parts = [p for p in (field_def.type, field_def.schema_hint, field_def.instruction) if p]
    return f"- {field_def.key}: {SEPARATOR.join(parts)}"


def _select(items: List[Any], allowed: Optional[Sequence[str]], attribute: str) -> List[Any]:
    if allowed is None:
        return items
    allowed_set = set(allowed)
    return [item for item in items if getattr(item, attribute) in allowed_set]


def _with_default(value: Optional[str], default: str) -> str:
    return default if value is None else value


def build_extraction_prompt(
    config: EffectiveConfig, field_filter: Optional[FieldFilter] = None
) -> str:
    """Build the extraction prompt for one client.

    Args:
        config: Effective config from ``ConfigResolver.resolve_effective``.
        field_filter: Optional restriction of fields, tags and summary.

    Returns:
        The raw prompt if one is configured, otherwise the assembled prompt.
    """
    if config.raw_prompt:
        return config.raw_prompt

    field_filter = field_filter or FieldFilter()
    template = config.prompt_template

    fields = _select(config.enabled_fields(), field_filter.fields, "key")
    tags = _select(config.enabled_tags(), field_filter.tags, "id")

    include_summary = config.output.include_summary
    if field_filter.include_summary is not None:
        include_summary = field_filter.include_summary

    tag_block = ""
    if tags:
        tag_lines = [
            f"- tags.{tag.id}: {resolve_tag_instruction(tag, field_filter.tag_parameters.get(tag.id))}"
            for tag in tags
        ]
        tag_block = "\n".join([TAGS_HEADER] + tag_lines)

    sections = [
        _with_default(template.preamble, DEFAULT_PREAMBLE),
        "\n".join(format_field_line(f) for f in fields),
        _with_default(template.general_rules, DEFAULT_GENERAL_RULES),
        tag_block,
        SUMMARY_LINE if include_summary else "",
        _with_default(template.suffix, DEFAULT_SUFFIX),
    ]
    return "\n\n".join(section for section in sections if section)


def build_prompt_preview(
    config: EffectiveConfig, template_override: Optional[Mapping[str, Any]] = None
) -> str:
    """Assemble the structured prompt, ignoring any raw prompt.

    ``template_override`` lets an editor preview unsaved prompt parts.
    """
    template = config.prompt_template.to_document()
    template.update(template_override or {})
    preview_config = config.model_copy(
        update={"raw_prompt": None, "prompt_template": PromptTemplate.model_validate(template)}
    )
    return build_extraction_prompt(preview_config)
