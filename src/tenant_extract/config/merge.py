"""Section-by-section merge of a client record onto the global config.

Every section follows the same precedence:

1. a legacy full replacement on the client record wins outright
2. otherwise granular overrides are merged onto the global section
3. otherwise the global section is used as-is

Each resolver returns the merged value together with its provenance so the
same code backs both the effective and the annotated views.
"""

import copy
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from tenant_extract.schemas.client import ClientRecord
from tenant_extract.schemas.config import GlobalConfig

logger = logging.getLogger(__name__)

Entry = Dict[str, Any]
MergeEntry = Callable[[Mapping[str, Any], Mapping[str, Any]], Entry]


def shallow_merge(entry: Mapping[str, Any], override: Mapping[str, Any]) -> Entry:
    """Override attributes replace global ones; unspecified attributes are inherited."""
    return {**copy.deepcopy(dict(entry)), **copy.deepcopy(dict(override))}


def merge_tag_entry(tag: Mapping[str, Any], override: Mapping[str, Any]) -> Entry:
    """Shallow merge plus parameter handling.

    ``parameters: {name: value}`` in a tag override sets the ``default`` of
    an existing parameter. A mapping value is merged onto the parameter.
    Scalar values for undeclared parameters are dropped.
    """
    merged = shallow_merge(tag, {k: v for k, v in override.items() if k != "parameters"})
    param_overrides = override.get("parameters")
    if not param_overrides:
        return merged

    params = copy.deepcopy(dict(tag.get("parameters") or {}))
    for name, value in param_overrides.items():
        if isinstance(value, Mapping):
            params[name] = {**params.get(name, {}), **copy.deepcopy(dict(value))}
        elif name in params:
            params[name] = {**params[name], "default": value}
        else:
            logger.debug(f"Ignoring override for undeclared parameter '{name}' on tag '{tag.get('id')}'")
    merged["parameters"] = params
    return merged


def merge_keyed(
    base: Sequence[Mapping[str, Any]],
    overrides: Optional[Mapping[str, Mapping[str, Any]]],
    key: str,
    merge_entry: MergeEntry = shallow_merge,
) -> List[Tuple[Entry, str]]:
    """Merge a keyed override map onto an ordered list of entries.

    Global entries keep their order and identity key. Override keys with no
    global counterpart are appended as custom entries, in override order.

    Returns:
        List of ``(entry, source)`` with source ``global``, ``override`` or ``custom``.
    """
    overrides = overrides or {}
    result: List[Tuple[Entry, str]] = []
    seen = set()

    for entry in base:
        entry_key = entry.get(key)
        seen.add(entry_key)
        override = overrides.get(entry_key)
        if override is None:
            result.append((copy.deepcopy(dict(entry)), "global"))
            continue
        merged = merge_entry(entry, override)
        merged[key] = entry_key
        result.append((merged, "override"))

    for override_key, override in overrides.items():
        if override_key in seen:
            continue
        custom = copy.deepcopy(dict(override))
        custom[key] = override_key
        result.append((custom, "custom"))

    return result


def _resolve_keyed_section(
    legacy: Optional[List[Mapping[str, Any]]],
    overrides: Optional[Mapping[str, Mapping[str, Any]]],
    global_entries: List[Entry],
    key: str,
    merge_entry: MergeEntry,
) -> List[Tuple[Entry, str]]:
    if legacy is not None:
        global_keys = {entry.get(key) for entry in global_entries}
        return [
            (copy.deepcopy(dict(entry)), "override" if entry.get(key) in global_keys else "custom")
            for entry in legacy
        ]
    return merge_keyed(global_entries, overrides, key, merge_entry)


def resolve_fields(record: ClientRecord, global_config: GlobalConfig) -> List[Tuple[Entry, str]]:
    return _resolve_keyed_section(
        record.field_definitions,
        record.field_overrides,
        [f.to_document() for f in global_config.field_definitions],
        "key",
        shallow_merge,
    )


def resolve_tags(record: ClientRecord, global_config: GlobalConfig) -> List[Tuple[Entry, str]]:
    return _resolve_keyed_section(
        record.tag_definitions,
        record.tag_overrides,
        [t.to_document() for t in global_config.tag_definitions],
        "id",
        merge_tag_entry,
    )


def tag_parameter_sources(
    tag: Mapping[str, Any], source: str, record: ClientRecord
) -> Dict[str, str]:
    """Per-parameter provenance for one resolved tag."""
    params = tag.get("parameters") or {}
    if source == "custom":
        return {name: "custom" for name in params}
    overridden = set()
    if source == "override":
        if record.tag_definitions is not None:
            overridden = set(params)
        else:
            override = (record.tag_overrides or {}).get(tag.get("id")) or {}
            overridden = set(override.get("parameters") or {})
    return {name: "override" if name in overridden else "global" for name in params}


def resolve_prompt_template(record: ClientRecord, global_config: GlobalConfig) -> Tuple[Entry, str]:
    global_template = global_config.prompt_template.to_document()
    if record.prompt_template is not None:
        return copy.deepcopy(record.prompt_template), "override"
    template_override = {
        k: v for k, v in (record.prompt_override or {}).items() if k != "rawPrompt"
    }
    if template_override:
        return shallow_merge(global_template, template_override), "override"
    return global_template, "global"


def resolve_raw_prompt(record: ClientRecord, global_config: GlobalConfig) -> Tuple[Optional[str], str]:
    """A raw prompt at either level replaces the assembled prompt entirely."""
    client_raw = record.raw_prompt or (record.prompt_override or {}).get("rawPrompt")
    if client_raw:
        return client_raw, "override"
    if global_config.raw_prompt:
        return global_config.raw_prompt, "global"
    return None, "global"


def resolve_output(record: ClientRecord, global_config: GlobalConfig) -> Tuple[Entry, str]:
    """Only ``filenameTemplate`` is overridable; folder layout stays global."""
    global_output = global_config.output.to_document()
    if record.output is not None:
        return copy.deepcopy(record.output), "override"
    template = (record.output_override or {}).get("filenameTemplate")
    if template:
        return {**global_output, "filenameTemplate": template}, "override"
    return global_output, "global"


def resolve_model(record: ClientRecord, global_config: GlobalConfig) -> Tuple[Optional[str], str]:
    if record.model:
        return record.model, "override"
    return global_config.model, "global"
