"""Conversion of legacy client records to sparse granular overrides."""

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping

from tenant_extract.schemas.config import GlobalConfig

logger = logging.getLogger(__name__)


@dataclass
class MigrationResult:
    """Outcome of migrating one client document."""

    client_id: str
    document: Dict[str, Any]
    changes: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changes)


def migrate_client_record(
    client_id: str, document: Mapping[str, Any], global_config: GlobalConfig
) -> MigrationResult:
    """Rewrite a client document into the sparse override form.

    - ``fieldDefinitions`` becomes ``fieldOverrides``: global fields keep only
      an ``enabled`` toggle where it differs from global, custom fields keep
      their full definition.
    - ``tagOverrides`` entries are reduced to their ``enabled`` toggle.

    The input document is not modified.
    """
    migrated = copy.deepcopy(dict(document))
    changes: List[str] = []

    legacy_fields = migrated.get("fieldDefinitions")
    if isinstance(legacy_fields, list):
        global_fields = {f.key: f for f in global_config.field_definitions}
        field_overrides: Dict[str, Dict[str, Any]] = {}
        for entry in legacy_fields:
            key = entry.get("key")
            if key in global_fields:
                enabled = entry.get("enabled", True)
                if enabled != global_fields[key].enabled:
                    field_overrides[key] = {"enabled": enabled}
            elif key:
                field_overrides[key] = {k: v for k, v in entry.items() if k != "key"}

        del migrated["fieldDefinitions"]
        if field_overrides:
            migrated["fieldOverrides"] = {**(migrated.get("fieldOverrides") or {}), **field_overrides}
        changes.append("fieldDefinitions -> fieldOverrides")

    tag_overrides = migrated.get("tagOverrides")
    if isinstance(tag_overrides, dict):
        simplified = {
            tag_id: {"enabled": override["enabled"]}
            for tag_id, override in tag_overrides.items()
            if isinstance(override, Mapping) and isinstance(override.get("enabled"), bool)
        }
        if simplified != tag_overrides:
            if simplified:
                migrated["tagOverrides"] = simplified
            else:
                del migrated["tagOverrides"]
            changes.append("tagOverrides simplified")

    for change in changes:
        logger.info(f"{client_id}: {change}")
    return MigrationResult(client_id=client_id, document=migrated, changes=changes)
