"""Client registry, config stores and effective config resolution."""

from tenant_extract.config.api_keys import resolve_api_key
from tenant_extract.config.folders import (
    FileFolderStatusProbe,
    FolderStatusProbe,
    build_client_folders,
)
from tenant_extract.config.merge import merge_keyed
from tenant_extract.config.migration import MigrationResult, migrate_client_record
from tenant_extract.config.registry import ClientRegistry, RegistryCache
from tenant_extract.config.resolver import (
    ConfigResolver,
    build_annotated_config,
    build_effective_config,
    load_global_config,
)
from tenant_extract.config.store import ConfigStore, FileConfigStore

__all__ = [
    "ClientRegistry",
    "ConfigResolver",
    "ConfigStore",
    "FileConfigStore",
    "FileFolderStatusProbe",
    "FolderStatusProbe",
    "MigrationResult",
    "RegistryCache",
    "build_annotated_config",
    "build_client_folders",
    "build_effective_config",
    "load_global_config",
    "merge_keyed",
    "migrate_client_record",
    "resolve_api_key",
]
