"""Client registry access, config resolution and client record writes.

``ConfigResolver`` is the single entry point services use:

- read side: ``list_all``, ``resolve_effective``, ``resolve_annotated``
- write side: ``create_client``, ``update_client``, ``delete_client``,
  ``save_overrides``, ``remove_overrides``

The registry is loaded once and cached. Every write invalidates the cache
before persisting, so a concurrent reader can never observe a stale
registry after a successful write.
"""

import copy
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

import pydantic

from tenant_extract.config.folders import (
    FileFolderStatusProbe,
    FolderStatusProbe,
    build_client_folders,
)
from tenant_extract.config.merge import (
    resolve_fields,
    resolve_model,
    resolve_output,
    resolve_prompt_template,
    resolve_raw_prompt,
    resolve_tags,
    tag_parameter_sources,
)
from tenant_extract.config.registry import (
    ClientRegistry,
    RegistryCache,
    has_overrides,
    legacy_sections,
)
from tenant_extract.config.store import ConfigStore, FileConfigStore
from tenant_extract.constants import CLIENT_ID_PATTERN, OVERRIDE_SECTIONS
from tenant_extract.errors import (
    ConflictError,
    NoClientConfigurationError,
    NotFoundError,
    StoreNotFoundError,
    ValidationError,
)
from tenant_extract.schemas.client import ClientRecord, validate_client_record
from tenant_extract.schemas.config import GlobalConfig, OutputSettings
from tenant_extract.schemas.effective import (
    AnnotatedClient,
    AnnotatedConfig,
    AnnotatedField,
    AnnotatedFilenameTemplate,
    AnnotatedPrompt,
    AnnotatedTag,
    AnnotatedValue,
    ClientSummary,
    EffectiveConfig,
)
from tenant_extract.settings import Settings, get_settings

logger = logging.getLogger(__name__)

GlobalLike = Union[GlobalConfig, Mapping[str, Any]]


def load_global_config(document: GlobalLike) -> GlobalConfig:
    """Validate a global config document.

    Raises:
        ValidationError: If the document does not match the schema.
    """
    if isinstance(document, GlobalConfig):
        return document
    if not isinstance(document, Mapping):
        raise ValidationError("Global config must be an object")
    try:
        return GlobalConfig.model_validate(dict(document))
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or None
        raise ValidationError(f"Invalid global config: {first['msg']}", field=field) from e


def build_effective_config(
    client_id: str, record: ClientRecord, global_config: GlobalConfig
) -> EffectiveConfig:
    """Merge one client record onto the global config."""
    output, _ = resolve_output(record, global_config)
    prompt_template, _ = resolve_prompt_template(record, global_config)
    raw_prompt, _ = resolve_raw_prompt(record, global_config)
    model, _ = resolve_model(record, global_config)

    return EffectiveConfig(
        client_id=client_id,
        name=record.name,
        enabled=record.enabled,
        api_key_env_var=record.api_key_env_var,
        folders=build_client_folders(record.folder_path, global_config.output),
        processing=global_config.processing.model_copy(deep=True),
        output=OutputSettings.model_validate(output),
        field_definitions=[entry for entry, _ in resolve_fields(record, global_config)],
        tag_definitions=[entry for entry, _ in resolve_tags(record, global_config)],
        prompt_template=prompt_template,
        raw_prompt=raw_prompt,
        model=model,
    )


def build_annotated_config(
    client_id: str,
    record: ClientRecord,
    global_config: GlobalConfig,
    client: Optional[AnnotatedClient] = None,
) -> AnnotatedConfig:
    """Same merge as ``build_effective_config``, with per-element provenance."""
    fields = [
        AnnotatedField.model_validate({**entry, "_source": source})
        for entry, source in resolve_fields(record, global_config)
    ]
    tags = [
        AnnotatedTag.model_validate(
            {
                **entry,
                "_source": source,
                "_parameterSources": tag_parameter_sources(entry, source, record),
            }
        )
        for entry, source in resolve_tags(record, global_config)
    ]
    prompt_template, prompt_source = resolve_prompt_template(record, global_config)
    raw_prompt, raw_source = resolve_raw_prompt(record, global_config)
    output, output_source = resolve_output(record, global_config)
    model, model_source = resolve_model(record, global_config)

    if client is None:
        client = AnnotatedClient(
            client_id=client_id,
            name=record.name,
            enabled=record.enabled,
            folder_path=record.folder_path,
            api_key_env_var=record.api_key_env_var,
        )

    return AnnotatedConfig(
        client=client,
        field_definitions=fields,
        tag_definitions=tags,
        prompt_template=AnnotatedPrompt.model_validate({**prompt_template, "_source": prompt_source}),
        raw_prompt=AnnotatedValue(value=raw_prompt, source=raw_source),
        filename_template=AnnotatedFilenameTemplate(
            template=output.get("filenameTemplate"), source=output_source
        ),
        model=AnnotatedValue(value=model, source=model_source),
    )


class ConfigResolver:
    """Resolves per-client configuration from a ConfigStore.

    Args:
        store: Persistence backend for global and client documents.
        cache: Registry cache. Injected so callers and tests control its lifetime.
        folder_probe: Folder status source used by ``resolve_annotated``.
    """

    def __init__(
        self,
        store: ConfigStore,
        cache: Optional[RegistryCache] = None,
        folder_probe: Optional[FolderStatusProbe] = None,
    ):
        self.store = store
        self.cache: RegistryCache[Optional[ClientRegistry]] = cache or RegistryCache()
        self.folder_probe = folder_probe or FileFolderStatusProbe()
        self._global_cache: RegistryCache[GlobalConfig] = RegistryCache()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ConfigResolver":
        """Build a file-backed resolver from environment settings."""
        settings = settings or get_settings()
        return cls(
            FileConfigStore(settings.config_home),
            folder_probe=FileFolderStatusProbe(settings.processed_subfolder),
        )

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load_registry(self) -> Optional[ClientRegistry]:
        """Load (or return the cached) client registry.

        Returns:
            The registry, or None when multi-tenant mode is inactive.
        """
        return self.cache.get_or_load(self._load_registry)

    def _load_registry(self) -> Optional[ClientRegistry]:
        try:
            client_ids: Optional[List[str]] = self.store.list_client_ids()
        except StoreNotFoundError:
            client_ids = None

        if client_ids:
            documents: Dict[str, Any] = {}
            for client_id in client_ids:
                try:
                    documents[client_id] = self.store.read_client(client_id)
                except StoreNotFoundError:
                    # Deleted between listing and reading
                    logger.debug(f"Client '{client_id}' vanished during load")
            if documents:
                logger.info(f"Loaded {len(documents)} client(s) from clients directory")
                return ClientRegistry.from_documents(documents)

        legacy = self._load_legacy_registry()
        if legacy is not None:
            return legacy

        if client_ids is not None:
            return ClientRegistry()
        return None

    def _load_legacy_registry(self) -> Optional[ClientRegistry]:
        try:
            document = self.store.read_legacy_clients()
        except StoreNotFoundError:
            return None

        clients = document.get("clients") if isinstance(document, dict) else None
        if not isinstance(clients, dict):
            raise ValidationError('Legacy registry must contain a "clients" object', field="clients")

        logger.warning(
            "Using legacy clients.json registry (deprecated). "
            "Run 'tenant-extract clients migrate' to move clients into the clients/ directory."
        )
        return ClientRegistry.from_documents(clients, legacy=True)

    def load_global(self) -> GlobalConfig:
        """Load (or return the cached) global config.

        Raises:
            NotFoundError: If the store holds no global config.
            ValidationError: If the global config is malformed.
        """
        return self._global_cache.get_or_load(self._load_global)

    def _load_global(self) -> GlobalConfig:
        try:
            document = self.store.read_global()
        except StoreNotFoundError as e:
            raise NotFoundError(f"Global configuration not found: {e}") from e
        return load_global_config(document)

    def reload(self) -> None:
        """Drop cached registry and global config."""
        self.cache.invalidate()
        self._global_cache.invalidate()

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    def is_multi_tenant(self) -> bool:
        return self.load_registry() is not None

    def is_using_legacy_registry(self) -> bool:
        registry = self.load_registry()
        return registry is not None and registry.legacy

    def list_all(self) -> Optional[Dict[str, ClientRecord]]:
        """All client records keyed by id, or None when no registry exists."""
        registry = self.load_registry()
        if registry is None:
            return None
        return dict(registry.records)

    def list_enabled(self) -> Optional[Dict[str, ClientRecord]]:
        """Enabled client records keyed by id, or None when no registry exists."""
        registry = self.load_registry()
        if registry is None:
            return None
        return {client_id: record for client_id, record in registry.records.items() if record.enabled}

    def list_summaries(self) -> List[ClientSummary]:
        registry = self.load_registry()
        if registry is None:
            return []
        return [
            ClientSummary(
                client_id=client_id,
                name=record.name,
                enabled=record.enabled,
                folder_path=record.folder_path,
                has_overrides=has_overrides(registry.documents[client_id]),
                legacy_sections=legacy_sections(registry.documents[client_id]),
            )
            for client_id, record in registry.records.items()
        ]

    def get_client(self, client_id: str) -> ClientRecord:
        """Get one client record.

        Raises:
            NoClientConfigurationError: If no registry exists.
            NotFoundError: If the client is unknown.
        """
        registry = self.load_registry()
        if registry is None:
            raise NoClientConfigurationError(
                "No client configuration found (neither clients/ directory nor clients.json)"
            )
        record = registry.records.get(client_id)
        if record is None:
            raise NotFoundError(f'Client "{client_id}" not found')
        return record

    def get_document(self, client_id: str) -> Dict[str, Any]:
        """Raw stored document for a client (copy)."""
        self.get_client(client_id)
        return copy.deepcopy(self.load_registry().documents[client_id])

    def resolve_effective(
        self, client_id: str, global_config: Optional[GlobalLike] = None
    ) -> EffectiveConfig:
        """Merge a client's record onto the global config.

        Args:
            client_id: Client identifier.
            global_config: Global config to merge onto; loaded from the store if omitted.
        """
        record = self.get_client(client_id)
        global_config = self._coerce_global(global_config)
        try:
            return build_effective_config(client_id, record, global_config)
        except pydantic.ValidationError as e:
            raise _resolution_error(client_id, e) from e

    def resolve_annotated(
        self, client_id: str, global_config: Optional[GlobalLike] = None
    ) -> AnnotatedConfig:
        """Effective config with provenance and live folder status.

        A folder probe failure is reported in ``client.folderStatusError``
        instead of aborting the resolution.
        """
        record = self.get_client(client_id)
        global_config = self._coerce_global(global_config)

        client = AnnotatedClient(
            client_id=client_id,
            name=record.name,
            enabled=record.enabled,
            folder_path=record.folder_path,
            api_key_env_var=record.api_key_env_var,
        )
        try:
            client.folder_status = self.folder_probe.probe(record.folder_path)
        except Exception as e:
            logger.warning(f"Folder status probe failed for client '{client_id}': {e}")
            client.folder_status_error = str(e)

        try:
            return build_annotated_config(client_id, record, global_config, client=client)
        except pydantic.ValidationError as e:
            raise _resolution_error(client_id, e) from e

    def _coerce_global(self, global_config: Optional[GlobalLike]) -> GlobalConfig:
        if global_config is None:
            return self.load_global()
        return load_global_config(global_config)

    # -------------------------------------------------------------------------
    # Write side
    # -------------------------------------------------------------------------

    def create_client(self, client_id: str, data: Mapping[str, Any]) -> ClientRecord:
        """Create a client record.

        Raises:
            ValidationError: Invalid id or record shape.
            ConflictError: If the id already exists.
        """
        _check_client_id(client_id)
        document = _as_document(client_id, data)
        if self._exists(client_id):
            raise ConflictError(f'Client "{client_id}" already exists')
        record = validate_client_record(client_id, document)

        self.cache.invalidate()
        self.store.write_client(client_id, document)
        logger.info(f"Created client '{client_id}'")
        return record

    def update_client(self, client_id: str, data: Mapping[str, Any]) -> ClientRecord:
        """Replace a client record.

        Raises:
            NotFoundError: If the client does not exist.
            ValidationError: Invalid id or record shape.
        """
        _check_client_id(client_id)
        document = _as_document(client_id, data)
        if not self._exists(client_id):
            raise NotFoundError(f'Client "{client_id}" not found')
        record = validate_client_record(client_id, document)

        self.cache.invalidate()
        self.store.write_client(client_id, document)
        logger.info(f"Updated client '{client_id}'")
        return record

    def delete_client(self, client_id: str) -> None:
        """Delete a client record.

        Raises:
            NotFoundError: If the client does not exist.
            ValidationError: Invalid id.
        """
        _check_client_id(client_id)
        if not self._exists(client_id):
            raise NotFoundError(f'Client "{client_id}" not found')

        self.cache.invalidate()
        try:
            self.store.delete_client(client_id)
        except StoreNotFoundError as e:
            raise NotFoundError(f'Client "{client_id}" not found') from e
        logger.info(f"Deleted client '{client_id}'")

    def save_overrides(self, client_id: str, section: str, data: Any) -> ClientRecord:
        """Replace one override section of a client record.

        Any legacy full replacement for the section is removed so the saved
        override is what resolution uses.

        Args:
            client_id: Client identifier.
            section: One of ``fields``, ``tags``, ``prompt``, ``output``, ``model``.
            data: Override payload (a model id string for ``model``, a mapping otherwise).

        Raises:
            NotFoundError: Unknown section or client.
            ValidationError: Malformed payload.
        """
        _check_client_id(client_id)
        override_key, legacy_key = _section_keys(section)
        document = self._read_document(client_id)

        if section == "model":
            if not isinstance(data, str) or not data.strip():
                raise ValidationError("Model override must be a non-empty string", field="model")
        elif not isinstance(data, Mapping):
            raise ValidationError(f"{section} override must be an object", field=override_key)

        updated = dict(document)
        updated[override_key] = copy.deepcopy(data) if section != "model" else data
        if legacy_key is not None:
            updated.pop(legacy_key, None)
        if section == "prompt":
            updated.pop("rawPrompt", None)
        record = validate_client_record(client_id, updated)

        self.cache.invalidate()
        self.store.write_client(client_id, updated)
        logger.info(f"Saved {section} overrides for client '{client_id}'")
        return record

    def remove_overrides(self, client_id: str, section: str) -> ClientRecord:
        """Remove one override section (and its legacy form) from a client record.

        Raises:
            NotFoundError: Unknown section or client.
        """
        _check_client_id(client_id)
        override_key, legacy_key = _section_keys(section)
        document = self._read_document(client_id)

        updated = dict(document)
        updated.pop(override_key, None)
        if legacy_key is not None:
            updated.pop(legacy_key, None)
        if section == "prompt":
            updated.pop("rawPrompt", None)
        record = validate_client_record(client_id, updated)

        self.cache.invalidate()
        self.store.write_client(client_id, updated)
        logger.info(f"Removed {section} overrides for client '{client_id}'")
        return record

    def _exists(self, client_id: str) -> bool:
        try:
            self.store.read_client(client_id)
        except StoreNotFoundError:
            return False
        return True

    def _read_document(self, client_id: str) -> Dict[str, Any]:
        try:
            document = self.store.read_client(client_id)
        except StoreNotFoundError as e:
            raise NotFoundError(f'Client "{client_id}" not found') from e
        if not isinstance(document, dict):
            raise ValidationError(f'Client "{client_id}": record must be an object')
        return document


def _check_client_id(client_id: str) -> None:
    if not isinstance(client_id, str) or not CLIENT_ID_PATTERN.fullmatch(client_id):
        raise ValidationError(
            "Client ID must be lowercase alphanumeric with hyphens only", field="clientId"
        )


def _as_document(client_id: str, data: Any) -> Dict[str, Any]:
    if not isinstance(data, Mapping):
        raise ValidationError(f'Client "{client_id}": record must be an object')
    return dict(data)


def _resolution_error(client_id: str, error: pydantic.ValidationError) -> ValidationError:
    """Merged sections that fail the schema (e.g. a legacy field with a bad type)."""
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or None
    return ValidationError(f'Client "{client_id}": {first["msg"]}', field=field)


def _section_keys(section: str):
    try:
        return OVERRIDE_SECTIONS[section]
    except KeyError:
        raise NotFoundError(f"Invalid override section: {section}") from None
