"""Client registry and its load-once cache."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, List, Mapping, Optional, TypeVar

from tenant_extract.constants import OVERRIDE_SECTIONS
from tenant_extract.schemas.client import ClientRecord, validate_client_record

T = TypeVar("T")


class RegistryCache(Generic[T]):
    """Holds a lazily loaded value until invalidated.

    A loaded ``None`` is a valid cached value (no registry configured), so
    the loaded flag is tracked separately from the value.
    """

    def __init__(self) -> None:
        self._value: Optional[T] = None
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def get_or_load(self, loader: Callable[[], T]) -> T:
        if not self._loaded:
            self._value = loader()
            self._loaded = True
        return self._value  # type: ignore[return-value]

    def invalidate(self) -> None:
        self._value = None
        self._loaded = False


@dataclass
class ClientRegistry:
    """All client records known to the store.

    ``documents`` keeps the raw documents next to the validated records so
    writes can round-trip unknown keys.
    """

    records: Dict[str, ClientRecord] = field(default_factory=dict)
    documents: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    legacy: bool = False

    @classmethod
    def from_documents(cls, documents: Mapping[str, Any], legacy: bool = False) -> "ClientRegistry":
        records = {
            client_id: validate_client_record(client_id, document)
            for client_id, document in documents.items()
        }
        return cls(records=records, documents=dict(documents), legacy=legacy)


def legacy_sections(document: Mapping[str, Any]) -> List[str]:
    """Override sections still stored as legacy full replacements."""
    return [
        section
        for section, (_, legacy_key) in OVERRIDE_SECTIONS.items()
        if legacy_key is not None and legacy_key in document
    ]


def has_overrides(document: Mapping[str, Any]) -> bool:
    """True if the document customizes any section."""
    for override_key, legacy_key in OVERRIDE_SECTIONS.values():
        if document.get(override_key) or (legacy_key and legacy_key in document):
            return True
    return bool(document.get("rawPrompt"))
