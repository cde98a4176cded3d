"""Config store protocol and its file-backed implementation.

The store only moves documents in and out of persistence. It knows nothing
about validation or merging; ``ConfigResolver`` owns those.

Layout under the store root::

    config.json | config.yaml | config.yml   global config
    clients/<clientId>.json                  one document per client
    clients.json                             legacy single-document registry
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Protocol, runtime_checkable

import yaml

from tenant_extract.constants import (
    CLIENT_ID_PATTERN,
    CLIENTS_DIRNAME,
    GLOBAL_CONFIG_FILENAMES,
    LEGACY_CLIENTS_FILENAME,
)
from tenant_extract.errors import StoreNotFoundError

logger = logging.getLogger(__name__)


@runtime_checkable
class ConfigStore(Protocol):
    """Abstract persistence for the global config and client documents.

    All client methods operate on client ids, not paths. Missing documents
    raise ``StoreNotFoundError``.
    """

    def read_global(self) -> Dict[str, Any]:
        """Read the global config document."""
        ...

    def read_client(self, client_id: str) -> Any:
        """Read one client document.

        Raises:
            StoreNotFoundError: If the client document does not exist.
        """
        ...

    def list_client_ids(self) -> List[str]:
        """List client ids present in the store, sorted.

        Raises:
            StoreNotFoundError: If the clients directory does not exist.
        """
        ...

    def write_client(self, client_id: str, document: Dict[str, Any]) -> None:
        """Persist one client document, replacing any existing one."""
        ...

    def delete_client(self, client_id: str) -> None:
        """Delete one client document.

        Raises:
            StoreNotFoundError: If the client document does not exist.
        """
        ...

    def read_legacy_clients(self) -> Any:
        """Read the legacy single-document registry.

        Raises:
            StoreNotFoundError: If no legacy registry exists.
        """
        ...


class FileConfigStore:
    """File-system ConfigStore rooted at one directory."""

    def __init__(self, root: Path):
        self.root = Path(root)

    @property
    def clients_dir(self) -> Path:
        return self.root / CLIENTS_DIRNAME

    def _client_path(self, client_id: str) -> Path:
        return self.clients_dir / f"{client_id}.json"

    def _writable_client_path(self, client_id: str) -> Path:
        """Path for a write or delete; the id must stay inside the clients directory."""
        if not CLIENT_ID_PATTERN.fullmatch(client_id):
            raise ValueError(f"Invalid client id: {client_id!r}")
        return self._client_path(client_id)

    def read_global(self) -> Dict[str, Any]:
        for filename in GLOBAL_CONFIG_FILENAMES:
            path = self.root / filename
            if path.exists():
                logger.debug(f"Reading global config from {path}")
                return _read_document(path)
        raise StoreNotFoundError(f"No global config found in {self.root}")

    def read_client(self, client_id: str) -> Any:
        path = self._client_path(client_id)
        if not path.exists():
            raise StoreNotFoundError(f"Client document not found: {path}")
        return _read_document(path)

    def list_client_ids(self) -> List[str]:
        if not self.clients_dir.is_dir():
            raise StoreNotFoundError(f"Clients directory not found: {self.clients_dir}")
        return sorted(p.stem for p in self.clients_dir.glob("*.json") if p.is_file())

    def write_client(self, client_id: str, document: Dict[str, Any]) -> None:
        """Write a client document atomically (tmp file + replace)."""
        path = self._writable_client_path(client_id)
        self.clients_dir.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")

        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
                f.write("\n")
            tmp_path.replace(path)
        except OSError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise OSError(f"Failed to write client '{client_id}': {e}") from e
        logger.debug(f"Wrote client document {path}")

    def delete_client(self, client_id: str) -> None:
        path = self._writable_client_path(client_id)
        try:
            path.unlink()
        except FileNotFoundError:
            raise StoreNotFoundError(f"Client document not found: {path}") from None

    def read_legacy_clients(self) -> Any:
        path = self.root / LEGACY_CLIENTS_FILENAME
        if not path.exists():
            raise StoreNotFoundError(f"Legacy registry not found: {path}")
        return _read_document(path)


def _read_document(path: Path) -> Any:
    """Load a JSON or YAML document, wrapping parse errors with the path."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            if path.suffix in (".yaml", ".yml"):
                return yaml.safe_load(f)
            return json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
