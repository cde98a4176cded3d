"""
Pytest fixtures shared by the tenant_extract tests.

Provides a realistic global config, helpers to lay out a config home on
disk and ready-made resolvers over it.
"""

import copy
import json
from pathlib import Path

import pytest

from tenant_extract.config.folders import FileFolderStatusProbe
from tenant_extract.config.resolver import ConfigResolver, build_effective_config
from tenant_extract.config.store import FileConfigStore
from tenant_extract.schemas.client import ClientRecord
from tenant_extract.schemas.config import GlobalConfig
from tenant_extract.settings import reset_settings_cache


GLOBAL_CONFIG = {
    "processing": {"concurrency": 5},
    "output": {
        "filenameTemplate": "{supplierName} - {invoiceDate}.pdf",
        "processedOriginalSubfolder": "processed-original",
        "processedEnrichedSubfolder": "processed-enriched",
        "csvFilename": "invoice-log.csv",
        "includeSummary": False,
    },
    "model": "gemini-3-flash-preview",
    "fieldDefinitions": [
        {
            "key": "supplierName",
            "label": "Supplier",
            "type": "text",
            "schemaHint": "Company name",
            "instruction": "the company that issued the invoice",
            "enabled": True,
            "builtIn": True,
        },
        {
            "key": "invoiceDate",
            "label": "Invoice date",
            "type": "date",
            "schemaHint": "YYYY-MM-DD",
            "instruction": "the date the invoice was issued",
            "enabled": True,
            "format": "iso8601",
        },
        {
            "key": "paymentDate",
            "label": "Payment date",
            "type": "date",
            "schemaHint": "YYYY-MM-DD",
            "instruction": "the date the invoice was paid",
            "enabled": True,
            "format": "iso8601",
        },
        {
            "key": "totalAmount",
            "label": "Total",
            "type": "number",
            "schemaHint": "123.45",
            "instruction": "the total including tax",
            "enabled": True,
        },
        {
            "key": "currency",
            "label": "Currency",
            "type": "text",
            "schemaHint": "EUR",
            "instruction": "the ISO currency code",
            "enabled": True,
            "format": "iso4217",
        },
        {
            "key": "iban",
            "label": "IBAN",
            "type": "text",
            "schemaHint": "DE89370400440532013000",
            "instruction": "the supplier bank account",
            "enabled": False,
            "format": "iso13616",
        },
        {
            "key": "lineItems",
            "label": "Line items",
            "type": "array",
            "schemaHint": "[]",
            "instruction": "each billed item",
            "enabled": True,
        },
        {
            "key": "isPaid",
            "label": "Paid",
            "type": "boolean",
            "schemaHint": "true",
            "instruction": "whether the invoice is marked as paid",
            "enabled": True,
        },
    ],
    "tagDefinitions": [
        {
            "id": "private",
            "label": "Private",
            "instruction": "Is this a private expense for {{ownerName}}?",
            "enabled": True,
            "parameters": {"ownerName": {"label": "Owner", "default": "the owner"}},
        },
        {
            "id": "recurring",
            "label": "Recurring",
            "instruction": "Is this a recurring subscription?",
            "enabled": False,
        },
    ],
    "promptTemplate": {
        "preamble": "Extract the invoice data as JSON:",
        "generalRules": "Use Unknown when a value cannot be determined.",
        "suffix": "Return JSON only.",
    },
}

MINIMAL_CLIENT = {
    "name": "Acme Corp",
    "enabled": True,
    "folderPath": "/data/acme",
}


@pytest.fixture(autouse=True)
def _reset_settings(monkeypatch):
    """Keep cached settings and environment from leaking between tests."""
    monkeypatch.delenv("TENANT_EXTRACT_HOME", raising=False)
    reset_settings_cache()
    yield
    reset_settings_cache()


@pytest.fixture
def global_config_doc():
    """A fresh copy of the global config document."""
    return copy.deepcopy(GLOBAL_CONFIG)


@pytest.fixture
def global_config(global_config_doc):
    return GlobalConfig.model_validate(global_config_doc)


@pytest.fixture
def config_home(tmp_path, global_config_doc):
    """Config home with config.json and no clients."""
    home = tmp_path / "home"
    home.mkdir()
    (home / "config.json").write_text(json.dumps(global_config_doc, indent=2))
    return home


@pytest.fixture
def minimal_client():
    """A fresh copy of the smallest valid client document."""
    return dict(MINIMAL_CLIENT)


@pytest.fixture
def add_client(config_home):
    """Write a client document (as given) into config_home/clients/."""

    def _add(client_id: str, document: dict) -> Path:
        clients_dir = config_home / "clients"
        clients_dir.mkdir(exist_ok=True)
        path = clients_dir / f"{client_id}.json"
        path.write_text(json.dumps(document, indent=2))
        return path

    return _add


@pytest.fixture
def stored_client(config_home):
    """Read a client document back from config_home/clients/."""

    def _read(client_id: str) -> dict:
        return json.loads((config_home / "clients" / f"{client_id}.json").read_text())

    return _read


@pytest.fixture
def resolver(config_home):
    """Resolver over config_home with a file folder probe."""
    return ConfigResolver(FileConfigStore(config_home), folder_probe=FileFolderStatusProbe())


@pytest.fixture
def effective_for(global_config):
    """Build an effective config for a client document without touching the disk."""

    def _build(record: dict = None, client_id: str = "acme"):
        document = {**MINIMAL_CLIENT, **(record or {})}
        return build_effective_config(client_id, ClientRecord.model_validate(document), global_config)

    return _build


@pytest.fixture
def effective_config(effective_for):
    """Effective config for a client with no overrides."""
    return effective_for()
