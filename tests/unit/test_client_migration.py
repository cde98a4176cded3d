"""Unit tests for legacy client record migration."""

import copy

from tenant_extract.config.migration import migrate_client_record


class TestMigrateClientRecord:
    """Tests for migrate_client_record."""

    def test_field_definitions_become_sparse_overrides(self, global_config, minimal_client):
        """Test that only differing toggles and custom fields survive migration."""
        document = {
            **minimal_client,
            "fieldDefinitions": [
                {"key": "supplierName", "label": "Renamed", "enabled": True},
                {"key": "iban", "enabled": True},
                {"key": "currency", "enabled": False},
                {"key": "vatNumber", "label": "VAT", "type": "text", "enabled": True},
            ],
        }

        result = migrate_client_record("acme", document, global_config)

        assert "fieldDefinitions" not in result.document
        assert result.document["fieldOverrides"] == {
            "iban": {"enabled": True},
            "currency": {"enabled": False},
            "vatNumber": {"label": "VAT", "type": "text", "enabled": True},
        }
        assert result.changed is True

    def test_no_differences_drops_field_list(self, global_config, minimal_client):
        document = {**minimal_client, "fieldDefinitions": [{"key": "supplierName", "enabled": True}]}

        result = migrate_client_record("acme", document, global_config)

        assert "fieldDefinitions" not in result.document
        assert "fieldOverrides" not in result.document
        assert result.changes == ["fieldDefinitions -> fieldOverrides"]

    def test_tag_overrides_reduced_to_toggles(self, global_config, minimal_client):
        document = {
            **minimal_client,
            "tagOverrides": {
                "private": {"enabled": True, "parameters": {"ownerName": "Jane"}},
                "recurring": {"parameters": {"x": 1}},
            },
        }

        result = migrate_client_record("acme", document, global_config)

        assert result.document["tagOverrides"] == {"private": {"enabled": True}}
        assert result.changes == ["tagOverrides simplified"]

    def test_already_sparse_unchanged(self, global_config, minimal_client):
        document = {
            **minimal_client,
            "fieldOverrides": {"currency": {"enabled": False}},
            "tagOverrides": {"private": {"enabled": False}},
        }

        result = migrate_client_record("acme", document, global_config)

        assert result.changed is False
        assert result.document == document

    def test_input_not_mutated(self, global_config, minimal_client):
        document = {**minimal_client, "fieldDefinitions": [{"key": "vatNumber", "label": "VAT"}]}
        snapshot = copy.deepcopy(document)

        migrate_client_record("acme", document, global_config)

        assert document == snapshot

    def test_migrated_record_resolves_like_legacy(self, global_config, minimal_client, effective_for):
        """Test that migrated overrides produce the same enabled fields as the legacy list."""
        legacy_fields = [
            {**f.to_document(), "enabled": f.key != "currency"} for f in global_config.field_definitions
        ]
        legacy = {**minimal_client, "fieldDefinitions": legacy_fields}

        migrated = migrate_client_record("acme", legacy, global_config).document

        before = {f.key: f.enabled for f in effective_for(legacy).field_definitions}
        after = {f.key: f.enabled for f in effective_for(migrated).field_definitions}
        assert before == after
