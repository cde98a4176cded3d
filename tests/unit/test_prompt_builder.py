"""Unit tests for extraction prompt assembly."""

import pytest

from tenant_extract.prompting.builder import (
    DEFAULT_GENERAL_RULES,
    DEFAULT_PREAMBLE,
    DEFAULT_SUFFIX,
    SUMMARY_LINE,
    FieldFilter,
    build_extraction_prompt,
    build_prompt_preview,
    resolve_tag_instruction,
)
from tenant_extract.schemas.config import TagDefinition


class TestPromptLayout:
    """Tests for section order and line formats."""

    def test_exact_layout(self, effective_for):
        """Test the full prompt for a small config."""
        config = effective_for(
            {
                "fieldDefinitions": [
                    {"key": "a", "type": "text", "schemaHint": "x", "instruction": "do a"},
                    {"key": "b", "type": "number", "instruction": "do b"},
                ],
                "tagDefinitions": [{"id": "t", "instruction": "Is it {{what}}?", "parameters": {"what": {"default": "red"}}}],
                "promptTemplate": {"preamble": "P", "generalRules": "R", "suffix": "S"},
            }
        )

        prompt = build_extraction_prompt(config)

        assert prompt == (
            "P\n\n"
            "- a: text — x — do a\n"
            "- b: number — do b\n\n"
            "R\n\n"
            "For each tag below, set it to true if the condition applies, false otherwise:\n"
            "- tags.t: Is it red?\n\n"
            "S"
        )

    def test_section_order(self, effective_config):
        """Test preamble < fields < rules < tags < suffix."""
        prompt = build_extraction_prompt(effective_config)

        positions = [
            prompt.index("Extract the invoice data as JSON:"),
            prompt.index("- supplierName:"),
            prompt.index("Use Unknown when a value cannot be determined."),
            prompt.index("- tags.private:"),
            prompt.index("Return JSON only."),
        ]
        assert positions == sorted(positions)

    def test_field_line_format(self, effective_config):
        prompt = build_extraction_prompt(effective_config)

        assert "- invoiceDate: date — YYYY-MM-DD — the date the invoice was issued" in prompt

    def test_tag_line_uses_parameter_default(self, effective_config):
        prompt = build_extraction_prompt(effective_config)

        assert "- tags.private: Is this a private expense for the owner?" in prompt

    def test_tag_line_uses_client_parameter_override(self, effective_for):
        """Test that a client's parameter override flows into the prompt."""
        config = effective_for({"tagOverrides": {"private": {"parameters": {"ownerName": "Jane Doe"}}}})

        assert "- tags.private: Is this a private expense for Jane Doe?" in build_extraction_prompt(config)

    def test_defaults_for_missing_template_parts(self, effective_for):
        """Test that missing prompt parts fall back to the built-in defaults."""
        config = effective_for({"promptTemplate": {}})

        prompt = build_extraction_prompt(config)

        assert prompt.startswith(DEFAULT_PREAMBLE)
        assert DEFAULT_GENERAL_RULES in prompt
        assert prompt.endswith(DEFAULT_SUFFIX)

    def test_empty_part_omitted(self, effective_for):
        """Test that an explicitly empty part is left out along with its separator."""
        config = effective_for({"promptOverride": {"preamble": ""}})

        prompt = build_extraction_prompt(config)

        assert prompt.startswith("- supplierName:")
        assert "\n\n\n" not in prompt

    def test_deterministic(self, effective_config):
        assert build_extraction_prompt(effective_config) == build_extraction_prompt(effective_config)


class TestRawPrompt:
    """Tests for raw prompt bypass."""

    def test_raw_prompt_returned_unchanged(self, effective_for):
        config = effective_for({"rawPrompt": "  Custom prompt {{ownerName}}\n"})

        assert build_extraction_prompt(config) == "  Custom prompt {{ownerName}}\n"

    def test_raw_prompt_ignores_filter(self, effective_for):
        config = effective_for({"rawPrompt": "Raw"})

        assert build_extraction_prompt(config, FieldFilter(fields=["supplierName"])) == "Raw"

    def test_preview_ignores_raw_prompt(self, effective_for):
        """Test that the preview assembles the structured prompt even with a raw prompt set."""
        config = effective_for({"rawPrompt": "Raw"})

        preview = build_prompt_preview(config)

        assert preview != "Raw"
        assert "- supplierName:" in preview

    def test_preview_applies_unsaved_template(self, effective_config):
        preview = build_prompt_preview(effective_config, {"suffix": "Unsaved suffix"})

        assert preview.endswith("Unsaved suffix")
        assert effective_config.prompt_template.suffix == "Return JSON only."


class TestFiltering:
    """Tests for enabled state and FieldFilter."""

    def test_disabled_items_absent(self, effective_config):
        prompt = build_extraction_prompt(effective_config)

        assert "iban" not in prompt
        assert "tags.recurring" not in prompt

    def test_disabled_items_absent_even_when_filtered_in(self, effective_config):
        """Test that a filter cannot bring back disabled items."""
        prompt = build_extraction_prompt(
            effective_config, FieldFilter(fields=["iban", "currency"], tags=["recurring"])
        )

        assert "- currency:" in prompt
        assert "iban" not in prompt
        assert "tags." not in prompt

    def test_field_filter_restricts(self, effective_config):
        prompt = build_extraction_prompt(effective_config, FieldFilter(fields=["totalAmount"]))

        assert "- totalAmount:" in prompt
        assert "- supplierName:" not in prompt
        assert "- tags.private:" in prompt

    def test_empty_tag_filter_drops_tag_block(self, effective_config):
        prompt = build_extraction_prompt(effective_config, FieldFilter(tags=[]))

        assert "For each tag below" not in prompt

    def test_filter_parameter_override_wins(self, effective_for):
        """Test that filter-supplied parameters beat the merged default."""
        config = effective_for({"tagOverrides": {"private": {"parameters": {"ownerName": "Jane"}}}})

        prompt = build_extraction_prompt(
            config, FieldFilter(tag_parameters={"private": {"ownerName": "Max"}})
        )

        assert "private expense for Max?" in prompt


class TestSummary:
    """Tests for the summary instruction."""

    def test_off_by_default(self, effective_config):
        assert SUMMARY_LINE not in build_extraction_prompt(effective_config)

    def test_enabled_by_output_setting(self, effective_for, global_config):
        global_config.output.include_summary = True

        prompt = build_extraction_prompt(effective_for())

        assert SUMMARY_LINE in prompt
        assert prompt.index(SUMMARY_LINE) < prompt.index("Return JSON only.")

    @pytest.mark.parametrize("setting,forced,expected", [(False, True, True), (True, False, False)])
    def test_filter_overrides_setting(self, effective_for, global_config, setting, forced, expected):
        global_config.output.include_summary = setting

        prompt = build_extraction_prompt(effective_for(), FieldFilter(include_summary=forced))

        assert (SUMMARY_LINE in prompt) is expected


class TestResolveTagInstruction:
    """Tests for placeholder substitution."""

    TAG = TagDefinition.model_validate(
        {
            "id": "t",
            "instruction": "Amount above {{limit}} {{currency}} for {{unknown}}",
            "parameters": {"limit": {"default": 1000}, "currency": {"default": "EUR"}},
        }
    )

    def test_defaults(self):
        assert resolve_tag_instruction(self.TAG) == "Amount above 1000 EUR for {{unknown}}"

    def test_explicit_override(self):
        assert resolve_tag_instruction(self.TAG, {"limit": 50}) == "Amount above 50 EUR for {{unknown}}"

    def test_repeated_placeholder(self):
        tag = TagDefinition.model_validate(
            {"id": "t", "instruction": "{{x}} and {{x}}", "parameters": {"x": {"default": "y"}}}
        )

        assert resolve_tag_instruction(tag) == "y and y"
