"""Tests for the configuration system."""

import json

import pytest

from html2html.shared.config import (
    DEFAULT_RAW_TEXT_ELEMENTS,
    DEFAULT_VOID_ELEMENTS,
    ConfigError,
    ConfigValidationError,
    ConverterConfig,
    LexerConfig,
    TreeConfig,
)


class TestLexerConfig:
    """Test suite for LexerConfig."""

    def test_default_configuration(self):
        """Test default lexer configuration values."""
        config = LexerConfig()

        assert config.encoding == "utf-8"
        assert config.chunk_size == 4096
        assert config.lowercase_names is True
        assert config.raw_text_elements == DEFAULT_RAW_TEXT_ELEMENTS

    def test_invalid_chunk_size(self):
        """Test that a non-positive chunk size is rejected."""
        with pytest.raises(ConfigValidationError) as exc_info:
            LexerConfig(chunk_size=0)
        assert exc_info.value.field_name == "chunk_size"

    def test_unknown_encoding(self):
        """Test that unknown encodings are rejected with suggestions."""
        with pytest.raises(ConfigValidationError) as exc_info:
            LexerConfig(encoding="no-such-codec")
        assert exc_info.value.field_name == "encoding"
        assert "utf-8" in exc_info.value.suggestions

    def test_raw_text_elements_lowercased(self):
        """Test that raw text element names are normalized."""
        config = LexerConfig(raw_text_elements=frozenset({"SCRIPT", "Style"}))
        assert config.raw_text_elements == frozenset({"script", "style"})


class TestTreeConfig:
    """Test suite for TreeConfig."""

    def test_default_configuration(self):
        """Test default tree configuration values."""
        config = TreeConfig()

        assert config.strict_end_tags is True
        assert config.void_elements == DEFAULT_VOID_ELEMENTS
        assert config.vacuum_tags == ()

    def test_vacuum_tags_normalized(self):
        """Test that vacuum tags become a lowercase tuple."""
        config = TreeConfig(vacuum_tags=["Script", "IFRAME"])
        assert config.vacuum_tags == ("script", "iframe")

    def test_empty_vacuum_tag_rejected(self):
        """Test that empty vacuum tag names are rejected."""
        with pytest.raises(ConfigValidationError):
            TreeConfig(vacuum_tags=("script", ""))


class TestConverterConfig:
    """Test suite for ConverterConfig."""

    def test_default_is_strict(self):
        """Test that the default configuration is strict."""
        assert ConverterConfig().strict is True

    def test_presets(self):
        """Test preset factory methods."""
        assert ConverterConfig.strict_preset().strict is True
        assert ConverterConfig.lenient().strict is False

        sanitizing = ConverterConfig.sanitizing()
        assert sanitizing.strict is False
        assert sanitizing.tree.vacuum_tags == ("script", "style", "iframe")

    def test_preset_by_name(self):
        """Test looking up presets by name."""
        assert ConverterConfig.preset("lenient").name == "lenient"

        with pytest.raises(ConfigValidationError) as exc_info:
            ConverterConfig.preset("paranoid")
        assert "sanitizing" in exc_info.value.suggestions

    def test_override_nested_fields(self):
        """Test component__field override notation."""
        config = ConverterConfig().override(
            tree__strict_end_tags=False,
            lexer__chunk_size=16,
            name="custom",
        )

        assert config.strict is False
        assert config.lexer.chunk_size == 16
        assert config.name == "custom"

    def test_override_does_not_mutate(self):
        """Test that override returns a new object."""
        original = ConverterConfig()
        original.override(tree__strict_end_tags=False)
        assert original.strict is True

    def test_override_unknown_component(self):
        """Test that unknown components are rejected."""
        with pytest.raises(ConfigValidationError) as exc_info:
            ConverterConfig().override(parser__strict=True)
        assert exc_info.value.suggestions == ["lexer", "tree"]

    def test_override_unknown_field(self):
        """Test that unknown fields of a component are rejected."""
        with pytest.raises(ConfigValidationError):
            ConverterConfig().override(tree__no_such_field=1)

    def test_override_revalidates(self):
        """Test that overridden values go through validation."""
        with pytest.raises(ConfigValidationError):
            ConverterConfig().override(lexer__chunk_size=-1)

    def test_json_round_trip(self):
        """Test serialization to JSON and back."""
        config = ConverterConfig.sanitizing()
        restored = ConverterConfig.from_json(config.to_json())

        assert restored == config

    def test_to_dict_is_json_compatible(self):
        """Test that sets and tuples become lists."""
        data = ConverterConfig().to_dict()

        assert data["tree"]["void_elements"] == sorted(DEFAULT_VOID_ELEMENTS)
        assert data["tree"]["vacuum_tags"] == []
        json.dumps(data)

    def test_from_dict_partial(self):
        """Test that missing sections fall back to defaults."""
        config = ConverterConfig.from_dict({"tree": {"strict_end_tags": False}})

        assert config.strict is False
        assert config.lexer == LexerConfig()

    def test_from_dict_unknown_keys(self):
        """Test that unknown top-level keys are rejected."""
        with pytest.raises(ConfigValidationError):
            ConverterConfig.from_dict({"strict": False})

    def test_from_json_invalid(self):
        """Test invalid JSON handling."""
        with pytest.raises(ConfigError):
            ConverterConfig.from_json("{not json")
        with pytest.raises(ConfigError):
            ConverterConfig.from_json("[1, 2]")

    def test_from_file(self, tmp_path):
        """Test loading configuration from a file."""
        path = tmp_path / "config.json"
        path.write_text(ConverterConfig.lenient().to_json(), encoding="utf-8")

        assert ConverterConfig.from_file(path).strict is False

    def test_from_missing_file(self, tmp_path):
        """Test that a missing file raises ConfigError."""
        with pytest.raises(ConfigError):
            ConverterConfig.from_file(tmp_path / "missing.json")
