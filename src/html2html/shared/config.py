"""Configuration objects for markup conversion.

Configuration is set before a conversion starts and only read while it runs.
All classes are frozen dataclasses so a single configuration object can be
shared by independent converters.
"""

import json
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

# Elements that never take a body or a closing tag
DEFAULT_VOID_ELEMENTS: FrozenSet[str] = frozenset({
    "area",
    "base",
    "br",
    "col",
    "embed",
    "hr",
    "img",
    "input",
    "keygen",
    "link",
    "meta",
    "param",
    "source",
    "track",
    "wbr",
})

# Elements whose content is read verbatim up to the matching end tag
DEFAULT_RAW_TEXT_ELEMENTS: FrozenSet[str] = frozenset({
    "iframe",
    "noembed",
    "noframes",
    "script",
    "style",
    "textarea",
    "title",
    "xmp",
})

# Tags dropped (with their whole subtree) by the sanitizing preset
SANITIZING_VACUUM_TAGS: Tuple[str, ...] = ("script", "style", "iframe")

_COMPONENTS = ("lexer", "tree")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


def _normalize_names(names: Iterable[str]) -> FrozenSet[str]:
    return frozenset(name.lower() for name in names)


@dataclass(frozen=True)
class LexerConfig:
    """Configuration for the markup tokenizer."""

    encoding: str = "utf-8"
    chunk_size: int = 4096
    lowercase_names: bool = True
    raw_text_elements: FrozenSet[str] = DEFAULT_RAW_TEXT_ELEMENTS

    def __post_init__(self) -> None:
        """Validate lexer configuration."""
        if self.chunk_size <= 0:
            raise ConfigValidationError("chunk_size must be > 0", "chunk_size")
        if not self.encoding:
            raise ConfigValidationError("encoding cannot be empty", "encoding")
        try:
            "".encode(self.encoding)
        except LookupError as e:
            raise ConfigValidationError(
                f"unknown encoding: {self.encoding}",
                "encoding",
                suggestions=["utf-8", "latin-1"],
            ) from e
        object.__setattr__(
            self, "raw_text_elements", _normalize_names(self.raw_text_elements)
        )


@dataclass(frozen=True)
class TreeConfig:
    """Configuration for tree construction."""

    strict_end_tags: bool = True
    void_elements: FrozenSet[str] = DEFAULT_VOID_ELEMENTS
    vacuum_tags: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate tree configuration."""
        object.__setattr__(self, "void_elements", _normalize_names(self.void_elements))
        vacuum_tags = tuple(tag.lower() for tag in self.vacuum_tags)
        if any(not tag for tag in vacuum_tags):
            raise ConfigValidationError(
                "vacuum_tags cannot contain empty names", "vacuum_tags"
            )
        object.__setattr__(self, "vacuum_tags", vacuum_tags)


@dataclass(frozen=True)
class ConverterConfig:
    """Complete configuration for a converter.

    Examples:
        >>> config = ConverterConfig.lenient()
        >>> config.tree.strict_end_tags
        False
        >>> config.override(lexer__chunk_size=128).lexer.chunk_size
        128
    """

    lexer: LexerConfig = field(default_factory=LexerConfig)
    tree: TreeConfig = field(default_factory=TreeConfig)

    name: Optional[str] = None
    description: Optional[str] = None

    @property
    def strict(self) -> bool:
        """Whether tag-nesting mismatches raise instead of being recovered."""
        return self.tree.strict_end_tags

    def override(self, **kwargs: Any) -> "ConverterConfig":
        """Create a new configuration with specific overrides.

        Nested fields use ``component__field`` notation, e.g.
        ``tree__strict_end_tags=False``.
        """
        nested_overrides: Dict[str, Dict[str, Any]] = {}
        new_fields: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENTS:
                    raise ConfigValidationError(
                        f"unknown configuration component: {component}",
                        key,
                        suggestions=list(_COMPONENTS),
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                new_fields[key] = value

        for component, overrides in nested_overrides.items():
            try:
                new_fields[component] = replace(getattr(self, component), **overrides)
            except TypeError as e:
                raise ConfigValidationError(str(e), component) from e

        return replace(self, **new_fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a JSON-compatible dictionary."""
        def _value(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {name: _value(getattr(obj, name)) for name in obj.__dataclass_fields__}
            if isinstance(obj, (set, frozenset)):
                return sorted(obj)
            if isinstance(obj, tuple):
                return list(obj)
            return obj

        return _value(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to a JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConverterConfig":
        """Create configuration from a dictionary produced by ``to_dict``."""
        unknown = set(data) - {"lexer", "tree", "name", "description"}
        if unknown:
            raise ConfigValidationError(
                f"unknown configuration keys: {sorted(unknown)}",
                suggestions=["lexer", "tree", "name", "description"],
            )

        lexer_data = dict(data.get("lexer", {}))
        if "raw_text_elements" in lexer_data:
            lexer_data["raw_text_elements"] = frozenset(lexer_data["raw_text_elements"])
        tree_data = dict(data.get("tree", {}))
        if "void_elements" in tree_data:
            tree_data["void_elements"] = frozenset(tree_data["void_elements"])
        if "vacuum_tags" in tree_data:
            tree_data["vacuum_tags"] = tuple(tree_data["vacuum_tags"])

        try:
            return cls(
                lexer=LexerConfig(**lexer_data),
                tree=TreeConfig(**tree_data),
                name=data.get("name"),
                description=data.get("description"),
            )
        except TypeError as e:
            raise ConfigValidationError(str(e)) from e

    @classmethod
    def from_json(cls, json_str: str) -> "ConverterConfig":
        """Create configuration from a JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigError(f"invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError("configuration JSON must be an object")
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ConverterConfig":
        """Load configuration from a JSON file."""
        path_obj = Path(path)
        try:
            content = path_obj.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"cannot read configuration file {path_obj}: {e}") from e
        return cls.from_json(content)

    # Preset factory methods
    @classmethod
    def strict_preset(cls) -> "ConverterConfig":
        """Tag-nesting mismatches are errors."""
        return cls(
            tree=TreeConfig(strict_end_tags=True),
            name="strict",
            description="Reject markup whose end tags do not nest properly",
        )

    @classmethod
    def lenient(cls) -> "ConverterConfig":
        """Tag-nesting mismatches are repaired by auto-closing."""
        return cls(
            tree=TreeConfig(strict_end_tags=False),
            name="lenient",
            description="Close open elements on mismatched end tags or end of input",
        )

    @classmethod
    def sanitizing(cls) -> "ConverterConfig":
        """Lenient conversion that also drops script-like elements."""
        return cls(
            tree=TreeConfig(strict_end_tags=False, vacuum_tags=SANITIZING_VACUUM_TAGS),
            name="sanitizing",
            description="Lenient conversion that removes script, style and iframe subtrees",
        )

    @classmethod
    def preset(cls, name: str) -> "ConverterConfig":
        """Look up a preset by name."""
        presets = {
            "strict": cls.strict_preset,
            "lenient": cls.lenient,
            "sanitizing": cls.sanitizing,
        }
        try:
            return presets[name]()
        except KeyError:
            raise ConfigValidationError(
                f"unknown preset: {name}", "preset", suggestions=sorted(presets)
            ) from None
