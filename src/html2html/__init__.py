"""html2html.

Turns hand-written, possibly badly nested HTML into a mutable document tree
and back into well-formed markup, with pluggable handling of token kinds and
tag names while the tree is built.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), convert(), convert_file()
- Level 2: Configured converter - Converter class with consumer overrides
- Level 3: Tree construction - DefaultConsumer, TokenConsumer, rewrite()
"""

__version__ = "0.1.0"
__author__ = "html2html developers"

# Level 1 and 2
from .api import ConversionResult, Converter, convert, convert_file, parse

# Configuration and errors
from .shared import (
    ConfigError,
    ConfigValidationError,
    ConversionError,
    ConverterConfig,
    LexerFailureError,
    UnexpectedEndTagError,
    UnknownTokenKindError,
    UnterminatedElementError,
)

# Tokens
from .tokenization import MarkupTokenizer, Token, TokenType

# Level 3
from .tree import (
    DefaultConsumer,
    DocumentRoot,
    Element,
    TagAttrsConsumer,
    TagReplacer,
    TokenConsumer,
    VacuumConsumer,
    rewrite,
)

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "parse",
    "convert",
    "convert_file",

    # Level 2: Configured converter
    "Converter",
    "ConversionResult",
    "ConverterConfig",

    # Level 3: Tree construction
    "DefaultConsumer",
    "TokenConsumer",
    "TagAttrsConsumer",
    "VacuumConsumer",
    "DocumentRoot",
    "Element",
    "rewrite",
    "TagReplacer",

    # Tokens
    "MarkupTokenizer",
    "Token",
    "TokenType",

    # Errors
    "ConfigError",
    "ConfigValidationError",
    "ConversionError",
    "LexerFailureError",
    "UnexpectedEndTagError",
    "UnknownTokenKindError",
    "UnterminatedElementError",
]
