"""Shared configuration, errors, diagnostics and logging for html2html."""

from .config import (
    DEFAULT_RAW_TEXT_ELEMENTS,
    DEFAULT_VOID_ELEMENTS,
    ConfigError,
    ConfigValidationError,
    ConverterConfig,
    LexerConfig,
    TreeConfig,
)
from .errors import (
    ConversionError,
    LexerFailureError,
    UnexpectedEndTagError,
    UnknownTokenKindError,
    UnterminatedElementError,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)
from .result import (
    ConversionMetrics,
    DiagnosticEntry,
    DiagnosticSeverity,
)

__all__ = [
    "DEFAULT_RAW_TEXT_ELEMENTS",
    "DEFAULT_VOID_ELEMENTS",
    "ConfigError",
    "ConfigValidationError",
    "ConverterConfig",
    "LexerConfig",
    "TreeConfig",
    "ConversionError",
    "LexerFailureError",
    "UnexpectedEndTagError",
    "UnknownTokenKindError",
    "UnterminatedElementError",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
    "ConversionMetrics",
    "DiagnosticEntry",
    "DiagnosticSeverity",
]
