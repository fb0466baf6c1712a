"""Conversion API: markup source in, document tree or normalized markup out.

``Converter`` is the configurable entry point; the module-level ``parse`` and
``convert`` functions build a throwaway converter per call. Both raise the
``ConversionError`` family. ``convert_file`` is the never-fail variant used by
the command line: it reports problems as diagnostics on a result object.
"""

import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, Callable, Dict, FrozenSet, List, Optional, TextIO, Union

from html2html.shared import (
    ConversionError,
    ConversionMetrics,
    ConverterConfig,
    DiagnosticEntry,
    DiagnosticSeverity,
    get_logger,
)
from html2html.tokenization import MarkupTokenizer, TokenType
from html2html.tree import (
    ConsumerRegistry,
    DefaultConsumer,
    DocumentRoot,
    Element,
    Node,
    TagAttrsConsumer,
    TokenConsumer,
    VacuumConsumer,
    create_document_root,
    rewrite_tree,
)

InputType = Union[str, bytes, BinaryIO, TextIO, Path]

MS_PER_SECOND = 1000

Transform = Callable[[Element], Optional[Node]]


class Converter:
    """Configurable markup converter.

    Overrides registered here are consulted by the default consumer for every
    token, so they apply at any depth of the document.

    Examples:
        Strict conversion of well-formed markup:
        >>> Converter().convert('<p>Hi<br></p>')
        '<p>Hi<br></p>'

        Lenient recovery of broken nesting:
        >>> converter = Converter()
        >>> converter.strict = False
        >>> converter.convert('<i><b>Hi!</i>')
        '<i><b>Hi!</b></i>'
    """

    def __init__(
        self,
        config: Optional[ConverterConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize converter.

        Args:
            config: Converter configuration (defaults to strict end tags)
            correlation_id: Optional correlation ID for log records
        """
        self.config = config or ConverterConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "converter")

        self._strict = self.config.tree.strict_end_tags
        self._registry = ConsumerRegistry()
        self._default_consumer: TokenConsumer = DefaultConsumer(self)
        self._tag_attrs_consumer: Optional[TagAttrsConsumer] = None
        self._transforms: List[Transform] = []

        self.last_metrics: Optional[ConversionMetrics] = None
        self._conversion_count = 0
        self._total_processing_time = 0.0

        if self.config.tree.vacuum_tags:
            self.vacuum(*self.config.tree.vacuum_tags)

    # Configuration surface

    @property
    def strict(self) -> bool:
        """Whether end tag mismatches raise instead of being recovered."""
        return self._strict

    @strict.setter
    def strict(self, value: bool) -> None:
        self._strict = bool(value)

    @property
    def void_elements(self) -> FrozenSet[str]:
        return self.config.tree.void_elements

    @property
    def registry(self) -> ConsumerRegistry:
        return self._registry

    @property
    def default_consumer(self) -> TokenConsumer:
        return self._default_consumer

    def set_default_consumer(self, consumer: TokenConsumer) -> None:
        """Replace the consumer that every token goes through first."""
        self._default_consumer = consumer

    @property
    def tag_attrs_consumer(self) -> Optional[TagAttrsConsumer]:
        return self._tag_attrs_consumer

    def set_tag_attrs_consumer(self, consumer: Optional[TagAttrsConsumer]) -> None:
        """Replace the attribute copying step; None restores the default."""
        self._tag_attrs_consumer = consumer

    def set_token_type_consumer(
        self, token_type: TokenType, consumer: Optional[TokenConsumer]
    ) -> None:
        """Override handling of a token kind; None removes the override."""
        self._registry.set_token_type_consumer(token_type, consumer)

    def set_tag_name_consumer(self, tag_name: str, consumer: Optional[TokenConsumer]) -> None:
        """Override handling of start and self-closing tags named ``tag_name``.

        None removes the override. Names are lowercased like the lexer lowercases
        them, unless ``lexer.lowercase_names`` is off.
        """
        self._registry.set_tag_name_consumer(self._tag_key(tag_name), consumer)

    def consumer_by_token_type(self, token_type: Any) -> Optional[TokenConsumer]:
        return self._registry.consumer_by_token_type(token_type)

    def consumer_by_tag_name(self, tag_name: str) -> Optional[TokenConsumer]:
        return self._registry.consumer_by_tag_name(self._tag_key(tag_name))

    def _tag_key(self, tag_name: str) -> str:
        # The lexer reports lowercased names unless configured otherwise
        return tag_name.lower() if self.config.lexer.lowercase_names else tag_name

    def vacuum(self, *tag_names: str) -> None:
        """Drop every element named in ``tag_names`` together with its content."""
        consumer = VacuumConsumer(self)
        for tag_name in tag_names:
            self.set_tag_name_consumer(tag_name, consumer)

    def add_transform(self, func: Transform) -> None:
        """Register a rewrite pass run on every parsed tree, in order.

        ``func`` is called with each element below the document root; see
        ``html2html.tree.rewrite`` for how substitutes are handled.
        """
        self._transforms.append(func)

    # Conversion

    def parse(self, source: InputType) -> DocumentRoot:
        """Build a document tree from ``source``.

        Args:
            source: Markup as str or bytes, a text or binary file-like object,
                or a Path to read

        Returns:
            DocumentRoot holding the parsed, transformed tree

        Raises:
            ConversionError: On end tag errors in strict mode or a lexer failure
        """
        if isinstance(source, Path):
            with source.open("rb") as stream:
                return self._parse_stream(stream)
        return self._parse_stream(source)

    def convert(self, source: InputType) -> str:
        """Parse ``source`` and serialize the resulting tree."""
        start_time = time.time()
        root = self.parse(source)
        output = root.to_html(self.void_elements)

        if self.last_metrics is not None:
            self.last_metrics.characters_out = len(output)
            self.last_metrics.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
        return output

    def _parse_stream(self, source: Union[str, bytes, BinaryIO, TextIO]) -> DocumentRoot:
        start_time = time.time()
        self.logger.debug(
            "Starting parse",
            extra={
                "input_type": type(source).__name__,
                "strict": self.strict,
                "overrides": len(self._registry)
            }
        )

        lexer = MarkupTokenizer(source, self.config.lexer, self.correlation_id)
        root = create_document_root()
        token = lexer.advance()
        while token.type is not TokenType.EOF:
            token = self._default_consumer.consume_token(root, lexer, token)

        for func in self._transforms:
            for child in list(root.children):
                if isinstance(child, Element):
                    rewrite_tree(child, func)

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        self.last_metrics = ConversionMetrics(
            processing_time_ms=processing_time,
            characters_in=lexer.characters_read,
            tokens_consumed=lexer.tokens_emitted,
            nodes_built=sum(1 for _ in root.iter_descendants()),
        )
        self._conversion_count += 1
        self._total_processing_time += processing_time

        self.logger.debug(
            "Parse completed",
            extra={
                "tokens_consumed": self.last_metrics.tokens_consumed,
                "nodes_built": self.last_metrics.nodes_built,
                "processing_time_ms": processing_time
            }
        )
        return root

    @property
    def statistics(self) -> Dict[str, Any]:
        """Usage statistics across every successful parse of this converter."""
        return {
            "total_conversions": self._conversion_count,
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._conversion_count
                if self._conversion_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }


@dataclass
class ConversionResult:
    """Outcome of converting one file; never raised, always returned."""

    success: bool = True
    output: str = ""
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    metrics: ConversionMetrics = field(default_factory=ConversionMetrics)
    source_path: Optional[str] = None
    correlation_id: Optional[str] = None

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(DiagnosticEntry(
            severity=severity,
            message=message,
            component=component,
            details=details,
            correlation_id=self.correlation_id
        ))

    @property
    def has_errors(self) -> bool:
        """Check if any ERROR or CRITICAL diagnostics were recorded."""
        return any(
            d.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for d in self.diagnostics
        )

    def summary(self) -> Dict[str, Any]:
        """JSON-friendly summary of the result without the output text."""
        return {
            "source_path": self.source_path,
            "success": self.success,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "metrics": self.metrics.to_dict(),
        }


def parse(
    source: InputType,
    strict: Optional[bool] = None,
    config: Optional[ConverterConfig] = None,
    correlation_id: Optional[str] = None
) -> DocumentRoot:
    """Parse markup into a document tree.

    Args:
        source: Markup as str, bytes, file-like object or Path
        strict: Overrides the configured end tag handling when given
        config: Converter configuration (defaults to strict end tags)
        correlation_id: Optional correlation ID for log records

    Examples:
        >>> parse('<p>Hi</p>').children[0].name
        'p'
    """
    return _make_converter(strict, config, correlation_id).parse(source)


def convert(
    source: InputType,
    strict: Optional[bool] = None,
    config: Optional[ConverterConfig] = None,
    correlation_id: Optional[str] = None
) -> str:
    """Parse markup and serialize it again.

    Examples:
        >>> convert('<i>Hi!</b>', strict=False)
        '<i>Hi!</i>'
    """
    return _make_converter(strict, config, correlation_id).convert(source)


def convert_file(
    file_path: Union[str, Path],
    converter: Optional[Converter] = None,
    config: Optional[ConverterConfig] = None,
    correlation_id: Optional[str] = None
) -> ConversionResult:
    """Convert a file, reporting failures as diagnostics instead of raising.

    Args:
        file_path: Path of the markup file
        converter: Preconfigured converter to use, built from ``config`` if None
        config: Converter configuration used when no converter is given
        correlation_id: Optional correlation ID for log records and diagnostics

    Returns:
        ConversionResult with the output on success
    """
    path_obj = Path(file_path)
    logger = get_logger(__name__, correlation_id, "convert_file")
    result = ConversionResult(source_path=str(path_obj), correlation_id=correlation_id)
    conv = converter or Converter(config, correlation_id)

    if not path_obj.is_file():
        result.success = False
        result.add_diagnostic(
            DiagnosticSeverity.CRITICAL,
            f"File not found: {path_obj}",
            "file_reader",
            details={"file_path": str(path_obj)}
        )
        return result

    start_time = time.time()
    try:
        result.output = conv.parse(path_obj).to_html(conv.void_elements)
    except OSError as e:
        result.success = False
        result.add_diagnostic(
            DiagnosticSeverity.CRITICAL,
            f"Cannot read file: {e}",
            "file_reader",
            details={"file_path": str(path_obj), "exception_type": type(e).__name__}
        )
        logger.warning("File could not be read", extra={"file_path": str(path_obj)})
        return result
    except ConversionError as e:
        result.success = False
        result.add_diagnostic(
            DiagnosticSeverity.ERROR,
            str(e),
            "converter",
            details={"file_path": str(path_obj), "exception_type": type(e).__name__}
        )
        logger.info(
            "File conversion failed",
            extra={"file_path": str(path_obj), "error": str(e)}
        )
        return result

    if conv.last_metrics is not None:
        result.metrics = conv.last_metrics
    result.metrics.characters_out = len(result.output)
    result.metrics.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
    result.add_diagnostic(
        DiagnosticSeverity.INFO,
        "File converted",
        "converter",
        details={"strict": conv.strict}
    )
    return result


def _make_converter(
    strict: Optional[bool],
    config: Optional[ConverterConfig],
    correlation_id: Optional[str]
) -> Converter:
    converter = Converter(config, correlation_id)
    if strict is not None:
        converter.strict = strict
    return converter
