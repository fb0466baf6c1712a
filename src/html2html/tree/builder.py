"""Token consumption engine that builds a document tree.

Consumers take the current token, do as much work as belongs to it (a leaf
node, or a whole element including its body) and return the next token to
process. The default consumer looks up overrides in the converter's registry
before falling back to the built-in behavior, so overrides compose with it.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from html2html.shared.errors import (
    LexerFailureError,
    UnexpectedEndTagError,
    UnknownTokenKindError,
    UnterminatedElementError,
)
from html2html.tokenization import Token, TokenType

from .nodes import (
    Element,
    create_comment,
    create_doctype,
    create_document_root,
    create_element,
    create_element_self_closing,
    create_text,
    is_void_element,
)

if TYPE_CHECKING:
    from html2html.api.converter import Converter


class TokenConsumer(ABC):
    """Handler that consumes one token (and whatever belongs to it)."""

    @abstractmethod
    def consume_token(self, parent: Element, lexer: Any, token: Token) -> Token:
        """Consume ``token`` into ``parent`` and return the next token.

        Args:
            parent: Element that receives the nodes built from the token
            lexer: Token source with ``advance()``
            token: Current token, already read from the lexer

        Returns:
            The token the caller should process next
        """


class TagAttrsConsumer(ABC):
    """Handler that copies attributes from a tag token onto an element."""

    @abstractmethod
    def consume_attrs(self, element: Element, token: Token) -> None:
        """Populate ``element`` from ``token.attrs``."""


class DefaultConsumer(TokenConsumer, TagAttrsConsumer):
    """Built-in consumer with override dispatch and end tag recovery.

    In strict mode a stray or mismatched end tag raises
    ``UnexpectedEndTagError`` and input ending inside an element raises
    ``UnterminatedElementError``. In lenient mode a stray end tag is dropped,
    a mismatched one closes the innermost open element and is handed up to
    the ancestors, and the end of input closes every open element.
    """

    def __init__(self, converter: "Converter") -> None:
        self.converter = converter

    @property
    def attrs_consumer(self) -> Optional[TagAttrsConsumer]:
        return self.converter.tag_attrs_consumer

    def consume_token(self, parent: Element, lexer: Any, token: Token) -> Token:
        """Dispatch to a token kind override, a tag name override or the default."""
        override = self.converter.consumer_by_token_type(token.type)
        if override is None and token.type in (TokenType.START_TAG, TokenType.SELF_CLOSING_TAG):
            override = self.converter.consumer_by_tag_name(token.data)

        if override is None:
            return self.consume_token_default(parent, lexer, token)
        if isinstance(override, DefaultConsumer):
            return override.consume_token_default(parent, lexer, token)
        return override.consume_token(parent, lexer, token)

    def consume_token_default(self, parent: Element, lexer: Any, token: Token) -> Token:
        """Consume ``token`` without consulting any override.

        Raises:
            UnexpectedEndTagError: Stray end tag in strict mode
            UnterminatedElementError: Input ended inside an element in strict mode
            LexerFailureError: The lexer reported an error token
            UnknownTokenKindError: The token kind is not handled here
        """
        kind = token.type

        if kind is TokenType.EOF:
            return token

        if kind is TokenType.DOCTYPE:
            parent.append_children(create_doctype(token.data))
            return lexer.advance()

        if kind is TokenType.TEXT:
            parent.append_children(create_text(token.data))
            return lexer.advance()

        if kind is TokenType.COMMENT:
            parent.append_children(create_comment(token.data))
            return lexer.advance()

        if kind is TokenType.SELF_CLOSING_TAG:
            child = create_element_self_closing(token.data)
            self.consume_attrs(child, token)
            parent.append_children(child)
            return lexer.advance()

        if kind is TokenType.END_TAG:
            if self.converter.strict:
                raise UnexpectedEndTagError(token.data)
            return lexer.advance()

        if kind is TokenType.START_TAG:
            child = create_element(token.data)
            self.consume_attrs(child, token)
            parent.append_children(child)
            return self.consume_element_body(child, lexer, token)

        if kind is TokenType.ERROR:
            cause = getattr(lexer, "error", None)
            raise LexerFailureError(cause) from cause

        raise UnknownTokenKindError(kind)

    def consume_element_body(
        self,
        element: Element,
        lexer: Any,
        token: Token,
        tag_name: Optional[str] = None
    ) -> Token:
        """Consume the body of the element opened by ``token``.

        Args:
            element: Element that receives the body
            lexer: Token source positioned on the start tag
            token: The start tag token
            tag_name: Name used for the void element check, defaults to the
                start tag's name

        Returns:
            The token after the matching end tag, or in lenient mode the
            unmatched end tag or the EOF token that ended the body
        """
        start_name = token.data
        if is_void_element(tag_name or start_name, self.converter.void_elements):
            return lexer.advance()

        strict = self.converter.strict
        current = lexer.advance()
        while True:
            while current.type is not TokenType.END_TAG:
                if current.type is TokenType.EOF:
                    if strict:
                        raise UnterminatedElementError(start_name)
                    return current
                current = self.converter.default_consumer.consume_token(element, lexer, current)

            if current.data == start_name:
                return lexer.advance()
            if strict:
                raise UnexpectedEndTagError(current.data, expected=start_name)
            return current

    def consume_attrs(self, element: Element, token: Token) -> None:
        """Copy the token's attribute pairs onto ``element`` in order."""
        attrs_consumer = self.attrs_consumer
        if attrs_consumer is not None and attrs_consumer is not self:
            attrs_consumer.consume_attrs(element, token)
            return
        for key, value in token.attrs:
            element.add_attr(key, value)

    def consume_and_discard(self, lexer: Any, token: Token) -> Token:
        """Consume ``token`` with the default behavior into a detached sink.

        Whatever the token opens, including the whole body of a start tag, is
        read from the lexer and never reaches the caller's tree.
        """
        sink = create_document_root()
        return self.consume_token_default(sink, lexer, token)


class VacuumConsumer(TokenConsumer):
    """Tag name override that drops an element together with its subtree.

    Examples:
        >>> from html2html import Converter
        >>> converter = Converter()
        >>> converter.set_tag_name_consumer("script", VacuumConsumer(converter))
        >>> converter.convert('<script src="x.js"></script><h1>Hi!</h1>')
        '<h1>Hi!</h1>'
    """

    def __init__(self, converter: "Converter") -> None:
        self.converter = converter

    def consume_token(self, parent: Element, lexer: Any, token: Token) -> Token:
        engine = self.converter.default_consumer
        if not isinstance(engine, DefaultConsumer):
            engine = DefaultConsumer(self.converter)
        return engine.consume_and_discard(lexer, token)
