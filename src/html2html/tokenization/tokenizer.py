"""Pull-style markup tokenizer built on a character state machine.

The tokenizer reads its input incrementally and hands out one token per
``advance()`` call. Tag names and attribute keys are lowercased by default;
attribute values and text are passed through verbatim, no character
references are decoded.
"""

import codecs
import io
import logging
import re
from collections import deque
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, BinaryIO, Deque, List, Optional, TextIO, Tuple, Union

from html2html.shared.config import LexerConfig

InputType = Union[str, bytes, TextIO, BinaryIO]

WHITESPACE = " \t\n\r\f"

# Characters after which a raw text body may have reached its end tag
_RAW_TEXT_STOP = re.compile("[" + re.escape(WHITESPACE + "/>") + "]")

logger = logging.getLogger(__name__)


class TokenType(Enum):
    """Kinds of token produced by the tokenizer."""

    START_TAG = auto()          # <name attr="value">
    END_TAG = auto()            # </name>
    SELF_CLOSING_TAG = auto()   # <name attr="value"/>
    TEXT = auto()               # Character data between tags
    COMMENT = auto()            # <!-- ... -->, also <!...> and <?...>
    DOCTYPE = auto()            # <!DOCTYPE ...>
    EOF = auto()                # End of input reached
    ERROR = auto()              # Input could not be read, see tokenizer.error


class TokenizerState(Enum):
    """State machine states for markup tokenization."""

    TEXT_CONTENT = auto()
    TAG_OPENING = auto()            # After <
    END_TAG_OPENING = auto()        # After </
    TAG_NAME = auto()
    BEFORE_ATTR_NAME = auto()
    ATTR_NAME = auto()
    AFTER_ATTR_NAME = auto()
    ATTR_VALUE_START = auto()
    ATTR_VALUE_QUOTED = auto()
    ATTR_VALUE_UNQUOTED = auto()
    SELF_CLOSING_START = auto()     # After / inside a tag
    MARKUP_DECLARATION = auto()     # After <!
    COMMENT_CONTENT = auto()
    DOCTYPE_CONTENT = auto()
    BOGUS_COMMENT = auto()
    RAW_TEXT = auto()               # Body of script, style and friends


# States in which a tag is being read; unfinished input in these is text
_TAG_STATES = frozenset({
    TokenizerState.TAG_OPENING,
    TokenizerState.END_TAG_OPENING,
    TokenizerState.TAG_NAME,
    TokenizerState.BEFORE_ATTR_NAME,
    TokenizerState.ATTR_NAME,
    TokenizerState.AFTER_ATTR_NAME,
    TokenizerState.ATTR_VALUE_START,
    TokenizerState.ATTR_VALUE_QUOTED,
    TokenizerState.ATTR_VALUE_UNQUOTED,
    TokenizerState.SELF_CLOSING_START,
})


@dataclass
class TokenPosition:
    """Position of the first character of a token."""

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")


@dataclass
class Token:
    """Single lexical token.

    ``data`` holds the tag name for tag tokens and the raw content for text,
    comment and doctype tokens. ``attrs`` keeps attribute pairs in source
    order, duplicates included.
    """

    type: Any
    data: str = ""
    attrs: List[Tuple[str, str]] = field(default_factory=list)
    position: Optional[TokenPosition] = None

    @property
    def is_tag(self) -> bool:
        """Check if this is a start, end or self-closing tag token."""
        return self.type in (
            TokenType.START_TAG, TokenType.END_TAG, TokenType.SELF_CLOSING_TAG
        )

    @property
    def is_terminal(self) -> bool:
        """Check if no further tokens follow this one."""
        return self.type in (TokenType.EOF, TokenType.ERROR)


class MarkupTokenizer:
    """Incremental markup tokenizer with an ``advance()``/``current`` interface.

    Examples:
        >>> lexer = MarkupTokenizer('<a href=x>Hi</a>')
        >>> lexer.advance().type
        <TokenType.START_TAG: 1>
        >>> lexer.current.attrs
        [('href', 'x')]
    """

    def __init__(
        self,
        source: InputType,
        config: Optional[LexerConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the tokenizer.

        Args:
            source: Markup as str or bytes, or a text or binary file-like object
            config: Lexer configuration, defaults to ``LexerConfig()``
            correlation_id: Optional correlation ID for log records
        """
        self.config = config or LexerConfig()
        self.correlation_id = correlation_id
        self._stream = self._open_source(source)
        self._decoder = codecs.getincrementaldecoder(self.config.encoding)(errors="strict")

        self.error: Optional[BaseException] = None
        self.characters_read = 0
        self.tokens_emitted = 0

        self._pending: Deque[Token] = deque()
        self._current: Optional[Token] = None
        self._finished = False

        self.state = TokenizerState.TEXT_CONTENT
        self._line = 1
        self._column = 1
        self._offset = 0
        self._token_start = TokenPosition(1, 1, 0)

        self._text_buffer: List[str] = []
        self._raw: List[str] = []       # Source text of the tag being read
        self._tag_name: List[str] = []
        self._is_end_tag = False
        self._attrs: List[Tuple[str, str]] = []
        self._attr_name: List[str] = []
        self._attr_value: List[str] = []
        self._quote_char = ""
        self._buffer: List[str] = []    # Comment, doctype or raw text content
        self._raw_text_end = ""

    @staticmethod
    def _open_source(source: InputType) -> Union[TextIO, BinaryIO]:
        if isinstance(source, str):
            return io.StringIO(source)
        if isinstance(source, (bytes, bytearray)):
            return io.BytesIO(bytes(source))
        if hasattr(source, "read"):
            return source
        raise TypeError(f"Unsupported markup source: {type(source).__name__}")

    @property
    def current(self) -> Optional[Token]:
        """Token most recently returned by ``advance()``."""
        return self._current

    def advance(self) -> Token:
        """Move to the next token and return it.

        Once the end of input or a read error is reached the same terminal
        token is returned on every further call.
        """
        if self._current is not None and self._current.is_terminal:
            return self._current

        while not self._pending:
            if self._finished:
                self._pending.append(Token(TokenType.EOF, position=self._position()))
                break
            try:
                chunk = self._read_chunk()
            except UnicodeDecodeError as e:
                self.error = e
                self._finished = True
                logger.debug(
                    "Input could not be decoded",
                    extra={
                        "component": "markup_tokenizer",
                        "correlation_id": self.correlation_id,
                        "encoding": self.config.encoding,
                        "error": str(e)
                    }
                )
                self._pending.append(Token(TokenType.ERROR, position=self._position()))
                break
            if chunk is None:
                self._finalize_current_token()
                self._finished = True
                continue
            self._process_chunk(chunk)

        self._current = self._pending.popleft()
        self.tokens_emitted += 1
        return self._current

    def __iter__(self):
        """Iterate over tokens up to and including the terminal token."""
        while True:
            token = self.advance()
            yield token
            if token.is_terminal:
                return

    def _read_chunk(self) -> Optional[str]:
        raw = self._stream.read(self.config.chunk_size)
        if isinstance(raw, (bytes, bytearray)):
            text = self._decoder.decode(raw, final=not raw)
        else:
            text = raw
        if not raw:
            return None
        self.characters_read += len(text)
        return text

    def _position(self) -> TokenPosition:
        return TokenPosition(self._line, self._column, self._offset)

    def _process_chunk(self, chunk: str) -> None:
        """Feed ``chunk`` through the state machine.

        In text, comment and raw text content, runs of characters that cannot
        change the state are copied as slices; every other character goes
        through its state handler.
        """
        index = 0
        length = len(chunk)
        while index < length:
            stop = self._find_run_end(chunk, index)
            if stop > index:
                self._append_run(chunk[index:stop])
                index = stop
                continue
            self._process_character(chunk[index])
            index += 1

    def _find_run_end(self, chunk: str, index: int) -> int:
        if self.state == TokenizerState.TEXT_CONTENT:
            stop = chunk.find("<", index)
        elif self.state == TokenizerState.COMMENT_CONTENT:
            stop = chunk.find(">", index)
        elif self.state == TokenizerState.RAW_TEXT:
            match = _RAW_TEXT_STOP.search(chunk, index)
            stop = match.start() if match else -1
        else:
            return index
        return len(chunk) if stop == -1 else stop

    def _append_run(self, run: str) -> None:
        if self.state == TokenizerState.TEXT_CONTENT:
            if not self._text_buffer:
                self._token_start = self._position()
            self._text_buffer.append(run)
        else:
            self._buffer.append(run)

        self._offset += len(run)
        newlines = run.count("\n")
        if newlines:
            self._line += newlines
            self._column = len(run) - run.rfind("\n")
        else:
            self._column += len(run)

    def _process_character(self, char: str) -> None:
        """Process a single character through the state machine."""
        handler = self._handlers[self.state]
        handler(self, char)
        self._update_position(char)

    def _update_position(self, char: str) -> None:
        self._offset += 1
        if char == "\n":
            self._line += 1
            self._column = 1
        else:
            self._column += 1

    def _buffer_tail(self, size: int) -> str:
        """Last ``size`` characters of the content buffer, or fewer."""
        tail = ""
        for piece in reversed(self._buffer):
            tail = piece[-(size - len(tail)):] + tail
            if len(tail) >= size:
                break
        return tail

    # Token emission

    def _emit(self, token_type: TokenType, data: str = "",
              attrs: Optional[List[Tuple[str, str]]] = None) -> None:
        self._pending.append(Token(
            type=token_type,
            data=data,
            attrs=attrs if attrs is not None else [],
            position=self._token_start
        ))

    def _flush_text(self) -> None:
        if self._text_buffer:
            self._emit(TokenType.TEXT, "".join(self._text_buffer))
            self._text_buffer = []

    def _normalize_name(self, name: str) -> str:
        return name.lower() if self.config.lowercase_names else name

    def _start_tag(self, char: str) -> None:
        self._flush_text()
        self._token_start = self._position()
        self._raw = [char]
        self._tag_name = []
        self._is_end_tag = False
        self._attrs = []
        self.state = TokenizerState.TAG_OPENING

    def _finish_attr(self) -> None:
        if self._attr_name:
            name = self._normalize_name("".join(self._attr_name))
            self._attrs.append((name, "".join(self._attr_value)))
        self._attr_name = []
        self._attr_value = []

    def _emit_tag(self, self_closing: bool = False) -> None:
        name = self._normalize_name("".join(self._tag_name))
        self._raw = []
        self.state = TokenizerState.TEXT_CONTENT
        if self._is_end_tag:
            # Attributes on end tags carry no meaning
            self._emit(TokenType.END_TAG, name)
            return
        if self_closing:
            self._emit(TokenType.SELF_CLOSING_TAG, name, self._attrs)
            return
        self._emit(TokenType.START_TAG, name, self._attrs)
        if name.lower() in self.config.raw_text_elements:
            self._buffer = []
            self._raw_text_end = "</" + name.lower()
            # Raw text starts right after the closing >
            self._token_start = TokenPosition(self._line, self._column + 1, self._offset + 1)
            self.state = TokenizerState.RAW_TEXT

    def _reprocess_as_text(self, char: str) -> None:
        """Treat the tag read so far as literal text and continue with ``char``."""
        self._text_buffer = self._raw
        self._raw = []
        self.state = TokenizerState.TEXT_CONTENT
        self._process_text_content(char)

    # State handlers

    def _process_text_content(self, char: str) -> None:
        if char == "<":
            self._start_tag(char)
        else:
            if not self._text_buffer:
                self._token_start = self._position()
            self._text_buffer.append(char)

    def _process_tag_opening(self, char: str) -> None:
        self._raw.append(char)
        if char == "/":
            self.state = TokenizerState.END_TAG_OPENING
        elif char == "!":
            self._buffer = []
            self.state = TokenizerState.MARKUP_DECLARATION
        elif char == "?":
            self._buffer = [char]
            self.state = TokenizerState.BOGUS_COMMENT
        elif char.isalpha():
            self._tag_name = [char]
            self.state = TokenizerState.TAG_NAME
        else:
            # A lone < is text; ``char`` itself may open the next tag
            self._raw.pop()
            self._reprocess_as_text(char)

    def _process_end_tag_opening(self, char: str) -> None:
        self._raw.append(char)
        if char.isalpha():
            self._is_end_tag = True
            self._tag_name = [char]
            self.state = TokenizerState.TAG_NAME
        elif char == ">":
            # </> is dropped
            self._raw = []
            self.state = TokenizerState.TEXT_CONTENT
        else:
            self._buffer = [char]
            self.state = TokenizerState.BOGUS_COMMENT

    def _process_tag_name(self, char: str) -> None:
        self._raw.append(char)
        if char in WHITESPACE:
            self.state = TokenizerState.BEFORE_ATTR_NAME
        elif char == "/":
            self.state = TokenizerState.SELF_CLOSING_START
        elif char == ">":
            self._emit_tag()
        else:
            self._tag_name.append(char)

    def _process_before_attr_name(self, char: str) -> None:
        self._raw.append(char)
        if char in WHITESPACE:
            return
        if char == "/":
            self.state = TokenizerState.SELF_CLOSING_START
        elif char == ">":
            self._emit_tag()
        else:
            self._attr_name = [char]
            self._attr_value = []
            self.state = TokenizerState.ATTR_NAME

    def _process_attr_name(self, char: str) -> None:
        self._raw.append(char)
        if char in WHITESPACE:
            self.state = TokenizerState.AFTER_ATTR_NAME
        elif char == "=":
            self.state = TokenizerState.ATTR_VALUE_START
        elif char == "/":
            self._finish_attr()
            self.state = TokenizerState.SELF_CLOSING_START
        elif char == ">":
            self._finish_attr()
            self._emit_tag()
        else:
            self._attr_name.append(char)

    def _process_after_attr_name(self, char: str) -> None:
        self._raw.append(char)
        if char in WHITESPACE:
            return
        if char == "=":
            self.state = TokenizerState.ATTR_VALUE_START
        elif char == "/":
            self._finish_attr()
            self.state = TokenizerState.SELF_CLOSING_START
        elif char == ">":
            self._finish_attr()
            self._emit_tag()
        else:
            # Previous attribute had no value, a new one starts here
            self._finish_attr()
            self._attr_name = [char]
            self.state = TokenizerState.ATTR_NAME

    def _process_attr_value_start(self, char: str) -> None:
        self._raw.append(char)
        if char in WHITESPACE:
            return
        if char in ('"', "'"):
            self._quote_char = char
            self.state = TokenizerState.ATTR_VALUE_QUOTED
        elif char == ">":
            self._finish_attr()
            self._emit_tag()
        else:
            self._attr_value = [char]
            self.state = TokenizerState.ATTR_VALUE_UNQUOTED

    def _process_attr_value_quoted(self, char: str) -> None:
        self._raw.append(char)
        if char == self._quote_char:
            self._finish_attr()
            self._quote_char = ""
            self.state = TokenizerState.BEFORE_ATTR_NAME
        else:
            self._attr_value.append(char)

    def _process_attr_value_unquoted(self, char: str) -> None:
        # Slashes belong to unquoted values, e.g. href=http://example.com
        self._raw.append(char)
        if char in WHITESPACE:
            self._finish_attr()
            self.state = TokenizerState.BEFORE_ATTR_NAME
        elif char == ">":
            self._finish_attr()
            self._emit_tag()
        else:
            self._attr_value.append(char)

    def _process_self_closing_start(self, char: str) -> None:
        if char == ">":
            self._raw.append(char)
            self._emit_tag(self_closing=True)
        else:
            self.state = TokenizerState.BEFORE_ATTR_NAME
            self._process_before_attr_name(char)

    def _process_markup_declaration(self, char: str) -> None:
        self._raw.append(char)
        if char == ">":
            self._emit(TokenType.COMMENT, "".join(self._buffer))
            self._buffer = []
            self.state = TokenizerState.TEXT_CONTENT
            return
        self._buffer.append(char)
        declaration = "".join(self._buffer)
        if declaration == "--":
            self._buffer = []
            self.state = TokenizerState.COMMENT_CONTENT
        elif declaration.lower() == "doctype":
            self._buffer = []
            self.state = TokenizerState.DOCTYPE_CONTENT
        elif not ("--".startswith(declaration) or "doctype".startswith(declaration.lower())):
            self.state = TokenizerState.BOGUS_COMMENT

    def _process_comment_content(self, char: str) -> None:
        if char == ">" and len(self._buffer) < 2 and "".join(self._buffer) in ("", "-"):
            # <!--> and <!---> are empty comments
            self._emit(TokenType.COMMENT, "")
            self._buffer = []
            self.state = TokenizerState.TEXT_CONTENT
            return
        self._buffer.append(char)
        if char == ">" and self._buffer_tail(3) == "-->":
            self._emit(TokenType.COMMENT, "".join(self._buffer)[:-3])
            self._buffer = []
            self.state = TokenizerState.TEXT_CONTENT

    def _process_doctype_content(self, char: str) -> None:
        if char == ">":
            self._emit(TokenType.DOCTYPE, "".join(self._buffer).strip())
            self._buffer = []
            self.state = TokenizerState.TEXT_CONTENT
        else:
            self._buffer.append(char)

    def _process_bogus_comment(self, char: str) -> None:
        if char == ">":
            self._emit(TokenType.COMMENT, "".join(self._buffer))
            self._buffer = []
            self.state = TokenizerState.TEXT_CONTENT
        else:
            self._buffer.append(char)

    def _process_raw_text(self, char: str) -> None:
        end_length = len(self._raw_text_end)
        if (
            char in WHITESPACE + "/>"
            and self._buffer_tail(end_length).lower() == self._raw_text_end
        ):
            content = "".join(self._buffer)
            text = content[:-end_length]
            end_name = content[-end_length + 2:]
            if text:
                self._emit(TokenType.TEXT, text)
            self._buffer = []
            self._token_start = TokenPosition(
                self._line, max(1, self._column - end_length), self._offset - end_length
            )
            self._raw = ["</" + end_name + char]
            self._tag_name = [end_name]
            self._is_end_tag = True
            self._attrs = []
            if char == ">":
                self._emit_tag()
            elif char == "/":
                self.state = TokenizerState.SELF_CLOSING_START
            else:
                self.state = TokenizerState.BEFORE_ATTR_NAME
        else:
            self._buffer.append(char)

    def _finalize_current_token(self) -> None:
        """Emit whatever the input left unfinished."""
        content = "".join(self._buffer)
        if self.state == TokenizerState.TEXT_CONTENT:
            self._flush_text()
        elif self.state == TokenizerState.RAW_TEXT:
            if content:
                self._emit(TokenType.TEXT, content)
        elif self.state == TokenizerState.COMMENT_CONTENT:
            self._emit(TokenType.COMMENT, content)
        elif self.state == TokenizerState.DOCTYPE_CONTENT:
            self._emit(TokenType.DOCTYPE, content.strip())
        elif self.state in (TokenizerState.BOGUS_COMMENT, TokenizerState.MARKUP_DECLARATION):
            self._emit(TokenType.COMMENT, content)
        elif self.state in _TAG_STATES and self._raw:
            raw = "".join(self._raw)
            logger.debug(
                "Unterminated tag at end of input kept as text",
                extra={
                    "component": "markup_tokenizer",
                    "correlation_id": self.correlation_id,
                    "raw": raw
                }
            )
            self._emit(TokenType.TEXT, raw)
        self._buffer = []
        self._raw = []
        self.state = TokenizerState.TEXT_CONTENT

    _handlers = {
        TokenizerState.TEXT_CONTENT: _process_text_content,
        TokenizerState.TAG_OPENING: _process_tag_opening,
        TokenizerState.END_TAG_OPENING: _process_end_tag_opening,
        TokenizerState.TAG_NAME: _process_tag_name,
        TokenizerState.BEFORE_ATTR_NAME: _process_before_attr_name,
        TokenizerState.ATTR_NAME: _process_attr_name,
        TokenizerState.AFTER_ATTR_NAME: _process_after_attr_name,
        TokenizerState.ATTR_VALUE_START: _process_attr_value_start,
        TokenizerState.ATTR_VALUE_QUOTED: _process_attr_value_quoted,
        TokenizerState.ATTR_VALUE_UNQUOTED: _process_attr_value_unquoted,
        TokenizerState.SELF_CLOSING_START: _process_self_closing_start,
        TokenizerState.MARKUP_DECLARATION: _process_markup_declaration,
        TokenizerState.COMMENT_CONTENT: _process_comment_content,
        TokenizerState.DOCTYPE_CONTENT: _process_doctype_content,
        TokenizerState.BOGUS_COMMENT: _process_bogus_comment,
        TokenizerState.RAW_TEXT: _process_raw_text,
    }
