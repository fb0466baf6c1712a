"""Exception hierarchy for markup conversion.

The consumption engine raises the first error it meets and stops; a tree that
was being built when one of these escaped is not guaranteed to be consistent.
Lenient mode only forgives ``UnexpectedEndTagError`` and
``UnterminatedElementError``.
"""

from typing import Any, Optional


class ConversionError(Exception):
    """Base exception for every failure raised while parsing or converting."""


class UnexpectedEndTagError(ConversionError):
    """An end tag had no open element or did not match the innermost one."""

    def __init__(self, found: str, expected: Optional[str] = None) -> None:
        self.found = found
        self.expected = expected
        if expected is None:
            message = f"unexpected end tag: {found}"
        else:
            message = f"unexpected end tag: {found}, expected: {expected}"
        super().__init__(message)


class UnterminatedElementError(ConversionError):
    """Input ended before the end tag of an open element."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"end tag `{name}` is not coming")


class UnknownTokenKindError(ConversionError):
    """The lexer reported a token kind the engine does not handle."""

    def __init__(self, kind: Any) -> None:
        self.kind = kind
        super().__init__(f"unknown token kind: {kind}")


class LexerFailureError(ConversionError):
    """The lexer could not produce a token, e.g. on a malformed byte sequence."""

    def __init__(self, cause: Optional[BaseException]) -> None:
        self.cause = cause
        super().__init__(f"lexer failure: {cause}" if cause else "lexer failure")
