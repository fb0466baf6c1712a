"""Markup tokenization for html2html.

Key Components:
    MarkupTokenizer: Incremental tokenizer with an advance()/current interface
    Token: A single lexical token with kind, name or text, and attributes
    TokenType: Enumeration of token kinds
    TokenPosition: Line, column and offset of a token
    TokenizerState: State machine states used while reading markup
"""

from .tokenizer import (
    MarkupTokenizer,
    Token,
    TokenizerState,
    TokenPosition,
    TokenType,
)

__all__ = [
    "MarkupTokenizer",
    "Token",
    "TokenizerState",
    "TokenPosition",
    "TokenType",
]
