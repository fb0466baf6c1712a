"""Document tree model and tree construction for html2html.

Key Components:
    Element, DocumentRoot, Text, Comment, Doctype: Document model
    ConsumerRegistry: Overrides keyed by token kind and tag name
    DefaultConsumer: Token consumption engine with end tag recovery
    VacuumConsumer: Override that drops an element and its subtree
    rewrite: Top-down tree rewrite pass
"""

from .builder import (
    DefaultConsumer,
    TagAttrsConsumer,
    TokenConsumer,
    VacuumConsumer,
)
from .nodes import (
    VOID_ELEMENTS,
    Attribute,
    CharacterData,
    Comment,
    CyclicTreeError,
    Doctype,
    DocumentRoot,
    Element,
    Node,
    NodeType,
    Text,
    create_comment,
    create_doctype,
    create_document_root,
    create_element,
    create_element_self_closing,
    create_text,
    is_void_element,
)
from .registry import ConsumerRegistry
from .transform import RewriteFunction, TagReplacer, rewrite, rewrite_tree

__all__ = [
    # Engine
    "DefaultConsumer",
    "TagAttrsConsumer",
    "TokenConsumer",
    "VacuumConsumer",
    "ConsumerRegistry",

    # Document model
    "VOID_ELEMENTS",
    "Attribute",
    "CharacterData",
    "Comment",
    "CyclicTreeError",
    "Doctype",
    "DocumentRoot",
    "Element",
    "Node",
    "NodeType",
    "Text",
    "create_comment",
    "create_doctype",
    "create_document_root",
    "create_element",
    "create_element_self_closing",
    "create_text",
    "is_void_element",

    # Transformation
    "RewriteFunction",
    "TagReplacer",
    "rewrite",
    "rewrite_tree",
]
