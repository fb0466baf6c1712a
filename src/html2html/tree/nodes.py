"""Document tree model: node types, child-list mutation and serialization.

Ownership runs strictly downwards through ``Element.children``. The
``parent`` attribute is a back-reference kept up to date by the child-list
operations and used only for ancestor queries. Every parent assignment is
checked so the tree can never contain a cycle.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from io import StringIO
from typing import ClassVar, FrozenSet, Iterable, Iterator, List, Optional, Protocol

from html2html.shared.config import DEFAULT_VOID_ELEMENTS

VOID_ELEMENTS = DEFAULT_VOID_ELEMENTS


class CyclicTreeError(ValueError):
    """Attaching a node would make it its own ancestor."""


class NodeType(Enum):
    """Kinds of node in a document tree."""

    TAG = auto()        # Elements and the document root
    DOCTYPE = auto()
    TEXT = auto()
    COMMENT = auto()


class Writable(Protocol):
    """Anything ``build_html`` can write to."""

    def write(self, text: str) -> int: ...


def is_void_element(name: str, void_elements: Iterable[str] = VOID_ELEMENTS) -> bool:
    """Check if ``name`` is an element that has no body and no end tag."""
    return name.lower() in void_elements


def _check_acyclic(node: "Node", parent: Optional["Element"]) -> None:
    """Raise CyclicTreeError if ``node`` would become its own ancestor.

    Both the prospective ancestor chain (``parent`` upwards) and the chain
    ``node`` currently sits in are walked; the latter catches a tree that was
    already corrupted by direct attribute assignment.
    """
    seen = set()
    current = parent
    while current is not None:
        if current is node or id(current) in seen:
            raise CyclicTreeError(
                f"attaching {node!r} under {parent!r} would create a cycle"
            )
        seen.add(id(current))
        current = current.parent

    seen.clear()
    current = node.parent
    while current is not None:
        if current is node or id(current) in seen:
            raise CyclicTreeError(f"{node!r} is already part of a cycle")
        seen.add(id(current))
        current = current.parent


class Node:
    """Base class of every node in a document tree."""

    node_type: ClassVar[NodeType]
    parent: Optional["Element"]

    @property
    def is_element(self) -> bool:
        """Check if this node is an element or the document root."""
        return self.node_type is NodeType.TAG

    def _detach(self) -> None:
        """Remove this node from its current parent's child list, if any."""
        if self.parent is not None:
            siblings = self.parent.children
            for index, sibling in enumerate(siblings):
                if sibling is self:
                    del siblings[index]
                    break
            self.parent = None

    def build_html(self, buf: Writable, void_elements: FrozenSet[str] = VOID_ELEMENTS) -> None:
        """Write the serialized form of this node to ``buf``."""
        raise NotImplementedError

    def to_html(self, void_elements: FrozenSet[str] = VOID_ELEMENTS) -> str:
        """Serialize this node and its subtree to a string."""
        buf = StringIO()
        self.build_html(buf, void_elements)
        return buf.getvalue()


@dataclass(eq=False)
class CharacterData(Node):
    """Leaf node holding a raw string."""

    text: str = ""
    parent: Optional["Element"] = field(default=None, init=False, repr=False)


@dataclass(eq=False, repr=False)
class Text(CharacterData):
    """Character data, written out verbatim."""

    node_type = NodeType.TEXT

    def __repr__(self) -> str:
        return f"Text({self.text!r})"

    def build_html(self, buf: Writable, void_elements: FrozenSet[str] = VOID_ELEMENTS) -> None:
        buf.write(self.text)


@dataclass(eq=False, repr=False)
class Comment(CharacterData):
    """Comment, written as ``<!--text-->``."""

    node_type = NodeType.COMMENT

    def __repr__(self) -> str:
        return f"Comment({self.text!r})"

    def build_html(self, buf: Writable, void_elements: FrozenSet[str] = VOID_ELEMENTS) -> None:
        buf.write("<!--")
        buf.write(self.text)
        buf.write("-->")


@dataclass(eq=False, repr=False)
class Doctype(CharacterData):
    """Document type declaration, written as ``<!DOCTYPE text>``."""

    node_type = NodeType.DOCTYPE

    def __repr__(self) -> str:
        return f"Doctype({self.text!r})"

    def build_html(self, buf: Writable, void_elements: FrozenSet[str] = VOID_ELEMENTS) -> None:
        buf.write("<!DOCTYPE ")
        buf.write(self.text)
        buf.write(">")


@dataclass
class Attribute:
    """Single attribute pair. Keys are not unique within an element."""

    key: str
    value: str = ""


@dataclass(eq=False)
class Element(Node):
    """Element with a name, ordered attributes and owned children.

    Examples:
        >>> a = create_element("a")
        >>> a.add_attr("href", "/")
        >>> text = a.add_text("home")
        >>> a.to_html()
        '<a href="/">home</a>'
    """

    name: str = ""
    attributes: List[Attribute] = field(default_factory=list)
    self_closing: bool = False
    children: List[Node] = field(default_factory=list)
    parent: Optional["Element"] = field(default=None, init=False, repr=False)

    node_type = NodeType.TAG

    def __post_init__(self) -> None:
        """Validate the name and adopt any children passed in."""
        if not self.name and not self.is_document_root:
            raise ValueError("Element name cannot be empty")
        initial_children = list(self.children)
        self.children = []
        self.append_children(*initial_children)

    def __repr__(self) -> str:
        return f"Element({self.name!r}, children={len(self.children)})"

    @property
    def is_document_root(self) -> bool:
        """Check if this is the nameless root of a document."""
        return False

    # Child list operations

    def append_children(self, *nodes: Node) -> None:
        """Append nodes in order, moving each out of its previous parent."""
        for node in nodes:
            _check_acyclic(node, self)
            node._detach()
            node.parent = self
            self.children.append(node)

    def prepend_child(self, node: Node) -> None:
        """Insert ``node`` before all existing children."""
        _check_acyclic(node, self)
        node._detach()
        node.parent = self
        self.children.insert(0, node)

    def replace_child(self, old: Node, new: Node) -> None:
        """Put ``new`` at the position of ``old`` and detach ``old``.

        Raises:
            ValueError: If ``old`` is not a child of this element
        """
        if old is new:
            return
        if not any(child is old for child in self.children):
            raise ValueError(f"{old!r} is not a child of {self!r}")
        _check_acyclic(new, self)
        new._detach()
        index = next(i for i, child in enumerate(self.children) if child is old)
        old.parent = None
        new.parent = self
        self.children[index] = new

    def remove_child(self, node: Node) -> bool:
        """Detach ``node`` if it is a child. Returns whether it was."""
        if node.parent is not self:
            return False
        node._detach()
        return True

    def set_children(self, nodes: Iterable[Node]) -> None:
        """Replace the whole child list."""
        new_children = list(nodes)
        for child in list(self.children):
            child._detach()
        self.append_children(*new_children)

    def add_text(self, text: str) -> Text:
        """Append a text node and return it."""
        node = create_text(text)
        self.append_children(node)
        return node

    def add_comment(self, text: str) -> Comment:
        """Append a comment node and return it."""
        node = create_comment(text)
        self.append_children(node)
        return node

    # Queries

    def iter_descendants(self) -> Iterator[Node]:
        """Yield every node below this one in document order."""
        for child in self.children:
            yield child
            if isinstance(child, Element):
                yield from child.iter_descendants()

    def find_descendants_by_name(self, name: str) -> List["Element"]:
        """Find all descendant elements named ``name``, ignoring case."""
        target = name.lower()
        return [
            node for node in self.iter_descendants()
            if isinstance(node, Element) and node.name.lower() == target
        ]

    def find_ancestor_by_name(self, name: str) -> Optional["Element"]:
        """Return the nearest ancestor named ``name``, or None."""
        current = self.parent
        while current is not None:
            if current.name == name:
                return current
            current = current.parent
        return None

    # Attributes

    def add_attr(self, key: str, value: str = "") -> None:
        """Append an attribute pair; existing pairs with the same key stay."""
        self.attributes.append(Attribute(key, value))

    def set_attrs(self, attributes: Iterable[Attribute]) -> None:
        """Replace all attributes."""
        self.attributes = list(attributes)

    def get_attr(self, key: str) -> Optional[Attribute]:
        """Return the first attribute named ``key``, or None."""
        for attr in self.attributes:
            if attr.key == key:
                return attr
        return None

    def remove_attr(self, key: str) -> None:
        """Remove every attribute named ``key``."""
        self.attributes = [attr for attr in self.attributes if attr.key != key]

    def has_attr(self, key: str) -> bool:
        """Check if an attribute named ``key`` is present."""
        return self.get_attr(key) is not None

    def has_attr_value(self, key: str, value: str) -> bool:
        """Check if the first attribute named ``key`` has exactly ``value``."""
        attr = self.get_attr(key)
        return attr is not None and attr.value == value

    def has_attr_value_case_insensitive(self, key: str, value: str) -> bool:
        """Like ``has_attr_value`` but compares values ignoring case."""
        attr = self.get_attr(key)
        return attr is not None and attr.value.lower() == value.lower()

    # Serialization

    def build_html(self, buf: Writable, void_elements: FrozenSet[str] = VOID_ELEMENTS) -> None:
        """Write this element and its subtree to ``buf``.

        Attribute values are copied verbatim, nothing is escaped. A
        self-closing element is written as ``<name/>`` and its children are
        ignored. A void element never gets an end tag.
        """
        is_root = self.is_document_root
        if not is_root:
            buf.write("<")
            buf.write(self.name)
            for attr in self.attributes:
                buf.write(" ")
                buf.write(attr.key)
                if attr.value != "":
                    buf.write('="')
                    buf.write(attr.value)
                    buf.write('"')
            if self.self_closing:
                buf.write("/>")
                return
            buf.write(">")

        for child in self.children:
            child.build_html(buf, void_elements)

        if not is_root and not is_void_element(self.name, void_elements):
            buf.write("</")
            buf.write(self.name)
            buf.write(">")


@dataclass(eq=False, repr=False)
class DocumentRoot(Element):
    """Top-level container; it has no tag syntax of its own."""

    def __post_init__(self) -> None:
        if self.name or self.attributes or self.self_closing:
            raise ValueError("Document root has no name, attributes or self-closing flag")
        super().__post_init__()

    def __repr__(self) -> str:
        return f"DocumentRoot(children={len(self.children)})"

    @property
    def is_document_root(self) -> bool:
        return True


def create_document_root() -> DocumentRoot:
    """Create an empty document root."""
    return DocumentRoot()


def create_element(name: str) -> Element:
    """Create an element that is written with an end tag."""
    return Element(name=name)


def create_element_self_closing(name: str) -> Element:
    """Create an element written as ``<name/>``."""
    return Element(name=name, self_closing=True)


def create_text(text: str) -> Text:
    """Create a text node."""
    return Text(text)


def create_comment(text: str) -> Comment:
    """Create a comment node."""
    return Comment(text)


def create_doctype(text: str) -> Doctype:
    """Create a doctype node."""
    return Doctype(text)
