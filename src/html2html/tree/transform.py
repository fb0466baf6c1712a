"""Top-down rewrite passes over a built document tree."""

from typing import Callable, Optional

from .nodes import Element, Node

RewriteFunction = Callable[[Element], Optional[Node]]


def rewrite(element: Element, func: RewriteFunction) -> Optional[Node]:
    """Apply ``func`` to ``element`` and, unless it is replaced, its descendants.

    When ``func`` returns a node, that node is returned as the substitute for
    ``element`` and nothing below ``element`` is visited; ``func`` may call
    ``rewrite`` on the substitute itself if it wants the pass to continue
    there. When ``func`` returns None, every child element is rewritten and
    substitutes are spliced into the child list at the same position.

    Args:
        element: Element (or document root) to start from
        func: Called with each visited element, returns a substitute or None

    Returns:
        The substitute for ``element``, or None if it was kept

    Examples:
        >>> from html2html.tree.nodes import create_element
        >>> def to_span(el):
        ...     if el.name == "strike":
        ...         span = create_element("span")
        ...         span.set_children(el.children)
        ...         return span
        ...     return None
        >>> p = create_element("p")
        >>> p.append_children(create_element("strike"))
        >>> rewrite(p, to_span) is None
        True
        >>> p.to_html()
        '<p><span></span></p>'
    """
    substitute = func(element)
    if substitute is not None:
        return substitute

    for child in list(element.children):
        if not isinstance(child, Element):
            continue
        child_substitute = rewrite(child, func)
        if child_substitute is not None:
            element.replace_child(child, child_substitute)

    return None


def rewrite_tree(element: Element, func: RewriteFunction) -> Node:
    """Run ``rewrite`` and splice a top-level substitute into the parent.

    Returns:
        The node now standing where ``element`` stood
    """
    substitute = rewrite(element, func)
    if substitute is None:
        return element
    if element.parent is not None:
        element.parent.replace_child(element, substitute)
    return substitute


# Name kept for callers used to the replacer wording
TagReplacer = rewrite
