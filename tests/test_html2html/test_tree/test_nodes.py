"""Tests for the document tree model."""

import io

import pytest

from html2html.tree.nodes import (
    Attribute,
    CyclicTreeError,
    DocumentRoot,
    Element,
    NodeType,
    create_comment,
    create_doctype,
    create_document_root,
    create_element,
    create_element_self_closing,
    create_text,
    is_void_element,
)


class TestNodeCreation:
    """Test node factories and validation."""

    def test_factories(self):
        """Test node kinds produced by the factories."""
        assert create_document_root().is_document_root
        assert create_element("p").node_type is NodeType.TAG
        assert create_element_self_closing("br").self_closing
        assert create_text("x").node_type is NodeType.TEXT
        assert create_comment("x").node_type is NodeType.COMMENT
        assert create_doctype("html").node_type is NodeType.DOCTYPE

    def test_is_element(self):
        """Test is_element on every kind."""
        assert create_element("p").is_element
        assert create_document_root().is_element
        assert not create_text("x").is_element

    def test_empty_name_rejected(self):
        """Test that elements need a name."""
        with pytest.raises(ValueError, match="name"):
            Element(name="")

    def test_root_rejects_tag_syntax(self):
        """Test that the root has no name or attributes."""
        with pytest.raises(ValueError):
            DocumentRoot(name="html")
        with pytest.raises(ValueError):
            DocumentRoot(attributes=[Attribute("a", "b")])

    def test_initial_children_adopted(self):
        """Test that children passed to the constructor get a parent."""
        text = create_text("x")
        element = Element(name="p", children=[text])
        assert text.parent is element

    def test_void_names(self):
        """Test the void element check."""
        assert is_void_element("br")
        assert is_void_element("IMG")
        assert not is_void_element("div")
        assert is_void_element("x-icon", frozenset({"x-icon"}))


class TestChildOperations:
    """Test child list mutation."""

    def test_append_children_in_order(self):
        """Test append order and parent links."""
        parent = create_element("ul")
        items = [create_element("li") for _ in range(3)]
        parent.append_children(*items)

        assert parent.children == items
        assert all(item.parent is parent for item in items)

    def test_prepend_child(self):
        """Test insertion at the front."""
        parent = create_element("p")
        parent.add_text("world")
        parent.prepend_child(create_text("hello "))

        assert parent.to_html() == "<p>hello world</p>"

    def test_append_moves_node(self):
        """Test that attaching a node detaches it from its old parent."""
        first = create_element("div")
        second = create_element("div")
        child = create_element("span")
        first.append_children(child)
        second.append_children(child)

        assert first.children == []
        assert second.children == [child]
        assert child.parent is second

    def test_replace_child(self):
        """Test replacement keeps position and rebinds parents."""
        parent = create_element("p")
        a, b, c = create_text("a"), create_element("b"), create_text("c")
        parent.append_children(a, b, c)
        new = create_element("i")

        parent.replace_child(b, new)

        assert parent.children == [a, new, c]
        assert new.parent is parent
        assert b.parent is None

    def test_replace_missing_child(self):
        """Test that replacing a non-child raises."""
        parent = create_element("p")
        with pytest.raises(ValueError):
            parent.replace_child(create_text("x"), create_text("y"))

    def test_replace_with_sibling(self):
        """Test replacing a child with one of its siblings."""
        parent = create_element("p")
        a, b = create_text("a"), create_text("b")
        parent.append_children(a, b)

        parent.replace_child(a, b)

        assert parent.children == [b]
        assert a.parent is None

    def test_remove_child(self):
        """Test detaching a child."""
        parent = create_element("p")
        child = parent.add_text("x")

        assert parent.remove_child(child) is True
        assert parent.remove_child(child) is False
        assert child.parent is None

    def test_set_children(self):
        """Test replacing the whole child list."""
        parent = create_element("p")
        old = parent.add_text("old")
        new = create_text("new")
        parent.set_children([new])

        assert parent.children == [new]
        assert old.parent is None

    def test_moving_children_to_new_element(self):
        """Test moving every child into a wrapper."""
        parent = create_element("strike")
        parent.add_text("a")
        parent.append_children(create_element("b"))
        span = create_element("span")

        span.append_children(*parent.children)

        assert parent.children == []
        assert span.to_html() == "<span>a<b></b></span>"


class TestCycles:
    """Test the acyclic tree guard."""

    def test_self_append_rejected(self):
        """Test that an element cannot contain itself."""
        element = create_element("div")
        with pytest.raises(CyclicTreeError):
            element.append_children(element)

    def test_ancestor_append_rejected(self):
        """Test that an ancestor cannot become a descendant."""
        outer = create_element("div")
        inner = create_element("div")
        outer.append_children(inner)

        with pytest.raises(CyclicTreeError):
            inner.append_children(outer)
        with pytest.raises(CyclicTreeError):
            inner.prepend_child(outer)

        assert inner.parent is outer
        assert outer.children == [inner]

    def test_replace_rejects_cycle(self):
        """Test replace_child with an ancestor."""
        outer = create_element("div")
        inner = create_element("div")
        leaf = create_text("x")
        outer.append_children(inner)
        inner.append_children(leaf)

        with pytest.raises(CyclicTreeError):
            inner.replace_child(leaf, outer)

    def test_corrupted_chain_rejected(self):
        """Test that an existing cycle in the parent chain is detected."""
        a = create_element("a")
        b = create_element("b")
        a.parent = b
        b.parent = a

        with pytest.raises(CyclicTreeError):
            create_element("c").append_children(a)

    def test_moving_under_own_ancestor_allowed(self):
        """Test that unwrapping a node into its grandparent works."""
        grand = create_element("div")
        parent = create_element("p")
        child = create_element("b")
        grand.append_children(parent)
        parent.append_children(child)

        grand.append_children(child)

        assert grand.children == [parent, child]
        assert parent.children == []


class TestQueries:
    """Test descendant and ancestor searches."""

    def test_find_descendants_by_name(self):
        """Test case-insensitive, document-order search."""
        root = create_document_root()
        div = create_element("div")
        p1 = Element(name="P")
        p2 = create_element("p")
        span = create_element("span")
        p3 = create_element("p")
        root.append_children(div, p3)
        div.append_children(p1, span)
        span.append_children(p2)

        assert root.find_descendants_by_name("p") == [p1, p2, p3]
        assert root.find_descendants_by_name("table") == []

    def test_find_ancestor_by_name(self):
        """Test nearest ancestor wins."""
        outer = create_element("div")
        middle = create_element("div")
        leaf = create_element("span")
        outer.append_children(middle)
        middle.append_children(leaf)

        assert leaf.find_ancestor_by_name("div") is middle
        assert leaf.find_ancestor_by_name("body") is None

    def test_iter_descendants(self):
        """Test pre-order iteration."""
        p = create_element("p")
        b = create_element("b")
        p.append_children(b, create_text("y"))
        b.add_text("x")

        assert [repr(n) for n in p.iter_descendants()] == [
            "Element('b', children=1)", "Text('x')", "Text('y')"
        ]


class TestAttributes:
    """Test attribute helpers."""

    def test_duplicates_kept_in_order(self):
        """Test that keys are not deduplicated."""
        element = create_element("p")
        element.add_attr("class", "a")
        element.add_attr("class", "b")

        assert [a.value for a in element.attributes] == ["a", "b"]
        assert element.get_attr("class").value == "a"
        assert element.to_html() == '<p class="a" class="b"></p>'

    def test_remove_attr_removes_all(self):
        """Test removal of every pair with a key."""
        element = create_element("p")
        element.add_attr("x", "1")
        element.add_attr("y", "2")
        element.add_attr("x", "3")
        element.remove_attr("x")

        assert element.attributes == [Attribute("y", "2")]

    def test_value_checks(self):
        """Test has_attr and value comparisons."""
        element = create_element("input")
        element.add_attr("type", "Text")

        assert element.has_attr("type")
        assert not element.has_attr("name")
        assert not element.has_attr_value("type", "text")
        assert element.has_attr_value("type", "Text")
        assert element.has_attr_value_case_insensitive("type", "TEXT")
        assert not element.has_attr_value_case_insensitive("name", "x")

    def test_set_attrs(self):
        """Test replacing all attributes."""
        element = create_element("a")
        element.add_attr("href", "/")
        element.set_attrs([Attribute("id", "top")])
        assert element.to_html() == '<a id="top"></a>'


class TestSerialization:
    """Test HTML output."""

    def test_root_renders_children_only(self):
        """Test that the root has no tag syntax."""
        root = create_document_root()
        root.add_text("a")
        root.append_children(create_element("b"))
        assert root.to_html() == "a<b></b>"

    def test_attributes(self):
        """Test bare and quoted attributes without escaping."""
        element = create_element("a")
        element.add_attr("download", "")
        element.add_attr("href", 'x?a=1&b="2"')
        assert element.to_html() == '<a download href="x?a=1&b="2""></a>'

    def test_self_closing_ignores_children(self):
        """Test that self-closing elements drop their children."""
        element = create_element_self_closing("br")
        element.add_attr("class", "x")
        element.add_text("ignored")
        assert element.to_html() == '<br class="x"/>'

    def test_void_element_without_end_tag(self):
        """Test that void elements never get an end tag."""
        img = create_element("img")
        img.add_attr("src", "a.png")
        assert img.to_html() == '<img src="a.png">'

        img.add_text("x")
        assert img.to_html() == '<img src="a.png">x'

    def test_empty_element_gets_end_tag(self):
        """Test non-void elements without children."""
        assert create_element("div").to_html() == "<div></div>"

    def test_custom_void_set(self):
        """Test serialization with a different void element set."""
        icon = create_element("x-icon")
        assert icon.to_html(frozenset({"x-icon"})) == "<x-icon>"

    def test_character_data(self):
        """Test doctype, comment and text output."""
        root = create_document_root()
        root.append_children(
            create_doctype("html"), create_comment(" c "), create_text("a &amp; b")
        )
        assert root.to_html() == "<!DOCTYPE html><!-- c -->a &amp; b"

    def test_build_html_writes_to_buffer(self):
        """Test writing into any object with write()."""
        buf = io.StringIO()
        create_element("p").build_html(buf)
        assert buf.getvalue() == "<p></p>"

    def test_document_built_by_hand(self):
        """Test a full document assembled with the model operations."""
        root = create_document_root()
        root.append_children(create_doctype("html"))
        html = create_element("html")
        root.append_children(html)
        html.add_attr("amp", "")
        html.add_attr("lang", "en")

        head = create_element("head")
        html.append_children(head)
        meta = create_element("meta")
        head.append_children(meta)
        meta.add_attr("charset", "utf-8")
        script = create_element("script")
        head.append_children(script)
        script.add_attr("async", "")
        script.add_attr("src", "https://cdn.ampproject.org/v0.js")
        title = create_element("title")
        head.append_children(title)
        title.add_text("Hello, AMPs")
        link = create_element("link")
        head.append_children(link)
        link.add_attr("rel", "canonical")
        link.add_attr("href", "http://example.ampproject.org/article-metadata.html")
        ld_json = create_element("script")
        head.append_children(ld_json)
        ld_json.add_attr("type", "application/ld+json")
        ld_json.add_text('{"@type": "NewsArticle","image": ["logo.jpg"]}')
        noscript = create_element("noscript")
        head.append_children(noscript)
        style = create_element("style")
        noscript.append_children(style)
        style.add_attr("amp-boilerplate", "")
        style.add_text("body{animation:none}")

        body = create_element("body")
        html.append_children(body)
        h1 = create_element("h1")
        body.append_children(h1)
        h1.add_text("Welcome to the mobile web")

        assert root.to_html() == (
            '<!DOCTYPE html><html amp lang="en"><head><meta charset="utf-8">'
            '<script async src="https://cdn.ampproject.org/v0.js"></script>'
            "<title>Hello, AMPs</title>"
            '<link rel="canonical" href="http://example.ampproject.org/article-metadata.html">'
            '<script type="application/ld+json">{"@type": "NewsArticle","image": ["logo.jpg"]}</script>'
            "<noscript><style amp-boilerplate>body{animation:none}</style></noscript>"
            "</head><body><h1>Welcome to the mobile web</h1></body></html>"
        )
