"""
Conversion between HTML markup and ContentTree, backed by lxml.html.

lxml keeps text as `.text`/`.tail` strings on elements; here every run of
text becomes its own TextNode so it has an identity of its own.
"""

import weakref
from typing import Dict, Optional

import lxml.html
import structlog
from lxml import etree

from whereisthis.tree.nodes import ContentNode, ContentTree, ElementNode, EmbeddedDocument, TextNode

logger = structlog.get_logger(__name__)

_parser = lxml.html.HTMLParser(remove_comments=True, remove_pis=True)

# Parsed node -> the lxml element it was built from.
_sources: "weakref.WeakKeyDictionary[ContentNode, etree._Element]" = weakref.WeakKeyDictionary()


def parse_html(markup: str) -> ContentTree:
    """
    Parses a full HTML document (fragments are wrapped in <html><body>).
    `<iframe srcdoc>` becomes an accessible EmbeddedDocument, any other
    iframe an isolated one.
    """
    try:
        root_el = lxml.html.document_fromstring(markup, parser=_parser)
    except (etree.ParserError, ValueError) as e:
        logger.error(f"HTML parsing failed: {e}")
        raise ValueError(f"Could not parse HTML: {str(e)}") from e

    doctype = root_el.getroottree().docinfo.doctype or None
    root = _from_element(root_el)
    if not isinstance(root, ElementNode):
        raise ValueError("Document root must be an element")
    return ContentTree(root, doctype=doctype)


def _from_element(el) -> ContentNode:
    tag = el.tag.lower()
    if tag == "iframe":
        frame = _from_iframe(el)
        _sources[frame] = el
        return frame

    node = ElementNode(tag, dict(el.attrib))
    _sources[node] = el
    if el.text:
        node.append_child(TextNode(el.text))
    for child in el:
        # Entities and other non-element nodes only contribute their tail.
        if isinstance(child.tag, str):
            node.append_child(_from_element(child))
        if child.tail:
            node.append_child(TextNode(child.tail))
    return node


def _from_iframe(el) -> EmbeddedDocument:
    attributes = dict(el.attrib)
    srcdoc = attributes.get("srcdoc")
    if srcdoc is None or not srcdoc.strip():
        return EmbeddedDocument(accessible=False, attributes=attributes)
    try:
        inner = parse_html(srcdoc)
    except ValueError:
        logger.debug("Unparseable srcdoc; treating frame as isolated")
        return EmbeddedDocument(accessible=False, attributes=attributes)
    return EmbeddedDocument(accessible=True, document=inner, attributes=attributes)


def _element_for(node: ContentNode, tag: str, attributes: Dict[str, str]):
    """
    The lxml element a node serializes into. Parsed nodes reuse the element
    they came from, since lxml's HTML parser accepts names such as `@click`
    or `fb:like` that `etree.Element` rejects. The reused element is emptied
    and its attributes are brought in line with the node.
    """
    el = _sources.get(node)
    if el is not None:
        for child in list(el):
            el.remove(child)
        el.text = None
        el.tail = None
        for name in list(el.attrib):
            if name not in attributes:
                del el.attrib[name]
    else:
        el = etree.Element(tag)

    for name, value in attributes.items():
        if el.get(name) == value:
            continue
        try:
            el.set(name, value)
        except ValueError:
            logger.warning(f"Dropping attribute '{name}' on <{tag}>: not a valid attribute name")
    return el


def _to_element(node: ContentNode):
    if isinstance(node, EmbeddedDocument):
        attributes = dict(node.attributes)
        if node.accessible and node.document is not None:
            attributes["srcdoc"] = to_html(node.document)
        return _element_for(node, "iframe", attributes)

    if not isinstance(node, ElementNode):
        raise TypeError(f"Cannot serialize {node!r} as an element")

    el = _element_for(node, node.tag, node.attributes)

    last: Optional[etree._Element] = None
    for child in node.children:
        if isinstance(child, TextNode):
            if last is None:
                el.text = (el.text or "") + child.text
            else:
                last.tail = (last.tail or "") + child.text
        else:
            sub = _to_element(child)
            el.append(sub)
            last = sub
    return el


def to_html(tree: ContentTree) -> str:
    return lxml.html.tostring(
        _to_element(tree.root),
        encoding="unicode",
        method="html",
        doctype=tree.doctype,
    )
