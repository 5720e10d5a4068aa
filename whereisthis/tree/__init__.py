from whereisthis.tree.html import parse_html, to_html
from whereisthis.tree.nodes import (
    ContentNode,
    ContentTree,
    ElementNode,
    EmbeddedDocument,
    MutationRecord,
    Subscription,
    TextNode,
    embedded_root,
)

__all__ = [
    "ContentNode",
    "ContentTree",
    "ElementNode",
    "EmbeddedDocument",
    "MutationRecord",
    "Subscription",
    "TextNode",
    "embedded_root",
    "parse_html",
    "to_html",
]
