from typing import Callable, List, Optional
from urllib.parse import quote

import structlog

from whereisthis.models import EngineSettings, EngineStats
from whereisthis.tree.nodes import ContentNode, ElementNode, TextNode

logger = structlog.get_logger(__name__)

# Characters encodeURIComponent leaves untouched.
_URI_COMPONENT_SAFE = "-_.!~*'()"


def encode_uri_component(text: str) -> str:
    return quote(text, safe=_URI_COMPONENT_SAFE)


def render_reference(address: str, settings: EngineSettings) -> ElementNode:
    """Builds the map link that stands in for `address`."""
    link = ElementNode(
        settings.link_tag,
        {
            "href": f"{settings.map_search_url}{encode_uri_component(address)}",
            "target": settings.link_target,
            "title": settings.link_title,
            "class": settings.link_class,
            "style": settings.link_style,
        },
    )
    link.append_child(TextNode(address))
    return link


Renderer = Callable[[str, EngineSettings], ElementNode]


class ReplacementEngine:
    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        renderer: Renderer = render_reference,
        stats: Optional[EngineStats] = None,
    ):
        self.settings = settings or EngineSettings()
        self.renderer = renderer
        self.stats = stats or EngineStats()

    def replace(self, leaf: TextNode, original_text: str, matched_span: str) -> bool:
        """
        Substitutes `matched_span` inside `leaf` with a reference node.

        The leaf is swapped for [before, reference, after] (empty parts are
        left out) at its position in the parent. Returns False without
        touching the tree if the leaf is detached or the span cannot be found
        in `original_text`. The whole-leaf case compares against the untrimmed
        text, so surrounding whitespace survives as its own text siblings.
        """
        parent = leaf.parent
        if parent is None:
            logger.debug(f"Leaf #{leaf.node_id} is detached; skipping replacement")
            return False

        if original_text == matched_span:
            parent.replace_child(leaf, [self.renderer(matched_span, self.settings)])
            self.stats.links_created += 1
            return True

        index = original_text.find(matched_span) if matched_span else -1
        if index == -1:
            logger.warning(f"Matched span '{matched_span}' not found in leaf #{leaf.node_id}; replacement aborted")
            self.stats.replacements_aborted += 1
            return False

        before = original_text[:index]
        after = original_text[index + len(matched_span) :]

        parts: List[ContentNode] = []
        if before:
            parts.append(TextNode(before))
        parts.append(self.renderer(matched_span, self.settings))
        if after:
            parts.append(TextNode(after))

        parent.replace_child(leaf, parts)
        self.stats.links_created += 1
        logger.debug(f"Linked '{matched_span}' in leaf #{leaf.node_id} ({len(parts)} parts)")
        return True
