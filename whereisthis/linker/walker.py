from typing import Callable, Iterator, Optional, Set

import structlog

from whereisthis.detect import detect
from whereisthis.linker.replace import ReplacementEngine
from whereisthis.models import EngineSettings, EngineStats, MatchResult
from whereisthis.tree.nodes import ContentNode, ElementNode, EmbeddedDocument, TextNode, embedded_root

logger = structlog.get_logger(__name__)


class ProcessedSet:
    """
    Node ids already handled during one engine lifetime. Append-only.
    """

    def __init__(self):
        self._ids: Set[int] = set()

    def __contains__(self, node: ContentNode) -> bool:
        return node.node_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[int]:
        return iter(self._ids)

    def add(self, node: ContentNode):
        self._ids.add(node.node_id)


Accessor = Callable[[EmbeddedDocument], Optional[ElementNode]]
Detector = Callable[[str], MatchResult]


class TreeWalker:
    def __init__(
        self,
        processed: ProcessedSet,
        replacer: ReplacementEngine,
        settings: Optional[EngineSettings] = None,
        accessor: Accessor = embedded_root,
        detector: Detector = detect,
        stats: Optional[EngineStats] = None,
    ):
        self.processed = processed
        self.replacer = replacer
        self.settings = settings or EngineSettings()
        self.accessor = accessor
        self.detector = detector
        self.stats = stats or EngineStats()

    def is_excluded(self, element: ElementNode) -> bool:
        s = self.settings
        return (
            element.tag in s.skip_tags
            or element.id in (s.host_root_id, s.container_id)
            or element.has_class(s.link_class)
        )

    def walk(self, root: ContentNode):
        """
        Depth-first, pre-order scan of `root` and everything below it. Nothing
        happens when `root` sits at or below an excluded element, which is the
        case for text a page inserts into an existing link or script.
        """
        if root.closest(self.is_excluded) is not None:
            return
        self._visit(root)

    def _visit(self, node: ContentNode):
        if node in self.processed:
            return

        if isinstance(node, TextNode):
            self._visit_text(node)
        elif isinstance(node, EmbeddedDocument):
            inner = self.accessor(node)
            if inner is None:
                logger.debug(f"Embedded document #{node.node_id} is not accessible; skipped")
                return
            self._visit(inner)
        elif isinstance(node, ElementNode):
            if self.is_excluded(node):
                return
            # Snapshot: replacements rewrite the child list while we iterate.
            for child in list(node.children):
                self._visit(child)

    def _visit_text(self, leaf: TextNode):
        text = leaf.text
        if not text or not text.strip():
            return

        self.stats.leaves_visited += 1
        result = self.detector(text.strip())
        if not result.valid:
            return

        self.replacer.replace(leaf, text, result.matched)
        self.processed.add(leaf)
