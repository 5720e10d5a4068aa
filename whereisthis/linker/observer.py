from typing import List, Optional

import structlog

from whereisthis.linker.walker import TreeWalker
from whereisthis.models import EngineStats
from whereisthis.tree.nodes import ContentTree, MutationRecord, Subscription

logger = structlog.get_logger(__name__)


class ChangeObserver:
    """
    Feeds newly inserted subtrees, and only those, to the walker.

    Nodes the engine inserts itself are reported here too; the walker's
    exclusion rules make the reference nodes inert.
    """

    def __init__(self, tree: ContentTree, walker: TreeWalker, stats: Optional[EngineStats] = None):
        self.tree = tree
        self.walker = walker
        self.stats = stats or EngineStats()
        self.subscription: Optional[Subscription] = None

    @property
    def connected(self) -> bool:
        return self.subscription is not None and self.subscription.active

    def connect(self) -> Subscription:
        if not self.connected:
            self.subscription = self.tree.observe(self._on_mutations)
        return self.subscription

    def disconnect(self):
        if self.subscription is not None:
            self.subscription.disconnect()
            self.subscription = None

    def _on_mutations(self, records: List[MutationRecord]):
        for record in records:
            for node in record.added_nodes:
                # Already moved out again by a later mutation in this batch.
                if not node.is_connected:
                    continue
                try:
                    self.walker.walk(node)
                except Exception as e:
                    self.stats.failures += 1
                    logger.error(f"Address linking failed for inserted node #{node.node_id}: {e}", exc_info=True)
