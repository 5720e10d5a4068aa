"""
Mutable content tree with stable node identities and insertion observation.

Every node gets a process-wide unique `node_id` when it is created. Structural
changes made through ElementNode's mutation methods are queued as
MutationRecords on each subscription of the owning ContentTree and handed
over in batches by `ContentTree.deliver_mutations()`.
"""

import itertools
from typing import Callable, Dict, Iterable, Iterator, List, NamedTuple, Optional, Tuple

_node_ids = itertools.count(1)


class ContentNode:
    def __init__(self):
        self.node_id: int = next(_node_ids)
        self.parent: Optional["ElementNode"] = None
        self.owner: Optional["ContentTree"] = None

    def iter_ancestors(self) -> Iterator["ElementNode"]:
        current = self.parent
        while current is not None:
            yield current
            current = current.parent

    def closest(self, predicate: Callable[["ElementNode"], bool]) -> Optional["ElementNode"]:
        """Nearest element, starting at self, that satisfies `predicate`."""
        if isinstance(self, ElementNode) and predicate(self):
            return self
        for ancestor in self.iter_ancestors():
            if predicate(ancestor):
                return ancestor
        return None

    @property
    def is_connected(self) -> bool:
        """True if the node is reachable from its owning tree's root."""
        if self.owner is None:
            return False
        top = self
        for top in self.iter_ancestors():
            pass
        return top is self.owner.root

    @property
    def text_content(self) -> str:
        return ""

    def _adopt(self, owner: Optional["ContentTree"]):
        self.owner = owner


class TextNode(ContentNode):
    def __init__(self, text: str):
        super().__init__()
        self.text = text

    @property
    def text_content(self) -> str:
        return self.text

    def __repr__(self):
        return f"TextNode(#{self.node_id}, {self.text!r})"


class ElementNode(ContentNode):
    def __init__(self, tag: str, attributes: Optional[Dict[str, str]] = None, children: Iterable[ContentNode] = ()):
        super().__init__()
        self.tag = tag.lower()
        self.attributes: Dict[str, str] = dict(attributes or {})
        self.children: List[ContentNode] = []
        for child in children:
            self.append_child(child)

    def __repr__(self):
        return f"ElementNode(#{self.node_id}, <{self.tag}>, {len(self.children)} children)"

    # --- Attributes ---

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attributes.get(name, default)

    @property
    def id(self) -> Optional[str]:
        return self.attributes.get("id")

    @property
    def classes(self) -> List[str]:
        return self.attributes.get("class", "").split()

    def has_class(self, name: str) -> bool:
        return name in self.classes

    @property
    def text_content(self) -> str:
        return "".join(child.text_content for child in self.children)

    # --- Traversal ---

    def iter_descendants(self) -> Iterator[ContentNode]:
        """Pre-order, not crossing into embedded documents."""
        for child in self.children:
            yield child
            if isinstance(child, ElementNode):
                yield from child.iter_descendants()

    def _adopt(self, owner: Optional["ContentTree"]):
        self.owner = owner
        for child in self.children:
            child._adopt(owner)

    # --- Mutation ---

    def _attach(self, node: ContentNode):
        if node.parent is not None:
            raise ValueError(f"{node!r} already has a parent; remove it first")
        if node is self or (isinstance(node, ElementNode) and any(a is node for a in self.iter_ancestors())):
            raise ValueError(f"Cannot insert {node!r} into its own subtree")
        node.parent = self
        node._adopt(self.owner)

    def _index_of(self, child: ContentNode) -> int:
        for i, c in enumerate(self.children):
            if c is child:
                return i
        raise ValueError(f"{child!r} is not a child of {self!r}")

    def _notify(self, added: Tuple[ContentNode, ...] = (), removed: Tuple[ContentNode, ...] = ()):
        if self.owner is not None:
            self.owner._record(MutationRecord(self, added, removed))

    def append_child(self, node: ContentNode) -> ContentNode:
        self._attach(node)
        self.children.append(node)
        self._notify(added=(node,))
        return node

    def insert_before(self, node: ContentNode, reference: Optional[ContentNode]) -> ContentNode:
        if reference is None:
            return self.append_child(node)
        index = self._index_of(reference)
        self._attach(node)
        self.children.insert(index, node)
        self._notify(added=(node,))
        return node

    def remove_child(self, child: ContentNode) -> ContentNode:
        index = self._index_of(child)
        del self.children[index]
        child.parent = None
        child._adopt(None)
        self._notify(removed=(child,))
        return child

    def replace_child(self, child: ContentNode, replacements: List[ContentNode]):
        """
        Puts `replacements` where `child` was, in order, and detaches `child`.
        Reported as a single mutation record.
        """
        index = self._index_of(child)
        for node in replacements:
            self._attach(node)
        self.children[index : index + 1] = replacements
        child.parent = None
        child._adopt(None)
        self._notify(added=tuple(replacements), removed=(child,))


class EmbeddedDocument(ContentNode):
    """
    A nested document (e.g. an iframe). `document` is only reachable when
    `accessible` is True; cross-origin frames carry no document.
    """

    def __init__(
        self,
        accessible: bool,
        document: Optional["ContentTree"] = None,
        attributes: Optional[Dict[str, str]] = None,
    ):
        super().__init__()
        self.accessible = accessible
        self.document = document
        self.attributes: Dict[str, str] = dict(attributes or {})

    def __repr__(self):
        state = "accessible" if self.accessible else "isolated"
        return f"EmbeddedDocument(#{self.node_id}, {state})"


def embedded_root(node: EmbeddedDocument) -> Optional[ElementNode]:
    """Inner root of an embedded document, or None when access is denied."""
    if not node.accessible or node.document is None:
        return None
    return node.document.root


class MutationRecord(NamedTuple):
    target: ElementNode
    added_nodes: Tuple[ContentNode, ...]
    removed_nodes: Tuple[ContentNode, ...]


MutationCallback = Callable[[List[MutationRecord]], None]


class Subscription:
    def __init__(self, tree: "ContentTree", callback: MutationCallback):
        self.tree = tree
        self.callback = callback
        self.active = True
        self._queue: List[MutationRecord] = []

    def take_records(self) -> List[MutationRecord]:
        records, self._queue = self._queue, []
        return records

    @property
    def pending(self) -> bool:
        return bool(self._queue)

    def disconnect(self):
        if not self.active:
            return
        self.active = False
        self._queue = []
        self.tree._unsubscribe(self)


class ContentTree:
    def __init__(self, root: ElementNode, doctype: Optional[str] = None):
        if root.parent is not None:
            raise ValueError("Tree root must not have a parent")
        self.root = root
        self.doctype = doctype
        self._subscriptions: List[Subscription] = []
        self._delivering = False
        root._adopt(self)

    def observe(self, callback: MutationCallback) -> Subscription:
        """
        Subscribes to structural mutations anywhere in the tree. Only
        mutations made after this call are reported.
        """
        subscription = Subscription(self, callback)
        self._subscriptions.append(subscription)
        return subscription

    def _unsubscribe(self, subscription: Subscription):
        self._subscriptions = [s for s in self._subscriptions if s is not subscription]

    def _record(self, record: MutationRecord):
        for subscription in self._subscriptions:
            subscription._queue.append(record)

    def deliver_mutations(self) -> int:
        """
        Hands queued records to their subscribers, batch by batch, until no
        subscription has anything pending. Records queued by a callback are
        delivered in a later batch of the same call. A nested call made while
        delivering returns immediately. Returns the number of batches.
        """
        if self._delivering:
            return 0

        self._delivering = True
        batches = 0
        try:
            while True:
                pending = [s for s in self._subscriptions if s.pending]
                if not pending:
                    break
                for subscription in pending:
                    records = subscription.take_records()
                    if records and subscription.active:
                        batches += 1
                        subscription.callback(records)
        finally:
            self._delivering = False
        return batches
