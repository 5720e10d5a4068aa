"""
Engine lifecycle: the enable/disable state, the mutation subscription and
the processed set, with explicit start/stop/teardown transitions.
"""

from typing import Any, Callable, Optional, Tuple, Union

import structlog
from pydantic import ValidationError

from whereisthis.linker.observer import ChangeObserver
from whereisthis.linker.replace import ReplacementEngine
from whereisthis.linker.walker import Accessor, ProcessedSet, TreeWalker
from whereisthis.models import EngineSettings, EngineStats, StoredPreferences, parse_message
from whereisthis.tree.html import parse_html, to_html
from whereisthis.tree.nodes import ContentNode, ContentTree, embedded_root

logger = structlog.get_logger(__name__)

# (delay_seconds, callback). asyncio's loop.call_later fits this shape.
Scheduler = Callable[[float, Callable[[], None]], Any]


def run_immediately(delay: float, callback: Callable[[], None]):
    callback()


class AddressLinkEngine:
    def __init__(
        self,
        tree: ContentTree,
        settings: Optional[EngineSettings] = None,
        scheduler: Optional[Scheduler] = None,
        accessor: Accessor = embedded_root,
    ):
        self.tree = tree
        self.settings = settings or EngineSettings()
        self.scheduler = scheduler or run_immediately
        self.accessor = accessor
        self.stats = EngineStats()

        self.enabled = False
        self.processed: Optional[ProcessedSet] = None
        self.observer: Optional[ChangeObserver] = None
        self._walker: Optional[TreeWalker] = None
        # Bumped on every transition so a scan scheduled before a stop is dropped.
        self._generation = 0

    @property
    def observing(self) -> bool:
        return self.observer is not None and self.observer.connected

    # --- Boundary signals ---

    def mount(self, preferences: Union[StoredPreferences, dict, None] = None):
        """Page-load hook: starts the engine if the stored preference says so."""
        if preferences is None:
            prefs = StoredPreferences()
        elif isinstance(preferences, StoredPreferences):
            prefs = preferences
        else:
            try:
                prefs = StoredPreferences.model_validate(preferences)
            except ValidationError as e:
                logger.warning(f"Ignoring malformed stored preferences: {e}")
                prefs = StoredPreferences()

        if prefs.address_link_enabled:
            self.start(delay=self.settings.initial_settle_delay)

    def handle_message(self, payload: dict) -> bool:
        """
        Applies a runtime toggle message. Returns True if the message was
        recognised, False if it was malformed and ignored.
        """
        try:
            message = parse_message(payload)
        except ValidationError as e:
            logger.warning(f"Ignoring unrecognised runtime message: {e}")
            return False

        if message.enabled:
            self.start(delay=self.settings.toggle_settle_delay)
        else:
            self.stop()
        return True

    # --- Transitions ---

    def start(self, delay: float = 0.0):
        """Enables the engine and schedules the initial full scan after `delay`."""
        if self.enabled:
            logger.debug("Engine already enabled")
            return

        self.enabled = True
        self.processed = ProcessedSet()
        replacer = ReplacementEngine(self.settings, stats=self.stats)
        self._walker = TreeWalker(
            self.processed,
            replacer,
            settings=self.settings,
            accessor=self.accessor,
            stats=self.stats,
        )
        self.observer = ChangeObserver(self.tree, self._walker, stats=self.stats)
        self._generation += 1
        generation = self._generation

        logger.info(f"Address linking enabled; initial scan in {delay:.1f}s")
        self.scheduler(delay, lambda: self._initial_scan(generation))

    def stop(self):
        """Stops observing. Links already inserted stay in place."""
        if not self.enabled:
            return
        self.enabled = False
        self._generation += 1
        if self.observer is not None:
            self.observer.disconnect()
        logger.info("Address linking disabled")

    def teardown(self):
        """Drops all engine state, e.g. on navigation."""
        self.stop()
        self.observer = None
        self._walker = None
        self.processed = None

    # --- Passes ---

    def _initial_scan(self, generation: int):
        if generation != self._generation or not self.enabled:
            logger.debug("Dropping stale initial scan")
            return
        # Subscribe before walking so mutations made during the scan are
        # delivered right after it instead of being missed.
        self.observer.connect()
        self.scan()

    def scan(self, root: Optional[ContentNode] = None):
        """
        Walks `root` (default: the whole tree), then delivers pending
        mutations. Failures are logged and contained.
        """
        if not self.enabled or self._walker is None:
            return

        target = root if root is not None else self.tree.root
        try:
            self._walker.walk(target)
        except Exception as e:
            self.stats.failures += 1
            logger.error(f"Address detection scan failed: {e}", exc_info=True)

        self.flush()

    def flush(self):
        """Delivers queued mutations to the observer (a microtask checkpoint)."""
        try:
            self.tree.deliver_mutations()
        except Exception as e:
            self.stats.failures += 1
            logger.error(f"Mutation delivery failed: {e}", exc_info=True)


def linkify_html(markup: str, settings: Optional[EngineSettings] = None) -> Tuple[str, EngineStats]:
    """
    One-shot helper: parses `markup`, links every detected address and
    returns the serialized document with the engine's statistics.
    """
    tree = parse_html(markup)
    engine = AddressLinkEngine(tree, settings=settings)
    engine.start()
    engine.teardown()
    return to_html(tree), engine.stats
