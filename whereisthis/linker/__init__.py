from whereisthis.linker.observer import ChangeObserver
from whereisthis.linker.replace import ReplacementEngine, encode_uri_component, render_reference
from whereisthis.linker.walker import ProcessedSet, TreeWalker

__all__ = [
    "ChangeObserver",
    "ProcessedSet",
    "ReplacementEngine",
    "TreeWalker",
    "encode_uri_component",
    "render_reference",
]
