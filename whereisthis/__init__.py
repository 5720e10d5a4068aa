from importlib.metadata import PackageNotFoundError, version

from whereisthis.detect import detect
from whereisthis.engine import AddressLinkEngine, linkify_html
from whereisthis.models import EngineSettings, MatchResult
from whereisthis.tree import ContentTree, parse_html, to_html

try:
    __version__ = version("whereisthis")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"

__all__ = [
    "AddressLinkEngine",
    "ContentTree",
    "EngineSettings",
    "MatchResult",
    "detect",
    "linkify_html",
    "parse_html",
    "to_html",
    "__version__",
]
