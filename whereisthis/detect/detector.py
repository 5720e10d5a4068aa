import structlog

from whereisthis.detect.patterns import match_with_tier
from whereisthis.detect.span import extract
from whereisthis.models import MatchResult

logger = structlog.get_logger(__name__)


def detect(text: str) -> MatchResult:
    """
    Decides whether `text` contains a Korean address.

    Returns MatchResult(valid=True, matched=<widened address>) on a hit and
    MatchResult(valid=False, matched=None) otherwise. Pure: the same input
    always yields the same result.
    """
    hit = match_with_tier(text)
    if hit is None:
        return MatchResult.miss()

    widened = extract(text, hit.offset, hit.raw)
    logger.debug(f"Widened '{hit.raw}' to '{widened}'")
    return MatchResult.hit(widened)
