from whereisthis.detect.detector import detect
from whereisthis.detect.patterns import RawMatch, TierMatch, match, match_with_tier
from whereisthis.detect.span import extract, extract_span

__all__ = [
    "detect",
    "match",
    "match_with_tier",
    "extract",
    "extract_span",
    "RawMatch",
    "TierMatch",
]
