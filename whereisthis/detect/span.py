"""
Widens a raw pattern hit to the delimiter-bounded segment around it.
"""

from whereisthis.models import Span

DELIMITERS = ["·", ".", ",", ";", "\n", ":", "!", "?", "|"]


def _locate(full_text: str, match_offset: int, matched_raw: str) -> int:
    if full_text.startswith(matched_raw, match_offset):
        return match_offset
    return full_text.find(matched_raw)


def extract_span(full_text: str, match_offset: int, matched_raw: str) -> Span:
    """
    Returns the widened, whitespace-trimmed span around the raw match.

    The start is the position right after the closest delimiter preceding the
    match, the end is the closest delimiter following it. If `matched_raw`
    does not occur in `full_text`, it is returned unchanged in a (0, 0) span.
    """
    index = _locate(full_text, match_offset, matched_raw)
    if index == -1:
        return Span(0, 0, matched_raw)

    before_text = full_text[:index]
    after_start = index + len(matched_raw)
    after_text = full_text[after_start:]

    start = 0
    for delimiter in DELIMITERS:
        pos = before_text.rfind(delimiter)
        if pos != -1 and pos + 1 > start:
            start = pos + 1

    end = len(full_text)
    for delimiter in DELIMITERS:
        pos = after_text.find(delimiter)
        if pos != -1 and after_start + pos < end:
            end = after_start + pos

    segment = full_text[start:end]
    stripped = segment.strip()
    lead = len(segment) - len(segment.lstrip())
    return Span(start + lead, start + lead + len(stripped), stripped)


def extract(full_text: str, match_offset: int, matched_raw: str) -> str:
    return extract_span(full_text, match_offset, matched_raw).text
