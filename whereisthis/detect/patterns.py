"""
Tiered Korean address patterns.

Tiers are evaluated Strong -> Medium -> Weak and the first rule that fires
wins. Tiers are never merged or scored against each other.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, NamedTuple, Optional

import structlog

logger = structlog.get_logger(__name__)

MIN_ADDRESS_LENGTH = 7

# Administrative-unit suffixes, from widest to narrowest.
ADMINISTRATION_UNITS = [
    "특별시",
    "광역시",
    "특별자치시",
    "특별자치도",
    "시",
    "군",
    "구",
    "읍",
    "면",
    "동",
    "리",
    "가",
    "로",
    "길",
    "번길",
]

MAJOR_REGIONS = [
    "서울",
    "부산",
    "대구",
    "인천",
    "광주",
    "대전",
    "울산",
    "세종",
    "경기",
    "강원",
    "충북",
    "충남",
    "전북",
    "전남",
    "경북",
    "경남",
    "제주",
]

NON_ADDRESS_PREFIX = re.compile(r"^(https?:|www\.|@|[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})")

_REGIONS = "|".join(MAJOR_REGIONS)
_UNITS = "|".join(ADMINISTRATION_UNITS)

# Digits are ASCII only; Python's \d would also accept other scripts.
REGION_UNIT_PATTERN = re.compile(rf"({_REGIONS})[가-힣]*({_UNITS})\s*[가-힣]+({_UNITS})")
DIGIT_PATTERN = re.compile(r"[0-9]")
# Python's `\b` counts Hangul as word characters, so "김해시," has a boundary
# after the unit. A JavaScript `\b` sees Hangul as non-word and only finds one
# when an ASCII letter or digit follows, so the weak gate is looser here.
ADMIN_UNIT_AT_BOUNDARY = [re.compile(rf"[가-힣]+{unit}\b") for unit in ADMINISTRATION_UNITS]


class RawMatch(NamedTuple):
    raw: str
    offset: int


class TierMatch(NamedTuple):
    tier: str
    rule: str
    raw: str
    offset: int


@dataclass(frozen=True)
class Rule:
    """
    A single detection rule. `group` selects which capture group is reported
    as the raw match; 0 means the whole match.
    """

    name: str
    pattern: re.Pattern
    group: int = 1

    def search(self, text: str) -> Optional[RawMatch]:
        m = self.pattern.search(text)
        if not m:
            return None
        return RawMatch(m.group(self.group), m.start(self.group))


@dataclass(frozen=True)
class PatternTier:
    name: str
    rules: List[Rule]
    # Coarse precondition; the tier is skipped entirely when it fails.
    gate: Optional[Callable[[str], bool]] = None

    def search(self, text: str) -> Optional[TierMatch]:
        if self.gate is not None and not self.gate(text):
            return None
        for rule in self.rules:
            hit = rule.search(text)
            if hit:
                return TierMatch(self.name, rule.name, hit.raw, hit.offset)
        return None


def _weak_gate(text: str) -> bool:
    """Admin unit ending a word, a major region name and a digit must all be present."""
    has_admin_unit = any(p.search(text) for p in ADMIN_UNIT_AT_BOUNDARY)
    has_region = any(region in text for region in MAJOR_REGIONS)
    has_number = DIGIT_PATTERN.search(text) is not None
    return has_admin_unit and has_region and has_number


STRONG = PatternTier(
    "strong",
    [
        # "XX로 123", "XX길 12-3", "XX로 123번지"
        Rule("road_number", re.compile(r"([가-힣]+(로|길)\s*[0-9]+(-[0-9]+)?(\s*번지)?)")),
        # "XX동 123-45"
        Rule("lot_number", re.compile(r"([가-힣]+(동|읍|면|리)\s*[0-9]+(-[0-9]+)?(\s*번지)?)")),
        # "XX시 YY동 123"
        Rule("district_number", re.compile(r"([가-힣]+(시|군|구)\s+[가-힣]+(동|읍|면|로|길)\s*[0-9]+)")),
        # "XX시 YY구 ZZ동"
        Rule(
            "province_city_unit",
            re.compile(r"([가-힣]+(시|도)\s+[가-힣]+(시|군|구)\s+[가-힣]+(동|읍|면|로|길|가))"),
        ),
        # "서울특별시 강남구"
        Rule("region_unit", REGION_UNIT_PATTERN),
    ],
)

MEDIUM = PatternTier(
    "medium",
    [
        # "래미안1차아파트 101동 202호"
        Rule(
            "building",
            re.compile(r"([가-힣]+[0-9]+[가-힣]*(아파트|오피스텔|빌딩|타워)(\s*[0-9]+동)?(\s*[0-9]+호)?)"),
        ),
        Rule("region_unit", REGION_UNIT_PATTERN),
    ],
)

WEAK = PatternTier(
    "weak",
    [
        Rule(
            "district_neighborhood_number",
            re.compile(r"[가-힣]+(시|도|군|구)[^가-힣]?[가-힣]+(동|읍|면|로|길)[^가-힣]?[0-9]+"),
            group=0,
        ),
        Rule("region_unit", REGION_UNIT_PATTERN, group=0),
    ],
    gate=_weak_gate,
)

TIERS = [STRONG, MEDIUM, WEAK]


def is_rejected(text: str) -> bool:
    """Fast-path rejection: too short, or a URL/email-like prefix."""
    return len(text) < MIN_ADDRESS_LENGTH or NON_ADDRESS_PREFIX.match(text) is not None


def match_with_tier(text: str, tiers: Optional[List[PatternTier]] = None) -> Optional[TierMatch]:
    """
    Returns the first rule hit across the ordered tiers, with the tier and
    rule that produced it, or None.
    """
    if not text or is_rejected(text):
        return None

    for tier in tiers or TIERS:
        hit = tier.search(text)
        if hit:
            logger.debug(f"Tier '{hit.tier}' rule '{hit.rule}' matched '{hit.raw}' at {hit.offset}")
            return hit
    return None


def match(text: str) -> Optional[RawMatch]:
    hit = match_with_tier(text)
    if hit is None:
        return None
    return RawMatch(hit.raw, hit.offset)
