"""
Tests for address detection: tiered patterns, span widening, detect().

Run: python3 test_detector.py
"""

import sys

from pydantic import ValidationError

from whereisthis.detect import detect, extract, extract_span, match, match_with_tier
from whereisthis.detect.patterns import is_rejected
from whereisthis.models import MatchResult

SCENARIO_3 = "추천 BEST 5 · 너의작업실. 경기 고양시 일산동구 일산로380번길 63-36 · 하우워즈유얼데이."


# ---------------------------------------------------------------------------
# detect() — concrete scenarios
# ---------------------------------------------------------------------------

def test_suffix_inside_word_is_not_an_address():
    """"넘게 왕십리를 지켜온" has only one unit, mid-word."""
    assert detect("넘게 왕십리를 지켜온") == MatchResult(valid=False, matched=None)
    print("PASS: suffix mid-word rejected")


def test_region_with_two_units():
    result = detect("서울특별시 강남구")
    assert result == MatchResult(valid=True, matched="서울특별시 강남구")
    assert match_with_tier("서울특별시 강남구").tier == "strong"
    print("PASS: region + unit")


def test_road_address_widened_inside_prose():
    result = detect(SCENARIO_3)
    assert result.valid
    assert result.matched == "경기 고양시 일산동구 일산로380번길 63-36", result.matched
    print("PASS: road address widened between delimiters")


def test_url_prefix_rejected():
    assert detect("http://example.com/강남구청") == MatchResult.miss()
    assert detect("https://map.naver.com/서울특별시 강남구") == MatchResult.miss()
    assert detect("www.서울특별시강남구.kr") == MatchResult.miss()
    print("PASS: URL prefixes rejected")


def test_email_prefix_rejected():
    assert detect("user.name@example.com 서울특별시 강남구") == MatchResult.miss()
    assert detect("@서울특별시 강남구") == MatchResult.miss()
    print("PASS: email prefixes rejected")


def test_length_floor():
    for text in ["", "강남구", "강남구 역삼", "서울 강남구"]:
        assert len(text) < 7
        assert detect(text) == MatchResult.miss(), text
        assert is_rejected(text)
    # Exactly seven code points is long enough.
    assert detect("서울시 강남구").valid
    print("PASS: length floor")


def test_idempotent():
    for text in [SCENARIO_3, "서울특별시 강남구", "넘게 왕십리를 지켜온", "아무 주소도 없는 문장입니다"]:
        assert detect(text) == detect(text)
    print("PASS: detect is idempotent")


# ---------------------------------------------------------------------------
# Tiers
# ---------------------------------------------------------------------------

def test_strong_wins_over_weak():
    """Text satisfying the weak gate still reports the strong rule's output."""
    text = "서울 강남구 테헤란로 152"
    hit = match_with_tier(text)
    assert hit.tier == "strong"
    assert hit.rule == "road_number"
    assert hit.raw == "테헤란로 152"
    assert detect(text).matched == "서울 강남구 테헤란로 152"
    print("PASS: strong tier precedence")


def test_strong_rule_order():
    # Both the road rule and the lot rule could fire; the road rule is first.
    hit = match_with_tier("역삼동 123 옆 테헤란로 152")
    assert hit.rule == "road_number"
    assert hit.raw == "테헤란로 152"
    # Lot number alone.
    hit = match_with_tier("우리집은 역삼동 123-45 번지")
    assert hit.rule == "lot_number"
    assert hit.raw == "역삼동 123-45 번지"
    print("PASS: strong rule order")


def test_province_city_unit_without_number():
    hit = match_with_tier("경기도 성남시 분당구 정자동")
    assert hit.tier == "strong"
    assert hit.rule == "province_city_unit"
    print("PASS: province/city/unit")


def test_region_rule_reports_region_name():
    hit = match_with_tier("서울특별시 강남구")
    assert hit.raw == "서울"
    assert hit.offset == 0
    print("PASS: region rule raw is the region name")


def test_medium_building():
    text = "래미안1차아파트 101동 202호"
    hit = match_with_tier(text)
    assert hit.tier == "medium"
    assert hit.rule == "building"
    assert detect(text) == MatchResult.hit(text)
    print("PASS: medium building pattern")


def test_weak_tier_catches_unusual_separators():
    text = "서울 강남구/역삼동-123"
    hit = match_with_tier(text)
    assert hit.tier == "weak"
    assert hit.rule == "district_neighborhood_number"
    assert hit.raw == "강남구/역삼동-123"
    assert detect(text).matched == text
    print("PASS: weak tier")


def test_weak_gate_unit_before_punctuation_counts_as_boundary():
    """A unit followed by a comma ends a word for Python's Unicode `\\b`."""
    text = "부산 출신 김해시,삼계동,12"
    hit = match_with_tier(text)
    assert hit.tier == "weak"
    assert hit.rule == "district_neighborhood_number"
    assert detect(text) == MatchResult.hit(text)
    print("PASS: weak gate boundary after unit")


def test_weak_gate_is_not_sufficient():
    """Region, unit-ending word and digit all present, yet no sub-pattern fires."""
    text = "서울 친구 3명이 왔다"
    assert match(text) is None
    assert detect(text) == MatchResult.miss()
    print("PASS: weak gate alone does not match")


def test_no_address_in_prose():
    for text in [
        "오늘은 날씨가 정말 좋습니다",
        "The quick brown fox jumps over",
        "가격은 30,000원 입니다",
    ]:
        assert detect(text) == MatchResult.miss(), text
    print("PASS: prose without addresses")


# ---------------------------------------------------------------------------
# Span widening
# ---------------------------------------------------------------------------

def test_extract_between_pipes():
    text = "영업시간: 10시~22시 | 서울 마포구 와우산로 94 | 주차 가능"
    raw = "와우산로 94"
    assert extract(text, text.index(raw), raw) == "서울 마포구 와우산로 94"
    assert detect(text).matched == "서울 마포구 와우산로 94"
    print("PASS: widening between pipes")


def test_extract_round_trip_over_delimiters():
    """Each delimiter-bounded segment is recovered from a raw match inside it."""
    segment = "부산 해운대구 우동 1408"
    for left in ["·", ".", ",", ";", "\n", ":", "!", "?", "|"]:
        for right in ["·", ".", ",", ";", "\n", ":", "!", "?", "|"]:
            text = f"앞부분{left} {segment} {right}뒷부분"
            raw = "우동 1408"
            assert extract(text, text.index(raw), raw) == segment, (left, right)
    print("PASS: widening round trip")


def test_extract_closest_delimiter_wins():
    text = "추천.·서울특별시 강남구 역삼동 1"
    raw = "역삼동 1"
    assert extract(text, text.index(raw), raw) == "서울특별시 강남구 역삼동 1"
    text = "추천·.서울특별시 강남구 역삼동 1"
    assert extract(text, text.index(raw), raw) == "서울특별시 강남구 역삼동 1"
    text = ".서울특별시 강남구 역삼동 1"
    assert extract(text, text.index(raw), raw) == "서울특별시 강남구 역삼동 1"
    print("PASS: closest delimiter wins")


def test_extract_no_delimiters_returns_whole_trimmed_text():
    text = "  서울 강남구 테헤란로 152  "
    raw = "테헤란로 152"
    span = extract_span(text, text.index(raw), raw)
    assert span.text == "서울 강남구 테헤란로 152"
    assert text[span.start : span.end] == span.text
    print("PASS: no delimiters")


def test_extract_missing_raw_returned_unchanged():
    assert extract("서울특별시 강남구", 0, "부산광역시") == "부산광역시"
    print("PASS: raw not in text")


def test_extract_wrong_offset_falls_back_to_search():
    text = "문의: 서울특별시 강남구, 감사"
    assert extract(text, 0, "강남구") == "서울특별시 강남구"
    print("PASS: wrong offset falls back")


# ---------------------------------------------------------------------------
# MatchResult
# ---------------------------------------------------------------------------

def test_match_result_consistency_enforced():
    for kwargs in [{"valid": True, "matched": None}, {"valid": False, "matched": "서울"}]:
        try:
            MatchResult(**kwargs)
        except ValidationError:
            continue
        assert False, f"MatchResult accepted inconsistent {kwargs}"
    print("PASS: MatchResult invariant")


if __name__ == "__main__":
    tests = [
        test_suffix_inside_word_is_not_an_address,
        test_region_with_two_units,
        test_road_address_widened_inside_prose,
        test_url_prefix_rejected,
        test_email_prefix_rejected,
        test_length_floor,
        test_idempotent,
        test_strong_wins_over_weak,
        test_strong_rule_order,
        test_province_city_unit_without_number,
        test_region_rule_reports_region_name,
        test_medium_building,
        test_weak_tier_catches_unusual_separators,
        test_weak_gate_unit_before_punctuation_counts_as_boundary,
        test_weak_gate_is_not_sufficient,
        test_no_address_in_prose,
        test_extract_between_pipes,
        test_extract_round_trip_over_delimiters,
        test_extract_closest_delimiter_wins,
        test_extract_no_delimiters_returns_whole_trimmed_text,
        test_extract_missing_raw_returned_unchanged,
        test_extract_wrong_offset_falls_back_to_search,
        test_match_result_consistency_enforced,
    ]

    passed = 0
    failed = 0
    for t in tests:
        try:
            t()
            passed += 1
        except Exception as e:
            print(f"FAIL: {t.__name__} — {e}")
            failed += 1

    print(f"\n{'=' * 50}")
    print(f"Results: {passed} passed, {failed} failed out of {len(tests)} tests")
    if failed > 0:
        sys.exit(1)
    else:
        print("All tests passed!")
