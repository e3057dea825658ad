"""Tests for span matching, deduplication, merging and span building."""

import re

import pytest

from mindtrace.ingestion.matcher import (
    PatternMatch,
    build_spans,
    deduplicate_matches,
    find_pattern_matches,
    match_pattern,
    merge_adjacent_matches,
    relevant_segments,
    should_category_run,
)
from mindtrace.ingestion.patterns import BELIEF, CategoryConfig, PatternDef
from mindtrace.ingestion.registry import get_registry


def _category(*patterns, min_confidence=0.5, always_run=False, id="test_cat"):
    return CategoryConfig(
        id=id,
        name=id,
        description="",
        patterns=tuple(patterns),
        min_confidence=min_confidence,
        always_run=always_run,
    )


def _match(start, end, relevance=1.0, text=None, context="", pattern_id="p"):
    return PatternMatch(
        text=text if text is not None else "x" * (end - start),
        start=start,
        end=end,
        context=context,
        relevance=relevance,
        pattern_id=pattern_id,
    )


def test_think_found_once_in_belief():
    """'I think my boss is unfair' yields one belief match, relevance 0.8."""
    results = find_pattern_matches("I think my boss is unfair", [BELIEF])
    assert len(results) == 1
    belief = results[0]
    assert belief.category_id == "belief_extractor"
    assert len(belief.matches) == 1
    m = belief.matches[0]
    assert m.text == "think"
    assert (m.start, m.end) == (2, 7)
    assert m.relevance == 0.8
    assert belief.total_relevance == pytest.approx(0.8)


def test_keyword_is_case_insensitive_with_original_offsets():
    """Offsets and text come from the original, not a lowercased copy."""
    matches = match_pattern("Well I THINK so", PatternDef("think", "keyword", "think", 0.8))
    assert len(matches) == 1
    assert matches[0].text == "THINK"
    assert (matches[0].start, matches[0].end) == (7, 12)


def test_keyword_case_sensitive():
    """case_sensitive keywords skip differently-cased text."""
    pattern = PatternDef("ceo", "keyword", "CEO", 1.0, case_sensitive=True)
    assert match_pattern("the ceo said", pattern) == []
    assert len(match_pattern("the CEO said", pattern)) == 1


def test_keyword_alternatives_each_scanned():
    """'|' separates literal alternatives."""
    pattern = PatternDef("promise", "keyword", "I promise|I commit", 0.95)
    matches = match_pattern("I promise and I commit", pattern)
    assert [m.text for m in matches] == ["I promise", "I commit"]


def test_keyword_scan_restarts_one_past_hit():
    """Overlapping literal hits are all reported before dedupe."""
    matches = match_pattern("aaa", PatternDef("aa", "keyword", "aa"))
    assert [(m.start, m.end) for m in matches] == [(0, 2), (1, 3)]


def test_max_matches_per_pattern():
    """Each pattern contributes at most the configured number of hits."""
    pattern = PatternDef("think", "keyword", "think")
    assert len(match_pattern("think think think", pattern, max_matches=2)) == 2
    results = find_pattern_matches("think think think", [_category(pattern)], max_matches_per_pattern=1)
    assert len(results[0].matches) == 1


def test_regex_ignores_case_by_default():
    matches = match_pattern("We PLAN to go", PatternDef("plan", "regex", r"(?:I|we)\s+plan\s+to"))
    assert len(matches) == 1
    assert matches[0].text == "We PLAN to"


def test_precompiled_regex_keeps_its_flags():
    """A compiled pattern is used as-is."""
    pattern = PatternDef("upper", "regex", re.compile(r"Boss"))
    assert match_pattern("my boss", pattern) == []
    assert len(match_pattern("my Boss", pattern)) == 1


def test_zero_length_regex_matches_refused():
    """Patterns that can match empty never produce empty spans or loop."""
    pattern = PatternDef("stars", "regex", r"x*")
    assert match_pattern("abc", pattern) == []
    matches = match_pattern("axxb", pattern)
    assert [(m.start, m.end, m.text) for m in matches] == [(1, 3, "xx")]


def test_semantic_and_compound_yield_nothing():
    assert match_pattern("anything", PatternDef("s", "semantic")) == []
    assert match_pattern("anything", PatternDef("c", "compound", "anything")) == []


def test_context_window_clipped():
    """Context is 50 chars either side, clipped to the text."""
    text = "a" * 60 + "think" + "b" * 60
    m = match_pattern(text, PatternDef("think", "keyword", "think"))[0]
    assert m.context == "a" * 50 + "think" + "b" * 50
    short = match_pattern("think", PatternDef("think", "keyword", "think"))[0]
    assert short.context == "think"


def test_empty_text_only_always_run_categories():
    """Empty text matches nothing; always_run categories still report 1.0."""
    results = find_pattern_matches("", get_registry().all())
    assert {r.category_id for r in results} == {"emotion_extractor", "factual_extractor", "core_entity"}
    assert all(r.matches == () and r.total_relevance == 1.0 for r in results)


def test_always_run_skips_evaluation():
    cat = _category(PatternDef("p", "keyword", "zzz"), always_run=True)
    results = find_pattern_matches("no hits here", [cat])
    assert len(results) == 1
    assert results[0].matches == ()
    assert results[0].total_relevance == 1.0


def test_zero_weight_category_excluded():
    """A category whose only hits weigh 0 is dropped when min_confidence > 0."""
    cat = _category(PatternDef("z", "keyword", "hello", 0.0), min_confidence=0.5)
    assert find_pattern_matches("hello hello", [cat]) == []


def test_below_min_confidence_dropped():
    """min_confidence is compared to summed relevance."""
    cat = _category(PatternDef("a", "keyword", "alpha", 0.3), PatternDef("b", "keyword", "beta", 0.3), min_confidence=0.5)
    assert find_pattern_matches("alpha only", [cat]) == []
    results = find_pattern_matches("alpha and beta", [cat])
    assert results[0].total_relevance == pytest.approx(0.6)


def test_results_sorted_by_total_relevance():
    low = _category(PatternDef("a", "keyword", "alpha", 0.5), id="low")
    high = _category(PatternDef("b", "keyword", "beta", 0.9), PatternDef("c", "keyword", "gamma", 0.9), id="high")
    results = find_pattern_matches("alpha beta gamma", [low, high])
    assert [r.category_id for r in results] == ["high", "low"]


def test_overlap_keeps_higher_relevance():
    """The later, stronger overlapping match replaces the earlier one."""
    cat = _category(
        PatternDef("kw", "keyword", "my boss", 0.5),
        PatternDef("rx", "regex", r"boss is unfair", 0.9),
    )
    results = find_pattern_matches("my boss is unfair", [cat])
    assert [m.text for m in results[0].matches] == ["boss is unfair"]


def test_overlap_tie_keeps_earlier():
    kept = deduplicate_matches([_match(3, 8, 0.5, pattern_id="later"), _match(0, 5, 0.5, pattern_id="earlier")])
    assert [m.pattern_id for m in kept] == ["earlier"]


def test_dedupe_never_leaves_overlaps():
    """Matched spans within a category never overlap, for any text."""
    texts = [
        "I think my boss is unfair and I'm worried I might lose my job",
        "I promise I will finish the project by tomorrow because it's important to me",
        "If I had more time then I would learn to play guitar, I used to play in 2010",
        "My wife and my friend Sarah Chen work at Acme Corp in Paris",
    ]
    registry = get_registry()
    for text in texts:
        for result in find_pattern_matches(text, registry.all()):
            ordered = sorted(result.matches, key=lambda m: m.start)
            for prev, cur in zip(ordered, ordered[1:]):
                assert prev.end <= cur.start, (text, result.category_id)
            for m in result.matches:
                assert 0 <= m.start < m.end <= len(text)
                assert text[m.start : m.end] == m.text


def test_regex_rules_for_conditionals_and_years():
    """'if ... then' and 'in 2xxx' are real regex rules."""
    reg = get_registry()
    causal = reg.get("core_causal")
    ok, matches, _ = should_category_run("if it rains then we stay home", causal)
    assert ok
    assert any(m.pattern_id == "conditional" for m in matches)
    memory = reg.get("core_memory_reference")
    ok, matches, _ = should_category_run("we met in 2019", memory)
    assert ok
    assert [m.text for m in matches] == ["in 2019"]


class TestMergeAdjacent:
    def test_close_matches_merge(self):
        merged = merge_adjacent_matches(
            [_match(10, 15, 0.9, context="ctx-b"), _match(0, 5, 0.4, context="ctx-a")],
            max_gap=5,
        )
        assert len(merged) == 1
        m = merged[0]
        assert (m.start, m.end) == (0, 15)
        assert m.relevance == 0.9
        assert m.context == "ctx-actx-b"

    def test_far_matches_stay_apart(self):
        merged = merge_adjacent_matches([_match(0, 5), _match(10, 15)], max_gap=4)
        assert [(m.start, m.end) for m in merged] == [(0, 5), (10, 15)]

    def test_default_gap_is_fifty(self):
        assert len(merge_adjacent_matches([_match(0, 5), _match(55, 60)])) == 1
        assert len(merge_adjacent_matches([_match(0, 5), _match(56, 60)])) == 2

    def test_contained_match_keeps_outer_end(self):
        merged = merge_adjacent_matches([_match(0, 20), _match(5, 10)])
        assert (merged[0].start, merged[0].end) == (0, 20)

    def test_context_tail_bounded(self):
        merged = merge_adjacent_matches([_match(0, 5, context="A"), _match(6, 10, context="B" * 80)])
        assert merged[0].context == "A" + "B" * 50

    def test_source_reslices_text(self):
        source = "I think my boss"
        merged = merge_adjacent_matches([_match(2, 7, text="think"), _match(8, 15, text="my boss")], source=source)
        assert merged[0].text == "think my boss"

    def test_inputs_not_mutated(self):
        first = _match(0, 5)
        merge_adjacent_matches([first, _match(6, 10)])
        assert (first.start, first.end) == (0, 5)

    def test_empty(self):
        assert merge_adjacent_matches([]) == []


def test_relevant_segments_orders_by_relevance():
    matches = [_match(0, 1, 0.2, context="low"), _match(2, 3, 0.9, context="high"), _match(4, 5, 0.5, context="mid")]
    assert relevant_segments(matches, max_segments=2) == ["high", "mid"]


def test_should_category_run():
    always = _category(PatternDef("p", "keyword", "zzz"), always_run=True)
    assert should_category_run("anything", always) == (True, [], 1.0)
    ok, matches, relevance = should_category_run("I think so", BELIEF)
    assert ok and len(matches) == 1 and relevance == pytest.approx(0.8)
    assert should_category_run("nothing relevant", BELIEF) == (False, [], 0.0)


def test_build_spans_ids_and_offsets():
    """Spans are flattened in result order with deterministic ids."""
    text = "I think my boss is unfair"
    results = find_pattern_matches(text, [BELIEF, get_registry().get("relationship_extractor")])
    spans = build_spans(results, "u1")
    assert [s.id for s in spans] == [f"span_u1_{i}" for i in range(len(spans))]
    for s in spans:
        assert text[s.char_start : s.char_end] == s.text_excerpt
        assert s.category_id in ("belief_extractor", "relationship_extractor")
    assert build_spans([], "u1") == []
