"""Tests for the category table and registry lookup."""

import re
import threading

import pytest

from mindtrace.ingestion import registry as registry_module
from mindtrace.ingestion.patterns import ALL_CATEGORIES, CategoryConfig, PatternDef
from mindtrace.ingestion.registry import PatternRegistry, get_registry


def test_table_has_twenty_categories():
    """The static table carries twenty uniquely named categories."""
    ids = [c.id for c in ALL_CATEGORIES]
    assert len(ids) == 20
    assert len(set(ids)) == 20


def test_every_regex_compiles():
    """All regex rules in the table compile."""
    for category in ALL_CATEGORIES:
        for pattern in category.patterns:
            assert pattern.weight >= 0
            if pattern.kind == "regex":
                re.compile(pattern.pattern)


def test_keyword_rules_have_no_regex_syntax():
    """Keyword rules are literal apart from the | separator."""
    for category in ALL_CATEGORIES:
        for pattern in category.patterns:
            if pattern.kind == "keyword":
                assert not re.search(r"[\\*+?()\[\]{}^$]", pattern.pattern), (category.id, pattern.id)


def test_get_known_and_unknown():
    """get returns the config or None."""
    reg = PatternRegistry()
    belief = reg.get("belief_extractor")
    assert belief is not None
    assert belief.priority == 80
    assert belief.min_confidence == 0.6
    assert reg.get("no_such_category") is None
    assert "core_entity" in reg


def test_all_sorted_by_priority_with_table_order_ties():
    """all() is priority-descending; equal priorities keep table order."""
    reg = PatternRegistry()
    ordered = reg.all()
    priorities = [c.priority for c in ordered]
    assert priorities == sorted(priorities, reverse=True)
    assert ordered[0].id == "core_entity"
    at_75 = [c.id for c in ordered if c.priority == 75]
    assert at_75 == ["emotion_extractor", "core_commitment", "relationship_extractor", "core_causal"]


def test_all_returns_a_copy():
    """Mutating the returned list does not change the registry."""
    reg = PatternRegistry()
    listed = reg.all()
    listed.clear()
    assert len(reg.all()) == 20


def test_by_output_tag():
    """Categories are found by the claim types they emit."""
    reg = PatternRegistry()
    assert [c.id for c in reg.by_output_tag("commitment")] == ["intention_extractor", "core_commitment"]
    assert [c.id for c in reg.by_output_tag("emotion")] == ["emotion_extractor"]
    assert reg.by_output_tag("nonexistent") == []


def test_always_run_and_pattern_based_partition():
    """always_run and pattern_based split the table."""
    reg = PatternRegistry()
    always = {c.id for c in reg.always_run()}
    assert always == {"emotion_extractor", "factual_extractor", "core_entity"}
    assert len(reg.always_run()) + len(reg.pattern_based()) == len(reg)
    assert reg.get("core_entity").claim_types == ()


def test_duplicate_ids_rejected():
    """A table with two categories of the same id is refused."""
    cfg = CategoryConfig(id="dup", name="Dup", description="", patterns=(PatternDef("p", "keyword", "x"),))
    with pytest.raises(ValueError):
        PatternRegistry([cfg, cfg])


def test_custom_table_injected():
    """Callers can build a registry over their own table."""
    cfg = CategoryConfig(id="only", name="Only", description="", patterns=(PatternDef("p", "keyword", "x"),))
    reg = PatternRegistry([cfg])
    assert len(reg) == 1
    assert reg.all() == [cfg]


class TestGetRegistry:
    def test_same_instance(self):
        """Repeated calls return the same registry."""
        assert get_registry() is get_registry()

    def test_concurrent_first_calls_build_once(self, monkeypatch):
        """Threads racing on first use all see one instance."""
        monkeypatch.setattr(registry_module, "_registry", None)
        barrier = threading.Barrier(8)
        seen = []

        def worker():
            barrier.wait()
            seen.append(get_registry())

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(seen) == 8
        assert all(r is seen[0] for r in seen)
