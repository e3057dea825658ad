"""Shared fixtures: a fixed clock, a scripted model client, sample spans and entities."""
from __future__ import annotations

import json
import threading
from datetime import datetime, timezone
from typing import List, Optional

import pytest

from mindtrace.ingestion.parser import KnownEntity
from mindtrace.memory.schema import EvidenceSpan
from mindtrace.utils.llm import LLMResponse

FIXED_NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)
FIXED_MS = 1704067200000


class FakeLLM:
    """Records prompts; returns a canned response or raises."""

    def __init__(self, content: str = "", model: str = "fake-model", tokens: int = 123, error: Optional[BaseException] = None):
        self.content = content
        self.model = model
        self.tokens = tokens
        self.error = error
        self.calls: List[tuple] = []

    def __call__(self, tier, prompt):
        self.calls.append((tier, prompt))
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.content, model=self.model, tokens_used=self.tokens)


class BlockingLLM:
    """Blocks until released (or 5s), so callers can hit their timeout."""

    def __init__(self):
        self.release = threading.Event()

    def __call__(self, tier, prompt):
        self.release.wait(5)
        return LLMResponse(content="{}", model="slow-model", tokens_used=1)


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def fake_llm():
    def make(payload=None, **kwargs):
        content = payload if isinstance(payload, str) else json.dumps(payload or {})
        return FakeLLM(content=content, **kwargs)

    return make


@pytest.fixture
def blocking_llm():
    llm = BlockingLLM()
    yield llm
    llm.release.set()


@pytest.fixture
def spans():
    return [
        EvidenceSpan(id="span_u1_0", char_start=2, char_end=7, text_excerpt="think", pattern_id="think", category_id="belief_extractor", relevance=0.8),
        EvidenceSpan(id="span_u1_1", char_start=8, char_end=15, text_excerpt="my boss", pattern_id="my_work", category_id="relationship_extractor", relevance=0.9),
    ]


@pytest.fixture
def known_entities():
    return [
        KnownEntity(id="ent_sarah", canonical_name="Sarah Chen", type="person", aliases=["Sarah", "my boss"]),
        KnownEntity(id="ent_acme", canonical_name="Acme Corp", type="organization", aliases=["Acme"]),
    ]
