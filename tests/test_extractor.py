"""Tests for the single-call extraction orchestrator."""

import logging

import httpx
import pytest

from mindtrace.ingestion.errors import ExtractionError, LLMCallError, LLMTimeoutError
from mindtrace.ingestion.extractor import extract
from mindtrace.ingestion.patterns import BELIEF
from mindtrace.ingestion.registry import PatternRegistry
from mindtrace.memory.schema import Tier
from mindtrace.utils.llm import LLMResponse

UTTERANCE = {"id": "u1", "rawText": "I think my boss is unfair", "sessionId": "s1", "speaker": "user"}

RESPONSE = {
    "propositions": [
        {
            "content": "The boss is unfair",
            "subject": "boss",
            "type": "state",
            "entityRefs": ["my boss"],
            "stance": {"epistemic": {"certainty": 0.6, "evidence": "inferred"}},
            "spanIndices": [0],
        }
    ],
    "relations": [],
    "entityMentions": [{"text": "my boss", "mentionType": "common_noun", "suggestedType": "person"}],
}


def test_extract_happy_path(fake_llm, fixed_now):
    llm = fake_llm(RESPONSE, model="gpt-test", tokens=321)
    entities = [{"id": "ent_sarah", "canonicalName": "Sarah Chen", "type": "person", "aliases": ["my boss"]}]
    out = extract(UTTERANCE, entities, tier="medium", call_llm=llm, now=fixed_now)

    assert len(llm.calls) == 1
    tier, prompt = llm.calls[0]
    assert tier is Tier.MEDIUM

    assert len(out.propositions) == 1
    assert len(out.stances) == 1
    prop = out.propositions[0]
    assert prop.entity_ids == ["ent_sarah"]
    assert prop.conversation_id == "u1"
    assert prop.span_ids == [out.spans[0].id]
    assert out.stances[0].epistemic.certainty == 0.6
    assert out.entity_mentions[0].span_id == out.spans[0].id

    meta = out.metadata
    assert meta.model == "gpt-test"
    assert meta.tokens_used == 321
    assert meta.processing_time_ms >= 0
    assert meta.llm_prompt == prompt
    assert meta.llm_response == llm.content
    assert meta.tier is Tier.MEDIUM
    assert meta.discourse_function == "assert"
    assert meta.parse_error is None
    assert meta.error is None


def test_spans_computed_before_call(fake_llm):
    """Spans from pattern matching are listed in the prompt by index."""
    llm = fake_llm(RESPONSE)
    out = extract(UTTERANCE, call_llm=llm)
    assert out.spans
    assert all(s.id.startswith("span_u1_") for s in out.spans)
    assert "<matched_spans>" in out.metadata.llm_prompt
    assert any(s.text_excerpt == "think" for s in out.spans)


def test_injected_registry(fake_llm):
    """Only the injected categories produce spans."""
    llm = fake_llm(RESPONSE)
    out = extract(UTTERANCE, call_llm=llm, registry=PatternRegistry([BELIEF]))
    assert [(s.text_excerpt, s.category_id) for s in out.spans] == [("think", "belief_extractor")]
    assert '[0] "think" (chars 2-7)' in out.metadata.llm_prompt


def test_known_entities_reach_prompt(fake_llm, known_entities):
    llm = fake_llm(RESPONSE)
    extract(UTTERANCE, known_entities, call_llm=llm)
    assert "- Sarah Chen (person)" in llm.calls[0][1]


def test_parse_error_yields_empty_primitives(fake_llm, caplog):
    llm = fake_llm("Sorry, I can't help with that.")
    with caplog.at_level(logging.WARNING, logger="mindtrace.observability"):
        out = extract(UTTERANCE, call_llm=llm)
    assert out.is_empty
    assert out.stances == []
    assert out.metadata.parse_error
    assert out.metadata.llm_response == "Sorry, I can't help with that."
    assert "parse_error" in caplog.text


def test_parse_error_log_truncated(fake_llm, caplog):
    llm = fake_llm("x" * 2000)
    with caplog.at_level(logging.WARNING, logger="mindtrace.observability"):
        extract(UTTERANCE, call_llm=llm)
    assert "x" * 501 not in caplog.text
    assert "truncated 1500 chars" in caplog.text


def test_tokens_used_dict_form():
    class Response:
        content = "{}"
        model = "m"
        tokens_used = {"total": 42}

    out = extract(UTTERANCE, call_llm=lambda tier, prompt: Response())
    assert out.metadata.tokens_used == 42


def test_mapping_response_accepted(fixed_now):
    """A client may return a plain dict instead of an object."""
    payload = {"content": '{"propositions": [{"content": "The boss is unfair"}]}', "model": "dict-model", "tokens_used": 7}
    out = extract(UTTERANCE, call_llm=lambda tier, prompt: payload, now=fixed_now)
    assert out.metadata.parse_error is None
    assert out.metadata.model == "dict-model"
    assert out.metadata.tokens_used == 7
    assert out.propositions[0].content == "The boss is unfair"


@pytest.mark.parametrize("response", [{"model": "m"}, object(), {"content": 12}])
def test_response_without_text_content_is_call_error(response):
    with pytest.raises(LLMCallError):
        extract(UTTERANCE, call_llm=lambda tier, prompt: response)


def test_extraction_log_carries_counts(fake_llm, caplog):
    with caplog.at_level(logging.INFO, logger="mindtrace.observability"):
        out = extract(UTTERANCE, call_llm=fake_llm(RESPONSE))
    assert "utterance_id=u1" in caplog.text
    assert "propositions=1 stances=1 relations=0 entity_mentions=1 spans=%d" % len(out.spans) in caplog.text


class TestCallFailures:
    def test_timeout_elapsed(self, blocking_llm):
        """A call outliving the timeout raises LLMTimeoutError, not a parse error."""
        with pytest.raises(LLMTimeoutError):
            extract(UTTERANCE, call_llm=blocking_llm, timeout=0.05)

    def test_client_timeout_mapped(self, fake_llm):
        llm = fake_llm(error=httpx.ReadTimeout("slow"))
        with pytest.raises(LLMTimeoutError):
            extract(UTTERANCE, call_llm=llm)

    def test_builtin_timeout_mapped(self, fake_llm):
        llm = fake_llm(error=TimeoutError("slow"))
        with pytest.raises(LLMTimeoutError):
            extract(UTTERANCE, call_llm=llm, timeout=5)

    def test_connection_error_is_call_error(self, fake_llm):
        llm = fake_llm(error=httpx.ConnectError("refused"))
        with pytest.raises(LLMCallError) as exc:
            extract(UTTERANCE, call_llm=llm)
        assert not isinstance(exc.value, LLMTimeoutError)

    def test_arbitrary_error_is_call_error(self, fake_llm):
        llm = fake_llm(error=RuntimeError("boom"))
        with pytest.raises(LLMCallError, match="boom"):
            extract(UTTERANCE, call_llm=llm, timeout=5)

    def test_extraction_errors_pass_through(self, fake_llm):
        original = LLMTimeoutError("client gave up")
        llm = fake_llm(error=original)
        with pytest.raises(LLMTimeoutError) as exc:
            extract(UTTERANCE, call_llm=llm)
        assert exc.value is original

    def test_hierarchy(self):
        assert issubclass(LLMTimeoutError, LLMCallError)
        assert issubclass(LLMCallError, ExtractionError)


def test_fast_call_within_timeout(fake_llm):
    out = extract(UTTERANCE, call_llm=fake_llm(RESPONSE), timeout=5)
    assert len(out.propositions) == 1


def test_default_client_used_when_none_injected(monkeypatch):
    import mindtrace.ingestion.extractor as extractor_module

    monkeypatch.setattr(
        extractor_module,
        "default_call_llm",
        lambda tier, prompt: LLMResponse(content="{}", model="default", tokens_used=0),
    )
    out = extract(UTTERANCE)
    assert out.metadata.model == "default"
