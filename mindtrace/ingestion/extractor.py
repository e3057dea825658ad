"""Primitive extractor: utterance -> spans -> prompt -> one LLM call -> normalized primitives."""
from __future__ import annotations

import concurrent.futures
import logging
import time
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Sequence, Union

import httpx

from mindtrace.ingestion.context import assemble_context
from mindtrace.ingestion.discourse import infer_discourse_function
from mindtrace.ingestion.errors import ExtractionError, LLMCallError, LLMTimeoutError
from mindtrace.ingestion.matcher import build_spans, find_pattern_matches
from mindtrace.ingestion.normalize import normalize_response
from mindtrace.ingestion.parser import (
    KnownEntity,
    RecentProposition,
    Utterance,
    parse_known_entities,
    parse_recent_propositions,
    parse_utterance,
)
from mindtrace.ingestion.prompts import build_prompt
from mindtrace.ingestion.registry import PatternRegistry, get_registry
from mindtrace.memory.schema import ExtractionMetadata, ExtractionOutput, Tier, utcnow
from mindtrace.utils.llm import call_llm as default_call_llm
from mindtrace.utils.observability import log_extraction, log_parse_error

logger = logging.getLogger("mindtrace.extraction")

# (tier, prompt) -> mapping or object with content, model, tokens_used
LLMCallable = Callable[[Tier, str], Any]


_MISSING = object()


def _field(response: Any, name: str, default: Any = None) -> Any:
    """Read a response field from a mapping or an object."""
    if isinstance(response, Mapping):
        return response.get(name, default)
    return getattr(response, name, default)


def _tokens_used(response: Any) -> int:
    """tokens_used may be an int, a {"total": n} dict, or an object with .total."""
    tokens = _field(response, "tokens_used", 0)
    if isinstance(tokens, dict):
        tokens = tokens.get("total", 0)
    elif hasattr(tokens, "total"):
        tokens = tokens.total
    try:
        return int(tokens or 0)
    except (TypeError, ValueError):
        return 0


def _invoke(call_llm: LLMCallable, tier: Tier, prompt: str, timeout: Optional[float]) -> Any:
    """
    Run the model call, bounded by timeout when given.
    Timeouts raise LLMTimeoutError; every other failure raises LLMCallError.
    """
    try:
        if timeout is None:
            return call_llm(tier, prompt)
        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(call_llm, tier, prompt)
            return future.result(timeout=timeout)
        finally:
            # a timed-out call keeps running in its worker; nothing cancels it
            executor.shutdown(wait=False)
    except ExtractionError:
        raise
    except (concurrent.futures.TimeoutError, TimeoutError, httpx.TimeoutException) as e:
        raise LLMTimeoutError(f"model call exceeded {timeout}s" if timeout else str(e)) from e
    except Exception as e:
        raise LLMCallError(f"model call failed: {type(e).__name__}: {e}") from e


def extract(
    utterance: Union[Utterance, dict, str],
    known_entities: Sequence[KnownEntity] = (),
    recent_propositions: Sequence[RecentProposition] = (),
    tier: Union[Tier, str] = Tier.SMALL,
    call_llm: Optional[LLMCallable] = None,
    registry: Optional[PatternRegistry] = None,
    timeout: Optional[float] = None,
    now: Optional[datetime] = None,
    preceding_summary: str = "",
) -> ExtractionOutput:
    """
    Extract all primitives for one utterance with a single model call.
    Spans come from pattern matching before the call; the model refers to them by index.
    An unparseable response yields empty primitives plus metadata.parse_error.
    Model call failures raise LLMTimeoutError / LLMCallError.
    """
    started = time.perf_counter()
    call_llm = call_llm or default_call_llm
    utterance = parse_utterance(utterance)
    known_entities = parse_known_entities(known_entities)
    recent_propositions = parse_recent_propositions(recent_propositions)
    tier = Tier(tier)
    registry = registry or get_registry()
    now = now or utcnow()

    results = find_pattern_matches(utterance.raw_text, registry.all())
    spans = build_spans(results, utterance.id)
    logger.debug("utterance %s: %d categories, %d spans", utterance.id, len(results), len(spans))
    context = assemble_context(tier, known_entities, recent_propositions, preceding_summary)
    prompt = build_prompt(
        utterance,
        spans,
        context.known_entities,
        context.recent_propositions,
        context.preceding_summary,
    )

    response = _invoke(call_llm, tier, prompt, timeout)
    content = _field(response, "content", _MISSING)
    if content is _MISSING or not isinstance(content, (str, type(None))):
        raise LLMCallError(f"model response has no text content: {type(response).__name__}")
    content = content or ""
    model = _field(response, "model", "") or ""
    tokens = _tokens_used(response)

    normalized = normalize_response(
        content,
        spans,
        context.known_entities,
        conversation_id=utterance.id,
        now=now,
    )
    if normalized.parse_error:
        log_parse_error(utterance.id, normalized.parse_error, content)

    elapsed_ms = (time.perf_counter() - started) * 1000
    output = ExtractionOutput(
        propositions=normalized.propositions,
        stances=normalized.stances,
        relations=normalized.relations,
        entity_mentions=normalized.entity_mentions,
        spans=spans,
        metadata=ExtractionMetadata(
            model=model,
            tokens_used=tokens,
            processing_time_ms=elapsed_ms,
            llm_prompt=prompt,
            llm_response=content,
            tier=tier,
            discourse_function=infer_discourse_function(utterance.raw_text),
            parse_error=normalized.parse_error,
        ),
    )
    log_extraction(utterance.id, model, tokens, elapsed_ms, output.summary())
    return output
