"""Ingestion for the interaction loop: loose input -> extract -> primitives, never raising on model failure."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional, Union

from mindtrace.ingestion.errors import ExtractionError
from mindtrace.ingestion.extractor import LLMCallable, extract
from mindtrace.ingestion.parser import (
    Utterance,
    parse_known_entities,
    parse_recent_propositions,
    parse_utterance,
)
from mindtrace.ingestion.registry import PatternRegistry
from mindtrace.memory.schema import ExtractionMetadata, ExtractionOutput, Tier
from mindtrace.utils.observability import log_extraction_failure

logger = logging.getLogger("mindtrace.pipeline")

# Utterance text in failure logs is cut to this prefix.
FAILURE_TEXT_PREFIX = 200


def ingest_utterance(
    raw: Union[Utterance, dict, str],
    known_entities: Optional[Iterable[dict]] = None,
    recent_propositions: Optional[Iterable[dict]] = None,
    tier: Union[Tier, str] = Tier.SMALL,
    call_llm: Optional[LLMCallable] = None,
    registry: Optional[PatternRegistry] = None,
    timeout: Optional[float] = None,
    session_id: Optional[str] = None,
    preceding_summary: str = "",
    now: Optional[datetime] = None,
) -> ExtractionOutput:
    """
    Parse loose input (camelCase or snake_case dicts), then extract.
    On any extraction failure the utterance yields no primitives: the failure is
    logged and metadata.error carries the message. An unknown tier still raises.
    """
    tier = Tier(tier)
    utterance = parse_utterance(raw, session_id=session_id)
    entities = parse_known_entities(known_entities)
    recent = parse_recent_propositions(recent_propositions)
    if not utterance.raw_text.strip():
        logger.debug("skipping empty utterance %s", utterance.id)
        return ExtractionOutput(metadata=ExtractionMetadata(tier=tier))
    try:
        return extract(
            utterance,
            entities,
            recent,
            tier=tier,
            call_llm=call_llm,
            registry=registry,
            timeout=timeout,
            now=now,
            preceding_summary=preceding_summary,
        )
    except ExtractionError as e:
        log_extraction_failure(utterance.id, e, utterance.raw_text, FAILURE_TEXT_PREFIX)
        return ExtractionOutput(metadata=ExtractionMetadata(tier=tier, error=str(e)))
    except Exception as e:
        # any other bug stays inside this utterance
        logger.exception("unexpected extraction error for utterance %s", utterance.id)
        log_extraction_failure(utterance.id, e, utterance.raw_text, FAILURE_TEXT_PREFIX)
        return ExtractionOutput(
            metadata=ExtractionMetadata(tier=tier, error=f"{type(e).__name__}: {e}")
        )
