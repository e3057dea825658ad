"""Extraction API: full primitive extraction, or span matching only."""
from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from mindtrace.ingestion.errors import LLMCallError, LLMTimeoutError
from mindtrace.ingestion.extractor import extract
from mindtrace.ingestion.matcher import build_spans, find_pattern_matches, merge_adjacent_matches
from mindtrace.ingestion.parser import parse_known_entities, parse_recent_propositions, parse_utterance
from mindtrace.ingestion.registry import PatternRegistry, get_registry
from mindtrace.memory.schema import ExtractionOutput, Tier
from mindtrace.utils.observability import log_extraction_failure

router = APIRouter(prefix="/extract", tags=["extract"])


def get_pattern_registry(request: Request) -> PatternRegistry:
    return getattr(request.app.state, "registry", None) or get_registry()


class ExtractBody(BaseModel):
    utterance: Union[str, Dict[str, Any]]
    known_entities: List[Dict[str, Any]] = Field(default_factory=list)
    recent_propositions: List[Dict[str, Any]] = Field(default_factory=list)
    tier: Tier = Tier.SMALL
    timeout: Optional[float] = Field(None, gt=0)
    preceding_summary: str = ""


class SpansBody(BaseModel):
    text: str
    utterance_id: str = "input"
    merge_gap: Optional[int] = Field(None, ge=0)


@router.post("", response_model=ExtractionOutput)
def extract_utterance(request: Request, body: ExtractBody):
    """Extract propositions, stances, relations and entity mentions. 504 on model timeout, 502 on other model failure."""
    utterance = parse_utterance(body.utterance)
    if not utterance.raw_text.strip():
        raise HTTPException(422, "utterance text is empty")
    try:
        return extract(
            utterance,
            parse_known_entities(body.known_entities),
            parse_recent_propositions(body.recent_propositions),
            tier=body.tier,
            call_llm=getattr(request.app.state, "call_llm", None),
            registry=get_pattern_registry(request),
            timeout=body.timeout,
            preceding_summary=body.preceding_summary,
        )
    except LLMTimeoutError as e:
        log_extraction_failure(utterance.id, e, utterance.raw_text)
        raise HTTPException(504, detail=str(e)[:300])
    except LLMCallError as e:
        log_extraction_failure(utterance.id, e, utterance.raw_text)
        raise HTTPException(502, detail=str(e)[:300])


@router.post("/spans")
def extract_spans(request: Request, body: SpansBody) -> Dict[str, Any]:
    """Pattern matching only; no model call. merge_gap additionally returns coalesced spans."""
    registry = get_pattern_registry(request)
    results = find_pattern_matches(body.text, registry.all())
    out: Dict[str, Any] = {
        "categories": [
            {
                "category_id": r.category_id,
                "total_relevance": r.total_relevance,
                "matches": [asdict(m) for m in r.matches],
            }
            for r in results
        ],
        "spans": [s.model_dump() for s in build_spans(results, body.utterance_id)],
    }
    if body.merge_gap is not None:
        all_matches = [m for r in results for m in r.matches]
        out["merged"] = [asdict(m) for m in merge_adjacent_matches(all_matches, body.merge_gap, source=body.text)]
    return out
