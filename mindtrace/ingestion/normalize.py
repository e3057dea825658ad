"""Normalize a raw model response into typed primitives.

Total over well-formed JSON: every missing or malformed field gets a default,
numbers are clamped, dangling indices are dropped. Only "no JSON object at all"
is reported, via parse_error, never raised.
"""
from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

from mindtrace.ingestion.entity_parser import resolve_entity_refs
from mindtrace.ingestion.parser import KnownEntity
from mindtrace.memory.schema import (
    Affective,
    Deontic,
    DeonticSource,
    DeonticType,
    EntityMention,
    Epistemic,
    EvidenceSpan,
    EvidenceType,
    MentionType,
    Proposition,
    PropositionType,
    Relation,
    RelationCategory,
    Stance,
    SuggestedEntityType,
    Volitional,
    VolitionalType,
    utcnow,
)

E = TypeVar("E", bound=Enum)

_FENCE_RE = re.compile(r"```[\w+-]*[ \t]*\n?([\s\S]*?)\s*```")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")

# Ordered alternate keys per field: camelCase, snake_case, then synonyms.
PROPOSITIONS_KEYS = ("propositions", "claims")
RELATIONS_KEYS = ("relations", "relationships")
MENTIONS_KEYS = ("entityMentions", "entity_mentions", "mentions", "entities")

CONTENT_KEYS = ("content", "text", "claim")
SUBJECT_KEYS = ("subject", "about")
PROP_TYPE_KEYS = ("type", "propositionType", "proposition_type")
ENTITY_REFS_KEYS = ("entityRefs", "entity_refs", "entities")
SPAN_INDICES_KEYS = ("spanIndices", "span_indices", "spans")
STANCE_KEYS = ("stance", "stances")

SOURCE_INDEX_KEYS = ("sourceIndex", "source_index", "source", "from")
TARGET_INDEX_KEYS = ("targetIndex", "target_index", "target", "to")
CATEGORY_KEYS = ("category", "relationCategory", "relation_category")
SUBTYPE_KEYS = ("subtype", "subType", "sub_type")
STRENGTH_KEYS = ("strength", "weight")

MENTION_TEXT_KEYS = ("text", "mention", "name")
MENTION_TYPE_KEYS = ("mentionType", "mention_type")
SUGGESTED_TYPE_KEYS = ("suggestedType", "suggested_type", "entityType", "entity_type", "type")
SPAN_INDEX_KEYS = ("spanIndex", "span_index", "span")

CERTAINTY_KEYS = ("certainty", "confidence")
EVIDENCE_KEYS = ("evidence", "evidenceType", "evidence_type")
VALENCE_KEYS = ("valence",)
AROUSAL_KEYS = ("arousal", "intensity")
EMOTIONS_KEYS = ("emotions", "emotion")


@dataclass
class NormalizedResponse:
    propositions: List[Proposition] = field(default_factory=list)
    stances: List[Stance] = field(default_factory=list)
    relations: List[Relation] = field(default_factory=list)
    entity_mentions: List[EntityMention] = field(default_factory=list)
    parse_error: Optional[str] = None


class ResponseParseError(ValueError):
    """No JSON object could be located or decoded in the model response."""


# ---------------------------------------------------------------------------
# Locating and decoding JSON
# ---------------------------------------------------------------------------


def strip_code_fence(text: str) -> str:
    """Contents of the first fenced block (any language tag), else the stripped text."""
    text = text.strip()
    m = _FENCE_RE.search(text)
    if m:
        return m.group(1).strip()
    return text


def find_json_object(text: str) -> Optional[str]:
    """
    First top-level {...} in text. Braces inside JSON strings are ignored.
    An unbalanced object falls back to first '{' through last '}'.
    """
    start = text.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        c = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif c == "\\":
                escaped = True
            elif c == '"':
                in_string = False
            continue
        if c == '"':
            in_string = True
        elif c == "{":
            depth += 1
        elif c == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]
    end = text.rfind("}")
    if end > start:
        return text[start : end + 1]
    return None


def parse_json_object(raw: str) -> Dict[str, Any]:
    """Decode the model's JSON object. Raises ResponseParseError when there is none."""
    if not raw or not raw.strip():
        raise ResponseParseError("empty response")
    candidate = find_json_object(strip_code_fence(raw))
    if candidate is None:
        raise ResponseParseError("no JSON object found in response")
    try:
        data = json.loads(candidate)
    except ValueError as e:
        # models often leave a trailing comma before } or ]; ValueError also
        # covers int literals past the interpreter digit limit
        try:
            data = json.loads(_TRAILING_COMMA_RE.sub(r"\1", candidate))
        except ValueError:
            raise ResponseParseError(f"invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ResponseParseError("top-level JSON value is not an object")
    return data


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _get(data: Any, keys: Sequence[str], default: Any = None) -> Any:
    if not isinstance(data, dict):
        return default
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _list(data: Any, keys: Sequence[str]) -> List[Any]:
    value = _get(data, keys)
    return value if isinstance(value, list) else []


def _number(value: Any, default: float) -> float:
    """Finite number from an int, float or numeric string; anything else is the default."""
    if value is None or isinstance(value, bool):
        return default
    if not isinstance(value, (int, float, str)):
        return default
    try:
        v = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        # ints past the float range overflow
        return default
    if math.isnan(v) or math.isinf(v):
        return default
    return v


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _bounded(data: Any, keys: Sequence[str], default: float, lo: float, hi: float) -> float:
    return _clamp(_number(_get(data, keys), default), lo, hi)


def _enum(value: Any, enum_cls: Type[E], default: Optional[E]) -> Optional[E]:
    if not isinstance(value, str):
        return default
    wanted = value.strip().lower()
    for member in enum_cls:
        if member.value.lower() == wanted:
            return member
    return default


def _index(value: Any) -> Optional[int]:
    """Integer index from int, integral float or digit string."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _span_ids(indices: Any, spans: Sequence[EvidenceSpan]) -> List[str]:
    if not isinstance(indices, list):
        indices = [indices] if indices is not None else []
    out: List[str] = []
    for raw in indices:
        i = _index(raw)
        if i is not None and 0 <= i < len(spans):
            out.append(spans[i].id)
    return out


# ---------------------------------------------------------------------------
# Stance dimensions
# ---------------------------------------------------------------------------


def normalize_epistemic(raw: Any) -> Epistemic:
    if not isinstance(raw, dict):
        return Epistemic()
    return Epistemic(
        certainty=_bounded(raw, CERTAINTY_KEYS, 0.5, 0.0, 1.0),
        evidence=_enum(_get(raw, EVIDENCE_KEYS), EvidenceType, EvidenceType.INFERRED),
    )


def normalize_volitional(raw: Any) -> Volitional:
    if not isinstance(raw, dict):
        return Volitional()
    return Volitional(
        valence=_bounded(raw, VALENCE_KEYS, 0.0, -1.0, 1.0),
        strength=_bounded(raw, STRENGTH_KEYS, 0.0, 0.0, 1.0),
        type=_enum(_get(raw, ("type",)), VolitionalType, None),
    )


def normalize_deontic(raw: Any) -> Deontic:
    if not isinstance(raw, dict):
        return Deontic()
    return Deontic(
        strength=_bounded(raw, STRENGTH_KEYS, 0.0, 0.0, 1.0),
        source=_enum(_get(raw, ("source",)), DeonticSource, None),
        type=_enum(_get(raw, ("type",)), DeonticType, None),
    )


def normalize_affective(raw: Any) -> Affective:
    if not isinstance(raw, dict):
        return Affective()
    emotions = _get(raw, EMOTIONS_KEYS, [])
    if isinstance(emotions, str):
        emotions = [emotions]
    if not isinstance(emotions, list):
        emotions = []
    return Affective(
        valence=_bounded(raw, VALENCE_KEYS, 0.0, -1.0, 1.0),
        arousal=_bounded(raw, AROUSAL_KEYS, 0.0, 0.0, 1.0),
        emotions=[e.strip() for e in emotions if isinstance(e, str) and e.strip()],
    )


def normalize_stance(raw: Any, proposition_id: str, now: datetime) -> Stance:
    """Each dimension falls back to neutral on its own."""
    raw = raw if isinstance(raw, dict) else {}
    return Stance(
        proposition_id=proposition_id,
        holder="speaker",
        epistemic=normalize_epistemic(raw.get("epistemic")),
        volitional=normalize_volitional(raw.get("volitional")),
        deontic=normalize_deontic(raw.get("deontic")),
        affective=normalize_affective(raw.get("affective")),
        expressed_at=now,
    )


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _normalize_propositions(
    items: List[Any],
    spans: Sequence[EvidenceSpan],
    known_entities: Sequence[KnownEntity],
    conversation_id: str,
    now: datetime,
) -> Tuple[List[Proposition], List[Stance], Dict[int, str]]:
    stamp = int(now.timestamp() * 1000)
    propositions: List[Proposition] = []
    stances: List[Stance] = []
    ids_by_index: Dict[int, str] = {}
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            continue
        prop_id = f"prop_{stamp}_{i}"
        ids_by_index[i] = prop_id
        propositions.append(
            Proposition(
                id=prop_id,
                content=_text(_get(item, CONTENT_KEYS), ""),
                subject=_text(_get(item, SUBJECT_KEYS), "unknown"),
                type=_enum(_get(item, PROP_TYPE_KEYS), PropositionType, PropositionType.STATE),
                entity_ids=resolve_entity_refs(_get(item, ENTITY_REFS_KEYS), known_entities),
                span_ids=_span_ids(_get(item, SPAN_INDICES_KEYS), spans),
                conversation_id=conversation_id,
                created_at=now,
            )
        )
        stances.append(normalize_stance(_get(item, STANCE_KEYS), prop_id, now))
    return propositions, stances, ids_by_index


def _normalize_relations(
    items: List[Any],
    ids_by_index: Dict[int, str],
    spans: Sequence[EvidenceSpan],
    now: datetime,
) -> List[Relation]:
    relations: List[Relation] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        source = _index(_get(item, SOURCE_INDEX_KEYS))
        target = _index(_get(item, TARGET_INDEX_KEYS))
        # both endpoints must be propositions of this batch
        if source not in ids_by_index or target not in ids_by_index:
            continue
        relations.append(
            Relation(
                source_id=ids_by_index[source],
                target_id=ids_by_index[target],
                category=_enum(_get(item, CATEGORY_KEYS), RelationCategory, RelationCategory.LOGICAL),
                subtype=_text(_get(item, SUBTYPE_KEYS), "unspecified"),
                strength=_bounded(item, STRENGTH_KEYS, 0.5, 0.0, 1.0),
                span_ids=_span_ids(_get(item, SPAN_INDICES_KEYS), spans),
                created_at=now,
            )
        )
    return relations


def _normalize_mentions(
    items: List[Any],
    spans: Sequence[EvidenceSpan],
    conversation_id: str,
    now: datetime,
) -> List[EntityMention]:
    fallback_span = spans[0].id if spans else ""
    mentions: List[EntityMention] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        text = _text(_get(item, MENTION_TEXT_KEYS), "")
        if not text:
            continue
        span_ids = _span_ids(_get(item, SPAN_INDEX_KEYS), spans)
        mentions.append(
            EntityMention(
                text=text,
                mention_type=_enum(_get(item, MENTION_TYPE_KEYS), MentionType, MentionType.COMMON_NOUN),
                suggested_type=_enum(
                    _get(item, SUGGESTED_TYPE_KEYS), SuggestedEntityType, SuggestedEntityType.CONCEPT
                ),
                span_id=span_ids[0] if span_ids else fallback_span,
                conversation_id=conversation_id,
                created_at=now,
            )
        )
    return mentions


def normalize_response(
    raw: str,
    spans: Sequence[EvidenceSpan] = (),
    known_entities: Sequence[KnownEntity] = (),
    conversation_id: str = "",
    now: Optional[datetime] = None,
) -> NormalizedResponse:
    """
    Raw model text -> propositions (+ one stance each), relations, entity mentions.
    Pass a fixed `now` for reproducible ids and timestamps.
    """
    now = now or utcnow()
    try:
        data = parse_json_object(raw)
    except ResponseParseError as e:
        return NormalizedResponse(parse_error=str(e))

    propositions, stances, ids_by_index = _normalize_propositions(
        _list(data, PROPOSITIONS_KEYS), spans, known_entities, conversation_id, now
    )
    relations = _normalize_relations(_list(data, RELATIONS_KEYS), ids_by_index, spans, now)
    mentions = _normalize_mentions(_list(data, MENTIONS_KEYS), spans, conversation_id, now)
    return NormalizedResponse(
        propositions=propositions,
        stances=stances,
        relations=relations,
        entity_mentions=mentions,
    )
