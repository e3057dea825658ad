"""Primitive schema: propositions, stances, relations, entity mentions, evidence spans.

These are create-records: ids are synthetic per extraction batch and get replaced
by the downstream store.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Tier(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class PropositionType(str, Enum):
    STATE = "state"
    EVENT = "event"
    PROCESS = "process"
    HYPOTHETICAL = "hypothetical"
    GENERIC = "generic"


class EvidenceType(str, Enum):
    DIRECT = "direct"
    INFERRED = "inferred"
    HEARSAY = "hearsay"
    ASSUMPTION = "assumption"


class VolitionalType(str, Enum):
    WANT = "want"
    INTEND = "intend"
    HOPE = "hope"
    FEAR = "fear"
    PREFER = "prefer"


class DeonticSource(str, Enum):
    SELF = "self"
    OTHER = "other"
    CIRCUMSTANCE = "circumstance"


class DeonticType(str, Enum):
    MUST = "must"
    SHOULD = "should"
    MAY = "may"
    MUST_NOT = "mustNot"


class RelationCategory(str, Enum):
    CAUSAL = "causal"
    TEMPORAL = "temporal"
    LOGICAL = "logical"
    TELEOLOGICAL = "teleological"
    COMPOSITIONAL = "compositional"
    CONTRASTIVE = "contrastive"
    CONDITIONAL = "conditional"


class MentionType(str, Enum):
    PRONOUN = "pronoun"
    PROPER_NOUN = "proper_noun"
    COMMON_NOUN = "common_noun"
    DEFINITE_DESCRIPTION = "definite_description"
    SELF_REFERENCE = "self_reference"


class SuggestedEntityType(str, Enum):
    PERSON = "person"
    ORGANIZATION = "organization"
    PROJECT = "project"
    ARTIFACT = "artifact"
    EVENT = "event"
    CONCEPT = "concept"
    PLACE = "place"
    SELF = "self"


class EvidenceSpan(BaseModel):
    """A pattern match promoted to a referenceable span (computed before the LLM call)."""

    id: str
    char_start: int = Field(ge=0)
    char_end: int = Field(ge=0)
    text_excerpt: str
    pattern_id: Optional[str] = None
    category_id: Optional[str] = None
    relevance: float = 1.0


class Proposition(BaseModel):
    """De-modalized claim: 'The project is late', not 'I think the project might be late'."""

    id: str
    content: str = ""
    subject: str = "unknown"
    type: PropositionType = PropositionType.STATE
    entity_ids: list[str] = Field(default_factory=list)
    span_ids: list[str] = Field(default_factory=list)
    conversation_id: str = ""
    created_at: datetime = Field(default_factory=utcnow)


class Epistemic(BaseModel):
    certainty: float = Field(ge=0.0, le=1.0, default=0.5)
    evidence: EvidenceType = EvidenceType.INFERRED


class Volitional(BaseModel):
    valence: float = Field(ge=-1.0, le=1.0, default=0.0)
    strength: float = Field(ge=0.0, le=1.0, default=0.0)
    type: Optional[VolitionalType] = None


class Deontic(BaseModel):
    strength: float = Field(ge=0.0, le=1.0, default=0.0)
    source: Optional[DeonticSource] = None
    type: Optional[DeonticType] = None


class Affective(BaseModel):
    valence: float = Field(ge=-1.0, le=1.0, default=0.0)
    arousal: float = Field(ge=0.0, le=1.0, default=0.0)
    emotions: list[str] = Field(default_factory=list)


class Stance(BaseModel):
    """How one proposition is held. Each dimension defaults to neutral independently."""

    proposition_id: str
    holder: str = "speaker"
    epistemic: Epistemic = Field(default_factory=Epistemic)
    volitional: Volitional = Field(default_factory=Volitional)
    deontic: Deontic = Field(default_factory=Deontic)
    affective: Affective = Field(default_factory=Affective)
    expressed_at: datetime = Field(default_factory=utcnow)


class Relation(BaseModel):
    """Directed edge between two propositions of the same batch."""

    source_id: str
    target_id: str
    category: RelationCategory = RelationCategory.LOGICAL
    subtype: str = "unspecified"
    strength: float = Field(ge=0.0, le=1.0, default=0.5)
    span_ids: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)


class EntityMention(BaseModel):
    """Raw textual reference ("he", "John", "my boss"). Resolution happens downstream."""

    text: str
    mention_type: MentionType = MentionType.COMMON_NOUN
    suggested_type: SuggestedEntityType = SuggestedEntityType.CONCEPT
    span_id: str = ""  # "" when the utterance produced no spans
    conversation_id: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    resolved_entity_id: Optional[str] = None


class ExtractionMetadata(BaseModel):
    model: str = ""
    tokens_used: int = 0
    processing_time_ms: float = 0.0
    llm_prompt: str = ""
    llm_response: str = ""
    tier: Tier = Tier.SMALL
    discourse_function: Optional[str] = None
    parse_error: Optional[str] = None
    error: Optional[str] = None  # set only when the model call itself failed


class ExtractionOutput(BaseModel):
    propositions: list[Proposition] = Field(default_factory=list)
    stances: list[Stance] = Field(default_factory=list)
    relations: list[Relation] = Field(default_factory=list)
    entity_mentions: list[EntityMention] = Field(default_factory=list)
    spans: list[EvidenceSpan] = Field(default_factory=list)
    metadata: ExtractionMetadata = Field(default_factory=ExtractionMetadata)

    @property
    def is_empty(self) -> bool:
        return not (self.propositions or self.relations or self.entity_mentions)

    def summary(self) -> dict[str, Any]:
        """Counts only; safe to log."""
        return {
            "propositions": len(self.propositions),
            "stances": len(self.stances),
            "relations": len(self.relations),
            "entity_mentions": len(self.entity_mentions),
            "spans": len(self.spans),
        }
