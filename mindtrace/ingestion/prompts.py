"""Extraction prompt: propositions, stances, relations, entity mentions in one JSON object."""
from __future__ import annotations

from typing import List, Sequence

from mindtrace.ingestion.parser import KnownEntity, RecentProposition, Utterance
from mindtrace.memory.schema import EvidenceSpan

EXTRACTION_INSTRUCTIONS = """You are an expert at extracting structured mental representations from speech.

Your task is to extract PROPOSITIONS, their STANCES, RELATIONS between them, and any ENTITY MENTIONS from the input.

## What to Extract

### PROPOSITIONS
A proposition is the core content of what is said, STRIPPED of how it's said.
- Remove modal markers: "I think", "I believe", "maybe", "probably"
- Keep the factual content: "The project is behind schedule" not "I think the project might be behind schedule"
- Each distinct claim = one proposition

Proposition types:
- "state": Current states ("The sky is blue")
- "event": Past/future events ("I went to the store")
- "process": Ongoing activities ("I'm learning to code")
- "hypothetical": Conditionals ("If I had more time...")
- "generic": General truths ("Dogs are loyal")

### STANCES
Stances capture HOW the proposition is held. Each proposition has one stance with 4 dimensions:

1. EPISTEMIC (certainty about truth):
   - certainty: 0-1 (0=uncertain, 1=certain)
   - evidence: "direct" (speaker witnessed), "inferred" (deduced), "hearsay" (told by others), "assumption" (just assumed)

2. VOLITIONAL (desire toward the proposition):
   - valence: -1 to 1 (negative=averse, positive=wanting)
   - strength: 0-1 (how strongly)
   - type: "want", "intend", "hope", "fear", "prefer" (optional)

3. DEONTIC (obligation/permission):
   - strength: 0-1 (0=no obligation, 1=absolute must)
   - source: "self" (self-imposed), "other" (external), "circumstance" (optional)
   - type: "must", "should", "may", "mustNot" (optional)

4. AFFECTIVE (emotional coloring):
   - valence: -1 to 1 (negative to positive)
   - arousal: 0-1 (calm to excited)
   - emotions: array of specific emotions (optional)

### ENTITY MENTIONS
Extract ALL references to entities, including:
- Pronouns: "he", "she", "it", "they", "I", "you", "we"
- Proper nouns: "John", "Google", "Paris"
- Common nouns: "my boss", "the project", "a friend"
- Definite descriptions: "the CEO", "the first one"
- Self-references: "I", "me", "myself"

For each mention, identify:
- mentionType: "pronoun" | "proper_noun" | "common_noun" | "definite_description" | "self_reference"
- suggestedType: what kind of entity ("person", "organization", "project", "artifact", "event", "concept", "place", "self")

We will resolve these to canonical entities later. Just extract what you see.

### RELATIONS (if multiple propositions)
How propositions connect:
- "causal": X causes Y (subtypes: "because", "therefore", "leads_to")
- "temporal": X before/after Y (subtypes: "before", "after", "during", "then")
- "logical": X implies/contradicts Y (subtypes: "implies", "contradicts", "supports")
- "teleological": X is for purpose Y (subtypes: "in_order_to", "for", "to_achieve")
- "compositional": X is part of Y (subtypes: "part_of", "includes", "example_of")
- "contrastive": X but Y (subtypes: "but", "however", "although")
- "conditional": If X then Y (subtypes: "if_then", "unless", "when")"""

OUTPUT_FORMAT = """Respond with JSON only, no other text:
{
  "propositions": [
    {
      "content": "The core claim without modality",
      "subject": "Main entity this is about",
      "type": "state|event|process|hypothetical|generic",
      "entityRefs": ["Entity Name 1", "Entity Name 2"],
      "stance": {
        "epistemic": { "certainty": 0.0-1.0, "evidence": "direct|inferred|hearsay|assumption" },
        "volitional": { "valence": -1.0-1.0, "strength": 0.0-1.0, "type": "want|intend|hope|fear|prefer" },
        "deontic": { "strength": 0.0-1.0, "source": "self|other|circumstance", "type": "must|should|may|mustNot" },
        "affective": { "valence": -1.0-1.0, "arousal": 0.0-1.0, "emotions": ["emotion1", "emotion2"] }
      },
      "spanIndices": [0, 1]
    }
  ],
  "relations": [
    {
      "sourceIndex": 0,
      "targetIndex": 1,
      "category": "causal|temporal|logical|teleological|compositional|contrastive|conditional",
      "subtype": "because|therefore|before|after|implies|etc",
      "strength": 0.0-1.0,
      "spanIndices": [0]
    }
  ],
  "entityMentions": [
    {
      "text": "he",
      "mentionType": "pronoun|proper_noun|common_noun|definite_description|self_reference",
      "suggestedType": "person|organization|project|artifact|event|concept|place|self",
      "spanIndex": 0
    }
  ]
}

IMPORTANT:
- Only include stance dimensions that are clearly expressed. Use defaults otherwise.
- spanIndices reference the matched_spans by index (if any match this proposition)
- sourceIndex and targetIndex reference the propositions array by index
- For self-references ("I", "me"), use mentionType "self_reference" and suggestedType "self"
- Extract ALL entity mentions, including pronouns like "he", "she", "it", "I"
- Return empty arrays if nothing found, not null"""


def _spans_block(spans: Sequence[EvidenceSpan]) -> str:
    lines = [f'[{i}] "{s.text_excerpt}" (chars {s.char_start}-{s.char_end})' for i, s in enumerate(spans)]
    return "<matched_spans>\n" + "\n".join(lines) + "\n</matched_spans>"


def _entities_block(entities: Sequence[KnownEntity]) -> str:
    lines = []
    for e in entities:
        line = f"- {e.canonical_name} ({e.type})"
        if e.aliases:
            line += " aliases: " + ", ".join(e.aliases)
        lines.append(line)
    return "<known_entities>\n" + "\n".join(lines) + "\n</known_entities>"


def _recent_block(recent: Sequence[RecentProposition]) -> str:
    lines = [f"[R{i}] {p.content}" for i, p in enumerate(recent)]
    return "<recent_propositions>\n" + "\n".join(lines) + "\n</recent_propositions>"


def build_prompt(
    utterance: Utterance,
    spans: Sequence[EvidenceSpan],
    known_entities: Sequence[KnownEntity] = (),
    recent_propositions: Sequence[RecentProposition] = (),
    preceding_summary: str = "",
) -> str:
    """Render the single extraction prompt. Same inputs, same bytes out."""
    sections: List[str] = [EXTRACTION_INSTRUCTIONS]
    if spans:
        sections.append(_spans_block(spans))
    if known_entities:
        sections.append(_entities_block(known_entities))
    if recent_propositions:
        sections.append(_recent_block(recent_propositions))
    if preceding_summary:
        sections.append(f"<preceding_context>\n{preceding_summary}\n</preceding_context>")
    sections.append(f'<input speaker="{utterance.speaker}">\n{utterance.raw_text}\n</input>')
    sections.append(OUTPUT_FORMAT)
    return "\n\n".join(sections)
