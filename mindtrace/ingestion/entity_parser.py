"""Entity ref resolution against known entities. No new entities are created here."""
from __future__ import annotations

from typing import Any, Dict, List, Sequence

from mindtrace.ingestion.parser import KnownEntity


def build_alias_index(known_entities: Sequence[KnownEntity]) -> Dict[str, str]:
    """
    Lowercased canonical name or alias -> entity id.
    Earlier entities win when two share a name.
    """
    index: Dict[str, str] = {}
    for entity in known_entities:
        for name in [entity.canonical_name, *entity.aliases]:
            key = name.strip().lower()
            if key and key not in index:
                index[key] = entity.id
    return index


def resolve_entity_refs(refs: Any, known_entities: Sequence[KnownEntity]) -> List[str]:
    """
    Map name strings to known entity ids, case-insensitively.
    Unresolved names and non-strings are dropped; duplicate ids collapse, first-seen order kept.
    """
    if not isinstance(refs, (list, tuple)) or not known_entities:
        return []
    index = build_alias_index(known_entities)
    resolved = (index.get(ref.strip().lower()) for ref in refs if isinstance(ref, str))
    return list(dict.fromkeys(r for r in resolved if r))
