"""Input records for extraction: the utterance plus its context, from loose dicts."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, List, Literal, Optional, Union

Speaker = Literal["user", "agent"]


@dataclass
class Utterance:
    id: str
    raw_text: str
    session_id: str = ""
    timestamp: Optional[datetime] = None
    speaker: Speaker = "user"


@dataclass
class KnownEntity:
    """Canonical entity already in the store; used to resolve entity refs by name or alias."""

    id: str
    canonical_name: str
    type: str = "concept"
    aliases: List[str] = field(default_factory=list)


@dataclass
class RecentProposition:
    id: str
    content: str
    subject: str = "unknown"


def _pick(data: dict, *keys: str, default: Any = None) -> Any:
    """First present, non-None value among keys (camelCase and snake_case spellings)."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # epoch milliseconds
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def parse_utterance(data: Union[Utterance, str, dict], session_id: Optional[str] = None) -> Utterance:
    """
    Normalize an utterance. A bare string becomes a user utterance with a fresh id.
    dict keys: id, rawText|raw_text|text, sessionId|session_id, timestamp, speaker.
    """
    if isinstance(data, Utterance):
        return data
    if isinstance(data, str):
        return Utterance(id=uuid.uuid4().hex[:12], raw_text=data, session_id=session_id or "")
    speaker = str(_pick(data, "speaker", default="user")).lower()
    return Utterance(
        id=str(_pick(data, "id", default="") or uuid.uuid4().hex[:12]),
        raw_text=str(_pick(data, "rawText", "raw_text", "text", default="")),
        session_id=str(_pick(data, "sessionId", "session_id", default=session_id or "")),
        timestamp=_parse_timestamp(_pick(data, "timestamp")),
        speaker="agent" if speaker in ("agent", "assistant") else "user",
    )


def parse_known_entities(items: Optional[Iterable[Union[KnownEntity, dict]]]) -> List[KnownEntity]:
    """Entities without an id or a name are skipped."""
    out: List[KnownEntity] = []
    for item in items or ():
        if isinstance(item, KnownEntity):
            out.append(item)
            continue
        if not isinstance(item, dict):
            continue
        entity_id = _pick(item, "id")
        name = _pick(item, "canonicalName", "canonical_name", "name")
        if not entity_id or not isinstance(name, str) or not name.strip():
            continue
        aliases = _pick(item, "aliases", default=[])
        out.append(
            KnownEntity(
                id=str(entity_id),
                canonical_name=name.strip(),
                type=str(_pick(item, "type", default="concept")),
                aliases=[a for a in aliases if isinstance(a, str)] if isinstance(aliases, list) else [],
            )
        )
    return out


def parse_recent_propositions(items: Optional[Iterable[Union[RecentProposition, dict]]]) -> List[RecentProposition]:
    out: List[RecentProposition] = []
    for item in items or ():
        if isinstance(item, RecentProposition):
            out.append(item)
            continue
        if not isinstance(item, dict):
            continue
        content = _pick(item, "content", default="")
        if not isinstance(content, str) or not content.strip():
            continue
        out.append(
            RecentProposition(
                id=str(_pick(item, "id", default="")),
                content=content.strip(),
                subject=str(_pick(item, "subject", default="unknown")),
            )
        )
    return out
