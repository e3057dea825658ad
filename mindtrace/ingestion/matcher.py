"""Span matcher: find literal/regex hits per category, drop overlaps, score categories."""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

from mindtrace.ingestion.patterns import CategoryConfig, PatternDef
from mindtrace.memory.schema import EvidenceSpan
from mindtrace.utils.config import MAX_MATCHES_PER_PATTERN

logger = logging.getLogger("mindtrace.matcher")

CONTEXT_CHARS = 50


@dataclass(frozen=True)
class PatternMatch:
    text: str
    start: int
    end: int
    context: str
    relevance: float
    pattern_id: str
    category_id: Optional[str] = None


@dataclass(frozen=True)
class CategoryMatch:
    category_id: str
    matches: Tuple[PatternMatch, ...]
    total_relevance: float


def _context(text: str, start: int, end: int) -> str:
    return text[max(0, start - CONTEXT_CHARS) : min(len(text), end + CONTEXT_CHARS)]


def _make_match(text: str, start: int, end: int, pattern: PatternDef, category_id: Optional[str]) -> PatternMatch:
    return PatternMatch(
        text=text[start:end],
        start=start,
        end=end,
        context=_context(text, start, end),
        relevance=pattern.weight,
        pattern_id=pattern.id,
        category_id=category_id,
    )


def _keyword_regex(pattern: PatternDef) -> Optional[re.Pattern]:
    alternatives = [alt for alt in str(pattern.pattern).split("|") if alt]
    if not alternatives:
        return None
    flags = 0 if pattern.case_sensitive else re.IGNORECASE
    return re.compile("|".join(re.escape(alt) for alt in alternatives), flags)


def _match_keyword(text: str, pattern: PatternDef, limit: int, category_id: Optional[str]) -> List[PatternMatch]:
    """Literal scan; the next search starts one char after the previous hit, so hits may overlap."""
    rx = _keyword_regex(pattern)
    if rx is None:
        return []
    out: List[PatternMatch] = []
    pos = 0
    while len(out) < limit:
        m = rx.search(text, pos)
        if m is None:
            break
        out.append(_make_match(text, m.start(), m.end(), pattern, category_id))
        pos = m.start() + 1
    return out


def _match_regex(text: str, pattern: PatternDef, limit: int, category_id: Optional[str]) -> List[PatternMatch]:
    if isinstance(pattern.pattern, re.Pattern):
        rx = pattern.pattern
    else:
        flags = 0 if pattern.case_sensitive else re.IGNORECASE
        rx = re.compile(str(pattern.pattern), flags)
    out: List[PatternMatch] = []
    for m in rx.finditer(text):
        if m.end() == m.start():
            continue
        out.append(_make_match(text, m.start(), m.end(), pattern, category_id))
        if len(out) >= limit:
            break
    return out


def match_pattern(
    text: str,
    pattern: PatternDef,
    max_matches: int = MAX_MATCHES_PER_PATTERN,
    category_id: Optional[str] = None,
) -> List[PatternMatch]:
    if not text or pattern.pattern is None:
        return []
    if pattern.kind == "keyword":
        return _match_keyword(text, pattern, max_matches, category_id)
    if pattern.kind == "regex":
        return _match_regex(text, pattern, max_matches, category_id)
    # semantic / compound are left to the model
    return []


def deduplicate_matches(matches: Iterable[PatternMatch]) -> List[PatternMatch]:
    """Remove overlaps; the higher-relevance match wins, ties keep the earlier one."""
    ordered = sorted(matches, key=lambda m: m.start)
    kept: List[PatternMatch] = []
    for cur in ordered:
        if kept and cur.start < kept[-1].end:
            if cur.relevance > kept[-1].relevance:
                kept[-1] = cur
            continue
        kept.append(cur)
    return kept


def find_pattern_matches(
    text: str,
    categories: Iterable[CategoryConfig],
    max_matches_per_pattern: int = MAX_MATCHES_PER_PATTERN,
) -> List[CategoryMatch]:
    """
    Score every category against text.
    always_run categories are reported with no matches and relevance 1.0.
    Others are kept only when their summed relevance reaches min_confidence.
    Result is sorted by total relevance, highest first.
    """
    results: List[CategoryMatch] = []
    for category in categories:
        if category.always_run:
            results.append(CategoryMatch(category.id, (), 1.0))
            continue
        found: List[PatternMatch] = []
        for pattern in category.patterns:
            found.extend(match_pattern(text, pattern, max_matches_per_pattern, category.id))
        if not found:
            continue
        unique = deduplicate_matches(found)
        total = sum(m.relevance for m in unique)
        if total < category.min_confidence:
            continue
        results.append(CategoryMatch(category.id, tuple(unique), total))
    results.sort(key=lambda r: -r.total_relevance)
    logger.debug("matched %d categories over %d chars", len(results), len(text))
    return results


def merge_adjacent_matches(
    matches: Iterable[PatternMatch],
    max_gap: int = 50,
    source: Optional[str] = None,
) -> List[PatternMatch]:
    """
    Coalesce matches whose gap is at most max_gap into wider spans.
    Merged spans take the max end and max relevance; context grows by the
    last 50 chars of the later context. With source given, merged text is
    re-sliced from it; otherwise the earlier match's text is kept.
    """
    ordered = sorted(matches, key=lambda m: m.start)
    if not ordered:
        return []
    merged: List[PatternMatch] = []
    cur = ordered[0]
    for nxt in ordered[1:]:
        if nxt.start - cur.end <= max_gap:
            end = max(cur.end, nxt.end)
            cur = PatternMatch(
                text=source[cur.start:end] if source is not None else cur.text,
                start=cur.start,
                end=end,
                context=cur.context + nxt.context[-CONTEXT_CHARS:],
                relevance=max(cur.relevance, nxt.relevance),
                pattern_id=cur.pattern_id,
                category_id=cur.category_id,
            )
        else:
            merged.append(cur)
            cur = nxt
    merged.append(cur)
    return merged


def relevant_segments(matches: Iterable[PatternMatch], max_segments: int = 5) -> List[str]:
    """Contexts of the highest-relevance matches."""
    ranked = sorted(matches, key=lambda m: -m.relevance)
    return [m.context for m in ranked[:max_segments]]


def should_category_run(
    text: str,
    category: CategoryConfig,
    max_matches_per_pattern: int = MAX_MATCHES_PER_PATTERN,
) -> Tuple[bool, List[PatternMatch], float]:
    if category.always_run:
        return True, [], 1.0
    results = find_pattern_matches(text, [category], max_matches_per_pattern)
    if not results:
        return False, [], 0.0
    return True, list(results[0].matches), results[0].total_relevance


def build_spans(results: Sequence[CategoryMatch], utterance_id: str) -> List[EvidenceSpan]:
    """Flatten category results into indexed evidence spans, in result order."""
    spans: List[EvidenceSpan] = []
    for result in results:
        for m in result.matches:
            spans.append(
                EvidenceSpan(
                    id=f"span_{utterance_id}_{len(spans)}",
                    char_start=m.start,
                    char_end=m.end,
                    text_excerpt=m.text,
                    pattern_id=m.pattern_id,
                    category_id=result.category_id,
                    relevance=m.relevance,
                )
            )
    return spans
