"""Logging for extraction runs, parse errors and model-call failures."""
from __future__ import annotations

import logging
from typing import Dict, Optional

logger = logging.getLogger("mindtrace.observability")

# Raw text in diagnostics is cut to this many characters.
DIAGNOSTIC_PREFIX_CHARS = 500


def truncate_for_log(text: Optional[str], limit: int = DIAGNOSTIC_PREFIX_CHARS) -> str:
    if not text:
        return ""
    if len(text) <= limit:
        return text
    return text[:limit] + "...[truncated %d chars]" % (len(text) - limit)


def log_extraction(
    utterance_id: str,
    model: str,
    tokens_used: int,
    latency_ms: float,
    counts: Dict[str, int],
) -> None:
    """counts is ExtractionOutput.summary(), logged as key=value pairs."""
    logger.info(
        "extraction utterance_id=%s model=%s tokens=%s latency_ms=%.2f %s",
        utterance_id, model, tokens_used, latency_ms,
        " ".join("%s=%d" % (k, v) for k, v in counts.items()),
    )


def log_parse_error(utterance_id: str, error: str, raw_response: str) -> None:
    logger.warning(
        "extraction parse_error utterance_id=%s error=%s response=%r",
        utterance_id, error, truncate_for_log(raw_response),
    )


def log_extraction_failure(utterance_id: str, error: BaseException, raw_text: str, limit: int = 200) -> None:
    logger.warning(
        "extraction failed utterance_id=%s error=%s: %s text=%r",
        utterance_id, type(error).__name__, error, truncate_for_log(raw_text, limit),
    )
