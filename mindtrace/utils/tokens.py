"""Token estimation without a tokenizer: average of char- and word-based guesses."""
from __future__ import annotations

import math


def estimate_tokens(text: str) -> int:
    """~4 chars per token and ~1.3 tokens per word, averaged."""
    if not text:
        return 0
    char_estimate = math.ceil(len(text) / 4)
    word_estimate = math.ceil(len(text.split()) * 1.3)
    return math.ceil((char_estimate + word_estimate) / 2)


def truncate_to_tokens(text: str, max_tokens: int) -> str:
    """Cut text so it fits max_tokens (10% safety margin); appends '...' when cut."""
    if max_tokens <= 0:
        return ""
    current = estimate_tokens(text)
    if current <= max_tokens:
        return text
    ratio = max_tokens / current
    keep = int(len(text) * ratio * 0.9)
    return text[:keep] + "..."


def fits_in_budget(text: str, budget: int) -> bool:
    return estimate_tokens(text) <= budget


def remaining_tokens(total_budget: int, used_text: str) -> int:
    return max(0, total_budget - estimate_tokens(used_text))
