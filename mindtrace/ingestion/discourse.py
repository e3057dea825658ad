"""Heuristic discourse function of an utterance (question, command, commit, express, assert)."""
from __future__ import annotations

import re
from typing import Literal

DiscourseFunction = Literal["question", "command", "commit", "express", "assert"]


def infer_discourse_function(text: str) -> DiscourseFunction:
    """Keyword heuristic, checked in order; anything unmatched is an assertion."""
    t = text.lower().strip()
    if t.endswith("?") or re.match(r"(what|who|where|when|why|how|is|are|do|does|can|will|should)\b", t):
        return "question"
    if re.match(r"(please|could you|can you|would you|help me|show me|tell me|give me)\b", t):
        return "command"
    if re.search(r"\b(i will|i'll|i promise|i'm going to|i am going to|i commit)\b", t):
        return "commit"
    if re.search(r"\b(i feel|i'm feeling|i am feeling|i'm so|i am so|i love|i hate|i'm happy|i'm sad|i'm angry)\b", t):
        return "express"
    return "assert"
