"""Bounded prompt context per model tier. No I/O."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

from mindtrace.ingestion.parser import KnownEntity, RecentProposition
from mindtrace.memory.schema import Tier
from mindtrace.utils.tokens import fits_in_budget, remaining_tokens, truncate_to_tokens

MAX_KNOWN_ENTITIES = 10


@dataclass(frozen=True)
class TokenBudget:
    context_tokens: int
    response_tokens: int
    claim_tokens: int  # estimated cost of one recent proposition
    max_claims: int

    @property
    def claim_limit(self) -> int:
        if self.claim_tokens <= 0:
            return self.max_claims
        return max(0, min(self.max_claims, self.context_tokens // self.claim_tokens))


DEFAULT_TOKEN_BUDGETS: Dict[Tier, TokenBudget] = {
    Tier.SMALL: TokenBudget(context_tokens=4000, response_tokens=1000, claim_tokens=50, max_claims=10),
    Tier.MEDIUM: TokenBudget(context_tokens=8000, response_tokens=2000, claim_tokens=50, max_claims=20),
    Tier.LARGE: TokenBudget(context_tokens=16000, response_tokens=4000, claim_tokens=100, max_claims=50),
}


@dataclass
class ExtractionContext:
    tier: Tier
    budget: TokenBudget
    known_entities: List[KnownEntity] = field(default_factory=list)
    recent_propositions: List[RecentProposition] = field(default_factory=list)
    preceding_summary: str = ""


def get_budget(tier: Union[Tier, str], budgets: Optional[Dict[Tier, TokenBudget]] = None) -> TokenBudget:
    budgets = budgets or DEFAULT_TOKEN_BUDGETS
    return budgets[Tier(tier)]


def assemble_context(
    tier: Union[Tier, str],
    known_entities: Sequence[KnownEntity] = (),
    recent_propositions: Sequence[RecentProposition] = (),
    preceding_summary: str = "",
    budgets: Optional[Dict[Tier, TokenBudget]] = None,
) -> ExtractionContext:
    """
    Cut context lists to the tier budget, keeping caller order (most recent first).
    Recent propositions: at most min(max_claims, context_tokens // claim_tokens).
    Known entities: at most MAX_KNOWN_ENTITIES.
    Preceding summary: whatever context tokens the kept propositions leave over.
    """
    tier = Tier(tier)
    budget = get_budget(tier, budgets)
    recent = list(recent_propositions)[: budget.claim_limit]
    entities = list(known_entities)[:MAX_KNOWN_ENTITIES]
    summary = (preceding_summary or "").strip()
    if summary:
        left = remaining_tokens(budget.context_tokens, "\n".join(p.content for p in recent))
        if not fits_in_budget(summary, left):
            summary = truncate_to_tokens(summary, left)
    return ExtractionContext(
        tier=tier,
        budget=budget,
        known_entities=entities,
        recent_propositions=recent,
        preceding_summary=summary,
    )
