"""Status endpoint: registry size, tiers, configured models. No secrets."""
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from mindtrace.api.routes_extract import get_pattern_registry
from mindtrace.ingestion.context import DEFAULT_TOKEN_BUDGETS
from mindtrace.utils.config import LLM_API_KEY, TIER_MODELS

router = APIRouter(tags=["status"])


@router.get("/status")
def status(request: Request) -> Dict[str, Any]:
    registry = get_pattern_registry(request)
    return {
        "categories": len(registry),
        "always_run": [c.id for c in registry.always_run()],
        "tiers": {
            tier.value: {
                "model": TIER_MODELS[tier.value],
                "context_tokens": budget.context_tokens,
                "response_tokens": budget.response_tokens,
                "max_claims": budget.max_claims,
            }
            for tier, budget in DEFAULT_TOKEN_BUDGETS.items()
        },
        "llm_configured": bool(LLM_API_KEY) or getattr(request.app.state, "call_llm", None) is not None,
    }
