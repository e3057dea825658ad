"""Default model client: OpenAI-compatible chat completions over httpx."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

import httpx

from mindtrace.ingestion.context import get_budget
from mindtrace.ingestion.errors import LLMCallError, LLMTimeoutError
from mindtrace.memory.schema import Tier
from mindtrace.utils.config import LLM_API_BASE, LLM_API_KEY, LLM_TIMEOUT, TIER_MODELS

logger = logging.getLogger("mindtrace.llm")


@dataclass
class LLMResponse:
    content: str
    model: str
    tokens_used: int = 0


def call_llm(
    tier: Union[Tier, str],
    prompt: str,
    api_base: Optional[str] = None,
    api_key: Optional[str] = None,
    timeout: Optional[float] = None,
    max_tokens: Optional[int] = None,
) -> LLMResponse:
    """
    Single-turn completion with the model configured for tier.
    Raises LLMTimeoutError on client timeout, LLMCallError on any other failure.
    """
    tier = Tier(tier)
    api_base = api_base or LLM_API_BASE
    api_key = api_key or LLM_API_KEY
    if not api_key:
        raise LLMCallError("OPENAI_API_KEY not set; cannot call LLM for extraction")
    model = TIER_MODELS[tier.value]
    url = f"{api_base.rstrip('/')}/chat/completions"
    payload = {
        "model": model,
        "messages": [{"role": "user", "content": prompt}],
        "temperature": 0.2,
        "max_tokens": max_tokens or get_budget(tier).response_tokens,
    }
    try:
        with httpx.Client(timeout=timeout or LLM_TIMEOUT) as client:
            r = client.post(url, json=payload, headers={"Authorization": f"Bearer {api_key}"})
            r.raise_for_status()
            data = r.json()
    except httpx.TimeoutException as e:
        raise LLMTimeoutError(f"model call timed out after {timeout or LLM_TIMEOUT}s") from e
    except httpx.HTTPStatusError as e:
        raise LLMCallError(f"model endpoint returned HTTP {e.response.status_code}") from e
    except (httpx.HTTPError, ValueError) as e:
        raise LLMCallError(f"model call failed: {e}") from e

    content = (data.get("choices") or [{}])[0].get("message", {}).get("content") or ""
    usage = data.get("usage") or {}
    tokens = usage.get("total_tokens")
    if not isinstance(tokens, int):
        tokens = (len(prompt) + len(content)) // 4
    logger.debug("llm call tier=%s model=%s tokens=%s", tier.value, data.get("model") or model, tokens)
    return LLMResponse(content=content, model=data.get("model") or model, tokens_used=tokens)
