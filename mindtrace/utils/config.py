"""Config from environment. Load .env from project root before reading."""
import os
from pathlib import Path
from typing import Optional

# Load .env from project root (parent of mindtrace/)
_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
if _env_path.exists():
    from dotenv import load_dotenv
    load_dotenv(_env_path)


def env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


# LLM (OpenAI-compatible chat completions)
LLM_API_BASE: str = env("MINDTRACE_LLM_API_BASE") or env("OPENAI_API_BASE") or "https://api.openai.com/v1"
LLM_API_KEY: str = env("OPENAI_API_KEY") or ""
LLM_TIMEOUT: float = float(env("MINDTRACE_LLM_TIMEOUT") or "60")

# Tier -> model. Settings decide which model backs each tier.
TIER_MODELS = {
    "small": env("MINDTRACE_MODEL_SMALL") or "gpt-4o-mini",
    "medium": env("MINDTRACE_MODEL_MEDIUM") or "gpt-4o",
    "large": env("MINDTRACE_MODEL_LARGE") or "gpt-4.1",
}

# Span matching
MAX_MATCHES_PER_PATTERN: int = int(env("MINDTRACE_MAX_MATCHES_PER_PATTERN") or "10")

# API
API_HOST: str = env("MINDTRACE_API_HOST") or "0.0.0.0"
API_PORT: int = int(env("MINDTRACE_API_PORT") or "8000")
