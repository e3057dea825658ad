"""
mindtrace FastAPI server: utterance extraction and span matching.
"""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mindtrace.api.routes_extract import router as extract_router
from mindtrace.api.routes_status import router as status_router
from mindtrace.ingestion.registry import get_registry

# Ensure observability logs appear
_log = logging.getLogger("mindtrace.observability")
if not _log.handlers:
    _log.setLevel(logging.INFO)
    _log.addHandler(logging.StreamHandler())


app = FastAPI(
    title="mindtrace",
    description="Mental-state primitive extraction for conversational memory",
    version="0.1.0",
)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


@app.on_event("startup")
def startup():
    app.state.registry = get_registry()
    # None selects the default OpenAI-compatible client; tests inject a fake here
    if not hasattr(app.state, "call_llm"):
        app.state.call_llm = None


app.include_router(extract_router)
app.include_router(status_router)


@app.get("/health")
def health():
    return {"status": "ok", "service": "mindtrace"}
