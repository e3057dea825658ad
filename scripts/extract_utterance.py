#!/usr/bin/env python3
"""
Extract primitives from one utterance and print them as JSON.
Usage:
  python scripts/extract_utterance.py "I think my boss is unfair" [--tier small|medium|large] [--spans-only]
  --spans-only runs pattern matching alone (no model call, no API key needed).
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from mindtrace.ingestion.errors import ExtractionError
from mindtrace.ingestion.extractor import extract
from mindtrace.ingestion.matcher import build_spans, find_pattern_matches
from mindtrace.ingestion.registry import get_registry
from mindtrace.memory.schema import Tier


def main() -> int:
    parser = argparse.ArgumentParser(description="Extract mental-state primitives from an utterance.")
    parser.add_argument("text", help="Utterance text")
    parser.add_argument("--tier", choices=[t.value for t in Tier], default=Tier.SMALL.value)
    parser.add_argument("--spans-only", action="store_true", help="Only run pattern matching")
    parser.add_argument("--timeout", type=float, default=None, help="Model call timeout seconds")
    args = parser.parse_args()

    if args.spans_only:
        results = find_pattern_matches(args.text, get_registry().all())
        spans = build_spans(results, "cli")
        print(json.dumps([s.model_dump() for s in spans], indent=2))
        return 0

    try:
        output = extract({"id": "cli", "rawText": args.text}, tier=args.tier, timeout=args.timeout)
    except ExtractionError as e:
        print(f"Extraction failed: {e}", file=sys.stderr)
        return 1
    print(output.model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
