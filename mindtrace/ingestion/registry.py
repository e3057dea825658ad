"""Read-only lookup over the category table. Built once per process."""
from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Iterable, List, Optional

from mindtrace.ingestion.patterns import ALL_CATEGORIES, CategoryConfig

logger = logging.getLogger("mindtrace.registry")


class PatternRegistry:
    def __init__(self, configs: Iterable[CategoryConfig] = ALL_CATEGORIES):
        configs = tuple(configs)
        by_id = {}
        for cfg in configs:
            if cfg.id in by_id:
                raise ValueError(f"duplicate category id: {cfg.id}")
            by_id[cfg.id] = cfg
        self._by_id = MappingProxyType(by_id)
        # sorted() is stable: table order breaks priority ties
        self._ordered = tuple(sorted(configs, key=lambda c: -c.priority))

    def __len__(self) -> int:
        return len(self._ordered)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._by_id

    def get(self, category_id: str) -> Optional[CategoryConfig]:
        return self._by_id.get(category_id)

    def all(self) -> List[CategoryConfig]:
        """Categories by priority, highest first."""
        return list(self._ordered)

    def by_output_tag(self, tag: str) -> List[CategoryConfig]:
        return [c for c in self._ordered if tag in c.claim_types]

    def always_run(self) -> List[CategoryConfig]:
        return [c for c in self._ordered if c.always_run]

    def pattern_based(self) -> List[CategoryConfig]:
        return [c for c in self._ordered if not c.always_run]


_registry: Optional[PatternRegistry] = None
_registry_lock = threading.Lock()


def get_registry() -> PatternRegistry:
    """Shared registry over the static table; concurrent first calls build it once."""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = PatternRegistry(ALL_CATEGORIES)
                logger.debug("pattern registry built with %d categories", len(_registry))
    return _registry
