"""Remote rule documents (extraction strategy and interpretation logic)."""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Mapping

import requests

from legal_review.core.config import Settings
from legal_review.core.logging import get_logger

logger = get_logger(__name__)

RULES_LOAD_FAILED = "Load Failed"


@dataclass(slots=True, frozen=True)
class RuleSet:
    extraction_rules: Any
    logic_rules: Any

    @property
    def loaded(self) -> bool:
        return self.extraction_rules != RULES_LOAD_FAILED and self.logic_rules != RULES_LOAD_FAILED


FAILED_RULES = RuleSet(extraction_rules=RULES_LOAD_FAILED, logic_rules=RULES_LOAD_FAILED)


class RuleLoader:
    """Fetch both rule documents concurrently; degrade to ``FAILED_RULES`` instead of raising."""

    def __init__(
        self,
        base_url: str,
        extraction_file: str = "reading_guide.json",
        logic_file: str = "guideline.json",
        timeout: float = 10.0,
        cache_seconds: float = 300.0,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.extraction_file = extraction_file
        self.logic_file = logic_file
        self.timeout = timeout
        self.cache_seconds = cache_seconds
        self._session = session or requests.Session()
        self._clock = clock
        self._cached: RuleSet | None = None
        self._cached_at = 0.0
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "RuleLoader":
        return cls(
            base_url=settings.rules_base_url,
            extraction_file=settings.rules_extraction_file,
            logic_file=settings.rules_logic_file,
            timeout=settings.rules_timeout,
            cache_seconds=settings.rules_cache_seconds,
        )

    def load_rules(self) -> RuleSet:
        with self._lock:
            if self._cached is not None and self._clock() - self._cached_at < self.cache_seconds:
                return self._cached
        try:
            with ThreadPoolExecutor(max_workers=2) as pool:
                extraction = pool.submit(self._fetch, self.extraction_file)
                logic = pool.submit(self._fetch, self.logic_file)
                rules = RuleSet(extraction_rules=extraction.result(), logic_rules=logic.result())
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Rule documents could not be loaded from %s: %s", self.base_url, exc)
            return FAILED_RULES
        with self._lock:
            self._cached = rules
            self._cached_at = self._clock()
        logger.info("Loaded rule documents from %s", self.base_url)
        return rules

    def invalidate(self) -> None:
        with self._lock:
            self._cached = None

    def _fetch(self, name: str) -> Any:
        response = self._session.get(f"{self.base_url}/{name}", timeout=self.timeout)
        response.raise_for_status()
        # requests raises a ValueError subclass on malformed JSON
        return response.json()


def select_rules(rules: Any, doc_type: str | None) -> Any:
    """Pick the rules for ``doc_type``, then ``default``, then an empty mapping."""
    if not isinstance(rules, Mapping):
        return rules
    if doc_type and doc_type in rules:
        return rules[doc_type]
    return rules.get("default", {})


__all__ = ["FAILED_RULES", "RULES_LOAD_FAILED", "RuleLoader", "RuleSet", "select_rules"]
