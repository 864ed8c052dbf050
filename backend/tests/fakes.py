"""Test doubles for the generation service, rule documents and sleeps."""

from __future__ import annotations

import json
from typing import Any, Sequence

from legal_review.rules.loader import RuleSet


class FakeGenerator:
    """Return scripted replies in order; an exception instance in the script is raised."""

    def __init__(self, *replies: Any) -> None:
        self.replies = list(replies)
        self.calls: list[list[Any]] = []

    def generate(self, parts: Sequence[Any]) -> str:
        self.calls.append(list(parts))
        if not self.replies:
            raise AssertionError("FakeGenerator ran out of replies")
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply


class StaticRules:
    def __init__(self, rules: RuleSet | None = None) -> None:
        self.rules = rules or RuleSet(
            extraction_rules={"default": {"fields": ["parties", "amount"]}},
            logic_rules={"default": {"check": "deadlines"}},
        )
        self.loads = 0
        self.invalidations = 0

    def load_rules(self) -> RuleSet:
        self.loads += 1
        return self.rules

    def invalidate(self) -> None:
        self.invalidations += 1


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def extraction_reply(doc_type: str = "lease", search_context: str = "unpaid rent eviction") -> str:
    return json.dumps(
        {
            "extraction": {"doc_type": doc_type, "parties": ["A", "B"]},
            "baseline_analysis": "baseline reading",
            "search_context": search_context,
        }
    )


def final_reply(text: str = "final reading", used: bool = True) -> str:
    return "```json\n" + json.dumps(
        {"final_rag_analysis": text, "issues": ["late payment"], "rag_reference_used": used}
    ) + "\n```"
