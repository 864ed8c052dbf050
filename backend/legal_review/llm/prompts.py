"""Prompt templates for the analysis phases and manual training."""

from __future__ import annotations

from typing import Any

import orjson

EXTRACTION_PROMPT = """You are an expert in analyzing legal documents.
[Extraction Rules]: {extraction_rules}
[Logic Guidelines]: {logic_rules}

Using the rules above, produce:
1. The facts stated in the attached document (extraction)
2. A first interpretation of the document (baseline analysis)
3. A short summary suitable for searching similar past cases (search context)

Respond with JSON only, in this format:
{{"extraction": "...", "baseline_analysis": "...", "search_context": "..."}}
"""

FINAL_REPORT_PROMPT = """[Baseline]: {baseline}
[Past Cases]: {past_cases}

Combine the material above into a final analysis report for the reviewing administrator.
Respond with JSON only, in this format:
{{"final_rag_analysis": "...", "issues": ["..."], "rag_reference_used": true}}
"""

COMPARATIVE_PROMPT = """You are a legal document analysis assistant.
Read the attached document and analyze it from two perspectives.

1. [Resources]
   - Rules (standard): {logic_rules}
   - Extraction guide: {extraction_rules}
   - Past experience from reviewed cases: {past_experience}

2. [Tasks]
   - Task A: analyze applying ONLY the rules (standard logic).
   - Task B: analyze applying the rules AND the past experience (advanced logic).
     If a past case says "interpret it as B, not A", Task B must follow it.

Respond with JSON only, in this format:
{{"extracted_facts": "facts visible in the document (shared)",
  "logic_baseline": "Task A result (rules only)",
  "logic_rag": "Task B result (rules + past experience)"}}
"""


def _dump(value: Any) -> str:
    return orjson.dumps(value).decode("utf-8")


def extraction_prompt(extraction_rules: Any, logic_rules: Any) -> str:
    return EXTRACTION_PROMPT.format(extraction_rules=_dump(extraction_rules), logic_rules=_dump(logic_rules))


def final_report_prompt(baseline: Any, past_cases: str) -> str:
    return FINAL_REPORT_PROMPT.format(baseline=_dump(baseline), past_cases=past_cases)


def comparative_prompt(extraction_rules: Any, logic_rules: Any, past_experience: str) -> str:
    return COMPARATIVE_PROMPT.format(
        extraction_rules=_dump(extraction_rules),
        logic_rules=_dump(logic_rules),
        past_experience=past_experience,
    )
