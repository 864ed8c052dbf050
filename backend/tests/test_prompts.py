"""Tests for prompt rendering."""

from legal_review.llm import prompts


def test_module_is_documented() -> None:
    assert prompts.__doc__.startswith("Prompt templates")


def test_extraction_prompt_embeds_rules_as_json() -> None:
    text = prompts.extraction_prompt({"lease": {"fields": ["rent"]}}, "Load Failed")
    assert '[Extraction Rules]: {"lease":{"fields":["rent"]}}' in text
    assert '[Logic Guidelines]: "Load Failed"' in text
    assert '{"extraction": "...", "baseline_analysis": "...", "search_context": "..."}' in text


def test_final_report_prompt_keeps_past_cases_verbatim() -> None:
    text = prompts.final_report_prompt({"summary": "late rent"}, "[Case 1] (type: lease)\ncontent: ok")
    assert '[Baseline]: {"summary":"late rent"}' in text
    assert "[Past Cases]: [Case 1] (type: lease)\ncontent: ok" in text


def test_comparative_prompt_includes_history() -> None:
    text = prompts.comparative_prompt({}, {"default": {}}, "- Past similar case (lease): prefer B")
    assert "Past experience from reviewed cases: - Past similar case (lease): prefer B" in text
    assert '"logic_rag"' in text
