"""Tests for structured log output."""

import logging

import orjson

from legal_review.core.logging import JsonFormatter, entry_context


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("legal_review.test", logging.WARNING, __file__, 1, "Analysis failed: %s", ("boom",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_entry_context_fields_are_promoted() -> None:
    payload = orjson.loads(JsonFormatter().format(_record(**entry_context("doc_1", "lease.pdf"))))
    assert payload["msg"] == "Analysis failed: boom"
    assert payload["level"] == "WARNING"
    assert payload["entry_id"] == "doc_1"
    assert payload["filename"] == "lease.pdf"


def test_missing_context_is_omitted() -> None:
    payload = orjson.loads(JsonFormatter().format(_record(**entry_context("doc_1"))))
    assert "filename" not in payload
