"""Tests for the analysis pipeline."""

import pytest

from fakes import FakeGenerator, SleepRecorder, StaticRules, extraction_reply, final_reply
from legal_review.core.errors import GenerationError, InvalidTransition, LedgerEntryNotFound, RateLimitError
from legal_review.core.retry import RateLimitedExecutor
from legal_review.llm.types import InlineDocument
from legal_review.models.entities import EntryStatus
from legal_review.pipeline.analysis import AnalysisPipeline
from legal_review.retrieval import NO_CONTEXT, NO_SIMILAR_CASES, RETRIEVAL_FAILED, SemanticRetriever
from legal_review.rules.loader import FAILED_RULES


def _pipeline(ledger, file_store, store, embedder, settings, generator, rules=None, sleep=None, executor=None):
    return AnalysisPipeline(
        ledger=ledger,
        file_store=file_store,
        rule_loader=rules or StaticRules(),
        retriever=SemanticRetriever(embedder, store),
        generator=generator,
        executor=executor or RateLimitedExecutor(max_retries=0, initial_delay=0, sleep=SleepRecorder()),
        settings=settings,
        sleep=sleep or SleepRecorder(),
    )


def _queue(ledger, file_store, name: str, created_at: int, upload: bool = True):
    if upload:
        file_store.upload(name, b"%PDF-1.4 " + name.encode())
    entry = ledger.enqueue(name)
    with ledger.db.transaction() as conn:
        conn.execute("UPDATE document_queue SET created_at = ? WHERE id = ?", [created_at, entry.id])
    return entry


def test_empty_queue(ledger, file_store, store, embedder, settings) -> None:
    generator = FakeGenerator(extraction_reply())
    assert _pipeline(ledger, file_store, store, embedder, settings, generator).run() == []
    assert generator.calls == []


def test_processes_single_entry(ledger, file_store, store, embedder, settings) -> None:
    entry = _queue(ledger, file_store, "lease.pdf", 1)
    generator = FakeGenerator(extraction_reply(), final_reply())

    outcomes = _pipeline(ledger, file_store, store, embedder, settings, generator).run()

    assert [outcome.status for outcome in outcomes] == ["processed"]
    stored = ledger.require(entry.id)
    assert stored.status == EntryStatus.PROCESSED
    assert stored.ai_result["final_analysis"] == "final reading"
    assert stored.ai_result["issues"] == ["late payment"]
    assert stored.ai_result["rag_reference_used"] is True
    assert stored.ai_result["past_cases_summary"] == NO_SIMILAR_CASES
    assert stored.ai_result["extraction"]["doc_type"] == "lease"

    phase1_parts, phase3_parts = generator.calls
    assert isinstance(phase1_parts[1], InlineDocument)
    assert phase1_parts[1].data == b"%PDF-1.4 lease.pdf"
    assert "baseline reading" in phase3_parts[0]


def test_batch_takes_oldest_first(ledger, file_store, store, embedder, settings) -> None:
    newest = _queue(ledger, file_store, "c.pdf", 30)
    oldest = _queue(ledger, file_store, "a.pdf", 10)
    middle = _queue(ledger, file_store, "b.pdf", 20)
    rules = StaticRules()
    generator = FakeGenerator(extraction_reply(), final_reply(), extraction_reply(), final_reply())

    outcomes = _pipeline(ledger, file_store, store, embedder, settings, generator, rules=rules).run(batch_size=2)

    assert [outcome.id for outcome in outcomes] == [oldest.id, middle.id]
    assert ledger.require(newest.id).status == EntryStatus.PENDING
    assert rules.loads == 1


def test_batch_size_is_capped(ledger, file_store, store, embedder, settings) -> None:
    settings.max_batch_size = 2
    for index in range(3):
        _queue(ledger, file_store, f"{index}.pdf", index)
    generator = FakeGenerator(extraction_reply(), final_reply())
    outcomes = _pipeline(ledger, file_store, store, embedder, settings, generator).run(batch_size=10)
    assert len(outcomes) == 2


def test_failed_entry_does_not_stop_batch(ledger, file_store, store, embedder, settings) -> None:
    missing = _queue(ledger, file_store, "missing.pdf", 1, upload=False)
    broken = _queue(ledger, file_store, "broken.pdf", 2)
    good = _queue(ledger, file_store, "good.pdf", 3)
    generator = FakeGenerator(GenerationError("model refused"), extraction_reply(), final_reply())

    outcomes = _pipeline(ledger, file_store, store, embedder, settings, generator).run(batch_size=3)

    assert [outcome.status for outcome in outcomes] == ["error", "error", "processed"]
    assert ledger.require(missing.id).ai_result == {"error": "file not found: missing.pdf"}
    assert ledger.require(broken.id).ai_result == {"error": "model refused"}
    assert ledger.require(good.id).status == EntryStatus.PROCESSED


def test_error_entries_are_retried(ledger, file_store, store, embedder, settings) -> None:
    entry = _queue(ledger, file_store, "a.pdf", 1)
    ledger.update(entry.id, status=EntryStatus.ERROR, ai_result={"error": "earlier failure"})
    generator = FakeGenerator(extraction_reply(), final_reply())

    outcomes = _pipeline(ledger, file_store, store, embedder, settings, generator).run()

    assert outcomes[0].status == "processed"
    assert "error" not in ledger.require(entry.id).ai_result


def test_throttling_is_bounded(ledger, file_store, store, embedder, settings) -> None:
    entry = _queue(ledger, file_store, "a.pdf", 1)
    backoff = SleepRecorder()
    executor = RateLimitedExecutor(max_retries=2, initial_delay=0.5, sleep=backoff)
    generator = FakeGenerator(RateLimitError("429 quota exceeded"))

    outcomes = _pipeline(ledger, file_store, store, embedder, settings, generator, executor=executor).run()

    assert outcomes[0].status == "error"
    assert len(generator.calls) == 3
    assert backoff.delays == [0.5, 1.0]
    assert ledger.require(entry.id).status == EntryStatus.ERROR


def test_unparsable_replies_fall_back(ledger, file_store, store, embedder, settings) -> None:
    entry = _queue(ledger, file_store, "a.pdf", 1)
    generator = FakeGenerator("I could not read the file", "plain narrative")

    _pipeline(ledger, file_store, store, embedder, settings, generator).run()

    result = ledger.require(entry.id).ai_result
    assert result["extraction"] == "Error"
    assert result["past_cases_summary"] == NO_CONTEXT
    assert result["final_analysis"] == "plain narrative"
    assert result["rag_reference_used"] is False


def test_pacing_between_calls(ledger, file_store, store, embedder, settings) -> None:
    settings.pacing_seconds = 1.5
    _queue(ledger, file_store, "a.pdf", 1)
    _queue(ledger, file_store, "b.pdf", 2)
    sleep = SleepRecorder()
    generator = FakeGenerator(extraction_reply(), final_reply(), extraction_reply(), final_reply())

    _pipeline(ledger, file_store, store, embedder, settings, generator, sleep=sleep).run(batch_size=2)

    # before retrieval and before the final report for each entry, plus once between entries
    assert sleep.delays == [1.5] * 5


def test_forced_run_serves_cached_result(ledger, file_store, store, embedder, settings) -> None:
    entry = _queue(ledger, file_store, "a.pdf", 1)
    generator = FakeGenerator(extraction_reply(), final_reply())
    pipeline = _pipeline(ledger, file_store, store, embedder, settings, generator)
    pipeline.run()
    calls = len(generator.calls)

    outcome = pipeline.run(entry_id=entry.id)[0]

    assert outcome.cached is True
    assert outcome.result["final_analysis"] == "final reading"
    assert len(generator.calls) == calls


def test_reanalyze_replaces_result(ledger, file_store, store, embedder, settings) -> None:
    entry = _queue(ledger, file_store, "a.pdf", 1)
    generator = FakeGenerator(extraction_reply(), final_reply("first"), extraction_reply(), final_reply("second"))
    pipeline = _pipeline(ledger, file_store, store, embedder, settings, generator)
    pipeline.run()

    outcome = pipeline.run(entry_id=entry.id, reanalyze=True)[0]

    assert outcome.status == "processed"
    assert ledger.require(entry.id).ai_result["final_analysis"] == "second"


def test_forced_run_on_completed_entry(ledger, file_store, store, embedder, settings) -> None:
    entry = _queue(ledger, file_store, "a.pdf", 1)
    ledger.update(entry.id, status=EntryStatus.COMPLETED)
    generator = FakeGenerator(extraction_reply(), final_reply())

    outcome = _pipeline(ledger, file_store, store, embedder, settings, generator).run(entry_id=entry.id)[0]

    assert outcome.status == "processed"


def test_forced_run_rejections(ledger, file_store, store, embedder, settings) -> None:
    entry = _queue(ledger, file_store, "a.pdf", 1)
    pipeline = _pipeline(ledger, file_store, store, embedder, settings, FakeGenerator(extraction_reply()))

    with pytest.raises(LedgerEntryNotFound):
        pipeline.run(entry_id="unknown")

    ledger.update(entry.id, status=EntryStatus.DELETED)
    with pytest.raises(InvalidTransition):
        pipeline.run(entry_id=entry.id)


def test_entry_in_flight_is_skipped(ledger, file_store, store, embedder, settings) -> None:
    entry = _queue(ledger, file_store, "a.pdf", 1)
    ledger.update(entry.id, status=EntryStatus.PROCESSING)
    generator = FakeGenerator(extraction_reply())

    outcome = _pipeline(ledger, file_store, store, embedder, settings, generator).run(entry_id=entry.id)[0]

    assert outcome.status == "skipped"
    assert generator.calls == []
    assert ledger.require(entry.id).status == EntryStatus.PROCESSING


class _ChangesEntry(FakeGenerator):
    """Moves the entry to ``status`` right after the first generation call."""

    def __init__(self, ledger, entry_id: str, status: EntryStatus, *replies) -> None:
        super().__init__(*replies)
        self.ledger = ledger
        self.entry_id = entry_id
        self.status = status

    def generate(self, parts):
        try:
            return super().generate(parts)
        finally:
            if len(self.calls) == 1:
                self.ledger.update(self.entry_id, status=self.status)


class _BrokenStore:
    def query(self, vector, top_k=3):
        raise RuntimeError("index unavailable")


def test_entry_deleted_mid_analysis_stays_deleted(ledger, file_store, store, embedder, settings) -> None:
    entry = _queue(ledger, file_store, "a.pdf", 1)
    generator = _ChangesEntry(ledger, entry.id, EntryStatus.DELETED, extraction_reply(), final_reply())

    outcomes = _pipeline(ledger, file_store, store, embedder, settings, generator).run()

    assert [outcome.status for outcome in outcomes] == ["superseded"]
    assert len(generator.calls) == 2
    stored = ledger.require(entry.id)
    assert stored.status == EntryStatus.DELETED
    assert stored.ai_result is None
    # a replacement upload for the same name can still be queued
    assert ledger.enqueue("a.pdf") is not None


def test_failure_after_confirmation_keeps_confirmed_entry(ledger, file_store, store, embedder, settings) -> None:
    entry = _queue(ledger, file_store, "a.pdf", 1)
    generator = _ChangesEntry(
        ledger, entry.id, EntryStatus.COMPLETED, extraction_reply(), GenerationError("model refused")
    )

    outcome = _pipeline(ledger, file_store, store, embedder, settings, generator).run()[0]

    assert outcome.status == "superseded"
    assert outcome.error == "model refused"
    stored = ledger.require(entry.id)
    assert stored.status == EntryStatus.COMPLETED
    assert stored.ai_result is None


def test_unavailable_rules_still_analyze(ledger, file_store, store, embedder, settings) -> None:
    entry = _queue(ledger, file_store, "a.pdf", 1)
    generator = FakeGenerator(extraction_reply(), final_reply())

    rules = StaticRules(FAILED_RULES)
    outcomes = _pipeline(ledger, file_store, store, embedder, settings, generator, rules=rules).run()

    assert outcomes[0].status == "processed"
    assert ledger.require(entry.id).status == EntryStatus.PROCESSED
    assert "Load Failed" in generator.calls[0][0]


def test_broken_semantic_store_still_commits(ledger, file_store, embedder, settings) -> None:
    entry = _queue(ledger, file_store, "a.pdf", 1)
    generator = FakeGenerator(extraction_reply(), final_reply())

    outcomes = _pipeline(ledger, file_store, _BrokenStore(), embedder, settings, generator).run()

    assert outcomes[0].status == "processed"
    assert len(generator.calls) == 2
    stored = ledger.require(entry.id)
    assert stored.status == EntryStatus.PROCESSED
    assert stored.ai_result["past_cases_summary"] == RETRIEVAL_FAILED
    assert RETRIEVAL_FAILED in generator.calls[1][0]
