"""Analysis pipeline orchestration."""

from __future__ import annotations

import time
from typing import Callable

from legal_review.core.config import Settings
from legal_review.core.errors import FileMissingError, InvalidTransition, LedgerEntryNotFound
from legal_review.core.logging import entry_context, get_logger
from legal_review.core.metrics import PHASE_DURATION, PIPELINE_ENTRIES
from legal_review.core.retry import RateLimitedExecutor
from legal_review.ledger.queue import DocumentLedger
from legal_review.llm import prompts
from legal_review.llm.types import Generator, InlineDocument
from legal_review.models.entities import EntryStatus, QueueEntry
from legal_review.pipeline.results import AnalysisResult, EntryOutcome, ExtractionOutput, FinalReportOutput
from legal_review.retrieval.similar import NO_CONTEXT, SemanticRetriever
from legal_review.rules.loader import RuleLoader, RuleSet
from legal_review.storage.file_store import FileStore
from legal_review.utils.time import now_ms

logger = get_logger(__name__)

# forced runs may pick up an entry in any status except these
_FORCE_BLOCKED = (EntryStatus.PROCESSING, EntryStatus.DELETED)


class AnalysisPipeline:
    """Drive queued documents through download, extraction, retrieval and final report.

    Entries are processed one at a time in selection order. A failure inside
    one entry marks that entry ``error`` and the batch continues; failures
    while selecting the batch propagate to the caller.
    An entry a reviewer deletes or confirms mid-analysis keeps that status;
    the run reports it as ``superseded``.
    """

    def __init__(
        self,
        ledger: DocumentLedger,
        file_store: FileStore,
        rule_loader: RuleLoader,
        retriever: SemanticRetriever,
        generator: Generator,
        executor: RateLimitedExecutor,
        settings: Settings,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.ledger = ledger
        self.file_store = file_store
        self.rule_loader = rule_loader
        self.retriever = retriever
        self.generator = generator
        self.executor = executor
        self.settings = settings
        self._sleep = sleep

    def run(
        self,
        entry_id: str | None = None,
        batch_size: int | None = None,
        reanalyze: bool = False,
    ) -> list[EntryOutcome]:
        if entry_id is not None:
            return [self._run_forced(entry_id, reanalyze)]

        limit = min(batch_size or self.settings.batch_size, self.settings.max_batch_size)
        entries = self.ledger.select(self.settings.auto_statuses, order_by="created_at", limit=limit)
        if not entries:
            logger.info("No queued documents to analyze")
            return []

        logger.info("Analyzing %s queued document(s)", len(entries))
        rules = self._load_rules()
        outcomes: list[EntryOutcome] = []
        for index, entry in enumerate(entries):
            if index:
                self._pace()
            outcomes.append(self._process(entry, rules, self.settings.auto_statuses))
        return outcomes

    # Internal helpers -------------------------------------------------

    def _run_forced(self, entry_id: str, reanalyze: bool) -> EntryOutcome:
        entry = self.ledger.get(entry_id)
        if entry is None:
            raise LedgerEntryNotFound(entry_id)
        if entry.status == EntryStatus.DELETED:
            raise InvalidTransition(f"entry {entry_id} is deleted")
        if entry.status == EntryStatus.PROCESSED and entry.has_result and not reanalyze:
            logger.info("Serving cached analysis", extra=entry_context(entry.id, entry.filename))
            PIPELINE_ENTRIES.labels(status="cached").inc()
            return EntryOutcome(
                id=entry.id,
                filename=entry.filename,
                status=entry.status.value,
                result=entry.ai_result,
                cached=True,
            )
        allowed = [status for status in EntryStatus if status not in _FORCE_BLOCKED]
        return self._process(entry, self._load_rules(), allowed)

    def _process(self, entry: QueueEntry, rules: RuleSet, claim_from: list) -> EntryOutcome:
        context = entry_context(entry.id, entry.filename)
        if not self.ledger.claim(entry.id, claim_from):
            logger.warning("Entry already claimed by another run; skipping", extra=context)
            PIPELINE_ENTRIES.labels(status="skipped").inc()
            return EntryOutcome(id=entry.id, filename=entry.filename, status="skipped")

        logger.info("Analysis started", extra=context)
        try:
            result = self._analyze(entry, rules)
            committed = self.ledger.transition(
                entry.id,
                [EntryStatus.PROCESSING],
                status=EntryStatus.PROCESSED,
                ai_result=result.to_record(),
            )
        except FileMissingError as exc:
            logger.warning("Download failed: %s", exc, extra=context)
            return self._mark_error(entry, str(exc))
        except Exception as exc:
            logger.exception("Analysis failed: %s", exc, extra=context)
            return self._mark_error(entry, str(exc))

        if not committed:
            return self._superseded(entry)
        logger.info("Analysis committed", extra=context)
        PIPELINE_ENTRIES.labels(status=EntryStatus.PROCESSED.value).inc()
        return EntryOutcome(
            id=entry.id,
            filename=entry.filename,
            status=EntryStatus.PROCESSED.value,
            result=result.to_record(),
        )

    def _analyze(self, entry: QueueEntry, rules: RuleSet) -> AnalysisResult:
        with PHASE_DURATION.labels(phase="download").time():
            document = self.file_store.download(entry.filename)

        with PHASE_DURATION.labels(phase="extraction").time():
            prompt = prompts.extraction_prompt(rules.extraction_rules, rules.logic_rules)
            raw = self.executor.execute(
                lambda: self.generator.generate([prompt, InlineDocument(data=document)])
            )
            phase1 = ExtractionOutput.from_response(raw)

        with PHASE_DURATION.labels(phase="retrieval").time():
            if phase1.search_context.strip():
                self._pace()
                past_cases = self.retriever.find_similar(phase1.search_context, self.settings.similar_top_k)
            else:
                past_cases = NO_CONTEXT

        self._pace()
        with PHASE_DURATION.labels(phase="final_report").time():
            prompt = prompts.final_report_prompt(phase1.baseline_analysis, past_cases)
            raw = self.executor.execute(lambda: self.generator.generate([prompt]))
            phase3 = FinalReportOutput.from_response(raw)

        return AnalysisResult.assemble(phase1, past_cases, phase3, analyzed_at=now_ms())

    def _load_rules(self) -> RuleSet:
        rules = self.rule_loader.load_rules()
        if not rules.loaded:
            logger.warning("Rule documents unavailable; analyzing with placeholder rules")
        return rules

    def _mark_error(self, entry: QueueEntry, message: str) -> EntryOutcome:
        try:
            recorded = self.ledger.transition(
                entry.id,
                [EntryStatus.PROCESSING],
                status=EntryStatus.ERROR,
                ai_result={"error": message},
            )
        except Exception:
            # the entry stays in ``processing``; the audit listing surfaces it
            logger.exception("Could not record error status", extra=entry_context(entry.id, entry.filename))
        else:
            if not recorded:
                return self._superseded(entry, error=message)
        PIPELINE_ENTRIES.labels(status=EntryStatus.ERROR.value).inc()
        return EntryOutcome(id=entry.id, filename=entry.filename, status=EntryStatus.ERROR.value, error=message)

    def _superseded(self, entry: QueueEntry, error: str | None = None) -> EntryOutcome:
        # deleted, confirmed or re-claimed while this run was analyzing it
        current = self.ledger.get(entry.id)
        logger.warning(
            "Entry changed during analysis (now %s); result discarded",
            current.status.value if current else "missing",
            extra=entry_context(entry.id, entry.filename),
        )
        PIPELINE_ENTRIES.labels(status="superseded").inc()
        return EntryOutcome(id=entry.id, filename=entry.filename, status="superseded", error=error)

    def _pace(self) -> None:
        if self.settings.pacing_seconds > 0:
            self._sleep(self.settings.pacing_seconds)


__all__ = ["AnalysisPipeline"]
