"""Manual training: comparative analysis of an uploaded file and saving verified instructions."""

from __future__ import annotations

from typing import Any

from legal_review.core.logging import get_logger
from legal_review.core.retry import RateLimitedExecutor
from legal_review.llm import prompts
from legal_review.llm.parsing import parse_json_object
from legal_review.llm.types import Embedder, Generator, InlineDocument
from legal_review.pipeline.results import AnalysisMode
from legal_review.retrieval.similar import SemanticRetriever
from legal_review.retrieval.vector_index import CaseVectorStore
from legal_review.rules.loader import RuleLoader, select_rules
from legal_review.utils.ids import manual_train_id
from legal_review.utils.text import render_value
from legal_review.utils.time import utc_iso

logger = get_logger(__name__)

PARSE_FAILED = "Parse failed"


class ManualTrainer:
    """Run a rules-only vs rules-plus-history comparison and store verified feedback."""

    mode = AnalysisMode.COMPARATIVE_WITH_HISTORY

    def __init__(
        self,
        rule_loader: RuleLoader,
        retriever: SemanticRetriever,
        generator: Generator,
        embedder: Embedder,
        store: CaseVectorStore,
        executor: RateLimitedExecutor,
    ) -> None:
        self.rule_loader = rule_loader
        self.retriever = retriever
        self.generator = generator
        self.embedder = embedder
        self.store = store
        self.executor = executor

    def analyze(
        self,
        file_bytes: bytes,
        mime_type: str,
        doc_type: str,
        file_name: str | None = None,
    ) -> dict[str, Any]:
        rules = self.rule_loader.load_rules()
        extraction_rules = select_rules(rules.extraction_rules, doc_type)
        logic_rules = select_rules(rules.logic_rules, doc_type)

        search_context = f"document type: {doc_type}, file: {file_name or 'unknown'} interpretation errors and feedback"
        past_experience = self.retriever.find_feedback(search_context)

        prompt = prompts.comparative_prompt(extraction_rules, logic_rules, past_experience)
        raw = self.executor.execute(
            lambda: self.generator.generate([prompt, InlineDocument(data=file_bytes, mime_type=mime_type)])
        )
        parsed = parse_json_object(raw)
        if parsed is None:
            logger.warning("Comparative analysis reply was not JSON; returning raw text")
            parsed = {"extracted_facts": PARSE_FAILED, "logic_baseline": PARSE_FAILED, "logic_rag": raw}
        return {
            "extraction": parsed.get("extracted_facts"),
            "baseline_analysis": parsed.get("logic_baseline"),
            "rag_analysis": parsed.get("logic_rag"),
        }

    def save(
        self,
        doc_type: str,
        extraction: Any,
        analysis: Any,
        feedback: str,
        file_name: str | None = None,
    ) -> str:
        content = "\n".join(
            [
                f"[Doc Type]: {doc_type}",
                f"[Verified Extraction]: {render_value(extraction)}",
                f"[Verified Analysis (Final)]: {render_value(analysis)}",
                f"[User Instruction]: {feedback}",
            ]
        )
        vector = self.executor.execute(lambda: self.embedder.embed(content))
        vector_id = manual_train_id()
        self.store.upsert(
            vector_id,
            vector,
            {
                "fileName": file_name or "",
                "docType": doc_type,
                "type": "verified_instruction",
                "userFeedback": feedback,
                "fullContent": content,
                "createdAt": utc_iso(),
            },
        )
        logger.info("Saved manual training case %s", vector_id)
        return vector_id


__all__ = ["ManualTrainer", "PARSE_FAILED"]
