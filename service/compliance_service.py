# service/compliance_service.py
import asyncio
import logging
from typing import List
from config.settings import settings
from core.classifier import ClassifierStrategy
from core.mapping import MappingAggregator
from core.orchestrator import BatchOrchestrator, emit_progress
from core.rationale import RationaleStrategy
from core.report_builder import ReportBuilder
from core.report_digest import render_markdown
from core.retriever import ProvisionRetriever
from core.segmenter import extract_paragraphs, extract_sentences
from core.summarizer import Summarizer
from core.thematic import ThematicChunker
from model.compliance import Sentence
from model.report import DocumentMeta, Report
from util.enums import Granularity
from util.types import ProgressCallback

logger = logging.getLogger(__name__)


class ComplianceService:
    """
    Segment -> retrieve -> classify -> explain -> report, for one document.

    The returned Report is the only artifact that outlives the call; storing or
    rendering it belongs to the caller.
    """

    def __init__(
        self,
        retriever: ProvisionRetriever,
        classifier: ClassifierStrategy,
        rationale: RationaleStrategy,
        summarizer: Summarizer,
        *,
        chunker: ThematicChunker | None = None,
        model_used: str | None = None,
        batch_size: int = settings.BATCH_SIZE,
        batch_delay: float = settings.BATCH_DELAY_SECONDS,
        max_sentences: int = settings.MAX_SENTENCES,
    ) -> None:
        self._chunker = chunker
        self._orchestrator = BatchOrchestrator(
            MappingAggregator(retriever, classifier, rationale),
            batch_size=batch_size,
            delay=batch_delay,
            max_sentences=max_sentences,
        )
        self._builder = ReportBuilder(
            summarizer,
            namespace=retriever.namespace,
            classifier_strategy=classifier.name.value,
            model_used=model_used,
        )

    async def _segment(self, text: str, granularity: Granularity) -> List[Sentence]:
        if granularity == Granularity.THEMATIC:
            if self._chunker is not None:
                return await self._chunker.chunk(text)
            logger.warning("analyze.thematic.unavailable using=paragraph")
            return extract_paragraphs(text)
        if granularity == Granularity.PARAGRAPH:
            return extract_paragraphs(text)
        return extract_sentences(text)

    async def analyze(
        self,
        text: str,
        meta: DocumentMeta,
        *,
        granularity: Granularity = Granularity.SENTENCE,
        cancel_event: asyncio.Event | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> Report:
        """
        Analyse `text` and build its Report. Per-sentence failures only reduce
        coverage; AggregationError is the one failure that reaches the caller.

        Progress phases, in order: segment, analyze (once per batch), report.
        """
        text = text or ""
        logger.info(
            "analyze.start doc=%s chars=%d granularity=%s",
            meta.name,
            len(text),
            granularity.value,
        )
        segments = await self._segment(text, granularity)
        await emit_progress(on_progress, "segment", len(segments), len(segments))

        outcome = await self._orchestrator.run(
            segments, cancel_event=cancel_event, on_progress=on_progress
        )
        report = await self._builder.build(meta, text, outcome, granularity)
        await emit_progress(on_progress, "report", 1, 1)
        logger.info(
            "analyze.ok doc=%s report=%s mappings=%d",
            meta.name,
            report.reportId,
            len(report.mappings),
        )
        return report

    @staticmethod
    def digest(report: Report) -> str:
        return render_markdown(report)
