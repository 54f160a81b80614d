# core/orchestrator.py
import asyncio
import inspect
import time
from typing import List, Sequence, Tuple
from config.settings import settings
from core.entities import BatchOutcome
from core.mapping import MappingAggregator
from model.compliance import ComplianceMapping, Sentence
from util.types import ProgressCallback, ProgressPayload, ProgressPhase
import logging
from util.timing import timed

logger = logging.getLogger(__name__)

_FAILED = "failed"
_UNMATCHED = "unmatched"
_MAPPED = "mapped"


async def emit_progress(
    on_progress: ProgressCallback | None,
    phase: ProgressPhase,
    processed: int,
    total: int,
) -> None:
    """Invoke a sync or async progress callback. A failing listener is only logged."""
    if on_progress is None:
        return
    payload: ProgressPayload = {
        "phase": phase,
        "processed": processed,
        "total": total,
        "ts": int(time.time()),
    }
    try:
        res = on_progress(payload)
        if inspect.isawaitable(res):
            await res
    except Exception:
        logger.error("progress.error phase=%s", phase, exc_info=True)


class BatchOrchestrator:
    """
    Drives the mapping aggregator over a document's sentences.

    - At most `max_sentences` are analysed; the rest are never looked at.
    - Sentences run concurrently inside a batch; batches run one after another
      with `delay` seconds between them.
    - A failing sentence is logged and dropped; it never aborts the run.
    - `cancel_event` is checked before each batch.
    """

    def __init__(
        self,
        aggregator: MappingAggregator,
        *,
        batch_size: int = settings.BATCH_SIZE,
        delay: float = settings.BATCH_DELAY_SECONDS,
        max_sentences: int = settings.MAX_SENTENCES,
    ) -> None:
        self._aggregator = aggregator
        self._batch_size = max(1, batch_size)
        self._delay = max(0.0, delay)
        self._max_sentences = max(0, max_sentences)

    async def _one(self, sentence: Sentence) -> Tuple[str, ComplianceMapping | None]:
        try:
            mapping = await self._aggregator.map_sentence(sentence)
        except Exception as e:
            logger.error(
                "orchestrate.sentence.error sentence=%d err=%s",
                sentence.id,
                type(e).__name__,
                exc_info=True,
            )
            return _FAILED, None
        return (_MAPPED, mapping) if mapping is not None else (_UNMATCHED, None)

    async def run(
        self,
        sentences: Sequence[Sentence],
        *,
        cancel_event: asyncio.Event | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> BatchOutcome:
        todo = list(sentences[: self._max_sentences])
        outcome = BatchOutcome(
            total=len(sentences), truncated=len(sentences) > len(todo)
        )
        if outcome.truncated:
            logger.info(
                "orchestrate.truncate total=%d cap=%d", len(sentences), len(todo)
            )

        collected: List[ComplianceMapping] = []
        batches = [
            todo[i : i + self._batch_size] for i in range(0, len(todo), self._batch_size)
        ]
        logger.info(
            "orchestrate.start sentences=%d batches=%d size=%d",
            len(todo),
            len(batches),
            self._batch_size,
        )

        with timed(logger, "orchestrate.all", sentences=len(todo)):
            for n, batch in enumerate(batches):
                if cancel_event is not None and cancel_event.is_set():
                    outcome.cancelled = True
                    logger.warning(
                        "orchestrate.cancelled after=%d of=%d", outcome.analyzed, len(todo)
                    )
                    break

                with timed(logger, "orchestrate.batch", batch=n + 1, size=len(batch)):
                    results = await asyncio.gather(*(self._one(s) for s in batch))

                # Consolidate only after the whole batch has resolved
                for status, mapping in results:
                    if status == _MAPPED:
                        collected.append(mapping)
                    elif status == _UNMATCHED:
                        outcome.unmatched += 1
                    else:
                        outcome.failed += 1
                outcome.analyzed += len(batch)
                await emit_progress(on_progress, "analyze", outcome.analyzed, len(todo))

                if n + 1 < len(batches) and self._delay:
                    await asyncio.sleep(self._delay)

        outcome.mappings = sorted(collected, key=lambda m: m.mappingId)
        logger.info(
            "orchestrate.done mapped=%d unmatched=%d failed=%d",
            len(outcome.mappings),
            outcome.unmatched,
            outcome.failed,
        )
        return outcome
