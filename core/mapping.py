# core/mapping.py
from datetime import datetime, timezone
from typing import Sequence
from core.classifier import ClassifierStrategy
from core.entities import Candidate, Classification, Rationale
from core.rationale import RationaleStrategy
from core.retriever import ProvisionRetriever
from model.compliance import (
    AlternateMatch,
    ComplianceMapping,
    Provenance,
    Sentence,
    SnippetLocation,
)
import logging

logger = logging.getLogger(__name__)


def build_mapping(
    sentence: Sentence,
    candidates: Sequence[Candidate],
    verdict: Classification,
    rationale: Rationale,
    *,
    now: datetime | None = None,
) -> ComplianceMapping:
    """
    Assemble the audit record. candidates[0] is the primary match; the rest are
    kept, in rank order, as alternates.
    """
    best = candidates[0]
    return ComplianceMapping(
        mappingId=sentence.id,
        sentenceRef=sentence,
        snippetLocation=SnippetLocation.of(sentence),
        provisionMatch=best.provision,
        decision=verdict.decision,
        confidence=verdict.confidence,
        similarityScore=best.similarity,
        rationale=rationale.text,
        provenance=Provenance(
            retrievalScore=best.similarity,
            queryUsed=sentence.text,
            timestamp=now or datetime.now(timezone.utc),
            vectorId=best.vector_id,
        ),
        alternateMatches=[
            AlternateMatch(provision=c.provision, similarity=c.similarity)
            for c in candidates[1:]
        ],
        classifierStrategy=verdict.source,
        rationaleSource=rationale.source,
    )


class MappingAggregator:
    """
    Retrieval -> classification -> rationale for one sentence.
    Returns None when retrieval finds no provision for the sentence.
    """

    def __init__(
        self,
        retriever: ProvisionRetriever,
        classifier: ClassifierStrategy,
        rationale: RationaleStrategy,
    ) -> None:
        self._retriever = retriever
        self._classifier = classifier
        self._rationale = rationale

    async def map_sentence(self, sentence: Sentence) -> ComplianceMapping | None:
        candidates = await self._retriever.retrieve(sentence.text)
        if not candidates:
            logger.info("mapping.unmatched sentence=%d", sentence.id)
            return None

        best = candidates[0]
        verdict = await self._classifier.classify(sentence, best)
        rationale = await self._rationale.explain(sentence, best, verdict)
        mapping = build_mapping(sentence, candidates, verdict, rationale)
        logger.info(
            "mapping.ok sentence=%d provision=%s decision=%s conf=%d sim=%.3f",
            sentence.id,
            best.provision.id,
            verdict.decision.value,
            verdict.confidence,
            best.similarity,
        )
        return mapping
