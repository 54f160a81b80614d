# core/classifier.py
from typing import Protocol
from pydantic import ValidationError
from config.settings import settings
from core.entities import Candidate, Classification
from core.llm_client import LLMClient, parse_json_object
from model.compliance import Sentence
from model.llm import ClassificationPayload
from util.constants import FallbackThresholds
from util.enums import Decision, StrategySource
from util.errors import ClassificationError
from util.functions import clip_words, round_half_up
import logging

logger = logging.getLogger(__name__)


class ClassifierStrategy(Protocol):
    name: StrategySource

    async def classify(self, sentence: Sentence, match: Candidate) -> Classification: ...


def fallback_decision(similarity: float) -> Classification:
    """
    Deterministic verdict from similarity alone:
      sim >= 0.85 -> YES, 0.70 <= sim < 0.85 -> PARTIAL, otherwise NO.
    Confidence is the similarity as a 0-100 integer.
    """
    if similarity >= FallbackThresholds.YES:
        decision = Decision.YES
    elif similarity >= FallbackThresholds.PARTIAL:
        decision = Decision.PARTIAL
    else:
        decision = Decision.NO
    confidence = max(0, min(100, round_half_up(similarity * 100)))
    return Classification(
        decision=decision, confidence=confidence, source=StrategySource.HEURISTIC
    )


class HeuristicClassifier:
    name = StrategySource.HEURISTIC

    async def classify(self, sentence: Sentence, match: Candidate) -> Classification:
        return fallback_decision(match.similarity)


def _user_prompt(sentence: Sentence, match: Candidate) -> str:
    p = match.provision
    heading = f" ({p.heading})" if p.heading else ""
    return (
        f"SENTENCE:\n{sentence.text}\n\n"
        f"PROVISION {p.reference}{heading}:\n{clip_words(p.text, max_words=400)}\n\n"
        "Return JSON only."
    )


class LLMClassifier:
    """
    One structured request per sentence. The reply must validate against
    ClassificationPayload; otherwise the heuristic verdict is returned.
    """

    name = StrategySource.LLM

    def __init__(
        self, client: LLMClient, fallback: ClassifierStrategy | None = None
    ) -> None:
        self._client = client
        self._fallback = fallback or HeuristicClassifier()

    async def _ask(self, sentence: Sentence, match: Candidate) -> Classification:
        try:
            raw = await self._client.complete(
                system=settings.CLASSIFY_SYSTEM_PROMPT,
                user=_user_prompt(sentence, match),
                max_tokens=200,
                op="classify",
            )
            payload = ClassificationPayload.model_validate(parse_json_object(raw))
        except (ValueError, ValidationError) as e:
            raise ClassificationError("invalid classifier output", cause=e) from e
        except Exception as e:
            raise ClassificationError(
                f"classifier request failed: {type(e).__name__}", cause=e
            ) from e
        return Classification(
            decision=payload.decision,
            confidence=round_half_up(payload.confidence),
            source=StrategySource.LLM,
        )

    async def classify(self, sentence: Sentence, match: Candidate) -> Classification:
        try:
            result = await self._ask(sentence, match)
        except ClassificationError as e:
            logger.warning(
                "classify.fallback sentence=%d reason=%s", sentence.id, e.message
            )
            return await self._fallback.classify(sentence, match)
        logger.info(
            "classify.result sentence=%d decision=%s conf=%d",
            sentence.id,
            result.decision.value,
            result.confidence,
        )
        return result
