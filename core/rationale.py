# core/rationale.py
from typing import Protocol
from config.settings import settings
from core.entities import Candidate, Classification, Rationale
from core.llm_client import LLMClient
from model.compliance import Sentence
from util.enums import Decision, StrategySource
from util.errors import RationaleError
from util.functions import clip_words
import logging

logger = logging.getLogger(__name__)

ALIGNMENT_WORDS = {
    Decision.YES: "alignment",
    Decision.NO: "contradiction",
    Decision.PARTIAL: "partial alignment",
}


class RationaleStrategy(Protocol):
    name: StrategySource

    async def explain(
        self, sentence: Sentence, match: Candidate, verdict: Classification
    ) -> Rationale: ...


def template_rationale(match: Candidate, decision: Decision) -> str:
    return (
        f"The document text shows {ALIGNMENT_WORDS[decision]} "
        f"with {match.provision.reference}."
    )


class TemplateRationale:
    name = StrategySource.TEMPLATE

    async def explain(
        self, sentence: Sentence, match: Candidate, verdict: Classification
    ) -> Rationale:
        return Rationale(
            text=template_rationale(match, verdict.decision),
            source=StrategySource.TEMPLATE,
        )


def _user_prompt(sentence: Sentence, match: Candidate, verdict: Classification) -> str:
    p = match.provision
    return (
        f"DECISION (fixed): {verdict.decision.value} at confidence {verdict.confidence}\n\n"
        f"DOCUMENT TEXT:\n{sentence.text}\n\n"
        f"PROVISION {p.reference}:\n{clip_words(p.text, max_words=400)}\n\n"
        f"Explain in 2-3 sentences why the document text is "
        f"{ALIGNMENT_WORDS[verdict.decision]} with {p.reference}."
    )


class LLMRationale:
    """
    Explains a verdict that is already fixed. The reply is never parsed for a
    decision, so it cannot change one.
    """

    name = StrategySource.LLM

    def __init__(
        self, client: LLMClient, fallback: RationaleStrategy | None = None
    ) -> None:
        self._client = client
        self._fallback = fallback or TemplateRationale()

    async def _ask(
        self, sentence: Sentence, match: Candidate, verdict: Classification
    ) -> str:
        try:
            text = await self._client.complete(
                system=settings.RATIONALE_SYSTEM_PROMPT,
                user=_user_prompt(sentence, match, verdict),
                max_tokens=300,
                op="rationale",
            )
        except Exception as e:
            raise RationaleError(
                f"rationale request failed: {type(e).__name__}", cause=e
            ) from e
        if not text:
            raise RationaleError("empty rationale")
        return text

    async def explain(
        self, sentence: Sentence, match: Candidate, verdict: Classification
    ) -> Rationale:
        try:
            text = await self._ask(sentence, match, verdict)
        except RationaleError as e:
            logger.warning(
                "rationale.fallback sentence=%d reason=%s", sentence.id, e.message
            )
            return await self._fallback.explain(sentence, match, verdict)
        return Rationale(text=text, source=StrategySource.LLM)
