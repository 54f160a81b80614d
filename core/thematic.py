# core/thematic.py
from typing import List
from pydantic import ValidationError
from config.settings import settings
from core.llm_client import LLMClient, parse_json_object
from core.segmenter import extract_paragraphs, locate_blocks
from model.compliance import Sentence
from model.llm import ThematicPayload
from util.constants import THEMATIC_INPUT_CHARS
from util.errors import ChunkingError
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


def _user_prompt(text: str, max_sections: int) -> str:
    return (
        f"Divide this document into at most {max_sections} thematic sections.\n\n"
        f"DOCUMENT:\n{text[:THEMATIC_INPUT_CHARS]}\n\n"
        "Return JSON only."
    )


class ThematicChunker:
    """
    Splits a document into a handful of LLM-chosen thematic sections.

    The model only proposes passages; every passage is re-located verbatim in
    the source so offsets stay exact. Paraphrased sections are dropped, and if
    none survive (or the call fails) the document falls back to paragraphs.
    """

    def __init__(
        self, client: LLMClient, max_sections: int = settings.THEMATIC_MAX_SECTIONS
    ) -> None:
        self._client = client
        self._max_sections = max(1, max_sections)

    async def _ask(self, text: str) -> List[Sentence]:
        try:
            raw = await self._client.complete(
                system=settings.THEMATIC_SYSTEM_PROMPT,
                user=_user_prompt(text, self._max_sections),
                max_tokens=4000,
                op="thematic",
            )
            payload = ThematicPayload.model_validate(parse_json_object(raw))
        except (ValueError, ValidationError) as e:
            raise ChunkingError("invalid thematic output", cause=e) from e
        except Exception as e:
            raise ChunkingError(
                f"thematic request failed: {type(e).__name__}", cause=e
            ) from e

        sections = payload.sections[: self._max_sections]
        located = locate_blocks(
            text,
            [s.content for s in sections],
            titles=[s.title or None for s in sections],
        )
        if not located:
            raise ChunkingError("no thematic section found verbatim in the text")
        if len(located) < len(sections):
            logger.warning(
                "thematic.dropped proposed=%d located=%d", len(sections), len(located)
            )
        return located

    async def chunk(self, text: str) -> List[Sentence]:
        if not text or not text.strip():
            return []
        try:
            with timed(logger, "thematic.chunk", chars=len(text)):
                sections = await self._ask(text)
        except ChunkingError as e:
            logger.warning("thematic.fallback reason=%s", e.message)
            return extract_paragraphs(text)
        logger.info("thematic.sections count=%d", len(sections))
        return sections
