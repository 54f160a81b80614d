# core/segmenter.py
import bisect
import logging
import re
from functools import lru_cache
from typing import List, Sequence
from nltk.tokenize.punkt import PunktSentenceTokenizer, PunktTokenizer
from config.settings import settings
from model.compliance import Sentence
from util.constants import CHARS_PER_PAGE, MIN_PARAGRAPH_CHARS, MIN_SENTENCE_CHARS
from util.errors import SegmentationError
from util.timing import timed

logger = logging.getLogger(__name__)

_BLANK_LINE = re.compile(r"\n[ \t\r]*\n")
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n")


@lru_cache(maxsize=4)
def _load_tokenizer(language: str) -> PunktSentenceTokenizer:
    """
    Pretrained Punkt tables when installed (nltk.download("punkt_tab")),
    otherwise an untrained Punkt tokenizer from the same library.
    """
    try:
        return PunktTokenizer(language)
    except LookupError:
        logger.warning("segment.punkt.missing lang=%s using=untrained", language)
        return PunktSentenceTokenizer()


def estimate_page(offset: int) -> int:
    """Approximate 1-based page for a character offset. Not real pagination."""
    return offset // CHARS_PER_PAGE + 1


class _LineIndex:
    """Maps a character offset to its 1-based line number."""

    def __init__(self, text: str) -> None:
        self._starts = [0]
        for i, ch in enumerate(text):
            if ch == "\n":
                self._starts.append(i + 1)

    def line_of(self, offset: int) -> int:
        return bisect.bisect_right(self._starts, offset)


def _locate(text: str, fragment: str, cursor: int) -> int:
    pos = text.find(fragment, cursor)
    if pos == -1:
        raise SegmentationError(f"fragment not found after offset {cursor}")
    return pos


def extract_sentences(text: str, start_offset: int = 0) -> List[Sentence]:
    """
    Split `text` into ordered, non-overlapping sentences with character offsets.

    - Fragments shorter than MIN_SENTENCE_CHARS are dropped as noise.
    - A fragment that cannot be re-located in the source is skipped and the
      cursor moves past it; the caller never sees that failure.
    - paragraph counts blank-line gaps between consecutive sentences.
    """
    if not text or not text.strip():
        return []

    tokenizer = _load_tokenizer(settings.SEGMENTER_LANGUAGE)
    lines = _LineIndex(text)
    out: List[Sentence] = []
    cursor = start_offset
    paragraph = 0
    skipped = 0

    with timed(logger, "segment.sentences", chars=len(text)):
        for raw in tokenizer.tokenize(text):
            fragment = raw.strip()
            if len(fragment) < MIN_SENTENCE_CHARS:
                continue
            try:
                start = _locate(text, fragment, cursor)
            except SegmentationError:
                skipped += 1
                logger.debug("segment.skip cursor=%d len=%d", cursor, len(fragment))
                cursor += len(fragment)
                continue

            end = start + len(fragment)
            if _BLANK_LINE.search(text, cursor, start):
                paragraph += 1

            out.append(
                Sentence(
                    id=len(out) + 1,
                    text=fragment,
                    startChar=start,
                    endChar=end,
                    page=estimate_page(start),
                    paragraph=paragraph,
                    line=lines.line_of(start),
                )
            )
            cursor = end

    logger.info("segment.sentences count=%d skipped=%d", len(out), skipped)
    return out


def locate_blocks(
    text: str,
    blocks: Sequence[str],
    *,
    min_chars: int = MIN_PARAGRAPH_CHARS,
    titles: Sequence[str | None] | None = None,
    start_offset: int = 0,
) -> List[Sentence]:
    """
    Re-locate pre-split blocks in `text`, in order, and return them as records
    with real offsets. Blocks shorter than `min_chars`, and blocks that do not
    occur verbatim after the previous one, are dropped.
    """
    lines = _LineIndex(text)
    out: List[Sentence] = []
    cursor = start_offset

    for i, block in enumerate(blocks):
        trimmed = block.strip()
        if len(trimmed) < min_chars:
            continue
        try:
            start = _locate(text, trimmed, cursor)
        except SegmentationError:
            logger.debug("segment.block.skip cursor=%d len=%d", cursor, len(trimmed))
            continue
        end = start + len(trimmed)
        out.append(
            Sentence(
                id=len(out) + 1,
                text=trimmed,
                startChar=start,
                endChar=end,
                page=estimate_page(start),
                paragraph=len(out),
                line=lines.line_of(start),
                title=titles[i] if titles else None,
            )
        )
        cursor = end
    return out


def extract_paragraphs(text: str, start_offset: int = 0) -> List[Sentence]:
    """
    Blank-line delimited blocks, same record shape as sentences so the rest of
    the pipeline can analyse at paragraph granularity.
    """
    if not text or not text.strip():
        return []

    out = locate_blocks(
        text, _PARAGRAPH_SPLIT.split(text), start_offset=start_offset
    )
    logger.info("segment.paragraphs count=%d", len(out))
    return out
