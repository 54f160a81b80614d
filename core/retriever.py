# core/retriever.py
import asyncio
from typing import List
from config.settings import settings
from core.entities import Candidate, IndexMatch
from core.protocols import EmbeddingProvider, ProvisionIndex
from model.compliance import Provision
from util.errors import RetrievalError
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


def _opt_str(value) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _opt_int(value) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def to_candidate(match: IndexMatch) -> Candidate | None:
    """
    Convert a raw index hit into a Provision candidate. Hits without provision
    text cannot be judged and are dropped.
    """
    md = match.metadata or {}
    text = str(md.get("text") or "").strip()
    if not text:
        logger.warning("retrieve.match.no_text vector=%s", match.id)
        return None
    # Several vectors (chunks) can carry one provision; group on the provision id
    provision = Provision(
        id=str(md.get("provisionId") or match.id),
        articleNumber=_opt_str(md.get("articleNumber")),
        heading=_opt_str(md.get("heading")),
        part=_opt_str(md.get("part")),
        partName=_opt_str(md.get("partName")),
        text=text,
        startChar=_opt_int(md.get("startChar")),
        endChar=_opt_int(md.get("endChar")),
    )
    similarity = max(0.0, min(1.0, float(match.score)))
    return Candidate(provision=provision, similarity=similarity, vector_id=str(match.id))


class ProvisionRetriever:
    """
    Top-K provision lookup for one piece of text, scoped to a single namespace.
    An empty result means "no mapping", never an error.
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        index: ProvisionIndex,
        namespace: str = settings.PROVISION_NAMESPACE,
        top_k: int = settings.RETRIEVAL_TOP_K,
        timeout: float = settings.INDEX_TIMEOUT_SECONDS,
    ) -> None:
        self._embedder = embedder
        self._index = index
        self._namespace = namespace
        self._top_k = top_k
        self._timeout = timeout

    @property
    def namespace(self) -> str:
        return self._namespace

    async def retrieve(self, text: str, k: int | None = None) -> List[Candidate]:
        k = k or self._top_k
        try:
            with timed(logger, "retrieve", k=k):
                vector = await self._embedder.embed(text)
                matches = await asyncio.wait_for(
                    self._index.query(vector, k, self._namespace),
                    timeout=self._timeout,
                )
        except asyncio.TimeoutError as e:
            raise RetrievalError("provision index timed out", cause=e) from e
        except Exception as e:
            raise RetrievalError(f"provision lookup failed: {type(e).__name__}", cause=e) from e

        candidates = [c for c in (to_candidate(m) for m in matches) if c is not None]
        candidates.sort(key=lambda c: c.similarity, reverse=True)
        if not candidates:
            logger.info("retrieve.empty namespace=%s", self._namespace)
        return candidates[:k]
