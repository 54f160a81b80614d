# repository/provision_index.py
from typing import Dict, List, Sequence
import numpy as np
from config.settings import settings
from core.protocols import EmbeddingProvider
from core.entities import EmbeddingIndex, IndexMatch
from model.compliance import Provision
from util.timing import timed
from util.types import ProvisionMetadata
import logging

logger = logging.getLogger(__name__)


def provision_metadata(provision: Provision) -> ProvisionMetadata:
    """Metadata stored next to each provision vector."""
    return {
        "provisionId": provision.id,
        "articleNumber": provision.articleNumber,
        "heading": provision.heading,
        "part": provision.part,
        "partName": provision.partName,
        "text": provision.text,
        "startChar": provision.startChar,
        "endChar": provision.endChar,
    }


class _Namespace:
    def __init__(
        self, ids: List[str], index: EmbeddingIndex, metadata: List[ProvisionMetadata]
    ) -> None:
        self.ids = ids
        self.index = index
        self.metadata = metadata


class InMemoryProvisionIndex:
    """
    Numpy cosine index. Vectors must be L2-normalized, so the dot product is the
    cosine similarity. Hits scoring below `min_score` (default
    RETRIEVAL_MIN_SCORE) are not returned.
    """

    def __init__(self, min_score: float | None = None) -> None:
        self._min_score = (
            settings.RETRIEVAL_MIN_SCORE if min_score is None else min_score
        )
        self._namespaces: Dict[str, _Namespace] = {}

    @property
    def namespaces(self) -> List[str]:
        return list(self._namespaces)

    def load(
        self,
        namespace: str,
        ids: Sequence[str],
        vectors: np.ndarray,
        metadata: Sequence[ProvisionMetadata],
    ) -> None:
        if not (len(ids) == len(metadata) == vectors.shape[0]):
            raise ValueError("ids, vectors and metadata must have the same length")
        self._namespaces[namespace] = _Namespace(
            list(ids),
            EmbeddingIndex(embeddings=vectors.astype(np.float32, copy=False)),
            list(metadata),
        )
        logger.info(
            "index.load namespace=%s n=%d d=%d",
            namespace,
            vectors.shape[0],
            vectors.shape[1] if vectors.size else 0,
        )

    @classmethod
    async def from_provisions(
        cls,
        provisions: Sequence[Provision],
        embedder: EmbeddingProvider,
        namespace: str,
        min_score: float | None = None,
    ) -> "InMemoryProvisionIndex":
        index = cls(min_score=min_score)
        vectors = await embedder.embed_many([p.text for p in provisions])
        index.load(
            namespace,
            [p.id for p in provisions],
            np.asarray(vectors, dtype=np.float32),
            [provision_metadata(p) for p in provisions],
        )
        return index

    async def query(
        self, vector: np.ndarray, top_k: int, namespace: str
    ) -> List[IndexMatch]:
        ns = self._namespaces.get(namespace)
        if ns is None or ns.index.embeddings.shape[0] == 0:
            logger.warning("index.namespace.empty namespace=%s", namespace)
            return []

        with timed(logger, "index.query", k=top_k, namespace=namespace):
            q = np.asarray(vector, dtype=np.float32)
            sims = (ns.index.embeddings @ q).astype(float)
            kk = max(1, min(top_k, sims.shape[0]))
            top_idx = np.argpartition(sims, -kk)[-kk:]
            ranked = sorted(
                ((int(i), float(sims[int(i)])) for i in top_idx),
                key=lambda t: t[1],
                reverse=True,
            )
        return [
            IndexMatch(id=ns.ids[i], score=score, metadata=dict(ns.metadata[i]))
            for i, score in ranked
            if score >= self._min_score
        ]
