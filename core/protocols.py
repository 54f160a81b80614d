# core/protocols.py
from typing import List, Protocol, Sequence
import numpy as np
from core.entities import IndexMatch


class EmbeddingProvider(Protocol):
    """Turns text into a fixed-length, L2-normalized float32 vector."""

    async def embed(self, text: str) -> np.ndarray: ...

    async def embed_many(self, texts: Sequence[str]) -> np.ndarray: ...


class ProvisionIndex(Protocol):
    """
    Read-only vector index of authoritative provisions, partitioned by namespace.
    Matches below the index's minimum score are never returned.
    """

    async def query(
        self, vector: np.ndarray, top_k: int, namespace: str
    ) -> List[IndexMatch]: ...
