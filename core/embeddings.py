# core/embeddings.py
import asyncio
from functools import lru_cache
from typing import List, Sequence
import numpy as np
from sentence_transformers import SentenceTransformer
from config.settings import settings
from util.timing import timed
import logging

logger = logging.getLogger(__name__)


@lru_cache(maxsize=2)
def _load_model(name: str) -> SentenceTransformer:
    """
    Lazy-load the sentence embedding model once per name.

    Model is kept CPU-friendly; set EMBEDDING_MODEL_NAME for a larger one.
    """
    with timed(logger, "embed.model.load", model=name):
        model = SentenceTransformer(name, device="cpu")
    return model


class SentenceTransformerEmbedder:
    """
    Local sentence-transformers encoder. Encoding is CPU-bound, so it runs in a
    worker thread and is bounded by EMBED_TIMEOUT_SECONDS.
    """

    def __init__(
        self,
        model_name: str = settings.EMBEDDING_MODEL_NAME,
        timeout: float = settings.EMBED_TIMEOUT_SECONDS,
        batch_size: int = 64,
    ) -> None:
        self._model_name = model_name
        self._timeout = timeout
        self._batch_size = batch_size

    def _encode(self, texts: List[str]) -> np.ndarray:
        model = _load_model(self._model_name)
        vecs = model.encode(
            texts,
            batch_size=self._batch_size,
            convert_to_numpy=True,
            normalize_embeddings=True,
        )
        return vecs.astype(np.float32, copy=False)

    async def embed_many(self, texts: Sequence[str]) -> np.ndarray:
        with timed(logger, "embed.encode", n=len(texts), batch=self._batch_size):
            return await asyncio.wait_for(
                asyncio.to_thread(self._encode, list(texts)), timeout=self._timeout
            )

    async def embed(self, text: str) -> np.ndarray:
        return (await self.embed_many([text]))[0]
