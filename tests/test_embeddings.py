import asyncio

import numpy as np
import pytest

from core import embeddings
from core.embeddings import SentenceTransformerEmbedder


class FakeModel:
    def __init__(self, pause: float = 0.0):
        self.pause = pause
        self.calls = []

    def encode(self, texts, batch_size, convert_to_numpy, normalize_embeddings):
        import time

        time.sleep(self.pause)
        self.calls.append((list(texts), batch_size, normalize_embeddings))
        return np.ones((len(texts), 4), dtype=np.float64) / 2.0


async def test_embed_many_returns_float32_rows(monkeypatch):
    model = FakeModel()
    monkeypatch.setattr(embeddings, "_load_model", lambda name: model)

    vecs = await SentenceTransformerEmbedder("fake", batch_size=8).embed_many(["a", "b", "c"])

    assert vecs.shape == (3, 4)
    assert vecs.dtype == np.float32
    assert model.calls == [(["a", "b", "c"], 8, True)]


async def test_embed_single_text(monkeypatch):
    monkeypatch.setattr(embeddings, "_load_model", lambda name: FakeModel())

    vec = await SentenceTransformerEmbedder("fake").embed("hello")

    assert vec.shape == (4,)


async def test_slow_encode_times_out(monkeypatch):
    monkeypatch.setattr(embeddings, "_load_model", lambda name: FakeModel(pause=0.5))

    with pytest.raises(asyncio.TimeoutError):
        await SentenceTransformerEmbedder("fake", timeout=0.05).embed("slow")
