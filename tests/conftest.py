"""
Shared fixtures: a small provision corpus, scripted embedder/index pairs that
return fixed similarities, and an httpx mock transport shaped like the
Anthropic Messages API. Nothing here touches the network or loads a model.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Callable, Dict, List, Sequence, Tuple

import httpx
import numpy as np
import pytest

from core.entities import Candidate, Classification, IndexMatch, Rationale
from core.llm_client import LLMClient
from core.mapping import build_mapping
from model.compliance import ComplianceMapping, Provision, Sentence
from repository.provision_index import provision_metadata
from util.enums import Decision, StrategySource


ARTICLE_10 = Provision(
    id="art-10",
    articleNumber="10",
    heading="Safeguards as to arrest and detention",
    part="II",
    partName="Fundamental Rights",
    text=(
        "No person who is arrested shall be detained in custody without being informed "
        "of the grounds for such arrest, nor shall he be denied the right to consult a "
        "legal practitioner of his choice."
    ),
    startChar=1200,
    endChar=1390,
)
ARTICLE_19 = Provision(
    id="art-19",
    articleNumber="19",
    heading="Freedom of speech",
    part="II",
    partName="Fundamental Rights",
    text="Every citizen shall have the right to freedom of speech and expression.",
    startChar=4100,
    endChar=4172,
)
ARTICLE_25 = Provision(
    id="art-25",
    articleNumber="25",
    heading="Equality of citizens",
    part="II",
    partName="Fundamental Rights",
    text="All citizens are equal before law and are entitled to equal protection of law.",
    startChar=5300,
    endChar=5379,
)

THREE_SENTENCES = (
    "Every arrested person shall be told the grounds of arrest. "
    "Citizens may publish opinions subject to reasonable notice. "
    "Officials may detain any person indefinitely without charge."
)


@pytest.fixture
def provisions() -> List[Provision]:
    return [ARTICLE_10, ARTICLE_19, ARTICLE_25]


def make_sentence(sid: int, text: str | None = None, start: int | None = None) -> Sentence:
    text = text or f"Sentence number {sid} of the test document."
    start = start if start is not None else (sid - 1) * 100
    return Sentence(
        id=sid,
        text=text,
        startChar=start,
        endChar=start + len(text),
        page=start // 3000 + 1,
        paragraph=0,
        line=1,
    )


def make_candidate(provision: Provision, similarity: float) -> Candidate:
    return Candidate(provision=provision, similarity=similarity, vector_id=f"vec-{provision.id}")


def make_mapping(
    sid: int,
    decision: Decision,
    confidence: int,
    provision: Provision = ARTICLE_10,
    similarity: float = 0.8,
) -> ComplianceMapping:
    return build_mapping(
        make_sentence(sid),
        [make_candidate(provision, similarity)],
        Classification(decision=decision, confidence=confidence, source=StrategySource.HEURISTIC),
        Rationale(text=f"rationale {sid}", source=StrategySource.TEMPLATE),
        now=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


class ScriptedCorpus:
    """
    Embedder + index pair where each known query text maps to a fixed list of
    (provision, score) hits. Unknown texts get no hits.
    """

    def __init__(self) -> None:
        self._slots: Dict[str, int] = {}
        self._hits: Dict[int, List[Tuple[Provision, float]]] = {}
        self.queries: List[Tuple[str, int]] = []
        self.embedder = self._Embedder(self)
        self.index = self._Index(self)

    def script(self, text: str, hits: Sequence[Tuple[Provision, float]]) -> "ScriptedCorpus":
        slot = self._slot(text)
        self._hits[slot] = list(hits)
        return self

    def _slot(self, text: str) -> int:
        return self._slots.setdefault(text, len(self._slots) + 1)

    class _Embedder:
        def __init__(self, corpus: "ScriptedCorpus") -> None:
            self._corpus = corpus

        async def embed(self, text: str) -> np.ndarray:
            return np.array([float(self._corpus._slot(text))], dtype=np.float32)

        async def embed_many(self, texts: Sequence[str]) -> np.ndarray:
            return np.stack([await self.embed(t) for t in texts])

    class _Index:
        def __init__(self, corpus: "ScriptedCorpus") -> None:
            self._corpus = corpus

        async def query(self, vector: np.ndarray, top_k: int, namespace: str) -> List[IndexMatch]:
            slot = int(vector[0])
            self._corpus.queries.append((namespace, top_k))
            hits = sorted(self._corpus._hits.get(slot, []), key=lambda h: h[1], reverse=True)
            return [
                IndexMatch(id=f"vec-{p.id}", score=score, metadata=provision_metadata(p))
                for p, score in hits[:top_k]
            ]


@pytest.fixture
def corpus() -> ScriptedCorpus:
    return ScriptedCorpus()


def anthropic_reply(text: str, status: int = 200) -> httpx.Response:
    return httpx.Response(status, json={"content": [{"type": "text", "text": text}]})


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request payload it saw."""

    def __init__(self, handler: Callable[[dict], httpx.Response]) -> None:
        self.payloads: List[dict] = []

        def _handle(request: httpx.Request) -> httpx.Response:
            payload = json.loads(request.content)
            self.payloads.append(payload)
            return handler(payload)

        super().__init__(_handle)


def make_llm(handler: Callable[[dict], httpx.Response], **kw) -> Tuple[LLMClient, RecordingTransport]:
    transport = RecordingTransport(handler)
    kw.setdefault("max_retries", 1)
    kw.setdefault("backoff", 0)
    client = LLMClient(
        api_key="test-key",
        model="test-model",
        api_url="https://llm.test/v1/messages",
        transport=transport,
        **kw,
    )
    return client, transport
