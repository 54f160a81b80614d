# core/entities.py
from dataclasses import dataclass, field
from typing import List
import numpy as np
from model.compliance import ComplianceMapping, Provision
from util.enums import Decision, StrategySource
from util.types import ProvisionMetadata


@dataclass
class EmbeddingIndex:
    """
    L2-normalized embedding matrix for cosine similarity search.
    """

    embeddings: np.ndarray  # (n, d) float32


@dataclass
class IndexMatch:
    """Raw hit from a provision index: {id, score, metadata}."""

    id: str
    score: float
    metadata: ProvisionMetadata


@dataclass
class Candidate:
    provision: Provision
    similarity: float  # cosine, clamped to [0, 1]
    vector_id: str


@dataclass
class Classification:
    decision: Decision
    confidence: int  # 0..100
    source: StrategySource


@dataclass
class Rationale:
    text: str
    source: StrategySource


@dataclass
class BatchOutcome:
    mappings: List[ComplianceMapping] = field(default_factory=list)
    total: int = 0
    analyzed: int = 0
    unmatched: int = 0
    failed: int = 0
    truncated: bool = False
    cancelled: bool = False
