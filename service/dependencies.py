# service/dependencies.py
from config.settings import settings
from core.classifier import HeuristicClassifier, LLMClassifier
from core.embeddings import SentenceTransformerEmbedder
from core.llm_client import LLMClient
from core.protocols import EmbeddingProvider, ProvisionIndex
from core.rationale import LLMRationale, TemplateRationale
from core.retriever import ProvisionRetriever
from core.summarizer import LLMSummarizer, TemplateSummarizer
from core.thematic import ThematicChunker
from service.compliance_service import ComplianceService
import logging
from util.logger import init_logger

logger = logging.getLogger(__name__)


def get_llm_client() -> LLMClient | None:
    """LLM client when enabled and keyed; None selects the deterministic strategies."""
    if not settings.LLM_ENABLED or not settings.ANTHROPIC_API_KEY:
        logger.info("deps.llm.disabled enabled=%s", settings.LLM_ENABLED)
        return None
    return LLMClient(api_key=settings.ANTHROPIC_API_KEY)


def get_compliance_service(
    index: ProvisionIndex,
    embedder: EmbeddingProvider | None = None,
    llm: LLMClient | None = None,
) -> ComplianceService:
    """
    Wire a ComplianceService around an already-built provision index.
    Pass `llm` explicitly to override the settings-derived client.
    """
    init_logger()
    _embedder = embedder or SentenceTransformerEmbedder()
    _retriever = ProvisionRetriever(_embedder, index)
    _llm = llm if llm is not None else get_llm_client()

    if _llm is None:
        return ComplianceService(
            _retriever, HeuristicClassifier(), TemplateRationale(), TemplateSummarizer()
        )
    return ComplianceService(
        _retriever,
        LLMClassifier(_llm),
        LLMRationale(_llm),
        LLMSummarizer(_llm),
        chunker=ThematicChunker(_llm),
        model_used=_llm.model,
    )
