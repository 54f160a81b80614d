# core/summarizer.py
import json
from dataclasses import dataclass
from typing import List, Protocol
from pydantic import ValidationError
from config.settings import settings
from core.llm_client import LLMClient, parse_json_object
from model.llm import SummaryPayload
from model.report import ArticleStatistics, ComplianceStats
from util.constants import SUMMARY_DOC_CHARS
from util.enums import StrategySource
from util.errors import SummaryError
import logging

logger = logging.getLogger(__name__)


@dataclass
class SummaryInput:
    document_name: str
    document_text: str
    stats: ComplianceStats
    articles: ArticleStatistics
    violations: int
    high_severity: int


@dataclass
class Summary:
    executive_summary: str
    key_findings: List[str]
    source: StrategySource


class Summarizer(Protocol):
    async def summarize(self, data: SummaryInput) -> Summary: ...


def template_key_findings(data: SummaryInput) -> List[str]:
    status = data.stats.overallStatus.value.replace("_", " ")
    return [
        f"Overall compliance: {status}",
        f"Total provisions reviewed: {data.articles.totalProvisions}",
        f"Fully compliant provisions: {data.articles.compliantCount}",
        f"Non-compliant provisions: {data.articles.nonCompliantCount}",
        f"Partially compliant provisions: {data.articles.partiallyCompliantCount}",
        f"Total document snippets analyzed: {data.stats.total}",
        (
            f"Required actions: {data.high_severity} high-priority remediations"
            if data.violations
            else "No critical violations identified"
        ),
    ]


class TemplateSummarizer:
    async def summarize(self, data: SummaryInput) -> Summary:
        return Summary(
            executive_summary=(
                f"Compliance analysis of {data.document_name}. (summary unavailable)"
            ),
            key_findings=template_key_findings(data),
            source=StrategySource.TEMPLATE,
        )


def _user_prompt(data: SummaryInput) -> str:
    stats = {
        "overallCompliance": data.stats.overallStatus.value,
        "snippetsAnalyzed": data.stats.total,
        "compliant": data.stats.yesCount,
        "nonCompliant": data.stats.noCount,
        "partial": data.stats.partialCount,
        "provisionsReviewed": data.articles.totalProvisions,
        "violations": data.violations,
        "highSeverityViolations": data.high_severity,
    }
    return (
        f'DOCUMENT NAME: "{data.document_name}"\n\n'
        f"DOCUMENT TEXT (excerpt):\n{data.document_text[:SUMMARY_DOC_CHARS]}\n\n"
        f"COMPLIANCE STATISTICS:\n{json.dumps(stats)}\n\n"
        "Return JSON only."
    )


class LLMSummarizer:
    """Single summarization call; any failure yields the templated summary."""

    def __init__(self, client: LLMClient, fallback: Summarizer | None = None) -> None:
        self._client = client
        self._fallback = fallback or TemplateSummarizer()

    async def _ask(self, data: SummaryInput) -> SummaryPayload:
        try:
            raw = await self._client.complete(
                system=settings.SUMMARY_SYSTEM_PROMPT,
                user=_user_prompt(data),
                max_tokens=600,
                op="summary",
            )
            return SummaryPayload.model_validate(parse_json_object(raw))
        except (ValueError, ValidationError) as e:
            raise SummaryError("invalid summary output", cause=e) from e
        except Exception as e:
            raise SummaryError(
                f"summary request failed: {type(e).__name__}", cause=e
            ) from e

    async def summarize(self, data: SummaryInput) -> Summary:
        try:
            payload = await self._ask(data)
        except SummaryError as e:
            logger.warning("summary.fallback reason=%s", e.message)
            return await self._fallback.summarize(data)
        findings = [f.strip() for f in payload.keyFindings if f and f.strip()]
        return Summary(
            executive_summary=payload.executiveSummary.strip(),
            key_findings=findings or template_key_findings(data),
            source=StrategySource.LLM,
        )
