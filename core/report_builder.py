# core/report_builder.py
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, List, Sequence, Tuple
from uuid import uuid4
from config.settings import settings
from core.entities import BatchOutcome
from core.summarizer import Summarizer, SummaryInput
from model.compliance import ComplianceMapping, Violation
from model.report import (
    ArticleAnalysis,
    ArticleStatistics,
    ComplianceStats,
    ConfidenceSummary,
    DocumentMeta,
    ProvenanceEntry,
    ProvenanceLog,
    ProvisionGroup,
    RelatedSnippet,
    Report,
    ReportMetadata,
    ReportSummary,
    SuggestedAction,
)
from util.constants import (
    NON_COMPLIANT_RATIO,
    PAGE_ESTIMATE_DISCLAIMER,
    PROVENANCE_LOG_EXAMPLES,
    PROVISION_TEXT_CHARS,
    ConfidenceBuckets,
    SeverityThresholds,
)
from util.enums import Decision, Granularity, OverallCompliance, Priority, Severity
from util.errors import AggregationError
from util.functions import clip_chars, round_half_up
import logging
from util.timing import timed

logger = logging.getLogger(__name__)


def overall_status(yes: int, no: int, total: int) -> OverallCompliance:
    if total == 0:
        return OverallCompliance.NO_DATA
    if yes == total:
        return OverallCompliance.FULLY_COMPLIANT
    if no >= total * NON_COMPLIANT_RATIO:
        return OverallCompliance.NON_COMPLIANT
    return OverallCompliance.PARTIALLY_COMPLIANT


def analyze_stats(mappings: Sequence[ComplianceMapping]) -> ComplianceStats:
    yes = sum(1 for m in mappings if m.decision == Decision.YES)
    no = sum(1 for m in mappings if m.decision == Decision.NO)
    partial = sum(1 for m in mappings if m.decision == Decision.PARTIAL)
    high = sum(1 for m in mappings if m.confidence >= ConfidenceBuckets.HIGH)
    medium = sum(
        1
        for m in mappings
        if ConfidenceBuckets.MEDIUM <= m.confidence < ConfidenceBuckets.HIGH
    )
    low = sum(1 for m in mappings if m.confidence < ConfidenceBuckets.MEDIUM)
    return ComplianceStats(
        yesCount=yes,
        noCount=no,
        partialCount=partial,
        highConfidence=high,
        mediumConfidence=medium,
        lowConfidence=low,
        overallStatus=overall_status(yes, no, len(mappings)),
        total=len(mappings),
    )


def severity_for(confidence: int) -> Severity:
    """
    Severity of a NO finding. Inverted on purpose: an unsure contradiction
    needs a human sooner than a confident one.
    """
    if confidence < SeverityThresholds.HIGH_BELOW:
        return Severity.HIGH
    if confidence < SeverityThresholds.MEDIUM_BELOW:
        return Severity.MEDIUM
    return Severity.LOW


def _remediation(severity: Severity, reference: str) -> Tuple[str, str]:
    if severity == Severity.HIGH:
        return (
            "Critical violation requiring immediate attention. Recommend complete "
            f"redrafting of this provision to align with {reference}. Remove or "
            "substantially revise the clause, cite explicit statutory authority and add "
            "procedural safeguards including notice, hearing rights and time-limited "
            "measures subject to judicial review.",
            "Immediate judicial review required; seek urgent legal counsel; consider "
            "suspending enforcement pending review.",
        )
    if severity == Severity.MEDIUM:
        return (
            "Moderate compliance issue detected. Revise the provision to include an "
            f"explicit citation to {reference}, clear definitions of key terms and "
            "procedural safeguards consistent with due process. Consider adding: "
            f'"This provision shall be interpreted consistently with {reference} and '
            'shall not be construed to limit the rights it protects."',
            "Schedule legal review within 30 days; prepare an amendment proposal; "
            "consult subject-matter experts.",
        )
    return (
        f"Minor compliance concern. Clarify the language to reference {reference} "
        "explicitly, for example with a preamble stating that the provision is enacted "
        f"pursuant to and in accordance with {reference}.",
        "Include in the next periodic review; document the concern; no immediate "
        "action required.",
    )


def derive_violations(mappings: Sequence[ComplianceMapping]) -> List[Violation]:
    """Exactly one violation per NO mapping, in mapping order."""
    out: List[Violation] = []
    for m in mappings:
        if m.decision != Decision.NO:
            continue
        reference = m.provisionMatch.reference
        severity = severity_for(m.confidence)
        fix, steps = _remediation(severity, reference)
        out.append(
            Violation(
                violationId=len(out) + 1,
                mappingId=m.mappingId,
                decisionSource=m.decision,
                severity=severity,
                description=f"Violation of {reference}",
                offendingSnippet=m.sentenceRef.text,
                snippetLocation=m.snippetLocation,
                provisionReference=reference,
                provisionText=m.provisionMatch.text,
                whyViolates=m.rationale
                or (
                    f"The document text appears to conflict with {reference}; the "
                    "requirement is not met or is contradicted."
                ),
                suggestedFix=fix,
                nextSteps=steps,
                confidence=m.confidence,
                similarityScore=m.similarityScore,
            )
        )
    return out


def group_by_provision(mappings: Sequence[ComplianceMapping]) -> ArticleAnalysis:
    """
    Roll mappings up per provision id. All YES -> compliant, all NO ->
    non-compliant, any mixture -> partially compliant.
    """
    groups: Dict[str, List[ComplianceMapping]] = OrderedDict()
    for m in mappings:
        groups.setdefault(m.provisionMatch.id, []).append(m)

    analysis = ArticleAnalysis(
        statistics=ArticleStatistics(
            totalProvisions=len(groups),
            compliantCount=0,
            nonCompliantCount=0,
            partiallyCompliantCount=0,
        )
    )
    for provision_id, items in groups.items():
        p = items[0].provisionMatch
        decisions = [m.decision for m in items]
        group = ProvisionGroup(
            provisionId=provision_id,
            article=p.reference,
            articleHeading=p.heading,
            part=p.part,
            partName=p.partName,
            provisionText=clip_chars(p.text, PROVISION_TEXT_CHARS),
            totalFindings=len(items),
            compliantFindings=decisions.count(Decision.YES),
            nonCompliantFindings=decisions.count(Decision.NO),
            partialFindings=decisions.count(Decision.PARTIAL),
            averageConfidence=round_half_up(
                sum(m.confidence for m in items) / len(items)
            ),
            relatedSnippets=[
                RelatedSnippet(
                    mappingId=m.mappingId,
                    snippet=m.sentenceRef.text,
                    location=m.snippetLocation,
                    decision=m.decision,
                    confidence=m.confidence,
                    rationale=m.rationale,
                )
                for m in items
            ],
        )
        if all(d == Decision.YES for d in decisions):
            analysis.compliantProvisions.append(group)
        elif all(d == Decision.NO for d in decisions):
            analysis.nonCompliantProvisions.append(group)
        else:
            analysis.partiallyCompliantProvisions.append(group)

    analysis.statistics.compliantCount = len(analysis.compliantProvisions)
    analysis.statistics.nonCompliantCount = len(analysis.nonCompliantProvisions)
    analysis.statistics.partiallyCompliantCount = len(
        analysis.partiallyCompliantProvisions
    )
    return analysis


def _plural(n: int, word: str) -> str:
    return f"{n} {word}{'' if n == 1 else 's'}"


def suggested_actions(
    violations: Sequence[Violation], stats: ComplianceStats
) -> List[SuggestedAction]:
    high = [v for v in violations if v.severity == Severity.HIGH]
    medium = [v for v in violations if v.severity == Severity.MEDIUM]
    actions: List[SuggestedAction] = []

    if high:
        actions.append(
            SuggestedAction(
                priority=Priority.URGENT,
                action=(
                    "Request expedited judicial review or legal amendment for "
                    f"{_plural(len(high), 'high-severity violation')}"
                ),
                references=[f"Violation #{v.violationId}" for v in high],
            )
        )
    if medium:
        actions.append(
            SuggestedAction(
                priority=Priority.HIGH,
                action=f"Amendment recommended for {_plural(len(medium), 'moderate violation')}",
                references=[f"Violation #{v.violationId}" for v in medium],
            )
        )
    if stats.lowConfidence:
        actions.append(
            SuggestedAction(
                priority=Priority.MEDIUM,
                action=(
                    "Professional legal review recommended for "
                    f"{_plural(stats.lowConfidence, 'low-confidence finding')}"
                ),
                references=[f"See mappings with confidence < {ConfidenceBuckets.MEDIUM}"],
            )
        )
    if violations:
        actions.append(
            SuggestedAction(
                priority=Priority.MEDIUM,
                action="Re-run the automated compliance check after implementing suggested corrections",
                references=["All violation sections"],
            )
        )
    if not actions:
        actions.append(
            SuggestedAction(
                priority=Priority.LOW,
                action="Document appears compliant. Periodic review recommended.",
            )
        )
    return actions


def confidence_summary(
    stats: ComplianceStats, namespace: str
) -> ConfidenceSummary:
    return ConfidenceSummary(
        totalSnippetsReviewed=stats.total,
        highConfidenceFindings=stats.highConfidence,
        mediumConfidenceFindings=stats.mediumConfidence,
        lowConfidenceFindings=stats.lowConfidence,
        corpusNamespace=namespace,
    )


def provenance_log(mappings: Sequence[ComplianceMapping]) -> ProvenanceLog:
    examples = []
    for m in mappings[:PROVENANCE_LOG_EXAMPLES]:
        p = m.provisionMatch
        examples.append(
            ProvenanceEntry(
                mappingId=m.mappingId,
                vectorId=m.provenance.vectorId,
                provisionReference=p.reference,
                provisionLocation=f"chars {p.startChar or 0}-{p.endChar or 0}",
                retrievalScore=m.provenance.retrievalScore,
                queryUsed=m.provenance.queryUsed,
            )
        )
    return ProvenanceLog(examples=examples, totalMappings=len(mappings))


def new_report_id(now: datetime) -> str:
    return f"RPT-{now.date().isoformat()}-{uuid4().hex[:9].upper()}"


class ReportBuilder:
    """
    Turns a finished batch outcome into the write-once Report. Any unexpected
    failure surfaces as AggregationError; a partial report is never returned.
    """

    def __init__(
        self,
        summarizer: Summarizer,
        *,
        namespace: str = settings.PROVISION_NAMESPACE,
        classifier_strategy: str = "heuristic",
        model_used: str | None = None,
    ) -> None:
        self._summarizer = summarizer
        self._namespace = namespace
        self._classifier_strategy = classifier_strategy
        self._model_used = model_used

    async def build(
        self,
        meta: DocumentMeta,
        text: str,
        outcome: BatchOutcome,
        granularity: Granularity = Granularity.SENTENCE,
    ) -> Report:
        try:
            with timed(logger, "report.build", mappings=len(outcome.mappings)):
                return await self._build(meta, text, outcome, granularity)
        except AggregationError:
            raise
        except Exception as e:
            logger.error("report.build.error err=%s", type(e).__name__, exc_info=True)
            raise AggregationError(
                f"report assembly failed: {type(e).__name__}", cause=e
            ) from e

    async def _build(
        self,
        meta: DocumentMeta,
        text: str,
        outcome: BatchOutcome,
        granularity: Granularity,
    ) -> Report:
        now = datetime.now(timezone.utc)
        mappings = outcome.mappings
        stats = analyze_stats(mappings)
        analysis = group_by_provision(mappings)
        violations = derive_violations(mappings)
        high = sum(1 for v in violations if v.severity == Severity.HIGH)

        summary = await self._summarizer.summarize(
            SummaryInput(
                document_name=meta.name,
                document_text=text,
                stats=stats,
                articles=analysis.statistics,
                violations=len(violations),
                high_severity=high,
            )
        )

        report = Report(
            reportId=new_report_id(now),
            documentMeta=meta,
            timestamp=now,
            summary=ReportSummary(
                documentTitle=meta.name,
                executiveSummary=summary.executive_summary,
                keyFindings=summary.key_findings,
                overallCompliance=stats.overallStatus,
                totalArticlesReviewed=analysis.statistics.totalProvisions,
                totalSnippets=stats.total,
                yesCount=stats.yesCount,
                noCount=stats.noCount,
                partialCount=stats.partialCount,
                highConfidenceFindings=stats.highConfidence,
                partialComplianceFindings=stats.partialCount,
                violationsCount=len(violations),
            ),
            articleAnalysis=analysis,
            mappings=list(mappings),
            violations=violations,
            confidenceSummary=confidence_summary(stats, self._namespace),
            provenanceLog=provenance_log(mappings),
            suggestedActions=suggested_actions(violations, stats),
            metadata=ReportMetadata(
                generatedBy=settings.APP_NAME,
                version=settings.APP_VERSION,
                classifierStrategy=self._classifier_strategy,
                modelUsed=self._model_used,
                corpusNamespace=self._namespace,
                analysisDate=now,
                pageEstimateDisclaimer=PAGE_ESTIMATE_DISCLAIMER,
                granularity=granularity.value,
                sentencesTotal=outcome.total,
                sentencesAnalyzed=outcome.analyzed,
                sentencesUnmatched=outcome.unmatched,
                sentencesFailed=outcome.failed,
                truncated=outcome.truncated,
                cancelled=outcome.cancelled,
            ),
        )
        logger.info(
            "report.ok id=%s provisions=%d violations=%d overall=%s",
            report.reportId,
            analysis.statistics.totalProvisions,
            len(violations),
            stats.overallStatus.value,
        )
        return report
