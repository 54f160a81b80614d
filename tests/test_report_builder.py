"""Tests for statistics, provision grouping, violations and report assembly."""

import json
from datetime import datetime, timezone

import pytest

from conftest import (
    ARTICLE_10,
    ARTICLE_19,
    ARTICLE_25,
    anthropic_reply,
    make_llm,
    make_mapping,
    make_sentence,
)
from core.entities import BatchOutcome, Classification, IndexMatch, Rationale
from core.mapping import build_mapping
from core.report_builder import (
    ReportBuilder,
    analyze_stats,
    derive_violations,
    group_by_provision,
    new_report_id,
    overall_status,
    severity_for,
    suggested_actions,
)
from core.retriever import to_candidate
from core.summarizer import LLMSummarizer, TemplateSummarizer
from model.report import DocumentMeta
from repository.provision_index import provision_metadata
from util.enums import Decision, OverallCompliance, Priority, Severity, StrategySource
from util.errors import AggregationError

META = DocumentMeta(name="detention-order.txt", size=2048, mimeType="text/plain")


def mixed():
    return [
        make_mapping(1, Decision.YES, 90, ARTICLE_10, 0.90),
        make_mapping(2, Decision.PARTIAL, 75, ARTICLE_19, 0.75),
        make_mapping(3, Decision.NO, 50, ARTICLE_25, 0.40),
    ]


@pytest.mark.parametrize(
    "yes, no, total, expected",
    [
        (0, 0, 0, OverallCompliance.NO_DATA),
        (3, 0, 3, OverallCompliance.FULLY_COMPLIANT),
        (1, 1, 3, OverallCompliance.PARTIALLY_COMPLIANT),
        (1, 1, 2, OverallCompliance.NON_COMPLIANT),
        (0, 2, 3, OverallCompliance.NON_COMPLIANT),
        (2, 0, 3, OverallCompliance.PARTIALLY_COMPLIANT),
    ],
)
def test_overall_status(yes, no, total, expected):
    assert overall_status(yes, no, total) == expected


def test_stats_count_decisions_and_confidence_buckets():
    stats = analyze_stats(mixed())

    assert (stats.yesCount, stats.noCount, stats.partialCount) == (1, 1, 1)
    assert (stats.highConfidence, stats.mediumConfidence, stats.lowConfidence) == (1, 1, 1)
    assert stats.total == 3
    assert stats.overallStatus == OverallCompliance.PARTIALLY_COMPLIANT


def test_stats_of_nothing():
    stats = analyze_stats([])

    assert stats.total == 0
    assert stats.overallStatus == OverallCompliance.NO_DATA


@pytest.mark.parametrize(
    "confidence, severity",
    [
        (50, Severity.HIGH),
        (59, Severity.HIGH),
        (60, Severity.MEDIUM),
        (79, Severity.MEDIUM),
        (80, Severity.LOW),
        (90, Severity.LOW),
    ],
)
def test_less_confident_violations_are_more_severe(confidence, severity):
    assert severity_for(confidence) == severity


class TestGrouping:
    def test_mixed_findings_make_a_partial_provision(self):
        mappings = [
            make_mapping(1, Decision.YES, 90),
            make_mapping(2, Decision.NO, 60),
            make_mapping(3, Decision.YES, 88),
        ]

        analysis = group_by_provision(mappings)

        assert analysis.statistics.totalProvisions == 1
        assert analysis.statistics.partiallyCompliantCount == 1
        group = analysis.partiallyCompliantProvisions[0]
        assert group.provisionId == "art-10"
        assert group.article == "Article 10, Part II"
        assert (group.compliantFindings, group.nonCompliantFindings) == (2, 1)
        assert group.averageConfidence == 79
        assert [s.mappingId for s in group.relatedSnippets] == [1, 2, 3]

    def test_uniform_groups(self):
        mappings = [
            make_mapping(1, Decision.YES, 90, ARTICLE_10),
            make_mapping(2, Decision.NO, 70, ARTICLE_19),
            make_mapping(3, Decision.NO, 65, ARTICLE_19),
        ]

        analysis = group_by_provision(mappings)

        assert [g.provisionId for g in analysis.compliantProvisions] == ["art-10"]
        assert [g.provisionId for g in analysis.nonCompliantProvisions] == ["art-19"]
        assert analysis.statistics.nonCompliantCount == 1
        assert analysis.nonCompliantProvisions[0].averageConfidence == 68


class TestViolations:
    def test_exactly_one_per_no_mapping(self):
        mappings = [make_mapping(i, Decision.NO if i % 2 else Decision.YES, 55) for i in range(1, 26)]

        violations = derive_violations(mappings)

        assert len(violations) == 13
        assert [v.violationId for v in violations] == list(range(1, 14))
        assert all(v.decisionSource == Decision.NO for v in violations)
        assert [v.mappingId for v in violations] == [m.mappingId for m in mappings if m.decision == Decision.NO]

    def test_violation_carries_snippet_and_remediation(self):
        (violation,) = derive_violations(mixed())

        assert violation.severity == Severity.HIGH
        assert violation.offendingSnippet == "Sentence number 3 of the test document."
        assert violation.provisionReference == "Article 25, Part II"
        assert violation.whyViolates == "rationale 3"
        assert "Article 25, Part II" in violation.suggestedFix
        assert violation.nextSteps.startswith("Immediate judicial review")


class TestSuggestedActions:
    def test_urgent_action_for_high_severity(self):
        mappings = mixed()
        actions = suggested_actions(derive_violations(mappings), analyze_stats(mappings))

        assert [a.priority for a in actions] == [Priority.URGENT, Priority.MEDIUM, Priority.MEDIUM]
        assert actions[0].action.endswith("1 high-severity violation")
        assert actions[0].references == ["Violation #1"]

    def test_compliant_document_gets_periodic_review(self):
        mappings = [make_mapping(1, Decision.YES, 95)]
        actions = suggested_actions([], analyze_stats(mappings))

        assert len(actions) == 1
        assert actions[0].priority == Priority.LOW


def test_report_id_format():
    rid = new_report_id(datetime(2026, 3, 4, tzinfo=timezone.utc))

    assert rid.startswith("RPT-2026-03-04-")
    assert len(rid.rsplit("-", 1)[1]) == 9


class TestReportBuilder:
    async def test_template_report(self):
        outcome = BatchOutcome(mappings=mixed(), total=4, analyzed=4, unmatched=1)

        report = await ReportBuilder(TemplateSummarizer(), namespace="constitution").build(
            META, "some document text", outcome
        )

        assert report.summary.executiveSummary == (
            "Compliance analysis of detention-order.txt. (summary unavailable)"
        )
        assert report.summary.keyFindings[0] == "Overall compliance: PARTIALLY COMPLIANT"
        assert report.summary.totalSnippets == 3
        assert report.summary.violationsCount == 1
        assert report.summary.totalArticlesReviewed == 3
        assert report.confidenceSummary.corpusNamespace == "constitution"
        assert report.metadata.sentencesUnmatched == 1
        assert report.metadata.granularity == "sentence"
        assert report.provenanceLog.totalMappings == 3
        assert len(report.provenanceLog.examples) == 3

    async def test_report_serializes_to_json(self):
        report = await ReportBuilder(TemplateSummarizer()).build(
            META, "text", BatchOutcome(mappings=mixed(), total=3, analyzed=3)
        )

        data = json.loads(report.model_dump_json())

        assert data["summary"]["overallCompliance"] == "PARTIALLY_COMPLIANT"
        assert data["mappings"][2]["decision"] == "NO"
        assert data["mappings"][0]["provenance"]["queryUsed"] == "Sentence number 1 of the test document."
        assert data["violations"][0]["severity"] == "HIGH"

    async def test_llm_summary_is_used(self):
        body = json.dumps(
            {"executiveSummary": "The order authorises detention.", "keyFindings": ["One violation found", " "]}
        )
        client, transport = make_llm(lambda payload: anthropic_reply(body))

        report = await ReportBuilder(LLMSummarizer(client)).build(
            META, "document body", BatchOutcome(mappings=mixed(), total=3, analyzed=3)
        )

        assert report.summary.executiveSummary == "The order authorises detention."
        assert report.summary.keyFindings == ["One violation found"]
        assert "document body" in transport.payloads[0]["messages"][0]["content"]

    async def test_llm_summary_failure_uses_template(self):
        client, _ = make_llm(lambda payload: anthropic_reply("not json at all"))

        report = await ReportBuilder(LLMSummarizer(client)).build(
            META, "text", BatchOutcome(mappings=mixed(), total=3, analyzed=3)
        )

        assert report.summary.executiveSummary.endswith("(summary unavailable)")

    async def test_summary_source_recorded(self):
        client, _ = make_llm(lambda payload: anthropic_reply('{"executiveSummary": "ok"}'))
        summary_input = None

        class Spy(LLMSummarizer):
            async def summarize(self, data):
                nonlocal summary_input
                summary_input = data
                return await super().summarize(data)

        await ReportBuilder(Spy(client)).build(
            META, "text", BatchOutcome(mappings=mixed(), total=3, analyzed=3)
        )

        assert summary_input.violations == 1
        assert summary_input.high_severity == 1
        result = await Spy(client).summarize(summary_input)
        assert result.source == StrategySource.LLM
        assert len(result.key_findings) == 7

    async def test_unexpected_failure_raises_aggregation_error(self):
        class Broken:
            async def summarize(self, data):
                raise RuntimeError("summarizer exploded")

        with pytest.raises(AggregationError):
            await ReportBuilder(Broken()).build(META, "text", BatchOutcome(mappings=mixed()))

    async def test_empty_outcome(self):
        report = await ReportBuilder(TemplateSummarizer()).build(META, "", BatchOutcome())

        assert report.summary.totalSnippets == 0
        assert report.summary.overallCompliance == OverallCompliance.NO_DATA
        assert report.violations == []
        assert report.suggestedActions[0].priority == Priority.LOW


def test_vectors_of_one_article_group_together():
    md = provision_metadata(ARTICLE_10)
    hits = [("art-10#chunk0", Decision.YES, 90), ("art-10#chunk1", Decision.NO, 55)]
    mappings = [
        build_mapping(
            make_sentence(i),
            [to_candidate(IndexMatch(id=vid, score=0.8, metadata=md))],
            Classification(decision=d, confidence=c, source=StrategySource.HEURISTIC),
            Rationale(text="r", source=StrategySource.TEMPLATE),
            now=datetime(2026, 1, 1, tzinfo=timezone.utc),
        )
        for i, (vid, d, c) in enumerate(hits, start=1)
    ]

    analysis = group_by_provision(mappings)

    assert analysis.statistics.totalProvisions == 1
    (group,) = analysis.partiallyCompliantProvisions
    assert group.provisionId == "art-10"
    assert group.totalFindings == 2
    assert [m.provenance.vectorId for m in mappings] == ["art-10#chunk0", "art-10#chunk1"]


async def test_blank_llm_summary_uses_template():
    body = json.dumps({"executiveSummary": "   ", "keyFindings": []})
    client, _ = make_llm(lambda payload: anthropic_reply(body))

    report = await ReportBuilder(LLMSummarizer(client)).build(
        META, "text", BatchOutcome(mappings=mixed(), total=3, analyzed=3)
    )

    assert report.summary.executiveSummary == (
        "Compliance analysis of detention-order.txt. (summary unavailable)"
    )
    assert report.summary.keyFindings[0] == "Overall compliance: PARTIALLY COMPLIANT"
