# core/report_digest.py
from typing import List
from model.compliance import ComplianceMapping
from model.report import Report
from util.enums import Decision
from util.functions import clip_chars


def _quote(text: str) -> str:
    return f'"{clip_chars(text, 150)}"'


def _line(m: ComplianceMapping) -> str:
    title = m.sentenceRef.title
    label = f'Section "{title}"' if title else "Document line"
    return f"**{label}:** {_quote(m.sentenceRef.text)}"


def render_markdown(report: Report) -> str:
    """
    Plain markdown digest of a finished Report. Pure formatting: nothing is
    re-analysed and the report is not modified.
    """
    s = report.summary
    out: List[str] = [
        f"# Compliance Report {report.reportId}",
        "",
        f"**Document:** {s.documentTitle}  ",
        f"**Overall compliance:** {s.overallCompliance.value.replace('_', ' ')}  ",
        f"**Snippets analysed:** {s.totalSnippets}  ",
        f"**Provisions reviewed:** {s.totalArticlesReviewed}",
        "",
        "## Summary",
        "",
        s.executiveSummary,
        "",
    ]
    if s.keyFindings:
        out.append("### Key findings")
        out.append("")
        out.extend(f"- {f}" for f in s.keyFindings)
        out.append("")

    out += ["## Compliant clauses", ""]
    compliant = [m for m in report.mappings if m.decision == Decision.YES]
    if not compliant:
        out += ["*No fully compliant clauses identified in the analysed text.*", ""]
    for m in compliant:
        out += [
            _line(m),
            "",
            f"**Compliant with:** {m.provisionMatch.reference}"
            + (f": {m.provisionMatch.heading}" if m.provisionMatch.heading else ""),
            "",
            "---",
            "",
        ]

    out += ["## Non-compliant and partially compliant clauses", ""]
    flagged = [m for m in report.mappings if m.decision != Decision.YES]
    if not flagged:
        out += ["*No violations identified in the analysed text.*", ""]
    for m in flagged:
        out += [
            _line(m),
            "",
            f"**{m.decision.value}:** {m.provisionMatch.reference} "
            f"(confidence {m.confidence})",
            "",
            f"**Why:** {m.rationale}",
            "",
            "---",
            "",
        ]

    if report.violations:
        out += ["## Violations", ""]
        for v in report.violations:
            out.append(
                f"{v.violationId}. **[{v.severity.value}]** {v.description}. {v.nextSteps}"
            )
        out.append("")

    if report.suggestedActions:
        out += ["## Suggested actions", ""]
        out.extend(
            f"- **{a.priority.value}:** {a.action}" for a in report.suggestedActions
        )
        out.append("")

    out.append(f"_{report.metadata.pageEstimateDisclaimer}_")
    return "\n".join(out) + "\n"
