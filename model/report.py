# model/report.py
from datetime import datetime
from pydantic import BaseModel, Field
from model.compliance import ComplianceMapping, SnippetLocation, Violation
from util.enums import Decision, OverallCompliance, Priority


class DocumentMeta(BaseModel):
    name: str
    size: int | None = None
    mimeType: str | None = None
    uploaderId: str | None = None
    sourceLocation: str | None = None
    timestamp: datetime | None = None


class ComplianceStats(BaseModel):
    yesCount: int
    noCount: int
    partialCount: int
    highConfidence: int
    mediumConfidence: int
    lowConfidence: int
    overallStatus: OverallCompliance
    total: int


class ReportSummary(BaseModel):
    documentTitle: str
    executiveSummary: str
    keyFindings: list[str]
    overallCompliance: OverallCompliance
    totalArticlesReviewed: int
    totalSnippets: int
    yesCount: int
    noCount: int
    partialCount: int
    highConfidenceFindings: int
    partialComplianceFindings: int
    violationsCount: int


class RelatedSnippet(BaseModel):
    mappingId: int
    snippet: str
    location: SnippetLocation
    decision: Decision
    confidence: int
    rationale: str


class ProvisionGroup(BaseModel):
    provisionId: str
    article: str
    articleHeading: str | None = None
    part: str | None = None
    partName: str | None = None
    provisionText: str
    totalFindings: int
    compliantFindings: int
    nonCompliantFindings: int
    partialFindings: int
    averageConfidence: int
    relatedSnippets: list[RelatedSnippet]


class ArticleStatistics(BaseModel):
    totalProvisions: int
    compliantCount: int
    nonCompliantCount: int
    partiallyCompliantCount: int


class ArticleAnalysis(BaseModel):
    compliantProvisions: list[ProvisionGroup] = Field(default_factory=list)
    nonCompliantProvisions: list[ProvisionGroup] = Field(default_factory=list)
    partiallyCompliantProvisions: list[ProvisionGroup] = Field(default_factory=list)
    statistics: ArticleStatistics


class ConfidenceSummary(BaseModel):
    totalSnippetsReviewed: int
    highConfidenceFindings: int
    mediumConfidenceFindings: int
    lowConfidenceFindings: int
    corpusNamespace: str


class ProvenanceEntry(BaseModel):
    mappingId: int
    vectorId: str
    provisionReference: str
    provisionLocation: str
    retrievalScore: float
    queryUsed: str


class ProvenanceLog(BaseModel):
    examples: list[ProvenanceEntry]
    totalMappings: int
    note: str = "Every mapping carries its full provenance record in the mappings list."


class SuggestedAction(BaseModel):
    priority: Priority
    action: str
    references: list[str] = Field(default_factory=list)


class ReportMetadata(BaseModel):
    generatedBy: str
    version: str
    classifierStrategy: str
    modelUsed: str | None = None
    corpusNamespace: str
    analysisDate: datetime
    pageEstimateDisclaimer: str
    granularity: str
    sentencesTotal: int
    sentencesAnalyzed: int
    sentencesUnmatched: int
    sentencesFailed: int
    truncated: bool
    cancelled: bool


class Report(BaseModel):
    reportId: str
    documentMeta: DocumentMeta
    timestamp: datetime
    summary: ReportSummary
    articleAnalysis: ArticleAnalysis
    mappings: list[ComplianceMapping]
    violations: list[Violation]
    confidenceSummary: ConfidenceSummary
    provenanceLog: ProvenanceLog
    suggestedActions: list[SuggestedAction]
    metadata: ReportMetadata
