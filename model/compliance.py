# model/compliance.py
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, model_validator
from util.enums import Decision, Severity, StrategySource


class Sentence(BaseModel):
    """
    One segment of the uploaded document with character-level provenance.
    `page` is an estimate derived from the character offset.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    text: str
    startChar: int = Field(ge=0)
    endChar: int
    page: int = Field(ge=1)
    paragraph: int = Field(ge=0)
    line: int = Field(ge=0)
    # Section heading, set only for thematic segments
    title: str | None = None

    @model_validator(mode="after")
    def _check_range(self) -> "Sentence":
        if self.startChar >= self.endChar:
            raise ValueError("startChar must be < endChar")
        return self


class Provision(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    articleNumber: str | None = None
    heading: str | None = None
    part: str | None = None
    partName: str | None = None
    text: str
    startChar: int | None = None
    endChar: int | None = None

    @property
    def reference(self) -> str:
        base = f"Article {self.articleNumber}" if self.articleNumber else self.id
        return f"{base}, Part {self.part}" if self.part else base


class SnippetLocation(BaseModel):
    model_config = ConfigDict(frozen=True)

    startChar: int
    endChar: int
    page: int
    paragraph: int
    line: int

    @classmethod
    def of(cls, sentence: Sentence) -> "SnippetLocation":
        return cls(
            startChar=sentence.startChar,
            endChar=sentence.endChar,
            page=sentence.page,
            paragraph=sentence.paragraph,
            line=sentence.line,
        )


class Provenance(BaseModel):
    model_config = ConfigDict(frozen=True)

    retrievalScore: float
    queryUsed: str
    timestamp: datetime
    vectorId: str


class AlternateMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    provision: Provision
    similarity: float = Field(ge=0.0, le=1.0)


class ComplianceMapping(BaseModel):
    model_config = ConfigDict(frozen=True)

    mappingId: int
    sentenceRef: Sentence
    snippetLocation: SnippetLocation
    provisionMatch: Provision
    decision: Decision
    confidence: int = Field(ge=0, le=100)
    similarityScore: float = Field(ge=0.0, le=1.0)
    rationale: str
    provenance: Provenance
    alternateMatches: list[AlternateMatch] = Field(default_factory=list)
    classifierStrategy: StrategySource
    rationaleSource: StrategySource


class Violation(BaseModel):
    model_config = ConfigDict(frozen=True)

    violationId: int
    mappingId: int
    # Always Decision.NO; kept so consumers can audit where a violation came from.
    decisionSource: Decision
    severity: Severity
    description: str
    offendingSnippet: str
    snippetLocation: SnippetLocation
    provisionReference: str
    provisionText: str
    whyViolates: str
    suggestedFix: str
    nextSteps: str
    confidence: int = Field(ge=0, le=100)
    similarityScore: float
