# model/llm.py
from pydantic import BaseModel, Field, field_validator
from util.enums import Decision


class ClassificationPayload(BaseModel):
    """Shape the classifier model must return. Anything else is rejected."""

    decision: Decision
    confidence: float = Field(allow_inf_nan=False)

    @field_validator("decision", mode="before")
    @classmethod
    def _upper(cls, v):
        return v.strip().upper() if isinstance(v, str) else v

    # Models sometimes overshoot the range; clamp instead of rejecting
    @field_validator("confidence")
    @classmethod
    def _clamp(cls, v: float) -> float:
        return max(0.0, min(100.0, v))


class SummaryPayload(BaseModel):
    executiveSummary: str = Field(min_length=1)
    keyFindings: list[str] = Field(default_factory=list)

    # Strip first so a whitespace-only summary fails min_length
    @field_validator("executiveSummary", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class ThematicSection(BaseModel):
    title: str = ""
    content: str = Field(min_length=1)

    @field_validator("title", "content", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class ThematicPayload(BaseModel):
    sections: list[ThematicSection] = Field(min_length=1)
