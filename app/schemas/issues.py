"""Pydantic schemas for review issues: normalized issue records and the structured analysis result."""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

# Review dimensions under which issues are grouped.
Category = Literal["security", "accessibility", "performance", "quality", "other"]

CATEGORY_VALUES: tuple[Category, ...] = (
    "security",
    "accessibility",
    "performance",
    "quality",
    "other",
)

DEFAULT_CATEGORY: Category = "security"
UNKNOWN_CATEGORY: Category = "other"


class Severity(str, Enum):
    """Issue severity as reported by the analysis backend."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class IssueRecord(BaseModel):
    """One normalized finding. Every field has a default so records are fixed-shape."""

    description: str = Field(
        default="Unknown issue",
        min_length=1,
        description="What is wrong.",
    )
    severity: Severity = Field(
        default=Severity.MEDIUM,
        description="High, Medium or Low.",
    )
    confidence: int = Field(
        default=50,
        description="Confidence percentage. Not clamped: out-of-range values are kept as reported.",
    )
    line_numbers: list[int] = Field(
        default_factory=list,
        description="Positive line numbers in report order; sorted only for display.",
    )
    code_excerpt: str = Field(
        default="",
        description="Verbatim source text associated with the issue.",
    )
    suggestion: str = Field(
        default="No suggestion provided",
        description="How to fix the issue.",
    )
    category: Category = Field(
        default=DEFAULT_CATEGORY,
        description="Review category that found this issue.",
    )
    category_reported: bool = Field(
        default=True,
        exclude=True,
        description="False when the backend gave no category and `category` is the default.",
    )
    file_path: str | None = Field(
        default=None,
        description="Relative path of the affected file; required for aggregation.",
    )


class FileAnalysis(BaseModel):
    """Issues reported for one file in a structured analysis result."""

    file_path: str = Field(..., description="Relative path of the analysed file.")
    issues: list[IssueRecord] = Field(default_factory=list)
    review_types_analyzed: list[Category] = Field(default_factory=list)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class AnalysisResult(BaseModel):
    """Structured backend document: per-file issue lists."""

    files: list[FileAnalysis] = Field(default_factory=list)
    total_issues: int = Field(default=0, ge=0)
    analysis_timestamp: str = Field(default_factory=_utc_now_iso)
    review_types: list[Category] = Field(default_factory=list)


OutputFormat = Literal["structured", "legacy", "empty"]


class ParsedOutput(BaseModel):
    """Backend output after ingestion, with the format that matched."""

    format: OutputFormat
    issues: list[IssueRecord] = Field(default_factory=list)
    analysis: AnalysisResult | None = Field(
        default=None,
        description="Set when the output was a structured document.",
    )
