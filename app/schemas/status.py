"""Pydantic schemas for per-file review status: status enum, category status, file status record."""

from enum import Enum

from pydantic import BaseModel, Field

from app.schemas.issues import Category, IssueRecord


class ReviewStatus(str, Enum):
    """Tri-state review outcome. Ordered fail > warning > pass."""

    PASS = "pass"
    WARNING = "warning"
    FAIL = "fail"

    @property
    def rank(self) -> int:
        return _STATUS_ORDER.index(self)


# Lowest to highest severity; used for worst-status folds.
_STATUS_ORDER: tuple[ReviewStatus, ...] = (
    ReviewStatus.PASS,
    ReviewStatus.WARNING,
    ReviewStatus.FAIL,
)


class StatusResult(BaseModel):
    """Output of status derivation for one (file, category) pair."""

    status: ReviewStatus
    aggregate_confidence: int


class CategoryStatus(BaseModel):
    """Status of one review category for one file."""

    status: ReviewStatus = Field(default=ReviewStatus.PASS)
    aggregate_confidence: int = Field(
        default=100,
        description="Rounded mean confidence of the issues; 100 when there are none.",
    )
    issue_count: int = Field(default=0, ge=0)
    issues: list[IssueRecord] = Field(
        default_factory=list,
        description="Issues behind this status, kept for detail views.",
    )


class FileStatusRecord(BaseModel):
    """All category statuses for one file."""

    file_path: str = Field(..., min_length=1)
    per_category: dict[Category, CategoryStatus] = Field(default_factory=dict)
