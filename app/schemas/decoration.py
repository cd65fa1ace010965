"""Pydantic schemas for the read side: file badges, decorations and the results listing."""

from enum import Enum

from pydantic import BaseModel, Field

from app.schemas.issues import Category, IssueRecord
from app.schemas.status import ReviewStatus


class Badge(str, Enum):
    """Badge shown next to a tracked file."""

    FAIL = "fail"
    WARNING = "warning"
    PASS = "pass"
    UNREVIEWED = "unreviewed"


class FileDecoration(BaseModel):
    """Badge plus the glyph and tooltip a UI would render for it."""

    file_path: str
    badge: Badge
    glyph: str
    tooltip: str


class IssueListing(BaseModel):
    """One issue in the results listing, with the category status it came from."""

    file_path: str
    category: Category
    status: ReviewStatus
    severity_glyph: str = ""
    line_label: str = Field(default="", description="Formatted line numbers, e.g. '1-3, 5'.")
    issue: IssueRecord


class ResultsSummary(BaseModel):
    """Results grouped as failed issues, warning issues and files that passed every review."""

    failed_issues: list[IssueListing] = Field(default_factory=list)
    warning_issues: list[IssueListing] = Field(default_factory=list)
    passed_files: list[str] = Field(default_factory=list)
