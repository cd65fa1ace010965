"""Request/response schemas for review runs, ingestion and tracked-file management."""

from pydantic import BaseModel, Field, field_validator

from app.schemas.decoration import Badge, FileDecoration
from app.schemas.issues import CATEGORY_VALUES, Category, OutputFormat
from app.schemas.status import ReviewStatus

MAX_TRACKED_FILES = 10_000
MAX_OUTPUT_BYTES = 20 * 1024 * 1024  # 20 MB


def _unique_categories(value: list[Category]) -> list[Category]:
    if not value:
        raise ValueError("At least one category is required.")
    return [c for c in CATEGORY_VALUES if c in value]


class ReviewOutcome(BaseModel):
    """What one review invocation changed in the store."""

    categories: list[Category]
    format: OutputFormat = Field(
        ...,
        description="Which backend output form matched: structured, legacy, or empty (no issues parsed).",
    )
    issue_count: int = Field(
        ...,
        ge=0,
        description="Issue entries stored by this run; an issue applied to two categories counts twice.",
    )
    file_count: int = Field(..., ge=0, description="Files whose status was set by this run.")


class CategoriesRequest(BaseModel):
    """Body naming the review categories an operation applies to."""

    categories: list[Category] = Field(..., min_length=1)

    @field_validator("categories")
    @classmethod
    def dedupe_categories(cls, v: list[Category]) -> list[Category]:
        return _unique_categories(v)


class ReviewResultsRequest(CategoriesRequest):
    """Backend output pushed by an external runner for ingestion."""

    output: str = Field(
        ...,
        max_length=MAX_OUTPUT_BYTES,
        description="Raw backend output: structured JSON document or legacy review text.",
    )


class TrackedFilesRequest(BaseModel):
    """Files in the current diff scope (changed and untracked files)."""

    files: list[str] = Field(..., max_length=MAX_TRACKED_FILES)


class TrackedFilesResponse(BaseModel):
    files: list[str]


class FileStatusResponse(BaseModel):
    """Worst status and badge for one file."""

    file_path: str
    tracked: bool
    worst_status: ReviewStatus | None = Field(
        default=None,
        description="fail > warning > pass across categories; null when unreviewed.",
    )
    badge: Badge | None = Field(default=None, description="Null for files outside the tracked set.")
    decoration: FileDecoration | None = None
    tooltip: str = ""
