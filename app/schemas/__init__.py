"""Pydantic request/response schemas."""

from app.schemas.decoration import (
    Badge,
    FileDecoration,
    IssueListing,
    ResultsSummary,
)
from app.schemas.health import HealthResponse
from app.schemas.issues import (
    AnalysisResult,
    Category,
    FileAnalysis,
    IssueRecord,
    ParsedOutput,
    Severity,
)
from app.schemas.review import (
    CategoriesRequest,
    FileStatusResponse,
    ReviewOutcome,
    ReviewResultsRequest,
    TrackedFilesRequest,
    TrackedFilesResponse,
)
from app.schemas.status import (
    CategoryStatus,
    FileStatusRecord,
    ReviewStatus,
    StatusResult,
)

__all__ = [
    "AnalysisResult",
    "Badge",
    "CategoriesRequest",
    "Category",
    "CategoryStatus",
    "FileAnalysis",
    "FileDecoration",
    "FileStatusRecord",
    "FileStatusResponse",
    "HealthResponse",
    "IssueListing",
    "IssueRecord",
    "ParsedOutput",
    "ResultsSummary",
    "ReviewOutcome",
    "ReviewResultsRequest",
    "ReviewStatus",
    "Severity",
    "StatusResult",
    "TrackedFilesRequest",
    "TrackedFilesResponse",
]
