"""Reviews endpoints: select/clear categories, ingest backend output, run the backend, list results."""

from functools import partial
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from app.core.config import get_settings
from app.core.state import get_runner, get_store
from app.schemas.decoration import ResultsSummary
from app.schemas.issues import Category
from app.schemas.review import CategoriesRequest, ReviewOutcome, ReviewResultsRequest
from app.services.backend import AnalysisBackendError, fetch_analysis
from app.services.decoration import summarize_results
from app.services.review_runner import ReviewRunner
from app.services.store import ReviewStore

router = APIRouter()

# Backend error kind -> HTTP status returned to the client.
_BACKEND_ERROR_STATUS: dict[str, int] = {
    "not_configured": 503,
    "unreachable": 503,
    "timeout": 503,
    "rate_limited": 502,
    "unauthorized": 502,
    "server_error": 502,
    "bad_response": 502,
}


@router.get("/categories", response_model=CategoriesRequest)
def get_categories(store: Annotated[ReviewStore, Depends(get_store)]) -> CategoriesRequest:
    return CategoriesRequest(categories=store.selected_categories)


@router.put("/categories", response_model=CategoriesRequest)
def put_categories(
    body: CategoriesRequest,
    store: Annotated[ReviewStore, Depends(get_store)],
) -> CategoriesRequest:
    """Select the active review categories. Results for deselected categories are purged."""
    store.select_categories(body.categories)
    return CategoriesRequest(categories=store.selected_categories)


@router.delete("", status_code=204)
def clear_reviews(
    categories: Annotated[list[Category], Query()],
    store: Annotated[ReviewStore, Depends(get_store)],
) -> None:
    """Remove results for the given categories from every file."""
    store.clear_categories(categories)


@router.post("/results", response_model=ReviewOutcome)
async def post_review_results(
    body: ReviewResultsRequest,
    runner: Annotated[ReviewRunner, Depends(get_runner)],
) -> ReviewOutcome:
    """
    Ingest analysis output produced outside this service.

    The categories are cleared first. The output is parsed as a structured JSON document
    when possible, else as legacy review text. Output that yields no issues marks every
    tracked file as pass for the categories.
    """
    return await runner.submit(body.categories, body.output)


@router.post("/run", response_model=ReviewOutcome)
async def run_review(
    body: CategoriesRequest,
    runner: Annotated[ReviewRunner, Depends(get_runner)],
    store: Annotated[ReviewStore, Depends(get_store)],
) -> ReviewOutcome:
    """
    Ask the configured analysis backend to review the tracked files and ingest its output.

    Results for the categories are cleared before the backend is called and stay cleared if
    the backend fails.
    """
    if not store.tracked_files:
        raise HTTPException(
            status_code=422,
            detail="No tracked files to review. Set the tracked files first.",
        )
    settings = get_settings()
    try:
        return await runner.run(body.categories, partial(fetch_analysis, settings=settings))
    except AnalysisBackendError as e:
        status = _BACKEND_ERROR_STATUS.get(e.kind, 502)
        raise HTTPException(status_code=status, detail=e.message) from e


@router.get("/summary", response_model=ResultsSummary)
def get_summary(store: Annotated[ReviewStore, Depends(get_store)]) -> ResultsSummary:
    """Failed issues, warning issues, and files that passed every review."""
    settings = get_settings()
    return summarize_results(
        store.values(),
        show_passed=settings.SHOW_PASSED_REVIEWS,
        only_files_with_issues=settings.SHOW_ONLY_FILES_WITH_ISSUES,
    )
