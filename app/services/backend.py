"""Analysis backend client: ask the configured backend to review changed files and return its raw output."""

import logging
import time
from typing import TYPE_CHECKING, Literal

import httpx

from app.schemas.issues import Category

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

BackendErrorKind = Literal[
    "not_configured",
    "unreachable",
    "timeout",
    "rate_limited",
    "unauthorized",
    "server_error",
    "bad_response",
]


class AnalysisBackendError(Exception):
    """Raised when the analysis backend cannot produce output (unreachable, timeout, rejected request)."""

    def __init__(
        self,
        message: str,
        kind: BackendErrorKind = "bad_response",
        cause: Exception | None = None,
    ) -> None:
        self.message = message
        self.kind = kind
        self.cause = cause
        super().__init__(message)


def _error_for_status(status_code: int, body: str) -> AnalysisBackendError:
    """Map a non-200 backend response to an error with a hint for the user."""
    lowered = body.lower()
    if status_code == 429 or "quota" in lowered or "rate limit" in lowered:
        return AnalysisBackendError(
            "Analysis backend quota or rate limit exceeded. Switch LLM provider or wait for the limit to reset.",
            kind="rate_limited",
        )
    if status_code in (401, 403) or "invalid api key" in lowered or "unauthorized" in lowered:
        return AnalysisBackendError(
            "Analysis backend rejected the credentials. Check the LLM provider API key.",
            kind="unauthorized",
        )
    if status_code >= 500:
        return AnalysisBackendError(
            f"Analysis backend returned status {status_code} (server error). This is usually temporary; retry or run a dry run.",
            kind="server_error",
        )
    return AnalysisBackendError(
        f"Analysis backend returned status {status_code}.",
        kind="bad_response",
    )


def build_request(
    categories: list[Category],
    files: list[str],
    settings: "Settings",
) -> dict[str, object]:
    """Request body understood by the backend: review modes, files in scope, base branch."""
    return {
        "modes": list(categories),
        "files": list(files),
        "base": settings.ANALYSIS_BASE_BRANCH,
        "dry_run": settings.ANALYSIS_DRY_RUN,
    }


async def fetch_analysis(
    categories: list[Category],
    files: list[str],
    settings: "Settings",
) -> str:
    """
    POST the review request to ANALYSIS_BACKEND_URL and return the raw response text
    (structured JSON or legacy review text; parsing is the caller's job).

    Raises AnalysisBackendError when the backend is not configured, unreachable, times out,
    or answers with a non-200 status.
    """
    if not settings.ANALYSIS_BACKEND_URL:
        raise AnalysisBackendError(
            "Analysis backend is not configured. Set ANALYSIS_BACKEND_URL.",
            kind="not_configured",
        )

    url = f"{settings.ANALYSIS_BACKEND_URL.rstrip('/')}/analyze"
    payload = build_request(categories, files, settings)
    timeout = httpx.Timeout(settings.ANALYSIS_BACKEND_TIMEOUT_SEC)
    start = time.perf_counter()
    log_extra: dict[str, object] = {
        "categories": ",".join(categories),
        "file_count": len(files),
    }

    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(url, json=payload)
    except httpx.ConnectError as e:
        logger.info(
            "Analysis backend request failed",
            extra={**log_extra, "latency_seconds": time.perf_counter() - start, "status": "error"},
        )
        raise AnalysisBackendError(
            "Analysis backend is unreachable. Check ANALYSIS_BACKEND_URL and that the backend is running.",
            kind="unreachable",
            cause=e,
        ) from e
    except httpx.TimeoutException as e:
        logger.info(
            "Analysis backend request failed",
            extra={**log_extra, "latency_seconds": time.perf_counter() - start, "status": "timeout"},
        )
        raise AnalysisBackendError(
            "Analysis backend timed out. Try increasing ANALYSIS_BACKEND_TIMEOUT_SEC or reviewing fewer files.",
            kind="timeout",
            cause=e,
        ) from e
    except httpx.HTTPError as e:
        logger.info(
            "Analysis backend request failed",
            extra={**log_extra, "latency_seconds": time.perf_counter() - start, "status": "error"},
        )
        raise AnalysisBackendError(
            "Analysis backend request failed.",
            kind="unreachable",
            cause=e,
        ) from e

    logger.info(
        "Analysis backend request completed",
        extra={
            **log_extra,
            "latency_seconds": time.perf_counter() - start,
            "status_code": response.status_code,
        },
    )
    if response.status_code != 200:
        raise _error_for_status(response.status_code, response.text or "")
    return response.text or ""
