"""Review runner: clear, fetch backend output, parse, and apply as one unit per category set."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from app.schemas.issues import Category, IssueRecord, ParsedOutput
from app.schemas.review import ReviewOutcome
from app.services.ingest import parse_backend_output
from app.services.store import ReviewStore

logger = logging.getLogger(__name__)

# (categories, tracked files) -> raw backend output
AnalysisFetcher = Callable[[list[Category], list[str]], Awaitable[str]]


def _issues_by_category(
    issues: Sequence[IssueRecord],
    categories: Sequence[Category],
) -> dict[Category, list[IssueRecord]]:
    """
    Split legacy issues across the run's categories. With one category every issue belongs to
    it; otherwise issues go to their own reported category, and untagged issues or issues
    tagged with a category outside the run go to every category of the run.
    """
    if len(categories) == 1:
        return {categories[0]: list(issues)}
    grouped: dict[Category, list[IssueRecord]] = {c: [] for c in categories}
    for issue in issues:
        if issue.category_reported and issue.category in grouped:
            grouped[issue.category].append(issue)
        else:
            for bucket in grouped.values():
                bucket.append(issue)
    return grouped


class ReviewRunner:
    """
    Serializes review invocations per category set so a run never mixes with leftovers of the
    previous run on the same categories. Runs on disjoint category sets may interleave.
    """

    def __init__(self, store: ReviewStore) -> None:
        self._store = store
        self._locks: dict[frozenset[str], asyncio.Lock] = {}

    def _lock_for(self, categories: Sequence[Category]) -> asyncio.Lock:
        key = frozenset(categories)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def _apply(self, categories: list[Category], parsed: ParsedOutput) -> ReviewOutcome:
        if parsed.analysis is not None:
            counts = self._store.apply_results_from_structured(categories, parsed.analysis)
            file_count, issue_count = counts.file_count, counts.issue_count
        else:
            # Legacy text or nothing parsed: every tracked file gets an explicit status.
            file_count = issue_count = 0
            for category, issues in _issues_by_category(parsed.issues, categories).items():
                counts = self._store.apply_results(category, issues)
                file_count = max(file_count, counts.file_count)
                issue_count += counts.issue_count

        outcome = ReviewOutcome(
            categories=categories,
            format=parsed.format,
            issue_count=issue_count,
            file_count=file_count,
        )
        logger.info(
            "Review applied: categories=%s, format=%s, issues=%s, files=%s",
            ",".join(categories),
            outcome.format,
            outcome.issue_count,
            outcome.file_count,
        )
        return outcome

    def ingest(self, categories: Sequence[Category], output: str) -> ReviewOutcome:
        """Clear `categories`, parse backend output (structured, else legacy), and apply it."""
        categories = list(categories)
        self._store.clear_categories(categories)
        default_category = categories[0] if len(categories) == 1 else None
        parsed = parse_backend_output(output, default_category=default_category)
        return self._apply(categories, parsed)

    async def submit(self, categories: Sequence[Category], output: str) -> ReviewOutcome:
        """Ingest output pushed by an external runner, serialized with runs on the same categories."""
        async with self._lock_for(categories):
            return self.ingest(categories, output)

    async def run(self, categories: Sequence[Category], fetch: AnalysisFetcher) -> ReviewOutcome:
        """
        Clear `categories`, await the backend for the tracked files, then ingest its output.
        If the fetch raises, the categories stay cleared and the error propagates.
        """
        categories = list(categories)
        async with self._lock_for(categories):
            self._store.clear_categories(categories)
            output = await fetch(categories, self._store.tracked_files)
            return self.ingest(categories, output)
