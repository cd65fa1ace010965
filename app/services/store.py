"""Aggregation store: file path -> per-category review status, maintained across review runs."""

import logging
from collections import defaultdict
from collections.abc import Callable, Iterable, Sequence
from typing import NamedTuple

from app.schemas.issues import CATEGORY_VALUES, AnalysisResult, Category, IssueRecord
from app.schemas.status import CategoryStatus, FileStatusRecord, ReviewStatus
from app.services.status import (
    FAIL_CONFIDENCE_THRESHOLD,
    LOW_CONFIDENCE_THRESHOLD,
    derive_status,
    worst_status,
)

logger = logging.getLogger(__name__)

StoreListener = Callable[[], None]


class AppliedCounts(NamedTuple):
    """Files given a status and issue entries stored by one apply call."""

    file_count: int
    issue_count: int


def normalize_path(file_path: str) -> str:
    """Store key for a path: stripped, forward slashes."""
    return file_path.strip().replace("\\", "/")


def _unique_paths(files: Iterable[str]) -> list[str]:
    """Normalize, drop blanks and duplicates; keep first-seen order."""
    seen: set[str] = set()
    out: list[str] = []
    for f in files:
        if not isinstance(f, str):
            continue
        path = normalize_path(f)
        if path and path not in seen:
            seen.add(path)
            out.append(path)
    return out


class ReviewStore:
    """
    Single source of truth for review results in a session.

    Records are created lazily on the first result for a file. Readers get deep copies from
    get()/values(); only the store's own operations mutate records. Listeners registered with
    subscribe() are called after every mutation.
    """

    def __init__(
        self,
        categories: Sequence[Category] | None = None,
        fail_threshold: int = FAIL_CONFIDENCE_THRESHOLD,
        low_confidence_threshold: int = LOW_CONFIDENCE_THRESHOLD,
    ) -> None:
        self._records: dict[str, FileStatusRecord] = {}
        self._tracked_files: list[str] = []
        self._selected: set[Category] = set(categories if categories is not None else CATEGORY_VALUES)
        self._listeners: list[StoreListener] = []
        self.fail_threshold = fail_threshold
        self.low_confidence_threshold = low_confidence_threshold

    # Change notification

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    # Scope

    @property
    def tracked_files(self) -> list[str]:
        return list(self._tracked_files)

    def is_tracked(self, file_path: str) -> bool:
        return normalize_path(file_path) in self._tracked_files

    def set_tracked_files(self, files: Iterable[str]) -> None:
        """Replace the tracked file set (files in the current diff scope)."""
        self._tracked_files = _unique_paths(files)
        logger.debug("Tracked files updated: count=%s", len(self._tracked_files))
        self._notify()

    @property
    def selected_categories(self) -> list[Category]:
        """Selected categories in canonical order."""
        return [c for c in CATEGORY_VALUES if c in self._selected]

    def select_categories(self, categories: Iterable[Category]) -> None:
        """Replace the selected category set and purge entries for categories no longer selected."""
        self._selected = set(categories)
        stale = [c for c in CATEGORY_VALUES if c not in self._selected]
        self._remove_categories(stale)
        self._notify()

    # Mutation

    def _category_status(self, issues: Sequence[IssueRecord]) -> CategoryStatus:
        result = derive_status(
            issues,
            fail_threshold=self.fail_threshold,
            low_confidence_threshold=self.low_confidence_threshold,
        )
        return CategoryStatus(
            status=result.status,
            aggregate_confidence=result.aggregate_confidence,
            issue_count=len(issues),
            issues=list(issues),
        )

    def _record_for(self, file_path: str) -> FileStatusRecord:
        record = self._records.get(file_path)
        if record is None:
            record = FileStatusRecord(file_path=file_path)
            self._records[file_path] = record
        return record

    def apply_results(self, category: Category, issues: Sequence[IssueRecord]) -> AppliedCounts:
        """
        Set the status of `category` for every tracked file from the issues matching that file.
        Files with no matching issues get an explicit pass entry. Issues for untracked files
        are ignored. No-op when nothing is tracked.
        """
        if not self._tracked_files:
            logger.debug("apply_results(%s): no tracked files; skipping", category)
            return AppliedCounts(0, 0)
        if category not in self._selected:
            logger.warning("apply_results: category %r is not selected; skipping", category)
            return AppliedCounts(0, 0)

        by_file: defaultdict[str, list[IssueRecord]] = defaultdict(list)
        for issue in issues:
            if issue.file_path:
                by_file[normalize_path(issue.file_path)].append(issue)

        stored = 0
        for file_path in self._tracked_files:
            file_issues = by_file.get(file_path, [])
            self._record_for(file_path).per_category[category] = self._category_status(file_issues)
            stored += len(file_issues)

        ignored = len(issues) - stored
        if ignored:
            logger.debug("apply_results(%s): ignored %s issues outside the tracked files", category, ignored)
        logger.info(
            "Review results applied: category=%s, files=%s, issues=%s",
            category,
            len(self._tracked_files),
            stored,
        )
        self._notify()
        return AppliedCounts(len(self._tracked_files), stored)

    def apply_results_from_structured(
        self,
        categories: Sequence[Category],
        analysis_result: AnalysisResult,
    ) -> AppliedCounts:
        """
        Clear `categories`, then set a status per category for every file named in the result.
        The result's own file list is trusted; the tracked set is not consulted. Issues are
        keyed by their own path, falling back to the enclosing entry's path; issues with
        neither are dropped.
        """
        self.clear_categories(categories)
        applied = [c for c in categories if c in self._selected]
        skipped = [c for c in categories if c not in self._selected]
        if skipped:
            logger.warning("apply_results_from_structured: categories %s not selected; skipping", skipped)

        by_file: dict[str, list[IssueRecord]] = {}
        dropped = 0
        for file_analysis in analysis_result.files:
            entry_path = normalize_path(file_analysis.file_path)
            if entry_path:
                by_file.setdefault(entry_path, [])
            for issue in file_analysis.issues:
                file_path = normalize_path(issue.file_path or "") or entry_path
                if not file_path:
                    dropped += 1
                    continue
                by_file.setdefault(file_path, []).append(issue)
        if dropped:
            logger.debug("Dropping %s issues with no file path", dropped)

        stored = 0
        if applied:
            for file_path, file_issues in by_file.items():
                by_category: defaultdict[str, list[IssueRecord]] = defaultdict(list)
                for issue in file_issues:
                    by_category[issue.category].append(issue)
                record = self._record_for(file_path)
                for category in applied:
                    category_issues = by_category.get(category, [])
                    record.per_category[category] = self._category_status(category_issues)
                    stored += len(category_issues)
        file_count = len(by_file) if applied else 0

        logger.info(
            "Structured review results applied: categories=%s, files=%s, issues=%s",
            ",".join(applied),
            file_count,
            stored,
        )
        self._notify()
        return AppliedCounts(file_count, stored)

    def _remove_categories(self, categories: Iterable[Category]) -> None:
        to_remove = set(categories)
        if not to_remove:
            return
        for file_path in list(self._records):
            record = self._records[file_path]
            for category in to_remove:
                record.per_category.pop(category, None)
            if not record.per_category:
                del self._records[file_path]

    def clear_categories(self, categories: Iterable[Category]) -> None:
        """Remove entries for `categories` from every file; drop files left with no entries."""
        categories = list(categories)
        self._remove_categories(categories)
        logger.debug("Cleared categories: %s", ",".join(categories))
        self._notify()

    # Queries

    def worst_status(self, file_path: str) -> ReviewStatus | None:
        """fail > warning > pass across the file's categories; None when the file is unreviewed."""
        record = self._records.get(normalize_path(file_path))
        if record is None:
            return None
        return worst_status(entry.status for entry in record.per_category.values())

    def get(self, file_path: str) -> FileStatusRecord | None:
        record = self._records.get(normalize_path(file_path))
        return record.model_copy(deep=True) if record is not None else None

    def values(self) -> list[FileStatusRecord]:
        """Snapshot of every record."""
        return [r.model_copy(deep=True) for r in self._records.values()]

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, file_path: object) -> bool:
        return isinstance(file_path, str) and normalize_path(file_path) in self._records
