"""Read-side projection of the review store: file badges, tooltips and the grouped results listing."""

from collections.abc import Iterable

from app.schemas.decoration import (
    Badge,
    FileDecoration,
    IssueListing,
    ResultsSummary,
)
from app.schemas.issues import Severity
from app.schemas.status import FileStatusRecord, ReviewStatus
from app.services.status import worst_status
from app.services.store import ReviewStore

_STATUS_TO_BADGE: dict[ReviewStatus, Badge] = {
    ReviewStatus.FAIL: Badge.FAIL,
    ReviewStatus.WARNING: Badge.WARNING,
    ReviewStatus.PASS: Badge.PASS,
}

# Glyph and tooltip per badge, as rendered by the editor.
BADGE_GLYPHS: dict[Badge, str] = {
    Badge.FAIL: "❌",
    Badge.WARNING: "⚠️",
    Badge.PASS: "✅",
    Badge.UNREVIEWED: "○",
}

BADGE_TOOLTIPS: dict[Badge, str] = {
    Badge.FAIL: "Review found issues",
    Badge.WARNING: "Review found warnings",
    Badge.PASS: "Review passed",
    Badge.UNREVIEWED: "Not reviewed yet",
}

_STATUS_GLYPHS: dict[ReviewStatus, str] = {
    ReviewStatus.FAIL: BADGE_GLYPHS[Badge.FAIL],
    ReviewStatus.WARNING: BADGE_GLYPHS[Badge.WARNING],
    ReviewStatus.PASS: BADGE_GLYPHS[Badge.PASS],
}

SEVERITY_GLYPHS: dict[Severity, str] = {
    Severity.HIGH: "🔴",
    Severity.MEDIUM: "🟠",
    Severity.LOW: "🟡",
}


class DecorationProjection:
    """Badges for tracked files, cached until the store reports a change."""

    def __init__(self, store: ReviewStore) -> None:
        self._store = store
        self._cache: dict[str, Badge | None] = {}
        self._unsubscribe = store.subscribe(self._invalidate)

    def _invalidate(self) -> None:
        self._cache.clear()

    def close(self) -> None:
        """Stop listening to the store."""
        self._unsubscribe()

    def project(self, file_path: str) -> Badge | None:
        """
        Badge for a file. None for files outside the tracked set, even if stale results exist;
        UNREVIEWED for tracked files with no category entries.
        """
        if file_path in self._cache:
            return self._cache[file_path]
        if not self._store.is_tracked(file_path):
            badge = None
        else:
            status = self._store.worst_status(file_path)
            badge = _STATUS_TO_BADGE[status] if status is not None else Badge.UNREVIEWED
        self._cache[file_path] = badge
        return badge

    def decorate(self, file_path: str) -> FileDecoration | None:
        badge = self.project(file_path)
        if badge is None:
            return None
        return FileDecoration(
            file_path=file_path,
            badge=badge,
            glyph=BADGE_GLYPHS[badge],
            tooltip=BADGE_TOOLTIPS[badge],
        )

    def decorations(self) -> list[FileDecoration]:
        """Decorations for every tracked file, in tracked order."""
        out: list[FileDecoration] = []
        for file_path in self._store.tracked_files:
            decoration = self.decorate(file_path)
            if decoration is not None:
                out.append(decoration)
        return out


def format_line_numbers(line_numbers: Iterable[int]) -> str:
    """Sorted line numbers with consecutive runs collapsed, e.g. [5, 1, 2, 3] -> '1-3, 5'."""
    numbers = sorted(set(line_numbers))
    if not numbers:
        return ""
    ranges: list[str] = []
    start = end = numbers[0]
    for n in numbers[1:]:
        if n == end + 1:
            end = n
            continue
        ranges.append(str(start) if start == end else f"{start}-{end}")
        start = end = n
    ranges.append(str(start) if start == end else f"{start}-{end}")
    return ", ".join(ranges)


def file_tooltip(record: FileStatusRecord) -> str:
    """One line per category: '<category>: <glyph> <n> issues (<c>% confidence)'."""
    lines = ["Review Results:"]
    for category, entry in record.per_category.items():
        lines.append(
            f"{category}: {_STATUS_GLYPHS[entry.status]} {entry.issue_count} issues "
            f"({entry.aggregate_confidence}% confidence)"
        )
    return "\n".join(lines)


def summarize_results(
    records: Iterable[FileStatusRecord],
    show_passed: bool = True,
    only_files_with_issues: bool = False,
) -> ResultsSummary:
    """
    Group store records for a results view: issues under failing categories, issues under
    warning categories, and files whose worst status is pass.
    """
    summary = ResultsSummary()
    for record in records:
        file_worst = worst_status(e.status for e in record.per_category.values())
        for category, entry in record.per_category.items():
            if entry.status == ReviewStatus.PASS:
                continue
            target = summary.failed_issues if entry.status == ReviewStatus.FAIL else summary.warning_issues
            for issue in entry.issues:
                target.append(
                    IssueListing(
                        file_path=issue.file_path or record.file_path,
                        category=category,
                        status=entry.status,
                        severity_glyph=SEVERITY_GLYPHS[issue.severity],
                        line_label=format_line_numbers(issue.line_numbers),
                        issue=issue,
                    )
                )
        if file_worst == ReviewStatus.PASS and show_passed and not only_files_with_issues:
            summary.passed_files.append(record.file_path)
    return summary
