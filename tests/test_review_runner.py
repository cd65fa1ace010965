"""Unit tests for app.services.review_runner: clear-run-apply units over structured and legacy output."""

import asyncio
import json
import unittest
from unittest.mock import AsyncMock

from app.schemas.issues import IssueRecord
from app.schemas.status import ReviewStatus
from app.services.backend import AnalysisBackendError
from app.services.review_runner import ReviewRunner
from app.services.store import ReviewStore

LEGACY_OUTPUT = """\
### `app.js`
🔒 **Issue:** Eval of user input
**Severity:** High
**Confidence:** 90%
**Line Number:** 12
"""

LEGACY_MULTI_CATEGORY = """\
### `app.js`
⚡ **Issue:** Sync IO in request handler
**Severity:** Low
**Category:** performance
🔧 **Issue:** Duplicate logic
**Severity:** Medium
**Category:** style
"""


def _structured_output() -> str:
    return json.dumps(
        {
            "files": [
                {
                    "file_path": "app.js",
                    "issues": [
                        {"issue": "XSS", "severity": "High", "confidence": 95, "review_type": "security"},
                    ],
                },
                {"file_path": "other.js", "issues": []},
            ],
            "total_issues": 1,
        }
    )


def _store() -> ReviewStore:
    store = ReviewStore()
    store.set_tracked_files(["app.js", "util.js"])
    return store


class TestIngest(unittest.TestCase):
    """ingest() picks the output form and applies it."""

    def test_legacy_single_category(self) -> None:
        store = _store()
        outcome = ReviewRunner(store).ingest(["security"], LEGACY_OUTPUT)
        self.assertEqual(outcome.format, "legacy")
        self.assertEqual(outcome.issue_count, 1)
        self.assertEqual(outcome.file_count, 2)
        self.assertEqual(store.worst_status("app.js"), ReviewStatus.FAIL)
        self.assertEqual(store.worst_status("util.js"), ReviewStatus.PASS)

    def test_legacy_issue_tagged_for_category_of_single_run(self) -> None:
        store = _store()
        ReviewRunner(store).ingest(["quality"], LEGACY_OUTPUT)
        record = store.get("app.js")
        assert record is not None
        self.assertEqual(record.per_category["quality"].issues[0].category, "quality")

    def test_structured_output(self) -> None:
        store = _store()
        outcome = ReviewRunner(store).ingest(["security", "quality"], _structured_output())
        self.assertEqual(outcome.format, "structured")
        self.assertEqual(outcome.file_count, 2)
        self.assertEqual(store.worst_status("app.js"), ReviewStatus.FAIL)
        # Structured results trust their own file list.
        self.assertEqual(store.worst_status("other.js"), ReviewStatus.PASS)
        self.assertIsNone(store.worst_status("util.js"))

    def test_unparseable_output_marks_tracked_files_pass(self) -> None:
        store = _store()
        outcome = ReviewRunner(store).ingest(["security", "performance"], "Analysis finished with no findings.")
        self.assertEqual(outcome.format, "empty")
        self.assertEqual(outcome.issue_count, 0)
        for path in ("app.js", "util.js"):
            record = store.get(path)
            assert record is not None
            self.assertEqual(set(record.per_category), {"security", "performance"})
            self.assertEqual(store.worst_status(path), ReviewStatus.PASS)

    def test_legacy_multi_category_split(self) -> None:
        store = _store()
        ReviewRunner(store).ingest(["security", "performance"], LEGACY_MULTI_CATEGORY)
        record = store.get("app.js")
        assert record is not None
        # "performance" issue stays in performance; "style" (other) is outside the run and goes to both.
        self.assertEqual(record.per_category["performance"].issue_count, 2)
        self.assertEqual(record.per_category["security"].issue_count, 1)

    def test_new_run_replaces_previous_run(self) -> None:
        store = _store()
        runner = ReviewRunner(store)
        runner.ingest(["security"], LEGACY_OUTPUT)
        runner.ingest(["security"], "")
        self.assertEqual(store.worst_status("app.js"), ReviewStatus.PASS)

    def test_legacy_untagged_issue_goes_to_every_category(self) -> None:
        store = _store()
        outcome = ReviewRunner(store).ingest(["security", "performance"], LEGACY_OUTPUT)
        record = store.get("app.js")
        assert record is not None
        for category in ("security", "performance"):
            entry = record.per_category[category]
            self.assertEqual(entry.status, ReviewStatus.FAIL)
            self.assertEqual(entry.issue_count, 1)
        self.assertEqual(outcome.issue_count, 2)

    def test_structured_issue_count_only_counts_stored_issues(self) -> None:
        store = _store()
        output = json.dumps(
            {
                "files": [
                    {
                        "file_path": "",
                        "issues": [
                            {"issue": "XSS", "severity": "High", "confidence": 95, "file_path": "app.js"},
                            {"issue": "Orphan", "severity": "High", "confidence": 95},
                        ],
                    }
                ]
            }
        )
        outcome = ReviewRunner(store).ingest(["security"], output)
        self.assertEqual(outcome.format, "structured")
        self.assertEqual(outcome.issue_count, 1)
        self.assertEqual(outcome.file_count, 1)
        self.assertEqual(store.worst_status("app.js"), ReviewStatus.FAIL)


class TestRun(unittest.TestCase):
    """run() clears, awaits the fetcher with tracked files, then ingests."""

    def test_fetcher_called_with_categories_and_tracked_files(self) -> None:
        store = _store()
        fetch = AsyncMock(return_value=LEGACY_OUTPUT)
        outcome = asyncio.run(ReviewRunner(store).run(["security"], fetch))
        fetch.assert_awaited_once_with(["security"], ["app.js", "util.js"])
        self.assertEqual(outcome.format, "legacy")
        self.assertEqual(store.worst_status("app.js"), ReviewStatus.FAIL)

    def test_store_cleared_before_fetch(self) -> None:
        store = _store()
        store.apply_results("security", [IssueRecord(file_path="app.js", severity="High", confidence=90)])
        seen: list[ReviewStatus | None] = []

        async def fetch(categories: list[str], files: list[str]) -> str:
            seen.append(store.worst_status("app.js"))
            return ""

        asyncio.run(ReviewRunner(store).run(["security"], fetch))
        self.assertEqual(seen, [None])

    def test_fetch_error_propagates_and_leaves_categories_cleared(self) -> None:
        store = _store()
        store.apply_results("security", [IssueRecord(file_path="app.js", severity="High", confidence=90)])
        fetch = AsyncMock(side_effect=AnalysisBackendError("down", kind="unreachable"))
        with self.assertRaises(AnalysisBackendError):
            asyncio.run(ReviewRunner(store).run(["security"], fetch))
        self.assertNotIn("app.js", store)

    def test_same_category_runs_are_serialized(self) -> None:
        store = _store()
        runner = ReviewRunner(store)
        events: list[str] = []

        def make_fetch(name: str, output: str):
            async def fetch(categories: list[str], files: list[str]) -> str:
                events.append(f"start-{name}")
                await asyncio.sleep(0)
                events.append(f"end-{name}")
                return output

            return fetch

        async def main() -> None:
            await asyncio.gather(
                runner.run(["security"], make_fetch("one", LEGACY_OUTPUT)),
                runner.run(["security"], make_fetch("two", "")),
            )

        asyncio.run(main())
        self.assertEqual(events, ["start-one", "end-one", "start-two", "end-two"])
        self.assertEqual(store.worst_status("app.js"), ReviewStatus.PASS)

    def test_submit_ingests_pushed_output(self) -> None:
        store = _store()
        outcome = asyncio.run(ReviewRunner(store).submit(["security"], LEGACY_OUTPUT))
        self.assertEqual(outcome.issue_count, 1)
        self.assertEqual(store.worst_status("app.js"), ReviewStatus.FAIL)


if __name__ == "__main__":
    unittest.main()
