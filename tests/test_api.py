"""Route tests for app.api.v1 using FastAPI's TestClient and a fresh review store per test."""

import unittest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from app.core.state import get_store, reset_state
from app.main import app
from app.services.backend import AnalysisBackendError

PREFIX = "/api/v1"

LEGACY_OUTPUT = """\
### `app.js`
🔒 **Issue:** Eval of user input
**Severity:** High
**Confidence:** 80%
"""


class ApiTestCase(unittest.TestCase):
    def setUp(self) -> None:
        reset_state()
        self.client = TestClient(app)

    def tearDown(self) -> None:
        reset_state()

    def _track(self, *files: str) -> None:
        resp = self.client.put(f"{PREFIX}/files/tracked", json={"files": list(files)})
        self.assertEqual(resp.status_code, 200)


class TestHealth(ApiTestCase):
    def test_health(self) -> None:
        self._track("a.py")
        resp = self.client.get(f"{PREFIX}/health/")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["tracked_files"], 1)
        self.assertEqual(body["reviewed_files"], 0)


class TestFilesRoutes(ApiTestCase):
    def test_tracked_roundtrip(self) -> None:
        self._track("app.js", "util.js", "app.js")
        resp = self.client.get(f"{PREFIX}/files/tracked")
        self.assertEqual(resp.json(), {"files": ["app.js", "util.js"]})

    def test_unreviewed_status(self) -> None:
        self._track("a.py")
        resp = self.client.get(f"{PREFIX}/files/status", params={"path": "a.py"})
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertTrue(body["tracked"])
        self.assertIsNone(body["worst_status"])
        self.assertEqual(body["badge"], "unreviewed")

    def test_untracked_file_has_no_badge(self) -> None:
        resp = self.client.get(f"{PREFIX}/files/status", params={"path": "nope.py"})
        body = resp.json()
        self.assertFalse(body["tracked"])
        self.assertIsNone(body["badge"])
        self.assertIsNone(body["decoration"])

    def test_status_query_path_is_normalized(self) -> None:
        self._track("src/b.py")
        body = self.client.get(f"{PREFIX}/files/status", params={"path": "src\\b.py"}).json()
        self.assertTrue(body["tracked"])
        self.assertEqual(body["file_path"], "src/b.py")
        self.assertEqual(body["badge"], "unreviewed")


class TestReviewRoutes(ApiTestCase):
    def test_post_results_then_query(self) -> None:
        self._track("app.js", "util.js")
        resp = self.client.post(
            f"{PREFIX}/reviews/results",
            json={"categories": ["security"], "output": LEGACY_OUTPUT},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["format"], "legacy")
        self.assertEqual(resp.json()["issue_count"], 1)

        files = {f["file_path"]: f for f in self.client.get(f"{PREFIX}/files").json()}
        self.assertEqual(files["app.js"]["per_category"]["security"]["status"], "fail")
        self.assertEqual(files["app.js"]["per_category"]["security"]["aggregate_confidence"], 80)
        self.assertEqual(files["util.js"]["per_category"]["security"]["status"], "pass")

        status = self.client.get(f"{PREFIX}/files/status", params={"path": "app.js"}).json()
        self.assertEqual(status["worst_status"], "fail")
        self.assertEqual(status["decoration"]["glyph"], "❌")
        self.assertIn("security:", status["tooltip"])

        decorations = self.client.get(f"{PREFIX}/files/decorations").json()
        self.assertEqual([d["badge"] for d in decorations], ["fail", "pass"])

        summary = self.client.get(f"{PREFIX}/reviews/summary").json()
        self.assertEqual(len(summary["failed_issues"]), 1)
        self.assertEqual(summary["passed_files"], ["util.js"])

    def test_delete_clears_categories(self) -> None:
        self._track("app.js")
        self.client.post(
            f"{PREFIX}/reviews/results",
            json={"categories": ["security"], "output": LEGACY_OUTPUT},
        )
        resp = self.client.delete(f"{PREFIX}/reviews", params={"categories": ["security"]})
        self.assertEqual(resp.status_code, 204)
        self.assertEqual(self.client.get(f"{PREFIX}/files").json(), [])

    def test_unknown_category_rejected(self) -> None:
        resp = self.client.post(
            f"{PREFIX}/reviews/results",
            json={"categories": ["style"], "output": ""},
        )
        self.assertEqual(resp.status_code, 422)

    def test_select_categories(self) -> None:
        resp = self.client.put(
            f"{PREFIX}/reviews/categories",
            json={"categories": ["quality", "security", "quality"]},
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"categories": ["security", "quality"]})
        self.assertEqual(get_store().selected_categories, ["security", "quality"])

    def test_run_requires_tracked_files(self) -> None:
        resp = self.client.post(f"{PREFIX}/reviews/run", json={"categories": ["security"]})
        self.assertEqual(resp.status_code, 422)

    @patch("app.api.v1.reviews.fetch_analysis", new_callable=AsyncMock)
    def test_run_ingests_backend_output(self, mock_fetch: AsyncMock) -> None:
        mock_fetch.return_value = LEGACY_OUTPUT
        self._track("app.js")
        resp = self.client.post(f"{PREFIX}/reviews/run", json={"categories": ["security"]})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(get_store().worst_status("app.js").value, "fail")
        args, _ = mock_fetch.call_args
        self.assertEqual(args, (["security"], ["app.js"]))

    @patch("app.api.v1.reviews.fetch_analysis", new_callable=AsyncMock)
    def test_run_backend_error_maps_status(self, mock_fetch: AsyncMock) -> None:
        mock_fetch.side_effect = AnalysisBackendError("Analysis backend is unreachable.", kind="unreachable")
        self._track("app.js")
        resp = self.client.post(f"{PREFIX}/reviews/run", json={"categories": ["security"]})
        self.assertEqual(resp.status_code, 503)
        self.assertIn("unreachable", resp.json()["detail"])


if __name__ == "__main__":
    unittest.main()
