"""Normalize analysis backend output (structured JSON or legacy markdown-like text) to IssueRecords."""

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from app.schemas.issues import (
    CATEGORY_VALUES,
    DEFAULT_CATEGORY,
    UNKNOWN_CATEGORY,
    AnalysisResult,
    Category,
    FileAnalysis,
    IssueRecord,
    ParsedOutput,
    Severity,
)

logger = logging.getLogger(__name__)

# Defaults for IssueRecord fields when the backend omits them or sends empty values.
_DEFAULT_DESCRIPTION = "Unknown issue"
_DEFAULT_SEVERITY = Severity.MEDIUM
_DEFAULT_CONFIDENCE = 50
_DEFAULT_SUGGESTION = "No suggestion provided"

# Severity aliases (case-insensitive) -> canonical level.
_SEVERITY_ALIASES: dict[str, Severity] = {
    "critical": Severity.HIGH,
    "crit": Severity.HIGH,
    "high": Severity.HIGH,
    "medium": Severity.MEDIUM,
    "med": Severity.MEDIUM,
    "moderate": Severity.MEDIUM,
    "low": Severity.LOW,
    "minor": Severity.LOW,
}

# Category aliases beyond the canonical names.
_CATEGORY_ALIASES: dict[str, Category] = {
    "a11y": "accessibility",
    "perf": "performance",
    "code_quality": "quality",
    "code quality": "quality",
}

# Backend field name -> IssueRecord field name.
ISSUE_FIELD_ALIASES: dict[str, str] = {
    "issue": "description",
    "message": "description",
    "title": "description",
    "code": "code_excerpt",
    "snippet": "code_excerpt",
    "review_type": "category",
    "type": "category",
    "file": "file_path",
    "path": "file_path",
    "line_number": "line_numbers",
    "line": "line_numbers",
    "lines": "line_numbers",
}

# Legacy text: file headers like ### `app.js`
_FILE_HEADER_PATTERN = re.compile(r"^###\s+`(.+?)`")
# Legacy text: issue start, optionally prefixed by an emoji marker, e.g. 🔒 **Issue:** ...
_ISSUE_START_PATTERN = re.compile(r"^(?:[^\w\s*]+\s*)?\*\*Issue:\*\*\s*(.+)$")
# Legacy text: attribute lines like **Severity:** High
_FIELD_PATTERN = re.compile(r"^\*\*(.+?):\*\*\s*(.+)$")
# Leading integer, like JavaScript parseInt.
_LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")
_LINE_RANGE_PATTERN = re.compile(r"^(\d+)\s*-\s*(\d+)$")

# Guard against pathological ranges such as "1-99999999".
MAX_LINE_RANGE = 10_000

# Legacy field name (lowercased, spaces to underscores) -> IssueRecord field name.
_LEGACY_FIELDS: dict[str, str] = {
    "severity": "severity",
    "confidence": "confidence",
    "line_number": "line_numbers",
    "line_numbers": "line_numbers",
    "line": "line_numbers",
    "lines": "line_numbers",
    "code": "code_excerpt",
    "suggestion": "suggestion",
    "category": "category",
    "review_type": "category",
    "file": "file_path",
}


def normalize_severity(raw_severity: Any) -> Severity:
    """Map a raw severity value to High/Medium/Low. Unrecognized or missing → Medium."""
    if isinstance(raw_severity, Severity):
        return raw_severity
    if isinstance(raw_severity, str) and raw_severity.strip():
        return _SEVERITY_ALIASES.get(raw_severity.strip().lower(), _DEFAULT_SEVERITY)
    return _DEFAULT_SEVERITY


def normalize_category(raw_category: Any) -> Category:
    """Map a raw category to a known one. Missing → security; present but unknown → other."""
    if raw_category is None:
        return DEFAULT_CATEGORY
    if not isinstance(raw_category, str) or not raw_category.strip():
        return DEFAULT_CATEGORY
    normalized = raw_category.strip().lower()
    if normalized in CATEGORY_VALUES:
        return normalized  # type: ignore[return-value]
    return _CATEGORY_ALIASES.get(normalized, UNKNOWN_CATEGORY)


def parse_confidence(raw_confidence: Any) -> int:
    """
    Read a confidence percentage. Integers pass through unchanged (no clamping);
    floats truncate; text is read as a leading integer after stripping a trailing '%'.
    Anything else → 50.
    """
    if raw_confidence is None or isinstance(raw_confidence, bool):
        return _DEFAULT_CONFIDENCE
    if isinstance(raw_confidence, int):
        return raw_confidence
    if isinstance(raw_confidence, float):
        if raw_confidence != raw_confidence or raw_confidence in (float("inf"), float("-inf")):
            return _DEFAULT_CONFIDENCE
        return int(raw_confidence)
    if isinstance(raw_confidence, str):
        text = raw_confidence.strip().rstrip("%").strip()
        match = _LEADING_INT_PATTERN.match(text)
        if match:
            return int(match.group(1))
    return _DEFAULT_CONFIDENCE


def _line_values(raw: Any) -> list[Any]:
    """Flatten a raw line-number value (int, text, or list) into candidate tokens."""
    if raw is None or isinstance(raw, bool):
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if isinstance(raw, str):
        return [part.strip() for part in raw.split(",") if part.strip()]
    return [raw]


def parse_line_numbers(raw: Any) -> list[int]:
    """
    Normalize line numbers to a de-duplicated list of positive integers in report order.
    Accepts a single value, a list, comma-separated text and 'a-b' ranges; drops the rest.
    """
    result: list[int] = []
    seen: set[int] = set()

    def _add(n: int) -> None:
        if n > 0 and n not in seen:
            seen.add(n)
            result.append(n)

    for value in _line_values(raw):
        if isinstance(value, bool):
            continue
        if isinstance(value, int):
            _add(value)
            continue
        if isinstance(value, float) and value.is_integer():
            _add(int(value))
            continue
        if not isinstance(value, str):
            continue
        range_match = _LINE_RANGE_PATTERN.match(value)
        if range_match:
            start, end = int(range_match.group(1)), int(range_match.group(2))
            if start <= end and end - start <= MAX_LINE_RANGE:
                for n in range(start, end + 1):
                    _add(n)
            continue
        match = _LEADING_INT_PATTERN.match(value)
        if match:
            _add(int(match.group(1)))
    return result


def _str_or_none(value: Any) -> str | None:
    """Return stripped string or None; coerce non-str scalars to str."""
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _apply_aliases(raw: dict[str, Any]) -> dict[str, Any]:
    """Rename backend field aliases to IssueRecord names; canonical names win over aliases."""
    shaped = dict(raw)
    for alias, target in ISSUE_FIELD_ALIASES.items():
        if alias in raw and shaped.get(target) is None:
            shaped[target] = raw[alias]
    return shaped


def normalize_issue(raw: dict[str, Any], file_path: str | None = None) -> IssueRecord:
    """
    Build an IssueRecord from a raw issue dict using the default table for every field.
    Never raises on bad field values. file_path is used when the issue carries no path itself.
    """
    shaped = _apply_aliases(raw)

    description = _str_or_none(shaped.get("description")) or _DEFAULT_DESCRIPTION
    suggestion = _str_or_none(shaped.get("suggestion")) or _DEFAULT_SUGGESTION
    code = shaped.get("code_excerpt")
    code_excerpt = code if isinstance(code, str) else ""
    issue_path = _str_or_none(shaped.get("file_path")) or _str_or_none(file_path)
    raw_category = shaped.get("category")

    return IssueRecord(
        description=description,
        severity=normalize_severity(shaped.get("severity")),
        confidence=parse_confidence(shaped.get("confidence")),
        line_numbers=parse_line_numbers(shaped.get("line_numbers")),
        code_excerpt=code_excerpt,
        suggestion=suggestion,
        category=normalize_category(raw_category),
        category_reported=isinstance(raw_category, str) and bool(raw_category.strip()),
        file_path=issue_path.replace("\\", "/") if issue_path else None,
    )


def _normalize_categories(raw: Any) -> list[Category]:
    if not isinstance(raw, list):
        return []
    out: list[Category] = []
    for value in raw:
        category = normalize_category(value)
        if category not in out:
            out.append(category)
    return out


def parse_structured(text: str) -> AnalysisResult | None:
    """
    Parse a structured analysis document. Returns None (never raises) when the text is not
    JSON or does not have the expected shape, so the caller can fall back to legacy parsing.
    """
    if not text or not text.strip():
        return None
    try:
        data = json.loads(text.strip())
    except (json.JSONDecodeError, ValueError):
        return None
    if not isinstance(data, dict) or not isinstance(data.get("files"), list):
        return None

    files: list[FileAnalysis] = []
    for raw_file in data["files"]:
        if not isinstance(raw_file, dict):
            logger.debug("Structured output rejected: file entry is not an object")
            return None
        raw_issues = raw_file.get("issues") or []
        if not isinstance(raw_issues, list) or not all(isinstance(i, dict) for i in raw_issues):
            logger.debug("Structured output rejected: issues is not a list of objects")
            return None
        file_path = (_str_or_none(raw_file.get("file_path")) or "").replace("\\", "/")
        issues = [normalize_issue(i, file_path=file_path or None) for i in raw_issues]
        files.append(
            FileAnalysis(
                file_path=file_path,
                issues=issues,
                review_types_analyzed=_normalize_categories(raw_file.get("review_types_analyzed")),
            )
        )

    total = data.get("total_issues")
    timestamp = _str_or_none(data.get("analysis_timestamp"))
    try:
        result = AnalysisResult(
            files=files,
            total_issues=total if isinstance(total, int) and not isinstance(total, bool) and total >= 0 else 0,
            review_types=_normalize_categories(data.get("review_types")),
            **({"analysis_timestamp": timestamp} if timestamp else {}),
        )
    except ValidationError as e:
        logger.debug("Structured output rejected: %s", e)
        return None
    return result


def parse_legacy(text: str, default_category: Category | None = None) -> list[IssueRecord]:
    """
    Parse legacy line-oriented review text.

    '### `path`' lines open a file scope, '**Issue:** ...' lines (optionally emoji-prefixed)
    start an issue, and '**Field:** value' lines set attributes on the current issue. Unknown
    fields are ignored. An issue without an explicit **File:** takes the current header file;
    issues with no resolvable file are dropped.
    """
    results: list[IssueRecord] = []
    current_file: str | None = None
    pending: dict[str, Any] | None = None

    def _flush() -> None:
        if pending is None or not pending.get("description"):
            return
        issue_file = pending.get("file_path") or current_file
        if not issue_file:
            logger.debug("Dropping legacy issue without file: %s", pending.get("description"))
            return
        if "category" not in pending and default_category is not None:
            pending["category"] = default_category
        results.append(normalize_issue(pending, file_path=issue_file))

    for line in text.splitlines():
        stripped = line.strip()

        header = _FILE_HEADER_PATTERN.match(stripped)
        if header:
            _flush()
            pending = None
            current_file = header.group(1).strip()
            continue

        issue_start = _ISSUE_START_PATTERN.match(stripped)
        if issue_start:
            _flush()
            pending = {"description": issue_start.group(1).strip()}
            continue

        if pending is None or not stripped.startswith("**"):
            continue
        field_match = _FIELD_PATTERN.match(stripped)
        if not field_match:
            continue
        name = re.sub(r"\s+", "_", field_match.group(1).strip().lower())
        target = _LEGACY_FIELDS.get(name)
        if target is None:
            continue
        value = field_match.group(2).strip()
        if target == "file_path":
            # Same quoting as file headers: **File:** `src/a.js`
            value = value.strip("`").strip()
        pending[target] = value

    _flush()
    return results


def parse_backend_output(text: str, default_category: Category | None = None) -> ParsedOutput:
    """Try the structured form first, then legacy text. Never raises on malformed input."""
    analysis = parse_structured(text)
    if analysis is not None:
        issues = [i for f in analysis.files for i in f.issues]
        return ParsedOutput(format="structured", issues=issues, analysis=analysis)

    issues = parse_legacy(text or "", default_category=default_category)
    if issues:
        return ParsedOutput(format="legacy", issues=issues)
    return ParsedOutput(format="empty")
