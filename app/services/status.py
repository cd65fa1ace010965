"""Status derivation: deterministic mapping of one (file, category) issue list to pass/warning/fail.

Only set membership (any High, any Low/Medium) and a commutative mean are used, so the result
does not depend on issue order.
"""

import math
from collections.abc import Iterable, Sequence

from app.schemas.issues import IssueRecord, Severity
from app.schemas.status import ReviewStatus, StatusResult

# Thresholds (tunable through settings; no magic numbers in logic).
FAIL_CONFIDENCE_THRESHOLD = 70  # High severity at or above this mean confidence → fail
LOW_CONFIDENCE_THRESHOLD = 50  # High severity below this → warning

# Confidence reported for a category with no issues.
EMPTY_CONFIDENCE = 100

_LOW_OR_MEDIUM = frozenset({Severity.LOW, Severity.MEDIUM})


def _round_half_up(value: float) -> int:
    """Round .5 away from zero for positives (built-in round() is banker's rounding)."""
    return int(math.floor(value + 0.5))


def aggregate_confidence(issues: Sequence[IssueRecord]) -> int:
    """Rounded mean confidence; EMPTY_CONFIDENCE for no issues."""
    if not issues:
        return EMPTY_CONFIDENCE
    return _round_half_up(sum(i.confidence for i in issues) / len(issues))


def derive_status(
    issues: Sequence[IssueRecord],
    fail_threshold: int = FAIL_CONFIDENCE_THRESHOLD,
    low_confidence_threshold: int = LOW_CONFIDENCE_THRESHOLD,
) -> StatusResult:
    """
    Compute status and aggregate confidence for issues sharing one file and category.

    Rules are evaluated in order, first match wins:
    1. no issues → pass
    2. any High and confidence >= fail_threshold → fail
    3. any Low/Medium, or confidence < fail_threshold → warning
    4. any High and confidence < low_confidence_threshold → warning
    5. otherwise → fail

    Rule 4 cannot match once rule 3 has run with the default thresholds; it is kept in place.
    """
    if not issues:
        return StatusResult(status=ReviewStatus.PASS, aggregate_confidence=EMPTY_CONFIDENCE)

    has_high = any(i.severity == Severity.HIGH for i in issues)
    has_low_or_medium = any(i.severity in _LOW_OR_MEDIUM for i in issues)
    confidence = aggregate_confidence(issues)

    if has_high and confidence >= fail_threshold:
        status = ReviewStatus.FAIL
    elif has_low_or_medium or confidence < fail_threshold:
        status = ReviewStatus.WARNING
    elif has_high and confidence < low_confidence_threshold:
        status = ReviewStatus.WARNING
    else:
        status = ReviewStatus.FAIL

    return StatusResult(status=status, aggregate_confidence=confidence)


def worst_status(statuses: Iterable[ReviewStatus]) -> ReviewStatus | None:
    """Return the most severe status (fail > warning > pass), or None when there are none."""
    worst: ReviewStatus | None = None
    for s in statuses:
        if worst is None or s.rank > worst.rank:
            worst = s
    return worst

