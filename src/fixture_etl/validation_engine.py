"""fixture_etl.validation_engine

One validation pass over an upload:

  1. collect distinct grade codes
  2. load the ValidationContext (three concurrent batched lookups)
  3. validate every row against the context (exhaustive, not fail-fast)
  4. run cross-row checks over the whole upload
  5. union all violations

Acceptance is all-or-nothing: a single violation anywhere rejects the whole
upload and accepted_rows_by_grade is None.  Rule violations are returned as
values; only store failures raise (CollaboratorError).
"""

from __future__ import annotations

import logging
from datetime import date

from fixture_etl.context_loader import load_validation_context
from fixture_etl.cross_row_validator import FIRST_DATA_ROW, validate_cross_rows
from fixture_etl.models import (
    FILE_FORMAT,
    AcceptedFixture,
    FixtureRow,
    ValidationResult,
    ValidationViolation,
)
from fixture_etl.normalize import trim
from fixture_etl.repository import FixtureStore
from fixture_etl.row_validator import resolve_row, validate_row

log = logging.getLogger(__name__)


def distinct_grade_codes(rows: list[FixtureRow]) -> list[str]:
    """Trimmed, non-empty grade codes in first-seen order."""
    seen: dict[str, None] = {}
    for row in rows:
        code = trim(row.grade_code)
        if code is not None:
            seen.setdefault(code, None)
    return list(seen)


def validate_upload(
    store: FixtureStore,
    rows: list[FixtureRow],
    season_id: str,
    today: date | None = None,
) -> ValidationResult:
    """Validate a whole upload for ``season_id``.

    Args:
        store: Lookup implementation used by the context loader.
        rows: Decoded rows in upload order (row numbers start at 2).
        season_id: Season the fixtures belong to.
        today: Reference date for the past-date rule; defaults to today.

    Returns:
        ValidationResult with either accepted rows grouped by grade id or the
        full list of violations.

    Raises:
        CollaboratorError: If the context lookups fail.
    """
    if not rows:
        return ValidationResult(
            accepted_rows_by_grade=None,
            violations=[ValidationViolation(
                type=FILE_FORMAT,
                message="Upload contains no fixture rows",
            )],
        )

    today = today or date.today()
    context = load_validation_context(store, season_id, distinct_grade_codes(rows))

    violations: list[ValidationViolation] = []
    for idx, row in enumerate(rows):
        violations.extend(
            validate_row(row, context, row_number=FIRST_DATA_ROW + idx, today=today)
        )
    violations.extend(validate_cross_rows(rows, first_row_number=FIRST_DATA_ROW))

    if violations:
        log.info(
            "upload rejected season_id=%s rows=%d violations=%d",
            season_id, len(rows), len(violations),
        )
        return ValidationResult(accepted_rows_by_grade=None, violations=violations)

    accepted: dict[str, list[AcceptedFixture]] = {}
    for idx, row in enumerate(rows):
        fixture = resolve_row(row, context, row_number=FIRST_DATA_ROW + idx)
        accepted.setdefault(fixture.grade_id, []).append(fixture)

    log.info(
        "upload accepted season_id=%s rows=%d grades=%d",
        season_id, len(rows), len(accepted),
    )
    return ValidationResult(accepted_rows_by_grade=accepted, violations=[])
