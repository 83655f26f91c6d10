"""fixture_etl.row_validator

Per-row rule checks.  Pure: one FixtureRow + ValidationContext in,
violations out.  No store access.

Rule order:
  1. required fields          FILE_FORMAT (one per missing column)
  2. date format DD/MM/YYYY   FILE_FORMAT
  3. positive round number    FILE_FORMAT
  4. home != away             FILE_FORMAT
  5. grade exists             BUSINESS_RULE; stops all later business rules
  6. teams belong to grade    BUSINESS_RULE (home and away independently)
  7. round <= grade rounds    BUSINESS_RULE (needs a valid round)
  8. no past dates            BUSINESS_RULE (needs a valid date; a date on or
                              before today is past; grades with no fixtures
                              yet are exempt as an initial backfill)

Grade and team resolution go through the context's dict indices.
"""

from __future__ import annotations

from datetime import date

from fixture_etl.models import (
    BUSINESS_RULE,
    FILE_FORMAT,
    AcceptedFixture,
    FixtureRow,
    ValidationContext,
    ValidationViolation,
)
from fixture_etl.normalize import (
    format_fixture_date,
    parse_fixture_date,
    parse_round_number,
    trim,
)

COL_GRADE_CODE = "Grade Code"
COL_HOME_TEAM = "Home Team"
COL_AWAY_TEAM = "Away Team"
COL_DATE = "Date"
COL_ROUND = "Round"
COL_GAME_TYPE = "Game Type"


def _prefix(row_number: int | None) -> str:
    return f"Row {row_number}: " if row_number is not None else ""


def validate_row(
    row: FixtureRow,
    context: ValidationContext,
    row_number: int | None = None,
    today: date | None = None,
) -> list[ValidationViolation]:
    """Return every rule violation for ``row``; empty list when it is valid."""
    today = today or date.today()
    p = _prefix(row_number)
    violations: list[ValidationViolation] = []

    grade_code = trim(row.grade_code)
    home = trim(row.home_team_name)
    away = trim(row.away_team_name)

    # Rule 1: required fields
    for value, column in (
        (grade_code, COL_GRADE_CODE),
        (home, COL_HOME_TEAM),
        (away, COL_AWAY_TEAM),
    ):
        if value is None:
            violations.append(ValidationViolation(
                type=FILE_FORMAT,
                message=f"{p}{column} is required",
                row=row_number,
                column=column,
            ))

    # Rule 2: date format
    fixture_date = parse_fixture_date(row.date)
    if fixture_date is None:
        violations.append(ValidationViolation(
            type=FILE_FORMAT,
            message=f"{p}Invalid date format. Use DD/MM/YYYY",
            row=row_number,
            column=COL_DATE,
        ))

    # Rule 3: round number
    round_number = parse_round_number(row.round_number)
    if round_number is None:
        violations.append(ValidationViolation(
            type=FILE_FORMAT,
            message=f"{p}Round must be a positive number",
            row=row_number,
            column=COL_ROUND,
        ))

    # Rule 4: self-play
    if home is not None and home == away:
        violations.append(ValidationViolation(
            type=FILE_FORMAT,
            message=f"{p}Home team and away team cannot be the same",
            row=row_number,
        ))

    if grade_code is None:
        return violations

    # Rule 5: grade existence; nothing else can be checked without a grade
    grade = context.grade_by_code(grade_code)
    if grade is None:
        violations.append(ValidationViolation(
            type=BUSINESS_RULE,
            message=f"{p}Grade '{grade_code}' does not exist in this season",
            row=row_number,
            column=COL_GRADE_CODE,
        ))
        return violations

    # Rule 6: team membership
    if home is not None and context.team_in_grade(grade.id, home) is None:
        violations.append(ValidationViolation(
            type=BUSINESS_RULE,
            message=f"{p}Home team '{home}' is not registered in grade '{grade_code}'",
            row=row_number,
            column=COL_HOME_TEAM,
            grade_id=grade.id,
        ))
    if away is not None and context.team_in_grade(grade.id, away) is None:
        violations.append(ValidationViolation(
            type=BUSINESS_RULE,
            message=f"{p}Away team '{away}' is not registered in grade '{grade_code}'",
            row=row_number,
            column=COL_AWAY_TEAM,
            grade_id=grade.id,
        ))

    # Rule 7: round bound
    if round_number is not None and round_number > grade.round_count:
        violations.append(ValidationViolation(
            type=BUSINESS_RULE,
            message=(
                f"{p}Round {round_number} exceeds maximum rounds "
                f"({grade.round_count}) for grade '{grade_code}'"
            ),
            row=row_number,
            column=COL_ROUND,
            grade_id=grade.id,
        ))

    # Rule 8: past dates, only once the grade has fixtures
    if (
        fixture_date is not None
        and fixture_date <= today
        and context.grade_has_fixtures(grade_code)
    ):
        violations.append(ValidationViolation(
            type=BUSINESS_RULE,
            message=(
                f"{p}Cannot schedule games in the past for grade '{grade_code}'. "
                f"Date: {format_fixture_date(fixture_date)}"
            ),
            row=row_number,
            column=COL_DATE,
            grade_id=grade.id,
        ))

    return violations


def resolve_row(
    row: FixtureRow,
    context: ValidationContext,
    row_number: int,
) -> AcceptedFixture:
    """Resolve a row that passed validate_row into an AcceptedFixture.

    Raises:
        ValueError: If the row does not resolve (it was not validated).
    """
    grade_code = trim(row.grade_code)
    home = trim(row.home_team_name)
    away = trim(row.away_team_name)
    fixture_date = parse_fixture_date(row.date)
    round_number = parse_round_number(row.round_number)
    grade = context.grade_by_code(grade_code) if grade_code else None
    home_team = context.team_in_grade(grade.id, home) if grade and home else None
    away_team = context.team_in_grade(grade.id, away) if grade and away else None
    if (
        grade is None or home_team is None or away_team is None
        or fixture_date is None or round_number is None
    ):
        raise ValueError(f"row {row_number} does not resolve against the context")
    return AcceptedFixture(
        row_number=row_number,
        grade_id=grade.id,
        grade_code=grade.code,
        home_team_id=home_team.id,
        away_team_id=away_team.id,
        home_team_name=home_team.name,
        away_team_name=away_team.name,
        round_number=round_number,
        date=fixture_date,
        game_type=trim(row.game_type),
    )
