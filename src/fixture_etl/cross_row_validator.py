"""fixture_etl.cross_row_validator

Upload-wide integrity checks, single pass over the rows:

  - duplicate game:  same (grade, home, away, round) seen before
  - double booking:  a team already playing in that round of that grade,
                     checked separately for the home and away role

State is kept in a set of game signatures and a dict of
(grade_code, team_name) → rounds seen.  Rows missing a grade code, a team
name or a valid round are skipped here; validate_row already reports them.
A row flagged as a duplicate game is not also reported as double booking.
"""

from __future__ import annotations

from typing import Iterable

from fixture_etl.models import DATA_INTEGRITY, FixtureRow, ValidationViolation
from fixture_etl.normalize import parse_round_number, trim

FIRST_DATA_ROW = 2


def validate_cross_rows(
    rows: Iterable[FixtureRow],
    first_row_number: int = FIRST_DATA_ROW,
) -> list[ValidationViolation]:
    violations: list[ValidationViolation] = []
    game_signatures: set[tuple[str, str, str, int]] = set()
    team_rounds: dict[tuple[str, str], set[int]] = {}

    for idx, row in enumerate(rows):
        row_number = first_row_number + idx
        grade_code = trim(row.grade_code)
        home = trim(row.home_team_name)
        away = trim(row.away_team_name)
        round_number = parse_round_number(row.round_number)
        if grade_code is None or home is None or away is None or round_number is None:
            continue

        signature = (grade_code, home, away, round_number)
        if signature in game_signatures:
            violations.append(ValidationViolation(
                type=DATA_INTEGRITY,
                message=(
                    f"Row {row_number}: Duplicate game: {home} vs {away} "
                    f"in round {round_number} of grade {grade_code}"
                ),
                row=row_number,
            ))
            continue
        game_signatures.add(signature)

        home_rounds = team_rounds.setdefault((grade_code, home), set())
        away_rounds = team_rounds.setdefault((grade_code, away), set())
        for team, seen in ((home, home_rounds), (away, away_rounds)):
            if round_number in seen:
                violations.append(ValidationViolation(
                    type=DATA_INTEGRITY,
                    message=(
                        f"Row {row_number}: Team '{team}' is scheduled for multiple "
                        f"games in round {round_number} of grade {grade_code}"
                    ),
                    row=row_number,
                ))
        home_rounds.add(round_number)
        away_rounds.add(round_number)

    return violations
