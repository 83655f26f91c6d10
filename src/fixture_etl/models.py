"""fixture_etl.models

Record types shared by the validation and persistence stages.

Store entities (Grade, Team, Round, ExistingGame, Competition) mirror the
tables in migrations/0002-0003.  Upload-scoped types (FixtureRow,
ValidationContext, ValidationViolation) live for one upload request only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping

# ---------------------------------------------------------------------------
# Violation types
# ---------------------------------------------------------------------------

FILE_FORMAT = "FILE_FORMAT"
BUSINESS_RULE = "BUSINESS_RULE"
DATA_INTEGRITY = "DATA_INTEGRITY"

COMPETITION_TYPES = frozenset({"DOMESTIC", "TOURNAMENT"})


# ---------------------------------------------------------------------------
# Upload rows
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FixtureRow:
    """One decoded upload line.  Cell values are kept as decoded."""

    grade_code: str | None
    home_team_name: str | None
    away_team_name: str | None
    date: str | date | None
    round_number: str | int | None
    game_type: str | None = None


@dataclass(frozen=True)
class ValidationViolation:
    type: str
    message: str
    row: int | None = None
    column: str | None = None
    grade_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "message": self.message,
            "row": self.row,
            "column": self.column,
            "grade_id": self.grade_id,
        }


# ---------------------------------------------------------------------------
# Store entities
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Grade:
    id: str
    code: str
    season_id: str
    round_count: int


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    grade_id: str


@dataclass(frozen=True)
class Round:
    id: str
    grade_id: str
    sequence_no: int
    provisional_date: date | None


@dataclass(frozen=True)
class ExistingGame:
    id: str
    grade_id: str
    home_team_id: str
    away_team_id: str
    date: date
    provisional_dates: tuple[date, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "grade_id": self.grade_id,
            "home_team_id": self.home_team_id,
            "away_team_id": self.away_team_id,
            "date": self.date.isoformat(),
            "provisional_dates": [d.isoformat() for d in self.provisional_dates],
        }


@dataclass(frozen=True)
class Competition:
    id: str
    season_id: str
    type: str


# ---------------------------------------------------------------------------
# Validation context
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValidationContext:
    """Read-only snapshot of season state used to validate one upload.

    The grade and team indices are built from this context's own rows when
    it is constructed, so every upload gets fresh lookups.
    """

    season_id: str
    grades: tuple[Grade, ...]
    teams: tuple[Team, ...]
    fixture_existence_by_grade_code: Mapping[str, bool]
    _grades_by_code: dict[str, Grade] = field(init=False, repr=False, compare=False)
    _teams_by_grade_and_name: dict[tuple[str, str], Team] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "grades", tuple(self.grades))
        object.__setattr__(self, "teams", tuple(self.teams))
        object.__setattr__(
            self, "fixture_existence_by_grade_code",
            dict(self.fixture_existence_by_grade_code),
        )
        object.__setattr__(self, "_grades_by_code", {g.code: g for g in self.grades})
        object.__setattr__(
            self, "_teams_by_grade_and_name",
            {(t.grade_id, t.name): t for t in self.teams},
        )

    def grade_by_code(self, code: str) -> Grade | None:
        return self._grades_by_code.get(code)

    def team_in_grade(self, grade_id: str, name: str) -> Team | None:
        return self._teams_by_grade_and_name.get((grade_id, name))

    def grade_has_fixtures(self, code: str) -> bool:
        return bool(self.fixture_existence_by_grade_code.get(code, False))


# ---------------------------------------------------------------------------
# Accepted rows and persistence parameters
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AcceptedFixture:
    """A row that passed validation, with its references resolved."""

    row_number: int
    grade_id: str
    grade_code: str
    home_team_id: str
    away_team_id: str
    home_team_name: str
    away_team_name: str
    round_number: int
    date: date
    game_type: str | None = None


@dataclass(frozen=True)
class GameParam:
    id: str
    home_team_id: str
    away_team_id: str
    date: date
    provisional_dates: tuple[date, ...] = ()


@dataclass(frozen=True)
class RoundParam:
    sequence_no: int
    provisional_date: date
    games: tuple[GameParam, ...]


@dataclass(frozen=True)
class GradeAttributes:
    round_count: int
    start_date: date | None


@dataclass
class ValidationResult:
    accepted_rows_by_grade: dict[str, list[AcceptedFixture]] | None
    violations: list[ValidationViolation]

    @property
    def ok(self) -> bool:
        return not self.violations


@dataclass
class PersistResult:
    grade_ids: list[str]
    team_ids: list[str]
    game_ids: list[str]
