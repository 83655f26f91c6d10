"""Unit test fixtures.

FakeStore is an in-memory FixtureStore that records every lookup call, so
tests can assert how many round trips a validation pass made.
"""

from __future__ import annotations

import threading
from datetime import date

import pytest

from fixture_etl.models import Competition, ExistingGame, Grade, Round, Team

SEASON_ID = "season-2025"


class FakeStore:
    def __init__(
        self,
        grades: list[Grade],
        teams: list[Team],
        existence_by_code: dict[str, bool] | None = None,
        rounds: dict[str, list[Round]] | None = None,
        games: dict[str, list[ExistingGame]] | None = None,
        competition: Competition | None = None,
    ) -> None:
        self.grades = list(grades)
        self.teams = list(teams)
        self.existence_by_code = dict(existence_by_code or {})
        self.rounds = dict(rounds or {})
        self.games = dict(games or {})
        self.competition = competition
        self.fail_on: str | None = None
        self.barrier: threading.Barrier | None = None
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def _record(self, name: str) -> None:
        with self._lock:
            self.calls.append(name)
        if self.barrier is not None:
            self.barrier.wait(timeout=5)
        if name == self.fail_on:
            raise RuntimeError("store unavailable")

    def fetch_grades_by_codes(self, season_id, codes):
        self._record("fetch_grades_by_codes")
        return [g for g in self.grades if g.season_id == season_id and g.code in codes]

    def fetch_teams_by_season_id(self, season_id):
        self._record("fetch_teams_by_season_id")
        grade_ids = {g.id for g in self.grades if g.season_id == season_id}
        return [t for t in self.teams if t.grade_id in grade_ids]

    def fetch_fixture_existence_by_grade_code(self, season_id, codes):
        self._record("fetch_fixture_existence_by_grade_code")
        return {
            g.code: self.existence_by_code.get(g.code, False)
            for g in self.grades
            if g.season_id == season_id and g.code in codes
        }

    def fetch_fixture_existence_by_grade_ids(self, grade_ids):
        self._record("fetch_fixture_existence_by_grade_ids")
        return {
            g.id: self.existence_by_code.get(g.code, False)
            for g in self.grades
            if g.id in grade_ids
        }

    def fetch_existing_rounds_by_grade_ids(self, grade_ids):
        self._record("fetch_existing_rounds_by_grade_ids")
        return {gid: self.rounds[gid] for gid in grade_ids if gid in self.rounds}

    def fetch_games_by_grade_ids(self, grade_ids):
        self._record("fetch_games_by_grade_ids")
        return {gid: self.games[gid] for gid in grade_ids if gid in self.games}

    def fetch_competition_by_season_id(self, season_id):
        self._record("fetch_competition_by_season_id")
        if self.competition is not None and self.competition.season_id == season_id:
            return self.competition
        return None


def seeded_grades() -> list[Grade]:
    return [
        Grade(id="grade-u12", code="U12", season_id=SEASON_ID, round_count=4),
        Grade(id="grade-u14", code="U14", season_id=SEASON_ID, round_count=10),
        Grade(id="grade-old", code="U12", season_id="season-2024", round_count=18),
    ]


def seeded_teams() -> list[Team]:
    return [
        Team(id="team-lions", name="Lions", grade_id="grade-u12"),
        Team(id="team-tigers", name="Tigers", grade_id="grade-u12"),
        Team(id="team-bears", name="Bears", grade_id="grade-u12"),
        Team(id="team-wolves", name="Wolves", grade_id="grade-u12"),
        Team(id="team-eagles", name="Eagles", grade_id="grade-u14"),
        Team(id="team-hawks", name="Hawks", grade_id="grade-u14"),
        Team(id="team-old-lions", name="Lions", grade_id="grade-old"),
    ]


@pytest.fixture
def make_store():
    def _make(**overrides) -> FakeStore:
        kwargs = dict(grades=seeded_grades(), teams=seeded_teams())
        kwargs.update(overrides)
        return FakeStore(**kwargs)
    return _make


@pytest.fixture
def store(make_store) -> FakeStore:
    return make_store()


@pytest.fixture
def today() -> date:
    return date(2025, 6, 1)
