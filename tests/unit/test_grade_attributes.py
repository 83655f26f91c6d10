"""Unit tests for fixture_etl.grade_attributes."""

from __future__ import annotations

import uuid
from datetime import date

from fixture_etl.grade_attributes import (
    build_round_params,
    build_rounds_by_grade,
    compute_grade_attributes,
    game_id_for,
)
from fixture_etl.models import AcceptedFixture, GameParam, Round, RoundParam

NAMESPACE = uuid.UUID("3f6d2a52-5c1e-4d8e-9b7a-1c0f4e2b8a91")


def _fixture(round_number, home, away, day, grade_id="grade-u12", row_number=2):
    return AcceptedFixture(
        row_number=row_number,
        grade_id=grade_id,
        grade_code="U12",
        home_team_id=f"team-{home}",
        away_team_id=f"team-{away}",
        home_team_name=home,
        away_team_name=away,
        round_number=round_number,
        date=date(2025, 6, day),
    )


def _round(sequence_no, day) -> RoundParam:
    return RoundParam(sequence_no=sequence_no, provisional_date=date(2025, 6, day), games=())


# ---------------------------------------------------------------------------
# game ids
# ---------------------------------------------------------------------------

class TestGameIdFor:
    def test_deterministic(self):
        a = game_id_for(NAMESPACE, "g", 1, "h", "a")
        b = game_id_for(NAMESPACE, "g", 1, "h", "a")
        assert a == b
        assert uuid.UUID(a).version == 5

    def test_distinct_per_round_and_side(self):
        ids = {
            game_id_for(NAMESPACE, "g", 1, "h", "a"),
            game_id_for(NAMESPACE, "g", 2, "h", "a"),
            game_id_for(NAMESPACE, "g", 1, "a", "h"),
            game_id_for(uuid.uuid4(), "g", 1, "h", "a"),
        }
        assert len(ids) == 4


# ---------------------------------------------------------------------------
# round arrangement
# ---------------------------------------------------------------------------

class TestBuildRoundParams:
    def test_grouped_and_sorted_by_round(self):
        fixtures = [
            _fixture(2, "lions", "bears", 22),
            _fixture(1, "lions", "tigers", 15),
            _fixture(1, "bears", "wolves", 14),
        ]
        rounds = build_round_params(fixtures, NAMESPACE)
        assert [r.sequence_no for r in rounds] == [1, 2]
        assert len(rounds[0].games) == 2
        assert rounds[0].provisional_date == date(2025, 6, 14)
        assert rounds[1].provisional_date == date(2025, 6, 22)

    def test_game_params(self):
        [round_param] = build_round_params([_fixture(1, "lions", "tigers", 15)], NAMESPACE)
        game = round_param.games[0]
        assert isinstance(game, GameParam)
        assert game.home_team_id == "team-lions"
        assert game.away_team_id == "team-tigers"
        assert game.date == date(2025, 6, 15)
        assert game.provisional_dates == (date(2025, 6, 15),)
        assert game.id == game_id_for(NAMESPACE, "grade-u12", 1, "team-lions", "team-tigers")

    def test_by_grade_keeps_grade_order(self):
        rounds = build_rounds_by_grade(
            {
                "grade-u14": [_fixture(1, "eagles", "hawks", 15, grade_id="grade-u14")],
                "grade-u12": [_fixture(1, "lions", "tigers", 15)],
            },
            NAMESPACE,
        )
        assert list(rounds) == ["grade-u14", "grade-u12"]


# ---------------------------------------------------------------------------
# rollups
# ---------------------------------------------------------------------------

class TestComputeGradeAttributes:
    def test_new_grade(self):
        attrs = compute_grade_attributes(
            {"g1": [_round(1, 7), _round(2, 14), _round(3, 21)]}, {}
        )
        assert attrs["g1"].round_count == 3
        assert attrs["g1"].start_date == date(2025, 6, 7)

    def test_existing_rounds_are_added_and_keep_start_date(self):
        existing = [
            Round(id="r1", grade_id="g1", sequence_no=1, provisional_date=date(2025, 5, 3)),
            Round(id="r2", grade_id="g1", sequence_no=2, provisional_date=date(2025, 5, 10)),
        ]
        attrs = compute_grade_attributes({"g1": [_round(3, 7)]}, {"g1": existing})
        assert attrs["g1"].round_count == 3
        assert attrs["g1"].start_date == date(2025, 5, 3)

    def test_resubmitted_round_counts_again(self):
        existing = [Round(id="r1", grade_id="g1", sequence_no=1, provisional_date=date(2025, 5, 3))]
        attrs = compute_grade_attributes({"g1": [_round(1, 3)]}, {"g1": existing})
        assert attrs["g1"].round_count == 2

    def test_grades_are_independent(self):
        attrs = compute_grade_attributes(
            {"g1": [_round(1, 7)], "g2": [_round(1, 8), _round(2, 15)]},
            {"g2": [Round(id="r", grade_id="g2", sequence_no=1, provisional_date=None)]},
        )
        assert attrs["g1"].round_count == 1
        assert attrs["g2"].round_count == 3
        assert attrs["g2"].start_date is None
