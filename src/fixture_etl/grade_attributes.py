"""fixture_etl.grade_attributes

Arranges accepted fixtures into rounds and computes each grade's rollup
attributes.

Rollup rules (per grade, no cross-grade interaction):
  round_count = existing rounds + supplied rounds   (additive)
  start_date  = first existing round's provisional date if any exist,
                else the first supplied round's provisional date

The additive count does not check that supplied sequence numbers continue
from the existing ones; a resubmitted round is counted again.
"""

from __future__ import annotations

import uuid
from typing import Mapping

from fixture_etl.models import (
    AcceptedFixture,
    GameParam,
    GradeAttributes,
    Round,
    RoundParam,
)


def game_id_for(
    namespace: uuid.UUID,
    grade_id: str,
    round_number: int,
    home_team_id: str,
    away_team_id: str,
) -> str:
    """Deterministic game id, stable across resubmissions of the same fixture."""
    key = f"{grade_id}|{round_number}|{home_team_id}|{away_team_id}"
    return str(uuid.uuid5(namespace, key))


def build_round_params(
    fixtures: list[AcceptedFixture],
    namespace: uuid.UUID,
) -> list[RoundParam]:
    """Group one grade's fixtures by round, ordered by sequence number.

    A round's provisional date is the earliest game date in it.
    """
    by_round: dict[int, list[AcceptedFixture]] = {}
    for f in fixtures:
        by_round.setdefault(f.round_number, []).append(f)

    rounds: list[RoundParam] = []
    for sequence_no in sorted(by_round):
        games = tuple(
            GameParam(
                id=game_id_for(namespace, f.grade_id, f.round_number,
                               f.home_team_id, f.away_team_id),
                home_team_id=f.home_team_id,
                away_team_id=f.away_team_id,
                date=f.date,
                provisional_dates=(f.date,),
            )
            for f in by_round[sequence_no]
        )
        rounds.append(RoundParam(
            sequence_no=sequence_no,
            provisional_date=min(g.date for g in games),
            games=games,
        ))
    return rounds


def build_rounds_by_grade(
    accepted_rows_by_grade: Mapping[str, list[AcceptedFixture]],
    namespace: uuid.UUID,
) -> dict[str, list[RoundParam]]:
    return {
        grade_id: build_round_params(fixtures, namespace)
        for grade_id, fixtures in accepted_rows_by_grade.items()
    }


def compute_grade_attributes(
    rounds_by_grade: Mapping[str, list[RoundParam]],
    existing_rounds_by_grade: Mapping[str, list[Round]],
) -> dict[str, GradeAttributes]:
    attributes: dict[str, GradeAttributes] = {}
    for grade_id, supplied in rounds_by_grade.items():
        existing = existing_rounds_by_grade.get(grade_id) or []
        if existing:
            start_date = existing[0].provisional_date
        elif supplied:
            start_date = supplied[0].provisional_date
        else:
            start_date = None
        attributes[grade_id] = GradeAttributes(
            round_count=len(existing) + len(supplied),
            start_date=start_date,
        )
    return attributes
