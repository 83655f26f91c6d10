"""fixture_etl.persist

Transactional write of accepted fixtures.

One psycopg transaction block spans the whole call:

  for each grade:
    for each supplied round:
      upsert round by (grade_id, sequence_no)      → round_id
      for each game: upsert game by its supplied id
    update the grade's rollup attributes

Any failure rolls back every grade written so far and surfaces as a single
PersistenceError (GradeNotFoundError for a grade id that no longer matches).
There is no per-grade partial success.

If the connection is already inside a transaction, the block becomes a
savepoint; rollback still covers everything this call wrote.
"""

from __future__ import annotations

import logging
import uuid
from typing import Mapping

import psycopg

from fixture_etl.context_loader import gather_lookups
from fixture_etl.grade_attributes import build_rounds_by_grade, compute_grade_attributes
from fixture_etl.models import (
    COMPETITION_TYPES,
    AcceptedFixture,
    GradeAttributes,
    PersistResult,
    Round,
    RoundParam,
)
from fixture_etl.repository import (
    FixtureStore,
    update_grade_attributes,
    upsert_game,
    upsert_round,
)
from fixture_etl.shared import PersistenceError, RunCounters

log = logging.getLogger(__name__)


def persist_fixtures(
    conn: psycopg.Connection,
    rounds_by_grade: Mapping[str, list[RoundParam]],
    competition_type: str,
    attributes_by_grade: Mapping[str, GradeAttributes],
    counters: RunCounters | None = None,
) -> PersistResult:
    """Write rounds, games and grade rollups atomically.

    Args:
        conn: Open psycopg connection (autocommit off).
        rounds_by_grade: Supplied rounds per grade id.
        competition_type: 'DOMESTIC' or 'TOURNAMENT', stamped on each game.
        attributes_by_grade: Rollups from compute_grade_attributes.
        counters: Updated only after a successful commit.

    Returns:
        PersistResult with grade ids in input order, deduplicated team ids
        (first-seen order) and game ids in write order.

    Raises:
        ValueError: Unknown competition type or a grade without attributes.
        PersistenceError: The transaction failed and was rolled back.
    """
    if competition_type not in COMPETITION_TYPES:
        raise ValueError(f"unknown competition type: {competition_type!r}")
    missing = [g for g in rounds_by_grade if g not in attributes_by_grade]
    if missing:
        raise ValueError(f"no grade attributes for grade ids: {missing}")

    grade_ids = list(rounds_by_grade)
    game_ids: list[str] = []
    team_ids: dict[str, None] = {}
    rounds_written = 0

    log.info("fixture write begin grades=%d", len(grade_ids))
    try:
        with conn.transaction():
            for grade_id in grade_ids:
                for round_param in rounds_by_grade[grade_id]:
                    round_id = upsert_round(
                        conn, grade_id, round_param.sequence_no, round_param.provisional_date
                    )
                    rounds_written += 1
                    for game in round_param.games:
                        game_ids.append(upsert_game(conn, round_id, game, competition_type))
                        team_ids.setdefault(game.home_team_id, None)
                        team_ids.setdefault(game.away_team_id, None)
                update_grade_attributes(conn, grade_id, attributes_by_grade[grade_id])
    except PersistenceError:
        log.error("fixture write rolled back: grade lookup failed")
        raise
    except psycopg.Error as exc:
        log.error("fixture write rolled back: %s", exc)
        raise PersistenceError(f"fixture_write_failed: {exc}") from exc

    log.info(
        "fixture write committed grades=%d rounds=%d games=%d",
        len(grade_ids), rounds_written, len(game_ids),
    )
    if counters is not None:
        counters.grades_touched += len(grade_ids)
        counters.rounds_upserted += rounds_written
        counters.games_upserted += len(game_ids)
        counters.teams_linked += len(team_ids)

    return PersistResult(
        grade_ids=grade_ids,
        team_ids=list(team_ids),
        game_ids=game_ids,
    )


def persist_accepted(
    store: FixtureStore,
    conn: psycopg.Connection,
    accepted_rows_by_grade: Mapping[str, list[AcceptedFixture]],
    competition_type: str,
    game_id_namespace: uuid.UUID,
    counters: RunCounters | None = None,
    existing_rounds_by_grade: Mapping[str, list[Round]] | None = None,
) -> PersistResult:
    """Arrange accepted rows into rounds, compute rollups, and persist them.

    Existing rounds are fetched from ``store`` unless the caller already
    looked them up.

    Raises:
        CollaboratorError: The existing-rounds lookup failed; nothing was written.
        PersistenceError: The transaction failed and was rolled back.
    """
    rounds_by_grade = build_rounds_by_grade(accepted_rows_by_grade, game_id_namespace)
    if existing_rounds_by_grade is None:
        grade_ids = list(rounds_by_grade)
        existing_rounds_by_grade = gather_lookups({
            "existing_rounds": lambda: store.fetch_existing_rounds_by_grade_ids(grade_ids),
        })["existing_rounds"]
    attributes = compute_grade_attributes(rounds_by_grade, existing_rounds_by_grade)
    return persist_fixtures(conn, rounds_by_grade, competition_type, attributes, counters)
