"""fixture_etl.repository

PostgreSQL access for the fixture import.

Read side: FixtureStore is the lookup contract used by the context loader
and the orchestrator.  PostgresFixtureStore implements it with one
short-lived connection per call, so lookups may run concurrently from a
thread pool.  Every lookup is a single batched query (ANY(array)), never one
query per row or per grade.

Write side: plain functions that take the caller's connection.  The caller
owns the transaction (see fixture_etl.persist).
"""

from __future__ import annotations

from datetime import date
from typing import Protocol

import psycopg

from fixture_etl.models import (
    Competition,
    ExistingGame,
    GameParam,
    Grade,
    GradeAttributes,
    Round,
    Team,
)
from fixture_etl.shared import GradeNotFoundError


# ---------------------------------------------------------------------------
# Lookup contract
# ---------------------------------------------------------------------------

class FixtureStore(Protocol):
    def fetch_grades_by_codes(self, season_id: str, codes: list[str]) -> list[Grade]:
        ...

    def fetch_teams_by_season_id(self, season_id: str) -> list[Team]:
        ...

    def fetch_fixture_existence_by_grade_code(
        self, season_id: str, codes: list[str]
    ) -> dict[str, bool]:
        ...

    def fetch_fixture_existence_by_grade_ids(self, grade_ids: list[str]) -> dict[str, bool]:
        ...

    def fetch_existing_rounds_by_grade_ids(self, grade_ids: list[str]) -> dict[str, list[Round]]:
        """Rounds per grade, ordered by sequence_no."""
        ...

    def fetch_games_by_grade_ids(self, grade_ids: list[str]) -> dict[str, list[ExistingGame]]:
        ...

    def fetch_competition_by_season_id(self, season_id: str) -> Competition | None:
        ...


# ---------------------------------------------------------------------------
# PostgreSQL implementation
# ---------------------------------------------------------------------------

class PostgresFixtureStore:
    """FixtureStore backed by PostgreSQL.

    Each method opens and closes its own autocommit connection; psycopg
    connections serialise their queries, so sharing one across the loader's
    threads would defeat the concurrent fan-out.
    """

    def __init__(self, dsn: str, connect_timeout: int | None = None) -> None:
        self._dsn = dsn
        self._connect_timeout = connect_timeout

    def _connect(self) -> psycopg.Connection:
        kwargs = {}
        if self._connect_timeout is not None:
            kwargs["connect_timeout"] = self._connect_timeout
        return psycopg.connect(self._dsn, autocommit=True, **kwargs)

    def fetch_grades_by_codes(self, season_id: str, codes: list[str]) -> list[Grade]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, code, season_id, no_of_rounds
                FROM grade
                WHERE season_id = %s AND code = ANY(%s::text[])
                """,
                (season_id, list(codes)),
            ).fetchall()
        return [
            Grade(id=str(r[0]), code=r[1], season_id=str(r[2]), round_count=int(r[3]))
            for r in rows
        ]

    def fetch_teams_by_season_id(self, season_id: str) -> list[Team]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT t.id, t.name, t.grade_id
                FROM team t
                JOIN grade g ON g.id = t.grade_id
                WHERE g.season_id = %s
                """,
                (season_id,),
            ).fetchall()
        return [Team(id=str(r[0]), name=r[1], grade_id=str(r[2])) for r in rows]

    def fetch_fixture_existence_by_grade_code(
        self, season_id: str, codes: list[str]
    ) -> dict[str, bool]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT g.code,
                       EXISTS (
                         SELECT 1
                         FROM round r
                         JOIN game ga ON ga.round_id = r.id
                         WHERE r.grade_id = g.id
                       ) AS has_fixture
                FROM grade g
                WHERE g.season_id = %s AND g.code = ANY(%s::text[])
                """,
                (season_id, list(codes)),
            ).fetchall()
        return {r[0]: bool(r[1]) for r in rows}

    def fetch_fixture_existence_by_grade_ids(self, grade_ids: list[str]) -> dict[str, bool]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT g.id,
                       EXISTS (
                         SELECT 1
                         FROM round r
                         JOIN game ga ON ga.round_id = r.id
                         WHERE r.grade_id = g.id
                       ) AS has_fixture
                FROM grade g
                WHERE g.id = ANY(%s::uuid[])
                """,
                (list(grade_ids),),
            ).fetchall()
        return {str(r[0]): bool(r[1]) for r in rows}

    def fetch_existing_rounds_by_grade_ids(self, grade_ids: list[str]) -> dict[str, list[Round]]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT id, grade_id, sequence_no, provisional_date
                FROM round
                WHERE grade_id = ANY(%s::uuid[])
                ORDER BY grade_id, sequence_no
                """,
                (list(grade_ids),),
            ).fetchall()
        grouped: dict[str, list[Round]] = {}
        for r in rows:
            grade_id = str(r[1])
            grouped.setdefault(grade_id, []).append(
                Round(id=str(r[0]), grade_id=grade_id, sequence_no=int(r[2]), provisional_date=r[3])
            )
        return grouped

    def fetch_games_by_grade_ids(self, grade_ids: list[str]) -> dict[str, list[ExistingGame]]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT r.grade_id, ga.id, ga.home_team_id, ga.away_team_id,
                       ga.date, ga.provisional_dates
                FROM game ga
                JOIN round r ON r.id = ga.round_id
                WHERE r.grade_id = ANY(%s::uuid[])
                ORDER BY r.grade_id, ga.id
                """,
                (list(grade_ids),),
            ).fetchall()
        grouped: dict[str, list[ExistingGame]] = {}
        for r in rows:
            grade_id = str(r[0])
            grouped.setdefault(grade_id, []).append(
                ExistingGame(
                    id=str(r[1]),
                    grade_id=grade_id,
                    home_team_id=str(r[2]),
                    away_team_id=str(r[3]),
                    date=r[4],
                    provisional_dates=tuple(r[5] or ()),
                )
            )
        return grouped

    def fetch_competition_by_season_id(self, season_id: str) -> Competition | None:
        with self._connect() as conn:
            row = conn.execute(
                """
                SELECT id, season_id, type
                FROM competition
                WHERE season_id = %s
                ORDER BY created_at ASC, id ASC
                LIMIT 1
                """,
                (season_id,),
            ).fetchone()
        if row is None:
            return None
        return Competition(id=str(row[0]), season_id=str(row[1]), type=row[2])


# ---------------------------------------------------------------------------
# Write primitives (caller manages transaction)
# ---------------------------------------------------------------------------

def upsert_round(
    conn: psycopg.Connection,
    grade_id: str,
    sequence_no: int,
    provisional_date: date | None,
) -> str:
    """Insert a round or update its provisional date; keyed by (grade_id, sequence_no)."""
    row = conn.execute(
        """
        INSERT INTO round (grade_id, sequence_no, provisional_date)
        VALUES (%s, %s, %s)
        ON CONFLICT (grade_id, sequence_no) DO UPDATE SET
          provisional_date = EXCLUDED.provisional_date,
          updated_at = now()
        RETURNING id
        """,
        (grade_id, sequence_no, provisional_date),
    ).fetchone()
    return str(row[0])


def upsert_game(
    conn: psycopg.Connection,
    round_id: str,
    game: GameParam,
    competition_type: str,
) -> str:
    """Write a game under its caller-supplied id.

    A repeated id updates the existing row in place, so resubmitting the
    same upload never duplicates games.
    """
    row = conn.execute(
        """
        INSERT INTO game
          (id, round_id, home_team_id, away_team_id, date,
           provisional_dates, competition_type)
        VALUES (%s, %s, %s, %s, %s, %s::date[], %s)
        ON CONFLICT (id) DO UPDATE SET
          round_id = EXCLUDED.round_id,
          home_team_id = EXCLUDED.home_team_id,
          away_team_id = EXCLUDED.away_team_id,
          date = EXCLUDED.date,
          provisional_dates = EXCLUDED.provisional_dates,
          competition_type = EXCLUDED.competition_type,
          updated_at = now()
        RETURNING id
        """,
        (game.id, round_id, game.home_team_id, game.away_team_id, game.date,
         list(game.provisional_dates), competition_type),
    ).fetchone()
    return str(row[0])


def update_grade_attributes(
    conn: psycopg.Connection,
    grade_id: str,
    attributes: GradeAttributes,
) -> None:
    cur = conn.execute(
        """
        UPDATE grade
        SET no_of_rounds = %s,
            start_date = %s,
            updated_at = now()
        WHERE id = %s
        """,
        (attributes.round_count, attributes.start_date, grade_id),
    )
    if cur.rowcount == 0:
        raise GradeNotFoundError(f"grade_not_found: id={grade_id!r}")
