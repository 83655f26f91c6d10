"""Integration test fixtures.

Applies migrations 0001-0003 against an ephemeral PostgreSQL database
provided by pytest-postgresql before any integration test runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import psycopg
import pytest
from pytest_postgresql import factories

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

PROJECT_ROOT = Path(__file__).parent.parent.parent
MIGRATIONS = [
    PROJECT_ROOT / "migrations" / "0001_extensions.sql",
    PROJECT_ROOT / "migrations" / "0002_season_entities.sql",
    PROJECT_ROOT / "migrations" / "0003_fixture_tables.sql",
]

# ---------------------------------------------------------------------------
# pytest-postgresql process fixture
# ---------------------------------------------------------------------------

postgresql_proc = factories.postgresql_proc()
postgresql = factories.postgresql("postgresql_proc")


# ---------------------------------------------------------------------------
# Schema fixture: applies all migrations for each test
# ---------------------------------------------------------------------------

@pytest.fixture(scope="function")
def db_conn(postgresql):
    """Return a psycopg connection with schema applied.

    Each test gets a fresh schema via function scope so tests are isolated.
    """
    dsn = (
        f"host={postgresql.info.host} "
        f"port={postgresql.info.port} "
        f"dbname={postgresql.info.dbname} "
        f"user={postgresql.info.user} "
        f"password={postgresql.info.password or ''}"
    )
    conn = psycopg.connect(dsn, autocommit=True)
    try:
        for migration in MIGRATIONS:
            sql = migration.read_text(encoding="utf-8")
            conn.execute(sql)
        conn.autocommit = False
        yield conn, dsn
    finally:
        conn.close()


# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

@dataclass
class SeededSeason:
    season_id: str
    grade_id: str
    team_ids: dict[str, str]


def seed_season(
    conn: psycopg.Connection,
    name: str = "2025",
    grade_code: str = "U12",
    round_count: int = 18,
    competition_type: str | None = "DOMESTIC",
    team_names: tuple[str, ...] = ("Lions", "Tigers", "Bears", "Wolves"),
) -> SeededSeason:
    """Insert a season with one grade and its teams, and commit."""
    season_id = conn.execute(
        "INSERT INTO season (name) VALUES (%s) RETURNING id", (name,)
    ).fetchone()[0]
    if competition_type is not None:
        conn.execute(
            "INSERT INTO competition (season_id, type) VALUES (%s, %s)",
            (season_id, competition_type),
        )
    grade_id = conn.execute(
        """
        INSERT INTO grade (season_id, code, name, no_of_rounds)
        VALUES (%s, %s, %s, %s)
        RETURNING id
        """,
        (season_id, grade_code, f"Under {grade_code[1:]}", round_count),
    ).fetchone()[0]
    team_ids = {}
    for team_name in team_names:
        team_ids[team_name] = str(conn.execute(
            "INSERT INTO team (grade_id, name) VALUES (%s, %s) RETURNING id",
            (grade_id, team_name),
        ).fetchone()[0])
    conn.commit()
    return SeededSeason(season_id=str(season_id), grade_id=str(grade_id), team_ids=team_ids)


@pytest.fixture
def seeded(db_conn) -> SeededSeason:
    conn, _ = db_conn
    return seed_season(conn)


@pytest.fixture
def seed(db_conn):
    conn, _ = db_conn

    def _seed(**kwargs) -> SeededSeason:
        return seed_season(conn, **kwargs)
    return _seed
