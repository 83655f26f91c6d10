"""fixture_etl.import_fixtures

CLI entrypoint for bulk fixture uploads.

Pipeline:
  1. decode the CSV upload into FixtureRows
  2. validate (context lookups + row rules + cross-row rules); any violation
     rejects the whole upload and nothing touches the store
  3. concurrent pre-write lookups: fixture existence, existing games,
     competition, existing rounds
  4. compute grade rollups and write rounds/games in one transaction
  5. generate domain events and append them to the events file

Usage:
    python -m fixture_etl.import_fixtures \\
        --db-dsn "$DB_DSN" \\
        --csv-path "uploads/fixtures_2025.csv" \\
        --season-id "6c1f0e1e-7d7b-4a55-9a43-0b8f3c2d4e11" \\
        --violations-path "artifacts/rejects/fixture_violations.csv"
"""

from __future__ import annotations

import json
import sys
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Any

import click
import psycopg

from fixture_etl.context_loader import CONTEXT_LOOKUP_COUNT, gather_lookups
from fixture_etl.decode import decode_upload_file
from fixture_etl.events import emit_events, generate_events
from fixture_etl.models import (
    FILE_FORMAT,
    FixtureRow,
    PersistResult,
    ValidationViolation,
)
from fixture_etl.persist import persist_accepted
from fixture_etl.repository import FixtureStore, PostgresFixtureStore
from fixture_etl.shared import (
    CollaboratorError,
    DecodeError,
    EventWriter,
    RunCounters,
    ViolationWriter,
    build_run_report,
    write_run_report,
)
from fixture_etl.upload_policy import (
    DEFAULT_POLICY_PATH,
    UploadPolicy,
    UploadPolicyValidationError,
    load_upload_policy,
)
from fixture_etl.validation_engine import validate_upload


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------

@dataclass
class UploadOutcome:
    violations: list[ValidationViolation] = field(default_factory=list)
    persist_result: PersistResult | None = None
    events: list[dict[str, Any]] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return not self.violations and self.persist_result is not None


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------

def run_fixture_upload(
    store: FixtureStore,
    conn: psycopg.Connection,
    rows: list[FixtureRow],
    season_id: str,
    policy: UploadPolicy,
    counters: RunCounters,
    run_id: str,
    event_writer: EventWriter | None = None,
    today: date | None = None,
    dry_run: bool = False,
) -> UploadOutcome:
    """Validate, persist and announce one upload.

    Raises:
        CollaboratorError: A lookup failed before anything was written.
        PersistenceError: The write transaction failed and was rolled back.
    """
    counters.rows_read += len(rows)

    if len(rows) > policy.max_rows:
        violation = ValidationViolation(
            type=FILE_FORMAT,
            message=f"Upload has {len(rows)} rows; the limit is {policy.max_rows}",
        )
        counters.count_violations([violation])
        return UploadOutcome(violations=[violation])

    result = validate_upload(store, rows, season_id, today=today)
    counters.context_lookups += CONTEXT_LOOKUP_COUNT
    if not result.ok:
        counters.count_violations(result.violations)
        return UploadOutcome(violations=result.violations)

    accepted = result.accepted_rows_by_grade or {}
    counters.rows_accepted += len(rows)
    grade_ids = list(accepted)

    lookups = gather_lookups({
        "fixture_existence": lambda: store.fetch_fixture_existence_by_grade_ids(grade_ids),
        "existing_games": lambda: store.fetch_games_by_grade_ids(grade_ids),
        "competition": lambda: store.fetch_competition_by_season_id(season_id),
        "existing_rounds": lambda: store.fetch_existing_rounds_by_grade_ids(grade_ids),
    })
    competition = lookups["competition"]
    if competition is not None:
        competition_type = competition.type
    else:
        competition_type = policy.default_competition_type
        counters.warnings.append(
            f"season {season_id} has no competition; using {competition_type}"
        )

    def persist() -> PersistResult:
        return persist_accepted(
            store, conn, accepted, competition_type, policy.game_id_namespace,
            counters, existing_rounds_by_grade=lookups["existing_rounds"],
        )

    if dry_run:
        with conn.transaction() as tx:
            persist_result = persist()
            raise psycopg.Rollback(tx)
    else:
        persist_result = persist()

    events = generate_events(
        persist_result, lookups["existing_games"], lookups["fixture_existence"]
    )
    if event_writer is not None and not dry_run:
        counters.events_emitted += emit_events(event_writer, events, run_id)

    return UploadOutcome(persist_result=persist_result, events=events)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

@click.command()
@click.option("--db-dsn", required=True, help="PostgreSQL DSN")
@click.option("--csv-path", required=True, type=click.Path(), help="Fixture upload CSV")
@click.option("--season-id", required=True, help="Season the fixtures belong to")
@click.option(
    "--policy-file",
    default=str(DEFAULT_POLICY_PATH),
    type=click.Path(),
    show_default=True,
    help="Upload policy YAML",
)
@click.option(
    "--violations-path",
    default="./artifacts/rejects/fixture_violations.csv",
    show_default=True,
)
@click.option("--events-path", default=None, type=click.Path(), help="Events JSONL (default: ./artifacts/events/<run_id>.jsonl)")
@click.option("--dry-run", is_flag=True, default=False)
@click.option("--run-id", default=None, help="Override UUID for log correlation")
@click.option(
    "--as-of",
    default=None,
    type=click.DateTime(formats=["%Y-%m-%d"]),
    help="Reference date for the past-date rule (default: today)",
)
def main(
    db_dsn: str,
    csv_path: str,
    season_id: str,
    policy_file: str,
    violations_path: str,
    events_path: str | None,
    dry_run: bool,
    run_id: str | None,
    as_of: datetime | None,
) -> None:
    """Bulk fixture upload CLI."""
    run_id = run_id or str(uuid.uuid4())
    started_at = datetime.utcnow().isoformat()
    counters = RunCounters()

    click.echo(f"[{run_id}] Starting fixture upload (dry_run={dry_run})")

    try:
        policy = load_upload_policy(Path(policy_file))
    except (FileNotFoundError, UploadPolicyValidationError) as exc:
        click.echo(f"[{run_id}] FATAL: upload policy: {exc}", err=True)
        sys.exit(1)

    try:
        rows = decode_upload_file(Path(csv_path))
    except (FileNotFoundError, DecodeError) as exc:
        click.echo(f"[{run_id}] FATAL: cannot decode {csv_path}: {exc}", err=True)
        sys.exit(1)

    click.echo(f"[{run_id}] Decoded {len(rows)} rows for season {season_id}")

    try:
        conn = psycopg.connect(db_dsn, autocommit=False)
    except psycopg.OperationalError as exc:
        click.echo(f"[{run_id}] FATAL: cannot connect to database: {exc}", err=True)
        sys.exit(1)

    store = PostgresFixtureStore(db_dsn)
    violations = ViolationWriter(Path(violations_path))
    events = EventWriter(Path(events_path or f"./artifacts/events/{run_id}.jsonl"))
    outcome: UploadOutcome | None = None
    try:
        outcome = run_fixture_upload(
            store, conn, rows, season_id, policy, counters, run_id,
            event_writer=events,
            today=as_of.date() if as_of else None,
            dry_run=dry_run,
        )
        violations.write_all(outcome.violations)
    except CollaboratorError as exc:
        counters.db_phase_errors += 1
        counters.warnings.append(str(exc))
        click.echo(f"[{run_id}] ERROR: {exc}", err=True)
    finally:
        conn.close()
        violations.close()
        events.close()

    click.echo(build_run_report(counters, dry_run=dry_run))
    report_path = write_run_report(
        run_id, started_at, dry_run,
        {
            "csv_path": csv_path,
            "season_id": season_id,
            "policy_version": policy.version,
            "policy_hash": policy.yaml_hash,
        },
        counters,
    )
    click.echo(f"[{run_id}] Run report: {report_path}")

    if outcome is None:
        click.echo(f"[{run_id}] Upload failed; nothing persisted", err=True)
        sys.exit(1)
    if outcome.violations:
        click.echo(
            f"[{run_id}] Upload rejected with {len(outcome.violations)} violation(s); "
            f"see {violations_path}",
            err=True,
        )
        sys.exit(1)

    click.echo(json.dumps(
        {
            "grade_ids": outcome.persist_result.grade_ids,
            "team_ids": outcome.persist_result.team_ids,
            "game_ids": outcome.persist_result.game_ids,
        },
        indent=2,
    ))
    click.echo(f"[{run_id}] Done.")


if __name__ == "__main__":
    main()
