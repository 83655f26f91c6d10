"""fixture_etl.shared

Shared utilities used by the fixture import pipeline.
Includes the exception hierarchy, ViolationWriter / EventWriter, RunCounters,
and report-writing support.
"""

from __future__ import annotations

import csv
import json
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

from fixture_etl.models import (
    BUSINESS_RULE,
    DATA_INTEGRITY,
    FILE_FORMAT,
    ValidationViolation,
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class FixtureEtlError(Exception):
    """Base class for hard failures (rule violations are values, not errors)."""


class CollaboratorError(FixtureEtlError):
    """Raised when the store is unreachable or a lookup fails."""


class PersistenceError(CollaboratorError):
    """Raised after the fixture write transaction has been rolled back."""


class GradeNotFoundError(PersistenceError):
    """Raised when a validated grade id no longer matches a grade row."""


class DecodeError(FixtureEtlError):
    """Raised when an upload cannot be turned into fixture rows."""


# ---------------------------------------------------------------------------
# ViolationWriter
# ---------------------------------------------------------------------------

class ViolationWriter:
    """Lazy-open CSV writer for validation violations."""

    FIELDNAMES = ["type", "row", "column", "grade_id", "message"]

    def __init__(self, path: Path) -> None:
        self._path = path
        self._fh = None
        self._writer = None

    def write(self, violation: ValidationViolation) -> None:
        if self._fh is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self._path, "w", newline="", encoding="utf-8")
            self._writer = csv.DictWriter(
                self._fh, fieldnames=self.FIELDNAMES, extrasaction="ignore"
            )
            self._writer.writeheader()
        self._writer.writerow(violation.to_dict())
        self._fh.flush()

    def write_all(self, violations: list[ValidationViolation]) -> None:
        for v in violations:
            self.write(v)

    def close(self) -> None:
        if self._fh:
            self._fh.close()


# ---------------------------------------------------------------------------
# EventWriter
# ---------------------------------------------------------------------------

class EventWriter:
    """Lazy-open JSON-lines sink for domain events.

    Delivery to downstream consumers (queues, webhooks) reads this file.
    """

    def __init__(self, path: Path) -> None:
        self._path = path
        self._fh = None

    def emit(self, event: dict[str, Any]) -> None:
        if self._fh is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self._path, "a", encoding="utf-8")
        self._fh.write(json.dumps(event, default=str) + "\n")
        self._fh.flush()

    def close(self) -> None:
        if self._fh:
            self._fh.close()


# ---------------------------------------------------------------------------
# RunCounters
# ---------------------------------------------------------------------------

@dataclass
class RunCounters:
    rows_read: int = 0
    rows_accepted: int = 0
    violations_file_format: int = 0
    violations_business_rule: int = 0
    violations_data_integrity: int = 0
    context_lookups: int = 0
    grades_touched: int = 0
    rounds_upserted: int = 0
    games_upserted: int = 0
    teams_linked: int = 0
    events_emitted: int = 0
    db_phase_errors: int = 0
    warnings: list[str] = field(default_factory=list)

    @property
    def violations_total(self) -> int:
        return (
            self.violations_file_format
            + self.violations_business_rule
            + self.violations_data_integrity
        )

    def count_violations(self, violations: list[ValidationViolation]) -> None:
        for v in violations:
            if v.type == FILE_FORMAT:
                self.violations_file_format += 1
            elif v.type == BUSINESS_RULE:
                self.violations_business_rule += 1
            elif v.type == DATA_INTEGRITY:
                self.violations_data_integrity += 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_read": self.rows_read,
            "rows_accepted": self.rows_accepted,
            "violations_file_format": self.violations_file_format,
            "violations_business_rule": self.violations_business_rule,
            "violations_data_integrity": self.violations_data_integrity,
            "context_lookups": self.context_lookups,
            "grades_touched": self.grades_touched,
            "rounds_upserted": self.rounds_upserted,
            "games_upserted": self.games_upserted,
            "teams_linked": self.teams_linked,
            "events_emitted": self.events_emitted,
            "db_phase_errors": self.db_phase_errors,
            "warnings": self.warnings[:50],
        }


# ---------------------------------------------------------------------------
# Report writer
# ---------------------------------------------------------------------------

def write_run_report(
    run_id: str,
    started_at: str,
    dry_run: bool,
    source_paths: dict[str, Any],
    counters: RunCounters,
    report_dir: Path = Path("./artifacts/reports"),
) -> Path:
    report = {
        "run_id": run_id,
        "mode": "fixture_upload",
        "started_at": started_at,
        "finished_at": datetime.utcnow().isoformat(),
        "dry_run": dry_run,
        **source_paths,
        "counters": counters.to_dict(),
    }
    report_path = report_dir / f"{run_id}.json"
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(json.dumps(report, indent=2, default=str))
    return report_path


def build_run_report(counters: RunCounters, dry_run: bool = False) -> str:
    lines = [
        "=" * 60,
        "Fixture Upload Report",
        f"  dry_run: {dry_run}",
        "=" * 60,
        f"  rows read:            {counters.rows_read}",
        f"  rows accepted:        {counters.rows_accepted}",
        f"  violations:           {counters.violations_total}",
        f"    → file format:      {counters.violations_file_format}",
        f"    → business rule:    {counters.violations_business_rule}",
        f"    → data integrity:   {counters.violations_data_integrity}",
        f"  grades touched:       {counters.grades_touched}",
        f"  rounds upserted:      {counters.rounds_upserted}",
        f"  games upserted:       {counters.games_upserted}",
        f"  teams linked:         {counters.teams_linked}",
        f"  events emitted:       {counters.events_emitted}",
        f"DB errors:              {counters.db_phase_errors}",
    ]
    if counters.warnings:
        lines.append(f"\nWarnings ({len(counters.warnings)}):")
        for w in counters.warnings[:20]:
            lines.append(f"  {w}")
        if len(counters.warnings) > 20:
            lines.append(f"  ... and {len(counters.warnings) - 20} more")
    lines.append("=" * 60)
    return "\n".join(lines)
