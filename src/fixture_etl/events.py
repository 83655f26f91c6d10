"""fixture_etl.events

Domain events produced after a successful fixture write.

Order:
  CalculateLadder          one per grade
  GamesAllocated           games that existed before this upload (if any)
  GamesAllocationCreated   game ids written by this upload (if any)
  TeamUpdated              all team ids linked by this upload
  FixtureCreated/Updated   one per grade; Updated when the grade already
                           had fixtures before the upload
"""

from __future__ import annotations

from typing import Any, Mapping

from fixture_etl.models import ExistingGame, PersistResult
from fixture_etl.shared import EventWriter

CALCULATE_LADDER = "CalculateLadder"
GAMES_ALLOCATED = "GamesAllocated"
GAMES_ALLOCATION_CREATED = "GamesAllocationCreated"
TEAM_UPDATED = "TeamUpdated"
FIXTURE_CREATED = "FixtureCreated"
FIXTURE_UPDATED = "FixtureUpdated"


def fixture_webhook_events(
    grade_ids: list[str],
    has_fixture_by_grade_id: Mapping[str, bool],
) -> list[dict[str, Any]]:
    return [
        {
            "type": FIXTURE_UPDATED if has_fixture_by_grade_id.get(gid) else FIXTURE_CREATED,
            "grade_id": gid,
        }
        for gid in grade_ids
    ]


def generate_events(
    result: PersistResult,
    existing_games_by_grade: Mapping[str, list[ExistingGame]],
    has_fixture_by_grade_id: Mapping[str, bool],
) -> list[dict[str, Any]]:
    events: list[dict[str, Any]] = [
        {"type": CALCULATE_LADDER, "grade_id": gid} for gid in result.grade_ids
    ]

    existing_games = [g for games in existing_games_by_grade.values() for g in games]
    if existing_games:
        events.append({
            "type": GAMES_ALLOCATED,
            "games": [g.to_dict() for g in existing_games],
        })
    if result.game_ids:
        events.append({"type": GAMES_ALLOCATION_CREATED, "game_ids": list(result.game_ids)})

    events.append({"type": TEAM_UPDATED, "team_ids": list(result.team_ids)})
    events.extend(fixture_webhook_events(result.grade_ids, has_fixture_by_grade_id))
    return events


def emit_events(
    writer: EventWriter,
    events: list[dict[str, Any]],
    run_id: str,
) -> int:
    for event in events:
        writer.emit({"run_id": run_id, **event})
    return len(events)
