"""fixture_etl.context_loader

Builds the ValidationContext for one upload with exactly three batched
lookups, dispatched concurrently:

  1. grades by code      (only the codes present in the upload)
  2. teams by season
  3. fixture existence by grade code

All three must finish before validation starts.  The first failure is
re-raised as CollaboratorError; the loader never inspects content.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Iterable

from fixture_etl.models import ValidationContext
from fixture_etl.repository import FixtureStore
from fixture_etl.shared import CollaboratorError

log = logging.getLogger(__name__)

CONTEXT_LOOKUP_COUNT = 3


def gather_lookups(calls: dict[str, Callable[[], Any]]) -> dict[str, Any]:
    """Run independent store lookups concurrently and wait for all of them.

    Returns results keyed like ``calls``.  If any lookup raises, the first
    failure (in submission order) is re-raised as CollaboratorError once
    every lookup has settled.
    """
    if not calls:
        return {}
    with ThreadPoolExecutor(max_workers=len(calls)) as pool:
        futures: dict[str, Future] = {name: pool.submit(fn) for name, fn in calls.items()}
    results: dict[str, Any] = {}
    for name, fut in futures.items():
        exc = fut.exception()
        if exc is not None:
            raise CollaboratorError(f"lookup_failed: {name}: {exc}") from exc
        results[name] = fut.result()
    return results


def load_validation_context(
    store: FixtureStore,
    season_id: str,
    grade_codes: Iterable[str],
) -> ValidationContext:
    """Load grades, teams and fixture existence for ``season_id``.

    Args:
        store: Lookup implementation (PostgresFixtureStore in production).
        season_id: Season the upload belongs to.
        grade_codes: Distinct grade codes referenced by the upload.

    Returns:
        A read-only ValidationContext.

    Raises:
        CollaboratorError: If any of the three lookups fails.
    """
    codes = sorted(set(grade_codes))
    results = gather_lookups({
        "grades_by_codes": lambda: store.fetch_grades_by_codes(season_id, codes),
        "teams_by_season": lambda: store.fetch_teams_by_season_id(season_id),
        "fixture_existence_by_code": lambda: store.fetch_fixture_existence_by_grade_code(
            season_id, codes
        ),
    })
    context = ValidationContext(
        season_id=season_id,
        grades=tuple(results["grades_by_codes"]),
        teams=tuple(results["teams_by_season"]),
        fixture_existence_by_grade_code=results["fixture_existence_by_code"],
    )
    log.debug(
        "validation context season_id=%s codes=%d grades=%d teams=%d",
        season_id, len(codes), len(context.grades), len(context.teams),
    )
    return context
