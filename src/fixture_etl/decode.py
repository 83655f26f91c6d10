"""fixture_etl.decode

CSV decoding for fixture uploads: bytes in, FixtureRow list out.

Expected header row (whitespace around names is ignored):
    Grade Code, Home Team, Away Team, Date, Round[, Game Type]

Cell content is not validated here; that is the row validator's job.
Every data line becomes a row, so reported row numbers match file lines
(header on line 1) unless the file contains fully empty lines, which the
csv module drops.
"""

from __future__ import annotations

import csv
import io
from pathlib import Path

from fixture_etl.models import FixtureRow
from fixture_etl.normalize import normalize_headers
from fixture_etl.row_validator import (
    COL_AWAY_TEAM,
    COL_DATE,
    COL_GAME_TYPE,
    COL_GRADE_CODE,
    COL_HOME_TEAM,
    COL_ROUND,
)
from fixture_etl.shared import DecodeError

REQUIRED_HEADERS = {COL_GRADE_CODE, COL_HOME_TEAM, COL_AWAY_TEAM, COL_DATE, COL_ROUND}


def decode_upload(data: bytes) -> list[FixtureRow]:
    """Decode a CSV upload.

    Raises:
        DecodeError: Not UTF-8, empty, or missing required headers.
    """
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"upload is not valid UTF-8: {exc}") from exc

    reader = csv.DictReader(io.StringIO(text, newline=""))
    raw_fieldnames = reader.fieldnames or []
    if not raw_fieldnames:
        raise DecodeError("upload is empty")
    headers = {k.strip() for k in raw_fieldnames if k is not None}
    missing = REQUIRED_HEADERS - headers
    if missing:
        raise DecodeError(f"missing headers after trim: {sorted(missing)}")

    rows: list[FixtureRow] = []
    for raw_row in reader:
        row = normalize_headers(raw_row)
        rows.append(FixtureRow(
            grade_code=row.get(COL_GRADE_CODE),
            home_team_name=row.get(COL_HOME_TEAM),
            away_team_name=row.get(COL_AWAY_TEAM),
            date=row.get(COL_DATE),
            round_number=row.get(COL_ROUND),
            game_type=row.get(COL_GAME_TYPE),
        ))
    return rows


def decode_upload_file(path: Path) -> list[FixtureRow]:
    return decode_upload(path.read_bytes())
