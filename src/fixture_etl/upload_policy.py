"""fixture_etl.upload_policy

YAML-based upload policy for the fixture import.

Responsibilities:
  - Load and validate config/fixture_upload.yml
  - Hash YAML content for the run report

Usage:
    from pathlib import Path
    from fixture_etl.upload_policy import load_upload_policy

    policy = load_upload_policy(Path("config/fixture_upload.yml"))
    if len(rows) > policy.max_rows:
        ...
"""

from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from fixture_etl.models import COMPETITION_TYPES

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

DEFAULT_POLICY_PATH = Path(__file__).parent.parent.parent / "config" / "fixture_upload.yml"

REQUIRED_YAML_KEYS = frozenset({
    "version",
    "max_rows",
    "default_competition_type",
    "game_id_namespace",
})


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class UploadPolicyValidationError(ValueError):
    """Raised when a YAML policy file fails schema validation."""


# ---------------------------------------------------------------------------
# UploadPolicy dataclass
# ---------------------------------------------------------------------------

@dataclass
class UploadPolicy:
    """Parsed, validated upload policy loaded from a YAML file."""

    version: str
    max_rows: int
    default_competition_type: str
    game_id_namespace: uuid.UUID
    yaml_hash: str = ""
    raw_yaml: str = field(repr=False, default="")


# ---------------------------------------------------------------------------
# Loader + validator
# ---------------------------------------------------------------------------

def load_upload_policy(yaml_path: Path = DEFAULT_POLICY_PATH) -> UploadPolicy:
    """Load, validate, and return an UploadPolicy from a YAML file.

    Raises:
        UploadPolicyValidationError: If any required field is missing or invalid.
        FileNotFoundError: If the YAML file does not exist.
    """
    raw = yaml_path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw)
    return policy_from_dict(data, raw)


def policy_from_dict(data: Any, raw: str = "") -> UploadPolicy:
    validate_upload_policy(data)
    return UploadPolicy(
        version=str(data["version"]),
        max_rows=int(data["max_rows"]),
        default_competition_type=data["default_competition_type"],
        game_id_namespace=uuid.UUID(str(data["game_id_namespace"])),
        yaml_hash=hashlib.sha256(raw.encode("utf-8")).hexdigest(),
        raw_yaml=raw,
    )


def validate_upload_policy(data: Any) -> None:
    """Raise UploadPolicyValidationError if data does not match the schema.

    Validates:
      - data is a mapping with every required key
      - max_rows is a positive integer
      - default_competition_type is DOMESTIC or TOURNAMENT
      - game_id_namespace parses as a UUID
    """
    if not isinstance(data, dict):
        raise UploadPolicyValidationError("policy file must contain a YAML mapping")

    missing = REQUIRED_YAML_KEYS - set(data.keys())
    if missing:
        raise UploadPolicyValidationError(f"missing required keys: {sorted(missing)}")

    max_rows = data["max_rows"]
    if isinstance(max_rows, bool) or not isinstance(max_rows, int) or max_rows < 1:
        raise UploadPolicyValidationError(
            f"max_rows must be a positive integer, got {max_rows!r}"
        )

    if data["default_competition_type"] not in COMPETITION_TYPES:
        raise UploadPolicyValidationError(
            f"default_competition_type must be one of {sorted(COMPETITION_TYPES)}, "
            f"got {data['default_competition_type']!r}"
        )

    try:
        uuid.UUID(str(data["game_id_namespace"]))
    except ValueError as exc:
        raise UploadPolicyValidationError(
            f"game_id_namespace is not a UUID: {data['game_id_namespace']!r}"
        ) from exc
