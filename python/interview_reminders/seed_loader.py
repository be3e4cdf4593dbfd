"""Load and validate seed candidate rosters."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from .models import Candidate


_CANDIDATES = TypeAdapter(list[Candidate])


def load_seed_roster(seed_path: str | Path) -> list[Candidate]:
    """Load a JSON list of candidates from disk with strict validation."""
    resolved_path = Path(seed_path).expanduser().resolve()
    if not resolved_path.exists():
        raise RuntimeError(
            f"Seed roster file not found at '{resolved_path}'. "
            "Set SEED_ROSTER_PATH or provide a valid --seed-roster path."
        )

    try:
        with open(resolved_path, "r", encoding="utf-8") as seed_file:
            raw_candidates = json.load(seed_file)
    except OSError as exc:
        raise RuntimeError(
            f"Failed to read seed roster '{resolved_path}': {exc}"
        ) from exc
    except json.JSONDecodeError as exc:
        raise RuntimeError(
            f"Seed roster at '{resolved_path}' is not valid JSON: {exc}"
        ) from exc

    try:
        candidates = _CANDIDATES.validate_python(raw_candidates)
    except ValidationError as exc:
        raise RuntimeError(
            f"Seed roster validation failed for '{resolved_path}': {exc}"
        ) from exc

    ids = [candidate.id for candidate in candidates]
    if len(ids) != len(set(ids)):
        raise RuntimeError(f"Seed roster '{resolved_path}' has duplicate candidate ids")
    return candidates
