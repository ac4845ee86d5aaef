"""Serialise planned updates into machine-readable formats."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

import yaml

from .models import PlannedUpdate, TsigKey


def plan_to_dict(updates: Sequence[PlannedUpdate], keys: Sequence[TsigKey], ttl: int) -> dict[str, Any]:
    """Create a dictionary describing the planned run."""
    return {
        "keys": [{"name": key.name, "algorithm": key.algorithm} for key in keys],
        "ttl": ttl,
        "updates": [update.to_dict() for update in updates],
    }


def plan_to_yaml(updates: Sequence[PlannedUpdate], keys: Sequence[TsigKey], ttl: int) -> str:
    """Return YAML representation of the planned run."""
    return yaml.safe_dump(plan_to_dict(updates, keys, ttl), sort_keys=False)


def plan_to_json(updates: Sequence[PlannedUpdate], keys: Sequence[TsigKey], ttl: int) -> str:
    """Return JSON representation of the planned run."""
    return json.dumps(plan_to_dict(updates, keys, ttl), indent=2)


def write_report(path: Path, content: str) -> None:
    """Write content to the given path, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
