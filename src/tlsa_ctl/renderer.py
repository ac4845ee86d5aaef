"""Render dry-run reports via Jinja2 templates."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from .models import PlannedUpdate, TsigKey
from .update import HMAC_ALGORITHMS

TEMPLATES_DIR = Path(__file__).parent / "templates"


def _key_to_template_data(key: TsigKey) -> dict[str, str]:
    """Describe a key without exposing its secret."""
    algorithm = HMAC_ALGORITHMS.get(key.algorithm)
    return {
        "name": key.name,
        "algorithm": algorithm.to_text(omit_final_dot=True) if algorithm else f"unknown algorithm {key.algorithm}",
    }


def render_plan(
    updates: Sequence[PlannedUpdate],
    keys: Sequence[TsigKey],
    ttl: int,
    template_name: str = "plan.j2",
) -> str:
    """Render the planned updates as human-readable text."""
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    template = env.get_template(template_name)
    text = template.render(
        keys=[_key_to_template_data(key) for key in keys],
        updates=[update.to_dict() for update in updates],
        ttl=ttl,
    )
    return text.strip() + "\n"
