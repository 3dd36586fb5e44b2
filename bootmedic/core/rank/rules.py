"""Static remediation rule table, loaded once from package data."""

from __future__ import annotations

from collections.abc import Mapping
from functools import lru_cache
from importlib import resources
from types import MappingProxyType

import yaml

from bootmedic.core.errors import PolicyError
from bootmedic.models.verdict import PrimaryCause


@lru_cache(maxsize=1)
def remediation_table() -> Mapping[PrimaryCause, str]:
    """Recommended action per primary cause. Every cause must have an entry."""
    text = resources.files("bootmedic.data").joinpath("remediation.yaml").read_text(encoding="utf-8")
    data = yaml.safe_load(text) or {}
    actions = data.get("actions", {})

    table: dict[PrimaryCause, str] = {}
    for cause in PrimaryCause:
        action = actions.get(cause.name.lower())
        if not action:
            raise PolicyError(f"remediation.yaml has no action for {cause.name.lower()}")
        table[cause] = str(action)
    return MappingProxyType(table)


def recommended_action(cause: PrimaryCause) -> str:
    return remediation_table()[cause]
