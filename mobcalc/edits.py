"""Pure scenario edit operations (previous scenario + change -> next scenario)."""

from __future__ import annotations

from copy import deepcopy
from typing import Any, Sequence

from mobcalc.defaults import IdFactory, default_staffing_item, new_leg


def _split_path(path: str | Sequence[str]) -> list[str]:
    if isinstance(path, str):
        parts = [p for p in path.split(".") if p]
    else:
        parts = [str(p) for p in path]
    if not parts:
        raise KeyError("Empty field path.")
    return parts


def set_field(scenario: dict, path: str | Sequence[str], value: Any) -> dict:
    """Return a copy of ``scenario`` with the record field at ``path`` replaced.

    Paths address record fields only (``"meta.title"``, ``("taxes", "localTaxPct")``,
    ``"contingencyPct"``); staffing items and legs are edited by id instead.
    """
    parts = _split_path(path)
    out = deepcopy(scenario)
    node = out
    for part in parts[:-1]:
        child = node.get(part) if isinstance(node, dict) else None
        if not isinstance(child, dict):
            raise KeyError(f"Unknown scenario path: {'.'.join(parts)}")
        node = child
    leaf = parts[-1]
    if leaf not in node and not (leaf == "intermediate" and parts[:-1] == ["routing"]):
        raise KeyError(f"Unknown scenario path: {'.'.join(parts)}")
    node[leaf] = deepcopy(value)
    return out


def _update_by_id(items: list[dict], item_id: str, field: str, value: Any) -> list[dict]:
    return [{**item, field: deepcopy(value)} if item.get("id") == item_id else item for item in items]


def update_staffing_item(scenario: dict, item_id: str, field: str, value: Any) -> dict:
    if field == "id":
        raise KeyError("Staffing item ids cannot be edited.")
    out = deepcopy(scenario)
    out["staffing"] = _update_by_id(out["staffing"], item_id, field, value)
    return out


def update_leg(scenario: dict, leg_id: str, field: str, value: Any) -> dict:
    if field == "id":
        raise KeyError("Leg ids cannot be edited.")
    out = deepcopy(scenario)
    out["routing"]["legs"] = _update_by_id(out["routing"]["legs"], leg_id, field, value)
    return out


def add_role(scenario: dict, id_factory: IdFactory | None = None) -> dict:
    out = deepcopy(scenario)
    out["staffing"] = [*out["staffing"], default_staffing_item(id_factory, role="Engineer")]
    return out


def remove_role(scenario: dict, item_id: str) -> dict:
    out = deepcopy(scenario)
    out["staffing"] = [item for item in out["staffing"] if item.get("id") != item_id]
    return out


def add_leg(scenario: dict, id_factory: IdFactory | None = None) -> dict:
    out = deepcopy(scenario)
    out["routing"]["legs"] = [*out["routing"]["legs"], new_leg(id_factory)]
    return out


def remove_leg(scenario: dict, leg_id: str) -> dict:
    out = deepcopy(scenario)
    out["routing"]["legs"] = [leg for leg in out["routing"]["legs"] if leg.get("id") != leg_id]
    return out
