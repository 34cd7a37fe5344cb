from __future__ import annotations

from copy import deepcopy

import pytest

from mobcalc.edits import add_leg, add_role, remove_leg, remove_role, set_field, update_leg, update_staffing_item
from mobcalc.schema import is_scenario


def test_set_field_returns_new_value_without_mutation(base_scenario):
    snapshot = deepcopy(base_scenario)
    out = set_field(base_scenario, "meta.title", "Busan retrofit")
    assert out["meta"]["title"] == "Busan retrofit"
    assert base_scenario == snapshot

    out = set_field(out, ("taxes", "applyTaxToLaborOnly"), True)
    assert out["taxes"]["applyTaxToLaborOnly"] is True
    out = set_field(out, "contingencyPct", "10")
    assert out["contingencyPct"] == "10"
    assert is_scenario(out)


def test_set_field_rejects_unknown_paths(base_scenario):
    with pytest.raises(KeyError):
        set_field(base_scenario, "meta.subtitle", "x")
    with pytest.raises(KeyError):
        set_field(base_scenario, "contingencyPct.value", "x")
    with pytest.raises(KeyError):
        set_field(base_scenario, "", "x")


def test_set_field_allows_optional_intermediate(base_scenario):
    del base_scenario["routing"]["intermediate"]
    out = set_field(base_scenario, "routing.intermediate", "Dubai, AE")
    assert out["routing"]["intermediate"] == "Dubai, AE"


def test_update_staffing_item_by_id(base_scenario):
    item_id = base_scenario["staffing"][0]["id"]
    out = update_staffing_item(base_scenario, item_id, "billableHourly", "150")
    assert out["staffing"][0]["billableHourly"] == "150"
    assert base_scenario["staffing"][0]["billableHourly"] == "120"

    unchanged = update_staffing_item(base_scenario, "missing", "role", "X")
    assert unchanged == base_scenario
    with pytest.raises(KeyError):
        update_staffing_item(base_scenario, item_id, "id", "new")


def test_update_leg_by_id(base_scenario):
    leg_id = base_scenario["routing"]["legs"][1]["id"]
    out = update_leg(base_scenario, leg_id, "airfare", "650")
    assert out["routing"]["legs"][1]["airfare"] == "650"
    assert base_scenario["routing"]["legs"][1]["airfare"] == "700"


def test_add_and_remove_role(base_scenario, id_factory):
    out = add_role(base_scenario, id_factory=id_factory)
    assert len(out["staffing"]) == 2
    new_item = out["staffing"][1]
    assert new_item["role"] == "Engineer"
    assert new_item["id"] not in {s["id"] for s in base_scenario["staffing"]}
    assert len(base_scenario["staffing"]) == 1

    out = remove_role(out, new_item["id"])
    assert out == base_scenario


def test_add_and_remove_leg(base_scenario, id_factory):
    out = add_leg(base_scenario, id_factory=id_factory)
    new_leg = out["routing"]["legs"][-1]
    assert new_leg["airfare"] == "0"
    assert new_leg["from"] == ""
    assert is_scenario(out)

    out = remove_leg(out, new_leg["id"])
    assert out == base_scenario
