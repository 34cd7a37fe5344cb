from __future__ import annotations

from mobcalc.edits import set_field, update_staffing_item
from mobcalc.input_metadata import INPUT_GUIDANCE, advisory_warnings, help_with_guidance


def test_help_with_guidance_appends_range_and_note():
    text = help_with_guidance("allowances.laundryPerWeek", "Weekly laundry allowance.")
    assert text.startswith("Weekly laundry allowance.")
    assert "Reasonable range: 0 to 120." in text
    assert INPUT_GUIDANCE["allowances.laundryPerWeek"]["note"] in text


def test_help_without_guidance_is_unchanged():
    assert help_with_guidance("meta.title", "Scenario title.") == "Scenario title."


def test_default_scenario_has_no_advisories(base_scenario):
    assert advisory_warnings(base_scenario) == []


def test_out_of_range_values_produce_advisories(base_scenario):
    item_id = base_scenario["staffing"][0]["id"]
    scenario = update_staffing_item(base_scenario, item_id, "billableHourly", "900")
    scenario = set_field(scenario, "contingencyPct", "40")
    warnings = advisory_warnings(scenario)
    assert len(warnings) == 2
    assert any(w.startswith("Senior Field Engineer billableHourly=900") for w in warnings)
    assert any(w.startswith("contingencyPct=40") for w in warnings)


def test_rate_advisory_only_when_conversion_is_shown(base_scenario):
    scenario = set_field(base_scenario, "currency.rateBaseToTarget", "abc")
    assert advisory_warnings(scenario) == []
    scenario = set_field(scenario, "currency.showTarget", True)
    assert advisory_warnings(scenario) == ["currency.rateBaseToTarget=0 is outside the recommended range [0.0001, 100000]."]
