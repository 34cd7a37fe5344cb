from __future__ import annotations

from dataclasses import replace

import pytest

from mobcalc.edits import add_role, set_field, update_staffing_item
from mobcalc.integrity_checks import run_integrity_checks
from mobcalc.model import run_model


def test_integrity_checks_pass_for_base_scenario(base_scenario):
    findings = run_integrity_checks(run_model(base_scenario), apply_tax_to_labor_only=False)
    assert findings == []


@pytest.mark.parametrize("labor_only", [False, True])
def test_integrity_checks_pass_for_representative_scenarios(base_scenario, id_factory, labor_only):
    scenario = add_role(base_scenario, id_factory=id_factory)
    second = scenario["staffing"][1]["id"]
    scenario = update_staffing_item(scenario, second, "qty", 3)
    scenario = update_staffing_item(scenario, second, "weekendDays", 2)
    scenario = update_staffing_item(scenario, second, "overtimeHoursPerDay", 2)
    scenario = set_field(scenario, "localTransport.useCar", True)
    scenario = set_field(scenario, "localTransport.carDays", 12)
    scenario = set_field(scenario, "localTransport.distanceKm", "640")
    scenario = set_field(scenario, "taxes.localTaxPct", "12.5")
    scenario = set_field(scenario, "taxes.applyTaxToLaborOnly", labor_only)
    scenario = set_field(scenario, "personalTax.originConsulting", "300")

    findings = run_integrity_checks(run_model(scenario), apply_tax_to_labor_only=labor_only, tol=1e-6)
    assert findings == []


def test_integrity_checks_detect_identity_break(base_scenario):
    totals = run_model(base_scenario)
    broken = replace(totals, grand_total_base=totals.grand_total_base + 1.0)
    checks = {f["Check"] for f in run_integrity_checks(broken, apply_tax_to_labor_only=False)}
    assert checks == {"Grand total identity"}


def test_integrity_checks_detect_wrong_taxable_base(base_scenario):
    totals = run_model(base_scenario)
    finding = run_integrity_checks(totals, apply_tax_to_labor_only=True)
    assert [f["Check"] for f in finding] == ["Taxable base selection"]
    assert finding[0]["Abs Delta"] == pytest.approx(totals.taxable_base - totals.labor_total)
