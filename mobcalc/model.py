"""Mobilization cost derivation engine.

Every function takes a canonical scenario (see ``mobcalc.schema``) and returns
fresh values without touching its input. Each subtotal can be computed on its
own; ``run_model`` composes them into the layered grand total.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import pandas as pd

from mobcalc.currency import convert_total
from mobcalc.numeric import num


@dataclass(frozen=True)
class RoleCost:
    id: str
    role: str
    qty: float
    base_per_head: float
    overtime_per_head: float
    weekend_premium_per_head: float
    travel_per_head: float
    per_head: float
    total: float


@dataclass(frozen=True)
class CostTotals:
    max_days: float
    airfare_total: float
    visa_total: float
    security_total: float
    insurance_total: float
    vsi_total: float
    personal_tax_total: float
    car_fuel_cost: float
    car_rental: float
    local_transport_total: float
    hotel_total: float
    meals_total: float
    laundry_total: float
    incidentals_total: float
    per_diem_total: float
    labor_breakdown: tuple[RoleCost, ...]
    labor_total: float
    travel_fixed_total: float
    taxable_base: float
    taxes_total: float
    subtotal: float
    contingency_total: float
    grand_total_base: float
    converted_total: float | None


def max_days(scenario: dict) -> float:
    """Shared mobilization window: the longest on-site period of any role."""
    return max((num(item.get("onsiteDays")) for item in scenario["staffing"]), default=0.0)


# Travel, visas, security and insurance.


def airfare_total(scenario: dict) -> float:
    return sum((num(leg.get("airfare")) for leg in scenario["routing"]["legs"]), 0.0)


def visa_total(scenario: dict) -> float:
    vs = scenario["visasSecurity"]
    return num(vs.get("visaCost")) + num(vs.get("workPermitCost"))


def security_total(scenario: dict) -> float:
    return num(scenario["visasSecurity"].get("securityCost"))


def insurance_total(scenario: dict) -> float:
    ins = scenario["insurance"]
    return num(ins.get("travelPolicy")) + num(ins.get("extraFixed")) + num(ins.get("healthPerDay")) * max_days(scenario)


def vsi_total(scenario: dict) -> float:
    return visa_total(scenario) + security_total(scenario) + insurance_total(scenario)


def personal_tax_total(scenario: dict) -> float:
    pt = scenario.get("personalTax") or {}
    return num(pt.get("originConsulting")) + num(pt.get("destinationConsulting"))


# Local transport.


def car_fuel_cost(scenario: dict) -> float:
    lt = scenario["localTransport"]
    return num(lt.get("distanceKm")) * (num(lt.get("consumptionLPer100")) / 100) * num(lt.get("fuelPricePerL"))


def car_rental(scenario: dict) -> float:
    lt = scenario["localTransport"]
    if not lt.get("useCar"):
        return 0.0
    return num(lt.get("carDays")) * num(lt.get("carDailyRate"))


def local_transport_total(scenario: dict) -> float:
    lt = scenario["localTransport"]
    total = num(lt.get("trainCost"))
    if lt.get("useCar"):
        total += (
            car_rental(scenario)
            + car_fuel_cost(scenario)
            + num(lt.get("tolls"))
            + num(lt.get("parking"))
            + num(lt.get("carExtraFees"))
        )
    return total


# Per-diem allowances.


def hotel_total(scenario: dict) -> float:
    return num(scenario["allowances"].get("hotelPerNight")) * max_days(scenario)


def meals_total(scenario: dict) -> float:
    return num(scenario["allowances"].get("mealsPerDay")) * max_days(scenario)


def laundry_total(scenario: dict) -> float:
    # Partial weeks are billed as full weeks.
    weeks = math.ceil(max_days(scenario) / 7)
    return weeks * num(scenario["allowances"].get("laundryPerWeek"))


def incidentals_total(scenario: dict) -> float:
    return num(scenario["allowances"].get("incidentalsPerDay")) * max_days(scenario)


def per_diem_total(scenario: dict) -> float:
    return hotel_total(scenario) + meals_total(scenario) + laundry_total(scenario) + incidentals_total(scenario)


# Staffing.


def staffing_item_cost(item: dict) -> RoleCost:
    days = num(item.get("onsiteDays"))
    hours_per_day = num(item.get("onsiteHoursPerDay"))
    hourly = num(item.get("billableHourly"))

    base_per_head = days * hours_per_day * hourly
    overtime_per_head = days * num(item.get("overtimeHoursPerDay")) * hourly * num(item.get("overtimeMultiplier"))
    weekend_hours = num(item.get("weekendDays")) * hours_per_day
    weekend_premium_per_head = weekend_hours * hourly * max(num(item.get("weekendMultiplier")) - 1, 0.0)
    travel_per_head = num(item.get("travelHourly")) * num(item.get("travelHours")) if item.get("includeTravelTime") else 0.0
    per_head = base_per_head + overtime_per_head + weekend_premium_per_head + travel_per_head
    qty = num(item.get("qty"))
    return RoleCost(
        id=str(item.get("id", "")),
        role=str(item.get("role", "")),
        qty=qty,
        base_per_head=base_per_head,
        overtime_per_head=overtime_per_head,
        weekend_premium_per_head=weekend_premium_per_head,
        travel_per_head=travel_per_head,
        per_head=per_head,
        total=per_head * qty,
    )


def labor_breakdown(scenario: dict) -> tuple[RoleCost, ...]:
    return tuple(staffing_item_cost(item) for item in scenario["staffing"])


def labor_total(scenario: dict) -> float:
    return sum((r.total for r in labor_breakdown(scenario)), 0.0)


def run_model(scenario: dict) -> CostTotals:
    """Compute every subtotal, taxes, contingency and the grand total."""
    roles = labor_breakdown(scenario)
    labor = sum((r.total for r in roles), 0.0)
    airfare = airfare_total(scenario)
    visa = visa_total(scenario)
    security = security_total(scenario)
    insurance = insurance_total(scenario)
    vsi = visa + security + insurance
    personal_tax = personal_tax_total(scenario)
    local_transport = local_transport_total(scenario)
    hotel = hotel_total(scenario)
    meals = meals_total(scenario)
    laundry = laundry_total(scenario)
    incidentals = incidentals_total(scenario)
    per_diem = hotel + meals + laundry + incidentals

    travel_fixed = airfare + vsi + local_transport
    taxes = scenario["taxes"]
    if taxes.get("applyTaxToLaborOnly"):
        taxable_base = labor
    else:
        taxable_base = labor + per_diem + travel_fixed + personal_tax
    taxes_total = taxable_base * (num(taxes.get("localTaxPct")) / 100) + num(taxes.get("withholdingFixed"))
    # Tax first, then contingency on the tax-inclusive subtotal.
    subtotal = labor + per_diem + travel_fixed + personal_tax + taxes_total
    contingency = subtotal * (num(scenario.get("contingencyPct")) / 100)
    grand_total = subtotal + contingency

    return CostTotals(
        max_days=max_days(scenario),
        airfare_total=airfare,
        visa_total=visa,
        security_total=security,
        insurance_total=insurance,
        vsi_total=vsi,
        personal_tax_total=personal_tax,
        car_fuel_cost=car_fuel_cost(scenario),
        car_rental=car_rental(scenario),
        local_transport_total=local_transport,
        hotel_total=hotel,
        meals_total=meals,
        laundry_total=laundry,
        incidentals_total=incidentals,
        per_diem_total=per_diem,
        labor_breakdown=roles,
        labor_total=labor,
        travel_fixed_total=travel_fixed,
        taxable_base=taxable_base,
        taxes_total=taxes_total,
        subtotal=subtotal,
        contingency_total=contingency,
        grand_total_base=grand_total,
        converted_total=convert_total(grand_total, scenario["currency"]),
    )


def summary_rows(totals: CostTotals) -> list[tuple[str, float]]:
    """Display/export categories, ending with the grand total."""
    return [
        ("Staffing", totals.labor_total),
        ("Visas/Security/Insurance", totals.vsi_total),
        ("Allowances", totals.per_diem_total),
        ("Airfare", totals.airfare_total),
        ("Local transport", totals.local_transport_total),
        ("Personal tax support", totals.personal_tax_total),
        ("Taxes + Contingency", totals.taxes_total + totals.contingency_total),
        ("Grand total", totals.grand_total_base),
    ]


def totals_frame(totals: CostTotals) -> pd.DataFrame:
    return pd.DataFrame(summary_rows(totals), columns=["Category", "Amount"])


def labor_frame(totals: CostTotals) -> pd.DataFrame:
    rows = [
        {
            "Role": r.role,
            "Qty": r.qty,
            "Base": r.base_per_head,
            "Overtime": r.overtime_per_head,
            "Weekend Premium": r.weekend_premium_per_head,
            "Travel Time": r.travel_per_head,
            "Per Head": r.per_head,
            "Total": r.total,
        }
        for r in totals.labor_breakdown
    ]
    return pd.DataFrame(rows, columns=["Role", "Qty", "Base", "Overtime", "Weekend Premium", "Travel Time", "Per Head", "Total"])
