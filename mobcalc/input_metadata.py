"""Per-field guidance ranges for widget help text and out-of-range advisories."""

from __future__ import annotations

from typing import Any

from mobcalc.numeric import num


# Keys are dotted scenario paths; "staffing.*" applies to every staffing item.
INPUT_GUIDANCE: dict[str, dict[str, Any]] = {
    "staffing.billableHourly": {"min": 40.0, "max": 400.0, "note": "Typical billable rate for field engineering staff."},
    "staffing.onsiteHoursPerDay": {"min": 4.0, "max": 12.0, "note": "Regular on-site hours billed per working day."},
    "staffing.onsiteDays": {"min": 1.0, "max": 180.0, "note": "Longest on-site period sets the shared per-diem duration."},
    "staffing.travelHours": {"min": 0.0, "max": 72.0, "note": "Door-to-door travel time billed per head for the round trip."},
    "staffing.overtimeHoursPerDay": {"min": 0.0, "max": 4.0, "note": "Overtime hours billed on top of regular hours."},
    "staffing.overtimeMultiplier": {"min": 1.0, "max": 2.5, "note": "Overtime rate as a multiple of the base hourly rate."},
    "staffing.weekendMultiplier": {"min": 1.0, "max": 3.0, "note": "Only the premium above 1.0 is added for weekend hours."},
    "insurance.healthPerDay": {"min": 0.0, "max": 50.0, "note": "Daily health cover applied over the shared duration."},
    "localTransport.consumptionLPer100": {"min": 3.0, "max": 20.0, "note": "Rental car fuel consumption in litres per 100 km."},
    "allowances.hotelPerNight": {"min": 40.0, "max": 600.0, "note": "Nightly hotel allowance."},
    "allowances.mealsPerDay": {"min": 10.0, "max": 200.0, "note": "Daily meal allowance."},
    "allowances.laundryPerWeek": {"min": 0.0, "max": 120.0, "note": "Billed per started week."},
    "taxes.localTaxPct": {"min": 0.0, "max": 40.0, "note": "Local tax or VAT percentage on the taxable base."},
    "contingencyPct": {"min": 0.0, "max": 25.0, "note": "Buffer applied to the tax-inclusive subtotal."},
    "currency.rateBaseToTarget": {"min": 0.0001, "max": 100000.0, "note": "Units of target currency per one unit of base."},
}


def _fmt(v: float) -> str:
    if abs(v - round(v)) < 1e-9:
        return f"{int(round(v))}"
    return f"{v:.4f}".rstrip("0").rstrip(".")


def help_with_guidance(key: str, base_help: str) -> str:
    g = INPUT_GUIDANCE.get(key)
    if not g:
        return base_help
    return f"{base_help} Reasonable range: {_fmt(g['min'])} to {_fmt(g['max'])}. {g['note']}"


def _values_for_key(scenario: dict, key: str) -> list[tuple[str, Any]]:
    section, _, field = key.partition(".")
    if section == "staffing":
        return [
            (f"{item.get('role') or 'Role'} {field}", item.get(field))
            for item in scenario.get("staffing", [])
            if field in item
        ]
    if not field:
        return [(key, scenario[key])] if key in scenario else []
    record = scenario.get(section)
    if isinstance(record, dict) and field in record:
        return [(key, record[field])]
    return []


def advisory_warnings(scenario: dict) -> list[str]:
    """Fields outside their recommended range. Advisory only."""
    warnings: list[str] = []
    for key, g in INPUT_GUIDANCE.items():
        if key == "currency.rateBaseToTarget" and not scenario.get("currency", {}).get("showTarget"):
            continue
        for label, raw in _values_for_key(scenario, key):
            v = num(raw)
            if v < g["min"] or v > g["max"]:
                warnings.append(f"{label}={_fmt(v)} is outside the recommended range [{_fmt(g['min'])}, {_fmt(g['max'])}].")
    return warnings
