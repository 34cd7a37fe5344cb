"""Aggregation identity checks over computed cost totals."""

from __future__ import annotations

from typing import Any

import numpy as np

from mobcalc.model import CostTotals


def _finding(check: str, lhs_name: str, rhs_name: str, lhs: float, rhs: float) -> dict[str, Any]:
    return {
        "Check": check,
        "Abs Delta": float(abs(lhs - rhs)),
        "LHS": lhs_name,
        "RHS": rhs_name,
        "LHS Value": float(lhs),
        "RHS Value": float(rhs),
    }


def _check_identity(
    findings: list[dict[str, Any]],
    check_name: str,
    lhs_name: str,
    rhs_name: str,
    lhs: float,
    rhs: float,
    tol: float,
) -> None:
    if not np.isclose(lhs, rhs, rtol=0.0, atol=float(tol)):
        findings.append(_finding(check_name, lhs_name, rhs_name, lhs, rhs))


def run_integrity_checks(totals: CostTotals, apply_tax_to_labor_only: bool, tol: float = 1e-6) -> list[dict[str, Any]]:
    """Return integrity findings (empty list means all checks passed)."""
    findings: list[dict[str, Any]] = []
    t = totals

    _check_identity(
        findings,
        "VSI identity",
        "VSI Total",
        "Visa + Security + Insurance",
        t.vsi_total,
        t.visa_total + t.security_total + t.insurance_total,
        tol,
    )
    _check_identity(
        findings,
        "Per diem identity",
        "Per Diem Total",
        "Hotel + Meals + Laundry + Incidentals",
        t.per_diem_total,
        t.hotel_total + t.meals_total + t.laundry_total + t.incidentals_total,
        tol,
    )
    _check_identity(
        findings,
        "Labor identity",
        "Labor Total",
        "Sum of role totals",
        t.labor_total,
        float(np.sum([r.total for r in t.labor_breakdown])) if t.labor_breakdown else 0.0,
        tol,
    )
    for r in t.labor_breakdown:
        _check_identity(
            findings,
            f"Role per-head identity ({r.role})",
            "Per Head",
            "Base + Overtime + Weekend + Travel",
            r.per_head,
            r.base_per_head + r.overtime_per_head + r.weekend_premium_per_head + r.travel_per_head,
            tol,
        )
    _check_identity(
        findings,
        "Travel fixed identity",
        "Travel Fixed Total",
        "Airfare + VSI + Local Transport",
        t.travel_fixed_total,
        t.airfare_total + t.vsi_total + t.local_transport_total,
        tol,
    )
    expected_base = (
        t.labor_total
        if apply_tax_to_labor_only
        else t.labor_total + t.per_diem_total + t.travel_fixed_total + t.personal_tax_total
    )
    _check_identity(findings, "Taxable base selection", "Taxable Base", "Selected cost layers", t.taxable_base, expected_base, tol)
    _check_identity(
        findings,
        "Subtotal identity",
        "Subtotal",
        "Labor + Per Diem + Travel Fixed + Personal Tax + Taxes",
        t.subtotal,
        t.labor_total + t.per_diem_total + t.travel_fixed_total + t.personal_tax_total + t.taxes_total,
        tol,
    )
    _check_identity(
        findings,
        "Grand total identity",
        "Grand Total",
        "Subtotal + Contingency",
        t.grand_total_base,
        t.subtotal + t.contingency_total,
        tol,
    )
    return findings
