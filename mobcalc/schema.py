"""Scenario shape validation, sanitization, and parse pipeline."""

from __future__ import annotations

import json
from copy import deepcopy
from dataclasses import dataclass, field
from typing import Any

from mobcalc.defaults import IdFactory, new_id


TEXT_FIELDS = {
    "visasSecurity": ("visaCost", "workPermitCost", "securityCost"),
    "insurance": ("travelPolicy", "healthPerDay", "extraFixed"),
    "allowances": ("hotelPerNight", "mealsPerDay", "laundryPerWeek", "incidentalsPerDay"),
}
PERSONAL_TAX_FIELDS = ("originConsulting", "destinationConsulting")


@dataclass
class ParseResult:
    scenario: dict | None
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.scenario is not None and not self.errors


def _is_record(value: Any) -> bool:
    return isinstance(value, dict)


def _check_text(errors: list[str], record: dict, section: str, key: str) -> None:
    if not isinstance(record.get(key), str):
        errors.append(f"{section}.{key} must be text.")


def _check_bool(errors: list[str], record: dict, section: str, key: str) -> None:
    if not isinstance(record.get(key), bool):
        errors.append(f"{section}.{key} must be a boolean.")


def _record_or_error(errors: list[str], candidate: dict, section: str) -> dict | None:
    value = candidate.get(section)
    if not _is_record(value):
        errors.append(f"{section} is missing or not an object.")
        return None
    return value


def _validate_staffing(errors: list[str], staffing: Any) -> None:
    if not isinstance(staffing, list):
        errors.append("staffing is missing or not a list.")
        return
    for idx, item in enumerate(staffing):
        if not _is_record(item):
            errors.append(f"staffing[{idx}] is not an object.")
            continue
        _check_text(errors, item, f"staffing[{idx}]", "id")
        _check_text(errors, item, f"staffing[{idx}]", "role")


def _validate_routing(errors: list[str], candidate: dict) -> None:
    routing = _record_or_error(errors, candidate, "routing")
    if routing is None:
        return
    _check_text(errors, routing, "routing", "origin")
    _check_text(errors, routing, "routing", "destination")
    legs = routing.get("legs")
    if not isinstance(legs, list):
        errors.append("routing.legs is missing or not a list.")
        return
    for idx, leg in enumerate(legs):
        if not _is_record(leg):
            errors.append(f"routing.legs[{idx}] is not an object.")
            continue
        for key in ("id", "from", "to", "airfare"):
            _check_text(errors, leg, f"routing.legs[{idx}]", key)


def _validate_text_section(errors: list[str], candidate: dict, section: str) -> None:
    record = _record_or_error(errors, candidate, section)
    if record is None:
        return
    for key in TEXT_FIELDS[section]:
        _check_text(errors, record, section, key)


def validate_scenario(candidate: Any) -> list[str]:
    """Return rejection reasons for a candidate scenario (empty list means acceptable)."""
    if not _is_record(candidate):
        return ["Scenario is not a JSON object."]

    errors: list[str] = []

    meta = _record_or_error(errors, candidate, "meta")
    if meta is not None:
        _check_text(errors, meta, "meta", "title")
        _check_text(errors, meta, "meta", "notes")

    _validate_staffing(errors, candidate.get("staffing"))
    _validate_routing(errors, candidate)

    _validate_text_section(errors, candidate, "visasSecurity")
    _validate_text_section(errors, candidate, "insurance")

    transport = _record_or_error(errors, candidate, "localTransport")
    if transport is not None:
        _check_text(errors, transport, "localTransport", "trainCost")
        _check_bool(errors, transport, "localTransport", "useCar")

    _validate_text_section(errors, candidate, "allowances")

    taxes = _record_or_error(errors, candidate, "taxes")
    if taxes is not None:
        _check_text(errors, taxes, "taxes", "localTaxPct")
        _check_text(errors, taxes, "taxes", "withholdingFixed")
        _check_bool(errors, taxes, "taxes", "applyTaxToLaborOnly")

    if "personalTax" in candidate:
        personal_tax = candidate["personalTax"]
        if not _is_record(personal_tax):
            errors.append("personalTax must be an object when present.")
        else:
            for key in PERSONAL_TAX_FIELDS:
                _check_text(errors, personal_tax, "personalTax", key)

    if not isinstance(candidate.get("contingencyPct"), str):
        errors.append("contingencyPct must be text.")

    currency = _record_or_error(errors, candidate, "currency")
    if currency is not None:
        _check_text(errors, currency, "currency", "base")
        _check_bool(errors, currency, "currency", "showTarget")
        _check_text(errors, currency, "currency", "target")
        _check_text(errors, currency, "currency", "rateBaseToTarget")

    return errors


def is_scenario(candidate: Any) -> bool:
    return not validate_scenario(candidate)


def sanitize_scenario(scenario: dict, id_factory: IdFactory | None = None) -> dict:
    """Return a canonical copy of an already-validated scenario.

    Empty staffing/leg ids receive a fresh id from ``id_factory``; existing ids
    are kept. ``personalTax`` is always populated, defaulting missing or
    non-text sub-fields to ``"0"``. Applying this twice is a no-op.
    """
    make_id = id_factory or new_id
    out = deepcopy(scenario)

    out["staffing"] = [{**item, "id": item.get("id") or make_id()} for item in out["staffing"]]
    routing = out["routing"]
    routing["legs"] = [{**leg, "id": leg.get("id") or make_id()} for leg in routing["legs"]]

    personal_tax = out.get("personalTax")
    if not isinstance(personal_tax, dict):
        personal_tax = {}
    out["personalTax"] = {
        key: personal_tax[key] if isinstance(personal_tax.get(key), str) else "0" for key in PERSONAL_TAX_FIELDS
    }
    return out


def parse_scenario(candidate: Any, id_factory: IdFactory | None = None) -> ParseResult:
    """Validate then sanitize a candidate in one step."""
    errors = validate_scenario(candidate)
    if errors:
        return ParseResult(None, errors)
    return ParseResult(sanitize_scenario(candidate, id_factory=id_factory), [])


def parse_scenario_json(raw_json: str, id_factory: IdFactory | None = None) -> ParseResult:
    try:
        payload = json.loads(raw_json)
    except (TypeError, json.JSONDecodeError):
        return ParseResult(None, ["Could not parse scenario JSON."])
    return parse_scenario(payload, id_factory=id_factory)
