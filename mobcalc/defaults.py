"""Default scenario template and reusable record factories."""

from __future__ import annotations

from typing import Callable
from uuid import uuid4


STORAGE_KEY = "mobilization_pages"
DEFAULT_TITLE = "mobilization"

CURRENCY_CODES = [
    "USD",
    "EUR",
    "GBP",
    "BRL",
    "MXN",
    "INR",
    "CNY",
    "JPY",
    "KRW",
    "AED",
    "SAR",
    "TRY",
    "CAD",
    "AUD",
    "ZAR",
]

IdFactory = Callable[[], str]


def new_id() -> str:
    return uuid4().hex


def default_staffing_item(id_factory: IdFactory | None = None, role: str = "Senior Field Engineer") -> dict:
    make_id = id_factory or new_id
    return {
        "id": make_id(),
        "role": role,
        "qty": 1,
        "billableHourly": "120",
        "onsiteHoursPerDay": 8,
        "onsiteDays": 10,
        "includeTravelTime": True,
        "travelHours": 20,
        "travelHourly": "120",
        "overtimeHoursPerDay": 0,
        "overtimeMultiplier": "1.5",
        "weekendDays": 0,
        "weekendMultiplier": "2.0",
    }


def new_leg(id_factory: IdFactory | None = None) -> dict:
    make_id = id_factory or new_id
    return {"id": make_id(), "from": "", "to": "", "purpose": "", "airfare": "0"}


def default_scenario(id_factory: IdFactory | None = None) -> dict:
    """Build a fresh scenario from the default template."""
    make_id = id_factory or new_id
    return {
        "meta": {"title": "Mobilization - Field Service (EN)", "notes": "Baseline estimate"},
        "staffing": [default_staffing_item(make_id)],
        "routing": {
            "origin": "São Paulo, BR",
            "intermediate": "Doha, QA",
            "destination": "Seoul, KR",
            "legs": [
                {"id": make_id(), "from": "GRU", "to": "DOH", "purpose": "Conn", "airfare": "900"},
                {"id": make_id(), "from": "DOH", "to": "ICN", "purpose": "Final", "airfare": "700"},
            ],
        },
        "visasSecurity": {"visaCost": "120", "workPermitCost": "0", "securityCost": "0"},
        "insurance": {"travelPolicy": "85", "healthPerDay": "6", "extraFixed": "0"},
        "localTransport": {
            "trainCost": "60",
            "useCar": False,
            "carDays": 0,
            "carDailyRate": "45",
            "distanceKm": "0",
            "fuelPricePerL": "1.8",
            "consumptionLPer100": "7.5",
            "tolls": "0",
            "parking": "0",
            "carExtraFees": "0",
        },
        "allowances": {"hotelPerNight": "140", "mealsPerDay": "65", "laundryPerWeek": "25", "incidentalsPerDay": "12"},
        "taxes": {"localTaxPct": "0", "withholdingFixed": "0", "applyTaxToLaborOnly": False},
        "personalTax": {"originConsulting": "0", "destinationConsulting": "0"},
        "contingencyPct": "7.5",
        "currency": {"base": "USD", "showTarget": False, "target": "EUR", "rateBaseToTarget": "0.92"},
    }
