from __future__ import annotations

from itertools import count
from pathlib import Path

import pytest

import mobcalc.persistence as persistence
import mobcalc.runtime_logging as runtime_logging
from mobcalc.defaults import default_scenario
from mobcalc.schema import sanitize_scenario


@pytest.fixture
def id_factory():
    counter = count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def base_scenario(id_factory) -> dict:
    return sanitize_scenario(default_scenario(id_factory), id_factory=id_factory)


@pytest.fixture
def plain_scenario(base_scenario) -> dict:
    """One billable role, no travel extras, no tax/contingency."""
    scenario = base_scenario
    scenario["routing"]["legs"] = []
    scenario["visasSecurity"] = {"visaCost": "0", "workPermitCost": "0", "securityCost": "0"}
    scenario["insurance"] = {"travelPolicy": "0", "healthPerDay": "0", "extraFixed": "0"}
    scenario["localTransport"]["trainCost"] = "0"
    scenario["allowances"] = {"hotelPerNight": "0", "mealsPerDay": "0", "laundryPerWeek": "0", "incidentalsPerDay": "0"}
    scenario["contingencyPct"] = "0"
    return scenario


@pytest.fixture
def isolated_store(tmp_path, monkeypatch) -> Path:
    """Point scenario storage and runtime logs at a temporary directory."""
    monkeypatch.setattr(persistence, "STORE_DIR", Path(tmp_path))
    monkeypatch.setattr(persistence, "SCENARIO_STORE_FILE", Path(tmp_path) / "scenario_store.json")
    monkeypatch.setattr(runtime_logging, "EVENTS_DIR", Path(tmp_path))
    monkeypatch.setattr(runtime_logging, "EVENTS_FILE", Path(tmp_path) / runtime_logging.EVENTS_FILE_NAME)
    return Path(tmp_path)
