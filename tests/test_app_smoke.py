from __future__ import annotations

import json
from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

import mobcalc.persistence as persistence
from mobcalc.currency import format_money
from mobcalc.defaults import STORAGE_KEY, default_scenario
from mobcalc.model import run_model
from mobcalc.schema import sanitize_scenario


APP_PATH = str(Path(__file__).resolve().parents[1] / "app.py")


def _widget_by_label(widgets, label: str):
    matches = [w for w in widgets if getattr(w, "label", "") == label]
    assert matches, f"Widget not found for label: {label}"
    return matches[0]


def _assert_no_app_exceptions(at: AppTest) -> None:
    assert len(at.exception) == 0


@pytest.fixture
def app(isolated_store) -> AppTest:
    at = AppTest.from_file(APP_PATH)
    at.run(timeout=180)
    _assert_no_app_exceptions(at)
    return at


def test_app_initial_run_has_no_exceptions(app):
    assert app.title[0].value == "Engineer Mobilization Calculator"
    assert app.session_state["scenario"]["meta"]["title"] == "Mobilization - Field Service (EN)"
    assert app.session_state["form_generation"] == 0


def test_editing_a_field_updates_and_persists_scenario(app, isolated_store):
    app.text_input(key="g0:contingencyPct").set_value("10")
    app.run(timeout=180)
    _assert_no_app_exceptions(app)

    assert app.session_state["scenario"]["contingencyPct"] == "10"
    stored = json.loads((isolated_store / "scenario_store.json").read_text(encoding="utf-8"))
    assert stored[STORAGE_KEY]["contingencyPct"] == "10"


def test_add_role_and_reset_flow(app):
    app.button(key="g0:add_role").click()
    app.run(timeout=180)
    _assert_no_app_exceptions(app)
    assert len(app.session_state["scenario"]["staffing"]) == 2

    _widget_by_label(app.button, "Reset to defaults").click()
    app.run(timeout=180)
    _assert_no_app_exceptions(app)
    assert len(app.session_state["scenario"]["staffing"]) == 1
    assert app.session_state["form_generation"] == 1


def test_show_converted_reveals_rate_input(app):
    app.checkbox(key="g0:currency.showTarget").check()
    app.run(timeout=180)
    _assert_no_app_exceptions(app)
    assert app.session_state["scenario"]["currency"]["showTarget"] is True
    assert app.text_input(key="g0:currency.rateBaseToTarget").value == "0.92"


def _seed_store(id_factory) -> dict:
    scenario = sanitize_scenario(default_scenario(id_factory), id_factory=id_factory)
    scenario["staffing"][0]["qty"] = 0
    scenario["staffing"][0]["onsiteDays"] = "12"
    assert persistence.save_active_scenario(scenario)
    return scenario


def test_first_render_leaves_loaded_scenario_untouched(isolated_store, id_factory):
    seeded = _seed_store(id_factory)
    stored_before = (isolated_store / "scenario_store.json").read_text(encoding="utf-8")

    at = AppTest.from_file(APP_PATH)
    at.run(timeout=180)
    _assert_no_app_exceptions(at)

    assert at.session_state["scenario"] == seeded
    assert (isolated_store / "scenario_store.json").read_text(encoding="utf-8") == stored_before
    expected = format_money(run_model(seeded).grand_total_base, "USD")
    assert _widget_by_label(at.metric, "Grand Total").value == expected


def test_number_widget_edit_commits_value(isolated_store, id_factory):
    seeded = _seed_store(id_factory)
    item_id = seeded["staffing"][0]["id"]

    at = AppTest.from_file(APP_PATH)
    at.run(timeout=180)
    at.number_input(key=f"g0:staffing.{item_id}.onsiteDays").set_value(15.0)
    at.run(timeout=180)
    _assert_no_app_exceptions(at)

    item = at.session_state["scenario"]["staffing"][0]
    assert item["onsiteDays"] == 15.0
    assert item["qty"] == 0
    stored = json.loads((isolated_store / "scenario_store.json").read_text(encoding="utf-8"))
    assert stored[STORAGE_KEY]["staffing"][0]["onsiteDays"] == 15.0
    expected = format_money(run_model(at.session_state["scenario"]).grand_total_base, "USD")
    assert _widget_by_label(at.metric, "Grand Total").value == expected
