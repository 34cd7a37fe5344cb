from __future__ import annotations

import json
from typing import Any, Sequence

import pandas as pd
import plotly.express as px
import streamlit as st

from mobcalc.currency import format_money
from mobcalc.defaults import CURRENCY_CODES, default_scenario
from mobcalc.edits import add_leg, add_role, remove_leg, remove_role, set_field, update_leg, update_staffing_item
from mobcalc.export import (
    BACKUP_MIME,
    SPREADSHEET_MIME,
    backup_file_name,
    build_backup_json,
    build_spreadsheet_bytes,
    spreadsheet_file_name,
)
from mobcalc.input_metadata import advisory_warnings, help_with_guidance
from mobcalc.integrity_checks import run_integrity_checks
from mobcalc.model import CostTotals, labor_frame, run_model, totals_frame
from mobcalc.numeric import num
from mobcalc.persistence import load_active_scenario, parse_backup_bytes, save_active_scenario, storage_root_path
from mobcalc.runtime_logging import (
    LEVELS,
    events_log_path,
    install_uncaught_exception_hook,
    level_counts,
    recent_events,
    record_event,
)


install_uncaught_exception_hook()


def _scenario() -> dict:
    return st.session_state["scenario"]


def _commit(next_scenario: dict) -> None:
    """Swap in the next scenario value and hand it to persistence."""
    st.session_state["scenario"] = next_scenario
    save_active_scenario(next_scenario)


def _replace_scenario(next_scenario: dict) -> None:
    # New widget keys so widgets pick up the replaced values instead of stale state.
    st.session_state["form_generation"] += 1
    _commit(next_scenario)


def _serialize_scenario(scenario: dict) -> str:
    return json.dumps(scenario, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


@st.cache_data(show_spinner=False)
def _run_model_cached(scenario_json: str) -> CostTotals:
    return run_model(json.loads(scenario_json))


def _totals() -> CostTotals:
    return _run_model_cached(_serialize_scenario(_scenario()))


def _wkey(*parts: Any) -> str:
    return f"g{st.session_state['form_generation']}:" + ".".join(str(p) for p in parts)


def _get_path(scenario: dict, path: Sequence[str]) -> Any:
    node: Any = scenario
    for part in path:
        node = node.get(part, "") if isinstance(node, dict) else ""
    return node


def _guided_help(path: str, base_help: str) -> str:
    return help_with_guidance(path, base_help)


def _text_field(container, label: str, path: Sequence[str], help_text: str = "") -> None:
    current = _get_path(_scenario(), path)
    current = current if isinstance(current, str) else ""
    dotted = ".".join(path)
    value = container.text_input(label, value=current, key=_wkey(dotted), help=_guided_help(dotted, help_text) or None)
    if value != current:
        _commit(set_field(_scenario(), path, value))


def _bool_field(container, label: str, path: Sequence[str], help_text: str = "") -> None:
    current = bool(_get_path(_scenario(), path))
    value = container.checkbox(label, value=current, key=_wkey(".".join(path)), help=help_text or None)
    if value != current:
        _commit(set_field(_scenario(), path, value))


def _on_number_change(path: Sequence[str], key: str) -> None:
    _commit(set_field(_scenario(), path, st.session_state[key]))


def _number_field(container, label: str, path: Sequence[str], help_text: str = "") -> None:
    # Commit from on_change only, so rendering a clamped or text value never rewrites the scenario.
    key = _wkey(".".join(path))
    container.number_input(
        label,
        min_value=0.0,
        value=max(0.0, num(_get_path(_scenario(), path))),
        step=1.0,
        key=key,
        help=help_text or None,
        on_change=_on_number_change,
        args=(tuple(path), key),
    )


def _currency_select(container, label: str, path: Sequence[str]) -> None:
    current = str(_get_path(_scenario(), path) or "USD")
    options = CURRENCY_CODES if current in CURRENCY_CODES else [current, *CURRENCY_CODES]
    value = container.selectbox(label, options=options, index=options.index(current), key=_wkey(".".join(path)))
    if value != current:
        _commit(set_field(_scenario(), path, value))


def _staffing_text(container, item: dict, label: str, field: str) -> None:
    current = item.get(field, "")
    current = current if isinstance(current, str) else str(current)
    value = container.text_input(
        label,
        value=current,
        key=_wkey("staffing", item["id"], field),
        help=_guided_help(f"staffing.{field}", "") or None,
    )
    if value != current:
        _commit(update_staffing_item(_scenario(), item["id"], field, value))


def _on_staffing_number_change(item_id: str, field: str, key: str) -> None:
    _commit(update_staffing_item(_scenario(), item_id, field, st.session_state[key]))


def _staffing_number(container, item: dict, label: str, field: str, *, min_value: float = 0.0) -> None:
    key = _wkey("staffing", item["id"], field)
    container.number_input(
        label,
        min_value=min_value,
        value=max(min_value, num(item.get(field, 0))),
        step=1.0,
        key=key,
        help=_guided_help(f"staffing.{field}", "") or None,
        on_change=_on_staffing_number_change,
        args=(item["id"], field, key),
    )


def _leg_text(container, leg: dict, label: str, field: str) -> None:
    current = leg.get(field) or ""
    value = container.text_input(label, value=current, key=_wkey("legs", leg["id"], field))
    if value != current:
        _commit(update_leg(_scenario(), leg["id"], field, value))


def _on_add_role() -> None:
    _commit(add_role(_scenario()))


def _on_remove_role(item_id: str) -> None:
    _commit(remove_role(_scenario(), item_id))


def _on_add_leg() -> None:
    _commit(add_leg(_scenario()))


def _on_remove_leg(leg_id: str) -> None:
    _commit(remove_leg(_scenario(), leg_id))


def _on_reset_defaults() -> None:
    previous = _scenario()
    _replace_scenario(default_scenario())
    record_event("INFO", "scenario_reset", "Scenario reset to defaults.", scenario=previous)


def _format_money_frame(df: pd.DataFrame, money_cols: list[str], code: str) -> pd.DataFrame:
    out = df.copy()
    for col in money_cols:
        out[col] = out[col].map(lambda x: format_money(x, code))
    return out


def _render_general() -> None:
    with st.container(border=True):
        st.subheader("General")
        c1, c2 = st.columns(2)
        _text_field(c1, "Activity / Task", ("meta", "title"), "Also used for export file names.")
        current_notes = _scenario()["meta"]["notes"]
        notes = c2.text_area("Notes", value=current_notes, key=_wkey("meta.notes"))
        if notes != current_notes:
            _commit(set_field(_scenario(), ("meta", "notes"), notes))


def _render_staffing(code: str) -> None:
    with st.container(border=True):
        h1, h2 = st.columns([4, 1])
        h1.subheader("Staffing (multiple roles)")
        h2.button("Add role", on_click=_on_add_role, key=_wkey("add_role"))
        for idx, item in enumerate(list(_scenario()["staffing"]), start=1):
            r1, r2 = st.columns([4, 1])
            r1.markdown(f"**Role #{idx}**")
            r2.button("Remove", on_click=_on_remove_role, args=(item["id"],), key=_wkey("rm_role", item["id"]))
            c1, c2, c3 = st.columns(3)
            _staffing_text(c1, item, "Role", "role")
            _staffing_number(c2, item, "Qty", "qty", min_value=1.0)
            _staffing_text(c3, item, "Hourly (base)", "billableHourly")
            _staffing_number(c1, item, "Hours/day", "onsiteHoursPerDay")
            _staffing_number(c2, item, "On-site days", "onsiteDays")
            current_travel = bool(item.get("includeTravelTime"))
            bill_travel = c3.checkbox("Bill travel time", value=current_travel, key=_wkey("staffing", item["id"], "includeTravelTime"))
            if bill_travel != current_travel:
                _commit(update_staffing_item(_scenario(), item["id"], "includeTravelTime", bill_travel))
            _staffing_number(c1, item, "Travel hours (total)", "travelHours")
            _staffing_text(c2, item, "Travel hourly rate", "travelHourly")
            _staffing_number(c3, item, "Overtime hours/day", "overtimeHoursPerDay")
            _staffing_text(c1, item, "Overtime multiplier", "overtimeMultiplier")
            _staffing_number(c2, item, "Weekend days", "weekendDays")
            _staffing_text(c3, item, "Weekend multiplier", "weekendMultiplier")
            st.divider()
        st.caption(f"Staffing total: {format_money(_totals().labor_total, code)}")


def _render_routing(code: str) -> None:
    with st.container(border=True):
        h1, h2 = st.columns([4, 1])
        h1.subheader("Routing & Airfare")
        h2.button("Add leg", on_click=_on_add_leg, key=_wkey("add_leg"))
        c1, c2, c3 = st.columns(3)
        _text_field(c1, "Origin", ("routing", "origin"))
        _text_field(c2, "Intermediate", ("routing", "intermediate"))
        _text_field(c3, "Destination", ("routing", "destination"))
        for leg in list(_scenario()["routing"]["legs"]):
            l1, l2, l3, l4, l5 = st.columns([2, 2, 2, 2, 1])
            _leg_text(l1, leg, "From", "from")
            _leg_text(l2, leg, "To", "to")
            _leg_text(l3, leg, "Purpose", "purpose")
            _leg_text(l4, leg, "Airfare", "airfare")
            l5.button("Remove", on_click=_on_remove_leg, args=(leg["id"],), key=_wkey("rm_leg", leg["id"]))
        st.caption(f"Airfare total: {format_money(_totals().airfare_total, code)}")


def _render_vsi(code: str) -> None:
    with st.container(border=True):
        st.subheader("Visas, Security & Insurance")
        c1, c2, c3 = st.columns(3)
        _text_field(c1, "Visa", ("visasSecurity", "visaCost"))
        _text_field(c2, "Work permit", ("visasSecurity", "workPermitCost"))
        _text_field(c3, "Security", ("visasSecurity", "securityCost"))
        _text_field(c1, "Travel policy (fixed)", ("insurance", "travelPolicy"))
        _text_field(c2, "Health/day", ("insurance", "healthPerDay"))
        _text_field(c3, "Extra (fixed)", ("insurance", "extraFixed"))
        st.caption(f"Visas/Security/Insurance total: {format_money(_totals().vsi_total, code)}")


def _render_local_transport(code: str) -> None:
    with st.container(border=True):
        st.subheader("Local transportation")
        c1, c2 = st.columns(2)
        _text_field(c1, "Train/Metro/Bus", ("localTransport", "trainCost"))
        _bool_field(c2, "Use rental car", ("localTransport", "useCar"))
        if _scenario()["localTransport"].get("useCar"):
            d1, d2, d3 = st.columns(3)
            _number_field(d1, "Car days", ("localTransport", "carDays"))
            _text_field(d2, "Daily rate", ("localTransport", "carDailyRate"))
            _text_field(d3, "Distance (km)", ("localTransport", "distanceKm"))
            _text_field(d1, "Fuel (per L)", ("localTransport", "fuelPricePerL"))
            _text_field(d2, "Consumption (L/100km)", ("localTransport", "consumptionLPer100"))
            _text_field(d3, "Tolls", ("localTransport", "tolls"))
            _text_field(d1, "Parking", ("localTransport", "parking"))
            _text_field(d2, "Extra car fees", ("localTransport", "carExtraFees"))
        st.caption(f"Local transport total: {format_money(_totals().local_transport_total, code)}")


def _render_allowances(code: str) -> None:
    with st.container(border=True):
        st.subheader("Allowances (Per-diem)")
        c1, c2, c3, c4 = st.columns(4)
        _text_field(c1, "Hotel / night", ("allowances", "hotelPerNight"))
        _text_field(c2, "Meals / day", ("allowances", "mealsPerDay"))
        _text_field(c3, "Laundry / week", ("allowances", "laundryPerWeek"))
        _text_field(c4, "Others / day", ("allowances", "incidentalsPerDay"))
        st.caption(f"Allowances total: {format_money(_totals().per_diem_total, code)}")


def _render_personal_tax(code: str) -> None:
    with st.container(border=True):
        st.subheader("Tax - Personal")
        c1, c2 = st.columns(2)
        _text_field(c1, "Tax consulting fees Country Origin (year)", ("personalTax", "originConsulting"))
        _text_field(c2, "Tax consulting fees Country Destination (year)", ("personalTax", "destinationConsulting"))
        st.caption(f"Personal tax support total: {format_money(_totals().personal_tax_total, code)}")


def _render_taxes_and_currency() -> None:
    with st.container(border=True):
        st.subheader("Taxes, Contingency & Currency")
        c1, c2, c3 = st.columns(3)
        _text_field(c1, "Tax/VAT (%)", ("taxes", "localTaxPct"))
        _text_field(c2, "Withholding (fixed)", ("taxes", "withholdingFixed"))
        _bool_field(
            c3,
            "Apply tax to labor only",
            ("taxes", "applyTaxToLaborOnly"),
            "When enabled, per diem, travel and personal tax support are left out of the taxable base.",
        )
        _text_field(c1, "Contingency (%)", ("contingencyPct",))
        _currency_select(c2, "Base currency", ("currency", "base"))
        _bool_field(c3, "Show converted", ("currency", "showTarget"))
        currency = _scenario()["currency"]
        if currency.get("showTarget"):
            d1, d2 = st.columns(2)
            _currency_select(d1, "Target currency", ("currency", "target"))
            _text_field(d2, f"Rate (1 {currency['base']} = ? {currency['target']})", ("currency", "rateBaseToTarget"))
        totals = _totals()
        st.caption(
            f"Taxes & contingency total: {format_money(totals.taxes_total + totals.contingency_total, _scenario()['currency']['base'])}"
        )


def _render_summary() -> None:
    scenario = _scenario()
    totals = _totals()
    code = scenario["currency"]["base"]

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Grand Total", format_money(totals.grand_total_base, code))
    c2.metric("Staffing", format_money(totals.labor_total, code))
    c3.metric("Allowances", format_money(totals.per_diem_total, code))
    if totals.converted_total is not None:
        c4.metric(f"Converted ({scenario['currency']['target']})", format_money(totals.converted_total, scenario["currency"]["target"]))
    else:
        c4.metric("Mobilization Days", f"{totals.max_days:g}")

    left, right = st.columns(2)
    with left:
        st.markdown("**Totals**")
        st.dataframe(_format_money_frame(totals_frame(totals), ["Amount"], code), hide_index=True, width="stretch")
    with right:
        st.markdown("**Roles (summary)**")
        roles = labor_frame(totals)
        money_cols = ["Base", "Overtime", "Weekend Premium", "Travel Time", "Per Head", "Total"]
        st.dataframe(_format_money_frame(roles, money_cols, code), hide_index=True, width="stretch")

    composition = totals_frame(totals).iloc[:-1]
    composition = composition[composition["Amount"] > 0]
    if not composition.empty:
        fig = px.pie(composition, names="Category", values="Amount", title=f"Cost Composition ({code})", hole=0.45)
        st.plotly_chart(fig, width="stretch")


def _render_sidebar() -> None:
    scenario = _scenario()
    totals = _totals()
    with st.sidebar:
        st.header("Scenario")
        st.download_button(
            "Export to Excel",
            build_spreadsheet_bytes(scenario, totals),
            file_name=spreadsheet_file_name(scenario),
            mime=SPREADSHEET_MIME,
            help="Download totals, staffing, legs and general info as a spreadsheet-compatible file.",
        )
        st.download_button(
            "Save backup",
            build_backup_json(scenario),
            file_name=backup_file_name(scenario),
            mime=BACKUP_MIME,
            help="Download the full scenario as JSON for later reload.",
        )

        st.subheader("Load backup")
        backup_file = st.file_uploader("Backup JSON", type=["json"], key="backup_upload")
        load_btn = st.button("Load backup", disabled=backup_file is None)
        if load_btn and backup_file is not None:
            result = parse_backup_bytes(backup_file.getvalue())
            if result.ok:
                _replace_scenario(result.scenario)
                record_event(
                    "INFO",
                    "backup_loaded",
                    "Backup loaded.",
                    context={"file_name": getattr(backup_file, "name", "unknown")},
                    scenario=result.scenario,
                )
                st.session_state["_flash"] = ("success", "Backup loaded.")
                st.rerun()
            else:
                st.error(result.errors[0])

        st.button("Reset to defaults", on_click=_on_reset_defaults)

        with st.expander("Diagnostics", expanded=False):
            for warning in advisory_warnings(scenario):
                st.warning(warning)
            findings = run_integrity_checks(totals, bool(scenario["taxes"].get("applyTaxToLaborOnly")))
            if findings:
                st.error("Integrity checks failed.")
                st.dataframe(pd.DataFrame(findings), hide_index=True)
            else:
                st.caption("All totals identities hold.")
            st.caption(f"Storage: {storage_root_path()}")
            st.caption(f"Runtime log: {events_log_path()}")
            min_level = st.selectbox(
                "Minimum log level",
                options=list(LEVELS),
                index=LEVELS.index("INFO"),
                key="runtime_log_min_level",
                help="Hide runtime events below this severity.",
            )
            events = recent_events(limit=int(st.session_state.get("runtime_log_limit", 50)), min_level=min_level)
            if events:
                counts = level_counts(events)
                st.caption(" | ".join(f"{level}: {n}" for level, n in counts.items()))
                st.dataframe(
                    pd.DataFrame(events).reindex(columns=["timestamp_utc", "level", "event", "message"]),
                    hide_index=True,
                )


st.set_page_config(page_title="Engineer Mobilization Calculator", layout="wide")
st.title("Engineer Mobilization Calculator")
st.caption("Staffing, travel, per-diem, taxes and contingency for overseas assignments.")

if "scenario" not in st.session_state:
    st.session_state["scenario"] = load_active_scenario()
st.session_state.setdefault("form_generation", 0)
st.session_state.setdefault("runtime_log_limit", 50)

flash = st.session_state.pop("_flash", None)
if flash:
    getattr(st, flash[0])(flash[1])

inputs_tab, summary_tab = st.tabs(["Inputs", "Summary"])

with inputs_tab:
    base_code = _scenario()["currency"]["base"]
    _render_general()
    left_col, right_col = st.columns(2)
    with left_col:
        _render_staffing(base_code)
        _render_vsi(base_code)
        _render_allowances(base_code)
    with right_col:
        _render_routing(base_code)
        _render_local_transport(base_code)
        _render_personal_tax(base_code)
        _render_taxes_and_currency()

with summary_tab:
    _render_summary()

_render_sidebar()
