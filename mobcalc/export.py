"""Spreadsheet-compatible markup export and JSON backup serialization."""

from __future__ import annotations

import html
import json
import re

from mobcalc.defaults import DEFAULT_TITLE
from mobcalc.model import CostTotals, summary_rows


SPREADSHEET_MIME = "application/vnd.ms-excel"
BACKUP_MIME = "application/json"

_TABLE_OPEN = '<table border="1" cellspacing="0" cellpadding="4">'


def escape_markup(value) -> str:
    """Escape &, <, >, double and single quotes for embedding in markup."""
    return html.escape("" if value is None else str(value), quote=True)


def safe_file_name(title: str, suffix: str) -> str:
    base = re.sub(r"[^a-z0-9]+", "-", str(title or "").strip().lower()).strip("-")
    name = f"{base}-{suffix}" if base else suffix
    return re.sub(r"-+", "-", name)


def spreadsheet_file_name(scenario: dict) -> str:
    return f"{safe_file_name(scenario['meta']['title'] or DEFAULT_TITLE, 'simulation')}.xls"


def backup_file_name(scenario: dict) -> str:
    return f"{safe_file_name(scenario['meta']['title'] or DEFAULT_TITLE, 'backup')}.json"


def _money(value: float) -> str:
    return f"{float(value):.2f}"


def _quantity(value: float) -> str:
    # Whole quantities print as plain digits at any magnitude.
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def _table(caption: str, header: list[str], rows: list[list[str]]) -> str:
    head = "".join(f"<th>{escape_markup(h)}</th>" for h in header)
    body = "".join("<tr>" + "".join(f"<td>{cell}</td>" for cell in row) + "</tr>" for row in rows)
    return f"{_TABLE_OPEN}<caption><strong>{escape_markup(caption)}</strong></caption><tr>{head}</tr>{body}</table>"


def build_spreadsheet_html(scenario: dict, totals: CostTotals) -> str:
    """Render the four-table markup document a spreadsheet application can open."""
    base = scenario["currency"]["base"]
    meta = scenario["meta"]
    routing = scenario["routing"]

    totals_rows = [[escape_markup(label), _money(amount)] for label, amount in summary_rows(totals)]
    staffing_rows = [
        [escape_markup(r.role), escape_markup(_quantity(r.qty)), _money(r.total)] for r in totals.labor_breakdown
    ]
    # Airfare stays as entered so the export mirrors the backup.
    leg_rows = [
        [
            escape_markup(leg.get("from", "")),
            escape_markup(leg.get("to", "")),
            escape_markup(leg.get("purpose") or ""),
            escape_markup(leg.get("airfare", "")),
        ]
        for leg in routing["legs"]
    ]
    notes = escape_markup(meta["notes"]).replace("\n", "<br/>")
    general = (
        f"{_TABLE_OPEN}<caption><strong>General</strong></caption>"
        f"<tr><th>Title</th><td>{escape_markup(meta['title'])}</td></tr>"
        f"<tr><th>Notes</th><td>{notes}</td></tr>"
        f"<tr><th>Origin</th><td>{escape_markup(routing['origin'])}</td></tr>"
        f"<tr><th>Destination</th><td>{escape_markup(routing['destination'])}</td></tr>"
        "</table>"
    )

    parts = [
        _table(f"Totals ({base})", ["Category", f"Amount ({base})"], totals_rows),
        _table("Staffing", ["Role", "Qty", f"Total ({base})"], staffing_rows),
        _table("Travel legs", ["From", "To", "Purpose", f"Airfare ({base})"], leg_rows),
        general,
    ]
    title = escape_markup(meta["title"] or "Mobilization scenario")
    return (
        '<!DOCTYPE html><html><head><meta charset="utf-8" />'
        f"<title>{title}</title></head><body>" + "<br/>".join(parts) + "</body></html>"
    )


def build_spreadsheet_bytes(scenario: dict, totals: CostTotals) -> bytes:
    # BOM so spreadsheet applications detect UTF-8.
    return ("\ufeff" + build_spreadsheet_html(scenario, totals)).encode("utf-8")


def build_backup_json(scenario: dict) -> str:
    return json.dumps(scenario, indent=2, ensure_ascii=False)
