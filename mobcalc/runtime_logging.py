"""Structured JSON-lines event log shown in the app's Diagnostics panel.

Events live beside the persisted scenario (see ``mobcalc.persistence``), one
JSON object per line::

    {"timestamp_utc": ..., "level": "WARNING", "event": "backup_rejected",
     "message": ..., "context": {"scenario": {...}, ...}}

Writing an event never raises; a calculator that cannot log still calculates.
"""

from __future__ import annotations

import json
import sys
import traceback
from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from streamlit.runtime.scriptrunner import get_script_run_ctx


EVENTS_FILE_NAME = "mobilization_events.jsonl"
EVENTS_DIR = Path(".local_store")
EVENTS_FILE = EVENTS_DIR / EVENTS_FILE_NAME

LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

_HOOK_INSTALLED = False


def configure_events_root(root: Path) -> Path:
    """Point the event log at ``root``; called whenever the storage root changes."""
    global EVENTS_DIR, EVENTS_FILE
    EVENTS_DIR = Path(root)
    EVENTS_FILE = EVENTS_DIR / EVENTS_FILE_NAME
    return EVENTS_FILE


def events_log_path() -> str:
    return str(EVENTS_FILE.resolve())


def scenario_context(scenario: dict | None) -> dict[str, Any]:
    """Small identifying summary of a scenario, safe to attach to any event."""
    if not isinstance(scenario, dict):
        return {}
    meta = scenario.get("meta") if isinstance(scenario.get("meta"), dict) else {}
    routing = scenario.get("routing") if isinstance(scenario.get("routing"), dict) else {}
    currency = scenario.get("currency") if isinstance(scenario.get("currency"), dict) else {}
    staffing = scenario.get("staffing")
    legs = routing.get("legs")
    return {
        "title": meta.get("title"),
        "roles": len(staffing) if isinstance(staffing, list) else None,
        "legs": len(legs) if isinstance(legs, list) else None,
        "base_currency": currency.get("base"),
    }


def _normalize_level(level: str) -> str:
    text = str(level).upper()
    return text if text in LEVELS else "INFO"


def _json_default(value: Any):
    if isinstance(value, (set, tuple)):
        return list(value)
    return str(value)


def _event_record(
    level: str,
    event: str,
    message: str,
    context: dict[str, Any] | None,
    scenario: dict | None,
    exc: BaseException | None,
) -> dict[str, Any]:
    ctx = dict(context or {})
    if scenario is not None:
        ctx["scenario"] = scenario_context(scenario)
    record: dict[str, Any] = {
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "level": _normalize_level(level),
        "event": str(event),
        "message": str(message),
        "context": ctx,
    }
    if exc is not None:
        record["exception_type"] = type(exc).__name__
        record["exception_message"] = str(exc)
        record["traceback"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return record


def record_event(
    level: str,
    event: str,
    message: str,
    *,
    context: dict[str, Any] | None = None,
    scenario: dict | None = None,
    exc: BaseException | None = None,
) -> None:
    """Append one event to the log. Unknown levels are recorded as INFO."""
    try:
        line = json.dumps(
            _event_record(level, event, message, context, scenario, exc),
            default=_json_default,
            ensure_ascii=False,
        )
        EVENTS_DIR.mkdir(parents=True, exist_ok=True)
        with EVENTS_FILE.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
    except Exception:
        pass


def _parse_line(line: str) -> dict[str, Any]:
    try:
        parsed = json.loads(line)
    except json.JSONDecodeError:
        parsed = None
    if isinstance(parsed, dict):
        return parsed
    return {
        "timestamp_utc": "",
        "level": "ERROR",
        "event": "log_parse_error",
        "message": "Unreadable event log line.",
        "context": {"line": line[:500]},
    }


def recent_events(limit: int = 200, min_level: str | None = None) -> list[dict[str, Any]]:
    """Newest ``limit`` events, oldest first, optionally at or above ``min_level``."""
    if limit <= 0 or not EVENTS_FILE.exists():
        return []
    try:
        lines = EVENTS_FILE.read_text(encoding="utf-8").splitlines()
    except (OSError, UnicodeDecodeError):
        return []
    events = [_parse_line(line) for line in lines if line.strip()]
    if min_level is not None:
        floor = LEVELS.index(_normalize_level(min_level))
        events = [e for e in events if LEVELS.index(_normalize_level(e.get("level", ""))) >= floor]
    return events[-int(limit) :]


def level_counts(events: list[dict[str, Any]]) -> dict[str, int]:
    counts = Counter(_normalize_level(e.get("level", "")) for e in events)
    return {level: counts[level] for level in LEVELS if counts[level]}


def install_uncaught_exception_hook() -> None:
    """Log exceptions that escape a Streamlit script run, then defer to the previous hook."""
    global _HOOK_INSTALLED
    if _HOOK_INSTALLED:
        return
    previous = sys.excepthook

    def _hook(exc_type, exc, exc_tb):
        if get_script_run_ctx() is not None:
            record_event("ERROR", "uncaught_exception", str(exc), exc=exc)
        previous(exc_type, exc, exc_tb)

    sys.excepthook = _hook
    _HOOK_INSTALLED = True
