"""Local persistence of the active scenario and backup-file import.

The active scenario is kept as one JSON document under ``STORAGE_KEY`` in
``<root>/scenario_store.json``; the runtime event log shares the same root.
The root defaults to ``.local_store`` and can be moved with the
``MOBCALC_STORAGE_ROOT`` environment variable.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from mobcalc.defaults import STORAGE_KEY, IdFactory, default_scenario
from mobcalc.runtime_logging import configure_events_root, record_event
from mobcalc.schema import ParseResult, parse_scenario, parse_scenario_json


STORE_FILE_NAME = "scenario_store.json"
STORE_DIR = Path(".local_store")
SCENARIO_STORE_FILE = STORE_DIR / STORE_FILE_NAME

_DEFAULT_STORE_DIR = Path(".local_store")
_STORAGE_ENV_VAR = "MOBCALC_STORAGE_ROOT"

BACKUP_INVALID_MESSAGE = "Could not load backup. Please ensure the file was exported from this tool."
BACKUP_UNREADABLE_MESSAGE = "There was a problem reading the backup file."


def _expand_storage_root(path_value: str | Path | None) -> Path:
    text = "" if path_value is None else str(path_value).strip()
    if not text:
        return _DEFAULT_STORE_DIR
    return Path(os.path.expandvars(os.path.expanduser(text)))


def configure_storage_root(path_value: str | Path | None) -> Path:
    """Move scenario storage and the event log to ``path_value`` (blank means default)."""
    global STORE_DIR, SCENARIO_STORE_FILE
    STORE_DIR = _expand_storage_root(path_value)
    SCENARIO_STORE_FILE = STORE_DIR / STORE_FILE_NAME
    configure_events_root(STORE_DIR)
    return STORE_DIR


def storage_root_path() -> str:
    return str(STORE_DIR.resolve())


def storage_root_from_env() -> Path:
    return _expand_storage_root(os.getenv(_STORAGE_ENV_VAR))


def _load_store() -> dict:
    if not SCENARIO_STORE_FILE.exists():
        return {}
    try:
        data = json.loads(SCENARIO_STORE_FILE.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        record_event(
            "WARNING",
            "scenario_store_unreadable",
            "Scenario store could not be read; starting from an empty store.",
            context={"path": str(SCENARIO_STORE_FILE)},
            exc=exc,
        )
        return {}
    return data if isinstance(data, dict) else {}


def _save_store(data: dict) -> None:
    STORE_DIR.mkdir(parents=True, exist_ok=True)
    tmp = SCENARIO_STORE_FILE.with_name(f"{SCENARIO_STORE_FILE.name}.tmp")
    tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp.replace(SCENARIO_STORE_FILE)


def load_active_scenario(id_factory: IdFactory | None = None) -> dict:
    """Read the persisted scenario, or the default one when absent or invalid."""
    stored = _load_store().get(STORAGE_KEY)
    if stored is None:
        return default_scenario(id_factory)
    result = parse_scenario(stored, id_factory=id_factory)
    if not result.ok:
        record_event(
            "WARNING",
            "stored_scenario_rejected",
            "Stored scenario failed validation; using defaults.",
            context={"errors": result.errors[:20]},
        )
        return default_scenario(id_factory)
    return result.scenario


def save_active_scenario(scenario: dict) -> bool:
    """Overwrite the persisted snapshot. Failures are logged, not retried."""
    store = _load_store()
    store[STORAGE_KEY] = scenario
    try:
        _save_store(store)
    except (OSError, TypeError, ValueError) as exc:
        record_event(
            "ERROR",
            "scenario_save_failed",
            "Could not persist the active scenario.",
            context={"path": str(SCENARIO_STORE_FILE)},
            scenario=scenario,
            exc=exc,
        )
        return False
    return True


def parse_backup_bytes(raw: bytes | str, id_factory: IdFactory | None = None) -> ParseResult:
    """Decode, parse, validate and sanitize an uploaded backup file."""
    if isinstance(raw, bytes):
        try:
            text = raw.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            record_event("ERROR", "backup_read_failed", BACKUP_UNREADABLE_MESSAGE, exc=exc)
            return ParseResult(None, [BACKUP_UNREADABLE_MESSAGE])
    else:
        text = raw
    result = parse_scenario_json(text, id_factory=id_factory)
    if not result.ok:
        record_event(
            "WARNING",
            "backup_rejected",
            BACKUP_INVALID_MESSAGE,
            context={"errors": result.errors[:20]},
        )
        return ParseResult(None, [BACKUP_INVALID_MESSAGE, *result.errors])
    return result


configure_storage_root(storage_root_from_env())
