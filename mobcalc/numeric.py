"""Safe numeric coercion for free-text scenario fields."""

from __future__ import annotations

import math
from numbers import Number
from typing import Any


def num(value: Any) -> float:
    """Return a finite float for any value; 0.0 when it cannot be read as one."""
    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, str):
        value = value.strip()
        # float() accepts digit-group underscores, which are not valid user input here.
        if not value or "_" in value:
            return 0.0
    elif not isinstance(value, Number):
        return 0.0
    try:
        out = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    return out if math.isfinite(out) else 0.0
