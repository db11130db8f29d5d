"""Blood stock threshold checks for organization inventory."""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from django.conf import settings


def default_min_threshold() -> int:
    return int(getattr(settings, "INVENTORY_DEFAULT_MIN_THRESHOLD", 5))


def _read(row: Any, name: str):
    if isinstance(row, dict):
        return row.get(name)
    return getattr(row, name, None)


def threshold_for(row: Any, default: Optional[int] = None) -> int:
    value = _read(row, "min_threshold")
    if value is None:
        return default_min_threshold() if default is None else int(default)
    return int(value)


def is_low_stock(row: Any, default: Optional[int] = None) -> bool:
    units = _read(row, "units") or 0
    return int(units) < threshold_for(row, default)


def low_stock(rows: Iterable[Any], default: Optional[int] = None) -> List[Any]:
    """Rows whose unit count is strictly below their minimum threshold."""
    return [row for row in rows if is_low_stock(row, default)]


def apply_delta(current: int, delta: int) -> int:
    return max(0, int(current) + int(delta))
