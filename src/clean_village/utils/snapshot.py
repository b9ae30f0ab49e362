"""Structural snapshots for audit diffs.

``snapshot`` deep-copies a value into plain JSON-ready data (dicts,
lists, str, int, float, bool, None). Cycles become ``"[Circular]"``,
objects it cannot walk become ``"[Complex Object]"``; it never raises.
"""

import dataclasses
import json
import logging
from datetime import date, datetime
from enum import Enum

from clean_village.utils.constants import (
    CIRCULAR_PLACEHOLDER,
    COMPLEX_PLACEHOLDER,
)

logger = logging.getLogger(__name__)

_SCALARS = (str, int, float, bool, type(None))


def snapshot(value):
    """Return a serialization-ready structural copy of *value*."""
    return _copy(value, set())


def _copy(value, seen: set):
    if isinstance(value, _SCALARS):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return _copy(value.value, seen)
    if isinstance(value, bytes):
        return COMPLEX_PLACEHOLDER

    marker = id(value)
    if marker in seen:
        return CIRCULAR_PLACEHOLDER
    seen.add(marker)
    try:
        if isinstance(value, dict):
            return {
                str(k): _copy(v, seen)
                for k, v in value.items()
                if not str(k).startswith("_")
            }
        if isinstance(value, (list, tuple, set, frozenset)):
            return [_copy(v, seen) for v in value]
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return {
                f.name: _copy(getattr(value, f.name), seen)
                for f in dataclasses.fields(value)
                if not f.name.startswith("_")
            }
        if hasattr(value, "keys") and hasattr(value, "__getitem__"):
            # sqlite3.Row and similar mappings
            return {str(k): _copy(value[k], seen) for k in value.keys()}
        return COMPLEX_PLACEHOLDER
    except Exception:
        logger.debug("Snapshot fell back to placeholder", exc_info=True)
        return COMPLEX_PLACEHOLDER
    finally:
        # Only ancestors count as cycles; shared siblings are copied twice.
        seen.discard(marker)


def snapshot_json(value) -> str:
    """Snapshot *value* and encode it as JSON text."""
    return json.dumps(snapshot(value), ensure_ascii=False)
