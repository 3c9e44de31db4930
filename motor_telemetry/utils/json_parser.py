# motor_telemetry/utils/json_parser.py
"""
Helpers for reading device JSON payloads without trusting their shape.
"""

import json
import math
from typing import Optional, Any, Union


def _reject_constant(name: str):
    raise ValueError(f"Non-standard JSON constant {name}")


def safe_parse_json(raw_body: Union[bytes, str]) -> Optional[Any]:
    """Parse JSON bytes or text safely. Returns None on error, including NaN/Infinity."""
    try:
        if isinstance(raw_body, bytes):
            raw_body = raw_body.decode("utf-8", errors="replace")
        return json.loads(raw_body, parse_constant=_reject_constant)
    except (ValueError, TypeError):
        return None


def get_nested(data: dict, *keys: str, default: Any = None) -> Any:
    """Safely navigate nested dict keys. Returns default if any key is missing."""
    current = data
    for key in keys:
        if not isinstance(current, dict):
            return default
        current = current.get(key, default)
        if current is default:
            return default
    return current


def as_number(value: Any) -> Optional[float]:
    """
    Coerce a JSON value to a finite number, or None.
    Booleans are not numbers here, numeric strings are.
    """
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if isinstance(number, float) and not math.isfinite(number):
        return None
    return number
