"""
Condition evaluation for ifCondition nodes.

Operators compare a resolved field value against a configured value.
Both sides are stripped first; text comparisons ignore case.
"""

import json
import logging
import math
import re
from typing import Any

logger = logging.getLogger(__name__)

OPERATORS = (
    "equals",
    "not_equals",
    "contains",
    "not_contains",
    "greater",
    "less",
    "starts_with",
    "ends_with",
    "is_empty",
    "is_not_empty",
    "regex",
)


# Plain decimal with optional exponent; no "_", "inf" or "nan"
NUMBER_PATTERN = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")


def _to_number(value: str) -> float | None:
    if not NUMBER_PATTERN.fullmatch(value):
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def resolve_field(field: str, message: str, input_data: Any = None) -> str:
    """
    Resolve the value an ifCondition node tests.

    - ``message``: the trigger message
    - ``message.length``: its length, as text
    - ``output``: the node's input rendered as JSON ('' when there is none)

    Any other field falls back to the trigger message.
    """
    if field == "message.length":
        return str(len(message))
    if field == "output":
        if input_data is None:
            return ""
        return json.dumps(input_data, separators=(",", ":"), default=str)
    return message


def evaluate_condition(field_value: str, operator: str, compare_value: str) -> bool:
    """
    Evaluate ``field_value <operator> compare_value``.

    ``equals``/``not_equals`` compare numerically when both sides are
    numbers. ``greater``/``less`` are numeric only and are False for text.
    An invalid regex or unknown operator evaluates to False.
    """
    fv = str(field_value).strip()
    cv = str(compare_value).strip()

    if operator in ("equals", "not_equals"):
        fn, cn = _to_number(fv), _to_number(cv)
        if fn is not None and cn is not None:
            equal = fn == cn
        else:
            equal = fv.lower() == cv.lower()
        return equal if operator == "equals" else not equal

    if operator == "contains":
        return cv.lower() in fv.lower()
    if operator == "not_contains":
        return cv.lower() not in fv.lower()

    if operator in ("greater", "less"):
        fn, cn = _to_number(fv), _to_number(cv)
        if fn is None or cn is None:
            return False
        return fn > cn if operator == "greater" else fn < cn

    if operator == "starts_with":
        return fv.lower().startswith(cv.lower())
    if operator == "ends_with":
        return fv.lower().endswith(cv.lower())

    if operator == "is_empty":
        return fv == ""
    if operator == "is_not_empty":
        return fv != ""

    if operator == "regex":
        try:
            return re.search(cv, fv, re.IGNORECASE) is not None
        except re.error as e:
            logger.warning(f"      ⚠ Invalid regex in condition: {cv!r} ({e})")
            return False

    logger.warning(f"      ⚠ Unknown condition operator: {operator!r}")
    return False
