from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping
import re

from shapetrack.canonical.descriptor import TypeTag


# Field names containing this marker hold ids of other records
REFERENCE_LIST_MARKER = "___NODE"

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1


ISO_DATE_PATTERN = re.compile(
    r"^(?P<year>\d{4})"
    r"(?:-(?P<month>\d{2})(?:-(?P<day>\d{2}))?"
    r"|(?P<compact_month>\d{2})(?P<compact_day>\d{2}))?"
    r"(?:[T ](?P<hour>\d{2})"
    r"(?::?(?P<minute>\d{2})"
    r"(?::?(?P<second>\d{2})(?:\.\d{1,9})?)?)?"
    r"(?P<zone>Z|[+-]\d{2}(?::?\d{2})?)?)?$"
)


def is_32bit_integer(value: Any) -> bool:
    """
    True when the number is integral and fits a signed 32-bit integer.
    3.0 counts as an integer, like it does in JSON.
    """
    if isinstance(value, bool):
        return False

    if isinstance(value, int):
        return INT32_MIN <= value <= INT32_MAX

    if isinstance(value, float):
        return value.is_integer() and INT32_MIN <= value <= INT32_MAX

    if isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            return False
        return INT32_MIN <= value <= INT32_MAX

    return False


def looks_like_a_date(value: str) -> bool:
    """
    Check if a string is an ISO 8601 date, optionally with a time
    and a timezone.
    """
    match = ISO_DATE_PATTERN.match(value)
    if not match:
        return False

    parts = match.groupdict()
    month = parts["month"] or parts["compact_month"]
    day = parts["day"] or parts["compact_day"]

    # A time of day only makes sense after a full date
    if parts["hour"] is not None and day is None:
        return False

    try:
        datetime(
            int(parts["year"]),
            int(month or 1),
            int(day or 1),
            int(parts["hour"] or 0),
            int(parts["minute"] or 0),
            int(parts["second"] or 0),
        )
    except ValueError:
        return False

    return True


def get_type(value: Any, key: str = "") -> TypeTag:
    """
    Classify a raw value into one semantic type tag.

    Never raises: values of unsupported shapes classify as NULL.
    """
    if value is None:
        return TypeTag.NULL

    # bool before numbers: bool is an int subclass
    if isinstance(value, bool):
        return TypeTag.BOOLEAN

    if isinstance(value, (int, float, Decimal)):
        return TypeTag.INT if is_32bit_integer(value) else TypeTag.FLOAT

    if isinstance(value, str):
        return TypeTag.DATE if looks_like_a_date(value) else TypeTag.STRING

    if isinstance(value, (date, datetime)):
        return TypeTag.DATE

    if isinstance(value, (list, tuple)):
        if len(value) == 0:
            return TypeTag.NULL
        if REFERENCE_LIST_MARKER in (key or ""):
            return TypeTag.LIST_OF_UNION
        return TypeTag.ARRAY

    if isinstance(value, Mapping):
        if len(value) == 0:
            return TypeTag.NULL
        return TypeTag.OBJECT

    return TypeTag.NULL
