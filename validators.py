"""
Field-level checks shared by the request schemas, the query builder and the routers.
"""
import math
import re
from typing import Optional

from fastapi import HTTPException, status

PHONE_PATTERN = re.compile(r"^\+?[\d\s\-\(\)]+$")
# No nested quantifiers: every repetition is bounded by a literal "@" or "."
EMAIL_PATTERN = re.compile(r"^[\w.+-]+@[\w-]+(\.[\w-]+)*\.\w{2,}$")
LEADING_INTEGER = re.compile(r"\s*([+-]?\d+)")
MIN_PASSWORD_LENGTH = 6


def coerce_identifier(value) -> Optional[int]:
    """
    Return the record id encoded by ``value`` or None when it is not a valid id.

    Ids are positive integers; on the wire they may arrive as ints or digit strings.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    if isinstance(value, str):
        value = value.strip()
        if value.isascii() and value.isdigit() and int(value) > 0:
            return int(value)
    return None


def parse_identifier(value, entity: str) -> int:
    """Like coerce_identifier, but fails the request with 400 on bad syntax."""
    record_id = coerce_identifier(value)
    if record_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid {entity} ID")
    return record_id


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def is_valid_phone(value: str) -> bool:
    return bool(PHONE_PATTERN.match(value))


def parse_bool_flag(value) -> bool:
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value.strip().lower() == "true"


def parse_number(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def parse_int(value) -> Optional[int]:
    """Leading integer of ``value`` ("12abc" -> 12, "1e3" -> 1), or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = LEADING_INTEGER.match(str(value))
    if match is None:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        # beyond the interpreter's digit limit for int()
        return None
