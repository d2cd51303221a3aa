"""
Canonical view of booking records.

Bookings reach the store from writers that disagree on field casing
(``destination`` vs ``Destination``). Everything downstream of the store reads
records through :func:`normalize_booking`, which resolves each field from an
explicit priority list: canonical key, then the PascalCase key, then a default.
"""
import re
import math
import logging
from datetime import datetime, date, timezone
from typing import Any, Dict, Optional, Tuple

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

DEFAULT_PASSENGERS = {"adults": 1, "children": 0, "infants": 0}
DEFAULT_STATUS = "confirmed"

# canonical key -> alternate key
FIELD_ALIASES = {
    "id": "_id",
    "tripId": "TripId",
    "destination": "Destination",
    "startDate": "StartDate",
    "endDate": "EndDate",
    "duration": "Duration",
    "price": "Price",
    "destinationImage": "DestinationImage",
    "passengers": "Passengers",
    "activities": "Activities",
    "hotel": "Hotel",
    "flight": "Flight",
    "status": "Status",
    "createdAt": "CreatedAt",
    "updatedAt": "UpdatedAt",
}

DATE_FIELDS = ("startDate", "endDate", "createdAt", "updatedAt")

_NON_DIGITS = re.compile(r"\D")
# int() refuses longer digit strings on current interpreters
MAX_PRICE_DIGITS = 4300


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def pick(raw: Dict[str, Any], key: str, alternate: Optional[str] = None, default: Any = None) -> Any:
    value = raw.get(key)
    if _is_missing(value) and alternate:
        value = raw.get(alternate)
    if _is_missing(value):
        return default
    return value


def parse_price(value: Any) -> int:
    """Interpret a price as whole currency units; '$1,200' -> 1200, junk -> 0."""
    if value is None or isinstance(value, bool):
        return 0
    try:
        if isinstance(value, float):
            return int(value) if math.isfinite(value) else 0
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            digits = _NON_DIGITS.sub("", value)
            if not digits or len(digits) > MAX_PRICE_DIGITS:
                return 0
            return int(digits)
    except (ValueError, OverflowError) as e:
        logger.debug(f"Unreadable price {value!r:.40}: {e}")
    return 0


def parse_instant(value: Any) -> Optional[datetime]:
    """Coerce a stored instant to a naive UTC datetime, or None when it cannot be read."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, datetime):
            parsed = value
        elif isinstance(value, date):
            parsed = datetime(value.year, value.month, value.day)
        elif isinstance(value, (int, float)):
            # epoch milliseconds
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        elif isinstance(value, str):
            if not value.strip():
                return None
            parsed = date_parser.parse(value)
        else:
            return None
    except (ValueError, OverflowError, OSError) as e:
        logger.debug(f"Unreadable instant {value!r}: {e}")
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def split_destination(destination: Optional[str]) -> Tuple[str, str]:
    """Split a 'City, Country' string. Country falls back to the whole string."""
    if not destination:
        return "", ""
    destination = str(destination)
    head, sep, tail = destination.partition(",")
    city = head.strip()
    country = tail.strip() if sep else ""
    return city, country or destination


def _passengers(value: Any) -> Dict[str, Any]:
    if not isinstance(value, dict):
        return dict(DEFAULT_PASSENGERS)
    merged = dict(DEFAULT_PASSENGERS)
    merged.update({k: v for k, v in value.items() if v is not None})
    return merged


def _activities(value: Any) -> list:
    if isinstance(value, (list, tuple)):
        return list(value)
    return []


def normalize_booking(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Return the canonical shape of a raw booking record. Never raises on missing fields."""
    raw = raw or {}
    record = {key: pick(raw, key, alternate) for key, alternate in FIELD_ALIASES.items()}

    for key in DATE_FIELDS:
        record[key] = parse_instant(record[key])

    record["passengers"] = _passengers(record["passengers"])
    record["activities"] = _activities(record["activities"])
    if record["status"] is None:
        record["status"] = DEFAULT_STATUS
    return record
