from collections import Counter
from datetime import datetime
from typing import Iterable, List, Dict, Any, Optional

from tripledger.schemas.dashboard import DashboardStats
from tripledger.services.normalizer import parse_price, split_destination


def favorite_destination(trips: List[Dict[str, Any]]) -> Optional[str]:
    # Counter keeps insertion order, so most_common() breaks ties by first occurrence
    countries = Counter(split_destination(t["destination"])[1] for t in trips if t.get("destination"))
    if not countries:
        return None
    return countries.most_common(1)[0][0]


def unique_countries(trips: Iterable[Dict[str, Any]]) -> List[str]:
    seen = {}
    for trip in trips:
        if trip.get("destination"):
            seen.setdefault(split_destination(trip["destination"])[1], None)
    return list(seen)


def unique_cities(trips: Iterable[Dict[str, Any]]) -> List[str]:
    seen = {}
    for trip in trips:
        city = split_destination(trip.get("destination"))[0]
        if city:
            seen.setdefault(city, None)
    return list(seen)


def is_upcoming(trip: Dict[str, Any], now: datetime) -> bool:
    return trip.get("startDate") is not None and trip["startDate"] > now


def is_past(trip: Dict[str, Any], now: datetime) -> bool:
    return trip.get("endDate") is not None and trip["endDate"] < now


def _round_half_up(numerator: int, denominator: int) -> int:
    # round() would send 2.5 to 2
    return (2 * numerator + denominator) // (2 * denominator)


def compute_stats(trips: List[Dict[str, Any]], now: datetime) -> DashboardStats:
    """Summary statistics over a user's normalized bookings."""
    total_trips = len(trips)
    total_spent = sum(parse_price(t.get("price")) for t in trips)
    return DashboardStats(
        total_trips=total_trips,
        upcoming_trips=sum(1 for t in trips if is_upcoming(t, now)),
        completed_trips=sum(1 for t in trips if is_past(t, now)),
        total_spent=total_spent,
        average_trip_cost=_round_half_up(total_spent, total_trips) if total_trips else 0,
        favorite_destination=favorite_destination(trips),
        total_countries=len(unique_countries(trips)),
        total_cities=len(unique_cities(trips)),
    )
