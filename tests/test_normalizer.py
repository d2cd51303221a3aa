from datetime import datetime

import pytest

from tripledger.services.normalizer import (
    normalize_booking,
    parse_instant,
    parse_price,
    split_destination,
)

CAMEL = {
    "_id": 7,
    "tripId": "TRIP-1700000000000-ABCDEFGHI",
    "destination": "Paris, France",
    "startDate": "2026-11-01T00:00:00Z",
    "endDate": "2026-11-08T00:00:00Z",
    "duration": "7 days",
    "price": "$1,200",
    "destinationImage": "https://img.example/paris.jpg",
    "passengers": {"adults": 2, "children": 1, "infants": 0},
    "activities": ["Louvre", "Seine cruise"],
    "hotel": "Hotel Lutetia",
    "flight": {"outbound": "JFK to CDG at 18:00", "return": "CDG to JFK at 11:00"},
    "status": "pending",
    "createdAt": "2026-10-01T12:00:00",
    "updatedAt": "2026-10-02T12:00:00",
}

PASCAL = {
    "_id": 7,
    "TripId": "TRIP-1700000000000-ABCDEFGHI",
    "Destination": "Paris, France",
    "StartDate": "2026-11-01T00:00:00Z",
    "EndDate": "2026-11-08T00:00:00Z",
    "Duration": "7 days",
    "Price": "$1,200",
    "DestinationImage": "https://img.example/paris.jpg",
    "Passengers": {"adults": 2, "children": 1, "infants": 0},
    "Activities": ["Louvre", "Seine cruise"],
    "Hotel": "Hotel Lutetia",
    "Flight": {"outbound": "JFK to CDG at 18:00", "return": "CDG to JFK at 11:00"},
    "Status": "pending",
    "CreatedAt": "2026-10-01T12:00:00",
    "UpdatedAt": "2026-10-02T12:00:00",
}


def test_both_casings_normalize_identically():
    assert normalize_booking(CAMEL) == normalize_booking(PASCAL)


def test_canonical_value_wins_over_alternate():
    record = normalize_booking({"destination": "Rome, Italy", "Destination": "Oslo, Norway"})
    assert record["destination"] == "Rome, Italy"


def test_empty_canonical_value_falls_back_to_alternate():
    record = normalize_booking({"destination": "", "Destination": "Oslo, Norway"})
    assert record["destination"] == "Oslo, Norway"


def test_defaults_for_missing_fields():
    record = normalize_booking({})
    assert record["passengers"] == {"adults": 1, "children": 0, "infants": 0}
    assert record["activities"] == []
    assert record["status"] == "confirmed"
    assert record["destination"] is None
    assert record["startDate"] is None


def test_status_default_differs_from_creation_default():
    # Records read without a status are shown as confirmed; new bookings start as pending.
    assert normalize_booking({"destination": "Lima, Peru"})["status"] == "confirmed"


def test_dates_become_naive_utc():
    record = normalize_booking({"startDate": "2026-11-01T02:00:00+02:00"})
    assert record["startDate"] == datetime(2026, 11, 1, 0, 0)


def test_normalizing_canonical_record_is_identity():
    canonical = normalize_booking(CAMEL)
    assert normalize_booking(canonical) == canonical


def test_malformed_optional_fields_do_not_raise():
    record = normalize_booking({
        "startDate": "not a date",
        "passengers": "two adults",
        "activities": "hiking",
    })
    assert record["startDate"] is None
    assert record["passengers"]["adults"] == 1
    assert record["activities"] == []


def test_partial_passengers_are_filled():
    assert normalize_booking({"passengers": {"adults": 3}})["passengers"] == {"adults": 3, "children": 0, "infants": 0}


@pytest.mark.parametrize("value,expected", [
    ("$1200", 1200),
    ("USD 1,450", 1450),
    (800, 800),
    (99.9, 99),
    ("", 0),
    ("free", 0),
    (None, 0),
    ({"total": 10}, 0),
    (float("nan"), 0),
    (float("inf"), 0),
    (float("-inf"), 0),
    ("$" + "9" * 5000, 0),
])
def test_parse_price(value, expected):
    assert parse_price(value) == expected


def test_parse_instant_accepts_epoch_millis():
    assert parse_instant(0) == datetime(1970, 1, 1)


def test_split_destination():
    assert split_destination("Paris, France") == ("Paris", "France")
    assert split_destination("Singapore") == ("Singapore", "Singapore")
    assert split_destination("Kyoto, Kansai, Japan") == ("Kyoto", "Kansai, Japan")
    assert split_destination(None) == ("", "")
