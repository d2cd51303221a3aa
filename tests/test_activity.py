from datetime import datetime, timedelta

import pytest

from tripledger.services.activity import build_recent_activity, relative_time_label

NOW = datetime(2026, 10, 19, 12, 0)


@pytest.mark.parametrize("days,label", [
    (0, "Today"),
    (1, "Yesterday"),
    (2, "2 days ago"),
    (6, "6 days ago"),
    (7, "1 week ago"),
    (20, "2 weeks ago"),
    (29, "4 weeks ago"),
    (30, "1 month ago"),
    (95, "3 months ago"),
])
def test_relative_time_label(days, label):
    assert relative_time_label(NOW - timedelta(days=days, hours=1), NOW) == label


def test_future_or_missing_creation_time_reads_today():
    assert relative_time_label(NOW + timedelta(days=3), NOW) == "Today"
    assert relative_time_label(None, NOW) == "Today"


def test_empty_feed_has_single_profile_entry():
    feed = build_recent_activity([], NOW)
    assert len(feed) == 1
    assert feed[0].type == "profile"
    assert feed[0].title == "Profile created"


def test_feed_entries_for_bookings():
    trips = [
        {"destination": "Paris, France", "createdAt": NOW - timedelta(days=1)},
        {"destination": "Rome, Italy", "createdAt": NOW - timedelta(days=10)},
    ]
    feed = build_recent_activity(trips, NOW)
    assert [e.title for e in feed] == ["Trip to Paris, France booked", "Trip to Rome, Italy booked"]
    assert [e.time for e in feed] == ["Yesterday", "1 week ago"]
    assert all(e.type == "booking" and e.icon == "plane" for e in feed)


def test_feed_is_capped_at_five():
    trips = [{"destination": f"City {i}, Land", "createdAt": NOW} for i in range(8)]
    assert len(build_recent_activity(trips, NOW)) == 5


def test_booking_without_destination_has_generic_title():
    feed = build_recent_activity([{"destination": None, "createdAt": NOW}], NOW)
    assert feed[0].title == "Trip booked"
