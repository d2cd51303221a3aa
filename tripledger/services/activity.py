from datetime import datetime
from typing import List, Dict, Any, Optional

from tripledger.schemas.dashboard import ActivityEntry

MAX_RECENT_ACTIVITY = 5

WELCOME_ENTRY = ActivityEntry(
    type="profile",
    title="Profile created",
    time="Welcome to TripLedger!",
    icon="user",
    color="green",
)


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count > 1 else ''} ago"


def relative_time_label(created_at: Optional[datetime], now: datetime) -> str:
    if created_at is None:
        return "Today"
    days = max((now - created_at).days, 0)
    if days == 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        return _plural(days // 7, "week")
    return _plural(days // 30, "month")


def _booking_title(destination) -> str:
    return f"Trip to {destination} booked" if destination else "Trip booked"


def build_recent_activity(trips: List[Dict[str, Any]], now: datetime) -> List[ActivityEntry]:
    """Activity feed for the newest bookings; `trips` must already be newest-first."""
    activities = [
        ActivityEntry(
            type="booking",
            title=_booking_title(trip.get("destination")),
            time=relative_time_label(trip.get("createdAt"), now),
            icon="plane",
            color="blue",
        )
        for trip in trips[:MAX_RECENT_ACTIVITY]
    ]
    if not activities:
        activities.append(WELCOME_ENTRY.model_copy())
    return activities
