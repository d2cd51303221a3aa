import logging
from datetime import datetime
from typing import List, Dict, Any, Optional

from sqlalchemy.orm import Session

from tripledger.auth import Identity
from tripledger.db.crud import find_bookings_by_user
from tripledger.errors import ForbiddenError
from tripledger.models.booking import utcnow
from tripledger.schemas.dashboard import DashboardResponse, DashboardSummary
from tripledger.services.activity import build_recent_activity
from tripledger.services.normalizer import normalize_booking
from tripledger.services.stats import compute_stats, is_past, is_upcoming

logger = logging.getLogger(__name__)


def next_trip(trips: List[Dict[str, Any]], now: datetime) -> Optional[Dict[str, Any]]:
    upcoming = sorted((t for t in trips if is_upcoming(t, now)), key=lambda t: t["startDate"])
    return upcoming[0] if upcoming else None


def last_trip(trips: List[Dict[str, Any]], now: datetime) -> Optional[Dict[str, Any]]:
    past = sorted((t for t in trips if is_past(t, now)), key=lambda t: t["endDate"], reverse=True)
    return past[0] if past else None


def compose_dashboard(db: Session, identity: Identity, email: str, now: Optional[datetime] = None) -> DashboardResponse:
    """
    Everything a user's dashboard shows, in one payload.

    The requesting identity must be the dashboard's owner. Store failures are
    not recovered here; they propagate as PersistenceError.
    """
    if not email or (identity.email or "").lower() != email.strip().lower():
        logger.warning(f"Dashboard for {email} requested by {identity.email}")
        raise ForbiddenError("Forbidden")

    now = now or utcnow()
    trips = [normalize_booking(b.to_document()) for b in find_bookings_by_user(db, email)]
    logger.info(f"Composing dashboard for {email} from {len(trips)} bookings")

    return DashboardResponse(
        trips=trips,
        stats=compute_stats(trips, now),
        recent_activity=build_recent_activity(trips, now),
        summary=DashboardSummary(
            total_trips=len(trips),
            next_trip=next_trip(trips, now),
            last_trip=last_trip(trips, now),
        ),
    )
