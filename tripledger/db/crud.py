import time
import string
import secrets
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from tripledger.auth import Identity
from tripledger.errors import ForbiddenError, NotFoundError, PersistenceError, ValidationError
from tripledger.models.booking import Booking, utcnow
from tripledger.models.edit_request import EditRequest
from tripledger.services.normalizer import FIELD_ALIASES, parse_price, pick

logger = logging.getLogger(__name__)

STATUSES = ("pending", "confirmed", "completed", "cancelled")
CANCELLABLE_STATUSES = (None, "pending", "confirmed")
TERMINAL_STATUSES = ("completed", "cancelled")
REVENUE_STATUSES = ("confirmed", "completed")

TRIP_ID_ALPHABET = string.ascii_uppercase + string.digits
TRIP_ID_SUFFIX_LENGTH = 9

# Keys owned by the store; never taken from a client payload
SYSTEM_FIELDS = {
    "_id", "id", "tripId", "TripId", "status", "Status", "modifications", "cancellation",
    "createdAt", "CreatedAt", "updatedAt", "UpdatedAt",
}
IMMUTABLE_FIELDS = SYSTEM_FIELDS - {"status", "Status"}
OWNERSHIP_FIELDS = {"email", "Email", "userEmail", "UserEmail", "userId", "UserId"}

CANONICAL_KEYS = {alternate: canonical for canonical, alternate in FIELD_ALIASES.items()}


def generate_trip_id(now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(TRIP_ID_ALPHABET) for _ in range(TRIP_ID_SUFFIX_LENGTH))
    return f"TRIP-{now_ms}-{suffix}"


def _lower(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip().lower()
    return None


def _ownership_columns(data: Dict[str, Any]) -> Dict[str, Optional[str]]:
    """Promote the ownership fields of a payload to their column values."""
    user = data.get("user") if "user" in data else data.get("User")
    user_id = pick(data, "userId", "UserId")
    if user_id is None and isinstance(user, str):
        user_id = user
    if user_id is None and isinstance(user, dict):
        user_id = user.get("id") or user.get("_id")
    return {
        "user_id": str(user_id) if user_id is not None else None,
        "email": _lower(pick(data, "email", "Email")),
        "user_email": _lower(pick(data, "userEmail", "UserEmail")),
        "owner_email": _lower(user.get("email")) if isinstance(user, dict) else None,
    }


def _commit(db: Session, action: str, record=None):
    try:
        db.commit()
        if record is not None:
            db.refresh(record)
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error while trying to {action}: {e}")
        raise PersistenceError(f"Failed to {action}", validation_errors=[str(e.orig)]) from e
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Storage error while trying to {action}: {e}")
        raise PersistenceError(f"Failed to {action}") from e


def validate_booking_payload(data: Dict[str, Any]) -> List[str]:
    errors = []
    if not isinstance(pick(data, "destination", "Destination"), str):
        errors.append("destination is required")
    owner = _ownership_columns(data)
    if not any(owner.values()):
        errors.append("an owner (email, userEmail, user.email or userId) is required")
    return errors


def create_booking(db: Session, data: Dict[str, Any]) -> Booking:
    errors = validate_booking_payload(data)
    if errors:
        raise ValidationError("Invalid booking data", errors)

    owner = _ownership_columns(data)
    document = {k: v for k, v in data.items() if k not in SYSTEM_FIELDS and k not in OWNERSHIP_FIELDS}
    if isinstance(document.get("user"), str):
        document.pop("user")

    now = utcnow()
    booking = Booking(
        trip_id=generate_trip_id(),
        document=document,
        status="pending",
        modifications=[],
        created_at=now,
        updated_at=now,
        **owner,
    )
    db.add(booking)
    _commit(db, "create booking", booking)
    logger.info(f"Booking {booking.trip_id} created for {booking.email or booking.user_email or booking.owner_email or booking.user_id}")
    return booking


def get_booking(db: Session, trip_id: str) -> Booking:
    try:
        booking = db.query(Booking).filter(Booking.trip_id == trip_id).first()
    except SQLAlchemyError as e:
        logger.error(f"Failed to load booking {trip_id}: {e}")
        raise PersistenceError("Failed to load booking") from e
    if booking is None:
        logger.warning(f"Booking {trip_id} not found")
        raise NotFoundError(f"Booking {trip_id} not found")
    return booking


def find_bookings_by_user(db: Session, identifier: str, status: Optional[str] = None) -> List[Booking]:
    """Bookings owned by a user id or an email address, newest first."""
    if not identifier:
        return []
    email = identifier.strip().lower()
    query = db.query(Booking).filter(or_(
        Booking.email == email,
        Booking.user_email == email,
        Booking.owner_email == email,
        Booking.user_id == identifier,
    ))
    if status:
        query = query.filter(Booking.status == status)
    try:
        return query.order_by(Booking.created_at.desc(), Booking.id.desc()).all()
    except SQLAlchemyError as e:
        logger.error(f"Failed to fetch bookings for {identifier}: {e}")
        raise PersistenceError("Failed to fetch bookings") from e


DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def list_bookings(db: Session, status: Optional[str] = None, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> Tuple[List[Booking], int]:
    """One page of all bookings, newest first, with the total matching count."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)
    query = db.query(Booking)
    if status:
        query = query.filter(Booking.status == status)
    try:
        total = query.count()
        items = (
            query.order_by(Booking.created_at.desc(), Booking.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Failed to list bookings: {e}")
        raise PersistenceError("Failed to fetch bookings") from e
    return items, total


def count_bookings_by_status(db: Session) -> Dict[str, int]:
    try:
        rows = db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all()
        earning = db.query(Booking.document).filter(Booking.status.in_(REVENUE_STATUSES)).all()
    except SQLAlchemyError as e:
        logger.error(f"Failed to count bookings: {e}")
        raise PersistenceError("Failed to compute booking stats") from e
    counts = {status: 0 for status in STATUSES}
    total = 0
    for status, count in rows:
        total += count
        if status in counts:
            counts[status] += count
    revenue = sum(parse_price(pick(document or {}, "price", "Price")) for (document,) in earning)
    return {"total": total, **counts, "revenue": revenue}


def _apply_delta(booking: Booking, delta: Dict[str, Any]):
    document = dict(booking.document or {})
    for key, value in delta.items():
        if key == "reason" or key in OWNERSHIP_FIELDS or key in ("status", "Status"):
            continue
        if key == "user" and not isinstance(value, dict):
            continue
        canonical = CANONICAL_KEYS.get(key, key)
        document.pop(FIELD_ALIASES.get(canonical, ""), None)
        document.pop(key, None)
        document[canonical] = value
    booking.document = document

    status = pick(delta, "status", "Status")
    if status is not None:
        booking.status = status

    if OWNERSHIP_FIELDS & delta.keys() or "user" in delta:
        for column, value in _ownership_columns(delta).items():
            if value is not None:
                setattr(booking, column, value)


def update_booking(db: Session, trip_id: str, delta: Dict[str, Any]) -> Booking:
    locked = sorted(IMMUTABLE_FIELDS & delta.keys())
    if locked:
        raise ValidationError("Booking fields cannot be changed", [f"{k} is read-only" for k in locked])
    status = pick(delta, "status", "Status")
    if status is not None and status not in STATUSES:
        raise ValidationError("Invalid booking status", [f"status must be one of {', '.join(STATUSES)}"])
    if status == "cancelled":
        raise ValidationError("Invalid booking status", ["use cancellation to cancel a booking"])

    booking = get_booking(db, trip_id)
    if status is not None and status != booking.status and booking.status in TERMINAL_STATUSES:
        raise ValidationError("Invalid booking status", [f"status {booking.status} is final"])
    now = max(utcnow(), booking.created_at)
    _apply_delta(booking, delta)
    booking.modifications = list(booking.modifications or []) + [{
        "modifiedAt": now.isoformat(),
        "changes": delta,
        "reason": delta.get("reason") or "Updated by system",
    }]
    booking.updated_at = now
    _commit(db, "update booking", booking)
    logger.info(f"Booking {trip_id} updated ({len(booking.modifications)} modifications)")
    return booking


def cancel_booking(db: Session, trip_id: str, acting_user_id: Optional[str], reason: Optional[str] = None) -> Booking:
    booking = get_booking(db, trip_id)
    if booking.status == "cancelled":
        logger.info(f"Booking {trip_id} is already cancelled")
        return booking
    if booking.status not in CANCELLABLE_STATUSES:
        raise ValidationError("Booking cannot be cancelled", [f"status {booking.status} cannot change to cancelled"])

    now = max(utcnow(), booking.created_at)
    booking.status = "cancelled"
    booking.cancellation = {
        "cancelledAt": now.isoformat(),
        "cancelledBy": acting_user_id,
        "reason": reason or "User requested cancellation",
    }
    booking.updated_at = now
    _commit(db, "cancel booking", booking)
    logger.info(f"Booking {trip_id} cancelled by {acting_user_id}")
    return booking


def is_owner(booking: Booking, identity: Identity) -> bool:
    if identity.email and identity.email.strip().lower() in booking.owner_emails():
        return True
    return bool(identity.user_id) and booking.user_id == identity.user_id


def delete_booking(db: Session, trip_id: str, identity: Identity):
    booking = get_booking(db, trip_id)
    if not (is_owner(booking, identity) or identity.is_admin):
        logger.warning(f"Unauthorized deletion of booking {trip_id} by {identity.email or identity.user_id}")
        raise ForbiddenError("You can only delete your own bookings")
    db.delete(booking)
    _commit(db, "delete booking")
    logger.info(f"Booking {trip_id} deleted by {identity.email or identity.user_id}")


EDIT_REQUEST_TYPES = (
    "date_change", "hotel_change", "activity_change", "flight_change", "passenger_change",
    "budget_change", "destination_change", "cancellation", "refund", "upgrade",
    "child_amenities", "weather_concern", "accessibility", "other",
)
EDIT_REQUEST_PRIORITIES = ("low", "medium", "high", "urgent")
MAX_EDIT_REQUEST_LENGTH = 2000


def validate_edit_request(description: Any, request_type: Any, priority: Any, proposed_changes: Any) -> List[str]:
    errors = []
    if not isinstance(description, str) or not description.strip():
        errors.append("request is required")
    elif len(description) > MAX_EDIT_REQUEST_LENGTH:
        errors.append(f"request must be at most {MAX_EDIT_REQUEST_LENGTH} characters")
    if request_type not in EDIT_REQUEST_TYPES:
        errors.append(f"requestType must be one of {', '.join(EDIT_REQUEST_TYPES)}")
    if priority not in EDIT_REQUEST_PRIORITIES:
        errors.append(f"priority must be one of {', '.join(EDIT_REQUEST_PRIORITIES)}")
    if not isinstance(proposed_changes, dict):
        errors.append("proposedChanges must be an object")
    return errors


def create_edit_request(
    db: Session,
    trip_id: str,
    identity: Identity,
    description: Optional[str],
    request_type: str = "other",
    proposed_changes: Optional[Dict[str, Any]] = None,
    priority: str = "medium",
) -> EditRequest:
    """File a change request against a booking the caller owns."""
    if proposed_changes is None:
        proposed_changes = {}
    errors = validate_edit_request(description, request_type, priority, proposed_changes)
    if errors:
        raise ValidationError("Invalid edit request", errors)

    booking = get_booking(db, trip_id)
    if not is_owner(booking, identity):
        logger.warning(f"Edit request on booking {trip_id} denied for {identity.email or identity.user_id}")
        raise ForbiddenError("Not authorized to edit this booking")

    edit_request = EditRequest(
        booking_id=booking.trip_id,
        user_id=identity.user_id,
        user_email=identity.email.strip().lower() if identity.email else None,
        request_type=request_type,
        description=description.strip(),
        proposed_changes=proposed_changes,
        priority=priority,
        status="pending",
        created_at=utcnow(),
    )
    db.add(edit_request)
    _commit(db, "submit edit request", edit_request)
    logger.info(f"Edit request {edit_request.id} ({priority}) filed on booking {trip_id}")
    return edit_request


def list_edit_requests(db: Session, status: Optional[str] = None) -> List[EditRequest]:
    query = db.query(EditRequest)
    if status:
        query = query.filter(EditRequest.status == status)
    try:
        return query.order_by(EditRequest.created_at.desc(), EditRequest.id.desc()).all()
    except SQLAlchemyError as e:
        logger.error(f"Failed to list edit requests: {e}")
        raise PersistenceError("Failed to fetch edit requests") from e
