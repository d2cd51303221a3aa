from fastapi import APIRouter, Query, Depends, Body, HTTPException
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session
import logging

from tripledger.auth import Identity, get_current_identity, require_admin
from tripledger.db.crud import (
    cancel_booking,
    create_booking,
    create_edit_request,
    delete_booking,
    find_bookings_by_user,
    get_booking,
    is_owner,
    update_booking,
)
from tripledger.db.session import get_db
from tripledger.errors import BookingError, ForbiddenError
from tripledger.schemas.booking import BookingCancelRequest, EditRequestCreate, EditRequestReceipt
from tripledger.services.normalizer import normalize_booking

router = APIRouter()
logger = logging.getLogger(__name__)


def _count(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def booking_detail(document: Dict[str, Any]) -> Dict[str, Any]:
    trip = normalize_booking(document)
    passengers = trip["passengers"]
    children, infants = _count(passengers.get("children")), _count(passengers.get("infants"))
    trip["isFamilyTrip"] = children > 0 or infants > 0
    trip["totalPassengers"] = _count(passengers.get("adults")) + children + infants
    return trip


@router.get("")
def list_user_bookings(
    email: str = Query(...),
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    try:
        bookings = find_bookings_by_user(db, email, status=status)
        logger.info(f"Fetched {len(bookings)} bookings for {email}")
        return [normalize_booking(b.to_document()) for b in bookings]
    except BookingError:
        raise
    except Exception as e:
        logger.error(f"Error fetching bookings: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch bookings")


@router.post("", status_code=201)
def create_booking_route(payload: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    try:
        booking = create_booking(db, payload)
        return booking.to_document()
    except BookingError:
        raise
    except Exception as e:
        logger.error(f"Error creating booking: {e}")
        raise HTTPException(status_code=500, detail="Failed to create booking")


@router.delete("")
def delete_own_booking(
    id: str = Query(...),
    email: str = Query(...),
    db: Session = Depends(get_db),
):
    delete_booking(db, id, Identity(email=email.strip().lower()))
    return {"success": True}


@router.get("/{trip_id}")
def get_booking_route(
    trip_id: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    booking = get_booking(db, trip_id)
    if not (is_owner(booking, identity) or identity.is_admin):
        logger.warning(f"Access to booking {trip_id} denied for {identity.email}")
        raise ForbiddenError("Access denied")
    return booking_detail(booking.to_document())


@router.post("/{trip_id}/edit-requests", status_code=201, response_model=EditRequestReceipt, response_model_by_alias=True)
def submit_edit_request(
    trip_id: str,
    request: EditRequestCreate,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    edit_request = create_edit_request(
        db,
        trip_id,
        identity,
        request.request,
        request_type=request.request_type,
        proposed_changes=request.proposed_changes,
        priority=request.priority,
    )
    return EditRequestReceipt(request_id=edit_request.id, status=edit_request.status)


@router.post("/{trip_id}/cancel")
def cancel_booking_route(
    trip_id: str,
    request: Optional[BookingCancelRequest] = None,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    booking = get_booking(db, trip_id)
    if not (is_owner(booking, identity) or identity.is_admin):
        logger.warning(f"Cancellation of booking {trip_id} denied for {identity.email}")
        raise ForbiddenError("You can only cancel your own bookings")
    booking = cancel_booking(db, trip_id, identity.user_id or identity.email, request.reason if request else None)
    return booking.to_document()


@router.put("/{trip_id}")
def admin_update_booking(
    trip_id: str,
    delta: Dict[str, Any] = Body(...),
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    booking = update_booking(db, trip_id, delta)
    logger.info(f"Booking {trip_id} updated by admin {admin.email}")
    return booking.to_document()


@router.delete("/{trip_id}")
def admin_delete_booking(
    trip_id: str,
    admin: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    delete_booking(db, trip_id, admin)
    return {"success": True}
