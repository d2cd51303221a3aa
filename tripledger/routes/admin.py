from fastapi import APIRouter, Query, Depends
from typing import Optional
from sqlalchemy.orm import Session

from tripledger.auth import require_admin
from tripledger.db.crud import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    count_bookings_by_status,
    list_bookings,
    list_edit_requests,
)
from tripledger.db.session import get_db
from tripledger.schemas.booking import BookingPage, BookingStatusCounts, Pagination

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("/bookings", response_model=BookingPage, response_model_by_alias=True)
def admin_list_bookings(
    status: Optional[str] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1),
    db: Session = Depends(get_db),
):
    limit = min(limit, MAX_PAGE_SIZE)
    bookings, total = list_bookings(db, status=status, page=page, limit=limit)
    pages = -(-total // limit)
    return BookingPage(
        bookings=[b.to_document() for b in bookings],
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
        ),
    )


@router.get("/bookings/stats", response_model=BookingStatusCounts)
def admin_booking_stats(db: Session = Depends(get_db)):
    return count_bookings_by_status(db)


@router.get("/edit-requests")
def admin_list_edit_requests(status: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return [r.to_document() for r in list_edit_requests(db, status=status)]
