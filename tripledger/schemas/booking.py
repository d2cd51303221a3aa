from pydantic import BaseModel
from typing import Any, Dict, List, Optional

from tripledger.schemas.dashboard import CamelModel


class BookingCancelRequest(BaseModel):
    reason: Optional[str] = None


class BookingStatusCounts(BaseModel):
    total: int
    pending: int
    confirmed: int
    completed: int
    cancelled: int
    revenue: int


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool


class BookingPage(BaseModel):
    bookings: List[Dict[str, Any]]
    pagination: Pagination


class EditRequestCreate(CamelModel):
    # Field checks happen in the store so failures share the 400 body shape
    request: Optional[Any] = None
    request_type: Any = "other"
    proposed_changes: Any = None
    priority: Any = "medium"


class EditRequestReceipt(CamelModel):
    success: bool = True
    message: str = "Edit request submitted successfully"
    request_id: int
    status: str
