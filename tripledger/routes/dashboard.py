from fastapi import APIRouter, Query, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from tripledger.auth import Identity, get_current_identity
from tripledger.db.session import get_db
from tripledger.errors import BookingError
from tripledger.schemas.dashboard import DashboardResponse
from tripledger.services.dashboard import compose_dashboard

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=DashboardResponse)
def get_dashboard(
    email: str = Query(...),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    try:
        return compose_dashboard(db, identity, email)
    except BookingError:
        raise
    except Exception as e:
        logger.error(f"Dashboard error for {email}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch dashboard data")
