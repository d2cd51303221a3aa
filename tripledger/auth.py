"""
Request identity as forwarded by the authenticating gateway.

The gateway in front of this service owns sessions and login; it passes the
authenticated user on as ``X-User-Id``, ``X-User-Email`` and ``X-User-Role``
headers, which are trusted verbatim.
"""
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException
from pydantic import BaseModel

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


class Identity(BaseModel):
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def get_current_identity(
    x_user_id: Optional[str] = Header(None),
    x_user_email: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
) -> Identity:
    if not x_user_email:
        logger.warning("Request without an authenticated identity")
        raise HTTPException(status_code=401, detail="Authentication required")
    return Identity(
        user_id=x_user_id,
        email=x_user_email.strip().lower(),
        role=(x_user_role or "user").lower(),
    )


def require_admin(identity: Identity = Depends(get_current_identity)) -> Identity:
    if not identity.is_admin:
        logger.warning(f"Admin-only route denied for {identity.email}")
        raise HTTPException(status_code=403, detail="Access denied")
    return identity
