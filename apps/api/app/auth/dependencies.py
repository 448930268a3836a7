from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from app.auth.utils import verify_token
from app.common.db import get_db
from app.common.models import Member
from app.core.business_metrics import BusinessMetric, MetricCategory
from app.core.errors import ForbiddenError, UnauthorizedError
from app.core.metrics import emit_business_metric

logger = logging.getLogger(__name__)

# auto_error=False so a missing header goes through UnauthorizedError
security = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> UUID:
    if not credentials:
        raise UnauthorizedError("Not authenticated")

    payload = verify_token(credentials.credentials)
    if not payload or payload.get("type") != "access":
        raise UnauthorizedError("Invalid token")

    user_id = payload.get("user_id") or payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Invalid token payload")

    try:
        return UUID(user_id)
    except ValueError:
        raise UnauthorizedError("Invalid token payload")


def get_current_member(
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> Member:
    """Load the active member the token belongs to."""
    member = db.get(Member, user_id)
    if not member or not member.is_active:
        raise UnauthorizedError("User not found or inactive")
    return member


def require_admin(member: Member = Depends(get_current_member)) -> Member:
    """Only admins may run and inspect imports."""
    if member.role != "admin":
        logger.warning(f"Member {member.id} denied admin access (role={member.role})")
        emit_business_metric(
            BusinessMetric.PERMISSION_DENIED,
            1,
            category=MetricCategory.SECURITY.value,
        )
        raise ForbiddenError("Admin access required")
    return member
