"""Request dependencies: the acting user and role gates.

Authentication happens upstream; the gateway forwards the authenticated user
id in the ``X-User-Id`` header.
"""
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.orm import Session

from ecotrack.database import get_db
from ecotrack.models.user import User
from ecotrack.services.auto_approval import SchedulerHandle


def get_current_user(
    x_user_id: Optional[int] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    if x_user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-User-Id header")
    user = db.query(User).filter(User.id == x_user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def require_roles(*roles: str):
    """Dependency factory: the current user must hold one of ``roles``."""

    def dependency(user: User = Depends(get_current_user)) -> User:
        if user.role.value not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Forbidden: requires one of roles {list(roles)}",
            )
        return user

    return dependency


def get_scheduler(request: Request) -> SchedulerHandle:
    return request.app.state.scheduler
