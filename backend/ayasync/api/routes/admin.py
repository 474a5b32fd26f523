import logging
from datetime import datetime
from typing import List, Literal, Optional
from fastapi import APIRouter, Depends, HTTPException
from pydantic import field_serializer
from sqlalchemy import or_
from sqlalchemy.orm import Session
from ayasync.api.dependencies import CurrentUser, require_admin
from ayasync.api.schemas import CamelModel, StrictCamelModel
from ayasync.core.database import get_db
from ayasync.models.board import Board
from ayasync.models.connection import Connection
from ayasync.models.message import Message
from ayasync.models.team import TeamMember
from ayasync.models.user import User, ROLE_ADMIN, ROLE_USER
from ayasync.utils.model_utils import utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

USER_NOT_FOUND_MESSAGE = "User not found"


class AdminUserResponse(CamelModel):
    id: str
    email: str
    name: Optional[str]
    role: str
    is_active: bool
    last_login: Optional[datetime]
    created_at: datetime

    @field_serializer("last_login", "created_at")
    def serialize_timestamps(self, value: Optional[datetime], _info):
        return value.isoformat() if value else None


class AdminUserUpdate(StrictCamelModel):
    name: Optional[str] = None
    role: Optional[Literal["user", "admin"]] = None
    is_active: Optional[bool] = None


class StatsResponse(CamelModel):
    total_users: int
    active_users: int
    inactive_users: int
    admin_users: int
    regular_users: int
    last_updated: datetime

    @field_serializer("last_updated")
    def serialize_last_updated(self, value: datetime, _info):
        return value.isoformat()


def get_user_or_404(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail=USER_NOT_FOUND_MESSAGE)
    return user


@router.get("/users", response_model=List[AdminUserResponse])
def list_users(
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """List all user accounts"""
    return db.query(User).order_by(User.created_at.asc()).all()


@router.get("/users/{user_id}", response_model=AdminUserResponse)
def get_user(
    user_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Get a single user account"""
    return get_user_or_404(db, user_id)


@router.patch("/users/{user_id}", response_model=AdminUserResponse)
def update_user(
    user_id: str,
    user_update: AdminUserUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Change a user's name, role or active flag"""
    user = get_user_or_404(db, user_id)
    if user_update.name is not None:
        user.name = user_update.name
    if user_update.role is not None:
        user.role = user_update.role
    if user_update.is_active is not None:
        user.is_active = user_update.is_active
    db.commit()
    db.refresh(user)
    logger.info(f"Admin {admin.id} updated user {user.id}")
    return user


def remove_user_references(db: Session, user_id: str):
    """Drop memberships, connections, messages and boards tied to a user. Caller commits."""
    db.query(TeamMember).filter(TeamMember.user_id == user_id).delete(synchronize_session=False)
    db.query(Connection).filter(
        or_(Connection.requester_id == user_id, Connection.target_id == user_id)
    ).delete(synchronize_session=False)
    db.query(Message).filter(
        or_(Message.sender_id == user_id, Message.recipient_id == user_id)
    ).delete(synchronize_session=False)
    db.query(Board).filter(Board.owner_id == user_id).delete(synchronize_session=False)
    for board in db.query(Board).all():
        if user_id in (board.members or []):
            # Assign a new list so the JSON column is marked dirty
            board.members = [member for member in board.members if member != user_id]


@router.delete("/users/{user_id}")
def delete_user(
    user_id: str,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Delete a user account (not your own)"""
    user = get_user_or_404(db, user_id)
    if user.id == admin.id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")
    remove_user_references(db, user.id)
    db.delete(user)
    db.commit()
    logger.info(f"Admin {admin.id} deleted user {user_id}")
    return {"message": "User deleted successfully"}


@router.get("/stats", response_model=StatsResponse)
def get_stats(
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db)
):
    """Account counts for the admin dashboard"""
    total = db.query(User).count()
    active = db.query(User).filter(User.is_active.is_(True)).count()
    return StatsResponse(
        total_users=total,
        active_users=active,
        inactive_users=total - active,
        admin_users=db.query(User).filter(User.role == ROLE_ADMIN).count(),
        regular_users=db.query(User).filter(User.role == ROLE_USER).count(),
        last_updated=utcnow(),
    )
