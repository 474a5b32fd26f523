from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import Field
from sqlalchemy.orm import Session
from ayasync.api.dependencies import CurrentUser, get_broadcaster, get_current_user
from ayasync.api.schemas import CamelModel, StrictCamelModel, TimestampedResponse
from ayasync.core.database import get_db
from ayasync.models.user import User, ROLE_ADMIN
from ayasync.realtime.broadcaster import Broadcaster, EVENT_PING, user_room
from ayasync.services.connection_service import connection_service

router = APIRouter(prefix="/users", tags=["users"])

DEFAULT_PING_MESSAGE = "👋"


class UserSummary(CamelModel):
    id: str
    email: str
    name: Optional[str]
    avatar_url: Optional[str]


class MeResponse(UserSummary):
    role: str
    is_admin: bool


class ProfileUpdate(StrictCamelModel):
    name: Optional[str] = None
    avatar_url: Optional[str] = None


class PingRequest(CamelModel):
    to_user_id: Optional[str] = None
    message: Optional[str] = None


class ConnectionCreate(CamelModel):
    user_id: Optional[str] = None


class ConnectionStatusUpdate(CamelModel):
    status: str = Field(min_length=1)


class ConnectionResponse(TimestampedResponse):
    id: str
    requester_id: str
    target_id: str
    status: str


def get_user_or_404(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


@router.get("/me", response_model=MeResponse)
def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Profile of the current user"""
    user = get_user_or_404(db, current_user.id)
    return MeResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        avatar_url=user.avatar_url,
        role=user.role,
        is_admin=user.role == ROLE_ADMIN,
    )


@router.patch("/me", response_model=UserSummary)
def update_me(
    profile: ProfileUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update display name and/or avatar; empty values leave the field unchanged"""
    user = get_user_or_404(db, current_user.id)
    if profile.name:
        user.name = profile.name
    if profile.avatar_url:
        user.avatar_url = profile.avatar_url
    db.commit()
    db.refresh(user)
    return user


@router.get("", response_model=List[UserSummary])
def list_users(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Directory of all users"""
    return db.query(User).order_by(User.created_at.asc()).all()


@router.post("/ping")
def ping_user(
    ping: PingRequest,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Send a realtime nudge to another user"""
    if not ping.to_user_id:
        raise HTTPException(status_code=400, detail="toUserId is required")
    message = ping.message or DEFAULT_PING_MESSAGE
    background_tasks.add_task(
        broadcaster.publish,
        user_room(ping.to_user_id),
        EVENT_PING,
        {"from": current_user.id, "message": message},
    )
    return {"ok": True, "from": current_user.id, "to": ping.to_user_id, "message": message}


@router.get("/connections", response_model=List[ConnectionResponse])
def list_connections(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Connections the current user requested or received"""
    return connection_service.list_for_user(db, current_user.id)


@router.post("/connections", response_model=ConnectionResponse, status_code=201)
def create_connection(
    request: ConnectionCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Send a connection request to another user"""
    return connection_service.request_connection(db, current_user.id, request.user_id or "")


@router.patch("/connections/{connection_id}", response_model=ConnectionResponse)
def update_connection(
    connection_id: str,
    update: ConnectionStatusUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Accept or decline a pending connection request"""
    return connection_service.resolve_connection(db, connection_id, current_user.id, update.status)


@router.delete("/connections/{connection_id}")
def delete_connection(
    connection_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Remove a connection; either party may do so"""
    connection_service.delete_connection(db, connection_id, current_user.id)
    return {"ok": True}
