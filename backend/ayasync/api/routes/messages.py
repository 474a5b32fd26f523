from datetime import datetime
from typing import Dict, List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import Field, field_serializer
from sqlalchemy.orm import Session
from ayasync.api.dependencies import CurrentUser, get_broadcaster, get_current_user
from ayasync.api.schemas import CamelModel, dump
from ayasync.core.database import get_db
from ayasync.models.user import User
from ayasync.realtime.broadcaster import Broadcaster, EVENT_MESSAGE_NEW, user_room
from ayasync.services.message_service import message_service

router = APIRouter(prefix="/messages", tags=["messages"])


class MessageCreate(CamelModel):
    body: Optional[str] = None


class MessageResponse(CamelModel):
    id: str
    sender_id: str = Field(alias="from")
    recipient_id: str = Field(alias="to")
    body: str
    read_at: Optional[datetime]
    created_at: datetime

    @field_serializer("read_at", "created_at")
    def serialize_timestamps(self, value: Optional[datetime], _info):
        return value.isoformat() if value else None


# Declared before /{user_id} so "unread" is not taken for a user id
@router.get("/unread/counts", response_model=Dict[str, int])
def unread_counts(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Unread message counts keyed by sender id"""
    return message_service.unread_counts(db, current_user.id)


@router.get("/{user_id}", response_model=List[MessageResponse])
def get_conversation(
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Conversation between the current user and user_id, oldest first"""
    return message_service.get_conversation(db, current_user.id, user_id)


@router.post("/{user_id}", response_model=MessageResponse, status_code=201)
def send_message(
    user_id: str,
    message: MessageCreate,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Send a direct message to user_id"""
    if not message.body:
        raise HTTPException(status_code=400, detail="Message body required")
    if not db.query(User).filter(User.id == user_id).first():
        raise HTTPException(status_code=404, detail="User not found")

    db_message = message_service.send_message(db, current_user.id, user_id, message.body)
    response = MessageResponse.model_validate(db_message)
    background_tasks.add_task(broadcaster.publish, user_room(user_id), EVENT_MESSAGE_NEW, dump(response))
    return response


@router.post("/{user_id}/read")
def mark_read(
    user_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Mark every unread message from user_id to the current user as read"""
    updated = message_service.mark_conversation_read(db, current_user.id, user_id)
    return {"ok": True, "updated": updated}
