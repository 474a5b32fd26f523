from typing import Any, Dict, List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import EmailStr
from sqlalchemy.orm import Session
from ayasync.api.dependencies import CurrentUser, get_broadcaster, get_current_user
from ayasync.api.schemas import StrictCamelModel, TimestampedResponse
from ayasync.core.database import get_db
from ayasync.models.board import Board
from ayasync.models.user import User
from ayasync.realtime.broadcaster import (
    Broadcaster,
    EVENT_BOARD_SHARED,
    EVENT_TEAM_BOARD_UPDATE,
    team_board_room,
    user_room,
)

router = APIRouter(prefix="/boards", tags=["boards"])

DEFAULT_BOARD_TITLE = "Untitled Board"


class BoardCreate(StrictCamelModel):
    title: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class BoardUpdate(StrictCamelModel):
    title: Optional[str] = None
    data: Optional[Dict[str, Any]] = None


class BoardShare(StrictCamelModel):
    email: EmailStr


class BoardResponse(TimestampedResponse):
    id: str
    title: str
    owner_id: str
    members: List[str]
    data: Dict[str, Any]


def get_accessible_board(db: Session, board_id: str, user_id: str) -> Board:
    board = db.query(Board).filter(Board.id == board_id).first()
    if not board:
        raise HTTPException(status_code=404, detail="Board not found")
    if not board.can_access(user_id):
        raise HTTPException(status_code=403, detail="Forbidden")
    return board


@router.post("", response_model=BoardResponse, status_code=201)
def create_board(
    board_data: BoardCreate,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a board owned by the current user"""
    board = Board(
        title=board_data.title or DEFAULT_BOARD_TITLE,
        owner_id=current_user.id,
        members=[],
        data=board_data.data or {},
    )
    db.add(board)
    db.commit()
    db.refresh(board)
    return board


@router.get("/{board_id}", response_model=BoardResponse)
def get_board(
    board_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a board the current user owns or was shared"""
    return get_accessible_board(db, board_id, current_user.id)


@router.put("/{board_id}", response_model=BoardResponse)
def update_board(
    board_id: str,
    board_update: BoardUpdate,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Update board title and/or data and push the new state to viewers"""
    board = get_accessible_board(db, board_id, current_user.id)
    if board_update.title is not None:
        board.title = board_update.title
    if board_update.data is not None:
        board.data = board_update.data
    db.commit()
    db.refresh(board)

    background_tasks.add_task(
        broadcaster.publish,
        team_board_room(board.id),
        EVENT_TEAM_BOARD_UPDATE,
        {"id": board.id, "title": board.title, "data": board.data},
    )
    return board


@router.post("/{board_id}/share")
def share_board(
    board_id: str,
    share: BoardShare,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Share a board with another user by email; owner only"""
    board = db.query(Board).filter(Board.id == board_id).first()
    if not board:
        raise HTTPException(status_code=404, detail="Board not found")
    if board.owner_id != current_user.id:
        raise HTTPException(status_code=403, detail="Only owner can share")

    user = db.query(User).filter(User.email == share.email.strip().lower()).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if user.id not in board.members and user.id != board.owner_id:
        # Reassign rather than append so the JSON column is marked dirty
        board.members = [*board.members, user.id]
        db.commit()

    background_tasks.add_task(
        broadcaster.publish,
        user_room(user.id),
        EVENT_BOARD_SHARED,
        {"boardId": board.id, "title": board.title},
    )
    return {"ok": True}
