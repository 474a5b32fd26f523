from datetime import datetime
from typing import List, Literal, Optional
from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import Field, field_serializer
from sqlalchemy.orm import Session
from ayasync.api.dependencies import CurrentUser, get_broadcaster, get_current_user
from ayasync.api.schemas import CamelModel, StrictCamelModel, TimestampedResponse, dump
from ayasync.core.database import get_db
from ayasync.realtime.broadcaster import Broadcaster, EVENT_TEAM_CREATED, EVENT_TEAM_UPDATED
from ayasync.services.team_service import team_service

router = APIRouter(prefix="/teams", tags=["teams"])


class TeamSettings(StrictCamelModel):
    allow_member_invites: bool = True
    allow_task_creation: bool = True
    allow_task_assignment: bool = True
    max_members: int = Field(default=10, ge=1)
    visibility: Literal["public", "private"] = "public"


class TeamCreate(StrictCamelModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    settings: Optional[TeamSettings] = None


class TeamMemberResponse(CamelModel):
    user_id: str
    email: Optional[str]
    role: str
    is_active: bool
    joined_at: datetime

    @field_serializer("joined_at")
    def serialize_joined_at(self, value: datetime, _info):
        return value.isoformat() if value else None


class TeamResponse(TimestampedResponse):
    id: str
    name: str
    description: Optional[str]
    owner_id: Optional[str]
    members: List[TeamMemberResponse]
    # Stored with camelCase keys already
    settings: dict


class TeamEnvelope(CamelModel):
    ok: bool
    team: TeamResponse


@router.get("", response_model=List[TeamResponse])
def list_teams(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List every team"""
    return team_service.list_teams(db)


@router.get("/mine", response_model=List[TeamResponse])
def list_my_teams(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List teams the current user is an active member of"""
    return team_service.list_user_teams(db, current_user.id)


@router.post("", response_model=TeamEnvelope, status_code=201)
def create_team(
    team_data: TeamCreate,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Create a team owned by the current user"""
    settings = team_data.settings.model_dump(by_alias=True) if team_data.settings else None
    team = team_service.create_team(
        db,
        name=team_data.name,
        description=team_data.description,
        settings=settings,
        user_id=current_user.id,
        email=current_user.email,
    )
    response = TeamResponse.model_validate(team)
    # Every session learns about new teams, so "available teams" lists refresh
    background_tasks.add_task(broadcaster.broadcast, EVENT_TEAM_CREATED, dump(response))
    return {"ok": True, "team": response}


@router.post("/{team_id}/join", response_model=TeamEnvelope)
def join_team(
    team_id: str,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Join a team as a member; joining twice is a no-op"""
    team, changed = team_service.join_team(db, team_id, current_user.id, current_user.email)
    response = TeamResponse.model_validate(team)
    if changed:
        background_tasks.add_task(broadcaster.broadcast, EVENT_TEAM_UPDATED, dump(response))
    return {"ok": True, "team": response}
