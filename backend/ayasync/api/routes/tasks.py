from typing import List, Literal, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import Field
from sqlalchemy.orm import Session
from ayasync.api.dependencies import CurrentUser, get_broadcaster, get_current_user
from ayasync.api.schemas import StrictCamelModel, TimestampedResponse, dump
from ayasync.core.config import settings
from ayasync.core.database import get_db
from ayasync.realtime.broadcaster import Broadcaster, EVENT_TEAM_BOARD_UPDATE, team_board_room
from ayasync.services.task_service import task_service
from ayasync.services.team_service import team_service

router = APIRouter(prefix="/tasks", tags=["tasks"])

TaskStatus = Literal["todo", "in-progress", "completed"]
TaskPriority = Literal["low", "medium", "high"]
# Columns that cannot be cleared; a null for them in an update is ignored
REQUIRED_TASK_FIELDS = {"title", "status", "priority"}


class TaskCreate(StrictCamelModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[str] = None


class TaskUpdate(StrictCamelModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    assigned_to: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[str] = None


class TaskResponse(TimestampedResponse):
    id: str
    team_id: str
    title: str
    description: Optional[str]
    assigned_to: Optional[str]
    status: str
    priority: str
    due_date: Optional[str]
    created_by: Optional[str]


def ensure_team_access(db: Session, team_id: str, current_user: CurrentUser) -> None:
    """Membership check, applied only when ENFORCE_TEAM_MEMBERSHIP is on"""
    if not settings.ENFORCE_TEAM_MEMBERSHIP:
        return
    if not team_service.is_active_member(db, team_id, current_user.id):
        raise HTTPException(status_code=403, detail="Not a member of this team")


@router.get("/team/{team_id}", response_model=List[TaskResponse])
def list_team_tasks(
    team_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List tasks on a team board"""
    ensure_team_access(db, team_id, current_user)
    return task_service.list_team_tasks(db, team_id)


@router.post("/team/{team_id}", response_model=TaskResponse, status_code=201)
def create_task(
    team_id: str,
    task_data: TaskCreate,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Create a task on a team board"""
    ensure_team_access(db, team_id, current_user)
    task = task_service.create_task(db, team_id, task_data.model_dump(), current_user.id)
    response = TaskResponse.model_validate(task)
    background_tasks.add_task(
        broadcaster.publish, team_board_room(team_id), EVENT_TEAM_BOARD_UPDATE, {"task": dump(response)}
    )
    return response


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    task_update: TaskUpdate,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Update a task; only the supplied fields change"""
    task = task_service.get_task(db, task_id)
    ensure_team_access(db, task.team_id, current_user)
    changes = {
        key: value
        for key, value in task_update.model_dump(exclude_unset=True).items()
        if value is not None or key not in REQUIRED_TASK_FIELDS
    }
    task = task_service.update_task(db, task, changes)
    response = TaskResponse.model_validate(task)
    background_tasks.add_task(
        broadcaster.publish, team_board_room(task.team_id), EVENT_TEAM_BOARD_UPDATE, {"task": dump(response)}
    )
    return response


@router.put("/")
@router.delete("/")
def reject_missing_task_id(current_user: CurrentUser = Depends(get_current_user)):
    """Task id left out of the path"""
    raise HTTPException(status_code=400, detail="Invalid task ID")


@router.delete("/{task_id}")
def delete_task(
    task_id: str,
    background_tasks: BackgroundTasks,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    """Delete a task"""
    task = task_service.get_task(db, task_id)
    ensure_team_access(db, task.team_id, current_user)
    team_id, deleted_id = task.team_id, task.id
    task_service.delete_task(db, task)
    background_tasks.add_task(
        broadcaster.publish, team_board_room(team_id), EVENT_TEAM_BOARD_UPDATE, {"deletedTaskId": deleted_id}
    )
    return {"ok": True}
