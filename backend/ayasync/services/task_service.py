from typing import Any, Dict, List
from fastapi import HTTPException
from sqlalchemy.orm import Session
from ayasync.models.task import Task
from ayasync.utils.model_utils import utcnow

# Literal id the board UI sends when it lost track of a task
UNDEFINED_ID = "undefined"


class TaskService:
    """
    Task store scoped to teams.

    Writes are last-write-wins; there is no versioning and status may move
    between any two of todo/in-progress/completed.
    """

    @staticmethod
    def list_team_tasks(db: Session, team_id: str) -> List[Task]:
        return (
            db.query(Task)
            .filter(Task.team_id == team_id)
            .order_by(Task.created_at.asc())
            .all()
        )

    @staticmethod
    def create_task(db: Session, team_id: str, fields: Dict[str, Any], created_by: str) -> Task:
        now = utcnow()
        task = Task(team_id=team_id, created_by=created_by, created_at=now, updated_at=now)
        for key, value in fields.items():
            # Explicit None means "use the column default"
            if value is not None:
                setattr(task, key, value)
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    @staticmethod
    def get_task(db: Session, task_id: str) -> Task:
        """Resolve a task id, rejecting empty/'undefined' ids with 400 and unknown ids with 404"""
        if not task_id or task_id == UNDEFINED_ID:
            raise HTTPException(status_code=400, detail="Invalid task ID")
        task = db.query(Task).filter(Task.id == task_id).first()
        if not task:
            raise HTTPException(status_code=404, detail="Task not found")
        return task

    @staticmethod
    def update_task(db: Session, task: Task, changes: Dict[str, Any]) -> Task:
        """Merge the supplied fields over the stored task and refresh updated_at"""
        for key, value in changes.items():
            setattr(task, key, value)
        task.updated_at = utcnow()
        db.commit()
        db.refresh(task)
        return task

    @staticmethod
    def delete_task(db: Session, task: Task) -> None:
        db.delete(task)
        db.commit()


task_service = TaskService()
