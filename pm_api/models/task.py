# pm_api/models/task.py
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from pm_api.entities import Task, TaskPriority, TaskStatus


# ==== Requests ====

class CreateTaskRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    assignee_id: Optional[int] = None

class UpdateTaskRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    priority: Optional[TaskPriority] = None
    start_date: Optional[date] = None
    due_date: Optional[date] = None

class AssignTaskRequest(BaseModel):
    user_id: int

class UpdateTaskStatusRequest(BaseModel):
    status: TaskStatus


# ==== Responses ====

class TaskResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    priority: TaskPriority
    status: TaskStatus
    start_date: Optional[date] = None
    due_date: Optional[date] = None
    project_id: int
    assignee_id: Optional[int] = None
    assignee_name: Optional[str] = None
    created_by_id: int
    created_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, task: Task) -> "TaskResponse":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            priority=task.priority,
            status=task.status,
            start_date=task.start_date,
            due_date=task.due_date,
            project_id=task.project_id,
            assignee_id=task.assignee_id,
            assignee_name=task.assignee.name if task.assignee else None,
            created_by_id=task.created_by_id,
            created_at=task.created_at,
        )

class UpcomingDueTaskResponse(BaseModel):
    id: int
    title: str
    project_id: int
    project_name: str
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[date] = None

    @classmethod
    def from_entity(cls, task: Task) -> "UpcomingDueTaskResponse":
        return cls(
            id=task.id,
            title=task.title,
            project_id=task.project_id,
            project_name=task.project.name,
            status=task.status,
            priority=task.priority,
            due_date=task.due_date,
        )
