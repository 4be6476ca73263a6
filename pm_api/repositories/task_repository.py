from __future__ import annotations

from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from pm_api.entities import Project, Task, TaskHistory, TaskPriority, TaskStatus

SORTABLE_FIELDS = {
    "dueDate": Task.due_date,
    "due_date": Task.due_date,
    "startDate": Task.start_date,
    "start_date": Task.start_date,
    "title": Task.title,
    "priority": Task.priority,
    "status": Task.status,
    "createdAt": Task.created_at,
    "created_at": Task.created_at,
}


class TaskRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, task_id: int, for_update: bool = False) -> Optional[Task]:
        q = select(Task).where(Task.id == task_id)
        if for_update:
            q = q.with_for_update()
        return self.db.scalar(q)

    def add(self, task: Task) -> Task:
        self.db.add(task)
        self.db.flush()
        return task

    def exists_by_title(self, title: str, project_id: int, exclude_task_id: Optional[int] = None) -> bool:
        q = select(Task.id).where(Task.title == title, Task.project_id == project_id)
        if exclude_task_id is not None:
            q = q.where(Task.id != exclude_task_id)
        return self.db.scalar(q) is not None

    def exists_in_project_owned_by(self, task_id: int, project_id: int, owner_id: int) -> bool:
        q = (
            select(Task.id)
            .join(Project, Project.id == Task.project_id)
            .where(Task.id == task_id, Task.project_id == project_id, Project.created_by_id == owner_id)
        )
        return self.db.scalar(q) is not None

    def exists_in_project_assigned_to(self, task_id: int, project_id: int, assignee_id: int) -> bool:
        q = select(Task.id).where(
            Task.id == task_id, Task.project_id == project_id, Task.assignee_id == assignee_id
        )
        return self.db.scalar(q) is not None

    def find_by_project_and_assignee(
        self, project_id: int, assignee_id: int, for_update: bool = False
    ) -> List[Task]:
        q = (
            select(Task)
            .where(Task.project_id == project_id, Task.assignee_id == assignee_id)
            .order_by(Task.id)
        )
        if for_update:
            q = q.with_for_update()
        return list(self.db.scalars(q))

    def find_unassigned(
        self,
        project_id: int,
        search: Optional[str] = None,
        priority: Optional[TaskPriority] = None,
        page: int = 0,
        size: int = 10,
    ) -> Tuple[List[Task], int]:
        q = select(Task).where(Task.project_id == project_id, Task.assignee_id.is_(None))
        if search:
            like = f"%{search}%"
            q = q.where(or_(Task.title.ilike(like), Task.description.ilike(like)))
        if priority:
            q = q.where(Task.priority == priority)
        return self._paged(q.order_by(Task.created_at.desc(), Task.id.desc()), page, size)

    def find_by_project(
        self,
        project_id: int,
        search: Optional[str] = None,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        sort_by: str = "dueDate",
        sort_direction: str = "asc",
        page: int = 0,
        size: int = 10,
    ) -> Tuple[List[Task], int]:
        q = select(Task).where(Task.project_id == project_id)
        if search:
            like = f"%{search}%"
            q = q.where(or_(Task.title.ilike(like), Task.description.ilike(like)))
        if status:
            q = q.where(Task.status == status)
        if priority:
            q = q.where(Task.priority == priority)
        column = SORTABLE_FIELDS.get(sort_by, Task.due_date)
        order = column.asc() if sort_direction.lower() == "asc" else column.desc()
        return self._paged(q.order_by(order, Task.id), page, size)

    def find_upcoming_due(self, assignee_id: int, start: date, end: date) -> List[Task]:
        q = (
            select(Task)
            .where(
                Task.assignee_id == assignee_id,
                Task.due_date >= start,
                Task.due_date <= end,
            )
            .order_by(Task.due_date.asc(), Task.id)
        )
        return list(self.db.scalars(q))

    def count_by_assignee(self, assignee_id: int) -> int:
        return self.db.scalar(select(func.count(Task.id)).where(Task.assignee_id == assignee_id)) or 0

    def _paged(self, q, page: int, size: int) -> Tuple[List[Task], int]:
        total = self.db.scalar(select(func.count()).select_from(q.order_by(None).subquery())) or 0
        rows = self.db.scalars(q.offset(page * size).limit(size))
        return list(rows), total


class TaskHistoryRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, entry: TaskHistory) -> TaskHistory:
        self.db.add(entry)
        self.db.flush()
        return entry

    def add_all(self, entries: List[TaskHistory]) -> List[TaskHistory]:
        self.db.add_all(entries)
        self.db.flush()
        return entries

    def find_by_task(self, task_id: int) -> List[TaskHistory]:
        q = (
            select(TaskHistory)
            .where(TaskHistory.task_id == task_id)
            .order_by(TaskHistory.changed_at.desc(), TaskHistory.id.desc())
        )
        return list(self.db.scalars(q))

    def find_recent_for_projects_created_by(self, owner_id: int, limit: int) -> List[TaskHistory]:
        q = (
            select(TaskHistory)
            .join(Task, Task.id == TaskHistory.task_id)
            .join(Project, Project.id == Task.project_id)
            .where(Project.created_by_id == owner_id)
            .order_by(TaskHistory.changed_at.desc(), TaskHistory.id.desc())
            .limit(limit)
        )
        return list(self.db.scalars(q))

    def find_recent_for_assignee(self, assignee_id: int, limit: int) -> List[TaskHistory]:
        q = (
            select(TaskHistory)
            .join(Task, Task.id == TaskHistory.task_id)
            .where(Task.assignee_id == assignee_id)
            .order_by(TaskHistory.changed_at.desc(), TaskHistory.id.desc())
            .limit(limit)
        )
        return list(self.db.scalars(q))
