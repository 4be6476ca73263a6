# pm_api/models/task_history.py
from datetime import datetime
from pydantic import BaseModel


class TaskHistoryResponse(BaseModel):
    id: int
    message: str
    changed_at: datetime
