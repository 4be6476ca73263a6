# pm_api/models/project.py
from datetime import date, datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

from pm_api.entities import ProjectStatus
from pm_api.models.team_member import TeamMemberResponse


class CreateProjectRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None

class UpdateProjectRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[ProjectStatus] = None

class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: ProjectStatus
    created_by_id: int
    created_at: Optional[datetime] = None

class ProjectDropdownResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str

class ProjectDetailResponse(BaseModel):
    """Project summary plus its most recently added members."""
    id: int
    name: str
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: ProjectStatus
    team_members: List[TeamMemberResponse] = []
