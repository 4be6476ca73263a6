# pm_api/models/team_member.py
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from pm_api.entities import TeamMember


class AddTeamMemberRequest(BaseModel):
    user_id: int
    specialization_id: Optional[int] = None

class TeamMemberResponse(BaseModel):
    id: int
    user_id: int
    user_name: str
    user_email: str
    project_id: int
    specialization: Optional[str] = None
    added_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, member: TeamMember) -> "TeamMemberResponse":
        return cls(
            id=member.id,
            user_id=member.user_id,
            user_name=member.user.name,
            user_email=member.user.email,
            project_id=member.project_id,
            specialization=member.specialization.name if member.specialization else None,
            added_at=member.added_at,
        )

class TeamMemberWithWorkloadResponse(TeamMemberResponse):
    task_count: int = 0

class SpecializationResponse(BaseModel):
    id: int
    name: str
