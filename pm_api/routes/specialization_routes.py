from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pm_api.deps import get_current_actor, get_db
from pm_api.models.common import ApiResponse, success
from pm_api.services import team_member_service

router = APIRouter(prefix="/api/specializations", tags=["specializations"])


@router.get("", response_model=ApiResponse)
def list_specializations(db: Session = Depends(get_db), _actor=Depends(get_current_actor)):
    return success(team_member_service.list_specializations(db))
