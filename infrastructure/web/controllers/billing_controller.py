from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from core.entities.user import User
from core.repositories.database_repository import DatabaseRepository
from core.repositories.server_repository import ServerRepository
from core.repositories.user_repository import UserRepository
from core.use_cases.account_use_cases import billing_history, billing_info, upgrade_plan
from infrastructure.web.dependencies import (
    get_current_user, get_database_repo, get_server_repo, get_user_repo,
)
from infrastructure.web.schemas import BillingEventResponse, UserResponse, billing_event_out, user_out


router = APIRouter(prefix="/api/billing", tags=["billing"])


class UpgradeRequest(BaseModel):
    plan: Optional[str] = None  # premium | enterprise

class UpgradeResponse(BaseModel):
    message: str
    user: UserResponse

class HistoryResponse(BaseModel):
    history: List[BillingEventResponse]


@router.get("/info")
def get_billing_info(
    current_user: User = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repo),
    servers: ServerRepository = Depends(get_server_repo),
    databases: DatabaseRepository = Depends(get_database_repo),
) -> Dict[str, Any]:
    return billing_info(users, servers, databases, current_user.id)

@router.post("/upgrade", response_model=UpgradeResponse)
def upgrade(
    payload: UpgradeRequest,
    current_user: User = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repo),
):
    updated = upgrade_plan(users, current_user.id, payload.plan)
    return UpgradeResponse(message=f"Plan upgraded to {updated.plan}", user=user_out(updated))

@router.get("/history", response_model=HistoryResponse)
def get_history(
    limit: int = 50,
    current_user: User = Depends(get_current_user),
    users: UserRepository = Depends(get_user_repo),
):
    limit = max(1, min(100, int(limit)))
    events = billing_history(users, current_user.id, limit=limit)
    return HistoryResponse(history=[billing_event_out(e) for e in events])
