from typing import Optional

from fastapi import APIRouter, Depends, Query
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.api.deps import get_registry
from app.core.access import AccessGate, GateDecision
from app.core.auth import get_optional_user
from app.db.mongo import get_db
from app.models.user import UserResponse
from app.repositories.business_repo import UserRoleRepository
from app.stores.session import SessionRegistry

router = APIRouter()


@router.get("/guard", response_model=GateDecision)
async def guard(
    path: str = Query(..., min_length=1),
    user: Optional[UserResponse] = Depends(get_optional_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
    registry: SessionRegistry = Depends(get_registry),
):
    """Whether ``path`` may be shown to the caller, or where to send them."""
    business_id = None
    if user is not None:
        session = await registry.get(db, user)
        business_id = session.business_id
    return await AccessGate(UserRoleRepository(db)).check(path, user, business_id)
