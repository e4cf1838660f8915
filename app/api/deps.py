from typing import Callable

from fastapi import Depends, HTTPException, Request, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.access import AccessGate
from app.core.auth import get_current_user
from app.db.mongo import get_db
from app.models.user import UserResponse
from app.repositories.business_repo import UserRoleRepository
from app.schemas.common import Envelope
from app.stores.base import ActionResult, FailureReason
from app.stores.session import BusinessSession, SessionRegistry

STATUS_BY_REASON = {
    FailureReason.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureReason.INVALID_STATE: status.HTTP_409_CONFLICT,
    FailureReason.VALIDATION: status.HTTP_400_BAD_REQUEST,
    FailureReason.REMOTE: status.HTTP_502_BAD_GATEWAY,
    FailureReason.UNEXPECTED: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.sessions


async def get_session(
    user: UserResponse = Depends(get_current_user),
    db: AsyncIOMotorDatabase = Depends(get_db),
    registry: SessionRegistry = Depends(get_registry),
) -> BusinessSession:
    """Session of the authenticated user, created on first use."""
    return await registry.get(db, user)


def require_page_access(page: str) -> Callable:
    """Dependency running the navigation gate for ``page`` before the endpoint."""

    async def dependency(session: BusinessSession = Depends(get_session)) -> BusinessSession:
        gate = AccessGate(UserRoleRepository(session.db))
        decision = await gate.check(page, session.user, session.business_id)
        if not decision.allowed:
            message = decision.notification.message if decision.notification else "Forbidden"
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={"message": message, "redirect": decision.redirect},
            )
        return session

    return dependency


def respond(session: BusinessSession, result: ActionResult) -> Envelope:
    """Turn a store result into a response, or raise for failures."""
    notifications = session.notifier.drain()
    if not result.success:
        raise HTTPException(
            status_code=STATUS_BY_REASON.get(result.reason, status.HTTP_500_INTERNAL_SERVER_ERROR),
            detail=result.error,
        )
    return Envelope(data=result.data, notifications=notifications, from_cache=result.from_cache)
