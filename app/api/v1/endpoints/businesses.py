from fastapi import APIRouter, Depends, status

from app.api.deps import get_session, require_page_access, respond
from app.models.business import BusinessCreate, EmployeeInvite, JoinRequest
from app.schemas.business import CurrentBusinessResponse, SwitchBusinessRequest
from app.schemas.common import Envelope
from app.stores.session import BusinessSession

router = APIRouter()


@router.get("", response_model=Envelope)
async def list_businesses(refresh: bool = False, session: BusinessSession = Depends(get_session)):
    """Businesses the user owns or works in."""
    result = await session.business.fetch_businesses(force_reload=refresh)
    await session.adopt_current_business()
    return respond(session, result)


@router.get("/current", response_model=CurrentBusinessResponse)
async def get_current_business(session: BusinessSession = Depends(get_session)):
    return CurrentBusinessResponse(
        business=session.business.current_business,
        role=session.business.user_role,
    )


@router.post("", response_model=Envelope, status_code=status.HTTP_201_CREATED)
async def create_business(info: BusinessCreate, session: BusinessSession = Depends(get_session)):
    """Create a business owned by the user (limited per owner)."""
    result = await session.business.save_business(info)
    await session.adopt_current_business()
    return respond(session, result)


@router.post("/invitations", response_model=Envelope, status_code=status.HTTP_201_CREATED)
async def invite_employee(
    invite: EmployeeInvite,
    session: BusinessSession = Depends(require_page_access("/empleados")),
):
    return respond(session, await session.business.save_employee(invite))


@router.post("/join", response_model=Envelope)
async def join_business(body: JoinRequest, session: BusinessSession = Depends(get_session)):
    """Redeem an invitation code and make that business the active one."""
    result = await session.business.join_business(body.code)
    if result.success:
        await session.adopt_current_business()
        await session.resync()
    return respond(session, result)


@router.post("/switch", response_model=Envelope)
async def switch_business(body: SwitchBusinessRequest, session: BusinessSession = Depends(get_session)):
    """Change the active business and reload its debts, suppliers and invoices."""
    return respond(session, await session.switch_business(body.business_id))
