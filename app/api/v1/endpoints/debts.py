from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps import require_page_access, respond
from app.models.debt import DebtCreate, DebtPaymentCreate, DebtReason, DebtType, OriginType
from app.schemas.common import Envelope
from app.schemas.debt import CacheState, DebtSummaryResponse
from app.stores.base import ActionResult
from app.stores.debt_ledger import DebtLedger, MSG_NOT_FOUND
from app.stores.session import BusinessSession

router = APIRouter()

debts_page = require_page_access("/deudas")


async def _loaded_ledger(session: BusinessSession, refresh: bool = False) -> DebtLedger:
    """Ledger of the session, loading the debt list on first use or on request."""
    ledger = session.ledger
    if refresh or ledger.last_loaded_at is None:
        result = await ledger.load_debts()
        if not result.success:
            respond(session, result)
    return ledger


@router.get("", response_model=Envelope)
async def list_debts(
    refresh: bool = False,
    type: Optional[DebtType] = None,
    active_only: bool = False,
    session: BusinessSession = Depends(debts_page),
):
    """
    List debts of the active business, most recent first.

    Served from the cache unless it was never loaded or ``refresh`` is set.
    The cache is not reloaded just because it is stale; see ``/summary``.
    """
    reloaded = refresh or session.ledger.last_loaded_at is None
    ledger = await _loaded_ledger(session, refresh)

    if type == DebtType.CUSTOMER:
        debts = ledger.active_customer_debts if active_only else ledger.customer_debts
    elif type == DebtType.SUPPLIER:
        debts = ledger.active_supplier_debts if active_only else ledger.supplier_debts
    else:
        debts = ledger.active_debts if active_only else ledger.debts
    return respond(session, ActionResult.ok(debts, from_cache=not reloaded))


@router.get("/summary", response_model=DebtSummaryResponse)
async def get_summary(session: BusinessSession = Depends(debts_page)):
    ledger = await _loaded_ledger(session)
    session.notifier.drain()
    return DebtSummaryResponse.build(ledger.summary(), ledger.needs_refresh)


@router.get("/cache", response_model=CacheState)
async def get_cache_state(session: BusinessSession = Depends(debts_page)):
    ledger = session.ledger
    return CacheState(
        cached_debts=len(ledger.debts),
        cached_snapshots=len(ledger.snapshot_debts),
        needs_refresh=ledger.needs_refresh,
    )


@router.delete("/cache", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cache(session: BusinessSession = Depends(debts_page)):
    session.ledger.clear_cache()


@router.get("/snapshots/{snapshot_id}", response_model=Envelope)
async def list_snapshot_debts(snapshot_id: str, session: BusinessSession = Depends(debts_page)):
    """Debts linked to a daily cash snapshot, read once and cached."""
    return respond(session, await session.ledger.load_debts_for_snapshot(snapshot_id))


@router.delete("/snapshots/{snapshot_id}", status_code=status.HTTP_204_NO_CONTENT)
async def clear_snapshot_cache(snapshot_id: str, session: BusinessSession = Depends(debts_page)):
    session.ledger.clear_snapshot_cache(snapshot_id)


@router.get("/by-counterparty/{entity_id}", response_model=Envelope)
async def list_counterparty_debts(
    entity_id: str,
    type: DebtType = Query(...),
    session: BusinessSession = Depends(debts_page),
):
    """Active debts of one client or supplier."""
    ledger = await _loaded_ledger(session)
    return respond(session, ActionResult.ok(ledger.debts_by_counterparty(entity_id, type)))


@router.get("/by-origin/{origin_id}", response_model=Envelope)
async def list_origin_debts(
    origin_id: str,
    origin_type: OriginType = Query(...),
    session: BusinessSession = Depends(debts_page),
):
    ledger = await _loaded_ledger(session)
    return respond(session, ActionResult.ok(ledger.debts_by_origin(origin_id, origin_type)))


@router.post("", response_model=Envelope, status_code=status.HTTP_201_CREATED)
async def create_debt(data: DebtCreate, session: BusinessSession = Depends(debts_page)):
    return respond(session, await session.ledger.create_debt(data))


@router.get("/{debt_id}", response_model=Envelope)
async def get_debt(debt_id: str, session: BusinessSession = Depends(debts_page)):
    ledger = await _loaded_ledger(session)
    debt = ledger.get_debt(debt_id)
    if debt is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=MSG_NOT_FOUND)
    return respond(session, ActionResult.ok(debt, from_cache=True))


@router.post("/{debt_id}/cancel", response_model=Envelope)
async def cancel_debt(debt_id: str, body: DebtReason, session: BusinessSession = Depends(debts_page)):
    ledger = await _loaded_ledger(session)
    return respond(session, await ledger.cancel_debt(debt_id, body.reason))


@router.post("/{debt_id}/close", response_model=Envelope)
async def close_debt(debt_id: str, body: DebtReason, session: BusinessSession = Depends(debts_page)):
    """Settle a debt in full; the reason is appended to its notes."""
    ledger = await _loaded_ledger(session)
    return respond(session, await ledger.close_debt(debt_id, body.reason))


@router.get("/{debt_id}/payments", response_model=Envelope)
async def list_payments(debt_id: str, session: BusinessSession = Depends(debts_page)):
    return respond(session, await session.ledger.load_payments(debt_id))


@router.post("/{debt_id}/payments", response_model=Envelope, status_code=status.HTTP_201_CREATED)
async def record_payment(
    debt_id: str,
    data: DebtPaymentCreate,
    session: BusinessSession = Depends(debts_page),
):
    ledger = await _loaded_ledger(session)
    return respond(session, await ledger.record_payment(debt_id, data))
