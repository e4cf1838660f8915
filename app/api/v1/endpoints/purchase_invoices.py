from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import require_page_access, respond
from app.models.purchase_invoice import PurchaseInvoiceCreate, PurchaseInvoiceUpdate
from app.schemas.common import Envelope
from app.stores.base import ActionResult
from app.stores.purchase_invoice_store import PurchaseInvoiceStore
from app.stores.session import BusinessSession

router = APIRouter()

invoices_page = require_page_access("/facturas")


async def _loaded_store(session: BusinessSession, refresh: bool = False) -> PurchaseInvoiceStore:
    result = await session.invoices.fetch_invoices(force_reload=refresh)
    if not result.success:
        respond(session, result)
    return session.invoices


@router.get("", response_model=Envelope)
async def list_invoices(
    search: Optional[str] = None,
    start: Optional[date] = None,
    end: Optional[date] = None,
    refresh: bool = False,
    session: BusinessSession = Depends(invoices_page),
):
    """Invoices, newest invoice date first, optionally within [start, end]."""
    store = await _loaded_store(session, refresh)
    return respond(session, ActionResult.ok(store.filtered_invoices(search or "", start, end)))


@router.get("/by-supplier/{supplier_id}", response_model=Envelope)
async def list_supplier_invoices(supplier_id: str, session: BusinessSession = Depends(invoices_page)):
    store = await _loaded_store(session)
    return respond(session, ActionResult.ok(store.invoices_by_supplier(supplier_id)))


@router.get("/{invoice_id}", response_model=Envelope)
async def get_invoice(invoice_id: str, session: BusinessSession = Depends(invoices_page)):
    store = await _loaded_store(session)
    invoice = store.get_invoice(invoice_id)
    if invoice is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Factura no encontrada")
    return respond(session, ActionResult.ok(invoice, from_cache=True))


@router.post("", response_model=Envelope, status_code=status.HTTP_201_CREATED)
async def create_invoice(data: PurchaseInvoiceCreate, session: BusinessSession = Depends(invoices_page)):
    """Register an invoice; an unpaid balance opens a supplier debt."""
    await _loaded_store(session)
    return respond(session, await session.invoices.create_invoice(data))


@router.patch("/{invoice_id}", response_model=Envelope)
async def update_invoice(
    invoice_id: str,
    changes: PurchaseInvoiceUpdate,
    session: BusinessSession = Depends(invoices_page),
):
    return respond(session, await session.invoices.update_invoice(invoice_id, changes))
