from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import require_page_access, respond
from app.models.supplier import SupplierCreate, SupplierFilter, SupplierForm
from app.schemas.common import Envelope
from app.stores.base import ActionResult
from app.stores.session import BusinessSession
from app.stores.supplier_store import SupplierStore

router = APIRouter()

suppliers_page = require_page_access("/proveedores")


async def _loaded_store(session: BusinessSession, refresh: bool = False) -> SupplierStore:
    result = await session.suppliers.fetch_suppliers(force_reload=refresh)
    if not result.success:
        respond(session, result)
    return session.suppliers


@router.get("", response_model=Envelope)
async def list_suppliers(
    search: Optional[str] = None,
    filter: SupplierFilter = SupplierFilter.ACTIVE,
    refresh: bool = False,
    session: BusinessSession = Depends(suppliers_page),
):
    """Suppliers matching ``search`` on name, contact, email or phone."""
    store = await _loaded_store(session, refresh)
    return respond(session, ActionResult.ok(store.filtered_suppliers(search or "", filter)))


@router.get("/categories")
async def list_categories(session: BusinessSession = Depends(suppliers_page)):
    return SupplierStore.categories()


@router.get("/{supplier_id}", response_model=Envelope)
async def get_supplier(supplier_id: str, session: BusinessSession = Depends(suppliers_page)):
    store = await _loaded_store(session)
    supplier = store.get_supplier(supplier_id)
    if supplier is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Proveedor no encontrado")
    return respond(session, ActionResult.ok(supplier, from_cache=True))


@router.post("", response_model=Envelope, status_code=status.HTTP_201_CREATED)
async def create_supplier(form: SupplierCreate, session: BusinessSession = Depends(suppliers_page)):
    await _loaded_store(session)
    return respond(session, await session.suppliers.create_supplier(form))


@router.put("/{supplier_id}", response_model=Envelope)
async def update_supplier(
    supplier_id: str,
    form: SupplierForm,
    session: BusinessSession = Depends(suppliers_page),
):
    return respond(session, await session.suppliers.update_supplier(supplier_id, form))


@router.post("/{supplier_id}/archive", response_model=Envelope)
async def archive_supplier(supplier_id: str, session: BusinessSession = Depends(suppliers_page)):
    return respond(session, await session.suppliers.archive_supplier(supplier_id))


@router.post("/{supplier_id}/restore", response_model=Envelope)
async def restore_supplier(supplier_id: str, session: BusinessSession = Depends(suppliers_page)):
    return respond(session, await session.suppliers.restore_supplier(supplier_id))
