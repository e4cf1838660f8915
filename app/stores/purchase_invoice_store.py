import logging
from datetime import date
from typing import List, Optional

from app.models.base import AMOUNT_TOLERANCE
from app.models.purchase_invoice import (
    InvoiceUpdatePatch,
    PurchaseInvoice,
    PurchaseInvoiceCreate,
    PurchaseInvoiceUpdate,
)
from app.models.user import UserResponse
from app.repositories.purchase_invoice_repo import PurchaseInvoiceRepository
from app.stores.base import ActionResult, FailureReason
from app.stores.debt_ledger import DebtLedger
from app.stores.notifications import Notifier

logger = logging.getLogger(__name__)

MSG_LOAD_ERROR = "Hubo un error al cargar las facturas. Por favor intenta nuevamente."
MSG_CREATED = "Factura de compra creada exitosamente"
MSG_CREATE_ERROR = "Hubo un error al crear la factura. Por favor intenta nuevamente."
MSG_UPDATED = "Factura actualizada exitosamente"
MSG_UPDATE_ERROR = "Hubo un error al actualizar la factura. Por favor intenta nuevamente."


class PurchaseInvoiceStore:
    """
    Purchase invoices of the active business.

    Registering an invoice with an unpaid balance opens a supplier debt in
    the ledger, traced back to the invoice.
    """

    def __init__(
        self,
        repo: PurchaseInvoiceRepository,
        ledger: DebtLedger,
        user: UserResponse,
        notifier: Notifier,
    ):
        self.repo = repo
        self.ledger = ledger
        self.user = user
        self.notifier = notifier

        self.invoices: List[PurchaseInvoice] = []
        self.loaded = False
        self.search_query = ""
        self.date_start: Optional[date] = None
        self.date_end: Optional[date] = None

    def set_date_range(self, start: Optional[date], end: Optional[date]) -> None:
        self.date_start = start
        self.date_end = end

    def filtered_invoices(
        self,
        search: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> List[PurchaseInvoice]:
        search = self.search_query if search is None else search
        start = start or self.date_start
        end = end or self.date_end

        filtered = list(self.invoices)
        if search:
            filtered = [i for i in filtered if i.matches(search)]
        if start:
            filtered = [i for i in filtered if i.invoice_day and i.invoice_day >= start]
        if end:
            filtered = [i for i in filtered if i.invoice_day and i.invoice_day <= end]

        return sorted(filtered, key=lambda i: i.invoice_day or date.min, reverse=True)

    def invoices_by_supplier(self, supplier_id: str) -> List[PurchaseInvoice]:
        return [i for i in self.invoices if i.supplier_id == supplier_id]

    def get_invoice(self, invoice_id: str) -> Optional[PurchaseInvoice]:
        return next((i for i in self.invoices if i.id == invoice_id), None)

    def clear_cache(self) -> None:
        self.invoices = []
        self.loaded = False

    async def fetch_invoices(self, force_reload: bool = False) -> ActionResult:
        if self.loaded and not force_reload:
            return ActionResult.ok(self.invoices, from_cache=True)

        try:
            result = await self.repo.find_all()
            if not result.success:
                logger.error("Error fetching purchase invoices: %s", result.error)
                self.notifier.error(MSG_LOAD_ERROR)
                return ActionResult.from_schema(result, MSG_LOAD_ERROR)

            self.invoices = result.data
            self.loaded = True
            return ActionResult.ok(self.invoices)
        except Exception:
            logger.exception("Unexpected error fetching purchase invoices")
            self.notifier.error(MSG_LOAD_ERROR)
            return ActionResult.fail(FailureReason.UNEXPECTED, MSG_LOAD_ERROR)

    async def create_invoice(self, data: PurchaseInvoiceCreate) -> ActionResult:
        try:
            doc = {
                **data.to_fields(),
                "created_by": self.user.id,
                "created_by_name": self.user.display_name,
            }
            result = await self.repo.create(doc)
            if not result.success:
                logger.error("Error creating purchase invoice: %s", result.error)
                self.notifier.error(MSG_CREATE_ERROR)
                return ActionResult.from_schema(result, MSG_CREATE_ERROR)
        except Exception:
            logger.exception("Unexpected error creating purchase invoice")
            self.notifier.error(MSG_CREATE_ERROR)
            return ActionResult.fail(FailureReason.UNEXPECTED, MSG_CREATE_ERROR)

        invoice: PurchaseInvoice = result.data
        self.invoices.insert(0, invoice)
        self.loaded = True
        self.notifier.success(MSG_CREATED)

        if data.unpaid_amount > AMOUNT_TOLERANCE:
            # The ledger reports its own outcome; the invoice stays either way
            await self.ledger.create_debt_from_purchase_invoice(
                invoice, data.unpaid_amount, data.due_date
            )
        return ActionResult.ok(invoice)

    async def update_invoice(self, invoice_id: str, changes: PurchaseInvoiceUpdate) -> ActionResult:
        try:
            result = await self.repo.update(invoice_id, InvoiceUpdatePatch(changes=changes))
            if not result.success:
                logger.error("Error updating purchase invoice %s: %s", invoice_id, result.error)
                self.notifier.error(MSG_UPDATE_ERROR)
                return ActionResult.from_schema(result, MSG_UPDATE_ERROR)

            for i, existing in enumerate(self.invoices):
                if existing.id == invoice_id:
                    self.invoices[i] = result.data
            self.notifier.success(MSG_UPDATED)
            return ActionResult.ok(result.data)
        except Exception:
            logger.exception("Unexpected error updating purchase invoice %s", invoice_id)
            self.notifier.error(MSG_UPDATE_ERROR)
            return ActionResult.fail(FailureReason.UNEXPECTED, MSG_UPDATE_ERROR)
