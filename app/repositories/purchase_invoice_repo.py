from typing import Optional

from app.models.purchase_invoice import InvoiceUpdatePatch, PurchaseInvoice
from app.repositories.base import BusinessScopedRepository, SchemaResult


class PurchaseInvoiceRepository(BusinessScopedRepository[PurchaseInvoice]):
    """Purchase invoices. ``invoice_number`` is unique per supplier."""

    collection_name = "purchaseInvoice"
    model = PurchaseInvoice
    patch_types = (InvoiceUpdatePatch,)

    async def _number_taken(self, supplier_id: str, number: str, exclude_id=None) -> bool:
        filter = self._scope({"supplier_id": supplier_id, "invoice_number": number})
        if exclude_id is not None:
            filter["_id"] = {"$ne": exclude_id}
        return await self.collection.find_one(filter) is not None

    async def validate_create(self, doc: dict) -> Optional[str]:
        if await self._number_taken(doc["supplier_id"], doc["invoice_number"]):
            return f"Invoice {doc['invoice_number']} already registered for this supplier"
        return None

    async def validate_update(self, oid, patch) -> Optional[str]:
        number = patch.changes.invoice_number
        if number is None:
            return None
        current = await self.collection.find_one(self._scope({"_id": oid}))
        if current is None:
            # update() reports the missing document
            return None
        if await self._number_taken(current["supplier_id"], number.strip(), oid):
            return f"Invoice {number} already registered for this supplier"
        return None

    async def find_all(self) -> SchemaResult:
        return await self.find(order_by=[("invoice_date", -1)])
