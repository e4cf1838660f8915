from typing import Optional

from app.models.debt import (
    CancelDebtPatch,
    CloseDebtPatch,
    Debt,
    DebtPayment,
    OriginType,
    PaymentDebtPatch,
)
from app.repositories.base import BusinessScopedRepository, SchemaResult

NEWEST_FIRST = [("created_at", -1)]


class DebtRepository(BusinessScopedRepository[Debt]):
    """Debts of one business, in the ``debt`` collection."""

    collection_name = "debt"
    model = Debt
    patch_types = (CancelDebtPatch, CloseDebtPatch, PaymentDebtPatch)

    async def find_all(self) -> SchemaResult:
        return await self.find(order_by=NEWEST_FIRST)

    async def find_by_snapshot(self, snapshot_id: str) -> SchemaResult:
        return await self.find({"daily_cash_snapshot_id": snapshot_id}, order_by=NEWEST_FIRST)

    async def find_by_origin(self, origin_id: str, origin_type: OriginType) -> SchemaResult:
        return await self.find(
            {"origin_id": origin_id, "origin_type": OriginType(origin_type).value},
            order_by=NEWEST_FIRST,
        )


class DebtPaymentRepository(BusinessScopedRepository[DebtPayment]):
    """Payments recorded against debts, in ``debtPayment``."""

    collection_name = "debtPayment"
    model = DebtPayment

    async def find_by_debt(self, debt_id: Optional[str] = None) -> SchemaResult:
        filter = {"debt_id": debt_id} if debt_id else {}
        return await self.find(filter, order_by=NEWEST_FIRST)
