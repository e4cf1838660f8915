from pydantic import BaseModel

from app.models.debt import DebtSummary
from app.utils.formatting import format_currency


class DebtSummaryResponse(DebtSummary):
    formatted_customer_amount: str
    formatted_supplier_amount: str
    needs_refresh: bool

    @classmethod
    def build(cls, summary: DebtSummary, needs_refresh: bool) -> "DebtSummaryResponse":
        return cls(
            **summary.model_dump(),
            formatted_customer_amount=format_currency(summary.total_customer_amount),
            formatted_supplier_amount=format_currency(summary.total_supplier_amount),
            needs_refresh=needs_refresh,
        )


class CacheState(BaseModel):
    cached_debts: int
    cached_snapshots: int
    needs_refresh: bool
