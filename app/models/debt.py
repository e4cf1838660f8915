"""
Debt model - Obligations between a business and one counterparty.

Design principles:
- A debt is owed by a client (customer debt) or to a supplier (supplier debt), never both
- remaining_amount == original_amount - paid_amount at every stored state
- Status: active -> paid | active -> cancelled (terminal, one-way)
- Only customer debts may be linked to a daily cash snapshot
- Mutations go through the tagged patches below, never through free-form dicts
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.base import AMOUNT_TOLERANCE, ScopedDocument
from app.utils.formatting import codify_code, parse_decimal

CLOSE_NOTE_PREFIX = "Cerrada manualmente: "


class DebtStatus(str, Enum):
    ACTIVE = "active"
    PAID = "paid"
    CANCELLED = "cancelled"


class DebtType(str, Enum):
    CUSTOMER = "customer"
    SUPPLIER = "supplier"


class OriginType(str, Enum):
    SALE = "sale"
    PURCHASE_INVOICE = "purchaseInvoice"
    MANUAL = "manual"


class SnapshotLink(BaseModel):
    """Till and register a customer debt was opened against."""
    daily_cash_snapshot_id: str = Field(..., min_length=1)
    cash_register_id: Optional[str] = None
    cash_register_name: Optional[str] = Field(None, max_length=100)


class Debt(ScopedDocument):
    """
    Financial obligation between the business and a single counterparty.

    Invariants:
    - exactly one of (client_id, client_name) / (supplier_id, supplier_name)
    - paid_amount <= original_amount
    - remaining_amount == original_amount - paid_amount
    - snapshot linkage only on customer debts
    """

    # Counterparty
    client_id: Optional[str] = None
    client_name: Optional[str] = Field(None, max_length=200)
    supplier_id: Optional[str] = None
    supplier_name: Optional[str] = Field(None, max_length=200)

    # Daily cash linkage (customer debts only)
    daily_cash_snapshot_id: Optional[str] = None
    cash_register_id: Optional[str] = None
    cash_register_name: Optional[str] = None

    # Financial
    original_amount: float = Field(..., ge=0)
    paid_amount: float = Field(0, ge=0)
    remaining_amount: float = Field(..., ge=0)

    # Origin
    origin_type: OriginType
    origin_id: Optional[str] = None
    origin_description: str = Field("", max_length=500)

    # Tracking
    status: DebtStatus = DebtStatus.ACTIVE
    due_date: Optional[datetime] = None
    notes: str = ""

    # Audit
    created_by: str
    created_by_name: str = ""
    paid_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None
    cancel_reason: Optional[str] = Field(None, max_length=500)

    @model_validator(mode="after")
    def check_invariants(self) -> "Debt":
        has_client = bool(self.client_id or self.client_name)
        has_supplier = bool(self.supplier_id or self.supplier_name)
        if has_client and has_supplier:
            raise ValueError("Debt cannot be for both client and supplier")
        if not has_client and not has_supplier:
            raise ValueError("Either client or supplier information is required")
        if has_client and not (self.client_id and self.client_name):
            raise ValueError("Client debts need both client_id and client_name")
        if has_supplier and not (self.supplier_id and self.supplier_name):
            raise ValueError("Supplier debts need both supplier_id and supplier_name")

        if has_supplier and (self.daily_cash_snapshot_id or self.cash_register_id):
            raise ValueError("Only customer debts can be linked to a daily cash snapshot")

        if self.paid_amount > self.original_amount + AMOUNT_TOLERANCE:
            raise ValueError("Paid amount cannot exceed original amount")
        expected = self.original_amount - self.paid_amount
        if abs(self.remaining_amount - expected) > AMOUNT_TOLERANCE:
            raise ValueError(
                f"Remaining amount inconsistent. Expected: {expected:.2f}, "
                f"Got: {self.remaining_amount:.2f}"
            )
        return self

    @property
    def debt_type(self) -> DebtType:
        return DebtType.CUSTOMER if self.client_id else DebtType.SUPPLIER

    @property
    def counterparty_id(self) -> str:
        return self.client_id or self.supplier_id

    @property
    def counterparty_name(self) -> str:
        return self.client_name or self.supplier_name

    def is_active(self) -> bool:
        return self.status == DebtStatus.ACTIVE


class DebtCreate(BaseModel):
    """Input for opening a new debt."""
    type: DebtType
    entity_id: str = Field(..., min_length=1)
    entity_name: str = Field(..., min_length=1, max_length=200)
    original_amount: float = Field(..., ge=0)
    origin_type: OriginType = OriginType.MANUAL
    origin_id: Optional[str] = None
    origin_description: str = Field("", max_length=500)
    due_date: Optional[datetime] = None
    notes: str = Field("", max_length=1000)
    snapshot: Optional[SnapshotLink] = None

    @field_validator("original_amount", mode="before")
    @classmethod
    def parse_amount(cls, value):
        # Amounts typed with a comma decimal separator
        return parse_decimal(value) if isinstance(value, str) else value

    @model_validator(mode="after")
    def check_snapshot(self) -> "DebtCreate":
        if self.snapshot is not None and self.type != DebtType.CUSTOMER:
            raise ValueError("Only customer debts can be linked to a daily cash snapshot")
        return self

    def to_document(self, created_by: str, created_by_name: str) -> dict:
        """Fields of a freshly opened debt: active, nothing paid."""
        doc = {
            "original_amount": self.original_amount,
            "paid_amount": 0,
            "remaining_amount": self.original_amount,
            "origin_type": self.origin_type.value,
            "origin_id": self.origin_id,
            "origin_description": self.origin_description,
            "status": DebtStatus.ACTIVE.value,
            "due_date": self.due_date,
            "notes": self.notes or "",
            "created_by": created_by,
            "created_by_name": created_by_name,
            "paid_at": None,
            "cancelled_at": None,
            "cancelled_by": None,
            "cancel_reason": None,
        }
        if self.type == DebtType.CUSTOMER:
            doc["client_id"] = self.entity_id
            doc["client_name"] = self.entity_name
        else:
            doc["supplier_id"] = self.entity_id
            doc["supplier_name"] = self.entity_name
        if self.snapshot is not None:
            doc.update(self.snapshot.model_dump())
        return doc


class DebtReason(BaseModel):
    """Body for cancel/close requests."""
    reason: str = Field(..., min_length=1, max_length=500)


# ===== PATCHES =====

class _ActiveDebtPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def precondition(self) -> dict:
        # Terminal transitions only apply to debts still active in the store
        return {"status": DebtStatus.ACTIVE.value}


class CancelDebtPatch(_ActiveDebtPatch):
    kind: Literal["cancel"] = "cancel"
    reason: str = Field(..., min_length=1, max_length=500)
    cancelled_by: str

    def to_update(self, now: datetime) -> dict:
        return {
            "status": DebtStatus.CANCELLED.value,
            "cancelled_at": now,
            "cancelled_by": self.cancelled_by,
            "cancel_reason": self.reason,
        }


class CloseDebtPatch(_ActiveDebtPatch):
    kind: Literal["close"] = "close"
    reason: str = Field(..., min_length=1, max_length=500)
    original_amount: float = Field(..., ge=0)
    prior_notes: str = ""

    def closing_notes(self) -> str:
        note = f"{CLOSE_NOTE_PREFIX}{self.reason}"
        if self.prior_notes:
            return f"{self.prior_notes}\n\n{note}"
        return note

    def to_update(self, now: datetime) -> dict:
        return {
            "status": DebtStatus.PAID.value,
            "paid_amount": self.original_amount,
            "remaining_amount": 0,
            "paid_at": now,
            "notes": self.closing_notes(),
        }


class PaymentDebtPatch(_ActiveDebtPatch):
    kind: Literal["payment"] = "payment"
    original_amount: float = Field(..., ge=0)
    # paid_amount the debt had when the payment was computed
    previous_paid_amount: float = Field(..., ge=0)
    paid_amount: float = Field(..., ge=0)

    @model_validator(mode="after")
    def check_amounts(self) -> "PaymentDebtPatch":
        if self.paid_amount > self.original_amount + AMOUNT_TOLERANCE:
            raise ValueError("Paid amount cannot exceed original amount")
        return self

    def precondition(self) -> dict:
        return {
            "status": DebtStatus.ACTIVE.value,
            "paid_amount": self.previous_paid_amount,
        }

    @property
    def remaining_amount(self) -> float:
        return max(0.0, round(self.original_amount - self.paid_amount, 2))

    @property
    def settles_debt(self) -> bool:
        return self.remaining_amount <= AMOUNT_TOLERANCE

    def to_update(self, now: datetime) -> dict:
        settled = self.settles_debt
        return {
            # A settled debt is stored with exact amounts so the invariant holds
            "paid_amount": self.original_amount if settled else self.paid_amount,
            "remaining_amount": 0 if settled else self.remaining_amount,
            "status": DebtStatus.PAID.value if settled else DebtStatus.ACTIVE.value,
            "paid_at": now if settled else None,
        }


DebtPatch = Annotated[
    Union[CancelDebtPatch, CloseDebtPatch, PaymentDebtPatch],
    Field(discriminator="kind"),
]


# ===== PAYMENTS =====

class DebtPaymentCreate(BaseModel):
    """Input for a partial or full payment against an active debt."""
    amount: float = Field(..., gt=0)
    payment_method: str = Field(..., min_length=1, max_length=50)
    is_reported: bool = False
    notes: str = Field("", max_length=500)
    snapshot: Optional[SnapshotLink] = None

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, value):
        return parse_decimal(value) if isinstance(value, str) else value

    @field_validator("payment_method")
    @classmethod
    def normalize_method(cls, value: str) -> str:
        code = codify_code(value)
        if not code:
            raise ValueError("Payment method must contain letters or digits")
        return code


class DebtPayment(ScopedDocument):
    debt_id: str
    amount: float = Field(..., gt=0)
    payment_method: str
    is_reported: bool = False
    notes: str = ""
    daily_cash_snapshot_id: Optional[str] = None
    cash_register_id: Optional[str] = None
    cash_register_name: Optional[str] = None
    created_by: str
    created_by_name: str = ""


class DebtSummary(BaseModel):
    """Aggregation over the active debts currently cached."""
    total_debts: int
    customer_debts: int
    supplier_debts: int
    total_customer_amount: float
    total_supplier_amount: float
    oldest_debt: Optional[Debt] = None
    overdue_debts: int = 0

