from datetime import date, datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.models.base import AMOUNT_TOLERANCE, ScopedDocument


class InvoiceProduct(BaseModel):
    """One purchased line."""
    product_id: str = Field(..., min_length=1)
    product_name: str = Field(..., min_length=1, max_length=200)
    quantity: float = Field(..., gt=0)
    unit_cost: float = Field(..., ge=0)
    total_cost: float = Field(..., ge=0)


class PurchaseInvoiceCreate(BaseModel):
    """
    Input for registering a purchase invoice.

    ``unpaid_amount`` is the part of ``total_spent`` still owed to the
    supplier; when positive a supplier debt is opened for it.
    """
    supplier_id: str = Field(..., min_length=1)
    supplier_name: str = Field(..., min_length=1, max_length=200)
    invoice_number: str = Field(..., min_length=1, max_length=100)
    invoice_date: datetime
    invoice_type: str = Field(..., min_length=1, max_length=50)
    notes: str = Field("", max_length=1000)
    additional_charges: float = Field(0, ge=0)
    total_spent: float = Field(..., ge=0)
    products: List[InvoiceProduct] = Field(..., min_length=1)
    unpaid_amount: float = Field(0, ge=0)
    due_date: Optional[datetime] = None

    @model_validator(mode="after")
    def check_unpaid(self) -> "PurchaseInvoiceCreate":
        if self.unpaid_amount > self.total_spent + AMOUNT_TOLERANCE:
            raise ValueError("Unpaid amount cannot exceed the invoice total")
        return self

    def to_fields(self) -> dict:
        doc = self.model_dump(exclude={"unpaid_amount", "due_date"})
        doc["invoice_number"] = self.invoice_number.strip()
        return doc


class PurchaseInvoiceUpdate(BaseModel):
    invoice_number: Optional[str] = Field(None, min_length=1, max_length=100)
    invoice_date: Optional[datetime] = None
    invoice_type: Optional[str] = Field(None, min_length=1, max_length=50)
    notes: Optional[str] = Field(None, max_length=1000)
    additional_charges: Optional[float] = Field(None, ge=0)


class PurchaseInvoice(ScopedDocument):
    supplier_id: str
    supplier_name: str
    invoice_number: str = ""
    invoice_date: Optional[datetime] = None
    invoice_type: str = ""
    notes: str = ""
    additional_charges: float = 0
    total_spent: float = 0
    products: List[InvoiceProduct] = Field(default_factory=list)
    created_by: str
    created_by_name: str = ""

    @property
    def invoice_day(self) -> Optional[date]:
        return self.invoice_date.date() if self.invoice_date else None

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on supplier, number and notes."""
        query = query.lower()
        return (
            query in self.supplier_name.lower()
            or query in self.invoice_number.lower()
            or query in self.notes.lower()
        )


class InvoiceUpdatePatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["update"] = "update"
    changes: PurchaseInvoiceUpdate

    def to_update(self, now: datetime) -> dict:
        fields = self.changes.model_dump(exclude_unset=True, exclude_none=True)
        if "invoice_number" in fields:
            fields["invoice_number"] = fields["invoice_number"].strip()
        return fields

    def precondition(self) -> dict:
        return {}


# Single variant today; kept as a union so new invoice patches slot in
InvoicePatch = Annotated[Union[InvoiceUpdatePatch], Field(discriminator="kind")]
