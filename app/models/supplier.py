import re
from datetime import datetime
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from app.models.base import ScopedDocument

PHONE_PATTERN = re.compile(r"^[\d\s\-\(\)\+]+$")
MIN_PHONE_DIGITS = 7


class SupplierCategory(str, Enum):
    SERVICES = "servicios"
    FOOD = "alimentos"
    ACCESSORIES = "accesorios"


SUPPLIER_CATEGORY_LABELS = {
    SupplierCategory.SERVICES: "Proveedor de servicios",
    SupplierCategory.FOOD: "Proveedor de alimentos",
    SupplierCategory.ACCESSORIES: "Proveedor de accesorios",
}


class SupplierFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    ARCHIVED = "archived"


class SupplierForm(BaseModel):
    """Editable supplier fields."""
    name: str = Field(..., min_length=1, max_length=100)
    category: SupplierCategory = SupplierCategory.SERVICES
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = Field(None, max_length=200)
    contact_person: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("email", "phone", "address", "contact_person", "notes", mode="before")
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required and must be a non-empty string")
        return value

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if not PHONE_PATTERN.match(value):
            raise ValueError(
                "Phone number can only contain digits, spaces, hyphens, parentheses, and plus sign"
            )
        if len(re.sub(r"\D", "", value)) < MIN_PHONE_DIGITS:
            raise ValueError("Phone number must contain at least 7 digits")
        return value

    def to_fields(self) -> dict:
        return self.model_dump(mode="json")


class SupplierCreate(SupplierForm):
    """New suppliers need at least one way to reach them."""

    @model_validator(mode="after")
    def check_contact(self) -> "SupplierCreate":
        if not (self.email or self.phone or self.address):
            raise ValueError(
                "At least one contact method (email, phone, or address) should be provided"
            )
        return self


class Supplier(ScopedDocument):
    name: str
    category: SupplierCategory = SupplierCategory.SERVICES
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    contact_person: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool = True
    created_by: str
    archived_at: Optional[datetime] = None

    def matches(self, query: str) -> bool:
        """Case-insensitive substring match on name, contact, email and phone."""
        query = query.lower()
        return (
            query in self.name.lower()
            or bool(self.contact_person and query in self.contact_person.lower())
            or bool(self.email and query in self.email.lower())
            or bool(self.phone and query in self.phone)
        )


# ===== PATCHES =====

class SupplierUpdatePatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["update"] = "update"
    form: SupplierForm

    def to_update(self, now: datetime) -> dict:
        return self.form.to_fields()

    def precondition(self) -> dict:
        return {}


class SupplierArchivePatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["archive"] = "archive"

    def to_update(self, now: datetime) -> dict:
        return {"is_active": False, "archived_at": now}

    def precondition(self) -> dict:
        return {}


class SupplierRestorePatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["restore"] = "restore"

    def to_update(self, now: datetime) -> dict:
        return {"is_active": True, "archived_at": None}

    def precondition(self) -> dict:
        return {}


SupplierPatch = Annotated[
    Union[SupplierUpdatePatch, SupplierArchivePatch, SupplierRestorePatch],
    Field(discriminator="kind"),
]
