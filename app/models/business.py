"""
Business (tenant) and per-business user roles.

A business is owned by one user; other users reach it through a
``userRole`` document. Invitations are pending roles with no user yet
and a join code of the form ``XXXX-YYYY``.
"""

from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.base import MongoDocument

BUSINESS_PHONE_LENGTH = 14
THUMBNAIL_TRANSFORM = "upload/c_thumb,w_200,g_face/"


class RoleType(str, Enum):
    OWNER = "propietario"
    ADMINISTRATOR = "administrador"
    SELLER = "vendedor"
    EMPLOYEE = "empleado"


# Roles that see every section of a business
UNRESTRICTED_ROLES = frozenset({RoleType.OWNER.value, RoleType.ADMINISTRATOR.value})


class RoleStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    ARCHIVED = "archived"


def thumbnail_url(image_url: Optional[str]) -> Optional[str]:
    if not image_url:
        return None
    return image_url.replace("upload/", THUMBNAIL_TRANSFORM)


class BusinessCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    phone: str
    description: Optional[str] = Field(None, max_length=500)
    address: Optional[str] = Field(None, max_length=200)
    image_url: Optional[str] = None
    image_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("El nombre de la tienda es requerido")
        return value

    @field_validator("phone")
    @classmethod
    def check_phone(cls, value: str) -> str:
        if len(value) != BUSINESS_PHONE_LENGTH:
            raise ValueError("El teléfono de la tienda no es válido")
        return value

    def to_fields(self, owner_uid: str) -> dict:
        return {
            "name": self.name,
            "phone": self.phone,
            "description": self.description or None,
            "address": self.address or None,
            "image_url": self.image_url or None,
            "image_url_thumbnail": thumbnail_url(self.image_url),
            "image_id": self.image_id or None,
            "owner_uid": owner_uid,
            "archived_at": None,
        }


class Business(MongoDocument):
    name: str
    phone: Optional[str] = None
    description: Optional[str] = None
    address: Optional[str] = None
    image_url: Optional[str] = None
    image_url_thumbnail: Optional[str] = None
    image_id: Optional[str] = None
    owner_uid: str
    archived_at: Optional[datetime] = None
    # Role of the requesting user in this business, filled by the store
    type: Optional[RoleType] = None


class UserRole(MongoDocument):
    user_uid: Optional[str] = None
    business_id: str
    role: RoleType
    status: RoleStatus = RoleStatus.ACTIVE
    code: Optional[str] = None
    invited_by: Optional[str] = None
    invited_at: Optional[datetime] = None
    accepted_at: Optional[datetime] = None

    @property
    def is_unrestricted(self) -> bool:
        return self.role in UNRESTRICTED_ROLES


class EmployeeInvite(BaseModel):
    role: RoleType
    email: Optional[str] = None
    name: Optional[str] = None


class JoinRequest(BaseModel):
    code: str = Field(..., min_length=1)


class Invitation(BaseModel):
    invitation_code: str
    role_id: str


class AcceptInvitationPatch(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["accept"] = "accept"
    user_uid: str

    def to_update(self, now: datetime) -> dict:
        return {
            "user_uid": self.user_uid,
            "status": RoleStatus.ACTIVE.value,
            "accepted_at": now,
        }

    def precondition(self) -> dict:
        # An invitation can be redeemed once
        return {"status": RoleStatus.PENDING.value, "user_uid": None}
