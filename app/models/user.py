from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.base import MongoDocument


class UserBase(BaseModel):
    """Base user schema."""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr


class UserCreate(UserBase):
    """User creation schema."""
    password: str = Field(..., min_length=8, max_length=100)


class UserResponse(UserBase):
    """Authenticated user as seen by endpoints and stores."""
    id: str

    model_config = ConfigDict(from_attributes=True)

    @property
    def display_name(self) -> str:
        return self.name or self.email


class UserInDB(MongoDocument):
    """User database schema."""
    name: str
    email: str
    password_hash: str
    is_deleted: bool = False

    def to_response(self) -> UserResponse:
        return UserResponse(id=self.id, name=self.name, email=self.email)


class Preference(MongoDocument):
    """Per-user persisted settings. Holds the active business key."""
    user_id: str
    current_business_id: Optional[str] = None
