from pydantic import BaseModel, EmailStr, Field, field_validator
from app.core.config import settings
from app.models.user import UserResponse


class UserSignup(BaseModel):
    """Account registration for a store owner or employee."""
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=100)

    @field_validator("name")
    @classmethod
    def collapse_name(cls, value: str) -> str:
        name = " ".join(value.split())
        if len(name) < 2:
            raise ValueError("El nombre debe tener al menos 2 caracteres")
        return name


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Bearer token issued on signup and login."""
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(default_factory=lambda: settings.JWT_EXPIRATION_MINUTES * 60)
    user: UserResponse
