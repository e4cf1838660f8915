from typing import Optional

from pydantic import BaseModel, Field

from app.models.business import Business


class SwitchBusinessRequest(BaseModel):
    business_id: str = Field(..., min_length=1)


class CurrentBusinessResponse(BaseModel):
    business: Optional[Business] = None
    role: Optional[str] = None
