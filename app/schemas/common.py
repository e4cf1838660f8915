from typing import Any, List

from pydantic import BaseModel, Field

from app.stores.notifications import Notification


class Envelope(BaseModel):
    """Payload of a store action plus the notifications it raised."""
    data: Any = None
    notifications: List[Notification] = Field(default_factory=list)
    from_cache: bool = False
