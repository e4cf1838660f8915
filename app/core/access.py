"""
Navigation gate.

Decides, for a requested page path, whether the user may see it or where
they should be sent instead:

1. ``/welcome`` and ``/blocked`` pages are always reachable
2. ``/`` goes to the dashboard
3. anonymous users go to the welcome page, remembering the requested path
4. users without an active business go to business selection
5. users without a role in the active business go to business selection
6. owners and administrators see everything; other roles only a fixed
   set of pages, anything else sends them to the dashboard
"""

import logging
from typing import Optional
from urllib.parse import urlencode, urlsplit

from pydantic import BaseModel

from app.core.config import settings
from app.models.business import UNRESTRICTED_ROLES
from app.models.user import UserResponse
from app.repositories.business_repo import UserRoleRepository
from app.stores.notifications import Notification, ToastEvent

logger = logging.getLogger(__name__)

MSG_NO_ROLE = "No tienes permisos para acceder a esta sección. Elegí una tienda para continuar."
MSG_FORBIDDEN = (
    "No tienes permisos para acceder a esta sección. Contactate con soporte si tenés problemas."
)
MSG_ROLE_ERROR = "No pudimos verificar tus permisos. Elegí una tienda para continuar."

OPEN_PREFIXES = ("/welcome", "/blocked")


class GateDecision(BaseModel):
    allowed: bool
    redirect: Optional[str] = None
    notification: Optional[Notification] = None

    @classmethod
    def allow(cls) -> "GateDecision":
        return cls(allowed=True)

    @classmethod
    def redirect_to(cls, target: str, error: Optional[str] = None) -> "GateDecision":
        notification = Notification(kind=ToastEvent.ERROR, message=error) if error else None
        return cls(allowed=False, redirect=target, notification=notification)


class AccessGate:
    def __init__(self, roles: UserRoleRepository):
        self.roles = roles

    async def check(
        self,
        path: str,
        user: Optional[UserResponse],
        business_id: Optional[str],
    ) -> GateDecision:
        page = urlsplit(path).path or "/"
        selection = settings.BUSINESS_SELECTION_PATH

        if page.startswith(OPEN_PREFIXES):
            return GateDecision.allow()
        if page == "/":
            return GateDecision.redirect_to(settings.DASHBOARD_PATH)

        if user is None:
            query = urlencode({"redirect": path})
            return GateDecision.redirect_to(f"{settings.WELCOME_PATH}?{query}")

        if not business_id:
            if page == selection:
                return GateDecision.allow()
            return GateDecision.redirect_to(selection)

        try:
            result = await self.roles.find_active_role(user.id, business_id)
        except Exception:
            logger.exception("Role resolution failed for user %s in %s", user.id, business_id)
            result = None
        if result is None or not result.success:
            if result is not None:
                logger.error("Role lookup failed for user %s: %s", user.id, result.error)
            if page == selection:
                return GateDecision.allow()
            return GateDecision.redirect_to(selection, MSG_ROLE_ERROR)
        role = result.data.role if result.data else None

        if role is None and page != selection:
            return GateDecision.redirect_to(selection, MSG_NO_ROLE)

        if role in UNRESTRICTED_ROLES or page in settings.RESTRICTED_ALLOWED_PATHS:
            return GateDecision.allow()

        return GateDecision.redirect_to(settings.DASHBOARD_PATH, MSG_FORBIDDEN)
