"""
BusinessStore - Businesses a user can work in, and the active one.

The active business id is persisted per user (``userPreference``) so a
new session resumes where the user left off.
"""

import logging
import secrets
import string
from typing import List, Optional

from app.core.config import settings
from app.models.base import utcnow
from app.models.business import (
    AcceptInvitationPatch,
    Business,
    BusinessCreate,
    EmployeeInvite,
    Invitation,
    RoleStatus,
    RoleType,
)
from app.models.user import UserResponse
from app.repositories.base import ErrorCode
from app.repositories.business_repo import BusinessRepository, UserRoleRepository
from app.repositories.preference_repo import PreferenceRepository
from app.stores.base import ActionResult, FailureReason
from app.stores.notifications import Notifier

logger = logging.getLogger(__name__)

MSG_FETCH_ERROR = "Hubo un error al obtener la información, por favor intenta nuevamente"
MSG_SAVE_ERROR = "Hubo un error al guardar la información, por favor intenta nuevamente"
MSG_CREATED = "Tienda creada exitosamente"
MSG_TOO_MANY = "No puedes tener mas de {max} tiendas registradas"
MSG_NO_BUSINESS = "No se encontró un negocio seleccionado"
MSG_INVITE_ERROR = "Hubo un error al crear la invitación, por favor intenta nuevamente"
MSG_CODE_REQUIRED = "El código es requerido. Por favor ingresalo e intenta nuevamente"
MSG_CODE_MALFORMED = "El código ingresado no es válido. Por favor intenta nuevamente"
MSG_CODE_INVALID = (
    "El código ingresado no es válido. Es probable que ya haya sido utilizado o esté expirado."
)
MSG_BUSINESS_GONE = "El negocio asociado a esta invitación ya no existe."
MSG_JOINED = "Te uniste al negocio exitosamente"
MSG_JOIN_ERROR = "Hubo un error al unirte al negocio, por favor intenta nuevamente"
MSG_SWITCH_ERROR = "Hubo un error al cambiar de tienda, por favor intenta nuevamente"

CODE_ALPHABET = string.ascii_uppercase + string.digits


def invitation_code(business_id: str) -> str:
    """Join code: first 4 chars of the business id, a dash, 4 random chars."""
    suffix = "".join(secrets.choice(CODE_ALPHABET) for _ in range(4))
    return f"{business_id[:4]}-{suffix}"


class BusinessStore:
    def __init__(
        self,
        businesses: BusinessRepository,
        roles: UserRoleRepository,
        preferences: PreferenceRepository,
        user: UserResponse,
        notifier: Notifier,
        max_owned: int = settings.MAX_OWNED_BUSINESSES,
    ):
        self.repo = businesses
        self.roles = roles
        self.preferences = preferences
        self.user = user
        self.notifier = notifier
        self.max_owned = max_owned

        self.businesses: List[Business] = []
        self.businesses_fetched = False
        self.current_business: Optional[Business] = None
        self.user_role: Optional[str] = None

    @property
    def is_owner(self) -> bool:
        return self.user_role == RoleType.OWNER.value

    def get_business(self, business_id: str) -> Optional[Business]:
        return next((b for b in self.businesses if b.id == business_id), None)

    async def _persist_current(self, business_id: Optional[str]) -> bool:
        result = await self.preferences.set_current_business(self.user.id, business_id)
        if not result.success:
            logger.error("Could not persist active business for %s: %s", self.user.id, result.error)
        return result.success

    async def fetch_businesses(self, force_reload: bool = False) -> ActionResult:
        """Owned businesses plus those where the user holds an active role."""
        if self.businesses_fetched and not force_reload:
            return ActionResult.ok(self.businesses, from_cache=True)

        try:
            owned = await self.repo.find_owned(self.user.id)
            if not owned.success:
                self.notifier.error(MSG_FETCH_ERROR)
                return ActionResult.from_schema(owned, MSG_FETCH_ERROR)
            businesses = [
                b.model_copy(update={"type": RoleType.OWNER.value}) for b in owned.data
            ]

            member_roles = await self.roles.find_member_roles(self.user.id)
            if not member_roles.success:
                self.notifier.error(MSG_FETCH_ERROR)
                return ActionResult.from_schema(member_roles, MSG_FETCH_ERROR)
            role_by_business = {r.business_id: r.role for r in member_roles.data}
            if role_by_business:
                joined = await self.repo.find_by_ids(list(role_by_business))
                if not joined.success:
                    self.notifier.error(MSG_FETCH_ERROR)
                    return ActionResult.from_schema(joined, MSG_FETCH_ERROR)
                businesses.extend(
                    b.model_copy(update={"type": role_by_business.get(b.id, RoleType.EMPLOYEE.value)})
                    for b in joined.data
                )

            self.businesses = businesses
            await self._resolve_current()
            self.businesses_fetched = True
            return ActionResult.ok(self.businesses)
        except Exception:
            logger.exception("Unexpected error fetching businesses")
            self.notifier.error(MSG_FETCH_ERROR)
            return ActionResult.fail(FailureReason.UNEXPECTED, MSG_FETCH_ERROR)

    async def _resolve_current(self) -> None:
        """Pick the persisted business, falling back to the first available."""
        stored = await self.preferences.get_current_business(self.user.id)
        preferred = stored.data if stored.success else None

        if not self.businesses:
            self.current_business = None
            self.user_role = None
            if preferred:
                await self._persist_current(None)
            return

        business = self.get_business(preferred) if preferred else None
        if business is None:
            business = self.businesses[0]
        if business.id != preferred:
            await self._persist_current(business.id)
        self.current_business = business
        await self.update_user_role()

    async def restore_current(self, business_id: str) -> ActionResult:
        """Load a previously persisted active business and the role in it."""
        result = await self.repo.find_by_id(business_id)
        if not result.success:
            logger.warning("Persisted business %s unavailable: %s", business_id, result.error)
            return ActionResult.from_schema(result, MSG_NO_BUSINESS)
        self.current_business = result.data
        role = await self.update_user_role(business_id)
        if role.success:
            self.current_business = result.data.model_copy(update={"type": role.data})
        return ActionResult.ok(self.current_business)

    async def update_user_role(self, business_id: Optional[str] = None) -> ActionResult:
        """Refresh ``user_role`` from the active role in the given business."""
        business_id = business_id or (self.current_business.id if self.current_business else None)
        if not business_id:
            self.user_role = None
            return ActionResult.fail(FailureReason.NOT_FOUND, MSG_NO_BUSINESS)

        result = await self.roles.find_active_role(self.user.id, business_id)
        if not result.success:
            logger.error("Error resolving role for %s in %s: %s", self.user.id, business_id, result.error)
            return ActionResult.from_schema(result, result.error or "")
        if result.data is None:
            self.user_role = None
            return ActionResult.fail(FailureReason.NOT_FOUND, "No active role")

        self.user_role = result.data.role
        return ActionResult.ok(self.user_role)

    async def save_business(self, info: BusinessCreate) -> ActionResult:
        try:
            owned = await self.repo.count_owned(self.user.id)
            if not owned.success:
                self.notifier.error(MSG_SAVE_ERROR)
                return ActionResult.from_schema(owned, MSG_SAVE_ERROR)
            if owned.data >= self.max_owned:
                message = MSG_TOO_MANY.format(max=self.max_owned)
                self.notifier.error(message)
                return ActionResult.fail(FailureReason.INVALID_STATE, message)

            created = await self.repo.create(info.to_fields(self.user.id))
            if not created.success:
                logger.error("Error creating business: %s", created.error)
                self.notifier.error(MSG_SAVE_ERROR)
                return ActionResult.from_schema(created, MSG_SAVE_ERROR)
            business = created.data.model_copy(update={"type": RoleType.OWNER.value})

            now = utcnow()
            role = await self.roles.create({
                "user_uid": self.user.id,
                "business_id": business.id,
                "role": RoleType.OWNER.value,
                "status": RoleStatus.ACTIVE.value,
                "invited_by": self.user.id,
                "invited_at": now,
                "accepted_at": now,
            })
            if not role.success:
                logger.error("Business %s created without owner role: %s", business.id, role.error)
                self.notifier.error(MSG_SAVE_ERROR)
                return ActionResult.from_schema(role, MSG_SAVE_ERROR)

            if self.current_business is None:
                await self._persist_current(business.id)
                self.current_business = business
                self.user_role = RoleType.OWNER.value

            self.businesses.append(business)
            logger.info("Business %s created by %s", business.id, self.user.id)
            self.notifier.success(MSG_CREATED)
            return ActionResult.ok(business)
        except Exception:
            logger.exception("Unexpected error saving business")
            self.notifier.error(MSG_SAVE_ERROR)
            return ActionResult.fail(FailureReason.UNEXPECTED, MSG_SAVE_ERROR)

    async def save_employee(self, invite: EmployeeInvite) -> ActionResult:
        """Create a pending role that anyone holding the code can claim."""
        if self.current_business is None:
            self.notifier.error(MSG_NO_BUSINESS)
            return ActionResult.fail(FailureReason.INVALID_STATE, MSG_NO_BUSINESS)

        business_id = self.current_business.id
        code = invitation_code(business_id)
        try:
            result = await self.roles.create({
                "user_uid": None,
                "business_id": business_id,
                "role": RoleType(invite.role).value,
                "status": RoleStatus.PENDING.value,
                "code": code,
                "invited_by": self.user.id,
                "invited_at": utcnow(),
                "accepted_at": None,
            })
            if not result.success:
                logger.error("Error creating invitation: %s", result.error)
                self.notifier.error(MSG_INVITE_ERROR)
                return ActionResult.from_schema(result, MSG_INVITE_ERROR)
            return ActionResult.ok(Invitation(invitation_code=code, role_id=result.data.id))
        except Exception:
            logger.exception("Unexpected error creating invitation")
            self.notifier.error(MSG_INVITE_ERROR)
            return ActionResult.fail(FailureReason.UNEXPECTED, MSG_INVITE_ERROR)

    async def join_business(self, code: str) -> ActionResult:
        code = (code or "").strip()
        if not code:
            self.notifier.error(MSG_CODE_REQUIRED)
            return ActionResult.fail(FailureReason.VALIDATION, MSG_CODE_REQUIRED)
        if "-" not in code:
            self.notifier.error(MSG_CODE_MALFORMED)
            return ActionResult.fail(FailureReason.VALIDATION, MSG_CODE_MALFORMED)

        try:
            found = await self.roles.find_invitation(code)
            if not found.success:
                self.notifier.error(MSG_JOIN_ERROR)
                return ActionResult.from_schema(found, MSG_JOIN_ERROR)
            if found.data is None:
                self.notifier.error(MSG_CODE_INVALID)
                return ActionResult.fail(FailureReason.NOT_FOUND, MSG_CODE_INVALID)
            invitation = found.data

            business = await self.repo.find_by_id(invitation.business_id)
            if not business.success:
                if business.code == ErrorCode.NOT_FOUND:
                    self.notifier.error(MSG_BUSINESS_GONE)
                    return ActionResult.fail(FailureReason.NOT_FOUND, MSG_BUSINESS_GONE)
                self.notifier.error(MSG_JOIN_ERROR)
                return ActionResult.from_schema(business, MSG_JOIN_ERROR)

            accepted = await self.roles.update(invitation.id, AcceptInvitationPatch(user_uid=self.user.id))
            if not accepted.success:
                if accepted.code == ErrorCode.CONFLICT:
                    # Someone redeemed the code in the meantime
                    self.notifier.error(MSG_CODE_INVALID)
                    return ActionResult.fail(FailureReason.INVALID_STATE, MSG_CODE_INVALID)
                self.notifier.error(MSG_JOIN_ERROR)
                return ActionResult.from_schema(accepted, MSG_JOIN_ERROR)

            joined = business.data.model_copy(update={"type": invitation.role})
            await self._persist_current(joined.id)
            self.current_business = joined
            self.user_role = invitation.role
            if self.get_business(joined.id) is None:
                self.businesses.append(joined)

            self.notifier.success(MSG_JOINED)
            return ActionResult.ok(joined)
        except Exception:
            logger.exception("Unexpected error joining business")
            self.notifier.error(MSG_JOIN_ERROR)
            return ActionResult.fail(FailureReason.UNEXPECTED, MSG_JOIN_ERROR)

    async def change_current_business(self, business_id: str) -> ActionResult:
        """Persist ``business_id`` as active. Callers re-sync their caches."""
        if not self.businesses_fetched:
            await self.fetch_businesses()

        business = self.get_business(business_id)
        if business is None:
            self.notifier.error(MSG_SWITCH_ERROR)
            return ActionResult.fail(FailureReason.NOT_FOUND, MSG_SWITCH_ERROR)

        if not await self._persist_current(business_id):
            self.notifier.error(MSG_SWITCH_ERROR)
            return ActionResult.fail(FailureReason.REMOTE, MSG_SWITCH_ERROR)

        self.current_business = business
        await self.update_user_role(business_id)
        return ActionResult.ok(business)
