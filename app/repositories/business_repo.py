from typing import List

from app.models.base import parse_object_id
from app.models.business import AcceptInvitationPatch, Business, RoleStatus, RoleType, UserRole
from app.repositories.base import MongoRepository, SchemaResult


class BusinessRepository(MongoRepository[Business]):
    """Businesses (tenants), in ``userBusiness``."""

    collection_name = "userBusiness"
    model = Business

    async def find_owned(self, owner_uid: str) -> SchemaResult:
        return await self.find({"owner_uid": owner_uid}, order_by=[("created_at", 1)])

    async def count_owned(self, owner_uid: str) -> SchemaResult:
        return await self.count({"owner_uid": owner_uid})

    async def find_by_ids(self, ids: List[str]) -> SchemaResult:
        oids = [oid for oid in map(parse_object_id, ids) if oid is not None]
        if not oids:
            return SchemaResult.ok([])
        return await self.find({"_id": {"$in": oids}})


class UserRoleRepository(MongoRepository[UserRole]):
    """Membership of users in businesses, in ``userRole``."""

    collection_name = "userRole"
    model = UserRole
    patch_types = (AcceptInvitationPatch,)

    async def find_active_role(self, user_uid: str, business_id: str) -> SchemaResult:
        """Active role of a user in a business, ``data=None`` when absent."""
        return await self.find_one({
            "user_uid": user_uid,
            "business_id": business_id,
            "status": RoleStatus.ACTIVE.value,
        })

    async def find_member_roles(self, user_uid: str) -> SchemaResult:
        """Active roles the user holds in businesses they do not own."""
        return await self.find({
            "user_uid": user_uid,
            "status": RoleStatus.ACTIVE.value,
            "role": {"$ne": RoleType.OWNER.value},
        })

    async def find_invitation(self, code: str) -> SchemaResult:
        return await self.find_one({
            "code": code,
            "status": RoleStatus.PENDING.value,
            "user_uid": None,
        })
