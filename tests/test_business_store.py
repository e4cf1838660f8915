"""Tests for businesses, roles and invitations."""
from unittest.mock import AsyncMock, patch

import pytest

from app.models.business import BusinessCreate, EmployeeInvite, RoleType
from app.models.user import UserResponse
from app.repositories.base import SchemaResult
from app.repositories.business_repo import BusinessRepository, UserRoleRepository
from app.repositories.preference_repo import PreferenceRepository
from app.stores.base import FailureReason
from app.stores.business_store import (
    MSG_CODE_INVALID,
    MSG_CODE_MALFORMED,
    MSG_CODE_REQUIRED,
    MSG_CREATED,
    MSG_JOINED,
    MSG_SWITCH_ERROR,
    BusinessStore,
    invitation_code,
)
from app.stores.notifications import Notifier


def make_store(db, user, notifier=None) -> BusinessStore:
    return BusinessStore(
        BusinessRepository(db),
        UserRoleRepository(db),
        PreferenceRepository(db),
        user,
        notifier or Notifier(),
        max_owned=3,
    )


def business_info(name="Pet Shop Centro") -> BusinessCreate:
    return BusinessCreate(name=name, phone="+5491145551234", address="Av. Corrientes 1234")


@pytest.fixture
def owner_store(test_db, user, notifier):
    return make_store(test_db, user, notifier)


@pytest.fixture
def employee():
    return UserResponse(id="user-2", name="Luis Díaz", email="luis@example.com")


def test_invitation_code_format():
    code = invitation_code("64b7f0c2a1b2c3d4e5f60718")

    prefix, suffix = code.split("-")
    assert prefix == "64b7"
    assert len(suffix) == 4
    assert suffix.isalnum()


def test_business_phone_length():
    with pytest.raises(ValueError):
        BusinessCreate(name="Tienda", phone="12345")


@pytest.mark.asyncio
class TestOwnedBusinesses:

    async def test_save_business(self, owner_store, test_db, notifier):
        result = await owner_store.save_business(business_info())

        assert result.success is True
        business = result.data
        assert business.owner_uid == "user-1"
        assert business.type == RoleType.OWNER
        assert owner_store.current_business.id == business.id
        assert owner_store.is_owner is True
        assert notifier.pending[-1].message == MSG_CREATED

        role = await UserRoleRepository(test_db).find_active_role("user-1", business.id)
        assert role.data.role == RoleType.OWNER
        stored = await PreferenceRepository(test_db).get_current_business("user-1")
        assert stored.data == business.id

    async def test_second_business_keeps_current(self, owner_store):
        first = await owner_store.save_business(business_info("Sucursal 1"))
        await owner_store.save_business(business_info("Sucursal 2"))

        assert owner_store.current_business.id == first.data.id
        assert len(owner_store.businesses) == 2

    async def test_owner_limit(self, owner_store, notifier):
        for i in range(3):
            assert (await owner_store.save_business(business_info(f"Sucursal {i}"))).success

        result = await owner_store.save_business(business_info("Sucursal 4"))

        assert result.success is False
        assert result.reason == FailureReason.INVALID_STATE
        assert result.error == "No puedes tener mas de 3 tiendas registradas"
        assert notifier.pending[-1].message == result.error

    async def test_fetch_resumes_persisted_business(self, owner_store, test_db, user):
        await owner_store.save_business(business_info("Sucursal 1"))
        second = await owner_store.save_business(business_info("Sucursal 2"))
        await PreferenceRepository(test_db).set_current_business(user.id, second.data.id)

        fresh = make_store(test_db, user)
        result = await fresh.fetch_businesses()

        assert len(result.data) == 2
        assert fresh.current_business.id == second.data.id
        assert fresh.user_role == RoleType.OWNER

    async def test_fetch_without_businesses(self, owner_store):
        result = await owner_store.fetch_businesses()

        assert result.success is True
        assert result.data == []
        assert owner_store.current_business is None

    async def test_change_to_unknown_business(self, owner_store):
        await owner_store.save_business(business_info())

        result = await owner_store.change_current_business("64b7f0c2a1b2c3d4e5f60799")

        assert result.reason == FailureReason.NOT_FOUND
        assert result.error == MSG_SWITCH_ERROR


@pytest.mark.asyncio
class TestInvitations:

    async def test_invite_and_join(self, owner_store, test_db, employee):
        business = (await owner_store.save_business(business_info())).data
        invitation = (await owner_store.save_employee(EmployeeInvite(role="vendedor"))).data
        assert invitation.invitation_code.startswith(business.id[:4] + "-")

        notifier = Notifier()
        employee_store = make_store(test_db, employee, notifier)
        result = await employee_store.join_business(invitation.invitation_code)

        assert result.success is True
        assert employee_store.current_business.id == business.id
        assert employee_store.user_role == RoleType.SELLER
        assert notifier.pending[-1].message == MSG_JOINED

        fetched = await make_store(test_db, employee).fetch_businesses()
        assert [(b.id, b.type) for b in fetched.data] == [(business.id, RoleType.SELLER)]

    async def test_code_is_single_use(self, owner_store, test_db, employee):
        await owner_store.save_business(business_info())
        invitation = (await owner_store.save_employee(EmployeeInvite(role="empleado"))).data
        await make_store(test_db, employee).join_business(invitation.invitation_code)

        third = UserResponse(id="user-3", name="Sofía Paz", email="sofia@example.com")
        result = await make_store(test_db, third).join_business(invitation.invitation_code)

        assert result.success is False
        assert result.reason == FailureReason.NOT_FOUND
        assert result.error == MSG_CODE_INVALID

    async def test_invitation_redeemed_meanwhile(self, owner_store, test_db, employee):
        await owner_store.save_business(business_info())
        invitation = (await owner_store.save_employee(EmployeeInvite(role="vendedor"))).data
        roles = UserRoleRepository(test_db)
        pending = await roles.find_invitation(invitation.invitation_code)
        await make_store(test_db, employee).join_business(invitation.invitation_code)

        late = make_store(test_db, UserResponse(id="user-3", name="Sofía", email="sofia@example.com"))
        with patch.object(late.roles, "find_invitation", AsyncMock(return_value=pending)):
            result = await late.join_business(invitation.invitation_code)

        assert result.reason == FailureReason.INVALID_STATE
        assert result.error == MSG_CODE_INVALID

    @pytest.mark.parametrize("code,message", [
        ("", MSG_CODE_REQUIRED),
        ("   ", MSG_CODE_REQUIRED),
        ("ABCD1234", MSG_CODE_MALFORMED),
    ])
    async def test_code_validation(self, test_db, employee, code, message):
        result = await make_store(test_db, employee).join_business(code)

        assert result.reason == FailureReason.VALIDATION
        assert result.error == message

    async def test_invite_without_business(self, owner_store):
        result = await owner_store.save_employee(EmployeeInvite(role="vendedor"))

        assert result.reason == FailureReason.INVALID_STATE

    async def test_role_lookup_error_is_reported(self, owner_store):
        await owner_store.save_business(business_info())
        failure = SchemaResult.fail("remote", "timeout")

        with patch.object(owner_store.roles, "find_active_role", AsyncMock(return_value=failure)):
            result = await owner_store.update_user_role()

        assert result.success is False
        assert result.reason == FailureReason.REMOTE
