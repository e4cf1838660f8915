"""Tests for per-user sessions and business switching."""
import pytest

from app.models.business import BusinessCreate
from app.models.debt import DebtCreate, DebtType
from app.models.supplier import SupplierCreate
from app.stores.base import FailureReason
from app.stores.session import BusinessSession, SessionRegistry


def business_info(name: str) -> BusinessCreate:
    return BusinessCreate(name=name, phone="+5491145551234")


async def owned_session(test_db, user, *names) -> BusinessSession:
    session = BusinessSession(test_db, user)
    for name in names:
        await session.business.save_business(business_info(name))
    await session.adopt_current_business()
    return session


@pytest.mark.asyncio
class TestBusinessSession:

    async def test_no_business_means_no_stores(self, test_db, user):
        session = BusinessSession(test_db, user)

        assert session.has_business is False
        assert session.ledger is None
        assert (await session.resync()).success is True

    async def test_adopt_binds_stores(self, test_db, user):
        session = await owned_session(test_db, user, "Centro")

        assert session.has_business is True
        assert session.business_id == session.business.current_business.id
        assert session.ledger.repo.business_id == session.business_id
        assert session.invoices.ledger is session.ledger

    async def test_switch_business_rebinds_and_resyncs(self, test_db, user):
        session = await owned_session(test_db, user, "Centro", "Norte")
        first_id = session.business_id
        second_id = next(b.id for b in session.business.businesses if b.id != first_id)
        await session.ledger.create_debt(DebtCreate(
            type=DebtType.CUSTOMER, entity_id="c1", entity_name="Juan", original_amount=100
        ))
        await session.suppliers.create_supplier(SupplierCreate(name="Sur", phone="11 4555 1234"))
        first_ledger = session.ledger

        result = await session.switch_business(second_id)

        assert result.success is True
        assert session.business_id == second_id
        assert session.ledger is not first_ledger
        assert first_ledger.debts == []
        assert session.ledger.debts == []
        assert session.ledger.last_loaded_at is not None
        assert session.suppliers.loaded is True
        assert session.suppliers.suppliers == []

        await session.switch_business(first_id)

        assert [d.counterparty_name for d in session.ledger.debts] == ["Juan"]
        assert [s.name for s in session.suppliers.suppliers] == ["Sur"]

    async def test_switch_to_unknown_business_keeps_current(self, test_db, user):
        session = await owned_session(test_db, user, "Centro")
        ledger = session.ledger

        result = await session.switch_business("64b7f0c2a1b2c3d4e5f60799")

        assert result.reason == FailureReason.NOT_FOUND
        assert session.ledger is ledger
        assert session.business_id == session.business.current_business.id


@pytest.mark.asyncio
class TestSessionRegistry:

    async def test_one_session_per_user(self, test_db, user):
        registry = SessionRegistry()

        first = await registry.get(test_db, user)
        second = await registry.get(test_db, user)

        assert first is second
        assert len(registry) == 1

        registry.discard(user.id)
        assert len(registry) == 0

    async def test_new_session_resumes_persisted_business(self, test_db, user):
        session = await owned_session(test_db, user, "Centro", "Norte")
        second_id = next(
            b.id for b in session.business.businesses if b.id != session.business_id
        )
        await session.switch_business(second_id)

        restored = await SessionRegistry().get(test_db, user)

        assert restored.business_id == second_id
        assert restored.business.current_business.name == "Norte"
        assert restored.business.is_owner is True
