"""End-to-end API tests over the in-memory database."""
import pytest
import pytest_asyncio

from app.core.access import MSG_FORBIDDEN
from app.core.auth import create_access_token
from app.models.user import UserCreate
from app.repositories.user_repo import UserRepository
from app.utils.formatting import NBSP

API = "/api/v1"


async def create_business(client, headers, name="Pet Shop Centro"):
    response = await client.post(
        f"{API}/businesses",
        json={"name": name, "phone": "+5491145551234", "address": "Av. Corrientes 1234"},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()["data"]


@pytest_asyncio.fixture
async def employee_headers(test_db):
    employee = await UserRepository(test_db).create_user(
        UserCreate(name="Luis Díaz", email="luis@example.com", password="Pass123456")
    )
    return {"Authorization": f"Bearer {create_access_token(employee.id)}"}


@pytest.mark.asyncio
class TestDebtEndpoints:

    async def test_business_required(self, client, auth_headers):
        response = await client.get(f"{API}/debts", headers=auth_headers)

        assert response.status_code == 403
        assert response.json()["detail"]["redirect"] == "/negocios"

    async def test_debt_lifecycle(self, client, auth_headers):
        await create_business(client, auth_headers)

        listed = await client.get(f"{API}/debts", headers=auth_headers)
        assert listed.status_code == 200
        assert listed.json()["data"] == []
        assert listed.json()["from_cache"] is False

        created = await client.post(
            f"{API}/debts",
            json={
                "type": "customer",
                "entity_id": "client-1",
                "entity_name": "Juan Gómez",
                "original_amount": 1500,
            },
            headers=auth_headers,
        )
        assert created.status_code == 201
        body = created.json()
        debt_id = body["data"]["id"]
        assert body["data"]["remaining_amount"] == 1500
        assert body["notifications"][0]["message"] == "Deuda creada exitosamente"

        cached = await client.get(f"{API}/debts", headers=auth_headers)
        assert cached.json()["from_cache"] is True
        assert [d["id"] for d in cached.json()["data"]] == [debt_id]

        paid = await client.post(
            f"{API}/debts/{debt_id}/payments",
            json={"amount": 500, "payment_method": "efectivo"},
            headers=auth_headers,
        )
        assert paid.status_code == 201
        assert paid.json()["data"]["payment_method"] == "EFECTIVO"

        summary = await client.get(f"{API}/debts/summary", headers=auth_headers)
        assert summary.json()["total_customer_amount"] == 1000
        assert summary.json()["formatted_customer_amount"] == f"${NBSP}1.000,00"
        assert summary.json()["needs_refresh"] is False

        payments = await client.get(f"{API}/debts/{debt_id}/payments", headers=auth_headers)
        assert [p["amount"] for p in payments.json()["data"]] == [500]

        closed = await client.post(
            f"{API}/debts/{debt_id}/close", json={"reason": "Acuerdo"}, headers=auth_headers
        )
        assert closed.status_code == 200
        assert closed.json()["data"]["status"] == "paid"

        cancelled = await client.post(
            f"{API}/debts/{debt_id}/cancel", json={"reason": "Error"}, headers=auth_headers
        )
        assert cancelled.status_code == 409
        assert cancelled.json()["detail"] == "Solo se pueden cancelar deudas activas"

    async def test_payment_above_balance(self, client, auth_headers):
        await create_business(client, auth_headers)
        created = await client.post(
            f"{API}/debts",
            json={"type": "customer", "entity_id": "c1", "entity_name": "Juan", "original_amount": 100},
            headers=auth_headers,
        )

        response = await client.post(
            f"{API}/debts/{created.json()['data']['id']}/payments",
            json={"amount": 150, "payment_method": "efectivo"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "El monto no puede ser mayor al saldo pendiente"

    async def test_unknown_debt(self, client, auth_headers):
        await create_business(client, auth_headers)

        response = await client.get(f"{API}/debts/64b7f0c2a1b2c3d4e5f60799", headers=auth_headers)

        assert response.status_code == 404

    async def test_cache_endpoints(self, client, auth_headers):
        await create_business(client, auth_headers)
        await client.get(f"{API}/debts", headers=auth_headers)

        first = await client.get(f"{API}/debts/snapshots/snap-1", headers=auth_headers)
        second = await client.get(f"{API}/debts/snapshots/snap-1", headers=auth_headers)
        assert first.json()["from_cache"] is False
        assert second.json()["from_cache"] is True

        state = await client.get(f"{API}/debts/cache", headers=auth_headers)
        assert state.json() == {"cached_debts": 0, "cached_snapshots": 1, "needs_refresh": False}

        cleared = await client.delete(f"{API}/debts/cache", headers=auth_headers)
        assert cleared.status_code == 204

        state = await client.get(f"{API}/debts/cache", headers=auth_headers)
        assert state.json() == {"cached_debts": 0, "cached_snapshots": 0, "needs_refresh": True}


@pytest.mark.asyncio
class TestSupplierAndInvoiceEndpoints:

    async def test_supplier_crud(self, client, auth_headers):
        await create_business(client, auth_headers)

        created = await client.post(
            f"{API}/suppliers",
            json={"name": "Distribuidora Sur", "category": "alimentos", "phone": "11 4555 1234"},
            headers=auth_headers,
        )
        assert created.status_code == 201
        supplier_id = created.json()["data"]["id"]

        invalid = await client.post(
            f"{API}/suppliers", json={"name": "Sin contacto"}, headers=auth_headers
        )
        assert invalid.status_code == 422

        archived = await client.post(f"{API}/suppliers/{supplier_id}/archive", headers=auth_headers)
        assert archived.json()["data"]["is_active"] is False

        active = await client.get(f"{API}/suppliers", headers=auth_headers)
        archived_list = await client.get(
            f"{API}/suppliers", params={"filter": "archived"}, headers=auth_headers
        )
        assert active.json()["data"] == []
        assert [s["id"] for s in archived_list.json()["data"]] == [supplier_id]

        categories = await client.get(f"{API}/suppliers/categories", headers=auth_headers)
        assert len(categories.json()) == 3

    async def test_invoice_with_unpaid_balance(self, client, auth_headers):
        await create_business(client, auth_headers)

        created = await client.post(
            f"{API}/purchase-invoices",
            json={
                "supplier_id": "supplier-1",
                "supplier_name": "Distribuidora Sur",
                "invoice_number": "0001-00001234",
                "invoice_date": "2024-03-01T00:00:00Z",
                "invoice_type": "A",
                "total_spent": 10000,
                "unpaid_amount": 4000,
                "products": [{
                    "product_id": "p1",
                    "product_name": "Alimento perro adulto 15kg",
                    "quantity": 4,
                    "unit_cost": 2500,
                    "total_cost": 10000,
                }],
            },
            headers=auth_headers,
        )
        assert created.status_code == 201
        messages = [n["message"] for n in created.json()["notifications"]]
        assert messages == ["Factura de compra creada exitosamente", "Deuda creada exitosamente"]

        debts = await client.get(
            f"{API}/debts", params={"type": "supplier", "active_only": True}, headers=auth_headers
        )
        [debt] = debts.json()["data"]
        assert debt["original_amount"] == 4000
        assert debt["origin_id"] == created.json()["data"]["id"]


@pytest.mark.asyncio
class TestBusinessEndpoints:

    async def test_switch_business(self, client, auth_headers):
        first = await create_business(client, auth_headers, "Centro")
        second = await create_business(client, auth_headers, "Norte")

        current = await client.get(f"{API}/businesses/current", headers=auth_headers)
        assert current.json()["business"]["id"] == first["id"]

        switched = await client.post(
            f"{API}/businesses/switch", json={"business_id": second["id"]}, headers=auth_headers
        )
        assert switched.status_code == 200

        current = await client.get(f"{API}/businesses/current", headers=auth_headers)
        assert current.json()["business"]["id"] == second["id"]
        assert current.json()["role"] == "propietario"

    async def test_employee_access(self, client, auth_headers, employee_headers):
        await create_business(client, auth_headers)
        invited = await client.post(
            f"{API}/businesses/invitations", json={"role": "vendedor"}, headers=auth_headers
        )
        assert invited.status_code == 201
        code = invited.json()["data"]["invitation_code"]

        joined = await client.post(
            f"{API}/businesses/join", json={"code": code}, headers=employee_headers
        )
        assert joined.status_code == 200

        debts = await client.get(f"{API}/debts", headers=employee_headers)
        assert debts.status_code == 403
        assert debts.json()["detail"] == {"message": MSG_FORBIDDEN, "redirect": "/dashboard"}

        guard = await client.get(
            f"{API}/navigation/guard", params={"path": "/caja"}, headers=employee_headers
        )
        assert guard.json()["allowed"] is True

        reused = await client.post(
            f"{API}/businesses/join", json={"code": code}, headers=employee_headers
        )
        assert reused.status_code == 404


@pytest.mark.asyncio
async def test_guard_for_anonymous_user(client):
    response = await client.get(f"{API}/navigation/guard", params={"path": "/deudas"})

    assert response.status_code == 200
    assert response.json()["allowed"] is False
    assert response.json()["redirect"] == "/welcome?redirect=%2Fdeudas"
