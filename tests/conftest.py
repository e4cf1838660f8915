from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from mongomock_motor import AsyncMongoMockClient
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.main import app
from app.db.mongo import get_db
from app.models.debt import DebtCreate, DebtType
from app.models.user import UserCreate, UserResponse
from app.repositories.debt_repo import DebtPaymentRepository, DebtRepository
from app.repositories.user_repo import UserRepository
from app.core.auth import create_access_token
from app.stores.debt_ledger import DebtLedger
from app.stores.notifications import Notifier
from app.stores.session import SessionRegistry

TEST_MONGODB_DB = "petstock_test"
BUSINESS_ID = "64b7f0c2a1b2c3d4e5f60718"


@pytest_asyncio.fixture
async def test_db() -> AsyncIOMotorDatabase:
    """Fixture for an in-memory MongoDB database."""
    client = AsyncMongoMockClient()
    db = client[TEST_MONGODB_DB]

    await db["users"].create_index("email", unique=True)

    yield db

    await client.drop_database(TEST_MONGODB_DB)


@pytest_asyncio.fixture
async def sample_user_data():
    """Sample user data for testing."""
    return {
        "name": "Ana Pérez",
        "email": "ana@example.com",
        "password": "SecurePassword123"
    }


@pytest_asyncio.fixture
async def created_user(test_db, sample_user_data):
    """Create a sample user in test database."""
    user_repo = UserRepository(test_db)
    return await user_repo.create_user(UserCreate(**sample_user_data))


@pytest_asyncio.fixture
async def valid_token(created_user):
    """Create a valid JWT token for testing."""
    return create_access_token(created_user.id)


@pytest.fixture
def user():
    return UserResponse(id="user-1", name="Ana Pérez", email="ana@example.com")


@pytest.fixture
def notifier():
    return Notifier()


@pytest.fixture
def clock():
    """Adjustable clock: set ``clock.now`` to move time."""

    class Clock:
        now = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def ledger(test_db, user, notifier, clock):
    """Debt ledger of one business backed by the in-memory database."""
    return DebtLedger(
        DebtRepository(test_db, BUSINESS_ID),
        DebtPaymentRepository(test_db, BUSINESS_ID),
        user,
        notifier,
        cache_ttl_seconds=300,
        clock=clock,
    )


@pytest.fixture
def customer_debt_data():
    return DebtCreate(
        type=DebtType.CUSTOMER,
        entity_id="client-1",
        entity_name="Juan Gómez",
        original_amount=1500,
    )


@pytest_asyncio.fixture
async def client(test_db):
    """HTTP client for the API, wired to the in-memory database."""
    app.dependency_overrides[get_db] = lambda: test_db
    app.state.sessions = SessionRegistry()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def auth_headers(valid_token):
    return {"Authorization": f"Bearer {valid_token}"}
