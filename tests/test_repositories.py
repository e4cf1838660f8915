"""Tests for user repository."""
import pytest
from pymongo.errors import DuplicateKeyError

from app.models.user import UserCreate
from app.repositories.user_repo import UserRepository


@pytest.mark.asyncio
class TestUserRepository:
    """Test UserRepository operations."""

    async def test_create_user_success(self, test_db, sample_user_data):
        """Test successful user creation."""
        user_repo = UserRepository(test_db)

        user = await user_repo.create_user(UserCreate(**sample_user_data))

        assert user.id is not None
        assert user.name == sample_user_data["name"]
        assert user.email == sample_user_data["email"]
        assert user.password_hash != sample_user_data["password"]
        assert user.is_deleted is False
        assert user.created_at is not None

    async def test_email_is_stored_lowercase(self, test_db):
        user_repo = UserRepository(test_db)

        user = await user_repo.create_user(
            UserCreate(name="Luis", email="Luis.Diaz@Example.com", password="Pass123456")
        )

        assert user.email == "luis.diaz@example.com"

    async def test_create_user_duplicate_email(self, test_db, created_user):
        """Test that creating user with duplicate email fails."""
        user_repo = UserRepository(test_db)

        duplicate_user = UserCreate(
            name="Another User",
            email=created_user.email,
            password="AnotherPass123"
        )

        with pytest.raises(DuplicateKeyError):
            await user_repo.create_user(duplicate_user)

    async def test_get_user_by_email_found(self, test_db, created_user):
        """Test retrieving user by email, ignoring case."""
        user_repo = UserRepository(test_db)

        user = await user_repo.get_user_by_email("ANA@example.com")

        assert user is not None
        assert user.id == created_user.id
        assert user.name == created_user.name

    async def test_get_user_by_email_not_found(self, test_db):
        user_repo = UserRepository(test_db)

        assert await user_repo.get_user_by_email("nonexistent@example.com") is None

    async def test_deleted_user_is_not_returned(self, test_db, created_user):
        await test_db["users"].update_one({"email": created_user.email}, {"$set": {"is_deleted": True}})
        user_repo = UserRepository(test_db)

        assert await user_repo.get_user_by_email(created_user.email) is None
        assert await user_repo.get_user_by_id(created_user.id) is None

    async def test_get_user_by_id_found(self, test_db, created_user):
        """Test retrieving user by ID."""
        user = await UserRepository(test_db).get_user_by_id(created_user.id)

        assert user is not None
        assert user.email == created_user.email
        assert user.to_response().display_name == "Ana Pérez"

    async def test_get_user_by_invalid_id(self, test_db):
        user_repo = UserRepository(test_db)

        assert await user_repo.get_user_by_id("invalid-id") is None
        assert await user_repo.get_user_by_id("64b7f0c2a1b2c3d4e5f60799") is None
