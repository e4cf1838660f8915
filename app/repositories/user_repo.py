from motor.motor_asyncio import AsyncIOMotorDatabase
from datetime import datetime, timezone
from app.models.base import parse_object_id
from app.models.user import UserCreate, UserInDB
from app.core.security import hash_password


class UserRepository:
    """User database operations."""

    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["users"]

    @staticmethod
    def _to_user(doc: dict) -> UserInDB:
        doc["_id"] = str(doc["_id"])
        return UserInDB(**doc)

    async def create_user(self, user_data: UserCreate) -> UserInDB:
        """Create a new user. Duplicate emails raise DuplicateKeyError."""
        user_dict = {
            "name": user_data.name,
            "email": user_data.email.lower(),
            "password_hash": hash_password(user_data.password),
            "is_deleted": False,
            "created_at": datetime.now(timezone.utc),
            "updated_at": datetime.now(timezone.utc)
        }

        result = await self.collection.insert_one(user_dict)
        user_dict["_id"] = result.inserted_id
        return self._to_user(user_dict)

    async def get_user_by_email(self, email: str) -> UserInDB | None:
        """Get user by email."""
        user = await self.collection.find_one({"email": email.lower(), "is_deleted": False})
        if user:
            return self._to_user(user)
        return None

    async def get_user_by_id(self, user_id: str) -> UserInDB | None:
        """Get user by ID."""
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        user = await self.collection.find_one({"_id": oid, "is_deleted": False})
        if user:
            return self._to_user(user)
        return None
