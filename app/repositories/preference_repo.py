import logging
from typing import Optional

from pymongo.errors import PyMongoError

from app.models.base import utcnow
from app.models.user import Preference
from app.repositories.base import ErrorCode, MongoRepository, SchemaResult

logger = logging.getLogger(__name__)


class PreferenceRepository(MongoRepository[Preference]):
    """Persisted per-user settings, keyed by user id."""

    collection_name = "userPreference"
    model = Preference

    async def get_current_business(self, user_id: str) -> SchemaResult:
        """Active business id of the user, ``data=None`` when never set."""
        result = await self.find_one({"user_id": user_id})
        if not result.success or result.data is None:
            return result
        return SchemaResult.ok(result.data.current_business_id)

    async def set_current_business(self, user_id: str, business_id: Optional[str]) -> SchemaResult:
        now = utcnow()
        try:
            await self.collection.update_one(
                {"user_id": user_id},
                {
                    "$set": {"current_business_id": business_id, "updated_at": now},
                    "$setOnInsert": {"created_at": now},
                },
                upsert=True,
            )
            return SchemaResult.ok(business_id)
        except PyMongoError as e:
            logger.error("Error saving preference for user %s: %s", user_id, e)
            return SchemaResult.fail(ErrorCode.REMOTE, str(e))
